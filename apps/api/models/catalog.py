from pydantic import BaseModel, Field
from typing import Optional, Annotated
from decimal import Decimal

Price = Annotated[Decimal, Field(gt=0, max_digits=18, decimal_places=2)]

class CategoryIn(BaseModel):
    category_id: Optional[str] = Field(None, description="Leave empty to let the server assign one")
    category_name: str = Field(..., min_length=1, max_length=100, examples=["Pizza"])
    description: Optional[str] = Field(None, max_length=500)

class Category(CategoryIn):
    category_id: str

class ItemIn(BaseModel):
    item_id: Optional[str] = Field(None, description="Leave empty to let the server assign one")
    item_name: str = Field(..., min_length=1, max_length=100, examples=["Margherita (L)"])
    category_id: str
    unit_price: Price
    description: Optional[str] = Field(None, max_length=500)

class CatalogItem(ItemIn):
    item_id: str
    # joined in by listings, never written
    category_name: Optional[str] = None
