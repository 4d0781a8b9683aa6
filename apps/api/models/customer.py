from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional

class CustomerIn(BaseModel):
    customer_id: Optional[str] = Field(None, description="Leave empty to let the server assign one")
    customer_name: str = Field(..., min_length=1, max_length=100)
    phone: Optional[str] = Field(None, pattern=r"^\d{10}$", examples=["0771234567"])
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=500)

    # the web form posts "" for untouched optional inputs
    @field_validator("phone", "email", "address", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

class Customer(CustomerIn):
    customer_id: str
