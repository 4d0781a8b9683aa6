from pydantic import BaseModel, ConfigDict, Field
from typing import Any, List, Optional, Annotated
from datetime import datetime
from decimal import Decimal

Money = Annotated[Decimal, Field(max_digits=18, decimal_places=2)]
Rate = Decimal  # percent, kept as given

# --- requests -------------------------------------------------------------

class InvoiceLineRequest(BaseModel):
    item_id: str
    # taken as-is: type, range and integrality are all checked by the pricing
    # engine so the error can point at the offending line
    quantity: Any

class InvoiceRequest(BaseModel):
    customer_id: str
    tax_rate: Optional[Decimal] = Field(None, description="Percent, e.g. 10 for 10%. Server default when omitted.")
    items: List[InvoiceLineRequest] = Field(default_factory=list)

# --- priced / stored ------------------------------------------------------

class InvoiceLine(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_no: int
    item_id: str
    item_name: str
    item_description: Optional[str] = None
    quantity: int = Field(..., gt=0)
    unit_price: Money
    line_total: Money

class CustomerSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    customer_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

class PricedInvoice(BaseModel):
    """Fully priced invoice that has not been stored yet (no id, no number)."""
    model_config = ConfigDict(frozen=True)

    customer_id: str
    customer: CustomerSnapshot
    invoice_date: datetime
    tax_rate: Rate
    lines: List[InvoiceLine] = Field(..., min_length=1)
    sub_total: Money
    tax_amount: Money
    total_amount: Money

class Invoice(PricedInvoice):
    invoice_id: str
    invoice_number: str

class InvoiceSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    invoice_id: str
    invoice_number: str
    customer_id: str
    customer_name: str
    invoice_date: datetime
    tax_rate: Rate
    sub_total: Money
    tax_amount: Money
    total_amount: Money
