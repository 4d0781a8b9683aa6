from typing import Any, Dict, Optional


class BillingError(Exception):
    """Base class for everything the billing core raises on purpose."""

    code = "BILLING_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


class InvoiceValidationError(BillingError):
    """The invoice request is wrong; nothing was written."""


class EmptyInvoice(InvoiceValidationError):
    code = "EMPTY_INVOICE"

    def __init__(self):
        super().__init__("An invoice needs at least one line item.")


class InvalidCustomer(InvoiceValidationError):
    code = "INVALID_CUSTOMER"

    def __init__(self, customer_id: Any):
        super().__init__(f"Customer {customer_id!r} does not exist.")
        self.customer_id = customer_id

    def to_detail(self) -> Dict[str, Any]:
        return {**super().to_detail(), "customer_id": self.customer_id}


class InvalidTaxRate(InvoiceValidationError):
    code = "INVALID_TAX_RATE"

    def __init__(self, tax_rate: Any):
        super().__init__(f"Tax rate must be a non-negative number, got {tax_rate!r}.")
        self.tax_rate = tax_rate


class UnknownItem(InvoiceValidationError):
    code = "UNKNOWN_ITEM"

    def __init__(self, item_id: Any, index: int):
        super().__init__(f"lines[{index}]: item {item_id!r} is not in the catalog.")
        self.item_id = item_id
        self.index = index

    def to_detail(self) -> Dict[str, Any]:
        return {**super().to_detail(), "item_id": self.item_id, "index": self.index}


class InvalidQuantity(InvoiceValidationError):
    code = "INVALID_QUANTITY"

    def __init__(self, index: int, quantity: Any):
        super().__init__(
            f"lines[{index}]: quantity must be a positive integer, got {quantity!r}."
        )
        self.index = index
        self.quantity = quantity

    def to_detail(self) -> Dict[str, Any]:
        # quantity may be a float/Decimal, keep the payload JSON-friendly
        return {**super().to_detail(), "index": self.index, "quantity": str(self.quantity)}


class AmountTooLarge(InvoiceValidationError):
    code = "AMOUNT_TOO_LARGE"

    def __init__(self, field: str, amount: Any):
        super().__init__(f"{field} of {amount} is larger than an invoice can hold.")
        self.field = field
        self.amount = amount

    def to_detail(self) -> Dict[str, Any]:
        return {**super().to_detail(), "field": self.field, "amount": str(self.amount)}


class NotFound(BillingError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity.capitalize()} {entity_id!r} not found.")
        self.entity = entity
        self.entity_id = entity_id

    def to_detail(self) -> Dict[str, Any]:
        return {**super().to_detail(), "entity": self.entity, "id": str(self.entity_id)}


class Conflict(BillingError):
    """A catalog/customer record is still referenced and can't be removed."""

    code = "CONFLICT"


class PersistenceFailure(BillingError):
    code = "PERSISTENCE_FAILURE"

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
