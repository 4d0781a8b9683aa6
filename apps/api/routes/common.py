from fastapi import HTTPException

from ..errors import BillingError, Conflict, InvoiceValidationError, NotFound, PersistenceFailure


def to_http(e: BillingError) -> HTTPException:
    """Map a billing error onto the HTTP status the UI expects."""
    if isinstance(e, InvoiceValidationError):
        status = 422
    elif isinstance(e, NotFound):
        status = 404
    elif isinstance(e, Conflict):
        status = 409
    elif isinstance(e, PersistenceFailure):
        status = 503
    else:
        status = 500
    return HTTPException(status_code=status, detail=e.to_detail())
