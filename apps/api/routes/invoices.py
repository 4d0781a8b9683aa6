from fastapi import APIRouter, Body, Depends, Query, Response
from fastapi.responses import PlainTextResponse

from ..deps import get_catalog_repo, get_customer_repo, get_invoice_repo
from ..errors import BillingError
from ..models.invoice import Invoice, InvoiceRequest
from ..services.formatting import render_invoice_pdf, render_invoice_text
from ..services.invoicing import issue_invoice
from ..settings import settings
from .common import to_http

router = APIRouter(prefix="/invoices", tags=["invoices"])

# Invoices are immutable once issued: no PATCH/PUT/DELETE.


# List invoices in creation order (oldest first), header fields only
@router.get("")
def list_invoices(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    invoices=Depends(get_invoice_repo),
):
    items = invoices.find_all(limit=limit, offset=offset)
    return {"items": items, "limit": limit, "offset": offset}


@router.post("", response_model=Invoice, status_code=201)
def create_invoice(
    req: InvoiceRequest = Body(...),
    catalog=Depends(get_catalog_repo),
    customers=Depends(get_customer_repo),
    invoices=Depends(get_invoice_repo),
):
    try:
        return issue_invoice(
            req,
            customers=customers,
            catalog=catalog,
            invoices=invoices,
            default_tax_rate=settings.DEFAULT_TAX_RATE,
        )
    except BillingError as e:
        raise to_http(e)


def _load(invoices, invoice_id: str) -> Invoice:
    try:
        return invoices.get_by_id(invoice_id)
    except BillingError as e:
        raise to_http(e)


# Get single invoice with lines
@router.get("/{invoice_id}", response_model=Invoice)
def get_invoice(invoice_id: str, invoices=Depends(get_invoice_repo)):
    return _load(invoices, invoice_id)


@router.get("/{invoice_id}/print", response_class=PlainTextResponse)
def print_invoice(invoice_id: str, invoices=Depends(get_invoice_repo)):
    inv = _load(invoices, invoice_id)
    return render_invoice_text(inv, settings.SHOP_NAME, settings.CURRENCY)


@router.get("/{invoice_id}/pdf")
def invoice_pdf(invoice_id: str, invoices=Depends(get_invoice_repo)):
    inv = _load(invoices, invoice_id)
    pdf = render_invoice_pdf(inv, settings.SHOP_NAME, settings.CURRENCY)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="{inv.invoice_number}.pdf"'},
    )
