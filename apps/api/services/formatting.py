"""
Printable renderings of a stored invoice.

Both renderers are read-only views over an Invoice: the header (shop name,
invoice number, date), the bill-to block, the line table and the totals block.
"""
import io
from decimal import Decimal
from typing import List

from reportlab.lib.pagesizes import LETTER
from reportlab.lib.units import inch
from reportlab.pdfgen import canvas as pdf_canvas

from ..models.invoice import Invoice

TEXT_WIDTH = 72


def format_money(amount: Decimal) -> str:
    return f"{amount:,.2f}"


def format_rate(rate: Decimal) -> str:
    # 10 -> "10", 12.50 -> "12.5"
    text = f"{rate:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def bill_to_lines(inv: Invoice) -> List[str]:
    c = inv.customer
    out = [c.customer_name]
    if c.phone:
        out.append(f"Phone: {c.phone}")
    if c.email:
        out.append(f"Email: {c.email}")
    if c.address:
        out.append(f"Address: {c.address}")
    return out


def totals_rows(inv: Invoice, currency: str) -> List[tuple[str, str]]:
    return [
        ("Subtotal:", f"{currency} {format_money(inv.sub_total)}"),
        (f"Tax ({format_rate(inv.tax_rate)}%):", f"{currency} {format_money(inv.tax_amount)}"),
        ("Total:", f"{currency} {format_money(inv.total_amount)}"),
    ]


def render_invoice_text(inv: Invoice, shop_name: str, currency: str) -> str:
    """Fixed-width rendering for receipt printers and the /print endpoint."""
    rule = "-" * TEXT_WIDTH
    out = [
        shop_name.center(TEXT_WIDTH).rstrip(),
        "INVOICE".center(TEXT_WIDTH).rstrip(),
        rule,
        f"Invoice No: {inv.invoice_number}",
        f"Date: {inv.invoice_date:%Y-%m-%d %H:%M}",
        "",
        "Bill To:",
        *("  " + ln for ln in bill_to_lines(inv)),
        rule,
        f"{'Item':<22}{'Description':<20}{'Qty':>6}{'Unit':>12}{'Total':>12}",
        rule,
    ]
    for ln in inv.lines:
        desc = (ln.item_description or "")[:19]
        out.append(
            f"{ln.item_name[:21]:<22}{desc:<20}{ln.quantity:>6}"
            f"{format_money(ln.unit_price):>12}{format_money(ln.line_total):>12}"
        )
    out.append(rule)
    for label, value in totals_rows(inv, currency):
        out.append(f"{label:>50}{value:>22}")
    return "\n".join(out) + "\n"


def render_invoice_pdf(inv: Invoice, shop_name: str, currency: str) -> bytes:
    """Letter-size PDF of the invoice; long carts spill onto extra pages."""
    buf = io.BytesIO()
    c = pdf_canvas.Canvas(buf, pagesize=LETTER)
    width, height = LETTER

    c.setFont("Helvetica-Bold", 16)
    c.drawString(1*inch, height - 1*inch, shop_name)
    c.setFont("Helvetica", 10)
    c.drawString(1*inch, height - 1.3*inch, f"Invoice No: {inv.invoice_number}")
    c.drawString(1*inch, height - 1.5*inch, f"Date: {inv.invoice_date:%Y-%m-%d %H:%M}")

    y = height - 1.9*inch
    c.setFont("Helvetica-Bold", 10)
    c.drawString(1*inch, y, "Bill To:")
    c.setFont("Helvetica", 10)
    for text in bill_to_lines(inv):
        y -= 0.2*inch
        c.drawString(1.2*inch, y, text[:80])

    # table header
    y -= 0.4*inch
    c.setFont("Helvetica-Bold", 10)
    c.drawString(1*inch, y, "Item")
    c.drawString(2.7*inch, y, "Description")
    c.drawRightString(5.4*inch, y, "Qty")
    c.drawRightString(6.3*inch, y, "Unit Price")
    c.drawRightString(7.5*inch, y, "Total")
    c.line(1*inch, y - 0.08*inch, 7.5*inch, y - 0.08*inch)
    c.setFont("Helvetica", 10)

    for ln in inv.lines:
        y -= 0.25*inch
        if y < 1.5*inch:
            c.showPage()
            c.setFont("Helvetica", 10)
            y = height - 1*inch
        c.drawString(1*inch, y, ln.item_name[:28])
        c.drawString(2.7*inch, y, (ln.item_description or "")[:34])
        c.drawRightString(5.4*inch, y, str(ln.quantity))
        c.drawRightString(6.3*inch, y, format_money(ln.unit_price))
        c.drawRightString(7.5*inch, y, format_money(ln.line_total))

    y -= 0.3*inch
    c.line(4.5*inch, y + 0.12*inch, 7.5*inch, y + 0.12*inch)
    for label, value in totals_rows(inv, currency):
        y -= 0.22*inch
        c.drawRightString(6.3*inch, y, label)
        c.drawRightString(7.5*inch, y, value)

    c.showPage()
    c.save()
    return buf.getvalue()
