from apps.api.services.formatting import format_rate, render_invoice_pdf, render_invoice_text
from apps.api.services.pricing import create_invoice

from decimal import Decimal


def stored_invoice(repos, customer_id="CUST-1", tax_rate=10, now=None):
    kw = {"now": now} if now else {}
    priced = create_invoice(repos.customers, repos.catalog, customer_id, tax_rate,
                            [("ITEM-A", 2), ("ITEM-B", 3)], **kw)
    return repos.invoices.store(priced)


def test_text_rendering_has_all_blocks(seeded, fixed_now):
    inv = stored_invoice(seeded, now=fixed_now)
    text = render_invoice_text(inv, "Pizza Shop Billing System", "LKR")

    assert "Pizza Shop Billing System" in text
    assert "Invoice No: INV-000001" in text
    assert "Date: 2024-03-01 18:30" in text
    assert "Nimal Perera" in text
    assert "Phone: 0771234567" in text
    assert "Email: nimal@example.com" in text
    assert "Address: 12 Galle Road, Colombo" in text
    assert "Margherita (L)" in text
    assert "Tomato, mozzarella" in text
    assert "1,700.00" in text and "1,351.50" in text
    assert "Subtotal:" in text and "LKR 3,051.50" in text
    assert "Tax (10%):" in text and "LKR 305.15" in text
    assert "Total:" in text and "LKR 3,356.65" in text


def test_text_rendering_skips_missing_contact_fields(seeded):
    inv = stored_invoice(seeded, customer_id="CUST-2")
    text = render_invoice_text(inv, "Shop", "LKR")

    assert "Walk-in" in text
    assert "Phone:" not in text
    assert "Email:" not in text
    assert "Address:" not in text


def test_line_order_is_preserved_in_text(seeded):
    text = render_invoice_text(stored_invoice(seeded), "Shop", "LKR")
    assert text.index("Margherita (L)") < text.index("Garlic Bread")


def test_format_rate():
    assert format_rate(Decimal("10")) == "10"
    assert format_rate(Decimal("12.50")) == "12.5"
    assert format_rate(Decimal("0")) == "0"


def test_pdf_rendering_produces_a_pdf(seeded):
    pdf = render_invoice_pdf(stored_invoice(seeded), "Pizza Shop Billing System", "LKR")
    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 500
