"""
Tests du rendu PDF des devis.
"""
from datetime import datetime, timedelta, timezone

import pytest
from reportlab.platypus import SimpleDocTemplate

from boom.quotes.exceptions import QuotePdfGenerationException
from boom.quotes.models import QuoteItemRead, QuoteRead
from boom.quotes.pdf import render_quote_pdf
from boom.users.models import CustomerSummary

CREATED_AT = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)

def _quote(**overrides) -> QuoteRead:
    fields = dict(
        id=7,
        user_id=3,
        quote_number="DEV2401-AB12CD",
        status="sent",
        valid_until=CREATED_AT + timedelta(days=30),
        subtotal_ht=1125.0,
        discount_amount=125.0,
        tax_rate=20.0,
        tax_amount=225.0,
        total_ht=1125.0,
        total_ttc=1350.0,
        created_at=CREATED_AT,
        updated_at=CREATED_AT,
        items=[
            QuoteItemRead(
                id=1, quote_id=7, product_id=1, product_name="Serveur rack & câbles",
                product_sku="SRV-001", quantity=2, unit_price_ht=500.0, discount_rate=10,
            ),
            QuoteItemRead(
                id=2, quote_id=7, product_id=2, product_name="Clavier <pro>",
                product_sku="KBD-002", quantity=5, unit_price_ht=45.0,
            ),
        ],
        notes="Livraison sur site & installation",
    )
    fields.update(overrides)
    return QuoteRead(**fields)

def test_render_quote_pdf_with_discounts_and_customer():
    customer = CustomerSummary(id=3, email="pro@example.com", first_name="Paul", last_name="Martin", company_name="Martin & Fils")
    pdf_bytes = render_quote_pdf(_quote(customer=customer))
    assert pdf_bytes.startswith(b"%PDF")
    assert b"%%EOF" in pdf_bytes[-32:]

def test_render_draft_quote_without_validity_or_notes():
    item = QuoteItemRead(
        id=1, quote_id=7, product_id=1, product_name="Souris", product_sku="MOU-001",
        quantity=1, unit_price_ht=20.0,
    )
    quote = _quote(
        status="draft", valid_until=None, notes=None, items=[item],
        subtotal_ht=20.0, discount_amount=0.0, tax_amount=4.0, total_ht=20.0, total_ttc=24.0,
    )
    assert render_quote_pdf(quote).startswith(b"%PDF")

def test_render_quote_pdf_wraps_reportlab_errors(monkeypatch):
    def broken_build(self, *args, **kwargs):
        raise ValueError("mise en page impossible")
    monkeypatch.setattr(SimpleDocTemplate, "build", broken_build)

    with pytest.raises(QuotePdfGenerationException) as exc_info:
        render_quote_pdf(_quote())
    assert isinstance(exc_info.value.original_exception, ValueError)
