import pytest

from invenpro.models import DocumentRecord, DocumentSequence, Product
from invenpro.services.billing_service import build_document, commit_document, compute_totals
from invenpro.services.document_service import doc_type_initials, next_document_number
from invenpro.time_utils import utcnow
from invenpro.validation import ValidationError


def test_compute_totals_applies_discount_then_tax():
    totals = compute_totals(
        [{"price_cents": 1000, "quantity": 3}, {"price_cents": 250, "quantity": 2}],
        discount_bps=1000,
        tax_rate_bps=1800,
    )
    assert totals.subtotal_cents == 3500
    assert totals.discount_cents == 350
    assert totals.taxable_cents == 3150
    assert totals.tax_cents == 567
    assert totals.total_cents == 3717


def test_compute_totals_rounds_half_up():
    # 333 * 15% = 49.95 -> 50
    totals = compute_totals([{"price_cents": 333, "quantity": 1}], tax_rate_bps=1500)
    assert totals.tax_cents == 50
    assert totals.total_cents == 383


def test_compute_totals_empty():
    totals = compute_totals([])
    assert totals.to_dict() == {
        "subtotal_cents": 0,
        "discount_cents": 0,
        "taxable_cents": 0,
        "tax_cents": 0,
        "total_cents": 0,
    }


@pytest.mark.parametrize("doc_type,initials", [
    ("SALES_BILL", "SB"),
    ("PURCHASE_BILL", "PB"),
    ("DELIVERY_CHALLAN", "DC"),
    ("CREDIT_DEBIT_NOTE", "CDN"),
    ("GRN", "G"),
])
def test_doc_type_initials(doc_type, initials):
    assert doc_type_initials(doc_type) == initials


def test_document_numbers_are_sequential_per_type_and_year(db_session):
    assert next_document_number(doc_type="SALES_BILL", year=2026) == "SB/2026/0001"
    assert next_document_number(doc_type="SALES_BILL", year=2026) == "SB/2026/0002"
    assert next_document_number(doc_type="PURCHASE_BILL", year=2026) == "PB/2026/0001"
    assert next_document_number(doc_type="SALES_BILL", year=2027) == "SB/2027/0001"
    db_session.commit()

    seq = db_session.query(DocumentSequence).filter_by(doc_type="SALES_BILL", year=2026).one()
    assert seq.next_number == 3


def test_commit_document_sales_bill(db_session, make_product):
    p = make_product(quantity=10, selling_price_cents=1000)

    result = commit_document({
        "doc_type": "sales_bill",
        "partner_name": "Metro Retail Traders",
        "discount_bps": 0,
        "tax_rate_bps": 1800,
        "items": [{"product_id": p.id, "quantity": 3}],
    }, actor="Asha Rao (Owner)")

    doc = result.document
    assert doc.doc_type == "SALES_BILL"
    assert doc.doc_no == f"SB/{utcnow().year}/0001"
    assert doc.subtotal_cents == 3000
    assert doc.tax_cents == 540
    assert doc.total_cents == 3540
    assert doc.lines[0].price_cents == 1000
    assert doc.lines[0].name == p.name

    assert db_session.query(Product).filter_by(id=p.id).one().quantity == 7
    assert db_session.query(DocumentRecord).count() == 1


def test_purchase_bill_defaults_to_purchase_price(db_session, make_product):
    p = make_product(purchase_price_cents=700, selling_price_cents=1000)

    doc = build_document({
        "doc_type": "PURCHASE_BILL",
        "partner_name": "Apex Components Ltd",
        "items": [{"product_id": p.id, "quantity": 1}],
    })
    assert doc.lines[0].price_cents == 700


def test_explicit_price_overrides_default(db_session, make_product):
    p = make_product()

    doc = build_document({
        "doc_type": "SALES_BILL",
        "partner_name": "Walk-in",
        "items": [{"product_id": p.id, "quantity": 1, "price_cents": 1234}],
    })
    assert doc.lines[0].price_cents == 1234


def test_default_tax_rate_comes_from_config(app, db_session, make_product):
    p = make_product()

    doc = build_document({
        "doc_type": "SO",
        "partner_name": "Metro Retail Traders",
        "items": [{"product_id": p.id, "quantity": 1}],
    })
    assert doc.tax_rate_bps == app.config["DEFAULT_TAX_RATE_BPS"]


def test_adjustment_bill_increases_stock(db_session, make_product):
    p = make_product(quantity=1)

    result = commit_document({
        "doc_type": "ADJUSTMENT_BILL",
        "partner_name": "Stores",
        "items": [{"product_id": p.id, "quantity": 4}],
    })

    assert result.document.partner_name == "Stores"
    assert db_session.query(Product).filter_by(id=p.id).one().quantity == 5


@pytest.mark.parametrize("partner_name", [None, "", "   "])
def test_adjustment_bill_requires_partner(db_session, make_product, partner_name):
    p = make_product(quantity=1)

    with pytest.raises(ValidationError, match="partner_name"):
        commit_document({
            "doc_type": "ADJUSTMENT_BILL",
            "partner_name": partner_name,
            "items": [{"product_id": p.id, "quantity": 4}],
        })

    assert db_session.query(DocumentRecord).count() == 0
    assert db_session.query(DocumentSequence).count() == 0
    assert db_session.query(Product).filter_by(id=p.id).one().quantity == 1


@pytest.mark.parametrize("draft,message", [
    ({"doc_type": "INVOICE", "partner_name": "X", "items": [{"product_id": "x", "quantity": 1}]}, "doc_type"),
    ({"doc_type": "SALES_BILL", "items": [{"product_id": "x", "quantity": 1}]}, "partner_name"),
    ({"doc_type": "SALES_BILL", "partner_name": "X", "items": []}, "At least one item"),
    ({"doc_type": "SALES_BILL", "partner_name": "X", "payment_status": "LATER",
      "items": [{"product_id": "x", "quantity": 1}]}, "payment_status"),
    ({"doc_type": "SALES_BILL", "partner_name": "X", "discount_bps": 10001,
      "items": [{"product_id": "x", "quantity": 1}]}, "discount_bps"),
    ({"doc_type": "SALES_BILL", "partner_name": "X", "items": [{"quantity": 1}]}, "product_id"),
])
def test_build_document_rejects_invalid_drafts(db_session, draft, message):
    with pytest.raises(ValidationError, match=message):
        build_document(draft)


def test_unknown_product_is_rejected(db_session):
    with pytest.raises(ValidationError, match="not found"):
        build_document({
            "doc_type": "GRN",
            "partner_name": "Apex Components Ltd",
            "items": [{"product_id": "missing", "quantity": 1}],
        })


@pytest.mark.parametrize("quantity", [0, -1, 1.5, "3", 1_000_001])
def test_line_quantity_must_be_positive_integer(db_session, make_product, quantity):
    p = make_product()
    with pytest.raises(ValidationError):
        build_document({
            "doc_type": "GRN",
            "partner_name": "Apex Components Ltd",
            "items": [{"product_id": p.id, "quantity": quantity}],
        })


def test_sales_stock_check_sums_lines_for_same_product(db_session, make_product):
    p = make_product(quantity=5)

    with pytest.raises(ValidationError, match="Insufficient stock"):
        commit_document({
            "doc_type": "SALES_BILL",
            "partner_name": "Metro Retail Traders",
            "items": [{"product_id": p.id, "quantity": 3}, {"product_id": p.id, "quantity": 3}],
        })

    assert db_session.query(Product).filter_by(id=p.id).one().quantity == 5
    assert db_session.query(DocumentRecord).count() == 0
    assert db_session.query(DocumentSequence).count() == 0


def test_sales_order_is_not_stock_checked(db_session, make_product):
    p = make_product(quantity=1)

    result = commit_document({
        "doc_type": "SO",
        "partner_name": "Metro Retail Traders",
        "items": [{"product_id": p.id, "quantity": 50}],
    })
    assert result.movements == []
    assert db_session.query(Product).filter_by(id=p.id).one().quantity == 1
