import pytest

from invenpro.models import (
    AuditLogEntry,
    DocumentRecord,
    DocumentSequence,
    Partner,
    Product,
    SessionToken,
    StockMovement,
)
from invenpro.services import snapshot_service
from invenpro.services.billing_service import commit_document
from invenpro.services.partner_service import add_partner
from invenpro.services.session_service import create_session
from invenpro.validation import ValidationError


def test_snapshot_keys_use_namespace(app):
    with app.app_context():
        assert snapshot_service.snapshot_keys() == {
            "products": "invenpro_products",
            "movements": "invenpro_movements",
            "docs": "invenpro_docs",
            "entities": "invenpro_entities",
            "audit": "invenpro_audit",
            "auth": "invenpro_auth",
        }
    assert snapshot_service.snapshot_keys("shop")["docs"] == "shop_docs"


def test_export_snapshot_lists_newest_first(db_session, make_product):
    make_product(sku="A-1")
    make_product(sku="B-1")

    blobs = snapshot_service.export_snapshot()

    assert [p["sku"] for p in blobs["invenpro_products"]] == ["B-1", "A-1"]
    assert blobs["invenpro_movements"] == []
    assert blobs["invenpro_auth"] is False


def test_export_reports_live_session(db_session, owner):
    create_session(owner.id)
    assert snapshot_service.export_snapshot()["invenpro_auth"] is True


def test_round_trip_restores_every_store(db_session, make_product):
    p = make_product(sku="LED-1", quantity=10)
    add_partner({"name": "Metro Retail Traders", "type": "CUSTOMER"})
    commit_document({
        "doc_type": "SALES_BILL",
        "partner_name": "Metro Retail Traders",
        "items": [{"product_id": p.id, "quantity": 2}],
    })
    blobs = snapshot_service.export_snapshot()

    for model in (DocumentRecord, StockMovement, AuditLogEntry, Partner, Product):
        if model is DocumentRecord:
            for doc in db_session.query(DocumentRecord).all():
                db_session.delete(doc)
        else:
            db_session.query(model).delete()
    db_session.commit()

    restored = snapshot_service.restore_snapshot(blobs)

    assert restored == {"products": 1, "movements": 1, "docs": 1, "entities": 1, "audit": 2}
    assert snapshot_service.export_snapshot() == blobs


def test_numbering_continues_after_restore_into_empty_database(db_session, make_product):
    p = make_product(sku="LED-1", quantity=10)
    draft = {
        "doc_type": "SALES_BILL",
        "partner_name": "Metro Retail Traders",
        "items": [{"product_id": p.id, "quantity": 2}],
    }
    first = commit_document(dict(draft)).document.doc_no
    blobs = snapshot_service.export_snapshot()

    for doc in db_session.query(DocumentRecord).all():
        db_session.delete(doc)
    for model in (DocumentSequence, StockMovement, AuditLogEntry, Product):
        db_session.query(model).delete()
    db_session.commit()

    snapshot_service.restore_snapshot(blobs)
    second = commit_document(dict(draft)).document.doc_no

    year = first.split("/")[1]
    assert first == f"SB/{year}/0001"
    assert second == f"SB/{year}/0002"


def test_restore_docs_resets_counters_from_highest_number(db_session):
    db_session.add(DocumentSequence(doc_type="SALES_BILL", year=2025, next_number=40))
    db_session.add(DocumentSequence(doc_type="PO", year=2025, next_number=9))
    db_session.commit()

    snapshot_service.restore_snapshot({
        "invenpro_docs": [
            {"id": "d3", "doc_type": "SALES_BILL", "doc_no": "SB/2025/0003", "partner_name": "A"},
            {"id": "d2", "doc_type": "SALES_BILL", "doc_no": "SB/2025/0007", "partner_name": "A"},
            {"id": "d1", "doc_type": "SALES_BILL", "doc_no": "SB-1718000000", "partner_name": "A"},
            {"id": "d0", "doc_type": "GRN", "doc_no": "G/2024/0012", "partner_name": "B"},
        ],
    })

    counters = {
        (s.doc_type, s.year): s.next_number
        for s in db_session.query(DocumentSequence).all()
    }
    assert counters == {("SALES_BILL", 2025): 8, ("GRN", 2024): 13}


def test_restore_without_docs_keeps_counters(db_session):
    db_session.add(DocumentSequence(doc_type="SALES_BILL", year=2025, next_number=40))
    db_session.commit()

    snapshot_service.restore_snapshot({"invenpro_entities": []})

    assert db_session.query(DocumentSequence).one().next_number == 40


def test_restore_keeps_list_order(db_session):
    snapshot_service.restore_snapshot({
        "invenpro_entities": [
            {"id": "e2", "name": "Newest", "type": "CUSTOMER"},
            {"id": "e1", "name": "Oldest", "type": "SUPPLIER"},
        ],
    })
    names = [e["name"] for e in snapshot_service.export_snapshot()["invenpro_entities"]]
    assert names == ["Newest", "Oldest"]


def test_restore_only_replaces_present_stores(db_session, make_product):
    make_product(sku="KEEP-1")
    add_partner({"name": "Gone", "type": "SUPPLIER"})

    snapshot_service.restore_snapshot({"invenpro_entities": []})

    assert db_session.query(Partner).count() == 0
    assert db_session.query(Product).count() == 1


def test_restore_auth_false_revokes_sessions(db_session, owner):
    create_session(owner.id)

    snapshot_service.restore_snapshot({"invenpro_auth": False})

    assert db_session.query(SessionToken).filter_by(is_revoked=False).count() == 0


@pytest.mark.parametrize("blobs", [
    [],
    {"invenpro_products": {"id": "x"}},
    {"invenpro_products": ["not an object"]},
    {"invenpro_products": [{"id": "p1", "name": "No SKU"}]},
    {"invenpro_movements": [{"id": "m1", "product_id": "p1", "type": "SALE", "quantity": "3"}]},
    {"invenpro_audit": [{"id": "a1", "action": "X", "timestamp": "yesterday"}]},
])
def test_restore_rejects_bad_shapes(db_session, make_product, blobs):
    make_product(sku="SAFE-1")

    with pytest.raises(ValidationError):
        snapshot_service.restore_snapshot(blobs)

    assert db_session.query(Product).count() == 1
