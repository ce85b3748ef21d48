import io

import pytest
from openpyxl import Workbook

from invenpro.models import AuditLogEntry, Product
from invenpro.services import import_service
from invenpro.services.import_service import CatalogImportError


def test_template_has_header_and_sample_row():
    lines = import_service.template_csv().split("\n")
    assert lines == [
        "Name,SKU,Category,SellingPrice,Quantity,HSNCode",
        "Example Product,SKU-101,Hardware,499.00,50,94054090",
    ]


def test_parse_csv_rows_handles_quoting():
    text = 'Name,SKU,Category,Price\n"Cable, 2 core",CB-2, Electrical ,10\n"6"" Pipe",P-6\n'
    rows, dropped = import_service.parse_csv_rows(text)
    assert rows == [
        (1, ["Cable, 2 core", "CB-2", "Electrical", "10"]),
        (2, ['6" Pipe', "P-6"]),
    ]
    assert dropped == 0


@pytest.mark.parametrize("raw,cents", [
    ("499.00", 49900),
    ("12.346", 1235),
    ("7", 700),
    ("abc", 0),
    ("", 0),
    ("15kg", 1500),
])
def test_parse_price_cents(raw, cents):
    assert import_service.parse_price_cents(raw) == cents


def test_parse_quantity_and_purchase_price():
    assert import_service.parse_quantity("50.7") == 50
    assert import_service.parse_quantity("n/a") == 0
    assert import_service.purchase_price_from_selling(49900) == 34930
    assert import_service.purchase_price_from_selling(5) == 4


def test_parse_csv_rows_skips_header_blanks_and_short_rows():
    rows, dropped = import_service.parse_csv_rows("Name,SKU\r\nA,S-1\n\nlonely\nB,S-2,Tools\n")
    assert rows == [(1, ["A", "S-1"]), (4, ["B", "S-2", "Tools"])]
    assert dropped == 1


def test_parse_csv_rows_ignores_whitespace_only_lines():
    rows, dropped = import_service.parse_csv_rows("Name,SKU\n   \nA,S-1\n")
    assert rows == [(2, ["A", "S-1"])]
    assert dropped == 0


def test_product_patch_defaults():
    patch = import_service.product_patch_from_row(["", ""], 3, warehouse_id="WH-001")
    assert patch["name"] == "Unknown Item"
    assert patch["sku"].startswith("SKU-") and patch["sku"].endswith("-3")
    assert patch["category"] == "General"
    assert patch["hsn_code"] == "94054090"
    assert patch["brand"] == "Imported"
    assert patch["uom"] == "NOS"
    assert patch["min_stock"] == 5
    assert patch["max_stock"] == 1000
    assert patch["quantity"] == 0
    assert patch["description"] == "Bulk imported item."


def test_import_csv_creates_products_in_file_order(db_session, make_product):
    make_product(sku="OLD-1")
    text = (
        "Name,SKU,Category,SellingPrice,Quantity,HSNCode\n"
        "LED Panel,LED-18,Lighting,499.00,50,94054090\n"
        "Copper Cable,CBL-2,Electrical,120.50,200\n"
    )

    result = import_service.import_products_csv(text, actor="Asha Rao (Owner)", warehouse_id="WH-002")

    assert result.imported == 2
    assert result.skipped == 0
    listed = [p.sku for p in db_session.query(Product).order_by(Product.seq.desc()).all()]
    assert listed == ["LED-18", "CBL-2", "OLD-1"]

    cable = db_session.query(Product).filter_by(sku="CBL-2").one()
    assert cable.selling_price_cents == 12050
    assert cable.purchase_price_cents == 8435
    assert cable.quantity == 200
    assert cable.warehouse_id == "WH-002"

    entry = db_session.query(AuditLogEntry).one()
    assert entry.action == "BULK_IMPORT"
    assert entry.details == "Imported 2 items via CSV file."


def test_import_csv_skips_duplicate_skus(db_session, make_product):
    make_product(sku="LED-18")
    text = "header\nLED Panel,LED-18\nSpot,SPOT-1\nSpot again,SPOT-1\n"

    result = import_service.import_products_csv(text)

    assert result.imported == 1
    assert result.skipped == 2
    assert [p.sku for p in result.products] == ["SPOT-1"]


def test_import_with_nothing_usable_writes_no_audit(db_session):
    result = import_service.import_products_csv("Name,SKU\nonly-one-column\n")

    assert result.imported == 0
    assert result.skipped == 1
    assert db_session.query(AuditLogEntry).count() == 0


def _xlsx_bytes(rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def test_import_xlsx(db_session):
    data = _xlsx_bytes([
        ["Name", "SKU", "Category", "SellingPrice", "Quantity", "HSNCode"],
        ["Drill Bit", "DB-6", "Tools", 35.5, 40, 82075000],
        ["Orphan"],
    ])

    result = import_service.read_upload("catalog.xlsx", io.BytesIO(data))

    assert result.imported == 1
    assert result.skipped == 1
    drill = result.products[0]
    assert drill.selling_price_cents == 3550
    assert drill.quantity == 40
    assert drill.hsn_code == "82075000"


def test_import_xlsx_closes_workbook(db_session, monkeypatch):
    import openpyxl

    opened = []
    real_load = openpyxl.load_workbook

    def tracking_load(*args, **kwargs):
        wb = real_load(*args, **kwargs)
        real_close = wb.close
        state = {"closed": False}

        def close():
            state["closed"] = True
            real_close()

        wb.close = close
        opened.append(state)
        return wb

    monkeypatch.setattr(openpyxl, "load_workbook", tracking_load)
    data = _xlsx_bytes([["Name", "SKU"], ["Hinge", "HNG-1"]])

    result = import_service.read_upload("catalog.xlsx", io.BytesIO(data))

    assert result.imported == 1
    assert opened == [{"closed": True}]


def test_read_upload_csv_strips_bom(db_session):
    raw = "\ufeffName,SKU\nBolt,BLT-1\n".encode("utf-8")
    result = import_service.read_upload("items.CSV", io.BytesIO(raw))
    assert [p.sku for p in result.products] == ["BLT-1"]


def test_read_upload_rejects_unknown_format(db_session):
    with pytest.raises(CatalogImportError, match="Unsupported"):
        import_service.read_upload("items.pdf", io.BytesIO(b"%PDF"))


def test_read_upload_rejects_broken_spreadsheet(db_session):
    with pytest.raises(CatalogImportError):
        import_service.read_upload("items.xlsx", io.BytesIO(b"not a zip"))
