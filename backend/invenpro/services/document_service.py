# Overview: Service-layer operations for the document ledger; numbering, append and read.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DocumentRecord, DocumentSequence
from ..validation import NotFoundError
from invenpro.time_utils import utcnow


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


class DocumentNotFoundError(NotFoundError):
    pass


def doc_type_initials(doc_type: str) -> str:
    """SALES_BILL -> SB, DELIVERY_CHALLAN -> DC, PO -> P."""
    return "".join(word[0] for word in doc_type.split("_") if word)


def _current_number(doc_type: str, year: int) -> int:
    return (
        db.session.query(DocumentSequence.next_number)
        .filter_by(doc_type=doc_type, year=year)
        .scalar()
    )


def next_document_number(*, doc_type: str, year: int | None = None, pad: int = 4) -> str:
    """
    Allocate the next "<initials>/<year>/<NNNN>" number for a type.

    Counters are per type and per calendar year. Flushes, does not commit:
    the number is only consumed if the caller's transaction commits.
    """
    if not doc_type:
        raise DocumentSequenceError("doc_type is required")
    if year is None:
        year = utcnow().year

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.doc_type == doc_type,
            DocumentSequence.year == year,
        )
        .values(next_number=DocumentSequence.next_number + 1, updated_at=utcnow())
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        db.session.flush()
        next_num = _current_number(doc_type, year) - 1
    else:
        # First number of the year for this type; single writer, so no race on insert
        db.session.add(DocumentSequence(doc_type=doc_type, year=year, next_number=2))
        try:
            db.session.flush()
        except IntegrityError as e:
            raise DocumentSequenceError(f"could not allocate number for {doc_type}/{year}") from e
        next_num = 1

    return f"{doc_type_initials(doc_type)}/{year}/{next_num:0{pad}d}"


def rebuild_document_sequences() -> dict[tuple[str, int], int]:
    """
    Reset every counter to one past the highest number already issued.

    Used after the document ledger is replaced wholesale. Numbers that do not
    read as "<initials>/<year>/<NNNN>" are ignored. Flushes, does not commit.
    """
    highest: dict[tuple[str, int], int] = {}
    for doc_type, doc_no in db.session.query(DocumentRecord.doc_type, DocumentRecord.doc_no):
        parts = (doc_no or "").rsplit("/", 2)
        if len(parts) != 3:
            continue
        try:
            year, number = int(parts[1]), int(parts[2])
        except ValueError:
            continue
        key = (doc_type, year)
        highest[key] = max(highest.get(key, 0), number)

    db.session.query(DocumentSequence).delete(synchronize_session=False)
    now = utcnow()
    for (doc_type, year), number in highest.items():
        db.session.add(DocumentSequence(doc_type=doc_type, year=year, next_number=number + 1, updated_at=now))
    db.session.flush()
    return highest


def record_document(document: DocumentRecord) -> DocumentRecord:
    """
    Append a fully formed document (flush only).

    The record is expected to carry its id, number, totals and lines already.
    """
    if document.timestamp is None:
        document.timestamp = utcnow()
    db.session.add(document)
    db.session.flush()
    return document


def get_document(document_id: str) -> DocumentRecord:
    doc = db.session.query(DocumentRecord).filter_by(id=document_id).first()
    if doc is None:
        raise DocumentNotFoundError(f"Document {document_id} not found")
    return doc


def list_documents(
    *,
    doc_type: str | None = None,
    search: str | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> dict:
    """
    Newest-first document history.

    search matches the document number or the partner name (case-insensitive).
    """
    q = db.session.query(DocumentRecord)
    if doc_type:
        q = q.filter(DocumentRecord.doc_type == doc_type)
    if search:
        needle = f"%{search.strip().lower()}%"
        q = q.filter(
            db.or_(
                db.func.lower(DocumentRecord.doc_no).like(needle),
                db.func.lower(DocumentRecord.partner_name).like(needle),
            )
        )

    total = q.count()
    q = q.order_by(DocumentRecord.seq.desc())
    if offset:
        q = q.offset(max(int(offset), 0))
    if limit is not None:
        q = q.limit(max(int(limit), 0))

    items = q.all()
    return {"items": items, "count": len(items), "total": total}
