# Overview: Service-layer operations for document numbering; encapsulates business logic and database work.

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import ConcurrentUpdateError
from ..extensions import db
from ..models import DocumentSequence
from ..time_utils import utcnow


DOC_INVOICE = "INVOICE"
DOC_PURCHASE_ORDER = "PURCHASE_ORDER"

PREFIXES = {
    DOC_INVOICE: "INV",
    DOC_PURCHASE_ORDER: "PO",
}


class DocumentSequenceError(Exception):
    """Raised when document sequence operations fail."""
    pass


def next_document_number(
    *,
    document_type: str,
    prefix: str | None = None,
    year: int | None = None,
    pad: int = 6,
) -> str:
    """
    Allocate the next document number for a type within the caller's transaction.

    Format: <PREFIX>-<YEAR>-<NNNNNN>, e.g. INV-2026-000001. Numbering restarts
    every calendar year. The increment is a single UPDATE so concurrent
    transactions serialize on the sequence row.
    """
    if not document_type:
        raise DocumentSequenceError("document_type is required")
    prefix = prefix or PREFIXES.get(document_type)
    if not prefix:
        raise DocumentSequenceError(f"No prefix configured for {document_type}")
    year = year or utcnow().year

    stmt = (
        update(DocumentSequence)
        .where(
            DocumentSequence.document_type == document_type,
            DocumentSequence.year == year,
        )
        .values(next_number=DocumentSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if result.rowcount:
        current = (
            db.session.query(DocumentSequence.next_number)
            .filter_by(document_type=document_type, year=year)
            .scalar()
        )
        next_num = current - 1
    else:
        seq = DocumentSequence(document_type=document_type, year=year, next_number=2)
        db.session.add(seq)
        try:
            db.session.flush()
        except IntegrityError as exc:
            # Another transaction created the row first; the caller's unit of
            # work rolls back and the request can be resubmitted.
            raise ConcurrentUpdateError(
                "Document number allocation conflicted, please retry"
            ) from exc
        next_num = 1

    return f"{prefix}-{year}-{next_num:0{pad}d}"
