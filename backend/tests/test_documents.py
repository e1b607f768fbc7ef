"""
Document numbering tests.
"""

import pytest

from marketpos.services.document_service import (
    DOC_INVOICE,
    DOC_PURCHASE_ORDER,
    DocumentSequenceError,
    next_document_number,
)


class TestNextDocumentNumber:

    def test_sequences_are_per_type(self, db_session):
        assert next_document_number(document_type=DOC_INVOICE, year=2026) == "INV-2026-000001"
        assert next_document_number(document_type=DOC_INVOICE, year=2026) == "INV-2026-000002"
        assert next_document_number(document_type=DOC_PURCHASE_ORDER, year=2026) == "PO-2026-000001"
        db_session.commit()

    def test_numbering_restarts_each_year(self, db_session):
        next_document_number(document_type=DOC_INVOICE, year=2026)
        assert next_document_number(document_type=DOC_INVOICE, year=2027) == "INV-2027-000001"
        db_session.commit()

    def test_rolled_back_numbers_are_reused(self, db_session):
        next_document_number(document_type=DOC_INVOICE, year=2026)
        db_session.rollback()
        assert next_document_number(document_type=DOC_INVOICE, year=2026) == "INV-2026-000001"
        db_session.commit()

    def test_unknown_type(self, db_session):
        with pytest.raises(DocumentSequenceError):
            next_document_number(document_type="RECEIPT")
