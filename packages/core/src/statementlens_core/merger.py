"""Merge per-page extraction records into one record per document.

A multi-page document is sent to the model one page at a time, so facts are
spread across several ExtractionRecords. The merger folds them into a single
DocumentRecord:

- scalar fields: the first non-null value wins, in page order
- list fields: concatenated across pages, then de-duplicated on a composite
  key, keeping the first occurrence
- document type: the first value that is not "Unknown"
- confidence: mean of the positive per-page confidences
"""

from datetime import datetime
from typing import Any, Callable, Hashable, Iterable, Optional, Sequence, TypeVar

import structlog
from pydantic import BaseModel

from .models.extraction import (
    UNKNOWN_DOCUMENT_TYPE,
    BalanceSheet,
    BankStatement,
    CashFlow,
    CompanyInfo,
    CreditHistoryEntry,
    DocumentRecord,
    ExtractionRecord,
    Individual,
    ProfitLoss,
    utc_now,
)

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


# =============================================================================
# DEDUPLICATION
# =============================================================================


def bank_statement_key(statement: BankStatement) -> tuple[Optional[str], ...]:
    return (statement.account_number, statement.period)


def credit_history_key(entry: CreditHistoryEntry) -> tuple[Any, ...]:
    return (entry.creditor, entry.account_type, entry.balance)


def individual_key(individual: Individual) -> tuple[Optional[str], ...]:
    return (individual.name, individual.position)


def dedupe(items: Iterable[T], key: Callable[[T], Hashable]) -> list[T]:
    """Keep the first item for each key, preserving order."""
    seen: set[Hashable] = set()
    kept = []
    for item in items:
        item_key = key(item)
        if item_key in seen:
            continue
        seen.add(item_key)
        kept.append(item)
    return kept


# =============================================================================
# MERGER
# =============================================================================


class RecordMerger:
    """
    Combine the per-page records of one document into a DocumentRecord.

    Merging never raises: an empty input yields an "Unknown" record with zero
    confidence, and conflicting later values are dropped silently.
    """

    def merge(
        self,
        records: Sequence[ExtractionRecord],
        source_file: str,
        *,
        processed_at: Optional[datetime] = None,
    ) -> DocumentRecord:
        """
        Merge page records in order.

        Args:
            records: Per-page extraction records, in page order.
            source_file: Original filename of the document.
            processed_at: Timestamp for the merged record. Defaults to now.

        Returns:
            The canonical DocumentRecord for the document.
        """
        records = list(records)
        financials = [r.financial for r in records]

        merged = DocumentRecord(
            document_type=self._document_type(records),
            company_info=self._first_values(CompanyInfo, [r.company_info for r in records]),
            individuals=dedupe(
                (person for r in records for person in r.individuals),
                individual_key,
            ),
            financial={
                "profit_loss": self._first_values(
                    ProfitLoss, [f.profit_loss for f in financials]
                ),
                "balance_sheet": self._first_values(
                    BalanceSheet, [f.balance_sheet for f in financials]
                ),
                "bank_statements": dedupe(
                    (s for f in financials for s in f.bank_statements),
                    bank_statement_key,
                ),
                "credit_info": {
                    "credit_score": self._first(
                        f.credit_info.credit_score for f in financials
                    ),
                    "report_date": self._first(
                        f.credit_info.report_date for f in financials
                    ),
                    "credit_history": dedupe(
                        (e for f in financials for e in f.credit_info.credit_history),
                        credit_history_key,
                    ),
                },
                "cash_flow": self._first_values(
                    CashFlow, [f.cash_flow for f in financials]
                ),
            },
            extraction_date=processed_at or utc_now(),
            confidence=self._confidence(records),
            source_file=source_file,
            page_count=len(records),
        )

        logger.info(
            "records_merged",
            source_file=source_file,
            pages=len(records),
            document_type=merged.document_type,
            bank_statements=len(merged.financial.bank_statements),
            individuals=len(merged.individuals),
        )
        return merged

    @staticmethod
    def _first(values: Iterable[Any]) -> Any:
        return next((v for v in values if v is not None), None)

    def _first_values(self, model: type[M], parts: Sequence[M]) -> M:
        """Field-wise first non-null value across same-typed sub-records."""
        return model(
            **{
                name: self._first(getattr(part, name) for part in parts)
                for name in model.model_fields
            }
        )

    @staticmethod
    def _document_type(records: Sequence[ExtractionRecord]) -> str:
        for record in records:
            if record.document_type and record.document_type != UNKNOWN_DOCUMENT_TYPE:
                return record.document_type
        return UNKNOWN_DOCUMENT_TYPE

    @staticmethod
    def _confidence(records: Sequence[ExtractionRecord]) -> float:
        positive = [r.confidence for r in records if r.confidence > 0]
        if not positive:
            return 0.0
        return sum(positive) / len(positive)


def merge_extractions(
    records: Sequence[ExtractionRecord],
    source_file: str,
    *,
    processed_at: Optional[datetime] = None,
) -> DocumentRecord:
    """Convenience wrapper around ``RecordMerger().merge``."""
    return RecordMerger().merge(records, source_file, processed_at=processed_at)
