"""Cross-document summaries: what was found and the headline totals."""

from typing import Iterable, Sequence

from .models.analysis import DocumentSummary, FinancialMetrics
from .models.extraction import UNKNOWN_DOCUMENT_TYPE, DocumentRecord


def _unique(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.append(value)
    return seen


def summarize_documents(documents: Sequence[DocumentRecord]) -> DocumentSummary:
    """List the document types, companies, people and periods found."""
    return DocumentSummary(
        total_documents=len(documents),
        document_types=_unique(
            d.document_type for d in documents if d.document_type != UNKNOWN_DOCUMENT_TYPE
        ),
        companies_analyzed=_unique(d.company_info.name for d in documents),
        individuals_identified=_unique(
            person.name for d in documents for person in d.individuals
        ),
        time_periods_analyzed=_unique(
            period
            for d in documents
            for period in (
                d.financial.profit_loss.period,
                d.financial.balance_sheet.as_of_date,
            )
        ),
    )


def calculate_financial_metrics(documents: Sequence[DocumentRecord]) -> FinancialMetrics:
    """Sum headline figures across documents; ratios derive from the sums."""
    return FinancialMetrics(
        total_revenue=sum(d.financial.profit_loss.revenue or 0.0 for d in documents),
        total_assets=sum(d.financial.balance_sheet.total_assets or 0.0 for d in documents),
        total_liabilities=sum(
            d.financial.balance_sheet.total_liabilities or 0.0 for d in documents
        ),
        net_income=sum(d.financial.profit_loss.net_income or 0.0 for d in documents),
        operating_cash_flow=sum(
            d.financial.cash_flow.operating_cash_flow or 0.0 for d in documents
        ),
    )
