"""Group canonical document records by statement type and period.

Each DocumentRecord is classified by its declared ``document_type`` against a
fixed synonym table, then folded into a typed, period-indexed collection.
Grouping is a pure function of its input: it never raises, missing figures
default to 0, and missing periods to "Unknown Period" / "Unknown Date".
"""

import re
from typing import Callable, Iterable, Optional

import structlog

from .models.analysis import (
    BalanceSheetEntry,
    BankStatementEntry,
    CashFlowEntry,
    CreditReportEntry,
    GroupedFinancialData,
    OtherDocumentEntry,
    ProfitLossEntry,
    StatementKind,
)
from .models.extraction import DocumentRecord
from .periods import UNKNOWN_DATE, UNKNOWN_PERIOD, sort_by_period

logger = structlog.get_logger()


# Normalised document type -> statement bucket
STATEMENT_SYNONYMS: dict[str, StatementKind] = {
    # Profit and loss
    "profit and loss statement": StatementKind.PROFIT_LOSS,
    "profit & loss statement": StatementKind.PROFIT_LOSS,
    "profit and loss": StatementKind.PROFIT_LOSS,
    "profit & loss": StatementKind.PROFIT_LOSS,
    "income statement": StatementKind.PROFIT_LOSS,
    "p&l statement": StatementKind.PROFIT_LOSS,
    "p&l": StatementKind.PROFIT_LOSS,
    "statement of income": StatementKind.PROFIT_LOSS,
    "statement of operations": StatementKind.PROFIT_LOSS,
    # Balance sheet
    "balance sheet": StatementKind.BALANCE_SHEET,
    "balance sheet statement": StatementKind.BALANCE_SHEET,
    "statement of financial position": StatementKind.BALANCE_SHEET,
    # Bank statements
    "bank statement": StatementKind.BANK_STATEMENT,
    "bank statements": StatementKind.BANK_STATEMENT,
    "bank account statement": StatementKind.BANK_STATEMENT,
    "account statement": StatementKind.BANK_STATEMENT,
    # Credit reports
    "credit report": StatementKind.CREDIT_REPORT,
    "credit history report": StatementKind.CREDIT_REPORT,
    "credit history": StatementKind.CREDIT_REPORT,
    "credit bureau report": StatementKind.CREDIT_REPORT,
    # Cash flow
    "cash flow statement": StatementKind.CASH_FLOW,
    "statement of cash flows": StatementKind.CASH_FLOW,
    "cash flow": StatementKind.CASH_FLOW,
}


def normalize_document_type(document_type: Optional[str]) -> str:
    """Lower-case, trim and collapse whitespace."""
    return re.sub(r"\s+", " ", (document_type or "").strip().lower())


def classify_document(document_type: Optional[str]) -> StatementKind:
    """Map a declared document type onto its statement bucket."""
    return STATEMENT_SYNONYMS.get(
        normalize_document_type(document_type), StatementKind.OTHER
    )


def _amount(value: Optional[float]) -> float:
    return value if value is not None else 0.0


class StatementGrouper:
    """Fold DocumentRecords into GroupedFinancialData."""

    def group(self, documents: Iterable[DocumentRecord]) -> GroupedFinancialData:
        """
        Classify and group documents.

        Profit/loss, balance sheet and cash flow collections are sorted by
        period; bank statements and credit reports keep input order.
        """
        profit_loss: list[ProfitLossEntry] = []
        balance_sheets: list[BalanceSheetEntry] = []
        bank_statements: list[BankStatementEntry] = []
        credit_reports: list[CreditReportEntry] = []
        cash_flows: list[CashFlowEntry] = []
        others: list[OtherDocumentEntry] = []

        handlers: dict[StatementKind, Callable[[DocumentRecord], None]] = {
            StatementKind.PROFIT_LOSS: lambda d: profit_loss.append(self._profit_loss(d)),
            StatementKind.BALANCE_SHEET: lambda d: balance_sheets.append(self._balance_sheet(d)),
            StatementKind.BANK_STATEMENT: lambda d: bank_statements.extend(self._bank_statements(d)),
            StatementKind.CREDIT_REPORT: lambda d: credit_reports.append(self._credit_report(d)),
            StatementKind.CASH_FLOW: lambda d: cash_flows.append(self._cash_flow(d)),
            StatementKind.OTHER: lambda d: others.append(self._other(d)),
        }

        for document in documents:
            handlers[classify_document(document.document_type)](document)

        grouped = GroupedFinancialData(
            profit_loss_statements=sort_by_period(profit_loss, lambda e: e.period),
            balance_sheets=sort_by_period(balance_sheets, lambda e: e.period),
            bank_statements=bank_statements,
            credit_reports=credit_reports,
            cash_flow_statements=sort_by_period(cash_flows, lambda e: e.period),
            other_documents=others,
        )
        logger.debug("documents_grouped", **grouped.statement_counts())
        return grouped

    # -------------------------------------------------------------------------
    # Per-bucket entries
    # -------------------------------------------------------------------------

    @staticmethod
    def _provenance(document: DocumentRecord) -> dict:
        return {
            "document_type": document.document_type,
            "confidence": document.confidence,
            "source_file": document.source_file,
        }

    def _profit_loss(self, document: DocumentRecord) -> ProfitLossEntry:
        pl = document.financial.profit_loss
        return ProfitLossEntry(
            **self._provenance(document),
            period=pl.period or UNKNOWN_PERIOD,
            revenue=_amount(pl.revenue),
            expenses=_amount(pl.expenses),
            net_income=_amount(pl.net_income),
        )

    def _balance_sheet(self, document: DocumentRecord) -> BalanceSheetEntry:
        bs = document.financial.balance_sheet
        return BalanceSheetEntry(
            **self._provenance(document),
            period=bs.as_of_date or UNKNOWN_DATE,
            total_assets=_amount(bs.total_assets),
            total_liabilities=_amount(bs.total_liabilities),
            equity=_amount(bs.equity),
        )

    def _bank_statements(self, document: DocumentRecord) -> list[BankStatementEntry]:
        return [
            BankStatementEntry(
                **self._provenance(document),
                period=statement.period or UNKNOWN_PERIOD,
                account_number=statement.account_number or "Unknown Account",
                account_type=statement.account_type or "Unknown",
                balance=_amount(statement.balance),
                transactions=statement.transactions,
            )
            for statement in document.financial.bank_statements
        ]

    def _credit_report(self, document: DocumentRecord) -> CreditReportEntry:
        credit = document.financial.credit_info
        return CreditReportEntry(
            **self._provenance(document),
            period=credit.report_date or UNKNOWN_DATE,
            credit_score=_amount(credit.credit_score),
            credit_history=credit.credit_history,
        )

    def _cash_flow(self, document: DocumentRecord) -> CashFlowEntry:
        cf = document.financial.cash_flow
        return CashFlowEntry(
            **self._provenance(document),
            period=cf.period or UNKNOWN_PERIOD,
            operating_cash_flow=_amount(cf.operating_cash_flow),
            investing_cash_flow=_amount(cf.investing_cash_flow),
            financing_cash_flow=_amount(cf.financing_cash_flow),
        )

    def _other(self, document: DocumentRecord) -> OtherDocumentEntry:
        financial = document.financial
        period = (
            financial.profit_loss.period
            or financial.balance_sheet.as_of_date
            or financial.cash_flow.period
            or UNKNOWN_PERIOD
        )
        return OtherDocumentEntry(
            **self._provenance(document),
            period=period,
            data=document,
        )


def group_documents(documents: Iterable[DocumentRecord]) -> GroupedFinancialData:
    """Convenience wrapper around ``StatementGrouper().group``."""
    return StatementGrouper().group(documents)
