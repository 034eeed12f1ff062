"""Derived analysis models: grouped statements, trends, summaries.

Everything here is recomputed on demand from the current set of
DocumentRecords and never persisted. Derived figures (gross profit, net worth,
totals) are ``computed_field`` properties so they appear in serialized output
without being stored on the entry.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from statementlens_core.models.extraction import (
    CreditHistoryEntry,
    DocumentRecord,
    Transaction,
)
from statementlens_core.periods import UNKNOWN_DATE, UNKNOWN_PERIOD


class AnalysisModel(BaseModel):
    """Base for derived models: camelCase aliases and frozen instances."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =============================================================================
# ENUMERATIONS
# =============================================================================


class StatementKind(str, Enum):
    """Buckets documents are grouped into."""

    PROFIT_LOSS = "profit_loss"
    BALANCE_SHEET = "balance_sheet"
    BANK_STATEMENT = "bank_statement"
    CREDIT_REPORT = "credit_report"
    CASH_FLOW = "cash_flow"
    OTHER = "other"


class TrendDirection(str, Enum):
    """Direction of change for one metric across periods."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class DataQuality(str, Enum):
    """Coverage rating for multi-period analysis."""

    EXCELLENT = "excellent"
    GOOD = "good"
    LIMITED = "limited"


# =============================================================================
# GROUPED STATEMENT ENTRIES
# =============================================================================


class StatementEntry(AnalysisModel):
    """Provenance shared by every grouped entry."""

    document_type: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    source_file: str = ""


class ProfitLossEntry(StatementEntry):
    """One profit and loss statement."""

    period: str = UNKNOWN_PERIOD
    revenue: float = 0.0
    expenses: float = 0.0
    net_income: float = 0.0

    @computed_field
    @property
    def gross_profit(self) -> float:
        """Revenue minus expenses."""
        return self.revenue - self.expenses


class BalanceSheetEntry(StatementEntry):
    """One balance sheet."""

    period: str = UNKNOWN_DATE
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    equity: float = 0.0

    @computed_field
    @property
    def net_worth(self) -> float:
        """Total assets minus total liabilities."""
        return self.total_assets - self.total_liabilities

    @computed_field
    @property
    def debt_to_asset_ratio(self) -> float:
        """Liabilities over assets; 0 when there are no assets."""
        if self.total_assets <= 0:
            return 0.0
        return self.total_liabilities / self.total_assets


class BankStatementEntry(StatementEntry):
    """One bank account statement (a document may contribute several)."""

    period: str = UNKNOWN_PERIOD
    account_number: str = "Unknown Account"
    account_type: str = "Unknown"
    balance: float = 0.0
    transactions: list[Transaction] = Field(default_factory=list)

    @computed_field
    @property
    def transaction_count(self) -> int:
        return len(self.transactions)

    @computed_field
    @property
    def total_credits(self) -> float:
        """Sum of credit transaction amounts."""
        return sum(
            abs(t.amount or 0.0)
            for t in self.transactions
            if t.transaction_type == "credit"
        )

    @computed_field
    @property
    def total_debits(self) -> float:
        """Sum of debit transaction amounts (returned as positive)."""
        return sum(
            abs(t.amount or 0.0)
            for t in self.transactions
            if t.transaction_type == "debit"
        )

    @computed_field
    @property
    def average_balance(self) -> float:
        """The reported balance.

        A single snapshot stands in for a true average; consumers of the
        liquidity trend rely on this definition.
        """
        return self.balance


class CreditReportEntry(StatementEntry):
    """One credit report."""

    period: str = UNKNOWN_DATE
    credit_score: float = 0.0
    credit_history: list[CreditHistoryEntry] = Field(default_factory=list)

    @computed_field
    @property
    def total_credit_accounts(self) -> int:
        return len(self.credit_history)

    @computed_field
    @property
    def total_credit_balance(self) -> float:
        return sum(entry.balance or 0.0 for entry in self.credit_history)


class CashFlowEntry(StatementEntry):
    """One cash flow statement."""

    period: str = UNKNOWN_PERIOD
    operating_cash_flow: float = 0.0
    investing_cash_flow: float = 0.0
    financing_cash_flow: float = 0.0

    @computed_field
    @property
    def net_cash_flow(self) -> float:
        """Operating plus investing plus financing cash flow."""
        return (
            self.operating_cash_flow
            + self.investing_cash_flow
            + self.financing_cash_flow
        )


class OtherDocumentEntry(StatementEntry):
    """A document whose type matched no statement bucket."""

    period: str = UNKNOWN_PERIOD
    data: DocumentRecord


class GroupedFinancialData(AnalysisModel):
    """Documents reclassified by statement type and ordered by period."""

    profit_loss_statements: list[ProfitLossEntry] = Field(default_factory=list)
    balance_sheets: list[BalanceSheetEntry] = Field(default_factory=list)
    bank_statements: list[BankStatementEntry] = Field(default_factory=list)
    credit_reports: list[CreditReportEntry] = Field(default_factory=list)
    cash_flow_statements: list[CashFlowEntry] = Field(default_factory=list)
    other_documents: list[OtherDocumentEntry] = Field(default_factory=list)

    def statement_counts(self) -> dict[str, int]:
        """Number of entries per statement bucket."""
        return {
            StatementKind.PROFIT_LOSS.value: len(self.profit_loss_statements),
            StatementKind.BALANCE_SHEET.value: len(self.balance_sheets),
            StatementKind.BANK_STATEMENT.value: len(self.bank_statements),
            StatementKind.CREDIT_REPORT.value: len(self.credit_reports),
            StatementKind.CASH_FLOW.value: len(self.cash_flow_statements),
            StatementKind.OTHER.value: len(self.other_documents),
        }


# =============================================================================
# TRENDS
# =============================================================================


class TrendResult(AnalysisModel):
    """Direction and magnitude of change for one metric."""

    metric: str
    trend: TrendDirection = TrendDirection.INSUFFICIENT_DATA
    change_percent: float = 0.0
    periods: list[str] = Field(default_factory=list)
    first_value: Optional[float] = None
    last_value: Optional[float] = None
    label: str = ""


class FinancialTrends(AnalysisModel):
    """Trend results for the four tracked metrics."""

    revenue: TrendResult
    profitability: TrendResult
    assets: TrendResult
    liquidity: TrendResult


class MultiPeriodAnalysis(AnalysisModel):
    """Period coverage and consistency across all grouped statements."""

    periods_analyzed: list[str] = Field(default_factory=list)
    statement_counts: dict[str, int] = Field(default_factory=dict)
    data_quality: DataQuality = DataQuality.LIMITED
    consistency_score: float = Field(default=0.4, ge=0.0, le=1.0)
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @computed_field
    @property
    def total_periods(self) -> int:
        return len(self.periods_analyzed)


# =============================================================================
# SUMMARIES
# =============================================================================


class DocumentSummary(AnalysisModel):
    """What was found across a set of documents."""

    total_documents: int = 0
    document_types: list[str] = Field(default_factory=list)
    companies_analyzed: list[str] = Field(default_factory=list)
    individuals_identified: list[str] = Field(default_factory=list)
    time_periods_analyzed: list[str] = Field(default_factory=list)


class FinancialMetrics(AnalysisModel):
    """Totals summed across documents and the ratios derived from them."""

    total_revenue: float = 0.0
    total_assets: float = 0.0
    total_liabilities: float = 0.0
    net_income: float = 0.0
    operating_cash_flow: float = 0.0

    @computed_field
    @property
    def debt_to_asset_ratio(self) -> float:
        if self.total_assets <= 0:
            return 0.0
        return self.total_liabilities / self.total_assets

    @computed_field
    @property
    def return_on_assets(self) -> float:
        if self.total_assets <= 0:
            return 0.0
        return self.net_income / self.total_assets

    @computed_field
    @property
    def profit_margin(self) -> float:
        if self.total_revenue <= 0:
            return 0.0
        return self.net_income / self.total_revenue
