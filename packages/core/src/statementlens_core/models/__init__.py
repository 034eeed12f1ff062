"""Data models for statementlens-core.

This package provides:
- Extraction records, per page and per document (extraction.py)
- Grouped statements, trends and summaries derived from them (analysis.py)
"""

from statementlens_core.models.extraction import (
    DEFAULT_CONFIDENCE,
    UNKNOWN_DOCUMENT_TYPE,
    BalanceSheet,
    BankStatement,
    CashFlow,
    CompanyInfo,
    CreditHistoryEntry,
    CreditInfo,
    DocumentRecord,
    ExtractionRecord,
    FinancialInfo,
    Individual,
    ProfitLoss,
    Transaction,
)
from statementlens_core.models.analysis import (
    # Enumerations
    DataQuality,
    StatementKind,
    TrendDirection,
    # Grouped entries
    BalanceSheetEntry,
    BankStatementEntry,
    CashFlowEntry,
    CreditReportEntry,
    GroupedFinancialData,
    OtherDocumentEntry,
    ProfitLossEntry,
    StatementEntry,
    # Trends
    FinancialTrends,
    MultiPeriodAnalysis,
    TrendResult,
    # Summaries
    DocumentSummary,
    FinancialMetrics,
)

__all__ = [
    # Extraction
    "DEFAULT_CONFIDENCE",
    "UNKNOWN_DOCUMENT_TYPE",
    "BalanceSheet",
    "BankStatement",
    "CashFlow",
    "CompanyInfo",
    "CreditHistoryEntry",
    "CreditInfo",
    "DocumentRecord",
    "ExtractionRecord",
    "FinancialInfo",
    "Individual",
    "ProfitLoss",
    "Transaction",
    # Enumerations
    "DataQuality",
    "StatementKind",
    "TrendDirection",
    # Grouped entries
    "BalanceSheetEntry",
    "BankStatementEntry",
    "CashFlowEntry",
    "CreditReportEntry",
    "GroupedFinancialData",
    "OtherDocumentEntry",
    "ProfitLossEntry",
    "StatementEntry",
    # Trends
    "FinancialTrends",
    "MultiPeriodAnalysis",
    "TrendResult",
    # Summaries
    "DocumentSummary",
    "FinancialMetrics",
]
