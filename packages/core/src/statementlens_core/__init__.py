"""StatementLens Core - recovery, merging, grouping and trends for extracted financial documents."""

__version__ = "0.1.0"

from .exceptions import StatementLensError
from .grouper import StatementGrouper, group_documents
from .json_recovery import parse_extraction, recover_json
from .merger import RecordMerger, merge_extractions
from .models import DocumentRecord, ExtractionRecord, GroupedFinancialData
from .summary import calculate_financial_metrics, summarize_documents
from .trends import analyze_multi_period, analyze_trends

__all__ = [
    "DocumentRecord",
    "ExtractionRecord",
    "GroupedFinancialData",
    "RecordMerger",
    "StatementGrouper",
    "StatementLensError",
    "analyze_multi_period",
    "analyze_trends",
    "calculate_financial_metrics",
    "group_documents",
    "merge_extractions",
    "parse_extraction",
    "recover_json",
    "summarize_documents",
]
