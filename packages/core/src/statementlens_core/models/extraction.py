"""Extraction record models for per-page and per-document data.

This module provides the structures a vision model's output is validated
into:
- ExtractionRecord: one page/image's parsed output
- DocumentRecord: one uploaded document's canonical, merged data

Model output is unreliable, so validation is lenient by construction: every
field runs through a coercing ``BeforeValidator`` that degrades malformed
values to ``None``/empty instead of raising. Optional numeric fields are
always either a finite float or ``None``.

Attributes are snake_case; camelCase aliases match the JSON the model is
instructed to produce (``documentType``, ``financialInfo`` ...).
"""

import math
import re
from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

UNKNOWN_DOCUMENT_TYPE = "Unknown"
DEFAULT_CONFIDENCE = 0.5

_NUMBER_RE = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?")
_NUMBER_NOISE_RE = re.compile(r"[,\s$€£¥%]")

_TRANSACTION_TYPES = {
    "credit": "credit",
    "cr": "credit",
    "deposit": "credit",
    "debit": "debit",
    "dr": "debit",
    "withdrawal": "debit",
}


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# COERCION HELPERS
# =============================================================================


def to_number(value: Any) -> Optional[float]:
    """Coerce a model-provided value to a finite float, or None.

    Accepts ints, floats and numeric strings such as ``"$1,234.50"`` or
    ``"(200)"`` (accounting negative). Booleans, NaN, infinities and anything
    unparseable become None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            # ints beyond the float range
            return None
    elif isinstance(value, str):
        text = value.strip()
        negative = text.startswith("(") and text.endswith(")")
        text = _NUMBER_NOISE_RE.sub("", text.strip("()"))
        if not _NUMBER_RE.fullmatch(text):
            return None
        number = float(text)
        if negative:
            number = -abs(number)
    else:
        return None
    return number if math.isfinite(number) else None


def to_text(value: Any) -> Optional[str]:
    """Coerce a value to a non-empty stripped string, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        return text or None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return str(int(value)) if value.is_integer() else str(value)
    return None


def _to_mapping(value: Any) -> Any:
    if isinstance(value, (dict, BaseModel)):
        return value
    return {}


def _to_records(value: Any) -> list[Any]:
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, (dict, BaseModel))]


def _to_individuals(value: Any) -> list[Any]:
    kept = []
    for item in _to_records(value):
        if isinstance(item, BaseModel) or to_text(item.get("name")) is not None:
            kept.append(item)
    return kept


def _to_document_type(value: Any) -> str:
    return to_text(value) or UNKNOWN_DOCUMENT_TYPE


def _to_confidence(value: Any) -> float:
    number = to_number(value)
    if number is None:
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, number))


def _to_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    return utc_now()


def _to_transaction_type(value: Any) -> Optional[str]:
    text = to_text(value)
    if text is None:
        return None
    return _TRANSACTION_TYPES.get(text.lower())


def _to_page_count(value: Any) -> int:
    number = to_number(value)
    if number is None or number < 0:
        return 0
    return int(number)


Amount = Annotated[Optional[float], BeforeValidator(to_number)]
Text = Annotated[Optional[str], BeforeValidator(to_text)]


# =============================================================================
# SUB-RECORDS
# =============================================================================


class RecordModel(BaseModel):
    """Base for all extraction models: camelCase aliases, frozen, lenient."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class CompanyInfo(RecordModel):
    """Company identification fields found on a document."""

    name: Text = None
    registration_number: Text = None
    address: Text = None
    industry: Text = None
    establishment_date: Text = None
    legal_structure: Text = None


class Individual(RecordModel):
    """A person named on a document (director, shareholder, signatory)."""

    name: Annotated[str, BeforeValidator(to_text)]
    position: Text = None
    address: Text = None
    phone: Text = None
    email: Text = None
    ownership_percentage: Amount = None


class ProfitLoss(RecordModel):
    """Profit and loss figures for one reporting period."""

    revenue: Amount = None
    expenses: Amount = None
    net_income: Amount = None
    period: Text = None


class BalanceSheet(RecordModel):
    """Balance sheet totals as of one date."""

    total_assets: Amount = None
    total_liabilities: Amount = None
    equity: Amount = None
    as_of_date: Text = None


class Transaction(RecordModel):
    """A single bank statement line."""

    date: Text = None
    description: Text = None
    amount: Amount = None
    transaction_type: Annotated[
        Optional[Literal["credit", "debit"]], BeforeValidator(_to_transaction_type)
    ] = Field(default=None, alias="type")


class BankStatement(RecordModel):
    """One account's statement with its transactions."""

    account_number: Text = None
    account_type: Text = None
    balance: Amount = None
    period: Text = None
    transactions: Annotated[list[Transaction], BeforeValidator(_to_records)] = Field(
        default_factory=list
    )


class CreditHistoryEntry(RecordModel):
    """One tradeline from a credit report."""

    creditor: Text = None
    account_type: Text = None
    balance: Amount = None
    payment_status: Text = None
    monthly_payment: Amount = None


class CreditInfo(RecordModel):
    """Credit report summary and tradelines."""

    credit_score: Amount = None
    report_date: Text = None
    credit_history: Annotated[
        list[CreditHistoryEntry], BeforeValidator(_to_records)
    ] = Field(default_factory=list)


class CashFlow(RecordModel):
    """Cash flow statement totals for one period."""

    operating_cash_flow: Amount = None
    investing_cash_flow: Amount = None
    financing_cash_flow: Amount = None
    period: Text = None


class FinancialInfo(RecordModel):
    """All financial statements found on a page or document."""

    profit_loss: Annotated[ProfitLoss, BeforeValidator(_to_mapping)] = Field(
        default_factory=ProfitLoss
    )
    balance_sheet: Annotated[BalanceSheet, BeforeValidator(_to_mapping)] = Field(
        default_factory=BalanceSheet
    )
    bank_statements: Annotated[
        list[BankStatement], BeforeValidator(_to_records)
    ] = Field(default_factory=list)
    credit_info: Annotated[CreditInfo, BeforeValidator(_to_mapping)] = Field(
        default_factory=CreditInfo
    )
    cash_flow: Annotated[CashFlow, BeforeValidator(_to_mapping)] = Field(
        default_factory=CashFlow
    )


# =============================================================================
# RECORDS
# =============================================================================


class ExtractionRecord(RecordModel):
    """One page/image's parsed extraction output.

    Individuals may be supplied either at the top level or nested under
    ``personalInfo.individuals``, which is how the extraction instruction asks
    the model to emit them.
    """

    document_type: Annotated[str, BeforeValidator(_to_document_type)] = Field(
        default=UNKNOWN_DOCUMENT_TYPE,
        description="Declared statement type, e.g. 'Balance Sheet'",
    )
    company_info: Annotated[CompanyInfo, BeforeValidator(_to_mapping)] = Field(
        default_factory=CompanyInfo
    )
    individuals: Annotated[list[Individual], BeforeValidator(_to_individuals)] = Field(
        default_factory=list
    )
    financial: Annotated[FinancialInfo, BeforeValidator(_to_mapping)] = Field(
        default_factory=FinancialInfo,
        alias="financialInfo",
    )
    extraction_date: Annotated[datetime, BeforeValidator(_to_datetime)] = Field(
        default_factory=utc_now
    )
    confidence: Annotated[float, BeforeValidator(_to_confidence)] = Field(
        default=DEFAULT_CONFIDENCE,
        ge=0.0,
        le=1.0,
        description="Model-reported confidence (0.0 to 1.0)",
    )

    @model_validator(mode="before")
    @classmethod
    def lift_personal_info(cls, data: Any) -> Any:
        """Accept ``personalInfo.individuals`` as the individuals list."""
        if not isinstance(data, dict) or "individuals" in data:
            return data
        personal = data.get("personalInfo", data.get("personal_info"))
        if isinstance(personal, dict) and "individuals" in personal:
            return {**data, "individuals": personal["individuals"]}
        return data

    @classmethod
    def from_raw(cls, data: Any) -> "ExtractionRecord":
        """Validate a recovered mapping, degrading anything malformed."""
        return cls.model_validate(data if isinstance(data, dict) else {})


class DocumentRecord(ExtractionRecord):
    """Canonical merged data for one uploaded document.

    Created by the merger from one or more ExtractionRecords sharing a source
    file. Frozen: reprocessing writes a new record rather than mutating this one.
    """

    source_file: Annotated[str, BeforeValidator(lambda v: to_text(v) or "")] = Field(
        default="",
        description="Original filename of the uploaded document",
    )
    page_count: Annotated[int, BeforeValidator(_to_page_count)] = Field(
        default=0,
        ge=0,
        description="Number of page records merged into this document",
    )
