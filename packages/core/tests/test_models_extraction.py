"""Tests for extraction record models and lenient coercion."""

import math
from datetime import datetime

import pytest
from pydantic import ValidationError

from statementlens_core.models import (
    DEFAULT_CONFIDENCE,
    UNKNOWN_DOCUMENT_TYPE,
    BankStatement,
    DocumentRecord,
    ExtractionRecord,
    Transaction,
)
from statementlens_core.models.extraction import to_number, to_text


class TestCoercion:
    """Tests for the value coercers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (1200, 1200.0),
            ("1,234.50", 1234.5),
            ("$ 98", 98.0),
            ("(200)", -200.0),
            ("-15.5", -15.5),
        ],
    )
    def test_numbers(self, value, expected):
        """Numeric values and numeric strings become floats."""
        assert to_number(value) == expected

    @pytest.mark.parametrize("value", [None, True, "n/a", "", float("nan"), float("inf"), [1]])
    def test_non_numbers(self, value):
        """Anything else becomes None."""
        assert to_number(value) is None

    def test_integers_beyond_float_range(self):
        """Integers too large for a float become None instead of raising."""
        assert to_number(10**400) is None
        assert to_number(-(10**400)) is None

    def test_text(self):
        """Strings are stripped; blanks and containers become None."""
        assert to_text("  Acme  ") == "Acme"
        assert to_text("   ") is None
        assert to_text(42) == "42"
        assert to_text(2023.0) == "2023"
        assert to_text({"a": 1}) is None


class TestExtractionRecord:
    """Tests for ExtractionRecord validation."""

    def test_defaults_for_empty_input(self):
        """An empty mapping yields an Unknown record with default confidence."""
        record = ExtractionRecord.from_raw({})

        assert record.document_type == UNKNOWN_DOCUMENT_TYPE
        assert record.confidence == DEFAULT_CONFIDENCE
        assert record.individuals == []
        assert record.financial.bank_statements == []
        assert record.financial.profit_loss.revenue is None
        assert isinstance(record.extraction_date, datetime)

    def test_non_mapping_input(self):
        """A non-mapping input degrades to the empty record."""
        assert ExtractionRecord.from_raw(["not", "a", "dict"]).document_type == "Unknown"

    def test_camel_case_payload(self):
        """The camelCase JSON the model emits is accepted."""
        record = ExtractionRecord.from_raw(
            {
                "documentType": "Profit and Loss Statement",
                "companyInfo": {"name": "Acme Ltd", "registrationNumber": 12345},
                "financialInfo": {
                    "profitLoss": {
                        "revenue": "1,000",
                        "expenses": 400,
                        "netIncome": "600",
                        "period": "FY2023",
                    }
                },
                "extractionDate": "2024-01-15T10:00:00Z",
                "confidence": 0.92,
            }
        )

        assert record.document_type == "Profit and Loss Statement"
        assert record.company_info.name == "Acme Ltd"
        assert record.company_info.registration_number == "12345"
        assert record.financial.profit_loss.revenue == 1000.0
        assert record.financial.profit_loss.net_income == 600.0
        assert record.financial.profit_loss.period == "FY2023"
        assert record.extraction_date.year == 2024
        assert record.confidence == 0.92

    def test_malformed_values_degrade(self):
        """Malformed values become None or empty instead of raising."""
        record = ExtractionRecord.from_raw(
            {
                "documentType": None,
                "companyInfo": "Acme",
                "financialInfo": {
                    "balanceSheet": {"totalAssets": "lots", "asOfDate": 7},
                    "bankStatements": {"accountNumber": "1"},
                    "creditInfo": {"creditHistory": ["bad", {"creditor": "Bank"}]},
                },
                "extractionDate": "yesterday",
                "confidence": "very",
            }
        )

        assert record.document_type == UNKNOWN_DOCUMENT_TYPE
        assert record.company_info.name is None
        assert record.financial.balance_sheet.total_assets is None
        assert record.financial.balance_sheet.as_of_date == "7"
        assert record.financial.bank_statements == []
        assert len(record.financial.credit_info.credit_history) == 1
        assert record.confidence == DEFAULT_CONFIDENCE

    def test_confidence_is_clamped(self):
        """Confidence outside [0, 1] is clamped."""
        assert ExtractionRecord.from_raw({"confidence": 7}).confidence == 1.0
        assert ExtractionRecord.from_raw({"confidence": -2}).confidence == 0.0

    def test_oversized_integer_confidence_uses_default(self):
        """A confidence integer beyond the float range falls back to the default."""
        assert ExtractionRecord.from_raw({"confidence": 10**400}).confidence == DEFAULT_CONFIDENCE

    def test_individuals_from_personal_info(self):
        """Individuals nested under personalInfo are lifted."""
        record = ExtractionRecord.from_raw(
            {
                "personalInfo": {
                    "individuals": [
                        {"name": "Jane Doe", "position": "Director", "ownershipPercentage": "60"},
                        {"position": "Nameless"},
                    ]
                }
            }
        )

        assert len(record.individuals) == 1
        assert record.individuals[0].name == "Jane Doe"
        assert record.individuals[0].ownership_percentage == 60.0

    def test_records_are_frozen(self):
        """Records cannot be mutated after validation."""
        record = ExtractionRecord.from_raw({})
        with pytest.raises(ValidationError):
            record.document_type = "Balance Sheet"

    def test_dump_uses_camel_case(self):
        """Serialisation by alias reproduces the model's field names."""
        dumped = ExtractionRecord.from_raw({"documentType": "Bank Statement"}).model_dump(
            by_alias=True
        )
        assert dumped["documentType"] == "Bank Statement"
        assert "financialInfo" in dumped
        assert "bankStatements" in dumped["financialInfo"]


class TestTransaction:
    """Tests for bank statement transactions."""

    @pytest.mark.parametrize(
        "raw,expected",
        [("credit", "credit"), ("CR", "credit"), ("Deposit", "credit"),
         ("debit", "debit"), ("withdrawal", "debit"), ("transfer", None)],
    )
    def test_type_normalisation(self, raw, expected):
        """Transaction types normalise to credit/debit or None."""
        assert Transaction.model_validate({"type": raw}).transaction_type == expected

    def test_nested_in_statement(self):
        """Transactions validate inside a bank statement."""
        statement = BankStatement.model_validate(
            {
                "accountNumber": "001",
                "balance": "5,000",
                "transactions": [
                    {"date": "2023-12-01", "amount": "250", "type": "credit"},
                    "garbage",
                ],
            }
        )
        assert statement.balance == 5000.0
        assert len(statement.transactions) == 1
        assert statement.transactions[0].amount == 250.0


class TestDocumentRecord:
    """Tests for the merged document record."""

    def test_defaults(self):
        """Source file and page count have safe defaults."""
        record = DocumentRecord()
        assert record.source_file == ""
        assert record.page_count == 0

    def test_page_count_coercion(self):
        """Negative or unparseable page counts become 0."""
        assert DocumentRecord(page_count=-3).page_count == 0
        assert DocumentRecord(page_count="2").page_count == 2

    def test_numbers_are_finite(self):
        """Non-finite numbers never reach the record."""
        record = DocumentRecord.model_validate(
            {"financialInfo": {"cashFlow": {"operatingCashFlow": math.inf}}}
        )
        assert record.financial.cash_flow.operating_cash_flow is None
