"""Shared fakes and fixtures for the document pipeline tests."""

import json
from typing import Optional

import pytest
import structlog

from statementlens_core.exceptions import UpstreamFailure

from statementlens_agents.lifecycle import DocumentLifecycleTracker
from statementlens_agents.interfaces.types import FileMetadata


class FakeRasterizer:
    """Returns a fixed number of placeholder pages."""

    def __init__(self, pages: int = 1, error: Optional[Exception] = None):
        self.pages = pages
        self.error = error
        self.calls: list[tuple[str, str]] = []

    async def rasterize(self, file_path: str, mime_type: str) -> list[bytes]:
        self.calls.append((file_path, mime_type))
        if self.error is not None:
            raise self.error
        return [f"page-{i}".encode() for i in range(1, self.pages + 1)]


class ScriptedVisionModel:
    """Replies with scripted responses, one per page, in order.

    A response that is an exception instance is raised instead of returned.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.pages: list[bytes] = []
        self.progress_seen: list[int] = []
        self.tracker: Optional[DocumentLifecycleTracker] = None
        self.job_id: Optional[str] = None

    async def extract(self, image: bytes, instruction: str) -> str:
        if self.tracker is not None and self.job_id is not None:
            job = await self.tracker.jobs.get(self.job_id)
            self.progress_seen.append(job.progress)
        self.pages.append(image)
        response = self.responses[len(self.pages) - 1]
        if isinstance(response, Exception):
            raise response
        return response


def _balance_sheet_response(total_assets: float, total_liabilities: float, as_of: str) -> str:
    return "Here is the JSON response:\n" + json.dumps(
        {
            "documentType": "Balance Sheet",
            "companyInfo": {"name": "Acme Ltd"},
            "financialInfo": {
                "balanceSheet": {
                    "totalAssets": total_assets,
                    "totalLiabilities": total_liabilities,
                    "asOfDate": as_of,
                }
            },
            "confidence": 0.9,
        }
    )


def _pdf_upload(name: str = "statement.pdf", size_bytes: Optional[int] = None) -> FileMetadata:
    return FileMetadata(
        filename=name,
        mime_type="application/pdf",
        file_path=f"/uploads/{name}",
        size_bytes=size_bytes,
    )


@pytest.fixture
def fake_rasterizer():
    """Factory for FakeRasterizer instances."""
    return FakeRasterizer


@pytest.fixture
def scripted_vision():
    """Factory for ScriptedVisionModel instances."""
    return ScriptedVisionModel


@pytest.fixture
def balance_sheet_response():
    """Builds a model reply carrying one balance sheet."""
    return _balance_sheet_response


@pytest.fixture
def pdf_upload():
    """Builds FileMetadata for a PDF upload."""
    return _pdf_upload


@pytest.fixture
def upstream_error():
    return UpstreamFailure("Model API error: 529 - Overloaded", service="anthropic", operation="extract")


@pytest.fixture
def reset_structlog():
    """Restore structlog defaults after a test configures logging."""
    yield
    structlog.reset_defaults()
