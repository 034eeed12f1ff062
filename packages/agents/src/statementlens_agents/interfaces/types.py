"""Job and report types exchanged with the document pipeline.

This module defines the data contracts around the lifecycle tracker:
1. FileMetadata: what the upload layer hands over at enqueue time
2. DocumentJob: the per-document state machine entity
3. JobStatusView: the read-only status snapshot returned to callers
4. AnalysisReport: the grouped/trend output for a set of documents
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from statementlens_core.models import (
    DocumentRecord,
    DocumentSummary,
    FinancialMetrics,
    FinancialTrends,
    GroupedFinancialData,
    MultiPeriodAnalysis,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMERATIONS
# =============================================================================


class JobStatus(str, Enum):
    """Lifecycle states of a document job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


# =============================================================================
# JOB TYPES
# =============================================================================


class FileMetadata(BaseModel):
    """An uploaded file as handed over by the transport layer."""

    filename: str = Field(min_length=1, description="Original filename")
    mime_type: str = Field(description="Declared media type, e.g. application/pdf")
    file_path: str = Field(description="Where the stored upload can be read from")
    size_bytes: Optional[int] = Field(default=None, ge=0)


class DocumentJob(BaseModel):
    """Lifecycle entity for one uploaded document.

    Frozen: every transition produces a new instance that the job store swaps
    in as a unit, so readers never see status, progress and error out of step.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    filename: str
    mime_type: str
    file_path: str
    status: JobStatus = JobStatus.PENDING
    progress: int = Field(default=0, ge=0, le=100)
    error: Optional[str] = None
    page_count: Optional[int] = Field(default=None, ge=0)
    uploaded_at: datetime = Field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_metadata(cls, metadata: FileMetadata) -> "DocumentJob":
        return cls(
            filename=metadata.filename,
            mime_type=metadata.mime_type,
            file_path=metadata.file_path,
        )

    def accepted(self, progress: int) -> "DocumentJob":
        """Reset into ``processing`` for a (re)run."""
        return self.model_copy(
            update={
                "status": JobStatus.PROCESSING,
                "progress": progress,
                "error": None,
                "page_count": None,
                "started_at": _utcnow(),
                "completed_at": None,
            }
        )

    def advanced(self, progress: int, **changes) -> "DocumentJob":
        """Move progress forward; it never decreases while processing."""
        return self.model_copy(
            update={"progress": max(self.progress, min(progress, 100)), **changes}
        )

    def completed(self) -> "DocumentJob":
        return self.model_copy(
            update={
                "status": JobStatus.COMPLETED,
                "progress": 100,
                "error": None,
                "completed_at": _utcnow(),
            }
        )

    def failed(self, message: str) -> "DocumentJob":
        return self.model_copy(
            update={
                "status": JobStatus.ERROR,
                "progress": 0,
                "error": message,
                "completed_at": _utcnow(),
            }
        )


class JobStatusView(BaseModel):
    """Read-only status snapshot; ``data`` is present only when completed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    filename: str
    status: JobStatus
    progress: int
    error: Optional[str] = None
    data: Optional[DocumentRecord] = None


class AnalysisReport(BaseModel):
    """Grouped statements, trends and summaries for a set of documents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    document_ids: list[str] = Field(default_factory=list)
    grouped_financial_data: GroupedFinancialData
    financial_trends: FinancialTrends
    multi_period_analysis: MultiPeriodAnalysis
    document_summary: DocumentSummary
    financial_metrics: FinancialMetrics
