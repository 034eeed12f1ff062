"""Document lifecycle tracker.

Drives each uploaded document through ``pending -> processing ->
{completed, error}``:

1. rasterize the document into ordered page images
2. send each page to the vision model, strictly one after another
3. recover a record from every response
4. merge the page records and store the DocumentRecord

Documents run concurrently as independent asyncio tasks. A start request for
a job that is already processing is rejected, never queued, so there is at
most one active run per document id. The tracker is the single place where
errors become job state: the background task never raises, it records
``error`` with the message and resets progress to 0.
"""

import asyncio
from typing import Optional

import structlog

from statementlens_core.exceptions import (
    AlreadyProcessing,
    NotFound,
    UnsupportedMediaType,
    UploadTooLarge,
    UpstreamFailure,
)
from statementlens_core.json_recovery import parse_extraction
from statementlens_core.merger import RecordMerger
from statementlens_core.models import ExtractionRecord

from statementlens_agents.config import PipelineConfig, StatementLensConfig
from statementlens_agents.interfaces.base import (
    DocumentStoreProtocol,
    JobStoreProtocol,
    RasterizerProtocol,
    VisionModelProtocol,
)
from statementlens_agents.interfaces.types import (
    DocumentJob,
    FileMetadata,
    JobStatus,
    JobStatusView,
)
from statementlens_agents.prompts import EXTRACTION_INSTRUCTION
from statementlens_agents.rasterizer import PdfRasterizer
from statementlens_agents.store import InMemoryDocumentStore, InMemoryJobStore
from statementlens_agents.vision import AnthropicVisionModel

logger = structlog.get_logger()


class DocumentLifecycleTracker:
    """
    Per-document state machine coordinating extraction, recovery and merge.

    Example:
        tracker = DocumentLifecycleTracker.from_config(StatementLensConfig())
        job_id = await tracker.enqueue(metadata)
        await tracker.start(job_id)
        ...
        view = await tracker.status(job_id)
    """

    def __init__(
        self,
        rasterizer: RasterizerProtocol,
        vision_model: VisionModelProtocol,
        *,
        jobs: Optional[JobStoreProtocol] = None,
        documents: Optional[DocumentStoreProtocol] = None,
        config: Optional[PipelineConfig] = None,
        instruction: str = EXTRACTION_INSTRUCTION,
    ) -> None:
        self.rasterizer = rasterizer
        self.vision_model = vision_model
        self.jobs = jobs if jobs is not None else InMemoryJobStore()
        self.documents = documents if documents is not None else InMemoryDocumentStore()
        self.config = config or PipelineConfig()
        self.instruction = instruction
        self._merger = RecordMerger()
        self._tasks: dict[str, asyncio.Task] = {}

    @classmethod
    def from_config(
        cls, config: Optional[StatementLensConfig] = None
    ) -> "DocumentLifecycleTracker":
        """Build a tracker with the PDF rasterizer and the Anthropic adapter.

        Applies the configured log level before anything is logged.
        """
        config = config or StatementLensConfig()
        config.configure_logging()
        return cls(
            PdfRasterizer(config.pipeline),
            AnthropicVisionModel(config.llm),
            config=config.pipeline,
        )

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def enqueue(self, metadata: FileMetadata) -> str:
        """Register an upload as a ``pending`` job and return its id."""
        mime_type = metadata.mime_type.strip().lower()
        if mime_type not in self.config.allowed_mime_types:
            raise UnsupportedMediaType(
                f"Invalid file type: {metadata.mime_type}. Only PDF, images, "
                "and Word documents are allowed.",
                mime_type=metadata.mime_type,
            )
        limit = self.config.max_upload_bytes
        if metadata.size_bytes is not None and metadata.size_bytes > limit:
            raise UploadTooLarge(
                f"File too large. Maximum size is {limit / (1024 * 1024):g}MB.",
                size_bytes=metadata.size_bytes,
                limit_bytes=limit,
            )

        job = DocumentJob.from_metadata(metadata)
        await self.jobs.put(job)
        logger.info("job_enqueued", job_id=job.id, filename=job.filename)
        return job.id

    async def start(self, job_id: str) -> asyncio.Task:
        """
        Begin processing a job in the background.

        Returns:
            The task driving the run; it completes when the job reaches a
            terminal state and never raises.

        Raises:
            NotFound: Unknown job id.
            AlreadyProcessing: The job is currently being processed.
        """

        def accept(job: DocumentJob) -> DocumentJob:
            if job.status == JobStatus.PROCESSING:
                raise AlreadyProcessing(
                    "Document is already being processed", job_id=job_id
                )
            return job.accepted(self.config.progress_accepted)

        job = await self.jobs.update(job_id, accept)
        logger.info("job_started", job_id=job_id, filename=job.filename)

        task = asyncio.create_task(self._run(job), name=f"document-{job_id}")
        self._tasks[job_id] = task
        task.add_done_callback(lambda _: self._forget(job_id, task))
        return task

    async def status(self, job_id: str) -> JobStatusView:
        """Snapshot of a job; merged data is included only once completed."""
        job = await self.jobs.get(job_id)
        if job is None:
            raise NotFound(f"Document not found: {job_id}", resource_id=job_id)

        data = None
        if job.status == JobStatus.COMPLETED:
            data = await self.documents.get(job_id)

        return JobStatusView(
            id=job.id,
            filename=job.filename,
            status=job.status,
            progress=job.progress,
            error=job.error,
            data=data,
        )

    async def list_jobs(self) -> list[DocumentJob]:
        """All known jobs, oldest upload first."""
        return sorted(await self.jobs.all(), key=lambda job: job.uploaded_at)

    async def wait(self, job_id: str) -> JobStatusView:
        """Wait for an active run (if any) to finish and return the status."""
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.shield(task)
        return await self.status(job_id)

    # -------------------------------------------------------------------------
    # Background run
    # -------------------------------------------------------------------------

    def _forget(self, job_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(job_id) is task:
            del self._tasks[job_id]

    async def _advance(self, job_id: str, progress: int, **changes) -> None:
        await self.jobs.update(job_id, lambda job: job.advanced(progress, **changes))

    async def _run(self, job: DocumentJob) -> None:
        try:
            pages = await self.rasterizer.rasterize(job.file_path, job.mime_type)
            pages = pages[: self.config.max_pages]
            if not pages:
                raise UpstreamFailure(
                    f"No pages could be rendered from {job.filename}",
                    service="rasterizer",
                    operation="rasterize",
                    recoverable=False,
                )
            await self._advance(
                job.id, self.config.progress_rasterized, page_count=len(pages)
            )
            logger.info("document_rasterized", job_id=job.id, pages=len(pages))

            records: list[ExtractionRecord] = []
            for index, page in enumerate(pages, start=1):
                logger.info(
                    "page_extraction_started",
                    job_id=job.id,
                    page=index,
                    total_pages=len(pages),
                )
                raw = await self.vision_model.extract(page, self.instruction)
                records.append(
                    parse_extraction(
                        raw, max_candidates=self.config.recovery_max_candidates
                    )
                )
                await self._advance(job.id, self._page_progress(index, len(pages)))

            merged = self._merger.merge(records, job.filename)
            await self._advance(job.id, self.config.progress_merged)

            await self.documents.put(job.id, merged)
            await self.jobs.update(job.id, lambda current: current.completed())
            logger.info(
                "job_completed",
                job_id=job.id,
                filename=job.filename,
                document_type=merged.document_type,
                pages=merged.page_count,
            )
        except Exception as e:
            logger.error(
                "job_failed",
                job_id=job.id,
                filename=job.filename,
                error=str(e),
                error_type=type(e).__name__,
            )
            message = str(e) or type(e).__name__
            await self.jobs.update(job.id, lambda current: current.failed(message))

    def _page_progress(self, done: int, total: int) -> int:
        return int(
            self.config.progress_rasterized
            + self.config.progress_page_span * done / total
        )
