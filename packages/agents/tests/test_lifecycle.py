"""Tests for the document lifecycle tracker."""

import asyncio

import pytest
import structlog
import structlog.testing

from statementlens_core.exceptions import (
    AlreadyProcessing,
    NotFound,
    UnsupportedMediaType,
    UploadTooLarge,
)

from statementlens_agents.config import LLMConfig, PipelineConfig, StatementLensConfig
from statementlens_agents.interfaces.types import FileMetadata, JobStatus
from statementlens_agents.lifecycle import DocumentLifecycleTracker
from statementlens_agents.rasterizer import PdfRasterizer
from statementlens_agents.vision import AnthropicVisionModel


class BlockingVisionModel:
    """Holds every extraction until released."""

    def __init__(self, response: str):
        self.response = response
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def extract(self, image: bytes, instruction: str) -> str:
        self.started.set()
        await self.release.wait()
        return self.response


class TestEnqueue:
    """Tests for registering uploads."""

    def test_creates_pending_job(self, fake_rasterizer, scripted_vision, pdf_upload):
        tracker = DocumentLifecycleTracker(fake_rasterizer(), scripted_vision([]))

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload())
            return await tracker.status(job_id)

        view = asyncio.run(scenario())
        assert view.status == JobStatus.PENDING
        assert view.progress == 0
        assert view.data is None

    def test_rejects_unsupported_media_type(self, fake_rasterizer, scripted_vision):
        tracker = DocumentLifecycleTracker(fake_rasterizer(), scripted_vision([]))
        upload = FileMetadata(filename="notes.txt", mime_type="text/plain", file_path="/uploads/notes.txt")

        with pytest.raises(UnsupportedMediaType) as exc_info:
            asyncio.run(tracker.enqueue(upload))

        assert "Invalid file type: text/plain" in exc_info.value.message

    def test_media_type_match_is_case_insensitive(self, fake_rasterizer, scripted_vision):
        tracker = DocumentLifecycleTracker(fake_rasterizer(), scripted_vision([]))
        upload = FileMetadata(filename="scan.PNG", mime_type="Image/PNG", file_path="/uploads/scan.PNG")

        assert asyncio.run(tracker.enqueue(upload))

    def test_list_jobs(self, fake_rasterizer, scripted_vision, pdf_upload):
        tracker = DocumentLifecycleTracker(fake_rasterizer(), scripted_vision([]))

        async def scenario():
            first = await tracker.enqueue(pdf_upload("a.pdf"))
            second = await tracker.enqueue(pdf_upload("b.pdf"))
            return [first, second], await tracker.list_jobs()

        ids, jobs = asyncio.run(scenario())
        assert [job.id for job in jobs] == ids

    def test_rejects_oversized_upload(self, fake_rasterizer, scripted_vision, pdf_upload):
        tracker = DocumentLifecycleTracker(fake_rasterizer(), scripted_vision([]))

        with pytest.raises(UploadTooLarge) as exc_info:
            asyncio.run(tracker.enqueue(pdf_upload(size_bytes=50 * 1024 * 1024 + 1)))

        assert exc_info.value.message == "File too large. Maximum size is 50MB."
        assert exc_info.value.limit_bytes == 50 * 1024 * 1024
        assert asyncio.run(tracker.list_jobs()) == []

    def test_upload_at_limit_accepted(self, fake_rasterizer, scripted_vision, pdf_upload):
        tracker = DocumentLifecycleTracker(fake_rasterizer(), scripted_vision([]))

        assert asyncio.run(tracker.enqueue(pdf_upload(size_bytes=50 * 1024 * 1024)))

    def test_configured_upload_limit(self, fake_rasterizer, scripted_vision, pdf_upload):
        tracker = DocumentLifecycleTracker(
            fake_rasterizer(),
            scripted_vision([]),
            config=PipelineConfig(max_upload_bytes=10 * 1024 * 1024),
        )

        with pytest.raises(UploadTooLarge) as exc_info:
            asyncio.run(tracker.enqueue(pdf_upload(size_bytes=11 * 1024 * 1024)))

        assert exc_info.value.message == "File too large. Maximum size is 10MB."


class TestFromConfig:
    """Tests for building a tracker from the root configuration."""

    def test_wires_configured_collaborators(self, reset_structlog):
        config = StatementLensConfig(
            log_level="warning",
            llm=LLMConfig(api_key="test-key"),
            pipeline=PipelineConfig(max_pages=7),
        )

        tracker = DocumentLifecycleTracker.from_config(config)

        assert isinstance(tracker.rasterizer, PdfRasterizer)
        assert tracker.rasterizer.config is config.pipeline
        assert isinstance(tracker.vision_model, AnthropicVisionModel)
        assert tracker.vision_model.config is config.llm
        assert tracker.config.max_pages == 7

    def test_applies_log_level(self, reset_structlog):
        config = StatementLensConfig(log_level="ERROR", llm=LLMConfig(api_key="test-key"))

        DocumentLifecycleTracker.from_config(config)

        log = structlog.get_logger()
        with structlog.testing.capture_logs() as captured:
            log.warning("below_threshold")
            log.error("at_threshold")

        assert [entry["event"] for entry in captured] == ["at_threshold"]


class TestProcessing:
    """Tests for a full background run."""

    def test_single_page_success(
        self, fake_rasterizer, scripted_vision, balance_sheet_response, pdf_upload
    ):
        vision = scripted_vision([balance_sheet_response(100, 40, "December 2022")])
        tracker = DocumentLifecycleTracker(fake_rasterizer(pages=1), vision)

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload("bs.pdf"))
            await tracker.start(job_id)
            return await tracker.wait(job_id)

        view = asyncio.run(scenario())
        assert view.status == JobStatus.COMPLETED
        assert view.progress == 100
        assert view.error is None
        assert view.data.document_type == "Balance Sheet"
        assert view.data.source_file == "bs.pdf"
        assert view.data.page_count == 1
        assert view.data.financial.balance_sheet.total_assets == 100.0

    def test_pages_sent_in_order_with_progress(
        self, fake_rasterizer, scripted_vision, balance_sheet_response, pdf_upload
    ):
        responses = [
            balance_sheet_response(100, 40, "December 2022"),
            '{"documentType": "Unknown", "companyInfo": {"industry": "Retail"}}',
            '```json\n{"personalInfo": {"individuals": [{"name": "Jane Doe"}]}}\n```',
        ]
        vision = scripted_vision(responses)
        tracker = DocumentLifecycleTracker(fake_rasterizer(pages=3), vision)

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload())
            vision.tracker, vision.job_id = tracker, job_id
            await tracker.start(job_id)
            return await tracker.wait(job_id)

        view = asyncio.run(scenario())
        assert vision.pages == [b"page-1", b"page-2", b"page-3"]
        assert vision.progress_seen == [40, 56, 73]
        assert view.data.page_count == 3
        assert view.data.company_info.name == "Acme Ltd"
        assert view.data.company_info.industry == "Retail"
        assert [p.name for p in view.data.individuals] == ["Jane Doe"]

    def test_max_pages_truncates(self, fake_rasterizer, scripted_vision, pdf_upload):
        vision = scripted_vision(['{"documentType": "Bank Statement"}'] * 2)
        tracker = DocumentLifecycleTracker(
            fake_rasterizer(pages=5), vision, config=PipelineConfig(max_pages=2)
        )

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload())
            await tracker.start(job_id)
            return await tracker.wait(job_id)

        view = asyncio.run(scenario())
        assert len(vision.pages) == 2
        assert view.data.page_count == 2

    def test_rerun_after_completion_supersedes(
        self, fake_rasterizer, scripted_vision, balance_sheet_response, pdf_upload
    ):
        vision = scripted_vision(
            [
                balance_sheet_response(100, 40, "December 2022"),
                balance_sheet_response(150, 50, "December 2023"),
            ]
        )
        tracker = DocumentLifecycleTracker(fake_rasterizer(pages=1), vision)

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload())
            await tracker.start(job_id)
            await tracker.wait(job_id)
            await tracker.start(job_id)
            return await tracker.wait(job_id)

        view = asyncio.run(scenario())
        assert view.status == JobStatus.COMPLETED
        assert view.data.financial.balance_sheet.as_of_date == "December 2023"


class TestFailures:
    """Errors become job state, never escape the run."""

    def test_unrecoverable_page_fails_job(
        self, fake_rasterizer, scripted_vision, balance_sheet_response, pdf_upload
    ):
        vision = scripted_vision(
            [
                balance_sheet_response(100, 40, "December 2022"),
                "Sorry, I cannot read this page.",
                balance_sheet_response(150, 50, "December 2023"),
            ]
        )
        tracker = DocumentLifecycleTracker(fake_rasterizer(pages=3), vision)

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload())
            task = await tracker.start(job_id)
            await task
            return await tracker.status(job_id)

        view = asyncio.run(scenario())
        assert view.status == JobStatus.ERROR
        assert view.progress == 0
        assert view.error.startswith("No valid JSON found in response")
        assert view.data is None
        assert len(vision.pages) == 2

    def test_upstream_failure_fails_job(
        self, upstream_error, fake_rasterizer, scripted_vision, pdf_upload
    ):
        tracker = DocumentLifecycleTracker(fake_rasterizer(pages=2), scripted_vision([upstream_error]))

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload())
            await tracker.start(job_id)
            return await tracker.wait(job_id)

        view = asyncio.run(scenario())
        assert view.status == JobStatus.ERROR
        assert view.error == "Model API error: 529 - Overloaded"

    def test_rasterizer_rejection_fails_job(self, fake_rasterizer, scripted_vision):
        rasterizer = fake_rasterizer(
            error=UnsupportedMediaType(
                "Word document processing not yet implemented. Please convert to PDF first."
            )
        )
        tracker = DocumentLifecycleTracker(rasterizer, scripted_vision([]))
        upload = FileMetadata(
            filename="letter.doc", mime_type="application/msword", file_path="/uploads/letter.doc"
        )

        async def scenario():
            job_id = await tracker.enqueue(upload)
            await tracker.start(job_id)
            return await tracker.wait(job_id)

        view = asyncio.run(scenario())
        assert view.status == JobStatus.ERROR
        assert "convert to PDF" in view.error
        assert rasterizer.calls == [("/uploads/letter.doc", "application/msword")]

    def test_no_pages_fails_job(self, fake_rasterizer, scripted_vision, pdf_upload):
        vision = scripted_vision([])
        tracker = DocumentLifecycleTracker(fake_rasterizer(pages=0), vision)

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload("empty.pdf"))
            await tracker.start(job_id)
            return await tracker.wait(job_id)

        view = asyncio.run(scenario())
        assert view.status == JobStatus.ERROR
        assert view.error == "No pages could be rendered from empty.pdf"
        assert vision.pages == []

    def test_unexpected_exception_message(self, fake_rasterizer, scripted_vision, pdf_upload):
        rasterizer = fake_rasterizer(error=RuntimeError())
        tracker = DocumentLifecycleTracker(rasterizer, scripted_vision([]))

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload())
            await tracker.start(job_id)
            return await tracker.wait(job_id)

        view = asyncio.run(scenario())
        assert view.error == "RuntimeError"

    def test_retry_after_error(
        self, fake_rasterizer, scripted_vision, balance_sheet_response, pdf_upload
    ):
        vision = scripted_vision(
            ["no structure at all", balance_sheet_response(100, 40, "December 2022")]
        )
        tracker = DocumentLifecycleTracker(fake_rasterizer(pages=1), vision)

        async def scenario():
            job_id = await tracker.enqueue(pdf_upload())
            await tracker.start(job_id)
            first = await tracker.wait(job_id)
            await tracker.start(job_id)
            return first, await tracker.wait(job_id)

        first, second = asyncio.run(scenario())
        assert first.status == JobStatus.ERROR
        assert second.status == JobStatus.COMPLETED
        assert second.error is None


class TestStartRules:
    """Tests for start request handling."""

    def test_unknown_job(self, fake_rasterizer, scripted_vision):
        tracker = DocumentLifecycleTracker(fake_rasterizer(), scripted_vision([]))

        with pytest.raises(NotFound):
            asyncio.run(tracker.start("does-not-exist"))

        with pytest.raises(NotFound):
            asyncio.run(tracker.status("does-not-exist"))

    def test_duplicate_start_rejected(self, fake_rasterizer, balance_sheet_response, pdf_upload):
        async def scenario():
            vision = BlockingVisionModel(balance_sheet_response(100, 40, "December 2022"))
            tracker = DocumentLifecycleTracker(fake_rasterizer(pages=1), vision)
            job_id = await tracker.enqueue(pdf_upload())
            await tracker.start(job_id)
            await vision.started.wait()

            before = await tracker.status(job_id)
            with pytest.raises(AlreadyProcessing):
                await tracker.start(job_id)
            after = await tracker.status(job_id)

            vision.release.set()
            final = await tracker.wait(job_id)
            return before, after, final

        before, after, final = asyncio.run(scenario())
        assert before.status == JobStatus.PROCESSING
        assert after.progress == before.progress == 40
        assert after.status == JobStatus.PROCESSING
        assert final.status == JobStatus.COMPLETED

    def test_concurrent_documents(self, fake_rasterizer, balance_sheet_response, pdf_upload):
        async def scenario():
            vision = BlockingVisionModel(balance_sheet_response(100, 40, "December 2022"))
            tracker = DocumentLifecycleTracker(fake_rasterizer(pages=1), vision)
            ids = [await tracker.enqueue(pdf_upload(f"{n}.pdf")) for n in range(3)]
            for job_id in ids:
                await tracker.start(job_id)
            await vision.started.wait()
            await asyncio.sleep(0)
            running = [(await tracker.status(job_id)).status for job_id in ids]
            vision.release.set()
            done = [(await tracker.wait(job_id)).status for job_id in ids]
            return running, done

        running, done = asyncio.run(scenario())
        assert running == [JobStatus.PROCESSING] * 3
        assert done == [JobStatus.COMPLETED] * 3
