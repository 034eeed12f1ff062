"""In-process key-value stores for jobs and merged documents.

Writes are serialised with an ``asyncio.Lock``; reads return whole frozen
snapshots, so a reader sees either the state before an update or after it,
never a mix. Any backend honouring the same get/put/update contract (a cache,
a database table) can replace these.
"""

import asyncio
from typing import Callable, Optional

import structlog

from statementlens_core.exceptions import NotFound
from statementlens_core.models import DocumentRecord

from statementlens_agents.interfaces.types import DocumentJob

logger = structlog.get_logger()


class InMemoryJobStore:
    """DocumentJobs keyed by id."""

    def __init__(self) -> None:
        self._jobs: dict[str, DocumentJob] = {}
        self._lock = asyncio.Lock()

    async def get(self, job_id: str) -> Optional[DocumentJob]:
        return self._jobs.get(job_id)

    async def put(self, job: DocumentJob) -> None:
        async with self._lock:
            self._jobs[job.id] = job

    async def update(
        self,
        job_id: str,
        change: Callable[[DocumentJob], DocumentJob],
    ) -> DocumentJob:
        """Replace a job with ``change(current)`` under the write lock."""
        async with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise NotFound(f"Document not found: {job_id}", resource_id=job_id)
            updated = change(current)
            self._jobs[job_id] = updated
            return updated

    async def all(self) -> list[DocumentJob]:
        return list(self._jobs.values())


class InMemoryDocumentStore:
    """Merged DocumentRecords keyed by job id; a put supersedes the old record."""

    def __init__(self) -> None:
        self._records: dict[str, DocumentRecord] = {}
        self._lock = asyncio.Lock()

    async def get(self, document_id: str) -> Optional[DocumentRecord]:
        return self._records.get(document_id)

    async def put(self, document_id: str, record: DocumentRecord) -> None:
        async with self._lock:
            if document_id in self._records:
                logger.info("document_record_superseded", document_id=document_id)
            self._records[document_id] = record
