"""Collaborator protocols for the StatementLens pipeline.

This module defines the contracts (boundaries) the lifecycle tracker depends
on. They use Python's structural subtyping via typing.Protocol, so any class
implementing the required methods is compatible - no explicit inheritance
required. Reference implementations live in ``vision``, ``rasterizer`` and
``store``; tests substitute simple fakes.

Design Goals:
- The tracker never imports a model SDK or PDF library directly
- Async-first: every boundary call is a suspension point
- Key-value persistence only: no relational or transactional interface

Example Usage:
    ```python
    class CannedVisionModel:
        '''Returns the same response for every page.'''

        def __init__(self, response: str):
            self.response = response

        async def extract(self, image: bytes, instruction: str) -> str:
            return self.response

    # CannedVisionModel satisfies VisionModelProtocol
    ```
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol, runtime_checkable

from statementlens_core.models import DocumentRecord

from statementlens_agents.interfaces.types import DocumentJob


# =============================================================================
# MODEL AND RASTERIZATION BOUNDARIES
# =============================================================================


@runtime_checkable
class VisionModelProtocol(Protocol):
    """Sends one page image plus the extraction instruction to a model."""

    async def extract(self, image: bytes, instruction: str) -> str:
        """Return the model's raw text for one page.

        The text is not guaranteed to be well-formed; recovery happens in the
        core. Transport-level problems must be raised as UpstreamFailure.
        """
        ...


@runtime_checkable
class RasterizerProtocol(Protocol):
    """Turns one stored document into an ordered sequence of page images."""

    async def rasterize(self, file_path: str, mime_type: str) -> list[bytes]:
        """Render every page of the document, in order.

        Raises:
            UnsupportedMediaType: The media type cannot be rendered.
            UpstreamFailure: The file is unreadable or corrupt.
        """
        ...


# =============================================================================
# PERSISTENCE BOUNDARIES
# =============================================================================


@runtime_checkable
class JobStoreProtocol(Protocol):
    """Key-value storage for DocumentJobs with atomic per-key updates."""

    async def get(self, job_id: str) -> Optional[DocumentJob]:
        ...

    async def put(self, job: DocumentJob) -> None:
        ...

    async def update(
        self,
        job_id: str,
        change: Callable[[DocumentJob], DocumentJob],
    ) -> DocumentJob:
        """Atomically replace a job with ``change(current)``.

        Exceptions raised by ``change`` abort the update and propagate.

        Raises:
            NotFound: No job with this id exists.
        """
        ...

    async def all(self) -> list[DocumentJob]:
        ...


@runtime_checkable
class DocumentStoreProtocol(Protocol):
    """Key-value storage for merged DocumentRecords, keyed by job id."""

    async def get(self, document_id: str) -> Optional[DocumentRecord]:
        ...

    async def put(self, document_id: str, record: DocumentRecord) -> None:
        ...


__all__ = [
    "VisionModelProtocol",
    "RasterizerProtocol",
    "JobStoreProtocol",
    "DocumentStoreProtocol",
]
