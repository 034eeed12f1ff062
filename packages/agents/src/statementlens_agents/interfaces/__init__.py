"""Collaborator protocols and pipeline data types.

Available Interfaces:
    VisionModelProtocol: page image + instruction -> raw model text
    RasterizerProtocol: stored document -> ordered page images
    JobStoreProtocol: key-value storage for DocumentJobs
    DocumentStoreProtocol: key-value storage for DocumentRecords

Pipeline Data Types:
    FileMetadata: upload handed over at enqueue time
    DocumentJob: per-document lifecycle entity
    JobStatus: lifecycle states
    JobStatusView: status snapshot returned to callers
    AnalysisReport: grouped/trend output for a set of documents
"""

from statementlens_agents.interfaces.base import (
    DocumentStoreProtocol,
    JobStoreProtocol,
    RasterizerProtocol,
    VisionModelProtocol,
)

from statementlens_agents.interfaces.types import (
    AnalysisReport,
    DocumentJob,
    FileMetadata,
    JobStatus,
    JobStatusView,
)

__all__ = [
    # Protocols
    "DocumentStoreProtocol",
    "JobStoreProtocol",
    "RasterizerProtocol",
    "VisionModelProtocol",
    # Types
    "AnalysisReport",
    "DocumentJob",
    "FileMetadata",
    "JobStatus",
    "JobStatusView",
]
