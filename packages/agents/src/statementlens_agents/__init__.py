"""StatementLens Agents - document pipeline around a vision model."""

from statementlens_agents.aggregation import AggregationService
from statementlens_agents.config import (
    LLMConfig,
    PipelineConfig,
    StatementLensConfig,
)
from statementlens_agents.lifecycle import DocumentLifecycleTracker
from statementlens_agents.store import InMemoryDocumentStore, InMemoryJobStore

__version__ = "0.1.0"

__all__ = [
    "AggregationService",
    "DocumentLifecycleTracker",
    "InMemoryDocumentStore",
    "InMemoryJobStore",
    "LLMConfig",
    "PipelineConfig",
    "StatementLensConfig",
]
