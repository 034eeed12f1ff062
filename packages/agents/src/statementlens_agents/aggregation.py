"""Multi-document analysis over completed jobs."""

from typing import Iterable, Optional

import structlog

from statementlens_core.exceptions import NotFound
from statementlens_core.grouper import group_documents
from statementlens_core.models import DocumentRecord
from statementlens_core.summary import calculate_financial_metrics, summarize_documents
from statementlens_core.trends import analyze_multi_period, analyze_trends

from statementlens_agents.interfaces.base import DocumentStoreProtocol, JobStoreProtocol
from statementlens_agents.interfaces.types import AnalysisReport, JobStatus

logger = structlog.get_logger()


class AggregationService:
    """Group, trend and summarise the merged records of a set of documents."""

    def __init__(self, jobs: JobStoreProtocol, documents: DocumentStoreProtocol):
        self.jobs = jobs
        self.documents = documents

    async def collect(self, document_ids: Optional[Iterable[str]] = None) -> dict[str, DocumentRecord]:
        """
        Merged records for the requested ids that have completed.

        Ids that are unknown, still running or failed are skipped. With no ids,
        every completed job is used.
        """
        if document_ids is None:
            document_ids = [job.id for job in await self.jobs.all()]

        records: dict[str, DocumentRecord] = {}
        for document_id in document_ids:
            if document_id in records:
                continue
            job = await self.jobs.get(document_id)
            if job is None or job.status != JobStatus.COMPLETED:
                logger.debug("analysis_document_skipped", document_id=document_id)
                continue
            record = await self.documents.get(document_id)
            if record is not None:
                records[document_id] = record
        return records

    async def analyze(self, document_ids: Optional[Iterable[str]] = None) -> AnalysisReport:
        """
        Build an AnalysisReport from completed documents.

        Raises:
            NotFound: None of the requested documents has completed.
        """
        records = await self.collect(document_ids)
        if not records:
            raise NotFound("No completed documents found for analysis")

        documents = list(records.values())
        grouped = group_documents(documents)
        report = AnalysisReport(
            document_ids=list(records),
            grouped_financial_data=grouped,
            financial_trends=analyze_trends(grouped),
            multi_period_analysis=analyze_multi_period(grouped),
            document_summary=summarize_documents(documents),
            financial_metrics=calculate_financial_metrics(documents),
        )
        logger.info(
            "analysis_completed",
            documents=len(documents),
            periods=report.multi_period_analysis.total_periods,
            data_quality=report.multi_period_analysis.data_quality.value,
        )
        return report
