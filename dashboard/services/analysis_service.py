"""
dashboard/services/analysis_service.py

Service layer for one end-to-end analysis run.

The run proceeds in this order:

    1. FileClassifier      - names only; fails fast before any read
    2. TableExtractor      - reads bytes, one file at a time
    3. RecordNormalizer    - raw tables -> canonical records
    4. TimelineBuilder     - folds records in processing order
    5. MetricsEngine       - pure calculation over the timeline
    6. InsightGenerator    - deterministic rule battery

Files are processed strictly in upload order so the duplicate merge in the
aggregator is deterministic. File-local parse errors are skipped (recorded
as warnings) or abort the run, depending on the parse-error policy.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from typing import Any, Sequence

from dashboard import failure_codes
from dashboard.config import ParseErrorPolicy, UploadSettings, get_upload_settings
from dashboard.domain.cross_reference import CrossReferenceIndex
from dashboard.domain.records import (
    FileDescriptor,
    FileRole,
    MapConfigEntry,
    PartnerReportEntry,
    PipelineWarning,
    RawTable,
)
from dashboard.domain.sources import FileSource, UploadBatch
from dashboard.errors import ParseError
from dashboard.logging_utils import log_event
from dashboard.services.file_classifier import FileClassifier
from dashboard.services.period_aggregator import Timeline, TimelineBuilder
from dashboard.services.record_normalizer import RecordNormalizer
from dashboard.services.table_extractor import TableExtractor
from insights.base import Insight
from insights.generator import InsightGenerator
from metrics.engine import MetricsEngine
from metrics.snapshot import MetricsSnapshot

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass
class AnalysisSession:
    """
    Mutable state of one run. Discarding the session resets the analysis.
    """

    customer: str | None = None
    descriptors: list[FileDescriptor] = field(default_factory=list)
    builder: TimelineBuilder = field(default_factory=TimelineBuilder)
    warnings: list[PipelineWarning] = field(default_factory=list)
    cross_reference: CrossReferenceIndex = field(default_factory=CrossReferenceIndex.empty)
    partner_report: tuple[PartnerReportEntry, ...] | None = None
    map_configuration: tuple[MapConfigEntry, ...] | None = None
    skipped_files: list[str] = field(default_factory=list)

    def record_skip(self, exc: ParseError) -> None:
        self.warnings.append(
            PipelineWarning(
                code=exc.code,
                message=exc.message,
                file_name=exc.file_name,
                row_number=exc.row_number,
                column=exc.column,
            )
        )
        if exc.file_name:
            self.skipped_files.append(exc.file_name)


@dataclass(frozen=True)
class AnalysisResult:
    customer: str | None
    descriptors: tuple[FileDescriptor, ...]
    timeline: Timeline
    snapshot: MetricsSnapshot
    insights: tuple[Insight, ...]
    warnings: tuple[PipelineWarning, ...]
    skipped_files: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "customer": self.customer,
            "descriptors": [asdict(descriptor) for descriptor in self.descriptors],
            "timeline": {
                "periods": list(self.timeline.periods),
                "provenance": {period: list(files) for period, files in self.timeline.provenance.items()},
                "buckets": {
                    period: {kind: [asdict(record) for record in records] for kind, records in kinds.items()}
                    for period, kinds in self.timeline.buckets.items()
                },
            },
            "snapshot": self.snapshot.to_dict(),
            "insights": [asdict(insight) for insight in self.insights],
            "warnings": [asdict(warning) for warning in self.warnings],
            "skipped_files": list(self.skipped_files),
        }


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class AnalysisService:
    """
    Orchestrates the pipeline stages for an upload batch.
    """

    def __init__(
        self,
        *,
        classifier: FileClassifier | None = None,
        extractor: TableExtractor | None = None,
        normalizer: RecordNormalizer | None = None,
        metrics_engine: MetricsEngine | None = None,
        insight_generator: InsightGenerator | None = None,
        settings: UploadSettings | None = None,
    ) -> None:
        self.settings = settings or get_upload_settings()
        self.classifier = classifier or FileClassifier()
        self.extractor = extractor or TableExtractor(settings=self.settings)
        self.normalizer = normalizer or RecordNormalizer()
        self.metrics_engine = metrics_engine or MetricsEngine()
        self.insight_generator = insight_generator or InsightGenerator()

    async def run(self, batch: UploadBatch, *, parse_error_policy: str | None = None) -> AnalysisResult:
        """
        Analyze *batch* and return the full result.

        Raises
        ------
        PatternDetectionError
            If a primary file name is malformed or names another customer.
        EmptyDatasetError
            If no primary file yields a record.
        ParseError
            Only when *parse_error_policy* is ``abort``.
        """

        policy = parse_error_policy or self.settings.parse_error_policy
        if policy not in (ParseErrorPolicy.SKIP, ParseErrorPolicy.ABORT):
            raise ValueError(f"Unsupported parse error policy '{policy}'.")

        primary, auxiliary = self.classifier.classify_batch(batch)
        session = AnalysisSession(customer=self.classifier.customer_of(primary))
        session.descriptors.extend(primary)
        session.descriptors.extend(auxiliary.values())
        log_event(
            logger,
            logging.INFO,
            "analysis_started",
            customer=session.customer,
            primary_files=len(primary),
            auxiliary_roles=sorted(auxiliary),
            parse_error_policy=policy,
        )

        for source, descriptor in zip(batch.primary, primary):
            tables = await self._extract(source, descriptor, session, policy)
            for table in tables or ():
                result = self.normalizer.normalize(table, file_period=descriptor.detected_period)
                session.builder.add(result.records)
                session.warnings.extend(result.warnings)

        timeline = session.builder.build()

        for role, descriptor in auxiliary.items():
            tables = await self._extract(batch.auxiliary[role], descriptor, session, policy)
            if tables is not None:
                self._apply_auxiliary(role, tables, session)

        snapshot = self.metrics_engine.compute(
            timeline,
            session.cross_reference,
            partner_report=session.partner_report,
            map_configuration=session.map_configuration,
        )
        insights = self.insight_generator.generate(snapshot)

        log_event(
            logger,
            logging.INFO,
            "analysis_completed",
            customer=session.customer,
            periods=len(timeline.periods),
            insights=len(insights),
            warnings=len(session.warnings),
            skipped_files=session.skipped_files,
        )
        return AnalysisResult(
            customer=session.customer,
            descriptors=tuple(session.descriptors),
            timeline=timeline,
            snapshot=snapshot,
            insights=insights,
            warnings=tuple(session.warnings),
            skipped_files=tuple(session.skipped_files),
        )

    async def _extract(
        self,
        source: FileSource,
        descriptor: FileDescriptor,
        session: AnalysisSession,
        policy: str,
    ) -> Sequence[RawTable] | None:
        """Tables of one file, or ``None`` when the file was skipped."""
        try:
            tables = await self.extractor.extract(source, descriptor)
        except ParseError as exc:
            log_event(
                logger,
                logging.WARNING,
                "file_parse_failed",
                file_name=descriptor.name,
                code=exc.code,
                reason=exc.message,
                policy=policy,
            )
            if policy == ParseErrorPolicy.ABORT:
                raise
            session.record_skip(exc)
            return None

        if not tables:
            session.warnings.append(
                PipelineWarning(
                    code=failure_codes.VALIDATION_ERROR,
                    message="File contains no recognized table.",
                    file_name=descriptor.name,
                )
            )
        return tables

    def _apply_auxiliary(self, role: str, tables: Sequence[RawTable], session: AnalysisSession) -> None:
        if role == FileRole.CROSS_REFERENCE:
            entries: list[Any] = []
            for table in tables:
                result = self.normalizer.normalize_cross_reference(table)
                entries.extend(result.entries)
                session.warnings.extend(result.warnings)
            session.cross_reference = CrossReferenceIndex(entries)
        elif role == FileRole.PARTNER_REPORT:
            entries = []
            for table in tables:
                result = self.normalizer.normalize_partner_report(table)
                entries.extend(result.entries)
                session.warnings.extend(result.warnings)
            session.partner_report = tuple(entries)
        elif role == FileRole.MAP_CONFIGURATION:
            entries = []
            for table in tables:
                result = self.normalizer.normalize_map_configuration(table)
                entries.extend(result.entries)
                session.warnings.extend(result.warnings)
            session.map_configuration = tuple(entries)


@lru_cache(maxsize=1)
def get_analysis_service() -> AnalysisService:
    """
    Return a singleton analysis service instance.
    """

    return AnalysisService()
