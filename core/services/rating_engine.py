"""
Evidence-to-rating analysis engine.

Orchestrates one condition analysis end to end:
select -> aggregate -> evaluate -> explain. Each analysis is a pure function
of (condition key, observation snapshot), so results are reproducible and
batches can run concurrently without shared state.
"""

import asyncio
from collections.abc import Iterable, Sequence
from datetime import datetime

import structlog

from core.config import AnalysisConfig
from core.domain.models import (
    AnalysisResult,
    AnalysisStatus,
    ConditionKey,
    EvidenceSummary,
    Measurement,
    ObservationEntry,
)
from core.services.combined_rating import combine_ratings_detailed
from core.services.log_selector import select_entries
from core.services.observation_store import ObservationStore
from core.services.rating_evaluator import evaluate
from core.services.rationale import build_gaps, build_rationale
from core.services.registry import ConditionModule, ConditionRegistry

logger = structlog.get_logger(__name__)


class RatingEngine:
    """
    Runs condition modules from a registry against observation snapshots.

    Failure handling:
    - Unknown condition keys produce an ``unsupported`` result
    - A module that raises produces an ``error`` result; other conditions
      in the same batch are unaffected
    """

    def __init__(self, registry: ConditionRegistry, config: AnalysisConfig | None = None) -> None:
        self.registry = registry
        self.config = config or AnalysisConfig()
        self.logger = logger.bind(component="rating_engine")

    def analyze(
        self,
        condition: str | ConditionKey,
        entries: Iterable[ObservationEntry],
        measurements: Iterable[Measurement] = (),
        as_of: datetime | None = None,
    ) -> AnalysisResult:
        key = condition.value if isinstance(condition, ConditionKey) else condition
        module = self.registry.get(key)
        if module is None:
            self.logger.warning("unsupported_condition", condition=key)
            return AnalysisResult(condition=key, status=AnalysisStatus.UNSUPPORTED, has_data=False)

        try:
            result = self._run_module(module, entries, measurements, as_of)
        except Exception as e:
            self.logger.exception("analysis_failed", condition=key, error=str(e))
            return AnalysisResult(
                condition=key,
                status=AnalysisStatus.ERROR,
                has_data=False,
                condition_name=module.name,
                diagnostic_code=module.diagnostic_code,
            )

        self.logger.info(
            "analysis_completed",
            condition=key,
            status=result.status.value,
            matched_entries=result.matched_entries,
            supported_rating=result.supported_rating,
        )
        return result

    def _run_module(
        self,
        module: ConditionModule,
        entries: Iterable[ObservationEntry],
        measurements: Iterable[Measurement],
        as_of: datetime | None,
    ) -> AnalysisResult:
        selection = select_entries(
            module.key,
            entries,
            tags=module.symptom_tags,
            payload_kinds=module.payload_kinds,
            period_days=self.config.period_for(module.evaluation_period_days),
            as_of=as_of,
            measurements=measurements,
            measurement_types=module.measurement_types,
        )
        metadata = {
            "condition_name": module.name,
            "diagnostic_code": module.diagnostic_code,
            "matched_entries": len(selection.entries),
            "window_start": selection.window_start,
            "window_end": selection.window_end,
        }
        if selection.is_empty:
            return AnalysisResult(
                condition=module.key, status=AnalysisStatus.NO_DATA, has_data=False, **metadata
            )

        metrics = module.aggregate(selection, self.config)
        decision = evaluate(module.criteria, metrics)
        return AnalysisResult(
            condition=module.key,
            status=AnalysisStatus.ANALYZED,
            has_data=True,
            supported_rating=decision.percent,
            rating_rationale=build_rationale(
                decision, metrics, module.highlights, module.diagnostic_code
            ),
            gaps=build_gaps(decision, metrics),
            metrics=metrics,
            **metadata,
        )

    def analyze_each(
        self,
        entries: Iterable[ObservationEntry],
        measurements: Iterable[Measurement] = (),
        as_of: datetime | None = None,
    ) -> dict[str, AnalysisResult]:
        """Analyze every registered condition, keyed in registry order."""
        snapshot, readings = tuple(entries), tuple(measurements)
        return {key: self.analyze(key, snapshot, readings, as_of) for key in self.registry.keys()}

    def analyze_all(
        self,
        entries: Iterable[ObservationEntry],
        measurements: Iterable[Measurement] = (),
        as_of: datetime | None = None,
    ) -> EvidenceSummary:
        return self.summarize(self.analyze_each(entries, measurements, as_of))

    async def analyze_all_async(
        self,
        entries: Iterable[ObservationEntry],
        measurements: Iterable[Measurement] = (),
        as_of: datetime | None = None,
    ) -> EvidenceSummary:
        """
        Concurrent variant of ``analyze_all``.

        Analyses run in worker threads under a TaskGroup, bounded by
        ``max_concurrent_analyses``. Output matches ``analyze_all`` exactly.
        """
        snapshot, readings = tuple(entries), tuple(measurements)
        semaphore = asyncio.Semaphore(self.config.max_concurrent_analyses)

        async def run(key: str) -> AnalysisResult:
            async with semaphore:
                return await asyncio.to_thread(self.analyze, key, snapshot, readings, as_of)

        async with asyncio.TaskGroup() as task_group:
            tasks = {key: task_group.create_task(run(key)) for key in self.registry.keys()}

        return self.summarize({key: task.result() for key, task in tasks.items()})

    def summarize(self, results: dict[str, AnalysisResult]) -> EvidenceSummary:
        """Combine per-condition results into an evidence summary."""
        combined = combine_ratings_detailed(
            (key, r.supported_rating) for key, r in results.items() if r.supported_rating
        )
        self.logger.info(
            "evidence_summary_completed",
            conditions=len(results),
            with_data=sum(1 for r in results.values() if r.has_data),
            combined_rating=combined.combined_rating,
        )
        return EvidenceSummary.from_results(results, combined)

    async def summarize_store(
        self, store: ObservationStore, as_of: datetime | None = None
    ) -> EvidenceSummary:
        """Pull a snapshot from a store and analyze every condition."""
        entries: Sequence[ObservationEntry] = await store.list_entries()
        measurements: Sequence[Measurement] = await store.list_measurements()
        return await self.analyze_all_async(entries, measurements, as_of)
