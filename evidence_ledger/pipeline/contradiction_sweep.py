"""Case-wide contradiction sweep.

Compares every pair of evidence items in a case, in batches, and records
what the detector finds. Re-running a sweep over unchanged evidence records
nothing new: an active contradiction with the same type, pair and
description is reused.

Usage:
    sweep = ContradictionSweep(service)
    stats = await sweep.run("case-1", max_pairs=500)

    # Cancellable from another task:
    cancel = asyncio.Event()
    task = asyncio.create_task(sweep.run("case-1", cancel_event=cancel))
    cancel.set()
"""

import asyncio
from dataclasses import asdict, dataclass
from itertools import combinations, islice
from typing import Any, Dict, List, Optional

import structlog

from evidence_ledger.config.settings import settings
from evidence_ledger.exceptions import ValidationError
from evidence_ledger.pipeline.evidence_service import EvidenceService


@dataclass
class SweepStats:
    """Outcome of one sweep run."""

    case_id: Optional[str]
    evidence_count: int = 0
    pairs_total: int = 0
    pairs_compared: int = 0
    batches: int = 0
    contradictions_found: int = 0
    contradictions_recorded: int = 0
    cancelled: bool = False
    capped: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ContradictionSweep:
    """Batched pairwise contradiction detection over one case."""

    def __init__(
        self,
        service: Optional[EvidenceService] = None,
        batch_size: Optional[int] = None,
    ) -> None:
        """Initialize ContradictionSweep.

        Args:
            service: Evidence service whose stores and detector are used.
            batch_size: Pairs compared per batch (settings.sweep_batch_size if None).
        """
        self.service = service or EvidenceService()
        self.batch_size = batch_size or settings.sweep_batch_size
        self._logger = structlog.get_logger().bind(component="ContradictionSweep")

    async def run(
        self,
        case_id: Optional[str],
        max_pairs: Optional[int] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SweepStats:
        """
        Sweep a case for contradictions.

        Cancellation is checked before each batch; pairs already compared
        keep their recorded contradictions.

        Args:
            case_id: Case whose evidence is compared; all evidence when None.
            max_pairs: Maximum pairs compared (settings.sweep_max_pairs if None).
            cancel_event: Set to stop the sweep at the next batch boundary.

        Returns:
            SweepStats for the run.
        """
        if max_pairs is None:
            max_pairs = settings.sweep_max_pairs
        if max_pairs is not None and max_pairs < 0:
            raise ValidationError("max_pairs must not be negative", field="max_pairs")

        evidence = await self.service.evidence_store.list_evidence(case_id)
        n = len(evidence)
        stats = SweepStats(case_id=case_id, evidence_count=n, pairs_total=n * (n - 1) // 2)

        self._logger.info(
            "sweep_started",
            case_id=case_id,
            evidence_count=n,
            pairs_total=stats.pairs_total,
            max_pairs=max_pairs,
        )

        facts = {e.id: await self.service.get_facts(e.id) for e in evidence}
        pairs = combinations(evidence, 2)
        if max_pairs is not None and max_pairs < stats.pairs_total:
            pairs = islice(pairs, max_pairs)
            stats.capped = True

        while True:
            if cancel_event is not None and cancel_event.is_set():
                stats.cancelled = True
                self._logger.info("sweep_cancelled", case_id=case_id, pairs_compared=stats.pairs_compared)
                break

            batch = list(islice(pairs, self.batch_size))
            if not batch:
                break

            results: List = []
            for evidence_a, evidence_b in batch:
                results.extend(
                    self.service.detect_contradictions(
                        evidence_a, evidence_b, facts[evidence_a.id], facts[evidence_b.id]
                    )
                )
            _, created = await self.service.record_contradictions(results)

            stats.batches += 1
            stats.pairs_compared += len(batch)
            stats.contradictions_found += len(results)
            stats.contradictions_recorded += created

            self._logger.debug(
                "batch_complete",
                case_id=case_id,
                batch=stats.batches,
                batch_size=len(batch),
                found=len(results),
            )
            # Let cancellers and other tasks run between batches
            await asyncio.sleep(0)

        await self.service.sync_conflict_counts(e.id for e in evidence)

        self._logger.info("sweep_complete", **stats.to_dict())
        return stats
