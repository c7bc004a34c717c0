"""Evidence Ledger CLI using Typer and Rich.

Bundle files used by ``assess`` and ``sweep`` are JSON documents:

    {
      "evidence": [{"id": "ev-1", "evidenceTier": "GOVERNMENT", "caseId": "c-1", ...}],
      "custody": [{"evidenceId": "ev-1", "action": "UPLOADED", "timestamp": "...", ...}],
      "documents": {"ev-1": "raw document text"}
    }

Evidence entries may omit trust fields; they default to the tier's base trust.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import pydantic
import typer
from pydantic.alias_generators import to_camel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from evidence_ledger import __version__
from evidence_ledger.analysis.extraction.fact_extractor import FactExtractionEngine
from evidence_ledger.analysis.trust.minting_scorer import MintingEligibilityScorer
from evidence_ledger.analysis.trust.scientific_trust import ScientificTrustEngine
from evidence_ledger.analysis.trust.trust_calculator import TrustScoreCalculator
from evidence_ledger.compliance.integrity import classify_authenticity, validate_custody_handling
from evidence_ledger.config.logging import get_logger, logger as root_logger
from evidence_ledger.config.settings import settings
from evidence_ledger.config.tier_profiles import TIER_PROFILES, profile_for
from evidence_ledger.data_management.schemas import (
    ChainOfCustodyEntry,
    Evidence,
    EvidenceTier,
)
from evidence_ledger.exceptions import EvidenceLedgerError, ValidationError
from evidence_ledger.pipeline.contradiction_sweep import ContradictionSweep
from evidence_ledger.pipeline.evidence_service import EvidenceService
from evidence_ledger.utils.log_buffer import LogBuffer

app = typer.Typer(
    help="Evidence Ledger CLI - trust scoring, fact extraction and contradiction detection",
    add_completion=False,
)

console = Console()

logger = get_logger("cli")

Bundle = Tuple[List[Evidence], Dict[str, List[ChainOfCustodyEntry]], Dict[str, str]]


def _fail(error: Exception) -> None:
    console.print(f"[red]✗[/red] Error: {error}")
    raise typer.Exit(code=1)


def _mark(passed: bool) -> str:
    return "[green]✓[/green]" if passed else "[red]✗[/red]"


def _evidence_from_raw(raw: Dict[str, Any]) -> Evidence:
    tier = raw.get("evidenceTier", raw.get("evidence_tier"))
    if not tier:
        raise ValidationError("Bundle evidence is missing evidenceTier", field="evidence_tier")
    base = profile_for(tier).base_trust
    raw = dict(raw)
    for name in ("trust_score", "original_trust_score"):
        if name not in raw and to_camel(name) not in raw:
            raw[name] = base
    return Evidence.model_validate(raw)


def load_bundle(path: Path) -> Bundle:
    """
    Read a bundle file.

    Returns:
        (evidence, custody by evidence id, documents by evidence id)

    Raises:
        ValidationError: On unreadable JSON or invalid records.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValidationError(f"Cannot read bundle {path}: {e}") from e

    try:
        evidence = [_evidence_from_raw(raw) for raw in data.get("evidence", [])]
        custody: Dict[str, List[ChainOfCustodyEntry]] = {e.id: [] for e in evidence}
        for raw in data.get("custody", []):
            entry = ChainOfCustodyEntry.model_validate(raw)
            custody.setdefault(entry.evidence_id, []).append(entry)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid bundle record: {e}") from e

    documents = {str(k): str(v) for k, v in data.get("documents", {}).items()}
    return evidence, custody, documents


@app.command()
def status() -> None:
    """
    Display ledger configuration.

    Shows logging, trust decay, minting and detection settings.
    """
    logger.info("Displaying ledger status")

    table = Table(title=f"Evidence Ledger {__version__}", show_header=True, header_style="bold magenta")
    table.add_column("Component", style="cyan", width=20)
    table.add_column("Status", style="green", width=15)
    table.add_column("Details", style="yellow")

    table.add_row("Logging", "✓ Active", f"Level: {settings.log_level}, Format: {settings.log_format}")
    table.add_row("Trust Decay", "✓ Linear", f"{settings.default_degradation_rate:.4f} per hour")
    table.add_row("Minting", "✓ 6-axis", f"Threshold: {settings.minting_threshold:.2f}")
    table.add_row(
        "Detection",
        "✓ Active",
        f"Facts ≥ {settings.extraction_minimum_confidence:.2f}, "
        f"contradictions ≥ {settings.contradiction_minimum_confidence:.2f}",
    )
    persistence = settings.persistence_dir
    table.add_row(
        "Persistence",
        "✓ JSON" if persistence else "⚠ Memory only",
        persistence or "Set PERSISTENCE_DIR to keep store contents",
    )

    console.print(table)


@app.command()
def tiers() -> None:
    """List evidence tiers with their scoring constants."""
    table = Table(title="Evidence Tiers", show_header=True, header_style="bold magenta")
    table.add_column("Tier", style="cyan")
    table.add_column("Base Trust", justify="right")
    table.add_column("Source Pts", justify="right")
    table.add_column("Prior", justify="right")
    table.add_column("Authentication", style="yellow")

    for tier in EvidenceTier.ordered():
        profile = TIER_PROFILES[tier]
        classification = classify_authenticity(tier)
        table.add_row(
            tier.value,
            f"{profile.base_trust:.2f}",
            str(profile.source_points),
            f"{profile.prior:.2f}",
            f"{classification.rule.value} {_mark(classification.sufficient)}",
        )

    console.print(table)


@app.command()
def extract(
    file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text document to analyze"),
    tier: EvidenceTier = typer.Option(EvidenceTier.BUSINESS_RECORDS, help="Evidence tier of the document"),
    min_confidence: Optional[float] = typer.Option(
        None, "--min-confidence", min=0.0, max=1.0, help="Minimum fact confidence"
    ),
    evidence_id: Optional[str] = typer.Option(None, help="Evidence id (defaults to file stem)"),
) -> None:
    """
    Extract atomic facts from a text document.

    Args:
        file: Path to a UTF-8 text file
        tier: Evidence tier, which enables tier-specific passes
        min_confidence: Facts below this confidence are dropped
    """
    logger.info(f"Extract command invoked: {file}", tier=tier.value)

    config = {}
    if min_confidence is not None:
        config["minimum_confidence"] = min_confidence

    try:
        text = file.read_bytes()
        facts = FactExtractionEngine().extract(
            {"id": evidence_id or file.stem, "evidence_tier": tier, "file_type": file.suffix.lstrip(".")},
            text,
            config,
        )
    except EvidenceLedgerError as e:
        _fail(e)

    table = Table(title=f"Facts: {file.name}", show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Content")
    table.add_column("Confidence", justify="right", style="green")
    table.add_column("Source", style="dim")

    for i, fact in enumerate(facts, 1):
        table.add_row(
            str(i),
            fact.fact_type.value,
            fact.content,
            f"{fact.confidence_score:.2f}",
            fact.source or "",
        )

    console.print(table)
    console.print(f"\n[green]✓[/green] {len(facts)} facts extracted")


@app.command()
def assess(
    bundle: Path = typer.Argument(..., exists=True, dir_okay=False, help="Evidence bundle (JSON)"),
    reasons: bool = typer.Option(False, "--reasons", help="Show per-axis minting reasons"),
) -> None:
    """
    Score every evidence item in a bundle.

    Shows current trust, minting eligibility, the Bayesian assessment and a
    custody handling review side by side.
    """
    try:
        evidence, custody, _ = load_bundle(bundle)
    except EvidenceLedgerError as e:
        _fail(e)

    calculator = TrustScoreCalculator()
    scorer = MintingEligibilityScorer()
    engine = ScientificTrustEngine()

    table = Table(title=f"Assessment: {bundle.name}", show_header=True, header_style="bold magenta")
    table.add_column("Evidence", style="cyan")
    table.add_column("Tier")
    table.add_column("Trust", justify="right")
    table.add_column("Minting", justify="right")
    table.add_column("Bayesian", justify="right")
    table.add_column("Custody")
    table.add_column("Review", justify="center")

    details = []
    for item in evidence:
        chain = custody.get(item.id, [])
        try:
            trust = calculator.current_trust_score(item)
            eligibility = scorer.score(item, chain)
            assessment = engine.generate(item, chain)
        except EvidenceLedgerError as e:
            _fail(e)
        handling = validate_custody_handling(chain)

        low, high = assessment.error_bounds
        table.add_row(
            item.artifact_id or item.id,
            item.evidence_tier.value,
            trust,
            f"{eligibility.score} {_mark(eligibility.eligible)}",
            f"{assessment.final_score:.2f} [{low:.2f}-{high:.2f}]",
            "✓" if handling.compliant else f"⚠ {len(handling.violations)}",
            "⚠" if assessment.expert_review_required else "",
        )
        details.append((item, eligibility))

    console.print(table)

    if reasons:
        for item, eligibility in details:
            lines = "\n".join(
                f"[green]{r}[/green]" if r.startswith("✓") else f"[red]{r}[/red]"
                for r in eligibility.reasons
            )
            console.print(Panel(lines, title=item.artifact_id or item.id, border_style="cyan"))


async def _run_sweep(
    bundle: Bundle,
    case_id: Optional[str],
    max_pairs: Optional[int],
) -> Tuple[Any, List[Any]]:
    evidence, custody, documents = bundle
    service = EvidenceService()
    for item in evidence:
        await service.evidence_store.restore_evidence(item, custody.get(item.id, []))
    for evidence_id, text in documents.items():
        await service.extract_and_store_facts(evidence_id, text)

    stats = await ContradictionSweep(service).run(case_id, max_pairs=max_pairs)
    records = await service.contradiction_store.list_contradictions(active_only=True)
    return stats, records


@app.command()
def sweep(
    bundle: Path = typer.Argument(..., exists=True, dir_okay=False, help="Evidence bundle (JSON)"),
    case: Optional[str] = typer.Option(None, "--case", help="Only sweep evidence of this case"),
    max_pairs: Optional[int] = typer.Option(None, "--max-pairs", min=0, help="Cap on compared pairs"),
    show_log: int = typer.Option(0, "--show-log", min=0, help="Print the N most recent log entries"),
) -> None:
    """
    Extract facts from bundle documents and sweep for contradictions.

    Args:
        bundle: Evidence bundle with documents keyed by evidence id
        case: Case to sweep (all evidence if omitted)
        max_pairs: Maximum evidence pairs compared
    """
    logger.info("Sweep command invoked", case_id=case)

    buffer = LogBuffer()
    buffer.attach(root_logger)
    try:
        stats, records = asyncio.run(_run_sweep(load_bundle(bundle), case, max_pairs))
    except EvidenceLedgerError as e:
        _fail(e)
    finally:
        buffer.detach()

    summary = Table(title="Sweep", show_header=False)
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right", style="yellow")
    summary.add_row("Evidence", str(stats.evidence_count))
    summary.add_row("Pairs compared", f"{stats.pairs_compared}/{stats.pairs_total}")
    summary.add_row("Batches", str(stats.batches))
    summary.add_row("Contradictions", str(stats.contradictions_recorded))
    if stats.capped:
        summary.add_row("Capped", "⚠ yes")
    console.print(summary)

    if records:
        table = Table(title="Active Contradictions", show_header=True, header_style="bold magenta")
        table.add_column("Code", style="cyan")
        table.add_column("Type")
        table.add_column("Severity")
        table.add_column("Evidence")
        table.add_column("Description")
        for record in records:
            table.add_row(
                record.conflict_id or record.id,
                record.contradiction_type.value,
                record.severity.value,
                f"{record.evidence_id1} / {record.evidence_id2}",
                record.description,
            )
        console.print(table)
    else:
        console.print("[green]✓[/green] No contradictions detected")

    if show_log:
        for entry in buffer.entries(limit=show_log):
            console.print(f"[dim]{entry.timestamp:%H:%M:%S} {entry.level:<8} {entry.message}[/dim]")


if __name__ == "__main__":
    app()
