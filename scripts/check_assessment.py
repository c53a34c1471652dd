#!/usr/bin/env python3
"""Check assessment documents for authoring problems.

Loads one document (or every document in a directory), runs the integrity
checks (broken references, shared steps, duplicate fields, unreachable
steps) and prints a report.  Optionally walks each assessment with random
answers to confirm every walk reaches the end.

Exit status is 1 if any issue or failed walk is found, else 0.

Usage::

    # Check the bundled assessments
    python scripts/check_assessment.py assessments/

    # One document, machine-readable output
    python scripts/check_assessment.py assessments/health_intake.yaml --json

    # Also dump the flow graph and run 50 random walks
    python scripts/check_assessment.py assessments/ --graph --walk 50 --seed 7
"""

from __future__ import annotations

import argparse
import json
import logging
import random
import sys
import time
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Ensure the src/ layout is importable when run from a checkout.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from assessment_flow.config import load_settings  # noqa: E402
from assessment_flow.graph import build_flow_graph  # noqa: E402
from assessment_flow.integrity import check_integrity  # noqa: E402
from assessment_flow.models.assessment import Assessment, FormField  # noqa: E402
from assessment_flow.reachability import analyze  # noqa: E402
from assessment_flow.session import AssessmentSession  # noqa: E402
from assessment_flow.store import DOCUMENT_SUFFIXES, load_assessment  # noqa: E402

logger = logging.getLogger("check_assessment")

# Safety limit for random walks; a sound assessment finishes far sooner.
MAX_STEPS = 500


# ---------------------------------------------------------------------------
# Random answers
# ---------------------------------------------------------------------------

def random_value(rng: random.Random, field: FormField) -> Any:
    """A plausible answer for ``field`` that satisfies its required flag."""
    options = [o.value for o in field.options or []]
    if field.type == "checkbox":
        if options:
            return rng.sample(options, rng.randint(1, len(options)))
        return True if field.required else rng.choice([True, False])
    if field.type in ("select", "radio") and options:
        return rng.choice(options)
    if field.type == "number":
        return rng.randint(1, 90)
    if field.type == "bmi":
        return round(rng.uniform(16.0, 35.0), 1)
    if field.type == "date":
        return f"2026-{rng.randint(1, 12):02d}-{rng.randint(1, 28):02d}"
    return "sample answer"


def random_walk(assessment: Assessment, rng: random.Random) -> list[str]:
    """Walk from entry to end with random answers; returns visited step ids."""
    session = AssessmentSession(assessment)
    visited: list[str] = []
    while not session.is_complete:
        if len(visited) >= MAX_STEPS:
            raise RuntimeError(f"Walk exceeded {MAX_STEPS} steps: {visited[-10:]}")
        step = session.current_step
        visited.append(step.id)
        session.submit({f.name: random_value(rng, f) for f in step.fields})
    return visited


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

def collect_paths(target: Path) -> list[Path]:
    if target.is_dir():
        return sorted(p for p in target.iterdir() if p.suffix.lower() in DOCUMENT_SUFFIXES)
    return [target]


def check_one(path: Path, args: argparse.Namespace, rng: random.Random) -> dict[str, Any]:
    assessment = load_assessment(path)
    report = analyze(assessment)
    issues = check_integrity(assessment)

    result: dict[str, Any] = {
        "path": str(path),
        "id": assessment.id,
        "steps": len(assessment.steps),
        "reachable": sorted(report.reachable),
        "unreachable": report.unreachable,
        "issues": [i.model_dump() for i in issues],
        "walk_failures": [],
    }

    for run in range(args.walk):
        try:
            random_walk(assessment, rng)
        except (ValueError, RuntimeError) as exc:
            logger.debug("Walk %d on %s failed", run, assessment.id, exc_info=True)
            result["walk_failures"].append(f"run {run}: {exc}")

    if args.graph:
        result["graph"] = build_flow_graph(assessment, report)
    return result


def print_report(console: Console, results: list[dict[str, Any]]) -> None:
    summary = Table(title="Assessments", show_lines=True)
    summary.add_column("Assessment", min_width=20)
    summary.add_column("Steps", width=6)
    summary.add_column("Unreachable", min_width=12)
    summary.add_column("Issues", width=7)
    summary.add_column("Walk failures", width=14)
    for r in results:
        ok = not r["issues"] and not r["walk_failures"]
        summary.add_row(
            f"[green]{r['id']}[/]" if ok else f"[red]{r['id']}[/]",
            str(r["steps"]),
            ", ".join(r["unreachable"]) or "-",
            str(len(r["issues"])),
            str(len(r["walk_failures"])),
        )
    console.print(summary)

    for r in results:
        if r["issues"]:
            console.rule(f"[red]{r['id']}[/] issues")
            for issue in r["issues"]:
                console.print(f"  [yellow]{issue['code']}[/] {issue['message']}")
        for failure in r["walk_failures"]:
            console.print(f"  [red]walk[/] {failure}")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check assessment documents for authoring problems.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Document or directory (default: ASSESSMENT_DIR or assessments/)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON instead of tables",
    )
    parser.add_argument(
        "--graph",
        action="store_true",
        help="Include the flow graph (nodes/edges) in JSON output",
    )
    parser.add_argument(
        "--walk",
        type=int, default=0,
        help="Number of random walks per assessment (default: 0)",
    )
    parser.add_argument(
        "--seed",
        type=int, default=None,
        help="RNG seed for reproducibility (default: current timestamp)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    settings = load_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    console = Console()

    target = Path(args.path or settings.assessment_dir or _REPO_ROOT / "assessments")
    if not target.exists():
        console.print(f"[red]No such file or directory:[/] {target}")
        return 1

    seed = args.seed if args.seed is not None else int(time.time())
    rng = random.Random(seed)

    results = [check_one(path, args, rng) for path in collect_paths(target)]
    if args.json:
        print(json.dumps({"seed": seed, "results": results}, indent=2, ensure_ascii=False))
    else:
        if args.walk:
            console.print(f"[dim]RNG seed: {seed}[/]")
        print_report(console, results)

    failed = any(r["issues"] or r["walk_failures"] for r in results)
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
