"""Shorthand builders for assessment documents used across the tests.

Assessments are built as plain documents and parsed through
``parse_assessment`` so every test also exercises the document schema.
"""

from typing import Any, Optional

from assessment_flow.models.assessment import Assessment
from assessment_flow.store import parse_assessment


def goto(step_id: str) -> dict:
    """Shorthand for a step destination."""
    return {"type": "step", "id": step_id}


def end() -> dict:
    return {"type": "end"}


def rule(when: dict, go: dict) -> dict:
    """Shorthand for a traversal rule."""
    return {"when": when, "go": go}


def field(name: str, **kwargs: Any) -> dict:
    return {"name": name, **kwargs}


def make_document(
    layout: list[list[str]],
    steps: Optional[dict[str, dict]] = None,
    assessment_id: str = "test-assessment",
) -> dict:
    """Build a raw assessment document.

    Args:
        layout: one list of step ids per group, in order
        steps: per-step overrides (fields, traversal, fallbackNext, ...);
            ids listed here but absent from ``layout`` become orphan steps
    """
    steps = steps or {}
    table: dict[str, dict] = {}
    for step_id in [sid for group in layout for sid in group] + list(steps):
        if step_id in table:
            continue
        table[step_id] = {"id": step_id, "title": step_id.upper(), **steps.get(step_id, {})}

    return {
        "id": assessment_id,
        "title": "Test Assessment",
        "groups": [
            {"id": f"g{i + 1}", "title": f"Group {i + 1}", "steps": [{"id": sid} for sid in group]}
            for i, group in enumerate(layout)
        ],
        "steps": table,
    }


def make_assessment(
    layout: list[list[str]],
    steps: Optional[dict[str, dict]] = None,
    assessment_id: str = "test-assessment",
) -> Assessment:
    """Build and parse an assessment (see :func:`make_document`)."""
    return parse_assessment(make_document(layout, steps, assessment_id))
