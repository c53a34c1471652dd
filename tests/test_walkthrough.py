"""Fuzz test: random respondent walks through every bundled assessment.

For each assessment in ``assessments/``, simulates a respondent answering
every step with random but valid answers.  Verifies that:

  1. The walk always terminates (no infinite loops)
  2. Every destination is ``end`` or a step present in the table
  3. Every visited step is in the reachable set from ``analyze``
  4. Stepping back through the whole walk retraces the history exactly

Random choices use fixed seeds (``random.Random(seed)``) for reproducibility.
"""

import random

import pytest

from assessment_flow.models.assessment import EndDestination, StepDestination
from assessment_flow.reachability import analyze
from assessment_flow.session import AssessmentSession

# Number of random walks per assessment.
NUM_RANDOM_RUNS = 100

# Safety limit to detect cycles (a real assessment finishes far sooner).
MAX_STEPS = 200

BUNDLED = ["health-intake", "pet-survey"]


# =====================================================================
# Helper functions
# =====================================================================


def _random_answer(rng, field):
    """Generate a random answer that passes required-field validation."""
    options = [o.value for o in field.options or []]

    if field.type == "checkbox":
        if options:
            return rng.sample(options, rng.randint(1, len(options)))
        # A required toggle has to be ticked; optional toggles go either way
        return True if field.required else rng.choice([True, False])

    if field.type in ("select", "radio") and options:
        return rng.choice(options)

    if field.type == "number":
        return rng.randint(1, 90)

    return "random text"


def _walk(assessment, seed):
    rng = random.Random(seed)
    session = AssessmentSession(assessment)
    destinations = []

    while not session.is_complete:
        assert len(session.history) < MAX_STEPS, (
            f"{assessment.id} seed={seed}: walk exceeded {MAX_STEPS} steps"
        )
        step = session.current_step
        answers = {f.name: _random_answer(rng, f) for f in step.fields}
        destinations.append(session.submit(answers))

    return session, destinations


# =====================================================================
# Walkthrough
# =====================================================================


@pytest.mark.parametrize("assessment_id", BUNDLED)
class TestRandomWalks:

    def test_walks_terminate_at_known_steps(self, store, assessment_id):
        assessment = store.get(assessment_id)
        for seed in range(NUM_RANDOM_RUNS):
            _, destinations = _walk(assessment, seed)
            assert isinstance(destinations[-1], EndDestination)
            for dest in destinations[:-1]:
                assert isinstance(dest, StepDestination)
                assert dest.id in assessment.steps, f"seed={seed}: unknown step {dest.id}"

    def test_visited_steps_are_reachable(self, store, assessment_id):
        assessment = store.get(assessment_id)
        reachable = analyze(assessment).reachable
        for seed in range(NUM_RANDOM_RUNS):
            session, _ = _walk(assessment, seed)
            assert set(session.history) <= reachable

    def test_back_retraces_history(self, store, assessment_id):
        assessment = store.get(assessment_id)
        for seed in range(0, NUM_RANDOM_RUNS, 10):
            session, _ = _walk(assessment, seed)
            visited = list(session.history)
            for expected in reversed(visited):
                assert session.back().id == expected
            assert session.current_step_id == assessment.first_step_id()


def test_walks_cover_every_step(store):
    """Across all seeds, each step of the bundled assessments is visited."""
    for assessment_id in BUNDLED:
        assessment = store.get(assessment_id)
        seen = set()
        for seed in range(NUM_RANDOM_RUNS):
            session, _ = _walk(assessment, seed)
            seen.update(session.history)
        assert seen == set(assessment.steps), f"{assessment_id}: never visited {set(assessment.steps) - seen}"
