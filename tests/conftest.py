from pathlib import Path

import pytest

from assessment_flow.evaluator import VisibilityEvaluator
from assessment_flow.reachability import ReachabilityAnalyzer
from assessment_flow.store import AssessmentStore
from assessment_flow.traversal import TraversalResolver

# Sample documents shipped with the repo
ASSESSMENT_DIR = Path(__file__).resolve().parent.parent / "assessments"


@pytest.fixture
def evaluator():
    """Fresh VisibilityEvaluator for each test."""
    return VisibilityEvaluator()


@pytest.fixture
def resolver():
    return TraversalResolver()


@pytest.fixture
def analyzer():
    return ReachabilityAnalyzer()


@pytest.fixture(scope="session")
def store():
    """Load the bundled assessments once for the entire test session."""
    s = AssessmentStore(ASSESSMENT_DIR)
    s.load()
    return s


@pytest.fixture
def health_intake(store):
    return store.get("health-intake")


@pytest.fixture
def pet_survey(store):
    return store.get("pet-survey")
