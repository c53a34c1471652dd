"""AssessmentStore — loads assessment documents into typed models.

Documents are YAML (``.yaml``/``.yml``) or JSON (``.json``) files holding a
single assessment each.  The store is read-only: authoring and persistence
belong to the host application.

Usage::

    store = AssessmentStore()       # defaults to the nearest assessments/ directory
    store.load()                    # parse every document in the directory

    assessment = store.get("health-intake")
    step = assessment.get_step(assessment.first_step_id())

``parse_assessment`` / ``dump_assessment`` convert between plain documents
and models; a dump → parse cycle yields an equivalent assessment.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import yaml

from assessment_flow.config import load_settings
from assessment_flow.models.assessment import Assessment

logger = logging.getLogger(__name__)

DOCUMENT_SUFFIXES = (".yaml", ".yml", ".json")


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def default_assessment_dir(start: Optional[Path] = None) -> Path:
    """Nearest ``assessments/`` directory at or above *start*.

    *start* is a directory and defaults to this package; when no ancestor
    holds an ``assessments/`` directory the result is ``./assessments``.
    """
    origin = start or Path(__file__).resolve().parent
    for parent in [origin, *origin.parents]:
        candidate = parent / "assessments"
        if candidate.is_dir():
            return candidate
    return Path.cwd() / "assessments"


def load_document(path: Path | str) -> dict[str, Any]:
    """Load one YAML or JSON document; it must hold a mapping.

    Raises:
        ValueError: for an unsupported suffix or a non-mapping document.
        FileNotFoundError: if *path* does not exist.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in DOCUMENT_SUFFIXES:
        raise ValueError(f"Unsupported document type '{suffix}': {path}")
    if not path.exists():
        raise FileNotFoundError(f"Missing document: {path}")

    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f) if suffix == ".json" else yaml.safe_load(f)

    if not isinstance(raw, dict):
        raise ValueError(f"Document {path} must contain a mapping, got {type(raw).__name__}")
    return raw


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

def parse_assessment(raw: dict[str, Any]) -> Assessment:
    """Validate a plain document into an :class:`Assessment`.

    Raises:
        pydantic.ValidationError: if the document does not fit the schema.
    """
    return Assessment.model_validate(raw)


def dump_assessment(assessment: Assessment) -> dict[str, Any]:
    """Plain document form (camelCase keys, compact conditions)."""
    return assessment.model_dump(by_alias=True, exclude_none=True)


def dump_assessment_yaml(assessment: Assessment) -> str:
    return yaml.safe_dump(dump_assessment(assessment), sort_keys=False, allow_unicode=True)


def load_assessment(path: Path | str) -> Assessment:
    """Load and parse a single assessment document."""
    return parse_assessment(load_document(path))


# ---------------------------------------------------------------------------
# AssessmentStore
# ---------------------------------------------------------------------------

class AssessmentStore:
    """Loads every document in a directory and provides lookup by id.

    Attributes populated after :meth:`load`:

        assessments — dict[id, Assessment], in file-name order
        sources     — dict[id, Path] the document each assessment came from
    """

    def __init__(self, assessment_dir: str | Path | None = None) -> None:
        if assessment_dir is None:
            assessment_dir = load_settings().assessment_dir or default_assessment_dir()
        self._base = Path(assessment_dir)

        # Populated by load()
        self.assessments: dict[str, Assessment] = {}
        self.sources: dict[str, Path] = {}

    @property
    def directory(self) -> Path:
        return self._base

    def load(self) -> None:
        """Parse all documents under the directory.

        Raises ``FileNotFoundError`` if the directory is missing and
        ``ValueError`` if two documents share an assessment id.
        """
        if not self._base.is_dir():
            raise FileNotFoundError(f"Missing assessment directory: {self._base}")

        for path in sorted(self._base.iterdir()):
            if path.suffix.lower() not in DOCUMENT_SUFFIXES:
                continue
            assessment = load_assessment(path)
            if assessment.id in self.assessments:
                raise ValueError(
                    f"Duplicate assessment id '{assessment.id}' in {path} "
                    f"(already loaded from {self.sources[assessment.id]})"
                )
            self.assessments[assessment.id] = assessment
            self.sources[assessment.id] = path

        logger.info(
            "AssessmentStore loaded %d assessment(s) from %s",
            len(self.assessments),
            self._base,
        )

    def get(self, assessment_id: str) -> Assessment:
        """Look up an assessment by id.

        Raises:
            KeyError: if no document declares that id.
        """
        return self.assessments[assessment_id]

    def list_ids(self) -> list[str]:
        return list(self.assessments)
