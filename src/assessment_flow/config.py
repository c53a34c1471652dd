"""Engine configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  Hosts typically
override them via env vars or a ``.env`` file loaded before startup.
"""

import os
from dataclasses import dataclass

from assessment_flow.constants import DEFAULT_REQUIRED_MESSAGE


@dataclass(frozen=True)
class EngineSettings:
    """Immutable engine configuration read from environment at startup."""

    # Directory of assessment documents (None → AssessmentStore default,
    # which is assessments/ from the repo root)
    assessment_dir: str | None = None

    # Logging
    log_level: str = "INFO"

    # Message template for missing required fields; receives {label} and {name}
    required_message: str = DEFAULT_REQUIRED_MESSAGE


def load_settings() -> EngineSettings:
    """Build settings from ``ASSESSMENT_*`` environment variables."""
    return EngineSettings(
        assessment_dir=os.getenv("ASSESSMENT_DIR") or None,
        log_level=os.getenv("ASSESSMENT_LOG_LEVEL", "INFO").upper(),
        required_message=os.getenv("ASSESSMENT_REQUIRED_MESSAGE", DEFAULT_REQUIRED_MESSAGE),
    )
