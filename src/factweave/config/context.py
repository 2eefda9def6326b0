"""Feature flags and tuning knobs for the context reconciliation core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from .env import env_flag, env_float
from .errors import ConfigurationError

ENABLED_ENV: Final[str] = "CONTEXT_V4_ENABLED"
INGEST_WEBSITE_LAB_ENV: Final[str] = "CONTEXT_V4_INGEST_WEBSITELAB"
INGEST_BRAND_LAB_ENV: Final[str] = "CONTEXT_V4_INGEST_BRANDLAB"
INGEST_COMPETITION_LAB_ENV: Final[str] = "CONTEXT_V4_INGEST_COMPETITIONLAB"
INGEST_GAP_PLAN_ENV: Final[str] = "CONTEXT_V4_INGEST_GAPPLAN"
AUTOPROPOSE_ENABLED_ENV: Final[str] = "CONTEXT_V4_AUTOPROPOSE_ENABLED"
DEBOUNCE_SECONDS_ENV: Final[str] = "CONTEXT_V4_AUTOPROPOSE_DEBOUNCE_SECONDS"
RUN_STALE_HOURS_ENV: Final[str] = "CONTEXT_V4_RUN_STALE_HOURS"
REPLACE_DELTA_ENV: Final[str] = "CONTEXT_V4_REPLACE_CONFIDENCE_DELTA"

DEFAULT_DEBOUNCE_SECONDS: Final[float] = 300.0
DEFAULT_RUN_STALE_HOURS: Final[float] = 24.0 * 7
DEFAULT_REPLACE_CONFIDENCE_DELTA: Final[float] = 0.0


@dataclass(frozen=True, slots=True, kw_only=True)
class ContextConfig:
    """Switches controlling which parts of the reconciliation core are live."""

    enabled: bool = False
    ingest_website_lab: bool = False
    ingest_brand_lab: bool = False
    ingest_competition_lab: bool = False
    ingest_gap_plan: bool = False
    autopropose_enabled: bool = False
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS
    run_stale_hours: float = DEFAULT_RUN_STALE_HOURS
    replace_confidence_delta: float = DEFAULT_REPLACE_CONFIDENCE_DELTA

    def __post_init__(self) -> None:
        if self.debounce_seconds < 0:
            raise ConfigurationError("debounce_seconds must be non-negative")
        if self.run_stale_hours <= 0:
            raise ConfigurationError("run_stale_hours must be positive")
        if not 0.0 <= self.replace_confidence_delta <= 1.0:
            raise ConfigurationError("replace_confidence_delta must be within [0, 1]")

    def ingest_enabled(self, importer_id: str) -> bool:
        """Return whether ``importer_id`` may write proposals into the store."""

        if not self.enabled:
            return False
        flags = {
            "website_lab": self.ingest_website_lab,
            "brand_lab": self.ingest_brand_lab,
            "competition_lab": self.ingest_competition_lab,
            "gap_plan": self.ingest_gap_plan,
        }
        return flags.get(importer_id, False)


def get_context_config() -> ContextConfig:
    return ContextConfig(
        enabled=env_flag(ENABLED_ENV),
        ingest_website_lab=env_flag(INGEST_WEBSITE_LAB_ENV),
        ingest_brand_lab=env_flag(INGEST_BRAND_LAB_ENV),
        ingest_competition_lab=env_flag(INGEST_COMPETITION_LAB_ENV),
        ingest_gap_plan=env_flag(INGEST_GAP_PLAN_ENV),
        autopropose_enabled=env_flag(AUTOPROPOSE_ENABLED_ENV),
        debounce_seconds=env_float(DEBOUNCE_SECONDS_ENV, default=DEFAULT_DEBOUNCE_SECONDS),
        run_stale_hours=env_float(RUN_STALE_HOURS_ENV, default=DEFAULT_RUN_STALE_HOURS),
        replace_confidence_delta=env_float(
            REPLACE_DELTA_ENV, default=DEFAULT_REPLACE_CONFIDENCE_DELTA
        ),
    )
