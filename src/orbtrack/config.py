"""Request defaults and limits, overridable from the environment."""

from __future__ import annotations

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from orbtrack.core.errors import InvalidParameters
from orbtrack.utils.constants import (
    DEFAULT_MAX_PASS_SAMPLES,
    DEFAULT_MIN_ELEVATION_DEG,
    DEFAULT_PASS_DURATION_MIN,
    DEFAULT_PASS_STEP_S,
    DEFAULT_SNAPSHOT_LIMIT,
)

ENV_PREFIX = "ORBTRACK_"


class Settings(BaseSettings):
    """Defaults applied to requests that leave a parameter unset.

    Each field can be overridden by the matching ``ORBTRACK_*`` environment
    variable, e.g. ``ORBTRACK_SNAPSHOT_LIMIT=50``.

    Attributes:
        snapshot_limit: Maximum objects in a positions snapshot.
        pass_duration_min: Pass search window in minutes.
        pass_step_s: Pass sampling step in seconds.
        min_elevation_deg: Pass elevation threshold in degrees.
        max_pass_samples: Largest ``duration / step`` a pass request may ask for.
        refine_passes: Refine rise/set instants between samples.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    snapshot_limit: int = Field(default=DEFAULT_SNAPSHOT_LIMIT, ge=0)
    pass_duration_min: float = DEFAULT_PASS_DURATION_MIN
    pass_step_s: float = Field(default=DEFAULT_PASS_STEP_S, gt=0)
    min_elevation_deg: float = Field(default=DEFAULT_MIN_ELEVATION_DEG, ge=-90.0, le=90.0)
    max_pass_samples: int = Field(default=DEFAULT_MAX_PASS_SAMPLES, gt=0)
    refine_passes: bool = False

    @classmethod
    def from_env(cls) -> Settings:
        """Read settings from the process environment.

        Raises:
            InvalidParameters: If a variable is set to an invalid value.
        """
        try:
            return cls()
        except ValidationError as exc:
            names = ", ".join(ENV_PREFIX + str(error["loc"][0]).upper() for error in exc.errors())
            raise InvalidParameters(f"invalid setting {names}: {exc}") from None
