"""Runtime settings and the per-render filter configuration."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Execution limits
    STAGE_TIMEOUT: float = 30.0  # Seconds per stage
    MAX_PIXELS: int = 4096 * 4096  # Largest working extent a stage may produce

    # Logging
    LOG_LEVEL: str = "WARNING"

    # Display surface used when the caller passes no explicit view size
    DEFAULT_VIEW_SIZE: tuple[int, int] | None = None

    model_config = {"env_prefix": "IMAGEPOST_"}


settings = Settings()


class FilterConfig(BaseModel):
    """Control state of a single render.

    Built fresh from the current slider and switch values for every run.
    Instances are immutable, use :meth:`with_changes` to derive a new one.

    Example:
        >>> config = FilterConfig(blur_radius=5.0, bloom_enabled=True)
        >>> config.with_changes(bloom_enabled=False).bloom_enabled
        False
    """

    model_config = ConfigDict(frozen=True, extra='forbid')

    blur_radius: float = Field(default=0.0)
    tiled_enabled: bool = False
    bloom_enabled: bool = False
    gloom_enabled: bool = False
    pixellate_enabled: bool = False

    @field_validator('blur_radius')
    @classmethod
    def _clamp_radius(cls, value: float) -> float:
        """Clamp negative slider values to zero."""
        if math.isnan(value) or value == math.inf:
            raise ValueError("blur_radius has to be a finite number")
        return max(0.0, value)

    def with_changes(self, **changes: Any) -> FilterConfig:
        """Return a copy with the given fields replaced (validated)."""
        data = self.model_dump()
        data.update(changes)
        return FilterConfig(**data)

    def is_enabled(self, gate: str | None) -> bool:
        """Return the state of a gate, ``None`` stands for always on."""
        if gate is None:
            return True
        return bool(getattr(self, gate))
