# ImagePost Filters - Pipeline
"""
Gated filter pipeline.

A pipeline is a fixed, ordered list of stages. Each stage pairs a filter with
the name of the :class:`~imagepost.config.FilterConfig` flag gating it
(``None`` = always applied) and optional bindings which copy live config
values, such as the blur radius, into the filter's parameters.

Every run starts from the given source image, never from an earlier result,
and the final image is always rendered to the source's original extent.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, TYPE_CHECKING

from imagepost.config import FilterConfig, Settings, settings as default_settings
from imagepost.exceptions import (
    EmptyInputError,
    FilterError,
    PipelineError,
    RasterizationError,
    StageTimeoutError,
)
from .base import Filter, FilterContext
from .blur import GaussianBlur
from .glow import Bloom, Gloom
from .output import rasterize
from .pixellate import Pixellate
from .tile import EightfoldReflectedTile

if TYPE_CHECKING:
    from imagepost.image import Image

logger = logging.getLogger(__name__)

APPLIED_STAGES_KEY = 'applied_stages'
"Context key listing the names of the stages applied during a run"

STAGE_TIMINGS_KEY = 'stage_timings'
"Context key mapping stage names to their processing time in milliseconds"


@dataclass
class GatedStage:
    """A filter together with the flag deciding whether it runs.

    :param filter: The filter with its fixed parameters
    :param gate: Name of the FilterConfig flag gating the stage, None if the
        stage always runs
    :param bindings: Maps filter parameters to FilterConfig fields whose
        current values are applied before each run
    """

    filter: Filter
    gate: str | None = None
    bindings: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        config_fields = FilterConfig.model_fields
        if self.gate is not None and self.gate not in config_fields:
            raise ValueError(f"Unknown gate: {self.gate}")
        filter_fields = {f.name for f in dataclasses.fields(self.filter)}
        for param, source in self.bindings.items():
            if param not in filter_fields:
                raise ValueError(f"{self.name} has no parameter {param}")
            if source not in config_fields:
                raise ValueError(f"Unknown config field: {source}")

    @property
    def name(self) -> str:
        return self.filter.type

    def is_enabled(self, config: FilterConfig) -> bool:
        return config.is_enabled(self.gate)

    def resolve(self, config: FilterConfig) -> Filter:
        """Return the filter with all bound parameters taken from ``config``."""
        if not self.bindings:
            return self.filter
        values = {param: getattr(config, source) for param, source in self.bindings.items()}
        return dataclasses.replace(self.filter, **values)

    def to_dict(self) -> dict[str, Any]:
        return {
            'filter': self.filter.to_dict(),
            'gate': self.gate,
            'bindings': dict(self.bindings),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GatedStage:
        return cls(
            filter=Filter.from_dict(data['filter']),
            gate=data.get('gate'),
            bindings=dict(data.get('bindings', {})),
        )


def default_stages() -> list[GatedStage]:
    """The stage sequence of the photo post screen.

    Blur (radius from the slider) always runs first, followed by tiling,
    bloom, gloom and pixellation, each behind its own switch.
    """
    return [
        GatedStage(GaussianBlur(), bindings={'radius': 'blur_radius'}),
        GatedStage(EightfoldReflectedTile(), gate='tiled_enabled'),
        GatedStage(Bloom(radius=30.0), gate='bloom_enabled'),
        GatedStage(Gloom(intensity=0.9), gate='gloom_enabled'),
        GatedStage(Pixellate(scale=24.0), gate='pixellate_enabled'),
    ]


def _call_with_timeout(func: Callable[[], 'Image'], timeout: float | None) -> 'Image':
    """Run ``func`` on a worker thread and wait at most ``timeout`` seconds.

    :raises TimeoutError: If the call did not finish in time. The worker is a
        daemon thread, its late result is dropped.
    """
    if timeout is None or timeout <= 0:
        return func()

    outcome: dict[str, Any] = {}

    def target():
        try:
            outcome['result'] = func()
        except Exception as e:
            outcome['error'] = e

    worker = threading.Thread(target=target, daemon=True, name="PipelineStage")
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise TimeoutError
    if 'error' in outcome:
        raise outcome['error']
    return outcome['result']


@dataclass
class FilterPipeline:
    """Fixed sequence of gated filter stages.

    Example::

        pipeline = FilterPipeline()
        config = FilterConfig(blur_radius=4.0, bloom_enabled=True)
        result = pipeline.run(image, config)

    :param stages: The stages in execution order
    :param settings: Execution limits, the global settings if None
    """

    stages: list[GatedStage] = field(default_factory=default_stages)
    settings: Settings | None = None

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

    def __getitem__(self, index: int) -> GatedStage:
        return self.stages[index]

    def stage(self, gate: str | None) -> GatedStage:
        """Return the (first) stage behind the given gate."""
        for stage in self.stages:
            if stage.gate == gate:
                return stage
        raise KeyError(gate)

    def stages_for(self, config: FilterConfig) -> list[Filter]:
        """Filters which run for ``config``, in order and with bound values applied."""
        return [s.resolve(config) for s in self.stages if s.is_enabled(config)]

    def run(
        self,
        image: 'Image | None',
        config: FilterConfig,
        context: FilterContext | None = None,
    ) -> 'Image':
        """Apply all enabled stages and render to the input's extent.

        :param image: The (scaled) source image
        :param config: Current control state
        :param context: Optional context receiving the applied stage names
            and per-stage timings
        :returns: The rendered image, its extent equals the input's extent
        :raises EmptyInputError: If no image was given, no stage runs then
        :raises FilterError: If a stage failed; later stages are not run
        :raises RasterizationError: If rendering the result failed or a
            stage exceeded its time or size budget
        """
        if image is None:
            raise EmptyInputError()
        limits = self.settings or default_settings
        original_extent = image.extent
        if original_extent.is_empty():
            raise RasterizationError("Input image has no area")

        working = image
        for stage in self.stages:
            if not stage.is_enabled(config):
                logger.debug(f"Skipping {stage.name}, {stage.gate} is off")
                continue
            working = self._run_stage(stage.resolve(config), working, limits, context)

        result = rasterize(working, original_extent)
        logger.debug(
            f"Rendered {result.width}x{result.height} from working extent "
            f"{working.extent.to_int_tuple()}"
        )
        return result

    def _run_stage(
        self,
        stage_filter: Filter,
        image: 'Image',
        limits: Settings,
        context: FilterContext | None,
    ) -> 'Image':
        """Run a single filter within the configured budgets."""
        name = stage_filter.type
        try:
            stage_filter.validate()
        except ValueError as e:
            raise FilterError(name, str(e)) from e

        expected = stage_filter.output_extent(image.extent)
        if expected.area > limits.MAX_PIXELS:
            raise RasterizationError(
                f"{name} would produce {expected.width}x{expected.height} pixels, "
                f"limit is {limits.MAX_PIXELS}"
            )

        start = time.perf_counter()
        try:
            result = _call_with_timeout(
                lambda: stage_filter.apply(image, context), limits.STAGE_TIMEOUT
            )
        except TimeoutError as e:
            raise StageTimeoutError(name, limits.STAGE_TIMEOUT) from e
        except PipelineError:
            raise
        except Exception as e:
            raise FilterError(name, str(e) or e.__class__.__name__) from e
        elapsed = (time.perf_counter() - start) * 1000

        if result is None or result.extent.is_empty():
            raise FilterError(name, "produced no output")
        logger.debug(f"{name}: {elapsed:.2f}ms, extent {result.extent.to_int_tuple()}")
        if context is not None:
            context.append(APPLIED_STAGES_KEY, name)
            context.data.setdefault(STAGE_TIMINGS_KEY, {})[name] = elapsed
        return result

    def to_dict(self) -> dict[str, Any]:
        """Serialize pipeline to dictionary."""
        return {
            'type': 'FilterPipeline',
            'stages': [s.to_dict() for s in self.stages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FilterPipeline:
        """Deserialize pipeline from dictionary."""
        return cls(stages=[GatedStage.from_dict(s) for s in data.get('stages', [])])


_default_pipeline: FilterPipeline | None = None


def run_pipeline(
    image: 'Image | None',
    config: FilterConfig,
    *,
    settings: Settings | None = None,
    context: FilterContext | None = None,
) -> 'Image':
    """Run the default stage sequence on ``image``.

    See :meth:`FilterPipeline.run` for the raised errors.
    """
    global _default_pipeline
    if settings is not None:
        return FilterPipeline(settings=settings).run(image, config, context)
    if _default_pipeline is None:
        _default_pipeline = FilterPipeline()
    return _default_pipeline.run(image, config, context)
