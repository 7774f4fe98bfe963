# ImagePost Filters Module
"""
Dataclass-based filter stages and the gated pipeline running them.

All filters are JSON-serializable and registered by name, so they can also
be created from compact strings such as ``'blur 5'``.
"""

from .base import (
    Filter,
    FilterContext,
    FILTER_REGISTRY,
    FILTER_ALIASES,
    register_filter,
    register_alias,
)

from .blur import GaussianBlur
from .tile import EightfoldReflectedTile
from .glow import Bloom, Gloom
from .pixellate import Pixellate
from .output import rasterize

from .pipeline import (
    FilterPipeline,
    GatedStage,
    default_stages,
    run_pipeline,
    APPLIED_STAGES_KEY,
    STAGE_TIMINGS_KEY,
)

__all__ = [
    # Base
    'Filter',
    'FilterContext',
    'FILTER_REGISTRY',
    'FILTER_ALIASES',
    'register_filter',
    'register_alias',
    # Stages
    'GaussianBlur',
    'EightfoldReflectedTile',
    'Bloom',
    'Gloom',
    'Pixellate',
    # Output
    'rasterize',
    # Pipeline
    'FilterPipeline',
    'GatedStage',
    'default_stages',
    'run_pipeline',
    'APPLIED_STAGES_KEY',
    'STAGE_TIMINGS_KEY',
]
