"""
ImagePost - Gated photo filter pipeline: blur, kaleidoscope tiling, bloom,
gloom and pixellation rendered back to the photo's own bounds.
"""

from .extent import Extent
from .image import Image, ImageSourceTypes, SUPPORTED_IMAGE_FILETYPES
from .config import FilterConfig, Settings, settings
from .exceptions import (
    PipelineError,
    EmptyInputError,
    FilterError,
    RasterizationError,
    StageTimeoutError,
)
from .scaling import scale_to_fit, target_pixel_size
from .filters import (
    Filter,
    FilterContext,
    FilterPipeline,
    GatedStage,
    GaussianBlur,
    EightfoldReflectedTile,
    Bloom,
    Gloom,
    Pixellate,
    rasterize,
    run_pipeline,
)
from .session import RenderSession, RenderOutcome

__all__ = [
    # Core image classes
    "Image",
    "ImageSourceTypes",
    "SUPPORTED_IMAGE_FILETYPES",
    "Extent",
    # Configuration
    "FilterConfig",
    "Settings",
    "settings",
    # Errors
    "PipelineError",
    "EmptyInputError",
    "FilterError",
    "RasterizationError",
    "StageTimeoutError",
    # Scaling
    "scale_to_fit",
    "target_pixel_size",
    # Filters and pipeline
    "Filter",
    "FilterContext",
    "FilterPipeline",
    "GatedStage",
    "GaussianBlur",
    "EightfoldReflectedTile",
    "Bloom",
    "Gloom",
    "Pixellate",
    "rasterize",
    "run_pipeline",
    # Sessions
    "RenderSession",
    "RenderOutcome",
]

__version__ = "0.1.0"
