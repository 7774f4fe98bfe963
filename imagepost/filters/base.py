# ImagePost Filters - Base Classes
"""
Base classes for the filter stages.

All filters are dataclasses with JSON serialization support. A filter holds
nothing but its parameters; it consumes one :class:`~imagepost.image.Image`
and produces a new one.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields, field, MISSING
from typing import Any, ClassVar, TYPE_CHECKING
import json
import math

from imagepost.extent import Extent

if TYPE_CHECKING:
    from imagepost.image import Image


@dataclass
class FilterContext:
    """Context object passed through a pipeline run.

    Allows filters and the pipeline to store and retrieve arbitrary data
    during processing, e.g. the applied stages and their timings.
    """

    data: dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.data

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value with optional default."""
        return self.data.get(key, default)

    def append(self, key: str, value: Any) -> None:
        """Append a value to the list stored under ``key``."""
        self.data.setdefault(key, []).append(value)


# Global registries
FILTER_REGISTRY: dict[str, type['Filter']] = {}
FILTER_ALIASES: dict[str, type['Filter']] = {}


def register_filter(cls: type['Filter']) -> type['Filter']:
    """Decorator to register a filter class."""
    FILTER_REGISTRY[cls.__name__] = cls
    # Also register lowercase version
    FILTER_REGISTRY[cls.__name__.lower()] = cls
    return cls


def register_alias(alias: str, cls: type['Filter']) -> None:
    """Register an alternative name for a filter class, e.g. ``'blur'``."""
    FILTER_ALIASES[alias.lower()] = cls


def blur_margin(radius: float) -> int:
    """Pixels a blur of ``radius`` reaches beyond the source edge."""
    if radius <= 0:
        return 0
    return int(math.ceil(3.0 * radius))


@dataclass
class Filter(ABC):
    """Base class for all filter stages.

    Example:
        @register_filter
        @dataclass
        class MyFilter(Filter):
            strength: float = 1.0

            def apply(self, image: Image, context: FilterContext | None = None) -> Image:
                ...
    """

    # Primary parameter name for string parsing (e.g., 'radius' for GaussianBlur)
    _primary_param: ClassVar[str | None] = None

    @abstractmethod
    def apply(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        """Apply filter to image and return result.

        :param image: The input image to process.
        :param context: Optional context for storing/retrieving data during
            pipeline execution.
        :returns: The processed image.
        """
        pass

    def __call__(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        return self.apply(image, context)

    def output_extent(self, extent: Extent) -> Extent:
        """Extent of the result when applied to an image covering ``extent``.

        Filters which grow their working rectangle override this.
        """
        return extent

    def validate(self) -> None:
        """Raise ValueError if the parameters can not be evaluated."""
        for f in fields(self):
            value = getattr(self, f.name)
            values = value if isinstance(value, tuple) else (value,)
            for v in values:
                if isinstance(v, float) and not math.isfinite(v):
                    raise ValueError(f"{f.name} has to be finite, got {value}")

    @property
    def type(self) -> str:
        """Filter type name for serialization."""
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Serialize filter to dictionary."""
        data = {}
        for f in fields(self):
            if not f.name.startswith('_'):
                value = getattr(self, f.name)
                if isinstance(value, tuple):
                    value = list(value)
                data[f.name] = value
        data['type'] = self.type
        return data

    def to_json(self) -> str:
        """Serialize filter to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Filter':
        """Deserialize filter from dictionary."""
        data = data.copy()  # Don't modify original
        filter_type = data.pop('type', cls.__name__)

        filter_cls = FILTER_REGISTRY.get(filter_type) or FILTER_REGISTRY.get(filter_type.lower())
        if filter_cls is None:
            raise ValueError(f"Unknown filter type: {filter_type}")
        for key, value in data.items():
            if isinstance(value, list):
                data[key] = tuple(value)
        return filter_cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> 'Filter':
        """Deserialize filter from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def parse(cls, text: str) -> 'Filter':
        """Parse single filter from compact string format.

        Space-separated name followed by positional or keyword arguments:
            'blur 5'              -> GaussianBlur(radius=5)
            'bloom radius=12'     -> Bloom(radius=12)
            'pixelate 8'          -> Pixellate(scale=8)
            'tile center=50,50'   -> EightfoldReflectedTile(center=(50, 50))
        """
        parts = text.split()
        if not parts:
            raise ValueError(f"Invalid filter format: {text!r}")

        name = parts[0].lower()
        filter_cls = FILTER_ALIASES.get(name) or FILTER_REGISTRY.get(name)

        if filter_cls is None:
            raise ValueError(f"Unknown filter: {name}")

        kwargs = {}
        positional = []
        for arg in parts[1:]:
            if '=' in arg:
                key, value = arg.split('=', 1)
                kwargs[key.strip()] = _parse_value(value)
            else:
                positional.append(_parse_value(arg))

        if positional:
            kwargs = cls._map_positional_args(filter_cls, positional, kwargs)

        return filter_cls(**kwargs)

    @classmethod
    def _map_positional_args(
        cls,
        filter_cls: type['Filter'],
        positional: list[Any],
        kwargs: dict[str, Any]
    ) -> dict[str, Any]:
        """Map positional arguments to filter parameters.

        The primary parameter comes first, then the remaining dataclass
        fields in declaration order.
        """
        param_names = [f.name for f in fields(filter_cls) if not f.name.startswith('_')]
        primary = filter_cls._primary_param
        if primary in param_names:
            param_names.remove(primary)
            param_names.insert(0, primary)

        if len(positional) > len(param_names):
            raise ValueError(
                f"Too many positional args for {filter_cls.__name__}: "
                f"got {len(positional)}, max {len(param_names)}"
            )
        for param_name, value in zip(param_names, positional):
            if param_name not in kwargs:  # Don't override explicit kwargs
                kwargs[param_name] = value
        return kwargs

    def to_string(self) -> str:
        """Convert filter to compact string format, e.g. ``'bloom radius=12'``."""
        parts = [self.type.lower()]

        for f in fields(self):
            if f.name.startswith('_'):
                continue
            value = getattr(self, f.name)
            if f.default is not MISSING and value == f.default:
                continue
            if isinstance(value, tuple):
                value_str = ','.join(str(v) for v in value)
            else:
                value_str = str(value)
            parts.append(f"{f.name}={value_str}")

        return ' '.join(parts)


def _parse_value(s: str) -> int | float | str | tuple:
    """Parse string value to appropriate type.

    Handles:
    - Integers: 42, -5
    - Floats: 3.14, -0.5
    - Comma separated tuples: 10,20
    - Plain strings: anything else
    """
    s = s.strip()
    if ',' in s:
        return tuple(_parse_value(part) for part in s.split(','))
    try:
        return int(s)
    except ValueError:
        pass
    try:
        return float(s)
    except ValueError:
        pass
    return s
