# PixelStag Filters - Base Classes
"""
Base classes for the filter system.

Every image operation is also available as a filter: a dataclass holding the
operation's parameters which can be applied to images, chained in pipelines
and serialized to dictionaries, JSON or a compact text form.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import MISSING, dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar
import copy
import json
import re

from pixelstag.errors import InvalidDataError

if TYPE_CHECKING:
    from pixelstag import Image


@dataclass
class FilterContext:
    """Context object passed through filter pipelines.

    Holds named values, e.g. secondary images for filters combining two
    inputs. A branch reads its parent's values but writes only to itself.
    """

    data: dict[str, Any] = field(default_factory=dict)
    _parent: 'FilterContext | None' = field(default=None, repr=False)

    def __getitem__(self, key: str) -> Any:
        if key in self.data:
            return self.data[key]
        if self._parent is not None:
            return self._parent[key]
        raise KeyError(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.data[key] = value

    def __contains__(self, key: str) -> bool:
        return key in self.data or (self._parent is not None and key in self._parent)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value with optional default."""
        try:
            return self[key]
        except KeyError:
            return default

    def branch(self) -> 'FilterContext':
        """Create a child context inheriting this context's values."""
        return FilterContext(_parent=self)

    def to_dict(self) -> dict[str, Any]:
        """All values including inherited ones."""
        result = self._parent.to_dict() if self._parent is not None else {}
        result.update(self.data)
        return result

    def copy(self) -> 'FilterContext':
        """Shallow copy without parent link."""
        return FilterContext(data=copy.copy(self.to_dict()))


FILTER_REGISTRY: dict[str, type['Filter']] = {}
"Filter classes by class name and lowercase class name"

FILTER_ALIASES: dict[str, type['Filter'] | tuple[type['Filter'], dict[str, Any]]] = {}
"Short names, optionally with preset parameters"


def register_filter(cls: type['Filter']) -> type['Filter']:
    """Decorator to register a filter class."""
    FILTER_REGISTRY[cls.__name__] = cls
    FILTER_REGISTRY[cls.__name__.lower()] = cls
    return cls


def register_alias(alias: str, cls: type['Filter'], **default_params: Any) -> None:
    """Register an alias for a filter class with optional preset parameters.

    Examples:
        register_alias('gray', Grayscale)
        register_alias('sobelx', EdgeDetect, kernel='sobel_x')
    """
    FILTER_ALIASES[alias.lower()] = (cls, default_params) if default_params else cls


def _resolve(name: str) -> tuple[type['Filter'], dict[str, Any]]:
    """Find the filter class and preset parameters for a name or alias."""
    entry = FILTER_ALIASES.get(name.lower())
    if isinstance(entry, tuple):
        return entry[0], dict(entry[1])
    if entry is not None:
        return entry, {}
    filter_cls = FILTER_REGISTRY.get(name) or FILTER_REGISTRY.get(name.lower())
    if filter_cls is None:
        raise InvalidDataError(f"Unknown filter: {name}")
    return filter_cls, {}


def _param_names(filter_cls: type['Filter']) -> list[str]:
    return [f.name for f in fields(filter_cls) if not f.name.startswith('_')]


@dataclass
class Filter(ABC):
    """Base class for all filters.

    Example:
        @register_filter
        @dataclass
        class Invert(Filter):
            def apply(self, image: Image, context: FilterContext | None = None) -> Image:
                return invert(image)
    """

    # Primary parameter name for the legacy 'name(value)' syntax
    _primary_param: ClassVar[str | None] = None

    @abstractmethod
    def apply(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        """Apply filter to image and return result.

        :param image: The input image to process.
        :param context: Optional context for storing/retrieving data during
            pipeline execution.
        :returns: The processed image.
        """

    def __call__(self, image: 'Image', context: FilterContext | None = None) -> 'Image':
        return self.apply(image, context)

    @property
    def type(self) -> str:
        """Filter type name for serialization."""
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        """Serialize filter to dictionary."""
        data = {}
        for name in _param_names(type(self)):
            value = getattr(self, name)
            if isinstance(value, Enum):
                value = value.value if isinstance(value.value, str) else value.name.lower()
            elif isinstance(value, tuple):
                value = list(value)
            data[name] = value
        data['type'] = self.type
        return data

    def to_json(self) -> str:
        """Serialize filter to JSON string."""
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> 'Filter':
        """Deserialize filter from dictionary."""
        data = dict(data)
        filter_type = data.pop('type', cls.__name__)
        filter_cls = FILTER_REGISTRY.get(filter_type) or FILTER_REGISTRY.get(filter_type.lower())
        if filter_cls is None:
            raise InvalidDataError(f"Unknown filter type: {filter_type}")
        return filter_cls.from_params(data)

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> 'Filter':
        """Create the filter from plain parameter values."""
        return cls(**params)

    @classmethod
    def from_json(cls, json_str: str) -> 'Filter':
        """Deserialize filter from JSON string."""
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def parse(cls, text: str) -> 'Filter':
        """Parse single filter from compact string format.

        Supports two syntaxes:
        1. Space separated, positional arguments follow field order:
            'blur 5'              -> GaussianBlur(size=5)
            'threshold 128'       -> Threshold(threshold=128)
            'erode 5 shape=disk'  -> Erode(kernel_size=5, shape='disk')

        2. Legacy syntax (parentheses):
            'gamma(2.2)'
            'dilate(kernel_size=5)'
        """
        text = text.strip()

        match = re.match(r'^(\w+)\(([^)]*)\)$', text)
        if match:
            return cls._parse_legacy(match.group(1), match.group(2))

        parts = _split_filter_args(text)
        if not parts:
            raise InvalidDataError(f"Invalid filter format: {text!r}")

        filter_cls, kwargs = _resolve(parts[0])
        param_names = _param_names(filter_cls)
        positional = []
        for arg in parts[1:]:
            if '=' in arg:
                key, value = arg.split('=', 1)
                kwargs[key.strip()] = _parse_value(value)
            else:
                positional.append(_parse_value(arg))

        if len(positional) > len(param_names):
            raise InvalidDataError(
                f"Too many positional args for {filter_cls.__name__}: "
                f"got {len(positional)}, max {len(param_names)}"
            )
        for name, value in zip(param_names, positional):
            kwargs.setdefault(name, value)

        return filter_cls.from_params(kwargs)

    @classmethod
    def _parse_legacy(cls, name: str, args_str: str) -> 'Filter':
        """Parse 'name(value, key=value)' syntax."""
        filter_cls, kwargs = _resolve(name)
        for index, arg in enumerate(a.strip() for a in args_str.split(',')):
            if not arg:
                continue
            if '=' in arg:
                key, value = arg.split('=', 1)
                kwargs[key.strip()] = _parse_value(value)
            elif index == 0 and filter_cls._primary_param:
                kwargs[filter_cls._primary_param] = _parse_value(arg)
            else:
                raise InvalidDataError(f"Positional arg not supported for {name}: {arg}")
        return filter_cls.from_params(kwargs)

    def to_string(self) -> str:
        """Convert filter to compact string format, omitting defaults.

            'threshold threshold=100'
            'erode kernel_size=5 shape=disk'
        """
        parts = [self.type.lower()]
        for f in fields(self):
            if f.name.startswith('_'):
                continue
            value = getattr(self, f.name)
            if f.default is not MISSING and value == f.default:
                continue
            if f.default_factory is not MISSING and value == f.default_factory():
                continue

            if isinstance(value, Enum):
                value_str = value.value if isinstance(value.value, str) else value.name.lower()
            elif isinstance(value, str):
                value_str = f"'{value}'" if (' ' in value or '=' in value) else value
            elif isinstance(value, bool):
                value_str = 'true' if value else 'false'
            else:
                value_str = str(value)
            parts.append(f"{f.name}={value_str}")

        return ' '.join(parts)


def _parse_value(s: str) -> int | float | bool | str:
    """Parse string value to appropriate type.

    Handles booleans (true, false), integers, floats and quoted strings;
    anything else is returned unchanged.
    """
    s = s.strip()
    if len(s) >= 2 and s[0] == s[-1] and s[0] in '"\'':
        return s[1:-1]
    if s.lower() in ('true', 'false'):
        return s.lower() == 'true'
    for number_type in (int, float):
        try:
            return number_type(s)
        except ValueError:
            pass
    return s


def _split_filter_args(text: str) -> list[str]:
    """Split filter text into name and arguments, keeping quoted strings together.

    Examples:
        'blur 5' -> ['blur', '5']
        "convolve kernel='sobel x'" -> ['convolve', "kernel='sobel x'"]
    """
    parts = []
    current = []
    in_quotes = None

    for char in text:
        if in_quotes:
            current.append(char)
            if char == in_quotes:
                in_quotes = None
        elif char in '"\'':
            in_quotes = char
            current.append(char)
        elif char.isspace():
            if current:
                parts.append(''.join(current))
                current = []
        else:
            current.append(char)

    if current:
        parts.append(''.join(current))

    return parts
