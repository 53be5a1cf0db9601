"""Run options and filter specifications."""

from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FilterSpec(BaseModel):
    """A filter name plus the options for each of its two phases."""

    name: str = Field(description="Registered filter name")
    apply: dict[str, Any] = Field(default_factory=dict, description="Options used before the run")
    analyze: dict[str, Any] = Field(default_factory=dict, description="Options used after the run")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Filter name cannot be empty")
        return v.strip()

    @field_validator("apply", "analyze", mode="before")
    @classmethod
    def default_empty(cls, v: Any) -> Any:
        return {} if v is None else v


SPEC_KEYS = {"name", "apply", "analyze"}

FilterInput = Union[None, str, Mapping, list, tuple, FilterSpec]


def _is_spec(item: Mapping) -> bool:
    """Check for the serialized FilterSpec form: {"name": ..., "apply": ..., "analyze": ...}."""
    return isinstance(item.get("name"), str) and set(item) <= SPEC_KEYS


def _spec(name: str, options: Any) -> FilterSpec:
    if isinstance(options, FilterSpec):
        return options.model_copy(update={"name": name})
    if options is None:
        return FilterSpec(name=name)
    if not isinstance(options, Mapping):
        raise ValueError(f"Options for filter '{name}' must be a mapping, got {type(options).__name__}")
    return FilterSpec(name=name, apply=options.get("apply"), analyze=options.get("analyze"))


def normalize_filters(filters: FilterInput) -> list[FilterSpec]:
    """Expand the accepted shorthand forms into an ordered list of FilterSpec.

    Accepted forms, all order-preserving:

    - ``None`` or empty: no filters
    - ``"name"``: one filter with empty options
    - ``{"a": {"apply": {...}, "analyze": {...}}, "b": None}``
    - ``["a", {"b": {...}}, FilterSpec(...)]``
    - serialized specs: ``[{"name": "a", "apply": {...}, "analyze": {...}}]``
    """
    if not filters:
        return []
    if isinstance(filters, FilterSpec):
        return [filters]
    if isinstance(filters, str):
        return [FilterSpec(name=filters)]
    if isinstance(filters, Mapping):
        return [_spec(name, options) for name, options in filters.items()]

    specs = []
    for item in filters:
        if isinstance(item, FilterSpec):
            specs.append(item)
        elif isinstance(item, str):
            specs.append(FilterSpec(name=item))
        elif isinstance(item, Mapping) and _is_spec(item):
            specs.append(FilterSpec.model_validate(item))
        elif isinstance(item, Mapping):
            specs.extend(_spec(name, options) for name, options in item.items())
        else:
            raise ValueError(f"Unsupported filter entry: {item!r}")
    return specs


class RunOptions(BaseModel):
    """Options recognized by Dispatcher.run()."""

    model_config = ConfigDict(extra="ignore")

    base: Optional[str] = Field(default=None, description="Discovery root override; defaults to path")
    case: Optional[str] = Field(default=None, description="Fully-qualified case to run")
    group: list[str] = Field(default_factory=list, description="Fully-qualified groups to run")
    filters: list[FilterSpec] = Field(default_factory=list, description="Ordered filter pipeline")
    path: str = Field(default="tests", description="Default discovery root")

    @field_validator("case", mode="before")
    @classmethod
    def blank_case(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("group", mode="before")
    @classmethod
    def listify_group(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v] if v.strip() else []
        return list(v)

    @field_validator("filters", mode="before")
    @classmethod
    def normalize(cls, v: Any) -> list[FilterSpec]:
        return normalize_filters(v)

    def resolved_base(self) -> str:
        return self.base if self.base is not None else self.path

    @property
    def title(self) -> Optional[str]:
        """Case id if set, else the group ids joined by commas."""
        if self.case:
            return self.case
        if self.group:
            return ", ".join(self.group)
        return None
