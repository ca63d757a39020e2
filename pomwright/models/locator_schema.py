"""Locator schema data structures used to describe how to find one element."""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field

# Strings or compiled regular expressions are accepted wherever Playwright matches text.
TextMatch = Union[str, re.Pattern]


class GetByMethod(str, Enum):
    role = "role"
    text = "text"
    label = "label"
    placeholder = "placeholder"
    alt_text = "alt_text"
    title = "title"
    locator = "locator"
    frame_locator = "frame_locator"
    test_id = "test_id"
    data_cy = "data_cy"
    id = "id"


class _Options(BaseModel):
    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)


class RoleOptions(_Options):
    checked: Optional[bool] = None
    disabled: Optional[bool] = None
    exact: Optional[bool] = None
    expanded: Optional[bool] = None
    include_hidden: Optional[bool] = None
    level: Optional[int] = None
    name: Optional[TextMatch] = None
    pressed: Optional[bool] = None
    selected: Optional[bool] = None


class TextOptions(_Options):
    exact: Optional[bool] = None


class LabelOptions(_Options):
    exact: Optional[bool] = None


class PlaceholderOptions(_Options):
    exact: Optional[bool] = None


class AltTextOptions(_Options):
    exact: Optional[bool] = None


class TitleOptions(_Options):
    exact: Optional[bool] = None


class LocatorOptions(_Options):
    has: Optional[Any] = None  # Locator
    has_not: Optional[Any] = None  # Locator
    has_not_text: Optional[TextMatch] = None
    has_text: Optional[TextMatch] = None


class FilterEntry(_Options):
    """Predicates passed to ``Locator.filter()``.

    ``has`` and ``has_not`` hold already-resolved Locators and are never cloned.
    """

    has: Optional[Any] = None
    has_not: Optional[Any] = None
    has_not_text: Optional[TextMatch] = None
    has_text: Optional[TextMatch] = None

    def as_kwargs(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in (
                ("has", self.has),
                ("has_not", self.has_not),
                ("has_not_text", self.has_not_text),
                ("has_text", self.has_text),
            )
            if value is not None
        }


class LocatorSchema(BaseModel):
    """A named, strategy-tagged description of how to locate one element.

    ``locator_method`` picks the strategy; the matching strategy field (and its
    options) must be set for the schema to resolve. ``locator_schema_path`` is the
    registry key and never changes after creation.
    """

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    role: Optional[str] = None
    role_options: Optional[RoleOptions] = None
    text: Optional[TextMatch] = None
    text_options: Optional[TextOptions] = None
    label: Optional[TextMatch] = None
    label_options: Optional[LabelOptions] = None
    placeholder: Optional[TextMatch] = None
    placeholder_options: Optional[PlaceholderOptions] = None
    alt_text: Optional[TextMatch] = None
    alt_text_options: Optional[AltTextOptions] = None
    title: Optional[TextMatch] = None
    title_options: Optional[TitleOptions] = None
    locator: Optional[Any] = None  # CSS/XPath selector string or a Locator
    locator_options: Optional[LocatorOptions] = None
    frame_locator: Optional[str] = None
    test_id: Optional[TextMatch] = None
    data_cy: Optional[str] = None
    id: Optional[TextMatch] = None
    filter: Optional[FilterEntry] = None
    locator_method: GetByMethod
    locator_schema_path: str


IDENTITY_FIELD = "locator_schema_path"


def _nested_model(annotation: Any) -> Optional[type[BaseModel]]:
    for arg in get_args(annotation) or (annotation,):
        if isinstance(arg, type) and issubclass(arg, BaseModel):
            return arg
    return None


def schema_shape(model: type[BaseModel]) -> dict[str, Any]:
    """Map every legal field name of ``model`` to ``None`` or the nested shape of an option model."""
    shape: dict[str, Any] = {}
    for name, field in model.model_fields.items():
        nested = _nested_model(field.annotation)
        shape[name] = schema_shape(nested) if nested else None
    return shape


LOCATOR_SCHEMA_SHAPE = schema_shape(LocatorSchema)


def to_plain(model: BaseModel) -> dict[str, Any]:
    """Shallow structural view of the fields explicitly set on ``model``.

    Nested option models become dicts; every other value is kept as-is so that
    Locators and compiled patterns survive untouched.
    """
    plain: dict[str, Any] = {}
    for name in model.model_fields_set:
        value = getattr(model, name)
        plain[name] = to_plain(value) if isinstance(value, BaseModel) else value
    return plain


class NestingStep(BaseModel):
    """Debug record of one step of a nested locator build."""

    locator_string: str
    resolved: Optional[bool] = None
    element_count: Optional[int] = None
    elements: list[dict[str, Any]] = Field(default_factory=list)
    truncated: bool = False
    iframe: Optional[str] = None
    note: Optional[str] = None
    error: Optional[str] = None


class NestedLocatorResults(BaseModel):
    locator_schema_path: str
    locator_schema: Optional[dict[str, Any]] = None
    nesting_steps: list[NestingStep] = Field(default_factory=list)
