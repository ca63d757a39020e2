"""Schema-aware cloning and the validated recursive merge used by updates."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from pydantic import BaseModel

from pomwright.models.locator_schema import (
    IDENTITY_FIELD,
    LOCATOR_SCHEMA_SHAPE,
    LocatorSchema,
    to_plain,
)

from .errors import IllegalIdentityMutationError, InvalidPropertyError


def clone_pattern(pattern: re.Pattern) -> re.Pattern:
    return re.compile(pattern.pattern, pattern.flags)


def clone_value(value: Any) -> Any:
    """Deep-copy the value kinds a schema is made of.

    Models, dicts, lists and tuples are rebuilt, patterns are recompiled and any
    other object (a Playwright Locator used as a filter target) is returned by
    reference.
    """
    if isinstance(value, BaseModel):
        return value.model_copy(
            update={name: clone_value(getattr(value, name)) for name in value.model_fields_set}
        )
    if isinstance(value, dict):
        return {key: clone_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clone_value(item) for item in value]
    if isinstance(value, tuple):
        return tuple(clone_value(item) for item in value)
    if isinstance(value, re.Pattern):
        return clone_pattern(value)
    return value


def deep_merge(
    target: Mapping[str, Any],
    source: Mapping[str, Any],
    shape: Optional[Mapping[str, Any]] = None,
    _trail: str = "",
) -> dict[str, Any]:
    """Merge ``source`` into a copy of ``target``, validating keys against ``shape``.

    Lists are concatenated, patterns recompiled, nested option objects merged key
    by key, and every other value overwritten. ``target`` is never modified.
    """
    if shape is None:
        shape = LOCATOR_SCHEMA_SHAPE
    if not _trail and IDENTITY_FIELD in source:
        raise IllegalIdentityMutationError(
            f"Invalid property: '{IDENTITY_FIELD}' cannot be updated. Attempted to update "
            f"LocatorSchemaPath from '{target.get(IDENTITY_FIELD)}' to '{source[IDENTITY_FIELD]}'."
        )

    merged = dict(target)
    for key, source_value in source.items():
        if key not in shape:
            raise InvalidPropertyError(
                f"Invalid property: '{_trail}{key}' is not a valid property of LocatorSchema"
            )

        target_value = target.get(key)
        nested_shape = shape[key]

        if isinstance(source_value, BaseModel):
            source_value = to_plain(source_value)

        if nested_shape is not None and isinstance(source_value, Mapping):
            if isinstance(target_value, BaseModel):
                target_value = to_plain(target_value)
            if not isinstance(target_value, Mapping):
                target_value = {}
            merged[key] = deep_merge(target_value, source_value, nested_shape, f"{_trail}{key}.")
        elif isinstance(source_value, list):
            merged[key] = (
                list(target_value) + clone_value(source_value)
                if isinstance(target_value, list)
                else clone_value(source_value)
            )
        elif isinstance(source_value, re.Pattern):
            merged[key] = clone_pattern(source_value)
        else:
            merged[key] = source_value

    return merged


def merge_schema(schema: LocatorSchema, updates: Mapping[str, Any]) -> LocatorSchema:
    """Return a new validated LocatorSchema with ``updates`` merged into ``schema``."""
    merged = deep_merge(to_plain(schema), updates)
    return LocatorSchema.model_validate(merged)
