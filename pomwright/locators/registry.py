"""Append-only registry of locator schemas keyed by path."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, Mapping, Optional

from pomwright.models.locator_schema import IDENTITY_FIELD, LocatorSchema, to_plain
from pomwright.utils.serialization import to_debug_json

from .errors import DuplicateRegistrationError
from .merge import clone_value
from .paths import validate_path

logger = logging.getLogger(__name__)

SchemaFactory = Callable[[], LocatorSchema]


class LocatorSchemaRegistry:
    """Stores one schema factory per path. Entries are never replaced or removed."""

    def __init__(self, owner_name: str = ""):
        self.owner_name = owner_name
        self._schemas: dict[str, SchemaFactory] = {}

    def add(
        self,
        path: str,
        definition: Mapping[str, Any] | LocatorSchema | None = None,
        **fields: Any,
    ) -> None:
        """Register ``definition`` (plus keyword fields) under ``path``."""
        validate_path(path)

        if isinstance(definition, LocatorSchema):
            definition = to_plain(definition)
        details = {**(definition or {}), **fields}
        details[IDENTITY_FIELD] = path
        schema = clone_value(LocatorSchema.model_validate(details))

        existing = self._schemas.get(path)
        if existing is not None:
            raise DuplicateRegistrationError(
                f"[{self.owner_name}] A LocatorSchema with the path '{path}' already exists. \n"
                f"Existing Schema: {to_debug_json(existing())} \n"
                f"Attempted to Add Schema: {to_debug_json(schema)}"
            )

        self._schemas[path] = lambda: clone_value(schema)
        logger.debug("Registered locator schema '%s' (%s)", path, schema.locator_method.value)

    def get(self, path: str) -> Optional[SchemaFactory]:
        return self._schemas.get(path)

    def paths(self) -> list[str]:
        return list(self._schemas)

    def __contains__(self, path: object) -> bool:
        return path in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)
