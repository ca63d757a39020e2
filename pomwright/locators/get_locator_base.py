"""Resolution of locator schema paths into nested Playwright locators.

``GetLocatorBase.get_locator_schema(path)`` returns a ``LocatorSchemaWithMethods``
handle that owns deep copies of every schema along ``path`` (``schemas_map``) and
a list of ad hoc filters per sub-path (``filter_map``). The handle is chainable:

    button = await (
        locators.get_locator_schema("main.form.button@submit")
        .update("main.form", role_options={"name": "Personalia"})
        .add_filter("main.form.button@submit", has_text="Submit")
        .get_nested_locator({"main.form": 0})
    )

Updates and filters only ever touch the handle's own copies; the registry and
other handles for the same path are unaffected.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from playwright.async_api import Page
from pydantic import BaseModel, PrivateAttr

from pomwright.models.config import PomConfig
from pomwright.models.locator_schema import (
    FilterEntry,
    GetByMethod,
    LocatorSchema,
    NestedLocatorResults,
    NestingStep,
    to_plain,
)
from pomwright.utils.serialization import to_debug_json

from .errors import (
    InvalidIndexError,
    InvalidSubPathError,
    NestedLocatorBuildError,
    SchemaNotFoundError,
)
from .get_by import GetBy, Query
from .merge import merge_schema
from .paths import (
    PathIndexPair,
    extract_path_index_pairs,
    is_valid_sub_path,
    segment_index_of,
    sub_paths_of,
)
from .registry import LocatorSchemaRegistry, SchemaFactory

logger = logging.getLogger(__name__)

_EVALUATE_ELEMENTS_JS = """(elements, max) => ({
    count: elements.length,
    elements: elements.slice(0, max).map((el) => ({
        tagName: el.tagName,
        attributes: el.hasAttributes()
            ? Object.fromEntries(Array.from(el.attributes).map(({ name, value }) => [name, value]))
            : {},
    })),
})"""


def _as_mapping(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, BaseModel):
        return to_plain(value)
    return dict(value)


def _is_position(key: Any) -> bool:
    if isinstance(key, bool):
        return False
    return isinstance(key, int) or (isinstance(key, str) and key.isdigit())


class GetLocatorBase:
    """Registry owner and nested locator builder for one page object."""

    def __init__(
        self,
        page: Page | None,
        poc_name: str = "",
        config: PomConfig | None = None,
        get_by: GetBy | None = None,
    ):
        self.poc_name = poc_name
        self.config = config or PomConfig()
        self.log = logger.getChild(poc_name) if poc_name else logger
        self.registry = LocatorSchemaRegistry(poc_name)
        self.get_by = get_by or GetBy(page)

    # -- registry ------------------------------------------------------------

    def add_schema(
        self,
        path: str,
        definition: Mapping[str, Any] | LocatorSchema | None = None,
        **fields: Any,
    ) -> None:
        self.registry.add(path, definition, **fields)

    def get_schema(self, path: str) -> Optional[SchemaFactory]:
        return self.registry.get(path)

    # -- resolution ----------------------------------------------------------

    def get_locator_schema(self, path: str) -> "LocatorSchemaWithMethods":
        """Return a chainable handle over fresh copies of every schema along ``path``."""
        schemas_map = self._collect_deep_copies(path)
        return LocatorSchemaWithMethods.bind(self, path, schemas_map)

    def _collect_deep_copies(self, path: str) -> dict[str, LocatorSchema]:
        factory = self.registry.get(path)
        if factory is None:
            message = f"LocatorSchema not found for path: '{path}'"
            self.log.error(message)
            raise SchemaNotFoundError(f"[{self.poc_name}] {message}")

        schemas_map: dict[str, LocatorSchema] = {}
        for sub_path in sub_paths_of(path):
            sub_factory = factory if sub_path == path else self.registry.get(sub_path)
            if sub_factory is not None:
                schemas_map[sub_path] = sub_factory()
        return schemas_map

    def apply_update(
        self,
        schemas_map: dict[str, LocatorSchema],
        sub_path: str,
        updates: Mapping[str, Any],
    ) -> None:
        """Merge ``updates`` into the copy stored for ``sub_path``.

        A handle is updated in place so that it keeps its identity and its
        references to the snapshot; plain copies are replaced.
        """
        schema = schemas_map.get(sub_path)
        if schema is None:
            raise SchemaNotFoundError(f"[{self.poc_name}] No schema found for sub-path: '{sub_path}'")

        updated = merge_schema(schema, updates)
        if isinstance(schema, LocatorSchemaWithMethods):
            for name in updated.model_fields_set:
                setattr(schema, name, getattr(updated, name))
        else:
            schemas_map[sub_path] = updated

    # -- building ------------------------------------------------------------

    async def build_nested_locator(
        self,
        locator_schema_path: str,
        schemas_map: Mapping[str, LocatorSchema],
        filter_map: Mapping[str, list[FilterEntry]],
        indices: Mapping[int, int] | None = None,
    ) -> Query:
        """Chain the locators of every schema along the path, root to leaf.

        Each step applies the schema's own filter, then the ad hoc filters added
        for that sub-path, then the requested occurrence index. When DEBUG logging
        is enabled every step is also evaluated against the page and the results
        are logged.
        """
        pairs = extract_path_index_pairs(locator_schema_path, indices)
        debug = self.log.isEnabledFor(logging.DEBUG)
        current: Optional[Query] = None
        current_iframe: Optional[str] = None
        results = NestedLocatorResults(locator_schema_path=locator_schema_path)

        for path, index in pairs:
            schema = schemas_map.get(path)
            if schema is None:
                continue

            try:
                next_query = self.get_by.get_locator(schema)
                current = next_query if current is None else self.get_by.compose(current, next_query)

                if schema.locator_method != GetByMethod.frame_locator and schema.filter is not None:
                    current = self.get_by.apply_filter(current, schema.filter)

                for entry in filter_map.get(path, []):
                    current = self.get_by.apply_filter(current, entry)

                if index is not None:
                    current = self.get_by.select_occurrence(current, index)

                if debug:
                    if results.locator_schema is None and locator_schema_path in schemas_map:
                        results.locator_schema = to_plain(schemas_map[locator_schema_path])
                    if schema.locator_method == GetByMethod.frame_locator:
                        current_iframe = (
                            schema.frame_locator
                            if current_iframe is None
                            else f"{current_iframe} -> {schema.frame_locator}"
                        )
                    await self.evaluate_current_locator(current, results.nesting_steps, current_iframe)
            except Exception as e:
                self._log_error(e, locator_schema_path, current, path, pairs, results)
                raise

        if current is None:
            error = NestedLocatorBuildError(
                f"[{self.poc_name}] Failed to build nested locator for path: '{locator_schema_path}'"
            )
            self._log_error(error, locator_schema_path, None, locator_schema_path, pairs, results)
            raise error

        if debug:
            self.log.debug("Nested locator evaluation results:\n%s", to_debug_json(results))

        return current

    async def evaluate_current_locator(
        self,
        current: Query,
        steps: list[NestingStep],
        current_iframe: Optional[str],
    ) -> None:
        """Record what ``current`` resolves to in the page. Never raises."""
        if current_iframe:
            steps.append(NestingStep(
                locator_string=str(current),
                iframe=current_iframe,
                note="iFrame locators evaluation not implemented",
            ))
            return

        try:
            data = await current.evaluate_all(_EVALUATE_ELEMENTS_JS, self.config.debug_max_elements)
        except Exception as e:
            self.log.debug("Could not evaluate locator %s: %s", current, e)
            steps.append(NestingStep(locator_string=str(current), error=str(e)))
            return

        count = int(data.get("count", 0))
        elements = list(data.get("elements", []))
        steps.append(NestingStep(
            locator_string=str(current),
            resolved=count > 0,
            element_count=count,
            elements=elements,
            truncated=count > len(elements),
        ))

    def _log_error(
        self,
        error: Exception,
        locator_schema_path: str,
        current: Optional[Query],
        current_path: str,
        pairs: list[PathIndexPair],
        results: NestedLocatorResults,
    ) -> None:
        details = {
            "error": str(error),
            "locator_schema_path": locator_schema_path,
            "current_path": current_path,
            "path_index_pairs": [pair._asdict() for pair in pairs],
            "current_locator_details": (
                {"locator_string": str(current), "is_not_null": True}
                if current is not None
                else {"is_not_null": False}
            ),
            "nested_locator_results": results,
        }
        self.log.error(
            "An error occurred during nested locator construction.\nError details:\n%s",
            to_debug_json(details),
        )


class LocatorSchemaWithMethods(LocatorSchema):
    """Copy of the schema a path resolves to, carrying the chainable methods.

    ``schemas_map`` and ``filter_map`` are owned by this handle alone.
    """

    _base: Any = PrivateAttr(default=None)
    _schemas_map: dict = PrivateAttr(default_factory=dict)
    _filter_map: dict = PrivateAttr(default_factory=dict)

    @classmethod
    def bind(
        cls,
        base: GetLocatorBase,
        path: str,
        schemas_map: dict[str, LocatorSchema],
    ) -> "LocatorSchemaWithMethods":
        copy = schemas_map[path]
        handle = cls(**{name: getattr(copy, name) for name in copy.model_fields_set})
        handle._base = base
        handle._schemas_map = schemas_map
        handle._filter_map = {}
        schemas_map[path] = handle
        return handle

    @property
    def schemas_map(self) -> dict[str, LocatorSchema]:
        return self._schemas_map

    @property
    def filter_map(self) -> dict[str, list[FilterEntry]]:
        return self._filter_map

    # -- sub-path validation ---------------------------------------------------

    def allowed_sub_paths(self) -> list[str]:
        """Sub-paths of the bound path that have a schema in this handle, in chain order."""
        return [p for p in sub_paths_of(self.locator_schema_path) if p in self._schemas_map]

    def _validate_sub_path(self, sub_path: Any, operation: str) -> str:
        if (
            not isinstance(sub_path, str)
            or not is_valid_sub_path(sub_path, self.locator_schema_path)
            or sub_path not in self._schemas_map
        ):
            raise InvalidSubPathError(str(sub_path), operation, self.allowed_sub_paths())
        return sub_path

    def _positions(self) -> dict[int, str]:
        return {
            segment_index_of(self.locator_schema_path, sub_path): sub_path
            for sub_path in self.allowed_sub_paths()
        }

    # -- chainable methods -----------------------------------------------------

    def update(
        self,
        sub_path: str | Mapping[str, Any] | None = None,
        updates: Mapping[str, Any] | None = None,
        **fields: Any,
    ) -> "LocatorSchemaWithMethods":
        """Merge field updates into the schema of ``sub_path`` (default: the bound path).

        ``update({...})`` and ``update(**fields)`` without a sub-path are the
        older single-schema form and target the bound path.
        """
        if isinstance(sub_path, Mapping):
            sub_path, updates = None, sub_path
        changes = {**_as_mapping(updates), **fields}

        if sub_path is None:
            sub_path = self.locator_schema_path
        else:
            self._validate_sub_path(sub_path, "update")

        self._base.apply_update(self._schemas_map, sub_path, changes)
        return self

    def updates(
        self, indexed_updates: Mapping[int, Mapping[str, Any] | None],
    ) -> "LocatorSchemaWithMethods":
        """Deprecated: update schemas by chain position instead of sub-path.

        Position 0 is the first segment of the bound path. ``None`` values are skipped.
        """
        positions = self._positions()
        for key, changes in indexed_updates.items():
            if changes is None:
                continue
            sub_path = positions.get(int(key)) if _is_position(key) else None
            if sub_path is None:
                raise InvalidSubPathError(str(key), "updates", self.allowed_sub_paths())
            self._base.apply_update(self._schemas_map, sub_path, _as_mapping(changes))
        return self

    def add_filter(
        self,
        sub_path: str,
        filter_data: FilterEntry | Mapping[str, Any] | None = None,
        **predicates: Any,
    ) -> "LocatorSchemaWithMethods":
        """Queue an extra ``Locator.filter()`` for ``sub_path``.

        Filters for the same sub-path are applied in the order they were added,
        after the schema's own filter.
        """
        self._validate_sub_path(sub_path, "add_filter")
        entry = FilterEntry.model_validate({**_as_mapping(filter_data), **predicates})
        self._filter_map.setdefault(sub_path, []).append(entry)
        return self

    async def get_nested_locator(
        self, indices: Mapping[Any, Optional[int]] | None = None,
    ) -> Query:
        """Build the nested locator for the bound path.

        ``indices`` maps sub-paths (or, deprecated, chain positions) to the
        zero-based occurrence to select at that step.
        """
        numeric = self._resolve_indices(indices)
        return await self._base.build_nested_locator(
            self.locator_schema_path, self._schemas_map, self._filter_map, numeric,
        )

    async def get_locator(self) -> Query:
        """Locator of the bound path's own schema, without nesting or filters."""
        return self._base.get_by.get_locator(self)

    def _resolve_indices(self, indices: Any) -> dict[int, int]:
        if indices is None:
            return {}
        if not isinstance(indices, Mapping):
            raise InvalidIndexError(
                "Invalid argument passed to get_nested_locator: expected a mapping or None."
            )

        legacy = bool(indices) and all(_is_position(key) for key in indices)
        positions = self._positions()
        numeric: dict[int, int] = {}

        for key, value in indices.items():
            if legacy:
                position = int(key)
                if position not in positions:
                    raise InvalidSubPathError(str(key), "get_nested_locator", self.allowed_sub_paths())
            else:
                sub_path = self._validate_sub_path(key, "get_nested_locator")
                position = segment_index_of(self.locator_schema_path, sub_path)

            if value is None:
                continue
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidIndexError(
                    f"Invalid index for sub-path '{key}': expected a non-negative integer or None, "
                    f"got {value!r}."
                )
            numeric[position] = value

        return numeric
