"""Turns a single LocatorSchema into a Playwright Locator and composes Locators."""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Union

from playwright.async_api import FrameLocator, Locator, Page

from pomwright.models.locator_schema import FilterEntry, GetByMethod, LocatorSchema

from .errors import LocatorStrategyError

logger = logging.getLogger(__name__)

Query = Union[Locator, FrameLocator]

# Methods that map straight onto a page.get_by_*() call taking the field value
# plus the matching "<field>_options" keyword arguments.
_OPTION_METHODS = {
    GetByMethod.role: "get_by_role",
    GetByMethod.text: "get_by_text",
    GetByMethod.label: "get_by_label",
    GetByMethod.placeholder: "get_by_placeholder",
    GetByMethod.alt_text: "get_by_alt_text",
    GetByMethod.title: "get_by_title",
}


def _options(schema: LocatorSchema, field: str) -> dict[str, Any]:
    options = getattr(schema, f"{field}_options", None)
    if options is None:
        return {}
    return {
        name: getattr(options, name)
        for name in type(options).model_fields
        if getattr(options, name) is not None
    }


class GetBy:
    """Query-execution adapter between locator schemas and a Playwright page."""

    def __init__(self, page: Page):
        self.page = page
        self._method_map: dict[GetByMethod, Callable[[LocatorSchema], Query]] = {
            GetByMethod.role: self._by_option_method,
            GetByMethod.text: self._by_option_method,
            GetByMethod.label: self._by_option_method,
            GetByMethod.placeholder: self._by_option_method,
            GetByMethod.alt_text: self._by_option_method,
            GetByMethod.title: self._by_option_method,
            GetByMethod.locator: self._locator,
            GetByMethod.frame_locator: self._frame_locator,
            GetByMethod.test_id: self._test_id,
            GetByMethod.data_cy: self._data_cy,
            GetByMethod.id: self._id,
        }

    def get_locator(self, schema: LocatorSchema) -> Query:
        """Return the elementary query for ``schema`` according to its locator_method."""
        method = self._method_map.get(schema.locator_method)
        if method is None:
            raise LocatorStrategyError(f"Unsupported locator method: {schema.locator_method}")
        return method(schema)

    # -- composition primitives --------------------------------------------

    @staticmethod
    def compose(parent: Query, child: Query) -> Query:
        """Narrow ``child`` to descendants of ``parent``."""
        if isinstance(child, FrameLocator):
            return parent.locator(child.owner).content_frame
        return parent.locator(child)

    @staticmethod
    def apply_filter(query: Query, entry: FilterEntry) -> Locator:
        if isinstance(query, FrameLocator):
            raise LocatorStrategyError("A FrameLocator cannot be filtered")
        return query.filter(**entry.as_kwargs())

    @staticmethod
    def select_occurrence(query: Query, index: int) -> Query:
        return query.nth(index)

    # -- strategies -----------------------------------------------------------

    def _missing(self, schema: LocatorSchema, field: str) -> LocatorStrategyError:
        message = f'Locator "{schema.locator_schema_path}" .{field} is not defined.'
        logger.warning(message)
        return LocatorStrategyError(message)

    def _by_option_method(self, schema: LocatorSchema) -> Locator:
        field = schema.locator_method.value
        value = getattr(schema, field)
        if value is None:
            raise self._missing(schema, field)
        page_method = getattr(self.page, _OPTION_METHODS[schema.locator_method])
        return page_method(value, **_options(schema, field))

    def _locator(self, schema: LocatorSchema) -> Locator:
        if schema.locator is None:
            raise self._missing(schema, "locator")
        options = _options(schema, "locator")
        if isinstance(schema.locator, str):
            return self.page.locator(schema.locator, **options)
        # An existing Locator, narrowed by its options if any were given
        return schema.locator.filter(**options) if options else schema.locator

    def _frame_locator(self, schema: LocatorSchema) -> FrameLocator:
        if not schema.frame_locator:
            raise self._missing(schema, "frame_locator")
        return self.page.frame_locator(schema.frame_locator)

    def _test_id(self, schema: LocatorSchema) -> Locator:
        if not schema.test_id:
            raise self._missing(schema, "test_id")
        return self.page.get_by_test_id(schema.test_id)

    def _data_cy(self, schema: LocatorSchema) -> Locator:
        if not schema.data_cy:
            raise self._missing(schema, "data_cy")
        selector = schema.data_cy
        if not selector.startswith("data-cy="):
            selector = f"data-cy={selector}"
        return self.page.locator(selector)

    def _id(self, schema: LocatorSchema) -> Locator:
        if not schema.id:
            raise self._missing(schema, "id")
        if isinstance(schema.id, re.Pattern):
            selector = f'*[id^="{schema.id.pattern}"]'
        elif schema.id.startswith("#"):
            selector = schema.id
        elif schema.id.startswith("id="):
            selector = f"#{schema.id[len('id='):]}"
        else:
            selector = f"#{schema.id}"
        return self.page.locator(selector)
