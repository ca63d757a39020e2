"""Base class for page object classes built on locator schemas."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Union

from playwright.async_api import Page

from pomwright.locators.get_by import Query
from pomwright.locators.get_locator_base import GetLocatorBase, LocatorSchemaWithMethods
from pomwright.models.config import PomConfig
from pomwright.session_storage import SessionStorage

logger = logging.getLogger(__name__)

UrlPart = Union[str, re.Pattern]


def construct_full_url(base_url: UrlPart, url_path: UrlPart) -> UrlPart:
    """Join a base URL and a path; the result is a pattern if either part is one."""
    if isinstance(base_url, str) and isinstance(url_path, str):
        return f"{base_url}{url_path}"
    if isinstance(base_url, str) and isinstance(url_path, re.Pattern):
        return re.compile(f"^{re.escape(base_url)}{url_path.pattern}")
    if isinstance(base_url, re.Pattern) and isinstance(url_path, str):
        return re.compile(f"{base_url.pattern}{re.escape(url_path)}$")
    if isinstance(base_url, re.Pattern) and isinstance(url_path, re.Pattern):
        return re.compile(f"{base_url.pattern}{url_path.pattern}")
    raise TypeError("Invalid base_url or url_path types. Expected str or re.Pattern.")


class BasePage(ABC):
    """A page object: its URL, its locator schemas and helpers bound to a Playwright page.

    Subclasses register their schemas in ``init_locator_schemas()``:

        class LoginPage(BasePage):
            def init_locator_schemas(self) -> None:
                self.locators.add_schema("body", locator="body", locator_method="locator")
                self.locators.add_schema(
                    "body.button@login",
                    role="button",
                    role_options={"name": "Login"},
                    locator_method="role",
                )
    """

    def __init__(
        self,
        page: Page,
        base_url: UrlPart,
        url_path: UrlPart = "",
        poc_name: Optional[str] = None,
        config: Optional[PomConfig] = None,
    ):
        self.page = page
        self.base_url = base_url
        self.url_path = url_path
        self.full_url = construct_full_url(base_url, url_path)
        self.poc_name = poc_name or type(self).__name__
        self.config = config or PomConfig()
        self.log = logger.getChild(self.poc_name)

        self.locators = GetLocatorBase(page, self.poc_name, self.config)
        if "log_level" in self.config.model_fields_set:
            self.log.setLevel(self.config.log_level_number)
            self.locators.log.setLevel(self.config.log_level_number)
        self.init_locator_schemas()
        self.log.debug("Initialized with %d locator schemas", len(self.locators.registry))

        self.session_storage = SessionStorage(page, self.poc_name)

    @abstractmethod
    def init_locator_schemas(self) -> None:
        """Register this page object's locator schemas on ``self.locators``."""

    def get_locator_schema(self, path: str) -> LocatorSchemaWithMethods:
        return self.locators.get_locator_schema(path)

    async def get_nested_locator(
        self, path: str, indices: Mapping[Any, Optional[int]] | None = None,
    ) -> Query:
        """Shorthand for ``get_locator_schema(path).get_nested_locator(indices)``."""
        return await self.get_locator_schema(path).get_nested_locator(indices)

    async def get_locator(self, path: str) -> Query:
        return await self.get_locator_schema(path).get_locator()
