"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Any, Optional

import pytest

from pomwright.locators.get_locator_base import GetLocatorBase
from pomwright.models.config import PomConfig


def _format_kwargs(kwargs: dict[str, Any]) -> str:
    if not kwargs:
        return ""
    return "[" + ", ".join(f"{k}={v!r}" for k, v in sorted(kwargs.items())) + "]"


class FakeLocator:
    """Records every composition call in its selector string."""

    def __init__(self, selector: str, evaluation: Optional[dict] = None):
        self.selector = selector
        self.evaluation = evaluation
        self.evaluate_error: Optional[Exception] = None
        self.evaluate_calls: list[tuple] = []

    def _derive(self, selector: str) -> "FakeLocator":
        derived = FakeLocator(selector, self.evaluation)
        derived.evaluate_error = self.evaluate_error
        return derived

    def locator(self, child: "FakeLocator") -> "FakeLocator":
        return self._derive(f"{self.selector} >> {child.selector}")

    def filter(self, **kwargs: Any) -> "FakeLocator":
        return self._derive(f"{self.selector} >> filter{_format_kwargs(kwargs)}")

    def nth(self, index: int) -> "FakeLocator":
        return self._derive(f"{self.selector} >> nth={index}")

    async def evaluate_all(self, expression: str, arg: Any = None) -> Any:
        self.evaluate_calls.append((expression, arg))
        if self.evaluate_error is not None:
            raise self.evaluate_error
        return self.evaluation if self.evaluation is not None else {"count": 0, "elements": []}

    def __str__(self) -> str:
        return f"Locator(selector='{self.selector}')"


class FakePage:
    """Stand-in for a Playwright Page producing FakeLocators."""

    def __init__(self) -> None:
        self.evaluation: Optional[dict] = None

    def _make(self, selector: str) -> FakeLocator:
        return FakeLocator(selector, self.evaluation)

    def locator(self, selector: str, **options: Any) -> FakeLocator:
        return self._make(f"{selector}{_format_kwargs(options)}")

    def get_by_role(self, role: str, **options: Any) -> FakeLocator:
        return self._make(f"role={role}{_format_kwargs(options)}")

    def get_by_text(self, text: Any, **options: Any) -> FakeLocator:
        return self._make(f"text={text}{_format_kwargs(options)}")

    def get_by_label(self, text: Any, **options: Any) -> FakeLocator:
        return self._make(f"label={text}{_format_kwargs(options)}")

    def get_by_placeholder(self, text: Any, **options: Any) -> FakeLocator:
        return self._make(f"placeholder={text}{_format_kwargs(options)}")

    def get_by_alt_text(self, text: Any, **options: Any) -> FakeLocator:
        return self._make(f"alt={text}{_format_kwargs(options)}")

    def get_by_title(self, text: Any, **options: Any) -> FakeLocator:
        return self._make(f"title={text}{_format_kwargs(options)}")

    def get_by_test_id(self, test_id: Any) -> FakeLocator:
        return self._make(f"testid={test_id}")


@pytest.fixture
def fake_page() -> FakePage:
    return FakePage()


@pytest.fixture
def pom_config() -> PomConfig:
    return PomConfig(debug_max_elements=2)


@pytest.fixture
def locators(fake_page: FakePage, pom_config: PomConfig) -> GetLocatorBase:
    """A GetLocatorBase with an empty registry bound to the fake page."""
    return GetLocatorBase(fake_page, "TestPage", pom_config)


@pytest.fixture
def form_locators(locators: GetLocatorBase) -> GetLocatorBase:
    """Registry for a small form page.

    main
    main.form
    main.form.item           (main.form.item.input@username has no "main.form.item.input")
    main.form.item.input@username
    main.form.button@submit
    """
    locators.add_schema("main", locator="main", locator_method="locator")
    locators.add_schema(
        "main.form",
        role="form",
        role_options={"name": "Personalia", "level": 1},
        locator_method="role",
    )
    locators.add_schema("main.form.item", locator=".item", locator_method="locator")
    locators.add_schema(
        "main.form.item.input@username",
        label="Username",
        label_options={"exact": True},
        locator_method="label",
    )
    locators.add_schema(
        "main.form.button@submit",
        role="button",
        role_options={"name": "Submit"},
        filter={"has_text": "Submit"},
        locator_method="role",
    )
    return locators
