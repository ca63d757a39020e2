"""Tests for folding a resolved path into one nested locator."""

import json
import logging

import pytest

from pomwright.locators.errors import (
    InvalidIndexError,
    InvalidSubPathError,
    LocatorStrategyError,
    NestedLocatorBuildError,
)
from pomwright.models.locator_schema import NestingStep

FORM = "role=form[level=1, name='Personalia']"
USERNAME = f"main >> {FORM} >> .item >> label=Username[exact=True]"


def _debug_results(caplog) -> dict:
    records = [r for r in caplog.records if r.getMessage().startswith("Nested locator evaluation results:")]
    assert len(records) == 1
    return json.loads(records[0].getMessage().split("\n", 1)[1])


@pytest.mark.asyncio
class TestFold:
    async def test_chains_root_to_leaf(self, form_locators):
        locator = await form_locators.get_locator_schema("main.form.item.input@username").get_nested_locator()
        assert locator.selector == USERNAME

    async def test_skips_unregistered_ancestors(self, locators):
        locators.add_schema("a", locator="a", locator_method="locator")
        locators.add_schema("a.b.c", locator="c", locator_method="locator")
        locator = await locators.get_locator_schema("a.b.c").get_nested_locator()
        assert locator.selector == "a >> c"

    async def test_single_segment(self, form_locators):
        locator = await form_locators.get_locator_schema("main").get_nested_locator()
        assert locator.selector == "main"

    async def test_embedded_filter_applies_at_its_step(self, form_locators):
        locator = await form_locators.get_locator_schema("main.form.button@submit").get_nested_locator()
        assert locator.selector == (
            f"main >> {FORM} >> role=button[name='Submit'] >> filter[has_text='Submit']"
        )

    async def test_added_filters_follow_embedded_filter_in_order(self, form_locators):
        locator = await (
            form_locators.get_locator_schema("main.form.button@submit")
            .add_filter("main.form.button@submit", has_text="Send")
            .add_filter("main.form.button@submit", has_not_text="Cancel")
            .add_filter("main", has_text="Welcome")
            .get_nested_locator()
        )
        assert locator.selector == (
            "main >> filter[has_text='Welcome']"
            f" >> {FORM} >> role=button[name='Submit']"
            " >> filter[has_text='Submit']"
            " >> filter[has_text='Send']"
            " >> filter[has_not_text='Cancel']"
        )

    async def test_index_applies_after_filters(self, form_locators):
        locator = await (
            form_locators.get_locator_schema("main.form.button@submit")
            .add_filter("main.form", has_text="User Info:")
            .get_nested_locator({"main.form": 0, "main.form.button@submit": 2})
        )
        assert locator.selector == (
            f"main >> {FORM} >> filter[has_text='User Info:'] >> nth=0"
            " >> role=button[name='Submit'] >> filter[has_text='Submit'] >> nth=2"
        )

    async def test_none_index_selects_nothing(self, form_locators):
        locator = await form_locators.get_locator_schema("main.form.item.input@username").get_nested_locator(
            {"main.form": None}
        )
        assert locator.selector == USERNAME

    async def test_positional_indices_match_sub_path_indices(self, form_locators):
        by_position = await form_locators.get_locator_schema("main.form.item.input@username").get_nested_locator(
            {1: 0, 3: 1}
        )
        by_sub_path = await form_locators.get_locator_schema("main.form.item.input@username").get_nested_locator(
            {"main.form": 0, "main.form.item.input@username": 1}
        )
        assert by_position.selector == by_sub_path.selector
        assert "nth=0" in by_position.selector

    async def test_updates_are_reflected(self, form_locators):
        locator = await (
            form_locators.get_locator_schema("main.form.item.input@username")
            .update("main.form", role_options={"name": "Account"})
            .update("main.form.item", locator=".row")
            .get_nested_locator()
        )
        assert locator.selector == (
            "main >> role=form[level=1, name='Account'] >> .row >> label=Username[exact=True]"
        )

    async def test_registry_untouched_after_build(self, form_locators):
        await (
            form_locators.get_locator_schema("main.form.item.input@username")
            .update("main.form.item", locator=".row")
            .add_filter("main", has_text="x")
            .get_nested_locator()
        )
        locator = await form_locators.get_locator_schema("main.form.item.input@username").get_nested_locator()
        assert locator.selector == USERNAME


@pytest.mark.asyncio
class TestIndexValidation:
    @pytest.mark.parametrize("value", [-1, True, "1", 1.0])
    async def test_invalid_index_values(self, form_locators, value):
        handle = form_locators.get_locator_schema("main.form.button@submit")
        with pytest.raises(InvalidIndexError):
            await handle.get_nested_locator({"main.form": value})

    async def test_non_mapping_argument(self, form_locators):
        handle = form_locators.get_locator_schema("main.form.button@submit")
        with pytest.raises(InvalidIndexError):
            await handle.get_nested_locator([0, 1])

    async def test_unknown_sub_path_key(self, form_locators):
        handle = form_locators.get_locator_schema("main.form.button@submit")
        with pytest.raises(InvalidSubPathError) as exc_info:
            await handle.get_nested_locator({"main.form.item": 0})
        assert exc_info.value.operation == "get_nested_locator"
        assert exc_info.value.allowed == ["main", "main.form", "main.form.button@submit"]

    async def test_out_of_range_position(self, form_locators):
        handle = form_locators.get_locator_schema("main.form.button@submit")
        with pytest.raises(InvalidSubPathError):
            await handle.get_nested_locator({5: 0})

    async def test_mixed_keys_are_treated_as_sub_paths(self, form_locators):
        handle = form_locators.get_locator_schema("main.form.button@submit")
        with pytest.raises(InvalidSubPathError):
            await handle.get_nested_locator({"main": 0, 1: 0})


@pytest.mark.asyncio
class TestBuildErrors:
    async def test_nothing_to_build(self, locators, caplog):
        with pytest.raises(NestedLocatorBuildError, match="Failed to build nested locator for path: 'a.b'"):
            await locators.build_nested_locator("a.b", {}, {})
        assert "An error occurred during nested locator construction." in caplog.text

    async def test_failing_step_is_logged_and_reraised(self, form_locators, caplog):
        form_locators.add_schema("main.broken", locator_method="text")
        with pytest.raises(LocatorStrategyError):
            await form_locators.get_locator_schema("main.broken").get_nested_locator()

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        details = json.loads(errors[0].getMessage().split("Error details:\n", 1)[1])
        assert details["locator_schema_path"] == "main.broken"
        assert details["current_path"] == "main.broken"
        assert details["current_locator_details"] == {
            "locator_string": "Locator(selector='main')",
            "is_not_null": True,
        }
        assert [pair["path"] for pair in details["path_index_pairs"]] == ["main", "main.broken"]


@pytest.mark.asyncio
class TestDebugEvaluation:
    async def test_no_evaluation_without_debug(self, form_locators, fake_page, caplog):
        caplog.set_level(logging.INFO, logger="pomwright")
        locator = await form_locators.get_locator_schema("main.form.button@submit").get_nested_locator()
        assert locator.evaluate_calls == []
        assert "Nested locator evaluation results" not in caplog.text

    async def test_each_step_is_evaluated(self, form_locators, fake_page, caplog):
        caplog.set_level(logging.DEBUG, logger="pomwright")
        fake_page.evaluation = {
            "count": 3,
            "elements": [
                {"tagName": "BUTTON", "attributes": {"type": "submit"}},
                {"tagName": "BUTTON", "attributes": {}},
            ],
        }
        locator = await form_locators.get_locator_schema("main.form.button@submit").get_nested_locator()
        assert len(locator.evaluate_calls) == 1
        assert locator.evaluate_calls[0][1] == 2

        results = _debug_results(caplog)
        assert results["locator_schema_path"] == "main.form.button@submit"
        assert results["locator_schema"]["role"] == "button"
        steps = results["nesting_steps"]
        assert [step["locator_string"] for step in steps] == [
            "Locator(selector='main')",
            f"Locator(selector='main >> {FORM}')",
            f"Locator(selector='{locator.selector}')",
        ]
        assert all(step["element_count"] == 3 for step in steps)
        assert all(step["truncated"] for step in steps)
        assert steps[2]["elements"][0]["attributes"] == {"type": "submit"}

    async def test_untruncated_step(self, form_locators, fake_page, caplog):
        caplog.set_level(logging.DEBUG, logger="pomwright")
        fake_page.evaluation = {"count": 1, "elements": [{"tagName": "MAIN", "attributes": {}}]}
        await form_locators.get_locator_schema("main").get_nested_locator()
        step = _debug_results(caplog)["nesting_steps"][0]
        assert step["resolved"] is True
        assert step["truncated"] is False

    async def test_unresolved_step(self, form_locators, caplog):
        caplog.set_level(logging.DEBUG, logger="pomwright")
        await form_locators.get_locator_schema("main").get_nested_locator()
        step = _debug_results(caplog)["nesting_steps"][0]
        assert step["resolved"] is False
        assert step["element_count"] == 0

    async def test_evaluation_failure_does_not_fail_build(self, form_locators, fake_page, caplog, monkeypatch):
        caplog.set_level(logging.DEBUG, logger="pomwright")

        async def broken_evaluate_all(self, expression, arg=None):
            raise RuntimeError("Target page, context or browser has been closed")

        monkeypatch.setattr(type(fake_page.locator("x")), "evaluate_all", broken_evaluate_all)
        locator = await form_locators.get_locator_schema("main.form").get_nested_locator()

        assert locator.selector == f"main >> {FORM}"
        steps = _debug_results(caplog)["nesting_steps"]
        assert [step["error"] for step in steps] == ["Target page, context or browser has been closed"] * 2

    async def test_steps_inside_a_frame_are_not_evaluated(self, locators, fake_page, caplog):
        caplog.set_level(logging.DEBUG, logger="pomwright")
        fake_page.frame_locator = lambda selector: fake_page.locator(f"frame={selector}")
        locators.add_schema("body", locator="body", locator_method="locator")
        locators.add_schema("body.frame", frame_locator="iframe#pay", locator_method="frame_locator")
        locators.add_schema("body.frame.inner", frame_locator="iframe#card", locator_method="frame_locator")
        locators.add_schema("body.frame.inner.button", role="button", locator_method="role")

        await locators.get_locator_schema("body.frame.inner.button").get_nested_locator()

        steps = _debug_results(caplog)["nesting_steps"]
        assert "iframe" not in steps[0]
        assert [step.get("iframe") for step in steps[1:]] == [
            "iframe#pay",
            "iframe#pay -> iframe#card",
            "iframe#pay -> iframe#card",
        ]
        assert all(step["note"] == "iFrame locators evaluation not implemented" for step in steps[1:])

    async def test_evaluate_current_locator_directly(self, locators, fake_page):
        steps: list[NestingStep] = []
        fake_page.evaluation = {"count": 5, "elements": [{"tagName": "LI", "attributes": {}}] * 2}
        await locators.evaluate_current_locator(fake_page.locator("li"), steps, None)
        assert steps == [NestingStep(
            locator_string="Locator(selector='li')",
            resolved=True,
            element_count=5,
            elements=[{"tagName": "LI", "attributes": {}}] * 2,
            truncated=True,
        )]
