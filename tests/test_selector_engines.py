"""Tests for selector engine registration."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pomwright.models.config import PomConfig
from pomwright.utils.selector_engines import (
    DATA_CY_ENGINE_NAME,
    DATA_CY_ENGINE_SCRIPT,
    SelectorEngineState,
    selector_engines,
)


@pytest.fixture
def mock_selectors():
    selectors = MagicMock()
    selectors.register = AsyncMock()
    return selectors


@pytest.mark.asyncio
class TestSelectorEngineState:
    async def test_registers_data_cy_once(self, mock_selectors):
        state = SelectorEngineState()
        assert not state.initialized

        await state.init(mock_selectors)
        await state.init(mock_selectors)

        mock_selectors.register.assert_awaited_once_with(DATA_CY_ENGINE_NAME, DATA_CY_ENGINE_SCRIPT)
        assert state.initialized

    async def test_sets_test_id_attribute(self, mock_selectors):
        await SelectorEngineState().init(mock_selectors, PomConfig(test_id_attribute="data-qa"))
        mock_selectors.set_test_id_attribute.assert_called_once_with("data-qa")

    async def test_registration_can_be_disabled(self, mock_selectors):
        state = SelectorEngineState()
        await state.init(mock_selectors, PomConfig(register_data_cy_engine=False))
        mock_selectors.register.assert_not_awaited()
        assert not state.initialized

    async def test_teardown_allows_registering_again(self, mock_selectors):
        state = SelectorEngineState()
        await state.init(mock_selectors)
        state.teardown()
        assert not state.initialized
        await state.init(mock_selectors)
        assert mock_selectors.register.await_count == 2

    async def test_failed_registration_is_not_recorded(self, mock_selectors):
        mock_selectors.register.side_effect = RuntimeError("already registered")
        state = SelectorEngineState()
        with pytest.raises(RuntimeError):
            await state.init(mock_selectors)
        assert not state.initialized


def test_module_singleton():
    assert isinstance(selector_engines, SelectorEngineState)


def test_engine_script_queries_data_cy_attribute():
    assert '[data-cy="${selector}"]' in DATA_CY_ENGINE_SCRIPT
