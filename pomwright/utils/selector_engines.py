"""Custom Playwright selector engines and their one-time registration."""

from __future__ import annotations

import logging
from typing import Optional

from playwright.async_api import Selectors

from pomwright.models.config import PomConfig

logger = logging.getLogger(__name__)

DATA_CY_ENGINE_NAME = "data-cy"

# Selects elements by their data-cy attribute: "data-cy=login-button"
DATA_CY_ENGINE_SCRIPT = """{
    query(root, selector) {
        return root.querySelector(`[data-cy="${selector}"]`);
    },
    queryAll(root, selector) {
        return Array.from(root.querySelectorAll(`[data-cy="${selector}"]`));
    }
}"""


class SelectorEngineState:
    """Tracks which selector engines this process has registered with Playwright.

    Playwright rejects registering the same engine name twice, so test setup
    calls ``init()`` once and ``teardown()`` when the Playwright instance goes away.
    """

    def __init__(self) -> None:
        self._registered: set[str] = set()

    @property
    def initialized(self) -> bool:
        return DATA_CY_ENGINE_NAME in self._registered

    async def init(self, selectors: Selectors, config: Optional[PomConfig] = None) -> None:
        config = config or PomConfig()
        selectors.set_test_id_attribute(config.test_id_attribute)

        if not config.register_data_cy_engine or self.initialized:
            return
        await selectors.register(DATA_CY_ENGINE_NAME, DATA_CY_ENGINE_SCRIPT)
        self._registered.add(DATA_CY_ENGINE_NAME)
        logger.debug("Registered '%s' selector engine", DATA_CY_ENGINE_NAME)

    def teardown(self) -> None:
        self._registered.clear()


selector_engines = SelectorEngineState()
