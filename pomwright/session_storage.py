"""Read and write the browser's sessionStorage for a page object."""

from __future__ import annotations

import logging
from typing import Any, Optional

from playwright.async_api import Page

logger = logging.getLogger(__name__)

_WRITE_JS = """(storage) => {
    for (const [key, value] of Object.entries(storage)) {
        window.sessionStorage.setItem(key, JSON.stringify(value));
    }
}"""

_READ_JS = """() => {
    const storage = {};
    for (let i = 0; i < sessionStorage.length; i++) {
        const key = sessionStorage.key(i);
        if (key !== null) {
            const item = sessionStorage.getItem(key);
            try {
                storage[key] = item ? JSON.parse(item) : null;
            } catch (e) {
                storage[key] = item;
            }
        }
    }
    return storage;
}"""

_CONTEXT_EXISTS_JS = "() => typeof window !== 'undefined' && window.sessionStorage !== undefined"


class SessionStorage:
    """sessionStorage helpers; values are JSON encoded in the browser."""

    def __init__(self, page: Page, poc_name: str):
        self.page = page
        self.poc_name = poc_name
        self._queued_states: dict[str, Any] = {}
        self._is_initiated = False

    async def _write(self, states: dict[str, Any]) -> None:
        await self.page.evaluate(_WRITE_JS, states)

    async def _read(self) -> dict[str, Any]:
        return await self.page.evaluate(_READ_JS)

    async def set(self, states: dict[str, Any], reload: bool = False) -> None:
        logger.debug("%s: set session storage keys %s", self.poc_name, sorted(states))
        await self._write(states)
        if reload:
            await self.page.reload()

    async def set_on_next_navigation(self, states: dict[str, Any]) -> None:
        """Write ``states`` now if the page has a document, otherwise on the next navigation."""
        self._queued_states = {**self._queued_states, **states}

        try:
            context_exists = await self.page.evaluate(_CONTEXT_EXISTS_JS)
        except Exception as e:
            # Execution context destroyed: a navigation is in flight
            logger.debug("%s: no session storage context yet: %s", self.poc_name, e)
            context_exists = False

        if context_exists:
            await self._populate()
            return

        if not self._is_initiated:
            self._is_initiated = True

            async def _on_navigated(_frame: Any) -> None:
                self._is_initiated = False
                await self._populate()

            self.page.once("framenavigated", _on_navigated)

    async def _populate(self) -> None:
        logger.debug("%s: writing queued session storage %s", self.poc_name, sorted(self._queued_states))
        await self._write(self._queued_states)
        self._queued_states = {}

    async def get(self, keys: Optional[list[str]] = None) -> dict[str, Any]:
        all_data = await self._read()
        if not keys:
            return all_data
        return {key: all_data[key] for key in keys if key in all_data}

    async def clear(self) -> None:
        logger.debug("%s: clear session storage", self.poc_name)
        await self.page.evaluate("() => sessionStorage.clear()")
