"""Apply a resolved value to the widget behind a field."""

from __future__ import annotations

import logging
from typing import List, Optional

from playwright.async_api import Error as PlaywrightError, Locator, Page

from .config import DROPDOWN_RENDER_DELAY_MS
from .dates import classify_date_input, looks_like_date_widget, split_date
from .models import FormField
from .synonyms import share_cluster

logger = logging.getLogger(__name__)

DROPDOWN_SELECTOR = '[role="listbox"], .vR739e'
OPTION_ROLE_SELECTOR = '[role="option"]'
CHOICE_SELECTOR = '[role="radio"], [role="checkbox"]'
SUB_INPUT_SELECTOR = "input"
TEXT_INPUT_SELECTOR = 'input[type="text"], input[type="email"], input[type="number"], textarea'

NOTIFY_EVENTS = ("input", "change", "blur")

_NOTIFY_SCRIPT = """
(el, events) => {
    for (const name of events) {
        el.dispatchEvent(new Event(name, { bubbles: true }));
    }
}
"""

_ASSIGN_SCRIPT = "(el, value) => { el.value = value; }"

_SELECT_INDEX_SCRIPT = "(el, index) => { el.selectedIndex = index; }"

_DESCRIBE_SCRIPT = """
(el) => ({
    tag: el.tagName ? el.tagName.toLowerCase() : '',
    type: (el.type || '').toLowerCase(),
    checked: Boolean(el.checked),
    ariaLabel: el.getAttribute('aria-label') || '',
    parentText: el.parentElement ? (el.parentElement.innerText || '') : '',
    options: el.tagName === 'SELECT' ? Array.from(el.options).map((opt) => opt.text) : [],
})
"""


def texts_overlap(left: str, right: str) -> bool:
    """Case-insensitive containment in either direction; blank text never matches."""
    a = (left or "").lower().strip()
    b = (right or "").lower().strip()
    if not a or not b:
        return False
    return a in b or b in a


def option_matches(option_label: str, value: str) -> bool:
    """Equal labels, or both in the same synonym cluster (e.g. "Pria" and "laki-laki")."""
    label = (option_label or "").lower().strip()
    target = (value or "").lower().strip()
    if not label or not target:
        return False
    return label == target or share_cluster(target, label)


def pick_option_index(options: List[str], value: str) -> Optional[int]:
    for idx, text in enumerate(options):
        if texts_overlap(text, value):
            return idx
    return None


class FillerDispatcher:
    """Choose a strategy per widget and apply the value, one field at a time."""

    def __init__(self, page: Page, render_delay_ms: int = DROPDOWN_RENDER_DELAY_MS) -> None:
        self.page = page
        self.render_delay_ms = render_delay_ms

    async def apply(self, field: FormField, value: Optional[str]) -> None:
        if not value or field.handle is None:
            return
        if field.kind == "structured":
            await self._fill_container(field.handle, value)
        else:
            await self._fill_element(field.handle, value)

    async def _fill_container(self, container: Locator, value: str) -> None:
        dropdown = container.locator(DROPDOWN_SELECTOR)
        if await dropdown.count() > 0:
            await self._fill_dropdown(dropdown.first, value)
            return

        choices = container.locator(CHOICE_SELECTOR)
        if await choices.count() > 0:
            await self._fill_choices(choices, value)
            return

        if await self._fill_date(container, value):
            return

        inputs = container.locator(TEXT_INPUT_SELECTOR)
        for idx in range(await inputs.count()):
            element = inputs.nth(idx)
            if await element.input_value() != value:
                await _assign(element, value)

    async def _fill_dropdown(self, dropdown: Locator, value: str) -> None:
        await dropdown.click()
        # Options render asynchronously, often in an overlay outside the question container.
        await self.page.wait_for_timeout(self.render_delay_ms)

        options = self.page.locator(OPTION_ROLE_SELECTOR)
        for idx in range(await options.count()):
            option = options.nth(idx)
            if not await option.is_visible():
                continue
            if texts_overlap(await option.inner_text(), value):
                await option.click()
                return
        logger.debug("No dropdown option matched %r", value)

    async def _fill_choices(self, choices: Locator, value: str) -> None:
        for idx in range(await choices.count()):
            choice = choices.nth(idx)
            label = await choice.get_attribute("aria-label") or await choice.inner_text()
            if not option_matches(label, value):
                continue
            if await choice.get_attribute("aria-checked") != "true":
                await choice.click()

    async def _fill_date(self, container: Locator, value: str) -> bool:
        """Return True when the container is a date widget, whether or not the value was usable."""
        inputs = container.locator(SUB_INPUT_SELECTOR)
        slots: List[Optional[str]] = []
        for idx in range(await inputs.count()):
            element = inputs.nth(idx)
            slots.append(
                classify_date_input(
                    await element.get_attribute("aria-label") or "",
                    await element.get_attribute("placeholder") or "",
                    await element.get_attribute("type") or "",
                )
            )
        if not looks_like_date_widget(slots):
            return False

        parts = split_date(value)
        if parts is None:
            logger.debug("Refusing ambiguous or malformed date %r", value)
            return True

        for idx, slot in enumerate(slots):
            if slot is None:
                continue
            await _assign(inputs.nth(idx), parts.value_for(slot))
        return True

    async def _fill_element(self, element: Locator, value: str) -> None:
        info = await element.evaluate(_DESCRIBE_SCRIPT)
        tag = info.get("tag")
        input_type = info.get("type")

        if tag == "select":
            index = pick_option_index(info.get("options") or [], value)
            if index is not None:
                await element.evaluate(_SELECT_INDEX_SCRIPT, index)
        elif input_type in {"radio", "checkbox"}:
            label = info.get("ariaLabel") or info.get("parentText") or ""
            if texts_overlap(label, value) and not info.get("checked"):
                await element.click()
        else:
            await element.evaluate(_ASSIGN_SCRIPT, value)

        await _notify(element)


async def _assign(element: Locator, value: str) -> None:
    await element.evaluate(_ASSIGN_SCRIPT, value)
    await _notify(element)


async def _notify(element: Locator) -> None:
    try:
        await element.evaluate(_NOTIFY_SCRIPT, list(NOTIFY_EVENTS))
    except PlaywrightError as exc:
        # Clicking a choice can detach or re-render the node.
        logger.debug("Change notification skipped: %s", exc)
