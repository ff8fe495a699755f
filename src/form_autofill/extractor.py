"""Read the live page into an ordered list of fillable fields."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError, Page

from .config import CONTEXT_SEARCH_DEPTH
from .models import FormField

logger = logging.getLogger(__name__)

STRUCTURED_CONTAINER_SELECTOR = '[role="listitem"], .geEnpc, .Qr7Oae'
STRUCTURED_HEADING_SELECTOR = '[role="heading"], .M7e6ce, .w77S9, .HoXo9e'
STRUCTURED_OPTION_SELECTOR = '[role="radio"], [role="checkbox"], [role="option"]'
GENERIC_INPUT_SELECTOR = 'input:not([type="hidden"]), textarea, select'
CONTEXT_HEADER_SELECTOR = "h1, h2, h3, h4, h5, h6, legend, .parent-label, .card-header"
HINT_CONTAINER_SELECTOR = ".form-group, .col-md-3, .col-md-6"
HINT_SELECTOR = "small, .text-muted"
CONTEXT_SEPARATOR = " > "

# Order of preference when naming a generic input.
LABEL_CHAIN = ("ariaLabel", "placeholder", "forLabel", "groupLabel", "wrapLabel", "name")

_STRUCTURED_SCRIPT = r"""
({ containerSelector, headingSelector, optionSelector }) => {
  return Array.from(document.querySelectorAll(containerSelector)).map((container, position) => {
    const heading = container.querySelector(headingSelector);
    const options = Array.from(container.querySelectorAll(optionSelector))
      .map((opt) => opt.getAttribute('aria-label') || opt.innerText || '');
    return { position, heading: heading ? (heading.innerText || '') : null, options };
  });
}
"""

_GENERIC_SCRIPT = r"""
({ inputSelector, headerSelector, hintContainerSelector, hintSelector, depth }) => {
  const textOf = (el) => (el ? (el.innerText || '') : '');
  return Array.from(document.querySelectorAll(inputSelector)).map((el, position) => {
    const headers = [];
    let parent = el.parentElement;
    let level = 0;
    while (parent && level < depth) {
      const header = parent.querySelector(headerSelector);
      if (header) headers.push(textOf(header));
      parent = parent.parentElement;
      level++;
    }
    let forLabel = '';
    if (el.id) {
      const target = Array.from(document.querySelectorAll('label[for]')).find((lbl) => lbl.htmlFor === el.id);
      forLabel = textOf(target);
    }
    const group = el.closest('.form-group');
    const hintHost = el.closest(hintContainerSelector);
    const tag = el.tagName.toLowerCase();
    return {
      position,
      tag,
      type: (el.getAttribute('type') || '').toLowerCase(),
      ariaLabel: el.getAttribute('aria-label') || '',
      placeholder: el.getAttribute('placeholder') || '',
      forLabel,
      groupLabel: group ? textOf(group.querySelector('label')) : '',
      wrapLabel: textOf(el.closest('label')),
      name: el.getAttribute('name') || '',
      headers,
      hint: hintHost ? textOf(hintHost.querySelector(hintSelector)) : '',
      options: tag === 'select' ? Array.from(el.options).map((opt) => opt.text) : [],
    };
  });
}
"""


async def extract_fields(page: Page, structured: bool) -> List[FormField]:
    """Return the page's fields in document order; ``index`` is the position in the result."""
    if structured:
        raw = await page.evaluate(
            _STRUCTURED_SCRIPT,
            {
                "containerSelector": STRUCTURED_CONTAINER_SELECTOR,
                "headingSelector": STRUCTURED_HEADING_SELECTOR,
                "optionSelector": STRUCTURED_OPTION_SELECTOR,
            },
        )
        fields = build_structured_fields(raw or [], page)
    else:
        raw = await page.evaluate(
            _GENERIC_SCRIPT,
            {
                "inputSelector": GENERIC_INPUT_SELECTOR,
                "headerSelector": CONTEXT_HEADER_SELECTOR,
                "hintContainerSelector": HINT_CONTAINER_SELECTOR,
                "hintSelector": HINT_SELECTOR,
                "depth": CONTEXT_SEARCH_DEPTH,
            },
        )
        fields = build_generic_fields(raw or [], page)
    logger.info("Extracted %s %s fields", len(fields), "structured" if structured else "generic")
    return fields


async def has_fillable_fields(page: Page, structured: bool) -> bool:
    selector = STRUCTURED_CONTAINER_SELECTOR if structured else GENERIC_INPUT_SELECTOR
    try:
        return await page.locator(selector).count() > 0
    except PlaywrightError:
        return False


def build_structured_fields(raw: Sequence[Dict[str, Any]], page: Optional[Page] = None) -> List[FormField]:
    fields: List[FormField] = []
    for entry in raw:
        heading = entry.get("heading")
        if heading is None:
            continue
        label = heading.strip()
        handle = page.locator(STRUCTURED_CONTAINER_SELECTOR).nth(entry["position"]) if page else None
        fields.append(
            FormField(
                index=len(fields),
                label=label,
                normalized_label=label.lower(),
                options=[option.strip() for option in entry.get("options") or []],
                kind="structured",
                handle=handle,
            )
        )
    return fields


def build_generic_fields(raw: Sequence[Dict[str, Any]], page: Optional[Page] = None) -> List[FormField]:
    fields: List[FormField] = []
    for entry in raw:
        if (entry.get("type") or "").lower() == "hidden":
            continue
        short_label = resolve_label(entry)
        if not short_label:
            logger.debug("Dropping unlabeled %s at position %s", entry.get("tag"), entry.get("position"))
            continue
        prefix = build_context_prefix(entry.get("headers") or [])
        label = CONTEXT_SEPARATOR.join([*prefix, short_label])
        handle = page.locator(GENERIC_INPUT_SELECTOR).nth(entry["position"]) if page else None
        fields.append(
            FormField(
                index=len(fields),
                label=label,
                normalized_label=label.lower(),
                options=list(entry.get("options") or []),
                hint=(entry.get("hint") or "").strip(),
                kind="generic",
                handle=handle,
            )
        )
    return fields


def resolve_label(entry: Dict[str, Any]) -> str:
    """First non-blank candidate along the label chain, or "" when there is none."""
    for key in LABEL_CHAIN:
        candidate = (entry.get(key) or "").strip()
        if candidate:
            return candidate
    return ""


def build_context_prefix(headers: Sequence[str]) -> List[str]:
    """Headers arrive innermost first; return them outermost first without blanks or repeats."""
    prefix: List[str] = []
    for header in headers:
        text = (header or "").strip()
        if text and text not in prefix:
            prefix.insert(0, text)
    return prefix
