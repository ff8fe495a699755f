"""Fill pass orchestration: extract, resolve, dispatch, plus the browser-side triggers."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

from openai import AsyncOpenAI
from playwright.async_api import BrowserContext, Page, async_playwright

from .ai_mapper import AIMapper, OpenAICapability
from .config import (
    AUTO_FILL_DELAY_MS,
    DEFAULT_BROWSER,
    FIELD_WAIT_TIMEOUT_MS,
    OPENAI_MODEL,
    PLAYWRIGHT_CHANNEL,
    PLAYWRIGHT_EXECUTABLE,
    PRESET_POLL_INTERVAL_S,
    USER_DATA_DIR,
    get_openai_api_key,
    is_structured_form,
)
from .extractor import extract_fields, has_fillable_fields
from .filler import FillerDispatcher
from .matching import MatchingEngine
from .models import FillResult, FormField
from .store import PresetStore

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1440, "height": 900}

MANUAL_TRIGGER_BINDING = "__formAutofillRequest"

# Ctrl+Shift+F inside the page asks for a fill pass.
_MANUAL_TRIGGER_SCRIPT = """
document.addEventListener('keydown', (event) => {
    if (event.ctrlKey && event.shiftKey && (event.key || '').toLowerCase() === 'f') {
        if (typeof window.%s === 'function') window.%s();
    }
}, true);
""" % (MANUAL_TRIGGER_BINDING, MANUAL_TRIGGER_BINDING)

Extractor = Callable[[Page, bool], Awaitable[List[FormField]]]


class FillPassGuard:
    """Owns the "pass in progress" state; a second pass is refused, not queued."""

    def __init__(self) -> None:
        self._active = False

    @property
    def in_progress(self) -> bool:
        return self._active

    def try_acquire(self) -> bool:
        if self._active:
            return False
        self._active = True
        return True

    def release(self) -> None:
        self._active = False


class FormAutofill:
    """Run fill passes against a page using the presets of the active profile."""

    def __init__(
        self,
        store: PresetStore,
        engine: MatchingEngine,
        *,
        extractor: Extractor = extract_fields,
        dispatcher_factory: Callable[[Page], FillerDispatcher] = FillerDispatcher,
        guard: Optional[FillPassGuard] = None,
    ) -> None:
        self.store = store
        self.engine = engine
        self.extractor = extractor
        self.dispatcher_factory = dispatcher_factory
        self.guard = guard or FillPassGuard()

    async def run_pass(self, page: Page) -> FillResult:
        if not self.guard.try_acquire():
            logger.info("Fill pass already running; dropping trigger")
            return FillResult(status="skipped", message="fill pass already in progress")
        try:
            return await self._run(page)
        except Exception as exc:  # noqa: BLE001 - reported to the trigger, never raised
            logger.exception("Fill pass failed")
            return FillResult(status="error", message=str(exc) or exc.__class__.__name__)
        finally:
            self.guard.release()

    async def _run(self, page: Page) -> FillResult:
        state = self.store.load()
        if not state.extension_active:
            return _skipped("autofill is switched off")

        structured = is_structured_form(page.url)
        if state.fill_mode == "google" and not structured:
            return _skipped("fill mode is google and this page is not a Google Form")

        presets = state.active_presets()
        if not presets:
            return _skipped("no presets in the active profile")

        fields = await self.extractor(page, structured)
        if not fields:
            return _skipped("no fillable fields found")

        mapping = await self.engine.resolve(fields, presets)
        by_index: Dict[int, FormField] = {field.index: field for field in fields}
        dispatcher = self.dispatcher_factory(page)
        filled = 0
        for index, value in mapping.items():
            field = by_index.get(index)
            if field is None:
                continue
            logger.debug("Filling field %s (%s)", index, field.label)
            await dispatcher.apply(field, value)
            filled += 1

        logger.info("Fill pass applied %s values", filled)
        return FillResult(status="success", filled=filled)


def _skipped(reason: str) -> FillResult:
    logger.info("Fill pass skipped: %s", reason)
    return FillResult(status="skipped", message=reason)


def build_autofill(presets_path: Path) -> FormAutofill:
    api_key = get_openai_api_key()
    client = AsyncOpenAI(api_key=api_key) if api_key else None
    if client:
        logger.info("AI matching enabled (%s)", OPENAI_MODEL)
    else:
        logger.warning("OPENAI_API_KEY missing; AI matching layer disabled")
    engine = MatchingEngine(ai_mapper=AIMapper(OpenAICapability(client=client, model=OPENAI_MODEL)))
    return FormAutofill(PresetStore(presets_path), engine)


async def run_autofill(
    url: str,
    presets_path: Path,
    headless: bool,
    browser: Optional[str],
    profile_dir: Optional[str],
    watch: bool,
) -> FillResult:
    autofill = build_autofill(presets_path)

    async with async_playwright() as pw:
        context = await _launch_browser(pw, (browser or DEFAULT_BROWSER).lower(), headless, profile_dir)
        try:
            page = context.pages[0] if context.pages else await context.new_page()

            async def manual_trigger() -> str:
                result = await autofill.run_pass(page)
                _report("manual", result)
                return result.status

            await page.expose_function(MANUAL_TRIGGER_BINDING, manual_trigger)
            await page.add_init_script(_MANUAL_TRIGGER_SCRIPT)
            await page.goto(url, wait_until="domcontentloaded")

            result = await _auto_fill_once(page, autofill)
            if watch:
                await _watch_presets(page, autofill)
            return result
        finally:
            await context.close()


async def _auto_fill_once(page: Page, autofill: FormAutofill) -> FillResult:
    structured = is_structured_form(page.url)
    waited = 0
    while not await has_fillable_fields(page, structured):
        if waited >= FIELD_WAIT_TIMEOUT_MS:
            result = _skipped("no fillable fields appeared")
            _report("auto", result)
            return result
        await page.wait_for_timeout(250)
        waited += 250

    await page.wait_for_timeout(AUTO_FILL_DELAY_MS)
    result = await autofill.run_pass(page)
    _report("auto", result)
    return result


async def _watch_presets(page: Page, autofill: FormAutofill) -> None:
    logger.info("Watching %s for changes; press Ctrl+Shift+F in the page to refill", autofill.store.path)
    last_seen = autofill.store.modified_at()
    while not page.is_closed():
        await asyncio.sleep(PRESET_POLL_INTERVAL_S)
        current = autofill.store.modified_at()
        if current == last_seen:
            continue
        last_seen = current
        _report("presets-updated", await autofill.run_pass(page))


def _report(trigger: str, result: FillResult) -> None:
    if result.status == "error":
        logger.error("[%s] fill pass failed: %s", trigger, result.message)
    elif result.status == "skipped":
        logger.info("[%s] fill pass skipped: %s", trigger, result.message)
    else:
        logger.info("[%s] fill pass filled %s fields", trigger, result.filled)


async def _launch_browser(
    playwright,
    browser_choice: str,
    headless: bool,
    profile_dir: Optional[str],
) -> BrowserContext:
    engine = "chromium" if browser_choice == "chrome" else browser_choice
    browser_type = getattr(playwright, engine, None)
    if browser_type is None:
        raise ValueError(f"Unsupported browser engine: {browser_choice}")

    user_data_dir = Path(profile_dir).expanduser() if profile_dir else USER_DATA_DIR / browser_choice
    user_data_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Using %s profile directory: %s", browser_choice, user_data_dir)

    launch_kwargs: Dict[str, Any] = {
        "user_data_dir": str(user_data_dir),
        "headless": headless,
        "viewport": VIEWPORT,
    }
    if browser_choice == "chrome":
        if PLAYWRIGHT_EXECUTABLE:
            launch_kwargs["executable_path"] = PLAYWRIGHT_EXECUTABLE
        else:
            launch_kwargs["channel"] = PLAYWRIGHT_CHANNEL or "chrome"
    return await browser_type.launch_persistent_context(**launch_kwargs)
