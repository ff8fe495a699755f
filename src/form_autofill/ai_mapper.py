"""Language-model fallback that maps still-unmatched fields to preset values."""

from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from openai import AsyncOpenAI
from pydantic import ValidationError

from .config import OPENAI_MODEL
from .models import AIMappingResult, FormField, Preset

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a professional industrial form-filling AI.\n"
    "SKILLS:\n"
    "- Map \"Form Labels\" to \"User Presets\" using cross-language synonyms (Indonesian/KBBI & English).\n"
    "- Handle industrial context: e.g. \"Tidak Bocor\" = \"Normal\", \"Good\", \"Safe\", \"Aman\".\n"
    "- Use MULTI-LAYER labels: if you see \"Regulator > Pressure Gauge\", use both parts for context.\n"
    "- HINT SUPPORT: if a field says \"Standard: X\", use X as the logical mapping for \"Normal\" or \"Good\".\n"
    "RULES:\n"
    "- Return ONLY a JSON object mapping field INDEX to the FINAL mapped value.\n"
    "- No explanations, no markdown.\n"
    "- Format: {\"idx\": \"mapped_value\"}"
)

UNAVAILABLE_STATES = {"no", "unavailable"}

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class LanguageModelSession(ABC):
    """A short-lived conversation: one prompt, then destroy."""

    @abstractmethod
    async def prompt(self, text: str) -> str: ...

    @abstractmethod
    def destroy(self) -> None: ...


class LanguageModelCapability(ABC):
    """Optional model provider; absence is reported through ``availability``."""

    @abstractmethod
    async def availability(self) -> str:
        """Return "readily", "after-download" or "no"."""

    @abstractmethod
    async def create_session(self, system_prompt: str) -> LanguageModelSession: ...


class OpenAISession(LanguageModelSession):
    def __init__(self, client: AsyncOpenAI, model: str, system_prompt: str) -> None:
        self._client: Optional[AsyncOpenAI] = client
        self.model = model
        self.system_prompt = system_prompt

    async def prompt(self, text: str) -> str:
        if self._client is None:
            raise RuntimeError("Session already destroyed")
        messages = [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": text},
        ]
        response = await self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=0,
        )
        return response.choices[0].message.content if response.choices else ""

    def destroy(self) -> None:
        self._client = None


class OpenAICapability(LanguageModelCapability):
    """Capability backed by the OpenAI chat completions API."""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = OPENAI_MODEL) -> None:
        self.client = client
        self.model = model

    async def availability(self) -> str:
        return "readily" if self.client else "no"

    async def create_session(self, system_prompt: str) -> LanguageModelSession:
        if not self.client:
            raise RuntimeError("OpenAI client is not configured")
        return OpenAISession(self.client, self.model, system_prompt)


class AIMapper:
    """Ask a language model to map unmatched fields; any failure maps nothing."""

    def __init__(self, capability: Optional[LanguageModelCapability]) -> None:
        self.capability = capability

    async def map_fields(self, fields: Sequence[FormField], presets: Sequence[Preset]) -> Dict[int, str]:
        if not fields or self.capability is None:
            return {}
        try:
            status = await self.capability.availability()
        except Exception as exc:  # noqa: BLE001 - a failing availability check disables the layer
            logger.warning("Language model availability check failed: %s", exc)
            return {}
        if str(status).lower() in UNAVAILABLE_STATES:
            logger.debug("Language model unavailable (%s); skipping AI layer", status)
            return {}

        session: Optional[LanguageModelSession] = None
        try:
            session = await self.capability.create_session(SYSTEM_PROMPT)
            prompt = build_prompt(fields, presets)
            logger.debug("AI mapping prompt: %s", prompt)
            raw = await session.prompt(prompt)
            logger.debug("AI mapping raw response: %s", raw)
            return parse_mapping(raw, allowed={field.index for field in fields})
        except Exception as exc:  # noqa: BLE001 - the AI layer never aborts a pass
            logger.warning("AI mapping failed: %s", exc)
            return {}
        finally:
            if session is not None:
                try:
                    session.destroy()
                except Exception as exc:  # noqa: BLE001
                    logger.debug("Session disposal failed: %s", exc)


def build_prompt(fields: Sequence[FormField], presets: Sequence[Preset]) -> str:
    field_lines: List[str] = []
    for field in fields:
        info = f'{field.index}: Label="{field.label}"'
        if field.hint:
            info += f' | Hint="{field.hint}"'
        if field.options:
            info += f" | Options: [{', '.join(field.options)}]"
        field_lines.append(info)
    preset_lines = [f'"{preset.label}": "{preset.value}"' for preset in presets]
    return (
        "Form Fields:\n"
        + "\n".join(field_lines)
        + "\n\nUser Presets:\n"
        + "\n".join(preset_lines)
        + "\n\nTask: Map field index to value. Return JSON:"
    )


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE.sub("", text or "").strip()


def parse_mapping(raw: str, allowed: Optional[set[int]] = None) -> Dict[int, str]:
    """Parse a model response into index -> value; malformed payloads yield {}."""
    cleaned = strip_code_fences(raw)
    if not cleaned:
        return {}
    try:
        payload = json.loads(cleaned)
        result = AIMappingResult.model_validate(payload)
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.warning("Discarding malformed AI mapping: %s", exc)
        return {}
    return result.to_mapping(allowed)
