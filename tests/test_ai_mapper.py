import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from form_autofill.ai_mapper import (  # noqa: E402
    AIMapper,
    LanguageModelCapability,
    LanguageModelSession,
    OpenAICapability,
    build_prompt,
    parse_mapping,
)
from form_autofill.models import FormField, Preset  # noqa: E402


class _RecordingSession(LanguageModelSession):
    def __init__(self, response: str = "{}", error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.prompts: list[str] = []
        self.destroyed = False

    async def prompt(self, text: str) -> str:
        self.prompts.append(text)
        if self.error:
            raise self.error
        return self.response

    def destroy(self) -> None:
        self.destroyed = True


class _Capability(LanguageModelCapability):
    def __init__(self, session: _RecordingSession, status: str = "readily") -> None:
        self.session = session
        self.status = status
        self.system_prompts: list[str] = []

    async def availability(self) -> str:
        return self.status

    async def create_session(self, system_prompt: str) -> LanguageModelSession:
        self.system_prompts.append(system_prompt)
        return self.session


FIELDS = [
    FormField(index=3, label="Regulator > Pressure", normalized_label="regulator > pressure", hint="Standard: 5 bar"),
    FormField(index=4, label="Warna", normalized_label="warna", options=["Merah", "Biru"]),
]
PRESETS = [Preset(label="Tekanan", value="Normal")]


def test_parse_mapping_strips_fences_and_stringifies_numbers():
    raw = '```json\n{"3": "Normal", "4": 2, "x": "skip", "5": null}\n```'

    assert parse_mapping(raw) == {3: "Normal", 4: "2"}


def test_parse_mapping_drops_booleans_instead_of_coercing_them():
    assert parse_mapping('{"3": true, "4": "x", "5": false, "6": 1}') == {4: "x", 6: "1"}


def test_parse_mapping_rejects_non_objects():
    assert parse_mapping('["Normal"]') == {}
    assert parse_mapping("not json at all") == {}
    assert parse_mapping("") == {}


def test_build_prompt_lists_hints_options_and_presets():
    prompt = build_prompt(FIELDS, PRESETS)

    assert '3: Label="Regulator > Pressure" | Hint="Standard: 5 bar"' in prompt
    assert '4: Label="Warna" | Options: [Merah, Biru]' in prompt
    assert '"Tekanan": "Normal"' in prompt
    assert prompt.rstrip().endswith("Return JSON:")


@pytest.mark.asyncio
async def test_session_is_destroyed_after_success():
    session = _RecordingSession(response='{"3": "Normal"}')
    mapper = AIMapper(_Capability(session))

    mapping = await mapper.map_fields(FIELDS, PRESETS)

    assert mapping == {3: "Normal"}
    assert session.destroyed
    assert len(session.prompts) == 1


@pytest.mark.asyncio
async def test_prompt_failure_is_contained_and_session_released():
    session = _RecordingSession(error=RuntimeError("model crashed"))
    mapper = AIMapper(_Capability(session))

    assert await mapper.map_fields(FIELDS, PRESETS) == {}
    assert session.destroyed


@pytest.mark.asyncio
async def test_unavailable_capability_is_skipped():
    session = _RecordingSession(response='{"3": "Normal"}')
    capability = _Capability(session, status="no")

    assert await AIMapper(capability).map_fields(FIELDS, PRESETS) == {}
    assert capability.system_prompts == []


@pytest.mark.asyncio
async def test_openai_capability_without_client_reports_no():
    capability = OpenAICapability(client=None)

    assert await capability.availability() == "no"
    assert await AIMapper(capability).map_fields(FIELDS, PRESETS) == {}


@pytest.mark.asyncio
async def test_missing_capability_maps_nothing():
    assert await AIMapper(None).map_fields(FIELDS, PRESETS) == {}
