"""Resolve which preset value belongs to which detected field."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from .ai_mapper import AIMapper
from .models import FormField, Preset
from .synonyms import find_category

logger = logging.getLogger(__name__)

SHORT_LABEL_LENGTH = 3


def find_dictionary_match(label_text: str, presets: Sequence[Preset]) -> Optional[Preset]:
    """Exact label match first, then the first preset sharing the label's dictionary category."""
    for preset in presets:
        if preset.normalized_label == label_text:
            return preset

    category = find_category(label_text)
    if category is None:
        return None

    for preset in presets:
        if category.matches(preset.normalized_label):
            return preset
    return None


def find_fuzzy_match(label_text: str, presets: Sequence[Preset]) -> Optional[Preset]:
    """First preset whose label overlaps the field label.

    Labels of three characters or fewer only match as whole whitespace-separated
    tokens, so a preset like "hp" cannot hit the middle of an unrelated word.
    """
    label_tokens = label_text.split()
    for preset in presets:
        preset_label = preset.normalized_label
        if not preset_label or not label_text:
            continue
        if len(preset_label) <= SHORT_LABEL_LENGTH or len(label_text) <= SHORT_LABEL_LENGTH:
            if preset_label in label_tokens or label_text in preset_label.split():
                return preset
            continue
        if preset_label in label_text or label_text in preset_label:
            return preset
    return None


class MatchingEngine:
    """Three ordered layers: dictionary, language model, fuzzy substring.

    The first layer that maps a field wins; later layers only fill gaps. The
    returned dict iterates in the order entries were assigned.
    """

    def __init__(self, ai_mapper: Optional[AIMapper] = None) -> None:
        self.ai_mapper = ai_mapper

    async def resolve(self, fields: Sequence[FormField], presets: Sequence[Preset]) -> Dict[int, str]:
        mapping: Dict[int, str] = {}
        if not fields or not presets:
            return mapping

        for field in fields:
            match = find_dictionary_match(field.normalized_label, presets)
            if match:
                mapping[field.index] = match.value
        logger.debug("Dictionary layer mapped %s/%s fields", len(mapping), len(fields))

        unfilled = _unmapped(fields, mapping)
        if unfilled and self.ai_mapper is not None:
            ai_mapping = await self.ai_mapper.map_fields(unfilled, presets)
            added = 0
            for field in unfilled:
                value = ai_mapping.get(field.index)
                if value and field.index not in mapping:
                    mapping[field.index] = value
                    added += 1
            logger.debug("AI layer mapped %s additional fields", added)

        for field in _unmapped(fields, mapping):
            match = find_fuzzy_match(field.normalized_label, presets)
            if match:
                mapping[field.index] = match.value

        logger.info("Resolved %s of %s fields", len(mapping), len(fields))
        return mapping


def _unmapped(fields: Sequence[FormField], mapping: Dict[int, str]) -> List[FormField]:
    return [field for field in fields if field.index not in mapping]
