"""Read-only access to the preset profiles kept in a JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .models import StoreState

logger = logging.getLogger(__name__)


class PresetStoreError(RuntimeError):
    """Raised when the preset file exists but cannot be read as a store."""


class PresetStore:
    """JSON file shaped like ``{"profiles": {...}, "activeProfile": ..., "fillMode": ...}``."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> StoreState:
        if not self.path.exists():
            logger.debug("Preset file %s not found; using empty store", self.path)
            return StoreState()
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise PresetStoreError(f"Preset file {self.path} is not valid JSON: {exc}") from exc
        try:
            return StoreState.model_validate(payload)
        except ValidationError as exc:
            raise PresetStoreError(f"Preset file {self.path} has an unexpected shape: {exc}") from exc

    def modified_at(self) -> Optional[float]:
        try:
            return self.path.stat().st_mtime
        except FileNotFoundError:
            return None
