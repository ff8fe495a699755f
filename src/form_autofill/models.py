"""Core data models for the form autofiller."""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, RootModel, StrictBool, ValidationInfo, field_validator


class Preset(BaseModel):
    label: str = ""
    value: str = ""

    @property
    def normalized_label(self) -> str:
        return self.label.lower().strip()


class FormField(BaseModel):
    """One fillable unit on the page, rebuilt on every fill pass."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    label: str
    normalized_label: str
    options: List[str] = Field(default_factory=list)
    hint: str = ""
    kind: Literal["structured", "generic"] = "generic"
    handle: Any = None  # playwright Locator for the container or element


class StoreState(BaseModel):
    """Snapshot of the preset store as the fill pass sees it."""

    model_config = ConfigDict(populate_by_name=True)

    profiles: Dict[str, List[Preset]] = Field(default_factory=dict)
    active_profile: Optional[str] = Field(default=None, alias="activeProfile")
    presets: Optional[List[Preset]] = None  # legacy flat key, no profiles
    extension_active: bool = Field(default=True, alias="extensionActive")
    fill_mode: Literal["google", "generic"] = Field(default="google", alias="fillMode")

    @field_validator("profiles", "extension_active", "fill_mode", mode="before")
    @classmethod
    def _null_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        # Cleared keys are written back as null.
        if value is None:
            return cls.model_fields[info.field_name].get_default(call_default_factory=True)
        return value

    def active_presets(self) -> List[Preset]:
        if self.profiles and self.active_profile:
            return list(self.profiles.get(self.active_profile) or [])
        if self.presets:
            return list(self.presets)
        return []


class AIMappingResult(RootModel[Dict[str, Optional[Union[StrictBool, str, int, float]]]]):
    """Field index (as string) to value, as returned by the language model."""

    def to_mapping(self, allowed: Optional[set[int]] = None) -> Dict[int, str]:
        mapping: Dict[int, str] = {}
        for key, raw in self.root.items():
            try:
                index = int(str(key).strip())
            except ValueError:
                continue
            if allowed is not None and index not in allowed:
                continue
            if raw is None or isinstance(raw, bool):
                continue
            value = str(raw).strip()
            if value:
                mapping[index] = value
        return mapping


class FillResult(BaseModel):
    status: Literal["success", "skipped", "error"]
    message: Optional[str] = None
    filled: int = 0
