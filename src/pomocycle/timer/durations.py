"""Work/break duration configuration and user preferences."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from pomocycle.core.errors import ValidationError

MIN_MINUTES = 1
MAX_MINUTES = 60


class DurationConfig(BaseModel):
    """Minutes for each session type, each an integer in [1, 60]."""

    model_config = ConfigDict(frozen=True)

    work_minutes: int = Field(default=25, ge=MIN_MINUTES, le=MAX_MINUTES)
    short_break_minutes: int = Field(default=5, ge=MIN_MINUTES, le=MAX_MINUTES)
    long_break_minutes: int = Field(default=15, ge=MIN_MINUTES, le=MAX_MINUTES)

    @classmethod
    def parse(cls, data: dict[str, Any]) -> DurationConfig:
        """Validate raw input, raising ``ValidationError`` instead of clamping."""
        return _validate(cls, data, "durations")


class Preferences(BaseModel):
    """Feedback preferences read by presentation collaborators."""

    model_config = ConfigDict(frozen=True)

    sound_enabled: bool = True
    notifications_enabled: bool = False
    flash_enabled: bool = True
    theme: Literal["dark", "light", "focus"] = "dark"

    @classmethod
    def parse(cls, data: dict[str, Any]) -> Preferences:
        return _validate(cls, data, "preferences")


def _validate(model: type[BaseModel], data: dict[str, Any], what: str) -> Any:
    # bool is an int subclass; True must not become 1 minute
    if any(isinstance(v, bool) for k, v in data.items() if k.endswith("_minutes")):
        raise ValidationError(f"Invalid {what}: minutes must be whole numbers")
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid {what}: {problems}") from e
