"""Tone dimension and tone settings models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

NEUTRAL_TONE_VALUE = 50


class ToneDimension(str, Enum):
    """Named tone sliders, in display order."""

    FORMALITY = "formality"
    CASUALNESS = "casualness"
    ENTHUSIASM = "enthusiasm"
    TECHNICALITY = "technicality"
    CREATIVITY = "creativity"
    EMPATHY = "empathy"
    CONFIDENCE = "confidence"
    HUMOR = "humor"
    URGENCY = "urgency"
    CLARITY = "clarity"


def _tone_field():
    return Field(default=NEUTRAL_TONE_VALUE, ge=0, le=100)


class ToneSettings(BaseModel):
    """Value in [0, 100] for every tone dimension. Missing dimensions are neutral."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    formality: int = _tone_field()
    casualness: int = _tone_field()
    enthusiasm: int = _tone_field()
    technicality: int = _tone_field()
    creativity: int = _tone_field()
    empathy: int = _tone_field()
    confidence: int = _tone_field()
    humor: int = _tone_field()
    urgency: int = _tone_field()
    clarity: int = _tone_field()

    @classmethod
    def neutral(cls) -> "ToneSettings":
        return cls()

    def get(self, dimension: ToneDimension) -> int:
        return getattr(self, dimension.value)

    def deviation(self, dimension: ToneDimension) -> int:
        """Absolute distance of a dimension from the neutral value."""
        return abs(self.get(dimension) - NEUTRAL_TONE_VALUE)

    def items(self) -> list[tuple[ToneDimension, int]]:
        return [(dimension, self.get(dimension)) for dimension in ToneDimension]
