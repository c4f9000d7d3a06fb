from __future__ import annotations

from enum import Enum
from typing import Union

from pydantic import BaseModel, Field, model_validator

SUPPORTED_LANGUAGES: dict[str, str] = {
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "it": "Italian",
    "pt": "Portuguese",
    "ru": "Russian",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese (Simplified)",
    "ar": "Arabic",
    "hi": "Hindi",
    "bn": "Bengali",
    "ur": "Urdu",
    "tr": "Turkish",
    "vi": "Vietnamese",
    "th": "Thai",
    "nl": "Dutch",
    "pl": "Polish",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "fi": "Finnish",
}


class TranslationKind(str, Enum):
    SUMMARY = "summary"
    BULLET_POINTS = "bullet_points"
    ACTION_ITEMS = "action_items"
    TEXT = "text"

    @property
    def is_list(self) -> bool:
        return self in {TranslationKind.BULLET_POINTS, TranslationKind.ACTION_ITEMS}


class TranslationRequest(BaseModel):
    text: Union[str, list[str]]
    target_language: str = Field(..., min_length=2, max_length=8)
    type: TranslationKind = TranslationKind.TEXT

    @model_validator(mode="after")
    def _require_text(self) -> "TranslationRequest":
        if not self.text:
            raise ValueError("text must not be empty")
        return self


class TranslationResponse(BaseModel):
    translated_text: Union[str, list[str]]
