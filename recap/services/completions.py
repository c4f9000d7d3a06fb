"""Chat completion client used for summaries, translations and diagrams."""

from __future__ import annotations

import json
import re
from typing import Any, Protocol, Union

import structlog
from openai import AsyncOpenAI, OpenAIError

from ..core.config import Settings
from ..domain.summaries import SummaryContent
from ..domain.translations import SUPPORTED_LANGUAGES, TranslationKind

logger = structlog.get_logger(__name__)

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert at creating well-structured, readable summaries. Your writing "
    "style features consistent sentence lengths and proper formatting for optimal readability."
)

DIAGRAM_SYSTEM_PROMPT = (
    "You are an expert at creating visual diagrams using Mermaid syntax. Generate clean, "
    "well-structured Mermaid diagram code. Return ONLY the Mermaid code without any "
    "markdown code blocks or explanations."
)

_FENCE_OPEN = re.compile(r"```(?:mermaid)?\n?")


class CompletionConfigError(RuntimeError):
    """Raised when the completion service is not configured."""


class CompletionError(RuntimeError):
    """Raised when the completion service fails or answers with nothing usable."""


class CompletionClient(Protocol):
    async def summarize(
        self, transcript: str, *, word_count: int, include_notes: bool
    ) -> SummaryContent: ...

    async def translate(
        self, text: Union[str, list[str]], *, target_language: str, kind: TranslationKind
    ) -> Union[str, list[str]]: ...

    async def diagram(
        self, summary: str, bullet_points: list[str], action_items: list[str]
    ) -> str: ...


def build_summary_prompt(transcript: str, word_count: int, include_notes: bool) -> str:
    notes = (
        "- Include 5-8 key bullet points (each 8-15 words)\n"
        "- Include 2-4 action items (each 8-12 words)\n"
        if include_notes
        else ""
    )
    tail = "" if include_notes else "\nNote: Provide empty arrays for bulletPoints and actionItems."
    return (
        "Analyze this YouTube video transcript and create a summary.\n\n"
        "REQUIREMENTS:\n"
        f"- Target length: {word_count} words\n"
        "- Write ONLY in short sentences (12-18 words maximum per sentence)\n"
        "- Each sentence should be roughly the same length\n"
        "- Add a line break after every 3-4 sentences for paragraph separation\n"
        f"{notes}\n"
        f"Transcript:\n{transcript}\n\n"
        "Return JSON format:\n"
        "{\n"
        '  "title": "Short descriptive title (max 8 words)",\n'
        '  "summary": "Summary text with short, uniform sentences and paragraph breaks",\n'
        '  "bulletPoints": ["Short point 1", "Short point 2"],\n'
        '  "actionItems": ["Short action 1", "Short action 2"]\n'
        "}\n"
        f"{tail}"
    )


def parse_summary_payload(raw: str, include_notes: bool) -> SummaryContent:
    """Coerce the model's JSON answer into a ``SummaryContent``.

    Missing or mistyped fields fall back to empty values.
    """

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise CompletionError("completion returned invalid JSON") from exc
    if not isinstance(data, dict):
        raise CompletionError("completion returned a non-object JSON value")

    def _strings(value: Any) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if str(item).strip()]

    title = data.get("title")
    return SummaryContent(
        title=str(title) if title else None,
        summary=str(data.get("summary") or ""),
        bullet_points=_strings(data.get("bulletPoints")) if include_notes else [],
        action_items=_strings(data.get("actionItems")) if include_notes else [],
    )


def build_translation_prompt(
    text: Union[str, list[str]], language_name: str, kind: TranslationKind
) -> str:
    if kind is TranslationKind.SUMMARY:
        return (
            f"Translate this video summary to {language_name}. Maintain paragraph breaks "
            f"(\\n\\n) and keep the same structure:\n\n{text}"
        )
    if kind is TranslationKind.BULLET_POINTS:
        return (
            f"Translate these key points to {language_name}. Return a JSON object with an "
            f'"items" array of strings:\n\n{json.dumps(text)}'
        )
    if kind is TranslationKind.ACTION_ITEMS:
        return (
            f"Translate these action items to {language_name}. Return a JSON object with an "
            f'"items" array of strings:\n\n{json.dumps(text)}'
        )
    return f"Translate the following text to {language_name}:\n\n{text}"


def unwrap_translated_list(raw: str) -> Union[str, list[str]]:
    """Pull the translated array out of a JSON-mode answer.

    The array may be bare, under ``items``/``translations``, or the first
    value of the object. Unparsable answers are returned unchanged.
    """

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        return raw
    if isinstance(parsed, list):
        return [str(item) for item in parsed]
    if isinstance(parsed, dict) and parsed:
        for key in ("items", "translations"):
            if isinstance(parsed.get(key), list):
                return [str(item) for item in parsed[key]]
        first = next(iter(parsed.values()))
        if isinstance(first, list):
            return [str(item) for item in first]
    return raw


def build_diagram_prompt(summary: str, bullet_points: list[str], action_items: list[str]) -> str:
    return (
        "Based on the following content, create a Mermaid flowchart diagram that visualizes "
        "the main process, concepts, or workflow.\n\n"
        "Content:\n"
        f"Summary: {summary}\n"
        f"Key Points: {', '.join(bullet_points)}\n"
        f"Action Items: {', '.join(action_items)}\n\n"
        "Generate ONLY the Mermaid code for a flowchart. Use proper Mermaid flowchart syntax "
        "(graph TD/LR). Include the main concepts as nodes and show relationships with arrows."
    )


def strip_mermaid_fences(raw: str) -> str:
    return _FENCE_OPEN.sub("", raw).replace("```", "").strip()


class OpenAICompletionClient:
    """Thin wrapper over ``AsyncOpenAI`` chat completions."""

    def __init__(self, settings: Settings) -> None:
        if not settings.openai_api_key:
            raise CompletionConfigError("OpenAI API key is not configured")
        self._client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.openai_timeout_seconds,
        )
        self._settings = settings

    async def _complete(self, system: str, user: str, **kwargs: Any) -> str:
        try:
            completion = await self._client.chat.completions.create(
                model=self._settings.openai_model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                **kwargs,
            )
        except OpenAIError as exc:
            logger.error("completions.request_failed", error=str(exc))
            raise CompletionError("completion request failed") from exc

        content = completion.choices[0].message.content if completion.choices else None
        if not content:
            raise CompletionError("No response from completion service")
        usage = getattr(completion, "usage", None)
        if usage is not None:
            logger.info(
                "completions.usage",
                model=self._settings.openai_model,
                tokens_input=getattr(usage, "prompt_tokens", 0) or 0,
                tokens_output=getattr(usage, "completion_tokens", 0) or 0,
            )
        return content

    async def summarize(
        self, transcript: str, *, word_count: int, include_notes: bool
    ) -> SummaryContent:
        raw = await self._complete(
            SUMMARY_SYSTEM_PROMPT,
            build_summary_prompt(transcript, word_count, include_notes),
            temperature=self._settings.summary_temperature,
            response_format={"type": "json_object"},
        )
        return parse_summary_payload(raw, include_notes)

    async def translate(
        self, text: Union[str, list[str]], *, target_language: str, kind: TranslationKind
    ) -> Union[str, list[str]]:
        language_name = SUPPORTED_LANGUAGES[target_language]
        system = (
            f"You are a professional translator. Translate the following text to {language_name} "
            "while maintaining the original meaning, tone, and formatting."
        )
        extra: dict[str, Any] = {}
        if kind.is_list:
            extra["response_format"] = {"type": "json_object"}
        raw = await self._complete(
            system,
            build_translation_prompt(text, language_name, kind),
            temperature=self._settings.translation_temperature,
            max_tokens=self._settings.translation_max_tokens,
            **extra,
        )
        if kind.is_list:
            return unwrap_translated_list(raw)
        return raw

    async def diagram(
        self, summary: str, bullet_points: list[str], action_items: list[str]
    ) -> str:
        raw = await self._complete(
            DIAGRAM_SYSTEM_PROMPT,
            build_diagram_prompt(summary, bullet_points, action_items),
            temperature=0.3,
            max_tokens=self._settings.diagram_max_tokens,
        )
        return strip_mermaid_fences(raw)
