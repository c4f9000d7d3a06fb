"""Caption transcript retrieval."""

from __future__ import annotations

from typing import Protocol

import structlog
from anyio import to_thread
from youtube_transcript_api import CouldNotRetrieveTranscript, YouTubeTranscriptApi

logger = structlog.get_logger(__name__)

TRUNCATION_MARKER = "... [transcript truncated due to length]"


class TranscriptUnavailableError(RuntimeError):
    """Raised when a video has no retrievable captions."""


class TranscriptProvider(Protocol):
    async def fetch_text(self, video_id: str) -> str: ...


def truncate_transcript(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + TRUNCATION_MARKER


class YouTubeTranscriptProvider:
    """Fetches captions through ``youtube-transcript-api`` off the event loop."""

    def __init__(self, max_chars: int, languages: tuple[str, ...] = ("en",)) -> None:
        self._api = YouTubeTranscriptApi()
        self._max_chars = max_chars
        self._languages = languages

    def _fetch_sync(self, video_id: str) -> str:
        fetched = self._api.fetch(video_id, languages=list(self._languages))
        return " ".join(
            snippet.text.strip() for snippet in fetched if snippet.text and snippet.text.strip()
        ).strip()

    async def fetch_text(self, video_id: str) -> str:
        try:
            text = await to_thread.run_sync(self._fetch_sync, video_id)
        except CouldNotRetrieveTranscript as exc:
            logger.warning("transcripts.unavailable", video_id=video_id, reason=type(exc).__name__)
            raise TranscriptUnavailableError(
                f"{type(exc).__name__}: captions are disabled, missing or restricted"
            ) from exc
        except Exception as exc:  # pragma: no cover - network error bubble up
            logger.error("transcripts.fetch_failed", video_id=video_id, error=str(exc))
            raise TranscriptUnavailableError("transcript request failed") from exc

        if not text:
            raise TranscriptUnavailableError("transcript text is empty")

        logger.info("transcripts.fetched", video_id=video_id, length=len(text))
        truncated = truncate_transcript(text, self._max_chars)
        if truncated is not text:
            logger.info("transcripts.truncated", video_id=video_id, length=len(truncated))
        return truncated
