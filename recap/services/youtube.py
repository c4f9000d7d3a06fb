"""YouTube link parsing helpers."""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

import structlog

logger = structlog.get_logger(__name__)

_VIDEO_ID = r"([a-zA-Z0-9_-]{11})"

YOUTUBE_URL_PATTERNS = [
    re.compile(r"(?:https?://)?(?:www\.|m\.)?youtube\.com/watch\?(?:.*&)?v=" + _VIDEO_ID),
    re.compile(r"(?:https?://)?(?:www\.)?youtu\.be/" + _VIDEO_ID),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/(?:embed|shorts|v|live)/" + _VIDEO_ID),
]

_ID_ONLY = re.compile(r"^[a-zA-Z0-9_-]{11}$")


def extract_video_id(url: str) -> Optional[str]:
    """Return the 11-character video id from a YouTube link, or ``None``.

    Accepts watch, short-link, embed, shorts, live and mobile URLs.
    """

    if not url:
        return None
    url = url.strip()

    for pattern in YOUTUBE_URL_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)

    parsed = urlparse(url if "://" in url else f"https://{url}")
    if parsed.netloc.endswith(("youtube.com", "youtu.be")):
        candidates = parse_qs(parsed.query).get("v", [])
        if candidates and _ID_ONLY.match(candidates[0]):
            return candidates[0]

    logger.info("youtube.video_id_not_found", url=url[:80])
    return None


def canonical_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def thumbnail_url(video_id: str, quality: str = "hqdefault") -> str:
    """Direct thumbnail link; ``hqdefault`` exists for every public video."""

    return f"https://img.youtube.com/vi/{video_id}/{quality}.jpg"
