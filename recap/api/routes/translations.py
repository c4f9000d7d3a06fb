from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...domain.translations import SUPPORTED_LANGUAGES, TranslationRequest, TranslationResponse
from ...domain.users import User
from ...services.completions import CompletionClient, CompletionError
from ...services.rate_limiter import TRANSLATE_ENDPOINT, RateLimiter
from ..dependencies import admit_request, get_completion_client, get_current_user, get_rate_limiter

router = APIRouter(tags=["translations"])


@router.get("/translate/languages")
async def list_languages() -> dict[str, str]:
    return SUPPORTED_LANGUAGES


@router.post("/translate", response_model=TranslationResponse)
async def translate(
    payload: TranslationRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
    completions: CompletionClient = Depends(get_completion_client),
) -> TranslationResponse:
    if payload.target_language not in SUPPORTED_LANGUAGES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported language",
        )

    await admit_request(limiter, current_user, TRANSLATE_ENDPOINT, response)

    try:
        translated = await completions.translate(
            payload.text,
            target_language=payload.target_language,
            kind=payload.type,
        )
    except CompletionError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc
    return TranslationResponse(translated_text=translated)
