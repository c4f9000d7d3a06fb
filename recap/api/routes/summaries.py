from __future__ import annotations

from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...domain.pagination import PaginationParams
from ...domain.summaries import Summary, SummaryCreate, SummaryListResponse, SummaryRequest
from ...domain.users import User
from ...repositories.summaries import SummariesRepository
from ...services import youtube
from ...services.completions import CompletionClient, CompletionError
from ...services.rate_limiter import SUMMARIZE_ENDPOINT, RateLimiter
from ...services.transcripts import TranscriptProvider, TranscriptUnavailableError
from ..dependencies import (
    admit_request,
    get_completion_client,
    get_current_user,
    get_pagination_params,
    get_rate_limiter,
    get_summaries_repository,
    get_transcript_provider,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/summaries", tags=["summaries"])


@router.post("", response_model=Summary, status_code=status.HTTP_201_CREATED)
async def create_summary(
    payload: SummaryRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
    summaries_repo: SummariesRepository = Depends(get_summaries_repository),
    transcripts: TranscriptProvider = Depends(get_transcript_provider),
    completions: CompletionClient = Depends(get_completion_client),
) -> Summary:
    """Summarise a YouTube video and store the result for the caller."""

    video_id = youtube.extract_video_id(payload.youtube_url)
    if not video_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid YouTube URL",
        )

    await admit_request(limiter, current_user, SUMMARIZE_ENDPOINT, response)

    try:
        transcript = await transcripts.fetch_text(video_id)
    except TranscriptUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=(
                f"Could not fetch transcript: {exc}. The video may not have captions "
                "available or may be restricted."
            ),
        ) from exc

    try:
        content = await completions.summarize(
            transcript,
            word_count=payload.word_count,
            include_notes=payload.include_notes,
        )
    except CompletionError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc

    summary = await summaries_repo.create(
        current_user.id,
        SummaryCreate(
            **content.model_dump(),
            video_id=video_id,
            video_url=youtube.canonical_url(video_id),
            thumbnail=youtube.thumbnail_url(video_id),
            word_count=payload.word_count,
        ),
    )
    logger.info("summaries.created", summary_id=str(summary.id), video_id=video_id)
    return summary


@router.get("", response_model=SummaryListResponse)
async def list_summaries(
    current_user: User = Depends(get_current_user),
    summaries_repo: SummariesRepository = Depends(get_summaries_repository),
    pagination: PaginationParams = Depends(get_pagination_params),
) -> SummaryListResponse:
    summaries, total = await summaries_repo.list_for_user(
        current_user.id, limit=pagination.limit, offset=pagination.offset
    )
    return SummaryListResponse(
        summaries=summaries,
        total_count=total,
        has_more=pagination.offset + pagination.limit < total,
    )


@router.get("/{summary_id}", response_model=Summary)
async def get_summary(
    summary_id: UUID,
    current_user: User = Depends(get_current_user),
    summaries_repo: SummariesRepository = Depends(get_summaries_repository),
) -> Summary:
    summary = await summaries_repo.get(summary_id, current_user.id)
    if summary is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Summary not found",
        )
    return summary


@router.delete("/{summary_id}", status_code=status.HTTP_200_OK)
async def delete_summary(
    summary_id: UUID,
    current_user: User = Depends(get_current_user),
    summaries_repo: SummariesRepository = Depends(get_summaries_repository),
) -> dict[str, bool]:
    deleted = await summaries_repo.delete(summary_id, current_user.id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Summary not found or you do not have permission to delete it",
        )
    logger.info("summaries.deleted", summary_id=str(summary_id))
    return {"success": True}
