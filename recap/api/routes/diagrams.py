from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from ...domain.diagrams import DiagramRequest, DiagramResponse
from ...domain.users import User
from ...repositories.summaries import SummariesRepository
from ...services.completions import CompletionClient, CompletionError
from ...services.rate_limiter import DIAGRAM_ENDPOINT, RateLimiter
from ..dependencies import (
    admit_request,
    get_completion_client,
    get_current_user,
    get_rate_limiter,
    get_summaries_repository,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["diagrams"])


@router.post("/diagrams", response_model=DiagramResponse)
async def generate_diagram(
    payload: DiagramRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
    completions: CompletionClient = Depends(get_completion_client),
    summaries_repo: SummariesRepository = Depends(get_summaries_repository),
) -> DiagramResponse:
    """Render the summary as a Mermaid flowchart."""

    if payload.summary_id is not None:
        existing = await summaries_repo.get(payload.summary_id, current_user.id)
        if existing is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Summary not found",
            )

    await admit_request(limiter, current_user, DIAGRAM_ENDPOINT, response)

    try:
        code = await completions.diagram(
            payload.summary, payload.bullet_points, payload.action_items
        )
    except CompletionError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(exc),
        ) from exc

    if payload.summary_id is not None:
        await summaries_repo.set_diagram(payload.summary_id, current_user.id, code)
        logger.info("diagrams.stored", summary_id=str(payload.summary_id))
    return DiagramResponse(mermaid_code=code)
