"""API routes — thin controllers that delegate to the use case."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query

from repoverse.domain.entities import AgeMapping, FilterMode
from repoverse.interface.dependencies import get_use_case
from repoverse.interface.schemas import ErrorResponse, UniverseResponse
from repoverse.services.generate_universe import GenerateUniverseUseCase

router = APIRouter()

_USERNAME_PATTERN = r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,38})$"


@router.get(
    "/universe/{username}",
    response_model=UniverseResponse,
    responses={
        404: {"model": ErrorResponse, "description": "User not found"},
        422: {"model": ErrorResponse, "description": "Invalid username or query parameters"},
        429: {"model": ErrorResponse, "description": "Rate limit exhausted"},
        502: {"model": ErrorResponse, "description": "GitHub API error"},
    },
)
async def universe(
    username: str = Path(..., pattern=_USERNAME_PATTERN),
    year: int | None = Query(None, ge=2008, le=2100),
    mode: FilterMode = Query(FilterMode.ACTIVE),
    age_mapping: AgeMapping = Query(AgeMapping.OLDER_FARTHER),
    use_case: GenerateUniverseUseCase = Depends(get_use_case),
) -> UniverseResponse:
    """Build the procedural scene for a user's public repositories."""
    result = await use_case.execute(
        username, year=year, filter_mode=mode, age_mapping=age_mapping
    )
    return UniverseResponse.from_result(result)
