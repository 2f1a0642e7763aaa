"""
Therapy-support REST endpoint.

``POST /therapy`` with ``{user_id, action, message?, session_id?}`` answers
a support-chat message or generates personalized recommendations.
"""

import json
from functools import lru_cache

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from mindwave.core.config import get_settings
from mindwave.core.exceptions import MalformedPayloadError
from mindwave.core.models import ErrorResponse, TherapyRequest, TherapyResponse
from mindwave.services.insights import TherapyService
from mindwave.services.llm import create_llm

router = APIRouter(prefix="/therapy", tags=["therapy"])


@lru_cache
def get_therapy_service() -> TherapyService:
    return TherapyService(create_llm(provider=get_settings().llm_provider))


@router.post(
    "",
    response_model=TherapyResponse,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def run_therapy(
    request: Request,
    service: TherapyService = Depends(get_therapy_service),
) -> TherapyResponse:
    """Run one therapy action. Unknown actions and empty chat messages are 400s."""
    try:
        body = TherapyRequest.model_validate(json.loads(await request.body()))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedPayloadError(detail=f"Invalid JSON body: {exc}") from exc
    except ValidationError as exc:
        raise MalformedPayloadError(detail=f"Invalid therapy request: {exc.error_count()} errors") from exc

    return await service.run(body)
