"""
Prediction REST endpoint.

``POST /predictions`` with ``{user_id, action}`` runs behavioral-pattern
analysis or a seven-day mood prediction over the user's stored analyses.
"""

import json
from functools import lru_cache

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from mindwave.core.config import get_settings
from mindwave.core.exceptions import MalformedPayloadError
from mindwave.core.models import ErrorResponse, PredictionRequest, PredictionResponse
from mindwave.services.insights import InsightService
from mindwave.services.llm import create_llm

router = APIRouter(prefix="/predictions", tags=["predictions"])


@lru_cache
def get_insight_service() -> InsightService:
    return InsightService(create_llm(provider=get_settings().llm_provider))


@router.post(
    "",
    response_model=PredictionResponse,
    responses={400: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def run_prediction(
    request: Request,
    service: InsightService = Depends(get_insight_service),
) -> PredictionResponse:
    """Run one prediction action. An unknown action is a 400, not a 422."""
    try:
        body = PredictionRequest.model_validate(json.loads(await request.body()))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedPayloadError(detail=f"Invalid JSON body: {exc}") from exc
    except ValidationError as exc:
        raise MalformedPayloadError(detail=f"Invalid prediction request: {exc.error_count()} errors") from exc

    return await service.run(body.user_id, body.action)
