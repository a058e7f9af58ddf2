import logging

from fastapi import APIRouter, Body, Depends, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from career_eval.api.dependencies import get_evaluation_service, resolve_session_id
from career_eval.errors import EvaluationError
from career_eval.models.evaluation import ErrorResponse, EvaluationRequest, EvaluationResponse
from career_eval.services.evaluation_service import EvaluationService

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["Evaluation"])


@router.post(
    "/evaluate",
    response_model=EvaluationResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def evaluate_answers(
    request: Request,
    payload: EvaluationRequest | None = Body(default=None),
    x_session_id: str | None = Header(default=None, alias="X-Session-ID"),
    service: EvaluationService = Depends(get_evaluation_service),
):
    body = payload or EvaluationRequest()
    session_id = resolve_session_id(x_session_id, body.sessionId)
    request.state.session_id = session_id
    LOGGER.info(
        "Received evaluation request for session %s (active sessions: %d)",
        session_id,
        service.registry.count(),
    )

    try:
        result = await service.evaluate(body.answers, session_id)
    except EvaluationError as exc:
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(exc.to_payload(session_id)),
        )

    return EvaluationResponse(score=result.score, explanation=result.explanation, sessionId=session_id)
