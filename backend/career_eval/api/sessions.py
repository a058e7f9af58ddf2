from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from career_eval.api.dependencies import get_session_registry
from career_eval.models.session import SessionNotFoundResponse, SessionStatusResponse
from career_eval.services.session_store import SessionRegistry

router = APIRouter(prefix="/session", tags=["Sessions"])


@router.get(
    "/{sessionId}",
    response_model=SessionStatusResponse,
    responses={404: {"model": SessionNotFoundResponse}},
)
def get_session_status(
    sessionId: str,
    registry: SessionRegistry = Depends(get_session_registry),
):
    record = registry.get(sessionId)
    if record is None:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=SessionNotFoundResponse(sessionId=sessionId).model_dump(),
        )
    return SessionStatusResponse(**record.to_payload())
