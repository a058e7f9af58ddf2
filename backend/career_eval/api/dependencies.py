from fastapi import Request

from career_eval.services.evaluation_service import EvaluationService
from career_eval.services.session_store import ANONYMOUS_SESSION_ID, SessionRegistry


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


def get_evaluation_service(request: Request) -> EvaluationService:
    return request.app.state.evaluation_service


def resolve_session_id(header_value: str | None, body_value: str | None = None) -> str:
    """Header wins over the body field; both fall back to the anonymous sentinel."""
    for candidate in (header_value, body_value):
        if candidate and candidate.strip():
            return candidate.strip()
    return ANONYMOUS_SESSION_ID
