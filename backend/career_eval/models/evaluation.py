from typing import Any

from pydantic import BaseModel, Field, field_validator


class EvaluationRequest(BaseModel):
    answers: Any = None
    sessionId: str | None = None

    @field_validator("sessionId", mode="before")
    @classmethod
    def _stringify_numeric_session_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class EvaluationResponse(BaseModel):
    score: int = Field(..., ge=0, le=100)
    explanation: str
    sessionId: str


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
    sessionId: str | None = None
    raw: Any = None
