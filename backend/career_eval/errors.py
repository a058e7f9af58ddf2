from __future__ import annotations

from typing import Any


class EvaluationError(Exception):
    """Base error for a failed evaluation request.

    Each subclass maps to one HTTP status and one stable ``error`` label; the
    free-form ``details`` and optional ``raw`` payload are there for operators.
    """

    status_code = 500
    error = "Failed to evaluate answers"

    def __init__(self, details: str = "", raw: Any = None) -> None:
        super().__init__(details or self.error)
        self.details = details
        self.raw = raw

    def to_payload(self, session_id: str | None = None) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.details:
            payload["details"] = self.details
        if self.raw is not None:
            payload["raw"] = self.raw
        if session_id is not None:
            payload["sessionId"] = session_id
        return payload


class MissingInput(EvaluationError):
    status_code = 400
    error = "Missing answers"


class ConfigurationError(EvaluationError):
    error = "OpenAI API key not configured"

    def __init__(self, details: str = "Please set OPENAI_API_KEY environment variable") -> None:
        super().__init__(details)


class UpstreamTransportError(EvaluationError):
    error = "Failed to evaluate answers"


class ProtocolViolation(EvaluationError):
    error = "Failed to parse AI response"

    def __init__(self, error: str, details: str, raw_text: str) -> None:
        super().__init__(details, raw=raw_text)
        self.error = error
        self.raw_text = raw_text
