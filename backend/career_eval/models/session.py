from typing import Literal

from pydantic import BaseModel


class RiskResult(BaseModel):
    score: int
    explanation: str


class SessionStatusResponse(BaseModel):
    sessionId: str
    status: Literal["processing", "completed", "error"]
    startTime: int
    lastActivity: int
    result: RiskResult | None = None
    error: str | None = None


class SessionNotFoundResponse(BaseModel):
    error: str = "Session not found"
    sessionId: str


class HealthResponse(BaseModel):
    message: str
    status: str
    timestamp: str
    activeSessions: int
