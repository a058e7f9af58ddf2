from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from career_eval.config import Settings, load_settings
from career_eval.errors import ConfigurationError, MissingInput, ProtocolViolation, UpstreamTransportError
from career_eval.scoring.response_parser import ParsedRisk, parse_risk_response
from career_eval.scoring.risk_prompt import build_risk_messages
from career_eval.services.model_provider import OpenAIRiskProvider, RiskModelProvider
from career_eval.services.session_store import SessionRegistry

LOGGER = logging.getLogger(__name__)

PARSE_FAILURE_DETAILS = {
    "no_match": (
        "Failed to parse AI response",
        "Could not extract score and explanation from the response",
    ),
    "invalid_score": (
        "Invalid score",
        "The AI model returned an invalid score value",
    ),
}

ProviderFactory = Callable[[Settings], RiskModelProvider]


def default_provider_factory(settings: Settings) -> RiskModelProvider:
    return OpenAIRiskProvider(
        api_key=str(settings.openai_api_key),
        model=settings.openai_model,
        timeout_seconds=settings.openai_timeout_seconds,
        max_completion_tokens=settings.openai_max_completion_tokens,
    )


class EvaluationService:
    """Runs one profile through the model provider and tracks it in the registry.

    Settings are re-read on every call so a key added after startup is picked
    up, and a provider is built once per distinct settings snapshot.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        provider_factory: ProviderFactory = default_provider_factory,
        settings_loader: Callable[[], Settings] = load_settings,
    ) -> None:
        self._registry = registry
        self._provider_factory = provider_factory
        self._settings_loader = settings_loader
        self._provider: RiskModelProvider | None = None
        self._provider_settings: Settings | None = None

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    async def evaluate(self, profile: Any, session_id: str) -> ParsedRisk:
        if _is_missing(profile):
            LOGGER.warning("Missing answers in request for session %s", session_id)
            raise MissingInput()

        settings = self._settings_loader()
        if not settings.api_key_configured:
            LOGGER.error("OpenAI API key not configured (session %s)", session_id)
            raise ConfigurationError()

        self._registry.upsert(session_id)
        messages = build_risk_messages(profile)
        provider = await self._provider_for(settings)

        LOGGER.info("Sending evaluation for session %s to %s", session_id, settings.openai_model)
        try:
            content = await provider.complete(messages)
        except asyncio.CancelledError:
            self._registry.mark_error(session_id, "Request cancelled")
            raise
        except UpstreamTransportError as exc:
            self._registry.mark_error(session_id, exc.details or exc.error)
            raise
        except Exception as exc:
            self._registry.mark_error(session_id, str(exc) or type(exc).__name__)
            raise

        outcome = parse_risk_response(content)
        if not isinstance(outcome, ParsedRisk):
            error, details = PARSE_FAILURE_DETAILS[outcome.reason]
            LOGGER.warning(
                "Unusable model response for session %s (%s): %r",
                session_id,
                outcome.reason,
                outcome.raw_text,
            )
            self._registry.mark_error(session_id, error)
            raise ProtocolViolation(error=error, details=details, raw_text=outcome.raw_text)

        self._registry.mark_completed(session_id, outcome.as_dict())
        LOGGER.info("Session %s completed with score %s", session_id, outcome.score)
        return outcome

    async def aclose(self) -> None:
        provider, self._provider, self._provider_settings = self._provider, None, None
        await _close_provider(provider)

    async def _provider_for(self, settings: Settings) -> RiskModelProvider:
        if self._provider is None or self._provider_settings != settings:
            await _close_provider(self._provider)
            self._provider = self._provider_factory(settings)
            self._provider_settings = settings
        return self._provider


async def _close_provider(provider: RiskModelProvider | None) -> None:
    close = getattr(provider, "aclose", None)
    if close is not None:
        await close()


def _is_missing(profile: Any) -> bool:
    if profile is None or profile is False:
        return True
    if isinstance(profile, (int, float)) and not isinstance(profile, bool):
        return profile == 0
    if isinstance(profile, str):
        return not profile.strip()
    return False
