import time
import unittest

try:
    from fastapi.testclient import TestClient

    from career_eval.config import Settings
    from career_eval.errors import UpstreamTransportError
    from career_eval.main import create_app
    from career_eval.services.session_store import SessionRegistry

    DEPENDENCIES_AVAILABLE = True
except ModuleNotFoundError:  # pragma: no cover - environment dependent
    DEPENDENCIES_AVAILABLE = False


class FakeProvider:
    def __init__(self) -> None:
        self.reply = "Score: 42\nExplanation: Mid-level developer. Tooling shifts are moderate."
        self.error: Exception | None = None
        self.calls = 0
        self.closed = False

    async def aclose(self) -> None:
        self.closed = True

    async def complete(self, messages: list[dict[str, str]]) -> str:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.reply


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "fastapi/httpx dependencies are not installed")
class EvaluationApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.settings = Settings(openai_api_key="test-key", log_level="WARNING")
        self.provider = FakeProvider()
        self.registry = SessionRegistry()
        app = create_app(
            registry=self.registry,
            provider_factory=lambda settings: self.provider,
            settings_loader=lambda: self.settings,
        )
        self.client = TestClient(app, raise_server_exceptions=False)

    def test_liveness_check_reports_session_count(self) -> None:
        self.registry.upsert("someone")
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        payload = response.json()
        self.assertEqual(payload["status"], "healthy")
        self.assertEqual(payload["message"], "Career Evaluator is running!")
        self.assertEqual(payload["activeSessions"], 1)
        self.assertTrue(payload["timestamp"])

    def test_successful_evaluation(self) -> None:
        response = self.client.post("/evaluate", json={"answers": {"role": "Developer"}, "sessionId": "body-id"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                "score": 42,
                "explanation": "Mid-level developer. Tooling shifts are moderate.",
                "sessionId": "body-id",
            },
        )

    def test_header_session_id_takes_precedence(self) -> None:
        response = self.client.post(
            "/evaluate",
            json={"answers": {"role": "Developer"}, "sessionId": "body-id"},
            headers={"X-Session-ID": "header-id"},
        )
        self.assertEqual(response.json()["sessionId"], "header-id")
        self.assertIsNotNone(self.registry.get("header-id"))
        self.assertIsNone(self.registry.get("body-id"))

    def test_session_defaults_to_anonymous(self) -> None:
        response = self.client.post("/evaluate", json={"answers": {"role": "Developer"}})
        self.assertEqual(response.json()["sessionId"], "anonymous")
        self.assertEqual(self.registry.get("anonymous").status, "completed")

    def test_missing_answers_returns_400_without_upstream_call(self) -> None:
        response = self.client.post("/evaluate", json={"sessionId": "s-400"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Missing answers", "sessionId": "s-400"})
        self.assertEqual(self.provider.calls, 0)

    def test_empty_body_returns_400(self) -> None:
        response = self.client.post("/evaluate")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Missing answers")
        self.assertEqual(response.json()["sessionId"], "anonymous")

    def test_malformed_body_returns_400(self) -> None:
        response = self.client.post(
            "/evaluate",
            content="{not json",
            headers={"Content-Type": "application/json", "X-Session-ID": "s-bad"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["error"], "Invalid request body")
        self.assertEqual(response.json()["sessionId"], "s-bad")

    def test_missing_api_key_returns_configuration_error(self) -> None:
        self.settings = Settings(openai_api_key=None)
        response = self.client.post("/evaluate", json={"answers": {"role": "Developer"}, "sessionId": "s-cfg"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(),
            {
                "error": "OpenAI API key not configured",
                "details": "Please set OPENAI_API_KEY environment variable",
                "sessionId": "s-cfg",
            },
        )

    def test_unparsable_reply_returns_raw_text(self) -> None:
        self.provider.reply = "I cannot assess this profile."
        response = self.client.post("/evaluate", json={"answers": {"role": "Developer"}, "sessionId": "s-raw"})
        self.assertEqual(response.status_code, 500)
        payload = response.json()
        self.assertEqual(payload["error"], "Failed to parse AI response")
        self.assertEqual(payload["details"], "Could not extract score and explanation from the response")
        self.assertEqual(payload["raw"], "I cannot assess this profile.")
        self.assertEqual(payload["sessionId"], "s-raw")

    def test_transport_error_returns_provider_message(self) -> None:
        self.provider.error = UpstreamTransportError(
            "Rate limit reached for o4-mini",
            raw={"message": "Rate limit reached for o4-mini", "code": "rate_limit_exceeded"},
        )
        response = self.client.post("/evaluate", json={"answers": {"role": "Developer"}, "sessionId": "s-up"})
        self.assertEqual(response.status_code, 500)
        payload = response.json()
        self.assertEqual(payload["error"], "Failed to evaluate answers")
        self.assertEqual(payload["details"], "Rate limit reached for o4-mini")
        self.assertEqual(payload["raw"]["code"], "rate_limit_exceeded")

        session = self.client.get("/session/s-up").json()
        self.assertEqual(session["status"], "error")
        self.assertEqual(session["error"], "Rate limit reached for o4-mini")

    def test_unexpected_error_uses_catch_all_handler(self) -> None:
        self.provider.error = RuntimeError("boom")
        response = self.client.post(
            "/evaluate",
            json={"answers": {"role": "Developer"}},
            headers={"X-Session-ID": "s-crash"},
        )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(),
            {"error": "Internal server error", "details": "boom", "sessionId": "s-crash"},
        )

    def test_session_lookup_after_completion_is_stable(self) -> None:
        self.client.post("/evaluate", json={"answers": {"role": "Developer"}, "sessionId": "s-get"})

        first = self.client.get("/session/s-get")
        second = self.client.get("/session/s-get")

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.json(), second.json())
        payload = first.json()
        self.assertEqual(payload["status"], "completed")
        self.assertEqual(payload["result"]["score"], 42)
        self.assertIsNone(payload["error"])
        self.assertIsInstance(payload["startTime"], int)
        self.assertGreaterEqual(payload["lastActivity"], payload["startTime"])

    def test_falsy_answers_return_400_without_upstream_call(self) -> None:
        for answers in (False, 0, ""):
            response = self.client.post("/evaluate", json={"answers": answers, "sessionId": "s-falsy"})
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.json(), {"error": "Missing answers", "sessionId": "s-falsy"})
        self.assertEqual(self.provider.calls, 0)

    def test_numeric_session_id_is_used_as_string(self) -> None:
        response = self.client.post("/evaluate", json={"answers": {"a": 1}, "sessionId": 123})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["sessionId"], "123")
        self.assertEqual(self.client.get("/session/123").json()["status"], "completed")

    def test_out_of_range_score_returns_invalid_score_body(self) -> None:
        self.provider.reply = "Score: 150\nExplanation: x"
        response = self.client.post("/evaluate", json={"answers": {"role": "Developer"}, "sessionId": "s-range"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(
            response.json(),
            {
                "error": "Invalid score",
                "details": "The AI model returned an invalid score value",
                "raw": "Score: 150\nExplanation: x",
                "sessionId": "s-range",
            },
        )
        session = self.client.get("/session/s-range").json()
        self.assertEqual(session["status"], "error")
        self.assertEqual(session["error"], "Invalid score")

    def test_unknown_session_returns_404(self) -> None:
        response = self.client.get("/session/nobody")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"error": "Session not found", "sessionId": "nobody"})

    def test_cors_allows_local_development_origin(self) -> None:
        response = self.client.options(
            "/evaluate",
            headers={
                "Origin": "http://192.168.1.20:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "X-Session-ID",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["access-control-allow-origin"], "http://192.168.1.20:5173")


if __name__ == "__main__":
    unittest.main()


@unittest.skipUnless(DEPENDENCIES_AVAILABLE, "fastapi/httpx dependencies are not installed")
class ApplicationLifespanTests(unittest.TestCase):
    def test_lifespan_runs_sweeper_and_closes_provider(self) -> None:
        settings = Settings(
            openai_api_key="test-key",
            log_level="WARNING",
            session_retention_seconds=60,
            session_sweep_interval_seconds=0.01,
        )
        provider = FakeProvider()
        # Records are stamped two hours in the past so the first sweep expires them.
        registry = SessionRegistry(clock=lambda: time.time() - 7200)
        app = create_app(
            settings=settings,
            registry=registry,
            provider_factory=lambda current: provider,
            settings_loader=lambda: settings,
        )

        with TestClient(app) as client:
            response = client.post("/evaluate", json={"answers": {"role": "Developer"}, "sessionId": "stale"})
            self.assertEqual(response.status_code, 200)
            deadline = time.monotonic() + 5
            while registry.count() and time.monotonic() < deadline:
                time.sleep(0.02)
            self.assertEqual(registry.count(), 0)
            self.assertEqual(client.get("/session/stale").status_code, 404)
            self.assertFalse(provider.closed)

        self.assertTrue(provider.closed)
