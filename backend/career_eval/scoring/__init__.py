from career_eval.scoring.response_parser import ParsedRisk, UnparsableResponse, parse_risk_response
from career_eval.scoring.risk_prompt import SYSTEM_PROMPT, build_risk_messages, build_risk_prompt

__all__ = [
    "ParsedRisk",
    "SYSTEM_PROMPT",
    "UnparsableResponse",
    "build_risk_messages",
    "build_risk_prompt",
    "parse_risk_response",
]
