"""Parser for the two-line ``Score:`` / ``Explanation:`` reply grammar.

The model is asked to answer as::

    Score: <integer 0-100>
    Explanation: <free text, may span lines>

Anything between the score and the explanation marker is ignored, and the
explanation is the whole remainder of the text. Output cut off before the
explanation marker does not parse.
"""

import re
from dataclasses import dataclass
from typing import Literal

RISK_RESPONSE_PATTERN = re.compile(r"Score:\s*(\d+).*?Explanation:\s*(.*)", re.DOTALL | re.ASCII)

MIN_SCORE = 0
MAX_SCORE = 100


@dataclass(frozen=True)
class ParsedRisk:
    score: int
    explanation: str

    def as_dict(self) -> dict:
        return {"score": self.score, "explanation": self.explanation}


@dataclass(frozen=True)
class UnparsableResponse:
    raw_text: str
    reason: Literal["no_match", "invalid_score"]


def parse_risk_response(text: str | None) -> ParsedRisk | UnparsableResponse:
    raw_text = text or ""
    match = RISK_RESPONSE_PATTERN.search(raw_text)
    if match is None:
        return UnparsableResponse(raw_text=raw_text, reason="no_match")

    score_text, explanation = match.groups()
    try:
        score = int(score_text, 10)
    except ValueError:
        return UnparsableResponse(raw_text=raw_text, reason="invalid_score")
    if score < MIN_SCORE or score > MAX_SCORE:
        return UnparsableResponse(raw_text=raw_text, reason="invalid_score")

    return ParsedRisk(score=score, explanation=explanation.strip())
