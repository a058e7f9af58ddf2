import json
from typing import Any

SYSTEM_PROMPT = """
You are a career risk assessment AI. Analyze the candidate's profile and provide:
1. A risk score (0-100, higher means MORE RISK)
2. A brief, robotic explanation of the risk factors considering the current job market and technology trends.

Format your response EXACTLY as:
Score: [number]
Explanation: [1 robotic sentences about user role and industry. 2 robotic sentences about risk factors considering the current job market and technology trends]
""".strip()

USER_PROMPT_TEMPLATE = "Career profile to analyze:\n{profile_json}"


def build_risk_prompt(profile: Any) -> str:
    return USER_PROMPT_TEMPLATE.format(
        profile_json=json.dumps(profile, indent=2, ensure_ascii=False, default=str),
    )


def build_risk_messages(profile: Any) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_risk_prompt(profile)},
    ]
