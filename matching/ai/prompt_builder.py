SYSTEM_ROLE_DEFINITION = """
You are a similarity judge for a student community recommendation engine.
Your goal is to RATE how relevant a learning community is to a user's stated interests and goals.
You DO NOT recommend anything yourself. You only return a number.
"""

SCORING_RULES = [
    "Judge topical relevance only, not community size, popularity or location.",
    "Use 0.0 for unrelated topics and 1.0 for a near-perfect topical match.",
    "If either text is empty or meaningless, return 0.0.",
    "Never invent facts about the community beyond the text provided.",
]

JSON_OUTPUT_FORMAT_INSTRUCTION = """
You must output strictly valid JSON with no markdown formatting.
Structure:
{
  "similarity": 0.0
}
"""


def build_system_prompt() -> str:
    """Constructs the static system prompt."""
    rules_str = "\n".join([f"- {rule}" for rule in SCORING_RULES])

    return f"""{SYSTEM_ROLE_DEFINITION}

SCORING RULES:
{rules_str}

OUTPUT FORMAT:
{JSON_OUTPUT_FORMAT_INSTRUCTION}
"""


def build_user_prompt(user_text: str, candidate_text: str, max_chars: int = 1500) -> str:
    """
    Constructs the user prompt from the two texts.
    Truncates each text to save tokens.
    """
    return f"""
USER PROFILE:
{_truncate(user_text, max_chars)}

COMMUNITY:
{_truncate(candidate_text, max_chars)}

TASK:
Rate the relevance of the community to the user between 0.0 and 1.0.
"""


def _truncate(text: str, limit: int) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else text[:limit] + "..."
