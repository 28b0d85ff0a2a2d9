"""Prompt templates for the narrative rewrite."""

from typing import Optional

REWRITE_ROLE = (
    "Act as a Tech Writer with knowledge of programming. "
    "You will act with passion on detail and will be able to write a changelog "
    "for a release in user friendly text. "
    "You will fix grammar and spelling mistakes as well."
)

REWRITE_REQUEST = (
    "Rewrite release changes into user-friendly text. "
    "For each line you receive, write one meaningful sentence in the past tense, "
    "starting each bullet point with a `* `, and end the sentence with `.`. "
    "Return only the bullet points, one per line, in the same order."
)

REWRITE_SYSTEM = f"{REWRITE_ROLE}\n{REWRITE_REQUEST}"


def get_rewrite_system(custom: Optional[str] = None) -> str:
    """Return the configured rewrite instruction, falling back to the built-in one."""
    if isinstance(custom, str) and custom.strip():
        return custom.strip()
    return REWRITE_SYSTEM
