"""Denylist safety filter applied to user input and model replies.

Matching is a plain ordered regex scan over lowercased text; the first
pattern that hits decides the label. This is a coarse guard, not a
moderation model.
"""
import re
import logging
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)

INPUT_REFUSAL = (
    "I can't help with that. If you're feeling unsafe or thinking about harming "
    "yourself, please contact a trusted person in your life or local emergency services."
)
OUTPUT_REFUSAL = (
    "I can't assist with that topic. If you need urgent help, please contact "
    "local services or someone you trust."
)


def _compile(patterns: List[Tuple[str, str]]) -> List[Tuple[Pattern[str], str]]:
    return [(re.compile(pattern, re.IGNORECASE), label) for pattern, label in patterns]


DENYLIST: List[Tuple[Pattern[str], str]] = _compile([
    (r"how to kill", "violence"),
    (r"how to make a bomb", "weapons"),
    (r"build a bomb", "weapons"),
    (r"detonate", "weapons"),
    (r"suicide", "self_harm"),
    (r"how to die", "self_harm"),
    (r"i want to die", "self_harm"),
    (r"hang myself", "self_harm"),
    (r"kill myself", "self_harm"),
    (r"harm (someone|others)", "violence"),
    (r"hurt (someone|others)", "violence"),
    (r"manufacture.*weapon", "weapons"),
    (r"assemble.*gun", "weapons"),
    (r"illicit drug", "illicit_drugs"),
    (r"produce meth", "illicit_drugs"),
    (r"child sexual", "child_exploitation"),
    (r"sexual.*minor", "child_exploitation"),
    (r"\bpedophile\b", "child_exploitation"),
    (r"steal credit card", "fraud"),
    (r"carding", "fraud"),
    (r"explosives instruction", "weapons"),
    (r"bypass (security|captcha)", "fraud"),
])


@dataclass(frozen=True)
class SafetyVerdict:
    clean: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "SafetyVerdict":
        return cls(clean=True)

    @classmethod
    def refusal(cls, reason: str) -> "SafetyVerdict":
        return cls(clean=False, reason=reason)


def classify(
    text: str, denylist: Optional[List[Tuple[Pattern[str], str]]] = None
) -> SafetyVerdict:
    """Return a refusal verdict labelled with the first denylist match."""
    lower = text.lower()
    for pattern, label in denylist if denylist is not None else DENYLIST:
        if pattern.search(lower):
            return SafetyVerdict.refusal(label)
    return SafetyVerdict.ok()
