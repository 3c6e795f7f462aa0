"""
Negation-aware threat detection over free-form model descriptions.

Gemini only returns prose, so the verdict is derived from keywords. All
matching is case-insensitive and on whole words.
"""

import logging
import re
from typing import Any, Optional

from .schemas import FLAG_NAMES, AnalysisResult, FlaggedResult, TextResult

logger = logging.getLogger(__name__)

NEGATION_WINDOW = 6

# "no weapon", "not a threat", "isn’t a gun" within a few words
_NEGATION_RE = re.compile(
    r"(?:\b(?:no|not|none|without|never|unlikely)|n['’]t)\b"
    r"(?:(?:\s+\w+){0,%d})\s*"
    r"\b(?:threat|danger|weapon|gun|knife|bomb|explosive|attack|violence|shooting|stabbing|hostage)\b"
    % NEGATION_WINDOW
)

_STRONG_RE = re.compile(
    r"\b(?:weapon|gun|knife|bomb|explosive|rifle|pistol|shooting|stabbing|hostage|explosion|grenade|shooter)\b"
)

_WEAK_RE = re.compile(r"\b(?:threat|danger|risk|suspicious|hazard|unsafe)\b")

# Softer phrasing models tend to use counts as certainty too
_CERTAINTY_RE = re.compile(
    r"\b(?:detected|confirmed|likely|possible|probable|suspected|observed|identified|found"
    r"|appears?|seems?|may|might|possibly|indicat(?:es|ing)|suggest(?:s|ing)?|looks?)\b"
)

_TRUTHY_STRINGS = frozenset({"true", "yes", "1", "y"})


def parse_boolean_like(value: Any) -> bool:
    """Interpret boolean-like values returned from other systems."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if not value:
        return False
    return str(value).strip().lower() in _TRUTHY_STRINGS


def classify(text: Optional[str]) -> bool:
    """Return True when a description indicates a threat.

    Rules, first match wins:
      1. a negation within a few words of a threat term -> not a threat
      2. an unambiguous threat object (gun, knife, bomb, ...) -> threat
      3. a weak term (risk, suspicious, ...) plus a certainty word -> threat
    """
    if not text:
        return False
    lower = str(text).lower()

    if _NEGATION_RE.search(lower):
        return False
    if _STRONG_RE.search(lower):
        return True
    if _WEAK_RE.search(lower) and _CERTAINTY_RE.search(lower):
        return True
    return False


is_threat_description = classify


def decide_threat(result: AnalysisResult) -> bool:
    """Final verdict for an upstream result.

    Explicit flags win when one of them is truthy; otherwise the description
    is classified. Errors never raise an alarm.
    """
    try:
        if isinstance(result, TextResult):
            return classify(result.text)

        if isinstance(result, FlaggedResult):
            for name in FLAG_NAMES:
                if name in result.flags and parse_boolean_like(result.flags[name]):
                    return True
            if result.description:
                return classify(result.description)
            return False

        return classify(result)
    except Exception as e:
        logger.error(f"Threat detection error: {e}")
        return False
