from __future__ import annotations

import re
from dataclasses import dataclass

from route_runner.core.enums import LocationPurpose

_PHRASE = r"([A-Za-z0-9'&\- ]{3,})"

AROUND_PATTERN = re.compile(r"\b(?:run|jog|walk|loop|circle|go|head|route)\s+around\s+" + _PHRASE, re.IGNORECASE)
DESTINATION_PATTERN = re.compile(
    r"\b(?:to|toward|towards|into|onto|arrive at|stop at|end(?:ing)? at|finish(?:ing)? at)\s+(?:the\s+)?" + _PHRASE,
    re.IGNORECASE,
)
START_PATTERN = re.compile(r"\bstart(?:ing)?(?:\s+from|\s+at)?\s+(?:the\s+)?" + _PHRASE, re.IGNORECASE)
VIA_PATTERN = re.compile(r"\bvia\s+(?:the\s+)?" + _PHRASE, re.IGNORECASE)
CAPITALIZED_PATTERN = re.compile(r"([A-Z][\w'&-]*(?:\s+[A-Z][\w'&-]*)+)")

RULES: tuple[tuple[re.Pattern[str], LocationPurpose], ...] = (
    (AROUND_PATTERN, LocationPurpose.PERIMETER),
    (DESTINATION_PATTERN, LocationPurpose.DESTINATION),
    (START_PATTERN, LocationPurpose.DESTINATION),
    (VIA_PATTERN, LocationPurpose.LANDMARK),
    (CAPITALIZED_PATTERN, LocationPurpose.LANDMARK),
)


@dataclass(slots=True, frozen=True)
class Mention:
    phrase: str
    purpose: LocationPurpose

    def to_dict(self) -> dict[str, str]:
        return {"phrase": self.phrase, "purpose": self.purpose.value}


def clean_phrase(phrase: str) -> str:
    cleaned = phrase.strip()
    cleaned = re.sub(r"^the\s+", "", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"[.,!?;:]+$", "", cleaned)
    cleaned = re.sub(r"\s{2,}", " ", cleaned)
    return cleaned.strip()


def _register(mentions: dict[str, Mention], raw_phrase: str, purpose: LocationPurpose) -> None:
    cleaned = clean_phrase(raw_phrase)
    if not cleaned:
        return
    key = cleaned.lower()
    existing = mentions.get(key)
    if existing is None or purpose.priority > existing.purpose.priority:
        mentions[key] = Mention(phrase=cleaned, purpose=purpose)


def extract_location_mentions(query: str) -> list[Mention]:
    mentions: dict[str, Mention] = {}
    for pattern, purpose in RULES:
        for match in pattern.finditer(query):
            _register(mentions, match.group(1), purpose)
    return list(mentions.values())
