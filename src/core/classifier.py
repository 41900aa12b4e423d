"""Keyword classification of page text (core domain).

Every heuristic that depends on the page's wording lives behind this module so
that localized phrase lists can change without touching the state machines.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable, List, Optional

from core.config import EngineConfig

COUNT_PATTERN = re.compile(r"\((\d+)\)")


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def normalize_text(text: str) -> str:
    """Normalize text for keyed comparisons."""

    return _collapse_whitespace(text).lower()


@dataclass(frozen=True)
class PhraseSet:
    """Compiled, case-insensitive phrase list."""

    name: str
    phrases: List[str]

    def first_match(self, text: Optional[str]) -> Optional[str]:
        """Return the first phrase contained in ``text``, if any."""

        if not text:
            return None
        lowered = text.lower()
        for phrase in self.phrases:
            if phrase in lowered:
                return phrase
        return None

    def matches(self, text: Optional[str]) -> bool:
        return self.first_match(text) is not None


def build_phrase_set(name: str, phrases: Iterable[str]) -> PhraseSet:
    """Lowercase phrases once so per-signal matching stays minimal."""

    lowered = [phrase.lower() for phrase in phrases if phrase.strip()]
    return PhraseSet(name=name, phrases=lowered)


@dataclass(frozen=True)
class SignalClassifier:
    """All text rules the engine consults."""

    call_keywords: PhraseSet
    typing_phrases: PhraseSet
    app_title_markers: PhraseSet
    blocked_senders: PhraseSet

    def call_match(self, text: Optional[str]) -> Optional[str]:
        return self.call_keywords.first_match(text)

    def is_typing(self, title: str) -> bool:
        return self.typing_phrases.matches(title)

    def is_app_title(self, title: str) -> bool:
        # No markers configured means every title counts as the app's own.
        if not self.app_title_markers.phrases:
            return True
        return self.app_title_markers.matches(title)

    def is_blocked_sender(self, sender: Optional[str]) -> bool:
        return self.blocked_senders.matches(sender)


def build_classifier(config: EngineConfig) -> SignalClassifier:
    return SignalClassifier(
        call_keywords=build_phrase_set("call_keywords", config.calls.keywords),
        typing_phrases=build_phrase_set("typing_phrases", config.badge.typing_phrases),
        app_title_markers=build_phrase_set("app_title_markers", config.badge.app_title_markers),
        blocked_senders=build_phrase_set("blocked_senders", config.filter.blocked_senders),
    )


def extract_count(title: str) -> Optional[str]:
    """Return the first parenthesized integer in ``title`` as text."""

    match = COUNT_PATTERN.search(title)
    if not match:
        return None
    return match.group(1)
