"""Naming utilities for code generation."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Final, Sequence

# Only add entries that are highly unlikely to be ordinary words.
# "ID" is fine, "AND" is not.
COMMON_INITIALISMS: frozenset[str] = frozenset({
    "API",
    "ASCII",
    "CPU",
    "CSS",
    "DNS",
    "EOF",
    "GUID",
    "HTML",
    "HTTP",
    "HTTPS",
    "ID",
    "IP",
    "JSON",
    "LHS",
    "QPS",
    "RAM",
    "RHS",
    "RPC",
    "SLA",
    "SMTP",
    "SSH",
    "TLS",
    "TTL",
    "UI",
    "UID",
    "UUID",
    "URI",
    "URL",
    "UTF8",
    "VM",
    "XML",
})

DIGIT_WORDS: Final[tuple[str, ...]] = (
    "zero",
    "one",
    "two",
    "three",
    "four",
    "five",
    "six",
    "seven",
    "eight",
    "nine",
)

# Runs of letters and digits; everything else (underscore included) separates.
_SEGMENT_RE: Final = re.compile(r"[^\W_]+")
_LEADING_DIGITS_RE: Final = re.compile(r"\d+")

# Common irregular plurals
_IRREGULAR_PLURALS: dict[str, str] = {
    "children": "child",
    "people": "person",
    "men": "man",
    "women": "woman",
    "mice": "mouse",
    "geese": "goose",
    "teeth": "tooth",
    "feet": "foot",
    "data": "datum",
    "criteria": "criterion",
    "analyses": "analysis",
    "indices": "index",
    "appendices": "appendix",
    "matrices": "matrix",
    "vertices": "vertex",
}


class IdentifierFormatter:
    """Turns raw table and column names into exported Go identifiers.

    The initialism set and the digit spelling table are injected so that
    callers can format with an alternate vocabulary without touching
    module state.

    Examples:
        >>> IdentifierFormatter().format("user_id")
        'UserID'
        >>> IdentifierFormatter().format("2fa_codes")
        'TwoFaCodes'
    """

    __slots__ = ("_initialisms", "_digit_words")

    def __init__(
        self,
        initialisms: frozenset[str] = COMMON_INITIALISMS,
        digit_words: Sequence[str] = DIGIT_WORDS,
    ) -> None:
        self._initialisms = frozenset(word.upper() for word in initialisms)
        self._digit_words = tuple(digit_words)

    @property
    def initialisms(self) -> frozenset[str]:
        return self._initialisms

    def format(self, raw: str) -> str:
        """Format a raw name as a single PascalCase identifier.

        Returns an empty string when ``raw`` holds no letters or digits.
        """
        segments = _SEGMENT_RE.findall(raw)
        if not segments:
            return ""

        words: list[str] = []
        leading = _LEADING_DIGITS_RE.match(segments[0])
        if leading and leading.end() < len(segments[0]):
            words.append(self._spell_digits(leading.group()))
            segments[0] = segments[0][leading.end():]

        for segment in segments:
            if segment.isdecimal():
                words.append(self._spell_digits(segment))
            else:
                words.append(self._format_segment(segment))

        identifier = "".join(words)
        if identifier.upper() in self._initialisms:
            return identifier.upper()
        return identifier

    def capitalize_first(self, raw: str) -> str:
        """Upper-case only the first character of ``raw``."""
        return raw[:1].upper() + raw[1:]

    def _format_segment(self, segment: str) -> str:
        upper = segment.upper()
        if upper in self._initialisms:
            return upper
        return self.capitalize_first(segment)

    def _spell_digits(self, digits: str) -> str:
        return "".join(self._digit_words[int(d)].capitalize() for d in digits)


_DEFAULT_FORMATTER: Final = IdentifierFormatter()


@lru_cache(maxsize=1024)
def format_identifier(raw: str) -> str:
    """Format ``raw`` with the default initialism set.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> format_identifier("api_key")
        'APIKey'
        >>> format_identifier("html_body")
        'HTMLBody'
    """
    return _DEFAULT_FORMATTER.format(raw)


def capitalize_first(raw: str) -> str:
    """Upper-case the first character, leaving the rest untouched."""
    return _DEFAULT_FORMATTER.capitalize_first(raw)


@lru_cache(maxsize=1024)
def singularize(name: str) -> str:
    """Convert a plural word to singular form.

    Uses caching for repeated calls with the same input.
    """
    # Check irregular plurals first
    lower = name.lower()
    if lower in _IRREGULAR_PLURALS:
        # Preserve original case pattern
        singular = _IRREGULAR_PLURALS[lower]
        if name[0].isupper():
            return singular.capitalize()
        return singular

    # Apply rules in order of specificity
    if name.endswith("ies") and len(name) > 3:
        return name[:-3] + "y"
    if name.endswith("ses") and len(name) > 3:
        return name[:-2]
    if name.endswith("xes") and len(name) > 3:
        return name[:-2]
    if name.endswith("zes") and len(name) > 3:
        return name[:-2]
    if name.endswith("ches") and len(name) > 4:
        return name[:-2]
    if name.endswith("shes") and len(name) > 4:
        return name[:-2]
    if name.endswith("s") and not name.endswith(("ss", "us", "is")) and len(name) > 1:
        return name[:-1]
    return name

