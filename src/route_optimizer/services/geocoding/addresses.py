"""Pull street addresses out of free text (pasted order lists, messages)."""

from __future__ import annotations

import re

_CZECH_STREET_WORDS = (
    "ulice|ul|třída|tř|náměstí|nám|aleje|alej|silnice|sil|cesta|nábřeží|sady|park|"
    "zahrada|údolí|vrch|čp|č"
)
_ENGLISH_STREET_WORDS = (
    "Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|Boulevard|Blvd|Court|Ct|Way|"
    "Place|Pl|Square|Sq|Terrace|Ter|Circle|Cir|Highway|Hwy"
)

# Tried in order; the first pattern with a usable match wins for a fragment.
ADDRESS_PATTERNS = (
    re.compile(rf"\b\d+\s+[\w\s]+?\s+(?:{_ENGLISH_STREET_WORDS})\b", re.IGNORECASE),
    re.compile(rf"\b\d+\s+[\w\s]+?\s+(?:{_CZECH_STREET_WORDS})\b[\w\s]*", re.IGNORECASE),
    re.compile(r"\b[^\W\d_][\w\s]*?\s+\d+(?:/\d+)?[^\W\d_]?\b"),
    re.compile(r"\b\d+/\d+\s+[\w\s]+"),
    re.compile(r"\b\d+\s+[\w\s]+"),
)

MAX_ADDRESSES = 20

_FRAGMENT_SPLIT = re.compile(r"[\n,;]+")
_DISALLOWED = re.compile(r"[^\w\s,./-]")
_WHITESPACE = re.compile(r"\s+")
_DIGIT = re.compile(r"\d")
_LETTER = re.compile(r"[^\W\d_]")


def _clean(candidate: str) -> str:
    return _WHITESPACE.sub(" ", _DISALLOWED.sub("", candidate)).strip()


def _looks_like_address(candidate: str) -> bool:
    return len(candidate) > 8 and bool(_DIGIT.search(candidate)) and bool(_LETTER.search(candidate))


def extract_addresses(text: str) -> list[str]:
    """Candidate addresses found in ``text``, deduplicated in order of appearance."""

    addresses: list[str] = []
    fragments = [fragment.strip() for fragment in _FRAGMENT_SPLIT.split(text or "")]
    for fragment in fragments:
        if len(fragment) <= 5:
            continue
        found = None
        for pattern in ADDRESS_PATTERNS:
            for match in pattern.findall(fragment):
                candidate = _clean(match)
                if _looks_like_address(candidate):
                    found = candidate
                    break
            if found:
                break
        if found is None:
            whole = _clean(fragment)
            if _looks_like_address(whole) and len(whole.split(" ")) >= 2:
                found = whole
        if found and found not in addresses:
            addresses.append(found)
    return addresses[:MAX_ADDRESSES]
