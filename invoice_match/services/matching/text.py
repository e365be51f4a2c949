"""
Text helpers for comparing free-text invoice and job fields.
"""

import re

# Whole-word street suffixes collapsed to their postal abbreviation
STREET_SUFFIXES = {
    "street": "st",
    "avenue": "ave",
    "boulevard": "blvd",
    "drive": "dr",
    "road": "rd",
    "lane": "ln",
    "court": "ct",
    "place": "pl",
}

_PUNCTUATION = re.compile(r"[.,]")
_WHITESPACE = re.compile(r"\s+")
_SUFFIX_PATTERN = re.compile(r"\b(" + "|".join(STREET_SUFFIXES) + r")\b")


def normalize_address(address: str) -> str:
    """
    Canonicalize a postal street address for equality checks.

    "123 Main Street, Suite 4." -> "123 main st suite 4"

    Callers guard against None; an empty string normalizes to "".
    """
    value = address.lower()
    value = _PUNCTUATION.sub("", value)
    value = _WHITESPACE.sub(" ", value)
    value = _SUFFIX_PATTERN.sub(lambda m: STREET_SUFFIXES[m.group(1)], value)
    return value.strip()


def token_set_similarity(a: str, b: str) -> float:
    """
    Jaccard index of the lower-cased whitespace token sets of two strings.

    Returns 0.0 when both strings have no tokens.
    """
    tokens_a = set(a.lower().split())
    tokens_b = set(b.lower().split())
    union = tokens_a | tokens_b
    if not union:
        return 0.0
    return len(tokens_a & tokens_b) / len(union)
