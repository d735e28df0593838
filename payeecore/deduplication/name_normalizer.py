"""
Payee Name Normalization

Reduces a raw payee name to the canonical token sequence that every
similarity metric compares. Case, accents, punctuation, dotted initials,
filler words and trailing legal-entity suffixes are all treated as noise.
"""

import re
import unicodedata
from typing import Any, List

# Legal-entity designators that do not change which payee a name refers to.
LEGAL_SUFFIXES = frozenset({
    "inc", "incorporated", "corp", "corporation", "llc", "llp", "lp", "ltd",
    "limited", "co", "company", "plc", "pllc", "pc", "gmbh", "ag", "sa",
    "sarl", "bv", "nv", "pty", "pvt", "enterprises", "enterprise", "group",
    "partners", "partnership", "holdings",
})

FILLER_WORDS = frozenset({"the", "dba", "aka"})

_DOTTED_INITIALS = re.compile(r"\b(?:\w\.){2,}")
_APOSTROPHES = re.compile(r"['’`´]")
_AMPERSAND = re.compile(r"\s+&\s+")
_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def _fold(text: str) -> str:
    """Casefold and strip accents (``Café`` -> ``cafe``)."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def tokenize(text: str) -> List[str]:
    """Split already-normalized text into tokens."""
    return [token for token in text.split(" ") if token]


def normalize_name(raw_name: Any) -> str:
    """Normalize a payee name for duplicate detection.

    Steps:
      1. Anything that is not a string normalizes to ``""``.
      2. Casefold and strip accents.
      3. Collapse dotted initials (``L.L.C.`` -> ``llc``), drop apostrophes,
         spell out ``&`` and turn remaining punctuation into spaces.
      4. Drop filler words and trailing legal suffixes, always keeping at
         least one token so a name such as ``The Company`` stays comparable.

    The result is stable under repeated application.
    """
    if not isinstance(raw_name, str):
        return ""

    text = _fold(raw_name)
    text = _DOTTED_INITIALS.sub(lambda m: m.group(0).replace(".", ""), text)
    text = _APOSTROPHES.sub("", text)
    text = _AMPERSAND.sub(" and ", text)
    text = _NON_WORD.sub(" ", text)
    text = _WHITESPACE.sub(" ", text).strip()

    tokens = tokenize(text)
    tokens = [token for token in tokens if token not in FILLER_WORDS] or tokens
    while len(tokens) > 1 and tokens[-1] in LEGAL_SUFFIXES:
        tokens.pop()

    return " ".join(tokens)


class NameNormalizer:
    """Callable wrapper so the engine can take a custom normalizer."""

    def __call__(self, raw_name: Any) -> str:
        return normalize_name(raw_name)

    def normalize(self, raw_name: Any) -> str:
        return normalize_name(raw_name)
