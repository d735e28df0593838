"""
Same-Entity Shortcuts

Recognizes name pairs that obviously refer to one payee even though the
string metrics penalize them: suffix-only differences ("Christa INC" vs
"CHRISTA"), reordered tokens, a name contained in a longer one, and
initialisms ("IBM" vs "International Business Machines").
"""

from typing import Any, List

from .name_normalizer import normalize_name, tokenize

# Floor applied to the duplicate score of a same-entity pair.
SAME_ENTITY_SCORE_FLOOR = 90.0


def is_same_entity(name_a: Any, name_b: Any) -> bool:
    """Check whether two raw payee names denote the same entity.

    Names that normalize to nothing never match.
    """
    norm_a = normalize_name(name_a)
    norm_b = normalize_name(name_b)

    if not norm_a or not norm_b:
        return False

    if norm_a == norm_b:
        return True

    tokens_a = tokenize(norm_a)
    tokens_b = tokenize(norm_b)

    if sorted(tokens_a) == sorted(tokens_b):
        return True

    if len(tokens_a) != len(tokens_b):
        shorter, longer = sorted((tokens_a, tokens_b), key=len)
        if all(token in longer for token in shorter):
            return True

    if len(tokens_a) == 1 and len(tokens_b) > 1:
        return _could_be_initialism(tokens_a[0], tokens_b)
    if len(tokens_b) == 1 and len(tokens_a) > 1:
        return _could_be_initialism(tokens_b[0], tokens_a)

    return False


def _could_be_initialism(abbrev: str, full_words: List[str]) -> bool:
    """Check if a single token spells the initials of a list of words."""
    if len(abbrev) != len(full_words):
        return False

    return all(word.startswith(letter) for letter, word in zip(abbrev, full_words))
