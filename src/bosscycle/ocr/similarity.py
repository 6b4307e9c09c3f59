"""String similarity used for fuzzy action name matching."""

import Levenshtein


def levenshtein_ratio(a: str, b: str) -> float:
    """Normalized edit-distance similarity.

    Returns 1 - distance / max(len(a), len(b)); 1.0 for equal strings and
    0.0 when either string is empty.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1.0 - Levenshtein.distance(a, b) / max(len(a), len(b))
