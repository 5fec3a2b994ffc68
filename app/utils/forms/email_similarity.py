"""Decide whether a re-typed email is different enough to dismiss a login error."""

from app.constants.constants import EMAIL_MIN_EDIT_DISTANCE


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def levenshtein(a: str, b: str) -> int:
    """Classic edit distance (insertions, deletions, substitutions all cost 1)."""
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (char_a != char_b),
            ))
        previous = current
    return previous[-1]


def is_complete_replacement(new_value: str, original: str) -> bool:
    """True when the two values share no common leading character."""
    if not new_value or not original:
        return True
    return new_value[0] != original[0]


def is_significantly_different(
    new_email: str,
    triggering_email: str,
    min_distance: int = EMAIL_MIN_EDIT_DISTANCE,
) -> bool:
    """
    Compare case-insensitively after stripping whitespace.

    An identical email is never significant. Otherwise the new email counts as
    different when it is at least ``min_distance`` edits away, or when it is a
    complete replacement of the one that caused the error.
    """
    new_email = normalize_email(new_email)
    triggering_email = normalize_email(triggering_email)

    if new_email == triggering_email:
        return False
    if is_complete_replacement(new_email, triggering_email):
        return True
    return levenshtein(new_email, triggering_email) >= min_distance
