from __future__ import annotations

from collections.abc import Sequence


def camel_case(name: str) -> str:
    """Convert ``instance-id`` style column names to EC2's ``instanceId`` form.

    Separators (``-`` and ``_``) are dropped and upper-case the next character;
    runs of separators collapse and a trailing separator is simply removed.
    """
    chars: list[str] = []
    upper_next = False
    for char in name:
        if char in "-_":
            upper_next = True
            continue
        chars.append(char.upper() if upper_next else char)
        upper_next = False
    return "".join(chars)


def fuzzy_match(subject: str, pattern: str) -> bool:
    """Return True if every character of ``pattern`` appears in ``subject`` in order.

    The comparison ignores case, so ``"thm"`` matches ``"ThisMatches"``.
    """
    if len(pattern) > len(subject):
        return False

    subject = subject.lower()
    pattern = pattern.lower()

    i = 0
    j = 0
    while j < len(pattern):
        if i == len(subject):
            return False
        if pattern[j] == subject[i]:
            j += 1
        i += 1
    return True


def row_matches_exact(row: Sequence[str], value: str) -> bool:
    return any(column == value for column in row)


def row_matches_fuzzy(row: Sequence[str], pattern: str) -> bool:
    return any(fuzzy_match(column, pattern) for column in row)


def row_matches(row: Sequence[str], fuzzy: str = "", exact: str = "") -> bool:
    # Either filter is enough when both are given.
    if not fuzzy and not exact:
        return True
    if exact and row_matches_exact(row, exact):
        return True
    if fuzzy and row_matches_fuzzy(row, fuzzy):
        return True
    return False
