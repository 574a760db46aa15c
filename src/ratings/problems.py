"""Problem catalog: the fixed set of issues a visitor can report.

Codes are stable integers shared with every client; labels are for display.
"""

PROBLEM_CATALOG: dict[int, str] = {
    1: "Toilet paper missing",
    2: "Soap missing",
    3: "Paper towels missing",
    4: "Trash bin full",
    5: "Toilet bowl dirty",
    6: "Other",
}

# Selecting this code requires a free-text description.
OTHER_PROBLEM_CODE = 6

VALID_PROBLEM_CODES: frozenset[int] = frozenset(PROBLEM_CATALOG)


def is_valid_code(code: object) -> bool:
    """Whether ``code`` is a known catalog code (bools are not codes)."""
    return isinstance(code, int) and not isinstance(code, bool) and code in VALID_PROBLEM_CODES


def describe(codes: list[int]) -> list[str]:
    """Labels for ``codes`` in the given order, skipping unknown codes."""
    return [PROBLEM_CATALOG[c] for c in codes if c in PROBLEM_CATALOG]


def catalog_entries() -> list[dict[str, int | str]]:
    """The catalog as a list of ``{"code", "label"}`` dicts ordered by code."""
    return [
        {"code": code, "label": label}
        for code, label in sorted(PROBLEM_CATALOG.items())
    ]
