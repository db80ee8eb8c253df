"""Deterministic local rewrite used when the rewrite service cannot deliver.

No I/O and no randomness: the same input always produces the same output,
so a fully degraded run is still reproducible.
"""

import re

# Applied in this order, one pass each. Later patterns see earlier output.
REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(rf"\b{pattern}\b", re.IGNORECASE), replacement)
    for pattern, replacement in (
        ("very", "tremendous"),
        ("important", "very important, believe me"),
        ("successful", "incredibly successful"),
        ("many", "so many"),
        ("widely", "very widely"),
        ("according to", "according to many people"),
        ("notable", "highly notable"),
        ("strong", "strong, really strong"),
    )
)

MARKER_PHRASE = "Folks,"
# Only long sentence-like segments get the marker.
MARKER_MIN_LENGTH = 90

_STARTS_UPPER = re.compile(r"[A-Z]")


def heuristic_rewrite(text: str) -> str:
    """Rewrite *text* with fixed word substitutions and an opening marker.

    Whitespace-only and empty strings come back unchanged, and leading or
    trailing whitespace is never altered.
    """
    trimmed = text.strip()
    if not trimmed:
        return text

    output = text
    for pattern, replacement in REPLACEMENTS:
        output = pattern.sub(replacement, output)

    if (
        len(trimmed) > MARKER_MIN_LENGTH
        and _STARTS_UPPER.match(trimmed)
        and not trimmed.startswith(MARKER_PHRASE)
    ):
        # The marker goes in front of the untouched sentence only; once a
        # substitution has changed it there is nothing to prefix.
        at = output.find(trimmed)
        if at >= 0:
            output = f"{output[:at]}{MARKER_PHRASE} {output[at:]}"

    return output
