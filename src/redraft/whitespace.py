"""Restore boundary whitespace the rewrite service dropped.

Adjacent inline text nodes rely on their leading/trailing spaces to keep
words apart ("the <a>city</a> of"). Models routinely trim them.
"""

import re

_LEADING_WS = re.compile(r"\A\s*")
_TRAILING_WS = re.compile(r"\s*\Z")


def leading_whitespace(text: str) -> str:
    return _LEADING_WS.match(text).group(0)


def trailing_whitespace(text: str) -> str:
    return _TRAILING_WS.search(text).group(0)


def reconcile_whitespace(original: str, rewritten: str) -> str:
    """Give *rewritten* the same leading and trailing whitespace runs as *original*.

    The result always starts with the original's leading run and ends with
    its trailing run. A rewrite that already carries them is left alone.
    """
    lead = leading_whitespace(original)
    trail = trailing_whitespace(original)

    result = rewritten
    if not result.startswith(lead):
        result = lead + result.lstrip()
    if not result.endswith(trail):
        # Trim only past the leading run so it survives an all-blank rewrite.
        result = lead + result[len(lead):].rstrip() + trail
    return result
