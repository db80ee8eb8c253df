"""Find the rewritable text in an HTML tree.

``extract_candidates`` walks a BeautifulSoup tree in document order and
returns one ``Candidate`` per prose text node, together with a ``TextSlots``
table that maps each candidate's handle back to its node. Writers never
hold the node itself: they resolve the handle through the slot table, which
also keeps track of the replacement node after each write.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import Iterable

from bs4 import NavigableString, Tag
from bs4.element import PreformattedString

logger = logging.getLogger("redraft.extractor")

# Containers whose text is not prose.
SKIP_TEXT_TAGS = frozenset({
    "script",
    "style",
    "noscript",
    "code",
    "pre",
    "math",
    "kbd",
    "samp",
    "svg",
})

# Substrings of class/style metadata that mark citations, navigation boxes,
# tables of contents, edit links and metadata blocks.
SKIP_CLASS_HINTS = (
    "reference",
    "reflist",
    "mw-editsection",
    "navbox",
    "toc",
    "metadata",
    "infobox-above",
)

_WORD_RE = re.compile(r"[A-Za-z]{3,}")


@dataclasses.dataclass(frozen=True)
class Candidate:
    """One rewritable text unit.

    Attributes:
        handle:        Key into the ``TextSlots`` the candidate came from.
        original_text: Node text as found, surrounding whitespace included.
    """

    handle: int
    original_text: str


class TextSlots:
    """Handle -> text node lookup for one document.

    Each handle owns exactly one node, so concurrent writers touching
    different handles never interfere.
    """

    def __init__(self, nodes: Iterable[NavigableString] = ()) -> None:
        self._nodes: list[NavigableString] = list(nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def add(self, node: NavigableString) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def read(self, handle: int) -> str:
        return str(self._nodes[handle])

    def write(self, handle: int, text: str) -> None:
        """Replace the node behind *handle* with a new string node."""
        node = self._nodes[handle]
        replacement = NavigableString(text)
        node.replace_with(replacement)
        self._nodes[handle] = replacement


def _metadata_text(tag: Tag) -> str:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = [classes]
    style = tag.get("style") or ""
    return " ".join([*classes, style])


def should_rewrite(parent: Tag | None, text: str) -> bool:
    """Return True if a text node with this parent and content is prose."""
    if parent is None:
        return False
    if not text.strip():
        return False
    if not _WORD_RE.search(text):
        return False
    if (parent.name or "").lower() in SKIP_TEXT_TAGS:
        return False
    metadata = _metadata_text(parent)
    if metadata and any(hint in metadata for hint in SKIP_CLASS_HINTS):
        return False
    return True


def extract_candidates(root: Tag) -> tuple[list[Candidate], TextSlots]:
    """Collect rewrite candidates under *root* in pre-order.

    Read-only: the tree is not modified. Returns an empty list when
    nothing qualifies.
    """
    slots = TextSlots()
    candidates: list[Candidate] = []

    for node in root.descendants:
        # Comments, CDATA, doctypes and processing instructions are not text.
        if not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
            continue
        text = str(node)
        if should_rewrite(node.parent, text):
            candidates.append(Candidate(handle=slots.add(node), original_text=text))

    logger.debug("Extracted %d candidates", len(candidates))
    return candidates, slots
