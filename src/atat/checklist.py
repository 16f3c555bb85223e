"""Checklist document parsing and serialization for atat.

A checklist document is plain text. Lines of the form ``- [ ] text`` or
``- [x] text`` are items; an item may end with an issue reference written as
``(#N)`` or ``#N``. Every other line is carried through untouched.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from atat.exceptions import AtatError, DocumentNotFoundError, DuplicateIssueReferenceError

logger = logging.getLogger(__name__)

_CHECKBOX_RE = re.compile(
    r"^(?P<indent>[ \t]*)(?P<bullet>[-*+])[ \t]+\[(?P<mark>[ xX])\][ \t]+(?P<body>\S.*?)[ \t]*$"
)

# Anything that opens like a checkbox but fails _CHECKBOX_RE is malformed
_CHECKBOX_PREFIX_RE = re.compile(r"^[ \t]*[-*+][ \t]+\[[^\]]{0,2}(\]|[ \t]|$)")

_REFERENCE_RE = re.compile(r"^(?P<text>.*?)[ \t]+(?:\(#(?P<paren>[1-9][0-9]*)\)|#(?P<bare>[1-9][0-9]*))$")

_FENCE_RE = re.compile(r"^ {0,3}(```|~~~)")

_LINE_END_RE = re.compile(r"(?<=\n)")


@dataclass
class Item:
    """A single checklist item."""

    text: str
    checked: bool
    issue_ref: Optional[int] = None
    position: int = 0

    def __str__(self) -> str:
        return format_item(self)


@dataclass
class ChecklistLine:
    """One physical line of the document.

    ``position`` is the item position for checkbox lines and None otherwise.
    """

    content: str
    ending: str
    position: Optional[int] = None
    indent: str = ""
    bullet: str = "-"
    canonical: bool = True  # False when the reference is written bare (#N)


@dataclass
class Checklist:
    """A parsed document: every line plus the items found in it."""

    lines: List[ChecklistLine] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)
    newline: str = "\n"


def split_reference(body: str) -> Tuple[str, Optional[int]]:
    """Split a trailing issue reference off an item body.

    Args:
        body: Item text after the checkbox marker.

    Returns:
        Tuple of (trimmed text, issue number or None).
    """
    body = body.strip()
    match = _REFERENCE_RE.match(body)
    if match is None:
        return body, None

    text = match.group("text").strip()
    if not text:
        return body, None

    number = match.group("paren") or match.group("bare")
    return text, int(number)


def _split_lines(text: str) -> List[Tuple[str, str]]:
    # Only \n ends a line; str.splitlines also splits on form feeds and Unicode separators
    lines = []
    for chunk in _LINE_END_RE.split(text):
        if not chunk:
            continue
        content = chunk.rstrip("\r\n")
        lines.append((content, chunk[len(content):]))
    return lines


def _scan(text: str) -> Checklist:
    """Parse document structure without validating references."""
    checklist = Checklist()
    in_fence = False
    newline_seen = False

    for line_no, (content, ending) in enumerate(_split_lines(text), start=1):
        if ending and not newline_seen:
            checklist.newline = ending
            newline_seen = True

        if _FENCE_RE.match(content):
            in_fence = not in_fence
            checklist.lines.append(ChecklistLine(content=content, ending=ending))
            continue

        match = None if in_fence else _CHECKBOX_RE.match(content)
        if match is None:
            if not in_fence and _CHECKBOX_PREFIX_RE.match(content):
                logger.warning("Line %d has a malformed checkbox and is kept as text: %r", line_no, content)
            checklist.lines.append(ChecklistLine(content=content, ending=ending))
            continue

        text_part, issue_ref = split_reference(match.group("body"))
        position = len(checklist.items)
        checklist.items.append(
            Item(
                text=text_part,
                checked=match.group("mark") in ("x", "X"),
                issue_ref=issue_ref,
                position=position,
            )
        )
        checklist.lines.append(
            ChecklistLine(
                content=content,
                ending=ending,
                position=position,
                indent=match.group("indent"),
                bullet=match.group("bullet"),
                canonical=issue_ref is None or match.group("body").endswith(")"),
            )
        )

    return checklist


def parse_checklist(text: str) -> Checklist:
    """Parse checklist document text.

    Args:
        text: Raw document text.

    Returns:
        Checklist with the document lines and the items in line order.

    Raises:
        DuplicateIssueReferenceError: If two items reference the same issue.
    """
    checklist = _scan(text)

    seen: Dict[int, int] = {}
    for item in checklist.items:
        if item.issue_ref is None:
            continue
        if item.issue_ref in seen:
            raise DuplicateIssueReferenceError(item.issue_ref, seen[item.issue_ref], item.position)
        seen[item.issue_ref] = item.position

    logger.debug("Parsed %d checklist items from %d lines", len(checklist.items), len(checklist.lines))
    return checklist


def format_item(item: Item, indent: str = "", bullet: str = "-") -> str:
    """Format an item as a checkbox line (without line ending).

    References are always written as ``(#N)``.
    """
    mark = "x" if item.checked else " "
    text = item.text
    if item.issue_ref is not None:
        text = f"{text} (#{item.issue_ref})"
    return f"{indent}{bullet} [{mark}] {text}"


def render_checklist(original_text: str, items: Iterable[Item]) -> str:
    """Serialize items back into the original document.

    Non-checkbox lines are emitted exactly as they were, and so are checkbox
    lines whose item is unchanged and whose reference (if any) is already
    written as ``(#N)``. Other checkbox lines are rewritten from the item with
    the same position, keeping indentation and bullet. Items with positions
    past the original item count are appended at the end in position order.

    Args:
        original_text: Document text the items were parsed from.
        items: Final items.

    Returns:
        New document text.
    """
    checklist = _scan(original_text)
    by_position = {item.position: item for item in items}
    original_count = len(checklist.items)

    out: List[str] = []
    for line in checklist.lines:
        item = by_position.get(line.position) if line.position is not None else None
        if item is None or (item == checklist.items[line.position] and line.canonical):
            # Unchanged lines keep their own spacing and mark case
            out.append(line.content + line.ending)
        else:
            out.append(format_item(item, line.indent, line.bullet) + line.ending)

    appended = sorted(
        (item for position, item in by_position.items() if position >= original_count),
        key=lambda item: item.position,
    )
    if appended:
        if checklist.lines and not checklist.lines[-1].ending:
            out.append(checklist.newline)
        for item in appended:
            out.append(format_item(item) + checklist.newline)

    return "".join(out)


def load_document(path: Path) -> str:
    """Read a checklist document.

    Raises:
        DocumentNotFoundError: If the file does not exist.
        AtatError: If the file cannot be read.
    """
    try:
        # newline="" keeps the document's own line endings
        with path.open("r", encoding="utf-8", newline="") as f:
            return f.read()
    except FileNotFoundError:
        raise DocumentNotFoundError(str(path))
    except (OSError, UnicodeDecodeError) as e:
        raise AtatError(f"Failed to read {path}: {e}")


def save_document(path: Path, text: str) -> bool:
    """Write a checklist document.

    Returns:
        True if the file was written, False if it already had this content.
    """
    try:
        if path.exists() and load_document(path) == text:
            logger.debug("%s unchanged", path)
            return False
        with path.open("w", encoding="utf-8", newline="") as f:
            f.write(text)
        return True
    except OSError as e:
        raise AtatError(f"Failed to write {path}: {e}")
