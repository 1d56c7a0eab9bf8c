"""Pre-processing of markgone text: title, body and tag extraction.

Every function here is total over its input domain; nothing raises.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

TAG_LINE_PREFIX = "Tags: "


@dataclass(frozen=True, slots=True)
class PreparedDocument:
    """A document split into its title, body lines and tags.

    `title` and `tags` are None when absent. An empty `tags` tuple is a tag
    line that tokenized to nothing, which still renders a tag container.
    """

    title: str | None
    body: tuple[str, ...]
    tags: tuple[str, ...] | None


def split_lines(text: str) -> list[str]:
    return text.split("\n")


def extract_title(lines: Sequence[str]) -> tuple[str | None, list[str]]:
    """Return (title, remaining lines).

    The first line is a title only when it is non-empty and the second line is
    exactly empty; both are consumed. Otherwise no line is consumed.
    """

    if len(lines) >= 2 and lines[0] != "" and lines[1] == "":
        return lines[0], list(lines[2:])
    return None, list(lines)


def _is_blank(line: str) -> bool:
    return line.rstrip(" \t") == ""


def strip_blank_lines(lines: Sequence[str]) -> list[str]:
    """Drop leading and trailing lines that hold nothing but spaces or tabs."""

    start = 0
    end = len(lines)
    while start < end and _is_blank(lines[start]):
        start += 1
    while end > start and _is_blank(lines[end - 1]):
        end -= 1
    return list(lines[start:end])


def strip_trailing_spaces(lines: Sequence[str]) -> list[str]:
    # Leading whitespace is kept: the body formatter uses it to find pre blocks.
    return [line.rstrip(" \t") for line in lines]


def split_tags(tag_line: str) -> list[str]:
    remainder = tag_line[len(TAG_LINE_PREFIX) :]
    return [tag for tag in remainder.split(" ") if tag]


def normalize_body(lines: Sequence[str]) -> tuple[list[str], list[str] | None]:
    """Trim incidental whitespace and pull off a trailing tag line.

    Trailing whitespace is stripped before the tag line is looked for, so a
    bare "Tags: " becomes "Tags:" and is kept as ordinary text.
    """

    body = strip_trailing_spaces(strip_blank_lines(lines))
    if len(body) >= 2 and body[-1].startswith(TAG_LINE_PREFIX) and body[-2] == "":
        return body[:-2], split_tags(body[-1])
    return body, None


def prepare(text: str) -> PreparedDocument:
    title, rest = extract_title(split_lines(text))
    body, tags = normalize_body(rest)
    return PreparedDocument(
        title=title,
        body=tuple(body),
        tags=tuple(tags) if tags is not None else None,
    )
