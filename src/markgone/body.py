"""Default body formatter: godoc-style plain text to HTML.

Blocks are separated by blank lines. Indented runs become ``<pre>`` blocks with
their common indent removed, a lone capitalized line between blank lines may
become an ``<h3>`` heading, and everything else is a ``<p>`` paragraph. Bare
URLs are auto-linked and identifiers found in ``link_words`` are linked (or
italicized when mapped to an empty URL).

Any callable with the signature of :func:`render_body` can stand in for this
module when calling :func:`markgone.to_html`.
"""

from __future__ import annotations

import html
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

_PROTO_PART = r"(?:https?|ftp|file|gopher|mailto|news|nntp|telnet|wais|prospero):"
_HOST_PART = r"[a-zA-Z0-9_@\-.\[\]:]+"
_PATH_PART = r"(?:[.,:;?!]*[a-zA-Z0-9$'()*+&#=@~_/\-\[\]%])*"
_URL_RX = _PROTO_PART + "//" + _HOST_PART + _PATH_PART
_IDENT_RX = r"[^\W\d_][^\W_]*"
_MATCH_RX = re.compile(f"(?P<url>{_URL_RX})|(?P<ident>{_IDENT_RX})")

_NON_ALNUM_RX = re.compile(r"[^a-zA-Z0-9]")
_HEADING_ILLEGAL = set(';:!?+*/=[]{}_^°&§~%#@<">\\')


class BodyFormatter(Protocol):
    def __call__(self, text: str, link_words: Mapping[str, str] | None = None) -> str: ...


@dataclass(frozen=True, slots=True)
class Block:
    kind: Literal["para", "head", "pre"]
    lines: tuple[str, ...]


def _escape(text: str) -> str:
    return html.escape(text, quote=True)


def _escape_nice(text: str) -> str:
    # Curly quotes pass through html.escape untouched, then become entities.
    text = text.replace("``", "“").replace("''", "”")
    return _escape(text).replace("“", "&ldquo;").replace("”", "&rdquo;")


def split_after_newlines(text: str) -> list[str]:
    """Split after each newline, keeping it. A trailing empty piece is dropped."""

    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def is_blank(line: str) -> bool:
    return line in ("", "\n")


def indent_len(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def unindent(lines: Sequence[str]) -> list[str]:
    """Remove the longest whitespace prefix shared by all non-blank lines."""

    if not lines:
        return []
    prefix = lines[0][: indent_len(lines[0])]
    for line in lines:
        if is_blank(line):
            continue
        indent = line[: indent_len(line)]
        n = 0
        while n < len(prefix) and n < len(indent) and prefix[n] == indent[n]:
            n += 1
        prefix = prefix[:n]
    n = len(prefix)
    return [line if is_blank(line) else line[n:] for line in lines]


def heading_text(line: str) -> str | None:
    """Return the heading text if `line` reads like a section heading."""

    line = line.strip()
    if not line:
        return None
    if not (line[0].isalpha() and line[0].isupper()):
        return None
    if not line[-1].isalnum():
        return None
    if any(ch in _HEADING_ILLEGAL for ch in line):
        return None

    # "'" is only allowed as a possessive "'s".
    rest = line
    while (i := rest.find("'")) >= 0:
        if i + 1 >= len(rest) or rest[i + 1] != "s" or (i + 2 < len(rest) and rest[i + 2] != " "):
            return None
        rest = rest[i + 2 :]

    # "." is only allowed when followed by a non-space ("v1.2", "e.g").
    rest = line
    while (i := rest.find(".")) >= 0:
        if i + 1 >= len(rest) or rest[i + 1] == " ":
            return None
        rest = rest[i + 1 :]

    return line


def anchor_id(heading: str) -> str:
    return "hdr-" + _NON_ALNUM_RX.sub("_", heading)


def split_blocks(text: str) -> list[Block]:
    """Group lines into paragraph, heading and preformatted blocks."""

    lines = unindent(split_after_newlines(text))
    out: list[Block] = []
    para: list[str] = []
    last_was_blank = False
    last_was_heading = False

    def close() -> None:
        if para:
            out.append(Block("para", tuple(para)))
            para.clear()

    i = 0
    while i < len(lines):
        line = lines[i]
        if is_blank(line):
            close()
            i += 1
            last_was_blank = True
            continue

        if indent_len(line) > 0:
            close()
            j = i + 1
            while j < len(lines) and (is_blank(lines[j]) or indent_len(lines[j]) > 0):
                j += 1
            while j > i and is_blank(lines[j - 1]):
                j -= 1
            out.append(Block("pre", tuple(unindent(lines[i:j]))))
            i = j
            last_was_heading = False
            continue

        if (
            last_was_blank
            and not last_was_heading
            and i + 2 < len(lines)
            and is_blank(lines[i + 1])
            and not is_blank(lines[i + 2])
            and indent_len(lines[i + 2]) == 0
        ):
            head = heading_text(line)
            if head is not None:
                close()
                out.append(Block("head", (head,)))
                i += 2
                last_was_heading = True
                continue

        last_was_blank = False
        last_was_heading = False
        para.append(line)
        i += 1

    close()
    return out


def paired_parens_prefix_len(s: str) -> int:
    """Length of the longest prefix of `s` without unbalanced parentheses."""

    parens = 0
    n = len(s)
    for i, ch in enumerate(s):
        if ch == "(":
            if parens == 0:
                n = i
            parens += 1
        elif ch == ")":
            parens -= 1
            if parens == 0:
                n = len(s)
            elif parens < 0:
                return i
    return n


def emphasize(line: str, link_words: Mapping[str, str] | None, *, nice: bool) -> str:
    """Escape `line`, linking URLs and words found in `link_words`."""

    escape = _escape_nice if nice else _escape
    out: list[str] = []
    pos = 0
    while (m := _MATCH_RX.search(line, pos)) is not None:
        out.append(escape(line[pos : m.start()]))
        n = paired_parens_prefix_len(m.group(0))
        if n < len(m.group(0)):
            # Unpaired parentheses (rare): match again against the shortened line.
            m = _MATCH_RX.match(line, m.start(), m.start() + n) or m
        match = m.group(0)

        url = ""
        italics = False
        if link_words is not None and match in link_words:
            url = link_words[match]
            italics = True
        if m.group("url") is not None:
            if not italics:
                url = match
            italics = False  # URLs are never italicized

        if url:
            out.append(f'<a href="{_escape(url)}">')
        if italics:
            out.append("<i>")
        out.append(escape(match))
        if italics:
            out.append("</i>")
        if url:
            out.append("</a>")
        pos = m.end()
    out.append(escape(line[pos:]))
    return "".join(out)


def render_blocks(blocks: Sequence[Block], link_words: Mapping[str, str] | None = None) -> str:
    out: list[str] = []
    for block in blocks:
        if block.kind == "para":
            out.append("<p>\n")
            out.extend(emphasize(line, link_words, nice=True) for line in block.lines)
            out.append("</p>\n")
        elif block.kind == "head":
            heading = block.lines[0]
            out.append(f'<h3 id="{anchor_id(heading)}">')
            out.append(_escape_nice(heading))
            out.append("</h3>\n")
        else:
            out.append("<pre>")
            out.extend(emphasize(line, None, nice=False) for line in block.lines)
            out.append("</pre>\n")
    return "".join(out)


def render_body(text: str, link_words: Mapping[str, str] | None = None) -> str:
    """Format plain body text as HTML (``h3``, ``p`` and ``pre`` blocks)."""

    return render_blocks(split_blocks(text), link_words)
