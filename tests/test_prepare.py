from __future__ import annotations

from markgone.prepare import (
    PreparedDocument,
    extract_title,
    normalize_body,
    prepare,
    split_lines,
    split_tags,
    strip_blank_lines,
    strip_trailing_spaces,
)


def test_split_lines_keeps_every_line() -> None:
    assert split_lines("") == [""]
    assert split_lines("a\nb\n") == ["a", "b", ""]
    assert split_lines("  indented  \n\nx") == ["  indented  ", "", "x"]


def test_extract_title_consumes_title_and_blank_line() -> None:
    assert extract_title(["Title", ""]) == ("Title", [])
    assert extract_title(["Title", "", "body"]) == ("Title", ["body"])
    assert extract_title(["Title", "", "", "body"]) == ("Title", ["", "body"])


def test_extract_title_consumes_nothing_otherwise() -> None:
    for lines in ([], ["only"], ["", ""], ["", "body"], ["two", "lines"], ["t", " "]):
        assert extract_title(lines) == (None, list(lines))


def test_extract_title_does_not_inspect_content() -> None:
    # Unlike body headings, a title may be lowercase and punctuated.
    assert extract_title(["hello, world!", "", "x"]) == ("hello, world!", ["x"])


def test_strip_blank_lines_keeps_interior_blanks() -> None:
    assert strip_blank_lines(["", "", "a", "", "b", "", ""]) == ["a", "", "b"]
    assert strip_blank_lines(["", "", ""]) == []
    assert strip_blank_lines([]) == []


def test_strip_blank_lines_handles_many_blank_lines() -> None:
    lines = [""] * 100_000 + ["x"] + [""] * 100_000
    assert strip_blank_lines(lines) == ["x"]


def test_strip_trailing_spaces_keeps_leading_indent() -> None:
    assert strip_trailing_spaces(["    code  ", "text\t \t", ""]) == ["    code", "text", ""]


def test_normalize_body_trims_like_the_reference_cases() -> None:
    cases = [
        ("\na leading blank line", "a leading blank line"),
        ("\n\n\nleading blank lines", "leading blank lines"),
        ("a trailing blank line\n", "a trailing blank line"),
        ("trailing blank lines\n\n\n", "trailing blank lines"),
        ("a trailing space \n", "a trailing space"),
        ("trailing spaces    \n", "trailing spaces"),
        ("\n\n\nmultiple \n\n\nlines\n\n\n", "multiple\n\n\nlines"),
    ]
    for text, expected in cases:
        body, tags = normalize_body(text.split("\n"))
        assert "\n".join(body) == expected
        assert tags is None


def test_normalize_body_is_idempotent() -> None:
    lines = ["", "  ", "first  ", "", "    code\t", "", "last ", "", ""]
    once, _ = normalize_body(lines)
    twice, _ = normalize_body(once)
    assert once == twice
    assert once == ["first", "", "    code", "", "last"]


def test_tag_line_is_extracted() -> None:
    body, tags = normalize_body(["", "paragraph", "", "Tags: one-tag"])
    assert body == ["paragraph"]
    assert tags == ["one-tag"]


def test_multiple_tags_keep_their_order() -> None:
    _, tags = normalize_body(["paragraph", "", "Tags: multiple tags"])
    assert tags == ["multiple", "tags"]


def test_tags_are_not_sorted_or_deduplicated() -> None:
    _, tags = normalize_body(["p", "", "Tags: b a b"])
    assert tags == ["b", "a", "b"]


def test_repeated_spaces_do_not_produce_empty_tags() -> None:
    assert split_tags("Tags:  a   b ") == ["a", "b"]
    _, tags = normalize_body(["p", "", "Tags: a    b"])
    assert tags == ["a", "b"]


def test_tag_line_needs_a_blank_line_before_it() -> None:
    lines = ["", "paragraph", "Tags: not following blank lines"]
    body, tags = normalize_body(lines)
    assert tags is None
    assert body == ["paragraph", "Tags: not following blank lines"]


def test_tag_prefix_needs_the_space() -> None:
    body, tags = normalize_body(["", "paragraph", "", "Tags:no space"])
    assert tags is None
    assert body == ["paragraph", "", "Tags:no space"]


def test_bare_tag_prefix_is_ordinary_text() -> None:
    # Trailing whitespace is stripped first, so "Tags: " no longer matches.
    body, tags = normalize_body(["", "empty list", "", "Tags: "])
    assert tags is None
    assert body == ["empty list", "", "Tags:"]

    body, tags = normalize_body(["x", "", "Tags:  \t "])
    assert tags is None
    assert body == ["x", "", "Tags:"]


def test_whitespace_only_last_line_does_not_hide_the_tag_line() -> None:
    # A trailing "  " line is stripped like an empty one, so the tag line
    # becomes the last line and is recognized.
    doc = prepare("x\ny\n\nTags: a\n  ")
    assert doc == PreparedDocument(title=None, body=("x", "y"), tags=("a",))
    assert prepare("x\ny\n\nTags: a\n\t\n") == doc


def test_lone_tag_line_is_not_a_tag_directive() -> None:
    assert normalize_body(["Tags: x"]) == (["Tags: x"], None)
    assert normalize_body(["", "Tags: x"]) == (["Tags: x"], None)


def test_tag_line_right_after_the_title_is_text() -> None:
    # The separator is stripped as a leading blank line, leaving a lone tag line.
    doc = prepare("Title\n\n\nTags: a")
    assert doc == PreparedDocument(title="Title", body=("Tags: a",), tags=None)
    doc = prepare("Title\n\nx\n\nTags: a")
    assert doc == PreparedDocument(title="Title", body=("x",), tags=("a",))


def test_prepare_end_to_end() -> None:
    doc = prepare("First line as the title\n\nBody paragraph.\n\nTags: alpha beta")
    assert doc.title == "First line as the title"
    assert doc.body == ("Body paragraph.",)
    assert doc.tags == ("alpha", "beta")


def test_prepare_does_not_mutate_input_lines() -> None:
    lines = ["", "keep  ", ""]
    normalize_body(lines)
    assert lines == ["", "keep  ", ""]
