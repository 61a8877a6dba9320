import pytest

from docc_snippets.models import LineKind, LineParseResult, OpenSlice, ParserContext
from docc_snippets.parser import (
    _end_slice,
    _start_slice,
    _trim_slice_range,
    extract_explanation,
    parse_content,
    try_parse_comment_prefix,
    try_parse_snippet_marker,
)


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("// note", " note"),
        ("    //note", "note"),
        ("\t// tabbed", " tabbed"),
        ("/// doc", "/ doc"),
        ("let x = 1 // trailing", None),
        ("/ single", None),
        ("", None),
    ],
)
def test_try_parse_comment_prefix(line, expected):
    assert try_parse_comment_prefix(line) == expected


@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("// snippet.show", LineParseResult.visibility_change(True)),
        ("//snippet.HIDE", LineParseResult.visibility_change(False)),
        ("    // Snippet.Show  ", LineParseResult.visibility_change(True)),
        ("// snippet.main", LineParseResult.start_slice(["main"])),
        ("// snippet.a.b", LineParseResult.start_slice(["a", "b"])),
        ("// snippet.main.end", LineParseResult.end_slice(0)),
        ("// snippet.a.b.END", LineParseResult.end_slice(1)),
        ("// snippet.end", LineParseResult.end_slice(0)),
        ("// snippet.a.show", LineParseResult.visibility_change(True)),
    ],
)
def test_try_parse_snippet_marker_recognizes_markers(line, expected):
    assert try_parse_snippet_marker(line) == expected


@pytest.mark.parametrize(
    "line",
    [
        "let x = 1",
        "// snippet",
        "// snippet.",
        "// snippets.main",
        "// a snippet.main",
        "/* snippet.main */",
        "/// snippet.main",
        "",
    ],
)
def test_try_parse_snippet_marker_rejects_other_lines(line):
    assert try_parse_snippet_marker(line) is None


@pytest.mark.parametrize(
    ("line", "kind"),
    [
        ("// snippet.hide", LineKind.VISIBILITY_CHANGE),
        ("// snippet.main", LineKind.START_SLICE),
        ("// snippet.main.end", LineKind.END_SLICE),
        ("   /// Doc comment", LineKind.SKIPPED_LINE),
        ("/// snippet.main", LineKind.SKIPPED_LINE),
        ("@_documentation(visibility: private)", LineKind.SKIPPED_LINE),
        ("  @_documentation(visibility: internal) func f() {}", LineKind.SKIPPED_LINE),
        ("@_documentation(metadata: x)", LineKind.PRESENTATION_LINE),
        ("// plain comment", LineKind.PRESENTATION_LINE),
        ("let x = 1", LineKind.PRESENTATION_LINE),
        ("", LineKind.PRESENTATION_LINE),
    ],
)
def test_parse_content_classifies_lines(line, kind):
    assert parse_content(line).kind is kind


def test_start_slice_records_depth_and_start():
    ctx = ParserContext(line_number=3)

    _start_slice(ctx, ("main", "setup"))

    assert ctx.open_slices == {1: OpenSlice(identifier="main.setup", start_line=3)}
    assert ctx.slices == {}


def test_start_slice_closes_slices_at_same_or_deeper_depth():
    ctx = ParserContext(
        line_number=4,
        open_slices={
            0: OpenSlice(identifier="a", start_line=0),
            1: OpenSlice(identifier="a.b", start_line=1),
            2: OpenSlice(identifier="a.b.c", start_line=2),
        },
    )

    _start_slice(ctx, ("a", "d"))

    assert ctx.slices == {"a.b": range(1, 4), "a.b.c": range(2, 4)}
    assert ctx.open_slices == {
        0: OpenSlice(identifier="a", start_line=0),
        1: OpenSlice(identifier="a.d", start_line=4),
    }


def test_end_slice_drops_slices_without_lines():
    ctx = ParserContext(
        line_number=2,
        open_slices={
            0: OpenSlice(identifier="kept", start_line=0),
            1: OpenSlice(identifier="kept.empty", start_line=2),
            2: OpenSlice(identifier="kept.empty.deeper", start_line=1),
        },
    )

    _end_slice(ctx, 0)

    assert ctx.open_slices == {}
    assert ctx.slices == {"kept": range(0, 2), "kept.empty.deeper": range(1, 2)}


def test_end_slice_leaves_shallower_slices_open():
    ctx = ParserContext(
        line_number=5,
        open_slices={
            0: OpenSlice(identifier="outer", start_line=0),
            1: OpenSlice(identifier="outer.inner", start_line=2),
        },
    )

    _end_slice(ctx, 1)

    assert ctx.slices == {"outer.inner": range(2, 5)}
    assert list(ctx.open_slices) == [0]


@pytest.mark.parametrize(
    ("line_range", "lines", "expected"),
    [
        (range(0, 3), ["", "a", ""], range(1, 2)),
        (range(0, 2), ["a", "b"], range(0, 2)),
        (range(0, 2), ["  ", "\t"], range(2, 2)),
        (range(1, 1), ["a", "b"], range(1, 1)),
    ],
)
def test_trim_slice_range(line_range, lines, expected):
    assert _trim_slice_range(line_range, lines) == expected


def test_extract_explanation_returns_remaining_lines():
    explanation, remaining = extract_explanation(
        ["// First.", "//", "//   Second.", "let x = 1", "// not explanation"]
    )

    assert explanation == ["First.", "", "  Second."]
    assert remaining == ["let x = 1", "// not explanation"]


def test_extract_explanation_without_comment():
    explanation, remaining = extract_explanation(["let x = 1"])

    assert explanation == []
    assert remaining == ["let x = 1"]


def test_extract_explanation_trims_blank_comment_lines():
    explanation, remaining = extract_explanation(["//", "// Text", "//  ", ""])

    assert explanation == ["Text"]
    assert remaining == [""]
