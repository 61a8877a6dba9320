"""Snippet parsing utilities."""

from __future__ import annotations

from pathlib import Path

from .config import ConfigError, SnippetConfig, validate_config
from .constants import (
    COMMENT_PREFIX,
    DOC_COMMENT_PREFIX,
    DOCUMENTATION_ATTRIBUTE_PREFIX,
    END_KEYWORD,
    HIDE_KEYWORD,
    MARKER_KEYWORD,
    MARKER_SEPARATOR,
    SHOW_KEYWORD,
)
from .filesystem import collect_file_stat, discover_snippet_files, enforce_file_size, safe_read
from .models import LineKind, LineParseResult, OpenSlice, ParserContext, Snippet, SnippetSource
from .text import (
    is_blank,
    leading_whitespace,
    trim_blank_lines,
    trim_expected_prefix,
    trim_extra_indentation,
    trim_trailing_blank_lines,
)


def try_parse_comment_prefix(line: str) -> str | None:
    """Strip leading whitespace and a ``//`` comment prefix from `line`.

    Args:
        line: Source line to inspect.

    Returns:
        str | None: Text after the comment prefix, or None when the line is not
            a line comment.

    Examples:
        try_parse_comment_prefix("    // note")  # " note"
        try_parse_comment_prefix("let x = 1")  # None
    """
    return trim_expected_prefix(line.lstrip(), COMMENT_PREFIX)


def try_parse_snippet_marker(line: str) -> LineParseResult | None:
    """Recognize a ``// snippet.<...>`` marker line.

    The comment body is split on dots (empty tokens dropped). The first token
    must be the ``snippet`` keyword and at least one token must follow it. The
    last token then selects the marker: ``show``/``hide`` toggle visibility,
    ``end`` closes the slice named by the preceding tokens along with every
    slice nested in it, anything else opens a slice named by the remaining
    tokens. Keywords are matched
    case-insensitively; identifiers keep their case.

    Args:
        line: Source line to inspect.

    Returns:
        LineParseResult | None: The marker, or None when the line is not one.

    Examples:
        try_parse_snippet_marker("// snippet.main")  # start_slice(("main",))
        try_parse_snippet_marker("// snippet.main.end")  # end_slice(0)
        try_parse_snippet_marker("// snippet")  # None
    """
    content = try_parse_comment_prefix(line)
    if content is None:
        return None

    tokens = [token for token in content.strip().split(MARKER_SEPARATOR) if token]
    if not tokens or tokens[0].lower() != MARKER_KEYWORD:
        return None

    identifiers = tokens[1:]
    if not identifiers:
        return None

    last_token = identifiers[-1].lower()
    if last_token == SHOW_KEYWORD:
        return LineParseResult.visibility_change(True)
    if last_token == HIDE_KEYWORD:
        return LineParseResult.visibility_change(False)
    if last_token == END_KEYWORD:
        # Depth of the path being closed, without the trailing "end".
        return LineParseResult.end_slice(max(len(identifiers) - 2, 0))
    return LineParseResult.start_slice(identifiers)


def parse_content(line: str) -> LineParseResult:
    """Classify a single line of snippet source.

    Examples:
        parse_content("// snippet.hide").kind  # LineKind.VISIBILITY_CHANGE
        parse_content("/// Doc comment").kind  # LineKind.SKIPPED_LINE
        parse_content("let x = 1").kind  # LineKind.PRESENTATION_LINE
    """
    marker = try_parse_snippet_marker(line)
    if marker is not None:
        return marker

    stripped = line.strip()
    if stripped.startswith(DOC_COMMENT_PREFIX) or stripped.startswith(
        DOCUMENTATION_ATTRIBUTE_PREFIX
    ):
        return LineParseResult.skipped_line()

    return LineParseResult.presentation_line()


def extract_explanation(lines: list[str]) -> tuple[list[str], list[str]]:
    """Split the leading comment block off `lines`.

    Consumes lines while each is non-blank, not a snippet marker, and a line
    comment. Comment prefixes are removed, then the smallest indentation found
    on a consumed line with content is removed from every consumed line (a
    line never loses more whitespace than it has). Leading and trailing blank
    lines are trimmed from the explanation.

    Args:
        lines: Source lines, leading blank lines already dropped.

    Returns:
        tuple[list[str], list[str]]: Explanation lines and the lines left for
            the main pass.

    Examples:
        extract_explanation(["// Adds numbers.", "let x = 1"])
        # (["Adds numbers."], ["let x = 1"])
    """
    consumed: list[str] = []
    for line in lines:
        if is_blank(line) or try_parse_snippet_marker(line) is not None:
            break
        content = try_parse_comment_prefix(line)
        if content is None:
            break
        consumed.append(content)

    indents = [leading_whitespace(line) for line in consumed if not is_blank(line)]
    minimum_indentation = min(indents, default=0)
    explanation = [
        line[min(leading_whitespace(line), minimum_indentation) :] for line in consumed
    ]

    return trim_blank_lines(explanation), list(lines[len(consumed) :])


def _start_slice(ctx: ParserContext, identifiers: tuple[str, ...]) -> None:
    """Open a slice at depth ``len(identifiers) - 1``, closing deeper or equal ones.

    Examples:
        _start_slice(ctx, ("main", "setup"))  # opens "main.setup" at depth 1
    """
    depth = len(identifiers) - 1
    _end_slice(ctx, depth)
    ctx.open_slices[depth] = OpenSlice(
        identifier=MARKER_SEPARATOR.join(identifiers), start_line=ctx.line_number
    )


def _end_slice(ctx: ParserContext, lower_index: int) -> None:
    """Close every open slice at depth `lower_index` or deeper.

    A slice that no presentation line followed is dropped instead of being
    recorded.
    """
    for depth in sorted(ctx.open_slices):
        if depth < lower_index:
            continue
        open_slice = ctx.open_slices.pop(depth)
        if open_slice.start_line >= ctx.line_number:
            continue
        ctx.slices[open_slice.identifier] = range(open_slice.start_line, ctx.line_number)


def _append_presentation_line(ctx: ParserContext, line: str) -> None:
    if not ctx.is_visible:
        return
    # Leading blank lines never enter the presentation body.
    if not ctx.presentation_lines and is_blank(line):
        return
    ctx.presentation_lines.append(line)
    ctx.line_number += 1


def _trim_slice_range(line_range: range, lines: list[str]) -> range:
    """Shrink `line_range` so it neither starts nor ends on a blank line.

    Examples:
        _trim_slice_range(range(0, 3), ["", "a", ""])  # range(1, 2)
    """
    lower, upper = line_range.start, line_range.stop
    while lower < upper and is_blank(lines[lower]):
        lower += 1
    while lower < upper and is_blank(lines[upper - 1]):
        upper -= 1
    return range(lower, upper)


def _clamp_slice_range(line_range: range, line_count: int) -> range:
    # Only empty ranges can point past the trailing-trimmed body.
    if line_range.stop <= line_count:
        return line_range
    position = min(line_range.start, line_count)
    return range(position, position)


def parse_snippet(source: str) -> Snippet:
    """Extract a snippet from source text.

    Runs a single pass over the lines of `source`. A leading comment block
    becomes the explanation. ``// snippet.<path>`` markers open named slices,
    ``// snippet.<path>.end`` closes them, ``// snippet.hide`` and
    ``// snippet.show`` toggle whether code lines are kept, and ``///`` doc
    comments and ``@_documentation(visibility: ...)`` attributes are dropped.
    The kept code is re-indented and trailing blank lines are removed.

    Never raises: text without markers simply becomes one presentation body
    with no slices.

    Args:
        source: Raw source text.

    Returns:
        Snippet: Explanation, presentation lines, and slice ranges.

    Examples:
        snippet = parse_snippet("// Intro.\\n// snippet.main\\nlet x = 1\\n")
        snippet.explanation_lines  # ("Intro.",)
        snippet.slices  # {"main": range(0, 1)}
    """
    lines = source.split("\n")
    first_content = 0
    while first_content < len(lines) and is_blank(lines[first_content]):
        first_content += 1

    explanation_lines, remaining = extract_explanation(lines[first_content:])

    ctx = ParserContext()
    for line in remaining:
        result = parse_content(line)
        if result.kind is LineKind.VISIBILITY_CHANGE:
            ctx.is_visible = bool(result.is_visible)
        elif result.kind is LineKind.START_SLICE:
            _start_slice(ctx, result.identifiers)
            ctx.is_visible = True
        elif result.kind is LineKind.END_SLICE:
            _end_slice(ctx, result.index or 0)
        elif result.kind is LineKind.PRESENTATION_LINE:
            _append_presentation_line(ctx, line)

    _end_slice(ctx, 0)

    slices = {
        identifier: _trim_slice_range(line_range, ctx.presentation_lines)
        for identifier, line_range in ctx.slices.items()
    }

    # Trim only trailing blank lines so slice offsets stay valid.
    presentation_lines = trim_trailing_blank_lines(
        trim_extra_indentation(ctx.presentation_lines)
    )
    slices = {
        identifier: _clamp_slice_range(line_range, len(presentation_lines))
        for identifier, line_range in slices.items()
    }

    return Snippet(
        explanation_lines=tuple(explanation_lines),
        presentation_lines=tuple(presentation_lines),
        slices=slices,
    )


class ParseFileError(Exception):
    """Raised when reading a snippet source file fails."""


def parse_file(filepath: Path, config: SnippetConfig | None = None) -> Snippet:
    """Read a source file and extract its snippet.

    Args:
        filepath: Path to the source file.
        config: Configuration controlling limits; defaults to a new
            `SnippetConfig` when omitted.

    Returns:
        Snippet: The extracted snippet.

    Raises:
        ParseFileError: If the configuration is invalid, the file is larger
            than `max_file_size`, or it cannot be read or decoded as UTF-8.

    Examples:
        snippet = parse_file(Path("Snippets/Basics/Hello.swift"))
    """
    config = config or SnippetConfig()
    try:
        validate_config(config)
    except ConfigError as error:
        raise ParseFileError(str(error)) from error

    try:
        enforce_file_size(collect_file_stat(filepath), config.max_file_size, filepath)
        with safe_read(filepath) as file:
            content = file.read()
    except UnicodeDecodeError as error:
        error_message = f"Invalid UTF-8 sequence in {filepath}: {error}"
        raise ParseFileError(error_message) from error
    except IOError as error:
        raise ParseFileError(str(error)) from error

    return parse_snippet(content)


def parse_snippet_directory(
    directory: Path, config: SnippetConfig | None = None
) -> list[SnippetSource]:
    """Extract every snippet source found under `directory`.

    Files directly inside `directory` have no group; files one level down are
    grouped by their subdirectory name.

    Args:
        directory: Directory holding snippet sources.
        config: Configuration selecting extensions and limits.

    Returns:
        list[SnippetSource]: Extracted snippets sorted by group, then file name.

    Raises:
        ParseFileError: If the directory cannot be listed or any file fails to
            parse.

    Examples:
        sources = parse_snippet_directory(Path("Snippets"))
    """
    config = config or SnippetConfig()
    try:
        discovered = discover_snippet_files(directory, config.extensions)
    except IOError as error:
        raise ParseFileError(str(error)) from error

    return [
        SnippetSource(
            identifier=path.stem,
            group=group,
            path=path,
            snippet=parse_file(path, config),
        )
        for group, path in discovered
    ]
