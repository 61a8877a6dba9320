"""Line and string helpers used by the snippet parser."""

from __future__ import annotations

from collections.abc import Iterable


def is_blank(text: str) -> bool:
    """Return True when `text` is empty or contains only whitespace.

    Examples:
        is_blank("")  # True
        is_blank(" \\t")  # True
        is_blank("  x")  # False
    """
    return not text.strip()


def trim_expected_prefix(text: str, prefix: str, consider_case: bool = True) -> str | None:
    """Remove `prefix` from the start of `text`.

    Args:
        text: Text to inspect.
        prefix: Prefix expected at the very start of `text`.
        consider_case: Compare case-sensitively when True.

    Returns:
        str | None: The remainder of `text` after the prefix, or None when the
            prefix is absent.

    Examples:
        trim_expected_prefix("// note", "//")  # " note"
        trim_expected_prefix("SNIPPET.x", "snippet", consider_case=False)  # ".x"
        trim_expected_prefix("# note", "//")  # None
    """
    if consider_case:
        if not text.startswith(prefix):
            return None
    elif not text.lower().startswith(prefix.lower()):
        return None
    return text[len(prefix) :]


def leading_spaces(line: str) -> int:
    """Count the space characters at the start of `line`."""
    return len(line) - len(line.lstrip(" "))


def leading_whitespace(line: str) -> int:
    """Count the whitespace characters (spaces, tabs, ...) at the start of `line`."""
    return len(line) - len(line.lstrip())


def trim_trailing_blank_lines(lines: Iterable[str]) -> list[str]:
    """Drop blank lines from the end of `lines`."""
    trimmed = list(lines)
    while trimmed and is_blank(trimmed[-1]):
        trimmed.pop()
    return trimmed


def trim_blank_lines(lines: Iterable[str]) -> list[str]:
    """Drop blank lines from both ends of `lines`.

    Examples:
        trim_blank_lines(["", "a", " ", "b", "\\t"])  # ["a", " ", "b"]
    """
    trimmed = trim_trailing_blank_lines(lines)
    start = 0
    while start < len(trimmed) and is_blank(trimmed[start]):
        start += 1
    return trimmed[start:]


def trim_extra_indentation(lines: Iterable[str]) -> list[str]:
    """Remove the indentation shared by every non-blank line.

    The relative indentation between lines is preserved. Blank lines never
    constrain the amount removed, and no line loses more leading spaces than
    it actually has.

    Args:
        lines: Lines to re-indent.

    Returns:
        list[str]: Re-indented lines, same count as the input.

    Examples:
        trim_extra_indentation(["    a", "", "      b"])  # ["a", "", "  b"]
    """
    lines = list(lines)
    indents = [leading_spaces(line) for line in lines if not is_blank(line)]
    minimum_indentation = min(indents, default=0)
    if minimum_indentation <= 0:
        return lines

    return [line[min(leading_spaces(line), minimum_indentation) :] for line in lines]
