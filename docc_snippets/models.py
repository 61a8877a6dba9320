"""Data models for docc-snippets."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType

from .exceptions import SliceNotFoundError


class LineKind(Enum):
    """Classification of a single source line.

    Attributes:
        VISIBILITY_CHANGE: A ``snippet.show`` or ``snippet.hide`` marker.
        START_SLICE: A marker opening a (possibly nested) slice.
        END_SLICE: A marker closing slices at or below a nesting depth.
        PRESENTATION_LINE: Ordinary content.
        SKIPPED_LINE: Documentation-only content excluded from the output.
    """

    VISIBILITY_CHANGE = auto()
    START_SLICE = auto()
    END_SLICE = auto()
    PRESENTATION_LINE = auto()
    SKIPPED_LINE = auto()


@dataclass(frozen=True)
class LineParseResult:
    """Outcome of classifying one line.

    Only the payload matching `kind` is meaningful.

    Attributes:
        kind: Line classification.
        is_visible: New visibility for `VISIBILITY_CHANGE`.
        identifiers: Slice path for `START_SLICE`.
        index: Lowest nesting depth to close for `END_SLICE`.
    """

    kind: LineKind
    is_visible: bool | None = None
    identifiers: tuple[str, ...] = ()
    index: int | None = None

    @classmethod
    def visibility_change(cls, is_visible: bool) -> LineParseResult:
        return cls(LineKind.VISIBILITY_CHANGE, is_visible=is_visible)

    @classmethod
    def start_slice(cls, identifiers: list[str] | tuple[str, ...]) -> LineParseResult:
        return cls(LineKind.START_SLICE, identifiers=tuple(identifiers))

    @classmethod
    def end_slice(cls, index: int) -> LineParseResult:
        return cls(LineKind.END_SLICE, index=index)

    @classmethod
    def presentation_line(cls) -> LineParseResult:
        return cls(LineKind.PRESENTATION_LINE)

    @classmethod
    def skipped_line(cls) -> LineParseResult:
        return cls(LineKind.SKIPPED_LINE)


@dataclass(frozen=True)
class OpenSlice:
    """A slice whose end marker has not been seen yet."""

    identifier: str
    start_line: int


@dataclass
class ParserContext:
    """Working state for a single extraction pass.

    Attributes:
        is_visible: Whether content lines are currently kept.
        open_slices: Open slices keyed by nesting depth.
        presentation_lines: Content lines emitted so far.
        slices: Closed slices keyed by dot-joined identifier.
        line_number: Number of presentation lines emitted so far.
    """

    is_visible: bool = True
    open_slices: dict[int, OpenSlice] = field(default_factory=dict)
    presentation_lines: list[str] = field(default_factory=list)
    slices: dict[str, range] = field(default_factory=dict)
    line_number: int = 0


@dataclass(frozen=True)
class Snippet:
    """Structured result of extracting a snippet from source text.

    Attributes:
        explanation_lines: Leading comment block, markers and indentation removed.
        presentation_lines: Visible, re-indented code body.
        slices: Half-open line ranges into `presentation_lines`, keyed by the
            dot-joined slice path. Stored as a read-only copy of the
            mapping passed in.
    """

    explanation_lines: tuple[str, ...] = ()
    presentation_lines: tuple[str, ...] = ()
    slices: Mapping[str, range] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "slices", MappingProxyType(dict(self.slices)))

    @property
    def explanation(self) -> str:
        return "\n".join(self.explanation_lines)

    @property
    def presentation(self) -> str:
        return "\n".join(self.presentation_lines)

    def slice_lines(self, name: str) -> tuple[str, ...]:
        """Return the presentation lines covered by slice `name`.

        Raises:
            SliceNotFoundError: If the snippet has no slice with that name.
        """
        try:
            line_range = self.slices[name]
        except KeyError as error:
            raise SliceNotFoundError(name, sorted(self.slices)) from error
        return self.presentation_lines[line_range.start : line_range.stop]

    def to_dict(self) -> dict[str, object]:
        return {
            "explanation": list(self.explanation_lines),
            "code": list(self.presentation_lines),
            "slices": {
                name: [line_range.start, line_range.stop]
                for name, line_range in sorted(self.slices.items())
            },
        }


@dataclass(frozen=True)
class SnippetSource:
    """A snippet extracted from a file on disk.

    Attributes:
        identifier: File name without its extension.
        group: Name of the enclosing subdirectory, or None at the top level.
        path: Location of the source file.
        snippet: Extracted snippet.
    """

    identifier: str
    group: str | None
    path: Path
    snippet: Snippet

    def to_dict(self) -> dict[str, object]:
        return {
            "identifier": self.identifier,
            "group": self.group,
            "path": self.path.as_posix(),
            **self.snippet.to_dict(),
        }
