"""
docc-snippets: snippet extraction for documentation builds.

This package can be used both as a CLI tool and as a library.

CLI Usage:
    docc-snippets extract Snippets/Hello.swift --slice main
    docc-snippets build Snippets --output snippets.json
    docc-snippets docc convert MyKit --symbol-graph-dir .build/symbol-graphs

Library Usage:
    from pathlib import Path
    from docc_snippets import parse_snippet

    snippet = parse_snippet(Path("Snippets/Hello.swift").read_text())
    print(snippet.explanation)
    print("\\n".join(snippet.slice_lines("main")))
"""

from .exceptions import DoccError, DoccInvocationError, DoccNotFoundError, SliceNotFoundError
from .models import LineKind, LineParseResult, Snippet, SnippetSource
from .parser import (
    ParseFileError,
    parse_content,
    parse_file,
    parse_snippet,
    parse_snippet_directory,
)

__version__ = "0.1.0"

__all__ = [
    # Core functionality
    "parse_snippet",
    "parse_content",
    "parse_file",
    "parse_snippet_directory",
    # Data models
    "Snippet",
    "SnippetSource",
    "LineKind",
    "LineParseResult",
    # Exceptions
    "ParseFileError",
    "SliceNotFoundError",
    "DoccError",
    "DoccInvocationError",
    "DoccNotFoundError",
    # Version
    "__version__",
]
