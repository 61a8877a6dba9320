"""Constants used across the docc-snippets package."""

from __future__ import annotations

from .config import SnippetConfig

DEFAULT_CONFIG = SnippetConfig()

# Marker syntax
COMMENT_PREFIX = "//"
DOC_COMMENT_PREFIX = "///"
DOCUMENTATION_ATTRIBUTE_PREFIX = "@_documentation(visibility:"
MARKER_KEYWORD = "snippet"
MARKER_SEPARATOR = "."
SHOW_KEYWORD = "show"
HIDE_KEYWORD = "hide"
END_KEYWORD = "end"

# Limits and defaults
DEFAULT_MAX_FILE_SIZE = DEFAULT_CONFIG.max_file_size

# External compiler
DOCC_EXECUTABLE_NAME = "docc"
DOCC_EXEC_ENV_VAR = "DOCC_EXEC"
