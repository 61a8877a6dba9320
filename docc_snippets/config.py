"""Configuration loading and management."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
import tomllib

CONFIG_TABLE = "docc-snippets"
CONFIG_DOTFILE = ".docc-snippets.toml"


@dataclass
class SnippetConfig:
    """Configuration for extracting snippets and invoking `docc`.

    Attributes:
        extensions: File suffixes treated as snippet sources. Entries without
            a leading dot (``"swift"``) are normalized to ``".swift"``.
        snippets_dir: Default directory scanned by ``docc-snippets build``.
        max_file_size: Maximum file size in bytes that will be read.
        json_indent: Indentation for JSON output; 0 writes compact JSON.
        docc_executable: Explicit path to the `docc` executable.

    Examples:
        SnippetConfig(extensions=[".swift", ".swiftinterface"], json_indent=0)
    """

    # Sources
    extensions: list[str] = field(default_factory=lambda: [".swift"])
    snippets_dir: str = "Snippets"

    # Output
    json_indent: int = 2

    # Limits
    max_file_size: int = 10 * 1024 * 1024

    # External compiler
    docc_executable: str | None = None


class ConfigError(ValueError):
    """Exception raised when configuration values are invalid.

    Examples:
        raise ConfigError("`max_file_size` must be a positive integer")
    """


def load_config(search_path: Path) -> SnippetConfig:
    """Load configuration from the nearest config file.

    Walks parent directories from `search_path` to the filesystem root, reading
    the ``[tool.docc-snippets]`` table from `pyproject.toml` and the
    ``[docc-snippets]`` or ``[tool.docc-snippets]`` table from
    `.docc-snippets.toml` when present. Returns default values when no
    configuration is found. TOML files that cannot be read or decoded are
    skipped.

    Args:
        search_path: Directory used as the starting point for configuration lookup.

    Returns:
        SnippetConfig: Loaded configuration with defaults applied when necessary.

    Raises:
        ConfigError: If the table is present but not a mapping or contains
            unsupported keys.

    Examples:
        load_config(Path("Snippets"))
    """
    current = search_path.resolve()

    while True:
        pyproject_config = _load_from_file(
            current / "pyproject.toml", table_paths=[("tool", CONFIG_TABLE)]
        )
        if pyproject_config is not None:
            return normalize_config(pyproject_config)

        dotfile_config = _load_from_file(
            current / CONFIG_DOTFILE,
            table_paths=[(CONFIG_TABLE,), ("tool", CONFIG_TABLE)],
        )
        if dotfile_config is not None:
            return normalize_config(dotfile_config)

        parent = current.parent
        if parent == current:
            break
        current = parent

    return SnippetConfig()


_MISSING = object()


def _load_from_file(
    config_file: Path, table_paths: list[tuple[str, ...]]
) -> SnippetConfig | None:
    if not config_file.exists():
        return None

    try:
        with open(config_file, "rb") as stream:
            data = tomllib.load(stream)
    except (OSError, tomllib.TOMLDecodeError):
        return None

    for table_path in table_paths:
        raw_config = _extract_table(data, table_path)
        if raw_config is _MISSING:
            continue
        return _build_config_from_raw(raw_config, config_file, table_path)

    return None


def _extract_table(data: object, table_path: tuple[str, ...]) -> object:
    current = data
    for key in table_path:
        if not isinstance(current, dict) or key not in current:
            return _MISSING
        current = current[key]
    return current


def _build_config_from_raw(
    raw_config: object, config_file: Path, table_path: tuple[str, ...]
) -> SnippetConfig:
    table_display = ".".join(table_path)

    if not isinstance(raw_config, dict):
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}")

    if not raw_config:
        return SnippetConfig()

    try:
        return SnippetConfig(**raw_config)
    except TypeError as error:
        raise ConfigError(f"Invalid `[{table_display}]` settings in {config_file}") from error


def normalize_config(config: SnippetConfig) -> SnippetConfig:
    extensions = config.extensions
    if isinstance(extensions, str):
        extensions = [extensions]
    if isinstance(extensions, (list, tuple)):
        extensions = [
            extension.lower() if extension.startswith(".") else f".{extension.lower()}"
            for extension in extensions
            if isinstance(extension, str) and extension
        ]
    return replace(config, extensions=extensions)


def validate_config(config: SnippetConfig) -> None:
    """Validate a `SnippetConfig` instance.

    Args:
        config: Configuration to validate.

    Returns:
        None.

    Raises:
        ConfigError: If no source extensions are configured, the snippets
            directory is empty, numeric values are out of range, or the `docc`
            executable is not a string.

    Examples:
        validate_config(SnippetConfig(json_indent=4))
    """
    config = normalize_config(config)

    _ensure_integers(
        {
            "max_file_size": config.max_file_size,
            "json_indent": config.json_indent,
        }
    )

    if not isinstance(config.extensions, list) or not config.extensions:
        raise ConfigError("`extensions` must list at least one file extension")
    if not isinstance(config.snippets_dir, str) or not config.snippets_dir:
        raise ConfigError("`snippets_dir` must not be empty")
    if config.json_indent < 0:
        raise ConfigError("`json_indent` must be >= 0")
    if config.docc_executable is not None and (
        not isinstance(config.docc_executable, str) or not config.docc_executable
    ):
        raise ConfigError("`docc_executable` must be a non-empty string")

    _ensure_positive({"max_file_size": config.max_file_size})


def apply_overrides(config: SnippetConfig, **overrides: object) -> SnippetConfig:
    """Apply override values to a `SnippetConfig`.

    Args:
        config: Base configuration to update.
        overrides: Override values keyed by configuration field name; values set to
            None are ignored.

    Returns:
        SnippetConfig: New configuration with the provided overrides applied. The
        original configuration is returned when no changes are supplied.

    Raises:
        TypeError: If an override name is not defined on `SnippetConfig`.

    Examples:
        updated = apply_overrides(config, json_indent=0, docc_executable="/usr/bin/docc")
    """
    changes = {key: value for key, value in overrides.items() if value is not None}
    if not changes:
        return config
    return replace(config, **changes)


def build_config(search_path: Path, **overrides: object) -> SnippetConfig:
    """Load, override, and validate configuration.

    Args:
        search_path: Directory where configuration files are resolved.
        overrides: Override values keyed by configuration attributes; None values
            are ignored.

    Returns:
        SnippetConfig: Validated configuration.

    Raises:
        ConfigError: If configuration loading or validation fails.

    Examples:
        config = build_config(Path.cwd(), json_indent=0)
    """
    config = load_config(search_path)
    config = apply_overrides(config, **overrides)
    config = normalize_config(config)
    validate_config(config)
    return config


def _ensure_positive(values: dict[str, int]) -> None:
    for key, value in values.items():
        if value <= 0:
            raise ConfigError(f"`{key}` must be a positive integer")


def _ensure_integers(values: dict[str, object]) -> None:
    for key, value in values.items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"`{key}` must be an integer")
