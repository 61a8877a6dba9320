"""Filesystem helpers for docc-snippets."""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import TextIO

from .constants import DEFAULT_MAX_FILE_SIZE

MAX_FILE_SIZE_ENV_VAR = "DOCC_SNIPPETS_MAX_FILE_SIZE"


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Resolve the maximum allowed file size.

    Args:
        default: Fallback value in bytes when the environment variable is unset.

    Returns:
        int: Maximum allowed file size in bytes.

    Raises:
        ValueError: If the environment value is not a positive integer.

    Examples:
        os.environ["DOCC_SNIPPETS_MAX_FILE_SIZE"] = "204800"
        limit = get_max_file_size(default=102400)
    """
    env_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if env_value is None:
        return default

    try:
        max_size = int(env_value)
    except ValueError as error:
        error_message = (
            f"Invalid value for {MAX_FILE_SIZE_ENV_VAR}: {env_value} (expected positive integer)"
        )
        raise ValueError(error_message) from error

    if max_size <= 0:
        error_message = f"{MAX_FILE_SIZE_ENV_VAR} must be a positive integer, got {max_size}."
        raise ValueError(error_message)

    return max_size


def contains_symlink(path: Path) -> bool:
    """Check whether a path or any parent directory is a symlink.

    Examples:
        contains_symlink(Path("/tmp/link/child"))
    """
    for candidate in (path, *path.parents):
        try:
            if candidate.is_symlink():
                return True
        except OSError:
            continue
    return False


def _resolve_under(raw_path: str, base_dir: Path) -> Path:
    path = Path(raw_path).expanduser()

    if contains_symlink(path):
        error_message = f"Symlinks are not supported for security reasons: {path}"
        raise ValueError(error_message)

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        error_message = f"{path} does not exist."
        raise ValueError(error_message) from error
    except OSError as error:
        error_message = f"Error resolving {path}: {error}"
        raise ValueError(error_message) from error

    try:
        resolved.relative_to(base_dir)
    except ValueError as error:
        error_message = f"{resolved} is outside of the working directory {base_dir}."
        raise ValueError(error_message) from error

    return resolved


def normalize_filepath(raw_path: str, base_dir: Path, extensions: Iterable[str]) -> Path:
    """Resolve and validate a snippet source path under a base directory.

    Args:
        raw_path: User-supplied path to a source file (absolute or relative).
        base_dir: Working directory that constrains allowed paths.
        extensions: Accepted file suffixes, lowercase with a leading dot.

    Returns:
        Path: Absolute path to the source file.

    Raises:
        ValueError: If the path does not exist, is not a regular file, is
            outside `base_dir`, uses an unsupported extension, or traverses a
            symlink.

    Examples:
        normalize_filepath("Snippets/Hello.swift", Path.cwd(), [".swift"])
    """
    resolved = _resolve_under(raw_path, base_dir)

    if not resolved.is_file():
        error_message = f"{resolved} is not a regular file."
        raise ValueError(error_message)

    extensions = tuple(extensions)
    if resolved.suffix.lower() not in extensions:
        error_message = f"{resolved} is not a snippet source file.\n"
        error_message += f"Supported extensions are: {', '.join(extensions)}"
        raise ValueError(error_message)

    return resolved


def normalize_directory(raw_path: str, base_dir: Path) -> Path:
    """Resolve and validate a snippets directory under a base directory.

    Raises:
        ValueError: If the path does not exist, is not a directory, is outside
            `base_dir`, or traverses a symlink.

    Examples:
        normalize_directory("Snippets", Path.cwd())
    """
    resolved = _resolve_under(raw_path, base_dir)

    if not resolved.is_dir():
        error_message = f"{resolved} is not a directory."
        raise ValueError(error_message)

    return resolved


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Return stat information for a file while disallowing symlinks.

    Raises:
        IOError: If the path is inaccessible, a symlink, or not a regular file.

    Examples:
        stat_result = collect_file_stat(Path("Snippets/Hello.swift"))
    """
    try:
        stat_result = os.stat(filepath, follow_symlinks=False)
    except OSError as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error

    if stat.S_ISLNK(stat_result.st_mode):
        error_message = f"Symlinks are not supported: {filepath}."
        raise IOError(error_message)

    if not stat.S_ISREG(stat_result.st_mode):
        error_message = f"{filepath} is not a regular file."
        raise IOError(error_message)

    return stat_result


def enforce_file_size(stat_result: os.stat_result, max_size: int, filepath: Path):
    """Guard against files that exceed the configured maximum size.

    Raises:
        IOError: If `stat_result.st_size` exceeds `max_size`.

    Examples:
        enforce_file_size(os.stat("Hello.swift"), 102400, Path("Hello.swift"))
    """
    if stat_result.st_size > max_size:
        error_message = f"{filepath} exceeds the maximum allowed size of {max_size} bytes."
        raise IOError(error_message)


def safe_read(filepath: Path) -> TextIO:
    """Open a file for reading with consistent error handling.

    Args:
        filepath: Path to the file.

    Returns:
        TextIO: File handle opened for reading in UTF-8.

    Raises:
        IOError: If the path is missing, inaccessible, or not a file.

    Examples:
        with safe_read(Path("Hello.swift")) as handle:
            source = handle.read()
    """
    try:
        return open(filepath, "r", encoding="UTF-8")
    except (
        FileNotFoundError,
        PermissionError,
        IsADirectoryError,
        NotADirectoryError,
    ) as error:
        error_message = f"Error accessing {filepath}: {error}"
        raise IOError(error_message) from error


def _is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def _list_directory(directory: Path) -> list[Path]:
    try:
        return sorted(directory.iterdir(), key=lambda entry: entry.name)
    except OSError as error:
        error_message = f"Error listing {directory}: {error}"
        raise IOError(error_message) from error


def discover_snippet_files(
    directory: Path, extensions: Iterable[str]
) -> list[tuple[str | None, Path]]:
    """Find snippet sources in `directory` and its immediate subdirectories.

    Hidden entries and symlinks are skipped. Files directly in `directory`
    have group None; files in a subdirectory are grouped under its name.

    Args:
        directory: Root snippets directory.
        extensions: Accepted file suffixes, lowercase with a leading dot.

    Returns:
        list[tuple[str | None, Path]]: Group and path pairs, top-level files
            first, then each group in name order.

    Raises:
        IOError: If a directory cannot be listed.

    Examples:
        discover_snippet_files(Path("Snippets"), [".swift"])
    """
    extensions = tuple(extensions)

    def _sources_in(folder: Path) -> list[Path]:
        return [
            entry
            for entry in _list_directory(folder)
            if not _is_hidden(entry)
            and not entry.is_symlink()
            and entry.is_file()
            and entry.suffix.lower() in extensions
        ]

    discovered: list[tuple[str | None, Path]] = [
        (None, path) for path in _sources_in(directory)
    ]
    for entry in _list_directory(directory):
        if _is_hidden(entry) or entry.is_symlink() or not entry.is_dir():
            continue
        discovered.extend((entry.name, path) for path in _sources_in(entry))

    return discovered


def _default_file_permissions() -> int:
    # os.umask can only be read by setting it.
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_text_atomically(filepath: Path, text: str):
    """Write `text` to `filepath` through a temporary file and an atomic rename.

    An existing file keeps its permission bits; a new file gets the usual
    permissions for the current umask.

    Raises:
        IOError: If the target is a symlink or the file cannot be written.

    Examples:
        write_text_atomically(Path("snippets.json"), '{"snippets": []}\\n')
    """
    if filepath.is_symlink():
        error_message = f"Symlinks are not supported: {filepath}."
        raise IOError(error_message)

    if filepath.exists():
        permissions = stat.S_IMODE(collect_file_stat(filepath).st_mode)
    else:
        permissions = _default_file_permissions()

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w", encoding="UTF-8", delete=False, dir=filepath.parent
        ) as tmp_file:
            temp_path = Path(tmp_file.name)
            tmp_file.write(text)

            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            os.chmod(tmp_file.name, permissions)

        os.replace(temp_path, filepath)
    except OSError as error:
        error_message = f"Error writing {filepath}: {error}"
        raise IOError(error_message) from error
    finally:
        if temp_path is not None:
            try:
                Path(temp_path).unlink(missing_ok=True)
            except OSError:
                pass
