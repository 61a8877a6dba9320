from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from docc_snippets.filesystem import (
    collect_file_stat,
    contains_symlink,
    discover_snippet_files,
    enforce_file_size,
    get_max_file_size,
    normalize_directory,
    normalize_filepath,
    safe_read,
    write_text_atomically,
)


def test_get_max_file_size_defaults(monkeypatch):
    monkeypatch.delenv("DOCC_SNIPPETS_MAX_FILE_SIZE", raising=False)

    assert get_max_file_size(default=123) == 123


def test_get_max_file_size_reads_environment(monkeypatch):
    monkeypatch.setenv("DOCC_SNIPPETS_MAX_FILE_SIZE", "2048")

    assert get_max_file_size(default=123) == 2048


def test_get_max_file_size_rejects_non_integer(monkeypatch):
    monkeypatch.setenv("DOCC_SNIPPETS_MAX_FILE_SIZE", "invalid")
    with pytest.raises(ValueError, match="expected positive integer"):
        get_max_file_size()


def test_get_max_file_size_rejects_non_positive(monkeypatch):
    monkeypatch.setenv("DOCC_SNIPPETS_MAX_FILE_SIZE", "0")
    with pytest.raises(ValueError, match="must be a positive integer"):
        get_max_file_size()


def test_normalize_filepath_missing_file(tmp_path: Path):
    with pytest.raises(ValueError, match="does not exist"):
        normalize_filepath(str(tmp_path / "missing.swift"), tmp_path, [".swift"])


def test_normalize_filepath_rejects_directory(tmp_path: Path):
    folder = tmp_path / "folder.swift"
    folder.mkdir()

    with pytest.raises(ValueError, match="not a regular file"):
        normalize_filepath(str(folder), tmp_path, [".swift"])


def test_normalize_filepath_rejects_unsupported_extension(tmp_path: Path):
    target = tmp_path / "notes.txt"
    target.write_text("text\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Supported extensions are: .swift"):
        normalize_filepath(str(target), tmp_path, [".swift"])


def test_normalize_filepath_accepts_uppercase_extension(tmp_path: Path):
    target = tmp_path / "Hello.SWIFT"
    target.write_text("print(1)\n", encoding="utf-8")

    assert normalize_filepath(str(target), tmp_path, [".swift"]) == target.resolve()


def test_normalize_filepath_rejects_paths_outside_base(tmp_path: Path):
    base_dir = tmp_path / "base"
    base_dir.mkdir()
    outside = tmp_path / "Outside.swift"
    outside.write_text("print(1)\n", encoding="utf-8")

    with pytest.raises(ValueError, match="outside of the working directory"):
        normalize_filepath(str(outside), base_dir.resolve(), [".swift"])


def test_normalize_filepath_handles_oserror(monkeypatch, tmp_path: Path):
    target = tmp_path / "Hello.swift"
    target.write_text("print(1)\n", encoding="utf-8")
    original_resolve = Path.resolve

    def _raise_oserror(self, strict=False):
        if self == target:
            raise OSError("resolve boom")
        return original_resolve(self, strict=strict)

    monkeypatch.setattr(Path, "resolve", _raise_oserror)

    with pytest.raises(ValueError, match="resolve boom"):
        normalize_filepath(str(target), tmp_path, [".swift"])


def test_normalize_directory_rejects_files(tmp_path: Path):
    target = tmp_path / "Hello.swift"
    target.write_text("print(1)\n", encoding="utf-8")

    with pytest.raises(ValueError, match="is not a directory"):
        normalize_directory(str(target), tmp_path.resolve())


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="Symlink support is required")
def test_contains_symlink_detects_parent_links(tmp_path: Path):
    real = tmp_path / "real"
    real.mkdir()
    link = tmp_path / "link"
    try:
        os.symlink(real, link, target_is_directory=True)
    except OSError as error:  # pragma: no cover - platform dependent
        pytest.skip(f"Unable to create symlink: {error}")

    assert contains_symlink(link / "child.swift") is True
    assert contains_symlink(real / "child.swift") is False


def test_collect_file_stat_rejects_directories(tmp_path: Path):
    with pytest.raises(IOError, match="not a regular file"):
        collect_file_stat(tmp_path)


def test_collect_file_stat_missing_file(tmp_path: Path):
    with pytest.raises(IOError, match="Error accessing"):
        collect_file_stat(tmp_path / "missing.swift")


def test_enforce_file_size(tmp_path: Path):
    target = tmp_path / "Hello.swift"
    target.write_text("0123456789", encoding="utf-8")
    stat_result = collect_file_stat(target)

    enforce_file_size(stat_result, 10, target)
    with pytest.raises(IOError, match="maximum allowed size of 9 bytes"):
        enforce_file_size(stat_result, 9, target)


def test_safe_read_missing_file(tmp_path: Path):
    with pytest.raises(IOError, match="Error accessing"):
        safe_read(tmp_path / "missing.swift")


def test_discover_snippet_files_orders_groups(tmp_path: Path):
    (tmp_path / "Zeta").mkdir()
    (tmp_path / "Alpha").mkdir()
    (tmp_path / "Zeta" / "B.swift").write_text("b\n", encoding="utf-8")
    (tmp_path / "Zeta" / "A.swift").write_text("a\n", encoding="utf-8")
    (tmp_path / "Alpha" / "C.swift").write_text("c\n", encoding="utf-8")
    (tmp_path / "Top.swift").write_text("t\n", encoding="utf-8")
    (tmp_path / ".Hidden.swift").write_text("h\n", encoding="utf-8")
    (tmp_path / "Alpha" / "Nested").mkdir()
    (tmp_path / "Alpha" / "Nested" / "Deep.swift").write_text("d\n", encoding="utf-8")

    discovered = discover_snippet_files(tmp_path, [".swift"])

    assert [(group, path.name) for group, path in discovered] == [
        (None, "Top.swift"),
        ("Alpha", "C.swift"),
        ("Zeta", "A.swift"),
        ("Zeta", "B.swift"),
    ]


def test_discover_snippet_files_missing_directory(tmp_path: Path):
    with pytest.raises(IOError, match="Error listing"):
        discover_snippet_files(tmp_path / "missing", [".swift"])


def test_write_text_atomically_creates_file(tmp_path: Path):
    target = tmp_path / "snippets.json"

    write_text_atomically(target, '{"snippets": []}\n')

    assert target.read_text(encoding="utf-8") == '{"snippets": []}\n'
    assert [path.name for path in tmp_path.iterdir()] == ["snippets.json"]


def test_write_text_atomically_preserves_permissions(tmp_path: Path):
    target = tmp_path / "snippets.json"
    target.write_text("old\n", encoding="utf-8")
    os.chmod(target, 0o640)

    write_text_atomically(target, "new\n")

    assert target.read_text(encoding="utf-8") == "new\n"
    assert stat.S_IMODE(target.stat().st_mode) == 0o640


@pytest.mark.skipif(not hasattr(os, "symlink"), reason="Symlink support is required")
def test_write_text_atomically_rejects_symlink(tmp_path: Path):
    real = tmp_path / "real.json"
    real.write_text("old\n", encoding="utf-8")
    link = tmp_path / "link.json"
    try:
        os.symlink(real, link)
    except OSError as error:  # pragma: no cover - platform dependent
        pytest.skip(f"Unable to create symlink: {error}")

    with pytest.raises(IOError, match="Symlinks are not supported"):
        write_text_atomically(link, "new\n")
    assert real.read_text(encoding="utf-8") == "old\n"
