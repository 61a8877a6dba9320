"""Argument marshaling and process handling for the external `docc` compiler."""

from __future__ import annotations

import os
import shutil
import signal
import subprocess
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .config import SnippetConfig
from .constants import DOCC_EXEC_ENV_VAR, DOCC_EXECUTABLE_NAME
from .exceptions import DoccError, DoccInvocationError, DoccNotFoundError

FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class DoccAction(str, Enum):
    """`docc` subcommands the plugin drives."""

    CONVERT = "convert"
    PREVIEW = "preview"


class TargetKind(str, Enum):
    """Kind of module being documented."""

    LIBRARY = "library"
    EXECUTABLE = "executable"


@dataclass(frozen=True)
class BuildTarget:
    """A documentable unit as handed over by the build tool.

    Attributes:
        name: Module name, used as the fallback display name and bundle identifier.
        kind: Library or executable module.
        docc_catalog_path: Optional `.docc` catalog directory for the module.
    """

    name: str
    kind: TargetKind = TargetKind.LIBRARY
    docc_catalog_path: Path | None = None

    def docc_archive_output_path(self, output_dir: Path) -> Path:
        return output_dir / f"{self.name}.doccarchive"


@dataclass(frozen=True)
class PluginFlag:
    """A command-line flag understood by the plugin rather than by `docc`.

    Attributes:
        name: Human readable name.
        parsed_values: Spellings recognized on the command line.
        arguments_to_add: `docc` arguments that replace the flag when present.
        description: Help text.
    """

    name: str
    parsed_values: tuple[str, ...]
    arguments_to_add: tuple[str, ...]
    description: str

    def is_present(self, arguments: Sequence[str]) -> bool:
        return any(argument in self.parsed_values for argument in arguments)

    def transform(self, arguments: Sequence[str]) -> list[str]:
        """Replace the flag with its `docc` arguments.

        Arguments are returned unchanged when the flag is absent. Otherwise
        every spelling of the flag is removed and `arguments_to_add` that are
        not already present are appended.

        Examples:
            SKIP_SYNTHESIZED_SYMBOLS.transform(["--index"])  # ["--index"]
        """
        if not self.is_present(arguments):
            return list(arguments)

        transformed = [argument for argument in arguments if argument not in self.parsed_values]
        transformed.extend(
            argument for argument in self.arguments_to_add if argument not in transformed
        )
        return transformed


SKIP_SYNTHESIZED_SYMBOLS = PluginFlag(
    name="Skip synthesized symbols",
    parsed_values=("--experimental-skip-synthesized-symbols",),
    arguments_to_add=(),
    description="Exclude synthesized symbols from the generated documentation.",
)

PLUGIN_FLAGS = (SKIP_SYNTHESIZED_SYMBOLS,)

FALLBACK_DISPLAY_NAME = "--fallback-display-name"
FALLBACK_BUNDLE_IDENTIFIER = "--fallback-bundle-identifier"
ADDITIONAL_SYMBOL_GRAPH_DIR = "--additional-symbol-graph-dir"
FALLBACK_DEFAULT_MODULE_KIND = "--fallback-default-module-kind"
OUTPUT_PATH_OPTIONS = ("--output-path", "--output-dir", "-o")


def _find_option(arguments: Sequence[str], names: Sequence[str]) -> str | None:
    """Return the value given for any of `names`, supporting ``--name value`` and ``--name=value``."""
    for position, argument in enumerate(arguments):
        for name in names:
            if argument == name:
                if position + 1 < len(arguments):
                    return arguments[position + 1]
                return ""
            if argument.startswith(f"{name}="):
                return argument[len(name) + 1 :]
    return None


def output_path_from_arguments(arguments: Sequence[str]) -> str | None:
    return _find_option(arguments, OUTPUT_PATH_OPTIONS) or None


def docc_arguments(
    action: DoccAction,
    target: BuildTarget,
    symbol_graph_dir: Path,
    output_path: Path,
    arguments: Sequence[str] = (),
) -> list[str]:
    """Build the argument list for a `docc` invocation.

    User arguments are kept and plugin-only flags are rewritten. Defaults are
    appended for the options `docc` needs that the user did not provide.

    Args:
        action: `docc` subcommand to run.
        target: Module being documented.
        symbol_graph_dir: Directory holding the module's symbol graph files.
        output_path: Default location of the generated archive.
        arguments: Extra arguments supplied by the user.

    Returns:
        list[str]: Arguments to pass to the `docc` executable.

    Examples:
        docc_arguments(DoccAction.CONVERT, BuildTarget("Kit"), Path("sg"), Path("Kit.doccarchive"))
        # ["convert", "--fallback-display-name", "Kit", ...]
    """
    transformed = list(arguments)
    for flag in PLUGIN_FLAGS:
        transformed = flag.transform(transformed)

    result = [action.value]
    if target.docc_catalog_path is not None:
        result.append(str(target.docc_catalog_path))
    result.extend(transformed)

    defaults = [
        ((FALLBACK_DISPLAY_NAME,), target.name),
        ((FALLBACK_BUNDLE_IDENTIFIER,), target.name),
        ((ADDITIONAL_SYMBOL_GRAPH_DIR,), str(symbol_graph_dir)),
        (OUTPUT_PATH_OPTIONS, str(output_path)),
    ]
    if target.kind is TargetKind.EXECUTABLE:
        defaults.append(((FALLBACK_DEFAULT_MODULE_KIND,), TargetKind.EXECUTABLE.value))

    for names, value in defaults:
        if _find_option(transformed, names) is None:
            result.extend([names[0], value])

    return result


def locate_docc(
    config: SnippetConfig | None = None, environ: Mapping[str, str] | None = None
) -> Path:
    """Find the `docc` executable.

    Looks at the ``DOCC_EXEC`` environment variable, then the configured
    `docc_executable`, then ``docc`` on ``PATH``.

    Raises:
        DoccNotFoundError: If no candidate points to an existing file.

    Examples:
        locate_docc(SnippetConfig(docc_executable="/usr/bin/docc"))
    """
    config = config or SnippetConfig()
    environ = os.environ if environ is None else environ

    for source, candidate in (
        (DOCC_EXEC_ENV_VAR, environ.get(DOCC_EXEC_ENV_VAR)),
        ("docc_executable", config.docc_executable),
    ):
        if not candidate:
            continue
        path = Path(candidate).expanduser()
        if not path.is_file():
            raise DoccNotFoundError(f"{source} points to a missing file: {path}")
        return path

    found = shutil.which(DOCC_EXECUTABLE_NAME, path=environ.get("PATH"))
    if found is None:
        raise DoccNotFoundError(
            f"Unable to find '{DOCC_EXECUTABLE_NAME}'. Set {DOCC_EXEC_ENV_VAR} or "
            "`docc_executable` to its location."
        )
    return Path(found)


def _forward_signal(process: subprocess.Popen) -> Callable[[int, object], None]:
    def _handler(signum: int, frame: object) -> None:
        process.send_signal(signum)

    return _handler


def run_docc(executable: Path, arguments: Sequence[str], forward_signals: bool = True) -> int:
    """Run `docc` and wait for it to exit.

    While the child runs, SIGINT and SIGTERM received by this process are
    relayed to it. Previous handlers are restored afterwards. Signal relay
    needs the main thread and is skipped elsewhere.

    Args:
        executable: Path to the `docc` executable.
        arguments: Arguments for the invocation.
        forward_signals: Relay SIGINT/SIGTERM to the child.

    Returns:
        int: Exit status; negative when the child was killed by a signal.

    Raises:
        DoccError: If the process cannot be started.

    Examples:
        returncode = run_docc(Path("/usr/bin/docc"), ["convert", "--help"])
    """
    try:
        process = subprocess.Popen([str(executable), *arguments])
    except OSError as error:
        raise DoccError(f"Unable to start {executable}: {error}") from error

    previous_handlers = {}
    if forward_signals and threading.current_thread() is threading.main_thread():
        handler = _forward_signal(process)
        for signum in FORWARDED_SIGNALS:
            previous_handlers[signum] = signal.signal(signum, handler)

    try:
        return process.wait()
    finally:
        for signum, previous in previous_handlers.items():
            signal.signal(signum, previous)


def check_docc_result(returncode: int, action: DoccAction):
    """Treat any nonzero or signal-terminated exit as a failure.

    Raises:
        DoccInvocationError: If `returncode` is not zero.
    """
    if returncode != 0:
        raise DoccInvocationError(returncode, action.value)
