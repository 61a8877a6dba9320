"""
Extracts documentation snippets from source files and drives the `docc` compiler.
"""

from __future__ import annotations

import json
import time
from dataclasses import replace
from pathlib import Path

import click
from .config import ConfigError, SnippetConfig, build_config
from .docc import (
    BuildTarget,
    DoccAction,
    TargetKind,
    check_docc_result,
    docc_arguments,
    locate_docc,
    output_path_from_arguments,
    run_docc,
)
from .exceptions import DoccError, SliceNotFoundError
from .filesystem import (
    get_max_file_size,
    normalize_directory,
    normalize_filepath,
    write_text_atomically,
)
from .parser import ParseFileError, parse_file, parse_snippet_directory

__all__ = ["cli"]

DEFAULT_ARCHIVE_DIR = ".build/plugins/docc-snippets/outputs"


def _load_config(search_path: Path, **overrides: object) -> SnippetConfig:
    try:
        config = build_config(search_path, **overrides)
    except ConfigError as error:
        raise click.BadParameter(str(error)) from error

    try:
        max_file_size = get_max_file_size(default=config.max_file_size)
    except ValueError as error:
        raise click.ClickException(str(error)) from error

    return replace(config, max_file_size=max_file_size)


def _dump_json(data: object, config: SnippetConfig) -> str:
    indent = config.json_indent or None
    return json.dumps(data, indent=indent, ensure_ascii=False) + "\n"


@click.group()
@click.version_option(package_name="docc-snippets")
def cli():
    """Extract documentation snippets and build documentation with `docc`."""


@cli.command()
@click.option("--slice", "slice_name", help="Only print the named slice")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
    help="Output format",
)
@click.option("--json-indent", type=int, help="JSON indentation (0 for compact output)")
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
def extract(
    filepath: str,
    slice_name: str | None = None,
    output_format: str = "text",
    json_indent: int | None = None,
):
    """
    Print the snippet extracted from a source file.

    Args:
        filepath: Path to the snippet source file.
        slice_name: Restrict text output to one slice (``main``, ``main.setup``).
        output_format: ``text`` prints the code; ``json`` prints explanation,
            code, and slice ranges.
        json_indent: Override for the configured JSON indentation.

    Raises:
        click.BadParameter: If the path is invalid, the configuration is invalid,
            or the slice does not exist.
        click.ClickException: If the file cannot be read.

    Examples:
        docc-snippets extract Snippets/Basics/Hello.swift --slice main
    """
    base_dir = Path.cwd().resolve()
    config = _load_config(base_dir, json_indent=json_indent)

    try:
        path = normalize_filepath(filepath, base_dir, config.extensions)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error

    try:
        snippet = parse_file(path, config)
    except ParseFileError as error:
        raise click.ClickException(str(error)) from error

    if slice_name is not None:
        try:
            lines = snippet.slice_lines(slice_name)
        except SliceNotFoundError as error:
            raise click.BadParameter(str(error), param_hint="'--slice'") from error
    else:
        lines = snippet.presentation_lines

    if output_format == "json":
        data = snippet.to_dict()
        if slice_name is not None:
            data = {"slice": slice_name, "code": list(lines)}
        click.echo(_dump_json(data, config), nl=False)
        return

    if lines:
        click.echo("\n".join(lines))


@cli.command()
@click.option(
    "--output",
    "output_path",
    type=click.Path(dir_okay=False, writable=True),
    help="Write the snippet index to this file instead of stdout",
)
@click.option("--json-indent", type=int, help="JSON indentation (0 for compact output)")
@click.argument("snippets_dir", required=False, type=click.Path(file_okay=False))
def build(
    snippets_dir: str | None = None,
    output_path: str | None = None,
    json_indent: int | None = None,
):
    """
    Extract every snippet in a directory into a JSON index.

    Args:
        snippets_dir: Directory of snippet sources; defaults to the configured
            `snippets_dir`.
        output_path: Destination file for the index.
        json_indent: Override for the configured JSON indentation.

    Raises:
        click.BadParameter: If the directory is invalid or the configuration is
            invalid.
        click.ClickException: If a snippet cannot be read or the index cannot
            be written.

    Examples:
        docc-snippets build Snippets --output snippets.json
    """
    base_dir = Path.cwd().resolve()
    config = _load_config(base_dir, json_indent=json_indent)

    try:
        directory = normalize_directory(snippets_dir or config.snippets_dir, base_dir)
    except ValueError as error:
        raise click.BadParameter(str(error)) from error

    try:
        sources = parse_snippet_directory(directory, config)
    except ParseFileError as error:
        raise click.ClickException(str(error)) from error

    index = {
        "snippets": [
            {**source.to_dict(), "path": source.path.relative_to(directory).as_posix()}
            for source in sources
        ]
    }
    text = _dump_json(index, config)

    if output_path is None:
        click.echo(text, nl=False)
        return

    try:
        write_text_atomically(Path(output_path), text)
    except IOError as error:
        raise click.ClickException(str(error)) from error
    click.echo(f"Extracted {len(sources)} snippet(s) to '{output_path}'", err=True)


def _symbol_graph_dir_for(symbol_graph_dir: Path, target_name: str) -> Path:
    # A subdirectory named after the target takes precedence over the shared directory.
    candidate = symbol_graph_dir / target_name
    return candidate if candidate.is_dir() else symbol_graph_dir


def _build_targets(
    target_names: tuple[str, ...],
    executable_names: tuple[str, ...],
    catalogs: tuple[str, ...],
) -> list[BuildTarget]:
    """Pair target names with their kind and documentation catalog.

    With a single target every catalog belongs to it; otherwise a catalog is
    matched to the target named by its stem (``MyKit.docc`` for ``MyKit``).

    Raises:
        click.BadParameter: If an executable or catalog names no given target,
            or a target gets more than one catalog.
    """
    names = list(dict.fromkeys(target_names))

    for name in executable_names:
        if name not in names:
            raise click.BadParameter(f"no target named '{name}'", param_hint="'--executable'")

    catalog_paths: dict[str, Path] = {}
    for catalog in catalogs:
        path = Path(catalog)
        name = names[0] if len(names) == 1 else path.stem
        if name not in names:
            error_message = f"no target named '{name}' for catalog '{catalog}'"
            raise click.BadParameter(error_message, param_hint="'--catalog'")
        if name in catalog_paths:
            error_message = f"more than one catalog given for target '{name}'"
            raise click.BadParameter(error_message, param_hint="'--catalog'")
        catalog_paths[name] = path

    return [
        BuildTarget(
            name=name,
            kind=TargetKind.EXECUTABLE if name in executable_names else TargetKind.LIBRARY,
            docc_catalog_path=catalog_paths.get(name),
        )
        for name in names
    ]


@cli.command(context_settings={"ignore_unknown_options": True})
@click.option(
    "--target",
    "target_names",
    multiple=True,
    required=True,
    help="Module to document; repeat for several targets",
)
@click.option(
    "--symbol-graph-dir",
    required=True,
    type=click.Path(exists=True, file_okay=False),
    help="Directory containing symbol graph files, or one subdirectory per target",
)
@click.option(
    "--catalog",
    "catalogs",
    multiple=True,
    type=click.Path(exists=True, file_okay=False),
    help="Documentation catalog (.docc), matched to the target of the same name",
)
@click.option(
    "--executable",
    "executable_names",
    multiple=True,
    metavar="TARGET",
    help="Document TARGET as an executable",
)
@click.option(
    "--archive-dir",
    default=DEFAULT_ARCHIVE_DIR,
    show_default=True,
    type=click.Path(file_okay=False),
    help="Directory for the default archive output paths",
)
@click.option("--verbose", is_flag=True, help="Print the docc invocation")
@click.argument("action", type=click.Choice([action.value for action in DoccAction]))
@click.argument("docc_args", nargs=-1, type=click.UNPROCESSED)
def docc(
    action: str,
    target_names: tuple[str, ...],
    symbol_graph_dir: str,
    docc_args: tuple[str, ...] = (),
    catalogs: tuple[str, ...] = (),
    executable_names: tuple[str, ...] = (),
    archive_dir: str = DEFAULT_ARCHIVE_DIR,
    verbose: bool = False,
):
    """
    Run `docc convert` or `docc preview` for one or more targets.

    Targets are converted in the order given; the first failing invocation
    stops the run. `preview` accepts a single target. Unrecognized options,
    `--output-dir` and `--output-path` included, are passed through to `docc`.
    SIGINT and SIGTERM are forwarded to the running `docc` process.

    Args:
        action: ``convert`` or ``preview``.
        target_names: Module names to document.
        symbol_graph_dir: Directory with the symbol graphs; a subdirectory
            named after a target is used for that target when present.
        docc_args: Extra arguments for `docc`.
        catalogs: Documentation catalog directories.
        executable_names: Targets to document as executables.
        archive_dir: Directory for the default archive output paths.
        verbose: Echo the resolved executable and arguments.

    Raises:
        click.BadParameter: If the targets or the configuration are invalid.
        click.ClickException: If `docc` cannot be found or an invocation fails.

    Examples:
        docc-snippets docc convert --target MyKit --symbol-graph-dir .build/symbol-graphs
    """
    docc_action = DoccAction(action)
    targets = _build_targets(target_names, executable_names, catalogs)
    if docc_action is DoccAction.PREVIEW and len(targets) > 1:
        raise click.BadParameter(
            "docc can only preview a single target at a time.", param_hint="'--target'"
        )

    config = _load_config(Path.cwd().resolve())

    try:
        executable = locate_docc(config)
    except DoccError as error:
        raise click.ClickException(str(error)) from error

    for position, target in enumerate(targets):
        if position:
            click.echo(err=True)

        arguments = docc_arguments(
            docc_action,
            target,
            symbol_graph_dir=_symbol_graph_dir_for(Path(symbol_graph_dir), target.name),
            output_path=target.docc_archive_output_path(Path(archive_dir)),
            arguments=docc_args,
        )

        if docc_action is DoccAction.CONVERT:
            click.echo(f"Generating documentation for '{target.name}'...", err=True)
        if verbose:
            click.echo(f"docc invocation: '{executable} {' '.join(arguments)}'", err=True)
        if docc_action is DoccAction.CONVERT:
            click.echo("Converting documentation...", err=True)
        start_time = time.monotonic()

        try:
            returncode = run_docc(executable, arguments)
            check_docc_result(returncode, docc_action)
        except DoccError as error:
            raise click.ClickException(str(error)) from error

        if docc_action is DoccAction.CONVERT:
            duration = time.monotonic() - start_time
            click.echo(f"Conversion complete! ({duration:.2f} seconds)", err=True)
            described_output_path = output_path_from_arguments(arguments) or "unknown location"
            click.echo(f"Generated DocC archive at '{described_output_path}'", err=True)


if __name__ == "__main__":
    cli()
