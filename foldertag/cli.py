"""
CLI interface for folder tagging.

Usage:
    foldertag config
    foldertag set-depth allsplit
    foldertag map add projects/php-aws-sdk "php, aws" --apply
    foldertag reapply
"""

import json
import os
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import FolderTagger
from .bulk import BulkResult
from .config import get_config_dir
from .events import FAILED, EventOutcome
from .logging_config import (
    configure_ops_log,
    configure_quiet_mode,
    enable_debug_mode,
    verbose_from_env,
)
from .types import DEPTH_LABELS, FOLDER_DEPTHS, normalize_path, parse_tags_from_string


# Configure quiet mode by default
# Set FOLDERTAG_VERBOSE=1 to enable debug mode via environment
if verbose_from_env():
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"foldertag {version('foldertag')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_vault_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _vault_callback(value: Optional[Path]):
    global _vault_override
    _vault_override = value


def _get_vault_override() -> Optional[Path]:
    return _vault_override


app = typer.Typer(
    name="foldertag",
    help="Tag Markdown notes from the folders they live in.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

map_app = typer.Typer(
    help="Custom tags for directories and everything below them.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(map_app, name="map")


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    vault: Annotated[Optional[Path], typer.Option(
        "--vault", "-V",
        envvar="FOLDERTAG_VAULT",
        help="Path to the vault (default: current directory)",
        callback=_vault_callback,
        is_eager=True,
    )] = None,
):
    """Tag Markdown notes from the folders they live in."""


# -----------------------------------------------------------------------------
# Common Options
# -----------------------------------------------------------------------------

VaultOption = Annotated[
    Optional[Path],
    typer.Option(
        "--vault", "-V",
        envvar="FOLDERTAG_VAULT",
        help="Path to the vault (default: current directory)"
    )
]

YesOption = Annotated[
    bool,
    typer.Option(
        "--yes", "-y",
        help="Don't ask for confirmation"
    )
]


def _vault_path(vault: Optional[Path]) -> Path:
    actual = vault if vault is not None else _get_vault_override()
    return Path(actual if actual is not None else Path.cwd()).expanduser().resolve()


def _get_tagger(vault: Optional[Path]) -> FolderTagger:
    """Open the vault and attach the operations log."""
    vault_path = _vault_path(vault)
    if not vault_path.is_dir():
        typer.echo(f"Error: vault not found: {vault_path}", err=True)
        raise typer.Exit(1)
    config_dir = get_config_dir(vault_path)
    configure_ops_log(config_dir)
    return FolderTagger(vault_path, config_dir=config_dir)


def _confirm(message: str, yes: bool) -> None:
    if not yes:
        typer.confirm(message, abort=True)


def _echo_result(result: BulkResult, done: str) -> None:
    """Report a batch run; failures go to stderr one line per note."""
    if _get_json_output():
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        typer.echo(
            f"{done} Processed {result.processed} of {result.total} note(s), "
            f"modified {result.modified}."
        )
        if result.skipped:
            typer.echo(f"Skipped {result.skipped} note(s) with unreadable frontmatter.")
    for path, error in result.failed:
        typer.echo(f"Failed to process: {path} ({error})", err=True)


def _echo_outcomes(outcomes: list[EventOutcome]) -> None:
    if _get_json_output():
        typer.echo(json.dumps([
            {"kind": o.event.kind, "path": o.event.path, "old_path": o.event.old_path,
             "outcome": o.outcome, "error": o.error}
            for o in outcomes
        ], indent=2))
        return
    for o in outcomes:
        if o.outcome == FAILED:
            typer.echo(f"Failed to process: {o.event.path} ({o.error})", err=True)
        else:
            typer.echo(f"{o.event.path}: {o.outcome}")


def _format_mapping(index: int, directory: str, tags: list[str]) -> str:
    return f"[{index}] {directory or '(unset)'} -> {', '.join(tags) if tags else '(no tags)'}"


# -----------------------------------------------------------------------------
# Settings
# -----------------------------------------------------------------------------

def _config_dict(ft: FolderTagger, vault_path: Path) -> dict:
    cfg = ft.config
    result = {
        "file": str(cfg.config_path),
        "vault": str(vault_path),
        "folder_depth": cfg.folder_depth,
        "tag_prefix": cfg.tag_prefix,
        "tag_suffix": cfg.tag_suffix,
        "directory_tag_mappings": cfg.mappings.to_list(),
    }
    if cfg.previous is not None:
        result["pending_reapply"] = True
    return result


@app.command()
def config(
    key: Annotated[Optional[str], typer.Argument(
        help="Config key to get (e.g., 'folder_depth', 'file', 'directory_tag_mappings')"
    )] = None,
    vault: VaultOption = None,
):
    """
    Show configuration. Optionally get a specific value by key.

    \b
    Examples:
        foldertag config
        foldertag config folder_depth
        foldertag config directory_tag_mappings --json
    """
    ft = _get_tagger(vault)
    data = _config_dict(ft, _vault_path(vault))

    if key:
        if key not in data:
            typer.echo(f"Error: unknown config key: {key}", err=True)
            raise typer.Exit(1)
        value = data[key]
        if _get_json_output():
            typer.echo(json.dumps({key: value}, indent=2))
        elif isinstance(value, (list, dict)):
            typer.echo(json.dumps(value))
        else:
            typer.echo(value)
        return

    if _get_json_output():
        typer.echo(json.dumps(data, indent=2))
        return

    lines = [
        f"file: {data['file']}",
        f"vault: {data['vault']}",
        f"folder_depth: {data['folder_depth']}  ({DEPTH_LABELS[data['folder_depth']]})",
        f"tag_prefix: {data['tag_prefix']!r}",
        f"tag_suffix: {data['tag_suffix']!r}",
        "directory_tag_mappings:",
    ]
    mappings = ft.list_mappings()
    if not mappings:
        lines.append("  (none)")
    for i, m in enumerate(mappings):
        lines.append("  " + _format_mapping(i, m.directory, m.tags))
    if data.get("pending_reapply"):
        lines.append("Settings changed since the last reapply. Run `foldertag reapply`.")
    typer.echo("\n".join(lines))


def _depth_help() -> str:
    return ", ".join(f"{d} ({DEPTH_LABELS[d]})" for d in FOLDER_DEPTHS)


@app.command("set-depth")
def set_depth(
    depth: Annotated[str, typer.Argument(help=f"One of: {_depth_help()}")],
    vault: VaultOption = None,
):
    """Set how folders become tags. Existing notes change on `reapply`."""
    ft = _get_tagger(vault)
    try:
        ft.set_folder_depth(depth)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="DEPTH")
    typer.echo(f"folder_depth: {depth}")


@app.command("set-prefix")
def set_prefix(
    prefix: Annotated[str, typer.Argument(help="Text put before every folder tag")],
    vault: VaultOption = None,
):
    """Set the folder tag prefix. Existing notes change on `reapply`."""
    ft = _get_tagger(vault)
    ft.set_tag_prefix(prefix)
    typer.echo(f"tag_prefix: {prefix!r}")


@app.command("set-suffix")
def set_suffix(
    suffix: Annotated[str, typer.Argument(help="Text put after every folder tag")],
    vault: VaultOption = None,
):
    """Set the folder tag suffix. Existing notes change on `reapply`."""
    ft = _get_tagger(vault)
    ft.set_tag_suffix(suffix)
    typer.echo(f"tag_suffix: {suffix!r}")


# -----------------------------------------------------------------------------
# Directory mappings
# -----------------------------------------------------------------------------

@map_app.command("list")
def map_list(vault: VaultOption = None):
    """List directory mappings with their index."""
    ft = _get_tagger(vault)
    mappings = ft.list_mappings()
    if _get_json_output():
        typer.echo(json.dumps([m.to_dict() for m in mappings], indent=2))
        return
    if not mappings:
        typer.echo("No directory mappings.")
        return
    for i, m in enumerate(mappings):
        typer.echo(_format_mapping(i, m.directory, m.tags))


@map_app.command("add")
def map_add(
    directory: Annotated[str, typer.Argument(help="Directory path (e.g., php-aws-sdk)")],
    tags: Annotated[str, typer.Argument(help="Tags, comma-separated (e.g., 'php, aws')")],
    apply: Annotated[bool, typer.Option(
        "--apply",
        help="Add the tags to notes under the directory now"
    )] = False,
    vault: VaultOption = None,
):
    """Add custom tags for a directory and everything below it."""
    tag_list = parse_tags_from_string(tags)
    if not normalize_path(directory):
        raise typer.BadParameter("directory must not be empty", param_hint="DIRECTORY")
    ft = _get_tagger(vault)
    mapping, result = ft.add_mapping(directory, tag_list, apply=apply)
    index = ft.config.mappings.index_of(mapping.directory)
    typer.echo(_format_mapping(index, mapping.directory, mapping.tags))
    if result is not None:
        _echo_result(result, "Mapping applied.")


@map_app.command("edit")
def map_edit(
    index: Annotated[int, typer.Argument(help="Mapping index (see `foldertag map list`)")],
    directory: Annotated[Optional[str], typer.Option(
        "--dir", "-d",
        help="New directory path"
    )] = None,
    tags: Annotated[Optional[str], typer.Option(
        "--tags", "-t",
        help="New tags, comma-separated"
    )] = None,
    no_retag: Annotated[bool, typer.Option(
        "--no-retag",
        help="Only change the mapping; leave note tags as they are"
    )] = False,
    vault: VaultOption = None,
):
    """Change a mapping's directory or tags and update affected notes."""
    if directory is None and tags is None:
        typer.echo("Error: Specify --dir and/or --tags", err=True)
        raise typer.Exit(1)
    ft = _get_tagger(vault)
    tag_list = parse_tags_from_string(tags) if tags is not None else None
    try:
        mapping, results = ft.update_mapping(index, directory=directory, tags=tag_list, retag=not no_retag)
    except IndexError as e:
        raise typer.BadParameter(str(e), param_hint="INDEX")
    typer.echo(_format_mapping(index, mapping.directory, mapping.tags))
    for result in results:
        _echo_result(result, "Notes updated.")


@map_app.command("remove")
def map_remove(
    index: Annotated[int, typer.Argument(help="Mapping index (see `foldertag map list`)")],
    keep_tags: Annotated[bool, typer.Option(
        "--keep-tags",
        help="Leave the mapping's tags on notes"
    )] = False,
    yes: YesOption = False,
    vault: VaultOption = None,
):
    """Remove a mapping, first removing its tags from the notes it covers."""
    ft = _get_tagger(vault)
    mappings = ft.list_mappings()
    if not 0 <= index < len(mappings):
        raise typer.BadParameter(f"No directory mapping at index {index}", param_hint="INDEX")
    target = mappings[index]
    if not keep_tags:
        _confirm(
            f"Remove mapping for '{target.directory}'? This removes its tags "
            f"({', '.join(target.tags)}) from notes in that directory.",
            yes,
        )
    _, result = ft.remove_mapping(index, remove_tags=not keep_tags)
    if result is None:
        typer.echo("Mapping removed.")
    elif _get_json_output():
        _echo_result(result, "Mapping removed.")
    else:
        typer.echo(f"Mapping removed. Tags removed from {result.modified} note(s).")
        for path, error in result.failed:
            typer.echo(f"Failed to process: {path} ({error})", err=True)


# -----------------------------------------------------------------------------
# Resolution and host events
# -----------------------------------------------------------------------------

@app.command()
def resolve(
    path: Annotated[str, typer.Argument(help="Vault-relative note path")],
    vault: VaultOption = None,
):
    """Show the tags a note at PATH would get."""
    ft = _get_tagger(vault)
    resolver = ft.resolver()
    folder = resolver.folder_tags(path)
    custom = resolver.custom_tags(path)
    tags = resolver.resolve(path)
    if _get_json_output():
        typer.echo(json.dumps({"path": normalize_path(path), "tags": tags,
                               "folder": folder, "custom": custom}, indent=2))
        return
    for tag in tags:
        typer.echo(tag)


@app.command()
def created(
    paths: Annotated[list[str], typer.Argument(help="Vault-relative paths of new notes")],
    vault: VaultOption = None,
):
    """Tag newly created notes (hook for the host application)."""
    ft = _get_tagger(vault)
    _echo_outcomes(ft.on_create(paths))


@app.command()
def renamed(
    old_path: Annotated[str, typer.Argument(help="Path before the rename")],
    new_path: Annotated[str, typer.Argument(help="Path after the rename")],
    vault: VaultOption = None,
):
    """Retag a note the host has already moved or renamed."""
    ft = _get_tagger(vault)
    _echo_outcomes(ft.on_rename(old_path, new_path))


@app.command("mv")
def mv(
    old_path: Annotated[str, typer.Argument(help="Current vault-relative path")],
    new_path: Annotated[str, typer.Argument(help="New vault-relative path")],
    vault: VaultOption = None,
):
    """Move a note and swap its folder tags."""
    ft = _get_tagger(vault)
    try:
        outcomes = ft.move(old_path, new_path)
    except (FileNotFoundError, FileExistsError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    _echo_outcomes(outcomes)


# -----------------------------------------------------------------------------
# Batch commands
# -----------------------------------------------------------------------------

@app.command()
def reapply(yes: YesOption = False, vault: VaultOption = None):
    """Reapply folder and custom tags to all notes."""
    ft = _get_tagger(vault)
    _confirm("Update tags on all notes with the current settings?", yes)
    _echo_result(ft.reapply_all(), "Folder tags updated for all notes.")


@app.command("remove-tags")
def remove_tags(yes: YesOption = False, vault: VaultOption = None):
    """Remove folder and custom tags from all notes."""
    ft = _get_tagger(vault)
    _confirm("Remove folder and custom directory tags from all notes?", yes)
    _echo_result(ft.remove_all_tags(), "All folder tags removed.")


@app.command("remove-custom")
def remove_custom(yes: YesOption = False, vault: VaultOption = None):
    """Remove only custom directory tags from all notes."""
    ft = _get_tagger(vault)
    _confirm("Remove custom directory tags from all notes? Folder tags are kept.", yes)
    _echo_result(ft.remove_custom_tags(), "Custom directory tags removed.")


@app.command()
def reset(yes: YesOption = False, vault: VaultOption = None):
    """Remove all derived tags from all notes and delete every mapping."""
    ft = _get_tagger(vault)
    _confirm(
        "Remove all folder and custom tags from all notes and delete all "
        "directory mappings? This cannot be undone.",
        yes,
    )
    _echo_result(ft.complete_reset(), "Complete reset done.")


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        vault = _get_vault_override() or os.environ.get("FOLDERTAG_VAULT")
        config_dir = get_config_dir(Path(vault).expanduser()) if vault else None
        log_path = log_exception(e, context="foldertag CLI", config_dir=config_dir)
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
