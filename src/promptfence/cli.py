"""CLI entry point for promptfence."""

from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from promptfence import __version__
from promptfence.config import load_config
from promptfence.editor.prompt_editor import PromptEditor
from promptfence.models.config import Config
from promptfence.services.exceptions import FileModifiedError, PromptFenceError
from promptfence.services.presets import find_preset, list_presets, load_preset_content
from promptfence.services.state_file import StateFile
from promptfence.utils.logging import configure_logging, get_logger


logger = get_logger(__name__)
console = Console()


STATE_FILE_ARGUMENT = click.argument(
    "state_file", type=click.Path(path_type=Path, dir_okay=False)
)


def _load_config(config_path: Path | None) -> Config:
    """
    Load configuration, converting failures into click errors.

    Raises:
        click.ClickException: If the config file is missing or invalid
    """
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        logger.error("config_load_failed", error=str(e))
        raise click.ClickException(str(e))


def open_editor(state_file: StateFile, config: Config) -> PromptEditor:
    """
    Build an editor from a state file (empty when the file doesn't exist).

    Raises:
        click.ClickException: If the state file is unreadable
    """
    editor = PromptEditor(config=config.editor)
    try:
        data = state_file.load()
    except PromptFenceError as e:
        raise click.ClickException(str(e))

    if data is not None:
        editor.set_full_value(data)
    return editor


def save_editor(state_file: StateFile, editor: PromptEditor) -> None:
    """
    Write the editor's state back to its file.

    Raises:
        click.ClickException: If the file changed on disk or cannot be written
    """
    try:
        state_file.save(editor.get_full_value())
    except (FileModifiedError, OSError) as e:
        logger.error("state_save_failed", path=str(state_file.path), error=str(e))
        raise click.ClickException(f"Failed to save {state_file.path}: {e}")


@click.group()
@click.version_option(version=__version__, prog_name="promptfence")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Configuration file (default: ~/.config/promptfence/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None):
    """promptfence: edit prompts with disabled and hidden spans."""
    configure_logging()
    ctx.obj = _load_config(config_path)


@cli.command()
@click.argument(
    "state_file", type=click.Path(path_type=Path, dir_okay=False), required=False
)
@click.pass_obj
def edit(config: Config, state_file: Path | None):
    """
    Open the interactive editor, saving every change.

    Examples:
        promptfence edit                  # Edit the default state file
        promptfence edit prompt.json      # Edit a specific state file
    """
    from promptfence.tui.app import PromptFenceApp

    path = state_file or config.state_path
    store = StateFile(path)
    editor = open_editor(store, config)

    logger.info("launching_tui", path=str(store.path))
    app = PromptFenceApp(editor, state_file=store, presets_dir=config.presets.path)
    app.run()
    logger.info("edit_command_completed", path=str(store.path))


@cli.command()
@STATE_FILE_ARGUMENT
@click.pass_obj
def value(config: Config, state_file: Path):
    """Print the prompt value (document without disabled text)."""
    editor = open_editor(StateFile(state_file), config)
    click.echo(editor.get_value())


@cli.command()
@STATE_FILE_ARGUMENT
@click.pass_obj
def show(config: Config, state_file: Path):
    """Show the document with disabled spans struck through, and hidden snippets."""
    editor = open_editor(StateFile(state_file), config)
    console.print(editor.render_display())

    if editor.hidden_elements:
        table = Table(title="Hidden elements")
        table.add_column("ID", style="cyan", justify="right")
        table.add_column("Name")
        table.add_column("Content")
        for element in editor.hidden_elements:
            name = f"[{element.text_color} on {element.bubble_color}]{escape(element.display_name)}[/]"
            table.add_row(str(element.id), name, escape(element.content))
        console.print(table)


@cli.command()
@STATE_FILE_ARGUMENT
@click.argument("start", type=click.IntRange(min=0))
@click.argument("end", type=click.IntRange(min=0))
@click.pass_obj
def disable(config: Config, state_file: Path, start: int, end: int):
    """Disable the text between START and END (character offsets)."""
    store = StateFile(state_file)
    editor = open_editor(store, config)

    fragment = editor.disable((start, end))
    if fragment is None:
        raise click.ClickException(
            "Nothing disabled: the selection is blank or overlaps a disabled span"
        )

    save_editor(store, editor)
    click.echo(f"Disabled fragment {fragment.id}: {fragment.content!r}")


@cli.command()
@STATE_FILE_ARGUMENT
@click.argument("fragment_id", type=int)
@click.pass_obj
def enable(config: Config, state_file: Path, fragment_id: int):
    """Re-enable the disabled fragment FRAGMENT_ID."""
    store = StateFile(state_file)
    editor = open_editor(store, config)

    if not editor.enable(fragment_id):
        raise click.ClickException(f"No disabled fragment with id {fragment_id}")

    save_editor(store, editor)
    click.echo(f"Enabled fragment {fragment_id}")


@cli.command()
@STATE_FILE_ARGUMENT
@click.argument("start", type=click.IntRange(min=0))
@click.argument("end", type=click.IntRange(min=0))
@click.option("--name", default=None, help="Display name for the hidden element")
@click.pass_obj
def hide(config: Config, state_file: Path, start: int, end: int, name: str | None):
    """Move the text between START and END out of the document."""
    store = StateFile(state_file)
    editor = open_editor(store, config)

    element = editor.hide((start, end))
    if element is None:
        raise click.ClickException(
            "Nothing hidden: the selection is blank or touches a disabled span"
        )
    if name:
        editor.rename_hidden(element.id, name)

    save_editor(store, editor)
    click.echo(f"Hidden element {element.id}: {element.display_name}")


@cli.command(name="hide-disabled")
@STATE_FILE_ARGUMENT
@click.argument("fragment_id", type=int)
@click.pass_obj
def hide_disabled(config: Config, state_file: Path, fragment_id: int):
    """Convert the disabled fragment FRAGMENT_ID into a hidden element."""
    store = StateFile(state_file)
    editor = open_editor(store, config)

    element = editor.hide_disabled(fragment_id)
    if element is None:
        raise click.ClickException(f"No disabled fragment with id {fragment_id}")

    save_editor(store, editor)
    click.echo(f"Hidden element {element.id}: {element.display_name}")


@cli.command(name="insert-hidden")
@STATE_FILE_ARGUMENT
@click.argument("hidden_id", type=int)
@click.option("--at", "offset", type=click.IntRange(min=0), default=None,
              help="Insert at this offset instead of the end of the document")
@click.pass_obj
def insert_hidden(config: Config, state_file: Path, hidden_id: int, offset: int | None):
    """Insert a copy of hidden element HIDDEN_ID into the document."""
    store = StateFile(state_file)
    editor = open_editor(store, config)

    if editor.store.get_hidden(hidden_id) is None:
        raise click.ClickException(f"No hidden element with id {hidden_id}")
    if offset is not None:
        editor.select(offset)

    if not editor.insert_hidden_content(hidden_id):
        raise click.ClickException("Cannot insert inside a disabled span")

    save_editor(store, editor)
    click.echo(f"Inserted hidden element {hidden_id}")


@cli.command(name="delete-hidden")
@STATE_FILE_ARGUMENT
@click.argument("hidden_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Delete without asking")
@click.pass_obj
def delete_hidden(config: Config, state_file: Path, hidden_id: int, yes: bool):
    """Delete hidden element HIDDEN_ID."""
    store = StateFile(state_file)
    editor = open_editor(store, config)

    if editor.store.get_hidden(hidden_id) is None:
        raise click.ClickException(f"No hidden element with id {hidden_id}")

    def confirm(message: str) -> bool:
        return yes or Confirm.ask(message, default=False)

    if not editor.delete_hidden(hidden_id, confirm=confirm):
        click.echo("Cancelled")
        return

    save_editor(store, editor)
    click.echo(f"Deleted hidden element {hidden_id}")


@cli.group()
def presets():
    """Manage preset prompt snippets."""


PRESETS_DIR_OPTION = click.option(
    "--dir",
    "directory",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Preset directory (default from configuration)",
)


@presets.command(name="list")
@PRESETS_DIR_OPTION
@click.pass_obj
def presets_list(config: Config, directory: Path | None):
    """List presets, newest first."""
    directory = directory or config.presets.path
    try:
        found = list_presets(directory)
    except NotADirectoryError as e:
        raise click.ClickException(str(e))

    if not found:
        click.echo(f"No presets in {directory}")
        return

    table = Table(title=f"Presets in {directory}")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for preset in found:
        table.add_row(
            preset.name,
            preset.extension,
            str(preset.size),
            preset.modified.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@presets.command(name="load")
@click.argument("name")
@STATE_FILE_ARGUMENT
@PRESETS_DIR_OPTION
@click.pass_obj
def presets_load(config: Config, name: str, state_file: Path, directory: Path | None):
    """Replace the document in STATE_FILE with preset NAME."""
    directory = directory or config.presets.path
    try:
        preset = find_preset(directory, name)
        content = load_preset_content(preset.path)
    except (PromptFenceError, NotADirectoryError) as e:
        raise click.ClickException(str(e))

    store = StateFile(state_file)
    editor = open_editor(store, config)
    editor.set_value(content)

    save_editor(store, editor)
    click.echo(f"Loaded preset {preset.name} into {state_file}")


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()
