"""
Command-line interface for the translation reviewer.

Usage:
    translation-reviewer process en.json es.json --lang es
    translation-reviewer review
    translation-reviewer preview --needs-review
    translation-reviewer export translations.json
    translation-reviewer reset
"""
import os
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from tqdm import tqdm

from translation_reviewer import __version__
from translation_reviewer.app_config import AppConfig, load_app_config
from translation_reviewer.commands import Action, ReviewController
from translation_reviewer.errors import InvalidFileTypeError, ReviewError, TranslationReviewError
from translation_reviewer.pair_extractor import PairStatus
from translation_reviewer.review_session import ReviewSession
from translation_reviewer.session_store import SessionStore
from translation_reviewer.tree_compare import MissingKeys

app = typer.Typer(
    name="translation-reviewer",
    help="Review and correct translations stored as nested JSON documents.",
    add_completion=False,
)
console = Console()

STATUS_STYLES = {
    PairStatus.PENDING: "yellow",
    PairStatus.PASSED: "green",
    PairStatus.FAILED: "red",
}

REVIEW_HELP = """[bold]Commands[/bold]
  n / p          next / previous translation
  a [N]          approve the current translation (or translation #N)
  c              correct the current translation (empty input approves as-is)
  u              undo the last decision
  j              jump to the next pending translation
  g N            go to translation #N (as numbered in the preview)
  s SECTION|all  jump to a section
  v [!]          preview corrections (! = only those needing review)
  w              save progress now
  x [PATH]       export the corrected JSON
  q              quit (progress is kept)"""


class CliState:
    def __init__(self, config: AppConfig, controller: ReviewController):
        self.config = config
        self.controller = controller


def version_callback(value: bool):
    if value:
        console.print(f"translation-reviewer v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
):
    """Review translations pair by pair and export the corrected document."""
    config = load_app_config()
    store = SessionStore(config.storage_file_path)
    ctx.obj = CliState(config, ReviewController(store, config.source_language))


def _fail(message: str):
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(code=1)


def _load_controller(ctx: typer.Context) -> ReviewController:
    controller = ctx.obj.controller
    if not controller.store.has_session() or not controller.restore():
        _fail("No saved review session. Run 'process' with a source and a target file first.")
    return controller


# --- Rendering ---

def _render_progress(session: ReviewSession):
    bar = tqdm(
        total=session.total_count,
        initial=session.reviewed_count,
        desc="Reviewed",
        unit="pair",
        file=sys.stdout,
        leave=True,
    )
    bar.close()


def _render_missing_keys(missing_keys: MissingKeys, config: AppConfig, target_language: str):
    if not missing_keys.total:
        return
    console.print(Panel(
        "Some keys exist in one file but not the other. "
        "The review will only include keys that exist in both files.",
        title=f"Missing Keys Detected ({missing_keys.total})",
        border_style="yellow",
    ))
    target_name = config.language_display_name(target_language)
    source_name = config.language_display_name(config.source_language)
    for title, keys in (
        (f"Missing in {target_name}", missing_keys.missing_in_target),
        (f"Missing in {source_name}", missing_keys.missing_in_source),
    ):
        table = Table(title=f"{title} ({len(keys)})")
        table.add_column("Key path")
        for key in keys:
            table.add_row(escape(key))
        console.print(table)


def _render_pair(session: ReviewSession, config: AppConfig):
    pair = session.current_pair
    style = STATUS_STYLES[pair.status]
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column()
    table.add_row("Section", escape(pair.section))
    table.add_row("Path", escape(" > ".join(pair.path[1:])))
    table.add_row(config.language_display_name(session.source_language), escape(pair.source_text))
    table.add_row(config.language_display_name(session.target_language), escape(pair.target_text))
    if pair.correction is not None:
        table.add_row("Correction", f"[green]{escape(pair.correction)}[/green]")
    table.add_row("Status", f"[{style}]{pair.status.value}[/{style}]")
    console.print(Panel(
        table,
        title=f"Translation {session.cursor + 1} of {session.total_count}",
        subtitle=f"Section filter: {session.section_filter}",
    ))


def _render_preview(session: ReviewSession, config: AppConfig, needs_review_only: bool):
    grouped = session.corrected_pairs(needs_review_only)
    if not grouped:
        message = "No translations need review." if needs_review_only else "No corrections have been made yet."
        console.print(f"[yellow]{message}[/yellow]")
        return

    target_name = config.language_display_name(session.target_language)
    for section, indices in grouped.items():
        table = Table(title=escape(section))
        table.add_column("#", justify="right")
        table.add_column("Path")
        table.add_column(config.language_display_name(session.source_language))
        table.add_column(f"Original {target_name}", style="red")
        table.add_column(f"Corrected {target_name}", style="green")
        table.add_column("Status")
        for index in indices:
            pair = session.pairs[index]
            style = STATUS_STYLES[pair.status]
            table.add_row(
                str(index + 1),
                escape(" > ".join(pair.path)),
                escape(pair.source_text),
                escape(pair.target_text),
                escape(pair.correction),
                f"[{style}]{pair.status.value}[/{style}]",
            )
        console.print(table)


def _render_sections(session: ReviewSession):
    table = Table(title="Sections")
    table.add_column("Section")
    table.add_column("Reviewed", justify="right")
    table.add_column("Approved", justify="right")
    table.add_column("Status")
    for section, stats in session.section_stats().items():
        table.add_row(
            escape(section),
            f"{stats.reviewed}/{stats.total} ({stats.percent}%)",
            str(stats.passed),
            stats.status,
        )
    console.print(table)


# --- Interactive loop ---

def _prompt(text: str) -> Optional[str]:
    try:
        return console.input(text)
    except (EOFError, KeyboardInterrupt):
        return None


def _pair_number(argument: str, session: ReviewSession) -> int:
    """Convert a 1-based translation number typed by the user into a pair index."""
    try:
        number = int(argument)
    except ValueError:
        raise ReviewError(f"'{argument}' is not a translation number.")
    if not 1 <= number <= session.total_count:
        raise ReviewError(f"Translation #{number} does not exist (1-{session.total_count}).")
    return number - 1


def _correct_current(controller: ReviewController):
    controller.handle_key("ArrowUp")
    session = controller.session
    console.print(f"[dim]Current text:[/dim] {escape(session.edit_buffer)}")
    new_text = _prompt("Correction (empty to approve as-is): ")
    if not new_text:
        controller.dispatch(Action.CANCEL_CORRECTION)
        console.print("[green]Approved as-is.[/green]")
        return
    session.edit_buffer = new_text
    controller.handle_key("Enter")


def _run_review_loop(controller: ReviewController, config: AppConfig):
    console.print(REVIEW_HELP)
    while True:
        session = controller.session
        _render_progress(session)
        _render_pair(session, config)

        line = _prompt("> ")
        if line is None:
            break
        command, _, argument = line.strip().partition(" ")
        argument = argument.strip()

        try:
            if command == "q":
                break
            elif command == "n":
                controller.handle_key("ArrowRight")
            elif command == "p":
                controller.handle_key("ArrowLeft")
            elif command == "a":
                if argument:
                    controller.dispatch(Action.PASS, index=_pair_number(argument, session))
                else:
                    controller.handle_key("ArrowDown")
            elif command == "g":
                pair = session.pairs[_pair_number(argument, session)]
                controller.dispatch(Action.JUMP_TO_PATH, path=pair.path)
            elif command == "c":
                _correct_current(controller)
            elif command == "u":
                if not session.history:
                    console.print("[dim]Nothing to undo.[/dim]")
                else:
                    controller.handle_key("z", ctrl=True)
            elif command == "j":
                if not controller.dispatch(Action.JUMP_TO_NEXT_PENDING):
                    scope = ("All translations" if session.section_filter == "all"
                             else f'All translations in the "{session.section_filter}" section')
                    console.print(f"[yellow]No more pending translations. {scope} have been reviewed.[/yellow]")
            elif command == "s":
                if not argument:
                    _render_sections(session)
                else:
                    controller.dispatch(Action.JUMP_TO_SECTION, section=argument)
            elif command == "v":
                controller.dispatch(Action.TOGGLE_PREVIEW)
                _render_preview(session, config, needs_review_only=argument == "!")
                controller.handle_key("Escape")
            elif command == "w":
                controller.dispatch(Action.SAVE)
                console.print("[green]Progress saved.[/green]")
            elif command == "x":
                output_path = controller.dispatch(Action.EXPORT, output_path=argument or config.export_file_name)
                console.print(
                    f"[green]Exported {session.reviewed_count} of {session.total_count} "
                    f"reviewed translations to {output_path}.[/green]"
                )
            elif command in ("?", "h", "help"):
                console.print(REVIEW_HELP)
            elif command:
                console.print(f"[yellow]Unknown command '{command}'. Type ? for help.[/yellow]")
        except TranslationReviewError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")


# --- Commands ---

@app.command()
def process(
    ctx: typer.Context,
    source_file: Path = typer.Argument(..., help="Source-language (English) JSON file"),
    target_file: Path = typer.Argument(..., help="Target-language JSON file"),
    language: Optional[str] = typer.Option(
        None, "--lang", "-l",
        help="Target language code or name (free text allowed)",
    ),
    review: bool = typer.Option(
        True, "--review/--no-review",
        help="Start reviewing right after processing",
    ),
):
    """Compare two JSON documents and start a new review session."""
    state: CliState = ctx.obj
    config = state.config
    controller = state.controller

    language = (language or config.default_target_language).strip()
    target_language = config.name_to_code.get(language.lower(), language)

    for file_path in (source_file, target_file):
        if not file_path.exists():
            _fail(f"File not found: {file_path}")

    try:
        missing_keys = controller.process_files(str(source_file), str(target_file), target_language)
    except InvalidFileTypeError as e:
        console.print(f"[yellow]Invalid File Type:[/yellow] {escape(str(e))}")
        raise typer.Exit(code=1)
    except TranslationReviewError as e:
        _fail(f"Error Processing Files: {e}")

    session = controller.session
    _render_missing_keys(missing_keys, config, target_language)
    controller.dispatch(Action.CLOSE_MISSING_KEYS)
    console.print(
        f"[green]Files processed successfully.[/green] Found {session.total_count} text pairs "
        f"across {len(session.sections)} sections."
    )

    if review:
        _run_review_loop(controller, config)


@app.command("review")
def review_command(ctx: typer.Context):
    """Resume the saved review session."""
    controller = _load_controller(ctx)
    _run_review_loop(controller, ctx.obj.config)


@app.command()
def status(ctx: typer.Context):
    """Show review progress overall and per section."""
    controller = _load_controller(ctx)
    session = controller.session
    console.print(
        f"Target language: [bold]{ctx.obj.config.language_display_name(session.target_language)}[/bold] "
        f"({session.target_language})"
    )
    console.print(
        f"Reviewed {session.reviewed_count} of {session.total_count} "
        f"({session.progress_percent:.0f}%). Current translation: {session.cursor + 1}."
    )
    _render_progress(session)
    _render_sections(session)


@app.command()
def preview(
    ctx: typer.Context,
    needs_review: bool = typer.Option(
        False, "--needs-review",
        help="Only show corrections that have not been approved yet",
    ),
):
    """List all corrected translations grouped by section."""
    controller = _load_controller(ctx)
    _render_preview(controller.session, ctx.obj.config, needs_review)


@app.command()
def export(
    ctx: typer.Context,
    output_file: Optional[Path] = typer.Argument(None, help="Where to write the corrected JSON"),
):
    """Export the merged document with every correction applied."""
    controller = _load_controller(ctx)
    session = controller.session
    output_path = str(output_file) if output_file else os.path.join(os.getcwd(), ctx.obj.config.export_file_name)
    try:
        written = controller.dispatch(Action.EXPORT, output_path=output_path)
    except TranslationReviewError as e:
        _fail(str(e))
    console.print(
        f"[green]JSON exported.[/green] Exported {session.reviewed_count} of {session.total_count} "
        f"reviewed translations to {written}."
    )


@app.command()
def save(ctx: typer.Context):
    """Fold all corrections into the stored document now."""
    controller = _load_controller(ctx)
    controller.dispatch(Action.SAVE)
    console.print("[green]Progress saved.[/green]")


@app.command()
def reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Clear the saved session so new files can be processed."""
    if not yes and not typer.confirm("This clears all review progress. Continue?"):
        raise typer.Exit()
    ctx.obj.controller.dispatch(Action.RESET)
    console.print("All data has been cleared. You can now process new files.")


if __name__ == "__main__":
    app()
