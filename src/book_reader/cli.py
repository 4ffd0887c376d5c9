#!/usr/bin/env python3
"""CLI interface for the book reader."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import MAX_WPM, MIN_WPM, WPM_STEP, get_settings
from .document import Document
from .exceptions import BookReaderError
from .loader import load_book
from .models import Position, PositionChange
from .persistence import ProgressStore
from .segmentation import Segmenter
from .session import ReaderSession
from .speech import KOKORO_VOICES, LANGUAGE_NAMES, create_backend, create_player, list_voices_by_language

console = Console()


def _load(input_path: str, keep_empty: bool) -> tuple[Segmenter, Document]:
    segmenter = Segmenter(keep_empty_paragraphs=keep_empty)
    try:
        book = load_book(input_path, segmenter)
    except BookReaderError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)
    return segmenter, Document.from_book(book, segmenter)


def _check_wpm_step(ctx: click.Context, param: click.Parameter, value: Optional[int]) -> Optional[int]:
    if value is not None and value % WPM_STEP:
        raise click.BadParameter(f"must be a multiple of {WPM_STEP}")
    return value


def _highlight(words: tuple[str, ...], index: int) -> Text:
    text = Text()
    for i, word in enumerate(words):
        if i:
            text.append(" ")
        text.append(word, style="bold reverse" if i == index else None)
    return text


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-V", is_flag=True, default=False, help="Show debug logging")
def cli(verbose: bool):
    """Navigate books by paragraph, sentence and word, with autoscroll and speech."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    type=click.Path(exists=True),
    required=True,
    help="Path to a .txt, .pdf or .epub file",
)
@click.option(
    "--keep-empty/--drop-empty",
    default=False,
    help="Keep blank paragraphs as navigable entries",
)
def outline(input_path: str, keep_empty: bool):
    """Show paragraphs with their sentence and word counts."""
    _segmenter, document = _load(input_path, keep_empty)

    console.print(f"[bold]{document.title or Path(input_path).name}[/bold]")
    console.print()

    if document.is_empty:
        console.print("[yellow]No paragraphs found in this document.[/yellow]")
        return

    table = Table()
    table.add_column("#", style="cyan", justify="right")
    table.add_column("Page", justify="right")
    table.add_column("Sentences", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Start")

    for idx, paragraph in enumerate(document.paragraphs):
        segments = document.segment(idx)
        preview = paragraph[:50] + ("..." if len(paragraph) > 50 else "")
        table.add_row(
            str(idx),
            str(document.page_for_paragraph(idx) or "?"),
            str(segments.sentence_count),
            str(segments.word_count),
            preview,
        )

    console.print(table)


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    type=click.Path(exists=True),
    required=True,
    help="Path to a .txt, .pdf or .epub file",
)
@click.option("--paragraph", "-p", type=int, default=0, help="Paragraph index")
@click.option("--sentence", "-s", type=int, default=0, help="Sentence index")
@click.option("--word", "-w", type=int, default=0, help="Word index")
@click.option("--page", type=int, default=None, help="Go to the start of this source page instead")
@click.option(
    "--keep-empty/--drop-empty",
    default=False,
    help="Keep blank paragraphs as navigable entries",
)
def show(
    input_path: str,
    paragraph: int,
    sentence: int,
    word: int,
    page: Optional[int],
    keep_empty: bool,
):
    """Show the sentence at a position, with the word highlighted.

    Out-of-range indices and page numbers are clamped to the nearest valid
    position.
    """
    segmenter, document = _load(input_path, keep_empty)
    session = ReaderSession(settings=get_settings(), segmenter=segmenter)
    session.load_document(document, document_id=Path(input_path).name)

    if page is not None:
        position = session.go_to_page(page)
        if session.current_page != page:
            console.print(f"[dim]Page {page} not found, showing page {session.current_page}[/dim]")
    else:
        requested = Position(paragraph, sentence, word)
        position = session.jump_to(requested)
        if position != requested:
            console.print(f"[dim]Clamped {requested} to {position}[/dim]")

    if session.page_count:
        console.print(f"[dim]Page {session.current_page} of {document.pages[-1].page_number}[/dim]")
    console.print(f"[cyan]{position}[/cyan]")

    words = session.navigator.words(position.paragraph_index, position.sentence_index)
    if not words:
        console.print("[yellow](empty paragraph)[/yellow]")
        return
    console.print(_highlight(words, position.word_index))


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    type=click.Path(exists=True),
    required=True,
    help="Path to a .txt, .pdf or .epub file",
)
@click.option(
    "--wpm",
    type=click.IntRange(MIN_WPM, MAX_WPM),
    default=None,
    callback=_check_wpm_step,
    help=f"Words per minute ({MIN_WPM}-{MAX_WPM} in steps of {WPM_STEP}, default from settings)",
)
@click.option("--words", "-n", type=int, default=0, help="Stop after this many words (0 = until the end)")
@click.option("--resume/--restart", default=False, help="Continue from saved progress")
def autoscroll(input_path: str, wpm: Optional[int], words: int, resume: bool):
    """Advance through a document word by word at a fixed pace."""
    settings = get_settings()
    segmenter, document = _load(input_path, settings.keep_empty_paragraphs)
    store = ProgressStore(Path(settings.progress_dir))

    session = ReaderSession(settings=settings, segmenter=segmenter, progress_store=store)
    session.load_document(document, document_id=Path(input_path).name, resume=resume)

    if session.navigator.is_at_end():
        console.print("[yellow]Already at the end of the document.[/yellow]")
        return

    console.print(
        f"[dim]Autoscroll at {wpm or settings.autoscroll_wpm} wpm from {session.position}[/dim]"
    )
    console.print(session.navigator.current_word(), end=" ")

    try:
        advanced = asyncio.run(_run_autoscroll(session, wpm, words))
    except KeyboardInterrupt:
        console.print()
        console.print("[yellow]Stopped.[/yellow]")
        return

    console.print()
    console.print(f"[green]Advanced {advanced} words, now at {session.position}[/green]")


async def _run_autoscroll(session: ReaderSession, wpm: Optional[int], limit: int) -> int:
    done = asyncio.Event()
    advanced = 0

    def on_change(change: PositionChange) -> None:
        nonlocal advanced
        advanced += 1
        console.print(session.navigator.current_word(), end=" ")
        if (limit and advanced >= limit) or session.navigator.is_at_end():
            session.set_autoscroll(False)
            done.set()

    unsubscribe = session.subscribe(on_change)
    try:
        session.set_autoscroll(True, words_per_minute=wpm)
        await done.wait()
    finally:
        session.shutdown()
        unsubscribe()
    return advanced


@cli.command()
@click.option(
    "--input", "-i",
    "input_path",
    type=click.Path(exists=True),
    required=True,
    help="Path to a .txt, .pdf or .epub file",
)
@click.option(
    "--backend", "-b",
    type=click.Choice(["http", "local", "mock"]),
    default=None,
    help="Speech backend (default from settings)",
)
@click.option("--voice", "-v", type=str, default=None, help="Kokoro voice name")
@click.option("--sentences", "-n", type=int, default=0, help="Stop after this many sentences (0 = until the end)")
@click.option("--resume/--restart", default=False, help="Continue from saved progress")
def speak(input_path: str, backend: Optional[str], voice: Optional[str], sentences: int, resume: bool):
    """Read a document aloud sentence by sentence."""
    settings = get_settings()
    if backend:
        settings = settings.model_copy(update={"speech_backend": backend})
    segmenter, document = _load(input_path, settings.keep_empty_paragraphs)
    store = ProgressStore(Path(settings.progress_dir))

    session = ReaderSession(
        backend=create_backend(settings),
        player=create_player(settings),
        settings=settings,
        segmenter=segmenter,
        progress_store=store,
    )
    session.load_document(document, document_id=Path(input_path).name, resume=resume)

    if document.is_empty:
        console.print("[yellow]Nothing to read in this document.[/yellow]")
        return

    console.print(f"[dim]Speaking with {voice or settings.voice} ({settings.speech_backend})[/dim]")

    try:
        spoken = asyncio.run(_run_speech(session, voice, sentences))
    except KeyboardInterrupt:
        console.print("[yellow]Stopped.[/yellow]")
        return

    if session.speech.last_error:
        console.print(f"[red]Error:[/red] {session.speech.last_error}")
        sys.exit(1)
    console.print(f"[green]Spoke {spoken} sentences, now at {session.position}[/green]")


async def _run_speech(session: ReaderSession, voice: Optional[str], limit: int) -> int:
    # Each speech move means the previous sentence finished playing
    finished = 0
    console.print(session.navigator.current_sentence())

    def on_change(change: PositionChange) -> None:
        nonlocal finished
        finished += 1
        if limit and finished >= limit:
            session.set_speech(False)
        else:
            console.print(session.navigator.current_sentence())

    unsubscribe = session.subscribe(on_change)
    try:
        session.set_speech(True, voice=voice)
        while session.speech.enabled:
            await asyncio.sleep(0.05)
    finally:
        session.shutdown()
        unsubscribe()

    if limit and finished >= limit:
        return finished
    # Stopped at the end of the document after playing the last sentence
    return finished if session.speech.last_error else finished + 1


@cli.command()
@click.option("--document-id", "-d", type=str, required=True, help="Document id (the file name)")
@click.option("--clear", is_flag=True, default=False, help="Delete the saved progress")
def progress(document_id: str, clear: bool):
    """Show saved reading progress for a document."""
    store = ProgressStore(Path(get_settings().progress_dir))

    if clear:
        store.clear(document_id)
        console.print(f"[green]Cleared progress for {document_id}[/green]")
        return

    try:
        saved = store.load(document_id)
    except BookReaderError as e:
        console.print(f"[red]Error:[/red] {e}")
        sys.exit(1)

    if saved is None:
        console.print(f"[yellow]No saved progress for {document_id}.[/yellow]")
        return

    table = Table(show_header=False)
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    table.add_row("Document", saved.document_id)
    table.add_row("Paragraph", str(saved.position.paragraph_index))
    table.add_row("Sentence", str(saved.position.sentence_index))
    table.add_row("Word", str(saved.position.word_index))
    table.add_row("Saved at", f"{saved.timestamp:.0f}")

    console.print(table)


@cli.command("list-voices")
@click.option(
    "--lang", "-l",
    type=click.Choice(sorted(LANGUAGE_NAMES)),
    default=None,
    help="Filter by language: a=American, b=British, e=Spanish, f=French, j=Japanese, z=Chinese",
)
def list_voices(lang: Optional[str]):
    """List available Kokoro voices."""
    console.print("[bold]Available Kokoro Voices[/bold]")
    console.print()

    lang_codes = [lang] if lang else sorted({code for code, _desc in KOKORO_VOICES.values()})

    for lang_code in lang_codes:
        console.print(f"[cyan]{LANGUAGE_NAMES.get(lang_code, lang_code)}[/cyan]")
        table = Table(show_header=False)
        table.add_column("Voice", style="green", width=15)
        table.add_column("Description")

        for voice_name, desc in sorted(list_voices_by_language(lang_code).items()):
            table.add_row(voice_name, desc)

        console.print(table)
        console.print()

    console.print("[dim]Usage: book-reader speak --input book.txt --voice af_heart[/dim]")


if __name__ == "__main__":
    cli()
