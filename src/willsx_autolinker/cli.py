"""
Command-line interface for the WillsX auto-linker.

Provides commands to annotate content files and to manage the stored
keyword dictionary.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import ConfigurationError, LinkerSettings, LinkTarget
from .engine import AutoLinker
from .keyword_loader import KeywordLoadError, default_keywords, load_keywords, sort_longest_first
from .models import AnnotationResult
from .store import OptionsStore

# Annotated markup may go to stdout, so all reporting goes to stderr
console = Console(stderr=True)

DEFAULT_OPTIONS_FILE = "autolinker-options.json"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(package_name="willsx-autolinker")
def main() -> None:
    """WillsX Auto-Linker - link keywords in content to service pages."""


@main.command()
@click.argument("source", type=click.Path(exists=True, dir_okay=False, allow_dash=True, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write annotated markup here instead of stdout.",
)
@click.option(
    "--options",
    "options_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_OPTIONS_FILE,
    show_default=True,
    help="Options file holding settings and the keyword dictionary.",
)
@click.option(
    "--keywords",
    "-k",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Keyword file (CSV, Excel or JSON) to use instead of the stored dictionary.",
)
@click.option("--max-links", type=click.IntRange(min=0), help="Maximum links per document (0 = unlimited).")
@click.option("--max-per-keyword", type=click.IntRange(min=1), help="Maximum links per keyword.")
@click.option("--new-window", is_flag=True, default=False, help="Open inserted links in a new window.")
@click.option("--case-sensitive", is_flag=True, default=False, help="Match keywords case-sensitively.")
@click.option("--scope", type=str, help="Content type being processed (e.g. post, page).")
@click.option(
    "--longest-first",
    is_flag=True,
    default=False,
    help="Give longer keywords priority over dictionary order.",
)
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose output.")
def annotate(
    source: Path,
    output: Optional[Path],
    options_path: Path,
    keywords: Optional[Path],
    max_links: Optional[int],
    max_per_keyword: Optional[int],
    new_window: bool,
    case_sensitive: bool,
    scope: Optional[str],
    longest_first: bool,
    verbose: bool,
) -> None:
    """
    Insert keyword links into an HTML content file.

    Examples:

        willsx-autolink annotate post.html -o post.linked.html

        willsx-autolink annotate post.html --keywords keywords.csv --max-links 3
    """
    _configure_logging(verbose)

    try:
        config = OptionsStore(options_path).load()
        settings = config.settings.with_overrides(
            max_links_per_post=max_links,
            max_links_per_keyword=max_per_keyword,
            link_target=LinkTarget.NEW_WINDOW if new_window else None,
            case_sensitive=True if case_sensitive else None,
        )

        if keywords is not None:
            dictionary = load_keywords(keywords, case_sensitive=settings.case_sensitive)
        else:
            dictionary = list(config.dictionary)

        if not dictionary:
            console.print("[yellow]Warning:[/yellow] Keyword dictionary is empty; content is unchanged")
        if longest_first:
            dictionary = sort_longest_first(dictionary)

        markup = click.get_text_stream("stdin").read() if str(source) == "-" else source.read_text(encoding="utf-8")

        result = AutoLinker(settings, dictionary).annotate(markup, scope=scope)

        if output is not None:
            output.write_text(result.markup, encoding="utf-8")
        else:
            click.echo(result.markup, nl=False)

        _display_summary(result, output, verbose)

    except KeywordLoadError as e:
        console.print(f"[red]Keyword loading error:[/red] {e}")
        sys.exit(1)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        sys.exit(1)
    except ValueError as e:
        console.print(f"[red]Invalid settings:[/red] {e}")
        sys.exit(1)


@main.command(name="keywords")
@click.option(
    "--options",
    "options_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_OPTIONS_FILE,
    show_default=True,
    help="Options file holding settings and the keyword dictionary.",
)
def list_keywords(options_path: Path) -> None:
    """Show the stored keyword dictionary and settings."""
    config = OptionsStore(options_path).load()

    settings_table = Table(title="Auto-Linker Settings", show_header=True)
    settings_table.add_column("Setting", style="cyan")
    settings_table.add_column("Value", style="green")
    settings = config.settings
    settings_table.add_row("Enabled", "Yes" if settings.enabled else "No")
    settings_table.add_row("Max links per post", str(settings.max_links_per_post or "unlimited"))
    settings_table.add_row("Max links per keyword", str(settings.max_links_per_keyword))
    settings_table.add_row("Link target", settings.link_target.value)
    settings_table.add_row("Case sensitive", "Yes" if settings.case_sensitive else "No")
    settings_table.add_row("Excluded tags", ", ".join(sorted(settings.excluded_tag_names)))
    settings_table.add_row("Content scopes", ", ".join(sorted(settings.eligible_content_scopes)))
    console.print(settings_table)

    if config.is_empty:
        console.print("[yellow]No keywords stored.[/yellow]")
        return

    kw_table = Table(title="Keywords", show_header=True)
    kw_table.add_column("#", style="dim")
    kw_table.add_column("Keyword", style="green")
    kw_table.add_column("URL", style="cyan")
    for i, entry in enumerate(config.dictionary, start=1):
        kw_table.add_row(str(i), entry.keyword, entry.url)
    console.print(kw_table)


@main.command(name="import-keywords")
@click.argument("keyword_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--options",
    "options_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_OPTIONS_FILE,
    show_default=True,
    help="Options file to save the keywords into.",
)
@click.option("--sheet", type=str, help="Sheet name for Excel files.")
def import_keywords(keyword_file: Path, options_path: Path, sheet: Optional[str]) -> None:
    """Load keywords from a CSV, Excel or JSON file into the options file."""
    store = OptionsStore(options_path)
    try:
        entries = load_keywords(keyword_file, sheet_name=sheet)
    except KeywordLoadError as e:
        console.print(f"[red]Keyword loading error:[/red] {e}")
        sys.exit(1)

    saved = store.save_keywords(entries)
    dropped = len(entries) - len(saved)
    console.print(f"[bold green]Saved {len(saved)} keywords[/bold green] to {options_path}")
    if dropped:
        console.print(f"[yellow]Dropped {dropped} keywords with invalid URLs[/yellow]")


@main.command()
@click.option(
    "--options",
    "options_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_OPTIONS_FILE,
    show_default=True,
    help="Options file to create.",
)
@click.option("--home-url", required=True, help="Site home URL used to build the default keyword links.")
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing options file.")
def init(options_path: Path, home_url: str, force: bool) -> None:
    """Create an options file with default settings and keywords."""
    if options_path.exists() and not force:
        console.print(f"[red]Error:[/red] {options_path} already exists (use --force to overwrite)")
        sys.exit(1)

    store = OptionsStore(options_path)
    store.update_settings(LinkerSettings())
    saved = store.save_keywords(default_keywords(home_url))
    console.print(f"[bold green]Created[/bold green] {options_path} with {len(saved)} default keywords")


def _display_summary(result: AnnotationResult, output: Optional[Path], verbose: bool) -> None:
    """Display annotation summary."""
    if result.was_skipped:
        console.print(f"[yellow]Auto-linking skipped:[/yellow] {result.skipped_reason.value}")
        return

    if not result.links:
        console.print("[dim]No keyword matches; content is unchanged[/dim]")
        return

    table = Table(title="Inserted Links", show_header=True)
    table.add_column("Keyword", style="green")
    table.add_column("Text", style="yellow")
    table.add_column("URL", style="cyan")
    for link in result.links:
        table.add_row(link.keyword, link.text, link.url)
    console.print(table)

    if result.budget_exhausted:
        console.print("[dim]Link budget reached; remaining content was not scanned[/dim]")
    if verbose and output is not None:
        console.print(f"\n[dim]Output file: {output}[/dim]")


def run_cli() -> None:
    """Entry point for the CLI."""
    main()


if __name__ == "__main__":
    run_cli()
