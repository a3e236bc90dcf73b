"""
Main CLI application for the web reader.

Provides the command-line interface for:
- Extracting the article of a local file or a URL
- Viewing and creating configuration files
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from web_reader import __version__
from web_reader.article import Article
from web_reader.config import Settings, load_config
from web_reader.core.exceptions import ConfigurationError
from web_reader.reader import Reader, ReaderOptions
from web_reader.utils.logging import get_logger, setup_logging

# Initialize Typer app
app = typer.Typer(
    name="web-reader",
    help="Web Reader - Extract the readable article of web pages",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
logger = get_logger(__name__)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"[bold blue]Web Reader[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Enable verbose logging",
    ),
) -> None:
    """
    Web Reader - Reader mode for any HTML page.

    Use 'web-reader --help' for command list.
    """
    # Handlers are installed once a command has loaded its configuration
    ctx.obj = {"verbose": verbose}


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def _load_settings(ctx: typer.Context, config_file: Optional[Path]) -> Settings:
    """Load the configuration and set up logging from it."""
    log_level = "DEBUG" if (ctx.obj or {}).get("verbose") else None

    try:
        settings = load_config(config_file)
    except ConfigurationError as e:
        setup_logging(level=log_level or "WARNING")
        console.print(f"[red]Configuration error:[/red] {e}")
        raise typer.Exit(1)

    setup_logging(settings.logging, level=log_level)
    return settings


@app.command()
def parse(
    ctx: typer.Context,
    source: str = typer.Argument(
        ...,
        help="Path of an HTML file or URL of a page",
    ),
    url: Optional[str] = typer.Option(
        None,
        "--url",
        "-u",
        help="Address of a local file, used to resolve its links",
    ),
    as_json: bool = typer.Option(
        False,
        "--json",
        help="Print the article as JSON",
    ),
    text: bool = typer.Option(
        False,
        "--text",
        help="Print only the plain text",
    ),
    max_elems: Optional[int] = typer.Option(
        None,
        "--max-elems",
        help="Abort on documents with more elements (0 = no limit)",
        min=0,
    ),
    threshold: Optional[int] = typer.Option(
        None,
        "--threshold",
        "-t",
        help="Minimum characters of an accepted article",
        min=0,
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
) -> None:
    """
    Extract the readable article of a page.

    Examples:
        web-reader parse https://example.com/2021/05/story
        web-reader parse saved.html --url https://example.com/story --json
    """
    settings = _load_settings(ctx, config_file)

    overrides = {}
    if max_elems is not None:
        overrides["max_elems_to_parse"] = max_elems
    if threshold is not None:
        overrides["char_threshold"] = threshold
    reader = Reader(ReaderOptions.from_settings(settings, **overrides), settings=settings)

    if _is_url(source):
        with console.status(f"[cyan]Fetching {source}..."):
            article = asyncio.run(reader.fetch_and_parse(source))
    else:
        path = Path(source)
        if not path.is_file():
            console.print(f"[red]File not found:[/red] {source}")
            raise typer.Exit(1)
        html = path.read_text(encoding="utf-8", errors="replace")
        article = reader.parse(html, url or path.resolve().as_uri())

    if as_json:
        console.print_json(json.dumps(article.to_dict(), ensure_ascii=False))
    elif text:
        console.print(article.text_content, markup=False, highlight=False, soft_wrap=True)
    else:
        _show_article(article)

    if not article.completed:
        for error in article.errors:
            console.print(f"[red]Error:[/red] {error}", markup=True, highlight=False)
        raise typer.Exit(1)


def _show_article(article: Article) -> None:
    """Print the metadata table and the text of an article."""
    if not article.is_readable:
        console.print("[yellow]No readable content found[/yellow]")

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value")

    table.add_row("Title", article.title)
    table.add_row("Byline", article.byline)
    table.add_row("Site", article.site_name)
    table.add_row("Language", article.language)
    table.add_row(
        "Published",
        article.publication_date.date().isoformat() if article.publication_date else "",
    )
    table.add_row("Length", f"{article.length:,} characters")
    table.add_row("Time to read", f"{int(article.time_to_read.total_seconds() // 60)} min")
    table.add_row("Readable", "[green]yes[/green]" if article.is_readable else "[red]no[/red]")

    console.print(table)

    if article.text_content:
        console.print(Panel(
            article.text_content,
            title=article.title or None,
            border_style="blue",
        ))


@app.command()
def config(
    ctx: typer.Context,
    show: bool = typer.Option(
        False,
        "--show",
        "-s",
        help="Show current configuration",
    ),
    init: bool = typer.Option(
        False,
        "--init",
        "-i",
        help="Create default configuration file",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path for config file",
    ),
    config_file: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
) -> None:
    """
    Configuration management.

    View or initialize configuration files.

    Examples:
        web-reader config --show
        web-reader config --init --output ./web_reader.yaml
    """
    if init:
        _init_config(output)
    elif show:
        _show_config(ctx, config_file)
    else:
        console.print(
            "Use --show to view config or --init to create default config")


def _show_config(ctx: typer.Context, config_file: Optional[Path]) -> None:
    """Show current configuration."""
    settings = _load_settings(ctx, config_file)
    config_dict = settings.model_dump(mode="json")

    console.print(Panel(
        "[bold]Current Configuration[/bold]",
        border_style="blue",
    ))

    for section, values in config_dict.items():
        console.print(f"\n[bold cyan]{section}:[/bold cyan]")
        if isinstance(values, dict):
            for key, value in values.items():
                console.print(f"  {key}: [dim]{value}[/dim]", highlight=False)
        else:
            console.print(f"  {values}")


def _init_config(output: Optional[Path]) -> None:
    """Create default configuration file."""
    import yaml

    config_dict = Settings().model_dump(mode="json")
    output_path = output or Path("web_reader.yaml")

    if output_path.exists():
        if not typer.confirm(f"File {output_path} exists. Overwrite?"):
            raise typer.Exit(0)

    with open(output_path, "w") as f:
        yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

    console.print(f"[green]✓[/green] Configuration saved to: {output_path}")


if __name__ == "__main__":
    app()
