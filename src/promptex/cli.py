"""Command-line shell over the prompt library.

Usage:
    promptex list [--search TEXT] [--category NAME] [--favorites]
    promptex add "Title" --body "..." --category Coding --tag review
    promptex capture "free text" [--idea]
    promptex fill <id> name=value ...
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from promptex.config import load_config
from promptex.manager import PromptManager
from promptex.models import Prompt, PromptCategory
from promptex.placeholders import extract_placeholders
from promptex.storage import PromptStore
from promptex.storage.codec import encode

app = typer.Typer(
    name="promptex",
    help="Personal prompt library stored as markdown files.",
    no_args_is_help=True,
    add_completion=False,
)

_state: dict = {"config_path": None}


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


@app.callback()
def main_callback(
    config: Annotated[Optional[Path], typer.Option(
        "--config", "-c",
        help="Path to promptex.toml",
    )] = None,
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
    )] = False,
):
    """Manage prompts and ideas."""
    _state["config_path"] = config
    cfg = load_config(config)
    _setup_logging("DEBUG" if verbose else cfg.log_level)


def _manager() -> PromptManager:
    config = load_config(_state["config_path"])
    return PromptManager(PromptStore.from_config(config))


def _resolve(manager: PromptManager, id_prefix: str) -> Prompt:
    matches = manager.find(id_prefix)
    if not matches:
        typer.echo(f"No prompt with id {id_prefix!r}", err=True)
        raise typer.Exit(1)
    if len(matches) > 1:
        typer.echo(f"Id prefix {id_prefix!r} is ambiguous ({len(matches)} matches)", err=True)
        raise typer.Exit(1)
    return matches[0]


def _category(name: Optional[str]) -> Optional[PromptCategory]:
    if name is None:
        return None
    category = PromptCategory.lookup(name)
    if category is None:
        choices = ", ".join(c.value for c in PromptCategory)
        typer.echo(f"Unknown category {name!r} (choose from: {choices})", err=True)
        raise typer.Exit(1)
    return category


def _line(prompt: Prompt) -> str:
    star = "★" if prompt.is_favorite else " "
    tags = " ".join(f"#{t}" for t in prompt.tags)
    return f"{prompt.id[:8]} {star} [{prompt.category.value}] {prompt.title}  {tags}".rstrip()


def _report(manager: PromptManager) -> None:
    report = manager.last_save_report
    if report is not None and not report.ok:
        for path, error in report.failures:
            typer.echo(f"warning: could not write {path}: {error}", err=True)


@app.command("list")
def list_cmd(
    search: Annotated[Optional[str], typer.Option("--search", "-s", help="Text to search for")] = None,
    category: Annotated[Optional[str], typer.Option("--category", help="Only this category")] = None,
    favorites: Annotated[bool, typer.Option("--favorites", "-f", help="Only favorites")] = False,
):
    """List prompts, most recently modified first."""
    manager = _manager()
    manager.set_search_text(search or "")
    manager.set_category_filter(_category(category))
    manager.set_favorites_only(favorites)
    for prompt in manager.filtered():
        typer.echo(_line(prompt))


@app.command()
def show(id: Annotated[str, typer.Argument(help="Prompt id or unique prefix")]):
    """Print the full markdown document of a prompt."""
    manager = _manager()
    typer.echo(encode(_resolve(manager, id)), nl=False)


@app.command()
def add(
    title: Annotated[str, typer.Argument(help="Prompt title")],
    body: Annotated[str, typer.Option("--body", "-b", help="Prompt text")] = "",
    category: Annotated[str, typer.Option("--category", help="Category name")] = "General",
    tag: Annotated[Optional[list[str]], typer.Option("--tag", "-t", help="Tag (repeatable)")] = None,
):
    """Add a prompt."""
    manager = _manager()
    cat = _category(category)
    try:
        prompt = manager.add(title, body, cat, tag or [])
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    _report(manager)
    typer.echo(_line(prompt))


@app.command()
def capture(
    text: Annotated[str, typer.Argument(help="Text to save")],
    idea: Annotated[bool, typer.Option("--idea", help="Save as a Random Idea")] = False,
):
    """Quick-capture free text; the first line becomes the title."""
    manager = _manager()
    prompt = manager.quick_capture(text, as_idea=idea)
    if prompt is None:
        typer.echo("Nothing to capture", err=True)
        raise typer.Exit(1)
    _report(manager)
    typer.echo(_line(prompt))


@app.command()
def fill(
    id: Annotated[str, typer.Argument(help="Prompt id or unique prefix")],
    values: Annotated[Optional[list[str]], typer.Argument(help="name=value pairs")] = None,
):
    """Print a prompt body with its {{placeholders}} filled in."""
    manager = _manager()
    prompt = _resolve(manager, id)
    mapping: dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition("=")
        if not sep:
            typer.echo(f"Expected name=value, got {item!r}", err=True)
            raise typer.Exit(1)
        mapping[name.strip()] = value
    missing = [n for n in extract_placeholders(prompt.body) if n not in mapping]
    if missing:
        typer.echo(f"warning: no value for {', '.join(missing)}", err=True)
    typer.echo(manager.render(prompt.id, mapping))


@app.command()
def favorite(id: Annotated[str, typer.Argument(help="Prompt id or unique prefix")]):
    """Toggle the favorite flag."""
    manager = _manager()
    prompt = manager.toggle_favorite(_resolve(manager, id).id)
    _report(manager)
    typer.echo(_line(prompt))


@app.command()
def delete(id: Annotated[str, typer.Argument(help="Prompt id or unique prefix")]):
    """Delete a prompt and its files."""
    manager = _manager()
    prompt = _resolve(manager, id)
    manager.delete(prompt.id)
    _report(manager)
    typer.echo(f"Deleted {prompt.title}")


@app.command()
def convert(id: Annotated[str, typer.Argument(help="Idea id or unique prefix")]):
    """Turn an idea into a prompt and save it."""
    manager = _manager()
    prompt = manager.convert_and_add(_resolve(manager, id))
    _report(manager)
    typer.echo(_line(prompt))


@app.command("rebuild-index")
def rebuild_index():
    """Drop the metadata index and rebuild it from the documents."""
    config = load_config(_state["config_path"])
    store = PromptStore.from_config(config)
    store.index.clear()
    prompts = store.scan()
    try:
        store.index.save(prompts)
    except OSError as e:
        typer.echo(f"Error: could not write {store.index.path}: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Indexed {len(prompts)} prompts from {store.documents_dir}")


def main() -> None:
    app()
