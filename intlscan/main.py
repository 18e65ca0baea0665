"""intlscan CLI - static next-intl translation key discovery."""
import json
from dataclasses import asdict
from pathlib import Path
from typing import Iterator, List

import typer
from rich.markup import escape
from rich.table import Table

from .analyzer.module_resolver import ModuleResolver
from .analyzer.usage_collector import discover_accessors
from .config import __version__, get_config
from .frameworks.next_intl import NextIntlFramework
from .utils.logger import configure_logging, sanitize_for_terminal
from .utils.safe_console import SafeConsole

app = typer.Typer(
    name="intlscan",
    help="Static discovery of next-intl namespaces and translation keys",
    add_completion=False
)
console = SafeConsole(highlight=False)


def iter_source_files(paths: List[Path]) -> Iterator[Path]:
    """Expand files and directories into analyzable source files, sorted per directory."""
    config = get_config()
    extensions = set(config.source_extensions)
    excluded_dirs = config.excluded_dirs

    for path in paths:
        if path.is_file():
            yield path
            continue

        found = []
        for ext in sorted(extensions):
            for file_path in path.rglob(f"*{ext}"):
                relative_parts = file_path.relative_to(path).parts
                if not any(part in excluded_dirs for part in relative_parts):
                    found.append(file_path)
        yield from sorted(found)


def _check_paths(paths: List[Path]) -> List[Path]:
    resolved = []
    for path in paths:
        if not path.exists():
            console.print(f"[bold red]✗ Error:[/bold red] Path does not exist: {escape(str(path))}")
            raise typer.Exit(1)
        resolved.append(path.resolve())
    return resolved


def _read_source(file_path: Path):
    try:
        return file_path.read_text(encoding='utf-8')
    except (UnicodeDecodeError, OSError):
        console.print(f"[yellow]Skipping unreadable file:[/yellow] {escape(str(file_path))}")
        return None


def _line_of(text: str, offset: int) -> int:
    return text.count('\n', 0, offset) + 1


def _display_path(file_path: Path, root: Path) -> str:
    try:
        return str(file_path.relative_to(root))
    except ValueError:
        return str(file_path)


def _framework(root: Path, delimiter: str) -> NextIntlFramework:
    return NextIntlFramework(resolver=ModuleResolver(root, get_config().aliases), delimiter=delimiter)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log unresolved imports and parse failures"),
):
    """intlscan - find next-intl translation keys without running the code."""
    configure_logging(verbose)


@app.command()
def keys(
    paths: List[Path] = typer.Argument(..., help="Files or directories to scan"),
    delimiter: str = typer.Option(None, "--delimiter", "-d", help="Namespace/key delimiter (default: INTLSCAN_DELIMITER or '.')"),
    root: Path = typer.Option(None, "--root", "-r", help="Project root for '@/' imports (default: INTLSCAN_PROJECT_ROOT or cwd)"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """List every translation key looked up in the given sources."""
    config = get_config()
    paths = _check_paths(paths)
    root = (root or config.project_root).resolve()
    framework = _framework(root, delimiter or config.delimiter)

    records = []
    for file_path in iter_source_files(paths):
        text = _read_source(file_path)
        if text is None:
            continue
        for usage in framework.analyze_usages(text, file_path) or []:
            record = asdict(usage)
            record['file'] = _display_path(file_path, root)
            record['line'] = _line_of(text, usage.start)
            records.append(record)

    if as_json:
        typer.echo(json.dumps(records, indent=2))
        return

    if not records:
        console.print("[bold yellow]⚠ No translation keys found.[/bold yellow]")
        return

    table = Table(title="Translation Keys")
    table.add_column("File", style="cyan", no_wrap=False)
    table.add_column("Line", justify="right")
    table.add_column("Key", style="green")
    table.add_column("Via", style="magenta")
    table.add_column("Literal")

    for record in records:
        table.add_row(
            escape(record['file']),
            str(record['line']),
            escape(record['key']),
            escape(record['variable_name']),
            sanitize_for_terminal("✓" if record['quoted'] else "✗"),
        )

    console.print(table)
    unique = len({record['key'] for record in records})
    console.print(f"\n[bold yellow]Summary:[/bold yellow] {len(records)} usages, {unique} distinct keys")


@app.command()
def namespaces(
    paths: List[Path] = typer.Argument(..., help="Files or directories to scan"),
    root: Path = typer.Option(None, "--root", "-r", help="Project root for '@/' imports (default: INTLSCAN_PROJECT_ROOT or cwd)"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """List every useTranslations/getTranslations binding and its namespace."""
    config = get_config()
    paths = _check_paths(paths)
    root = (root or config.project_root).resolve()
    resolver = ModuleResolver(root, config.aliases)

    records = []
    for file_path in iter_source_files(paths):
        text = _read_source(file_path)
        if text is None:
            continue
        importer = resolver.create_importer(file_path, cached=True)
        for binding in discover_accessors(text, file_path.name, importer):
            record = asdict(binding)
            record['file'] = _display_path(file_path, root)
            records.append(record)

    if as_json:
        typer.echo(json.dumps(records, indent=2))
        return

    if not records:
        console.print("[bold yellow]⚠ No translation accessors found.[/bold yellow]")
        return

    table = Table(title="Translation Namespaces")
    table.add_column("File", style="cyan", no_wrap=False)
    table.add_column("Line", justify="right")
    table.add_column("Variable", style="magenta")
    table.add_column("Namespace", style="green")

    dynamic_count = 0
    for record in records:
        if record['is_dynamic']:
            dynamic_count += 1
            namespace = f"[yellow]{escape(record['dynamic_placeholder'] or '')}[/yellow]"
        else:
            namespace = escape(record['namespace'])
        table.add_row(escape(record['file']), str(record['location']['line']),
                      escape(record['variable_name']), namespace)

    console.print(table)
    console.print(f"\n[bold yellow]Summary:[/bold yellow] {len(records)} bindings, {dynamic_count} unresolved")


@app.command()
def scopes(
    paths: List[Path] = typer.Argument(..., help="Files or directories to scan"),
    root: Path = typer.Option(None, "--root", "-r", help="Project root for '@/' imports (default: INTLSCAN_PROJECT_ROOT or cwd)"),
    as_json: bool = typer.Option(False, "--json", help="Print results as JSON"),
):
    """List the text ranges that belong to each namespace."""
    config = get_config()
    paths = _check_paths(paths)
    root = (root or config.project_root).resolve()
    framework = _framework(root, config.delimiter)

    records = []
    for file_path in iter_source_files(paths):
        text = _read_source(file_path)
        if text is None:
            continue
        for scope_range in framework.get_scope_ranges(text, file_path) or []:
            record = asdict(scope_range)
            record['file'] = _display_path(file_path, root)
            records.append(record)

    if as_json:
        typer.echo(json.dumps(records, indent=2))
        return

    if not records:
        console.print("[bold yellow]⚠ No namespace scopes found.[/bold yellow]")
        return

    table = Table(title="Namespace Scopes")
    table.add_column("File", style="cyan", no_wrap=False)
    table.add_column("Range", justify="right")
    table.add_column("Namespace", style="green")
    for record in records:
        table.add_row(escape(record['file']), f"{record['start']}-{record['end']}", escape(record['namespace']))
    console.print(table)


@app.command()
def version():
    """Print the intlscan version."""
    typer.echo(__version__)


if __name__ == "__main__":
    app()
