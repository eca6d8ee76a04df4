"""Command-line interface for graphql-s2s."""

import json
import logging
from dataclasses import asdict
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from . import __version__, log
from .core.compiler import SchemaCompiler
from .core.errors import QueryError, SchemaError
from .core.hooks import AddHeaderHook, HookRunner
from .core.query import build_query_text, parse_query

SCHEMA_SUFFIXES = (".graphql", ".graphqls")


def read_schema(path: Path) -> str:
    """Read a schema file, or join every schema file found under a directory."""
    if path.is_file():
        return path.read_text()
    files = sorted(p for p in path.rglob("*") if p.suffix in SCHEMA_SUFFIXES)
    if not files:
        raise click.ClickException(f"No {' or '.join(SCHEMA_SUFFIXES)} files found in {path}")
    return "\n".join(p.read_text() for p in files)


schema_option = click.option(
    "--schema",
    "-s",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Path to an extended schema file or a directory of .graphql/.graphqls files.",
)


@click.group()
@click.option(
    "-l",
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="WARNING",
    help="Log level",
    show_default=True,
)
@click.version_option(__version__)
def main(log_level: str):
    """Extended GraphQL schema compiler.

    Compile schemas using inheritance, generics and metadata down to
    standard SDL, and rework queries against them.
    """
    if not any(isinstance(h, RichHandler) for h in log.handlers):
        handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        log.addHandler(handler)
    log.setLevel(log_level.upper())


@main.command(name="compile")
@schema_option
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file for the compiled schema (default: stdout).",
)
@click.option("--header", help="Comment added at the top of the compiled schema.")
@click.option(
    "--template-dir",
    type=click.Path(exists=True, file_okay=False),
    help="Directory with a schema.graphql.j2 overriding the built-in template.",
)
def compile_command(schema: Path, output: Path | None, header: str | None, template_dir: str | None):
    """Compile an extended schema to standard GraphQL SDL.

    Examples:

        graphql-s2s compile --schema ./schema.graphql

        graphql-s2s compile -s ./schema -o ./compiled.graphql --header "Generated"
    """
    hooks = HookRunner()
    if header:
        hooks.add_post_hook(AddHeaderHook(header if header.startswith("#") else f"# {header}"))
    compiler = SchemaCompiler(hooks=hooks, template_dir=template_dir)

    try:
        sdl = compiler.compile_text(read_schema(schema))
    except SchemaError as e:
        raise click.ClickException(str(e)) from e

    if output is None:
        click.echo(sdl, nl=False)
        return
    output.write_text(sdl)
    log.info(f"Compiled schema written to {output}")


@main.command()
@schema_option
def metadata(schema: Path):
    """Print the metadata annotations of a schema as JSON."""
    try:
        records = SchemaCompiler.extract_metadata(read_schema(schema))
    except SchemaError as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps([asdict(record) for record in records], indent=2))


@main.command()
@schema_option
@click.option(
    "--query",
    "-q",
    "query_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File containing the GraphQL query.",
)
@click.option("--operation", help="Name of the operation to use (default: the first one).")
@click.option("--defrag", is_flag=True, help="Inline fragment spreads.")
@click.option(
    "--exclude-metadata",
    multiple=True,
    help="Remove fields whose schema metadata has this name (repeatable).",
)
@click.option(
    "--paths",
    "paths_metadata",
    help="Print the paths of fields whose schema metadata has this name instead of the query.",
)
def query(
    schema: Path,
    query_file: Path,
    operation: str | None,
    defrag: bool,
    exclude_metadata: tuple[str, ...],
    paths_metadata: str | None,
):
    """Rework a query against an extended schema.

    Examples:

        graphql-s2s query -s ./schema.graphql -q ./query.graphql --defrag --exclude-metadata auth

        graphql-s2s query -s ./schema.graphql -q ./query.graphql --paths auth
    """
    try:
        schema_ast = SchemaCompiler().compile_ast(read_schema(schema))
        op = parse_query(query_file.read_text(), operation, schema_ast, defrag=defrag)
    except (SchemaError, QueryError) as e:
        raise click.ClickException(str(e)) from e

    for unknown in op.property_paths(lambda node: node.error is not None):
        log.warning(f"Field '{unknown.property}' is not defined in the schema")

    if exclude_metadata:
        excluded = set(exclude_metadata)
        op = op.filter(lambda node: node.metadata is None or node.metadata.name not in excluded)

    if paths_metadata:
        matches = op.property_paths(
            lambda node: node.metadata is not None and node.metadata.name == paths_metadata
        )
        for path in matches:
            click.echo(f"{path.property}\t{path.type}")
        return
    click.echo(build_query_text(op))


if __name__ == "__main__":
    main()
