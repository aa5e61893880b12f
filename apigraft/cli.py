"""Command-line interface for apigraft."""

from pathlib import Path

import click

from .core.compiler import CompileResult, compile_source
from .core.config import ApigraftConfig, load_config
from .core.emitter import SchemaEmitter
from .core.errors import CompileError
from .core.hooks import FilterSchemasHook, HookRunner
from .core.ir import SchemaCategory
from .core.pagination import UNSET


def _selected_sources(config: ApigraftConfig, source: str | None) -> list[str]:
    if source:
        config.source(source)
        return [source]
    return [s.name for s in config.sources]


def _echo_warnings(result: CompileResult):
    for warning in result.warnings:
        click.secho(f"  warning: {warning}", fg="yellow", err=True)


@click.group()
@click.version_option()
def main():
    """Compile OpenAPI and GraphQL sources into validator schemas.

    Sources are listed in a JSON or YAML config file.
    """
    pass


@main.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the apigraft config file (JSON or YAML).",
)
@click.option(
    "--source",
    "-s",
    default=None,
    help="Only compile the source with this name.",
)
@click.option(
    "--template-dir",
    "-t",
    default=None,
    type=click.Path(file_okay=False),
    help="Directory with templates overriding the built-in ones.",
)
@click.option(
    "--exclude-category",
    "exclude_categories",
    multiple=True,
    type=click.Choice([c.value for c in SchemaCategory]),
    help="Leave schemas of this category out of the modules (repeatable).",
)
@click.option(
    "--exclude",
    "exclude",
    multiple=True,
    help="Leave schemas whose name matches this glob out of the modules (repeatable).",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
def compile(
    config_path: str,
    source: str | None,
    template_dir: str | None,
    exclude_categories: tuple[str, ...],
    exclude: tuple[str, ...],
    verbose: bool,
):
    """Compile sources and write <output>/<source>/schema.ts.

    Examples:

        apigraft compile --config apigraft.yaml

        apigraft compile -c apigraft.yaml -s petstore -v

        apigraft compile -c apigraft.yaml --exclude-category params --exclude "*Response"
    """
    try:
        config = load_config(config_path)
        output_root = config.resolve(config.output)
        hooks = None
        if exclude_categories or exclude:
            hooks = HookRunner([
                FilterSchemasHook(
                    exclude_categories=[SchemaCategory(c) for c in exclude_categories],
                    exclude=list(exclude),
                )
            ])
        emitter = SchemaEmitter(template_dir=template_dir, hooks=hooks)

        for name in _selected_sources(config, source):
            click.echo(f"Compiling {name}...")
            result = compile_source(config, name)

            if verbose:
                click.echo(f"  Schemas: {len(result.schemas)}")
                click.echo(f"  Paginated queries: {len(result.paginated)}")
                click.echo(f"  Collections: {len(result.collections)}")
                for cycle in result.cycles:
                    click.echo(f"  Cycle: {' -> '.join(cycle)}")

            _echo_warnings(result)
            path = emitter.write_module(result.schemas, str(Path(output_root) / name))
            click.echo(f"  Wrote {path}")

        click.echo("Done!")
    except CompileError as e:
        raise click.ClickException(e.message) from e


@main.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to the apigraft config file (JSON or YAML).",
)
@click.option(
    "--source",
    "-s",
    default=None,
    help="Only inspect the source with this name.",
)
def inspect(config_path: str, source: str | None):
    """Print pagination and collection analysis without writing files.

    Examples:

        apigraft inspect --config apigraft.yaml -s shop
    """
    try:
        config = load_config(config_path)
        for name in _selected_sources(config, source):
            result = compile_source(config, name)
            click.secho(name, bold=True)

            click.echo("  Pagination:")
            if not result.paginated:
                click.echo("    (none)")
            for operation, info in result.paginated.items():
                initial = info.initial_page_param()
                initial_text = "unset" if initial is UNSET else repr(initial)
                click.echo(
                    f"    {operation}: {info.param_style}/{info.response_style} "
                    f"page={info.page_param_name} initial={initial_text} "
                    f"next={info.next_page_accessor().expression()}"
                )

            click.echo("  Collections:")
            if not result.collections:
                click.echo("    (none)")
            for entity in result.collections:
                mutations = ", ".join(f"{m.type}:{m.operation_name}" for m in entity.mutations) or "-"
                click.echo(
                    f"    {entity.name} key={entity.key_field}:{entity.key_field_type} "
                    f"list={entity.list_query.operation_name} sync={entity.sync_mode} "
                    f"predicates={entity.predicate_mapping} mutations=[{mutations}]"
                )

            _echo_warnings(result)
    except CompileError as e:
        raise click.ClickException(e.message) from e


if __name__ == "__main__":
    main()
