"""
Warm Path CLI

Command-line interface for finding warm introduction paths and scoring
relationship strength over a graph export.
"""

import asyncio
import logging
import sys
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

# Initialize console for rich output
console = Console()


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging with rich handler."""
    handlers = [RichHandler(console=console, show_path=False)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(message)s",
        handlers=handlers,
    )


def _load_provider(input_dir: str):
    """Load a graph export, exiting with an error message on failure."""
    from warmpath.pipeline.ingest import load_graph_export

    try:
        export = load_graph_export(input_dir)
    except Exception as e:
        console.print(f"[red]Error loading data: {e}[/red]")
        sys.exit(1)

    return export, export.to_provider()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool) -> None:
    """Warm Path - Find introduction paths through your network."""
    from warmpath.utils.config import load_config

    ctx.ensure_object(dict)

    try:
        ctx.obj["config"] = load_config()
    except Exception as e:
        console.print(f"[red]Invalid configuration: {e}[/red]")
        sys.exit(1)

    config = ctx.obj["config"]

    if verbose:
        ctx.obj["log_level"] = "DEBUG"
    elif quiet:
        ctx.obj["log_level"] = "WARNING"
    else:
        ctx.obj["log_level"] = config.logging.level

    setup_logging(ctx.obj["log_level"], config.logging.file)


@cli.command()
@click.option(
    "--input", "-i",
    "input_dir",
    required=True,
    type=click.Path(exists=True, file_okay=False, dir_okay=True),
    help="Directory containing the graph export",
)
@click.option("--source", "-s", required=True, help="Person id the path starts at")
@click.option("--target", "-t", required=True, help="Person id to reach")
@click.option("--max-hops", type=int, default=None, help="Maximum hops per path")
@click.option("--budget", type=int, default=None, help="Exploration budget (node expansions)")
@click.option("--max-paths", type=int, default=None, help="Maximum paths to return")
@click.option(
    "--output", "-o",
    "output_dir",
    default=None,
    type=click.Path(file_okay=False, dir_okay=True),
    help="Output directory for reports",
)
@click.option(
    "--format", "-f",
    "formats",
    multiple=True,
    type=click.Choice(["markdown", "json"]),
    default=None,
    help="Output formats to generate",
)
@click.pass_context
def paths(
    ctx: click.Context,
    input_dir: str,
    source: str,
    target: str,
    max_hops: Optional[int],
    budget: Optional[int],
    max_paths: Optional[int],
    output_dir: Optional[str],
    formats: tuple[str, ...],
) -> None:
    """Find warm introduction paths from SOURCE to TARGET."""
    from warmpath.graph.service import GraphService
    from warmpath.models.entities import PathfindingRequest
    from warmpath.models.warm_paths import WarmPathFinder
    from warmpath.pipeline.outputs import OutputGenerator

    config = ctx.obj["config"]
    settings = config.pathfinding

    console.print(f"\n[bold blue]Finding Warm Paths: {source} → {target}[/bold blue]")
    console.print("=" * 50)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Loading graph export...", total=None)
        export, provider = _load_provider(input_dir)
        progress.update(task, completed=True)
        console.print(
            f"  [green]✓[/green] Loaded {len(export.people)} people, {len(export.edges)} edges"
        )

        task = progress.add_task("Searching for paths...", total=None)
        graph = GraphService(
            provider,
            strong_edge_threshold=config.graph.strong_edge_threshold,
            weights=config.scoring.weights,
        )
        finder = WarmPathFinder(
            graph,
            max_hops=settings.max_hops,
            exploration_budget=settings.exploration_budget,
            hop_penalty=settings.hop_penalty,
            default_edge_score=settings.default_edge_score,
        )

        async def run_search():
            request = PathfindingRequest(
                source_id=source,
                target_id=target,
                max_hops=max_hops or settings.max_hops,
                exploration_budget=budget or settings.exploration_budget,
                max_paths=max_paths or settings.max_paths,
                min_strength=settings.min_strength,
            )
            result = await finder.find_warm_paths(request)
            explanations = [await graph.explain_path(path) for path in result.paths]
            people = await graph.get_people(
                [source, target] + [n for path in result.paths for n in path.node_ids]
            )
            return result, explanations, people

        try:
            result, explanations, people = asyncio.run(run_search())
            progress.update(task, completed=True)
        except Exception as e:
            progress.update(task, completed=True)
            console.print(f"[red]Search failed: {e}[/red]")
            logging.debug(f"Path search error: {e}", exc_info=True)
            sys.exit(1)

    names = {person_id: person.display_name for person_id, person in people.items()}
    summary = finder.get_summary(result)
    metadata = result.search_metadata

    generator = OutputGenerator(
        output_dir=output_dir or config.output.directory,
        formats=list(formats) or config.output.formats,
        timestamp_filenames=config.output.timestamp_filenames,
    )
    output_files = generator.generate_paths_report(
        result, source, target, summary, explanations, names
    )

    console.print(
        f"\n[dim]Explored {metadata.nodes_explored} nodes, evaluated "
        f"{metadata.edges_evaluated} edges in {metadata.duration_ms:.1f} ms[/dim]"
    )

    if not result.paths:
        console.print(f"\n[yellow]No warm paths found to {names.get(target, target)}[/yellow]")
        console.print("Try raising --max-hops or --budget.")
        return

    console.print(f"\n[bold]Found {len(result.paths)} paths:[/bold]\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Path")
    table.add_column("Hops", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Ask via", justify="center")

    for path, explanation in zip(result.paths, explanations):
        table.add_row(
            str(path.rank),
            " → ".join(names.get(node_id, node_id) for node_id in path.node_ids),
            str(path.hops),
            f"{path.score:.3f}",
            explanation.suggested_channel,
        )

    console.print(table)

    for fmt, path in output_files.items():
        console.print(f"[dim]{fmt} report: {path}[/dim]")


@cli.command()
@click.option(
    "--input", "-i",
    "input_dir",
    required=True,
    type=click.Path(exists=True, file_okay=False, dir_okay=True),
    help="Directory containing the graph export",
)
@click.option(
    "--strategy",
    type=click.Choice(["composite", "linkedin"]),
    default="composite",
    help="Scoring model to apply",
)
@click.option("--person", default=None, help="Only re-score edges touching this person")
@click.option(
    "--output", "-o",
    "output_dir",
    default=None,
    type=click.Path(file_okay=False, dir_okay=True),
    help="Output directory for the edge score CSV",
)
@click.pass_context
def score(
    ctx: click.Context,
    input_dir: str,
    strategy: str,
    person: Optional[str],
    output_dir: Optional[str],
) -> None:
    """Re-score relationship strength for edges in a graph export."""
    from warmpath.models.linkedin import LinkedInRelationshipScorer
    from warmpath.models.relationship import (
        CompositeEdgeScorer,
        ScoreCalculator,
        rescore_edges,
    )
    from warmpath.pipeline.outputs import OutputGenerator

    config = ctx.obj["config"]

    console.print(f"\n[bold blue]Scoring Relationships ({strategy})[/bold blue]")
    console.print("=" * 50)

    export, provider = _load_provider(input_dir)

    if strategy == "linkedin":
        scorer = LinkedInRelationshipScorer(
            provider,
            weights=config.linkedin.weights,
            tiers=config.linkedin.tiers,
            source_prefix=config.linkedin.source_prefix,
            rescore_sources=tuple(config.linkedin.rescore_sources),
            batch_size=config.linkedin.batch_size,
        )
        batch_size = config.linkedin.batch_size
    else:
        calculator = ScoreCalculator(
            weights=config.scoring.weights,
            recency_time_constant_days=config.scoring.recency_time_constant_days,
        )
        scorer = CompositeEdgeScorer(
            provider,
            calculator=calculator,
            batch_size=config.scoring.batch_size,
        )
        batch_size = config.scoring.batch_size

    async def run_scoring() -> int:
        if person:
            return await scorer.rescore_person_edges(person)
        return await rescore_edges(provider, scorer, provider.edges, batch_size)

    try:
        updated = asyncio.run(run_scoring())
    except Exception as e:
        console.print(f"[red]Scoring failed: {e}[/red]")
        logging.debug(f"Scoring error: {e}", exc_info=True)
        sys.exit(1)

    console.print(f"  [green]✓[/green] Re-scored {updated} edges")

    names = {p.id: p.display_name for p in export.people}
    edges = [
        edge for edge in provider.edges
        if person is None or person in (edge.from_person_id, edge.to_person_id)
    ]
    edges.sort(key=lambda e: e.strength or 0.0, reverse=True)

    table = Table(show_header=True, header_style="bold")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Strength", justify="right")
    table.add_column("Channels")

    for edge in edges[:20]:
        table.add_row(
            names.get(edge.from_person_id, edge.from_person_id),
            names.get(edge.to_person_id, edge.to_person_id),
            "-" if edge.strength is None else f"{edge.strength:.2f}",
            ", ".join(edge.channels) or "-",
        )

    console.print(table)

    generator = OutputGenerator(
        output_dir=output_dir or config.output.directory,
        timestamp_filenames=config.output.timestamp_filenames,
    )
    filepath = generator.generate_edge_scores(edges, names)
    console.print(f"\n[dim]Edge scores: {filepath}[/dim]")


@cli.command()
@click.option(
    "--input", "-i",
    "input_dir",
    required=True,
    type=click.Path(exists=True, file_okay=False, dir_okay=True),
    help="Directory containing the graph export",
)
@click.pass_context
def stats(ctx: click.Context, input_dir: str) -> None:
    """Show quick statistics about a graph export."""
    from warmpath.graph.service import GraphService

    config = ctx.obj["config"]

    console.print("\n[bold blue]Graph Statistics[/bold blue]")
    console.print("=" * 50)

    export, provider = _load_provider(input_dir)
    graph = GraphService(provider, strong_edge_threshold=config.graph.strong_edge_threshold)
    graph_stats = asyncio.run(graph.get_stats())

    console.print(f"\n[bold]Source:[/bold] {input_dir}")
    console.print("\n[bold]Files loaded:[/bold]")
    for f in export.loaded_files:
        console.print(f"  • {f}")

    if export.skipped_files:
        console.print("\n[dim]Files not found:[/dim]")
        for f in export.skipped_files:
            console.print(f"  • {f}")

    console.print("\n[bold]Data Summary:[/bold]")
    table = Table(show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Count", justify="right")

    table.add_row("People", str(graph_stats.total_people))
    table.add_row("Edges", str(graph_stats.total_edges))
    table.add_row("Organizations", str(graph_stats.total_organizations))
    table.add_row(
        f"Strong edges (>= {config.graph.strong_edge_threshold})",
        str(graph_stats.strong_edges),
    )
    table.add_row("Edges per person", f"{graph_stats.average_edges_per_person:.2f}")
    table.add_row("Evidence events", str(len(export.evidence)))

    console.print(table)
    console.print()


@cli.command()
@click.pass_context
def version(ctx: click.Context) -> None:
    """Show version information."""
    from warmpath import __version__

    console.print(f"Warm Path v{__version__}")


def main() -> None:
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
