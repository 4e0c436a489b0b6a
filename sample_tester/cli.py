"""
CLI entry point built with Typer

Test flow for a sample:
1. Resolve service name, image reference and project
2. Extract the lifecycle from the sample's README
3. Print it (plan) or run it (run)
"""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from sample_tester.errors import (
    ConfigurationError,
    LifecycleExecutionError,
    ReadmeParseError,
)
from sample_tester.sample import Sample
from sample_tester.sandbox import CommandExecutor, ExecutorConfig

app = typer.Typer(
    name="sst",
    help="Serverless Sample Tester: build and deploy a sample from its README.",
    add_completion=False,
)

console = Console()


def setup_logging(verbose: bool) -> None:
    """Route package logging through Rich"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=verbose)],
        force=True,
    )


def load_sample(
    sample_dir: str,
    project: Optional[str],
    service_name: Optional[str],
    image: Optional[str],
) -> Sample:
    """Set up the sample or exit with status 1"""
    try:
        return Sample.from_dir(
            sample_dir,
            project_id=project,
            service_name=service_name,
            image_ref=image,
        )
    except (ConfigurationError, ReadmeParseError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


def print_lifecycle(sample: Sample) -> None:
    table = Table(title=f"Lifecycle of {sample.dir.name}")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Command", style="cyan")

    for i, command in enumerate(sample.lifecycle, start=1):
        table.add_row(str(i), escape(str(command)))

    console.print(table)
    console.print(f"[dim]Service: {sample.service_name}[/dim]")
    console.print(f"[dim]Image:   {sample.image_ref}[/dim]")


# Shared options
SAMPLE_DIR = typer.Argument(..., help="Path to the sample directory")
PROJECT = typer.Option(None, "--project", "-p", help="Google Cloud project for the image reference")
SERVICE_NAME = typer.Option(None, "--service-name", "-s", help="Cloud Run service name (default: generated)")
IMAGE = typer.Option(None, "--image", "-i", help="Container image reference (default: gcr.io/<project>/<service>)")
VERBOSE = typer.Option(False, "--verbose", "-v", help="Show detailed output")


@app.command()
def plan(
    sample_dir: str = SAMPLE_DIR,
    project: Optional[str] = PROJECT,
    service_name: Optional[str] = SERVICE_NAME,
    image: Optional[str] = IMAGE,
    verbose: bool = VERBOSE,
) -> None:
    """
    Show the commands that would build and deploy a sample.

    Examples:
        sst plan ./helloworld --project my-project
        sst plan ./helloworld --image gcr.io/my-project/hello
    """
    setup_logging(verbose)
    sample = load_sample(sample_dir, project, service_name, image)
    print_lifecycle(sample)


@app.command()
def run(
    sample_dir: str = SAMPLE_DIR,
    project: Optional[str] = PROJECT,
    service_name: Optional[str] = SERVICE_NAME,
    image: Optional[str] = IMAGE,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Log each command instead of running it",
    ),
    verbose: bool = VERBOSE,
) -> None:
    """
    Build and deploy a sample by running its lifecycle.

    Exits with status 1 on README or configuration errors and 2 when a
    command fails.
    """
    setup_logging(verbose)
    sample = load_sample(sample_dir, project, service_name, image)

    if verbose:
        print_lifecycle(sample)

    executor = CommandExecutor(ExecutorConfig(dry_run=dry_run))
    try:
        results = sample.build_deploy(executor)
    except LifecycleExecutionError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2)

    total_ms = sum(r.duration_ms for r in results)
    console.print(
        f"[green]✓[/green] {len(results)} commands completed in {total_ms / 1000:.1f}s "
        f"(service {sample.service_name})"
    )


@app.command()
def version() -> None:
    """Show the version of Serverless Sample Tester."""
    from sample_tester import __version__
    console.print(f"[bold]Serverless Sample Tester[/bold] v{__version__}")


if __name__ == "__main__":
    app()
