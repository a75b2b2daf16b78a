"""Local command line entry point for a task."""

import asyncio
import json
from collections.abc import Callable
from enum import Enum

import typer
from rich.console import Console
from rich.panel import Panel

from etl_base.config import load_settings
from etl_base.errors import TaskError
from etl_base.task import Task, TaskRuntime, handle_event, schema_payload
from etl_base.types import EventType, SchemaType

console = Console()


class SchemaKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


async def _run_event(task: Task, event_type: EventType) -> None:
    async with TaskRuntime(task, load_settings()) as runtime:
        await handle_event(runtime, {"type": event_type.value})


def _fail(error: TaskError) -> None:
    console.print(Panel(f"[red]{error.code}: {error.message}[/red]", title="Error", border_style="red"))
    raise typer.Exit(1)


def build_cli(task_factory: Callable[[], Task]) -> typer.Typer:
    """Build a CLI exposing ``control``, ``update`` and ``schema`` for one task."""
    app = typer.Typer(help="Run an ETL task locally", no_args_is_help=True)

    @app.command()
    def control() -> None:
        """Pull from the source and submit to the layer."""
        try:
            asyncio.run(_run_event(task_factory(), EventType.CONTROL))
        except TaskError as e:
            _fail(e)

    @app.command()
    def update() -> None:
        """Handle an outgoing-flow update."""
        try:
            asyncio.run(_run_event(task_factory(), EventType.UPDATE))
        except TaskError as e:
            _fail(e)

    @app.command()
    def schema(kind: SchemaKind = typer.Argument(SchemaKind.INPUT, help="Schema to print")) -> None:
        """Print the task's input or output JSON schema."""
        schema_type = SchemaType.INPUT if kind is SchemaKind.INPUT else SchemaType.OUTPUT
        payload = asyncio.run(schema_payload(task_factory(), schema_type))
        console.print_json(json.dumps(payload))

    return app


def run_local(task_factory: Callable[[], Task]) -> None:
    """Run the task CLI against ``sys.argv``."""
    build_cli(task_factory)()
