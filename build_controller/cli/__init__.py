"""
Command Line Interface for the component build controller.
"""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..config import get_settings
from ..db.base import get_session_local, init_database
from ..db.services import ResourceService
from ..errors import BuildControllerError
from ..logs import configure_logging
from ..reconciler import ComponentBuildReconciler, ReconcileOutcome
from ..resources import Component, Resource, resource_from_dict
from ..submitter import list_component_builds
from ..worker.loop import run_controller

app = typer.Typer(help="Component build controller - submits builds when build triggers drift")
console = Console()


def _load_documents(path: Path) -> List[dict]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict) and "items" in data:
        return list(data["items"])
    if isinstance(data, list):
        return data
    return [data]


@app.command("init-db")
def init_db():
    """Create the resource tables."""
    init_database()
    console.print(f"✅ Database initialized at {get_settings().database_url}")


@app.command()
def apply(file: Path = typer.Argument(..., exists=True, readable=True, help="JSON document or list")):
    """Create or replace resources from a JSON file."""
    documents = _load_documents(file)

    table = Table(title="Applied resources", show_header=True, header_style="bold magenta")
    table.add_column("Kind", style="cyan")
    table.add_column("Namespace/Name")
    table.add_column("Action", style="green")
    table.add_column("Version")

    db = get_session_local()()
    try:
        resources = ResourceService(db)
        for document in documents:
            resource: Resource = resource_from_dict(document)
            existing = resources.find(type(resource), resource.namespace, resource.name) if resource.name else None
            if existing is None:
                stored = resources.create(resource)
                action = "created"
            else:
                resource.metadata.resource_version = existing.metadata.resource_version
                resource.metadata.uid = existing.metadata.uid
                stored = resources.update(resource)
                action = "configured"
            table.add_row(stored.kind, stored.key, action, stored.metadata.resource_version or "")
    except (BuildControllerError, ValueError) as e:
        console.print(f"❌ {e}", style="red")
        raise typer.Exit(code=1)
    finally:
        db.close()

    console.print(table)


@app.command()
def reconcile(
    namespace: str = typer.Argument(..., help="Component namespace"),
    name: str = typer.Argument(..., help="Component name"),
):
    """Reconcile a single component once."""
    configure_logging()
    db = get_session_local()()
    try:
        result = ComponentBuildReconciler(ResourceService(db)).reconcile(namespace, name)
    except BuildControllerError as e:
        console.print(f"❌ {e.code}: {e.message}", style="red")
        raise typer.Exit(code=1)
    finally:
        db.close()

    emoji = {
        ReconcileOutcome.NO_OP: "🟢",
        ReconcileOutcome.DEFERRED: "🟡",
        ReconcileOutcome.BUILD_SUBMITTED: "🚀",
    }[result.outcome]
    details = ""
    if result.requeue_after is not None:
        details = f" (ready again in {result.requeue_after:g}s)"
    if result.pipeline_run:
        details = f" ({result.pipeline_run})"
    console.print(f"{emoji} {namespace}/{name}: {result.outcome.value}{details}")


@app.command()
def run(
    poll_interval: Optional[float] = typer.Option(None, help="Seconds between poll cycles"),
):
    """Run the controller loop until interrupted."""
    rprint(Panel.fit("🏗️ Starting component build controller", style="bold blue"))
    try:
        run_controller(poll_interval=poll_interval)
    except KeyboardInterrupt:
        console.print("\n🛑 Shutting down...")


@app.command()
def builds(
    namespace: str = typer.Argument(..., help="Component namespace"),
    component: str = typer.Argument(..., help="Component name"),
):
    """List the builds submitted for a component."""
    db = get_session_local()()
    try:
        resources = ResourceService(db)
        owner = resources.find(Component, namespace, component)
        if owner is None:
            console.print(f"❌ Component {namespace}/{component} not found", style="red")
            raise typer.Exit(code=1)
        runs = list_component_builds(resources, owner)
    finally:
        db.close()

    table = Table(title=f"Builds for {namespace}/{component}", show_header=True, header_style="bold magenta")
    table.add_column("PipelineRun", style="cyan")
    table.add_column("Pipeline")
    table.add_column("Created")

    for pipeline_run in runs:
        pipeline_ref = pipeline_run.spec.pipeline_ref
        created = pipeline_run.metadata.creation_timestamp
        table.add_row(
            pipeline_run.name,
            pipeline_ref.name if pipeline_ref else "",
            created.isoformat() if created else "",
        )

    console.print(table)


if __name__ == "__main__":
    app()
