import typer
import logging
from typing import Optional, List
from typing_extensions import Annotated
from rich.console import Console
from rich import print as rprint
from google.api_core import exceptions as gcp_exceptions

from gcporg.connection import Connection
from gcporg.core import GCPOrgError
from gcporg.formatters import build_rows_table, rows_to_json
from gcporg.loaders import build_organization_list
from gcporg.table import TABLE_NAME, collect_rows

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="gcporg",
    help="List GCP organizations, folders and projects as table rows",
    add_completion=False,
)
console = Console()
error_console = Console(stderr=True)


def handle_error(e: Exception) -> None:
    """Central error handler for CLI."""
    # Upstream errors are wrapped; look at the API error underneath
    cause = e.__cause__ if isinstance(e.__cause__, gcp_exceptions.GoogleAPIError) else e

    if isinstance(cause, gcp_exceptions.PermissionDenied):
        error_console.print(
            "[red]Permission Denied:[/red] Ensure you have the required permissions and are authenticated."
        )
        error_console.print(
            "[dim]Hint: Run 'gcloud auth application-default login'[/dim]"
        )
    elif isinstance(cause, gcp_exceptions.ServiceUnavailable):
        error_console.print(
            "[red]Service Unavailable:[/red] The GCP API is currently unreachable."
        )
    elif isinstance(e, GCPOrgError):
        error_console.print(f"[red]Error:[/red] {e}")
    else:
        error_console.print(f"[red]Unexpected Error:[/red] {e}")
        logging.exception("Unexpected error occurred")
    raise typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """
    gcporg - GCP organization, folder and project listing
    """
    ctx.ensure_object(dict)
    ctx.obj["connection"] = Connection()

    if debug:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.ERROR)

    # Always suppress urllib3 debug logs
    logging.getLogger("urllib3").setLevel(logging.WARNING)


@app.command()
def orgs(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-n",
        min=0,
        envvar="GCPORG_LIMIT",
        help="Maximum number of organizations",
    ),
) -> None:
    """
    List the ids of the organizations visible to your account.
    """
    try:
        org_ids = build_organization_list(ctx.obj["connection"], limit)
        logger.debug(f"orgs: found {len(org_ids)} organizations")

        if not org_ids:
            rprint("[yellow]No organizations found accessible to your account.[/yellow]")
            return

        for org_id in org_ids:
            print(org_id)

    except Exception as e:
        handle_error(e)


@app.command()
def ls(
    ctx: typer.Context,
    org: Annotated[
        Optional[List[str]],
        typer.Option(
            "--org",
            "-o",
            envvar="GCPORG_ORGANIZATION",
            help="Organization id to list. Repeatable. Defaults to all visible organizations.",
        ),
    ] = None,
    limit: Optional[int] = typer.Option(
        None, "--limit", "-n", min=0, envvar="GCPORG_LIMIT", help="Maximum number of rows"
    ),
    workers: int = typer.Option(
        1, "--workers", "-w", min=1, help="Organizations listed concurrently"
    ),
    output_format: str = typer.Option(
        "table", "--format", "-f", help="Output format: table or json"
    ),
) -> None:
    """
    List organizations, folders and projects as normalized rows.
    """
    try:
        if output_format not in ("table", "json"):
            error_console.print(
                f"[red]Error:[/red] Unknown format '{output_format}'. Use 'table' or 'json'."
            )
            raise typer.Exit(code=1)

        rows = collect_rows(
            ctx.obj["connection"],
            limit=limit,
            organizations=org or None,
            max_workers=workers,
        )
        logger.debug(f"ls: collected {len(rows)} rows")

        if output_format == "json":
            print(rows_to_json(rows))
            return

        if not rows:
            rprint("[yellow]No organizations, folders or projects found.[/yellow]")
            return

        console.print(build_rows_table(rows, title=TABLE_NAME))

    except typer.Exit:
        raise
    except Exception as e:
        handle_error(e)


def run() -> None:
    app()


if __name__ == "__main__":
    app()
