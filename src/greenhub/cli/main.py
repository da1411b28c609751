"""CLI for GreenHub."""

from typing import Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from greenhub import __version__
from greenhub.client.http_client import GreenHubClient
from greenhub.config import Settings
from greenhub.errors import GreenHubError, QueryError
from greenhub.exporter import write_csv, write_json
from greenhub.hub import GreenHub
from greenhub.logs import configure_logging
from greenhub.models.options import CountOptions, ExportOptions, LumberjackOptions
from greenhub.store import CredentialStore

app = typer.Typer(
    name="greenhub",
    help="GreenHub - query the GreenHub data collection service from the terminal",
    no_args_is_help=True,
)
console = Console()

# shared option declarations - the query commands all take these
DateOpt = Annotated[
    str | None, typer.Option("--date", "-d", help="Single date query in yyyy-mm-dd format")
]
LastOpt = Annotated[
    str | None,
    typer.Option("--last", "-L", help="Time interval of last <m>onth, <w>eek, <d>ay or <h>our"),
]
RangeOpt = Annotated[
    str | None,
    typer.Option("--range", "-R", help="Time range [from]..[to] in yyyy-mm-dd format"),
]
TimeoutOpt = Annotated[
    int,
    typer.Option("--timeout", "-t", help="Request timeout in seconds, max value is 60"),
]
JsonOpt = Annotated[bool, typer.Option("--json", "-j", help="Output result in JSON")]
ModelArg = Annotated[str, typer.Argument(help="Model to query, e.g. devices or samples")]
ParamsArg = Annotated[
    list[str] | None, typer.Argument(help="Filters in name:value format", show_default=False)
]


def get_client(server: str, token: str | None) -> GreenHubClient:
    return GreenHubClient(server, token)


def get_hub(ctx: typer.Context) -> GreenHub:
    return ctx.obj


def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error: {escape(message)}[/red]")
    raise typer.Exit(1)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"greenhub {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logs")] = False,
    version: Annotated[
        bool,
        typer.Option("--version", callback=_version_callback, is_eager=True, help="Show version"),
    ] = False,
) -> None:
    """GreenHub - query the GreenHub data collection service from the terminal."""
    settings = Settings()
    configure_logging("DEBUG" if verbose else settings.log_level)
    # look get_client up at call time so tests can swap it out
    ctx.obj = GreenHub(
        CredentialStore(settings.credentials_path),
        settings,
        client_factory=lambda server, token: get_client(server, token),
    )


@app.command(
    epilog=(
        "Examples:\n\n"
        "$ greenhub count devices  # all devices\n\n"
        "$ greenhub count devices --date 2017-05-30  # devices registered on 2017-05-30\n\n"
        "$ greenhub count samples --last 12h  # samples of the last 12 hours\n\n"
        "$ greenhub count devices -L 5d --json  # devices of the last 5 days in json\n\n"
        "$ greenhub count samples -R 2017-05-01..2017-05-31  # samples in May 2017\n\n"
        "$ greenhub count samples --range 2017-03-15..  # samples since 2017-03-15\n\n"
        "$ greenhub count samples --range ..2017-02-01  # samples before 2017-02-01"
    )
)
def count(
    ctx: typer.Context,
    model: ModelArg,
    params: ParamsArg = None,
    date: DateOpt = None,
    last: LastOpt = None,
    date_range: RangeOpt = None,
    as_json: JsonOpt = False,
) -> None:
    """Return the total number of records of a model."""
    hub = get_hub(ctx)
    options = CountOptions(
        date=date,
        last=last,
        date_range=date_range,
        params=params or [],
        timeout=hub.settings.timeout,
    )
    try:
        total = hub.count(model, options)
    except GreenHubError as e:
        _fail(str(e))

    if as_json:
        console.print_json(data={"model": model, "count": total})
    else:
        console.print(f"[green]{total}[/green] {escape(model)}")


@app.command()
def docs(ctx: typer.Context) -> None:
    """Open the online GreenHub documentation."""
    url = get_hub(ctx).settings.docs_url
    console.print(f"Opening {url}")
    typer.launch(url)


@app.command(
    epilog=(
        "Parameters [params...] have format name:value. "
        "See the API online documentation for more information.\n\n"
        "Examples:\n\n"
        "$ greenhub export devices  # all devices\n\n"
        "$ greenhub export samples --date 2017-05-30  # samples received on 2017-05-30\n\n"
        "$ greenhub export devices --last 12h  # devices of the last 12 hours\n\n"
        "$ greenhub export samples -L 3d -o ~/Work/samples3d.csv  # last 3 days to a file\n\n"
        "$ greenhub export samples -R 2017-08-01..2017-08-31  # samples in August 2017"
    )
)
def export(
    ctx: typer.Context,
    model: ModelArg,
    params: ParamsArg = None,
    date: DateOpt = None,
    last: LastOpt = None,
    date_range: RangeOpt = None,
    output: Annotated[str, typer.Option("--output", "-o", help="Output csv filename")] = (
        "output.csv"
    ),
    timeout: TimeoutOpt = 10,
) -> None:
    """Export a query of a model to a csv file."""
    hub = get_hub(ctx)
    options = ExportOptions(
        date=date,
        last=last,
        date_range=date_range,
        params=params or [],
        output=output,
        timeout=timeout,
    )
    try:
        records = hub.export(model, options)
        path = write_csv(records, options.output)
    except GreenHubError as e:
        _fail(str(e))
    except OSError as e:
        _fail(f"Could not write {options.output}: {e}")

    console.print(f"[green]Exported {len(records)} records to {escape(str(path))}[/green]")


@app.command("list")
def list_models(ctx: typer.Context, as_json: JsonOpt = False) -> None:
    """List the models available on the server."""
    try:
        models = get_hub(ctx).list_models()
    except GreenHubError as e:
        _fail(str(e))

    if as_json:
        console.print_json(data=models)
        return

    if not models:
        console.print("[yellow]No models available[/yellow]")
        return

    table = Table(title="Models")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    for model in models:
        table.add_row(model["name"], model["description"] or "-")
    console.print(table)


@app.command()
def login(
    ctx: typer.Context,
    reload: Annotated[bool, typer.Option("--reload", "-r", help="Reload login credentials")] = (
        False
    ),
) -> None:
    """Login with a user API token."""
    hub = get_hub(ctx)
    try:
        if hub.credentials.is_logged_in:
            if not reload:
                name = (hub.credentials.user or {}).get("name", "unknown user")
                console.print(f"Already logged in as [cyan]{escape(str(name))}[/cyan]")
                return
            user = hub.reload()
        else:
            token = typer.prompt("API token", hide_input=True).strip()
            if not token:
                _fail("API token cannot be empty")
            user = hub.login(token)
    except GreenHubError as e:
        _fail(str(e))

    name = user.get("name") or user.get("email") or "unknown user"
    console.print(f"[green]Logged in as {escape(str(name))}[/green]")


@app.command()
def logout(ctx: typer.Context) -> None:
    """Forget the stored API credentials."""
    try:
        logged_out = get_hub(ctx).logout()
    except GreenHubError as e:
        _fail(str(e))

    if logged_out:
        console.print("[green]Logged out[/green]")
    else:
        console.print("[yellow]Not logged in[/yellow]")


@app.command(
    epilog=(
        "Parameters [params...] have format name:value. "
        "For --with the relationship list has to be quoted and separated by spaces.\n\n"
        "Examples:\n\n"
        "$ greenhub lumberjack devices brand:google  # devices with brand google\n\n"
        "$ greenhub lumberjack samples -L 3d -e  # last 3 days with every relationship\n\n"
        "$ greenhub lumberjack devices --last 1w  # devices registered on the last week\n\n"
        "$ greenhub lumberjack samples os:6.0 -n 5  # os version 6.0, 5 items per page\n\n"
        "$ greenhub lumberjack samples model:nexus -R ..2017-05-31  # nexus before 2017-05-31\n\n"
        "$ greenhub lumberjack devices brand:google -a -o output.json  # all to a json file\n\n"
        "$ greenhub lumberjack samples -w 'device settings'  # with device and settings\n\n"
        "$ greenhub lumberjack samples -w 'processes.permissions'  # nested relationship"
    )
)
def lumberjack(
    ctx: typer.Context,
    model: ModelArg,
    params: ParamsArg = None,
    all_results: Annotated[
        bool, typer.Option("--all", "-a", help="Display all results from query at once")
    ] = False,
    date: DateOpt = None,
    everything: Annotated[
        bool, typer.Option("--everything", "-e", help="Load every model relationship")
    ] = False,
    last: LastOpt = None,
    num_items: Annotated[
        int, typer.Option("--num-items", "-n", help="Number of items displayed per page")
    ] = 10,
    output: Annotated[
        str | None, typer.Option("--output", "-o", help="Output results to a JSON file")
    ] = None,
    page: Annotated[int, typer.Option("--page", "-p", help="Page to display")] = 1,
    date_range: RangeOpt = None,
    timeout: TimeoutOpt = 10,
    relations: Annotated[
        str | None,
        typer.Option("--with", "-w", help="Model relationships to load, `all` for everything"),
    ] = None,
) -> None:
    """Flexible query builder."""
    hub = get_hub(ctx)
    options = LumberjackOptions(
        date=date,
        last=last,
        date_range=date_range,
        params=params or [],
        timeout=timeout,
        all=all_results,
        everything=everything,
        relations=relations,
        num_items=num_items,
        page=page,
        output=output,
    )
    try:
        result = hub.lumberjack(model, options)
        if output:
            path = write_json(result.records, output)
    except GreenHubError as e:
        _fail(str(e))
    except OSError as e:
        _fail(f"Could not write {output}: {e}")

    if output:
        console.print(
            f"[green]Saved {len(result.records)} records to {escape(str(path))}[/green]"
        )
        return

    _print_records(result.records)
    if not all_results:
        console.print(
            f"Page {result.current_page} of {result.last_page} "
            f"({result.total if result.total is not None else '?'} results)"
        )


def _print_records(records: list[dict[str, Any]]) -> None:
    if not records:
        console.print("[yellow]No results[/yellow]")
        return
    console.print_json(data=records, default=str)


@app.command()
def remote(
    ctx: typer.Context,
    fetch: Annotated[bool, typer.Option("--fetch", "-f", help="Fetch the server url")] = False,
) -> None:
    """Display the current GreenHub server URL."""
    hub = get_hub(ctx)
    try:
        server = hub.fetch_remote() if fetch else hub.server
    except GreenHubError as e:
        _fail(str(e))

    if not server:
        console.print("[yellow]No server configured. Run `greenhub remote --fetch`.[/yellow]")
        return
    console.print(server)


@app.command()
def status(
    ctx: typer.Context,
    timeout: Annotated[
        int | None,
        typer.Option("--timeout", "-t", help="Request timeout in seconds  [default: 5]"),
    ] = None,
) -> None:
    """Check the status of the server."""
    hub = get_hub(ctx)
    try:
        status_code, elapsed_ms = hub.status(timeout)
    except QueryError as e:
        _fail(str(e))
    except GreenHubError as e:
        _fail(f"Server is offline: {e}")

    if 200 <= status_code < 300:
        console.print(f"[green]Server is online[/green] ({status_code}, {elapsed_ms}ms)")
    else:
        _fail(f"Server responded with HTTP {status_code}")


@app.command()
def token(
    ctx: typer.Context,
    new_token: Annotated[
        bool, typer.Option("--new-token", "-n", help="Generate a new token")
    ] = False,
) -> None:
    """Display the user API token."""
    hub = get_hub(ctx)
    try:
        value = hub.new_token() if new_token else hub.token()
    except GreenHubError as e:
        _fail(str(e))

    if new_token:
        console.print("[green]New token generated[/green]")
    console.print(value)


@app.command()
def whoami(ctx: typer.Context, as_json: JsonOpt = False) -> None:
    """Display information about the user."""
    try:
        user = get_hub(ctx).whoami()
    except GreenHubError as e:
        _fail(str(e))

    if as_json:
        console.print_json(data=user, default=str)
        return

    table = Table(title="User", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in user.items():
        table.add_row(str(key), escape(str(value)))
    console.print(table)


# short aliases, kept out of --help
app.command("c", hidden=True)(count)
app.command("e", hidden=True)(export)
app.command("j", hidden=True)(lumberjack)


if __name__ == "__main__":
    app()
