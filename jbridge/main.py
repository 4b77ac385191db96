"""jbridge command line: settings, metadata lookups, issue creation and attachments."""

from functools import partial
from pathlib import Path
from typing import Annotated

import typer
from pydantic import SecretStr
from rich import print as rprint
from rich.table import Table

from jbridge.display import configure_logging
from jbridge.providers.jira import JiraProvider, free_provider, get_provider
from jbridge.settings import CONFIG_PATH, TrackerSettings, is_complete, resolve_settings, save_settings

app = typer.Typer(help="jira-bridge: file Jira issues and attachments from the command line", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-P", help="Profile name from ~/.config/jbridge/config.toml"),
]


@app.callback()
def main(
    ctx: typer.Context,
    log_level: Annotated[str, typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR")] = "WARNING",
    log_file: Annotated[str | None, typer.Option("--log-file", help="Also write logs to this file")] = None,
) -> None:
    configure_logging(log_level, log_file)
    ctx.call_on_close(free_provider)


# ---------------------------------------------------------------------------
# Settings editor
# ---------------------------------------------------------------------------


def prompt_settings(current: TrackerSettings, profile: str | None = None) -> TrackerSettings:
    """Interactively ask for connection settings, save them and return the result."""
    url = typer.prompt("Jira URL (https://...)", default=current.url or "").strip()
    login = typer.prompt("Login", default=current.login or "").strip()
    password = typer.prompt("Password or API token", hide_input=True).strip()

    settings = TrackerSettings(url=url, login=login, password=SecretStr(password))
    path = save_settings(settings, profile)
    rprint(f"[green]✓[/green] Settings written to {path}")
    return settings


def _fix_settings(current: TrackerSettings, profile: str | None = None) -> TrackerSettings:
    rprint("[yellow]Jira connection settings are missing or incomplete.[/yellow]")
    return prompt_settings(current, profile)


def _provider(profile: str | None = None, legacy_attachments: bool = False) -> JiraProvider:
    provider = get_provider(
        settings_editor=partial(_fix_settings, profile=profile),
        legacy_attachments=legacy_attachments,
        profile=profile,
    )
    if not provider.is_enabled:
        rprint(f"[red]{provider.disabled_reason}[/red]")
        rprint("[red]Run: jbridge configure[/red]")
        raise typer.Exit(1)
    return provider


def _parse_fields(pairs: list[str] | None) -> dict[str, str]:
    fields: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            rprint(f"[red]Invalid field '{pair}'. Use KEY=VALUE.[/red]")
            raise typer.Exit(1)
        fields[key.strip()] = value
    return fields


def _option_label(option: object) -> str:
    # allowedValues entries are objects carrying value (custom options) or name (versions, priorities)
    if isinstance(option, dict):
        return str(option.get("value") or option.get("name") or option.get("id"))
    return str(option)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("configure")
def configure(
    profile: ProfileOpt = None,
    verify: Annotated[bool, typer.Option("--verify/--no-verify", help="List projects to confirm the login works")] = True,
) -> None:
    """Interactive setup of the Jira URL, login and password."""
    settings = prompt_settings(resolve_settings(profile), profile)
    if not is_complete(settings):
        rprint("[red]URL, login and password are all required.[/red]")
        raise typer.Exit(1)

    if verify:
        with JiraProvider(settings=settings) as provider:
            if not provider.is_enabled:
                rprint(f"[red]{provider.disabled_reason}[/red]")
                raise typer.Exit(1)
            keys = provider.list_project_keys()
        if keys:
            rprint(f"[green]✓[/green] Connected. Found {len(keys)} project(s).")
        else:
            rprint("[yellow]Warning:[/yellow] Could not list projects with these settings.")


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks the password)."""
    settings = resolve_settings(profile)
    password = settings.password.get_secret_value()

    table = Table(title="jbridge Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("config file", str(CONFIG_PATH))
    table.add_row("url", settings.url or "[dim](not set)[/dim]")
    table.add_row("login", settings.login or "[dim](not set)[/dim]")
    table.add_row("password", "***" if password else "[dim](not set)[/dim]")
    table.add_row("complete", "yes" if is_complete(settings) else "[red]no[/red]")

    rprint(table)


@app.command("projects")
def projects(profile: ProfileOpt = None) -> None:
    """List the keys of all visible projects."""
    provider = _provider(profile)

    table = Table(title="Projects")
    table.add_column("Key", style="cyan")
    for key in provider.list_project_keys():
        table.add_row(key)

    rprint(table)


@app.command("issue-types")
def issue_types(
    project_key: Annotated[str, typer.Argument(help="Project key, e.g. QA")],
    profile: ProfileOpt = None,
) -> None:
    """List the issue types of a project."""
    provider = _provider(profile)

    table = Table(title=f"Issue types of {project_key}")
    table.add_column("Name", style="cyan")
    for name in provider.list_issue_type_names(project_key):
        table.add_row(name)

    rprint(table)


@app.command("priorities")
def priorities(profile: ProfileOpt = None) -> None:
    """List priority names."""
    provider = _provider(profile)

    table = Table(title="Priorities")
    table.add_column("Name", style="cyan")
    for name in provider.list_priority_names():
        table.add_row(name)

    rprint(table)


@app.command("fields")
def fields_cmd(
    project_key: Annotated[str, typer.Argument(help="Project key")],
    issue_type: Annotated[str, typer.Argument(help="Issue type name, e.g. Bug")],
    profile: ProfileOpt = None,
) -> None:
    """Show the fields Jira accepts when creating an issue of this type."""
    provider = _provider(profile)
    schema = provider.get_field_schema(project_key)
    if schema is None:
        rprint(f"[red]Could not load create metadata for {project_key}.[/red]")
        raise typer.Exit(1)

    type_fields = schema.get(project_key, {}).get(issue_type)
    if type_fields is None:
        rprint(f"[red]No issue type '{issue_type}' in {project_key}.[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{project_key} / {issue_type}")
    table.add_column("Field", style="cyan")
    table.add_column("Name")
    table.add_column("Required")
    table.add_column("Options", style="dim")

    for field_id, info in sorted(type_fields.items()):
        options = "—"
        if info.allowed_values is not None:
            options = ", ".join(_option_label(v) for v in info.allowed_values) or "(none)"
        table.add_row(field_id, info.name, "yes" if info.required else "", options)

    rprint(table)


@app.command("create-issue")
def create_issue(
    project_key: Annotated[str, typer.Argument(help="Project key")],
    issue_type: Annotated[str, typer.Argument(help="Issue type name, e.g. Bug")],
    summary: Annotated[str, typer.Argument(help="Issue summary")],
    description: Annotated[str | None, typer.Argument(help="Issue description")] = None,
    field: Annotated[
        list[str] | None,
        typer.Option("--field", "-f", help="Extra field as KEY=VALUE, e.g. priority=High (repeatable)"),
    ] = None,
    attach: Annotated[
        list[Path] | None,
        typer.Option("--attach", "-a", help="File to attach after creation (repeatable)"),
    ] = None,
    profile: ProfileOpt = None,
    legacy_attachments: Annotated[
        bool, typer.Option("--legacy-attachments", help="Keep the original unchecked attachment behavior")
    ] = False,
) -> None:
    """Create a new issue."""
    extra_fields = _parse_fields(field)
    provider = _provider(profile, legacy_attachments)

    result = provider.create_issue(project_key, issue_type, summary, description, extra_fields)
    if not result.is_success or result.issue is None:
        rprint(f"[red]{result.error}[/red]")
        raise typer.Exit(1)

    created = result.issue
    rprint(f"[green]✓[/green] [bold]{created.key}[/bold] {summary}")
    rprint(f"  {created.self_url}")

    failed = False
    for path in attach or []:
        attached = provider.attach_file_from_path(created.attachments_url, str(path))
        if attached.is_success:
            rprint(f"  [green]✓[/green] attached {path.name}")
        else:
            rprint(f"  [red]✗[/red] {path.name}: {attached.error}")
            failed = True
    if failed:
        raise typer.Exit(1)


@app.command("attach")
def attach_cmd(
    issue: Annotated[str, typer.Argument(help="Issue key or attachments URI")],
    files: Annotated[list[Path], typer.Argument(help="Files to attach")],
    profile: ProfileOpt = None,
    legacy_attachments: Annotated[
        bool, typer.Option("--legacy-attachments", help="Keep the original unchecked attachment behavior")
    ] = False,
) -> None:
    """Attach local files to an existing issue."""
    provider = _provider(profile, legacy_attachments)

    issue_uri: str | None = issue
    if not issue.startswith(("http://", "https://")):
        found = provider.get_issue(issue)
        if found is None:
            rprint(f"[red]Issue '{issue}' was not found.[/red]")
            raise typer.Exit(1)
        issue_uri = f"{found.url}/attachments"

    failed = False
    for path in files:
        result = provider.attach_file_from_path(issue_uri, str(path))
        if result.is_success:
            rprint(f"[green]✓[/green] attached {path.name}")
        else:
            rprint(f"[red]✗[/red] {path.name}: {result.error}")
            failed = True
    if failed:
        raise typer.Exit(1)


@app.command("get-issue")
def get_issue(
    key: Annotated[str, typer.Argument(help="Issue key, e.g. QA-12")],
    profile: ProfileOpt = None,
) -> None:
    """Show an issue's summary, type and status."""
    provider = _provider(profile)
    issue = provider.get_issue(key)
    if issue is None:
        rprint(f"[red]Issue '{key}' could not be fetched.[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{issue.key}: {issue.summary}")
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Type", issue.issue_type or "—")
    table.add_row("Status", issue.status or "—")
    table.add_row("URL", issue.url)

    rprint(table)
