"""crmdesk CLI - Main entry point."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="crmdesk",
    help="crmdesk: contacts, companies, deals and activities on the record platform",
    no_args_is_help=True,
)
console = Console()

# Sub-command groups
contacts_app = typer.Typer(help="Contact management")
companies_app = typer.Typer(help="Company management")
deals_app = typer.Typer(help="Deal pipeline management")
activities_app = typer.Typer(help="Activity tracking")
meta_app = typer.Typer(help="Fixed enumerations")

app.add_typer(contacts_app, name="contacts")
app.add_typer(companies_app, name="companies")
app.add_typer(deals_app, name="deals")
app.add_typer(activities_app, name="activities")
app.add_typer(meta_app, name="meta")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Configure logging for every command."""
    from .config import settings

    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _output_result(result: Any, json_output: bool = False) -> None:
    """Output result as JSON."""
    if json_output:
        console.print_json(json.dumps(result, default=str))
    else:
        console.print_json(json.dumps(result, default=str, indent=2))


def _ref_name(value: Any) -> str:
    if isinstance(value, dict):
        return str(value.get("Name") or value.get("Id") or "-")
    return str(value) if value else "-"


# ============================================================================
# Contacts Commands
# ============================================================================


@contacts_app.command("list")
def contacts_list(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List all contacts."""
    from .api import RecordClient

    async def _list():
        async with RecordClient.from_settings() as crm:
            return await crm.contacts.get_all()

    contacts = asyncio.run(_list())

    if json_output:
        _output_result(contacts, json_output=True)
        return

    table = Table(title=f"Contacts ({len(contacts)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Email", style="white")
    table.add_column("Phone", style="green")
    table.add_column("Company", style="yellow")

    for c in contacts:
        name = f"{c.get('firstName_c') or ''} {c.get('lastName_c') or ''}".strip() or "-"
        table.add_row(
            str(c.get("Id", "")),
            name,
            c.get("email_c") or "-",
            c.get("phone_c") or "-",
            _ref_name(c.get("companyId_c")),
        )

    console.print(table)


@contacts_app.command("get")
def contacts_get(
    contact_id: int = typer.Argument(..., help="Contact ID"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Get a single contact by ID."""
    from .api import RecordClient, RecordNotFoundError

    async def _get():
        async with RecordClient.from_settings() as crm:
            return await crm.contacts.get_by_id(contact_id)

    try:
        result = asyncio.run(_get())
    except RecordNotFoundError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    _output_result(result, json_output)


@contacts_app.command("export")
def contacts_export(
    out_dir: Path = typer.Option(None, "--out-dir", "-o", help="Directory for the CSV file"),
):
    """Export all contacts to CSV."""
    from .api import RecordClient
    from .api.contacts import save_to_directory

    download = save_to_directory(out_dir) if out_dir else None

    async def _export():
        async with RecordClient.from_settings() as crm:
            contacts = await crm.contacts.get_all()
            return await crm.contacts.bulk_export(contacts, download=download)

    result = asyncio.run(_export())
    console.print(
        f"[green]Exported {result['count']} contacts to {result['filename']}[/green]"
    )


@contacts_app.command("delete")
def contacts_delete(
    contact_ids: list[int] = typer.Argument(..., help="Contact ID(s)"),
):
    """Delete one or more contacts."""
    from .api import RecordClient

    async def _delete():
        async with RecordClient.from_settings() as crm:
            if len(contact_ids) == 1:
                ok = await crm.contacts.delete(contact_ids[0])
                return {"successCount": int(ok), "errorCount": int(not ok), "errors": []}
            return await crm.contacts.bulk_delete(contact_ids)

    result = asyncio.run(_delete())
    if result["errorCount"]:
        console.print(
            f"[yellow]Deleted {result['successCount']}, failed {result['errorCount']}[/yellow]"
        )
        raise typer.Exit(1)
    console.print(f"[green]Deleted {result['successCount']} contact(s)[/green]")


# ============================================================================
# Companies Commands
# ============================================================================


def _print_companies(companies: list[dict], title: str) -> None:
    table = Table(title=f"{title} ({len(companies)})")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Industry", style="white")
    table.add_column("Size", style="yellow")
    table.add_column("Website", style="green")

    for c in companies:
        table.add_row(
            str(c.get("Id", "")),
            c.get("name_c") or c.get("Name") or "-",
            c.get("industry_c") or "-",
            c.get("size_c") or "-",
            c.get("website_c") or "-",
        )

    console.print(table)


@companies_app.command("list")
def companies_list(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List all companies."""
    from .api import RecordClient

    async def _list():
        async with RecordClient.from_settings() as crm:
            return await crm.companies.get_all()

    companies = asyncio.run(_list())
    if json_output:
        _output_result(companies, json_output=True)
    else:
        _print_companies(companies, "Companies")


@companies_app.command("search")
def companies_search(
    query: str = typer.Argument(..., help="Matches name, industry or size"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Search companies by name, industry or size."""
    from .api import RecordClient

    async def _search():
        async with RecordClient.from_settings() as crm:
            return await crm.companies.search_companies(query)

    companies = asyncio.run(_search())
    if json_output:
        _output_result(companies, json_output=True)
    else:
        _print_companies(companies, f"Companies matching '{query}'")


# ============================================================================
# Deals Commands
# ============================================================================


@deals_app.command("list")
def deals_list(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List all deals."""
    from .api import RecordClient

    async def _list():
        async with RecordClient.from_settings() as crm:
            return await crm.deals.get_all()

    deals = asyncio.run(_list())
    if json_output:
        _output_result(deals, json_output=True)
        return

    table = Table(title=f"Deals ({len(deals)})")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Stage", style="yellow")
    table.add_column("Value", style="green", justify="right")
    table.add_column("Prob.", justify="right")
    table.add_column("Company", style="white")

    for d in deals:
        table.add_row(
            str(d.get("Id", "")),
            d.get("title_c") or "-",
            d.get("stage_c") or "-",
            f"{float(d.get('value_c') or 0):,.2f}",
            f"{d.get('probability_c') if d.get('probability_c') is not None else '-'}",
            _ref_name(d.get("companyId_c")),
        )

    console.print(table)


@deals_app.command("board")
def deals_board(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Show deals grouped by pipeline stage."""
    from .api import RecordClient

    async def _board():
        async with RecordClient.from_settings() as crm:
            return await crm.deals.get_deals_by_stage()

    board = asyncio.run(_board())
    if json_output:
        _output_result(board, json_output=True)
        return

    table = Table(title="Pipeline")
    table.add_column("Stage", style="cyan")
    table.add_column("Deals", justify="right")
    table.add_column("Value", style="green", justify="right")

    for stage, deals in board.items():
        total = sum(float(d.get("value_c") or 0) for d in deals)
        table.add_row(stage, str(len(deals)), f"{total:,.2f}")

    console.print(table)


@deals_app.command("stage")
def deals_stage(
    deal_id: int = typer.Argument(..., help="Deal ID"),
    stage: str = typer.Argument(..., help="New stage"),
    probability: int = typer.Option(None, "--probability", "-p", help="Win probability (0-100)"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Move a deal to a new stage."""
    from .api import InvalidStageError, RecordClient, get_deal_stages

    async def _move():
        async with RecordClient.from_settings() as crm:
            return await crm.deals.update_stage(deal_id, stage, probability)

    try:
        result = asyncio.run(_move())
    except InvalidStageError:
        console.print(f"[red]Invalid deal stage: {stage}[/red]")
        console.print(f"[dim]Valid stages: {', '.join(get_deal_stages())}[/dim]")
        raise typer.Exit(1)

    if json_output:
        _output_result(result, json_output=True)
    else:
        console.print(f"[green]Deal {deal_id} moved to {stage}[/green]")


# ============================================================================
# Activities Commands
# ============================================================================


def _print_activities(activities: list[dict], title: str) -> None:
    table = Table(title=f"{title} ({len(activities)})")
    table.add_column("ID", style="dim")
    table.add_column("Type", style="yellow")
    table.add_column("Subject", style="cyan")
    table.add_column("Due", style="white")
    table.add_column("Contact", style="green")

    for a in activities:
        table.add_row(
            str(a.get("Id", "")),
            a.get("type_c") or "-",
            a.get("subject_c") or "-",
            a.get("dueDate_c") or "-",
            _ref_name(a.get("contactId_c")),
        )

    console.print(table)


@activities_app.command("upcoming")
def activities_upcoming(
    limit: int = typer.Option(10, "--limit", "-l", help="Max activities to show"),
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Open activities due soonest."""
    from .api import RecordClient

    async def _upcoming():
        async with RecordClient.from_settings() as crm:
            return await crm.activities.get_upcoming(limit=limit)

    activities = asyncio.run(_upcoming())
    if json_output:
        _output_result(activities, json_output=True)
    else:
        _print_activities(activities, "Upcoming Activities")


@activities_app.command("overdue")
def activities_overdue(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """Open activities past their due date."""
    from .api import RecordClient

    async def _overdue():
        async with RecordClient.from_settings() as crm:
            return await crm.activities.get_overdue()

    activities = asyncio.run(_overdue())
    if json_output:
        _output_result(activities, json_output=True)
    else:
        _print_activities(activities, "Overdue Activities")


@activities_app.command("complete")
def activities_complete(
    activity_id: int = typer.Argument(..., help="Activity ID"),
):
    """Mark an activity as completed."""
    from .api import RecordClient

    async def _complete():
        async with RecordClient.from_settings() as crm:
            return await crm.activities.mark_completed(activity_id)

    asyncio.run(_complete())
    console.print(f"[green]Activity {activity_id} marked as completed[/green]")


# ============================================================================
# Meta Commands
# ============================================================================


@meta_app.command("types")
def meta_types(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List activity types."""
    from .api import get_activity_types

    types = get_activity_types()
    if json_output:
        _output_result(types, json_output=True)
        return

    for name in types:
        console.print(name)


@meta_app.command("stages")
def meta_stages(
    json_output: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
):
    """List deal stages in pipeline order."""
    from .api import get_deal_stages

    stages = get_deal_stages()
    if json_output:
        _output_result(stages, json_output=True)
        return

    for i, name in enumerate(stages, 1):
        console.print(f"{i}. {name}")


if __name__ == "__main__":
    app()
