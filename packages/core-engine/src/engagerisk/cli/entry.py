"""EngageRisk CLI: command line interface.

Usage:
    engagerisk score --country US --type independent --value 60000
    engagerisk submit --email ... --country ... --consent
    engagerisk report ID                 Render the HTML report
    engagerisk admin stats|recent|export|timeseries|trends
    engagerisk config init|show|set      Manage configuration
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from engagerisk_shared.constants.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_GENERAL_ERROR,
    EXIT_NOT_FOUND,
    EXIT_RATE_LIMITED,
    EXIT_VALIDATION_ERROR,
    MAX_SCORE,
)
from engagerisk_shared.types.enums import RiskLevel
from engagerisk_shared.types.models import AssessmentRecord, EngagementInput, RiskResult

from engagerisk.analytics.trends import build_time_series, analyze_trends
from engagerisk.config import EngageRiskConfig, load_config, save_config
from engagerisk.errors import AssessmentNotFound, InvalidSubmission, RateLimitExceeded
from engagerisk.privacy import mask_email
from engagerisk.reporting.csv_export import (
    ExportFilters,
    export_aggregated_csv,
    export_assessments_csv,
)
from engagerisk.scoring.risk_engine import RiskEngine
from engagerisk.service.assessment_service import AssessmentService

# ─── App Setup ─────────────────────────────────────────────────────────────────

app = typer.Typer(
    name="engagerisk",
    help="EngageRisk -- contractor engagement compliance risk scoring",
    add_completion=False,
    rich_markup_mode="rich",
)

admin_app = typer.Typer(
    name="admin",
    help="Usage analytics and exports",
)
app.add_typer(admin_app, name="admin")

config_app = typer.Typer(
    name="config",
    help="Manage EngageRisk configuration",
)
app.add_typer(config_app, name="config")

console = Console()
error_console = Console(stderr=True)

_LEVEL_STYLES = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "bold red",
}


@app.callback()
def main_callback(
    ctx: typer.Context,
    config_dir: Optional[str] = typer.Option(
        None,
        "--config-dir",
        "-c",
        help="Directory containing .engagerisk.yaml",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """EngageRisk -- contractor engagement compliance risk scoring."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = {"config_dir": config_dir}


def _config(ctx: typer.Context) -> EngageRiskConfig:
    config_dir = (ctx.obj or {}).get("config_dir")
    try:
        return load_config(config_dir)
    except (OSError, ValueError) as e:
        error_console.print(f"[red]Error:[/red] Failed to load config: {e}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)


def _service(ctx: typer.Context) -> AssessmentService:
    return AssessmentService(config=_config(ctx))


# ─── Score Command ────────────────────────────────────────────────────────────

@app.command()
def score(
    country: str = typer.Option(..., "--country", help="Country code (e.g., US, DE)"),
    contract_type: str = typer.Option(
        "independent",
        "--type",
        "-t",
        help="Contract type (independent, agency, eor)",
    ),
    value: float = typer.Option(0.0, "--value", help="Contract value in USD"),
    data_processing: bool = typer.Option(
        False,
        "--data-processing/--no-data-processing",
        help="Engagement handles personal data",
    ),
    industry: Optional[str] = typer.Option(None, "--industry", help="Industry sector"),
    duration: Optional[int] = typer.Option(None, "--duration", help="Contract duration in months"),
    intellectual_property: bool = typer.Option(False, "--intellectual-property", help="IP is involved"),
    financial_data: bool = typer.Option(False, "--financial-data", help="Financial data is handled"),
    security_clearance: bool = typer.Option(False, "--security-clearance", help="Clearance is required"),
    public_sector: bool = typer.Option(False, "--public-sector", help="Public sector client"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Score an engagement without storing it."""
    engagement = EngagementInput(
        country=country,
        contract_type=contract_type,
        contract_value=value,
        data_processing=data_processing,
        industry=industry,
        contract_duration_months=duration,
        has_intellectual_property=intellectual_property or None,
        involves_financial_data=financial_data or None,
        requires_security_clearance=security_clearance or None,
        is_public_sector=public_sector or None,
    )
    result = RiskEngine().score(engagement)

    if as_json:
        typer.echo(json.dumps(result.to_dict(), indent=2))
        return

    _display_result(result, title=f"{engagement.country or '?'} · {engagement.contract_type.value}")


# ─── Submission Commands ──────────────────────────────────────────────────────

@app.command()
def submit(
    ctx: typer.Context,
    email: str = typer.Option(..., "--email", help="Submitter email"),
    country: str = typer.Option(..., "--country", help="Country code"),
    contract_type: str = typer.Option(..., "--type", "-t", help="independent, agency or eor"),
    value: float = typer.Option(..., "--value", help="Contract value in USD"),
    data_processing: bool = typer.Option(
        False,
        "--data-processing/--no-data-processing",
        help="Engagement handles personal data",
    ),
    industry: Optional[str] = typer.Option(None, "--industry", help="Industry sector"),
    duration: Optional[int] = typer.Option(None, "--duration", help="Contract duration in months"),
    intellectual_property: bool = typer.Option(False, "--intellectual-property", help="IP is involved"),
    financial_data: bool = typer.Option(False, "--financial-data", help="Financial data is handled"),
    security_clearance: bool = typer.Option(False, "--security-clearance", help="Clearance is required"),
    public_sector: bool = typer.Option(False, "--public-sector", help="Public sector client"),
    consent: bool = typer.Option(False, "--consent", help="Agree to share inputs"),
    client_ip: str = typer.Option("127.0.0.1", "--client-ip", help="Client address for rate limiting"),
    as_json: bool = typer.Option(False, "--json", help="Print the stored record as JSON"),
) -> None:
    """Submit an assessment: validate, score and store it."""
    form = {
        "email": email,
        "country": country,
        "contract_type": contract_type,
        "contract_value_usd": value,
        "data_processing": data_processing,
        "consent": consent,
        "industry": industry,
        "contract_duration_months": duration,
        "has_intellectual_property": intellectual_property or None,
        "involves_financial_data": financial_data or None,
        "requires_security_clearance": security_clearance or None,
        "is_public_sector": public_sector or None,
    }

    with _service(ctx) as service:
        try:
            record = service.submit(form, ip=client_ip, user_agent="engagerisk-cli")
        except InvalidSubmission as e:
            error_console.print("[red]Error:[/red] Invalid input data")
            for message in e.messages():
                error_console.print(f"  - {message}")
            raise typer.Exit(code=EXIT_VALIDATION_ERROR)
        except RateLimitExceeded as e:
            error_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=EXIT_RATE_LIMITED)

    if as_json:
        typer.echo(json.dumps({"id": record.id, **record.result.to_dict()}, indent=2))
        return

    console.print(f"[bold]Assessment ID:[/bold] {record.id}")
    _display_result(record.result, title=f"{record.country} · {record.contract_type.value}")


@app.command("result-ready")
def result_ready(
    ctx: typer.Context,
    assessment_id: str = typer.Argument(help="Assessment ID"),
) -> None:
    """Record that the result was shown to the user."""
    with _service(ctx) as service:
        try:
            elapsed_ms = service.mark_result_ready(assessment_id)
        except AssessmentNotFound as e:
            error_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=EXIT_NOT_FOUND)
    console.print(f"[green]>[/green] Time to result: {elapsed_ms} ms")


@app.command()
def feedback(
    ctx: typer.Context,
    assessment_id: str = typer.Argument(help="Assessment ID"),
    answer: str = typer.Argument(help="Was the result useful? (yes/no)"),
) -> None:
    """Record feedback for an assessment."""
    with _service(ctx) as service:
        try:
            stored = service.record_feedback(assessment_id, answer.strip().lower())
        except InvalidSubmission as e:
            error_console.print(f"[red]Error:[/red] {'; '.join(e.messages())}")
            raise typer.Exit(code=EXIT_VALIDATION_ERROR)
        except AssessmentNotFound as e:
            error_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=EXIT_NOT_FOUND)
    console.print(f"[green]>[/green] Feedback recorded: [bold]{stored.value}[/bold]")


@app.command()
def report(
    ctx: typer.Context,
    assessment_id: str = typer.Argument(help="Assessment ID"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Save the report to a file"),
) -> None:
    """Render the HTML report for a stored assessment."""
    with _service(ctx) as service:
        try:
            html = service.render_report(assessment_id, output_path=output)
        except AssessmentNotFound as e:
            error_console.print(f"[red]Error:[/red] {e}")
            raise typer.Exit(code=EXIT_NOT_FOUND)

    if output:
        console.print(f"[green]>[/green] Report saved to: [bold]{output}[/bold]")
    else:
        typer.echo(html)


def _display_result(result: RiskResult, title: str) -> None:
    """Display a score panel followed by the reasons."""
    style = _LEVEL_STYLES.get(result.level, "")
    console.print(
        Panel(
            f"[{style}]{result.level.value} risk[/{style}]  "
            f"[bold]{result.score}[/bold][dim]/{MAX_SCORE}[/dim]",
            title=f"[bold]{title}[/bold]",
            border_style=style.split()[-1] if style else "blue",
        )
    )
    for i, reason in enumerate(result.reasons, 1):
        console.print(f"  {i}. {reason}")


# ─── Admin Commands ───────────────────────────────────────────────────────────

@admin_app.command("stats")
def admin_stats(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print as JSON"),
) -> None:
    """Show aggregated usage statistics."""
    with _service(ctx) as service:
        aggregates = service.aggregates()

    if as_json:
        typer.echo(aggregates.model_dump_json(indent=2))
        return

    table = Table(title="Usage Statistics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Submissions", str(aggregates.total_submissions))
    table.add_row("Unique users", str(aggregates.total_users))
    table.add_row("Avg time to result", f"{aggregates.avg_time_to_result:.1f}s")
    table.add_row("Avg score", f"{aggregates.avg_score:.1f}/{MAX_SCORE}")
    table.add_row("Report download rate", f"{aggregates.pdf_download_rate}%")
    table.add_row("Useful feedback rate", f"{aggregates.feedback_useful_rate}%")
    for level, count in aggregates.level_distribution.items():
        table.add_row(f"{level} risk", str(count))
    console.print(table)


@admin_app.command("recent")
def admin_recent(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-n", help="Number of rows"),
) -> None:
    """List the most recent assessments."""
    with _service(ctx) as service:
        records = service.recent(limit)

    if not records:
        console.print("[dim]No assessments stored yet[/dim]")
        return
    _display_records_table(records)


def _display_records_table(records: list[AssessmentRecord]) -> None:
    table = Table(title=f"Recent Assessments ({len(records)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("When")
    table.add_column("Email")
    table.add_column("Country", justify="center")
    table.add_column("Type")
    table.add_column("Value", justify="right")
    table.add_column("Score", justify="center")
    table.add_column("Level", justify="center")

    for r in records:
        style = _LEVEL_STYLES.get(r.level, "")
        table.add_row(
            r.id[:8],
            r.timestamp.strftime("%Y-%m-%d %H:%M"),
            mask_email(r.email),
            r.country,
            r.contract_type.value,
            f"${r.contract_value_usd:,.0f}",
            str(r.score),
            f"[{style}]{r.level.value}[/{style}]",
        )
    console.print(table)


def _parse_date(value: Optional[str], option: str, end_of_day: bool = False) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        error_console.print(f"[red]Error:[/red] {option} must be an ISO date, got {value!r}")
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)
    if end_of_day and "T" not in value and " " not in value:
        # A bare date covers the whole day
        parsed = datetime.combine(parsed.date(), time.max)
    return parsed


@admin_app.command("export")
def admin_export(
    ctx: typer.Context,
    aggregated: bool = typer.Option(False, "--aggregated", help="Export grouped statistics"),
    format: str = typer.Option("standard", "--format", "-f", help="standard or privacy-safe"),
    group_by: str = typer.Option("day", "--group-by", help="day, week, month, country, contract_type, level"),
    date_from: Optional[str] = typer.Option(None, "--from", help="Only rows on or after this ISO date"),
    date_to: Optional[str] = typer.Option(None, "--to", help="Only rows on or before this ISO date or timestamp"),
    level: Optional[str] = typer.Option(None, "--level", help="Only this risk level"),
    country: Optional[str] = typer.Option(None, "--country", help="Only this country"),
    time_distribution: bool = typer.Option(False, "--time-distribution", help="Add time buckets"),
    feedback_stats: bool = typer.Option(False, "--feedback-stats", help="Add feedback split"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Write CSV to a file"),
) -> None:
    """Export stored assessments as CSV."""
    with _service(ctx) as service:
        records = service.store.all()

    try:
        if aggregated:
            text = export_aggregated_csv(
                records,
                group_by=group_by,
                include_time_distribution=time_distribution,
                include_feedback_stats=feedback_stats,
            )
        else:
            filters = ExportFilters(
                date_from=_parse_date(date_from, "--from"),
                date_to=_parse_date(date_to, "--to", end_of_day=True),
                risk_level=RiskLevel(level.capitalize()) if level else None,
                country=country,
            )
            text = export_assessments_csv(records, filters=filters, format=format)
    except ValueError as e:
        error_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)

    if output:
        Path(output).write_text(text, encoding="utf-8")
        console.print(f"[green]>[/green] Export saved to: [bold]{output}[/bold]")
    else:
        typer.echo(text, nl=False)


@admin_app.command("timeseries")
def admin_timeseries(
    ctx: typer.Context,
    metric: str = typer.Argument("submissions", help="submissions, risk-levels, countries, contract-types, performance"),
    period: str = typer.Option("day", "--period", "-p", help="hour, day, week, month"),
    days: int = typer.Option(30, "--days", "-d", help="Look-back window in days"),
) -> None:
    """Print a chart-ready time series as JSON."""
    with _service(ctx) as service:
        series = build_time_series(service.store.all(), metric=metric, period=period, days=days)
    typer.echo(series.model_dump_json(indent=2))


@admin_app.command("trends")
def admin_trends(
    ctx: typer.Context,
    analysis_type: str = typer.Argument("overview", help="growth, risk-patterns, user-behavior, geographical, overview"),
    period: str = typer.Option("day", "--period", "-p", help="hour, day, week, month"),
) -> None:
    """Show trend insights."""
    with _service(ctx) as service:
        analysis = analyze_trends(service.store.all(), analysis_type=analysis_type, period=period)

    if not analysis.insights:
        console.print("[dim]Not enough data for trend analysis[/dim]")
        return

    console.print(Panel(f"[bold]Trends: {analysis.analysis_type}[/bold]", border_style="blue"))
    for insight in analysis.insights:
        console.print(f"[green]>[/green] {insight.message}")


# ─── Config Commands ──────────────────────────────────────────────────────────

@config_app.command("init")
def config_init(
    directory: Optional[str] = typer.Argument(
        None,
        help="Directory to create config in (default: current directory)",
    ),
) -> None:
    """Create .engagerisk.yaml configuration file."""
    target_dir = directory or str(Path.cwd())

    try:
        config_path = save_config(target_dir)
        console.print(
            f"[green]>[/green] Config file created: [bold]{config_path}[/bold]"
        )
    except OSError as e:
        error_console.print(f"[red]Error:[/red] Failed to create config: {e}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)


@config_app.command("show")
def config_show(
    directory: Optional[str] = typer.Argument(
        None,
        help="Directory to load config from",
    ),
) -> None:
    """Display current configuration."""
    target_dir = directory or str(Path.cwd())
    config = load_config(target_dir)

    console.print(Panel("[bold]Current Configuration[/bold]", border_style="blue"))
    console.print_json(json.dumps(config.to_dict()))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g., notifications.enabled)"),
    value: str = typer.Argument(help="Config value"),
    directory: Optional[str] = typer.Option(
        None, "--dir", "-d", help="Directory with config file"
    ),
) -> None:
    """Set a configuration value."""
    target_dir = directory or str(Path.cwd())
    config = load_config(target_dir)

    # Try to parse value as JSON for booleans/numbers
    try:
        parsed_value = json.loads(value)
    except (json.JSONDecodeError, ValueError):
        parsed_value = value

    config.set(key, parsed_value)
    save_config(target_dir, config)
    console.print(f"[green]>[/green] Set [bold]{key}[/bold] = {parsed_value}")


# ─── Main Entry Point ─────────────────────────────────────────────────────────

def main() -> None:
    """CLI entry point."""
    try:
        app()
    except Exception as e:  # pragma: no cover - last-resort guard
        error_console.print(f"[red]Unexpected error:[/red] {e}")
        raise SystemExit(EXIT_GENERAL_ERROR)


if __name__ == "__main__":
    main()
