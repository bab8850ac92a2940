"""momentguard CLI: run and inspect content moderation from the shell."""

import json
import logging
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from momentguard import __version__

console = Console()

DEFAULT_DATA_DIR = str(Path.home() / ".momentguard")

_VERDICT_STYLES = {
    "allowed": "green",
    "blocked": "red",
    "flagged_for_review": "yellow",
}


def _engine(data_dir: str, config_path: str | None, preset: str, dry_run: bool = False):
    from momentguard.moderation.config import load_config
    from momentguard.moderation.events import ModerationEventLog
    from momentguard.moderation.factory import ModerationEngineFactory, preset_config
    from momentguard.storage.file_store import FileContentStorage, JsonModerationRepository

    config = load_config(config_path) if config_path else preset_config(preset)
    if dry_run:
        return ModerationEngineFactory.create_dry_run(config)

    base = Path(data_dir)
    return ModerationEngineFactory.create(
        config=config,
        repository=JsonModerationRepository(base / "records"),
        storage=FileContentStorage(base / "content"),
        event_log=ModerationEventLog(base / "events"),
    )


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """momentguard: content moderation for comments and moment descriptions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ── Moderate ─────────────────────────────────────────────────────────


@main.command()
@click.argument("text")
@click.option("--content-id", "-c", required=True, help="Id of the content being checked")
@click.option("--author-id", "-a", default="cli", help="Id of the submitting user")
@click.option(
    "--type",
    "content_type",
    default="comment",
    type=click.Choice(["comment", "moment_description", "other_text"]),
)
@click.option("--config", "config_path", default=None, help="YAML engine configuration")
@click.option("--preset", default="default", type=click.Choice(["default", "strict", "permissive"]))
@click.option("--data-dir", "-d", default=DEFAULT_DATA_DIR, help="Where records and content are kept")
@click.option("--dry-run", is_flag=True, help="Decide without persisting anything")
def moderate(
    text: str,
    content_id: str,
    author_id: str,
    content_type: str,
    config_path: str | None,
    preset: str,
    data_dir: str,
    dry_run: bool,
):
    """Moderate TEXT and record the decision."""
    from momentguard.moderation.errors import ConfigError, ModerationError
    from momentguard.moderation.models import ContentType, ModerationRequest

    try:
        engine = _engine(data_dir, config_path, preset, dry_run=dry_run)
    except ConfigError as e:
        console.print(f"[red]Invalid configuration:[/] {e}")
        raise SystemExit(2)

    request = ModerationRequest(
        content_id=content_id,
        content_type=ContentType(content_type),
        text=text,
        author_id=author_id,
    )
    try:
        verdict = engine.moderate(request)
    except ModerationError as e:
        console.print(f"[red]{type(e).__name__}:[/] {e}")
        raise SystemExit(1)

    style = _VERDICT_STYLES[verdict.decision.verdict.value]
    console.print(
        Panel(
            f"[{style}]{verdict.decision.verdict.value.upper()}[/]\n"
            f"Reason: {verdict.decision.reason}\n"
            f"Policy: {verdict.decision.applied_policy_version}\n"
            f"Record: {verdict.record_id}" + ("  (dry run)" if dry_run else ""),
            title=f"Moderation: {content_id}",
        )
    )


# ── Inspect ──────────────────────────────────────────────────────────


@main.command()
@click.argument("content_id")
@click.option("--data-dir", "-d", default=DEFAULT_DATA_DIR, help="Where records and content are kept")
@click.option("--json", "as_json", is_flag=True, help="Print the raw record as JSON")
def show(content_id: str, data_dir: str, as_json: bool):
    """Show the moderation record for CONTENT_ID."""
    from momentguard.storage.file_store import JsonModerationRepository

    record = JsonModerationRepository(Path(data_dir) / "records").find_by_content_id(content_id)
    if record is None:
        console.print(f"[yellow]No moderation record for {content_id}.[/]")
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps(record.to_dict(), indent=2))
        return

    style = _VERDICT_STYLES[record.decision.verdict.value]
    console.print(f"\n[bold]{record.content_id}[/] ({record.content_type.value}, author {record.author_id})")
    console.print(f"  Verdict: [{style}]{record.decision.verdict.value}[/]  {record.decision.reason}")
    console.print(f"  Review:  {record.review_status.value}")
    console.print(f"  Record:  {record.id}  created {record.created_at}")

    if record.detection.categories:
        table = Table(title=f"Detection ({record.detection.detector_version})")
        table.add_column("Category", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Span")
        for entry in record.detection.categories:
            span = f"{entry.matched_span[0]}-{entry.matched_span[1]}" if entry.matched_span else ""
            table.add_row(entry.category, f"{entry.score:.2f}", span)
        console.print(table)


@main.command()
@click.argument("content_id")
@click.option("--uphold/--overturn", default=True, help="Reviewer agrees with the flag, or not")
@click.option("--data-dir", "-d", default=DEFAULT_DATA_DIR, help="Where records and content are kept")
def review(content_id: str, uphold: bool, data_dir: str):
    """Resolve the pending human review for CONTENT_ID."""
    from momentguard.moderation.errors import ModerationError
    from momentguard.moderation.events import ModerationEventLog
    from momentguard.moderation.review import resolve_review
    from momentguard.storage.file_store import JsonModerationRepository

    base = Path(data_dir)
    try:
        record = resolve_review(
            JsonModerationRepository(base / "records"),
            content_id,
            upheld=uphold,
            event_log=ModerationEventLog(base / "events"),
        )
    except ModerationError as e:
        console.print(f"[red]{type(e).__name__}:[/] {e}")
        raise SystemExit(1)

    console.print(f"  [green]v[/] {content_id}: {record.review_status.value}")


@main.command()
@click.option("--data-dir", "-d", default=DEFAULT_DATA_DIR, help="Where records and content are kept")
def stats(data_dir: str):
    """Summarize recorded moderation decisions."""
    engine = _engine(data_dir, None, "default")
    s = engine.stats()

    table = Table(title="Moderation Stats")
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Total", str(s.total))
    table.add_row("Allowed", str(s.allowed))
    table.add_row("Blocked", str(s.blocked))
    table.add_row("Flagged", str(s.flagged))
    table.add_row("Pending review", str(s.pending_review))
    console.print(table)


# ── Config ───────────────────────────────────────────────────────────


@main.command(name="config")
@click.option("--preset", default="default", type=click.Choice(["default", "strict", "permissive"]))
def dump_config(preset: str):
    """Print a preset configuration as YAML (a starting point for --config)."""
    from momentguard.moderation.factory import preset_config

    click.echo(yaml.safe_dump(preset_config(preset).to_dict(), sort_keys=False))


if __name__ == "__main__":
    main()
