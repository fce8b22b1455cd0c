# ABOUTME: Provides a CLI that rolls stored practice attempts up into coaching reports.
# ABOUTME: Prints totals, trouble sounds and words, and sessions; plans and compacts histories.

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from src.common.summary import compact_attempt
from src.rollups.config import RollupOptions, load_rollup_config
from src.rollups.engine import compute_rollups
from src.rollups.frames import export_rollup
from src.rollups.history import load_attempts, write_attempts
from src.rollups.next_practice import build_next_practice_plan

console = Console()
app = typer.Typer(help="Roll practice-attempt histories up into trouble lists, trends, and sessions.")


def _default_config() -> Path:
    return Path("configs/rollups.yaml")


def _load(attempts_path: Path):
    if not attempts_path.exists():
        console.print(f"[red]Missing attempts file at {attempts_path}[/red]")
        raise typer.Exit(code=1)
    try:
        return load_attempts(attempts_path)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--attempts") from exc


def _options(config: Path, window_days: Optional[int]) -> RollupOptions:
    options = load_rollup_config(config) if config.exists() else RollupOptions()
    if window_days is None:
        return options
    try:
        return RollupOptions(
            window_days=window_days,
            min_word_count=options.min_word_count,
            min_phon_count=options.min_phon_count,
            metrics=options.metrics,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--window-days") from exc


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.1f}"


def _fmt_ts(ts_ms: Optional[float]) -> str:
    return "-" if ts_ms is None else datetime.fromtimestamp(ts_ms / 1000.0).strftime("%Y-%m-%d %H:%M")


@app.command()
def report(
    attempts_path: Path = typer.Option(..., "--attempts", help="JSON, JSON Lines, or history-API export of attempts."),
    config: Path = typer.Option(_default_config(), "--config", help="Rollup config YAML."),
    window_days: Optional[int] = typer.Option(None, "--window-days", help="Override the trend window length."),
    top: int = typer.Option(10, "--top", help="Number of trouble sounds/words to show."),
    export_dir: Optional[Path] = typer.Option(None, "--export-dir", help="Write parquet tables and rollup.json here."),
) -> None:
    """
    Print a coaching report for one learner's attempt history.
    """
    attempts = _load(attempts_path)
    options = _options(config, window_days)
    typer.echo(f"[rollups] Rolling up {len(attempts)} attempts over {options.window_days} days")
    result = compute_rollups(attempts, options)

    totals = result.totals
    console.rule("[bold blue]Practice Rollup[/bold blue]")
    console.print(f"[bold]Attempts:[/] {totals.attempts}  [bold]Sessions:[/] {totals.sessions}")
    console.print(f"[bold]Average score:[/] {totals.avg_score:.1f}  [bold]Last attempt:[/] {_fmt_ts(totals.last_ts)}")
    if totals.best_day_score is not None:
        console.print(f"[bold]Best day:[/] {_fmt_ts(totals.best_day_ts)[:10]} ({totals.best_day_score:.1f})")
    if totals.top_passage_key:
        console.print(f"[bold]Most practiced:[/] {totals.top_passage_key} ({totals.top_passage_count} attempts)")

    console.print()
    console.print("[bold red]Trouble sounds[/bold red]")
    phon_table = Table(show_header=True, header_style="bold magenta")
    for column in ("Sound", "Avg", "Count", "Days", "Priority", "Examples"):
        phon_table.add_column(column)
    for p in result.trouble.phonemes_all[:top]:
        phon_table.add_row(
            f"/{p.ipa}/", _fmt(p.avg), f"{p.count:g}", str(p.days), f"{p.priority:.3f}", ", ".join(p.examples)
        )
    console.print(phon_table)

    console.print()
    console.print("[bold yellow]Trouble words[/bold yellow]")
    word_table = Table(show_header=True, header_style="bold magenta")
    for column in ("Word", "Avg", "Count", "Days", "Priority"):
        word_table.add_column(column)
    for w in result.trouble.words_all[:top]:
        word_table.add_row(w.word, _fmt(w.avg), f"{w.count:g}", str(w.days), f"{w.priority:.3f}")
    console.print(word_table)

    console.print()
    console.print("[bold green]Metrics[/bold green]")
    metric_table = Table(show_header=True, header_style="bold magenta")
    for column in ("Metric", "Last", "7-day", "30-day", "Best day"):
        metric_table.add_column(column)
    for metric in result.metrics.values():
        best = f"{metric.best_day.day} ({metric.best_day.avg:.1f})" if metric.best_day else "-"
        metric_table.add_row(metric.label, _fmt(metric.last), _fmt(metric.avg7), _fmt(metric.avg30), best)
    console.print(metric_table)

    console.print()
    console.print("[bold cyan]Sessions[/bold cyan]")
    session_table = Table(show_header=True, header_style="bold magenta")
    for column in ("Session", "Passage", "Attempts", "Avg", "Started", "AI feedback"):
        session_table.add_column(column)
    for s in result.sessions[:top]:
        session_table.add_row(
            s.session_id, s.passage_key or "-", str(s.count), _fmt(s.avg_score), _fmt_ts(s.ts_min), "yes" if s.has_ai else ""
        )
    console.print(session_table)

    if export_dir is not None:
        written = export_rollup(result, export_dir)
        typer.echo(f"[rollups] Wrote {len(written)} artifacts to {export_dir}")


@app.command()
def plan(
    attempts_path: Path = typer.Option(..., "--attempts", help="Attempt history to roll up."),
    passage_meta_path: Path = typer.Option(..., "--passage-meta", help="JSON of passage key -> {counts: {CODE: n}}."),
    config: Path = typer.Option(_default_config(), "--config", help="Rollup config YAML."),
) -> None:
    """
    Suggest the next practice passage for the top trouble sound.
    """
    attempts = _load(attempts_path)
    if not passage_meta_path.exists():
        console.print(f"[red]Missing passage metadata at {passage_meta_path}[/red]")
        raise typer.Exit(code=1)
    passage_meta = json.loads(passage_meta_path.read_text(encoding="utf-8"))
    if not isinstance(passage_meta, dict):
        raise typer.BadParameter("Passage metadata must be a JSON object.", param_hint="--passage-meta")

    result = compute_rollups(attempts, _options(config, None))
    next_plan = build_next_practice_plan(result, passage_meta)
    if next_plan is None:
        console.print("[yellow]Not enough phoneme data to plan the next practice yet.[/yellow]")
        return

    console.print(f"[bold]Focus sound:[/] /{next_plan.focus_ipa}/ ({next_plan.focus_code})")
    console.print(f"[bold]Harvard list:[/] {next_plan.harvard_n} ({next_plan.harvard_score:g} hits)")
    if next_plan.passage_key:
        console.print(f"[bold]Passage:[/] {next_plan.passage_key} ({next_plan.passage_score:g} hits)")


@app.command()
def compact(
    attempts_path: Path = typer.Option(..., "--attempts", help="Attempt history with raw assessment results."),
    output: Path = typer.Option(..., "--output", help="Where to write the compacted history JSON."),
) -> None:
    """
    Replace raw assessment results with compact summaries.
    """
    attempts = _load(attempts_path)
    compacted = [compact_attempt(a) for a in attempts]
    write_attempts(compacted, output)
    typer.echo(f"[rollups] Wrote {len(compacted)} compacted attempts to {output}")


if __name__ == "__main__":
    app()
