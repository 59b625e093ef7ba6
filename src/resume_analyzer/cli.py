"""CLI interface using typer + rich."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from resume_analyzer.cache.analysis_cache import AnalysisCache
from resume_analyzer.config import load_config
from resume_analyzer.exceptions import AnalysisError, ValidationError
from resume_analyzer.models.analysis import AnalysisRecord
from resume_analyzer.parsers.jd_parser import load_job_file
from resume_analyzer.parsers.resume_parser import parse_resume
from resume_analyzer.pipeline.orchestrator import AnalysisPipeline
from resume_analyzer.storage.analysis_store import SQLiteAnalysisStore
from resume_analyzer.usage.usage_store import UsageStore

app = typer.Typer(
    name="resume-analyzer",
    help="AI resume scoring and job-fit feedback",
    no_args_is_help=True,
)
console = Console()

CRITERIA_LABELS = {
    "keywords_relevance": "Keywords",
    "achievements_metrics": "Achievements",
    "structure_readability": "Structure",
    "summary_clarity": "Summary",
    "overall_polish": "Polish",
}


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # Keep HTTP client chatter out of verbose output
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _print_record(record: AnalysisRecord, *, full: bool = False) -> None:
    result = record.result
    score_color = "green" if result.score >= 70 else "yellow" if result.score >= 50 else "red"
    header = f"[bold {score_color}]Score: {result.score}/100[/bold {score_color}]"
    if result.is_fallback:
        header += "  [red](FALLBACK - not a real analysis)[/red]"

    table = Table(show_header=True, header_style="bold")
    table.add_column("Criterion")
    table.add_column("Score", justify="right")
    table.add_column("Feedback")
    for name, label in CRITERIA_LABELS.items():
        criterion = getattr(result.scores, name)
        table.add_row(label, f"{criterion.score:g}/{criterion.max_score}", criterion.feedback)

    console.print(Panel(header + f"\n{result.general_feedback.overall}", title=f"Analysis #{record.id}"))
    console.print(table)

    console.print("\n[bold]Suggested improvements:[/bold]")
    for item in result.suggested_improvements:
        console.print(f"  - {item}")
    console.print(f"\n[dim]Skills: {', '.join(result.identified_skills)}[/dim]")

    if result.job_alignment is not None:
        alignment = result.job_alignment
        console.print(Panel(
            f"Role: {alignment.job.role_title or '-'}\n"
            f"Matched skills: {', '.join(alignment.matched_skills) or '-'}\n"
            f"Missing skills: {', '.join(alignment.missing_skills) or '-'}\n"
            f"Keyword overlap: {', '.join(alignment.keyword_overlap) or '-'}",
            title="Job alignment",
        ))
    if result.job_specific_feedback:
        text = result.job_specific_feedback
        if not full and len(text) > 1200:
            text = text[:1200] + "\n... (use `show --full` for the rest)"
        console.print(Panel(text, title="Job-fit feedback"))


def _open_store() -> SQLiteAnalysisStore:
    config = load_config()
    return SQLiteAnalysisStore(config.storage.resolved_db_path)


@app.command()
def analyze(
    resume: Path = typer.Argument(help="Resume file (PDF/DOCX/TXT/MD)"),
    job: Path = typer.Option(None, "--job", "-j", help="Job posting text/HTML file"),
    user: str = typer.Option("local", "--user", "-u", help="Owner id for the stored analysis"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Skip the analysis cache"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Score a resume, optionally against a job posting, and store the result."""
    _setup_logging(verbose)
    if not resume.exists():
        console.print(f"[red]Resume file not found: {resume}[/red]")
        raise typer.Exit(1)
    if job is not None and not job.exists():
        console.print(f"[red]Job posting file not found: {job}[/red]")
        raise typer.Exit(1)

    config = load_config()
    try:
        resume_text = parse_resume(resume)
    except AnalysisError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(1)
    job_text = load_job_file(str(job)) if job is not None else None

    if verbose:
        console.print(f"[dim]Resume: {len(resume_text)} chars[/dim]")
        if job_text:
            console.print(f"[dim]Job posting: {len(job_text)} chars[/dim]")
        console.print(f"[dim]Environment: {config.pipeline.environment}[/dim]")

    cache = None
    if not no_cache:
        cache = AnalysisCache(
            db_path=config.storage.resolved_cache_db_path,
            ttl_hours=config.storage.cache_ttl_hours,
        )
    pipeline = AnalysisPipeline.from_config(
        config,
        SQLiteAnalysisStore(config.storage.resolved_db_path),
        cache=cache,
        usage_store=UsageStore(config.storage.resolved_usage_db_path),
    )

    try:
        with console.status("Analyzing resume..."):
            record = asyncio.run(pipeline.analyze(resume_text, user, job_text))
    except ValidationError as exc:
        console.print(f"[red]The AI response was rejected: {exc}[/red]")
        for field in exc.fields[:10]:
            console.print(f"  - {field}")
        raise typer.Exit(2)
    except AnalysisError as exc:
        console.print(f"[red]Analysis failed at {exc.stage}: {exc}[/red]")
        raise typer.Exit(2)

    _print_record(record)


@app.command()
def show(
    analysis_id: int = typer.Argument(help="Analysis id"),
    full: bool = typer.Option(False, "--full", help="Print the whole job-fit narrative"),
) -> None:
    """Show a stored analysis."""
    record = _open_store().get_by_id(analysis_id)
    if record is None:
        console.print(f"[red]Analysis not found: {analysis_id}[/red]")
        raise typer.Exit(1)
    _print_record(record, full=full)


@app.command()
def history(
    user: str = typer.Option("local", "--user", "-u", help="Owner id"),
) -> None:
    """List a user's analyses, newest first."""
    records = _open_store().list_by_user(user)
    if not records:
        console.print(f"[yellow]No analyses for {user}.[/yellow]")
        return

    table = Table(title=f"Analyses for {user}")
    table.add_column("ID", justify="right")
    table.add_column("Created")
    table.add_column("Score", justify="right")
    table.add_column("Job")
    for record in records:
        alignment = record.result.job_alignment
        table.add_row(
            str(record.id),
            record.created_at.strftime("%Y-%m-%d %H:%M"),
            str(record.result.score),
            (alignment.job.role_title or "yes") if alignment else "-",
        )
    console.print(table)


@app.command()
def usage() -> None:
    """Show this month's usage and cost."""
    config = load_config()
    store = UsageStore(config.storage.resolved_usage_db_path)
    stats = store.get_monthly_stats()
    avg = stats["avg_score"] if stats["avg_score"] is not None else "-"
    console.print(Panel(
        f"Runs: {stats['total_runs']} (success {stats['success_rate']:.0f}%, cache hits {stats['cache_hits']})\n"
        f"Tokens: {stats['total_input_tokens']:,} in / {stats['total_output_tokens']:,} out\n"
        f"Cost: ${stats['total_cost_usd']:.4f}\n"
        f"Average score: {avg}",
        title=f"Usage {stats['month']}",
    ))
    failures = store.get_failures_by_stage()
    if failures:
        console.print("[yellow]Failures by stage:[/yellow]")
        for stage, count in sorted(failures.items()):
            console.print(f"  - {stage}: {count}")


if __name__ == "__main__":
    app()
