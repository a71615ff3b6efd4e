"""
Valuation commands for ClariValue CLI
"""

import json
import mimetypes
from pathlib import Path

import click

from clarivalue.application import OutcomeBuilder, SessionState, ValuationSession
from clarivalue.domain.exceptions import AggregationError, ProgressStoreError, ValuationError
from clarivalue.domain.models.valuation import BusinessPattern
from clarivalue.domain.services.clarification import category_label
from clarivalue.domain.services.input_validator import build_document_input, build_manual_input
from clarivalue.domain.services.valuation import PeriodWeighter, ValuationMethodAggregator
from clarivalue.infrastructure.database import InMemoryProgressStore, SqlProgressStore
from clarivalue.infrastructure.remote import AnalysisFunctionClient
from clarivalue.infrastructure.utils import safe_json_dumps

from ..utils import async_command, console, error_exit, render_outcome


@click.group()
@click.pass_context
def valuation(ctx):
    """Company valuation commands

    Examples:
        clarivalue valuation run --company "Acme Oy" --revenue "350 000" --profit "45 000" \\
            --assets "120 000" --liabilities "70 000"
        clarivalue valuation run --company "Acme Oy" --file statements.pdf --skip-questions
        clarivalue valuation blend analysis.json
    """
    pass


def _builder_from_settings(settings) -> OutcomeBuilder:
    return OutcomeBuilder(
        aggregator=ValuationMethodAggregator(settings.aggregation.display_method_cap),
        weighter=PeriodWeighter(settings.weighting.alphas()),
        default_pattern=BusinessPattern(settings.weighting.default_pattern),
    )


def _ask_questions(session: ValuationSession):
    """Prompt for every question, pre-filled with restored answers."""
    answers = session.answers
    for index, question in enumerate(session.questions, start=1):
        console.print(f"\n[bold]{index}/{len(session.questions)} {category_label(question.category)}[/bold]")
        console.print(question.question_text)
        if question.identified_value is not None:
            console.print(f"[dim]Identified: {safe_json_dumps(question.identified_value)}[/dim]")
        if question.normalization_purpose:
            console.print(f"[dim]{question.normalization_purpose}[/dim]")

        while True:
            text = click.prompt("Answer", default=answers.get(question.answer_key) or "", show_default=False)
            if session.answer(question.id, question.category, text) is None:
                break
            console.print("[red]An answer is required[/red]")


@valuation.command("run")
@click.option("--company", "-n", required=True, help="Company name")
@click.option("--company-id", help="Company identifier passed to the analysis service")
@click.option("--revenue", help="Revenue, e.g. '350 000'")
@click.option("--profit", help="Profit, e.g. '45 000'")
@click.option("--assets", help="Total assets")
@click.option("--liabilities", help="Total liabilities")
@click.option("--file", "file_path", type=click.Path(exists=True, dir_okay=False), help="Financial statement file")
@click.option("--mime-type", help="MIME type of --file (guessed from the extension by default)")
@click.option("--skip-questions", is_flag=True, help="Answer every clarification question with the default")
@click.option("--session-id", help="Resume saved answers of an earlier session")
@click.option("--no-persist", is_flag=True, help="Do not save answers to the progress database")
@click.option("--format", "-f", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
@async_command
async def run(
    ctx,
    company,
    company_id,
    revenue,
    profit,
    assets,
    liabilities,
    file_path,
    mime_type,
    skip_questions,
    session_id,
    no_persist,
    output_format,
):
    """Run a valuation against the analysis service

    Provide either the four manual figures or a financial statement file.
    """
    settings = ctx.obj["settings"]
    manual = [revenue, profit, assets, liabilities]

    try:
        if file_path:
            if any(v is not None for v in manual):
                raise click.UsageError("--file cannot be combined with manual figures")
            path = Path(file_path)
            valuation_input = build_document_input(
                company,
                path.read_bytes(),
                mime_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream",
                filename=path.name,
                company_id=company_id,
            )
        else:
            valuation_input = build_manual_input(company, revenue, profit, assets, liabilities, company_id=company_id)
    except ValuationError as e:
        error_exit(str(e))

    if no_persist:
        store = InMemoryProgressStore()
    else:
        try:
            store = SqlProgressStore(settings.database.url, echo=settings.database.echo)
        except ProgressStoreError as e:
            error_exit(f"{e} (use --no-persist to run without saving answers)")

    async with AnalysisFunctionClient(
        settings.remote.base_url, settings.remote.api_key, settings.remote.timeout
    ) as client:
        session = ValuationSession.from_settings(settings, client, progress_store=store, session_id=session_id)
        if not ctx.obj.get("quiet"):
            console.print(f"[dim]Session {session.session_id}[/dim]")

        try:
            await session.submit(valuation_input)
            while session.state is SessionState.AWAITING_ANSWERS:
                if skip_questions:
                    session.skip_all()
                else:
                    _ask_questions(session)
                await session.finalize()
        except ValuationError as e:
            error_exit(session.error or str(e))
        except Exception:
            # transport errors outside the remote error family still end the session in ERROR
            if session.state is not SessionState.ERROR:
                raise
            error_exit(session.error)
        finally:
            if ctx.obj.get("verbose") and session.executor.retry_count:
                console.print(f"[dim]{session.executor.retry_count} remote call(s) retried[/dim]")

    if output_format == "json":
        click.echo(safe_json_dumps(session.outcome.to_dict(), indent=2))
    else:
        render_outcome(session.outcome, company)


@valuation.command("blend")
@click.argument("analysis_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "-f", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.pass_context
def blend(ctx, analysis_file, output_format):
    """Value a saved final analysis payload locally

    ANALYSIS_FILE is a JSON file with per-period valuation metrics, either the
    bare analysis or a response wrapping it in 'financialAnalysis'.
    """
    with open(analysis_file, "r", encoding="utf-8") as f:
        try:
            payload = json.load(f)
        except json.JSONDecodeError as e:
            error_exit(f"{analysis_file} is not valid JSON: {e}")

    if isinstance(payload, dict) and isinstance(payload.get("financialAnalysis"), dict):
        payload = payload["financialAnalysis"]
    if not isinstance(payload, dict):
        error_exit(f"{analysis_file} must contain a JSON object")

    try:
        outcome = _builder_from_settings(ctx.obj["settings"]).build(payload)
    except AggregationError as e:
        error_exit(str(e))

    if output_format == "json":
        click.echo(safe_json_dumps(outcome.to_dict(), indent=2))
    else:
        render_outcome(outcome)
