"""Typer CLI interface for taxplan."""

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from pathlib import Path
from typing import Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from taxplan.engines.baseline import BaselineTaxEngine
from taxplan.engines.catalog import default_catalog
from taxplan.engines.evaluator import evaluate as evaluate_rules
from taxplan.engines.impact import ImpactEngine
from taxplan.engines.rules import load_rule_table
from taxplan.exceptions import InvalidIntakeError, RulesParseError, TaxPlanError
from taxplan.models.impact import ImpactStrategyEvaluation
from taxplan.models.intake import NormalizedIntake
from taxplan.reports import AnalysisReportGenerator

console = Console()

app = typer.Typer(
    name="taxplan",
    help="taxplan: baseline tax, strategy eligibility and impact ranges.",
)
rules_app = typer.Typer(help="Inspect and validate strategy rule tables.")
app.add_typer(rules_app, name="rules")

RULES_OPTION_HELP = "Strategy rules JSON (defaults to the packaged table)"


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """taxplan: baseline tax, strategy eligibility and impact ranges."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()


class _DecimalEncoder(json.JSONEncoder):
    """JSON encoder that serializes Decimal as string."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


def _dumps(payload: Any) -> str:
    return json.dumps(payload, cls=_DecimalEncoder, indent=2, default=str)


def _fail(error: TaxPlanError) -> None:
    typer.echo(f"Error: {error}", err=True)
    if isinstance(error, RulesParseError):
        for issue in error.issues:
            typer.echo(f"  - {issue}", err=True)
    raise typer.Exit(1)


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise InvalidIntakeError(str(path), f"cannot read file ({e.strerror or e})") from e
    except json.JSONDecodeError as e:
        raise InvalidIntakeError(str(path), f"not valid JSON ({e.msg})") from e


def load_intake(path: Path) -> NormalizedIntake:
    """Read and validate an intake JSON file."""
    raw = _read_json(path)
    try:
        return NormalizedIntake.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first["loc"]) or "intake"
        raise InvalidIntakeError(field, first["msg"]) from e


@app.command()
def baseline(
    intake_file: Path = typer.Argument(..., help="Intake JSON file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Compute the baseline tax picture with no strategies applied."""
    try:
        intake = load_intake(intake_file)
    except TaxPlanError as e:
        _fail(e)

    computation = BaselineTaxEngine().compute(intake)

    if json_output:
        typer.echo(_dumps(computation.model_dump()))
        return

    totals = computation.totals
    table = Table(title=f"Baseline Tax ({computation.tax_year})")
    table.add_column("Line")
    table.add_column("Amount", justify="right")
    table.add_row("AGI (proxy)", f"${computation.agi:,.2f}")
    table.add_row("Taxable income", f"${totals.taxable_income:,.2f}")
    table.add_row("Federal tax", f"${totals.federal_tax:,.2f}")
    table.add_row("State tax", f"${totals.state_tax:,.2f}")
    table.add_row("Payroll tax", f"${totals.payroll_tax:,.2f}")
    table.add_row("Total tax", f"${totals.total_tax:,.2f}")
    console.print(table)
    for note in computation.state.notes:
        typer.echo(f"Note: {note}")


@app.command()
def evaluate(
    intake_file: Path = typer.Argument(..., help="Intake JSON file (partial intakes allowed)"),
    rules_path: Path | None = typer.Option(
        None, "--rules", envvar="TAXPLAN_RULES", help=RULES_OPTION_HELP,
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Evaluate strategy eligibility against an intake document."""
    try:
        document = _read_json(intake_file)
        if not isinstance(document, dict):
            raise InvalidIntakeError("intake", "expected a JSON object")
        table = load_rule_table(rules_path)
    except TaxPlanError as e:
        _fail(e)

    results = evaluate_rules(document, table)

    if json_output:
        typer.echo(_dumps([r.model_dump() for r in results]))
        return

    catalog = default_catalog()
    out = Table(title="Strategy Eligibility")
    out.add_column("Strategy")
    out.add_column("Status")
    out.add_column("Detail")
    for r in results:
        detail = r.summary
        if r.missing_required:
            detail = "missing: " + ", ".join(m.field for m in r.missing_required)
        out.add_row(catalog.label(r.strategy_id), str(r.status), detail)
    console.print(out)


@app.command()
def analyze(
    intake_file: Path = typer.Argument(..., help="Intake JSON file"),
    rules_path: Path | None = typer.Option(
        None, "--rules", envvar="TAXPLAN_RULES", help=RULES_OPTION_HELP,
    ),
    apply_potential: bool = typer.Option(
        False, "--apply-potential", help="Also apply strategies whose eligibility is POTENTIAL",
    ),
    workers: int = typer.Option(1, "--workers", min=1, help="Threads for what-if scenarios"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the result to a file"),
) -> None:
    """Run baseline, eligibility, core plan and what-if projections."""
    try:
        intake = load_intake(intake_file)
        table = load_rule_table(rules_path)
    except TaxPlanError as e:
        _fail(e)

    computation = BaselineTaxEngine().compute(intake)
    evaluations = evaluate_rules(intake, table)
    impact_evaluations = [ImpactStrategyEvaluation.from_evaluated(e) for e in evaluations]

    engine = ImpactEngine()
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            result = engine.run(
                intake, computation.totals, impact_evaluations, apply_potential, executor=pool
            )
    else:
        result = engine.run(intake, computation.totals, impact_evaluations, apply_potential)

    if json_output:
        text = _dumps({
            "baseline": computation.model_dump(),
            "evaluations": [e.model_dump() for e in evaluations],
            "impact": result.model_dump(),
        })
    else:
        text = AnalysisReportGenerator().render(computation, evaluations, result)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Wrote {output}")
    else:
        typer.echo(text)


@rules_app.command("validate")
def rules_validate(
    path: Path = typer.Argument(..., help="Rules JSON file to validate"),
) -> None:
    """Validate a strategy rules file and report every issue."""
    try:
        table = load_rule_table(path)
    except RulesParseError as e:
        _fail(e)

    typer.echo(
        f"OK: {len(table.rules)} rules for {len(table.strategy_ids)} strategies "
        f"(version {table.version or 'unversioned'})"
    )
