"""
CLI entry point for the oilfield development economics engine.

Usage:
    # Base case with full sensitivity analysis
    python -m oilfield_economics

    # Custom parameters, reproducible Monte Carlo
    python -m oilfield_economics --inputs-json ./inputs/mero.json --seed 42

    # Apply a fiscal template and a production preset to the inputs
    python -m oilfield_economics --fiscal-template mero_buzios --production-preset pre_salt

    # Deterministic evaluation only
    python -m oilfield_economics --no-tornado --no-monte-carlo

    # List available templates and presets
    python -m oilfield_economics --list-templates
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from oilfield_economics.models import Results

console = Console()


def _show_templates() -> None:
    """Display fiscal templates and production presets as Rich tables."""
    from oilfield_economics.fiscal_engine import FISCAL_TEMPLATES
    from oilfield_economics.production import PRODUCTION_PRESETS

    table = Table(title="[bold cyan]Fiscal Templates[/bold cyan]", box=box.ROUNDED)
    table.add_column("Key", style="bold green", min_width=16)
    table.add_column("Regime")
    table.add_column("Description", style="dim")
    for key, template in sorted(FISCAL_TEMPLATES.items()):
        table.add_row(key, template["regime"], template["regime_description"])
    console.print(table)

    table = Table(title="[bold cyan]Production Presets[/bold cyan]", box=box.ROUNDED)
    table.add_column("Key", style="bold green", min_width=12)
    table.add_column("Ramp-up", justify="right")
    table.add_column("Plateau", justify="right")
    table.add_column("Decline", justify="right")
    table.add_column("Description", style="dim")
    for key, preset in sorted(PRODUCTION_PRESETS.items()):
        table.add_row(
            key,
            f"{preset['ramp_up_years']} yr",
            f"{preset['plateau_years']} yr",
            f"{preset['decline_pct']:.0f}%/yr",
            preset["description"],
        )
    console.print(table)


def _fmt_usd_m(v: float | None) -> str:
    return f"${v/1e6:,.1f}M" if v is not None else "N/A"


def _print_result_summary(results: Results) -> None:
    """Print headline metrics, flags, tornado and Monte Carlo summaries."""
    m = results.metrics

    def _line(label: str, value) -> str:
        return f"  [bold]{label:<28}[/bold] {value}"

    lines = [
        _line("NPV:", _fmt_usd_m(m.npv_usd)),
        _line("IRR:", f"{m.irr_pct:.1f}%" if m.irr_pct is not None else "N/A"),
        _line("Spread (IRR − r):", f"{m.spread_pct:+.1f} pp" if m.spread_pct is not None else "N/A"),
        _line("NPV / Investment:", f"{m.npv_investment_ratio:.2f}" if m.npv_investment_ratio is not None else "N/A"),
        _line("Payback:", f"{m.payback_years:.1f} years" if m.payback_years is not None else "N/A"),
        _line("Discounted Payback:", f"{m.discounted_payback_years:.1f} years" if m.discounted_payback_years is not None else "N/A"),
        _line("Breakeven Brent:", f"${m.breakeven_price_usd_bbl:.1f}/bbl" if m.breakeven_price_usd_bbl is not None else "N/A"),
    ]
    content = "\n".join(lines)

    if m.unavailable:
        content += "\n\n[dim]Unavailable: " + "; ".join(f"{k}: {v}" for k, v in m.unavailable.items()) + "[/dim]"

    if results.flags:
        flag_lines = [f"  {flag.severity} {flag.message}" for flag in results.flags]
        content += "\n\n[bold]Quality Flags:[/bold]\n" + "\n".join(flag_lines)

    console.print(Panel(
        content,
        title="[bold cyan]Field Development Economics[/bold cyan]",
        border_style="cyan",
        expand=False,
    ))

    if results.tornado:
        table = Table(title="[bold cyan]Tornado — NPV Sensitivity[/bold cyan]", box=box.SIMPLE)
        table.add_column("Variable", style="bold white")
        table.add_column("Low", justify="right")
        table.add_column("High", justify="right")
        table.add_column("NPV @ Low", justify="right")
        table.add_column("NPV @ High", justify="right")
        table.add_column("Swing", justify="right", style="green")
        for row in results.tornado:
            table.add_row(
                row.label,
                f"{row.low_value:.3g}",
                f"{row.high_value:.3g}",
                _fmt_usd_m(row.npv_low_usd),
                _fmt_usd_m(row.npv_high_usd),
                _fmt_usd_m(row.swing_usd),
            )
        console.print(table)

    mc = results.monte_carlo
    if mc is not None:
        corr = f"{mc.correlation:.3f}" if mc.correlation is not None else "N/A"
        console.print(
            f"[bold]Monte Carlo:[/bold] {mc.valid_samples}/{mc.iterations} valid samples · "
            f"Pearson r (spread vs NPV/Investment) = {corr}"
            + (f" · seed {mc.seed}" if mc.seed is not None else "")
        )

    for warning in results.warnings:
        console.print(f"[yellow]Warning: {warning}[/yellow]")


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Oilfield development economics engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--inputs-json",
        metavar="PATH",
        help="Path to JSON file with ProjectParameters (omitted fields use defaults)",
    )
    parser.add_argument(
        "--fiscal-template",
        metavar="KEY",
        help="Apply a named fiscal template (use --list-templates to see keys)",
    )
    parser.add_argument(
        "--production-preset",
        metavar="KEY",
        help="Apply a named production shape and size the peak rate from reserves",
    )
    parser.add_argument(
        "--list-templates",
        action="store_true",
        help="Show fiscal templates and production presets and exit",
    )
    parser.add_argument(
        "--no-tornado",
        action="store_true",
        help="Skip tornado sensitivity",
    )
    parser.add_argument(
        "--no-monte-carlo",
        action="store_true",
        help="Skip Monte Carlo sampling",
    )
    parser.add_argument(
        "--iterations",
        type=int,
        default=500,
        help="Monte Carlo trials (default: 500)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Monte Carlo seed for reproducible runs",
    )
    parser.add_argument(
        "--output-json",
        metavar="PATH",
        help="Write full results as JSON",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # ── --list-templates ──────────────────────────────────────────────────────
    if args.list_templates:
        _show_templates()
        sys.exit(0)

    from oilfield_economics.engine import parse_parameters, run_analysis
    from oilfield_economics.errors import ConfigurationError
    from oilfield_economics.fiscal_engine import get_fiscal_template
    from oilfield_economics.production import apply_production_preset

    # ── Load inputs ───────────────────────────────────────────────────────────
    raw: dict = {}
    if args.inputs_json:
        inputs_path = Path(args.inputs_json)
        if not inputs_path.exists():
            console.print(f"[red]Error: inputs file not found: {inputs_path}[/red]")
            sys.exit(1)
        raw = json.loads(inputs_path.read_text(encoding="utf-8"))

    try:
        params = parse_parameters(raw)
        if args.fiscal_template:
            fiscal = get_fiscal_template(args.fiscal_template, base=params.fiscal)
            params = params.model_copy(update={"fiscal": fiscal})
        if args.production_preset:
            params = apply_production_preset(params, args.production_preset)
    except (ConfigurationError, KeyError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print("[bold cyan]Field Development Economics[/bold cyan]")
    if args.inputs_json:
        console.print(f"[dim]Inputs: {args.inputs_json}[/dim]")
    console.print()

    results = run_analysis(
        params,
        run_tornado_analysis=not args.no_tornado,
        run_monte_carlo_analysis=not args.no_monte_carlo,
        monte_carlo_iterations=args.iterations,
        seed=args.seed,
    )

    if results.status == "error":
        console.print(f"[red]Error ({results.error.kind}): {results.error.message}[/red]")
        sys.exit(1)

    _print_result_summary(results)

    if args.output_json:
        out = Path(args.output_json)
        out.write_text(results.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"\n  [green]✓[/green] results: [dim]{out}[/dim]")


if __name__ == "__main__":
    main()
