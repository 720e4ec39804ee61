"""
Oilfield development economics engine.

A deterministic cash-flow, metrics and sensitivity engine for offshore and
onshore oil field developments under Brazilian fiscal regimes.
Architecture-agnostic: callable from the CLI, a web backend or a notebook.

Public API:
    from oilfield_economics.engine import run_analysis, evaluate_project
    from oilfield_economics.calculator import (
        calculate_npv, calculate_irr, calculate_payback, calculate_breakeven_price
    )
    from oilfield_economics.fiscal_engine import get_fiscal_template
    from oilfield_economics.models import ProjectParameters
"""
