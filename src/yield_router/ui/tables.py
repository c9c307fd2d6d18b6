"""
Rich renderables for the CLI commands.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal

from rich import box
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from yield_router.domain.models import (
    AllocationPlan,
    Opportunity,
    RebalanceDecision,
    RiskScore,
    RouteAction,
    RouteActionType,
    SustainabilityReport,
)

_HUNDRED = Decimal("100")


def _pct(value: Decimal, places: int = 2) -> str:
    return f"{value * _HUNDRED:.{places}f}%"


def opportunities_table(
    ranked: Sequence[Opportunity],
    scores: Mapping[str, RiskScore] | None = None,
    title: str = "Risk-adjusted opportunities",
) -> Table:
    t = Table(title=title, box=box.MINIMAL_DOUBLE_HEAD, expand=True)
    t.add_column("#", justify="right", style="dim")
    t.add_column("Protocol", style="bold")
    t.add_column("Chain")
    t.add_column("APY", justify="right")
    t.add_column("Risk", justify="right")
    t.add_column("Adj. APY", justify="right", style="green")
    t.add_column("TVL", justify="right")
    if scores is not None:
        t.add_column("TVL/Rep/Age/Exploit", justify="right", style="dim")

    for i, opp in enumerate(ranked, start=1):
        row = [
            str(i),
            opp.display_name,
            opp.chain,
            _pct(opp.apy),
            f"{opp.risk_score:.1f}",
            _pct(opp.risk_adjusted_apy),
            f"${opp.tvl_usd / Decimal('1000000'):.1f}M",
        ]
        if scores is not None:
            s = scores.get(opp.protocol_id)
            row.append(
                f"{s.tvl_score}/{s.reputation_score}/{s.age_score}/{s.exploit_score}" if s else "-"
            )
        t.add_row(*row)

    if not ranked:
        t.add_row(*(["-"] * len(t.columns)))
    return t


def routes_table(opportunities: Sequence[Opportunity], current_chain: str) -> Table:
    t = Table(title=f"Cross-chain routes from {current_chain}", box=box.MINIMAL_DOUBLE_HEAD, expand=True)
    t.add_column("Protocol", style="bold")
    t.add_column("Chain")
    t.add_column("APY", justify="right")
    t.add_column("Risk", justify="right")
    t.add_column("Adj. APY", justify="right", style="green")
    t.add_column("Cost", justify="right")
    t.add_column("Net APY", justify="right")
    t.add_column("Min hold", justify="right")
    t.add_column("Type")
    t.add_column("Liquidity")

    for opp in opportunities:
        chain = Text(opp.chain, style="cyan" if opp.chain == current_chain else "")
        net_style = "green" if opp.net_apy >= 0 else "red"
        t.add_row(
            opp.display_name,
            chain,
            _pct(opp.apy),
            f"{opp.risk_score:.0f}",
            _pct(opp.risk_adjusted_apy),
            f"${opp.total_cost_usd:.2f}",
            Text(_pct(opp.net_apy), style=net_style),
            f"{opp.min_hold_days}d" if opp.breakeven_reachable else "never",
            opp.category.value,
            opp.liquidity_tier.value,
        )

    if not opportunities:
        t.add_row(*(["-"] * 10))
    return t


def allocation_table(plan: AllocationPlan, total_value: Decimal) -> Table:
    t = Table(title="Target allocation", box=box.SIMPLE_HEAVY)
    t.add_column("Protocol", style="bold")
    t.add_column("Weight", justify="right")
    t.add_column("Value", justify="right")
    for protocol_id, weight in plan.items():
        t.add_row(protocol_id, _pct(weight), f"${weight * total_value:.2f}")
    if plan.is_empty:
        t.add_row("-", "-", "-")
    return t


def decision_panel(decision: RebalanceDecision) -> Panel:
    body = Text()
    verdict, style = ("REBALANCE", "bold green") if decision.should_act else ("HOLD", "bold yellow")
    body.append(f"{verdict}\n", style=style)
    body.append(f"{decision.reason}\n\n")
    body.append(f"Expected APY improvement: {_pct(decision.expected_apy_improvement)}\n")
    body.append(f"Estimated cost: ${decision.estimated_cost_usd:.2f}\n")

    if decision.transfers:
        body.append("\nTransfers:\n", style="bold underline")
        for tr in decision.transfers:
            body.append(f"  {tr.source} -> {tr.destination}: ${tr.amount_usd:.2f}\n")

    return Panel(body, title="Decision", border_style="green" if decision.should_act else "yellow", box=box.ROUNDED)


def route_action_panel(action: RouteAction) -> Panel:
    body = Text()
    style = "bold yellow" if action.action is RouteActionType.HOLD else "bold green"
    body.append(f"{action.action.value.upper()}\n", style=style)
    body.append(f"{action.reason}\n")
    opp = action.opportunity
    if opp is not None:
        body.append(f"\nTarget: {opp.display_name} on {opp.chain}\n")
        body.append(f"APY {_pct(opp.apy)} | risk {opp.risk_score:.0f} | adj {_pct(opp.risk_adjusted_apy)}\n")
        if opp.total_cost_usd > 0:
            body.append(f"Move cost ${opp.total_cost_usd:.2f}, break-even {opp.min_hold_days}d\n")
    if action.amount_usd is not None:
        body.append(f"Amount: ${action.amount_usd:.2f}\n")
    return Panel(body, title="Recommendation", border_style="blue", box=box.ROUNDED)


def sustainability_panel(report: SustainabilityReport, principal: Decimal, apy: Decimal) -> Panel:
    body = Text()
    body.append(f"Principal: ${principal:.2f} @ {_pct(apy)}\n")
    body.append(f"Daily yield: ${report.daily_yield:.4f}\n")
    body.append(f"Daily cost: ${report.daily_cost:.4f}\n")
    body.append("Net daily: ", style="bold")
    body.append(f"${report.net_daily:.4f}\n", style="green" if report.is_sustainable else "red")
    body.append(f"Monthly profit: ${report.monthly_profit:.2f}\n")
    if not report.is_sustainable:
        if report.required_principal is not None:
            body.append(f"Principal needed at this APY: ${report.required_principal:.2f}\n")
        if report.required_apy is not None:
            body.append(f"APY needed at this principal: {_pct(report.required_apy)}\n")
    title = "Self-sustaining" if report.is_sustainable else "Not self-sustaining"
    return Panel(body, title=title, border_style="green" if report.is_sustainable else "red", box=box.ROUNDED)
