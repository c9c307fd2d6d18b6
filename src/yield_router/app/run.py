"""
Entry points for router commands.

Each command sets up the environment and runs the appropriate logic.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
import sys
from decimal import Decimal
from pathlib import Path

# Load .env file BEFORE importing settings
from dotenv import load_dotenv

for env_path in [
    Path.cwd() / ".env",
    Path(__file__).parent.parent.parent.parent / ".env",  # Project root
]:
    if env_path.exists():
        load_dotenv(env_path)
        break
else:
    load_dotenv()

from rich.console import Console  # noqa: E402

from yield_router.adapters.execution.dry_run import DryRunExecutor  # noqa: E402
from yield_router.adapters.feeds.defillama import DefiLlamaFeed  # noqa: E402
from yield_router.adapters.vault.file_vault import FileVault  # noqa: E402
from yield_router.config.settings import Settings, get_settings  # noqa: E402
from yield_router.domain.errors import DomainError, FeedUnavailable  # noqa: E402
from yield_router.domain.models import HeldPosition, RiskProfile  # noqa: E402
from yield_router.observability.logging import LOG_TAG_HEALTH, get_logger, setup_logging  # noqa: E402
from yield_router.services.costs import calculate_self_sustainability  # noqa: E402
from yield_router.services.engine import RebalanceEngine  # noqa: E402
from yield_router.services.gate import DecisionGate  # noqa: E402
from yield_router.services.ranking import (  # noqa: E402
    min_risk_for_profile,
    rank_cross_chain_opportunities,
    rank_opportunities,
)
from yield_router.services.registry import ProtocolRegistry  # noqa: E402
from yield_router.services.routing import RouteAdvisor  # noqa: E402
from yield_router.services.scoring import score_records  # noqa: E402
from yield_router.ui.tables import (  # noqa: E402
    allocation_table,
    decision_panel,
    opportunities_table,
    route_action_panel,
    routes_table,
    sustainability_panel,
)

console = Console()


def _log_startup_banner(logger, *, env: str, settings: Settings) -> None:
    rb = settings.rebalance
    logger.warning("========================================================")
    if settings.engine.dry_run:
        logger.warning("STARTING IN DRY-RUN MODE (TRANSFERS ARE SIMULATED)")
    else:
        logger.warning("STARTING WITH DRY-RUN DISABLED (NO LIVE EXECUTOR CONFIGURED, SIMULATING)")
    logger.warning(
        f"env={env} | asset={settings.feed.asset} | vault={settings.engine.vault_handle} "
        f"| protocols={len(settings.protocols)} | chains={len(settings.chains)}"
    )
    logger.warning(
        "rebalance: "
        f"max_allocation_per_protocol={rb.max_allocation_per_protocol} "
        f"min_protocols_for_diversity={rb.min_protocols_for_diversity} "
        f"min_risk_score={rb.min_risk_score} "
        f"min_apy_difference_to_rebalance={rb.min_apy_difference_to_rebalance} "
        f"min_time_between_rebalances={rb.min_time_between_rebalances}s "
        f"max_gas_cost_for_rebalance={rb.max_gas_cost_for_rebalance}"
    )
    logger.warning("========================================================")


def _load(env: str) -> tuple[Settings, ProtocolRegistry] | None:
    """Settings + registry, or None when validation fails (errors are logged)."""
    settings = get_settings(env)
    setup_logging(settings)
    logger = get_logger(__name__)

    errors = settings.validate_settings()
    if errors:
        for error in errors:
            logger.error(f"Config error: {error}")
        return None
    return settings, ProtocolRegistry.from_settings(settings)


async def run_rank(env: str = "development", asset: str | None = None) -> int:
    """Print the risk-ranked opportunity list."""
    loaded = _load(env)
    if loaded is None:
        return 2
    settings, registry = loaded
    logger = get_logger(__name__)

    feed = DefiLlamaFeed(settings)
    try:
        records = await feed.fetch_yield_records(asset or settings.feed.asset)
    except FeedUnavailable as e:
        logger.error(f"Feed unavailable: {e.message}", extra={"error_code": e.error_code})
        return 1
    finally:
        await feed.close()

    scores = score_records(records, registry, settings.scoring)
    ranked = rank_opportunities(records, scores, settings.rebalance.min_risk_score, registry)
    console.print(opportunities_table(ranked, scores))
    return 0


async def run_routes(
    env: str = "development",
    *,
    chain: str | None = None,
    principal: Decimal = Decimal("1000"),
    profile: str | None = None,
    held: HeldPosition | None = None,
) -> int:
    """Print cross-chain routes and the recommended next action."""
    loaded = _load(env)
    if loaded is None:
        return 2
    settings, registry = loaded
    logger = get_logger(__name__)

    cc = settings.cross_chain
    if chain:
        cc = cc.model_copy(update={"current_chain": chain})
    if profile:
        cc = cc.model_copy(update={"risk_profile": RiskProfile(profile).value})
    settings = settings.model_copy(update={"cross_chain": cc})

    feed = DefiLlamaFeed(settings)
    try:
        records = await feed.fetch_yield_records(settings.feed.asset)
    except FeedUnavailable as e:
        logger.error(f"Feed unavailable: {e.message}", extra={"error_code": e.error_code})
        return 1
    finally:
        await feed.close()

    opportunities = rank_cross_chain_opportunities(
        records,
        registry,
        cc,
        min_risk_score=min_risk_for_profile(cc.risk_profile, cc),
    )
    console.print(routes_table(opportunities, cc.current_chain))

    advisor = RouteAdvisor(settings)
    console.print(route_action_panel(advisor.advise(opportunities, held, principal)))
    return 0


async def run_decide(env: str = "development", *, vault: str | None = None, execute: bool = False) -> int:
    """Run a single decision cycle and print the outcome."""
    loaded = _load(env)
    if loaded is None:
        return 2
    settings, registry = loaded
    logger = get_logger(__name__)

    feed = DefiLlamaFeed(settings)
    engine = RebalanceEngine(settings, feed, FileVault(), DecisionGate(settings.rebalance), registry)
    try:
        result = await engine.run_cycle(vault)
        if execute:
            await engine.execute(result, DryRunExecutor())
    except FeedUnavailable as e:
        logger.error(f"Feed unavailable, no decision made: {e.message}", extra={"error_code": e.error_code})
        return 1
    except DomainError as e:
        logger.error(f"Cycle failed, no decision made: {e.message}", extra={"error_code": e.error_code})
        return 1
    finally:
        await feed.close()

    console.print(opportunities_table(result.opportunities, result.scores))
    console.print(allocation_table(result.plan, result.total_value))
    console.print(decision_panel(result.decision))
    return 0


async def run_loop(env: str = "development", *, vault: str | None = None, max_cycles: int | None = None) -> int:
    """
    Decision loop.

    One cycle per `engine.cycle_interval_seconds`. A domain error (feed outage,
    malformed vault snapshot) skips the cycle; the next one retries.
    Shuts down on SIGINT/SIGTERM.
    """
    loaded = _load(env)
    if loaded is None:
        return 2
    settings, registry = loaded
    logger = get_logger(__name__)
    _log_startup_banner(logger, env=env, settings=settings)

    feed = DefiLlamaFeed(settings)
    engine = RebalanceEngine(settings, feed, FileVault(), DecisionGate(settings.rebalance), registry)
    executor = DryRunExecutor()

    shutdown_event = asyncio.Event()
    if sys.platform != "win32":
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, shutdown_event.set)

    interval = float(settings.engine.cycle_interval_seconds)
    cycles = 0
    try:
        while not shutdown_event.is_set():
            cycles += 1
            if await engine.step(executor, vault) is None:
                logger.info(f"{LOG_TAG_HEALTH} Cycle {cycles} produced no decision, retrying next interval")

            if max_cycles is not None and cycles >= max_cycles:
                break
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
    except asyncio.CancelledError:
        logger.info("Shutdown signal received, shutting down...")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1
    finally:
        await feed.close()

    logger.info(f"Router stopped cleanly after {cycles} cycles")
    return 0


async def run_sustainability(
    env: str = "development",
    *,
    principal: Decimal,
    apy: Decimal,
    daily_cost: Decimal | None = None,
) -> int:
    """Print whether a principal at a given APY covers the daily operating budget."""
    settings = get_settings(env)
    setup_logging(settings)
    cost = daily_cost if daily_cost is not None else settings.cross_chain.daily_operating_cost_usd
    report = calculate_self_sustainability(principal, apy, cost)
    console.print(sustainability_panel(report, principal, apy))
    return 0

