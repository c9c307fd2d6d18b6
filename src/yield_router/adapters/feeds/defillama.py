"""
DefiLlama Yield Feed Adapter.

Fetches the public pools endpoint and maps pools onto registered protocols
by (aggregator chain, project slug, asset symbol). The full pool list is
cached in memory for `cache_ttl_seconds`.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import aiohttp

from yield_router.config.settings import Settings
from yield_router.domain.errors import FeedUnavailable
from yield_router.domain.models import YieldRecord
from yield_router.observability.logging import LOG_TAG_SCAN, get_logger
from yield_router.ports.yield_feed import YieldFeedPort

logger = get_logger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def _to_decimal(value: Any) -> Decimal:
    """Pool numbers arrive as floats or null."""
    if value is None:
        return _ZERO
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return _ZERO


class DefiLlamaFeed(YieldFeedPort):
    """YieldFeedPort backed by https://yields.llama.fi/pools."""

    def __init__(
        self,
        settings: Settings,
        session: aiohttp.ClientSession | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self._session = session
        self._owns_session = session is None
        self._clock = clock

        self._pool_cache: list[dict[str, Any]] = []
        self._cache_timestamp: float | None = None

    # =========================================================================
    # HTTP
    # =========================================================================

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=float(self.settings.feed.request_timeout_seconds))
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this adapter created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _cache_fresh(self) -> bool:
        if self._cache_timestamp is None:
            return False
        return self._clock() - self._cache_timestamp < float(self.settings.feed.cache_ttl_seconds)

    async def fetch_pools(self) -> list[dict[str, Any]]:
        """All pools, served from cache while it is fresh."""
        if self._cache_fresh():
            return self._pool_cache

        url = self.settings.feed.base_url
        try:
            async with self._get_session().get(url) as resp:
                if resp.status != 200:
                    raise FeedUnavailable(f"DefiLlama API error: {resp.status}", status=resp.status)
                payload = await resp.json()
        except (TimeoutError, aiohttp.ClientError, ValueError) as e:
            # ValueError covers an undecodable JSON body
            raise FeedUnavailable(f"DefiLlama request failed: {e}", details={"url": url}) from e

        pools = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(pools, list):
            raise FeedUnavailable("DefiLlama response has no pool list", details={"url": url})

        self._pool_cache = pools
        self._cache_timestamp = self._clock()
        logger.debug(f"{LOG_TAG_SCAN} Cached {len(pools)} DefiLlama pools")
        return pools

    # =========================================================================
    # Mapping
    # =========================================================================

    def _symbols_for(self, asset: str) -> list[str]:
        aliases = self.settings.feed.asset_aliases.get(asset.upper())
        return [s.upper() for s in (aliases or [asset])]

    def _aggregator_chain(self, chain_id: str) -> str:
        chain = self.settings.chains.get(chain_id)
        if chain is None:
            return chain_id
        return chain.aggregator_chain or chain.name or chain_id

    async def fetch_yield_records(self, asset: str) -> list[YieldRecord]:
        """
        One record per registered protocol that has a matching pool.

        When several pools match a protocol, the highest-APY pool wins.
        Pools below `min_pool_tvl_usd` are ignored.
        """
        pools = await self.fetch_pools()
        symbols = self._symbols_for(asset)
        min_tvl = self.settings.feed.min_pool_tvl_usd
        observed_at = datetime.now(UTC)

        records: list[YieldRecord] = []
        for protocol_id, cfg in self.settings.protocols.items():
            if not cfg.project:
                continue
            aggregator_chain = self._aggregator_chain(cfg.chain)

            best: dict[str, Any] | None = None
            for pool in pools:
                if pool.get("chain") != aggregator_chain or pool.get("project") != cfg.project:
                    continue
                symbol = str(pool.get("symbol") or "").upper()
                if not any(s in symbol for s in symbols):
                    continue
                if _to_decimal(pool.get("tvlUsd")) < min_tvl:
                    continue
                if best is None or _to_decimal(pool.get("apy")) > _to_decimal(best.get("apy")):
                    best = pool

            if best is None:
                continue

            total_apy = _to_decimal(best.get("apy")) / _HUNDRED
            base = best.get("apyBase")
            records.append(
                YieldRecord(
                    protocol_id=protocol_id,
                    chain=cfg.chain,
                    asset=asset.upper(),
                    total_apy=total_apy,
                    base_apy=_to_decimal(base) / _HUNDRED if base is not None else total_apy,
                    reward_apy=_to_decimal(best.get("apyReward")) / _HUNDRED,
                    tvl_usd=_to_decimal(best.get("tvlUsd")),
                    pool_id=str(best.get("pool") or ""),
                    observed_at=observed_at,
                )
            )

        logger.info(f"{LOG_TAG_SCAN} {len(records)} {asset.upper()} yield records from {len(pools)} pools")
        return records
