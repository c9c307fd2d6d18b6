"""
File-backed vault reader.

Reads positions from a YAML document:

    positions:
      - protocol_id: kamino-solana
        value_usd: 600
        current_apy: 0.052
      - protocol_id: aave-base
        value_usd: 400
        current_apy: 0.041

Weights are derived from values, so the file never has to keep them in sync.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from yield_router.domain.errors import ConfigurationError
from yield_router.domain.models import Position
from yield_router.observability.logging import get_logger
from yield_router.ports.vault import VaultPort

logger = get_logger(__name__)

_ZERO = Decimal("0")


def _decimal_field(entry: dict[str, Any], key: str, source: str) -> Decimal:
    raw = entry.get(key, 0)
    value: Decimal | None = None
    if raw is not None and not isinstance(raw, bool):
        try:
            value = Decimal(str(raw))
        except InvalidOperation:
            value = None
    if value is None or not value.is_finite():
        raise ConfigurationError(
            f"{source}: position {entry['protocol_id']} has an invalid {key} ({raw!r})",
            protocol=str(entry["protocol_id"]),
            details={"field": key, "source": source},
        )
    return value


def _parse_positions(data: dict[str, Any] | None, source: str) -> tuple[Decimal, list[Position]]:
    entries = (data or {}).get("positions") or []
    if not isinstance(entries, list):
        raise ConfigurationError(f"{source}: 'positions' must be a list")

    values: list[tuple[str, Decimal, Decimal]] = []
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict) or "protocol_id" not in entry:
            raise ConfigurationError(f"{source}: position #{i} needs a protocol_id")
        value = _decimal_field(entry, "value_usd", source)
        if value < 0:
            raise ConfigurationError(f"{source}: position {entry['protocol_id']} has a negative value")
        values.append((str(entry["protocol_id"]), value, _decimal_field(entry, "current_apy", source)))

    total = sum((v for _, v, _ in values), _ZERO)
    positions = [
        Position(
            protocol_id=protocol_id,
            value_usd=value,
            weight=value / total if total > 0 else _ZERO,
            current_apy=apy,
        )
        for protocol_id, value, apy in values
    ]
    return total, positions


class FileVault(VaultPort):
    """VaultPort reading a YAML positions file; the vault handle is the file path."""

    def __init__(self, base_dir: Path | str | None = None):
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def _resolve(self, vault_handle: str) -> Path:
        path = Path(vault_handle)
        if self.base_dir is not None and not path.is_absolute():
            path = self.base_dir / path
        return path

    def _read(self, path: Path) -> tuple[Decimal, list[Position]]:
        if not path.exists():
            logger.warning(f"Vault file {path} not found, treating vault as empty")
            return _ZERO, []
        with open(path) as f:
            data = yaml.safe_load(f)
        return _parse_positions(data, str(path))

    async def fetch_positions(self, vault_handle: str) -> tuple[Decimal, list[Position]]:
        path = self._resolve(vault_handle)
        total, positions = await asyncio.to_thread(self._read, path)
        logger.debug(f"Vault {path}: ${total:.2f} across {len(positions)} positions")
        return total, positions
