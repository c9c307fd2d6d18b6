"""
Settings management using Pydantic.

Loads configuration from the bundled YAML file and environment variables.
Environment variables override YAML values.
"""

from __future__ import annotations

import logging
import os
from decimal import Decimal
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class RebalanceSettings(BaseModel):
    """Allocation and rebalance gate parameters."""

    max_allocation_per_protocol: Decimal = Decimal("0.4")  # 0.4 = 40% max (pre-normalization)
    min_protocols_for_diversity: int = 3
    min_risk_score: Decimal = Decimal("60")  # Only protocols with score >= 60

    min_apy_difference_to_rebalance: Decimal = Decimal("0.02")  # 2% APY
    min_time_between_rebalances: Decimal = Decimal("86400")  # seconds
    max_gas_cost_for_rebalance: Decimal = Decimal("1.0")  # USD

    # Weight delta below which a protocol is left alone (rounding noise)
    rebalance_threshold: Decimal = Decimal("0.01")
    # Flat execution cost per planned transfer
    gas_cost_per_transfer_usd: Decimal = Decimal("0.20")
    # Remaining source/destination amount treated as exhausted
    dust_usd: Decimal = Decimal("0.01")


class ScoringSettings(BaseModel):
    """Constants of the four-part risk score."""

    tvl_scale_usd: Decimal = Decimal("1000000")
    tvl_weight: Decimal = Decimal("8")
    tvl_cap: Decimal = Decimal("25")
    reputation_cap: Decimal = Decimal("25")
    age_score: Decimal = Decimal("20")  # All tracked protocols are "established"
    exploit_cap: Decimal = Decimal("25")
    exploit_penalty: Decimal = Decimal("8")
    clean_history_threshold: Decimal = Decimal("80")
    neutral_score: Decimal = Decimal("50")  # Used for unknown protocols


class CrossChainSettings(BaseModel):
    """Cost model and route advisor parameters."""

    current_chain: str = "solana"
    hold_days: int = Field(default=30, ge=1)
    reference_position_usd: Decimal = Decimal("1000")  # Fixed notional for cost annualization
    risk_profile: str = "moderate"

    # Cross-chain risk adjustments
    tvl_bonus_scale_usd: Decimal = Decimal("10000000")
    tvl_bonus_weight: Decimal = Decimal("5")
    tvl_bonus_cap: Decimal = Decimal("10")
    liquidity_penalties: dict[str, Decimal] = Field(
        default={"low": Decimal("0"), "medium": Decimal("-5"), "high": Decimal("-15")}
    )
    strategy_adjustments: dict[str, Decimal] = Field(
        default={
            "lending": Decimal("5"),
            "vault": Decimal("0"),
            "liquid-staking": Decimal("0"),
            "perp-lp": Decimal("-5"),
            "other": Decimal("-5"),
        }
    )
    profile_min_risk: dict[str, Decimal] = Field(
        default={"conservative": Decimal("80"), "moderate": Decimal("65"), "aggressive": Decimal("50")}
    )

    # Route advisor
    min_hold_days: int = 7
    max_cost_recovery_days: Decimal = Decimal("30")
    small_position_usd: Decimal = Decimal("500")
    same_chain_preference: Decimal = Decimal("0.8")
    daily_operating_cost_usd: Decimal = Decimal("0.10")


class FeedSettings(BaseModel):
    """Upstream yield aggregator settings."""

    base_url: str = "https://yields.llama.fi/pools"
    asset: str = "USDC"
    asset_aliases: dict[str, list[str]] = Field(
        default={"USDC": ["USDC", "USDC.E", "USDCE"], "USDT": ["USDT"]}
    )
    cache_ttl_seconds: Decimal = Decimal("60")
    request_timeout_seconds: Decimal = Decimal("20")
    min_pool_tvl_usd: Decimal = Decimal("100000")


class EngineSettings(BaseModel):
    """Decision cycle loop settings."""

    cycle_interval_seconds: Decimal = Decimal("60")
    vault_handle: str = "positions.yaml"
    dry_run: bool = True


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    json_enabled: bool = True
    json_file: str = "logs/yield_router_json.jsonl"
    # Rotate JSONL log to prevent unbounded growth.
    # Set to 0 to disable rotation.
    json_max_bytes: int = 50_000_000
    json_backup_count: int = 3


class ChainSettings(BaseModel):
    """Cost table entry for one chain."""

    name: str = ""
    aggregator_chain: str = ""
    bridge_cost_usd: Decimal = Decimal("1.0")
    gas_cost_usd: Decimal = Decimal("0.01")
    bridge_time_minutes: int = 15
    native_bridge: bool = False


class ProtocolSettings(BaseModel):
    """Static registry entry for one protocol."""

    name: str = ""
    chain: str = "solana"
    project: str = ""
    base_reputation: Decimal = Field(default=Decimal("50"), ge=Decimal("0"), le=Decimal("100"))
    category: str = "other"
    liquidity_tier: str = "medium"
    min_deposit_usd: Decimal = Decimal("0")


class Settings(BaseSettings):
    """
    Main settings container.

    Loads from YAML file, then applies env var overrides.
    """

    env: str = Field(default="development", alias="ROUTER_ENV")
    testing_mode: bool = False

    rebalance: RebalanceSettings = Field(default_factory=RebalanceSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    cross_chain: CrossChainSettings = Field(default_factory=CrossChainSettings)
    feed: FeedSettings = Field(default_factory=FeedSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    chains: dict[str, ChainSettings] = Field(default_factory=dict)
    protocols: dict[str, ProtocolSettings] = Field(default_factory=dict)

    model_config = {
        "env_prefix": "ROUTER_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # YAML values arrive as init kwargs; ROUTER_* env vars must still win over them
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    def validate_settings(self) -> list[str]:
        """
        Validate cross-field constraints pydantic can't express per field.

        Returns:
            List of validation error messages. Empty list means all validations passed.
        """
        errors = []
        rb = self.rebalance

        if not (Decimal("0") < rb.max_allocation_per_protocol <= Decimal("1")):
            errors.append("rebalance.max_allocation_per_protocol must be in (0, 1]")

        if rb.min_protocols_for_diversity < 1:
            errors.append("rebalance.min_protocols_for_diversity must be at least 1")

        if not (Decimal("0") <= rb.min_risk_score <= Decimal("100")):
            errors.append("rebalance.min_risk_score must be within [0, 100]")

        if rb.min_time_between_rebalances < 0:
            errors.append("rebalance.min_time_between_rebalances must not be negative")

        if rb.rebalance_threshold < 0:
            errors.append("rebalance.rebalance_threshold must not be negative")

        if self.cross_chain.reference_position_usd <= 0:
            errors.append("cross_chain.reference_position_usd must be positive")

        if self.chains and self.cross_chain.current_chain not in self.chains:
            errors.append(f"cross_chain.current_chain '{self.cross_chain.current_chain}' missing from chains")

        for protocol_id, protocol in self.protocols.items():
            if self.chains and protocol.chain not in self.chains:
                errors.append(f"protocols.{protocol_id}.chain '{protocol.chain}' missing from chains")

        return errors

    @classmethod
    def from_yaml(cls, env: str = "development", path: Path | None = None) -> Settings:
        """
        Load settings from config.yaml.

        The 'env' parameter is used to set `settings.env` (for banners/logging)
        and to pick an optional `{env}.yaml` overlay next to the base file.
        """
        config_dir = Path(__file__).parent
        yaml_file = path or config_dir / "config.yaml"

        data: dict = {}
        if yaml_file.exists():
            with open(yaml_file, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

        env_file = yaml_file.parent / f"{env}.yaml"
        if env_file.exists() and env_file != yaml_file:
            with open(env_file, encoding="utf-8") as f:
                env_data = yaml.safe_load(f) or {}
            data = _deep_merge(data, env_data)

        # Direct env overrides for the most commonly tweaked values
        if "feed" not in data:
            data["feed"] = {}
        if os.getenv("DEFILLAMA_URL"):
            data["feed"]["base_url"] = os.getenv("DEFILLAMA_URL")

        if "cross_chain" not in data:
            data["cross_chain"] = {}
        if os.getenv("ROUTER_CURRENT_CHAIN"):
            data["cross_chain"]["current_chain"] = os.getenv("ROUTER_CURRENT_CHAIN")

        data["env"] = env

        # Warn about unknown keys before creating model (helps catch typos in config.yaml)
        _warn_unknown_keys(data, cls)

        return cls(**data)


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts, override wins on conflicts."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Sections keyed by user-chosen ids; their children are not field names.
_FREE_FORM_SECTIONS = {"chains", "protocols"}


def _collect_all_keys(data: dict, prefix: str = "") -> set[str]:
    """
    Recursively collect all keys from a nested dict.

    Returns keys in dot-notation format (e.g., "rebalance.min_risk_score").
    """
    keys = set()
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        keys.add(full_key)
        if isinstance(value, dict) and full_key not in _FREE_FORM_SECTIONS:
            keys.update(_collect_all_keys(value, full_key))
    return keys


def _collect_model_fields(model_class: type[BaseModel], prefix: str = "") -> set[str]:
    """
    Recursively collect all field names from a Pydantic model.

    Returns field names in dot-notation format.
    """
    fields = set()
    for field_name, field_info in model_class.model_fields.items():
        full_key = f"{prefix}.{field_name}" if prefix else field_name
        fields.add(full_key)

        annotation = field_info.annotation
        if hasattr(annotation, "__origin__"):
            # Generic types like dict[str, X] - children are free-form
            if hasattr(annotation, "__args__") and annotation.__origin__ is dict:
                # dict-valued fields accept any keys
                fields.add(f"{full_key}.*")
            continue
        if isinstance(annotation, type) and issubclass(annotation, BaseModel):
            fields.update(_collect_model_fields(annotation, full_key))

    return fields


def _warn_unknown_keys(data: dict, model_class: type[BaseModel]) -> None:
    """
    Warn about unknown keys in YAML config that don't match model fields.

    This prevents silent config bugs where typos in key names are ignored.
    """
    yaml_keys = _collect_all_keys(data)
    model_fields = _collect_model_fields(model_class)

    unknown_keys = {
        key
        for key in yaml_keys - model_fields
        if f"{key.rsplit('.', 1)[0]}.*" not in model_fields
    }

    if unknown_keys:
        logger.warning(
            f"Unknown configuration keys found (will be ignored due to extra='ignore'): {sorted(unknown_keys)}. "
            f"This may indicate typos in config.yaml or outdated config keys."
        )


@lru_cache(maxsize=4)
def get_settings(env: str | None = None) -> Settings:
    """Get cached settings instance."""
    resolved_env = env or os.getenv("ROUTER_ENV", "development")
    return Settings.from_yaml(env=resolved_env)
