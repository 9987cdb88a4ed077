"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BandConfig:
    min_ltv: Decimal = Decimal("65")
    max_ltv: Decimal = Decimal("85")
    target_ltv: Decimal = Decimal("75")


@dataclass(frozen=True)
class KeeperConfig:
    check_interval_seconds: int = 30
    shutdown_timeout_seconds: int = 30
    band: BandConfig = field(default_factory=BandConfig)


@dataclass(frozen=True)
class WalletConfig:
    address: str = ""
    signer_url: str = "http://127.0.0.1:1318"
    signer_token: str = ""


@dataclass(frozen=True)
class ChainConfig:
    chain_id: str = "columbus-5"
    lcd_endpoints: tuple[str, ...] = ("https://lcd.terra.dev",)
    rpc_timeout: int = 30
    gas_adjustment: Decimal = Decimal("1.5")
    fee_denom: str = "uusd"
    confirmation_timeout: int = 60
    confirmation_poll_interval: float = 2.0


@dataclass(frozen=True)
class ProtocolConfig:
    contracts: dict[str, str] = field(default_factory=dict)
    stable_denom: str = "uusd"


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


@dataclass(frozen=True)
class AppConfig:
    keeper: KeeperConfig = field(default_factory=KeeperConfig)
    wallet: WalletConfig = field(default_factory=WalletConfig)
    chain: ChainConfig = field(default_factory=ChainConfig)
    protocol: ProtocolConfig = field(default_factory=ProtocolConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


REQUIRED_CONTRACTS = ("market", "overseer", "aterra")

# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

# ${VAR} or ${VAR:-default}
_ENV_VAR_RE = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} / ${VAR:-default} with environment values.

    An unset or empty variable falls back to the default, or to "" when no
    default is given.
    """
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(
            lambda m: os.environ.get(m.group(1)) or (m.group(2) or ""), value
        )
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def _to_decimal(value: Any, name: str) -> Decimal:
    # str() first so YAML floats keep their written digits
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ConfigurationError(f"{name} is not a number: {value!r}") from e
    if not result.is_finite():
        raise ConfigurationError(f"{name} is not a finite number: {value!r}")
    return result


def _to_int(value: Any, name: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} is not an integer: {value!r}") from e


def _to_float(value: Any, name: str) -> float:
    try:
        return float(str(value).strip())
    except ValueError as e:
        raise ConfigurationError(f"{name} is not a number: {value!r}") from e


def _to_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_band(raw: dict[str, Any]) -> BandConfig:
    return BandConfig(
        min_ltv=_to_decimal(raw.get("min_ltv", 65), "keeper.band.min_ltv"),
        max_ltv=_to_decimal(raw.get("max_ltv", 85), "keeper.band.max_ltv"),
        target_ltv=_to_decimal(raw.get("target_ltv", 75), "keeper.band.target_ltv"),
    )


def _build_keeper(raw: dict[str, Any]) -> KeeperConfig:
    return KeeperConfig(
        check_interval_seconds=_to_int(
            raw.get("check_interval_seconds", 30), "keeper.check_interval_seconds"
        ),
        shutdown_timeout_seconds=_to_int(
            raw.get("shutdown_timeout_seconds", 30), "keeper.shutdown_timeout_seconds"
        ),
        band=_build_band(raw.get("band") or {}),
    )


def _build_wallet(raw: dict[str, Any]) -> WalletConfig:
    return WalletConfig(
        address=str(raw.get("address", "")).strip(),
        signer_url=str(raw.get("signer_url", WalletConfig.signer_url)).rstrip("/"),
        signer_token=str(raw.get("signer_token", "")).strip(),
    )


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    endpoints = raw.get("lcd_endpoints", list(ChainConfig.lcd_endpoints))
    if isinstance(endpoints, str):
        endpoints = [endpoints]
    return ChainConfig(
        chain_id=str(raw.get("chain_id", ChainConfig.chain_id)),
        lcd_endpoints=tuple(e.rstrip("/") for e in endpoints if e),
        rpc_timeout=_to_int(raw.get("rpc_timeout", 30), "chain.rpc_timeout"),
        gas_adjustment=_to_decimal(
            raw.get("gas_adjustment", "1.5"), "chain.gas_adjustment"
        ),
        fee_denom=str(raw.get("fee_denom", "uusd")),
        confirmation_timeout=_to_int(
            raw.get("confirmation_timeout", 60), "chain.confirmation_timeout"
        ),
        confirmation_poll_interval=_to_float(
            raw.get("confirmation_poll_interval", 2.0),
            "chain.confirmation_poll_interval",
        ),
    )


def _build_protocol(raw: dict[str, Any]) -> ProtocolConfig:
    return ProtocolConfig(
        contracts={k: str(v) for k, v in (raw.get("contracts") or {}).items()},
        stable_denom=str(raw.get("stable_denom", "uusd")),
    )


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram") or {}
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=_to_bool(tg.get("enabled", False)),
            alert_bot_token=str(tg.get("alert_bot_token", "")),
            log_bot_token=str(tg.get("log_bot_token", "")),
            chat_id=str(tg.get("chat_id", "")),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).

    Raises:
        FileNotFoundError: the config file does not exist.
        ConfigurationError: a value is missing, malformed or inconsistent.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        keeper=_build_keeper(raw.get("keeper") or {}),
        wallet=_build_wallet(raw.get("wallet") or {}),
        chain=_build_chain(raw.get("chain") or {}),
        protocol=_build_protocol(raw.get("protocol") or {}),
        notifications=_build_notifications(raw.get("notifications") or {}),
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate_band(band: BandConfig) -> None:
    """Require 0 <= min <= target <= max <= 100."""
    if not Decimal(0) <= band.min_ltv <= band.target_ltv <= band.max_ltv <= Decimal(100):
        raise ConfigurationError(
            "LTV band must satisfy 0 <= min_ltv <= target_ltv <= max_ltv <= 100 "
            f"(got min={band.min_ltv}, target={band.target_ltv}, max={band.max_ltv})"
        )


def validate(cfg: AppConfig) -> None:
    """Raise ConfigurationError on invalid configuration."""
    validate_band(cfg.keeper.band)

    if cfg.keeper.check_interval_seconds <= 0:
        raise ConfigurationError("keeper.check_interval_seconds must be positive")
    if cfg.keeper.shutdown_timeout_seconds <= 0:
        raise ConfigurationError("keeper.shutdown_timeout_seconds must be positive")

    if not cfg.wallet.address:
        raise ConfigurationError("wallet.address cannot be empty")
    if not cfg.wallet.signer_token:
        raise ConfigurationError("wallet.signer_token cannot be empty")

    if not cfg.chain.lcd_endpoints:
        raise ConfigurationError("At least one LCD endpoint must be configured")
    if cfg.chain.confirmation_timeout <= 0:
        raise ConfigurationError("chain.confirmation_timeout must be positive")

    missing = [c for c in REQUIRED_CONTRACTS if not cfg.protocol.contracts.get(c)]
    if missing:
        raise ConfigurationError(
            f"Missing protocol contract address(es): {', '.join(missing)}"
        )
