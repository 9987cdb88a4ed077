"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from ltv_keeper.config import (
    AppConfig,
    BandConfig,
    ChainConfig,
    KeeperConfig,
    NotificationsConfig,
    ProtocolConfig,
    TelegramConfig,
    WalletConfig,
)
from ltv_keeper.models import TxResult

ACCOUNT = "terra1keeperwalletaddress000000000000000000"

# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_band() -> BandConfig:
    return BandConfig(
        min_ltv=Decimal("65"), max_ltv=Decimal("85"), target_ltv=Decimal("75")
    )


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        chain_id="columbus-5",
        lcd_endpoints=("https://lcd1.example.com", "https://lcd2.example.com"),
        rpc_timeout=10,
        confirmation_timeout=5,
        confirmation_poll_interval=0.01,
    )


@pytest.fixture()
def sample_protocol_config() -> ProtocolConfig:
    return ProtocolConfig(
        contracts={
            "market": "terra1market",
            "overseer": "terra1overseer",
            "aterra": "terra1aust",
        },
        stable_denom="uusd",
    )


@pytest.fixture()
def sample_app_config(
    sample_band: BandConfig,
    sample_chain_config: ChainConfig,
    sample_protocol_config: ProtocolConfig,
) -> AppConfig:
    return AppConfig(
        keeper=KeeperConfig(
            check_interval_seconds=30, shutdown_timeout_seconds=5, band=sample_band
        ),
        wallet=WalletConfig(
            address=ACCOUNT,
            signer_url="http://signer.example.com",
            signer_token="sign-tok",
        ),
        chain=sample_chain_config,
        protocol=sample_protocol_config,
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


# ---------------------------------------------------------------------------
# Collaborator doubles
# ---------------------------------------------------------------------------


def _make_protocol(
    borrow_limit: str = "1000",
    loan_amount: str = "600",
    exchange_rate: str = "1.2",
    token_balance: str = "200",
) -> AsyncMock:
    """A LendingProtocol double; message builders return (kind, amount)."""
    protocol = AsyncMock()
    protocol.borrow_limit.return_value = Decimal(borrow_limit)
    protocol.loan_amount.return_value = Decimal(loan_amount)
    protocol.exchange_rate.return_value = Decimal(exchange_rate)
    protocol.token_balance.return_value = Decimal(token_balance)
    for kind in ("borrow", "deposit", "redeem", "repay"):
        setattr(
            protocol,
            f"new_{kind}_stable_msg",
            MagicMock(side_effect=lambda sender, amount, kind=kind: (kind, amount)),
        )
    return protocol


def _make_submitter(txhash: str = "ABC123") -> AsyncMock:
    submitter = AsyncMock()
    submitter.execute.return_value = TxResult(txhash=txhash, height=100, gas_used=250000)
    return submitter


def _submitted_messages(submitter: AsyncMock) -> list:
    """Materialize the message factories of the single submission."""
    steps = submitter.execute.call_args[0][0]
    return [step() for step in steps]


@pytest.fixture()
def make_protocol():
    return _make_protocol


@pytest.fixture()
def submitter() -> AsyncMock:
    return _make_submitter()


@pytest.fixture()
def submitted_messages():
    return _submitted_messages


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    keeper:
      check_interval_seconds: 15
      shutdown_timeout_seconds: 20
      band:
        min_ltv: 60.5
        max_ltv: 80
        target_ltv: "70.25"
    wallet:
      address: "terra1test"
      signer_url: "http://signer.example.com/"
      signer_token: "tok"
    chain:
      chain_id: columbus-5
      lcd_endpoints: ["https://lcd.example.com/"]
      rpc_timeout: 10
      gas_adjustment: "1.4"
    protocol:
      stable_denom: uusd
      contracts:
        market: terra1market
        overseer: terra1overseer
        aterra: terra1aust
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Sample LCD responses
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_borrower_info() -> dict:
    return {
        "borrower": ACCOUNT,
        "interest_index": "1.05",
        "reward_index": "0.1",
        "loan_amount": "600000000",  # 600 UST
        "pending_rewards": "1500000",
    }


@pytest.fixture()
def sample_epoch_state() -> dict:
    return {"exchange_rate": "1.2", "aterra_supply": "5000000000000"}
