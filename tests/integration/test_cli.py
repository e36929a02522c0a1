"""Integration tests for the command line interface."""
import pytest
from unittest.mock import patch
from click.testing import CliRunner
from staking_ledger.core.record import StakingRecord
from staking_ledger.main import cli

T0 = 1_700_000_000
YEAR = 365 * 24 * 60 * 60


@pytest.fixture
def invoke(tmp_path):
    """Run CLI commands as alice against a temporary data directory."""
    runner = CliRunner()

    def _invoke(*args, now=T0, account="alice"):
        env = {"STAKING_LEDGER_ACCOUNT": account, "STAKING_LEDGER_LOG_LEVEL": None}
        with patch('staking_ledger.core.ledger.system_clock', return_value=now):
            return runner.invoke(cli, ['--data-dir', str(tmp_path), *args], env=env)

    return _invoke


def test_stake_compound_claim_flow(invoke):
    """Test the one-year scenario end to end through the CLI."""
    result = invoke('fund', 'alice', '1000')
    assert result.exit_code == 0
    assert "Balance of alice: 1000" in result.output

    assert invoke('open').exit_code == 0
    result = invoke('stake', '1000')
    assert result.exit_code == 0
    assert "Staked amount:    1000" in result.output

    result = invoke('preview', now=T0 + YEAR)
    assert "Claimable reward: 50" in result.output

    result = invoke('compound', now=T0 + YEAR)
    assert result.exit_code == 0
    assert "Staked amount:    1050" in result.output
    assert "Compound streak:  1" in result.output

    result = invoke('claim', '--penalty', now=T0 + YEAR)
    assert result.exit_code == 0
    assert "Paid out: 0" in result.output
    assert "Compound streak:  0" in result.output

    result = invoke('balance')
    assert "Balance of alice: 0" in result.output


def test_rejected_operations_exit_with_error(invoke):
    invoke('fund', 'alice', '100')
    invoke('open')
    invoke('stake', '100')

    assert invoke('unstake', '101').exit_code == 1
    assert invoke('stake', '1').exit_code == 1
    assert invoke('compound', '--owner', 'alice', account='mallory').exit_code == 1
    assert invoke('open').exit_code == 1
    assert invoke('show', account='ghost').exit_code == 1

    result = invoke('show')
    assert "Staked amount:    100" in result.output


def test_missing_account_is_a_usage_error(invoke):
    result = invoke('stake', '10', account=None)
    assert result.exit_code == 2


def test_show_raw_layout(invoke):
    invoke('open')
    result = invoke('show', '--raw')
    assert result.exit_code == 0
    raw = bytes.fromhex(result.output.strip().splitlines()[-1])
    assert StakingRecord.from_bytes(raw) == StakingRecord.new("alice", T0)


@pytest.mark.parametrize("account", ["x" * 33, "é" * 17])
def test_open_rejects_oversized_account(invoke, account):
    """Test an account id too long for a record is reported, not raised."""
    result = invoke('open', account=account)
    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert "InvalidOwner" in result.output
