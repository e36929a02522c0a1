"""Staking Ledger CLI."""
from functools import wraps
from pathlib import Path
from typing import Optional
import click
from loguru import logger

from .core.config import LedgerConfig, load_config
from .core.errors import StakingError
from .core.funds import JsonFileFunds
from .core.ledger import OperationResult, StakingLedger
from .core.record import StakingRecord


def configure_logging(level: str) -> None:
    """Send log output to stderr at the given level."""
    logger.remove()
    logger.add(lambda msg: click.echo(msg, err=True, nl=False), level=level.upper(),
               format="{time:HH:mm:ss} | {level: <8} | {message}")


def print_record(record: StakingRecord) -> None:
    click.echo(f"Owner:            {record.owner}")
    click.echo(f"Staked amount:    {record.staked_amount}")
    click.echo(f"Reward amount:    {record.reward_amount}")
    click.echo(f"Last accrual:     {record.last_accrual_time}")
    click.echo(f"Compound streak:  {record.compound_streak}")


def print_result(result: OperationResult) -> None:
    if result.action == "claim_reward":
        click.echo(f"Paid out: {result.payout}")
        if result.forfeited:
            click.echo(f"Forfeited: {result.forfeited}")
    print_record(result.record)


def ledger_command(f):
    """Pass the ledger to the command and turn ledger errors into exit status 1."""
    @click.pass_context
    @wraps(f)
    def wrapper(ctx: click.Context, *args, **kwargs):
        try:
            return f(ctx.obj["ledger"], ctx.obj["account"], *args, **kwargs)
        except StakingError as e:
            logger.error(f"{e.kind}: {e}")
            ctx.exit(1)
    return wrapper


def require_account(account: Optional[str]) -> str:
    if not account:
        raise click.UsageError("No account given. Use --account or set STAKING_LEDGER_ACCOUNT.")
    return account


@click.group()
@click.version_option(package_name="staking-ledger")
@click.option('--config', 'config_path', type=click.Path(path_type=Path),
              help='Path to YAML configuration file')
@click.option('--data-dir', type=click.Path(file_okay=False, path_type=Path),
              help='Directory for records and balances (overrides config)')
@click.option('--account', envvar='STAKING_LEDGER_ACCOUNT', help='Account acting as caller')
@click.option('--log-level', envvar='STAKING_LEDGER_LOG_LEVEL', default=None,
              help='Log level (DEBUG, INFO, WARNING, ...)')
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], data_dir: Optional[Path],
        account: Optional[str], log_level: Optional[str]):
    """Staking Ledger CLI - stake value, accrue reward, claim or compound it."""
    config: LedgerConfig = load_config(config_path)
    if data_dir is not None:
        config.data_dir = data_dir
    configure_logging(log_level or config.log_level)
    ctx.obj = {
        "config": config,
        "account": account,
        "ledger": StakingLedger.from_config(config),
    }


@cli.command(name="open")
@ledger_command
def open_account(ledger: StakingLedger, account: Optional[str]):
    """Open a staking record for the account."""
    record = ledger.open_account(require_account(account))
    print_record(record)


@cli.command()
@click.argument('amount', type=click.IntRange(min=0))
@click.option('--owner', help='Owner of the record (defaults to the account)')
@ledger_command
def stake(ledger: StakingLedger, account: Optional[str], amount: int, owner: Optional[str]):
    """Stake AMOUNT from the account's balance."""
    print_result(ledger.stake(require_account(account), amount, owner=owner))


@cli.command()
@click.argument('amount', type=click.IntRange(min=0))
@click.option('--owner', help='Owner of the record (defaults to the account)')
@ledger_command
def unstake(ledger: StakingLedger, account: Optional[str], amount: int, owner: Optional[str]):
    """Withdraw AMOUNT of the stake back to the account."""
    print_result(ledger.unstake(require_account(account), amount, owner=owner))


@cli.command()
@click.option('--penalty/--no-penalty', default=False,
              help='Claim early and forfeit part of the reward')
@click.option('--owner', help='Owner of the record (defaults to the account)')
@ledger_command
def claim(ledger: StakingLedger, account: Optional[str], penalty: bool, owner: Optional[str]):
    """Claim the accrued reward."""
    print_result(ledger.claim_reward(require_account(account), apply_penalty=penalty, owner=owner))


@cli.command()
@click.option('--owner', help='Owner of the record (defaults to the account)')
@ledger_command
def compound(ledger: StakingLedger, account: Optional[str], owner: Optional[str]):
    """Add the accrued reward to the stake."""
    print_result(ledger.compound(require_account(account), owner=owner))


@cli.command()
@click.option('--owner', help='Record to show (defaults to the account)')
@click.option('--raw', is_flag=True, help='Print the fixed-size binary layout as hex')
@ledger_command
def show(ledger: StakingLedger, account: Optional[str], owner: Optional[str], raw: bool):
    """Show a staking record as last committed."""
    record = ledger.get_record(owner or require_account(account))
    if raw:
        click.echo(record.to_bytes().hex())
    else:
        print_record(record)


@cli.command()
@click.option('--owner', help='Record to preview (defaults to the account)')
@ledger_command
def preview(ledger: StakingLedger, account: Optional[str], owner: Optional[str]):
    """Show the reward that could be claimed right now."""
    click.echo(f"Claimable reward: {ledger.preview_reward(owner or require_account(account))}")


@cli.command()
@click.argument('target')
@click.argument('amount', type=click.IntRange(min=0))
@ledger_command
def fund(ledger: StakingLedger, account: Optional[str], target: str, amount: int):
    """Credit AMOUNT of external value to TARGET's balance."""
    funds: JsonFileFunds = ledger.funds
    balance = funds.credit(target, amount)
    click.echo(f"Balance of {target}: {balance}")


@cli.command()
@click.argument('target', required=False)
@ledger_command
def balance(ledger: StakingLedger, account: Optional[str], target: Optional[str]):
    """Show the external balance of TARGET (defaults to the account)."""
    target = target or require_account(account)
    click.echo(f"Balance of {target}: {ledger.funds.balance_of(target)}")


if __name__ == "__main__":
    cli()
