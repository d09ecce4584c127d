from dataclasses import asdict
from pprint import pprint as pp

import click
from web3 import Web3

from raffle import config, deploy, frontend
from raffle.backends import connect
from raffle.contracts import RaffleState
from raffle.deployments import Deployments
from raffle.errors import RaffleError
from raffle.utils import quiet, timeit
from raffle.verify import verify as verify_contract


class RaffleGroup(click.Group):
    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except RaffleError as e:
            raise click.ClickException(str(e)) from e


class Session:
    """Lazily connects to the selected network and its deployments."""

    def __init__(self, network_name):
        self.network_name = network_name
        self._deploy_ctx = None

    @property
    def deploy_ctx(self):
        if self._deploy_ctx is None:
            if self.network_name == "hardhat":
                # nothing outlives the process on the in-process chain
                self._deploy_ctx = deploy.run("hardhat", log=quiet)
            else:
                network = config.get_network(self.network_name)
                backend = connect(self.network_name)
                deployments = Deployments(self.network_name, backend.chain_id, directory=config.DEPLOYMENTS_DIR)
                self._deploy_ctx = deploy.DeployContext(backend=backend, network=network, deployments=deployments)
        return self._deploy_ctx

    def contract(self, name="Raffle", account=None):
        ctx = self.deploy_ctx
        sender = ctx.backend.accounts[account] if account is not None else None
        return ctx.get_contract(name, sender=sender)


@timeit
def call(contract, method, *args):
    res = contract.call(method, *args)
    click.echo(f"returned value:\n{res}")
    return res


@timeit
def transact(contract, method, *args, value=0, verbose=False):
    receipt = contract.transact(method, *args, value=value)
    click.echo(f"tx: {receipt.transaction_hash} (block {receipt.block_number})")
    for log in receipt.logs:
        click.echo(f"  {log.event} {log.args}")
    verbose and pp(asdict(receipt))
    return receipt


@click.group(cls=RaffleGroup)
@click.option(
    "--network",
    "-n",
    type=click.Choice(list(config.NETWORKS)),
    default=config.DEFAULT_NETWORK,
    show_default=True,
    help="Network to talk to",
)
@click.pass_context
def cli(ctx, network):
    click.echo(f"raffling on {network}!")
    ctx.obj = Session(network)


@cli.command()
def networks():
    for name, network in config.NETWORKS.items():
        params = config.NETWORK_CONFIG.get(network["chain_id"], {})
        kind = "development" if config.is_development(name) else "live"
        click.echo(
            f"{name:<10} chain {network['chain_id']:<9} {kind:<12} "
            f"fee {Web3.from_wei(params.get('entrance_fee', 0), 'ether')} ETH, interval {params.get('interval')}s"
        )


@cli.command("deploy")
@click.option("--tags", "-t", multiple=True, default=("all",), show_default=True, help="Deploy steps to run")
@click.option("--update-front-end", is_flag=True, help="Write the front-end address map and ABI")
@click.pass_obj
def deploy_command(session, tags, update_front_end):
    session._deploy_ctx = ctx = deploy.run(session.network_name, tags=tags, update_front_end=update_front_end or None)
    for name, deployment in ctx.deployments.all().items():
        click.echo(f"{name}: {deployment.address}")


@cli.command()
@click.pass_obj
def status(session):
    raffle = session.contract()
    state = RaffleState(raffle.call("getRaffleState"))
    click.echo(f"raffle:          {raffle.address}")
    click.echo(f"state:           {state.name}")
    click.echo(f"entrance fee:    {Web3.from_wei(raffle.call('getEntranceFee'), 'ether')} ETH")
    click.echo(f"pool:            {Web3.from_wei(raffle.balance, 'ether')} ETH")
    click.echo(f"players:         {raffle.call('getNumberOfPlayers')}")
    click.echo(f"interval:        {raffle.call('getInterval')}s")
    click.echo(f"last timestamp:  {raffle.call('getLatestTimeStamp')}")
    click.echo(f"recent winner:   {raffle.call('getRecentWinner')}")


@cli.command()
@click.option("--value", "-v", type=str, help="Amount in ETH, defaults to the entrance fee")
@click.option("--account", "-a", type=int, default=None, help="Account index to enter with")
@click.option("--verbose", is_flag=True, help="Show transactions details")
@click.pass_obj
def enter(session, value, account, verbose):
    raffle = session.contract(account=account)
    amount = Web3.to_wei(value, "ether") if value else raffle.call("getEntranceFee")
    transact(raffle, "enterRaffle", value=amount, verbose=verbose)


@cli.command()
@click.pass_obj
def check_upkeep(session):
    call(session.contract(), "checkUpkeep", b"")


@cli.command()
@click.option("--verbose", is_flag=True, help="Show transactions details")
@click.pass_obj
def perform_upkeep(session, verbose):
    transact(session.contract(), "performUpkeep", b"", verbose=verbose)


@cli.command()
@click.argument("index", type=int)
@click.pass_obj
def player(session, index):
    call(session.contract(), "getPlayer", index)


@cli.command()
@click.pass_obj
def winner(session):
    call(session.contract(), "getRecentWinner")


@cli.command()
@click.option("--timeout", type=int, default=config.EVENT_TIMEOUT, show_default=True, help="Seconds to wait")
@click.pass_obj
def watch(session, timeout):
    raffle = session.contract()
    click.echo("waiting for WinnerPicked...")
    log = raffle.wait_for("WinnerPicked", timeout=timeout)
    click.echo(f"winner picked: {log.args['winner']} (block {log.block_number})")


def _parse_arg(arg):
    return int(arg) if arg.isdigit() else arg


@cli.command()
@click.argument("address")
@click.argument("args", nargs=-1)
@click.option("--contract", "-c", default="Raffle", show_default=True, help="Artifact name")
@click.pass_obj
def verify(session, address, args, contract):
    network = config.get_network(session.network_name)
    if config.is_development(session.network_name):
        raise click.UsageError("Nothing to verify on a development network")
    verify_contract(address, [_parse_arg(a) for a in args], network["chain_id"], name=contract)


@cli.command()
@click.pass_obj
def update_front_end(session):
    ctx = session.deploy_ctx
    raffle = ctx.deployments.get("Raffle")
    addresses = frontend.update_contract_addresses(raffle.address, ctx.backend.chain_id)
    frontend.update_abi(raffle.abi)
    click.echo(f"front end knows {len(addresses[str(ctx.backend.chain_id)])} address(es) on chain {ctx.backend.chain_id}")


if __name__ == "__main__":
    cli()
