"""Tagged deploy steps, run in order like the framework's ``deploy/`` scripts."""

from dataclasses import dataclass
from typing import Callable

from raffle import config, frontend
from raffle.backends import Contract, connect
from raffle.chain import DevChain
from raffle.deployments import Deployment, Deployments
from raffle.utils import log as echo, quiet
from raffle.verify import verify

SEPARATOR = "---------------------------------------------"


@dataclass
class DeployContext:
    backend: object
    network: dict
    deployments: Deployments
    log: Callable = echo
    update_front_end: bool = False

    @property
    def development(self):
        return config.is_development(self.network["name"])

    @property
    def deployer(self):
        return self.backend.accounts[config.NAMED_ACCOUNTS["deployer"]]

    def deploy(self, name, args, wait_confirmations=1):
        self.log(f'deploying "{name}"...')
        receipt, abi = self.backend.deploy(name, args, self.deployer, confirmations=wait_confirmations)
        deployment = self.deployments.save(
            Deployment(
                name=name,
                address=receipt.contract_address,
                abi=abi,
                args=list(args),
                transaction_hash=receipt.transaction_hash,
                block_number=receipt.block_number,
            )
        )
        self.log(f'deployed "{name}" at {deployment.address} (tx: {deployment.transaction_hash})')
        return self.get_contract(name)

    def get_contract(self, name, sender=None):
        deployment = self.deployments.get(name)
        return Contract(self.backend, name, deployment.address, deployment.abi, sender=sender or self.deployer)


def deploy_mocks(ctx):
    if not ctx.development:
        return
    ctx.log("Local network detected! Deploying mocks...")
    ctx.deploy("VRFCoordinatorV2Mock", [config.BASE_FEE, config.GAS_PRICE_LINK])
    ctx.log("Mocks Deployed!")
    ctx.log(SEPARATOR)


deploy_mocks.tags = ("all", "mocks")


def deploy_raffle(ctx):
    params = config.network_parameters(ctx.backend.chain_id, development=ctx.development)

    if ctx.development:
        coordinator = ctx.get_contract("VRFCoordinatorV2Mock")
        receipt = coordinator.transact("createSubscription")
        subscription_id = receipt.events("SubscriptionCreated")[0].args["subId"]
        # a live subscription is funded with LINK from the VRF app instead
        coordinator.transact("fundSubscription", subscription_id, config.VRF_SUBSCRIPTION_FUND_AMOUNT)
        coordinator_address = coordinator.address
    else:
        coordinator = None
        coordinator_address = params["vrf_coordinator_v2"]
        subscription_id = params["subscription_id"]

    args = [
        coordinator_address,
        subscription_id,
        params["gas_lane"],
        params["interval"],
        params["entrance_fee"],
        params["callback_gas_limit"],
    ]
    raffle = ctx.deploy("Raffle", args, wait_confirmations=ctx.network.get("block_confirmations", 1))

    if coordinator is not None:
        coordinator.transact("addConsumer", subscription_id, raffle.address)

    if not ctx.development and config.ETHERSCAN_API_KEY:
        verify(raffle.address, args, ctx.backend.chain_id, log=ctx.log)
    ctx.log(SEPARATOR)


deploy_raffle.tags = ("all", "raffle")


def update_front_end(ctx):
    if not ctx.update_front_end:
        return
    ctx.log("Updating front end...")
    raffle = ctx.deployments.get("Raffle")
    frontend.update_contract_addresses(raffle.address, ctx.backend.chain_id)
    frontend.update_abi(raffle.abi)


update_front_end.tags = ("all", "frontend")

DEPLOY_SCRIPTS = [deploy_mocks, deploy_raffle, update_front_end]


def run(network_name=None, tags=("all",), backend=None, deployments=None, log=echo, update_front_end=None):
    network = config.get_network(network_name or config.DEFAULT_NETWORK)
    backend = backend or connect(network["name"])
    if deployments is None:
        directory = None if network["name"] == "hardhat" else config.DEPLOYMENTS_DIR
        deployments = Deployments(network["name"], backend.chain_id, directory=directory)

    if update_front_end is None:
        update_front_end = bool(config.UPDATE_FRONT_END)
    ctx = DeployContext(
        backend=backend, network=network, deployments=deployments, log=log, update_front_end=update_front_end
    )
    for script in DEPLOY_SCRIPTS:
        if set(tags) & set(script.tags):
            script(ctx)
    return ctx


def fixture(tags=("all",), log=None, start_time=None):
    """Deploy ``tags`` into a fresh in-process chain."""
    network = config.get_network("hardhat")
    chain = DevChain(chain_id=network["chain_id"], start_time=start_time)
    backend = connect("hardhat", chain=chain)
    return run("hardhat", tags=tags, backend=backend, log=log or quiet)
