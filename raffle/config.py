import os

from dotenv import load_dotenv
from web3 import Web3

from raffle.errors import ConfigError

load_dotenv()

SEPOLIA_RPC_URL = os.getenv("SEPOLIA_RPC_URL", "https://eth-sepolia.herokuapp.com")
SEPOLIA_PRIVATE_KEY = os.getenv("SEPOLIA_PRIVATE_KEY", "")
LOCALHOST_RPC_URL = os.getenv("LOCALHOST_RPC_URL", "http://127.0.0.1:8545")
ETHERSCAN_API_KEY = os.getenv("ETHERSCAN_API_KEY", "")
# USD pricing for gas reports
COINMARKETCAP_API_KEY = os.getenv("COINMARKETCAP_API_KEY", "")

UPDATE_FRONT_END = os.getenv("UPDATE_FRONT_END", "")
FRONT_END_ADDRESSES_FILE = os.getenv(
    "FRONT_END_ADDRESSES_FILE", "../nextjs-smartcontract-lottery/constants/contractAddresses.json"
)
FRONT_END_ABI_FILE = os.getenv("FRONT_END_ABI_FILE", "../nextjs-smartcontract-lottery/constants/abi.json")

DEPLOYMENTS_DIR = os.getenv("DEPLOYMENTS_DIR", "deployments")
ARTIFACTS_DIR = os.getenv("ARTIFACTS_DIR", "artifacts")

ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"

DEFAULT_NETWORK = "hardhat"
DEVELOPMENT_CHAINS = ("hardhat", "localhost")

NETWORKS = {
    "hardhat": {
        "chain_id": 31337,
        "block_confirmations": 1,
    },
    "localhost": {
        "chain_id": 31337,
        "block_confirmations": 1,
        "url": LOCALHOST_RPC_URL,
    },
    "sepolia": {
        "chain_id": 11155111,
        "block_confirmations": 6,
        "url": SEPOLIA_RPC_URL,
        "accounts": [SEPOLIA_PRIVATE_KEY],
    },
}

NAMED_ACCOUNTS = {
    "deployer": 0,
    "player": 1,
}

GAS_LANE_100_GWEI = "0x787d74caea10b2b357790d5b5247c2f63d1d91572a9846f780606e4d953677ae"

NETWORK_CONFIG = {
    11155111: {
        "name": "sepolia",
        "vrf_coordinator_v2": "0x9DdfaCa8183c41ad55329BdeeD9F6A8d53168B1B",
        "entrance_fee": Web3.to_wei("0.01", "ether"),
        "gas_lane": GAS_LANE_100_GWEI,
        "subscription_id": 4898183188977114096165840824556960761265166624304389503358466110885264379387,
        "callback_gas_limit": 500000,
        "interval": 30,
    },
    # the coordinator and subscription come from the mock
    31337: {
        "name": "hardhat",
        "entrance_fee": Web3.to_wei("0.01", "ether"),
        "gas_lane": GAS_LANE_100_GWEI,
        "callback_gas_limit": 500000,
        "interval": 30,
    },
}

REQUIRED_PARAMETERS = ("entrance_fee", "gas_lane", "callback_gas_limit", "interval")
LIVE_PARAMETERS = ("vrf_coordinator_v2", "subscription_id")

# VRFCoordinatorV2Mock constructor: premium per request and LINK per gas
BASE_FEE = Web3.to_wei("0.20", "ether")
GAS_PRICE_LINK = 10**9
VRF_SUBSCRIPTION_FUND_AMOUNT = Web3.to_wei(2, "ether")

EVENT_TIMEOUT = 300
POLL_INTERVAL = 2


def is_development(network_name):
    return network_name in DEVELOPMENT_CHAINS


def get_network(name):
    try:
        network = NETWORKS[name]
    except KeyError:
        raise ConfigError(f"Unknown network {name!r}, expected one of: {', '.join(NETWORKS)}") from None
    return dict(network, name=name)


def network_parameters(chain_id, development=False):
    try:
        params = NETWORK_CONFIG[int(chain_id)]
    except KeyError:
        raise ConfigError(f"No raffle parameters for chain id {chain_id}") from None

    required = REQUIRED_PARAMETERS if development else REQUIRED_PARAMETERS + LIVE_PARAMETERS
    missing = [field for field in required if params.get(field) in (None, "")]
    if missing:
        raise ConfigError(f"Chain {chain_id} ({params.get('name')}) is missing: {', '.join(missing)}")
    return dict(params)


try:
    from local_config import *  # noqa: F401,F403
except ImportError:
    pass
