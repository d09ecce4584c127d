import pytest

from raffle import config, deploy
from tests.conftest import NETWORK

if not config.is_development(NETWORK):
    collect_ignore_glob = ["test_*.py"]


@pytest.fixture
def env():
    return deploy.fixture(["all"])


@pytest.fixture
def backend(env):
    return env.backend


@pytest.fixture
def chain(backend):
    return backend.chain


@pytest.fixture
def deployer(env):
    return env.deployer


@pytest.fixture
def accounts(backend):
    return backend.accounts


@pytest.fixture
def raffle(env):
    return env.get_contract("Raffle")


@pytest.fixture
def vrf_coordinator(env):
    return env.get_contract("VRFCoordinatorV2Mock")


@pytest.fixture
def entrance_fee(raffle):
    return raffle.call("getEntranceFee")


@pytest.fixture
def interval(raffle):
    return raffle.call("getInterval")


@pytest.fixture
def pass_time(backend, interval):
    def _pass_time(offset=1):
        backend.increase_time(interval + offset)
        backend.mine()

    return _pass_time
