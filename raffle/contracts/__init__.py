import json
from functools import lru_cache
from importlib import resources

from raffle.contracts.raffle import Raffle, RaffleState
from raffle.contracts.vrf_coordinator_mock import VRFCoordinatorV2Mock
from raffle.errors import DeploymentError

LOCAL_CONTRACTS = {
    Raffle.NAME: Raffle,
    VRFCoordinatorV2Mock.NAME: VRFCoordinatorV2Mock,
}


@lru_cache(maxsize=None)
def _read_abi(name):
    try:
        text = resources.files("raffle").joinpath("abi", f"{name}.json").read_text(encoding="utf-8")
    except FileNotFoundError:
        raise DeploymentError(f"No ABI bundled for {name}") from None
    return json.loads(text)


def load_abi(name):
    return list(_read_abi(name))


__all__ = ["LOCAL_CONTRACTS", "Raffle", "RaffleState", "VRFCoordinatorV2Mock", "load_abi"]
