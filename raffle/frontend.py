"""Keeps the web front-end's contract constants in sync with deployments."""

import json
from pathlib import Path

from raffle import config


def update_contract_addresses(address, chain_id, path=None):
    path = Path(path or config.FRONT_END_ADDRESSES_FILE)
    current = {}
    if path.exists():
        with path.open("r", encoding="utf-8") as f:
            current = json.load(f)

    chain_id = str(chain_id)
    if chain_id in current:
        if address not in current[chain_id]:
            current[chain_id].append(address)
    else:
        current[chain_id] = [address]

    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(current, f)
    return current


def update_abi(abi, path=None):
    path = Path(path or config.FRONT_END_ABI_FILE)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(abi, f)
