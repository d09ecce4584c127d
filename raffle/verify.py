"""Source verification on Etherscan-compatible block explorers."""

import json
import time

import requests
from eth_abi import encode
from hexbytes import HexBytes

from raffle import config
from raffle.deployments import load_artifact
from raffle.errors import VerificationError
from raffle.utils import log as echo

VERIFY_ATTEMPTS = 10


def encode_constructor_args(abi, args):
    constructor = next((item for item in abi if item.get("type") == "constructor"), None)
    if constructor is None:
        return ""
    types = [i["type"] for i in constructor["inputs"]]
    values = [HexBytes(arg) if t.startswith("bytes") and isinstance(arg, str) else arg for t, arg in zip(types, args)]
    return encode(types, values).hex()


def _request(method, params, data=None, session=None):
    session = session or requests
    try:
        response = session.request(method, config.ETHERSCAN_API_URL, params=params, data=data, timeout=30)
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as e:
        raise VerificationError(f"Block explorer request failed: {e}") from e


def verify(address, args, chain_id, name="Raffle", api_key=None, artifact=None, session=None, poll_interval=5, log=echo):
    api_key = api_key or config.ETHERSCAN_API_KEY
    if not api_key:
        raise VerificationError("ETHERSCAN_API_KEY is not set")
    artifact = artifact or load_artifact(name)
    for key in ("input", "compilerVersion", "sourceName"):
        if not artifact.get(key):
            raise VerificationError(f"Artifact for {name} has no {key!r}, can't verify the source")

    log("Verifying contract...")
    result = _request(
        "POST",
        {"chainid": chain_id},
        data={
            "apikey": api_key,
            "module": "contract",
            "action": "verifysourcecode",
            "contractaddress": address,
            "sourceCode": json.dumps(artifact["input"]),
            "codeformat": "solidity-standard-json-input",
            "contractname": f"{artifact['sourceName']}:{artifact.get('contractName', name)}",
            "compilerversion": artifact["compilerVersion"],
            # sic, the explorer API spells it this way
            "constructorArguements": encode_constructor_args(artifact["abi"], args),
        },
        session=session,
    )
    if str(result.get("status")) != "1":
        message = str(result.get("result", ""))
        if "already verified" in message.lower():
            log("Already verified!")
            return True
        raise VerificationError(message or "verification request rejected")

    guid = result["result"]
    for _ in range(VERIFY_ATTEMPTS):
        time.sleep(poll_interval)
        status = _request(
            "GET",
            {"chainid": chain_id, "apikey": api_key, "module": "contract", "action": "checkverifystatus", "guid": guid},
            session=session,
        )
        message = str(status.get("result", ""))
        if "pending" in message.lower():
            continue
        if str(status.get("status")) == "1" or "already verified" in message.lower():
            log(f"Successfully verified {name} at {address}")
            return True
        raise VerificationError(message)
    raise VerificationError(f"Verification of {address} still pending after {VERIFY_ATTEMPTS} checks")
