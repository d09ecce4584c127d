import json

from raffle import frontend

ADDRESS = "0x1111111111111111111111111111111111111111"
OTHER = "0x2222222222222222222222222222222222222222"


def test_creates_the_address_file(tmp_path):
    path = tmp_path / "constants" / "contractAddresses.json"
    frontend.update_contract_addresses(ADDRESS, 31337, path)
    assert json.loads(path.read_text()) == {"31337": [ADDRESS]}


def test_appends_new_addresses_once(tmp_path):
    path = tmp_path / "contractAddresses.json"
    path.write_text(json.dumps({"31337": [ADDRESS]}))

    frontend.update_contract_addresses(OTHER, 31337, path)
    frontend.update_contract_addresses(OTHER, 31337, path)

    assert json.loads(path.read_text()) == {"31337": [ADDRESS, OTHER]}


def test_keeps_other_chains(tmp_path):
    path = tmp_path / "contractAddresses.json"
    frontend.update_contract_addresses(ADDRESS, 31337, path)
    frontend.update_contract_addresses(OTHER, 11155111, path)
    assert json.loads(path.read_text()) == {"31337": [ADDRESS], "11155111": [OTHER]}


def test_writes_the_abi(tmp_path):
    path = tmp_path / "abi.json"
    abi = [{"type": "function", "name": "enterRaffle", "inputs": [], "outputs": []}]
    frontend.update_abi(abi, path)
    assert json.loads(path.read_text()) == abi
