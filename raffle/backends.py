"""Client surface shared by the in-process chain and JSON-RPC nodes."""

import time

from eth_abi import decode
from eth_account import Account
from eth_utils import keccak, to_checksum_address
from web3 import Web3
from web3.exceptions import ContractLogicError, LogTopicError, MismatchedABI, TimeExhausted
from web3.middleware import ExtraDataToPOAMiddleware

from raffle import config
from raffle.chain import DevChain, Log, Receipt
from raffle.contracts import LOCAL_CONTRACTS, load_abi
from raffle.deployments import load_artifact
from raffle.errors import ContractRevert, DeploymentError, RaffleError

ERROR_STRING_SELECTOR = "08c379a0"
PANIC_SELECTOR = "4e487b71"


def _signature(item):
    return f"{item['name']}({','.join(i['type'] for i in item.get('inputs', []))})"


def decode_revert(abi, error):
    """Turn a node's revert into a :class:`ContractRevert` using the ABI's custom errors."""
    data = getattr(error, "data", None)
    if isinstance(data, dict):
        data = data.get("data")
    if isinstance(data, str) and data.startswith("0x") and len(data) >= 10:
        selector, payload = data[2:10], bytes.fromhex(data[10:])
        if selector == ERROR_STRING_SELECTOR:
            return ContractRevert(decode(["string"], payload)[0])
        if selector == PANIC_SELECTOR:
            return ContractRevert(f"Panic({hex(decode(['uint256'], payload)[0])})")
        for item in abi:
            if item.get("type") != "error":
                continue
            if keccak(text=_signature(item))[:4].hex() == selector:
                types = [i["type"] for i in item.get("inputs", [])]
                return ContractRevert(item["name"], *decode(types, payload))

    message = str(getattr(error, "message", None) or error)
    for prefix in ("execution reverted: ", "execution reverted", "VM Exception while processing transaction: reverted with reason string "):
        if message.startswith(prefix):
            message = message[len(prefix):].strip("'") or "execution reverted"
            break
    return ContractRevert(message)


class Contract:
    """A deployed contract bound to a backend and a sending account."""

    def __init__(self, backend, name, address, abi, sender=None):
        self.backend = backend
        self.name = name
        self.address = to_checksum_address(address)
        self.abi = abi
        self._sender = sender

    def __repr__(self):
        return f"<{self.name} at {self.address}>"

    @property
    def sender(self):
        return self._sender or self.backend.accounts[0]

    @property
    def balance(self):
        return self.backend.balance(self.address)

    def connect(self, sender):
        return Contract(self.backend, self.name, self.address, self.abi, sender=to_checksum_address(sender))

    def call(self, method, *args, value=0):
        return self.backend.call(self.address, self.abi, method, *args, sender=self.sender, value=value)

    def transact(self, method, *args, value=0, gas=None, confirmations=1):
        return self.backend.transact(
            self.address, self.abi, method, *args, sender=self.sender, value=value, gas=gas, confirmations=confirmations
        )

    def get_logs(self, event, from_block=0):
        return self.backend.get_logs(self.address, self.abi, event, from_block=from_block)

    def wait_for(self, event, from_block=None, timeout=None):
        return self.backend.wait_for(self.address, self.abi, event, from_block=from_block, timeout=timeout)

    def once(self, event, callback):
        self.backend.once(self.address, event, callback, abi=self.abi)


class LocalBackend:
    development = True

    def __init__(self, network, chain=None):
        self.network = network
        self.chain = chain or DevChain(chain_id=network["chain_id"])

    @property
    def chain_id(self):
        return self.chain.chain_id

    @property
    def accounts(self):
        return self.chain.accounts

    @property
    def block_number(self):
        return self.chain.block_number

    def timestamp(self):
        return self.chain.timestamp

    def balance(self, address):
        return self.chain.balance_of(address)

    def deploy(self, name, args, sender, confirmations=1):
        try:
            contract_cls = LOCAL_CONTRACTS[name]
        except KeyError:
            raise DeploymentError(f"{name} can't be deployed on the {self.network['name']} network") from None
        receipt = self.chain.deploy(sender, contract_cls, *args)
        return receipt, load_abi(name)

    def call(self, address, abi, method, *args, sender=None, value=0):
        return self.chain.call(address, method, *args, sender=sender, value=value)

    def transact(self, address, abi, method, *args, sender, value=0, gas=None, confirmations=1):
        return self.chain.transact(sender, address, method, *args, value=value)

    def send(self, sender, to, value):
        return self.chain.send(sender, to, value)

    def increase_time(self, seconds):
        self.chain.increase_time(seconds)

    def mine(self):
        self.chain.mine()

    def get_logs(self, address, abi, event, from_block=0):
        return self.chain.get_logs(address=address, event=event, from_block=from_block)

    def wait_for(self, address, abi, event, from_block=None, timeout=None):
        # nothing mines on its own here, so the event is either logged already or never
        from_block = self.block_number if from_block is None else from_block
        logs = self.get_logs(address, abi, event, from_block=from_block)
        if not logs:
            raise RaffleError(f"No {event} event since block {from_block}")
        return logs[0]

    def once(self, address, event, callback, abi=None, timeout=None):
        self.chain.once(address, event, callback)


class Web3Backend:
    def __init__(self, network, w3=None):
        self.network = network
        self.development = config.is_development(network["name"])
        self.w3 = w3 or Web3(Web3.HTTPProvider(network["url"], request_kwargs={"timeout": 60}))
        self.w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        self._signers = {}
        # event decoding for logs emitted by other contracts during a transaction
        self._event_abis = {}
        for name in LOCAL_CONTRACTS:
            self.register_abi(load_abi(name))
        for key in network.get("accounts") or []:
            if key:
                account = Account.from_key(key)
                self._signers[account.address] = account

    @property
    def chain_id(self):
        return self.w3.eth.chain_id

    @property
    def accounts(self):
        if self._signers:
            return list(self._signers)
        return list(self.w3.eth.accounts)

    @property
    def block_number(self):
        return self.w3.eth.block_number

    def timestamp(self):
        return self.w3.eth.get_block("latest")["timestamp"]

    def balance(self, address):
        return self.w3.eth.get_balance(to_checksum_address(address))

    def _contract(self, address, abi):
        return self.w3.eth.contract(address=to_checksum_address(address), abi=abi)

    def _send(self, tx, sender, abi, confirmations):
        sender = to_checksum_address(sender)
        if sender in self._signers:
            tx["nonce"] = self.w3.eth.get_transaction_count(sender)
            signed_tx = self._signers[sender].sign_transaction(tx)
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
        else:
            tx_hash = self.w3.eth.send_transaction(tx)

        try:
            receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=config.EVENT_TIMEOUT)
        except TimeExhausted:
            raise RaffleError(f"Transaction {Web3.to_hex(tx_hash)} not mined after {config.EVENT_TIMEOUT}s") from None
        while self.w3.eth.block_number < receipt["blockNumber"] + confirmations - 1:
            time.sleep(config.POLL_INTERVAL)
        if receipt["status"] != 1:
            raise ContractRevert("transaction reverted")
        return self._receipt(receipt, abi)

    def register_abi(self, abi):
        for item in abi:
            if item.get("type") == "event" and not item.get("anonymous"):
                topic = Web3.to_hex(keccak(text=_signature(item)))
                self._event_abis.setdefault(topic, item)

    def _decode_log(self, raw):
        topics = [Web3.to_hex(topic) for topic in raw["topics"]]
        item = self._event_abis.get(topics[0]) if topics else None
        if item is not None:
            event = getattr(self.w3.eth.contract(abi=[item]).events, item["name"])()
            try:
                return self._log(event.process_log(raw))
            except (MismatchedABI, LogTopicError):
                pass
        # unknown event, kept undecoded
        return Log(
            address=to_checksum_address(raw["address"]),
            event=None,
            args={"topics": topics, "data": Web3.to_hex(raw["data"])},
            block_number=raw["blockNumber"],
            transaction_hash=Web3.to_hex(raw["transactionHash"]),
            log_index=raw["logIndex"],
        )

    def _receipt(self, receipt, abi):
        self.register_abi(abi)
        logs = sorted((self._decode_log(raw) for raw in receipt["logs"]), key=lambda log: log.log_index)
        return Receipt(
            transaction_hash=Web3.to_hex(receipt["transactionHash"]),
            block_number=receipt["blockNumber"],
            sender=receipt["from"],
            to=receipt.get("to"),
            contract_address=receipt.get("contractAddress"),
            logs=logs,
            status=receipt["status"],
            gas_used=receipt["gasUsed"],
        )

    @staticmethod
    def _log(event):
        return Log(
            address=event["address"],
            event=event["event"],
            args=dict(event["args"]),
            block_number=event["blockNumber"],
            transaction_hash=Web3.to_hex(event["transactionHash"]),
            log_index=event["logIndex"],
        )

    def deploy(self, name, args, sender, confirmations=1):
        artifact = load_artifact(name)
        factory = self.w3.eth.contract(abi=artifact["abi"], bytecode=artifact["bytecode"])
        tx = factory.constructor(*args).build_transaction({"from": to_checksum_address(sender), "chainId": self.chain_id})
        return self._send(tx, sender, artifact["abi"], confirmations), artifact["abi"]

    def call(self, address, abi, method, *args, sender=None, value=0):
        fn = getattr(self._contract(address, abi).functions, method)(*args)
        params = {"value": value}
        if sender:
            params["from"] = to_checksum_address(sender)
        try:
            return fn.call(params)
        except ContractLogicError as e:
            raise decode_revert(abi, e) from e

    def transact(self, address, abi, method, *args, sender, value=0, gas=None, confirmations=1):
        fn = getattr(self._contract(address, abi).functions, method)(*args)
        params = {"from": to_checksum_address(sender), "value": value, "chainId": self.chain_id}
        if gas:
            params["gas"] = gas
        try:
            tx = fn.build_transaction(params)
        except ContractLogicError as e:
            raise decode_revert(abi, e) from e
        return self._send(tx, sender, abi, confirmations)

    def send(self, sender, to, value):
        tx = {"from": to_checksum_address(sender), "to": to_checksum_address(to), "value": value, "chainId": self.chain_id}
        tx["gas"] = self.w3.eth.estimate_gas(tx)
        tx["gasPrice"] = self.w3.eth.gas_price
        return self._send(tx, sender, [], 1)

    def _require_development(self, method):
        if not self.development:
            raise RaffleError(f"{method} is only available on development networks")

    def increase_time(self, seconds):
        self._require_development("evm_increaseTime")
        self.w3.provider.make_request("evm_increaseTime", [int(seconds)])

    def mine(self):
        self._require_development("evm_mine")
        self.w3.provider.make_request("evm_mine", [])

    def get_logs(self, address, abi, event, from_block=0):
        events = getattr(self._contract(address, abi).events, event)().get_logs(from_block=from_block)
        return [self._log(e) for e in events]

    def wait_for(self, address, abi, event, from_block=None, timeout=None):
        from_block = self.block_number if from_block is None else from_block
        deadline = time.time() + (timeout or config.EVENT_TIMEOUT)
        while time.time() < deadline:
            logs = self.get_logs(address, abi, event, from_block=from_block)
            if logs:
                return logs[0]
            time.sleep(config.POLL_INTERVAL)
        raise RaffleError(f"Timed out waiting for {event} on {address}")

    def once(self, address, event, callback, abi=None, timeout=None):
        """Blocks until ``event`` is logged, then hands it to ``callback``."""
        if abi is None:
            abi = [item for item in self._event_abis.values() if item["name"] == event]
        log = self.wait_for(address, abi, event, timeout=timeout)
        callback(log)
        return log


def connect(network_name=None, chain=None):
    network = config.get_network(network_name or config.DEFAULT_NETWORK)
    if network.get("url"):
        return Web3Backend(network)
    return LocalBackend(network, chain=chain)
