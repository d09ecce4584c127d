"""In-process development chain.

Stands in for the framework's ``hardhat`` network: funded accounts, one block
per transaction, simulated block time, atomic transactions, event logs and
listeners. Contracts deployed here are Python stand-ins registered in
:mod:`raffle.contracts`; no bytecode is executed.
"""

import copy
import itertools
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import click
import rlp
from eth_account import Account
from eth_utils import keccak, to_bytes, to_checksum_address
from web3 import Web3

from raffle.errors import ContractRevert, RaffleError

DEFAULT_ACCOUNTS = 20
DEFAULT_BALANCE = Web3.to_wei(10000, "ether")


@dataclass(frozen=True)
class Msg:
    sender: str
    value: int = 0


@dataclass
class Log:
    address: str
    event: str
    args: Dict[str, Any]
    block_number: int = 0
    transaction_hash: str = ""
    log_index: int = 0


@dataclass
class Receipt:
    transaction_hash: str
    block_number: int
    sender: str
    to: Optional[str] = None
    contract_address: Optional[str] = None
    logs: List[Log] = field(default_factory=list)
    status: int = 1
    gas_used: int = 0
    return_value: Any = None

    def events(self, name):
        return [log for log in self.logs if log.event == name]


def contract_address(sender, nonce):
    return to_checksum_address(keccak(rlp.encode([to_bytes(hexstr=sender), nonce]))[12:])


class DevChain:
    def __init__(self, chain_id=31337, accounts=DEFAULT_ACCOUNTS, balance=DEFAULT_BALANCE, start_time=None):
        self.chain_id = chain_id
        self._keys = [Web3.keccak(text=f"raffle-devchain-account-{i}") for i in range(accounts)]
        self.accounts = [Account.from_key(key).address for key in self._keys]
        self._contracts = {}
        self._listeners = []
        self.listener_errors = []
        self._snapshots = {}
        self._snapshot_ids = itertools.count(1)
        self._pending_logs = None
        self._state = {
            "balances": {address: balance for address in self.accounts},
            "nonces": {},
            "storage": {},
            "logs": [],
            "block_number": 0,
            "timestamp": int(start_time if start_time is not None else time.time()),
            "time_increase": 0,
        }

    @property
    def block_number(self):
        return self._state["block_number"]

    @property
    def timestamp(self):
        return self._state["timestamp"]

    def private_key(self, address):
        return self._keys[self.accounts.index(to_checksum_address(address))]

    def balance_of(self, address):
        return self._state["balances"].get(to_checksum_address(address), 0)

    def set_balance(self, address, value):
        self._state["balances"][to_checksum_address(address)] = value

    def nonce_of(self, address):
        return self._state["nonces"].get(to_checksum_address(address), 0)

    def storage(self, address):
        return self._state["storage"][address]

    def has_code(self, address):
        return to_checksum_address(address) in self._state["storage"]

    def contract_at(self, address):
        address = to_checksum_address(address)
        if not self.has_code(address):
            raise RaffleError(f"No contract deployed at {address}")
        return self._contracts[address]

    # time travel

    def increase_time(self, seconds):
        self._state["time_increase"] += int(seconds)

    def mine(self, blocks=1):
        for _ in range(blocks):
            self._state["block_number"] += 1
            self._state["timestamp"] += 1 + self._state["time_increase"]
            self._state["time_increase"] = 0
        return self.block_number

    def snapshot(self):
        snapshot_id = next(self._snapshot_ids)
        self._snapshots[snapshot_id] = copy.deepcopy(self._state)
        return snapshot_id

    def revert(self, snapshot_id):
        if snapshot_id not in self._snapshots:
            return False
        self._state = self._snapshots[snapshot_id]
        for later in [s for s in self._snapshots if s >= snapshot_id]:
            del self._snapshots[later]
        return True

    # value transfer

    def transfer(self, sender, to, value):
        balances = self._state["balances"]
        if balances.get(sender, 0) < value:
            return False
        balances[sender] -= value
        balances[to] = balances.get(to, 0) + value
        return True

    # transactions

    def deploy(self, sender, contract_cls, *args, value=0):
        sender = to_checksum_address(sender)
        address = contract_address(sender, self.nonce_of(sender))

        def create():
            self._contracts[address] = contract = contract_cls(self, address)
            self._state["storage"][address] = {}
            if value and not self.transfer(sender, address, value):
                raise RaffleError(f"Sender {sender} doesn't have enough funds to send tx")
            contract.constructor(Msg(sender, value), *args)
            return address

        receipt = self._execute(sender, None, create)
        receipt.contract_address = address
        return receipt

    def transact(self, sender, address, method, *args, value=0):
        sender = to_checksum_address(sender)
        address = to_checksum_address(address)

        def run():
            contract = self.contract_at(address)
            if value and not self.transfer(sender, address, value):
                raise RaffleError(f"Sender {sender} doesn't have enough funds to send tx")
            return contract.dispatch(Msg(sender, value), method, args)

        return self._execute(sender, address, run)

    def send(self, sender, to, value):
        sender = to_checksum_address(sender)
        to = to_checksum_address(to)

        def run():
            if not self.transfer(sender, to, value):
                raise RaffleError(f"Sender {sender} doesn't have enough funds to send tx")

        return self._execute(sender, to, run)

    def call(self, address, method, *args, sender=None, value=0):
        """Run ``method`` without persisting anything, like ``eth_call``."""
        sender = to_checksum_address(sender or self.accounts[0])
        snapshot = copy.deepcopy(self._state)
        pending, self._pending_logs = self._pending_logs, []
        try:
            contract = self.contract_at(address)
            if value:
                self.transfer(sender, contract.address, value)
            return contract.dispatch(Msg(sender, value), method, args)
        finally:
            self._state = snapshot
            self._pending_logs = pending

    def call_contract(self, caller, address, method, *args, value=0):
        """Contract-to-contract call inside a running transaction."""
        contract = self.contract_at(address)
        if value and not self.transfer(caller, contract.address, value):
            raise ContractRevert("insufficient balance for call")
        return contract.dispatch(Msg(caller, value), method, args)

    def try_call_contract(self, caller, address, method, *args, value=0):
        """Low-level call: a revert rolls back the callee and is reported, not raised."""
        if not self.has_code(address):
            return True, None
        snapshot = copy.deepcopy(self._state)
        logs_before = len(self._pending_logs)
        try:
            return True, self.call_contract(caller, address, method, *args, value=value)
        except Exception:
            # any failure in the callee is a failed call for the caller
            self._state = snapshot
            del self._pending_logs[logs_before:]
            return False, None

    def emit(self, address, event, **args):
        if self._pending_logs is None:
            raise RaffleError("Events can only be emitted inside a transaction")
        self._pending_logs.append(Log(address=address, event=event, args=args))

    def _execute(self, sender, to, action):
        if sender not in self.accounts and self.balance_of(sender) == 0:
            raise RaffleError(f"Unknown account {sender}")
        snapshot = copy.deepcopy(self._state)
        nonce = self.nonce_of(sender)
        self._pending_logs = []
        try:
            self.mine()
            self._state["nonces"][sender] = nonce + 1
            result = action()
        except Exception:
            self._state = snapshot
            raise
        finally:
            logs, self._pending_logs = self._pending_logs, None

        tx_hash = Web3.to_hex(Web3.keccak(text=f"{self.chain_id}:{sender}:{nonce}"))
        for index, log in enumerate(logs):
            log.block_number = self.block_number
            log.transaction_hash = tx_hash
            log.log_index = index
        self._state["logs"].extend(logs)
        receipt = Receipt(
            transaction_hash=tx_hash,
            block_number=self.block_number,
            sender=sender,
            to=to,
            logs=list(logs),
            return_value=result,
        )
        self._notify(logs)
        return receipt

    # events

    def get_logs(self, address=None, event=None, from_block=0):
        address = address and to_checksum_address(address)
        return [
            log
            for log in self._state["logs"]
            if log.block_number >= from_block
            and (address is None or log.address == address)
            and (event is None or log.event == event)
        ]

    def on(self, address, event, callback: Callable[[Log], Any], once=False):
        self._listeners.append((to_checksum_address(address), event, callback, once))

    def once(self, address, event, callback):
        self.on(address, event, callback, once=True)

    def _notify(self, logs):
        for log in logs:
            for listener in list(self._listeners):
                address, event, callback, once = listener
                if log.address != address or log.event != event:
                    continue
                if once:
                    self._listeners.remove(listener)
                # the transaction is already mined, a failing listener can't undo it
                try:
                    callback(log)
                except Exception as e:
                    self.listener_errors.append((log, e))
                    click.echo(f"{log.event} listener failed: {e!r}", err=True)
