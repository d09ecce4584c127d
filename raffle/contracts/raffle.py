from enum import IntEnum

from eth_utils import to_checksum_address

from raffle.contracts.base import LocalContract

REQUEST_CONFIRMATIONS = 3
NUM_WORDS = 1


class RaffleState(IntEnum):
    OPEN = 0
    CALCULATING = 1


class Raffle(LocalContract):
    """VRF consumer: players pay in, upkeep requests a random word, the
    coordinator's callback pays the whole balance to one player."""

    NAME = "Raffle"

    def constructor(self, msg, vrf_coordinator, subscription_id, gas_lane, interval, entrance_fee, callback_gas_limit):
        self.storage.update(
            vrf_coordinator=to_checksum_address(vrf_coordinator),
            subscription_id=int(subscription_id),
            gas_lane=gas_lane,
            interval=int(interval),
            entrance_fee=int(entrance_fee),
            callback_gas_limit=int(callback_gas_limit),
            state=RaffleState.OPEN,
            last_timestamp=self.chain.timestamp,
            players=[],
            recent_winner="0x0000000000000000000000000000000000000000",
        )

    def enter_raffle(self, msg):
        if msg.value < self.storage["entrance_fee"]:
            self.revert("Raffle__NotEnoughETHEntered")
        if self.storage["state"] != RaffleState.OPEN:
            self.revert("Raffle__NotOpen")
        self.storage["players"].append(msg.sender)
        self.emit("RaffleEnter", player=msg.sender)

    def check_upkeep(self, msg, perform_data=b""):
        """Upkeep is needed once the interval has passed on an open raffle
        that holds players and funds."""
        s = self.storage
        is_open = s["state"] == RaffleState.OPEN
        time_passed = (self.chain.timestamp - s["last_timestamp"]) > s["interval"]
        has_players = len(s["players"]) > 0
        has_balance = self.balance > 0
        return is_open and time_passed and has_players and has_balance, b""

    def perform_upkeep(self, msg, perform_data=b""):
        upkeep_needed, _ = self.check_upkeep(msg, perform_data)
        s = self.storage
        if not upkeep_needed:
            self.revert("Raffle__UpkeepNotNeeded", self.balance, len(s["players"]), int(s["state"]))

        s["state"] = RaffleState.CALCULATING
        request_id = self.chain.call_contract(
            self.address,
            s["vrf_coordinator"],
            "requestRandomWords",
            s["gas_lane"],
            s["subscription_id"],
            REQUEST_CONFIRMATIONS,
            s["callback_gas_limit"],
            NUM_WORDS,
        )
        self.emit("RequestedRaffleWinner", requestId=request_id)

    def raw_fulfill_random_words(self, msg, request_id, random_words):
        if msg.sender != self.storage["vrf_coordinator"]:
            self.revert("OnlyCoordinatorCanFulfill", msg.sender, self.storage["vrf_coordinator"])
        self._fulfill_random_words(request_id, random_words)

    def _fulfill_random_words(self, request_id, random_words):
        s = self.storage
        if not s["players"]:
            # division by zero
            self.revert("Panic(0x12)")
        winner = s["players"][random_words[0] % len(s["players"])]
        s["recent_winner"] = winner
        s["state"] = RaffleState.OPEN
        s["players"] = []
        s["last_timestamp"] = self.chain.timestamp
        if not self.chain.transfer(self.address, winner, self.balance):
            self.revert("Raffle__TransferFailed")
        self.emit("WinnerPicked", winner=winner)

    def get_entrance_fee(self, msg):
        return self.storage["entrance_fee"]

    def get_player(self, msg, index):
        players = self.storage["players"]
        if not 0 <= index < len(players):
            self.revert("Panic(0x32)")
        return players[index]

    def get_recent_winner(self, msg):
        return self.storage["recent_winner"]

    def get_raffle_state(self, msg):
        return int(self.storage["state"])

    def get_num_words(self, msg):
        return NUM_WORDS

    def get_number_of_players(self, msg):
        return len(self.storage["players"])

    def get_latest_time_stamp(self, msg):
        return self.storage["last_timestamp"]

    def get_request_confirmations(self, msg):
        return REQUEST_CONFIRMATIONS

    def get_interval(self, msg):
        return self.storage["interval"]

    def get_subscription_id(self, msg):
        return self.storage["subscription_id"]
