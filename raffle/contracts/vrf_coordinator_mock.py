from eth_utils import to_checksum_address
from web3 import Web3

from raffle.contracts.base import LocalContract

MAX_CONSUMERS = 100
MAX_NUM_WORDS = 500


def random_word(request_id, index):
    return int.from_bytes(Web3.solidity_keccak(["uint256", "uint256"], [request_id, index]), "big")


class VRFCoordinatorV2Mock(LocalContract):
    NAME = "VRFCoordinatorV2Mock"

    def constructor(self, msg, base_fee, gas_price_link):
        self.storage.update(
            base_fee=int(base_fee),
            gas_price_link=int(gas_price_link),
            current_sub_id=0,
            next_request_id=1,
            next_pre_seed=100,
            subscriptions={},
            consumers={},
            requests={},
        )

    def _subscription(self, sub_id):
        sub = self.storage["subscriptions"].get(int(sub_id))
        if sub is None:
            self.revert("InvalidSubscription")
        return sub

    def _only_owner(self, msg, sub_id):
        sub = self._subscription(sub_id)
        if msg.sender != sub["owner"]:
            self.revert("MustBeSubOwner", sub["owner"])
        return sub

    def create_subscription(self, msg):
        s = self.storage
        s["current_sub_id"] += 1
        sub_id = s["current_sub_id"]
        s["subscriptions"][sub_id] = {"owner": msg.sender, "balance": 0, "req_count": 0}
        s["consumers"][sub_id] = []
        self.emit("SubscriptionCreated", subId=sub_id, owner=msg.sender)
        return sub_id

    def get_subscription(self, msg, sub_id):
        sub = self._subscription(sub_id)
        return sub["balance"], sub["req_count"], sub["owner"], list(self.storage["consumers"][int(sub_id)])

    def cancel_subscription(self, msg, sub_id, to):
        sub = self._only_owner(msg, sub_id)
        sub_id = int(sub_id)
        self.emit("SubscriptionCanceled", subId=sub_id, to=to_checksum_address(to), amount=sub["balance"])
        del self.storage["subscriptions"][sub_id]
        del self.storage["consumers"][sub_id]

    def fund_subscription(self, msg, sub_id, amount):
        sub = self._subscription(sub_id)
        old_balance = sub["balance"]
        sub["balance"] += int(amount)
        self.emit("SubscriptionFunded", subId=int(sub_id), oldBalance=old_balance, newBalance=sub["balance"])

    def add_consumer(self, msg, sub_id, consumer):
        self._only_owner(msg, sub_id)
        consumer = to_checksum_address(consumer)
        consumers = self.storage["consumers"][int(sub_id)]
        if consumer in consumers:
            return
        if len(consumers) == MAX_CONSUMERS:
            self.revert("TooManyConsumers")
        consumers.append(consumer)
        self.emit("ConsumerAdded", subId=int(sub_id), consumer=consumer)

    def remove_consumer(self, msg, sub_id, consumer):
        self._only_owner(msg, sub_id)
        consumer = to_checksum_address(consumer)
        consumers = self.storage["consumers"][int(sub_id)]
        if consumer not in consumers:
            self.revert("InvalidConsumer")
        consumers.remove(consumer)
        self.emit("ConsumerRemoved", subId=int(sub_id), consumer=consumer)

    def consumer_is_added(self, msg, sub_id, consumer):
        self._subscription(sub_id)
        return to_checksum_address(consumer) in self.storage["consumers"][int(sub_id)]

    def request_random_words(self, msg, key_hash, sub_id, minimum_request_confirmations, callback_gas_limit, num_words):
        sub = self._subscription(sub_id)
        sub_id = int(sub_id)
        if msg.sender not in self.storage["consumers"][sub_id]:
            self.revert("InvalidConsumer")
        if num_words > MAX_NUM_WORDS:
            self.revert("NumWordsTooBig")

        s = self.storage
        request_id = s["next_request_id"]
        pre_seed = s["next_pre_seed"]
        s["next_request_id"] += 1
        s["next_pre_seed"] += 1
        s["requests"][request_id] = {
            "sub_id": sub_id,
            "callback_gas_limit": int(callback_gas_limit),
            "num_words": int(num_words),
        }
        sub["req_count"] += 1
        self.emit(
            "RandomWordsRequested",
            keyHash=key_hash,
            requestId=request_id,
            preSeed=pre_seed,
            subId=sub_id,
            minimumRequestConfirmations=minimum_request_confirmations,
            callbackGasLimit=callback_gas_limit,
            numWords=num_words,
            sender=msg.sender,
        )
        return request_id

    def fulfill_random_words(self, msg, request_id, consumer):
        return self.fulfill_random_words_with_override(msg, request_id, consumer, [])

    def fulfill_random_words_with_override(self, msg, request_id, consumer, words):
        s = self.storage
        request = s["requests"].get(int(request_id))
        if request is None:
            self.revert("nonexistent request")

        if not words:
            words = [random_word(request_id, i) for i in range(request["num_words"])]
        elif len(words) != request["num_words"]:
            self.revert("InvalidRandomWords")

        success, _ = self.chain.try_call_contract(
            self.address, consumer, "rawFulfillRandomWords", int(request_id), list(words)
        )
        # a failed callback rolls chain state back, reload
        s = self.storage

        # no gas metering here: charge as if the whole callback gas limit was used
        payment = s["base_fee"] + s["gas_price_link"] * request["callback_gas_limit"]
        # a cancelled subscription has nothing left to pay with
        sub = s["subscriptions"].get(request["sub_id"])
        if sub is None or sub["balance"] < payment:
            self.revert("InsufficientBalance")
        sub["balance"] -= payment
        del s["requests"][int(request_id)]
        self.emit("RandomWordsFulfilled", requestId=int(request_id), outputSeed=int(request_id), payment=payment, success=success)
        return payment
