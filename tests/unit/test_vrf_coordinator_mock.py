import pytest
from web3 import Web3

from raffle import config
from raffle.contracts.vrf_coordinator_mock import random_word
from raffle.errors import ContractRevert

GAS_LANE = config.GAS_LANE_100_GWEI


def test_deployment_funds_a_subscription_for_the_raffle(vrf_coordinator, raffle, deployer):
    balance, req_count, owner, consumers = vrf_coordinator.call("getSubscription", 1)
    assert balance == config.VRF_SUBSCRIPTION_FUND_AMOUNT
    assert req_count == 0
    assert owner == deployer
    assert consumers == [raffle.address]
    assert vrf_coordinator.call("consumerIsAdded", 1, raffle.address)


def test_subscription_ids_are_sequential(vrf_coordinator, accounts):
    receipt = vrf_coordinator.connect(accounts[1]).transact("createSubscription")
    [log] = receipt.events("SubscriptionCreated")
    assert log.args == {"subId": 2, "owner": accounts[1]}
    assert receipt.return_value == 2


def test_funding_emits_old_and_new_balance(vrf_coordinator):
    amount = Web3.to_wei(1, "ether")
    receipt = vrf_coordinator.transact("fundSubscription", 1, amount)
    [log] = receipt.events("SubscriptionFunded")
    assert log.args["oldBalance"] == config.VRF_SUBSCRIPTION_FUND_AMOUNT
    assert log.args["newBalance"] == config.VRF_SUBSCRIPTION_FUND_AMOUNT + amount


def test_unknown_subscription_is_rejected(vrf_coordinator):
    with pytest.raises(ContractRevert, match="InvalidSubscription"):
        vrf_coordinator.transact("fundSubscription", 42, 1)
    with pytest.raises(ContractRevert, match="InvalidSubscription"):
        vrf_coordinator.call("getSubscription", 42)


def test_only_the_owner_manages_consumers(vrf_coordinator, accounts, deployer):
    with pytest.raises(ContractRevert, match="MustBeSubOwner") as exc:
        vrf_coordinator.connect(accounts[1]).transact("addConsumer", 1, accounts[1])
    assert exc.value.params == (deployer,)


def test_adding_a_consumer_twice_is_a_no_op(vrf_coordinator, raffle):
    receipt = vrf_coordinator.transact("addConsumer", 1, raffle.address)
    assert receipt.events("ConsumerAdded") == []
    assert vrf_coordinator.call("getSubscription", 1)[3] == [raffle.address]


def test_remove_consumer(vrf_coordinator, raffle, accounts):
    with pytest.raises(ContractRevert, match="InvalidConsumer"):
        vrf_coordinator.transact("removeConsumer", 1, accounts[5])
    receipt = vrf_coordinator.transact("removeConsumer", 1, raffle.address)
    assert receipt.events("ConsumerRemoved")[0].args["consumer"] == raffle.address
    assert not vrf_coordinator.call("consumerIsAdded", 1, raffle.address)


def test_only_consumers_can_request_words(vrf_coordinator):
    with pytest.raises(ContractRevert, match="InvalidConsumer"):
        vrf_coordinator.transact("requestRandomWords", GAS_LANE, 1, 3, 500000, 1)


def test_request_ids_start_at_one(vrf_coordinator, deployer):
    vrf_coordinator.transact("addConsumer", 1, deployer)
    first = vrf_coordinator.transact("requestRandomWords", GAS_LANE, 1, 3, 500000, 2)
    second = vrf_coordinator.transact("requestRandomWords", GAS_LANE, 1, 3, 500000, 2)

    assert first.return_value == 1
    assert second.return_value == 2
    [log] = first.events("RandomWordsRequested")
    assert log.args["sender"] == deployer
    assert log.args["numWords"] == 2
    assert vrf_coordinator.call("getSubscription", 1)[1] == 2


def test_too_many_words(vrf_coordinator, deployer):
    vrf_coordinator.transact("addConsumer", 1, deployer)
    with pytest.raises(ContractRevert, match="NumWordsTooBig"):
        vrf_coordinator.transact("requestRandomWords", GAS_LANE, 1, 3, 500000, 501)


def test_fulfillment_charges_the_subscription(vrf_coordinator, deployer):
    vrf_coordinator.transact("addConsumer", 1, deployer)
    vrf_coordinator.transact("requestRandomWords", GAS_LANE, 1, 3, 500000, 1)

    receipt = vrf_coordinator.transact("fulfillRandomWords", 1, deployer)

    payment = config.BASE_FEE + config.GAS_PRICE_LINK * 500000
    [log] = receipt.events("RandomWordsFulfilled")
    assert log.args["payment"] == payment
    assert log.args["success"] is True
    assert vrf_coordinator.call("getSubscription", 1)[0] == config.VRF_SUBSCRIPTION_FUND_AMOUNT - payment
    with pytest.raises(ContractRevert, match="nonexistent request"):
        vrf_coordinator.transact("fulfillRandomWords", 1, deployer)


def test_insufficient_balance_reverts_the_fulfillment(vrf_coordinator, deployer):
    sub_id = vrf_coordinator.transact("createSubscription").return_value
    vrf_coordinator.transact("fundSubscription", sub_id, Web3.to_wei("0.1", "ether"))
    vrf_coordinator.transact("addConsumer", sub_id, deployer)
    request_id = vrf_coordinator.transact("requestRandomWords", GAS_LANE, sub_id, 3, 500000, 1).return_value

    with pytest.raises(ContractRevert, match="InsufficientBalance"):
        vrf_coordinator.transact("fulfillRandomWords", request_id, deployer)
    # the request survives the failed fulfillment
    vrf_coordinator.transact("fundSubscription", sub_id, config.BASE_FEE)
    vrf_coordinator.transact("fulfillRandomWords", request_id, deployer)


def test_override_must_match_the_requested_word_count(vrf_coordinator, deployer):
    vrf_coordinator.transact("addConsumer", 1, deployer)
    vrf_coordinator.transact("requestRandomWords", GAS_LANE, 1, 3, 500000, 2)
    with pytest.raises(ContractRevert, match="InvalidRandomWords"):
        vrf_coordinator.transact("fulfillRandomWordsWithOverride", 1, deployer, [1])


def test_failed_callback_is_reported_not_raised(vrf_coordinator, raffle, entrance_fee, pass_time):
    raffle.transact("enterRaffle", value=entrance_fee)
    pass_time()
    raffle.transact("performUpkeep", b"")

    # the coordinator itself has no rawFulfillRandomWords
    receipt = vrf_coordinator.transact("fulfillRandomWords", 1, vrf_coordinator.address)

    assert receipt.events("RandomWordsFulfilled")[0].args["success"] is False
    assert raffle.call("getRaffleState") == 1
    assert raffle.call("getNumberOfPlayers") == 1


def test_cancel_subscription(vrf_coordinator, deployer):
    receipt = vrf_coordinator.transact("cancelSubscription", 1, deployer)
    assert receipt.events("SubscriptionCanceled")[0].args["amount"] == config.VRF_SUBSCRIPTION_FUND_AMOUNT
    with pytest.raises(ContractRevert, match="InvalidSubscription"):
        vrf_coordinator.call("getSubscription", 1)


def test_default_words_are_deterministic():
    assert random_word(1, 0) == random_word(1, 0)
    assert random_word(1, 0) != random_word(1, 1)
    assert random_word(2, 0) != random_word(1, 0)


def test_cancelled_subscription_cannot_pay_for_a_pending_request(
    vrf_coordinator, raffle, backend, deployer, entrance_fee, pass_time
):
    raffle.transact("enterRaffle", value=entrance_fee)
    pass_time()
    raffle.transact("performUpkeep", b"")
    vrf_coordinator.transact("cancelSubscription", 1, deployer)
    block = backend.block_number

    with pytest.raises(ContractRevert, match="InsufficientBalance"):
        vrf_coordinator.transact("fulfillRandomWords", 1, raffle.address)

    # the consumer callback is undone with the rest of the transaction
    assert backend.block_number == block
    assert raffle.balance == entrance_fee
    assert raffle.call("getRaffleState") == 1
    assert raffle.call("getNumberOfPlayers") == 1
    assert raffle.call("getRecentWinner") == "0x0000000000000000000000000000000000000000"
    assert raffle.get_logs("WinnerPicked") == []


def test_callback_into_a_raffle_without_players_fails(vrf_coordinator, raffle, deployer):
    vrf_coordinator.transact("addConsumer", 1, deployer)
    vrf_coordinator.transact("requestRandomWords", GAS_LANE, 1, 3, 500000, 1)

    receipt = vrf_coordinator.transact("fulfillRandomWords", 1, raffle.address)

    assert receipt.events("RandomWordsFulfilled")[0].args["success"] is False
    assert receipt.events("WinnerPicked") == []
    assert raffle.call("getRaffleState") == 0
