import pytest
from click.testing import CliRunner

from raffle import config
from raffle.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_networks(runner):
    result = runner.invoke(cli, ["networks"])
    assert result.exit_code == 0
    assert "hardhat" in result.output
    assert "sepolia    chain 11155111" in result.output


def test_deploy_on_the_in_process_chain(runner):
    result = runner.invoke(cli, ["deploy"])
    assert result.exit_code == 0, result.output
    assert "Local network detected! Deploying mocks..." in result.output
    assert "Raffle: 0x" in result.output
    assert "VRFCoordinatorV2Mock: 0x" in result.output


def test_status(runner):
    result = runner.invoke(cli, ["--network", "hardhat", "status"])
    assert result.exit_code == 0, result.output
    assert "state:           OPEN" in result.output
    assert "entrance fee:    0.01 ETH" in result.output
    assert "players:         0" in result.output


def test_enter(runner):
    result = runner.invoke(cli, ["enter", "--account", "2"])
    assert result.exit_code == 0, result.output
    assert "transacting enterRaffle" in result.output
    assert "RaffleEnter" in result.output


def test_enter_with_too_little(runner):
    result = runner.invoke(cli, ["enter", "--value", "0.001"])
    assert result.exit_code == 1
    assert "Raffle__NotEnoughETHEntered" in result.output


def test_check_upkeep(runner):
    result = runner.invoke(cli, ["check-upkeep"])
    assert result.exit_code == 0, result.output
    assert "(False, b'')" in result.output


def test_perform_upkeep_when_not_needed(runner):
    result = runner.invoke(cli, ["perform-upkeep"])
    assert result.exit_code == 1
    assert "Raffle__UpkeepNotNeeded(0, 0, 0)" in result.output


def test_player_out_of_range(runner):
    result = runner.invoke(cli, ["player", "0"])
    assert result.exit_code == 1
    assert "Panic(0x32)" in result.output


def test_winner_is_unset_before_the_first_round(runner):
    result = runner.invoke(cli, ["winner"])
    assert result.exit_code == 0, result.output
    assert "0x0000000000000000000000000000000000000000" in result.output


def test_nothing_to_verify_on_development_networks(runner):
    result = runner.invoke(cli, ["verify", "0x1111111111111111111111111111111111111111"])
    assert result.exit_code == 2
    assert "development network" in result.output


def test_unknown_network(runner):
    result = runner.invoke(cli, ["--network", "mainnet", "status"])
    assert result.exit_code == 2


def test_update_front_end_flag_applies_to_one_deploy(runner, monkeypatch, tmp_path):
    addresses_file = tmp_path / "contractAddresses.json"
    monkeypatch.setattr(config, "UPDATE_FRONT_END", "")
    monkeypatch.setattr(config, "FRONT_END_ADDRESSES_FILE", str(addresses_file))
    monkeypatch.setattr(config, "FRONT_END_ABI_FILE", str(tmp_path / "abi.json"))

    result = runner.invoke(cli, ["deploy", "--update-front-end"])
    assert result.exit_code == 0, result.output
    assert "Updating front end..." in result.output
    assert addresses_file.exists()

    addresses_file.unlink()
    result = runner.invoke(cli, ["deploy"])
    assert result.exit_code == 0, result.output
    assert "Updating front end..." not in result.output
    assert not addresses_file.exists()
    assert config.UPDATE_FRONT_END == ""
