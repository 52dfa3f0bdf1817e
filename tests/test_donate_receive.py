from __future__ import annotations

import pytest

from faircoin.ledger.constants import WAD
from faircoin.runtime.errors import ContractError
from faircoin.runtime.events import Donation, EthReceived, Sync, Transfer
from faircoin.testing.accounts import deploy, make_addresses


def _claimed():
    addrs = make_addresses(2, prefix="donor")
    fair, tree = deploy(addrs)
    fair.claim(addrs[0], tree.proof(addrs[0]))
    fair.events.clear()
    return fair, addrs


def test_donate_asset_and_value() -> None:
    fair, (donor, _other) = _claimed()
    fair.credit_native(donor, 3 * WAD)

    fair.donate(donor, 50 * WAD, WAD)

    assert fair.balance_of(donor) == 45 * WAD
    assert fair.native_balance(donor) == 2 * WAD
    assert fair.reserves() == (55 * WAD, WAD)
    assert list(fair.events) == [
        Transfer(frm=donor, to=fair.address, amount=50 * WAD),
        Donation(donor=donor, asset_amount=50 * WAD, value=WAD),
        Sync(reserve_asset=55 * WAD, reserve_value=WAD),
    ]


def test_donate_value_only_emits_no_transfer() -> None:
    fair, (donor, _other) = _claimed()
    fair.credit_native(donor, WAD)

    fair.donate(donor, 0, WAD)

    assert fair.events.names() == ["Donation", "Sync"]
    assert fair.reserves() == (5 * WAD, WAD)


def test_donate_nothing_rejected() -> None:
    fair, (donor, _other) = _claimed()
    with pytest.raises(ContractError) as e:
        fair.donate(donor, 0, 0)
    assert e.value.reason == "nothing_donated"
    assert len(fair.events) == 0


def test_donate_more_than_held_rolls_back_value_too() -> None:
    fair, (donor, _other) = _claimed()
    fair.credit_native(donor, WAD)
    before = fair.snapshot()

    with pytest.raises(ContractError) as e:
        fair.donate(donor, 96 * WAD, WAD)
    assert e.value.reason == "insufficient_balance"
    assert fair.snapshot() == before


def test_donate_without_value_to_send_rejected() -> None:
    fair, (donor, _other) = _claimed()
    with pytest.raises(ContractError) as e:
        fair.donate(donor, WAD, 1)
    assert e.value.reason == "insufficient_value"


def test_bare_receive_records_and_resyncs() -> None:
    fair, (_donor, other) = _claimed()
    fair.credit_native(other, 7)

    fair.receive(other, 7)

    assert fair.reserves() == (5 * WAD, 7)
    assert list(fair.events) == [EthReceived(sender=other, amount=7), Sync(reserve_asset=5 * WAD, reserve_value=7)]


def test_zero_receive_only_resyncs() -> None:
    fair, (_donor, other) = _claimed()
    fair.receive(other, 0)
    assert fair.events.names() == ["Sync"]


def test_transfer_into_the_pool_resyncs() -> None:
    fair, (donor, _other) = _claimed()
    fair.transfer(donor, fair.address, WAD)
    assert fair.reserves() == (6 * WAD, 0)
    assert fair.events.names() == ["Transfer", "Sync"]


def test_ordinary_transfer_does_not_touch_reserves() -> None:
    fair, (donor, other) = _claimed()
    fair.transfer(donor, other, WAD)
    assert fair.events.names() == ["Transfer"]
    assert fair.reserves() == (5 * WAD, 0)


def test_credit_to_contract_address_resyncs() -> None:
    fair, _addrs = _claimed()
    fair.credit_native(fair.address, 11)
    assert fair.reserves() == (5 * WAD, 11)
