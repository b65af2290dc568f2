"""
Tests for settle-up execution.

Covers:
- Full success: takers raised, caller lowered by the total
- Partial failure: applied prefix only, caller lowered by what went through
- Validation before the first payment rail call
- Non-idempotence on resubmission
"""

import pytest

from splitledger.core.errors import LedgerArithmeticError, SettlementValidationError
from splitledger.models.group import INT64_MAX
from splitledger.models.settlement import TransferInstruction
from splitledger.services.settlement import settle_up


def _instructions(*pairs):
    return [TransferInstruction(member_address=address, value=value) for address, value in pairs]


@pytest.mark.asyncio
async def test_settle_up_all_transfers_succeed(make_group, fake_rail):
    group = make_group([("alice", 100), ("bob", -50), ("eve", -45), ("frank", -5)])
    rail = fake_rail()
    transfers = _instructions(("bob", 50), ("eve", 45), ("frank", 5))

    result = await settle_up(group, "alice", transfers, rail, "USDNP")

    assert result.succeeded is True
    assert result.applied == transfers
    assert group.balances() == {"alice": 0, "bob": 0, "eve": 0, "frank": 0}
    assert [(c["recipient"], c["amount"]) for c in rail.calls] == [("bob", 50), ("eve", 45), ("frank", 5)]
    assert rail.calls[0]["asset"] == "USDNP"
    assert rail.calls[0]["data"] == {"sender": "alice", "group_id": str(group.id)}


@pytest.mark.asyncio
async def test_settle_up_stops_at_first_rail_failure(make_group, fake_rail):
    group = make_group([("alice", 100), ("bob", -50), ("eve", -45), ("frank", -5)])
    rail = fake_rail(fail_on_call=2)
    transfers = _instructions(("bob", 50), ("eve", 45), ("frank", 5))

    result = await settle_up(group, "alice", transfers, rail, "USDNP")

    assert result.succeeded is False
    assert result.applied == transfers[:1]
    assert result.applied_total == 50
    assert group.balances() == {"alice": 50, "bob": 0, "eve": -45, "frank": -5}
    # third transfer is never attempted
    assert len(rail.calls) == 2


@pytest.mark.asyncio
async def test_settle_up_failure_on_first_transfer_changes_nothing(make_group, fake_rail):
    group = make_group([("alice", 30), ("bob", -30)])
    before = group.model_dump_json()

    result = await settle_up(group, "alice", _instructions(("bob", 30)), fake_rail(fail_on_call=1), "USDNP")

    assert result.succeeded is False
    assert result.applied == []
    assert group.model_dump_json() == before


@pytest.mark.asyncio
async def test_unexpected_rail_exception_is_a_failure(make_group):
    class BrokenRail:
        async def transfer(self, asset, recipient, amount, data):
            raise RuntimeError("connection reset")

    group = make_group([("alice", 30), ("bob", -30)])

    result = await settle_up(group, "alice", _instructions(("bob", 30)), BrokenRail(), "USDNP")

    assert result.succeeded is False
    assert group.balances() == {"alice": 30, "bob": -30}


@pytest.mark.asyncio
async def test_empty_transfer_list_succeeds_trivially(make_group, fake_rail):
    group = make_group([("alice", 30), ("bob", -30)])
    rail = fake_rail()

    result = await settle_up(group, "alice", [], rail, "USDNP")

    assert result.succeeded is True
    assert result.applied == []
    assert rail.calls == []
    assert group.balances() == {"alice": 30, "bob": -30}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "caller, transfers",
    [
        ("mallory", [("bob", 10)]),
        ("alice", [("bob", 10), ("mallory", 5)]),
        ("alice", [("alice", 10)]),
        ("alice", [("bob", 0)]),
    ],
)
async def test_invalid_transfer_list_is_rejected_before_any_transfer(make_group, fake_rail, caller, transfers):
    group = make_group([("alice", 30), ("bob", -30)])
    before = group.model_dump_json()
    rail = fake_rail()

    with pytest.raises(SettlementValidationError):
        await settle_up(group, caller, _instructions(*transfers), rail, "USDNP")

    assert rail.calls == []
    assert group.model_dump_json() == before


@pytest.mark.asyncio
async def test_overflowing_transfer_list_is_rejected_before_any_transfer(make_group, fake_rail):
    group = make_group([("alice", 0), ("bob", INT64_MAX - 5)])
    rail = fake_rail()

    with pytest.raises(LedgerArithmeticError):
        await settle_up(group, "alice", _instructions(("bob", 10)), rail, "USDNP")

    assert rail.calls == []


@pytest.mark.asyncio
async def test_resubmitting_after_partial_failure_double_applies(make_group, fake_rail):
    group = make_group([("alice", 100), ("bob", -50), ("eve", -50)])
    transfers = _instructions(("bob", 50), ("eve", 50))

    first = await settle_up(group, "alice", transfers, fake_rail(fail_on_call=2), "USDNP")
    assert first.applied == transfers[:1]

    second = await settle_up(group, "alice", transfers, fake_rail(), "USDNP")

    assert second.succeeded is True
    # bob was paid twice
    assert group.balances() == {"alice": -50, "bob": 50, "eve": 0}
    assert group.total_balance() == 0
