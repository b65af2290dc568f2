"""
Settlement planning - greedy giver/taker matching.

Givers (debt_value > 0) are walked in group member order. Takers
(debt_value < 0) form a pool sorted ascending by debt_value (most negative
first, stable on ties). Each taker carries a remaining magnitude that is
consumed across the whole call, giver after giver.

For each giver, while debt is pending:
  a. first taker whose remaining == pending: pay it all, taker leaves the pool
  b. first taker whose remaining > pending: pay pending, taker stays with
     remaining reduced
  c. otherwise the front taker leaves the pool and is paid its full remaining

The result is a pure function of the member balances; it is not a
minimum-transfer solution and the search order must not change, clients
rely on the exact output.
"""

from typing import Dict, List

from splitledger.core.errors import UnbalancedGroupError
from splitledger.models.group import Group
from splitledger.models.settlement import GiverDistribution, TransferInstruction


def _build_taker_pool(group: Group) -> List[Dict]:
    takers = [member for member in group.members if member.is_taker]
    # sorted() is stable, ties keep member order
    takers = sorted(takers, key=lambda member: member.debt_value)
    return [
        {"address": taker.address, "remaining": -taker.debt_value}
        for taker in takers
    ]


def _find_taker(takers: List[Dict], predicate) -> int | None:
    for index, taker in enumerate(takers):
        if predicate(taker["remaining"]):
            return index
    return None


def match_giver_debt(pending: int, takers: List[Dict]) -> TransferInstruction:
    """
    Produce the next transfer for a giver with `pending` debt.

    Mutates the taker pool: removes fully paid takers and reduces the
    remaining magnitude of partially paid ones.
    """
    exact = _find_taker(takers, lambda remaining: remaining == pending)
    if exact is not None:
        taker = takers.pop(exact)
        return TransferInstruction(member_address=taker["address"], value=pending)

    larger = _find_taker(takers, lambda remaining: remaining > pending)
    if larger is not None:
        taker = takers[larger]
        taker["remaining"] -= pending
        return TransferInstruction(member_address=taker["address"], value=pending)

    if not takers:
        raise UnbalancedGroupError(
            f"No takers left to receive {pending}; group balances do not net out"
        )

    taker = takers.pop(0)
    return TransferInstruction(member_address=taker["address"], value=taker["remaining"])


def plan_group_distribution(group: Group) -> List[GiverDistribution]:
    """Resolve a group's balances into an ordered transfer plan per giver."""
    givers = [member for member in group.members if member.is_giver]
    if not givers:
        return []

    takers = _build_taker_pool(group)
    distribution: List[GiverDistribution] = []

    for giver in givers:
        giver_distribution = GiverDistribution(
            member_address=giver.address,
            total_debt=giver.debt_value,
            transfers=[]
        )

        pending = giver.debt_value
        while pending > 0:
            transfer = match_giver_debt(pending, takers)
            giver_distribution.transfers.append(transfer)
            pending -= transfer.value

        distribution.append(giver_distribution)

    return distribution
