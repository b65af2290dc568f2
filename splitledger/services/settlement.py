"""
Settle-up execution against the payment rail.

Transfers run strictly in order. Each successful transfer raises the
taker's debt_value by the amount sent; the caller's debt_value is lowered
once, by the sum of what actually went through. The first rail failure
stops the run and the result carries exactly the prefix that succeeded.

Not idempotent: submitting the same list again after a partial failure
pays the already-applied transfers a second time. Callers must drop the
applied prefix before retrying.
"""

import logging
from typing import List

from splitledger.core.errors import PaymentRailError, SettlementValidationError
from splitledger.models.group import Group, checked_add
from splitledger.models.settlement import SettleResult, TransferInstruction
from splitledger.services.payment_rail import PaymentRail

logger = logging.getLogger("splitledger.services.settlement")


def validate_transfers(
    group: Group, caller: str, transfers: List[TransferInstruction]
) -> None:
    """
    Reject a transfer list before anything is sent.

    Rules:
    - caller must be a group member
    - every recipient must be a group member other than the caller
    - every value must be positive
    - applying the whole list must stay inside the balance range
    """
    balances = group.balances()
    if caller not in balances:
        raise SettlementValidationError(f"Caller {caller} is not in the group")

    total = 0
    for transfer in transfers:
        address = transfer.member_address
        if transfer.value <= 0:
            raise SettlementValidationError(
                f"Transfer to {address} must be greater than zero"
            )
        if address == caller:
            raise SettlementValidationError("Cannot transfer to yourself")
        if address not in balances:
            raise SettlementValidationError(f"Recipient {address} is not in the group")

        balances[address] = checked_add(balances[address], transfer.value)
        total = checked_add(total, transfer.value)

    checked_add(balances[caller], -total)


async def settle_up(
    group: Group,
    caller: str,
    transfers: List[TransferInstruction],
    rail: PaymentRail,
    asset: str,
) -> SettleResult:
    """Execute transfers for `caller` and reconcile the group's balances in place."""
    validate_transfers(group, caller, transfers)

    applied: List[TransferInstruction] = []
    settled_total = 0

    for transfer in transfers:
        try:
            await rail.transfer(
                asset,
                transfer.member_address,
                transfer.value,
                {"sender": caller, "group_id": str(group.id)}
            )
        except PaymentRailError as e:
            logger.warning(
                "Settle-up in group %s stopped at transfer %d/%d: %s",
                group.id, len(applied) + 1, len(transfers), e
            )
            group.apply_delta(caller, -settled_total)
            return SettleResult(succeeded=False, applied=applied)
        except Exception:
            logger.exception(
                "Payment rail raised unexpectedly in group %s at transfer %d/%d",
                group.id, len(applied) + 1, len(transfers)
            )
            group.apply_delta(caller, -settled_total)
            return SettleResult(succeeded=False, applied=applied)

        group.apply_delta(transfer.member_address, transfer.value)
        settled_total += transfer.value
        applied.append(transfer)

    group.apply_delta(caller, -settled_total)
    return SettleResult(succeeded=True, applied=applied)
