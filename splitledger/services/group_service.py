"""Group ledger business logic.

Every public operation takes the caller address explicitly, runs the
membership gate first, and, for mutations, works on a staged copy of the
group under the group's lock. The staged copy is only written back once the
whole operation succeeded (settle-up also writes back a partial result,
because transfers that reached the payment rail cannot be undone).
"""

import logging
from typing import List

from bson import ObjectId

from splitledger.core.config import settings
from splitledger.core.errors import (
    GroupDoesNotExist,
    LedgerArithmeticError,
    MemberAlreadyInGroup,
    MemberIsNotInTheGroup,
    SettlementValidationError,
)
from splitledger.models.base import to_object_id
from splitledger.models.expense import Expense
from splitledger.models.group import Group, GroupMember
from splitledger.models.settlement import (
    GiverDistribution,
    GroupSettlement,
    MemberGroupDistribution,
    SettleUpResult,
    TransferInstruction,
)
from splitledger.repositories.expense_repo import ExpenseRepository
from splitledger.repositories.group_repo import GroupRepository
from splitledger.schemas.expense import ExpenseCreate
from splitledger.schemas.group import GroupCreate
from splitledger.schemas.settlement import GroupSettleRequest
from splitledger.services.distribution import plan_group_distribution
from splitledger.services.expense_poster import post_expense
from splitledger.services.locks import GroupLocks, group_locks
from splitledger.services.payment_rail import PaymentRail
from splitledger.services.settlement import settle_up, validate_transfers
from splitledger.utils.expense_validation import build_expense, validate_expense_input

logger = logging.getLogger("splitledger.services.group")


class GroupService:
    """Service layer for groups, expenses and settlements."""

    def __init__(
        self,
        group_repo: GroupRepository,
        expense_repo: ExpenseRepository,
        payment_rail: PaymentRail | None = None,
        locks: GroupLocks = group_locks,
        asset: str = settings.PAYMENT_RAIL_ASSET,
    ) -> None:
        self._group_repo = group_repo
        self._expense_repo = expense_repo
        self._payment_rail = payment_rail
        self._locks = locks
        self._asset = asset

    # ------------------------------------------------------------------
    # Gate
    # ------------------------------------------------------------------

    def _parse_group_id(self, group_id) -> ObjectId:
        """Normalize a group id; every lock and lookup uses this form."""
        object_id = to_object_id(group_id)
        if object_id is None:
            raise GroupDoesNotExist(f"Group {group_id} does not exist")
        return object_id

    async def check_group_membership(self, group_id, caller: str) -> Group:
        """Fetch a group the caller belongs to, per the membership index."""
        object_id = self._parse_group_id(group_id)
        group = await self._group_repo.get_group(object_id)
        if group is None:
            raise GroupDoesNotExist(f"Group {group_id} does not exist")

        member_group_ids = await self._group_repo.get_member_group_ids(caller)
        if not any(str(gid) == str(group.id) for gid in member_group_ids):
            raise MemberIsNotInTheGroup(f"{caller} is not a member of group {group_id}")

        return group

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def create_group(self, caller: str, group_in: GroupCreate) -> Group:
        """Create a group with zero balances; the caller is always a member."""
        members: List[GroupMember] = []
        seen = set()

        if caller not in {m.address for m in group_in.members}:
            members.append(GroupMember(address=caller, name=group_in.creator_name))
            seen.add(caller)

        for member_in in group_in.members:
            if member_in.address in seen:
                continue
            seen.add(member_in.address)
            members.append(GroupMember(address=member_in.address, name=member_in.name))

        group = Group(
            name=group_in.name,
            members=members,
            next_expense_id=1,
            created_by=caller
        )
        await self._group_repo.create_group(group)

        logger.info("Created group %s with %d members", group.id, len(members))
        return group

    async def join_group(self, group_id: str, caller: str, name: str = "") -> Group:
        """Add the caller to an existing group with a zero balance."""
        object_id = self._parse_group_id(group_id)
        if await self._group_repo.get_group(object_id) is None:
            raise GroupDoesNotExist(f"Group {group_id} does not exist")

        async with self._locks.hold(object_id):
            group = await self._group_repo.get_group(object_id)
            if group.has_member(caller):
                raise MemberAlreadyInGroup(f"{caller} is already a member of group {group_id}")

            staged = group.model_copy(deep=True)
            staged.members.append(GroupMember(address=caller, name=name))
            await self._group_repo.add_member(staged, caller)

        logger.info("Member %s joined group %s", caller, object_id)
        return staged

    async def get_group(self, group_id: str, caller: str) -> Group:
        return await self.check_group_membership(group_id, caller)

    async def get_member_groups(self, caller: str) -> List[Group]:
        group_ids = await self._group_repo.get_member_group_ids(caller)
        return await self._group_repo.get_groups(group_ids)

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    async def add_expense(self, group_id: str, caller: str, expense_in: ExpenseCreate) -> Expense:
        """Record an expense and post its debts to the group's balances."""
        group = await self.check_group_membership(group_id, caller)
        validate_expense_input(expense_in)

        async with self._locks.hold(group.id):
            # re-read: another posting may have committed while we waited
            group = await self.check_group_membership(group.id, caller)

            staged = group.model_copy(deep=True)
            expense = build_expense(staged.next_expense_id, staged.id, expense_in, caller)
            post_expense(staged, expense)
            staged.next_expense_id += 1

            await self._group_repo.commit_expense(staged, expense)

        logger.info(
            "Posted expense %s (%d, %s) to group %s",
            expense.id, expense.total_amount, expense.distribution_policy.value, group.id
        )
        return expense

    async def get_expenses(self, group_id: str, caller: str) -> List[Expense]:
        group = await self.check_group_membership(group_id, caller)
        return await self._expense_repo.list_expenses(group.id)

    # ------------------------------------------------------------------
    # Distributions
    # ------------------------------------------------------------------

    async def get_group_distribution(self, group_id: str, caller: str) -> List[GiverDistribution]:
        group = await self.check_group_membership(group_id, caller)
        return plan_group_distribution(group)

    async def get_member_group_distributions(self, caller: str) -> List[MemberGroupDistribution]:
        """The caller's own transfer plan in every group where the caller is a giver."""
        groups = await self.get_member_groups(caller)

        distributions: List[MemberGroupDistribution] = []
        for group in groups:
            for giver_distribution in plan_group_distribution(group):
                if giver_distribution.member_address == caller:
                    distributions.append(MemberGroupDistribution(
                        group_id=group.id,
                        distribution=giver_distribution
                    ))
                    break

        return distributions

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    async def settle_up_groups(self, caller: str, requests: List[GroupSettleRequest]) -> SettleUpResult:
        """
        Execute the caller's transfers group by group.

        Every group is gated and its transfer list validated before the first
        transfer is sent. Groups then run in request order, each under its
        lock, and the batch stops at the first group that did not fully settle.
        A group that no longer validates once its lock is held ends the batch
        the same way when earlier groups were already paid.
        """
        batches = []
        for request in requests:
            group = await self.check_group_membership(request.group_id, caller)
            transfers = [
                TransferInstruction(member_address=t.member_address, value=t.value)
                for t in request.transfers
            ]
            validate_transfers(group, caller, transfers)
            batches.append((group.id, transfers))

        results: List[GroupSettlement] = []
        for group_id, transfers in batches:
            async with self._locks.hold(group_id):
                group = await self.check_group_membership(group_id, caller)
                staged = group.model_copy(deep=True)

                try:
                    result = await settle_up(staged, caller, transfers, self._payment_rail, self._asset)
                except (SettlementValidationError, LedgerArithmeticError) as e:
                    if not results:
                        raise
                    logger.warning(
                        "Settle-up by %s stopped before group %s: %s; already settled: %s",
                        caller, group_id, e, [(r.group_id, len(r.applied)) for r in results]
                    )
                    results.append(GroupSettlement(group_id=group_id, succeeded=False, applied=[]))
                    return SettleUpResult(succeeded=False, groups=results)

                if result.applied:
                    try:
                        await self._group_repo.save_group(staged)
                    except Exception:
                        logger.exception(
                            "Settle-up by %s in group %s paid %s but the group could not be saved",
                            caller, group_id,
                            [(t.member_address, t.value) for t in result.applied]
                        )
                        raise

            results.append(GroupSettlement(
                group_id=staged.id,
                succeeded=result.succeeded,
                applied=result.applied
            ))
            logger.info(
                "Settle-up by %s in group %s: %s, %d/%d transfers, total %d",
                caller, group_id, "ok" if result.succeeded else "partial",
                len(result.applied), len(transfers), result.applied_total
            )

            if not result.succeeded:
                return SettleUpResult(succeeded=False, groups=results)

        return SettleUpResult(succeeded=True, groups=results)
