"""
Expense posting - turns one expense into signed balance deltas on its group.

Algorithm, per expense member in expense order:
1. Obligation: EQUAL -> total_amount // member_count, WEIGHTED -> must_pay
2. delta = obligation - paid
3. debt_value += delta (checked)

The EQUAL remainder (total_amount % member_count) is not charged to anyone.

Every check and every new balance is computed before the group is touched,
so a rejected or overflowing expense leaves the group exactly as it was.
Persisting the group, appending the expense to the log and bumping
next_expense_id are left to the caller.
"""

import logging
from typing import Dict

from splitledger.core.errors import (
    DistributionMemberNotInGroup,
    ExpenseAmountIsZero,
    ExpenseWithoutDistributionMembers,
)
from splitledger.models.expense import DistributionPolicy, Expense, ExpenseMember
from splitledger.models.group import Group, checked_add

logger = logging.getLogger("splitledger.services.expense_poster")


def calculate_obligation(expense: Expense, expense_member: ExpenseMember) -> int:
    """How much one member has to pay for this expense."""
    if expense.distribution_policy == DistributionPolicy.EQUAL:
        return expense.total_amount // len(expense.members)
    return expense_member.must_pay


def stage_expense_balances(group: Group, expense: Expense) -> Dict[str, int]:
    """
    Validate the expense against the group and compute the resulting balances.

    Returns { address: new_debt_value } for every member the expense touches.
    Raises ExpenseValidationError / LedgerArithmeticError without mutating.
    """
    if expense.total_amount <= 0:
        raise ExpenseAmountIsZero("Expense amount must be greater than zero")

    if not expense.members:
        raise ExpenseWithoutDistributionMembers("Expense has no distribution members")

    current = group.balances()
    staged: Dict[str, int] = {}

    for expense_member in expense.members:
        address = expense_member.member_address
        if address not in current:
            raise DistributionMemberNotInGroup(address)

        obligation = calculate_obligation(expense, expense_member)
        delta = obligation - expense_member.paid

        balance = staged.get(address, current[address])
        staged[address] = checked_add(balance, delta)

    return staged


def post_expense(group: Group, expense: Expense) -> None:
    """Apply an expense's debts to the group's member balances."""
    staged = stage_expense_balances(group, expense)

    members = group.member_index()
    for address, debt_value in staged.items():
        members[address].debt_value = debt_value

    logger.debug(
        "Posted expense %s to group %s: %s",
        expense.id, group.id, staged
    )
