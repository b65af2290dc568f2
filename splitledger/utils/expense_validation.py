"""Expense input validation utilities."""
from bson import ObjectId

from splitledger.core.errors import (
    DuplicateDistributionMember,
    ExpenseAmountIsZero,
    ExpenseWithoutDistributionMembers,
    ExpenseWithoutPayer,
    WeightedDistributionMismatch,
)
from splitledger.models.expense import DistributionPolicy, Expense, ExpenseMember
from splitledger.schemas.expense import ExpenseCreate


def validate_expense_input(expense_in: ExpenseCreate) -> None:
    """
    Validate an expense request before it becomes an Expense.

    Rules:
    - total_amount must be positive
    - distribution must not be empty
    - a member may appear only once in the distribution
    - the payer must be one of the distribution members
    - WEIGHTED values must sum to total_amount
    """
    if expense_in.total_amount <= 0:
        raise ExpenseAmountIsZero("Expense amount must be greater than zero")

    if not expense_in.distribution:
        raise ExpenseWithoutDistributionMembers("Expense has no distribution members")

    seen = set()
    for entry in expense_in.distribution:
        if entry.member_address in seen:
            raise DuplicateDistributionMember(entry.member_address)
        seen.add(entry.member_address)

    # Otherwise the paid amount is credited to nobody
    if expense_in.payer_address not in seen:
        raise ExpenseWithoutPayer(
            f"Payer {expense_in.payer_address} is not in the distribution"
        )

    if expense_in.distribution_policy == DistributionPolicy.WEIGHTED:
        distributed = sum(entry.value for entry in expense_in.distribution)
        if distributed != expense_in.total_amount:
            raise WeightedDistributionMismatch(distributed, expense_in.total_amount)


def build_expense(
    expense_id: int,
    group_id: ObjectId,
    expense_in: ExpenseCreate,
    created_by: str,
) -> Expense:
    """The payer is recorded as having paid the full amount; everyone else paid 0."""
    members = [
        ExpenseMember(
            member_address=entry.member_address,
            paid=expense_in.total_amount if entry.member_address == expense_in.payer_address else 0,
            must_pay=entry.value,
        )
        for entry in expense_in.distribution
    ]

    return Expense(
        id=expense_id,
        group_id=group_id,
        total_amount=expense_in.total_amount,
        distribution_policy=expense_in.distribution_policy,
        members=members,
        description=expense_in.description,
        created_by=created_by,
    )
