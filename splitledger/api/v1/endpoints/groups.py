from typing import List
from fastapi import APIRouter, Depends, status

from splitledger.api.deps import get_group_service
from splitledger.core.auth import CallerIdentity, get_current_member
from splitledger.core.errors import LedgerError, to_http_exception
from splitledger.models.expense import Expense
from splitledger.models.group import Group
from splitledger.schemas.expense import ExpenseCreate, ExpenseResponse
from splitledger.schemas.group import GroupCreate, GroupJoin, GroupResponse
from splitledger.schemas.settlement import GiverDistributionResponse
from splitledger.services.group_service import GroupService

router = APIRouter()


def _to_group_response(group: Group) -> GroupResponse:
    """Convert Group model to GroupResponse schema."""
    return GroupResponse(
        id=str(group.id),
        name=group.name,
        members=[
            {
                "address": member.address,
                "name": member.name,
                "debt_value": member.debt_value
            }
            for member in group.members
        ],
        next_expense_id=group.next_expense_id,
        created_by=group.created_by,
        created_at=group.created_at,
        updated_at=group.updated_at
    )


def _to_expense_response(expense: Expense) -> ExpenseResponse:
    """Convert Expense model to ExpenseResponse schema."""
    return ExpenseResponse(
        id=expense.id,
        group_id=str(expense.group_id),
        total_amount=expense.total_amount,
        distribution_policy=expense.distribution_policy,
        members=[
            {
                "member_address": member.member_address,
                "paid": member.paid,
                "must_pay": member.must_pay
            }
            for member in expense.members
        ],
        description=expense.description,
        created_by=expense.created_by,
        created_at=expense.created_at
    )


@router.post("/", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
async def create_group(
    group_in: GroupCreate,
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """Create a group. The caller is added as a member."""
    group = await service.create_group(current_member.address, group_in)
    return _to_group_response(group)


@router.get("/", response_model=List[GroupResponse])
async def list_groups(
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """List groups the caller belongs to."""
    groups = await service.get_member_groups(current_member.address)
    return [_to_group_response(group) for group in groups]


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: str,
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """Get a group (members only)."""
    try:
        group = await service.get_group(group_id, current_member.address)
    except LedgerError as e:
        raise to_http_exception(e)
    return _to_group_response(group)


@router.post("/{group_id}/join", response_model=GroupResponse)
async def join_group(
    group_id: str,
    payload: GroupJoin,
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """Join an existing group with a zero balance."""
    try:
        group = await service.join_group(
            group_id,
            current_member.address,
            payload.name or current_member.name
        )
    except LedgerError as e:
        raise to_http_exception(e)
    return _to_group_response(group)


@router.post("/{group_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
async def add_expense(
    group_id: str,
    expense_in: ExpenseCreate,
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """Record an expense and update member balances."""
    try:
        expense = await service.add_expense(group_id, current_member.address, expense_in)
    except LedgerError as e:
        raise to_http_exception(e)
    return _to_expense_response(expense)


@router.get("/{group_id}/expenses", response_model=List[ExpenseResponse])
async def list_expenses(
    group_id: str,
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """List a group's expenses in posting order."""
    try:
        expenses = await service.get_expenses(group_id, current_member.address)
    except LedgerError as e:
        raise to_http_exception(e)
    return [_to_expense_response(expense) for expense in expenses]


@router.get("/{group_id}/distribution", response_model=List[GiverDistributionResponse])
async def get_group_distribution(
    group_id: str,
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """Transfer plan that brings every balance in the group to zero."""
    try:
        distribution = await service.get_group_distribution(group_id, current_member.address)
    except LedgerError as e:
        raise to_http_exception(e)
    return [
        GiverDistributionResponse.model_validate(giver, from_attributes=True)
        for giver in distribution
    ]
