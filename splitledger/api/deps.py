from fastapi import Depends

from splitledger.db.mongo import get_db
from splitledger.repositories.expense_repo import ExpenseRepository
from splitledger.repositories.group_repo import GroupRepository
from splitledger.services.group_service import GroupService
from splitledger.services.payment_rail import get_payment_rail


def get_group_service(
    db = Depends(get_db),
    payment_rail = Depends(get_payment_rail)
) -> GroupService:
    """Build the group service for one request."""
    return GroupService(
        GroupRepository(db),
        ExpenseRepository(db),
        payment_rail=payment_rail
    )
