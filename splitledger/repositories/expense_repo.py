from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase

from splitledger.models.base import to_object_id
from splitledger.models.expense import Expense


class ExpenseRepository:
    """Read side of the per-group expense log."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["group_expenses"]

    async def list_expenses(self, group_id: str) -> List[Expense]:
        """List a group's expenses in posting order."""
        cursor = self.collection.find({
            "group_id": to_object_id(group_id)
        }).sort("id", 1)
        docs = await cursor.to_list(None)
        return [Expense(**doc) for doc in docs]

    async def get_expense(self, group_id: str, expense_id: int) -> Expense | None:
        """Get one expense by its per-group id."""
        doc = await self.collection.find_one({
            "group_id": to_object_id(group_id),
            "id": expense_id
        })
        if doc:
            return Expense(**doc)
        return None
