"""
GroupRepository - the ledger's persistent store.

Collections:
- groups:          one document per group, members embedded with their balances
- group_expenses:  append-only expense log, one document per expense
- member_groups:   membership index, { _id: member address, group_ids: [...] }

Writes that touch more than one document run inside a single session
transaction, so a group is never saved without its expense or index entry.
"""

from contextlib import asynccontextmanager
from typing import List
from motor.motor_asyncio import AsyncIOMotorDatabase
from bson import ObjectId

from splitledger.models.base import to_object_id
from splitledger.models.expense import Expense
from splitledger.models.group import Group


class GroupRepository:
    """Group, membership index and expense log database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["groups"]
        self.expenses = db["group_expenses"]
        self.member_groups = db["member_groups"]

    @asynccontextmanager
    async def _transaction(self):
        async with await self.db.client.start_session() as session:
            async with session.start_transaction():
                yield session

    async def get_group(self, group_id: str) -> Group | None:
        """Get a group by id."""
        object_id = to_object_id(group_id)
        if object_id is None:
            return None
        doc = await self.collection.find_one({"_id": object_id})
        if doc:
            return Group(**doc)
        return None

    async def get_groups(self, group_ids: List[ObjectId]) -> List[Group]:
        """Get several groups, in the order of group_ids."""
        if not group_ids:
            return []
        cursor = self.collection.find({"_id": {"$in": list(group_ids)}})
        docs = await cursor.to_list(None)
        by_id = {str(doc["_id"]): Group(**doc) for doc in docs}
        return [by_id[str(gid)] for gid in group_ids if str(gid) in by_id]

    async def get_member_group_ids(self, address: str) -> List[ObjectId]:
        """Group ids a member belongs to, in join order."""
        doc = await self.member_groups.find_one({"_id": address})
        if doc:
            return list(doc.get("group_ids", []))
        return []

    async def create_group(self, group: Group) -> Group:
        """Insert a new group and index every member under it."""
        async with self._transaction() as session:
            await self.collection.insert_one(group.to_document(), session=session)
            for member in group.members:
                await self._index_member(member.address, group.id, session)
        return group

    async def add_member(self, group: Group, address: str) -> Group:
        """Save a group that just gained `address` and index the member under it."""
        async with self._transaction() as session:
            await self.save_group(group, session=session)
            await self._index_member(address, group.id, session)
        return group

    async def commit_expense(self, group: Group, expense: Expense) -> Group:
        """Append an expense to the log and save the group it was posted to."""
        async with self._transaction() as session:
            await self.expenses.insert_one(self._expense_document(expense), session=session)
            await self.save_group(group, session=session)
        return group

    async def save_group(self, group: Group, session=None) -> Group:
        """Replace the stored group document with `group`."""
        group.touch()
        await self.collection.replace_one(
            {"_id": to_object_id(group.id)},
            group.to_document(),
            session=session
        )
        return group

    # ===== PRIVATE HELPERS =====

    async def _index_member(self, address: str, group_id: ObjectId, session) -> None:
        await self.member_groups.update_one(
            {"_id": address},
            {"$addToSet": {"group_ids": to_object_id(group_id)}},
            upsert=True,
            session=session
        )

    def _expense_document(self, expense: Expense) -> dict:
        doc = expense.model_dump()
        doc["group_id"] = to_object_id(expense.group_id)
        doc["distribution_policy"] = expense.distribution_policy.value
        return doc
