"""
Group model - one shared balance sheet.

Sign convention for debt_value:
- debt_value > 0: giver, pays out when the group settles
- debt_value < 0: taker, receives when the group settles
- debt_value == 0: settled

Balances are stored as BSON int64, so every balance update is checked
against that range instead of being allowed to grow unbounded.
"""

from typing import Dict, List

from pydantic import BaseModel

from splitledger.core.errors import LedgerArithmeticError
from splitledger.models.base import MongoModel

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def checked_add(value: int, delta: int) -> int:
    """Add two balances, failing instead of leaving the int64 range."""
    result = value + delta
    if result < INT64_MIN or result > INT64_MAX:
        raise LedgerArithmeticError(
            f"Balance arithmetic out of range: {value} + {delta}"
        )
    return result


class GroupMember(BaseModel):
    address: str
    name: str = ""
    debt_value: int = 0

    @property
    def is_giver(self) -> bool:
        return self.debt_value > 0

    @property
    def is_taker(self) -> bool:
        return self.debt_value < 0


class Group(MongoModel):
    name: str
    members: List[GroupMember] = []
    next_expense_id: int = 1
    created_by: str = ""

    def member_index(self) -> Dict[str, GroupMember]:
        """Address-keyed view over the members, sharing the same objects."""
        return {member.address: member for member in self.members}

    def get_member(self, address: str) -> GroupMember | None:
        return self.member_index().get(address)

    def has_member(self, address: str) -> bool:
        return address in self.member_index()

    def apply_delta(self, address: str, delta: int) -> int:
        """
        Apply a signed delta to one member's debt_value.

        Keyed mutation: the member stays where it is in the member list.
        Raises LedgerArithmeticError before mutating if the result overflows,
        and KeyError if the address is unknown.
        """
        member = self.member_index()[address]
        member.debt_value = checked_add(member.debt_value, delta)
        return member.debt_value

    def balances(self) -> Dict[str, int]:
        return {member.address: member.debt_value for member in self.members}

    def total_balance(self) -> int:
        return sum(member.debt_value for member in self.members)
