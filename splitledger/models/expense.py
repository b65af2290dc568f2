from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from splitledger.models.base import DocumentId, utc_now


class DistributionPolicy(str, Enum):
    EQUAL = "equal"
    WEIGHTED = "weighted"


class ExpenseMember(BaseModel):
    model_config = ConfigDict(frozen=True)

    member_address: str
    paid: int = Field(default=0, ge=0)      # Amount actually contributed
    must_pay: int = Field(default=0, ge=0)  # Obligation under WEIGHTED


class Expense(BaseModel):
    """A recorded shared cost. Immutable once created; appended to the group's log."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: int                      # Per-group sequence, taken from Group.next_expense_id
    group_id: DocumentId
    total_amount: int = Field(ge=0)
    distribution_policy: DistributionPolicy
    members: List[ExpenseMember] = []
    description: str = ""
    created_by: str = ""
    created_at: datetime = Field(default_factory=utc_now)
