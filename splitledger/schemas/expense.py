from typing import List
from pydantic import BaseModel, Field
from datetime import datetime
from splitledger.models.expense import DistributionPolicy

class DistributionByMember(BaseModel):
    member_address: str
    value: int = Field(default=0, ge=0)  # Only read for WEIGHTED

class ExpenseCreate(BaseModel):
    """
    A single-payer expense: payer_address paid the whole total_amount,
    distribution says who shares it and (for WEIGHTED) how much each owes.
    """
    total_amount: int = Field(..., ge=0)
    payer_address: str
    distribution_policy: DistributionPolicy = DistributionPolicy.EQUAL
    distribution: List[DistributionByMember] = []
    description: str = Field("", max_length=500)

class ExpenseMemberResponse(BaseModel):
    member_address: str
    paid: int
    must_pay: int

    model_config = {"from_attributes": True}

class ExpenseResponse(BaseModel):
    id: int
    group_id: str
    total_amount: int
    distribution_policy: DistributionPolicy
    members: List[ExpenseMemberResponse] = []
    description: str = ""
    created_by: str
    created_at: datetime
