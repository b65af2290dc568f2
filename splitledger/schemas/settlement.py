from typing import List
from pydantic import BaseModel, Field

class TransferBase(BaseModel):
    member_address: str
    value: int = Field(..., ge=0)

    model_config = {"from_attributes": True}

class GroupSettleRequest(BaseModel):
    group_id: str
    transfers: List[TransferBase] = []

class SettleUpRequest(BaseModel):
    """Transfers to execute, grouped per group, processed in order."""
    groups: List[GroupSettleRequest] = Field(..., min_length=1)

class GiverDistributionResponse(BaseModel):
    member_address: str
    total_debt: int
    transfers: List[TransferBase] = []

    model_config = {"from_attributes": True}

class MemberGroupDistributionResponse(BaseModel):
    group_id: str
    distribution: GiverDistributionResponse

class GroupSettlementResponse(BaseModel):
    group_id: str
    succeeded: bool
    applied: List[TransferBase] = []

class SettleUpResponse(BaseModel):
    succeeded: bool
    groups: List[GroupSettlementResponse] = []
