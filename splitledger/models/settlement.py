from typing import List

from pydantic import BaseModel, ConfigDict, Field

from splitledger.models.base import DocumentId


class TransferInstruction(BaseModel):
    """One point-to-point transfer; both plan output and settle-up input."""
    model_config = ConfigDict(frozen=True)

    member_address: str
    value: int = Field(ge=0)


class GiverDistribution(BaseModel):
    """The transfers one giver has to make to bring the group to zero."""
    member_address: str
    total_debt: int
    transfers: List[TransferInstruction] = []


class SettleResult(BaseModel):
    """Outcome of settling one group: the prefix of transfers that went through."""
    succeeded: bool
    applied: List[TransferInstruction] = []

    @property
    def applied_total(self) -> int:
        return sum(transfer.value for transfer in self.applied)


class GroupSettlement(SettleResult):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    group_id: DocumentId


class SettleUpResult(BaseModel):
    """Outcome of a batch settle-up across groups, stopped at the first failure."""
    succeeded: bool
    groups: List[GroupSettlement] = []


class MemberGroupDistribution(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    group_id: DocumentId
    distribution: GiverDistribution
