from typing import List
from pydantic import BaseModel, Field
from datetime import datetime

class GroupMemberInput(BaseModel):
    address: str = Field(..., min_length=1)
    name: str = ""

class GroupCreate(BaseModel):
    """Create a group. The caller is added as a member if not listed."""
    name: str = Field(..., min_length=1, max_length=100)
    creator_name: str = ""
    members: List[GroupMemberInput] = []

class GroupJoin(BaseModel):
    name: str = ""

class GroupMemberResponse(BaseModel):
    address: str
    name: str
    debt_value: int

    model_config = {"from_attributes": True}

class GroupResponse(BaseModel):
    id: str
    name: str
    members: List[GroupMemberResponse] = []
    next_expense_id: int
    created_by: str
    created_at: datetime
    updated_at: datetime
