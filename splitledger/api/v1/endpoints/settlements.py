from typing import List
from fastapi import APIRouter, Depends

from splitledger.api.deps import get_group_service
from splitledger.core.auth import CallerIdentity, get_current_member
from splitledger.core.errors import LedgerError, to_http_exception
from splitledger.schemas.settlement import (
    GiverDistributionResponse,
    GroupSettlementResponse,
    MemberGroupDistributionResponse,
    SettleUpRequest,
    SettleUpResponse,
)
from splitledger.services.group_service import GroupService

router = APIRouter()

@router.get("/me", response_model=List[MemberGroupDistributionResponse])
async def get_my_distributions(
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """What the caller has to pay, group by group."""
    try:
        distributions = await service.get_member_group_distributions(current_member.address)
    except LedgerError as e:
        raise to_http_exception(e)
    return [
        MemberGroupDistributionResponse(
            group_id=str(item.group_id),
            distribution=GiverDistributionResponse.model_validate(
                item.distribution, from_attributes=True
            )
        )
        for item in distributions
    ]

@router.post("/", response_model=SettleUpResponse)
async def settle_up(
    settle_in: SettleUpRequest,
    current_member: CallerIdentity = Depends(get_current_member),
    service: GroupService = Depends(get_group_service)
):
    """
    Pay the given transfers through the payment rail.

    A payment rail failure is not an HTTP error: the response reports
    succeeded=false with the transfers that did go through.
    """
    try:
        result = await service.settle_up_groups(current_member.address, settle_in.groups)
    except LedgerError as e:
        raise to_http_exception(e)
    return SettleUpResponse(
        succeeded=result.succeeded,
        groups=[
            GroupSettlementResponse(
                group_id=str(group.group_id),
                succeeded=group.succeeded,
                applied=[
                    {"member_address": t.member_address, "value": t.value}
                    for t in group.applied
                ]
            )
            for group in result.groups
        ]
    )
