"""
Test caller identity from bearer tokens and error mapping
"""
import pytest
from datetime import timedelta
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from splitledger.core.auth import create_access_token, get_current_member
from splitledger.core.config import settings
from splitledger.core.errors import (
    DistributionMemberNotInGroup,
    GroupDoesNotExist,
    LedgerArithmeticError,
    MemberAlreadyInGroup,
    MemberIsNotInTheGroup,
    PaymentRailError,
    SettlementValidationError,
    to_http_exception,
)


def _credentials(token):
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


def test_token_carries_address_and_name():
    token = create_access_token("0xalice", name="Alice")
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])

    assert payload["sub"] == "0xalice"
    assert payload["name"] == "Alice"
    assert payload["exp"] > payload["iat"]


@pytest.mark.asyncio
async def test_current_member_from_token():
    caller = await get_current_member(_credentials(create_access_token("0xalice", name="Alice")))

    assert caller.address == "0xalice"
    assert caller.name == "Alice"


@pytest.mark.asyncio
async def test_expired_token_rejected():
    token = create_access_token("0xalice", expires_delta=timedelta(minutes=-5))

    with pytest.raises(HTTPException) as exc_info:
        await get_current_member(_credentials(token))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_other_secret_rejected():
    token = jwt.encode({"sub": "0xalice"}, "not-the-secret", algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(HTTPException) as exc_info:
        await get_current_member(_credentials(token))

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_token_without_subject_rejected():
    token = jwt.encode({"name": "nobody"}, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(HTTPException) as exc_info:
        await get_current_member(_credentials(token))

    assert exc_info.value.status_code == 401


@pytest.mark.parametrize(
    "error, status_code",
    [
        (DistributionMemberNotInGroup("mallory"), 400),
        (SettlementValidationError("bad transfer"), 400),
        (MemberIsNotInTheGroup("not a member"), 403),
        (GroupDoesNotExist("missing"), 404),
        (MemberAlreadyInGroup("already in"), 409),
        (LedgerArithmeticError("overflow"), 500),
        (PaymentRailError("down"), 502),
    ],
)
def test_error_status_mapping(error, status_code):
    http_exc = to_http_exception(error)

    assert http_exc.status_code == status_code
    assert http_exc.detail == error.message
