import pytest
from unittest.mock import AsyncMock, MagicMock
from bson import ObjectId

from splitledger.core.auth import create_access_token
from splitledger.core.errors import PaymentRailError
from splitledger.models.group import Group, GroupMember


class FakePaymentRail:
    """In-memory payment rail recording every transfer attempt."""

    def __init__(self, fail_on_call: int | None = None):
        self.fail_on_call = fail_on_call
        self.calls = []

    async def transfer(self, asset, recipient, amount, data):
        self.calls.append({
            "asset": asset,
            "recipient": recipient,
            "amount": amount,
            "data": data
        })
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise PaymentRailError(f"Transfer to {recipient} failed")


@pytest.fixture
def make_group():
    """Build a group from (address, debt_value) pairs."""
    def _make_group(balances, name="Trip", group_id=None):
        return Group(
            _id=group_id or ObjectId(),
            name=name,
            members=[
                GroupMember(address=address, name=address.title(), debt_value=debt_value)
                for address, debt_value in balances
            ],
            next_expense_id=1,
            created_by=balances[0][0] if balances else ""
        )
    return _make_group


@pytest.fixture
def fake_rail():
    """Factory for payment rails that fail on the n-th transfer (1-based)."""
    def _fake_rail(fail_on_call=None):
        return FakePaymentRail(fail_on_call=fail_on_call)
    return _fake_rail


@pytest.fixture
def mock_db():
    """Mock MongoDB database with the ledger's collections and a session."""
    mock_db = MagicMock()

    collections = {}
    for name in ("groups", "group_expenses", "member_groups"):
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=None)
        collection.insert_one = AsyncMock()
        collection.replace_one = AsyncMock()
        collection.update_one = AsyncMock()
        collections[name] = collection
    mock_db.__getitem__.side_effect = collections.__getitem__

    mock_session = MagicMock()
    mock_session.__aenter__ = AsyncMock(return_value=mock_session)
    mock_session.__aexit__ = AsyncMock(return_value=False)
    mock_transaction = MagicMock()
    mock_transaction.__aenter__ = AsyncMock(return_value=mock_transaction)
    mock_transaction.__aexit__ = AsyncMock(return_value=False)
    mock_session.start_transaction = MagicMock(return_value=mock_transaction)
    mock_db.client.start_session = AsyncMock(return_value=mock_session)
    mock_db.session = mock_session

    return mock_db


@pytest.fixture
def alice_token():
    return create_access_token("alice", name="Alice")


@pytest.fixture
def auth_headers(alice_token):
    return {"Authorization": f"Bearer {alice_token}"}
