"""GET /credits and GET /credits/transactions."""

import pytest
from fastapi import status

from src.api.core.messages import MessageCode
from src.database.models import User
from tests.utils.assertions import assert_error_response, assert_success_response


@pytest.mark.asyncio
async def test_balance_for_signed_in_user(app, authorized_client):
    response = await authorized_client.get("/credits")

    data = assert_success_response(response)
    assert data == {"credits_balance": 1}


@pytest.mark.asyncio
async def test_first_request_onboards_with_signup_credit(app, client_factory):
    newcomer = User(auth_user_id="user_credits_new", email="c@example.com")

    async with client_factory(user=newcomer) as client:
        balance = await client.get("/credits")
        history = await client.get("/credits/transactions")

    assert assert_success_response(balance)["credits_balance"] == 1
    items = assert_success_response(history)["items"]
    assert [item["transaction_type"] for item in items] == ["signup"]
    assert items[0]["amount"] == 1


@pytest.mark.asyncio
async def test_transactions_are_paginated(
    app, authorized_client, test_user, credit_transaction_factory, db_session
):
    await credit_transaction_factory.create_batch_async(
        db_session, 3, user_id=test_user.id
    )

    response = await authorized_client.get(
        "/credits/transactions", params={"limit": 2, "offset": 0}
    )

    data = assert_success_response(response)
    assert len(data["items"]) == 2
    assert data["pagination"] == {"total": 3, "limit": 2, "offset": 0, "has_more": True}


@pytest.mark.asyncio
async def test_page_size_is_capped(app, authorized_client):
    response = await authorized_client.get(
        "/credits/transactions", params={"limit": 500}
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/credits", "/credits/transactions"])
async def test_credits_require_sign_in(app, public_client, path):
    response = await public_client.get(path)

    assert_error_response(
        response, MessageCode.AUTH_REQUIRED, status.HTTP_401_UNAUTHORIZED
    )
