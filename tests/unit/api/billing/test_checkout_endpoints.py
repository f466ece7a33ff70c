"""Credit pack catalogue and checkout session creation."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
import stripe
from fastapi import status

from src.api.core.messages import MessageCode
from tests.utils.assertions import assert_error_response, assert_success_response


@pytest.mark.asyncio
async def test_catalog_lists_three_packs(app, public_client):
    response = await public_client.get("/billing/catalog")

    data = assert_success_response(response)
    packs = {pack["id"]: pack for pack in data["packs"]}
    assert data["currency"] == "GBP"
    assert set(packs) == {"pack_25", "pack_100", "pack_500"}
    assert packs["pack_100"]["credits"] == 100
    assert packs["pack_100"]["popular"] is True


@pytest.mark.asyncio
async def test_checkout_creates_payment_session(app, authorized_client, test_user):
    session = SimpleNamespace(id="cs_test_123", url="https://checkout.stripe.test/cs")

    with patch("stripe.checkout.Session.create", return_value=session) as create:
        response = await authorized_client.post(
            "/checkout", json={"pack_id": "pack_25"}
        )

    data = assert_success_response(response, MessageCode.CHECKOUT_CREATED)
    assert data == {"session_id": "cs_test_123", "url": "https://checkout.stripe.test/cs"}

    kwargs = create.call_args.kwargs
    assert kwargs["mode"] == "payment"
    assert kwargs["metadata"] == {
        "user_id": test_user.auth_user_id,
        "credits": "25",
        "pack_id": "pack_25",
    }
    price_data = kwargs["line_items"][0]["price_data"]
    assert price_data["currency"] == "gbp"
    assert price_data["unit_amount"] == 900


@pytest.mark.asyncio
async def test_checkout_rejects_unknown_pack(app, authorized_client):
    response = await authorized_client.post("/checkout", json={"pack_id": "pack_9"})

    assert_error_response(
        response, MessageCode.INVALID_INPUT, status.HTTP_400_BAD_REQUEST
    )


@pytest.mark.asyncio
async def test_checkout_requires_sign_in(app, public_client):
    response = await public_client.post("/checkout", json={"pack_id": "pack_25"})

    assert_error_response(
        response, MessageCode.AUTH_REQUIRED, status.HTTP_401_UNAUTHORIZED
    )


@pytest.mark.asyncio
async def test_checkout_provider_failure_is_502(app, authorized_client):
    with patch(
        "stripe.checkout.Session.create",
        side_effect=stripe.StripeError("card network down"),
    ):
        response = await authorized_client.post(
            "/checkout", json={"pack_id": "pack_100"}
        )

    assert_error_response(
        response, MessageCode.EXTERNAL_SERVICE_ERROR, status.HTTP_502_BAD_GATEWAY
    )
