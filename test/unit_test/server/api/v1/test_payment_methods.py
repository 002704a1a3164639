from types import SimpleNamespace

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio

URL = "/api/v1/payment-methods"


def _card(method_id: str, customer: str = "cus_member", last4: str = "4242") -> SimpleNamespace:
    return SimpleNamespace(
        id=method_id,
        customer=customer,
        card=SimpleNamespace(brand="visa", last4=last4, exp_month=12, exp_year=2030),
    )


async def test_list_marks_default(client: AsyncClient, auth_as, stripe_gateway, member):
    stripe_gateway.list_payment_methods.return_value = [_card("pm_1"), _card("pm_2", last4="1881")]
    stripe_gateway.retrieve_customer.return_value = SimpleNamespace(
        invoice_settings=SimpleNamespace(default_payment_method="pm_2")
    )
    auth_as(member)

    response = await client.get(URL)

    assert response.status_code == 200
    assert response.json() == [
        {"id": "pm_1", "brand": "visa", "last4": "4242", "exp_month": 12, "exp_year": 2030, "is_default": False},
        {"id": "pm_2", "brand": "visa", "last4": "1881", "exp_month": 12, "exp_year": 2030, "is_default": True},
    ]


async def test_list_without_customer(client: AsyncClient, auth_as, stripe_gateway, make_profile):
    auth_as(await make_profile())

    assert (await client.get(URL)).json() == []
    stripe_gateway.list_payment_methods.assert_not_awaited()


async def test_attach_as_default(client: AsyncClient, auth_as, stripe_gateway, member):
    stripe_gateway.attach_payment_method.return_value = _card("pm_new")
    auth_as(member)

    response = await client.post(URL, json={"payment_method_id": "pm_new"})

    assert response.status_code == 201
    assert response.json()["is_default"] is True
    stripe_gateway.attach_payment_method.assert_awaited_once_with("pm_new", "cus_member")
    stripe_gateway.set_default_payment_method.assert_awaited_once_with("cus_member", "pm_new")


async def test_attach_creates_customer(client: AsyncClient, session, auth_as, stripe_gateway, make_profile):
    profile = await make_profile()
    stripe_gateway.create_customer.return_value = SimpleNamespace(id="cus_fresh")
    stripe_gateway.attach_payment_method.return_value = _card("pm_new", customer="cus_fresh")
    auth_as(profile)

    response = await client.post(URL, json={"payment_method_id": "pm_new", "set_default": False})

    assert response.json()["is_default"] is False
    stripe_gateway.set_default_payment_method.assert_not_awaited()
    await session.refresh(profile)
    assert profile.stripe_customer_id == "cus_fresh"


async def test_detach_own_method(client: AsyncClient, auth_as, stripe_gateway, member):
    stripe_gateway.retrieve_payment_method.return_value = _card("pm_1")
    auth_as(member)

    response = await client.delete(f"{URL}/pm_1")

    assert response.status_code == 204
    stripe_gateway.detach_payment_method.assert_awaited_once_with("pm_1")


async def test_cannot_detach_someone_elses_method(client: AsyncClient, auth_as, stripe_gateway, member):
    stripe_gateway.retrieve_payment_method.return_value = _card("pm_1", customer="cus_other")
    auth_as(member)

    response = await client.delete(f"{URL}/pm_1")

    assert response.status_code == 404
    assert response.json()["detail"] == "Payment method not found"
    stripe_gateway.detach_payment_method.assert_not_awaited()
