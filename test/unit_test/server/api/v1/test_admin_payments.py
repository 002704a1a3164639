from types import SimpleNamespace

import pytest
from httpx import AsyncClient

from matlinks.billing.errors import PaymentProviderError, PaymentErrorKind
from matlinks.core.database.entities.payments import FailedPayment, Payment, PaymentHistory

pytestmark = pytest.mark.asyncio

URL = "/api/v1/admin/payments"


@pytest.fixture(autouse=True)
def as_admin(auth_as, admin):
    auth_as(admin)


@pytest.fixture
async def failed_payment(session, member) -> Payment:
    payment = Payment(
        profile_id=member.id,
        amount=5000,
        status="failed",
        payment_intent_id="pi_old",
        stripe_customer_id="cus_member",
        payment_method_id="pm_card",
        description="Seminar fee",
    )
    session.add(payment)
    await session.commit()
    await session.refresh(payment)
    return payment


class TestManualPayments:
    async def test_record_manual_payment(self, client: AsyncClient, session, member):
        response = await client.post(
            f"{URL}/manual",
            json={"member_id": member.id, "amount": 120.5, "payment_method": "cash", "receipt_number": "R-7"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["amount_paid"] == 12050
        assert body["is_manual"] is True
        assert body["description"] == "Manual payment"
        assert body["receipt_number"] == "R-7"
        record = await session.get(PaymentHistory, body["id"])
        assert (record.period_end - record.period_start).days == 30

    async def test_unknown_member(self, client: AsyncClient):
        response = await client.post(f"{URL}/manual", json={"member_id": "ghost", "amount": 10, "payment_method": "cash"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Member ghost not found"

    @pytest.mark.parametrize("payload", [{"amount": 0, "payment_method": "cash"}, {"amount": 10, "payment_method": ""}])
    async def test_invalid_manual_payment(self, client: AsyncClient, member, payload):
        assert (await client.post(f"{URL}/manual", json={"member_id": member.id, **payload})).status_code == 422


class TestLedgers:
    async def test_list_payments_filters(self, client: AsyncClient, session, member, failed_payment):
        session.add(Payment(profile_id=member.id, amount=2500, status="succeeded"))
        await session.commit()

        everything = (await client.get(URL)).json()
        failed = (await client.get(URL, params={"status_filter": "failed"})).json()

        assert len(everything) == 2
        assert [row["id"] for row in failed] == [failed_payment.id]

    async def test_history_by_member(self, client: AsyncClient, session, member, make_profile):
        other = await make_profile()
        session.add_all(
            [
                PaymentHistory(user_id=member.id, amount_paid=15000, stripe_invoice_id="in_1"),
                PaymentHistory(user_id=other.id, amount_paid=9000, stripe_invoice_id="in_2"),
            ]
        )
        await session.commit()

        response = await client.get(f"{URL}/history", params={"member_id": member.id})

        assert [row["stripe_invoice_id"] for row in response.json()] == ["in_1"]

    async def test_failed_unresolved_only(self, client: AsyncClient, session):
        session.add_all(
            [
                FailedPayment(id="in_1_failure", customer_id="cus_member", invoice_id="in_1", amount=15000),
                FailedPayment(
                    id="in_2_failure",
                    customer_id="cus_member",
                    invoice_id="in_2",
                    amount=15000,
                    final_status="succeeded",
                ),
            ]
        )
        await session.commit()

        response = await client.get(f"{URL}/failed", params={"unresolved_only": True})

        assert response.status_code == 200
        assert [row["id"] for row in response.json()] == ["in_1_failure"]
        assert response.json()[0]["retry_attempts"] == []


class TestRetry:
    async def test_confirms_retryable_intent(self, client: AsyncClient, session, stripe_gateway, failed_payment):
        stripe_gateway.retrieve_payment_intent.return_value = SimpleNamespace(
            id="pi_old", status="requires_payment_method", customer="cus_member"
        )
        stripe_gateway.confirm_payment_intent.return_value = SimpleNamespace(id="pi_old", status="processing")

        response = await client.post(f"{URL}/{failed_payment.id}/retry")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Payment retry initiated successfully",
            "payment_intent_id": "pi_old",
        }
        stripe_gateway.confirm_payment_intent.assert_awaited_once_with("pi_old", payment_method="pm_card")
        await session.refresh(failed_payment)
        assert failed_payment.status == "processing"
        assert failed_payment.last_retry_at is not None

    async def test_creates_new_intent_when_old_one_is_final(
        self, client: AsyncClient, stripe_gateway, failed_payment
    ):
        stripe_gateway.retrieve_payment_intent.return_value = SimpleNamespace(
            id="pi_old", status="canceled", customer="cus_member"
        )
        stripe_gateway.create_payment_intent.return_value = SimpleNamespace(id="pi_new", status="processing")

        response = await client.post(f"{URL}/{failed_payment.id}/retry")

        assert response.json()["payment_intent_id"] == "pi_new"
        assert response.json()["message"] == "Created new payment attempt successfully"
        params = stripe_gateway.create_payment_intent.call_args.kwargs
        assert params["amount"] == 5000
        assert params["customer"] == "cus_member"
        assert params["off_session"] is True

    async def test_only_failed_payments(self, client: AsyncClient, session, member):
        payment = Payment(profile_id=member.id, amount=5000, status="succeeded")
        session.add(payment)
        await session.commit()

        response = await client.post(f"{URL}/{payment.id}/retry")

        assert response.status_code == 400
        assert "Only failed payments can be retried" in response.json()["detail"]

    async def test_missing_payment(self, client: AsyncClient):
        response = await client.post(f"{URL}/999/retry")
        assert response.status_code == 404
        assert response.json()["detail"] == "Payment not found"

    async def test_stripe_refusal(self, client: AsyncClient, stripe_gateway, failed_payment):
        stripe_gateway.retrieve_payment_intent.side_effect = PaymentProviderError(
            "No such payment_intent", kind=PaymentErrorKind.INVALID_REQUEST
        )

        response = await client.post(f"{URL}/{failed_payment.id}/retry")

        assert response.status_code == 400
        assert response.json()["detail"] == "Stripe error: No such payment_intent"
