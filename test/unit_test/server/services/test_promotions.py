"""Unit tests for promotion validation and redemption."""

from datetime import datetime, timedelta, timezone

import pytest

from matlinks.core.database.entities.promotions import Promotion
from matlinks.server.services.promotions import check_promotion, redeem_promotion, validate_promotion

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
async def promotion(session) -> Promotion:
    promotion = Promotion(code="SUMMER25", discount_type="percentage", discount_value=25, max_uses=10)
    session.add(promotion)
    await session.commit()
    await session.refresh(promotion)
    return promotion


class TestCheckPromotion:
    def _promotion(self, **fields) -> Promotion:
        values = {"code": "X", "discount_type": "fixed", "discount_value": 500, "current_uses": 0}
        values.update(fields)
        return Promotion(**values)

    @pytest.mark.parametrize(
        "fields,already_redeemed,message",
        [
            ({"is_active": False}, False, "Invalid promotion code"),
            ({"end_date": NOW - timedelta(days=1)}, False, "Promotion has expired"),
            ({"start_date": NOW + timedelta(days=1)}, False, "Promotion has not started yet"),
            ({"max_uses": 3, "current_uses": 3}, False, "Promotion has reached maximum usage limit"),
            ({}, True, "You have already used this promotion"),
            ({"max_uses": None, "current_uses": 1000}, False, "Promotion is valid"),
        ],
    )
    def test_rules(self, fields, already_redeemed, message):
        valid, reason = check_promotion(self._promotion(**fields), already_redeemed, NOW)

        assert reason == message
        assert valid is (message == "Promotion is valid")

    def test_unknown_code(self):
        assert check_promotion(None, False, NOW) == (False, "Invalid promotion code")

    def test_expiry_checked_before_usage(self):
        promotion = self._promotion(end_date=NOW - timedelta(days=1), max_uses=1, current_uses=1)

        assert check_promotion(promotion, True, NOW)[1] == "Promotion has expired"

    def test_mixed_offsets_compare_as_utc(self):
        plus_two = timezone(timedelta(hours=2))
        promotion = self._promotion(
            start_date=datetime(2024, 6, 1, 13, 0, 0, tzinfo=plus_two),
            end_date=datetime(2024, 6, 1, 13, 0, 0),
        )

        assert check_promotion(promotion, False, NOW) == (True, "Promotion is valid")
        assert check_promotion(promotion, False, NOW + timedelta(hours=2))[1] == "Promotion has expired"


class TestStoredPromotionDates:
    async def test_stored_dates_compare_with_aware_now(self, session, member):
        session.add(
            Promotion(code="LATER", discount_type="fixed", discount_value=500, start_date=NOW + timedelta(days=1))
        )
        await session.commit()
        session.expunge_all()

        early = await validate_promotion(session, "later", member.id, now=NOW)
        started = await validate_promotion(session, "later", member.id, now=NOW + timedelta(days=2))

        assert early.message == "Promotion has not started yet"
        assert started.valid is True


class TestValidatePromotion:
    async def test_valid_with_price_preview(self, session, promotion, plan, member):
        validation = await validate_promotion(session, "summer25", member.id, plan=plan, now=NOW)

        assert validation.valid is True
        assert validation.promotion_id == promotion.id
        assert validation.original_price == 15000
        assert validation.discounted_price == 11250
        assert validation.discount_amount == 3750

    async def test_invalid_code(self, session, member):
        validation = await validate_promotion(session, "NOPE", member.id, now=NOW)

        assert validation.valid is False
        assert validation.message == "Invalid promotion code"
        assert validation.promotion_id is None


class TestRedeemPromotion:
    async def test_redeem_once(self, session, promotion, plan, member):
        redemption = await redeem_promotion(session, promotion.id, member.id, plan=plan)
        await session.commit()

        assert redemption.discount_amount == 3750
        assert await redeem_promotion(session, promotion.id, member.id, plan=plan) is None
        await session.refresh(promotion)
        assert promotion.current_uses == 1

        validation = await validate_promotion(session, "SUMMER25", member.id, now=NOW)
        assert validation.message == "You have already used this promotion"

    async def test_unknown_promotion(self, session, member):
        assert await redeem_promotion(session, 404, member.id) is None
