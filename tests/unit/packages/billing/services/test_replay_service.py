"""
Unit tests for ReplayService.
"""

import pytest
from unittest.mock import AsyncMock, patch

from common.core.exceptions import ProviderUnavailableError
from packages.billing.models.domain.enums import BillingEventStatus, SubscriptionStatus
from packages.billing.repositories.billing_event_repository import (
    BillingEventRepository,
)
from packages.billing.repositories.subscription_mirror_repository import (
    SubscriptionMirrorRepository,
)
from packages.billing.services.replay_service import ReplayService, summarize
from tests.factories.billing_factory import BillingFactory


async def _failed_event(event_id: str, customer_id, subscription_id):
    repo = BillingEventRepository()
    event = await repo.record_received(
        event_id, "customer.subscription.updated", customer_id, subscription_id
    )
    return await repo.mark(event, BillingEventStatus.FAILED, error="db hiccup")


@patch("common.core.otel_axiom_exporter.axiom_tracer.start_as_current_span")
class TestReplayService:
    """Tests for ReplayService."""

    @pytest.mark.asyncio
    async def test_replay_failed_repairs_mirror(self, mock_start_span, mock_payment_provider):
        await _failed_event("evt_f1", "cus_1", "sub_1")
        mock_payment_provider.retrieve_subscription.return_value = (
            BillingFactory.create_subscription(id="sub_1", customer="cus_1")
        )

        result = await ReplayService().replay_failed()

        assert result.attempted == 1
        assert result.repaired == 1
        assert result.still_failing == 0
        event = await BillingEventRepository().get_by_event_id("evt_f1")
        assert event.status == BillingEventStatus.PROCESSED
        assert event.attempts == 2
        mirror = await SubscriptionMirrorRepository().get_by_customer_id("cus_1")
        assert mirror.status == SubscriptionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_replay_failed_still_failing(self, mock_start_span, mock_payment_provider):
        await _failed_event("evt_f2", "cus_1", "sub_1")
        mock_payment_provider.retrieve_subscription = AsyncMock(
            side_effect=ProviderUnavailableError("down")
        )

        result = await ReplayService().replay_failed()

        assert result.still_failing == 1
        event = await BillingEventRepository().get_by_event_id("evt_f2")
        assert event.status == BillingEventStatus.FAILED
        assert event.attempts == 2

    @pytest.mark.asyncio
    async def test_replay_failed_skips_events_without_customer(
        self, mock_start_span, mock_payment_provider
    ):
        await _failed_event("evt_f3", None, None)

        result = await ReplayService().replay_failed()

        assert result.skipped == 1
        assert result.repaired == 0
        event = await BillingEventRepository().get_by_event_id("evt_f3")
        assert event.status == BillingEventStatus.IGNORED
        mock_payment_provider.retrieve_subscription.assert_not_called()

    @pytest.mark.asyncio
    async def test_replay_account(self, mock_start_span, mock_payment_provider, sample_customer):
        mock_payment_provider.list_subscriptions.return_value = [
            BillingFactory.create_subscription(id="sub_1", customer="cus_test_1")
        ]

        record = await ReplayService().replay_account("acct_test_1")

        assert summarize([record]) == [
            {
                "customer_id": "cus_test_1",
                "subscription_id": "sub_1",
                "status": "active",
                "cancel_at_period_end": False,
            }
        ]
