"""Tests for outbound dispatch."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from concierge_core import LoggingMessagingGateway, OutboundDispatcher


class TestOutboundDispatcher:
    """Tests for OutboundDispatcher."""

    @pytest.mark.asyncio
    async def test_successful_send(self):
        """Test a sent reply reports its message ID."""
        gateway = LoggingMessagingGateway()
        dispatcher = OutboundDispatcher(gateway)

        delivery = await dispatcher.dispatch("res-1", "¡Hola!", "conv-1")

        assert delivery.sent is True
        assert delivery.message_id == "local-1"
        assert delivery.error is None
        assert gateway.sent[0]["conversation_id"] == "conv-1"

    @pytest.mark.asyncio
    async def test_numeric_message_id(self):
        """Test provider IDs are reported as strings."""
        gateway = Mock()
        gateway.send_message_to_guest = AsyncMock(return_value={"id": 987})
        dispatcher = OutboundDispatcher(gateway)

        delivery = await dispatcher.dispatch("res-1", "¡Hola!")

        assert delivery.message_id == "987"
        gateway.send_message_to_guest.assert_awaited_once_with("res-1", "¡Hola!", None)

    @pytest.mark.asyncio
    async def test_gateway_error_is_reported(self):
        """Test a raising gateway yields sent=False with the error."""
        gateway = Mock()
        gateway.send_message_to_guest = AsyncMock(side_effect=RuntimeError("503 from PMS"))
        dispatcher = OutboundDispatcher(gateway)

        delivery = await dispatcher.dispatch("res-1", "¡Hola!")

        assert delivery.sent is False
        assert delivery.error == "503 from PMS"

    @pytest.mark.asyncio
    async def test_empty_record_is_a_failure(self):
        """Test a gateway that returns nothing did not deliver."""
        gateway = Mock()
        gateway.send_message_to_guest = AsyncMock(return_value=None)
        dispatcher = OutboundDispatcher(gateway)

        delivery = await dispatcher.dispatch("res-1", "¡Hola!")

        assert delivery.sent is False
        assert "did not return a message record" in delivery.error

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test a slow gateway times out."""

        class SlowGateway:
            async def send_message_to_guest(self, reservation_id, text, conversation_id=None):
                await asyncio.sleep(1)
                return {"id": "late"}

        dispatcher = OutboundDispatcher(SlowGateway(), timeout_seconds=0.01)

        delivery = await dispatcher.dispatch("res-1", "¡Hola!")

        assert delivery.sent is False
        assert "Timed out" in delivery.error
