"""Tests for heartbeat reply delivery."""

from unittest.mock import AsyncMock, call

import pytest

from pulsegate.heartbeat.delivery import (
    TEXT_CHUNK_LIMIT,
    DeliveryStep,
    build_delivery_plan,
    chunk_text,
    deliver_heartbeat_reply,
)


class TestChunkText:
    """Test chunk_text."""

    def test_short_text_single_chunk(self) -> None:
        assert chunk_text("hello") == ["hello"]

    def test_empty_text(self) -> None:
        assert chunk_text("") == []

    def test_invalid_limit(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            chunk_text("hello", limit=0)

    def test_long_text_rejoins_exactly(self) -> None:
        text = ("word " * 1800)[:9000]

        chunks = chunk_text(text, limit=4000)

        assert len(chunks) == 3
        assert all(len(chunk) <= 4000 for chunk in chunks)
        assert "".join(chunks) == text

    def test_unbroken_text_hard_split(self) -> None:
        text = "x" * 9000

        chunks = chunk_text(text, limit=4000)

        assert [len(chunk) for chunk in chunks] == [4000, 4000, 1000]
        assert "".join(chunks) == text

    def test_prefers_paragraph_break(self) -> None:
        text = "a" * 10 + "\n\n" + "b" * 5 + "\n" + "c" * 10

        chunks = chunk_text(text, limit=20)

        assert chunks[0] == "a" * 10 + "\n\n"
        assert "".join(chunks) == text

    def test_prefers_line_break_over_space(self) -> None:
        text = "aaa bbb\nccc ddd eee"

        chunks = chunk_text(text, limit=12)

        assert chunks[0] == "aaa bbb\n"
        assert "".join(chunks) == text


class TestBuildDeliveryPlan:
    """Test build_delivery_plan."""

    def test_text_only(self) -> None:
        assert build_delivery_plan("hello", []) == [DeliveryStep(text="hello")]

    def test_attachments_caption_on_first_only(self) -> None:
        plan = build_delivery_plan("see these", ["https://a/1.png", "https://a/2.png"])

        assert plan == [
            DeliveryStep(text="see these", media_url="https://a/1.png"),
            DeliveryStep(text="", media_url="https://a/2.png"),
        ]

    def test_attachments_not_chunked(self) -> None:
        long_text = "x" * (TEXT_CHUNK_LIMIT + 10)

        plan = build_delivery_plan(long_text, ["https://a/1.png"])

        assert len(plan) == 1
        assert plan[0].text == long_text


class TestDeliverHeartbeatReply:
    """Test deliver_heartbeat_reply."""

    @pytest.mark.asyncio
    async def test_text_sent_in_chunks_in_order(self) -> None:
        send = AsyncMock()
        text = "x" * 9000

        sent = await deliver_heartbeat_reply("telegram", "u1", text, [], {"telegram": send})

        assert sent == 3
        assert send.await_args_list == [
            call("u1", "x" * 4000),
            call("u1", "x" * 4000),
            call("u1", "x" * 1000),
        ]

    @pytest.mark.asyncio
    async def test_media_sent_with_caption_on_first(self) -> None:
        send = AsyncMock()

        sent = await deliver_heartbeat_reply(
            "whatsapp", "+1555", "caption", ["https://a/1.png", "https://a/2.png"], {"whatsapp": send}
        )

        assert sent == 2
        assert send.await_args_list == [
            call("+1555", "caption", media_url="https://a/1.png"),
            call("+1555", "", media_url="https://a/2.png"),
        ]

    @pytest.mark.asyncio
    async def test_failure_stops_remaining_steps(self) -> None:
        send = AsyncMock(side_effect=[None, RuntimeError("network down"), None])

        with pytest.raises(RuntimeError, match="network down"):
            await deliver_heartbeat_reply("telegram", "u1", "x" * 9000, [], {"telegram": send})

        assert send.await_count == 2

    @pytest.mark.asyncio
    async def test_missing_sender(self) -> None:
        with pytest.raises(RuntimeError, match="No sender configured"):
            await deliver_heartbeat_reply("telegram", "u1", "hi", [], {})
