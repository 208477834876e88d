"""Tests for notifier selection and clip store constraints."""

import asyncio
import pytest
from dcwatch.config import Settings
from dcwatch.errors import PersistenceError
from dcwatch.models.items import PersistedClip
from dcwatch.services.notifier import (
    NullNotifier, TelegramNotifier, build_notifier, format_clip_message,
)


def clip(**overrides):
    data = dict(
        url="https://a.com/1", title="County approves data center rezoning", summary="The board voted 5-2.",
        source_type="news", source_name="Example Times", importance="high", topics=["zoning"],
        relevance_score=9,
    )
    data.update(overrides)
    return PersistedClip(**data)


class FakeBot:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def send_message(self, chat_id, text):
        if self.fail:
            raise ConnectionError("telegram unreachable")
        self.sent.append((chat_id, text))


class TestNotifier:

    def test_disabled_by_default(self):
        assert isinstance(build_notifier(Settings(TELEGRAM_ENABLED=False)), NullNotifier)

    def test_enabled_without_credentials_is_disabled(self):
        assert isinstance(build_notifier(Settings(TELEGRAM_ENABLED=True, TELEGRAM_BOT_TOKEN=None)), NullNotifier)

    def test_enabled_with_credentials(self):
        settings = Settings(TELEGRAM_ENABLED=True, TELEGRAM_BOT_TOKEN="123:abc", TELEGRAM_CHAT_ID="42")
        assert isinstance(build_notifier(settings), TelegramNotifier)

    def test_message_format(self):
        text = format_clip_message(clip(), "Loudoun, VA")
        assert "[HIGH] County approves data center rezoning" in text
        assert "Loudoun, VA" in text
        assert text.endswith("Example Times: https://a.com/1")

    def test_importance_threshold(self):
        notifier = TelegramNotifier("123:abc", "42", min_importance="high")
        notifier.bot = FakeBot()
        asyncio.run(notifier.notify(clip(importance="medium")))
        asyncio.run(notifier.notify(clip(importance="high")))
        assert len(notifier.bot.sent) == 1
        assert notifier.bot.sent[0][0] == "42"

    def test_send_failure_is_swallowed(self):
        notifier = TelegramNotifier("123:abc", "42")
        notifier.bot = FakeBot(fail=True)
        asyncio.run(notifier.notify(clip()))


class TestClipStore:

    def test_duplicate_url_raises_persistence_error(self, db):
        asyncio.run(db.create_clip(clip()))
        with pytest.raises(PersistenceError):
            asyncio.run(db.create_clip(clip(title="Same url, new title")))

    def test_duplicate_external_id_raises(self, db):
        asyncio.run(db.create_clip(clip(url="https://www.youtube.com/watch?v=x", external_id="x", source_type="youtube")))
        with pytest.raises(PersistenceError):
            asyncio.run(db.create_clip(clip(url="https://youtu.be/x", external_id="x", source_type="youtube")))

    def test_many_clips_without_external_id(self, db):
        asyncio.run(db.create_clip(clip(url="https://a.com/1")))
        asyncio.run(db.create_clip(clip(url="https://a.com/2")))
        assert asyncio.run(db.count_clips()) == 2

    def test_clip_exists_by_either_key(self, db):
        asyncio.run(db.create_clip(clip(url="https://www.youtube.com/watch?v=x", external_id="x", source_type="youtube")))
        assert asyncio.run(db.clip_exists("https://www.youtube.com/watch?v=x"))
        assert asyncio.run(db.clip_exists("https://other.url", "x"))
        assert not asyncio.run(db.clip_exists("https://other.url", "y"))
        assert not asyncio.run(db.clip_exists("https://other.url"))

    def test_clip_and_location_saved_together(self, db):
        first = asyncio.run(db.save_clip_with_location(clip(url="https://a.com/1"), "", "Loudoun", "VA", 39.0, -77.5))
        second = asyncio.run(db.save_clip_with_location(clip(url="https://a.com/2"), "", "Loudoun", "VA"))
        assert first.id == second.id
        assert second.clip_count == 2
        assert (second.latitude, second.longitude) == (39.0, -77.5)
        rows = asyncio.run(db.get_recent_clips())
        assert {r["location_id"] for r in rows} == {first.id}

    def test_rejected_clip_does_not_create_location(self, db):
        asyncio.run(db.create_clip(clip()))
        with pytest.raises(PersistenceError):
            asyncio.run(db.save_clip_with_location(clip(title="Same url"), "Ashburn", "Loudoun", "VA"))
        assert asyncio.run(db.get_location("Ashburn", "Loudoun", "VA")) is None
        assert asyncio.run(db.count_clips()) == 1
