"""
New-clip notifications. Disabled unless TELEGRAM_ENABLED is set with a
token and chat id, in which case clips at or above NOTIFY_MIN_IMPORTANCE
are announced to the chat.
"""
from abc import ABC, abstractmethod
from telegram import Bot
from dcwatch.config import Settings
from dcwatch.models.items import PersistedClip, IMPORTANCE_RANK
from dcwatch.services.logger import logger

TELEGRAM_CHUNK_SIZE = 4000  # Max chars per Telegram message

class Notifier(ABC):
    @abstractmethod
    async def notify(self, clip: PersistedClip, location_label: str | None = None) -> None:
        pass

class NullNotifier(Notifier):
    async def notify(self, clip: PersistedClip, location_label: str | None = None) -> None:
        return None

def format_clip_message(clip: PersistedClip, location_label: str | None = None) -> str:
    lines = [f"🏗️ [{clip.importance.upper()}] {clip.title}"]
    if location_label:
        lines.append(f"📍 {location_label}")
    lines.append(f"🏷️ {', '.join(clip.topics)} | relevance {clip.relevance_score}/10")
    lines.append("")
    lines.append(clip.summary)
    lines.append("")
    lines.append(f"{clip.source_name}: {clip.url}")
    return "\n".join(lines)[:TELEGRAM_CHUNK_SIZE]

class TelegramNotifier(Notifier):
    def __init__(self, token: str, chat_id: str, min_importance: str = "high"):
        self.bot = Bot(token)
        self.chat_id = chat_id
        self.min_rank = IMPORTANCE_RANK.get(min_importance, IMPORTANCE_RANK["high"])

    async def notify(self, clip: PersistedClip, location_label: str | None = None) -> None:
        if IMPORTANCE_RANK[clip.importance] < self.min_rank:
            return
        try:
            async with self.bot:
                await self.bot.send_message(chat_id=self.chat_id, text=format_clip_message(clip, location_label))
            logger.info(f"📨 Telegram notification sent for {clip.url}")
        except Exception as e:
            # The clip is already stored; a lost notification is only logged.
            logger.error(f"Telegram notification failed for {clip.url}: {e}")

def build_notifier(settings: Settings) -> Notifier:
    if settings.TELEGRAM_ENABLED:
        if settings.TELEGRAM_BOT_TOKEN and settings.TELEGRAM_CHAT_ID:
            logger.info("Telegram notifications enabled")
            return TelegramNotifier(settings.TELEGRAM_BOT_TOKEN, settings.TELEGRAM_CHAT_ID,
                                    settings.NOTIFY_MIN_IMPORTANCE)
        logger.warning("TELEGRAM_ENABLED but TELEGRAM_BOT_TOKEN/TELEGRAM_CHAT_ID missing, notifications disabled")
    return NullNotifier()
