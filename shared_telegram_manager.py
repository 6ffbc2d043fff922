import logging
import os
from typing import Optional, Dict

from aiogram import Bot

logger = logging.getLogger(__name__)


class TelegramBotManager:
    """
    Singleton Telegram bot manager so every notifier in the process shares
    one bot instance and one HTTP session.

    Messages go to TELEGRAM_CHAT_ID unless a per-user chat was registered.
    """
    _instance: Optional['TelegramBotManager'] = None
    _bot: Optional[Bot] = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._initialized:
            self.chat_id: Optional[int] = None
            self.token: Optional[str] = None
            self.user_chats: Dict[str, int] = {}
            self._setup_bot()
            TelegramBotManager._initialized = True

    def _setup_bot(self):
        """Initialize the bot with token from environment"""
        self.token = os.getenv("TELEGRAM_BOT_TOKEN")
        if not self.token:
            logger.warning("TELEGRAM_BOT_TOKEN not configured. Telegram notifications disabled.")
            return

        env_chat_id = os.getenv("TELEGRAM_CHAT_ID")
        if env_chat_id:
            self.chat_id = int(env_chat_id)
        else:
            logger.warning("TELEGRAM_CHAT_ID not configured. Only registered user chats will be notified.")

        TelegramBotManager._bot = Bot(token=self.token)
        logger.info("Telegram bot manager initialized successfully")

    @property
    def bot(self) -> Optional[Bot]:
        """Get the shared bot instance"""
        return TelegramBotManager._bot

    def register_user_chat(self, user_id: str, chat_id: int) -> None:
        self.user_chats[user_id] = chat_id

    def resolve_chat_id(self, user_id: Optional[str] = None) -> Optional[int]:
        if user_id and user_id in self.user_chats:
            return self.user_chats[user_id]
        return self.chat_id

    def is_available(self, user_id: Optional[str] = None) -> bool:
        """Check if Telegram bot is available for use"""
        return self.bot is not None and self.resolve_chat_id(user_id) is not None

    async def send_message(self, text: str, user_id: Optional[str] = None, parse_mode: str = "HTML") -> bool:
        """
        Send a message via Telegram bot

        Args:
            text: Message text
            user_id: Bot user whose chat should receive the message
            parse_mode: Parse mode (HTML, Markdown, etc.)

        Returns:
            bool: True if message sent successfully, False otherwise
        """
        if not self.is_available(user_id):
            return False

        try:
            await self.bot.send_message(
                chat_id=self.resolve_chat_id(user_id),
                text=text,
                parse_mode=parse_mode
            )
            return True
        except Exception as e:
            logger.error(f"Failed to send Telegram message: {e}")
            return False

    async def close(self):
        """Close the bot session"""
        if self.bot:
            await self.bot.session.close()
            logger.info("Telegram bot session closed")


# Global instance
telegram_manager = TelegramBotManager()
