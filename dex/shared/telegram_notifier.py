from typing import Optional

from shared_telegram_manager import TelegramBotManager, telegram_manager

from dex.shared.interfaces.collaborators import Notifier
from dex.shared.logger import get_logger

logger = get_logger(__name__)


class TelegramNotifier(Notifier):
    """
    Telegram notifier for trade execution results.
    Uses the shared Telegram bot manager to prevent multiple bot instances.
    """

    def __init__(self, manager: Optional[TelegramBotManager] = None):
        self.telegram_manager = manager or telegram_manager

    async def send_telegram_message(self, user_id: str, text: str, category: str) -> bool:
        """
        Send an HTML formatted message to the user's chat.

        Args:
            user_id: Bot user the message concerns
            text: HTML message body
            category: Message category, e.g. trade_success or trade_pending

        Returns:
            True when the message was delivered
        """
        if not self.telegram_manager.is_available(user_id):
            logger.debug(f"Telegram unavailable, dropping {category} message for {user_id}")
            return False

        sent = await self.telegram_manager.send_message(text, user_id=user_id)
        if sent:
            logger.info(f"Sent {category} notification to Telegram for {user_id}")
        return sent

    async def close(self):
        """Close the bot session - delegated to shared manager."""
        await self.telegram_manager.close()
