from abc import ABC, abstractmethod
from typing import Optional

from dex.shared.models.arbitrage_models import (
    ActivityLogEntry,
    ArbitrageTransaction,
    BotConfig,
    GasPrice,
    NativeBalance,
)


class ConfigStore(ABC):
    """Per-user bot configuration source"""

    @abstractmethod
    async def get_bot_config(self, user_id: str) -> Optional[BotConfig]:
        """Return the user's configuration or None when it does not exist"""
        pass


class ActivityLogStore(ABC):
    """Append-only audit log"""

    @abstractmethod
    async def create_activity_log(self, user_id: str, entry: ActivityLogEntry) -> None:
        pass


class TransactionStore(ABC):
    """Append-only arbitrage transaction records"""

    @abstractmethod
    async def create_arbitrage_transaction(self, user_id: str, record: ArbitrageTransaction) -> None:
        pass


class NetworkProvider(ABC):
    """Chain access needed by the pre-flight checks"""

    @abstractmethod
    async def get_native_balance(self, address: str, chain_id: int) -> NativeBalance:
        """Native gas token balance of address on chain_id"""
        pass

    @abstractmethod
    async def get_gas_price(self, chain_id: Optional[int] = None) -> GasPrice:
        """Current network gas price"""
        pass


class Notifier(ABC):
    """Outbound human-readable notifications"""

    @abstractmethod
    async def send_telegram_message(self, user_id: str, text: str, category: str) -> bool:
        pass

    async def close(self):
        """Release transport resources"""
        pass
