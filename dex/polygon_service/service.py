import logging
from typing import Optional

from dex.shared.activity_store import InMemoryTransactionStore, LoggingActivityLog
from dex.shared.interfaces.collaborators import ActivityLogStore, Notifier, TransactionStore
from dex.shared.models.arbitrage_models import ArbitrageOpportunity, TradeExecutionResult
from dex.shared.telegram_notifier import TelegramNotifier

from .config import EnvConfigStore, PolygonConfig
from .engine import PolygonEngine
from .trade_executor import TradeExecutor

logger = logging.getLogger(__name__)


class PolygonTradeService:
    """Wires the environment-backed collaborators into one trade executor"""

    def __init__(
        self,
        config: type = PolygonConfig,
        activity_log: Optional[ActivityLogStore] = None,
        transaction_store: Optional[TransactionStore] = None,
        notifier: Optional[Notifier] = None
    ):
        self.config = config
        self.engine = PolygonEngine(config)
        self.notifier = notifier or TelegramNotifier()
        self.executor = TradeExecutor(
            config_store=EnvConfigStore(config),
            activity_log=activity_log or LoggingActivityLog(),
            transaction_store=transaction_store or InMemoryTransactionStore(),
            network=self.engine,
            notifier=self.notifier,
            min_gas_reserve=config.MIN_GAS_RESERVE_MATIC
        )

    def initialize(self):
        """Validate configuration before the first trade"""
        try:
            self.config.validate()
            logger.info(
                f"Polygon trade service ready on chain {self.config.CHAIN_ID} "
                f"(real trading {'enabled' if self.config.ENABLE_REAL_TRADING else 'disabled'})"
            )
        except Exception as e:
            logger.error(f"Failed to initialize Polygon trade service: {e}")
            raise

    async def process_opportunity(
        self,
        user_id: str,
        opportunity: ArbitrageOpportunity,
        is_simulation: bool = True
    ) -> Optional[TradeExecutionResult]:
        """Re-validate and execute; None when the opportunity is stale or unprofitable"""
        if not await self.executor.validate_opportunity(user_id, opportunity):
            logger.info(f"Skipping opportunity {opportunity.opportunity_id}")
            return None
        return await self.executor.execute_arbitrage_trade(user_id, opportunity, is_simulation)

    async def close(self):
        await self.engine.close()
        await self.notifier.close()
