import logging
from datetime import datetime
from typing import Callable, Optional

from dex.shared.interfaces.collaborators import ConfigStore
from dex.shared.models.arbitrage_models import (
    ArbitrageOpportunity,
    DEFAULT_MIN_NET_PROFIT_PERCENT,
)

logger = logging.getLogger(__name__)

MAX_OPPORTUNITY_AGE_MS = 30000


class OpportunityValidator:
    """Re-checks freshness and profitability before capital is committed"""

    def __init__(
        self,
        config_store: ConfigStore,
        max_age_ms: int = MAX_OPPORTUNITY_AGE_MS,
        now: Optional[Callable[[], datetime]] = None
    ):
        self.config_store = config_store
        self.max_age_ms = max_age_ms
        self._now = now

    async def validate_opportunity(self, user_id: str, opportunity: ArbitrageOpportunity) -> bool:
        """True when the opportunity is fresh and clears the user's profit floor"""
        try:
            config = await self.config_store.get_bot_config(user_id)

            age_ms = opportunity.age_ms(self._now() if self._now else None)
            if age_ms > self.max_age_ms:
                logger.info(f"Opportunity {opportunity.opportunity_id} too old: {age_ms:.0f}ms")
                return False

            min_profit = config.min_profit_percent if config else DEFAULT_MIN_NET_PROFIT_PERCENT
            if opportunity.net_profit_percent < min_profit:
                logger.info(
                    f"Opportunity {opportunity.opportunity_id} profit below threshold: "
                    f"{opportunity.net_profit_percent}% < {min_profit}%"
                )
                return False

            return True

        except Exception as e:
            logger.error(f"Error validating opportunity {opportunity.opportunity_id}: {e}")
            return False
