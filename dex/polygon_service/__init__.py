from .dex_aggregator import DexAggregator
from .opportunity_validator import OpportunityValidator
from .service import PolygonTradeService
from .trade_executor import TradeExecutor

__all__ = ["DexAggregator", "OpportunityValidator", "PolygonTradeService", "TradeExecutor"]
