import os
from decimal import Decimal
from typing import Optional

from dex.shared.interfaces.collaborators import ConfigStore
from dex.shared.models.arbitrage_models import BotConfig, NetworkMode
from dex.shared.network_config import NetworkConfig, MIN_GAS_RESERVE


def _optional_decimal(name: str) -> Optional[Decimal]:
    value = os.getenv(name)
    if value in (None, ""):
        return None
    return Decimal(value)


class PolygonConfig:
    # Get network configuration from centralized config
    _network_config = NetworkConfig.get_polygon_config()

    # Network Configuration
    CHAIN_ID = _network_config["chain_id"]
    RPC_URL = _network_config["rpc_url"]
    NETWORK_MODE = os.getenv("NETWORK_MODE", NetworkConfig.get_network_type())

    # Wallet Configuration
    PRIVATE_KEY = os.getenv("PRIVATE_KEY", "")
    RECEIVER_CONTRACT_ADDRESS = os.getenv("RECEIVER_CONTRACT_ADDRESS", "")

    # Trading Configuration
    ENABLE_REAL_TRADING = os.getenv("ENABLE_REAL_TRADING", "False").lower() == "true"
    MAX_GAS_PRICE_GWEI = _optional_decimal("MAX_GAS_PRICE_GWEI")
    MIN_NET_PROFIT_PERCENT = _optional_decimal("MIN_NET_PROFIT_PERCENT")  # %
    TELEGRAM_PROFIT_THRESHOLD_USD = _optional_decimal("TELEGRAM_PROFIT_THRESHOLD_USD")
    MIN_GAS_RESERVE_MATIC = Decimal(os.getenv("MIN_GAS_RESERVE_MATIC", MIN_GAS_RESERVE))

    # Aggregator Configuration
    ONEINCH_API_KEY = os.getenv("ONEINCH_API_KEY", "")

    @classmethod
    def to_bot_config(cls) -> BotConfig:
        return BotConfig(
            enable_real_trading=cls.ENABLE_REAL_TRADING,
            private_key=cls.PRIVATE_KEY or None,
            network_mode=NetworkMode(cls.NETWORK_MODE.lower()),
            max_gas_price_gwei=cls.MAX_GAS_PRICE_GWEI,
            min_net_profit_percent=cls.MIN_NET_PROFIT_PERCENT,
            telegram_profit_threshold_usd=cls.TELEGRAM_PROFIT_THRESHOLD_USD,
            oneinch_api_key=cls.ONEINCH_API_KEY or None,
            receiver_contract_address=cls.RECEIVER_CONTRACT_ADDRESS or None
        )

    @classmethod
    def validate(cls):
        errors = []
        if not cls.RPC_URL:
            errors.append("POLYGON_RPC_URL not properly configured")
        if cls.NETWORK_MODE.lower() not in ("mainnet", "testnet"):
            errors.append(f"NETWORK_MODE must be mainnet or testnet, got {cls.NETWORK_MODE}")
        if cls.ENABLE_REAL_TRADING and not cls.PRIVATE_KEY:
            errors.append("PRIVATE_KEY not set while ENABLE_REAL_TRADING is on")
        if errors:
            raise RuntimeError(f"Polygon config validation errors: {'; '.join(errors)}")


class EnvConfigStore(ConfigStore):
    """Serve the environment-derived configuration to every user"""

    def __init__(self, config: type = PolygonConfig):
        self.config = config

    async def get_bot_config(self, user_id: str) -> Optional[BotConfig]:
        return self.config.to_bot_config()
