import logging
from decimal import Decimal
from typing import Dict, Optional

from web3 import AsyncWeb3, Web3
from eth_account import Account
from eth_utils import from_wei

from dex.shared.interfaces.collaborators import NetworkProvider
from dex.shared.models.arbitrage_models import GasPrice, NativeBalance
from dex.shared.network_config import NetworkConfig

from .config import PolygonConfig

logger = logging.getLogger(__name__)


class PolygonEngine(NetworkProvider):
    """Polygon blockchain engine for balance and gas queries"""

    def __init__(self, config: type = PolygonConfig):
        self.config = config
        self.default_chain_id: int = config.CHAIN_ID
        self._clients: Dict[int, AsyncWeb3] = {}

    def get_client(self, chain_id: Optional[int] = None) -> AsyncWeb3:
        """AsyncWeb3 client for chain_id, created on first use"""
        chain_id = chain_id or self.default_chain_id
        if chain_id not in self._clients:
            rpc_url = NetworkConfig.get_config_by_chain_id(chain_id)["rpc_url"]
            self._clients[chain_id] = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
            logger.info(f"Polygon client created for chain {chain_id}")
        return self._clients[chain_id]

    @staticmethod
    def derive_address(private_key: str) -> str:
        """Checksummed wallet address for a hex private key"""
        return Account.from_key(private_key).address

    async def get_native_balance(self, address: str, chain_id: int) -> NativeBalance:
        """Get MATIC balance for wallet"""
        w3 = self.get_client(chain_id)
        balance_wei = await w3.eth.get_balance(Web3.to_checksum_address(address))
        return NativeBalance(
            balance_wei=int(balance_wei),
            balance_formatted=Decimal(from_wei(balance_wei, 'ether'))
        )

    async def get_gas_price(self, chain_id: Optional[int] = None) -> GasPrice:
        """Get current legacy gas price"""
        w3 = self.get_client(chain_id)
        gas_price_wei = await w3.eth.gas_price
        return GasPrice(
            gas_price_wei=int(gas_price_wei),
            gas_price_gwei=Decimal(from_wei(gas_price_wei, 'gwei'))
        )

    async def close(self):
        for chain_id, w3 in self._clients.items():
            try:
                await w3.provider.disconnect()
            except Exception as e:
                logger.warning(f"Error closing provider for chain {chain_id}: {e}")
        self._clients.clear()
