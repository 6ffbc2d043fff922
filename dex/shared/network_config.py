"""
Centralized network configuration for the Polygon services
Controls mainnet/testnet switching with single MAINNET environment variable
"""
import os
from typing import Dict, Any

# Global network setting, used when a bot configuration does not pick one
MAINNET = os.getenv("MAINNET", "True").lower() == "true"

# Native MATIC placeholder used by aggregators for the gas token
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

# Minimum native balance kept for gas, in MATIC
MIN_GAS_RESERVE = "0.1"


class NetworkConfig:
    """Centralized network configuration for Polygon chains"""

    @staticmethod
    def get_polygon_mainnet_config() -> Dict[str, Any]:
        return {
            "chain_id": 137,
            "rpc_url": os.getenv("POLYGON_RPC_URL", "https://polygon-rpc.com/"),
            "explorer_url": "https://polygonscan.com",
            "tokens": {
                "MATIC": NATIVE_TOKEN_ADDRESS,
                "WMATIC": "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",
                "USDC": "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174",
                "USDT": "0xc2132D05D31c914a87C6611C10748AEb04B58e8F",
                "WETH": "0x7ceB23fD6bC0adD59E62ac25578270cFf1b9f619",
                "DAI": "0x8f3Cf7ad23Cd3CaDbD9735AFf958023239c6A063",
                "WBTC": "0x1BFD67037B42Cf73acF2047067bd4F2C47D9BfD6"
            }
        }

    @staticmethod
    def get_polygon_amoy_config() -> Dict[str, Any]:
        return {
            "chain_id": 80002,  # Amoy Testnet
            "rpc_url": os.getenv("POLYGON_AMOY_RPC_URL", "https://rpc-amoy.polygon.technology/"),
            "explorer_url": "https://amoy.polygonscan.com"
        }

    @staticmethod
    def get_polygon_config() -> Dict[str, Any]:
        """Get Polygon network configuration based on MAINNET setting"""
        if MAINNET:
            return NetworkConfig.get_polygon_mainnet_config()
        return NetworkConfig.get_polygon_amoy_config()

    @staticmethod
    def get_config_by_chain_id(chain_id: int) -> Dict[str, Any]:
        """Get configuration for a specific chain id"""
        configs = {
            137: NetworkConfig.get_polygon_mainnet_config,
            80002: NetworkConfig.get_polygon_amoy_config
        }
        if chain_id not in configs:
            raise ValueError(f"Unsupported chain id: {chain_id}")
        return configs[chain_id]()

    @staticmethod
    def get_explorer_tx_url(chain_id: int, tx_hash: str) -> str:
        try:
            explorer = NetworkConfig.get_config_by_chain_id(chain_id)["explorer_url"]
        except ValueError:
            explorer = "https://polygonscan.com"
        return f"{explorer}/tx/{tx_hash}"

    @staticmethod
    def get_network_type() -> str:
        """Get current network type"""
        return "mainnet" if MAINNET else "testnet"
