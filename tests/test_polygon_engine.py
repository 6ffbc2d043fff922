import unittest
import asyncio
import sys
import os
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from web3 import Web3

from dex.polygon_service.engine import PolygonEngine

VALID_KEY = "0x" + "1" * 64
WALLET = "0x" + "ab" * 20


class TestPolygonEngine(unittest.TestCase):
    """Balance and gas queries with a mocked AsyncWeb3 client"""

    def setUp(self):
        self.engine = PolygonEngine()
        self.mock_w3 = MagicMock()
        self.mock_w3.eth.get_balance = AsyncMock(return_value=2 * 10**18)
        self.engine._clients[137] = self.mock_w3
        self.engine._clients[80002] = self.mock_w3

    def test_native_balance(self):
        balance = asyncio.run(self.engine.get_native_balance(WALLET, 137))

        self.assertEqual(balance.balance_wei, 2 * 10**18)
        self.assertEqual(balance.balance_formatted, Decimal("2"))
        self.mock_w3.eth.get_balance.assert_awaited_once_with(Web3.to_checksum_address(WALLET))

    def test_gas_price(self):
        async def run_test():
            async def gas_price():
                return 45 * 10**9
            self.mock_w3.eth.gas_price = gas_price()
            return await self.engine.get_gas_price(80002)

        gas = asyncio.run(run_test())

        self.assertEqual(gas.gas_price_wei, 45 * 10**9)
        self.assertEqual(gas.gas_price_gwei, Decimal("45"))

    def test_unsupported_chain(self):
        with self.assertRaises(ValueError):
            self.engine.get_client(1)

    def test_derive_address(self):
        address = PolygonEngine.derive_address(VALID_KEY)

        self.assertEqual(address, Web3.to_checksum_address(address))
        self.assertEqual(address, PolygonEngine.derive_address(VALID_KEY[2:]))

    def test_derive_address_rejects_garbage(self):
        with self.assertRaises(Exception):
            PolygonEngine.derive_address("not-a-key")

    def test_close_disconnects_every_provider(self):
        self.mock_w3.provider.disconnect = AsyncMock()

        asyncio.run(self.engine.close())

        self.assertEqual(self.mock_w3.provider.disconnect.await_count, 2)
        self.assertEqual(self.engine._clients, {})

    def test_close_survives_disconnect_error(self):
        self.mock_w3.provider.disconnect = AsyncMock(side_effect=RuntimeError("session gone"))

        asyncio.run(self.engine.close())

        self.assertEqual(self.engine._clients, {})

    def test_http_provider_can_disconnect(self):
        """Cached clients use a provider that owns a closable session"""
        client = PolygonEngine().get_client(137)

        self.assertTrue(callable(getattr(client.provider, "disconnect", None)))


if __name__ == '__main__':
    unittest.main()
