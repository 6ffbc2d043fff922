"""
Swap quote source for Polygon.

Quotes come from the 1inch swap API when an API key is configured. Any
transport or API failure, and the keyless case, falls back to a fixed
synthetic pricing table so the rest of the system stays exercisable. The
synthetic table is not a price oracle; callers tell the two apart through
``SwapQuote.dex``.
"""
import decimal
import logging
import random
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

import aiohttp

from dex.shared.models.arbitrage_models import SwapQuote, TokenInfo, TokenPrice
from dex.shared.network_config import NetworkConfig
from dex.shared.utils import generate_tx_hash, safe_decimal

logger = logging.getLogger(__name__)

# 1inch API configuration
INCH_API_BASE = "https://api.1inch.dev/swap/v6.0"
POLYGON_CHAIN_ID = 137

DEFAULT_ESTIMATED_GAS = "250000"
DEFAULT_SLIPPAGE_PERCENT = Decimal("1")
SYNTHETIC_DEX = "synthetic"
LIVE_DEX = "1inch"

# Popular token addresses on Polygon
TOKENS = NetworkConfig.get_polygon_mainnet_config()["tokens"]

SUPPORTED_TOKENS = [
    TokenInfo(address=TOKENS["MATIC"], symbol="MATIC", decimals=18, name="Polygon"),
    TokenInfo(address=TOKENS["WMATIC"], symbol="WMATIC", decimals=18, name="Wrapped MATIC"),
    TokenInfo(address=TOKENS["USDC"], symbol="USDC", decimals=6, name="USD Coin"),
    TokenInfo(address=TOKENS["USDT"], symbol="USDT", decimals=6, name="Tether USD"),
    TokenInfo(address=TOKENS["WETH"], symbol="WETH", decimals=18, name="Wrapped Ether"),
    TokenInfo(address=TOKENS["DAI"], symbol="DAI", decimals=18, name="Dai Stablecoin"),
    TokenInfo(address=TOKENS["WBTC"], symbol="WBTC", decimals=8, name="Wrapped BTC"),
]

MATIC_USD = Decimal("0.7")
WETH_USD = Decimal("2500")

# (src, dst) -> (operation, factor, decimal places)
SYNTHETIC_RATES = {
    (TOKENS["MATIC"].lower(), TOKENS["USDC"].lower()): ("mul", MATIC_USD, 6),
    (TOKENS["USDC"].lower(), TOKENS["MATIC"].lower()): ("div", MATIC_USD, 6),
    (TOKENS["WMATIC"].lower(), TOKENS["USDC"].lower()): ("mul", MATIC_USD, 6),
    (TOKENS["USDC"].lower(), TOKENS["WETH"].lower()): ("div", WETH_USD, 8),
    (TOKENS["WETH"].lower(), TOKENS["USDC"].lower()): ("mul", WETH_USD, 6),
}

# address -> (base price, price spread, base 24h change, change spread)
SYNTHETIC_PRICES = {
    TOKENS["MATIC"].lower(): (Decimal("0.7"), Decimal("0.05"), Decimal("-2.5"), Decimal("5")),
    TOKENS["WMATIC"].lower(): (Decimal("0.7"), Decimal("0.05"), Decimal("-2.5"), Decimal("5")),
    TOKENS["USDC"].lower(): (Decimal("1.0"), Decimal("0.01"), Decimal("-0.5"), Decimal("1")),
    TOKENS["USDT"].lower(): (Decimal("1.0"), Decimal("0.01"), Decimal("-0.5"), Decimal("1")),
    TOKENS["DAI"].lower(): (Decimal("1.0"), Decimal("0.01"), Decimal("-0.5"), Decimal("1")),
    TOKENS["WETH"].lower(): (Decimal("2500"), Decimal("100"), Decimal("-3"), Decimal("6")),
    TOKENS["WBTC"].lower(): (Decimal("45000"), Decimal("1000"), Decimal("-2"), Decimal("4")),
}
UNKNOWN_PRICE = (Decimal("0"), Decimal("10"), Decimal("-5"), Decimal("10"))


class AggregatorAPIError(Exception):
    """1inch API returned an error status or an unusable body."""
    pass


class DexAggregator:
    """1inch-backed quote source with a deterministic synthetic fallback"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        chain_id: int = POLYGON_CHAIN_ID,
        session: Optional[aiohttp.ClientSession] = None,
        rng: Optional[random.Random] = None,
        timeout: float = 10.0
    ):
        self.api_key = api_key or None
        self.chain_id = chain_id
        self.session = session
        self._owns_session = False
        self.rng = rng or random.Random()
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def __aenter__(self):
        if self.session is None:
            self.session = aiohttp.ClientSession(timeout=self.timeout)
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.session and self._owns_session:
            await self.session.close()
            self.session = None
            self._owns_session = False

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def _fetch_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """GET {INCH_API_BASE}/{chain_id}/{path} and return the JSON body"""
        url = f"{INCH_API_BASE}/{self.chain_id}/{path}"

        async def _get(session: aiohttp.ClientSession) -> Dict[str, Any]:
            async with session.get(url, params=params, headers=self._headers()) as response:
                if response.status != 200:
                    body = await response.text()
                    raise AggregatorAPIError(f"HTTP {response.status} from {path}: {body[:200]}")
                return await response.json()

        if self.session is not None:
            return await _get(self.session)
        async with aiohttp.ClientSession(timeout=self.timeout) as session:
            return await _get(session)

    # ------------------------------------------------------------------
    # Token registry
    # ------------------------------------------------------------------

    def get_supported_tokens(self) -> List[TokenInfo]:
        return list(SUPPORTED_TOKENS)

    def get_token_info(self, address: str) -> TokenInfo:
        """Resolve token metadata; unknown addresses get an 18-decimal sentinel"""
        for token in SUPPORTED_TOKENS:
            if token.address.lower() == address.lower():
                return token
        return TokenInfo(address=address, symbol="UNKNOWN", decimals=18, name="Unknown Token")

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    async def get_quote(self, src: str, dst: str, amount: str) -> SwapQuote:
        """Get a quote from 1inch, falling back to the synthetic table"""
        from_token = self.get_token_info(src)
        to_token = self.get_token_info(dst)

        if self.has_api_key:
            try:
                data = await self._fetch_json("quote", {"src": src, "dst": dst, "amount": str(amount)})
                return self._quote_from_response(from_token, to_token, str(amount), data)
            except Exception as e:
                logger.error(f"1inch API error, falling back to synthetic quote: {e}")

        return self.get_synthetic_quote(src, dst, amount)

    async def build_swap_transaction(
        self,
        src: str,
        dst: str,
        amount: str,
        from_address: str,
        slippage: Decimal = DEFAULT_SLIPPAGE_PERCENT
    ) -> SwapQuote:
        """Build one swap leg executed by from_address"""
        from_token = self.get_token_info(src)
        to_token = self.get_token_info(dst)

        if self.has_api_key:
            try:
                data = await self._fetch_json("swap", {
                    "src": src,
                    "dst": dst,
                    "amount": str(amount),
                    "from": from_address,
                    "slippage": str(slippage),
                    # The receiver contract holds the funds only inside the flash loan
                    "disableEstimate": "true",
                })
                quote = self._quote_from_response(from_token, to_token, str(amount), data)
                quote.tx = data.get("tx")
                return quote
            except Exception as e:
                logger.error(f"1inch swap build failed, falling back to synthetic quote: {e}")

        return self.get_synthetic_quote(src, dst, amount)

    def _quote_from_response(
        self,
        from_token: TokenInfo,
        to_token: TokenInfo,
        amount: str,
        data: Dict[str, Any]
    ) -> SwapQuote:
        to_amount = data.get("toAmount") or data.get("toTokenAmount")
        if to_amount is None:
            raise AggregatorAPIError("Response carries no output amount")
        estimated_gas = data.get("estimatedGas") or data.get("gas") or DEFAULT_ESTIMATED_GAS
        return SwapQuote(
            from_token=from_token,
            to_token=to_token,
            from_amount=amount,
            to_amount=str(to_amount),
            estimated_gas=str(estimated_gas),
            protocols=data.get("protocols"),
            dex=LIVE_DEX
        )

    def get_synthetic_quote(self, src: str, dst: str, amount: str) -> SwapQuote:
        """Deterministic quote from the fixed rate table (1:1 for unknown pairs)"""
        from_amount = str(amount)
        rate = SYNTHETIC_RATES.get((src.lower(), dst.lower()))

        if rate is None:
            to_amount = from_amount
        else:
            operation, factor, places = rate
            # Raw on-chain amounts exceed the default 28 digit precision
            with decimal.localcontext() as ctx:
                ctx.prec = 80
                value = Decimal(from_amount)
                value = value * factor if operation == "mul" else value / factor
                quantum = Decimal(1).scaleb(-places)
                to_amount = str(value.quantize(quantum, rounding=ROUND_HALF_UP))

        return SwapQuote(
            from_token=self.get_token_info(src),
            to_token=self.get_token_info(dst),
            from_amount=from_amount,
            to_amount=to_amount,
            estimated_gas=DEFAULT_ESTIMATED_GAS,
            dex=SYNTHETIC_DEX
        )

    # ------------------------------------------------------------------
    # Prices
    # ------------------------------------------------------------------

    async def get_token_prices(self, token_addresses: List[str]) -> List[TokenPrice]:
        """USD prices for token_addresses (live when possible)"""
        if self.has_api_key:
            try:
                data = await self._fetch_json("tokens")
                tokens_data = data.get("tokens") or {}
                prices = []

                for address in token_addresses:
                    token_data = tokens_data.get(address.lower())
                    if not token_data:
                        continue
                    prices.append(TokenPrice(
                        address=address,
                        symbol=self.get_token_info(address).symbol,
                        price_usd=safe_decimal(token_data.get("price")),
                        price_change_24h=safe_decimal(token_data.get("priceChange24h"))
                    ))

                if prices:
                    return prices
            except Exception as e:
                logger.error(f"1inch API error, falling back to synthetic prices: {e}")

        return self.get_synthetic_prices(token_addresses)

    def get_synthetic_prices(self, token_addresses: List[str]) -> List[TokenPrice]:
        prices = []
        cents = Decimal("0.01")

        for address in token_addresses:
            base, spread, change_base, change_spread = SYNTHETIC_PRICES.get(address.lower(), UNKNOWN_PRICE)
            price = base + Decimal(str(self.rng.random())) * spread
            change = change_base + Decimal(str(self.rng.random())) * change_spread
            prices.append(TokenPrice(
                address=address,
                symbol=self.get_token_info(address).symbol,
                price_usd=price.quantize(cents, rounding=ROUND_HALF_UP),
                price_change_24h=change.quantize(cents, rounding=ROUND_HALF_UP)
            ))

        return prices

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    async def execute_swap(self, src: str, dst: str, amount: str, from_address: Optional[str] = None) -> Dict[str, Any]:
        """Simulated swap; never broadcasts anything"""
        tx_hash = generate_tx_hash()
        logger.info(f"Simulated swap {self.get_token_info(src).symbol} -> "
                    f"{self.get_token_info(dst).symbol} ({amount}): {tx_hash}")
        return {
            "success": True,
            "tx_hash": tx_hash,
            "message": "Swap simulated successfully (demo mode)"
        }
