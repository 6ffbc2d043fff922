from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from decimal import Decimal
from datetime import datetime, timezone
from enum import Enum

# Default thresholds applied when a bot configuration leaves them unset
DEFAULT_MAX_GAS_PRICE_GWEI = Decimal("60")
DEFAULT_MIN_NET_PROFIT_PERCENT = Decimal("0.15")
DEFAULT_TELEGRAM_PROFIT_THRESHOLD_USD = Decimal("10")

POLYGON_MAINNET_CHAIN_ID = 137
POLYGON_AMOY_CHAIN_ID = 80002


class NetworkMode(Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


class TransactionStatus(Enum):
    SUCCESS = "success"
    PENDING = "pending"
    FAILED = "failed"


class LogLevel(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    SUCCESS = "success"


class StepOutcome(Enum):
    PASS = "pass"
    FATAL = "fatal"
    WARNING = "warning"


@dataclass(frozen=True)
class TokenInfo:
    address: str
    symbol: str
    decimals: int
    name: str


@dataclass(frozen=True)
class ArbitrageOpportunity:
    """Cross-DEX opportunity as produced by the scanner. Read-only here."""
    opportunity_id: str
    token_in: TokenInfo
    token_out: TokenInfo
    buy_dex: str
    sell_dex: str
    flash_loan_amount: str  # human-readable amount of token_in
    estimated_profit_usd: Decimal
    estimated_gas_cost_usd: Decimal
    net_profit_percent: Decimal
    detected_at: datetime

    @property
    def pair(self) -> str:
        return f"{self.token_in.symbol}/{self.token_out.symbol}"

    @property
    def dex_path(self) -> str:
        return f"{self.buy_dex} → {self.sell_dex}"

    @property
    def estimated_net_profit_usd(self) -> Decimal:
        return self.estimated_profit_usd - self.estimated_gas_cost_usd

    def age_ms(self, now: Optional[datetime] = None) -> float:
        """Milliseconds elapsed since detection (naive timestamps are UTC)"""
        now = now or datetime.now(timezone.utc)
        detected_at = self.detected_at
        if detected_at.tzinfo is None:
            detected_at = detected_at.replace(tzinfo=timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return (now - detected_at).total_seconds() * 1000


@dataclass
class BotConfig:
    enable_real_trading: bool = False
    private_key: Optional[str] = None
    network_mode: NetworkMode = NetworkMode.MAINNET
    max_gas_price_gwei: Optional[Decimal] = None
    min_net_profit_percent: Optional[Decimal] = None
    telegram_profit_threshold_usd: Optional[Decimal] = None
    oneinch_api_key: Optional[str] = None

    # Flash loan receiver that runs both swaps atomically
    receiver_contract_address: Optional[str] = None

    @property
    def chain_id(self) -> int:
        if self.network_mode == NetworkMode.MAINNET:
            return POLYGON_MAINNET_CHAIN_ID
        return POLYGON_AMOY_CHAIN_ID

    @property
    def gas_price_ceiling_gwei(self) -> Decimal:
        if self.max_gas_price_gwei is None:
            return DEFAULT_MAX_GAS_PRICE_GWEI
        return Decimal(str(self.max_gas_price_gwei))

    @property
    def min_profit_percent(self) -> Decimal:
        if self.min_net_profit_percent is None:
            return DEFAULT_MIN_NET_PROFIT_PERCENT
        return Decimal(str(self.min_net_profit_percent))

    @property
    def notification_threshold_usd(self) -> Decimal:
        if self.telegram_profit_threshold_usd is None:
            return DEFAULT_TELEGRAM_PROFIT_THRESHOLD_USD
        return Decimal(str(self.telegram_profit_threshold_usd))


@dataclass(frozen=True)
class TradeExecutionResult:
    success: bool
    message: str
    tx_hash: Optional[str] = None
    profit_usd: Optional[Decimal] = None
    gas_cost_usd: Optional[Decimal] = None
    error: Optional[str] = None
    execution_time_ms: float = 0.0


@dataclass
class ArbitrageTransaction:
    tx_hash: str
    token_in: str
    token_out: str
    amount_in: str
    amount_out: str
    profit_usd: Decimal
    gas_cost_usd: Decimal
    net_profit_usd: Decimal
    status: TransactionStatus
    dex_path: str


@dataclass
class ActivityLogEntry:
    type: str
    level: LogLevel
    message: str
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SwapQuote:
    from_token: TokenInfo
    to_token: TokenInfo
    from_amount: str
    to_amount: str
    estimated_gas: str
    dex: str
    protocols: Optional[List[Any]] = None
    # Unsigned transaction payload, only present for live swap builds
    tx: Optional[Dict[str, Any]] = None

    @property
    def is_synthetic(self) -> bool:
        return self.dex == "synthetic"


@dataclass
class TokenPrice:
    address: str
    symbol: str
    price_usd: Decimal
    price_change_24h: Decimal


@dataclass
class NativeBalance:
    balance_wei: int
    balance_formatted: Decimal


@dataclass
class GasPrice:
    gas_price_wei: int
    gas_price_gwei: Decimal


@dataclass
class StepResult:
    """Outcome of a single pre-flight check"""
    outcome: StepOutcome
    step: str
    message: str = ""
    error: Optional[Exception] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_fatal(self) -> bool:
        return self.outcome == StepOutcome.FATAL

    @classmethod
    def passed(cls, step: str, message: str = "", **metadata) -> "StepResult":
        return cls(StepOutcome.PASS, step, message, metadata=metadata)

    @classmethod
    def fatal(cls, step: str, error: Exception, **metadata) -> "StepResult":
        return cls(StepOutcome.FATAL, step, str(error), error=error, metadata=metadata)

    @classmethod
    def warning(cls, step: str, message: str, **metadata) -> "StepResult":
        return cls(StepOutcome.WARNING, step, message, metadata=metadata)
