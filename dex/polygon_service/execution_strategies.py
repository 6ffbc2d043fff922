"""
Mode-specific tail of the trade execution pipeline.

Both strategies run only after every pre-flight check passed. They write the
one transaction record of the run and return the final result; anything they
raise is handled by the pipeline's failure path.
"""
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional

from dex.shared.exceptions import LiveQuoteUnavailableError, ReceiverContractMissingError
from dex.shared.interfaces.collaborators import Notifier, TransactionStore
from dex.shared.network_config import NetworkConfig
from dex.shared.models.arbitrage_models import (
    ArbitrageOpportunity,
    ArbitrageTransaction,
    BotConfig,
    LogLevel,
    TradeExecutionResult,
    TransactionStatus,
)
from dex.shared.utils import generate_tx_hash, short_hash, to_raw_token_amount, validate_address

from .dex_aggregator import DexAggregator

logger = logging.getLogger(__name__)

SIMULATED_FILL_MULTIPLIER = Decimal("1.01")

AuditFn = Callable[..., Awaitable[None]]
AggregatorFactory = Callable[[BotConfig], DexAggregator]


class ExecutionMode(Enum):
    SIMULATION = "simulation"
    REAL = "real"


@dataclass
class ExecutionContext:
    """State shared by the pre-flight checks and the selected strategy"""
    user_id: str
    opportunity: ArbitrageOpportunity
    mode: ExecutionMode
    audit: AuditFn
    started_at: float = field(default_factory=time.monotonic)
    config: Optional[BotConfig] = None
    private_key: Optional[str] = None
    key_source: Optional[str] = None
    wallet_address: Optional[str] = None
    native_balance: Optional[Decimal] = None
    gas_price_gwei: Optional[Decimal] = None

    @property
    def is_simulation(self) -> bool:
        return self.mode == ExecutionMode.SIMULATION

    def elapsed_ms(self) -> float:
        return max(0.0, (time.monotonic() - self.started_at) * 1000)


def default_aggregator_factory(config: BotConfig) -> DexAggregator:
    return DexAggregator(api_key=config.oneinch_api_key, chain_id=config.chain_id)


class ExecutionStrategy(ABC):
    mode: ExecutionMode

    def __init__(self, transaction_store: TransactionStore, notifier: Notifier):
        self.transaction_store = transaction_store
        self.notifier = notifier

    @abstractmethod
    async def execute(self, ctx: ExecutionContext) -> TradeExecutionResult:
        pass

    def _build_record(
        self,
        opportunity: ArbitrageOpportunity,
        tx_hash: str,
        amount_out: str,
        status: TransactionStatus
    ) -> ArbitrageTransaction:
        return ArbitrageTransaction(
            tx_hash=tx_hash,
            token_in=opportunity.token_in.symbol,
            token_out=opportunity.token_out.symbol,
            amount_in=opportunity.flash_loan_amount,
            amount_out=amount_out,
            profit_usd=opportunity.estimated_profit_usd,
            gas_cost_usd=opportunity.estimated_gas_cost_usd,
            net_profit_usd=opportunity.estimated_net_profit_usd,
            status=status,
            dex_path=opportunity.dex_path
        )

    async def _notify(self, user_id: str, text: str, category: str) -> bool:
        """Best-effort notification; delivery problems never fail the trade"""
        try:
            return bool(await self.notifier.send_telegram_message(user_id, text, category))
        except Exception as e:
            logger.warning(f"Telegram notification ({category}) failed for {user_id}: {e}")
            return False


class SimulationStrategy(ExecutionStrategy):
    mode = ExecutionMode.SIMULATION

    async def execute(self, ctx: ExecutionContext) -> TradeExecutionResult:
        opportunity = ctx.opportunity
        logger.info("SIMULATION MODE - creating mock transaction")

        await ctx.audit(
            LogLevel.INFO,
            "STEP 5/7: SIMULATION - preparing mock transaction",
            mode=self.mode.value,
            step="5_mock_transaction"
        )

        tx_hash = generate_tx_hash()
        amount_out = Decimal(opportunity.flash_loan_amount) * SIMULATED_FILL_MULTIPLIER
        await self.transaction_store.create_arbitrage_transaction(
            ctx.user_id,
            self._build_record(opportunity, tx_hash, str(amount_out), TransactionStatus.SUCCESS)
        )

        await ctx.audit(
            LogLevel.SUCCESS,
            f"STEP 7/7: SIMULATION COMPLETE! Profit: ${opportunity.estimated_profit_usd:.2f}",
            mode=self.mode.value,
            step="7_completed",
            pair=opportunity.pair,
            profit=str(opportunity.estimated_profit_usd),
            dexs=opportunity.dex_path,
            tx_hash=tx_hash
        )

        threshold = ctx.config.notification_threshold_usd
        if opportunity.estimated_profit_usd >= threshold:
            await self._notify(ctx.user_id, self._format_message(ctx, tx_hash), "trade_success")
        else:
            logger.debug(f"Profit ${opportunity.estimated_profit_usd} below notification threshold ${threshold}")

        return TradeExecutionResult(
            success=True,
            tx_hash=tx_hash,
            profit_usd=opportunity.estimated_profit_usd,
            gas_cost_usd=opportunity.estimated_gas_cost_usd,
            message=f"Simulation successful - profit ${opportunity.estimated_profit_usd:.2f}",
            execution_time_ms=ctx.elapsed_ms()
        )

    def _format_message(self, ctx: ExecutionContext, tx_hash: str) -> str:
        opportunity = ctx.opportunity
        return (
            f"🎯 <b>SIMULATION: Arbitrage trade</b>\n\n"
            f"💹 Pair: {opportunity.pair}\n"
            f"📊 DEX: {opportunity.dex_path}\n"
            f"💰 Profit: ${opportunity.estimated_profit_usd:.2f} ({opportunity.net_profit_percent:.2f}%)\n"
            f"⛽ Gas: ${opportunity.estimated_gas_cost_usd:.2f}\n"
            f"⏱ Time: {ctx.elapsed_ms() / 1000:.1f}s\n"
            f"🔗 TX: {short_hash(tx_hash)}"
        )


class RealTradingStrategy(ExecutionStrategy):
    """
    Builds both swap legs against the flash loan receiver contract and records
    the trade as pending. Broadcasting the flash loan itself is the receiver
    contract's job and is not done here.
    """
    mode = ExecutionMode.REAL

    def __init__(
        self,
        transaction_store: TransactionStore,
        notifier: Notifier,
        aggregator_factory: AggregatorFactory = default_aggregator_factory
    ):
        super().__init__(transaction_store, notifier)
        self.aggregator_factory = aggregator_factory

    async def execute(self, ctx: ExecutionContext) -> TradeExecutionResult:
        opportunity = ctx.opportunity
        receiver = self._require_receiver(ctx.config)
        logger.info("REAL TRADING MODE - preparing flash loan swap legs")

        await ctx.audit(
            LogLevel.WARNING,
            "STEP 5/7: REAL TRADING - starting execution with real funds",
            mode=self.mode.value,
            step="5_real_execution",
            pair=opportunity.pair,
            expected_profit=str(opportunity.estimated_profit_usd),
            receiver=receiver
        )

        loan_amount = to_raw_token_amount(opportunity.flash_loan_amount, opportunity.token_in.decimals)
        aggregator = self.aggregator_factory(ctx.config)

        # Sell leg consumes exactly what the buy leg yields
        buy_swap = await aggregator.build_swap_transaction(
            src=opportunity.token_in.address,
            dst=opportunity.token_out.address,
            amount=str(loan_amount),
            from_address=receiver
        )
        sell_swap = await aggregator.build_swap_transaction(
            src=opportunity.token_out.address,
            dst=opportunity.token_in.address,
            amount=buy_swap.to_amount,
            from_address=receiver
        )

        if buy_swap.is_synthetic or sell_swap.is_synthetic:
            raise LiveQuoteUnavailableError(
                "Live aggregator quotes unavailable; synthetic prices are never used for real trades"
            )

        await ctx.audit(
            LogLevel.INFO,
            "STEP 6/7: Swap transactions prepared - handing over to Aave V3 flash loan receiver",
            step="6_swap_preparation",
            loan_amount=str(loan_amount),
            buy_amount=buy_swap.to_amount,
            sell_amount=sell_swap.to_amount,
            buy_dex=opportunity.buy_dex,
            sell_dex=opportunity.sell_dex
        )

        tx_hash = generate_tx_hash()
        await self.transaction_store.create_arbitrage_transaction(
            ctx.user_id,
            self._build_record(opportunity, tx_hash, buy_swap.to_amount, TransactionStatus.PENDING)
        )

        await ctx.audit(
            LogLevel.SUCCESS,
            f"STEP 7/7: TRANSACTION SUBMITTED! TX: {short_hash(tx_hash)}",
            step="7_transaction_sent",
            tx_hash=tx_hash,
            profit=str(opportunity.estimated_profit_usd),
            status="pending_confirmation"
        )

        await self._notify(ctx.user_id, self._format_message(ctx, tx_hash), "trade_pending")

        return TradeExecutionResult(
            success=True,
            tx_hash=tx_hash,
            profit_usd=opportunity.estimated_profit_usd,
            gas_cost_usd=opportunity.estimated_gas_cost_usd,
            message=f"Real trade submitted - TX {tx_hash}",
            execution_time_ms=ctx.elapsed_ms()
        )

    @staticmethod
    def _require_receiver(config: BotConfig) -> str:
        receiver = config.receiver_contract_address
        if not receiver:
            raise ReceiverContractMissingError(
                "Flash loan receiver contract address not configured; real trading cannot settle atomically"
            )
        if not validate_address(receiver):
            raise ReceiverContractMissingError(f"Receiver contract address is invalid: {receiver}")
        return receiver

    def _format_message(self, ctx: ExecutionContext, tx_hash: str) -> str:
        opportunity = ctx.opportunity
        return (
            f"🚀 <b>REAL TRADING: Trade submitted</b>\n\n"
            f"💹 Pair: {opportunity.pair}\n"
            f"📊 DEX: {opportunity.dex_path}\n"
            f"💰 Expected profit: ${opportunity.estimated_profit_usd:.2f}\n"
            f"⛽ Gas: ~${opportunity.estimated_gas_cost_usd:.2f}\n"
            f"🔗 TX: {tx_hash}\n"
            f"🔍 {NetworkConfig.get_explorer_tx_url(ctx.config.chain_id, tx_hash)}\n"
            f"⏳ Status: awaiting confirmation..."
        )


def build_strategies(
    transaction_store: TransactionStore,
    notifier: Notifier,
    aggregator_factory: AggregatorFactory = default_aggregator_factory
) -> Dict[ExecutionMode, ExecutionStrategy]:
    return {
        ExecutionMode.SIMULATION: SimulationStrategy(transaction_store, notifier),
        ExecutionMode.REAL: RealTradingStrategy(transaction_store, notifier, aggregator_factory),
    }
