"""
Guarded execution pipeline for flash loan funded cross-DEX arbitrage.

validate -> config -> mode gate -> credential -> gas reserve -> gas price ->
simulation or real strategy. Every fatal outcome funnels into one failure
path that audits the error, records a failed transaction and returns a
failed result; nothing is raised to the caller.
"""
import logging
import os
import traceback
from decimal import Decimal
from typing import Dict, Optional, Tuple

from dex.shared.exceptions import (
    ConfigurationMissingError,
    CredentialMissingError,
    GasPriceTooHighError,
    InsufficientGasReserveError,
    TradingDisabledError,
)
from dex.shared.interfaces.collaborators import (
    ActivityLogStore,
    ConfigStore,
    NetworkProvider,
    Notifier,
    TransactionStore,
)
from dex.shared.models.arbitrage_models import (
    ActivityLogEntry,
    ArbitrageOpportunity,
    ArbitrageTransaction,
    LogLevel,
    StepOutcome,
    StepResult,
    TradeExecutionResult,
    TransactionStatus,
)
from dex.shared.network_config import MIN_GAS_RESERVE

from .engine import PolygonEngine
from .execution_strategies import (
    AggregatorFactory,
    ExecutionContext,
    ExecutionMode,
    ExecutionStrategy,
    build_strategies,
    default_aggregator_factory,
)
from .opportunity_validator import OpportunityValidator

logger = logging.getLogger(__name__)

LOG_TYPE = "trade_execution"
FAILED_TX_HASH = "0x0"
PRIVATE_KEY_ENV = "PRIVATE_KEY"


class TradeExecutor:
    """Runs one arbitrage opportunity through the guarded execution pipeline"""

    def __init__(
        self,
        config_store: ConfigStore,
        activity_log: ActivityLogStore,
        transaction_store: TransactionStore,
        network: NetworkProvider,
        notifier: Notifier,
        aggregator_factory: AggregatorFactory = default_aggregator_factory,
        validator: Optional[OpportunityValidator] = None,
        min_gas_reserve: Decimal = Decimal(MIN_GAS_RESERVE),
        strategies: Optional[Dict[ExecutionMode, ExecutionStrategy]] = None
    ):
        self.config_store = config_store
        self.activity_log = activity_log
        self.transaction_store = transaction_store
        self.network = network
        self.notifier = notifier
        self.validator = validator or OpportunityValidator(config_store)
        self.min_gas_reserve = min_gas_reserve
        self.strategies = strategies or build_strategies(transaction_store, notifier, aggregator_factory)

    async def validate_opportunity(self, user_id: str, opportunity: ArbitrageOpportunity) -> bool:
        """Freshness and profitability re-check; call before execute_arbitrage_trade"""
        return await self.validator.validate_opportunity(user_id, opportunity)

    async def execute_arbitrage_trade(
        self,
        user_id: str,
        opportunity: ArbitrageOpportunity,
        is_simulation: bool = True
    ) -> TradeExecutionResult:
        """
        Execute an arbitrage opportunity in simulation or real mode.

        Args:
            user_id: Owner of the bot configuration
            opportunity: Opportunity produced by the scanner
            is_simulation: Record a mock trade instead of preparing a real one

        Returns:
            TradeExecutionResult; failures come back with success=False
        """
        mode = ExecutionMode.SIMULATION if is_simulation else ExecutionMode.REAL
        ctx = ExecutionContext(
            user_id=user_id,
            opportunity=opportunity,
            mode=mode,
            audit=lambda level, message, **metadata: self._audit(user_id, level, message, metadata)
        )

        try:
            logger.info(
                f"EXECUTING ARBITRAGE TRADE [{mode.value}] {opportunity.pair} "
                f"{opportunity.dex_path} expected profit ${opportunity.estimated_profit_usd:.2f}"
            )

            await ctx.audit(
                LogLevel.INFO,
                f"STEP 1/7: Validating arbitrage opportunity {opportunity.pair}",
                step="1_validation",
                opportunity_id=opportunity.opportunity_id,
                expected_profit=str(opportunity.estimated_profit_usd),
                mode=mode.value,
                buy_dex=opportunity.buy_dex,
                sell_dex=opportunity.sell_dex
            )

            await self._apply(ctx, await self._load_config(ctx))
            await self._apply(ctx, self._check_trading_mode(ctx))
            await self._apply(ctx, self._check_credential(ctx))
            await self._apply(ctx, await self._check_gas_reserve(ctx))
            await self._apply(ctx, await self._check_gas_price(ctx))

            return await self.strategies[mode].execute(ctx)

        except Exception as e:
            return await self._handle_failure(ctx, e)

    # ------------------------------------------------------------------
    # Pre-flight checks
    # ------------------------------------------------------------------

    async def _load_config(self, ctx: ExecutionContext) -> StepResult:
        config = await self.config_store.get_bot_config(ctx.user_id)
        if not config:
            return StepResult.fatal("config", ConfigurationMissingError("Bot configuration not found"))
        ctx.config = config
        return StepResult.passed("config")

    def _check_trading_mode(self, ctx: ExecutionContext) -> StepResult:
        if not ctx.is_simulation and not ctx.config.enable_real_trading:
            return StepResult.fatal(
                "mode_gate",
                TradingDisabledError("Real trading is disabled in configuration")
            )
        return StepResult.passed("mode_gate")

    @staticmethod
    def resolve_private_key(config) -> Tuple[Optional[str], Optional[str]]:
        """Private key and where it came from: config first, then environment"""
        if config.private_key:
            return config.private_key, "config"
        env_key = os.getenv(PRIVATE_KEY_ENV)
        if env_key:
            return env_key, "environment"
        return None, None

    def _check_credential(self, ctx: ExecutionContext) -> StepResult:
        ctx.private_key, ctx.key_source = self.resolve_private_key(ctx.config)

        if not ctx.is_simulation and not ctx.private_key:
            return StepResult.fatal(
                "2_validation_failed",
                CredentialMissingError(
                    "Private key not configured for real trading. Set PRIVATE_KEY in environment or Settings."
                ),
                error_code="private_key_not_configured",
                recommendation="Add PRIVATE_KEY to the environment or to the bot settings"
            )

        return StepResult.passed(
            "2_key_validation",
            f"STEP 2/7: Private key {'configured' if ctx.private_key else 'not configured'}",
            key_source=ctx.key_source or "none",
            is_configured=bool(ctx.private_key)
        )

    async def _check_gas_reserve(self, ctx: ExecutionContext) -> StepResult:
        if ctx.is_simulation:
            return StepResult.passed("3_balance_check")

        try:
            ctx.wallet_address = PolygonEngine.derive_address(ctx.private_key)
        except Exception as e:
            return StepResult.fatal(
                "3_balance_check",
                CredentialMissingError(f"Configured private key is not a valid signing key ({type(e).__name__})")
            )

        chain_id = ctx.config.chain_id
        try:
            balance = await self.network.get_native_balance(ctx.wallet_address, chain_id)
            current = Decimal(str(balance.balance_formatted))
        except Exception as e:
            logger.error(f"Failed to check MATIC balance: {e}")
            return StepResult.warning(
                "3_balance_check_failed",
                f"Could not check MATIC balance: {e}",
                error=str(e),
                chain_id=chain_id
            )

        ctx.native_balance = current
        metadata = dict(
            matic_balance=str(current),
            min_required=str(self.min_gas_reserve),
            wallet_address=ctx.wallet_address,
            chain_id=chain_id,
            is_sufficient=current >= self.min_gas_reserve
        )

        if current < self.min_gas_reserve:
            return StepResult.fatal(
                "3_balance_check",
                InsufficientGasReserveError(
                    f"Insufficient MATIC balance: {current:.4f} MATIC "
                    f"(minimum: {self.min_gas_reserve} MATIC required for gas)"
                ),
                **metadata
            )

        return StepResult.passed(
            "3_balance_check",
            f"STEP 3/7: MATIC balance {current:.4f} MATIC ✅",
            **metadata
        )

    async def _check_gas_price(self, ctx: ExecutionContext) -> StepResult:
        gas = await self.network.get_gas_price(ctx.config.chain_id)
        current = Decimal(str(gas.gas_price_gwei))
        ceiling = ctx.config.gas_price_ceiling_gwei
        ctx.gas_price_gwei = current
        metadata = dict(
            gas_gwei=str(current),
            max_gas_gwei=str(ceiling),
            matic_balance=str(ctx.native_balance) if ctx.native_balance is not None else None,
            is_acceptable=current <= ceiling
        )

        if current > ceiling:
            return StepResult.fatal(
                "4_gas_too_high",
                GasPriceTooHighError(f"Gas price too high: {current:.1f} Gwei (max: {ceiling} Gwei)"),
                recommendation="Wait for gas price to drop or raise the limit in Settings",
                **metadata
            )

        return StepResult.passed(
            "4_gas_check",
            f"STEP 4/7: Gas price {current:.1f} Gwei ✅",
            **metadata
        )

    async def _apply(self, ctx: ExecutionContext, result: StepResult) -> None:
        """Audit a check outcome; fatal outcomes abort via their exception"""
        if result.is_fatal:
            await ctx.audit(
                LogLevel.ERROR,
                f"ERROR: {result.message}",
                step=result.step,
                **result.metadata
            )
            raise result.error

        if result.outcome == StepOutcome.WARNING:
            await ctx.audit(LogLevel.WARNING, result.message, step=result.step, **result.metadata)
        elif result.message:
            await ctx.audit(LogLevel.INFO, result.message, step=result.step, **result.metadata)

    # ------------------------------------------------------------------
    # Failure path and audit helpers
    # ------------------------------------------------------------------

    async def _handle_failure(self, ctx: ExecutionContext, error: Exception) -> TradeExecutionResult:
        opportunity = ctx.opportunity
        logger.error(f"Trade execution failed for {opportunity.opportunity_id}: {error}")

        await ctx.audit(
            LogLevel.ERROR,
            f"Trade execution error: {error}",
            error=traceback.format_exc(),
            error_type=type(error).__name__,
            opportunity=opportunity.opportunity_id,
            mode=ctx.mode.value
        )

        record = ArbitrageTransaction(
            tx_hash=FAILED_TX_HASH,
            token_in=opportunity.token_in.symbol,
            token_out=opportunity.token_out.symbol,
            amount_in=opportunity.flash_loan_amount,
            amount_out="0",
            profit_usd=Decimal("0"),
            gas_cost_usd=Decimal("0"),
            net_profit_usd=Decimal("0"),
            status=TransactionStatus.FAILED,
            dex_path=opportunity.dex_path
        )
        try:
            await self.transaction_store.create_arbitrage_transaction(ctx.user_id, record)
        except Exception as store_error:
            logger.error(f"Failed to record failed transaction for {ctx.user_id}: {store_error}")

        return TradeExecutionResult(
            success=False,
            message=f"Trade execution failed: {error}",
            error=str(error),
            execution_time_ms=ctx.elapsed_ms()
        )

    async def _audit(self, user_id: str, level: LogLevel, message: str, metadata: Dict) -> None:
        """Write an audit entry; the audit log never breaks a trade"""
        try:
            await self.activity_log.create_activity_log(
                user_id,
                ActivityLogEntry(type=LOG_TYPE, level=level, message=message, metadata=metadata)
            )
        except Exception as e:
            logger.warning(f"Failed to write activity log for {user_id}: {e}")
