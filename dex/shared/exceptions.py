"""
Error taxonomy for arbitrage trade execution
"""


class TradeExecutionError(Exception):
    """Base class for every fatal pre-flight or execution failure."""
    pass


class ConfigurationMissingError(TradeExecutionError):
    """No bot configuration exists for the user."""
    pass


class TradingDisabledError(TradeExecutionError):
    """Real trading requested while disabled in the bot configuration."""
    pass


class CredentialMissingError(TradeExecutionError):
    """No signing key could be resolved for real trading."""
    pass


class InsufficientGasReserveError(TradeExecutionError):
    """Wallet holds less native currency than the gas reserve."""
    pass


class GasPriceTooHighError(TradeExecutionError):
    """Network gas price is above the configured ceiling."""
    pass


class ReceiverContractMissingError(TradeExecutionError):
    """Real trading requires a deployed flash loan receiver contract."""
    pass


class LiveQuoteUnavailableError(TradeExecutionError):
    """Only a synthetic quote was available for a real trade."""
    pass
