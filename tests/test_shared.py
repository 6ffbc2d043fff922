import unittest
import asyncio
import logging
import sys
import os
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

# Add project root to path
sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from dex.polygon_service.dex_aggregator import SUPPORTED_TOKENS, TOKENS
from dex.shared.activity_store import InMemoryTransactionStore, LoggingActivityLog
from dex.shared.logger import get_logger, setup_root_logger
from dex.shared.models.arbitrage_models import ActivityLogEntry, LogLevel, StepResult
from dex.shared.network_config import NetworkConfig
from dex.shared.telegram_notifier import TelegramNotifier
from dex.shared.utils import (
    generate_tx_hash,
    safe_decimal,
    short_hash,
    to_raw_token_amount,
    validate_address,
)
from shared_telegram_manager import TelegramBotManager


class TestUtils(unittest.TestCase):

    def test_to_raw_token_amount(self):
        self.assertEqual(to_raw_token_amount("1000", 6), 1_000_000_000)
        self.assertEqual(to_raw_token_amount("0.5", 18), 5 * 10**17)
        self.assertEqual(to_raw_token_amount(Decimal("1.25"), 8), 125_000_000)

    def test_to_raw_token_amount_rejects_negative(self):
        with self.assertRaises(ValueError):
            to_raw_token_amount("-1", 18)

    def test_to_raw_token_amount_rejects_sub_unit_digits(self):
        """Digits below the smallest token unit are an error, not truncated"""
        with self.assertRaises(ValueError):
            to_raw_token_amount("1.0000009", 6)
        self.assertEqual(to_raw_token_amount("1.000000", 6), 1_000_000)

    def test_to_raw_token_amount_keeps_large_values_exact(self):
        self.assertEqual(
            to_raw_token_amount("12345678901234.123456789012345678", 18),
            12345678901234123456789012345678
        )

    def test_safe_decimal(self):
        self.assertEqual(safe_decimal("1.5"), Decimal("1.5"))
        self.assertEqual(safe_decimal(None), Decimal("0"))
        self.assertEqual(safe_decimal("abc", Decimal("7")), Decimal("7"))

    def test_tx_hash_format(self):
        tx_hash = generate_tx_hash()
        self.assertEqual(len(tx_hash), 66)
        int(tx_hash[2:], 16)
        self.assertNotEqual(tx_hash, generate_tx_hash())
        self.assertEqual(short_hash(tx_hash), tx_hash[:10] + "...")

    def test_validate_address(self):
        self.assertTrue(validate_address("0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"))
        self.assertFalse(validate_address("0x1234"))
        self.assertFalse(validate_address("0x" + "zz" * 20))
        self.assertFalse(validate_address(None))

    def test_validate_address_rejects_int_literal_syntax(self):
        self.assertTrue(validate_address("0x" + "ab" * 20))
        self.assertFalse(validate_address("0x" + "1_" * 19 + "11"))
        self.assertFalse(validate_address("-0x" + "11" * 19 + "1"))
        self.assertFalse(validate_address("ab" * 20))


class TestNetworkConfig(unittest.TestCase):

    def test_chain_lookup(self):
        self.assertEqual(NetworkConfig.get_config_by_chain_id(137)["chain_id"], 137)
        self.assertEqual(
            NetworkConfig.get_config_by_chain_id(80002)["explorer_url"],
            "https://amoy.polygonscan.com"
        )
        with self.assertRaises(ValueError):
            NetworkConfig.get_config_by_chain_id(56)

    def test_explorer_url(self):
        self.assertEqual(
            NetworkConfig.get_explorer_tx_url(80002, "0xabc"),
            "https://amoy.polygonscan.com/tx/0xabc"
        )
        self.assertEqual(
            NetworkConfig.get_explorer_tx_url(1, "0xabc"),
            "https://polygonscan.com/tx/0xabc"
        )

    def test_quote_source_registry_comes_from_network_config(self):
        tokens = NetworkConfig.get_polygon_mainnet_config()["tokens"]

        self.assertEqual(TOKENS, tokens)
        registry = {token.symbol: token.address for token in SUPPORTED_TOKENS}
        self.assertEqual(registry, tokens)

    def test_configs_carry_only_consumed_keys(self):
        for chain_id in (137, 80002):
            config = NetworkConfig.get_config_by_chain_id(chain_id)
            self.assertTrue({"chain_id", "rpc_url", "explorer_url"} <= set(config))
            self.assertNotIn("aave_v3_pool", config)
            self.assertNotIn("dexes", config)


class TestStepResult(unittest.TestCase):

    def test_only_fatal_outcome_is_fatal(self):
        self.assertTrue(StepResult.fatal("gas", RuntimeError("too high")).is_fatal)
        self.assertFalse(StepResult.warning("balance", "rpc down").is_fatal)
        self.assertFalse(StepResult.passed("config").is_fatal)


class TestActivityStore(unittest.TestCase):

    def test_entries_are_kept_per_user(self):
        log = LoggingActivityLog()
        entry = ActivityLogEntry(type="trade_execution", level=LogLevel.SUCCESS, message="done")

        with self.assertLogs("dex.shared.activity_store", level="INFO"):
            asyncio.run(log.create_activity_log("alice", entry))

        self.assertEqual(log.get_entries("alice"), [entry])
        self.assertEqual(log.get_entries("bob"), [])

    def test_transaction_store_returns_copies(self):
        store = InMemoryTransactionStore()
        record = MagicMock()

        asyncio.run(store.create_arbitrage_transaction("alice", record))
        store.get_transactions("alice").clear()

        self.assertEqual(store.get_transactions("alice"), [record])


class TestLogger(unittest.TestCase):

    def test_get_logger_configures_once(self):
        logger = get_logger("tests.shared.once", level="DEBUG")
        again = get_logger("tests.shared.once")

        self.assertIs(logger, again)
        self.assertEqual(len(logger.handlers), 1)
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertFalse(logger.propagate)

    def test_log_level_from_environment(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "warning"}):
            logger = get_logger("tests.shared.env_level")
        self.assertEqual(logger.level, logging.WARNING)

    def test_setup_root_logger(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_root_logger("ERROR")
            self.assertEqual(root.level, logging.ERROR)
            self.assertEqual(len(root.handlers), 1)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestTelegramNotifier(unittest.TestCase):

    def setUp(self):
        self.manager = MagicMock()
        self.manager.is_available.return_value = True
        self.manager.send_message = AsyncMock(return_value=True)
        self.notifier = TelegramNotifier(manager=self.manager)

    def test_sends_through_manager(self):
        sent = asyncio.run(self.notifier.send_telegram_message("alice", "<b>hi</b>", "trade_success"))

        self.assertTrue(sent)
        self.manager.send_message.assert_awaited_once_with("<b>hi</b>", user_id="alice")

    def test_unavailable_bot_drops_message(self):
        self.manager.is_available.return_value = False

        sent = asyncio.run(self.notifier.send_telegram_message("alice", "hi", "trade_pending"))

        self.assertFalse(sent)
        self.manager.send_message.assert_not_awaited()


class TestTelegramBotManager(unittest.TestCase):

    def setUp(self):
        self.manager = TelegramBotManager()
        self.saved_chat_id = self.manager.chat_id
        self.saved_chats = dict(self.manager.user_chats)

    def tearDown(self):
        self.manager.chat_id = self.saved_chat_id
        self.manager.user_chats.clear()
        self.manager.user_chats.update(self.saved_chats)

    def test_singleton(self):
        self.assertIs(TelegramBotManager(), self.manager)

    def test_registered_chat_wins(self):
        self.manager.chat_id = 100
        self.manager.register_user_chat("alice", 200)

        self.assertEqual(self.manager.resolve_chat_id("alice"), 200)
        self.assertEqual(self.manager.resolve_chat_id("bob"), 100)

    def test_send_error_returns_false(self):
        bot = MagicMock()
        bot.send_message = AsyncMock(side_effect=RuntimeError("flood control"))
        self.manager.chat_id = 100

        with patch.object(TelegramBotManager, "_bot", bot):
            sent = asyncio.run(self.manager.send_message("hi"))

        self.assertFalse(sent)
        bot.send_message.assert_awaited_once_with(chat_id=100, text="hi", parse_mode="HTML")


if __name__ == '__main__':
    unittest.main()
