"""Tests for error classification and logging helpers."""

import logging
import logging.handlers
import tempfile
import unittest

from src.masking.config.config_manager import LoggingConfig
from src.masking.logging.logging_config import (
    ContextFilter,
    add_context_to_logger,
    configure_logging
)
from src.masking.utils.error_utils import (
    ConfigurationError,
    ConversionError,
    ErrorCategory,
    FormatValidationError,
    MaskingError,
    PatternTimeoutError,
    classify_error,
    error_message,
    is_recoverable,
    wrap_error
)


class TestErrorUtils(unittest.TestCase):
    """Test cases for error utilities."""

    def test_masking_error_categories(self):
        self.assertEqual(ConfigurationError("x").category, ErrorCategory.CONFIGURATION)
        self.assertEqual(FormatValidationError("x").category, ErrorCategory.VALIDATION)
        self.assertEqual(PatternTimeoutError("x").category, ErrorCategory.TIMEOUT)
        self.assertEqual(ConversionError("x").category, ErrorCategory.CONVERSION)
        self.assertEqual(MaskingError("x").category, ErrorCategory.FATAL)

    def test_builtin_bases(self):
        self.assertIsInstance(ConfigurationError("x"), ValueError)
        self.assertIsInstance(PatternTimeoutError("x"), TimeoutError)

    def test_str_includes_context(self):
        error = ConfigurationError(
            "Unknown rule type: scramble",
            context={"field": "name"},
            original_error=KeyError("scramble")
        )
        text = str(error)
        self.assertTrue(text.startswith("configuration: Unknown rule type: scramble"))
        self.assertIn("(context: {'field': 'name'})", text)
        self.assertIn("original error", text)

    def test_error_message_strips_decoration(self):
        self.assertEqual(error_message(ConversionError("Bad value")), "Bad value")
        self.assertEqual(error_message(KeyError("k")), "'k'")

    def test_classify_foreign_errors(self):
        self.assertEqual(classify_error(TimeoutError()), ErrorCategory.TIMEOUT)
        self.assertEqual(classify_error(TypeError()), ErrorCategory.CONVERSION)
        self.assertEqual(classify_error(ValueError()), ErrorCategory.VALIDATION)
        self.assertEqual(classify_error(KeyError()), ErrorCategory.FATAL)

    def test_wrap_error(self):
        original = ConversionError("Bad value")
        self.assertIs(wrap_error(original), original)

        wrapped = wrap_error(TimeoutError("slow"), context={"field": "email"})
        self.assertEqual(wrapped.category, ErrorCategory.TIMEOUT)
        self.assertEqual(wrapped.message, "slow")
        self.assertEqual(wrapped.context, {"field": "email"})

        rewrapped = wrap_error(original, context={"field": "amount"})
        self.assertEqual(rewrapped.message, "Bad value")
        self.assertIs(rewrapped.original_error, original)

    def test_is_recoverable(self):
        self.assertTrue(is_recoverable(PatternTimeoutError("x")))
        self.assertTrue(is_recoverable(ConversionError("x")))
        self.assertFalse(is_recoverable(ConfigurationError("x")))
        self.assertFalse(is_recoverable(RuntimeError("x")))


class TestLoggingConfig(unittest.TestCase):
    """Test cases for logging setup."""

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level

    def tearDown(self):
        self.root.handlers[:] = self.saved_handlers
        self.root.setLevel(self.saved_level)

    def test_configure_console(self):
        configure_logging(LoggingConfig(level="WARNING", format="%(message)s"))

        self.assertEqual(self.root.level, logging.WARNING)
        self.assertEqual(len(self.root.handlers), 1)
        self.assertEqual(self.root.handlers[0].formatter._fmt, "%(message)s")

    def test_configure_file_handler(self):
        with tempfile.TemporaryDirectory() as tmp:
            configure_logging(LoggingConfig(handlers=[
                {"type": "file", "filename": f"{tmp}/masking.log", "format": "%(levelname)s"},
                {"type": "syslog"},
            ]))

            self.assertEqual(len(self.root.handlers), 1)
            handler = self.root.handlers[0]
            self.assertIsInstance(handler, logging.handlers.RotatingFileHandler)
            self.assertEqual(handler.formatter._fmt, "%(levelname)s")
            handler.close()

    def test_add_context_replaces_previous(self):
        logger = logging.getLogger("masking.test.context")
        add_context_to_logger(logger, {"input_file": "a.json"})
        add_context_to_logger(logger, {"input_file": "b.json"})

        filters = [f for f in logger.filters if isinstance(f, ContextFilter)]
        self.assertEqual(len(filters), 1)

        record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "msg", (), None)
        filters[0].filter(record)
        self.assertEqual(record.input_file, "b.json")


if __name__ == "__main__":
    unittest.main()
