"""Tests for the type converter registry."""

import threading
import unittest
from datetime import date, datetime, timezone
from decimal import Decimal

from src.masking.core.type_converters import ConverterRegistry, TypeConverter, default_registry
from src.masking.utils.error_utils import ConversionError


class TestConverterRegistry(unittest.TestCase):
    """Test cases for ConverterRegistry."""

    def setUp(self):
        self.registry = ConverterRegistry()

    def test_default_converters(self):
        for value_type in (int, float, Decimal, bool, datetime, date):
            self.assertTrue(self.registry.has(value_type))
        self.assertFalse(self.registry.has(complex))

    def test_round_trips(self):
        samples = [
            42,
            0.1,
            Decimal("10.50"),
            True,
            datetime(2024, 1, 2, 3, 4, 5),
            date(2024, 1, 2),
        ]
        for value in samples:
            with self.subTest(value=value):
                text = self.registry.to_text(value)
                self.assertEqual(self.registry.from_text(text, type(value)), value)

    def test_datetime_accepts_trailing_z(self):
        parsed = self.registry.from_text("2024-01-02T03:04:05Z", datetime)
        self.assertEqual(parsed, datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc))

    def test_bool_parsing(self):
        self.assertFalse(self.registry.from_text("no", bool))
        self.assertTrue(self.registry.from_text("1", bool))

    def test_unconvertible_text_raises(self):
        with self.assertRaises(ConversionError):
            self.registry.from_text("12**", int)

    def test_missing_converter(self):
        self.assertEqual(self.registry.to_text(3j), "3j")
        self.assertEqual(self.registry.from_text("abc", complex), "abc")
        self.assertIsNone(self.registry.from_text(None, int))

    def test_first_writer_wins(self):
        first = TypeConverter(to_text=lambda v: "first", from_text=lambda t: t)
        second = TypeConverter(to_text=lambda v: "second", from_text=lambda t: t)

        self.assertIs(self.registry.register(complex, first), first)
        self.assertIs(self.registry.register(complex, second), first)
        self.assertEqual(self.registry.to_text(1j), "first")

        self.assertIs(self.registry.register(complex, second, replace=True), second)
        self.assertEqual(self.registry.to_text(1j), "second")

    def test_concurrent_registration_agrees(self):
        winners = []
        converters = [
            TypeConverter(to_text=lambda v, i=i: str(i), from_text=lambda t: t)
            for i in range(8)
        ]

        def register(converter):
            winners.append(self.registry.register(frozenset, converter))

        threads = [threading.Thread(target=register, args=(c,)) for c in converters]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len({id(w) for w in winners}), 1)

    def test_empty_registry(self):
        registry = ConverterRegistry(converters={})
        self.assertFalse(registry.has(int))

    def test_default_registry_is_shared(self):
        self.assertIs(default_registry(), default_registry())


if __name__ == "__main__":
    unittest.main()
