"""Tests for rule chains, the builder and the masking orchestrator."""

import json
import unittest
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from src.masking.config.config_manager import (
    FieldRuleConfig,
    ForEachConfig,
    MaskingConfig,
    SeedingConfig
)
from src.masking.core.builder import MaskingBuilder
from src.masking.core.masker import Masker, UnmappedFieldPolicy, record_fields
from src.masking.core.masker_factory import RULE_FACTORIES, build_masker, create_rule
from src.masking.core.random_source import entity_seed_provider
from src.masking.core.rule_chain import RuleChain, StageKind, apply_chain, compose
from src.masking.rules.numeric import BucketizeRule, NoiseAdditiveRule, RoundToRule
from src.masking.rules.temporal import TimeBucketRule, TimeGranularity
from src.masking.rules.text import (
    KeepFirstRule,
    KeepLastRule,
    NullOutRule,
    RedactRule,
    RegexReplaceRule
)
from src.masking.utils.error_utils import ConfigurationError


@dataclass
class Customer:
    name: str
    ssn: str
    age: int


class Account:
    def __init__(self, owner, number):
        self.owner = owner
        self.number = number
        self._internal = "hidden"


class TestRuleChain(unittest.TestCase):
    """Test cases for chain execution."""

    def test_stage_kinds(self):
        chain = RuleChain("amount").append(KeepFirstRule(1)).append(RoundToRule(10))
        self.assertEqual([s.kind for s in chain], [StageKind.TEXT, StageKind.TYPED])
        self.assertEqual(len(chain), 2)
        self.assertIn("KeepFirstRule", repr(chain))

    def test_rules_run_in_order(self):
        chain = compose(KeepFirstRule(2), RegexReplaceRule(r"\*+", "#"))
        self.assertEqual(apply_chain("Sensitive", chain), "Se#")

    def test_text_rule_bridges_typed_value(self):
        chain = compose(RegexReplaceRule(r"\d{2}$", "00"))
        self.assertEqual(apply_chain(12345, chain), 12300)

    def test_text_rule_without_converter_yields_text(self):
        chain = compose(KeepFirstRule(1))
        self.assertEqual(apply_chain(3j, chain), "3*")

    def test_typed_rule_receives_native_value(self):
        self.assertEqual(apply_chain(123, compose(RoundToRule(10))), 120)

    def test_none_short_circuits(self):
        self.assertIsNone(apply_chain(None, compose(RedactRule())))
        self.assertIsNone(apply_chain("secret", compose(NullOutRule(), RedactRule())))

    def test_empty_chain_is_identity(self):
        self.assertEqual(apply_chain("value", RuleChain("field")), "value")


class TestMaskingBuilder(unittest.TestCase):
    """Test cases for MaskingBuilder."""

    def test_build_keeps_order(self):
        rules = MaskingBuilder().keep_first(2).redact().build()
        self.assertIsInstance(rules[0], KeepFirstRule)
        self.assertIsInstance(rules[1], RedactRule)

    def test_pending_provider_attaches_to_next_seeded_rule(self):
        provider = entity_seed_provider("patient-1")
        rules = (MaskingBuilder()
                 .with_seed_provider(provider)
                 .keep_first(1)
                 .date_shift(10)
                 .add_noise(5)
                 .build())

        self.assertIs(rules[1].seed_provider, provider)
        self.assertIsNone(rules[2].seed_provider)

    def test_aliases(self):
        rules = MaskingBuilder().mask_first(2).mask_last(2).build()
        self.assertEqual(rules[0].apply("abcdef"), "**cdef")
        self.assertEqual(rules[1].apply("abcdef"), "abcd**")

    def test_bucketize_preset(self):
        (rule,) = MaskingBuilder().bucketize_preset("age_groups").build()
        self.assertIsInstance(rule, BucketizeRule)
        self.assertEqual(rule.apply(34), "30-44")


class TestMasker(unittest.TestCase):
    """Test cases for Masker."""

    def setUp(self):
        self.record = {"name": "Alice", "email": "alice@example.com", "city": "Paris"}

    def test_mask_mapped_fields(self):
        masker = (Masker()
                  .mask_for("name", KeepFirstRule(1))
                  .mask_for("email", lambda b: b.mask_email(local_keep=2)))

        result = masker.mask(self.record)

        self.assertTrue(result.is_success)
        self.assertEqual(result.errors, [])
        self.assertEqual(result.masked_data["name"], "A****")
        self.assertEqual(result.masked_data["email"], "al***@example.com")
        self.assertEqual(masker.fields, ["name", "email"])

    def test_repeated_mask_for_extends_chain(self):
        masker = Masker().mask_for("name", KeepFirstRule(1)).mask_for("name", RedactRule("x"))
        self.assertEqual(masker.mask({"name": "Alice"}).masked_data["name"], "x")

    def test_unmapped_policies(self):
        masker = Masker().mask_for("name", KeepFirstRule(1))

        excluded = masker.mask(self.record).masked_data
        self.assertIsNone(excluded["city"])

        masker.set_unmapped_policy(UnmappedFieldPolicy.INCLUDE)
        self.assertEqual(masker.mask(self.record).masked_data["city"], "Paris")

        masker.set_unmapped_policy("remove")
        removed = masker.mask(self.record).masked_data
        self.assertEqual(list(removed), ["name"])

    def test_field_error_is_recorded(self):
        masker = (Masker(UnmappedFieldPolicy.INCLUDE)
                  .mask_for("email", lambda b: b.mask_email())
                  .mask_for("name", KeepFirstRule(1)))

        result = masker.mask({"email": "not-an-email", "name": "Alice"})

        self.assertFalse(result.is_success)
        self.assertEqual(result.errors, ["Error masking property email: Invalid email format"])
        self.assertNotIn("email", result.masked_data)
        self.assertEqual(result.masked_data["name"], "A****")

    def test_unconvertible_text_is_field_error(self):
        masker = Masker().mask_for("account", KeepLastRule(2))

        result = masker.mask({"account": 12345})

        self.assertFalse(result.is_success)
        self.assertEqual(
            result.errors,
            ["Error masking property account: Cannot convert masked text back to int"]
        )

    def test_field_failures_are_logged_by_category(self):
        masker = (Masker()
                  .mask_for("email", lambda b: b.mask_email())
                  .mask_for("account", KeepLastRule(2)))

        with self.assertLogs("src.masking.core.masker", level="INFO") as logs:
            masker.mask({"email": "not-an-email", "account": 12345})

        self.assertIn(
            "WARNING:src.masking.core.masker:Failed to mask field email: FormatValidationError (validation)",
            logs.output
        )
        self.assertIn(
            "INFO:src.masking.core.masker:Failed to mask field account: ConversionError (conversion)",
            logs.output
        )
        self.assertFalse(any("not-an-email" in line for line in logs.output))

    def test_dataclass_and_object_records(self):
        masker = (Masker(UnmappedFieldPolicy.INCLUDE)
                  .mask_for("ssn", lambda b: b.national_id_mask("US"))
                  .mask_for("number", lambda b: b.keep_last(4)))

        customer = masker.mask(Customer("Bob", "123-45-6789", 40)).masked_data
        self.assertEqual(customer, {"name": "Bob", "ssn": "***-**-6789", "age": 40})

        account = masker.mask(Account("Bob", "DE001234")).masked_data
        self.assertEqual(account, {"owner": "Bob", "number": "****1234"})

    def test_record_fields_rejects_scalars(self):
        with self.assertRaises(TypeError):
            record_fields(42)

    def test_for_each_collection(self):
        child = Masker(UnmappedFieldPolicy.INCLUDE).mask_for("email", lambda b: b.mask_email())
        masker = Masker(UnmappedFieldPolicy.INCLUDE).mask_for_each("contacts", child)

        result = masker.mask({
            "id": 1,
            "contacts": [
                {"email": "jane@example.com", "kind": "work"},
                {"email": "broken", "kind": "home"},
            ],
        })

        self.assertFalse(result.is_success)
        self.assertEqual(result.masked_data["contacts"], [{"email": "j***@example.com", "kind": "work"}])
        self.assertEqual(result.errors, ["Error masking property email: Invalid email format"])

    def test_for_each_nested_record(self):
        child = Masker(UnmappedFieldPolicy.REMOVE).mask_for("street", RedactRule())
        masker = Masker(UnmappedFieldPolicy.INCLUDE).mask_for_each("address", child)

        result = masker.mask({"address": {"street": "1 Main St", "zip": "12345"}})

        self.assertTrue(result.is_success)
        self.assertEqual(result.masked_data["address"], {"street": "[REDACTED]"})

    def test_for_each_skips_none(self):
        child = Masker().mask_for("street", RedactRule())
        masker = Masker().mask_for_each("address", child)
        self.assertIsNone(masker.mask({"address": None}).masked_data["address"])

    def test_to_json(self):
        masker = (Masker(UnmappedFieldPolicy.INCLUDE)
                  .mask_for("seen", TimeBucketRule(TimeGranularity.DAY)))

        result = masker.mask({"seen": datetime(2024, 3, 5, 14, 30), "amount": Decimal("10.50")})

        self.assertEqual(
            json.loads(result.to_json()),
            {"seen": "2024-03-05T00:00:00", "amount": "10.50"}
        )


class TestMaskerFactory(unittest.TestCase):
    """Test cases for building maskers from configuration."""

    def test_create_rule(self):
        rule = create_rule({"type": "keep_first", "count": 2})
        self.assertEqual(rule.apply("Sensitive"), "Se*******")

    def test_create_rule_does_not_mutate_definition(self):
        definition = {"type": "redact", "redaction_text": "<x>"}
        create_rule(definition)
        self.assertEqual(definition, {"type": "redact", "redaction_text": "<x>"})

    def test_unknown_rule_type(self):
        with self.assertRaises(ConfigurationError) as ctx:
            create_rule({"type": "scramble"})
        self.assertIn("scramble", str(ctx.exception))

    def test_invalid_arguments(self):
        with self.assertRaises(ConfigurationError):
            create_rule({"type": "keep_first", "size": 2})

    def test_seeded_rules(self):
        provider = entity_seed_provider("p-1")
        rule = create_rule({"type": "noise", "max_abs": 5, "seeded": True}, provider)
        self.assertIsInstance(rule, NoiseAdditiveRule)
        self.assertIs(rule.seed_provider, provider)

        with self.assertRaises(ConfigurationError):
            create_rule({"type": "noise", "max_abs": 5, "seeded": True})
        with self.assertRaises(ConfigurationError):
            create_rule({"type": "redact", "seeded": True}, provider)

    def test_every_factory_is_callable(self):
        for name, factory in RULE_FACTORIES.items():
            with self.subTest(rule=name):
                self.assertTrue(callable(factory))

    def test_build_masker(self):
        config = MaskingConfig(
            unmapped_policy="include",
            fields=[
                FieldRuleConfig("name", [{"type": "keep_first", "count": 1}]),
                FieldRuleConfig("salary", [{"type": "bucketize_preset", "name": "salary_ranges"}]),
            ],
            for_each=[
                ForEachConfig(
                    "cards",
                    unmapped_policy="remove",
                    fields=[FieldRuleConfig("number", [{"type": "card"}])]
                )
            ]
        )

        result = build_masker(config).mask({
            "name": "Alice",
            "salary": 75000,
            "team": "ops",
            "cards": [{"number": "4532015112830366", "cvv": "123"}],
        })

        self.assertTrue(result.is_success)
        self.assertEqual(result.masked_data, {
            "name": "A****",
            "salary": "60-90k",
            "team": "ops",
            "cards": [{"number": "************0366"}],
        })

    def test_build_masker_seeds_by_entity(self):
        config = MaskingConfig(
            unmapped_policy="include",
            fields=[FieldRuleConfig(
                "visit",
                [{"type": "date_shift", "days_range": 30, "seeded": True}]
            )],
            seeding=SeedingConfig(secret="test-secret", key_field="patient_id")
        )
        masker = build_masker(config)

        visits = [date(2024, 1, 10), date(2024, 3, 1)]
        shifted = [
            masker.mask({"patient_id": "p-1", "visit": visit}).masked_data["visit"]
            for visit in visits
        ]

        self.assertEqual(shifted[0] - visits[0], shifted[1] - visits[1])
        self.assertEqual(
            shifted[0],
            masker.mask({"patient_id": "p-1", "visit": visits[0]}).masked_data["visit"]
        )


if __name__ == "__main__":
    unittest.main()
