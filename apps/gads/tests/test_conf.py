from __future__ import annotations

from django.test import SimpleTestCase, TestCase, override_settings

from apps.gads.conf import (
    GadsSettings,
    InMemorySettingsRepository,
    Settings,
    DatabaseSettingsRepository,
    sanitize_settings,
)
from apps.gads.models import GadsOption

from .utils import CONFIGURED


class SettingsAccessorTests(TestCase):
    def test_get_all_returns_defaults_when_nothing_stored(self) -> None:
        values = Settings().get_all()

        self.assertEqual(values, GadsSettings.defaults())
        self.assertEqual(values["conversion_action_category"], "SUBMIT_LEAD_FORM")
        self.assertEqual(values["conversion_value"], "0")
        self.assertEqual(values["currency_code"], "SEK")
        self.assertEqual(values["login_customer_id"], "")

    def test_stored_values_override_defaults_and_are_text(self) -> None:
        GadsOption.objects.create(
            key="gads_settings",
            value={"customer_id": 1234567890, "enable_logging": True, "currency_code": "EUR"},
        )

        values = Settings().get_all()

        self.assertEqual(values["customer_id"], "1234567890")
        self.assertEqual(values["enable_logging"], "1")
        self.assertEqual(values["currency_code"], "EUR")
        self.assertEqual(values["conversion_value"], "0")

    def test_get_falls_back_to_default_for_unknown_key(self) -> None:
        settings = Settings(InMemorySettingsRepository({"customer_id": "42"}))

        self.assertEqual(settings.get("customer_id"), "42")
        self.assertEqual(settings.get("nope", "fallback"), "fallback")

    def test_update_discards_unknown_keys_and_persists_full_map(self) -> None:
        settings = Settings()

        merged = settings.update({"customer_id": "555", "favourite_colour": "blue"})

        self.assertEqual(merged["customer_id"], "555")
        self.assertNotIn("favourite_colour", merged)
        stored = GadsOption.objects.get(key="gads_settings").value
        self.assertEqual(stored["customer_id"], "555")
        self.assertEqual(set(stored), set(GadsSettings.keys()))

    @override_settings(GADS_SETTINGS_OPTION_KEY="other_site")
    def test_option_key_is_configurable(self) -> None:
        Settings().update({"customer_id": "777"})

        self.assertTrue(GadsOption.objects.filter(key="other_site").exists())
        self.assertEqual(DatabaseSettingsRepository().load()["customer_id"], "777")

    def test_is_configured_requires_every_required_field(self) -> None:
        repository = InMemorySettingsRepository(CONFIGURED)
        settings = Settings(repository)
        self.assertTrue(settings.is_configured())

        repository.values["refresh_token"] = ""
        self.assertFalse(settings.is_configured())

    def test_login_customer_id_is_optional(self) -> None:
        settings = Settings(InMemorySettingsRepository({**CONFIGURED, "login_customer_id": ""}))

        self.assertTrue(settings.is_configured())


class GadsSettingsTests(SimpleTestCase):
    def test_missing_required_lists_empty_fields_in_order(self) -> None:
        record = GadsSettings(customer_id="1", developer_token="x")

        self.assertEqual(
            record.missing_required(),
            ["conversion_action_id", "client_id", "client_secret", "refresh_token"],
        )

    def test_logging_enabled(self) -> None:
        self.assertFalse(GadsSettings().logging_enabled)
        self.assertTrue(GadsSettings(enable_logging="1").logging_enabled)


class SanitizeSettingsTests(SimpleTestCase):
    def test_strips_whitespace_and_dashes_from_customer_ids(self) -> None:
        clean = sanitize_settings({"customer_id": " 123-456-7890 ", "login_customer_id": "987-654-3210"})

        self.assertEqual(clean["customer_id"], "1234567890")
        self.assertEqual(clean["login_customer_id"], "9876543210")

    def test_conversion_value_must_be_non_negative_number(self) -> None:
        cases = {
            "100": "100",
            "12.50": "12.5",
            "-5": "0",
            "abc": "0",
            "nan": "0",
            "inf": "0",
            "": "0",
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(sanitize_settings({"conversion_value": raw})["conversion_value"], expected)

    def test_currency_code_is_normalised(self) -> None:
        self.assertEqual(sanitize_settings({"currency_code": "usd"})["currency_code"], "USD")
        self.assertEqual(sanitize_settings({"currency_code": "XXX"})["currency_code"], "SEK")

    def test_leaves_other_keys_untouched(self) -> None:
        clean = sanitize_settings({"client_id": "  abc  ", "enable_logging": True})

        self.assertEqual(clean, {"client_id": "abc", "enable_logging": "1"})
