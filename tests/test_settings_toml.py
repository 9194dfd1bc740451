import unittest
import tomllib
from pathlib import Path

from settings_service import SETTINGS_PATH, SettingsService, reload_settings


class TestSettingsToml(unittest.TestCase):
    """Test suite to validate settings.toml structure and contents."""

    @classmethod
    def setUpClass(cls):
        """Load settings.toml once for all tests."""
        settings_path = Path(__file__).parent.parent / "settings.toml"
        with open(settings_path, "rb") as f:
            cls.settings = tomllib.load(f)

    def test_toml_file_can_be_loaded(self):
        """Test that settings.toml exists and can be parsed without errors."""
        settings_path = Path(__file__).parent.parent / "settings.toml"
        self.assertTrue(settings_path.exists(), "settings.toml file does not exist")
        self.assertEqual(settings_path.resolve(), SETTINGS_PATH)
        self.assertIsInstance(self.settings, dict)

    def test_required_sections_exist(self):
        for section in ["env", "db", "pricing", "invoice", "storage"]:
            with self.subTest(section=section):
                self.assertIn(section, self.settings, f"[{section}] section is missing")

    def test_log_level_is_valid(self):
        self.assertIn(self.settings["env"]["log_level"], ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])

    def test_pricing_defaults(self):
        pricing = self.settings["pricing"]
        self.assertIn(pricing["rounding"], [1, 5, 10], "rounding must be 1, 5 or 10")
        self.assertGreaterEqual(pricing["master_markup"], 0)

        quantities = pricing["default_quantities"]
        self.assertIsInstance(quantities, list)
        self.assertGreater(len(quantities), 0)
        self.assertEqual(quantities, sorted(set(quantities)), "quantities should be sorted and unique")
        for quantity in quantities:
            self.assertIsInstance(quantity, int)
            self.assertGreater(quantity, 0)

    def test_invoice_section(self):
        invoice = self.settings["invoice"]
        self.assertGreaterEqual(invoice["tax_rate"], 0)
        self.assertGreater(invoice["payment_days"], 0)
        self.assertIsInstance(invoice["currency"], str)

    def test_invoice_company(self):
        company = self.settings["invoice"]["company"]
        self.assertTrue(company["name"], "company name must not be empty")
        for key, value in company.items():
            with self.subTest(key=key):
                self.assertIsInstance(value, str, f"company.{key} should be a string")

    def test_storage_backend(self):
        storage = self.settings["storage"]
        self.assertIn(storage["backend"], ["local", "http"])
        self.assertTrue(storage["bucket"])
        if storage["backend"] == "local":
            self.assertIn("local_root", storage)


class TestSettingsService(unittest.TestCase):
    """SettingsService accessors against the shipped settings.toml."""

    def setUp(self):
        reload_settings()
        self.service = SettingsService()

    def test_pricing_accessors(self):
        self.assertIsInstance(self.service.default_quantities, tuple)
        self.assertIn(self.service.default_rounding, (1, 5, 10))
        self.assertIsInstance(self.service.default_master_markup, float)

    def test_invoice_accessors(self):
        self.assertIsInstance(self.service.tax_rate, float)
        self.assertIsInstance(self.service.payment_days, int)
        self.assertEqual(self.service.company["name"], self.service.settings_dict["invoice"]["company"]["name"])

    def test_storage_is_a_copy(self):
        self.service.storage["backend"] = "changed"
        self.assertNotEqual(self.service.storage["backend"], "changed")


if __name__ == "__main__":
    unittest.main()
