import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import config


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def write_config(self, text):
        path = self.tmp / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_missing_config_file(self):
        with self.assertRaises(FileNotFoundError) as ctx:
            config.load_config(self.tmp / "nope.yaml")
        self.assertIn("config.example.yaml", str(ctx.exception))

    def test_empty_config_file(self):
        self.assertEqual(config.load_config(self.write_config("")), {})

    def test_env_var_points_at_config(self):
        path = self.write_config("logging:\n  level: debug\n")
        with mock.patch.dict(os.environ, {"FDC_CONFIG": str(path)}):
            loaded = config.load_config()
        self.assertEqual(config.get_log_level(loaded), "DEBUG")

    def test_importer_defaults(self):
        settings = config.get_importer_settings({})

        self.assertTrue(settings["enabled"])
        self.assertTrue(settings["run_on_startup"])
        self.assertEqual(settings["schema"], "nutrition")
        self.assertEqual(settings["progress_every"], 100)
        self.assertEqual(settings["json_path"], config.PROJECT_ROOT.resolve() / "data" / "foods.json")

    def test_importer_overrides(self):
        loaded = config.load_config(self.write_config(
            "importer:\n"
            "  enabled: false\n"
            f"  json_path: {self.tmp / 'foundation.json'}\n"
            "  schema: fdc\n"
            "  progress_every: '25'\n"
        ))
        settings = config.get_importer_settings(loaded)

        self.assertFalse(settings["enabled"])
        self.assertTrue(settings["run_on_startup"])
        self.assertEqual(settings["json_path"], self.tmp / "foundation.json")
        self.assertEqual(settings["schema"], "fdc")
        self.assertEqual(settings["progress_every"], 25)

    def test_paths(self):
        loaded = {"data": {"db_path": str(self.tmp / "x.duckdb"), "log_dir": str(self.tmp / "logs")}}

        self.assertEqual(config.get_db_path(loaded), self.tmp / "x.duckdb")
        self.assertEqual(config.get_log_dir(loaded), self.tmp / "logs")
        self.assertTrue((self.tmp / "logs").is_dir())
        self.assertEqual(config.get_db_path({}), config.PROJECT_ROOT / "data" / "fdc.duckdb")

    def test_default_log_level(self):
        self.assertEqual(config.get_log_level({}), "INFO")


if __name__ == "__main__":
    unittest.main()
