#!/usr/bin/env python3
"""
Tests for YAML configuration loading and saving.
"""

import shutil
import sys
import tempfile
import unittest
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import yaml

from ddcutil_cffi.bindings import RetryType
from ddcutil_cffi.config import DEFAULT_LIBRARY_NAMES, Config, get_config, set_config


class TestConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.config_path = self.temp_dir / "config.yaml"

    def tearDown(self):
        shutil.rmtree(self.temp_dir)
        set_config(None)

    def write(self, text):
        self.config_path.write_text(text)

    def test_defaults(self):
        config = Config(self.config_path)
        self.assertIsNone(config.library.path)
        self.assertEqual(config.library.candidates(), DEFAULT_LIBRARY_NAMES)
        self.assertEqual(config.retries.items(), {})
        self.assertFalse(config.enumeration.include_invalid)
        self.assertTrue(config.session.wait)

    def test_missing_file(self):
        config = Config(self.config_path)
        with self.assertLogs('ddcutil_cffi.config', level='WARNING'):
            self.assertFalse(config.load())
        self.assertTrue(config.session.wait)

    def test_load(self):
        self.write(
            "library:\n"
            "  path: /usr/local/lib/libddcutil.so.4\n"
            "retries:\n"
            "  write_read: 6\n"
            "enumeration:\n"
            "  include_invalid: true\n"
            "session:\n"
            "  wait: false\n"
        )
        config = Config(self.config_path)
        self.assertTrue(config.load())
        self.assertEqual(config.library.candidates(), ["/usr/local/lib/libddcutil.so.4"])
        self.assertEqual(config.retries.items(), {RetryType.WRITE_READ: 6})
        self.assertTrue(config.enumeration.include_invalid)
        self.assertFalse(config.session.wait)

    def test_invalid_yaml(self):
        self.write("library: [unclosed\n")
        config = Config(self.config_path)
        with self.assertLogs('ddcutil_cffi.config', level='ERROR'):
            self.assertFalse(config.load())

    def test_non_mapping_root(self):
        self.write("- just\n- a list\n")
        config = Config(self.config_path)
        with self.assertLogs('ddcutil_cffi.config', level='ERROR'):
            self.assertFalse(config.load())

    def test_invalid_values_fall_back(self):
        config = Config.from_dict({
            'library': {'path': 42, 'names': []},
            'retries': {'write_only': 0, 'write_read': 'many', 'multi_part': True},
            'enumeration': {'include_invalid': 'yes'},
            'session': 'wait',
        })
        self.assertIsNone(config.library.path)
        self.assertEqual(config.library.names, DEFAULT_LIBRARY_NAMES)
        self.assertEqual(config.retries.items(), {})
        self.assertFalse(config.enumeration.include_invalid)
        self.assertTrue(config.session.wait)

    def test_save_and_reload(self):
        config = Config.from_dict({
            'library': {'names': ['libddcutil.so.4', 'libddcutil.so']},
            'retries': {'multi_part': 5},
            'session': {'wait': False},
        }, self.config_path)
        self.assertTrue(config.save())

        with open(self.config_path) as f:
            data = yaml.safe_load(f)
        self.assertEqual(data['retries'], {'multi_part': 5})

        reloaded = Config(self.config_path)
        self.assertTrue(reloaded.load())
        self.assertEqual(reloaded.to_dict(), config.to_dict())

    def test_process_wide_config(self):
        config = Config.from_dict({'session': {'wait': False}})
        set_config(config)
        self.assertIs(get_config(), config)


if __name__ == '__main__':
    unittest.main()
