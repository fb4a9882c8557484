#!/usr/bin/env python3
"""
Tests for logging setup.
"""

import logging
import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ddcutil_cffi.log import LOG_FORMAT, setup_logging


class TestSetupLogging(unittest.TestCase):

    def test_console_only(self):
        with mock.patch.object(logging, "basicConfig") as basic_config:
            setup_logging()
        kwargs = basic_config.call_args.kwargs
        self.assertEqual(kwargs["level"], logging.INFO)
        self.assertEqual(kwargs["format"], LOG_FORMAT)
        self.assertEqual(len(kwargs["handlers"]), 1)

    def test_exported_from_package(self):
        import ddcutil_cffi
        self.assertIs(ddcutil_cffi.setup_logging, setup_logging)

    def test_debug_with_log_file(self):
        temp_dir = Path(tempfile.mkdtemp())
        try:
            log_file = temp_dir / "logs" / "ddc.log"
            with mock.patch.object(logging, "basicConfig") as basic_config:
                setup_logging(debug=True, log_file=log_file)
            kwargs = basic_config.call_args.kwargs
            self.assertEqual(kwargs["level"], logging.DEBUG)
            self.assertTrue(log_file.parent.is_dir())
            file_handlers = [h for h in kwargs["handlers"] if isinstance(h, logging.FileHandler)]
            self.assertEqual(len(file_handlers), 1)
            for handler in file_handlers:
                handler.close()
        finally:
            shutil.rmtree(temp_dir)


if __name__ == '__main__':
    unittest.main()
