#!/usr/bin/env python3
"""
Tests for loading libddcutil and library-wide settings.
"""

import sys
import unittest
from pathlib import Path
from unittest import mock

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ddcutil_cffi import library
from ddcutil_cffi.bindings import RetryType, ffi
from ddcutil_cffi.config import Config, set_config
from ddcutil_cffi.status import DDCRC_ARG, ErrorKind, LibraryNotFoundError, StatusError

from fakes import FakeLibrary


class TestLoadLibrary(unittest.TestCase):

    def setUp(self):
        library.reset_library()
        set_config(Config())
        self.fake = FakeLibrary()

    def tearDown(self):
        library.reset_library()
        set_config(None)

    def opener(self, available):
        def dlopen(name):
            if name in available:
                return self.fake
            raise OSError(f"{name}: cannot open shared object file")
        return dlopen

    def test_loads_first_available_candidate(self):
        config = Config.from_dict({'library': {'names': ['libddcutil.so.5', 'libddcutil.so.4']}})
        with mock.patch.object(ffi, "dlopen", side_effect=self.opener({'libddcutil.so.4'})) as dlopen:
            lib = library.load_library(config)
        self.assertIs(lib, self.fake)
        self.assertEqual([c.args[0] for c in dlopen.call_args_list], ['libddcutil.so.5', 'libddcutil.so.4'])
        self.assertIs(library.loaded_library(), self.fake)

    def test_explicit_path_wins(self):
        config = Config.from_dict({'library': {'path': '/opt/ddcutil/lib/libddcutil.so'}})
        with mock.patch.object(ffi, "dlopen", side_effect=self.opener({'/opt/ddcutil/lib/libddcutil.so'})) as dlopen:
            library.load_library(config)
        dlopen.assert_called_once_with('/opt/ddcutil/lib/libddcutil.so')

    def test_loads_only_once(self):
        with mock.patch.object(ffi, "dlopen", side_effect=self.opener({'libddcutil.so.4'})) as dlopen:
            first = library.load_library()
            second = library.get_library()
        self.assertIs(first, second)
        self.assertEqual(dlopen.call_count, 1)

    def test_missing_library(self):
        with mock.patch.object(ffi, "dlopen", side_effect=self.opener(set())):
            with self.assertRaises(LibraryNotFoundError) as ctx:
                library.load_library()
        self.assertIn("libddcutil.so.4", str(ctx.exception))
        self.assertIsNone(library.loaded_library())

    def test_retries_applied_on_load(self):
        config = Config.from_dict({'retries': {'write_read': 7, 'multi_part': 3}})
        with mock.patch.object(ffi, "dlopen", side_effect=self.opener({'libddcutil.so.4'})):
            library.load_library(config)
        self.assertEqual(self.fake.max_tries, {0: 4, 1: 7, 2: 3})
        self.assertEqual(self.fake.calls["ddca_set_max_tries"], 2)

    def test_rejected_retry_setting(self):
        self.fake.fail["ddca_set_max_tries"] = DDCRC_ARG
        config = Config.from_dict({'retries': {'write_only': 14}})
        with mock.patch.object(ffi, "dlopen", side_effect=self.opener({'libddcutil.so.4'})):
            with self.assertRaises(StatusError) as ctx:
                library.load_library(config)
        self.assertIs(ctx.exception.kind, ErrorKind.ARGUMENT)
        self.assertIsNone(library.loaded_library())

    def test_check_library_available(self):
        with mock.patch.object(ffi, "dlopen", side_effect=self.opener({'libddcutil.so.4'})):
            available, message = library.check_library_available()
        self.assertTrue(available)
        self.assertIn("1.4.1", message)

    def test_check_library_unavailable(self):
        with mock.patch.object(ffi, "dlopen", side_effect=self.opener(set())):
            available, message = library.check_library_available()
        self.assertFalse(available)
        self.assertIn("libddcutil not found", message)


class TestLibrarySettings(unittest.TestCase):

    def setUp(self):
        self.fake = FakeLibrary()
        library.use_library(self.fake)

    def tearDown(self):
        library.reset_library()

    def test_version(self):
        self.assertEqual(library.version(), (1, 4, 1))
        self.assertEqual(library.version_string(), "1.4.1")

    def test_max_tries(self):
        self.assertEqual(library.max_max_tries(), 15)
        self.assertEqual(library.get_max_tries(RetryType.WRITE_READ), 10)
        library.set_max_tries(RetryType.WRITE_READ, 12)
        self.assertEqual(library.get_max_tries(RetryType.WRITE_READ), 12)

    def test_set_max_tries_failure(self):
        self.fake.fail["ddca_set_max_tries"] = DDCRC_ARG
        with self.assertRaises(StatusError) as ctx:
            library.set_max_tries(RetryType.MULTI_PART, 99)
        self.assertIn("MULTI_PART", str(ctx.exception))
        self.assertEqual(self.fake.max_tries[2], 8)

    def test_use_library_applies_config(self):
        other = FakeLibrary()
        library.use_library(other, Config.from_dict({'retries': {'write_only': 2}}))
        self.assertIs(library.get_library(), other)
        self.assertEqual(other.max_tries[0], 2)


if __name__ == '__main__':
    unittest.main()
