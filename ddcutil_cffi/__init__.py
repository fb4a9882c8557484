"""
ddcutil-cffi - safe access to libddcutil from Python
====================================================

Read and write VCP features of DDC/CI monitors through libddcutil:
- Enumerate displays as immutable snapshots
- Open sessions that always close their handle exactly once
- Parse capability strings into plain Python values
- Typed errors for every libddcutil status code
"""

import logging

__version__ = "1.0.0"
__author__ = "ddcutil-cffi"

from .config import Config
from .display import (
    AdlPath,
    Display,
    DisplayInfo,
    DisplayInfoList,
    DisplayPath,
    I2cPath,
    UsbPath,
)
from .features import (
    Capabilities,
    FeatureCode,
    FeatureFlags,
    FeatureMetadata,
    MccsVersion,
    Value,
)
from .library import check_library_available, load_library
from .log import setup_logging
from .status import (
    DDCError,
    ErrorKind,
    LibraryNotFoundError,
    PathDiscriminantError,
    ResourceClosedError,
    StatusError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AdlPath",
    "Capabilities",
    "Config",
    "DDCError",
    "Display",
    "DisplayInfo",
    "DisplayInfoList",
    "DisplayPath",
    "ErrorKind",
    "FeatureCode",
    "FeatureFlags",
    "FeatureMetadata",
    "I2cPath",
    "LibraryNotFoundError",
    "MccsVersion",
    "PathDiscriminantError",
    "ResourceClosedError",
    "StatusError",
    "UsbPath",
    "Value",
    "check_library_available",
    "load_library",
    "setup_logging",
]
