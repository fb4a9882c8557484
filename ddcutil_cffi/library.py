"""
Library State - loading and global settings of libddcutil
=========================================================

libddcutil keeps process-wide state (retry limits, detected displays). This
module opens the shared library once, applies configured settings, and hands
the same binding to every caller.
"""

import logging
import threading
from typing import Any, Optional, Tuple

from .bindings import RetryType, ffi, to_text
from .config import Config, get_config
from .status import LibraryNotFoundError, check_status

logger = logging.getLogger(__name__)

_lock = threading.RLock()
_library: Any = None


def _apply_settings(lib: Any, config: Config) -> None:
    for retry_type, count in config.retries.items().items():
        status = lib.ddca_set_max_tries(int(retry_type), count)
        check_status(status, f"set_max_tries({retry_type.name}, {count})", lib)
        logger.debug(f"Set {retry_type.name} max tries to {count}")


def load_library(config: Optional[Config] = None) -> Any:
    """
    Open libddcutil and apply library-wide settings.

    Safe to call repeatedly and from several threads; only the first call
    opens the library.

    Args:
        config: Settings to use, or None for the process-wide configuration

    Returns:
        The cffi library object

    Raises:
        LibraryNotFoundError: If none of the candidate names can be opened
        StatusError: If applying a retry setting fails
    """
    global _library
    with _lock:
        if _library is not None:
            return _library

        config = config or get_config()
        candidates = config.library.candidates()
        errors = []
        lib = None
        for name in candidates:
            try:
                lib = ffi.dlopen(name)
                break
            except OSError as e:
                logger.debug(f"Could not open {name}: {e}")
                errors.append(f"{name}: {e}")
        if lib is None:
            raise LibraryNotFoundError(
                "libddcutil not found. Install the 'libddcutil' package "
                f"(tried {', '.join(candidates)}): {'; '.join(errors)}"
            )

        _apply_settings(lib, config)
        _library = lib
        logger.info(f"Loaded libddcutil {version_string()}")
        return _library


def get_library() -> Any:
    """Return the loaded library, loading it with defaults if necessary."""
    with _lock:
        if _library is not None:
            return _library
    return load_library()


def use_library(lib: Any, config: Optional[Config] = None) -> None:
    """
    Install an already-opened libddcutil binding.

    Args:
        lib: Object exposing the libddcutil functions
        config: Settings to apply to it, or None to apply none
    """
    global _library
    with _lock:
        if config is not None:
            _apply_settings(lib, config)
        _library = lib


def reset_library() -> None:
    """Forget the installed library. The native library itself stays mapped."""
    global _library
    with _lock:
        _library = None


def loaded_library() -> Any:
    """The installed library, or None without loading anything."""
    with _lock:
        return _library


def version() -> Tuple[int, int, int]:
    """libddcutil version as (major, minor, micro)."""
    spec = get_library().ddca_ddcutil_version()
    return (spec.major, spec.minor, spec.micro)


def version_string() -> str:
    """libddcutil version string, e.g. '1.4.1'."""
    return to_text(get_library().ddca_ddcutil_version_string())


def max_max_tries() -> int:
    """Upper bound accepted by :func:`set_max_tries`."""
    return get_library().ddca_max_max_tries()


def get_max_tries(retry_type: RetryType) -> int:
    return get_library().ddca_get_max_tries(int(retry_type))


def set_max_tries(retry_type: RetryType, count: int) -> None:
    """
    Set the library-wide try count for one retry class.

    Raises:
        StatusError: If libddcutil rejects the count
    """
    lib = get_library()
    status = lib.ddca_set_max_tries(int(retry_type), count)
    check_status(status, f"set_max_tries({RetryType(retry_type).name}, {count})", lib)


def check_library_available() -> Tuple[bool, str]:
    """
    Check if libddcutil can be loaded.

    Returns:
        Tuple of (is_available, message)
    """
    try:
        load_library()
        return True, f"libddcutil found: {version_string()}"
    except LibraryNotFoundError as e:
        return False, str(e)
    except Exception as e:
        return False, f"Error loading libddcutil: {e}"
