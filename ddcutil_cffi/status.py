"""
Status Translation - libddcutil status codes to exceptions
==========================================================

Every libddcutil call returns a signed ``DDCA_Status``. Zero is success;
negative values are either ``DDCRC_*`` codes (the -3000 range) or negated
``errno`` values. :func:`error_kind` maps any integer to an :class:`ErrorKind`
and :func:`check_status` raises :class:`StatusError` for failures.
"""

import enum
import errno
import logging
from typing import Any, Dict, Optional

from .bindings import to_text

logger = logging.getLogger(__name__)


class ErrorKind(enum.Enum):
    """Coarse classification of a failed foreign call."""
    INVALID_DISPLAY = "invalid_display"
    IO = "io"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"
    ARGUMENT = "argument"
    NOT_FOUND = "not_found"
    PARSE = "parse"
    BUSY = "busy"
    PERMISSION = "permission"
    UNINITIALIZED = "uninitialized"
    OTHER = "other"


# DDCRC_* codes from ddcutil_status_codes.h
DDCRC_OK = 0
DDCRC_DDC_DATA = -3001
DDCRC_NULL_RESPONSE = -3002
DDCRC_MULTI_PART_READ_FRAGMENT = -3003
DDCRC_ALL_TRIES_ZERO = -3004
DDCRC_REPORTED_UNSUPPORTED = -3005
DDCRC_READ_ALL_ZERO = -3006
DDCRC_BAD_BYTECT = -3007
DDCRC_READ_EQUALS_WRITE = -3008
DDCRC_INVALID_MODE = -3009
DDCRC_RETRIES = -3010
DDCRC_EDID = -3011
DDCRC_DETERMINED_UNSUPPORTED = -3012
DDCRC_ARG = -3013
DDCRC_INVALID_OPERATION = -3014
DDCRC_UNIMPLEMENTED = -3015
DDCRC_UNINITIALIZED = -3016
DDCRC_UNKNOWN_FEATURE = -3017
DDCRC_INTERPRETATION_FAILED = -3018
DDCRC_MULTI_FEATURE_ERROR = -3019
DDCRC_INVALID_DISPLAY = -3020
DDCRC_INTERNAL_ERROR = -3021
DDCRC_OTHER = -3022
DDCRC_VERIFY = -3023
DDCRC_NOT_FOUND = -3024
DDCRC_LOCKED = -3025
DDCRC_ALREADY_OPEN = -3026
DDCRC_BAD_DATA = -3027
DDCRC_INVALID_CONFIG_FILE = -3028
DDCRC_DISCONNECTED = -3029
DDCRC_DPMS_ASLEEP = -3030
DDCRC_FLOCKED = -3031
DDCRC_QUIESCED = -3032
DDCRC_CONFIG_ERROR = -3033

STATUS_KINDS: Dict[int, ErrorKind] = {
    DDCRC_DDC_DATA: ErrorKind.IO,
    DDCRC_NULL_RESPONSE: ErrorKind.IO,
    DDCRC_MULTI_PART_READ_FRAGMENT: ErrorKind.IO,
    DDCRC_ALL_TRIES_ZERO: ErrorKind.IO,
    DDCRC_REPORTED_UNSUPPORTED: ErrorKind.UNSUPPORTED,
    DDCRC_READ_ALL_ZERO: ErrorKind.IO,
    DDCRC_BAD_BYTECT: ErrorKind.IO,
    DDCRC_READ_EQUALS_WRITE: ErrorKind.IO,
    DDCRC_INVALID_MODE: ErrorKind.ARGUMENT,
    DDCRC_RETRIES: ErrorKind.TIMEOUT,
    DDCRC_EDID: ErrorKind.IO,
    DDCRC_DETERMINED_UNSUPPORTED: ErrorKind.UNSUPPORTED,
    DDCRC_ARG: ErrorKind.ARGUMENT,
    DDCRC_INVALID_OPERATION: ErrorKind.ARGUMENT,
    DDCRC_UNIMPLEMENTED: ErrorKind.UNSUPPORTED,
    DDCRC_UNINITIALIZED: ErrorKind.UNINITIALIZED,
    DDCRC_UNKNOWN_FEATURE: ErrorKind.UNSUPPORTED,
    DDCRC_INTERPRETATION_FAILED: ErrorKind.PARSE,
    DDCRC_MULTI_FEATURE_ERROR: ErrorKind.OTHER,
    DDCRC_INVALID_DISPLAY: ErrorKind.INVALID_DISPLAY,
    DDCRC_INTERNAL_ERROR: ErrorKind.OTHER,
    DDCRC_OTHER: ErrorKind.OTHER,
    DDCRC_VERIFY: ErrorKind.IO,
    DDCRC_NOT_FOUND: ErrorKind.NOT_FOUND,
    DDCRC_LOCKED: ErrorKind.BUSY,
    DDCRC_ALREADY_OPEN: ErrorKind.BUSY,
    DDCRC_BAD_DATA: ErrorKind.PARSE,
    DDCRC_INVALID_CONFIG_FILE: ErrorKind.ARGUMENT,
    DDCRC_DISCONNECTED: ErrorKind.INVALID_DISPLAY,
    DDCRC_DPMS_ASLEEP: ErrorKind.INVALID_DISPLAY,
    DDCRC_FLOCKED: ErrorKind.BUSY,
    DDCRC_QUIESCED: ErrorKind.BUSY,
    DDCRC_CONFIG_ERROR: ErrorKind.ARGUMENT,
}

# libddcutil also passes through negated errno values
ERRNO_KINDS: Dict[int, ErrorKind] = {
    errno.EIO: ErrorKind.IO,
    errno.EREMOTEIO: ErrorKind.IO,
    errno.EPROTO: ErrorKind.IO,
    errno.ETIMEDOUT: ErrorKind.TIMEOUT,
    errno.EINVAL: ErrorKind.ARGUMENT,
    errno.ERANGE: ErrorKind.ARGUMENT,
    errno.ENOENT: ErrorKind.NOT_FOUND,
    errno.ENODEV: ErrorKind.INVALID_DISPLAY,
    errno.ENXIO: ErrorKind.INVALID_DISPLAY,
    errno.EBADF: ErrorKind.INVALID_DISPLAY,
    errno.EBUSY: ErrorKind.BUSY,
    errno.EAGAIN: ErrorKind.BUSY,
    errno.EACCES: ErrorKind.PERMISSION,
    errno.EPERM: ErrorKind.PERMISSION,
    errno.ENOSYS: ErrorKind.UNSUPPORTED,
    errno.EOPNOTSUPP: ErrorKind.UNSUPPORTED,
    errno.ENOMEM: ErrorKind.OTHER,
}


class DDCError(Exception):
    """Base class for all errors raised by this package."""
    pass


class StatusError(DDCError):
    """A libddcutil call returned a nonzero status code."""

    def __init__(
        self,
        status: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        context: Optional[str] = None,
    ):
        self.status = status
        self.kind = error_kind(status)
        self.name = name or f"status {status}"
        self.description = description or ""
        self.context = context
        message = f"DDC status: {self.name}"
        if self.description:
            message += f" - {self.description}"
        if context:
            message += f" ({context})"
        super().__init__(message)


class PathDiscriminantError(DDCError):
    """A ``DDCA_IO_Path`` carried an io_mode this layer does not know."""

    def __init__(self, io_mode: int):
        self.io_mode = io_mode
        super().__init__(f"Unrecognized display io_mode: {io_mode}")


class ResourceClosedError(DDCError):
    """A display session or display list was used after release."""
    pass


class LibraryNotFoundError(DDCError):
    """libddcutil could not be loaded."""
    pass


def error_kind(status: int) -> ErrorKind:
    """
    Classify a nonzero status code.

    Total over all integers: codes outside the known tables map to
    ``ErrorKind.OTHER``.
    """
    kind = STATUS_KINDS.get(status)
    if kind is not None:
        return kind
    if status < 0:
        kind = ERRNO_KINDS.get(-status)
        if kind is not None:
            return kind
    return ErrorKind.OTHER


def _describe(status: int, lib: Any):
    if lib is None:
        return None, None
    try:
        return to_text(lib.ddca_rc_name(status)), to_text(lib.ddca_rc_desc(status))
    except (AttributeError, TypeError) as e:
        logger.debug(f"Status name lookup failed for {status}: {e}")
        return None, None


def check_status(status: int, context: Optional[str] = None, lib: Any = None) -> None:
    """
    Raise if a foreign call failed.

    Args:
        status: Value returned by the foreign call
        context: Short description of the call, added to the message
        lib: Loaded library used to look up the status name, if any

    Raises:
        StatusError: If ``status`` is nonzero
    """
    if status == 0:
        return
    name, description = _describe(status, lib)
    raise StatusError(status, name, description, context)
