"""
Displays - enumeration, identity and open sessions
==================================================

``DisplayInfo.enumerate()`` returns a :class:`DisplayInfoList` that owns the
array allocated by libddcutil; each element is deep-copied into an immutable
:class:`DisplayInfo` on access. ``DisplayInfo.open()`` returns a
:class:`Display` session that owns one display handle.

Both owners release their foreign resource exactly once: on ``close()``, on
leaving a ``with`` block, or when garbage collected, whichever comes first.
"""

import functools
import logging
import threading
import weakref
from dataclasses import astuple, dataclass, field
from typing import Any, Iterator, Optional

from .bindings import EDID_SIZE, IOMode, ffi
from .config import get_config
from .features import (
    Capabilities,
    FeatureCode,
    FeatureMetadata,
    MccsVersion,
    Value,
    feature_name,
)
from .library import get_library
from .status import PathDiscriminantError, ResourceClosedError, check_status

logger = logging.getLogger(__name__)


@functools.total_ordering
class DisplayPath:
    """
    Transport address of a display: an I2cPath, UsbPath or AdlPath.

    Paths of different transports order by transport (I2C, USB, ADL).
    """
    _rank = 0

    @staticmethod
    def from_raw(io_path: Any, usb_bus: int, usb_device: int) -> 'DisplayPath':
        """
        Build a path from a ``DDCA_IO_Path`` and the record's USB fields.

        Raises:
            PathDiscriminantError: If ``io_path.io_mode`` is not a known mode
        """
        mode = io_path.io_mode
        if mode == IOMode.I2C:
            return I2cPath(bus_number=io_path.path.i2c_busno)
        if mode == IOMode.USB:
            return UsbPath(
                bus_number=usb_bus,
                device_number=usb_device,
                hiddev_device_number=io_path.path.hiddev_devno,
            )
        if mode == IOMode.ADL:
            return AdlPath(
                adapter_index=io_path.path.adlno.iAdapterIndex,
                display_index=io_path.path.adlno.iDisplayIndex,
            )
        raise PathDiscriminantError(mode)

    def _key(self):
        return (self._rank, astuple(self))

    def __lt__(self, other):
        if not isinstance(other, DisplayPath):
            return NotImplemented
        return self._key() < other._key()


@dataclass(frozen=True)
class I2cPath(DisplayPath):
    """Display reached through /dev/i2c-N."""
    bus_number: int
    _rank = 0

    def __str__(self):
        return f"i2c-{self.bus_number}"


@dataclass(frozen=True)
class UsbPath(DisplayPath):
    """USB-connected display; hiddev_device_number is -1 when unknown."""
    bus_number: int
    device_number: int
    hiddev_device_number: int = -1
    _rank = 1

    def __str__(self):
        return f"usb-{self.bus_number}:{self.device_number} (hiddev {self.hiddev_device_number})"


@dataclass(frozen=True)
class AdlPath(DisplayPath):
    """Display reached through the AMD Display Library adapter."""
    adapter_index: int
    display_index: int
    _rank = 2

    def __str__(self):
        return f"adl-{self.adapter_index}.{self.display_index}"


@dataclass(frozen=True)
class DisplayInfo:
    """
    Immutable snapshot of one detected display.

    Text fields come from the EDID and are not guaranteed to be valid text;
    the ``*_bytes`` attributes hold the raw bytes and the same-named
    properties give a lossy UTF-8 decoding.
    """
    handle: Any = field(repr=False, compare=False)
    display_number: int
    manufacturer_id_bytes: bytes
    model_name_bytes: bytes
    serial_number_bytes: bytes
    edid: bytes = field(repr=False)
    path: DisplayPath
    product_code: int = 0
    mccs_version: Optional[MccsVersion] = None

    @classmethod
    def from_raw(cls, raw: Any) -> 'DisplayInfo':
        """Deep-copy one ``DDCA_Display_Info`` record out of a foreign list."""
        try:
            path = DisplayPath.from_raw(raw.path, raw.usb_bus, raw.usb_device)
        except PathDiscriminantError as e:
            # Deliberate fallback: a record with an unknown io_mode becomes a
            # USB path with hiddev -1 so one bad record does not fail the scan.
            logger.warning(f"Display {raw.dispno}: {e}; assuming USB path")
            path = UsbPath(
                bus_number=raw.usb_bus,
                device_number=raw.usb_device,
                hiddev_device_number=-1,
            )

        return cls(
            handle=raw.dref,
            display_number=raw.dispno,
            manufacturer_id_bytes=ffi.string(raw.mfg_id),
            model_name_bytes=ffi.string(raw.model_name),
            serial_number_bytes=ffi.string(raw.sn),
            edid=bytes(ffi.buffer(raw.edid_bytes, EDID_SIZE)),
            path=path,
            product_code=raw.product_code,
            mccs_version=MccsVersion.from_raw(raw.vcp_version),
        )

    @staticmethod
    def enumerate(include_invalid: Optional[bool] = None, lib: Any = None) -> 'DisplayInfoList':
        """
        List the displays libddcutil has detected.

        Args:
            include_invalid: Also list displays that do not support DDC/CI;
                None uses the configured default
            lib: Library to use, or None for the process-wide one

        Returns:
            DisplayInfoList, empty if no displays are connected

        Raises:
            StatusError: If the enumeration call itself fails
        """
        if lib is None:
            lib = get_library()
        if include_invalid is None:
            include_invalid = get_config().enumeration.include_invalid

        out = ffi.new("DDCA_Display_Info_List **")
        status = lib.ddca_get_display_info_list2(bool(include_invalid), out)
        check_status(status, "get_display_info_list", lib)
        return DisplayInfoList(out[0], lib)

    def open(self, wait: Optional[bool] = None, lib: Any = None) -> 'Display':
        """
        Open a session on this display.

        Args:
            wait: Block until the display is available if another session
                holds it; None uses the configured default
            lib: Library to use, or None for the process-wide one

        Returns:
            An open Display; use it as a context manager or call close()

        Raises:
            StatusError: If the display cannot be opened
        """
        if lib is None:
            lib = get_library()
        if wait is None:
            wait = get_config().session.wait

        out = ffi.new("DDCA_Display_Handle *")
        status = lib.ddca_open_display2(self.handle, bool(wait), out)
        check_status(status, f"open_display({self.display_number})", lib)
        return Display(out[0], lib, info=self)

    @property
    def manufacturer_id(self) -> str:
        return self.manufacturer_id_bytes.decode("utf-8", errors="replace")

    @property
    def model_name(self) -> str:
        return self.model_name_bytes.decode("utf-8", errors="replace")

    @property
    def serial_number(self) -> str:
        return self.serial_number_bytes.decode("utf-8", errors="replace")

    def __str__(self):
        return f"{self.manufacturer_id} {self.model_name} (Display {self.display_number}, {self.path})"


def _free_display_info_list(lib: Any, handle: Any) -> None:
    logger.debug(f"Freeing display info list {handle}")
    lib.ddca_free_display_info_list(handle)


class DisplayInfoList:
    """
    Read-only view of a display list allocated by libddcutil.

    Indexing and iteration produce independent DisplayInfo copies, which
    stay valid after the list is closed.
    """

    def __init__(self, handle: Any, lib: Any):
        self._lock = threading.Lock()
        self._lib = lib
        if handle == ffi.NULL:
            # Nothing was allocated, so there is nothing to free.
            self._handle = None
            self._count = 0
            self._finalizer = None
        else:
            self._handle = handle
            self._count = max(handle.ct, 0)
            self._finalizer = weakref.finalize(self, _free_display_info_list, lib, handle)
        self._closed = False
        logger.debug(f"Enumerated {self._count} display(s)")

    @property
    def closed(self) -> bool:
        if self._finalizer is not None and not self._finalizer.alive:
            return True
        return self._closed

    @property
    def raw(self) -> Any:
        """The underlying ``DDCA_Display_Info_List *`` (None when empty and unallocated)."""
        self._check_open()
        return self._handle

    def _check_open(self):
        if self.closed:
            raise ResourceClosedError("Display info list is closed")

    def __len__(self) -> int:
        return self._count

    def get(self, index: int) -> DisplayInfo:
        """
        Copy out the record at ``index``.

        Raises:
            IndexError: If index is out of range
            ResourceClosedError: If the list has been closed
        """
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError(f"Display index out of range: {index}")
        with self._lock:
            self._check_open()
            return DisplayInfo.from_raw(self._handle.info[index])

    def __getitem__(self, index: int) -> DisplayInfo:
        return self.get(index)

    def __iter__(self) -> Iterator[DisplayInfo]:
        for index in range(self._count):
            yield self.get(index)

    def close(self) -> None:
        """Free the foreign list. Safe to call more than once."""
        with self._lock:
            self._closed = True
            if self._finalizer is not None:
                self._finalizer()

    def __enter__(self) -> 'DisplayInfoList':
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def __repr__(self):
        if self.closed:
            return "DisplayInfoList(closed)"
        return f"DisplayInfoList({list(self)!r})"


def _close_display(lib: Any, handle: Any) -> int:
    logger.debug(f"Closing display handle {handle}")
    return lib.ddca_close_display(handle)


class Display:
    """
    An open session on one display.

    Calls on one session are serialized; the foreign handle stands for
    exclusive access to the display's DDC channel.
    """

    def __init__(self, handle: Any, lib: Any, info: Optional[DisplayInfo] = None):
        """
        Take ownership of an open ``DDCA_Display_Handle``.

        Args:
            handle: Handle returned by ``ddca_open_display2``
            lib: Library that opened it
            info: The DisplayInfo the session was opened from, if known
        """
        self._handle = handle
        self._lib = lib
        self.info = info
        self._lock = threading.Lock()
        self._finalizer = weakref.finalize(self, _close_display, lib, handle)
        logger.debug(f"Opened display handle {handle}")

    @property
    def closed(self) -> bool:
        return not self._finalizer.alive

    @property
    def raw(self) -> Any:
        """The underlying ``DDCA_Display_Handle``."""
        self._check_open()
        return self._handle

    def _check_open(self):
        if self.closed:
            raise ResourceClosedError("Display is closed")

    def capabilities_string(self) -> bytes:
        """
        Read the raw capability string from the display.

        Raises:
            StatusError: If the read fails
        """
        with self._lock:
            self._check_open()
            out = ffi.new("char **")
            status = self._lib.ddca_get_capabilities_string(self._handle, out)
            check_status(status, "get_capabilities_string", self._lib)
            buffer = out[0]
            try:
                return ffi.string(buffer) if buffer != ffi.NULL else b""
            finally:
                if buffer != ffi.NULL:
                    self._lib.free(buffer)

    def capabilities(self) -> Capabilities:
        """Read and parse the display's capability string."""
        return Capabilities.from_cstr(self.capabilities_string(), lib=self._lib)

    def vcp_set_value(self, code: FeatureCode, value: int) -> None:
        """
        Write a byte value to a non-table feature.

        Raises:
            StatusError: If the display rejects the write
        """
        with self._lock:
            self._check_open()
            # The byte value goes in SL; SH stays 0.
            status = self._lib.ddca_set_non_table_vcp_value(self._handle, code, 0, value)
            check_status(status, f"set {feature_name(code)} to {value}", self._lib)
        logger.debug(f"Set {feature_name(code)} to {value}")

    def vcp_get_value(self, code: FeatureCode) -> Value:
        """
        Read a non-table feature.

        Returns:
            Value with current and maximum

        Raises:
            StatusError: If the read fails
        """
        with self._lock:
            self._check_open()
            out = ffi.new("DDCA_Non_Table_Vcp_Value *")
            status = self._lib.ddca_get_non_table_vcp_value(self._handle, code, out)
            check_status(status, f"get {feature_name(code)}", self._lib)
            return Value.from_raw(out)

    def vcp_get_table(self, code: FeatureCode) -> bytes:
        """
        Read a table feature.

        Raises:
            StatusError: If the read fails
        """
        with self._lock:
            self._check_open()
            out = ffi.new("DDCA_Table_Vcp_Value **")
            status = self._lib.ddca_get_table_vcp_value(self._handle, code, out)
            check_status(status, f"get table {feature_name(code)}", self._lib)
            table = out[0]
            if table == ffi.NULL:
                return b""
            try:
                if table.bytect == 0 or table.bytes == ffi.NULL:
                    return b""
                return bytes(ffi.buffer(table.bytes, table.bytect))
            finally:
                self._lib.ddca_free_table_vcp_value(table)

    def feature_metadata(self, code: FeatureCode) -> FeatureMetadata:
        """
        Metadata for a feature under this display's MCCS version.

        Falls back to MCCS 2.1 definitions when the version is unknown.
        """
        version = self.info.mccs_version if self.info else None
        if version is None or (version.major, version.minor) == (0, 0):
            version = MccsVersion(2, 1)
        return FeatureMetadata.from_code(code, version, lib=self._lib)

    def close(self) -> None:
        """
        Close the session. Safe to call more than once.

        Raises:
            StatusError: If libddcutil reports an error closing the handle
        """
        status = self._release()
        if status is not None:
            check_status(status, "close_display", self._lib)

    def _release(self) -> Optional[int]:
        """Close the handle if still open; the close status, or None if already closed."""
        with self._lock:
            if not self._finalizer.alive:
                return None
            return self._finalizer()

    def __enter__(self) -> 'Display':
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        if exc_type is None:
            self.close()
            return
        # Keep the error already propagating; only log a failed close.
        status = self._release()
        if status:
            logger.warning(f"Closing display after {exc_type.__name__} failed with status {status}")

    def __repr__(self):
        state = "closed" if self.closed else "open"
        if self.info is not None:
            return f"<Display {self.info.display_number} {self.info.model_name!r} ({state})>"
        return f"<Display ({state})>"
