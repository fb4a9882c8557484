"""
VCP Feature Model - values, capabilities and feature metadata
=============================================================
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .bindings import ffi, to_text
from .library import get_library
from .status import check_status

logger = logging.getLogger(__name__)

FeatureCode = int

# Common VCP feature codes
VCP_BRIGHTNESS = 0x10
VCP_CONTRAST = 0x12
VCP_COLOR_PRESET = 0x14
VCP_RED_GAIN = 0x16
VCP_GREEN_GAIN = 0x18
VCP_BLUE_GAIN = 0x1A
VCP_INPUT_SOURCE = 0x60
VCP_AUDIO_VOLUME = 0x62
VCP_SHARPNESS = 0x87
VCP_POWER_MODE = 0xD6
VCP_DISPLAY_MODE = 0xDC

# Human-readable names for VCP codes
VCP_NAMES = {
    VCP_BRIGHTNESS: "Brightness",
    VCP_CONTRAST: "Contrast",
    VCP_COLOR_PRESET: "Color Preset",
    VCP_RED_GAIN: "Red Gain",
    VCP_GREEN_GAIN: "Green Gain",
    VCP_BLUE_GAIN: "Blue Gain",
    VCP_INPUT_SOURCE: "Input Source",
    VCP_AUDIO_VOLUME: "Audio Volume",
    VCP_SHARPNESS: "Sharpness",
    VCP_POWER_MODE: "Power Mode",
    VCP_DISPLAY_MODE: "Display Mode",
}


def feature_name(code: FeatureCode) -> str:
    """Readable name of a well-known feature code, else 'VCP 0xNN'."""
    return VCP_NAMES.get(code, f"VCP 0x{code:02x}")


@dataclass(frozen=True, order=True)
class Value:
    """A non-table VCP value: maximum in mh:ml, current in sh:sl."""
    mh: int
    ml: int
    sh: int
    sl: int

    @classmethod
    def from_raw(cls, raw: Any) -> 'Value':
        """Copy a ``DDCA_Non_Table_Vcp_Value`` field by field."""
        return cls(mh=raw.mh, ml=raw.ml, sh=raw.sh, sl=raw.sl)

    @property
    def value(self) -> int:
        """Current value, high byte first."""
        return (self.sh << 8) | self.sl

    @property
    def maximum(self) -> int:
        """Maximum value, high byte first."""
        return (self.mh << 8) | self.ml


@dataclass(frozen=True, order=True)
class MccsVersion:
    """MCCS version reported by a display, e.g. 2.1."""
    major: int
    minor: int

    @classmethod
    def from_raw(cls, raw: Any) -> 'MccsVersion':
        return cls(major=raw.major, minor=raw.minor)

    def to_raw(self) -> Any:
        """
        Allocate a ``DDCA_MCCS_Version_Spec *`` holding this version.

        The returned pointer owns its memory; pass ``ptr[0]`` where the
        struct is expected by value and keep ``ptr`` referenced until the
        call returns.
        """
        return ffi.new("DDCA_MCCS_Version_Spec *", [self.major, self.minor])

    def __str__(self):
        return f"{self.major}.{self.minor}"


@dataclass(frozen=True)
class Capabilities:
    """
    Parsed capability string.

    ``features`` maps each declared feature code to the value bytes listed
    for it, in the order the capability string lists them.
    """
    version: MccsVersion
    features: Dict[FeatureCode, List[int]] = field(default_factory=dict)
    commands: List[int] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: Any) -> 'Capabilities':
        """Deep-copy a ``DDCA_Capabilities`` parse tree."""
        features: Dict[FeatureCode, List[int]] = {}
        vcp_code_ct = raw.vcp_code_ct if raw.vcp_codes != ffi.NULL else 0
        for i in range(vcp_code_ct):
            cap = raw.vcp_codes[i]
            values = []
            if cap.value_ct > 0 and cap.values != ffi.NULL:
                values = list(ffi.unpack(cap.values, cap.value_ct))
            features[cap.feature_code] = values

        commands = []
        if raw.cmd_ct > 0 and raw.cmd_codes != ffi.NULL:
            commands = list(ffi.unpack(raw.cmd_codes, raw.cmd_ct))
        messages = []
        if raw.messages != ffi.NULL:
            messages = [to_text(raw.messages[i]) for i in range(raw.msg_ct)]

        return cls(
            version=MccsVersion.from_raw(raw.version_spec),
            features=features,
            commands=commands,
            messages=messages,
        )

    @classmethod
    def from_cstr(cls, caps: Union[bytes, str], lib: Any = None) -> 'Capabilities':
        """
        Parse a capability string with libddcutil.

        Args:
            caps: Capability string as read from a display; anything after
                an embedded NUL is ignored
            lib: Library to use, or None for the process-wide one

        Returns:
            The parsed Capabilities

        Raises:
            StatusError: If libddcutil cannot parse the string
        """
        if lib is None:
            lib = get_library()
        if isinstance(caps, str):
            caps = caps.encode("ascii", errors="replace")
        caps = bytes(caps).split(b"\0", 1)[0]

        out = ffi.new("DDCA_Capabilities **")
        status = lib.ddca_parse_capabilities_string(caps, out)
        check_status(status, "parse_capabilities_string", lib)

        # The parse tree is ours from here on, whatever happens while copying.
        parsed = out[0]
        try:
            capabilities = cls.from_raw(parsed)
        finally:
            lib.ddca_free_parsed_capabilities(parsed)
        logger.debug(f"Parsed capabilities: MCCS {capabilities.version}, {len(capabilities.features)} features")
        return capabilities


_ALL_FLAG_BITS = 0x87FF


class FeatureFlags(enum.IntFlag):
    """Attribute bits of a VCP feature, as defined by libddcutil."""

    DEPRECATED = 0x0001
    WO_TABLE = 0x0002
    NORMAL_TABLE = 0x0004
    WO_NC = 0x0008
    COMPLEX_NC = 0x0010
    SIMPLE_NC = 0x0020
    COMPLEX_CONT = 0x0040
    STD_CONT = 0x0080
    RW = 0x0100
    WO = 0x0200
    RO = 0x0400
    SYNTHETIC = 0x8000

    @classmethod
    def from_bits_truncate(cls, bits: int) -> 'FeatureFlags':
        """Build a flag set, dropping bits outside the known vocabulary."""
        return cls(bits & _ALL_FLAG_BITS)

    def _any(self, mask: int) -> bool:
        return bool(int(self) & mask)

    @property
    def is_readable(self) -> bool:
        """RO or RW."""
        return self._any(FeatureFlags.RO | FeatureFlags.RW)

    @property
    def is_writable(self) -> bool:
        """WO or RW."""
        return self._any(FeatureFlags.WO | FeatureFlags.RW)

    @property
    def is_cont(self) -> bool:
        """Continuous feature of any subtype."""
        return self._any(FeatureFlags.STD_CONT | FeatureFlags.COMPLEX_CONT)

    @property
    def is_nc(self) -> bool:
        """Non-continuous feature of any subtype."""
        return self._any(FeatureFlags.SIMPLE_NC | FeatureFlags.COMPLEX_NC | FeatureFlags.WO_NC)

    @property
    def is_non_table(self) -> bool:
        return self.is_cont or self.is_nc

    @property
    def is_table(self) -> bool:
        return self._any(FeatureFlags.NORMAL_TABLE | FeatureFlags.WO_TABLE)

    @property
    def is_known(self) -> bool:
        return self.is_nc or self.is_cont or self.is_table


@dataclass(frozen=True)
class FeatureMetadata:
    """Name, description, value labels and flags of one VCP feature."""
    code: FeatureCode
    name: str
    description: str
    value_names: Dict[int, str]
    flags: FeatureFlags

    @classmethod
    def from_raw(cls, raw: Any) -> 'FeatureMetadata':
        """Deep-copy a ``DDCA_Feature_Metadata`` record."""
        flags = FeatureFlags.from_bits_truncate(raw.feature_flags)
        value_names: Dict[int, str] = {}
        # sl_values is only meaningful for simple NC features; the table
        # ends at an entry with code 0 and a NULL name.
        if flags & FeatureFlags.SIMPLE_NC and raw.sl_values != ffi.NULL:
            i = 0
            while True:
                entry = raw.sl_values[i]
                if entry.value_code == 0 and entry.value_name == ffi.NULL:
                    break
                value_names[entry.value_code] = to_text(entry.value_name)
                i += 1

        return cls(
            code=raw.feature_code,
            name=to_text(raw.feature_name),
            description=to_text(raw.feature_desc),
            value_names=value_names,
            flags=flags,
        )

    @classmethod
    def from_code(
        cls,
        code: FeatureCode,
        version: MccsVersion,
        lib: Any = None,
    ) -> 'FeatureMetadata':
        """
        Look up metadata for a feature code under an MCCS version.

        Args:
            code: VCP feature code
            version: MCCS version whose feature definitions to use
            lib: Library to use, or None for the process-wide one

        Raises:
            StatusError: If libddcutil has no metadata for the code
        """
        if lib is None:
            lib = get_library()
        vspec = version.to_raw()
        out = ffi.new("DDCA_Feature_Metadata **")
        status = lib.ddca_get_feature_metadata_by_vspec(code, vspec[0], False, out)
        check_status(status, f"get_feature_metadata({feature_name(code)}, MCCS {version})", lib)

        meta = out[0]
        try:
            return cls.from_raw(meta)
        finally:
            lib.ddca_free_feature_metadata(meta)

    def label(self, value: int) -> Optional[str]:
        """Label declared for an SL value byte, if any."""
        return self.value_names.get(value)
