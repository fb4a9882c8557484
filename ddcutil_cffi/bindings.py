"""
Foreign Declarations - libddcutil 1.x C API
===========================================

Type and function declarations for libddcutil, used by cffi in ABI mode.
Nothing here opens the shared library; see :mod:`ddcutil_cffi.library`.
"""

import enum

from cffi import FFI

EDID_MFG_ID_FIELD_SIZE = 4
EDID_MODEL_NAME_FIELD_SIZE = 14
EDID_SN_ASCII_FIELD_SIZE = 14
EDID_SIZE = 128


class IOMode(enum.IntEnum):
    """Transport discriminant of ``DDCA_IO_Path``."""
    I2C = 0
    ADL = 1
    USB = 2


class RetryType(enum.IntEnum):
    """Retry classes understood by ``ddca_set_max_tries``."""
    WRITE_ONLY = 0
    WRITE_READ = 1
    MULTI_PART = 2


CDEF = """
typedef int DDCA_Status;
typedef void * DDCA_Display_Ref;
typedef void * DDCA_Display_Handle;
typedef uint8_t DDCA_Vcp_Feature_Code;
typedef uint16_t DDCA_Feature_Flags;

typedef struct {
    uint8_t major;
    uint8_t minor;
    uint8_t micro;
} DDCA_Ddcutil_Version_Spec;

typedef struct {
    uint8_t major;
    uint8_t minor;
} DDCA_MCCS_Version_Spec;

typedef struct {
    int iAdapterIndex;
    int iDisplayIndex;
} DDCA_Adlno;

typedef struct {
    int io_mode;
    union {
        int        i2c_busno;
        DDCA_Adlno adlno;
        int        hiddev_devno;
    } path;
} DDCA_IO_Path;

typedef struct {
    char                   marker[4];
    int                    dispno;
    DDCA_IO_Path           path;
    int                    usb_bus;
    int                    usb_device;
    char                   mfg_id[4];
    char                   model_name[14];
    char                   sn[14];
    uint16_t               product_code;
    uint8_t                edid_bytes[128];
    DDCA_MCCS_Version_Spec vcp_version;
    DDCA_Display_Ref       dref;
} DDCA_Display_Info;

typedef struct {
    int               ct;
    DDCA_Display_Info info[];
} DDCA_Display_Info_List;

typedef struct {
    uint8_t mh;
    uint8_t ml;
    uint8_t sh;
    uint8_t sl;
} DDCA_Non_Table_Vcp_Value;

typedef struct {
    uint16_t  bytect;
    uint8_t * bytes;
} DDCA_Table_Vcp_Value;

typedef struct {
    char                  marker[4];
    DDCA_Vcp_Feature_Code feature_code;
    int                   value_ct;
    uint8_t *             values;
} DDCA_Cap_Vcp;

typedef struct {
    char                   marker[4];
    char *                 unparsed_string;
    DDCA_MCCS_Version_Spec version_spec;
    int                    cmd_ct;
    uint8_t *              cmd_codes;
    int                    vcp_code_ct;
    DDCA_Cap_Vcp *         vcp_codes;
    int                    msg_ct;
    char **                messages;
} DDCA_Capabilities;

typedef struct {
    uint8_t value_code;
    char *  value_name;
} DDCA_Feature_Value_Entry;

typedef struct {
    char                       marker[4];
    DDCA_Vcp_Feature_Code      feature_code;
    DDCA_MCCS_Version_Spec     vcp_version;
    DDCA_Feature_Flags         feature_flags;
    DDCA_Feature_Value_Entry * sl_values;
    char *                     feature_name;
    char *                     feature_desc;
} DDCA_Feature_Metadata;

DDCA_Ddcutil_Version_Spec ddca_ddcutil_version(void);
const char * ddca_ddcutil_version_string(void);

const char * ddca_rc_name(DDCA_Status status_code);
const char * ddca_rc_desc(DDCA_Status status_code);

int ddca_max_max_tries(void);
int ddca_get_max_tries(int retry_type);
DDCA_Status ddca_set_max_tries(int retry_type, int max_tries);

DDCA_Status ddca_get_display_info_list2(bool include_invalid_displays,
                                        DDCA_Display_Info_List ** dlist_loc);
void ddca_free_display_info_list(DDCA_Display_Info_List * dlist);

DDCA_Status ddca_open_display2(DDCA_Display_Ref ddca_dref, bool wait,
                               DDCA_Display_Handle * ddca_dh_loc);
DDCA_Status ddca_close_display(DDCA_Display_Handle ddca_dh);

DDCA_Status ddca_get_capabilities_string(DDCA_Display_Handle ddca_dh,
                                         char ** caps_loc);
DDCA_Status ddca_parse_capabilities_string(char * capabilities_string,
                                           DDCA_Capabilities ** parsed_capabilities_loc);
void ddca_free_parsed_capabilities(DDCA_Capabilities * parsed_capabilities);

DDCA_Status ddca_get_non_table_vcp_value(DDCA_Display_Handle ddca_dh,
                                         DDCA_Vcp_Feature_Code feature_code,
                                         DDCA_Non_Table_Vcp_Value * valrec);
DDCA_Status ddca_set_non_table_vcp_value(DDCA_Display_Handle ddca_dh,
                                         DDCA_Vcp_Feature_Code feature_code,
                                         uint8_t hi_byte,
                                         uint8_t lo_byte);
DDCA_Status ddca_get_table_vcp_value(DDCA_Display_Handle ddca_dh,
                                     DDCA_Vcp_Feature_Code feature_code,
                                     DDCA_Table_Vcp_Value ** table_value_loc);
void ddca_free_table_vcp_value(DDCA_Table_Vcp_Value * table_value);

DDCA_Status ddca_get_feature_metadata_by_vspec(DDCA_Vcp_Feature_Code feature_code,
                                               DDCA_MCCS_Version_Spec vspec,
                                               bool create_default_if_not_found,
                                               DDCA_Feature_Metadata ** info_loc);
void ddca_free_feature_metadata(DDCA_Feature_Metadata * info);

void free(void * ptr);
"""

ffi = FFI()
ffi.cdef(CDEF)


def to_bytes(ptr) -> bytes:
    """Copy a NUL-terminated C string (or char array) into bytes; NULL gives b''."""
    if ptr == ffi.NULL:
        return b""
    return ffi.string(ptr)


def to_text(ptr) -> str:
    """Like :func:`to_bytes`, decoded lossily as UTF-8."""
    return to_bytes(ptr).decode("utf-8", errors="replace")
