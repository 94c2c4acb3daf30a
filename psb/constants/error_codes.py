# psb/constants/error_codes.py

from enum import Enum


class ErrorCode(str, Enum):
    # Generic
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Users
    USER_EMAIL_EXISTS = "USER_EMAIL_EXISTS"
    USER_ROLE_INVALID = "USER_ROLE_INVALID"

    # PSB orders
    PSB_ORDER_NOT_FOUND = "PSB_ORDER_NOT_FOUND"
    PSB_ORDER_NO_CONFLICT = "PSB_ORDER_NO_CONFLICT"
    PSB_NO_CHANGES = "PSB_NO_CHANGES"
    PSB_REPORT_TYPE_INVALID = "PSB_REPORT_TYPE_INVALID"
    PSB_IMPORT_FILE_INVALID = "PSB_IMPORT_FILE_INVALID"
    PSB_DATE_RANGE_INVALID = "PSB_DATE_RANGE_INVALID"
