class ErrorCode:
    # auth
    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_USER = "INVALID_USER"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    USER_EXISTS = "USER_EXISTS"

    # users / roles
    USER_NOT_FOUND = "USER_NOT_FOUND"
    SAME_ROLE = "SAME_ROLE"
    INSUFFICIENT_PERMISSIONS = "INSUFFICIENT_PERMISSIONS"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"

    # courses / enrollments
    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    COURSE_NOT_PUBLISHED = "COURSE_NOT_PUBLISHED"
    COURSE_NOT_PUBLIC = "COURSE_NOT_PUBLIC"
    COURSE_ACCESS_DENIED = "COURSE_ACCESS_DENIED"
    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    ENROLLMENT_NOT_FOUND = "ENROLLMENT_NOT_FOUND"

    # videos
    VIDEO_NOT_FOUND = "VIDEO_NOT_FOUND"
    VIDEO_NOT_IN_COURSE = "VIDEO_NOT_IN_COURSE"
    VIDEO_NOT_ATTACHED = "VIDEO_NOT_ATTACHED"
    VIDEO_ORDER_CONFLICT = "VIDEO_ORDER_CONFLICT"
    DUPLICATE_ORDER = "DUPLICATE_ORDER"
    DUPLICATE_VIDEO_ID = "DUPLICATE_VIDEO_ID"

    # generic
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"
