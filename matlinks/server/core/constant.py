"""Application-wide constants."""

PROJECT_NAME = "MatLinks"
API_V1_STR = "/api/v1"

ADMIN_ROLES = ("admin", "owner")
STAFF_ROLES = ("admin", "owner", "instructor")

MIN_PASSWORD_LENGTH = 6
