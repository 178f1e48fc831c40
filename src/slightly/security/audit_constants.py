from __future__ import annotations

from typing import Final, Literal

# String values used in security-audit logging live here so event and reason
# names stay consistent across the codebase.


type AuthAuditEvent = Literal[
    "password_login",
    "signup",
    "logout",
]

type AuthDeniedReason = Literal[
    "account_not_found",
    "inactive_user",
    "invalid_credentials",
    "account_exists",
]

type RestAuditEvent = Literal[
    "restricted_endpoint",
    "user_meta_update",
]

type RestDeniedReason = Literal[
    "not_logged_in",
    "unknown_meta_key",
]


# Auth events
AUTH_EVENT_PASSWORD_LOGIN: Final[str] = "password_login"
AUTH_EVENT_SIGNUP: Final[str] = "signup"
AUTH_EVENT_LOGOUT: Final[str] = "logout"

# Auth denied reasons
AUTH_REASON_ACCOUNT_NOT_FOUND: Final[str] = "account_not_found"
AUTH_REASON_INACTIVE_USER: Final[str] = "inactive_user"
AUTH_REASON_INVALID_CREDENTIALS: Final[str] = "invalid_credentials"
AUTH_REASON_ACCOUNT_EXISTS: Final[str] = "account_exists"

# REST events
REST_EVENT_RESTRICTED_ENDPOINT: Final[str] = "restricted_endpoint"
REST_EVENT_USER_META_UPDATE: Final[str] = "user_meta_update"

# REST denied reasons
REST_REASON_NOT_LOGGED_IN: Final[str] = "not_logged_in"
REST_REASON_UNKNOWN_META_KEY: Final[str] = "unknown_meta_key"
