from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class RestError:
    code: str
    message: str
    status: int

    def to_payload(self) -> dict[str, object]:
        return {"code": self.code, "message": self.message, "data": {"status": self.status}}


NOT_LOGGED_IN = RestError(
    code="rest_not_logged_in",
    message="You must be logged in to access this endpoint.",
    status=401,
)


def restricted_endpoint_error(
    path: str,
    *,
    authenticated: bool,
    prefix: str,
    endpoints: Iterable[str],
    existing_error: RestError | None = None,
) -> RestError | None:
    """Return the error to send for ``path``, or ``None`` to let the request through.

    An error raised by an earlier check always wins. Matching is a plain
    prefix test, so ``/api/v1/users/me`` is covered by ``/v1/users``.
    """
    if existing_error is not None:
        return existing_error
    if authenticated:
        return None

    rest_root = "/" + prefix.strip("/")
    for endpoint in endpoints:
        if path.startswith(rest_root + endpoint):
            return NOT_LOGGED_IN
    return None
