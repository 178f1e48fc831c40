"""Color-scheme preference resolution.

A preference is read from three tiers, first match wins:

1. the ``slightly-color-scheme`` user meta of an authenticated user;
2. the ``slightly-color-scheme`` cookie;
3. the ``"light dark"`` sentinel, which tells the browser to follow the
   system setting.

Anything other than ``light`` or ``dark`` found in either store is treated as
absent, so a tampered cookie or a stale meta value simply falls through to
the next tier.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from urllib.parse import unquote

from slightly.logging_config import log_with_fields

logger = logging.getLogger(__name__)

COLOR_SCHEME_KEY = "slightly-color-scheme"

_KEY_UNSAFE_CHARS = re.compile(r"[^a-z0-9_\-]")


class ColorScheme(enum.StrEnum):
    light = "light"
    dark = "dark"
    system = "light dark"


VALID_COLOR_SCHEMES: frozenset[str] = frozenset({ColorScheme.light, ColorScheme.dark})


@dataclass(frozen=True)
class Identity:
    """Who is rendering the page.

    ``stored_color_scheme`` is the raw user meta value. It is only ever
    loaded for authenticated users and stays empty for anonymous visitors.
    """

    user_id: int = 0
    stored_color_scheme: str = ""

    @property
    def is_authenticated(self) -> bool:
        return self.user_id > 0


ANONYMOUS = Identity()


def sanitize_color_scheme(value: object) -> str:
    if isinstance(value, str) and value in VALID_COLOR_SCHEMES:
        return value
    return ""


def sanitize_key(raw: str) -> str:
    return _KEY_UNSAFE_CHARS.sub("", raw.lower())


def resolve_color_scheme(
    identity: Identity,
    cookies: Mapping[str, str],
    *,
    key: str = COLOR_SCHEME_KEY,
) -> ColorScheme:
    if identity.is_authenticated:
        stored = sanitize_color_scheme(identity.stored_color_scheme)
        if stored:
            return ColorScheme(stored)

    raw_cookie = cookies.get(key)
    if raw_cookie is not None:
        # Cookie values arrive percent-encoded; the client may encode any character.
        from_cookie = sanitize_color_scheme(sanitize_key(unquote(raw_cookie)))
        if from_cookie:
            return ColorScheme(from_cookie)
        log_with_fields(logger, logging.DEBUG, "ignoring invalid color scheme cookie", value=raw_cookie)

    return ColorScheme.system


def is_dark_scheme(scheme: str) -> bool | None:
    # None means "no explicit choice", which the client keeps distinct from light.
    match scheme:
        case ColorScheme.dark:
            return True
        case ColorScheme.light:
            return False
        case _:
            return None


def toggle_color_scheme(scheme: str) -> ColorScheme:
    """Flip ``dark`` and ``light``. Without an explicit choice, switch to ``dark``."""
    if scheme == ColorScheme.dark:
        return ColorScheme.light
    return ColorScheme.dark
