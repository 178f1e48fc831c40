from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from markupsafe import Markup

from slightly.color_scheme import (
    COLOR_SCHEME_KEY,
    Identity,
    is_dark_scheme,
    resolve_color_scheme,
)
from slightly.html_tags import TagProcessor
from slightly.settings import Settings

COLOR_SCHEME_NAMESPACE = "slightly/color-scheme"
TOGGLE_MARKER_CLASS = "toggle-color-scheme"
TOGGLE_TAG_NAME = "button"

STATE_SCRIPT_ID = "slightly-interactivity-state"

TOGGLE_DIRECTIVES: Mapping[str, str] = {
    "data-wp-interactive": COLOR_SCHEME_NAMESPACE,
    "data-wp-on--click": "actions.toggle",
    "data-wp-init": "callbacks.init",
    "data-wp-watch": "callbacks.updateScheme",
    "data-wp-bind--aria-pressed": "state.isDark",
    "data-wp-class--is-dark-scheme": "state.isDark",
}


@dataclass(frozen=True)
class ColorSchemeState:
    """Initial client state for the color-scheme toggle.

    The client runtime flips ``colorScheme`` on click and, on every change,
    writes it back: through the authenticated users endpoint when ``userId``
    is set, otherwise into the ``name`` cookie scoped to
    ``cookiePath``/``cookieDomain``.
    """

    color_scheme: str
    is_dark: bool | None
    user_id: int
    name: str
    cookie_path: str
    cookie_domain: str

    def as_state(self) -> dict[str, Any]:
        return {
            "colorScheme": self.color_scheme,
            "isDark": self.is_dark,
            "userId": self.user_id,
            "name": self.name,
            "cookiePath": self.cookie_path,
            "cookieDomain": self.cookie_domain,
        }


def build_color_scheme_state(
    identity: Identity,
    cookies: Mapping[str, str],
    settings: Settings,
) -> ColorSchemeState:
    scheme = resolve_color_scheme(identity, cookies)
    return ColorSchemeState(
        color_scheme=scheme.value,
        is_dark=is_dark_scheme(scheme),
        user_id=identity.user_id,
        name=COLOR_SCHEME_KEY,
        cookie_path=settings.color_scheme_cookie_path,
        cookie_domain=settings.color_scheme_cookie_domain,
    )


class InteractivityStore:
    """Client state for one render, grouped by store namespace."""

    def __init__(self) -> None:
        self._state: dict[str, dict[str, Any]] = {}

    def set_state(self, namespace: str, values: Mapping[str, Any]) -> dict[str, Any]:
        current = self._state.setdefault(namespace, {})
        current.update(values)
        return current

    def get_state(self, namespace: str) -> dict[str, Any]:
        return dict(self._state.get(namespace, {}))

    def has_state(self, namespace: str) -> bool:
        return namespace in self._state

    def to_json(self) -> str:
        payload = {"state": self._state}
        # "</" must not appear inside a <script> element.
        return json.dumps(payload, ensure_ascii=True, sort_keys=True).replace("</", "<\\/")

    def script_tag(self) -> Markup:
        if not self._state:
            return Markup("")
        return Markup('<script type="application/json" id="{}">{}</script>').format(
            STATE_SCRIPT_ID, Markup(self.to_json())
        )


def inject_toggle_directives(
    html: str,
    directives: Mapping[str, str] = TOGGLE_DIRECTIVES,
    *,
    marker_class: str = TOGGLE_MARKER_CLASS,
    tag_name: str = TOGGLE_TAG_NAME,
) -> tuple[str, bool]:
    """Add ``directives`` to the control following the marker class.

    Returns the new markup and whether the control was found. When it is not
    found the input is returned as is.
    """
    processor = TagProcessor(html)
    if not processor.next_tag(class_name=marker_class) or not processor.next_tag(tag_name):
        return html, False

    for name, value in directives.items():
        processor.set_attribute(name, value)
    return processor.get_updated_html(), True
