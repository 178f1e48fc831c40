from __future__ import annotations

import pytest

from slightly.color_scheme import (
    ANONYMOUS,
    COLOR_SCHEME_KEY,
    ColorScheme,
    Identity,
    is_dark_scheme,
    resolve_color_scheme,
    sanitize_color_scheme,
    sanitize_key,
    toggle_color_scheme,
)

INVALID_VALUES = ["", "Dark mode", "blue", "light dark", "0", "<script>", "lightdark"]


def test_no_identity_and_no_cookie_resolves_to_system_default() -> None:
    scheme = resolve_color_scheme(ANONYMOUS, {})

    assert scheme == ColorScheme.system
    assert scheme.value == "light dark"
    assert is_dark_scheme(scheme) is None


def test_stored_value_wins_over_cookie_for_signed_in_user() -> None:
    identity = Identity(user_id=7, stored_color_scheme="dark")

    assert resolve_color_scheme(identity, {COLOR_SCHEME_KEY: "light"}) == ColorScheme.dark


def test_anonymous_visitor_uses_cookie() -> None:
    assert resolve_color_scheme(ANONYMOUS, {COLOR_SCHEME_KEY: "dark"}) == ColorScheme.dark


def test_stored_value_is_ignored_for_anonymous_identity() -> None:
    identity = Identity(user_id=0, stored_color_scheme="dark")

    assert resolve_color_scheme(identity, {}) == ColorScheme.system


def test_signed_in_user_without_stored_value_falls_back_to_cookie() -> None:
    identity = Identity(user_id=3)

    assert resolve_color_scheme(identity, {COLOR_SCHEME_KEY: "light"}) == ColorScheme.light


@pytest.mark.parametrize("value", INVALID_VALUES)
def test_invalid_stored_value_falls_through_to_cookie(value: str) -> None:
    identity = Identity(user_id=3, stored_color_scheme=value)

    assert resolve_color_scheme(identity, {COLOR_SCHEME_KEY: "light"}) == ColorScheme.light
    assert resolve_color_scheme(identity, {}) == ColorScheme.system


@pytest.mark.parametrize("value", INVALID_VALUES)
def test_invalid_cookie_resolves_to_system_default(value: str) -> None:
    assert resolve_color_scheme(ANONYMOUS, {COLOR_SCHEME_KEY: value}) == ColorScheme.system


def test_cookie_is_decoded_like_a_key() -> None:
    assert resolve_color_scheme(ANONYMOUS, {COLOR_SCHEME_KEY: " DARK "}) == ColorScheme.dark
    assert resolve_color_scheme(ANONYMOUS, {COLOR_SCHEME_KEY: "li'ght"}) == ColorScheme.light


def test_percent_encoded_cookie_is_decoded_before_sanitizing() -> None:
    assert resolve_color_scheme(ANONYMOUS, {COLOR_SCHEME_KEY: "%64ark"}) == ColorScheme.dark
    assert resolve_color_scheme(ANONYMOUS, {COLOR_SCHEME_KEY: "%20LIGHT%0A"}) == ColorScheme.light
    assert resolve_color_scheme(ANONYMOUS, {COLOR_SCHEME_KEY: "light%20dark"}) == ColorScheme.system


def test_other_cookie_names_are_ignored() -> None:
    assert resolve_color_scheme(ANONYMOUS, {"color-scheme": "dark"}) == ColorScheme.system
    assert resolve_color_scheme(ANONYMOUS, {"other": "dark"}, key="other") == ColorScheme.dark


def test_sanitize_color_scheme_only_keeps_light_and_dark() -> None:
    assert sanitize_color_scheme("light") == "light"
    assert sanitize_color_scheme("dark") == "dark"
    assert sanitize_color_scheme("light dark") == ""
    assert sanitize_color_scheme("DARK") == ""
    assert sanitize_color_scheme(None) == ""
    assert sanitize_color_scheme(1) == ""


def test_sanitize_key_strips_unsafe_characters() -> None:
    assert sanitize_key("Dark-Mode_2!") == "dark-mode_2"
    assert sanitize_key("%20dark%3B") == "20dark3b"


def test_is_dark_scheme_is_tri_state() -> None:
    assert is_dark_scheme("dark") is True
    assert is_dark_scheme("light") is False
    assert is_dark_scheme("light dark") is None
    assert is_dark_scheme(ColorScheme.dark) is True


def test_toggle_flips_between_light_and_dark() -> None:
    assert toggle_color_scheme(ColorScheme.dark) == ColorScheme.light
    assert toggle_color_scheme(ColorScheme.light) == ColorScheme.dark
    assert toggle_color_scheme(toggle_color_scheme(ColorScheme.dark)) == ColorScheme.dark


def test_toggle_from_system_default_picks_dark() -> None:
    assert toggle_color_scheme(ColorScheme.system) == ColorScheme.dark


def test_identity_authentication_follows_user_id() -> None:
    assert ANONYMOUS.is_authenticated is False
    assert Identity(user_id=1).is_authenticated is True
