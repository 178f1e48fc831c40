from __future__ import annotations

from slightly.color_scheme import COLOR_SCHEME_KEY
from slightly.user_meta import (
    COLOR_SCHEME_META,
    MetaField,
    get_user_meta_field,
    register_user_meta,
    rest_user_meta_fields,
)


def test_color_scheme_meta_is_registered_for_rest() -> None:
    meta_field = get_user_meta_field(COLOR_SCHEME_KEY)

    assert meta_field is COLOR_SCHEME_META
    assert meta_field.label == "Color Scheme"
    assert meta_field.default == ""
    assert meta_field in rest_user_meta_fields()


def test_color_scheme_meta_sanitizes_on_write() -> None:
    assert COLOR_SCHEME_META.sanitize("dark") == "dark"
    assert COLOR_SCHEME_META.sanitize("sepia") == ""


def test_private_meta_is_not_exposed_to_rest() -> None:
    private = register_user_meta(
        MetaField(
            key="slightly-test-private",
            label="Private",
            description="Only used by tests.",
            sanitize=str,
        )
    )

    assert get_user_meta_field("slightly-test-private") is private
    assert private not in rest_user_meta_fields()
