from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from slightly.color_scheme import COLOR_SCHEME_KEY, sanitize_color_scheme


@dataclass(frozen=True)
class MetaField:
    key: str
    label: str
    description: str
    sanitize: Callable[[object], str]
    default: str = ""
    show_in_rest: bool = False


_registered: dict[str, MetaField] = {}


def register_user_meta(meta_field: MetaField) -> MetaField:
    _registered[meta_field.key] = meta_field
    return meta_field


def get_user_meta_field(key: str) -> MetaField | None:
    return _registered.get(key)


def rest_user_meta_fields() -> list[MetaField]:
    return [meta_field for meta_field in _registered.values() if meta_field.show_in_rest]


COLOR_SCHEME_META = register_user_meta(
    MetaField(
        key=COLOR_SCHEME_KEY,
        label="Color Scheme",
        description="Stores the preferred color scheme for the site.",
        sanitize=sanitize_color_scheme,
        show_in_rest=True,
    )
)
