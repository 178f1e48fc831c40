"""Forward-only start-tag cursor for adding attributes to rendered HTML.

``html.parser`` finds where each start tag sits in the source; edits are
spliced back into the original string so all untouched markup, including
whitespace, quoting and attribute order, comes back unchanged.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from html import escape, unescape
from html.parser import HTMLParser

_TAG_NAME_RE = re.compile(r"<[^\s/>]+")
_ATTR_RE = re.compile(
    r"""(?P<name>[^\s"'>/=]+)(?:\s*=\s*(?P<value>"[^"]*"|'[^']*'|[^\s"'>]+))?"""
)


@dataclass
class _TagSpan:
    name: str
    start: int
    end: int
    updates: dict[str, str] = field(default_factory=dict)


class _StartTagScanner(HTMLParser):
    def __init__(self, html: str) -> None:
        super().__init__(convert_charrefs=False)
        self._line_starts = [0]
        self._line_starts.extend(match.end() for match in re.finditer("\n", html))
        self.tags: list[_TagSpan] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._record(tag)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._record(tag)

    def _record(self, tag: str) -> None:
        text = self.get_starttag_text()
        if text is None:
            return
        line, column = self.getpos()
        start = self._line_starts[line - 1] + column
        self.tags.append(_TagSpan(name=tag, start=start, end=start + len(text)))


def _scan_start_tags(html: str) -> list[_TagSpan]:
    scanner = _StartTagScanner(html)
    scanner.feed(html)
    scanner.close()
    return scanner.tags


def _closing_index(tag_text: str) -> int:
    if tag_text.endswith("/>"):
        return len(tag_text) - 2
    return len(tag_text) - 1


def _attribute_spans(tag_text: str) -> dict[str, tuple[int, int, str | None]]:
    """Map lower-cased attribute names to ``(start, end, raw_value)`` in ``tag_text``.

    Only the first occurrence of a repeated attribute counts, which is also
    what browsers do.
    """
    name_match = _TAG_NAME_RE.match(tag_text)
    offset = name_match.end() if name_match else 1
    body = tag_text[offset : _closing_index(tag_text)]

    spans: dict[str, tuple[int, int, str | None]] = {}
    for match in _ATTR_RE.finditer(body):
        name = match.group("name").lower()
        if name in spans:
            continue
        spans[name] = (offset + match.start(), offset + match.end(), match.group("value"))
    return spans


def _unquote(raw_value: str) -> str:
    if len(raw_value) >= 2 and raw_value[0] == raw_value[-1] and raw_value[0] in "\"'":
        raw_value = raw_value[1:-1]
    return unescape(raw_value)


def _rewrite_tag(tag_text: str, updates: dict[str, str]) -> str:
    spans = _attribute_spans(tag_text)
    replacements: list[tuple[int, int, str]] = []
    appended: list[str] = []

    for name, value in updates.items():
        rendered = f'{name}="{escape(value, quote=True)}"'
        span = spans.get(name.lower())
        if span is None:
            appended.append(rendered)
        else:
            replacements.append((span[0], span[1], rendered))

    if appended:
        close = _closing_index(tag_text)
        head = tag_text[:close]
        if head[-1:].isspace():
            insertion = " ".join(appended) + " "
        else:
            insertion = " " + " ".join(appended)
        tag_text = head + insertion + tag_text[close:]

    # Appending happens after every existing attribute, so earlier spans stay valid.
    for start, end, rendered in sorted(replacements, reverse=True):
        tag_text = tag_text[:start] + rendered + tag_text[end:]
    return tag_text


class TagProcessor:
    """Walk the start tags of an HTML fragment and edit their attributes.

    >>> processor = TagProcessor('<div class="a"><button>Go</button></div>')
    >>> processor.next_tag(class_name="a") and processor.next_tag("button")
    True
    >>> processor.set_attribute("aria-pressed", "false")
    True
    >>> processor.get_updated_html()
    '<div class="a"><button aria-pressed="false">Go</button></div>'
    """

    def __init__(self, html: str) -> None:
        self._html = html
        self._tags = _scan_start_tags(html)
        self._cursor = -1

    def _current(self) -> _TagSpan | None:
        if 0 <= self._cursor < len(self._tags):
            return self._tags[self._cursor]
        return None

    def next_tag(self, tag_name: str | None = None, *, class_name: str | None = None) -> bool:
        wanted = tag_name.lower() if tag_name is not None else None
        for index in range(self._cursor + 1, len(self._tags)):
            self._cursor = index
            if wanted is not None and self._tags[index].name != wanted:
                continue
            if class_name is not None and not self.has_class(class_name):
                continue
            return True

        self._cursor = len(self._tags)
        return False

    def get_attribute(self, name: str) -> str | bool | None:
        """Return the attribute value, ``True`` for a bare boolean attribute, else ``None``."""
        current = self._current()
        if current is None:
            return None

        lowered = name.lower()
        for updated_name, value in current.updates.items():
            if updated_name.lower() == lowered:
                return value

        span = _attribute_spans(self._html[current.start : current.end]).get(lowered)
        if span is None:
            return None
        raw_value = span[2]
        if raw_value is None:
            return True
        return _unquote(raw_value)

    def has_class(self, class_name: str) -> bool:
        classes = self.get_attribute("class")
        if not isinstance(classes, str):
            return False
        return class_name in classes.split()

    def set_attribute(self, name: str, value: str) -> bool:
        current = self._current()
        if current is None:
            return False
        for existing in list(current.updates):
            if existing.lower() == name.lower():
                del current.updates[existing]
        current.updates[name] = value
        return True

    def get_updated_html(self) -> str:
        html = self._html
        for tag in reversed(self._tags):
            if not tag.updates:
                continue
            rewritten = _rewrite_tag(html[tag.start : tag.end], tag.updates)
            html = html[: tag.start] + rewritten + html[tag.end :]
        return html
