"""Path-template matching for API endpoints such as /orders/{id}/items."""
from __future__ import annotations

import re
from functools import lru_cache

_PARAM = re.compile(r"\{[^}]+\}")


class EndpointMatcher:
    """Compiled matcher for one path template."""

    def __init__(self, template: str, pattern: re.Pattern[str]) -> None:
        self.template = template
        self.pattern = pattern

    def test(self, path: str) -> bool:
        """Return True when the whole concrete path matches the template."""
        return self.pattern.fullmatch(path) is not None

    def __repr__(self) -> str:
        return f"EndpointMatcher({self.template!r})"


@lru_cache(maxsize=1024)
def compile_template(template: str) -> EndpointMatcher:
    """
    Compile a path template into a matcher.

    `{name}` matches exactly one non-empty path segment, `*` matches any
    sequence of characters, everything else is literal.
    """
    parts = []
    position = 0
    for match in _PARAM.finditer(template):
        parts.append(_literal(template[position:match.start()]))
        parts.append(r"[^/]+")
        position = match.end()
    parts.append(_literal(template[position:]))
    return EndpointMatcher(template, re.compile("^" + "".join(parts) + "$"))


def _literal(text: str) -> str:
    return ".*".join(re.escape(chunk) for chunk in text.split("*"))


def matches(template: str, path: str) -> bool:
    return compile_template(template).test(path)


def strip_path_params(path: str) -> str:
    """Remove {param} placeholders, leaving the surrounding separators."""
    return _PARAM.sub("", path)
