"""Whitelist HTML sanitizer for markup entering a live document.

Markup is parsed into a scratch BeautifulSoup tree (``html.parser`` builder)
and walked depth-first:

* comments, doctypes, CDATA and processing instructions are dropped;
* text passes through and is re-escaped on output;
* an element whose tag is not whitelisted is replaced by a text node holding
  its full text content, so the words survive but the structure does not;
* a whitelisted element keeps only its allowed attributes, minus event
  handlers, ``javascript:`` values and ``href``/``src`` values with an unsafe
  scheme.

The tree is local to one call and is never attached to anything else.
"""

from __future__ import annotations

import logging
import re
import warnings
from types import MappingProxyType
from typing import Any, Mapping, Optional
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning, NavigableString, ParserRejectedMarkup, Tag
from bs4.element import PreformattedString

from docguard.core.models import SanitizeOptions

logger = logging.getLogger(__name__)

# Tags safe for document content, with their tag-specific attributes
ALLOWED_TAGS: Mapping[str, frozenset[str]] = MappingProxyType({
    # Inline formatting
    "strong": frozenset(), "b": frozenset(), "em": frozenset(), "i": frozenset(),
    "u": frozenset(), "s": frozenset(), "del": frozenset(),
    "code": frozenset(), "pre": frozenset(),
    # Structure
    "p": frozenset(), "br": frozenset(), "div": frozenset(), "span": frozenset(),
    "blockquote": frozenset(),
    # Lists
    "ul": frozenset(), "ol": frozenset(), "li": frozenset(),
    # Headings
    "h1": frozenset(), "h2": frozenset(), "h3": frozenset(),
    "h4": frozenset(), "h5": frozenset(), "h6": frozenset(),
    # Links
    "a": frozenset({"href", "title", "target", "rel"}),
    # Tables
    "table": frozenset(), "thead": frozenset(), "tbody": frozenset(), "tr": frozenset(),
    "th": frozenset({"colspan", "rowspan"}),
    "td": frozenset({"colspan", "rowspan"}),
    # Images
    "img": frozenset({"src", "alt", "title", "width", "height"}),
    # Misc
    "sub": frozenset(), "sup": frozenset(), "mark": frozenset(), "small": frozenset(),
    "abbr": frozenset({"title"}),
})

GLOBAL_ATTRIBUTES: frozenset[str] = frozenset({"class", "id", "data-block-id", "data-theme"})

SAFE_PROTOCOLS: frozenset[str] = frozenset({"http", "https", "mailto"})

# Never accepted, not even through additional_tags
_NEVER_ALLOWED: frozenset[str] = frozenset({"script", "style", "iframe", "object", "embed", "form"})

_URL_ATTRIBUTES = frozenset({"href", "src"})

_PRESERVE_WHITESPACE = frozenset({BeautifulSoup.ROOT_TAG_NAME, "pre", "textarea"})

_C0_OR_SPACE = "".join(chr(c) for c in range(0x21))
_URL_NOISE = re.compile(r"[\t\n\r]")
_VALUE_NOISE = re.compile(r"[\x00-\x20\x7f]+")

_DANGEROUS_PATTERNS = (
    re.compile(r"<script[\s>]", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe[\s>]", re.IGNORECASE),
    re.compile(r"<object[\s>]", re.IGNORECASE),
    re.compile(r"<embed[\s>]", re.IGNORECASE),
    re.compile(r"<form[\s>]", re.IGNORECASE),
)

_ESCAPE_TABLE = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
})


def _text_content(element: Tag) -> str:
    """Concatenated text of all descendant text nodes, like DOM textContent."""
    return "".join(
        str(s) for s in element.descendants
        if isinstance(s, NavigableString) and not isinstance(s, PreformattedString)
    )


def _has_javascript(value: str) -> bool:
    return "javascript:" in _VALUE_NOISE.sub("", value).lower()


class ContentSanitizer:
    """Sanitizes untrusted HTML against a static whitelist."""

    def __init__(self, base_url: str = "http://localhost/", defaults: Optional[SanitizeOptions] = None) -> None:
        self.base_url = base_url
        self.defaults = defaults or SanitizeOptions()

    # ---- Public API ----

    def sanitize(self, html: Any, options: Optional[SanitizeOptions] = None, **overrides: Any) -> str:
        """Return a safe rendition of ``html``. Never raises."""
        if not isinstance(html, str) or not html:
            return ""
        try:
            opts = self._resolve_options(options, overrides)
            allowed = self._allowed_tags(opts)
            soup = self._parse(html)
            self._sanitize_tree(soup, opts, allowed)
            return soup.decode(formatter="minimal")
        except ParserRejectedMarkup:
            logger.warning("Parser rejected markup (%d chars); returning escaped text", len(html))
            return self.escape(html)
        except Exception:
            logger.exception("Sanitizer failed; returning empty content")
            return ""

    def sanitize_paste(self, text: Any, options: Optional[SanitizeOptions] = None, **overrides: Any) -> str:
        """Sanitize clipboard text. Plain text without markup is returned unchanged."""
        if not isinstance(text, str) or not text:
            return ""
        if "<" not in text:
            return text
        return self.sanitize(text, options, **overrides)

    @staticmethod
    def contains_dangerous_content(html: Any) -> bool:
        """Cheap advisory check for obviously dangerous markup.

        This has false negatives and is never a substitute for ``sanitize``.
        """
        if not isinstance(html, str) or not html:
            return False
        return any(p.search(html) for p in _DANGEROUS_PATTERNS)

    @staticmethod
    def escape(text: Any) -> str:
        """Encode the five HTML metacharacters as entities."""
        if not isinstance(text, str) or not text:
            return ""
        return text.translate(_ESCAPE_TABLE)

    def is_safe_url(self, url: Any) -> bool:
        """True for fragments and for http/https/mailto URLs after resolution against base_url."""
        if not isinstance(url, str) or not url:
            return False
        if url.startswith("#"):
            return True
        cleaned = _URL_NOISE.sub("", url.strip(_C0_OR_SPACE))
        if not cleaned:
            return False
        try:
            scheme = urlsplit(urljoin(self.base_url, cleaned)).scheme
        except ValueError:
            return False
        return scheme.lower() in SAFE_PROTOCOLS

    # ---- Internals ----

    def _resolve_options(self, options: Optional[SanitizeOptions], overrides: dict) -> SanitizeOptions:
        base = options or self.defaults
        if not overrides:
            return base
        return SanitizeOptions(**{**base.model_dump(), **overrides})

    @staticmethod
    def _allowed_tags(opts: SanitizeOptions) -> dict[str, frozenset[str]]:
        allowed = dict(ALLOWED_TAGS)
        for tag in opts.additional_tags:
            if tag not in allowed:
                allowed[tag] = frozenset()
        return allowed

    @staticmethod
    def _parse(html: str) -> BeautifulSoup:
        # Preserve whitespace from the root down; the default builder collapses
        # whitespace-only runs, which a second pass would collapse again.
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
            return BeautifulSoup(
                html,
                "html.parser",
                multi_valued_attributes=None,
                preserve_whitespace_tags=_PRESERVE_WHITESPACE,
            )

    def _sanitize_tree(self, root: Tag, opts: SanitizeOptions, allowed: dict[str, frozenset[str]]) -> None:
        """Walk the tree with an explicit stack so nesting depth is unbounded."""
        stack = [root]
        while stack:
            node = stack.pop()
            for child in list(node.children):
                if isinstance(child, Tag):
                    if self._sanitize_element(child, opts, allowed):
                        stack.append(child)
                elif isinstance(child, PreformattedString) or not isinstance(child, NavigableString):
                    child.extract()

    def _sanitize_element(self, element: Tag, opts: SanitizeOptions, allowed: dict[str, frozenset[str]]) -> bool:
        """Clean one element in place. Returns True when its children still need a pass."""
        name = (element.name or "").lower()

        if name not in allowed or name in _NEVER_ALLOWED:
            logger.debug("Flattening disallowed <%s>", name)
            element.replace_with(NavigableString(_text_content(element)))
            return False

        if name == "a" and not opts.allow_links:
            element.replace_with(NavigableString(_text_content(element)))
            return False

        if name == "img" and not opts.allow_images:
            element.decompose()
            return False

        self._sanitize_attributes(element, allowed[name] | GLOBAL_ATTRIBUTES)
        return True

    def _sanitize_attributes(self, element: Tag, allowed_attrs: frozenset[str]) -> None:
        for attr, value in list(element.attrs.items()):
            attr_name = attr.lower()
            text = value if isinstance(value, str) else " ".join(value or [])

            if attr_name not in allowed_attrs or attr_name.startswith("on"):
                del element[attr]
            elif _has_javascript(text):
                del element[attr]
            elif attr_name in _URL_ATTRIBUTES and not self.is_safe_url(text):
                del element[attr]


_default = ContentSanitizer()


def sanitize(html: Any, options: Optional[SanitizeOptions] = None, **overrides: Any) -> str:
    return _default.sanitize(html, options, **overrides)


def sanitize_paste(text: Any, options: Optional[SanitizeOptions] = None, **overrides: Any) -> str:
    return _default.sanitize_paste(text, options, **overrides)


contains_dangerous_content = ContentSanitizer.contains_dangerous_content
escape = ContentSanitizer.escape
