# -*- coding: utf-8 -*-
"""
Centralized configuration for the WillsX auto-linker.

This module provides the settings dataclass that controls how keyword
links are inserted into rendered content, plus the conversion to and from
the persisted option keys used by the site's options store.
"""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping, Optional


class AutoLinkerError(Exception):
    """Base class for auto-linker errors."""
    pass


class ConfigurationError(AutoLinkerError):
    """Raised when persisted settings or keywords are missing or corrupt."""
    pass


class LinkTarget(Enum):
    """Where an inserted link opens."""
    SAME_WINDOW = "same-window"
    NEW_WINDOW = "new-window"


HEADING_TAGS = frozenset({"h1", "h2", "h3", "h4", "h5", "h6"})

DEFAULT_CONTENT_SCOPES = frozenset({"post", "page"})

# Persisted option keys, one per settings field
OPTION_KEYS = {
    "enabled": "willsx_autolinker_enabled",
    "max_links_per_post": "willsx_autolinker_max_links",
    "max_links_per_keyword": "willsx_autolinker_max_links_per_keyword",
    "link_target": "willsx_autolinker_link_target",
    "case_sensitive": "willsx_autolinker_case_sensitive",
    "excluded_tag_names": "willsx_autolinker_excluded_tags",
    "exclude_existing_links": "willsx_autolinker_exclude_existing_links",
    "eligible_content_scopes": "willsx_autolinker_content_scopes",
    "link_class": "willsx_autolinker_link_class",
}

KEYWORDS_OPTION = "willsx_autolinker_keywords"


@dataclass(frozen=True)
class LinkerSettings:
    """
    Settings for one auto-linking pass.

    Attributes:
        enabled: Master switch. When False the engine returns content untouched.
        max_links_per_post: Maximum links inserted into one document.
            0 means unlimited.
        max_links_per_keyword: Maximum links inserted for any single keyword
            within one document. Must be >= 1.
        link_target: SAME_WINDOW adds no target attribute; NEW_WINDOW adds
            target="_blank" and rel="noopener".
        case_sensitive: Whether keyword matching respects case.
        excluded_tag_names: Elements whose subtrees are never linked.
            Defaults to the heading tags.
        exclude_existing_links: Never link inside an existing <a>.
        eligible_content_scopes: Content types (post, page, ...) that the
            content filter processes.
        link_class: Optional CSS class for inserted anchors.
    """

    enabled: bool = True
    max_links_per_post: int = 5
    max_links_per_keyword: int = 1
    link_target: LinkTarget = LinkTarget.SAME_WINDOW
    case_sensitive: bool = False
    excluded_tag_names: frozenset[str] = field(default=HEADING_TAGS)
    exclude_existing_links: bool = True
    eligible_content_scopes: frozenset[str] = field(default=DEFAULT_CONTENT_SCOPES)
    link_class: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize configuration values."""
        if isinstance(self.max_links_per_post, bool) or not isinstance(self.max_links_per_post, int):
            raise ValueError(
                f"max_links_per_post must be an integer, got {self.max_links_per_post!r}"
            )
        if self.max_links_per_post < 0:
            raise ValueError(
                f"max_links_per_post must be >= 0, got {self.max_links_per_post}"
            )
        if isinstance(self.max_links_per_keyword, bool) or not isinstance(self.max_links_per_keyword, int):
            raise ValueError(
                f"max_links_per_keyword must be an integer, got {self.max_links_per_keyword!r}"
            )
        if self.max_links_per_keyword < 1:
            raise ValueError(
                f"max_links_per_keyword must be >= 1, got {self.max_links_per_keyword}"
            )
        if not isinstance(self.link_target, LinkTarget):
            try:
                target = LinkTarget(self.link_target)
            except ValueError:
                raise ValueError(
                    f"link_target must be 'same-window' or 'new-window', "
                    f"got '{self.link_target}'"
                )
            object.__setattr__(self, "link_target", target)

        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(
            self,
            "excluded_tag_names",
            frozenset(name.strip().lower() for name in self.excluded_tag_names if name.strip()),
        )
        object.__setattr__(
            self,
            "eligible_content_scopes",
            frozenset(s.strip().lower() for s in self.eligible_content_scopes if s.strip()),
        )
        if self.link_class is not None:
            object.__setattr__(self, "link_class", self.link_class.strip() or None)

    @property
    def is_unlimited(self) -> bool:
        """Check if the per-document link quota is unlimited."""
        return self.max_links_per_post == 0

    @property
    def opens_new_window(self) -> bool:
        """Check if inserted links open in a new window."""
        return self.link_target is LinkTarget.NEW_WINDOW

    def is_scope_eligible(self, scope: Optional[str]) -> bool:
        """Check if a content scope is processed by the content filter.

        A scope of None means the caller did not classify the content, and it
        is processed.
        """
        if scope is None:
            return True
        return scope.strip().lower() in self.eligible_content_scopes

    def anchor_attributes(self, url: str) -> dict[str, str]:
        """Build the attribute map for an inserted anchor."""
        attrs = {"href": url}
        if self.opens_new_window:
            attrs["target"] = "_blank"
            attrs["rel"] = "noopener"
        if self.link_class:
            attrs["class"] = self.link_class
        return attrs

    def with_overrides(self, **overrides) -> "LinkerSettings":
        """Return a copy with some fields replaced."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return LinkerSettings(**values)

    @classmethod
    def disabled(cls, **overrides) -> "LinkerSettings":
        """Create settings with the master switch off."""
        return cls(enabled=False, **overrides)

    @classmethod
    def from_options(cls, options: Mapping[str, Any]) -> "LinkerSettings":
        """
        Build settings from persisted option values.

        Keys that are absent keep their defaults.

        Args:
            options: Mapping of option key to stored value.

        Returns:
            LinkerSettings built from the stored values.

        Raises:
            ConfigurationError: If a stored value has the wrong type or is
                out of range.
        """
        values: dict[str, Any] = {}
        for name, key in OPTION_KEYS.items():
            if key not in options:
                continue
            raw = options[key]
            try:
                values[name] = _coerce_option(name, raw)
            except (TypeError, ValueError) as e:
                raise ConfigurationError(f"Invalid value for {key}: {e}")

        try:
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid auto-linker settings: {e}")

    def to_options(self) -> dict[str, Any]:
        """Convert settings to JSON-serializable option values."""
        return {
            OPTION_KEYS["enabled"]: self.enabled,
            OPTION_KEYS["max_links_per_post"]: self.max_links_per_post,
            OPTION_KEYS["max_links_per_keyword"]: self.max_links_per_keyword,
            OPTION_KEYS["link_target"]: self.link_target.value,
            OPTION_KEYS["case_sensitive"]: self.case_sensitive,
            OPTION_KEYS["excluded_tag_names"]: sorted(self.excluded_tag_names),
            OPTION_KEYS["exclude_existing_links"]: self.exclude_existing_links,
            OPTION_KEYS["eligible_content_scopes"]: sorted(self.eligible_content_scopes),
            OPTION_KEYS["link_class"]: self.link_class,
        }


_BOOL_FIELDS = {"enabled", "case_sensitive", "exclude_existing_links"}
_INT_FIELDS = {"max_links_per_post", "max_links_per_keyword"}
_SET_FIELDS = {"excluded_tag_names", "eligible_content_scopes"}


def _coerce_option(name: str, raw: Any) -> Any:
    """Convert one stored option value into the settings field type."""
    if name in _BOOL_FIELDS:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int):
            return raw != 0
        if isinstance(raw, str):
            value = raw.strip().lower()
            if value in ("1", "true", "yes", "on"):
                return True
            if value in ("0", "false", "no", "off", ""):
                return False
        raise ValueError(f"expected a boolean, got {raw!r}")

    if name in _INT_FIELDS:
        if isinstance(raw, bool):
            raise ValueError(f"expected an integer, got {raw!r}")
        if isinstance(raw, int):
            return raw
        if isinstance(raw, str) and raw.strip().lstrip("-").isdigit():
            return int(raw.strip())
        raise ValueError(f"expected an integer, got {raw!r}")

    if name in _SET_FIELDS:
        if isinstance(raw, str):
            return frozenset(part for part in raw.replace(",", " ").split())
        if isinstance(raw, (list, tuple, set, frozenset)):
            if not all(isinstance(item, str) for item in raw):
                raise ValueError(f"expected a list of strings, got {raw!r}")
            return frozenset(raw)
        raise ValueError(f"expected a list of strings, got {raw!r}")

    if name == "link_target":
        if not isinstance(raw, str):
            raise ValueError(f"expected a string, got {raw!r}")
        return LinkTarget(raw.strip().lower())

    if name == "link_class":
        if raw is None or isinstance(raw, str):
            return raw
        raise ValueError(f"expected a string, got {raw!r}")

    return raw
