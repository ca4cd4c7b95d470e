"""
WillsX Auto-Linker

Automatically links keyword phrases in rendered post and page content to
internal service pages:
- Keyword/URL dictionary loaded from the site's options or CSV/Excel/JSON files
- Headings and existing links are never linked
- Per-post and per-keyword link quotas
"""

__version__ = "1.0.0"
__author__ = "WillsX Team"

from .config import (
    AutoLinkerError,
    ConfigurationError,
    LinkerSettings,
    LinkTarget,
)

from .models import (
    AnnotationResult,
    InsertedLink,
    KeywordEntry,
    SkipReason,
)

from .document import (
    DocumentParseError,
    ElementNode,
    MarkupNode,
    TextNode,
    parse,
    serialize,
)

from .keyword_loader import (
    KeywordLoadError,
    build_dictionary,
    default_keywords,
    load_keywords,
)

from .rules import (
    AnnotationState,
    QuotaTracker,
    RuleEngine,
)

from .store import (
    LinkerConfig,
    OptionsStore,
)

from .engine import AutoLinker, autolink

__all__ = [
    # Configuration
    "AutoLinkerError",
    "ConfigurationError",
    "LinkerSettings",
    "LinkTarget",
    # Models
    "AnnotationResult",
    "InsertedLink",
    "KeywordEntry",
    "SkipReason",
    # Document model
    "DocumentParseError",
    "ElementNode",
    "MarkupNode",
    "TextNode",
    "parse",
    "serialize",
    # Keyword dictionary
    "KeywordLoadError",
    "build_dictionary",
    "default_keywords",
    "load_keywords",
    # Quotas and exclusion zones
    "AnnotationState",
    "QuotaTracker",
    "RuleEngine",
    # Persisted options
    "LinkerConfig",
    "OptionsStore",
    # Engine
    "AutoLinker",
    "autolink",
]
