"""
Keyword dictionary building and loading.

The dictionary is an ordered list of (keyword, URL) entries. Declaration
order is match priority. This module handles:
- Normalizing raw pairs into a deduplicated dictionary
- Loading pairs from CSV, Excel (.xlsx, .xls) and JSON files
- The default dictionary seeded on first setup
"""

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import urlparse

import pandas as pd

from .config import AutoLinkerError
from .models import KeywordEntry

logger = logging.getLogger(__name__)


class KeywordLoadError(AutoLinkerError):
    """Raised when keyword loading fails."""
    pass


KeywordPairs = Union[Mapping[str, str], Iterable[Any]]

# Common column name variations for keyword data
KEYWORD_COLUMN_VARIANTS = ["keyword", "keywords", "term", "phrase", "anchor", "anchor_text"]
URL_COLUMN_VARIANTS = ["url", "link", "href", "target_url", "destination", "destination_url"]

# Default dictionary: keyword -> path under the site's home URL
DEFAULT_KEYWORD_PATHS = [
    ("will", "/services/wills/"),
    ("estate planning", "/services/estate-planning/"),
    ("power of attorney", "/services/power-of-attorney/"),
    ("probate", "/services/probate/"),
    ("inheritance tax", "/services/inheritance-tax/"),
]


def _dedup_key(keyword: str, case_sensitive: bool) -> str:
    return keyword if case_sensitive else keyword.casefold()


def _iter_pairs(pairs: KeywordPairs) -> Iterable[tuple[Any, Any]]:
    """Yield (keyword, url) from a mapping, entries, dicts or 2-tuples."""
    if isinstance(pairs, Mapping):
        yield from pairs.items()
        return
    for item in pairs:
        if isinstance(item, KeywordEntry):
            yield item.keyword, item.url
        elif isinstance(item, Mapping):
            yield item.get("keyword"), item.get("url")
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            yield item[0], item[1]
        else:
            logger.warning(f"Ignoring malformed keyword entry: {item!r}")


def build_dictionary(pairs: KeywordPairs, case_sensitive: bool = False) -> list[KeywordEntry]:
    """
    Normalize raw keyword/URL pairs into an ordered dictionary.

    Entries with an empty keyword or URL are dropped. Duplicate keywords are
    removed, keeping the first occurrence.

    Args:
        pairs: Mapping of keyword to URL, or an iterable of KeywordEntry,
            {"keyword": ..., "url": ...} dicts or (keyword, url) tuples.
        case_sensitive: Treat keywords differing only in case as distinct.

    Returns:
        Ordered list of KeywordEntry objects.
    """
    seen: set[str] = set()
    entries: list[KeywordEntry] = []

    for keyword, url in _iter_pairs(pairs):
        if not isinstance(keyword, str) or not isinstance(url, str):
            continue
        keyword = keyword.strip()
        url = url.strip()
        if not keyword or not url:
            continue

        key = _dedup_key(keyword, case_sensitive)
        if key in seen:
            logger.debug(f"Dropping duplicate keyword: {keyword}")
            continue
        seen.add(key)
        entries.append(KeywordEntry(keyword=keyword, url=url))

    return entries


def sort_longest_first(entries: list[KeywordEntry]) -> list[KeywordEntry]:
    """
    Reorder a dictionary so longer keywords take priority.

    Longer phrases ("estate planning advice") then win over phrases they
    contain ("estate planning"). Ties keep declaration order.
    """
    return sorted(entries, key=lambda entry: -len(entry.keyword))


def is_valid_link_url(url: str) -> bool:
    """Check if a URL is usable as a link target (http(s) or site-relative)."""
    url = url.strip()
    if not url:
        return False
    if url.startswith("/") and not url.startswith("//"):
        return True
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def sanitize_keywords(pairs: KeywordPairs, case_sensitive: bool = False) -> list[KeywordEntry]:
    """
    Sanitize keywords submitted from the admin screen before saving.

    Like build_dictionary, but also drops entries whose URL is not an
    http(s) or site-relative link.
    """
    entries = build_dictionary(pairs, case_sensitive=case_sensitive)
    sanitized = []
    for entry in entries:
        if is_valid_link_url(entry.url):
            sanitized.append(entry)
        else:
            logger.warning(f"Dropping keyword '{entry.keyword}' with invalid URL: {entry.url}")
    return sanitized


def default_keywords(home_url: str) -> list[KeywordEntry]:
    """
    Build the default dictionary for a site.

    Args:
        home_url: The site's home URL, e.g. "https://willsx.co.uk".

    Returns:
        The default service-page keywords.
    """
    base = home_url.rstrip("/")
    return [KeywordEntry(keyword=kw, url=f"{base}{path}") for kw, path in DEFAULT_KEYWORD_PATHS]


# =============================================================================
# FILE LOADING
# =============================================================================

def _normalize_column_name(name: str) -> str:
    """Normalize column name for matching."""
    return str(name).lower().strip().replace(" ", "_").replace("-", "_")


def _find_column(df: pd.DataFrame, variants: list[str]) -> Optional[str]:
    """
    Find a column in the DataFrame matching one of the variant names.

    Args:
        df: The DataFrame to search.
        variants: List of possible column name variants.

    Returns:
        The actual column name if found, None otherwise.
    """
    normalized_columns = {_normalize_column_name(col): col for col in df.columns}

    for variant in variants:
        normalized = _normalize_column_name(variant)
        if normalized in normalized_columns:
            return normalized_columns[normalized]

    return None


def _parse_keyword_dataframe(df: pd.DataFrame) -> list[tuple[str, str]]:
    """
    Read (keyword, url) pairs out of a DataFrame.

    Raises:
        KeywordLoadError: If the file is empty or required columns are missing.
    """
    if df.empty:
        raise KeywordLoadError("Keyword file is empty")

    keyword_col = _find_column(df, KEYWORD_COLUMN_VARIANTS)
    if keyword_col is None:
        raise KeywordLoadError(
            f"No keyword column found. Expected one of: {', '.join(KEYWORD_COLUMN_VARIANTS)}. "
            f"Found columns: {', '.join(str(c) for c in df.columns)}"
        )
    url_col = _find_column(df, URL_COLUMN_VARIANTS)
    if url_col is None:
        raise KeywordLoadError(
            f"No URL column found. Expected one of: {', '.join(URL_COLUMN_VARIANTS)}. "
            f"Found columns: {', '.join(str(c) for c in df.columns)}"
        )

    pairs: list[tuple[str, str]] = []
    for _, row in df.iterrows():
        keyword = row[keyword_col]
        url = row[url_col]
        if pd.isna(keyword) or pd.isna(url):
            continue
        pairs.append((str(keyword), str(url)))
    return pairs


def load_keywords_from_csv(file_path: Union[str, Path]) -> list[tuple[str, str]]:
    """
    Load keyword/URL pairs from a CSV file.

    Raises:
        KeywordLoadError: If the file cannot be read or parsed.
    """
    path = Path(file_path)

    if not path.exists():
        raise KeywordLoadError(f"File not found: {file_path}")

    try:
        df = pd.read_csv(path, encoding="utf-8")
    except UnicodeDecodeError:
        try:
            df = pd.read_csv(path, encoding="latin-1")
        except Exception as e:
            raise KeywordLoadError(f"Failed to read CSV file: {e}")
    except pd.errors.EmptyDataError:
        raise KeywordLoadError("Keyword file is empty")
    except Exception as e:
        raise KeywordLoadError(f"Failed to read CSV file: {e}")

    return _parse_keyword_dataframe(df)


def load_keywords_from_excel(file_path: Union[str, Path], sheet_name: Optional[str] = None) -> list[tuple[str, str]]:
    """
    Load keyword/URL pairs from an Excel file.

    Args:
        file_path: Path to the Excel file (.xlsx or .xls).
        sheet_name: Optional sheet name to read from. Defaults to first sheet.

    Raises:
        KeywordLoadError: If the file cannot be read or parsed.
    """
    path = Path(file_path)

    if not path.exists():
        raise KeywordLoadError(f"File not found: {file_path}")

    try:
        if sheet_name:
            df = pd.read_excel(path, sheet_name=sheet_name)
        else:
            df = pd.read_excel(path)
    except Exception as e:
        raise KeywordLoadError(f"Failed to read Excel file: {e}")

    return _parse_keyword_dataframe(df)


def load_keywords_from_json(file_path: Union[str, Path]) -> KeywordPairs:
    """
    Load keyword/URL pairs from a JSON file.

    The file holds either an object mapping keyword to URL, or a list of
    {"keyword": ..., "url": ...} objects.

    Raises:
        KeywordLoadError: If the file cannot be read or has the wrong shape.
    """
    path = Path(file_path)

    if not path.exists():
        raise KeywordLoadError(f"File not found: {file_path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise KeywordLoadError(f"Failed to read JSON file: {e}")

    if isinstance(data, dict) or isinstance(data, list):
        return data
    raise KeywordLoadError("JSON keyword file must hold an object or a list")


def load_keywords(
    file_path: Union[str, Path],
    sheet_name: Optional[str] = None,
    case_sensitive: bool = False,
) -> list[KeywordEntry]:
    """
    Load a keyword dictionary from a CSV, Excel or JSON file.

    Automatically detects file type based on extension.

    Args:
        file_path: Path to the keyword file.
        sheet_name: Optional sheet name for Excel files.
        case_sensitive: Passed to build_dictionary for deduplication.

    Returns:
        Ordered, deduplicated list of KeywordEntry objects.

    Raises:
        KeywordLoadError: If the file cannot be read or holds no usable entries.
    """
    path = Path(file_path)
    suffix = path.suffix.lower()

    if suffix == ".csv":
        pairs = load_keywords_from_csv(path)
    elif suffix in (".xlsx", ".xls"):
        pairs = load_keywords_from_excel(path, sheet_name)
    elif suffix == ".json":
        pairs = load_keywords_from_json(path)
    else:
        raise KeywordLoadError(
            f"Unsupported file format: {suffix}. Supported formats: .csv, .xlsx, .xls, .json"
        )

    entries = build_dictionary(pairs, case_sensitive=case_sensitive)
    if not entries:
        raise KeywordLoadError("No valid keywords found in file")

    logger.info(f"Loaded {len(entries)} keywords from {path.name}")
    return entries
