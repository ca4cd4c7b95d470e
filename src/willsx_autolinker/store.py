"""
Persisted auto-linker options with a read-through cache.

Settings and the keyword dictionary live in a JSON options file, one key per
option (the same keys the admin screen writes). The store loads them once per
process and hands out an immutable snapshot. Only an explicit admin save
replaces the snapshot; readers holding an older snapshot keep a consistent
view until they call load() again.
"""

import json
import logging
import os
import tempfile
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

from .config import KEYWORDS_OPTION, ConfigurationError, LinkerSettings
from .keyword_loader import KeywordPairs, build_dictionary, sanitize_keywords
from .models import KeywordEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkerConfig:
    """Snapshot of persisted settings and keyword dictionary."""
    settings: LinkerSettings = field(default_factory=LinkerSettings)
    dictionary: tuple[KeywordEntry, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Check if there are no keywords to link."""
        return not self.dictionary


class OptionsStore:
    """
    Read-through cache over the JSON options file.

    load() never raises: a missing file gives default settings and an
    empty dictionary; a corrupt one is logged and gives the same.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._snapshot: Optional[LinkerConfig] = None

    def load(self) -> LinkerConfig:
        """Return the cached snapshot, reading the file on first use."""
        snapshot = self._snapshot
        if snapshot is not None:
            return snapshot

        with self._lock:
            if self._snapshot is None:
                self._snapshot = self._read_snapshot()
            return self._snapshot

    def invalidate(self) -> None:
        """Drop the cached snapshot so the next load() re-reads the file."""
        with self._lock:
            self._snapshot = None

    def save_keywords(self, pairs: KeywordPairs) -> list[KeywordEntry]:
        """
        Sanitize and persist a new keyword dictionary.

        Args:
            pairs: Keyword/URL pairs as submitted by the admin screen.

        Returns:
            The entries actually saved.
        """
        with self._lock:
            options = self._read_options_lenient()
            settings = self._settings_or_default(options)
            entries = sanitize_keywords(pairs, case_sensitive=settings.case_sensitive)
            options[KEYWORDS_OPTION] = [{"keyword": e.keyword, "url": e.url} for e in entries]
            self._write_options(options)
            self._snapshot = LinkerConfig(settings=settings, dictionary=tuple(entries))

        logger.info(f"Saved {len(entries)} auto-linker keywords to {self.path}")
        return entries

    def update_settings(self, settings: LinkerSettings) -> None:
        """Persist new settings, keeping the stored keyword dictionary."""
        with self._lock:
            options = self._read_options_lenient()
            options.update(settings.to_options())
            self._write_options(options)
            dictionary = build_dictionary(
                options.get(KEYWORDS_OPTION) or [],
                case_sensitive=settings.case_sensitive,
            )
            self._snapshot = LinkerConfig(settings=settings, dictionary=tuple(dictionary))

        logger.info(f"Saved auto-linker settings to {self.path}")

    # -------------------------------------------------------------------------
    # File access
    # -------------------------------------------------------------------------

    def _read_snapshot(self) -> LinkerConfig:
        try:
            options = self._read_options()
        except ConfigurationError as e:
            logger.warning(f"Auto-linker options unusable, falling back to defaults: {e}")
            return LinkerConfig()

        settings = self._settings_or_default(options)

        raw_keywords = options.get(KEYWORDS_OPTION)
        if raw_keywords is None:
            dictionary: list[KeywordEntry] = []
        elif isinstance(raw_keywords, (dict, list)):
            dictionary = build_dictionary(raw_keywords, case_sensitive=settings.case_sensitive)
        else:
            logger.warning(
                f"Auto-linker option {KEYWORDS_OPTION} has the wrong shape "
                f"({type(raw_keywords).__name__}); using an empty dictionary"
            )
            dictionary = []

        logger.debug(f"Loaded auto-linker options: {len(dictionary)} keywords")
        return LinkerConfig(settings=settings, dictionary=tuple(dictionary))

    def _settings_or_default(self, options: dict[str, Any]) -> LinkerSettings:
        try:
            return LinkerSettings.from_options(options)
        except ConfigurationError as e:
            logger.warning(f"{e}; using default auto-linker settings")
            return LinkerSettings()

    def _read_options(self) -> dict[str, Any]:
        """
        Read the options file.

        Raises:
            ConfigurationError: If the file exists but cannot be read or is
                not a JSON object.
        """
        if not self.path.exists():
            logger.debug(f"No auto-linker options at {self.path}")
            return {}

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Failed to read {self.path}: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(f"{self.path} must hold a JSON object")
        return data

    def _read_options_lenient(self) -> dict[str, Any]:
        """Read options for a save, starting over if the file is corrupt."""
        try:
            return self._read_options()
        except ConfigurationError as e:
            logger.warning(f"Overwriting unreadable auto-linker options: {e}")
            return {}

    def _write_options(self, options: dict[str, Any]) -> None:
        """Write options atomically so readers never see a partial file."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".options-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(options, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
