"""Generation of unique, sortable blob names.

Names have the form ``YYYY/MMDD/YYYYMMDD_HHMMSS_xxxxxxxx.ext``: two levels of
date buckets followed by a timestamp and 8 random hex digits. The separator
between levels is chosen by the caller (``/`` for object keys, ``os.sep`` for
file paths).
"""

import random
import threading
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IdentifierGenerator:
    """
    Thread-safe generator of blob names.

    The random source is seeded from a UUID4 rather than the clock, so two
    processes started at the same instant still draw different suffixes.
    """

    def __init__(self, seed: Optional[int] = None, clock: Callable[[], datetime] = _utcnow):
        if seed is None:
            seed = uuid.uuid4().int
        self._random = random.Random(seed)
        self._lock = threading.Lock()
        self._clock = clock

    def _next_suffix(self) -> int:
        with self._lock:
            return self._random.getrandbits(32)

    def next_name(self, separator: str = "/", extension: Optional[str] = None) -> str:
        """
        Generate a new blob name.

        Args:
            separator: Character placed between the date buckets and the leaf
            extension: Appended as-is; callers add the leading dot

        Returns:
            Relative name such as ``2024/0131/20240131_235959_0badf00d.txt``
        """
        now = self._clock()
        return (
            f"{now:%Y}{separator}{now:%m%d}{separator}"
            f"{now:%Y%m%d}_{now:%H%M%S}_{self._next_suffix():08x}"
            f"{extension or ''}"
        )


# Process-wide generator; the only shared mutable state in the package.
_default_generator = IdentifierGenerator()


def next_name(separator: str = "/", extension: Optional[str] = None) -> str:
    """Generate a new blob name from the process-wide generator."""
    return _default_generator.next_name(separator, extension)


def normalize_extension(extension: Optional[str]) -> Optional[str]:
    """Ensure a non-empty extension starts with a dot ("txt" -> ".txt")."""
    if extension and not extension.startswith("."):
        return "." + extension
    return extension
