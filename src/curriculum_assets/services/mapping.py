"""Static curriculum/month to book id lookup.

The table is read once from ``project_list.yaml``::

    jelly:
      month_01: J1R
      month_02: J2R

and kept immutable for the life of the process.
"""

from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Tuple

import yaml

from curriculum_assets.config.settings import get_settings
from curriculum_assets.exceptions import ConfigurationError, MappingNotFound
from curriculum_assets.logging_config import logger

MONTH_NAMES = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}


def month_slot(month: str) -> str:
    """Convert a month name or slot token into the ``month_NN`` slot token.

    Raises:
        ValueError: If ``month`` is neither a known month name nor a slot token
    """
    token = month.strip().lower()
    if token.startswith("month_"):
        number = token[len("month_"):]
        if number.isdigit() and 1 <= int(number) <= 12:
            return f"month_{int(number):02d}"
        raise ValueError(f"Invalid month slot: {month}")
    if token in MONTH_NAMES:
        return f"month_{MONTH_NAMES[token]:02d}"
    raise ValueError(f"Unknown month: {month}")


def normalize_curriculum(name: str) -> str:
    return name.strip().replace("_", "-").lower()


class MappingResolver:
    """Read-only curriculum -> month slot -> book id table."""

    def __init__(self, table: Mapping[str, Mapping[str, Any]]):
        frozen = {}
        for curriculum, slots in table.items():
            if not isinstance(slots, Mapping):
                raise ConfigurationError(
                    f"Mapping for curriculum {curriculum!r} must be a table of month slots"
                )
            frozen[str(curriculum)] = MappingProxyType(
                {str(slot): str(book_id) for slot, book_id in slots.items() if book_id is not None}
            )
        self._table = MappingProxyType(frozen)
        self._normalized = MappingProxyType(
            {normalize_curriculum(name): name for name in frozen}
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "MappingResolver":
        """Load the mapping table from a YAML file.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        path = Path(path)
        if not path.is_file():
            raise ConfigurationError(f"Mapping file not found: {path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse mapping file {path}: {e}") from e

        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Mapping file {path} must contain a table")

        resolver = cls(data)
        logger.info(f"Loaded book id mapping for {len(resolver._table)} curricula from {path}")
        return resolver

    @property
    def table(self) -> Mapping[str, Mapping[str, str]]:
        return self._table

    def curricula(self) -> Tuple[str, ...]:
        return tuple(self._table)

    def slots(self, curriculum: str) -> Mapping[str, str]:
        key = self._lookup_curriculum(curriculum)
        if key is None:
            raise MappingNotFound(f"Unknown curriculum: {curriculum}")
        return self._table[key]

    def resolve(self, curriculum: str, month: str) -> str:
        """Return the book id for ``(curriculum, month)``.

        Raises:
            MappingNotFound: If the pair has no entry
        """
        try:
            slot = month_slot(month)
        except ValueError as e:
            raise MappingNotFound(f"Book ID not found for {curriculum} - {month}: {e}") from e

        key = self._lookup_curriculum(curriculum)
        if key is None or slot not in self._table[key]:
            raise MappingNotFound(f"Book ID not found for {curriculum} - {month}")
        return self._table[key][slot]

    def _lookup_curriculum(self, curriculum: str) -> str | None:
        if curriculum in self._table:
            return curriculum
        return self._normalized.get(normalize_curriculum(curriculum))


@lru_cache
def get_mapping_resolver() -> MappingResolver:
    """Process-wide resolver loaded from the configured mapping file."""
    return MappingResolver.from_file(get_settings().mapping_path)
