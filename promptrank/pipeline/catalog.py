"""Catalog collaborator interface and an in-memory implementation.

The ranking pipeline only reads from the catalog. Implementations may expose
coroutine methods or plain methods; the retriever handles both. Payloads may
be ``CatalogEntry`` objects or loosely-typed mappings.
"""

from typing import Any, Iterable, List, Mapping, Optional, Protocol, Union

from loguru import logger

from .models import CallerContext, CatalogEntry


CatalogPayload = Iterable[Union[CatalogEntry, Mapping[str, Any]]]


class Catalog(Protocol):
    """Read-only view of the prompt catalog."""

    def search_by_text(self, text: str, context: Optional[CallerContext]) -> CatalogPayload:
        ...

    def list_by_category(self, category: str, public_only: bool = True) -> CatalogPayload:
        ...

    def list_recent(self, public_only: bool = True, page_size: int = 20) -> CatalogPayload:
        ...


class InMemoryCatalog:
    """Catalog held in memory. Entries added later count as more recent."""

    def __init__(self, entries: Optional[Iterable[Union[CatalogEntry, Mapping[str, Any]]]] = None):
        self._entries: List[CatalogEntry] = []
        for entry in entries or ():
            self.add(entry)

    def add(self, entry: Union[CatalogEntry, Mapping[str, Any]]) -> CatalogEntry:
        if not isinstance(entry, CatalogEntry):
            entry = CatalogEntry.from_record(entry)
        self._entries.append(entry)
        return entry

    def __len__(self) -> int:
        return len(self._entries)

    def _visible(self, entry: CatalogEntry, context: Optional[CallerContext]) -> bool:
        if entry.is_public:
            return True
        return bool(context and context.user_id and context.user_id == entry.user_id)

    async def search_by_text(self, text: str, context: Optional[CallerContext] = None) -> List[CatalogEntry]:
        """Case-insensitive substring match over name, description, category and tags."""
        needle = text.strip().lower()
        if not needle:
            return []

        matches = []
        for entry in self._entries:
            if not self._visible(entry, context):
                continue
            haystack = " ".join([
                entry.name, entry.description, entry.category, " ".join(entry.tags)
            ]).lower()
            if needle in haystack:
                matches.append(entry)

        logger.debug(f"In-memory search '{text}' matched {len(matches)} entries")
        return matches

    async def list_by_category(self, category: str, public_only: bool = True) -> List[CatalogEntry]:
        return [
            entry for entry in self._entries
            if entry.category == category and (entry.is_public or not public_only)
        ]

    async def list_recent(self, public_only: bool = True, page_size: int = 20) -> List[CatalogEntry]:
        recent = [
            entry for entry in reversed(self._entries)
            if entry.is_public or not public_only
        ]
        return recent[:page_size]
