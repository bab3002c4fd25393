"""Shared fixtures for ranking pipeline tests."""

import asyncio

import pytest

from promptrank.pipeline.catalog import InMemoryCatalog
from promptrank.pipeline.models import CatalogEntry


class RecordingCatalog:
    """In-memory catalog that records calls and can be told to fail or stall."""

    def __init__(self, entries=None, fail=(), stall=(), stall_seconds=5.0):
        self.inner = InMemoryCatalog(entries)
        self.calls = []
        self.fail = set(fail)
        self.stall = set(stall)
        self.stall_seconds = stall_seconds

    async def _gate(self, method, arg=None):
        self.calls.append((method, arg))
        keys = {method, f"{method}:{arg}"}
        if keys & self.stall:
            await asyncio.sleep(self.stall_seconds)
        if keys & self.fail:
            raise ConnectionError(f"simulated {method} failure")

    async def search_by_text(self, text, context=None):
        await self._gate("search_by_text", text)
        return await self.inner.search_by_text(text, context)

    async def list_by_category(self, category, public_only=True):
        await self._gate("list_by_category", category)
        return await self.inner.list_by_category(category, public_only)

    async def list_recent(self, public_only=True, page_size=20):
        await self._gate("list_recent")
        return await self.inner.list_recent(public_only, page_size)

    def methods_called(self):
        return [method for method, _ in self.calls]


def entry(name, description="", category="", tags=(), id=None, is_public=True, **kwargs):
    return CatalogEntry(
        id=id, name=name, description=description, category=category,
        tags=tuple(tags), is_public=is_public, **kwargs
    )


UNRELATED = [
    entry("Python Code Reviewer", "Review python code for bugs and style issues in pull requests",
          "编程", ["code", "review"], id="u1"),
    entry("Travel Itinerary Planner", "Plan a multi-day travel itinerary with budget notes",
          "生活", ["travel"], id="u2"),
    entry("SQL Query Optimizer", "Optimize slow SQL queries and suggest indexes",
          "编程", ["sql", "database", "performance"], id="u3"),
    entry("Poem Generator", "Generate rhyming poems on any theme",
          "创意", ["poetry"], id="u4"),
    entry("Recipe Scaler", "Scale cooking recipes to a different number of servings",
          "生活", [], id="u5"),
]


@pytest.fixture
def make_entry():
    return entry


@pytest.fixture
def unrelated_entries():
    return list(UNRELATED)


@pytest.fixture
def recording_catalog():
    """Factory for RecordingCatalog instances."""
    return RecordingCatalog
