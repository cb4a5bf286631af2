"""Pytest configuration and fixtures."""

from types import MappingProxyType
from unittest.mock import AsyncMock

import pytest

from plugin_catalog.metadata import FacetMetadata
from plugin_catalog.models import Category


@pytest.fixture
def git_plugin_source():
    """Index document for the git-plugin used across tests."""
    return {
        "name": "git-plugin",
        "title": "Git Plugin",
        "excerpt": "Integrates Jenkins with Git repositories.",
        "version": "5.2.1",
        "url": "https://updates.example.org/download/plugins/git/5.2.1/git.hpi",
        "categories": ["scm"],
        "labels": ["scm", "git"],
        "maintainers": [
            {"id": "markewaite", "name": "Mark Waite"},
            {"id": "kohsuke", "name": "Kohsuke Kawaguchi"},
        ],
        "dependencies": [
            {"name": "credentials", "optional": False, "version": "2.6.1"},
            {"name": "promoted-builds", "optional": True, "version": "3.2"},
        ],
        "requiredCore": "2.361.4",
        "stats": {"currentInstalls": 250000, "trend": 120},
        "firstRelease": "2007-08-15T00:00:00Z",
        "releaseTimestamp": "2023-10-01T12:00:00Z",
        "scm": {"link": "https://github.com/jenkinsci/git-plugin"},
        "wiki": {"url": "https://plugins.example.org/git"},
        "hasNoReverseDependencies": False,
        "someFieldWeDoNotModel": {"ignored": True},
    }


@pytest.fixture
def make_hit():
    """Factory for raw search hits / get responses wrapping a source doc."""

    def _make(source: dict, index: str = "plugins") -> dict:
        return {"_index": index, "_id": source["name"], "_source": source}

    return _make


@pytest.fixture
def metadata():
    """Small facet metadata value with two titled labels."""
    return FacetMetadata(
        categories=(
            Category(
                id="scm",
                title="Source code management",
                description="Plugins that integrate with SCM tools.",
                labels=["scm", "git"],
            ),
        ),
        label_titles=MappingProxyType(
            {"scm": "Source code management", "git": "Git"}
        ),
    )


@pytest.fixture
def engine():
    """SearchEngine stand-in; configure execute_query / get_document per test."""
    return AsyncMock()
