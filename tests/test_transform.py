"""Tests for src/plugin_catalog/transform.py."""

import pytest

from plugin_catalog.engine import Bucket
from plugin_catalog.models import Label
from plugin_catalog.transform import (
    transform_buckets,
    transform_get,
    transform_hits,
    transform_labels,
)


def test_hits_keep_engine_order(make_hit):
    hits = [make_hit({"name": n}) for n in ("zeta", "alpha", "mid")]
    assert [p.name for p in transform_hits(hits)] == ["zeta", "alpha", "mid"]


def test_hits_empty():
    assert transform_hits([]) == []


def test_hit_without_source_is_malformed():
    with pytest.raises(ValueError):
        transform_hits([{"_id": "git"}])


def test_hit_with_invalid_source_is_malformed(make_hit):
    with pytest.raises(ValueError):
        transform_hits([make_hit({"name": "git", "stats": "lots"})])


def test_get_maps_source(git_plugin_source, make_hit):
    plugin = transform_get(make_hit(git_plugin_source))
    assert plugin.name == "git-plugin"
    assert plugin.title == "Git Plugin"


def test_get_and_hits_agree(git_plugin_source, make_hit):
    doc = make_hit(git_plugin_source)
    assert transform_get(doc) == transform_hits([doc])[0]


def test_bucket_keys_in_order():
    buckets = [Bucket("2.361.4", 900), Bucket("2.332.1", 40), Bucket("1.625", 2)]
    assert transform_buckets(buckets) == ["2.361.4", "2.332.1", "1.625"]


def test_labels_attach_known_titles_only():
    buckets = [Bucket("git", 50), Bucket("mystery", 3), Bucket("scm", 1)]
    labels = transform_labels(buckets, {"git": "Git", "scm": "Source code"})
    assert labels == [
        Label(id="git", title="Git"),
        Label(id="mystery", title=None),
        Label(id="scm", title="Source code"),
    ]


def test_labels_never_fabricate_empty_title():
    (label,) = transform_labels([Bucket("orphan", 1)], {})
    assert label.title is None
