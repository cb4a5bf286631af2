from pathlib import Path

import pytest
from pydantic import SecretStr, ValidationError

from plugin_catalog.config import Settings


def test_defaults(monkeypatch):
    for var in ("ELASTICSEARCH_URL", "ELASTICSEARCH_INDEX", "DEFAULT_LIMIT"):
        monkeypatch.delenv(var, raising=False)
    settings = Settings()
    assert settings.elasticsearch_url == "http://localhost:9200"
    assert settings.elasticsearch_index == "plugins"
    assert settings.default_limit == 50


def test_env_override(monkeypatch):
    monkeypatch.setenv("ELASTICSEARCH_URL", "http://search:9200")
    monkeypatch.setenv("elasticsearch_index", "plugins-v2")
    monkeypatch.setenv("FACET_BUCKET_SIZE", "250")
    settings = Settings()
    assert settings.elasticsearch_url == "http://search:9200"
    assert settings.elasticsearch_index == "plugins-v2"
    assert settings.facet_bucket_size == 250


# -----------------------------------------------------------------------
# Metadata paths
# -----------------------------------------------------------------------


def test_metadata_paths_default_to_bundled():
    settings = Settings(categories_path="", labels_path="")
    assert settings.get_categories_path() is None
    assert settings.get_labels_path() is None


def test_metadata_paths_expand_user():
    settings = Settings(categories_path="~/cats.json", labels_path="/etc/labels.json")
    assert settings.get_categories_path() == Path.home() / "cats.json"
    assert settings.get_labels_path() == Path("/etc/labels.json")


# -----------------------------------------------------------------------
# Engine auth
# -----------------------------------------------------------------------


def test_engine_auth_none_without_username():
    settings = Settings(elasticsearch_username=None)
    assert settings.get_engine_auth() is None


def test_engine_auth_pair():
    settings = Settings(
        elasticsearch_username="elastic",
        elasticsearch_password=SecretStr("changeme"),
    )
    assert settings.get_engine_auth() == ("elastic", "changeme")


def test_engine_auth_username_only():
    settings = Settings(elasticsearch_username="reader", elasticsearch_password=None)
    assert settings.get_engine_auth() == ("reader", "")


def test_password_not_leaked_in_repr():
    settings = Settings(elasticsearch_password=SecretStr("changeme"))
    assert "changeme" not in repr(settings)


# -----------------------------------------------------------------------
# Page size
# -----------------------------------------------------------------------


def test_clamp_limit():
    settings = Settings(default_limit=25, max_limit=100)
    assert settings.clamp_limit(None) == 25
    assert settings.clamp_limit(0) == 25
    assert settings.clamp_limit(-4) == 25
    assert settings.clamp_limit(40) == 40
    assert settings.clamp_limit(5000) == 100


def test_clamp_limit_caps_default_at_max():
    settings = Settings(default_limit=500, max_limit=100)
    assert settings.clamp_limit(None) == 100
    assert settings.clamp_limit(0) == 100


@pytest.mark.parametrize("field", ["default_limit", "max_limit"])
def test_page_size_must_be_positive(field):
    with pytest.raises(ValidationError):
        Settings(**{field: 0})
