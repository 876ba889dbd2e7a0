from __future__ import annotations

import logging

from storefront.core import config as core_config
from storefront.core.log import KeyValueFormatter
from storefront.domain.ids import IntegerIds, TokenIds, canonical_id, policy_for
from storefront.domain.rules import missing_fields, order_total, slugify


def test_settings_read_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "d"))
    monkeypatch.setenv("ID_POLICY", "token")
    monkeypatch.setenv("BLOB_BACKEND", "s3")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "AKIA")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "secret")
    monkeypatch.setenv("UPLOADS_URL_PREFIX", "media/")
    monkeypatch.setenv("CORS_ORIGINS", "http://localhost:8000, https://shop.example.com")
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "not-a-number")
    core_config.get_settings.cache_clear()
    try:
        settings = core_config.get_settings()
    finally:
        core_config.get_settings.cache_clear()

    assert settings.data_dir == str(tmp_path / "d")
    assert settings.id_policy == "token"
    assert settings.blob_backend == "s3"
    assert settings.s3_configured is True
    assert settings.uploads_url_prefix == "/media"
    assert settings.cors_origins == ("http://localhost:8000", "https://shop.example.com")
    assert settings.max_upload_bytes == 5 * 1024 * 1024


def test_unknown_policy_values_fall_back(monkeypatch):
    monkeypatch.setenv("ID_POLICY", "uuid7")
    monkeypatch.setenv("BLOB_BACKEND", "gcs")
    monkeypatch.delenv("AWS_ACCESS_KEY_ID", raising=False)
    core_config.get_settings.cache_clear()
    try:
        settings = core_config.get_settings()
    finally:
        core_config.get_settings.cache_clear()

    assert settings.id_policy == "int"
    assert settings.blob_backend == "local"
    assert settings.s3_configured is False


def test_canonical_id():
    assert canonical_id(3) == canonical_id("3") == canonical_id(" 3 ") == canonical_id(3.0) == "3"
    assert canonical_id("abc") == "abc"


def test_integer_ids_skip_non_numeric_and_respect_high_water():
    ids = IntegerIds()
    assert ids.next_id([]) == 1
    assert ids.next_id([1, "7", "x", None]) == 8
    assert ids.next_id([1, 2], high_water=10) == 11


def test_policy_for():
    assert isinstance(policy_for("token"), TokenIds)
    assert isinstance(policy_for("int"), IntegerIds)
    assert isinstance(policy_for(""), IntegerIds)


def test_rule_helpers():
    assert missing_fields("products", {"name": "", "price": 0}) == ["name"]
    assert missing_fields("unknown", {}) == []
    assert slugify("  Gold   Rings ") == "gold-rings"
    assert order_total([{"price": "1.10", "quantity": "3"}, {"price": 2, "quantity": 1}]) == 5.3


def test_key_value_formatter_appends_extra_fields():
    record = logging.LogRecord("storefront.test", logging.WARNING, __file__, 1, "blob cleanup failed", None, None)
    record.event = "blob_cleanup_failed"
    record.reference = "/uploads/a.png"
    text = KeyValueFormatter("%(levelname)s %(message)s").format(record)
    assert text == "WARNING blob cleanup failed event=blob_cleanup_failed reference=/uploads/a.png"
