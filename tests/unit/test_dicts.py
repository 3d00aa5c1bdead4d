"""Unit tests for utils/dicts.py — nested settings document helpers."""

from app.constants import REDACTED
from app.utils.dicts import deep_merge, get_path, mask_paths, transform_paths


class TestDeepMerge:
    def test_nested_dicts_merge(self):
        base = {"smtp": {"host": "a", "port": 587}, "provider": "smtp"}
        merged = deep_merge(base, {"smtp": {"host": "b"}})
        assert merged == {"smtp": {"host": "b", "port": 587}, "provider": "smtp"}

    def test_lists_replace(self):
        merged = deep_merge({"domains": ["a.com", "b.com"]}, {"domains": ["c.com"]})
        assert merged == {"domains": ["c.com"]}

    def test_scalar_replaces_dict(self):
        assert deep_merge({"logo": {"url": "x"}}, {"logo": None}) == {"logo": None}

    def test_new_keys_added(self):
        assert deep_merge({"a": 1}, {"b": 2}) == {"a": 1, "b": 2}

    def test_inputs_not_mutated(self):
        base = {"smtp": {"host": "a"}}
        update = {"smtp": {"host": "b"}}
        deep_merge(base, update)
        assert base == {"smtp": {"host": "a"}}
        assert update == {"smtp": {"host": "b"}}

    def test_redacted_value_keeps_existing_secret(self):
        base = {"stripe": {"secretKey": "sk_live_real", "publicKey": "pk_old"}}
        merged = deep_merge(base, {"stripe": {"secretKey": REDACTED, "publicKey": "pk_new"}})
        assert merged == {"stripe": {"secretKey": "sk_live_real", "publicKey": "pk_new"}}


class TestGetPath:
    def test_reads_nested(self):
        assert get_path({"smtp": {"auth": {"pass": "x"}}}, "smtp.auth.pass") == "x"

    def test_missing_is_none(self):
        assert get_path({"smtp": {}}, "smtp.auth.pass") is None

    def test_through_scalar_is_none(self):
        assert get_path({"smtp": "oops"}, "smtp.auth") is None


class TestTransformAndMask:
    def test_transform_applies_to_populated_paths(self):
        data = {"a": {"b": "x", "c": ""}, "d": None}
        result = transform_paths(data, ["a.b", "a.c", "d", "e.f"], str.upper)
        assert result == {"a": {"b": "X", "c": ""}, "d": None}

    def test_transform_returns_copy(self):
        data = {"a": {"b": "x"}}
        transform_paths(data, ["a.b"], str.upper)
        assert data == {"a": {"b": "x"}}

    def test_mask_paths(self):
        data = {
            "stripe": {"secretKey": "sk_1", "publicKey": "pk_1"},
            "paypal": {"clientSecret": ""},
        }
        masked = mask_paths(data, ["stripe.secretKey", "paypal.clientSecret"])
        assert masked == {
            "stripe": {"secretKey": REDACTED, "publicKey": "pk_1"},
            "paypal": {"clientSecret": ""},
        }
