"""Unit tests for core/encryption.py — AES-256-GCM secrets and hashing."""

import re

import pytest

from app.core.encryption import DecryptionError, EncryptionKeyMissingError, EncryptionService

TOKEN_FORMAT = re.compile(r"^[0-9a-f]{32}:[0-9a-f]{32}:(?:[0-9a-f]{2})*$")


class TestConstruction:
    def test_missing_secret_refused(self):
        with pytest.raises(EncryptionKeyMissingError):
            EncryptionService(None)

    def test_empty_secret_refused(self):
        with pytest.raises(EncryptionKeyMissingError):
            EncryptionService("")


class TestEncryptDecrypt:
    def test_round_trip(self, encryption):
        assert encryption.decrypt(encryption.encrypt("sk_live_123")) == "sk_live_123"

    def test_unicode_round_trip(self, encryption):
        assert encryption.decrypt(encryption.encrypt("pässwörd ✓")) == "pässwörd ✓"

    def test_empty_string_round_trip(self, encryption):
        assert encryption.decrypt(encryption.encrypt("")) == ""

    def test_token_format(self, encryption):
        assert TOKEN_FORMAT.match(encryption.encrypt("secret"))

    def test_fresh_iv_per_call(self, encryption):
        assert encryption.encrypt("secret") != encryption.encrypt("secret")

    def test_other_key_cannot_decrypt(self, encryption):
        other = EncryptionService("a-completely-different-secret", "test-salt")
        with pytest.raises(DecryptionError):
            other.decrypt(encryption.encrypt("secret"))

    def test_other_salt_cannot_decrypt(self, encryption):
        other = EncryptionService("test-encryption-key-for-unit-tests", "other-salt")
        with pytest.raises(DecryptionError):
            other.decrypt(encryption.encrypt("secret"))


class TestTampering:
    def test_wrong_segment_count(self, encryption):
        with pytest.raises(DecryptionError):
            encryption.decrypt("abc:def")

    def test_non_hex_segment(self, encryption):
        iv, tag, data = encryption.encrypt("secret").split(":")
        with pytest.raises(DecryptionError):
            encryption.decrypt(f"{iv}:{tag}:zz{data[2:]}")

    def test_short_iv(self, encryption):
        _, tag, data = encryption.encrypt("secret").split(":")
        with pytest.raises(DecryptionError):
            encryption.decrypt(f"{'00' * 12}:{tag}:{data}")

    def test_flipped_ciphertext_bit(self, encryption):
        iv, tag, data = encryption.encrypt("secret").split(":")
        flipped = f"{int(data[0], 16) ^ 1:x}{data[1:]}"
        with pytest.raises(DecryptionError):
            encryption.decrypt(f"{iv}:{tag}:{flipped}")

    def test_forged_tag(self, encryption):
        iv, _, data = encryption.encrypt("secret").split(":")
        with pytest.raises(DecryptionError):
            encryption.decrypt(f"{iv}:{'0' * 32}:{data}")


class TestHashing:
    def test_sha256_hex(self, encryption):
        digest = encryption.hash("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_compare_hash(self, encryption):
        digest = encryption.hash("api-key")
        assert encryption.compare_hash("api-key", digest) is True
        assert encryption.compare_hash("api-kez", digest) is False

    @pytest.mark.parametrize("digest", ["", "é" * 64, "not-hex"])
    def test_compare_hash_rejects_malformed_digest(self, encryption, digest):
        assert encryption.compare_hash("api-key", digest) is False

    def test_generate_token_length(self):
        assert len(EncryptionService.generate_token()) == 64
        assert len(EncryptionService.generate_token(8)) == 16


class TestFieldEncryption:
    PATHS = ("smtp.auth.pass", "sendgrid.apiKey", "mailgun.apiKey")

    def test_only_named_paths_are_encrypted(self, encryption):
        value = {
            "provider": "smtp",
            "smtp": {"host": "mail.example.com", "auth": {"user": "u", "pass": "p@ss"}},
            "sendgrid": {"apiKey": "SG.key"},
        }
        sealed = encryption.encrypt_fields(value, self.PATHS)

        assert sealed["provider"] == "smtp"
        assert sealed["smtp"]["host"] == "mail.example.com"
        assert sealed["smtp"]["auth"]["user"] == "u"
        assert TOKEN_FORMAT.match(sealed["smtp"]["auth"]["pass"])
        assert TOKEN_FORMAT.match(sealed["sendgrid"]["apiKey"])
        # Input untouched
        assert value["smtp"]["auth"]["pass"] == "p@ss"

    def test_missing_and_empty_paths_skipped(self, encryption):
        value = {"smtp": {"auth": {"pass": ""}}, "sendgrid": {"apiKey": None}}
        assert encryption.encrypt_fields(value, self.PATHS) == value

    def test_round_trip(self, encryption):
        value = {"smtp": {"auth": {"pass": "p@ss"}}, "mailgun": {"apiKey": "key-1", "domain": "d"}}
        sealed = encryption.encrypt_fields(value, self.PATHS)
        assert encryption.decrypt_fields(sealed, self.PATHS) == value

    def test_tampered_field_raises(self, encryption):
        with pytest.raises(DecryptionError):
            encryption.decrypt_fields({"sendgrid": {"apiKey": "plaintext"}}, self.PATHS)
