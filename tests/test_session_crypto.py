"""Session envelope encryption tests.

Covers the round-trip law, fail-closed decryption, the legacy base64
path, and that encryption never degrades to plaintext.
"""

import base64
import json

import pytest

from tollgate.auth.session_crypto import SessionCipher, get_session_cipher
from tollgate.errors import SessionEncryptionError


@pytest.mark.parametrize(
    "payload",
    [
        {"sessionId": 42, "expiresAt": "2026-10-26T12:00:00+00:00"},
        {"nested": {"list": [1, 2.5, None, True, "x"]}},
        "a plain string with : colons",
        [],
        0,
        None,
    ],
)
def test_round_trip(cipher, payload):
    assert cipher.decrypt(cipher.encrypt(payload)) == payload


def test_envelope_format(cipher):
    envelope = cipher.encrypt({"sessionId": 1})
    iv_hex, ct_hex = envelope.split(":")
    assert len(bytes.fromhex(iv_hex)) == 16
    assert len(bytes.fromhex(ct_hex)) % 16 == 0


def test_fresh_iv_per_call(cipher):
    payload = {"sessionId": 1}
    assert cipher.encrypt(payload) != cipher.encrypt(payload)


def test_plaintext_not_visible(cipher):
    envelope = cipher.encrypt({"sessionId": 987654321})
    assert "987654321" not in envelope


@pytest.mark.parametrize(
    "encoded",
    [
        "not-valid-format",
        "",
        ":",
        "abc:def",
        "00112233445566778899aabbccddeeff:",
        "0011:00112233445566778899aabbccddeeff",
        "zz112233445566778899aabbccddeeff:00112233445566778899aabbccddeeff",
        "00112233445566778899aabbccddeeff:00112233445566778899aabbccddee",
    ],
)
def test_malformed_input_returns_none(cipher, encoded):
    assert cipher.decrypt(encoded) is None


def test_non_string_returns_none(cipher):
    assert cipher.decrypt(None) is None
    assert cipher.decrypt(b"00:00") is None


def test_wrong_key_returns_none(cipher):
    envelope = cipher.encrypt({"sessionId": 1, "expiresAt": "2030-01-01T00:00:00+00:00"})
    other = SessionCipher("another-secret", "test-key-salt")
    # A wrong key almost always breaks the padding; if the padding happens
    # to survive, the JSON parse won't.
    assert other.decrypt(envelope) is None


def test_different_salt_is_a_different_key(cipher):
    envelope = cipher.encrypt({"sessionId": 1})
    other = SessionCipher("test-session-secret", "another-salt")
    assert other.decrypt(envelope) is None


def test_tampered_envelope_returns_none(cipher):
    envelope = cipher.encrypt({"sessionId": 1, "expiresAt": "2030-01-01T00:00:00+00:00"})
    iv_hex, ct_hex = envelope.split(":")
    # Flipping one IV bit flips the same bit of the first plaintext byte: "{" → "z"
    iv = bytearray.fromhex(iv_hex)
    iv[0] ^= 0x01
    assert cipher.decrypt(f"{iv.hex()}:{ct_hex}") is None
    # Truncated ciphertext is no longer block aligned
    assert cipher.decrypt(f"{iv_hex}:{ct_hex[:-2]}") is None


def test_legacy_base64_accepted(cipher):
    payload = {"sessionId": 7, "expiresAt": "2030-01-01T00:00:00.000Z"}
    legacy = base64.b64encode(json.dumps(payload).encode()).decode()
    assert cipher.decrypt(legacy) == payload


def test_legacy_garbage_returns_none(cipher):
    assert cipher.decrypt("!!!not base64!!!") is None
    assert cipher.decrypt(base64.b64encode(b"not json").decode()) is None


def test_legacy_rejected_when_disabled():
    strict = SessionCipher("test-session-secret", "test-key-salt", allow_legacy=False)
    legacy = base64.b64encode(json.dumps({"sessionId": 7}).encode()).decode()
    assert strict.decrypt(legacy) is None


def test_unserializable_payload_raises(cipher):
    """No silent plaintext fallback: encryption failure is a hard error."""
    with pytest.raises(SessionEncryptionError):
        cipher.encrypt({"when": object()})


def test_process_cipher_is_cached():
    assert get_session_cipher() is get_session_cipher()
