import pytest

from src.vidhub.security.passwords import PasswordHash, hash_password, verify_password


def test_hash_and_verify() -> None:
    encoded = hash_password("s3cret", iterations=1_000)

    assert encoded.startswith("pbkdf2_sha256$1000$")
    assert verify_password("s3cret", encoded)
    assert not verify_password("other", encoded)


def test_hashes_are_salted() -> None:
    assert hash_password("same", iterations=1_000) != hash_password("same", iterations=1_000)


def test_verify_without_stored_hash_is_false() -> None:
    assert verify_password("anything", None) is False


def test_empty_password_is_rejected() -> None:
    with pytest.raises(ValueError):
        hash_password("")


def test_parse_rejects_malformed_hash() -> None:
    with pytest.raises(ValueError):
        PasswordHash.parse("not-a-hash")
