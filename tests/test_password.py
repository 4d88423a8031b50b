"""Password hashing tests."""

from liftlog.auth.password import hash_password, verify_password


def test_hash_is_salted_bcrypt():
    """Same password hashes differently each time, and never in plaintext."""
    h1 = hash_password("hunter2hunter2")
    h2 = hash_password("hunter2hunter2")
    assert h1.startswith("$2")
    assert h1 != h2
    assert "hunter2" not in h1


def test_verify_roundtrip():
    h = hash_password("correct horse")
    assert verify_password("correct horse", h) is True
    assert verify_password("correct horsf", h) is False
    assert verify_password("", h) is False


def test_verify_malformed_hash_is_false():
    """A corrupt stored hash fails closed instead of raising."""
    assert verify_password("anything", "not-a-bcrypt-hash") is False
    assert verify_password("anything", "") is False


def test_passwords_truncate_at_72_bytes():
    """bcrypt only sees 72 bytes; longer passwords must not crash."""
    base = "x" * 72
    h = hash_password(base + "tail-one")
    assert verify_password(base + "tail-two", h) is True
