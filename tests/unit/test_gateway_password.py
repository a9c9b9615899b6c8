"""Unit tests for password hashing utilities."""

from src.rb_gateway.auth.password import hash_password, verify_password


def test_hash_is_not_plain():
    hashed = hash_password("Livreur2026")
    assert hashed != "Livreur2026"
    assert len(hashed) > 20


def test_verify_correct_password():
    hashed = hash_password("Livreur2026")
    assert verify_password("Livreur2026", hashed) is True


def test_verify_wrong_password():
    hashed = hash_password("Livreur2026")
    assert verify_password("Livreur2025", hashed) is False


def test_same_plain_produces_different_hashes():
    # bcrypt uses random salt each time
    h1 = hash_password("Livreur2026")
    h2 = hash_password("Livreur2026")
    assert h1 != h2


def test_hash_uses_cost_twelve():
    assert hash_password("Livreur2026").startswith("$2b$12$")
