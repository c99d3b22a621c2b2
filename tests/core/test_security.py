# tests/core/test_security.py
# =======================
# Admin session tokens, password check and rate limiter
# =======================
import pytest
from jose import jwt

from rsvp_service import rate_limit
from rsvp_service.auth import (
    ALGORITHM,
    create_admin_session_token,
    verify_admin_session_token,
)
from rsvp_service.confirmation import decode_token, encode_token
from rsvp_service.core.security import verify_admin_password

SECRET_KEY = "test-secret"


def test_session_token_round_trip():
    payload = verify_admin_session_token(create_admin_session_token())
    assert payload["type"] == "admin"
    assert payload["exp"] > payload["iat"]


def test_session_token_rejects_other_types_and_garbage():
    other = jwt.encode({"sub": "x", "type": "access"}, SECRET_KEY, algorithm=ALGORITHM)
    forged = jwt.encode({"sub": "admin", "type": "admin"}, "wrong-key", algorithm=ALGORITHM)

    assert verify_admin_session_token(other) is None
    assert verify_admin_session_token(forged) is None
    assert verify_admin_session_token("true") is None
    assert verify_admin_session_token(None) is None


def test_expired_session_token_is_rejected():
    expired = jwt.encode({"sub": "admin", "type": "admin", "exp": 1}, SECRET_KEY, algorithm=ALGORITHM)
    assert verify_admin_session_token(expired) is None


@pytest.mark.parametrize("configured", [None, "", "dev_secret"])
def test_no_usable_secret_key_means_no_sessions(monkeypatch, configured):
    issued = create_admin_session_token()
    forged = jwt.encode({"sub": "admin", "type": "admin"}, "dev_secret", algorithm=ALGORITHM)
    token = encode_token("rsvp-1")
    if configured is None:
        monkeypatch.delenv("SECRET_KEY", raising=False)
    else:
        monkeypatch.setenv("SECRET_KEY", configured)

    assert verify_admin_session_token(forged) is None
    assert verify_admin_session_token(issued) is None
    assert decode_token(token) is None
    with pytest.raises(RuntimeError):
        create_admin_session_token()
    with pytest.raises(RuntimeError):
        encode_token("rsvp-1")


def test_password_check_needs_secret_key(monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", "s3cret")
    monkeypatch.delenv("SECRET_KEY", raising=False)
    assert verify_admin_password("s3cret") is False


def test_password_check(monkeypatch):
    monkeypatch.setenv("ADMIN_PASSWORD", "s3cret")
    assert verify_admin_password("s3cret") is True
    assert verify_admin_password("S3CRET") is False
    assert verify_admin_password(None) is False


def test_login_refused_when_password_unset(monkeypatch):
    monkeypatch.delenv("ADMIN_PASSWORD", raising=False)
    assert verify_admin_password("") is False
    assert verify_admin_password("anything") is False


def test_sliding_window(monkeypatch):
    now = [1000.0]
    monkeypatch.setattr(rate_limit, "_now", lambda: now[0])

    assert rate_limit.check("k", 2, 60) == (True, 0)
    assert rate_limit.check("k", 2, 60) == (True, 0)
    allowed, retry_after = rate_limit.check("k", 2, 60)
    assert allowed is False
    assert 1 <= retry_after <= 61

    now[0] += 61
    assert rate_limit.is_allowed("k", 2, 60) is True


def test_idle_keys_are_evicted(monkeypatch):
    now = [5000.0]
    monkeypatch.setattr(rate_limit, "_now", lambda: now[0])

    for ip in ("10.0.0.1", "10.0.0.2", "10.0.0.3"):
        rate_limit.check(f"rsvp:{ip}", 5, 60)
    assert len(rate_limit._BUCKETS) == 3

    now[0] += 61
    rate_limit.check("rsvp:10.0.0.9", 5, 60)

    assert set(rate_limit._BUCKETS) == {"rsvp:10.0.0.9"}
    assert set(rate_limit._WINDOWS) == {"rsvp:10.0.0.9"}


def test_limits_from_env(monkeypatch):
    monkeypatch.setenv("X_RL_MAX", "3")
    monkeypatch.setenv("X_RL_WINDOW", "oops")
    assert rate_limit.get_limits_from_env("X_RL", 10, 60) == (10, 60)
    monkeypatch.setenv("X_RL_WINDOW", "30")
    assert rate_limit.get_limits_from_env("X_RL", 10, 60) == (3, 30)
