import base64
import json
from types import SimpleNamespace

import pytest

import portfolio_tracker.api.dependencies as dependencies
from portfolio_tracker.api.dependencies import decode_token_claims, get_quote_service


def _jwt(claims: dict) -> str:
    def segment(data: dict) -> str:
        return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()

    return f"{segment({'alg': 'RS256'})}.{segment(claims)}.signature"


def test_decode_token_claims():
    identity = decode_token_claims(
        _jwt({"sub": "abc-123", "email": "dana@example.com", "given_name": "Dana", "family_name": "Levi"})
    )
    assert identity.subject == "abc-123"
    assert identity.email == "dana@example.com"
    assert identity.first_name == "Dana"
    assert identity.last_name == "Levi"


@pytest.mark.parametrize(
    "token",
    ["not-a-jwt", "a.b", "a.!!!.c", _jwt({"email": "x@example.com"})],
)
def test_decode_token_claims_rejects_bad_tokens(token):
    with pytest.raises(ValueError):
        decode_token_claims(token)


def test_quote_service_kept_on_app_state(monkeypatch):
    built = []

    def fake_build():
        built.append(object())
        return built[-1]

    monkeypatch.setattr(dependencies, "build_quote_service", fake_build)
    request = SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace()))

    first = get_quote_service(request)
    second = get_quote_service(request)

    assert first is second
    assert len(built) == 1
