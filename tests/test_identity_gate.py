import time

import jwt
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from identity_gate import JwtIdentityGate, Principal, StaticIdentityGate


@pytest.fixture(scope="module")
def keypair():
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    public_pem = private_key.public_key().public_bytes(
        serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo
    ).decode("ascii")
    return private_key, public_pem


def token(private_key, **claims):
    now = int(time.time())
    body = {"sub": "user_123", "iat": now, "exp": now + 60, "iss": "https://auth.example.com"}
    body.update(claims)
    return jwt.encode({k: v for k, v in body.items() if v is not None}, private_key, algorithm="RS256")


def test_valid_token_yields_principal(keypair):
    private_key, public_pem = keypair
    gate = JwtIdentityGate(public_pem, issuer="https://auth.example.com")

    principal = gate.authenticate(token(private_key))

    assert principal == Principal(user_id="user_123")
    assert not principal.is_admin


def test_role_from_metadata_claim(keypair):
    private_key, public_pem = keypair
    gate = JwtIdentityGate(public_pem)
    principal = gate.authenticate(token(private_key, metadata={"role": "admin"}))
    assert principal.is_admin


@pytest.mark.parametrize(
    "claims",
    [
        {"exp": int(time.time()) - 120},
        {"iss": "https://evil.example.com"},
        {"sub": None},
        {"azp": "https://other-app.example.com"},
    ],
)
def test_rejected_tokens(keypair, claims):
    private_key, public_pem = keypair
    gate = JwtIdentityGate(
        public_pem, issuer="https://auth.example.com", authorized_parties=["https://app.example.com"]
    )
    assert gate.authenticate(token(private_key, **claims)) is None


def test_token_signed_by_another_key(keypair):
    _, public_pem = keypair
    stranger = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    assert JwtIdentityGate(public_pem).authenticate(token(stranger)) is None
    assert JwtIdentityGate(public_pem).authenticate("not.a.jwt") is None


def test_static_gate():
    gate = StaticIdentityGate({"t1": Principal("user_1", "admin")})
    assert gate.authenticate("t1").is_admin
    assert gate.authenticate("t2") is None
    with pytest.raises(ValueError):
        StaticIdentityGate({"": Principal("user_1")})
    with pytest.raises(ValueError):
        Principal("")
