"""
poptoken — PopTokenBuilder tests
================================
Run with:  python -m pytest tests/ -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import base64
import hashlib

import jwt
import pytest

from poptoken.builder import PopTokenBuilder
from poptoken.errors  import PopPrivateKeyParseError, PopTokenBuilderError
from poptoken.utils   import key_pem_string_to_private_key

DATA = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")

EHTS = {
    "Content-Type":  "application/json",
    "Authorization": "Bearer 123",
    "uri":           "/commerce/v1/orders",
    "http-method":   "POST",
    "body":          '{"orderId": 100, "product": "Mobile Phone"}',
}


def load(name):
    with open(os.path.join(DATA, name)) as f:
        return f.read()


@pytest.fixture(scope="module")
def private_key():
    return key_pem_string_to_private_key(load("rsa_pkcs8.pem"))


def verify(token, private_key):
    return jwt.decode(token, private_key.public_key(), algorithms=["RS256"])


# ── happy path ───────────────────────────────────────────────────────────────
def test_build_signs_rs256(private_key):
    token = PopTokenBuilder().set_ehts_key_value_map(EHTS).sign_with(private_key).build()
    header = jwt.get_unverified_header(token)
    assert header["alg"] == "RS256"
    assert header["typ"] == "JWT"
    assert token.count(".") == 2

def test_claims(private_key):
    token  = PopTokenBuilder().set_ehts_key_value_map(EHTS).sign_with(private_key).build()
    claims = verify(token, private_key)
    assert claims["ehts"] == "Content-Type;Authorization;uri;http-method;body"
    assert claims["v"] == "1"
    assert claims["exp"] - claims["iat"] == 120
    assert len(claims["jti"]) == 36

def test_edts_is_sha256_of_values_in_order(private_key):
    claims = verify(
        PopTokenBuilder().set_ehts_key_value_map(EHTS).sign_with(private_key).build(),
        private_key,
    )
    digest = hashlib.sha256("".join(EHTS.values()).encode("utf-8")).digest()
    expected = base64.urlsafe_b64encode(digest).rstrip(b"=").decode()
    assert claims["edts"] == expected
    assert "=" not in claims["edts"]

def test_jti_unique(private_key):
    builder = PopTokenBuilder().set_ehts_key_value_map(EHTS).sign_with(private_key)
    assert verify(builder.build(), private_key)["jti"] != verify(builder.build(), private_key)["jti"]

def test_custom_lifetime(private_key):
    builder = PopTokenBuilder(token_lifetime_seconds=30)
    claims  = builder.set_ehts_key_value_map(EHTS).claims(issued_at=1_000)
    assert claims["iat"] == 1_000
    assert claims["exp"] == 1_030

def test_sign_with_pem():
    token = PopTokenBuilder().set_ehts_key_value_map(EHTS).sign_with_pem(load("rsa_pkcs8.pem")).build()
    assert token

def test_sign_with_encrypted_pem(private_key):
    token = (PopTokenBuilder()
             .set_ehts_key_value_map(EHTS)
             .sign_with_encrypted_pem(load("pbes2_aes256.pem"), "foobar")
             .build())
    assert verify(token, private_key)["v"] == "1"

# ── validation ───────────────────────────────────────────────────────────────
@pytest.mark.parametrize("ehts", [None, {}])
def test_missing_ehts(private_key, ehts):
    with pytest.raises(PopTokenBuilderError):
        PopTokenBuilder().set_ehts_key_value_map(ehts).sign_with(private_key).build()

def test_too_many_ehts_entries(private_key):
    entries = {f"header-{i}": str(i) for i in range(101)}
    with pytest.raises(PopTokenBuilderError):
        PopTokenBuilder().set_ehts_key_value_map(entries).sign_with(private_key).build()

def test_hundred_entries_allowed(private_key):
    entries = {f"header-{i}": str(i) for i in range(100)}
    assert PopTokenBuilder().set_ehts_key_value_map(entries).sign_with(private_key).build()

@pytest.mark.parametrize("entries", [
    {"": "value"},
    {"a;b": "value"},
    {"uri": None},
])
def test_bad_ehts_entries(private_key, entries):
    with pytest.raises(PopTokenBuilderError):
        PopTokenBuilder().set_ehts_key_value_map(entries).sign_with(private_key).build()

def test_missing_private_key():
    with pytest.raises(PopTokenBuilderError):
        PopTokenBuilder().set_ehts_key_value_map(EHTS).build()

def test_bad_pem_propagates_parse_error():
    with pytest.raises(PopPrivateKeyParseError):
        PopTokenBuilder().sign_with_pem("INVALID KEY PEM STRING")

def test_non_positive_lifetime():
    with pytest.raises(PopTokenBuilderError):
        PopTokenBuilder(token_lifetime_seconds=0)
