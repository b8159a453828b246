"""
PoP Token Builder
=================
Assembles and signs a Proof-of-Possession token: a short-lived RS256 JWS
that binds selected HTTP request data to the caller's private key.

Claims:
    ehts   edge-header-to-sign: the names of the signed entries, ";"-joined
    edts   edge-data-to-sign:   base64url(SHA-256(value_1 || ... || value_n))
    jti    unique token id (uuid4)
    v      token version, always "1"
    iat    issued-at, epoch seconds
    exp    iat + TOKEN_LIFETIME_SECONDS

Usage:
    token = (PopTokenBuilder()
             .set_ehts_key_value_map({"Content-Type": "application/json",
                                      "uri": "/commerce/v1/orders",
                                      "http-method": "POST",
                                      "body": '{"orderId": 1}'})
             .sign_with_pem(private_key_pem)
             .build())

Dependencies: PyJWT >= 2.0, cryptography >= 43.0
"""

import base64
import hashlib
import logging
import time
import uuid
from typing import Mapping, Optional

import jwt
from cryptography.hazmat.primitives.asymmetric import rsa

from . import utils
from .errors import PopTokenBuilderError

logger = logging.getLogger(__name__)


class PopTokenBuilder:
    """Fluent builder for RS256-signed PoP tokens."""

    TOKEN_LIFETIME_SECONDS = 120
    MAX_EHTS_ENTRIES       = 100
    ALGORITHM              = "RS256"
    VERSION                = "1"

    def __init__(self, token_lifetime_seconds: Optional[int] = None):
        if token_lifetime_seconds is not None:
            if token_lifetime_seconds <= 0:
                raise PopTokenBuilderError("token_lifetime_seconds must be positive.")
            self.TOKEN_LIFETIME_SECONDS = token_lifetime_seconds
        self._ehts_key_value_map = None
        self._private_key        = None

    def set_ehts_key_value_map(self, ehts_key_value_map: Mapping[str, str]) -> "PopTokenBuilder":
        """Header/value pairs to sign, in signing order."""
        self._ehts_key_value_map = ehts_key_value_map
        return self

    def sign_with(self, private_key: rsa.RSAPrivateKey) -> "PopTokenBuilder":
        self._private_key = private_key
        return self

    def sign_with_pem(self, private_key_pem_string: str) -> "PopTokenBuilder":
        return self.sign_with(utils.key_pem_string_to_private_key(private_key_pem_string))

    def sign_with_encrypted_pem(self, encrypted_private_key_pem_string: str,
                                password) -> "PopTokenBuilder":
        return self.sign_with(utils.encrypted_key_pem_string_to_private_key(
            encrypted_private_key_pem_string, password))

    # ── claims ───────────────────────────────────────────────────────────────
    def _validate(self):
        entries = self._ehts_key_value_map
        if not entries:
            raise PopTokenBuilderError("The ehtsKeyValueMap should not be null or empty")
        if len(entries) > self.MAX_EHTS_ENTRIES:
            raise PopTokenBuilderError(
                f"The ehtsKeyValueMap should not contain more than {self.MAX_EHTS_ENTRIES} entries"
            )
        for key, value in entries.items():
            if not key or not key.strip():
                raise PopTokenBuilderError("The ehtsKeyValueMap should not contain empty key")
            if ";" in key:
                raise PopTokenBuilderError(f"The ehtsKeyValueMap key {key!r} should not contain ';'")
            if not isinstance(value, str):
                raise PopTokenBuilderError(f"The ehtsKeyValueMap value for {key!r} should be a string")
        if self._private_key is None:
            raise PopTokenBuilderError("Either rsaPrivateKey or privateKeyPemString should be provided to sign the PoP token")
        if not isinstance(self._private_key, rsa.RSAPrivateKey):
            raise PopTokenBuilderError("Only RSA private keys can sign a PoP token")

    @staticmethod
    def ehts(entries: Mapping[str, str]) -> str:
        return ";".join(entries.keys())

    @staticmethod
    def edts(entries: Mapping[str, str]) -> str:
        digest = hashlib.sha256("".join(entries.values()).encode("utf-8")).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

    def claims(self, issued_at: Optional[int] = None) -> dict:
        iat = int(time.time()) if issued_at is None else issued_at
        return {
            "ehts": self.ehts(self._ehts_key_value_map),
            "edts": self.edts(self._ehts_key_value_map),
            "jti":  str(uuid.uuid4()),
            "v":    self.VERSION,
            "iat":  iat,
            "exp":  iat + self.TOKEN_LIFETIME_SECONDS,
        }

    def build(self) -> str:
        """Validate, assemble the claims and return the compact RS256 token."""
        self._validate()
        claims = self.claims()
        try:
            token = jwt.encode(claims, self._private_key, algorithm=self.ALGORITHM,
                               headers={"typ": "JWT"})
        except (jwt.PyJWTError, ValueError, TypeError) as exc:
            logger.error(f"PoP token signing failed: {exc}")
            raise PopTokenBuilderError("Error occurred while building the PoP token") from exc
        logger.debug(f"Built PoP token jti={claims['jti']} ehts={claims['ehts']!r}")
        return token
