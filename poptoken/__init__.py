"""
poptoken — Proof-of-Possession token builder
============================================
Short-lived RS256 tokens that prove the caller holds the private key
matching a previously registered public key.

Layers:
    pem       PEM Decoder       — envelope strip, base64, PLAIN / ENCRYPTED
    resolver  Key Resolver      — PKCS#8 PrivateKeyInfo -> RSA private key,
                                  EncryptedPrivateKeyInfo via PBES2 / PBES1 / PKCS#12
    utils     Public API        — fixed, non-leaking error messages
    builder   PopTokenBuilder   — ehts / edts claims signed with RS256

License: Apache 2.0
"""

__version__ = "1.0.0"

from .errors   import (InvalidArgumentError, PopPrivateKeyParseError,
                       PopTokenBuilderError, PopTokenError, UnsupportedFormatError)
from .pem      import PemBlock, PemFormat
from .resolver import EncryptionDescriptor, Scheme
from .utils    import (encrypted_key_pem_string_to_private_key,
                       key_pem_string_to_private_key)
from .builder  import PopTokenBuilder

__all__ = [
    "InvalidArgumentError",
    "PopPrivateKeyParseError",
    "PopTokenBuilderError",
    "PopTokenError",
    "UnsupportedFormatError",
    "PemBlock",
    "PemFormat",
    "EncryptionDescriptor",
    "Scheme",
    "key_pem_string_to_private_key",
    "encrypted_key_pem_string_to_private_key",
    "PopTokenBuilder",
]
