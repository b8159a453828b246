"""
Public key-loading operations
=============================
The two entry points the token builder (and any other caller) uses to
turn PKCS#8 PEM text into an RSA private key:

    key_pem_string_to_private_key(pem)
    encrypted_key_pem_string_to_private_key(pem, password)

Callers only ever see the fixed messages below. The underlying reason a
key was rejected is logged here and nowhere else.
"""

import logging
from typing import Union

from cryptography.hazmat.primitives.asymmetric import rsa

from . import pem, resolver
from .errors import InvalidArgumentError, PopPrivateKeyParseError

logger = logging.getLogger(__name__)

PRIVATE_KEY_EMPTY = "The privateKeyPemString should not be null or empty"
PRIVATE_KEY_UNSUPPORTED = (
    "The privateKeyPemString contains unsupported format, "
    "only PKCS#8 format is currently supported"
)
ENCRYPTED_KEY_EMPTY = "The encryptedPrivateKeyPemString should not be null or empty"
ENCRYPTED_KEY_UNSUPPORTED = (
    "The encryptedPrivateKeyPemString contains unsupported format, "
    "only PKCS#8 format is currently supported"
)
PASSWORD_EMPTY = "The privateKeyPassword should not be null or empty"


def _is_blank(value) -> bool:
    # other types are left for pem.decode to reject as an unsupported format
    if isinstance(value, (str, bytes)):
        return not value.strip()
    return value is None


def key_pem_string_to_private_key(private_key_pem_string: str) -> rsa.RSAPrivateKey:
    """
    Load a plain PKCS#8 ("BEGIN PRIVATE KEY") PEM string.

    Raises InvalidArgumentError if the string is None or blank, and
    PopPrivateKeyParseError for anything that is not a plain PKCS#8 RSA key.
    """
    if _is_blank(private_key_pem_string):
        raise InvalidArgumentError(PRIVATE_KEY_EMPTY)
    try:
        block = pem.decode(private_key_pem_string)
        if block.format is not pem.PemFormat.PLAIN:
            raise PopPrivateKeyParseError(f"Expected a plain PKCS#8 key, got {block.format.name}")
        return resolver.parse_plain(block.der, block.value)
    except PopPrivateKeyParseError as exc:
        logger.warning(f"Rejected private key PEM: {exc}")
        raise PopPrivateKeyParseError(PRIVATE_KEY_UNSUPPORTED) from None


def encrypted_key_pem_string_to_private_key(encrypted_private_key_pem_string: str,
                                            password: Union[str, bytes]) -> rsa.RSAPrivateKey:
    """
    Load a password-encrypted PKCS#8 ("BEGIN ENCRYPTED PRIVATE KEY") PEM string.

    The PEM string is validated before the password, so passing None for
    both reports the missing PEM string.
    """
    if _is_blank(encrypted_private_key_pem_string):
        raise InvalidArgumentError(ENCRYPTED_KEY_EMPTY)
    if not password:
        raise InvalidArgumentError(PASSWORD_EMPTY)
    try:
        block = pem.decode(encrypted_private_key_pem_string)
        if block.format is not pem.PemFormat.ENCRYPTED:
            raise PopPrivateKeyParseError(f"Expected an encrypted PKCS#8 key, got {block.format.name}")
        return resolver.parse_encrypted(block.der, password, block.value)
    except PopPrivateKeyParseError as exc:
        logger.warning(f"Rejected encrypted private key PEM: {exc}")
        raise PopPrivateKeyParseError(ENCRYPTED_KEY_UNSUPPORTED) from None
