"""
Key Material Resolver
=====================
DER bytes (plus a password for the encrypted path) -> RSA private key.

Encrypted keys are resolved by reading the algorithm identifier of the
EncryptedPrivateKeyInfo into an EncryptionDescriptor, a closed variant
over three schemes. The descriptor picks exactly one decrypt routine;
nothing is tried and retried.

    Scheme.PBES2   PBKDF2 + AES-{128,192,256}-CBC | DES-EDE3-CBC
    Scheme.PBES1   PBKDF1 (MD5 | SHA-1) + DES-CBC
    Scheme.PKCS12  PKCS#12 SHA-1 KDF + DES-EDE3-CBC

Everything here is a pure function of its arguments. Every failure is a
PopPrivateKeyParseError whose message is diagnostic only; a wrong password
and a corrupt key look the same from the outside.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from . import asn1
from .errors import InvalidArgumentError, PopPrivateKeyParseError
from .schemes import pbes1, pbes2, pkcs12

logger = logging.getLogger(__name__)


class Scheme(enum.Enum):
    PBES2  = "pbes2"
    PBES1  = "pbes1"
    PKCS12 = "pkcs12"


_SCHEMES = {
    asn1.PBES2:                 Scheme.PBES2,
    asn1.PBE_MD5_DES_CBC:       Scheme.PBES1,
    asn1.PBE_SHA1_DES_CBC:      Scheme.PBES1,
    asn1.PBE_SHA_3KEY_3DES_CBC: Scheme.PKCS12,
    asn1.PBE_SHA_2KEY_3DES_CBC: Scheme.PKCS12,
}

_MODULES = {
    Scheme.PBES2:  pbes2,
    Scheme.PBES1:  pbes1,
    Scheme.PKCS12: pkcs12,
}


@dataclass(frozen=True)
class EncryptionDescriptor:
    scheme: Scheme
    params: object

    def decrypt(self, password: bytes, ciphertext: bytes) -> bytes:
        return _MODULES[self.scheme].decrypt(self.params, password, ciphertext)


def describe(algorithm_identifier) -> EncryptionDescriptor:
    """Map an encryption AlgorithmIdentifier onto its EncryptionDescriptor."""
    oid = algorithm_identifier['algorithm']
    scheme = _SCHEMES.get(oid)
    if scheme is None:
        raise PopPrivateKeyParseError(f"Unsupported key encryption algorithm {oid}")
    params = _MODULES[scheme].parse_params(algorithm_identifier)
    return EncryptionDescriptor(scheme, params)


def parse_plain(der: bytes, info=None) -> rsa.RSAPrivateKey:
    """
    Parse a DER PrivateKeyInfo holding an RSA key.
    `info` is the PrivateKeyInfo already decoded from `der`, if the caller has it.
    """
    if info is None:
        info = asn1.decode_der(der, asn1.PrivateKeyInfo())
    oid = info['privateKeyAlgorithm']['algorithm']
    if oid != asn1.RSA_ENCRYPTION:
        raise PopPrivateKeyParseError(f"Private key algorithm {oid} is not rsaEncryption")
    try:
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        raise PopPrivateKeyParseError(f"Invalid RSA private key: {exc}") from exc
    if not isinstance(key, rsa.RSAPrivateKey):
        raise PopPrivateKeyParseError(f"Expected an RSA key, got {type(key).__name__}")
    return key


def parse_encrypted(der: bytes, password: Union[str, bytes], info=None) -> rsa.RSAPrivateKey:
    """
    Decrypt a DER EncryptedPrivateKeyInfo with `password` and parse the RSA key.
    `info` is the EncryptedPrivateKeyInfo already decoded from `der`, if any.
    """
    if not password:
        raise InvalidArgumentError("The privateKeyPassword should not be null or empty")
    if isinstance(password, str):
        password = password.encode("utf-8")
    elif not isinstance(password, bytes):
        raise InvalidArgumentError(
            f"The privateKeyPassword must be str or bytes, got {type(password).__name__}"
        )

    if info is None:
        info = asn1.decode_der(der, asn1.EncryptedPrivateKeyInfo())
    descriptor = describe(info['encryptionAlgorithm'])
    logger.debug(f"Encrypted private key uses {descriptor.scheme.name}")

    plaintext = descriptor.decrypt(password, bytes(info['encryptedData']))
    return parse_plain(plaintext)
