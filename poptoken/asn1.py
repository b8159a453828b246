"""
ASN.1 structures for PKCS#8 and password-based encryption
=========================================================
PrivateKeyInfo and EncryptedPrivateKeyInfo come from pyasn1-modules
(RFC 5208). The parameter blocks carried inside an encryption
AlgorithmIdentifier are declared here:

    PBES2-params      RFC 8018 A.4   { keyDerivationFunc, encryptionScheme }
    PBKDF2-params     RFC 8018 A.2   { salt, iterationCount, keyLength?, prf? }
    PBEParameter      RFC 8018 A.3   { salt, iterationCount }
    pkcs-12PbeParams  RFC 7292 C     { salt, iterations }

Only the "specified" salt alternative of PBKDF2 is modelled; the
"otherSource" alternative is not used by any PKCS#8 producer.

Dependencies: pyasn1, pyasn1-modules
"""

from pyasn1.codec.der import decoder
from pyasn1.error import PyAsn1Error
from pyasn1.type import namedtype, univ
from pyasn1_modules import rfc5208

from .errors import PopPrivateKeyParseError

# ── Object identifiers ───────────────────────────────────────────────────────
RSA_ENCRYPTION = univ.ObjectIdentifier("1.2.840.113549.1.1.1")

# PKCS#5
PBE_MD5_DES_CBC  = univ.ObjectIdentifier("1.2.840.113549.1.5.3")
PBE_SHA1_DES_CBC = univ.ObjectIdentifier("1.2.840.113549.1.5.10")
PBKDF2           = univ.ObjectIdentifier("1.2.840.113549.1.5.12")
PBES2            = univ.ObjectIdentifier("1.2.840.113549.1.5.13")

# PKCS#12 password-based encryption
PBE_SHA_3KEY_3DES_CBC = univ.ObjectIdentifier("1.2.840.113549.1.12.1.3")
PBE_SHA_2KEY_3DES_CBC = univ.ObjectIdentifier("1.2.840.113549.1.12.1.4")

# PBKDF2 pseudo-random functions
HMAC_SHA1   = univ.ObjectIdentifier("1.2.840.113549.2.7")
HMAC_SHA224 = univ.ObjectIdentifier("1.2.840.113549.2.8")
HMAC_SHA256 = univ.ObjectIdentifier("1.2.840.113549.2.9")
HMAC_SHA384 = univ.ObjectIdentifier("1.2.840.113549.2.10")
HMAC_SHA512 = univ.ObjectIdentifier("1.2.840.113549.2.11")

# PBES2 encryption schemes
AES128_CBC   = univ.ObjectIdentifier("2.16.840.1.101.3.4.1.2")
AES192_CBC   = univ.ObjectIdentifier("2.16.840.1.101.3.4.1.22")
AES256_CBC   = univ.ObjectIdentifier("2.16.840.1.101.3.4.1.42")
DES_EDE3_CBC = univ.ObjectIdentifier("1.2.840.113549.3.7")


# Upper bound on any KDF iteration count read from a key.
MAX_ITERATIONS = 10_000_000


# ── Structures ───────────────────────────────────────────────────────────────
PrivateKeyInfo          = rfc5208.PrivateKeyInfo
EncryptedPrivateKeyInfo = rfc5208.EncryptedPrivateKeyInfo


class AlgorithmIdentifier(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('algorithm', univ.ObjectIdentifier()),
        namedtype.OptionalNamedType('parameters', univ.Any())
    )


class PBKDF2Params(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('salt', univ.OctetString()),
        namedtype.NamedType('iterationCount', univ.Integer()),
        namedtype.OptionalNamedType('keyLength', univ.Integer()),
        namedtype.OptionalNamedType('prf', AlgorithmIdentifier())
    )


class PBES2Params(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('keyDerivationFunc', AlgorithmIdentifier()),
        namedtype.NamedType('encryptionScheme', AlgorithmIdentifier())
    )


class PBEParameter(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('salt', univ.OctetString()),
        namedtype.NamedType('iterationCount', univ.Integer())
    )


class PKCS12PBEParams(univ.Sequence):
    componentType = namedtype.NamedTypes(
        namedtype.NamedType('salt', univ.OctetString()),
        namedtype.NamedType('iterations', univ.Integer())
    )


# ── Decoding helpers ─────────────────────────────────────────────────────────
def decode_der(substrate: bytes, spec):
    """
    Decode DER bytes against an ASN.1 spec instance.
    Trailing bytes after the top-level value are rejected.
    Raises PopPrivateKeyParseError on any decoding problem.
    """
    name = type(spec).__name__
    try:
        value, rest = decoder.decode(substrate, asn1Spec=spec)
    except PyAsn1Error as exc:
        raise PopPrivateKeyParseError(f"Malformed {name}: {exc}") from exc
    if rest:
        raise PopPrivateKeyParseError(
            f"{len(rest)} trailing byte(s) after {name}"
        )
    return value


def decode_parameters(algorithm_identifier, spec):
    """Decode the ANY-typed parameters of an AlgorithmIdentifier."""
    parameters = algorithm_identifier['parameters']
    if not parameters.isValue:
        raise PopPrivateKeyParseError(
            f"{algorithm_identifier['algorithm']} carries no parameters"
        )
    return decode_der(bytes(parameters), spec)


def iteration_count(value, name: str) -> int:
    """Read an iteration count and check it lies in 1..MAX_ITERATIONS."""
    iterations = int(value)
    if iterations < 1:
        raise PopPrivateKeyParseError(f"{name} must be positive")
    if iterations > MAX_ITERATIONS:
        raise PopPrivateKeyParseError(
            f"{name} {iterations} exceeds the limit of {MAX_ITERATIONS}"
        )
    return iterations
