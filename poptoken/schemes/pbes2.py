"""
PBES2 — PBKDF2 + CBC block cipher  (RFC 8018 §6.2)
===================================================
The modern PKCS#8 encryption scheme and the default of
`openssl pkcs8 -topk8` since OpenSSL 1.1.

    key = PBKDF2(PRF, password, salt, iterationCount, dkLen)
    PrivateKeyInfo = unpad(CBC-decrypt(cipher(key), iv, encryptedData))

PRF: HMAC-SHA1 when the parameters omit it (RFC 8018 default),
     HMAC-SHA224/256/384/512 when named.
Ciphers: AES-256-CBC, AES-192-CBC, AES-128-CBC, DES-EDE3-CBC.

Dependencies: cryptography >= 43.0, pyasn1
"""

import logging
from dataclasses import dataclass

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives import padding as sym_padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from pyasn1.type import univ

from .. import asn1
from ..errors import PopPrivateKeyParseError

logger = logging.getLogger(__name__)

PRFS = {
    asn1.HMAC_SHA1:   hashes.SHA1,
    asn1.HMAC_SHA224: hashes.SHA224,
    asn1.HMAC_SHA256: hashes.SHA256,
    asn1.HMAC_SHA384: hashes.SHA384,
    asn1.HMAC_SHA512: hashes.SHA512,
}

# oid -> (name, cipher algorithm, key length in bytes)
CIPHERS = {
    asn1.AES256_CBC:   ("aes-256-cbc",  algorithms.AES, 32),
    asn1.AES192_CBC:   ("aes-192-cbc",  algorithms.AES, 24),
    asn1.AES128_CBC:   ("aes-128-cbc",  algorithms.AES, 16),
    asn1.DES_EDE3_CBC: ("des-ede3-cbc", TripleDES,      24),
}


@dataclass(frozen=True)
class PBES2Params:
    salt:        bytes
    iterations:  int
    prf:         type
    cipher_name: str
    cipher:      type
    key_length:  int
    iv:          bytes


def parse_params(algorithm_identifier) -> PBES2Params:
    """Turn the PBES2-params of an EncryptedPrivateKeyInfo into PBES2Params."""
    params = asn1.decode_parameters(algorithm_identifier, asn1.PBES2Params())

    kdf = params['keyDerivationFunc']
    if kdf['algorithm'] != asn1.PBKDF2:
        raise PopPrivateKeyParseError(
            f"Unsupported PBES2 key derivation function {kdf['algorithm']}"
        )
    kdf_params = asn1.decode_parameters(kdf, asn1.PBKDF2Params())

    prf_oid = asn1.HMAC_SHA1
    if kdf_params['prf'].isValue:
        prf_oid = kdf_params['prf']['algorithm']
    if prf_oid not in PRFS:
        raise PopPrivateKeyParseError(f"Unsupported PBKDF2 PRF {prf_oid}")

    scheme = params['encryptionScheme']
    if scheme['algorithm'] not in CIPHERS:
        raise PopPrivateKeyParseError(
            f"Unsupported PBES2 encryption scheme {scheme['algorithm']}"
        )
    cipher_name, cipher, key_length = CIPHERS[scheme['algorithm']]
    iv = bytes(asn1.decode_parameters(scheme, univ.OctetString()))

    if kdf_params['keyLength'].isValue and int(kdf_params['keyLength']) != key_length:
        raise PopPrivateKeyParseError(
            f"PBKDF2 keyLength {int(kdf_params['keyLength'])} does not match "
            f"{cipher_name} key size {key_length}"
        )
    if len(iv) * 8 != cipher.block_size:
        raise PopPrivateKeyParseError(
            f"{cipher_name} IV must be {cipher.block_size // 8} bytes, got {len(iv)}"
        )

    iterations = asn1.iteration_count(kdf_params['iterationCount'], "PBKDF2 iterationCount")

    return PBES2Params(
        salt=bytes(kdf_params['salt']),
        iterations=iterations,
        prf=PRFS[prf_oid],
        cipher_name=cipher_name,
        cipher=cipher,
        key_length=key_length,
        iv=iv,
    )


def derive_key(params: PBES2Params, password: bytes) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=params.prf(),
        length=params.key_length,
        salt=params.salt,
        iterations=params.iterations,
    )
    return kdf.derive(password)


def decrypt(params: PBES2Params, password: bytes, ciphertext: bytes) -> bytes:
    """
    Derive the key and decrypt encryptedData.
    A wrong password nearly always shows up as bad padding here; the
    few survivors fail later when the plaintext is parsed as DER.
    """
    logger.debug(
        f"PBES2 prf=hmac-{params.prf.name} cipher={params.cipher_name} "
        f"iterations={params.iterations}"
    )
    try:
        key       = derive_key(params, password)
        decryptor = Cipher(params.cipher(key), modes.CBC(params.iv)).decryptor()
        padded    = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder  = sym_padding.PKCS7(params.cipher.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except (ValueError, OverflowError) as exc:
        raise PopPrivateKeyParseError(
            f"PBES2 {params.cipher_name} decryption failed: {exc}"
        ) from exc
