"""
PBES1 — PBKDF1 + DES-CBC  (RFC 8018 §6.1)
==========================================
Legacy scheme written by `openssl pkcs8 -topk8 -v1 PBE-MD5-DES` and by
older OpenSSL releases by default.

    T_1 = Hash(password || salt),  T_i = Hash(T_{i-1}),  DK = T_c[:16]
    key = DK[:8]   iv = DK[8:16]

Single DES is run as DES-EDE3 with K1 = K2 = K3 (the 8-byte key repeated
three times), which is equivalent.
"""

import hashlib
import logging
from dataclasses import dataclass

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import padding as sym_padding
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from .. import asn1
from ..errors import PopPrivateKeyParseError

logger = logging.getLogger(__name__)

DIGESTS = {
    asn1.PBE_MD5_DES_CBC:  "md5",
    asn1.PBE_SHA1_DES_CBC: "sha1",
}

DK_LEN = 16


@dataclass(frozen=True)
class PBES1Params:
    digest:     str
    salt:       bytes
    iterations: int


def parse_params(algorithm_identifier) -> PBES1Params:
    params = asn1.decode_parameters(algorithm_identifier, asn1.PBEParameter())
    salt = bytes(params['salt'])
    if len(salt) != 8:
        raise PopPrivateKeyParseError(f"PBES1 salt must be 8 bytes, got {len(salt)}")
    iterations = asn1.iteration_count(params['iterationCount'], "PBES1 iterationCount")
    return PBES1Params(
        digest=DIGESTS[algorithm_identifier['algorithm']],
        salt=salt,
        iterations=iterations,
    )


def pbkdf1(digest: str, password: bytes, salt: bytes, iterations: int,
           length: int = DK_LEN) -> bytes:
    t = hashlib.new(digest, password + salt).digest()
    for _ in range(iterations - 1):
        t = hashlib.new(digest, t).digest()
    if length > len(t):
        raise ValueError(f"PBKDF1-{digest} cannot derive {length} bytes")
    return t[:length]


def decrypt(params: PBES1Params, password: bytes, ciphertext: bytes) -> bytes:
    logger.debug(f"PBES1 {params.digest}-des-cbc iterations={params.iterations}")
    dk = pbkdf1(params.digest, password, params.salt, params.iterations)
    key, iv = dk[:8], dk[8:]
    try:
        decryptor = Cipher(TripleDES(key * 3), modes.CBC(iv)).decryptor()
        padded    = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder  = sym_padding.PKCS7(TripleDES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise PopPrivateKeyParseError(f"PBES1 des-cbc decryption failed: {exc}") from exc
