"""
PKCS#12 PBE — SHA-1 + DES-EDE3-CBC  (RFC 7292 Appendix B & C)
==============================================================
The legacy triple-DES scheme: `openssl pkcs8 -topk8 -v1 PBE-SHA1-3DES`,
and what Java's keytool writes for PBEWithSHA1AndDESede.

Key and IV come from the PKCS#12 key derivation function, an iterative
SHA-1 construction over the password as a NUL-terminated BMPString:

    key = KDF(ID=1, 24 bytes)    (16 bytes for the two-key variant)
    iv  = KDF(ID=2,  8 bytes)
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

KEY_ID = 1
IV_ID  = 2

KEY_LENGTHS = {
    asn1.PBE_SHA_3KEY_3DES_CBC: 24,
    asn1.PBE_SHA_2KEY_3DES_CBC: 16,
}


@dataclass(frozen=True)
class PKCS12Params:
    salt:       bytes
    iterations: int
    key_length: int


def parse_params(algorithm_identifier) -> PKCS12Params:
    params = asn1.decode_parameters(algorithm_identifier, asn1.PKCS12PBEParams())
    iterations = asn1.iteration_count(params['iterations'], "PKCS#12 PBE iterations")
    return PKCS12Params(
        salt=bytes(params['salt']),
        iterations=iterations,
        key_length=KEY_LENGTHS[algorithm_identifier['algorithm']],
    )


def bmp_password(password: bytes) -> bytes:
    """UTF-8 password bytes -> big-endian UTF-16 with a two-byte NUL terminator."""
    try:
        text = password.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise PopPrivateKeyParseError("PKCS#12 password is not valid UTF-8") from exc
    return (text + "\x00").encode("utf-16-be")


def _fill(data: bytes, v: int) -> bytes:
    """Repeat data to the next multiple of v bytes (empty stays empty)."""
    if not data:
        return b""
    n = v * -(-len(data) // v)
    return (data * (n // len(data) + 1))[:n]


def pkcs12_kdf(password: bytes, salt: bytes, purpose: int, iterations: int,
               length: int, digest: str = "sha1") -> bytes:
    """
    RFC 7292 B.2. `password` is already BMP-encoded; `purpose` is the
    diversifier ID (1 = key, 2 = IV, 3 = MAC key).
    """
    h = hashlib.new(digest)
    u, v = h.digest_size, h.block_size

    d = bytes([purpose]) * v
    i = bytearray(_fill(salt, v) + _fill(password, v))
    out = b""
    while True:
        a = hashlib.new(digest, d + bytes(i)).digest()
        for _ in range(iterations - 1):
            a = hashlib.new(digest, a).digest()
        out += a
        if len(out) >= length:
            return out[:length]
        # I_j = (I_j + B + 1) mod 2^(8v) for every v-byte block of I
        b = int.from_bytes((a * (v // u + 1))[:v], "big") + 1
        for j in range(0, len(i), v):
            block = (int.from_bytes(i[j:j + v], "big") + b) % (1 << (8 * v))
            i[j:j + v] = block.to_bytes(v, "big")


def decrypt(params: PKCS12Params, password: bytes, ciphertext: bytes) -> bytes:
    logger.debug(
        f"PKCS#12 sha1-{params.key_length * 8 // 64}key-3des iterations={params.iterations}"
    )
    bmp = bmp_password(password)
    key = pkcs12_kdf(bmp, params.salt, KEY_ID, params.iterations, params.key_length)
    iv  = pkcs12_kdf(bmp, params.salt, IV_ID, params.iterations, 8)
    if len(key) == 16:
        # two-key 3DES: K3 = K1
        key += key[:8]
    try:
        decryptor = Cipher(TripleDES(key), modes.CBC(iv)).decryptor()
        padded    = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder  = sym_padding.PKCS7(TripleDES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as exc:
        raise PopPrivateKeyParseError(f"PKCS#12 des-ede3-cbc decryption failed: {exc}") from exc
