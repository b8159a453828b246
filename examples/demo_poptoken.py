"""
poptoken — Live Demo: key loading + PoP token
=============================================
Run:  python examples/demo_poptoken.py

Loads the same RSA key from every supported PKCS#8 encoding in
tests/data/, then builds and prints a PoP token signed with it.
"""

import sys, os, time, logging
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from poptoken import (PopPrivateKeyParseError, PopTokenBuilder,
                      encrypted_key_pem_string_to_private_key,
                      key_pem_string_to_private_key)

logging.basicConfig(level=logging.INFO, format=' %(levelname)s %(name)s: %(message)s')

LINE = "═" * 70
DATA = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "tests", "data")
PASSWORD = "foobar"

ENCRYPTED = [
    ("PBES2  PBKDF2-SHA256 + AES-256-CBC", "pbes2_aes256.pem"),
    ("PBES2  PBKDF2-SHA1   + AES-256-CBC", "pbes2_aes256_sha1.pem"),
    ("PBES2  PBKDF2-SHA256 + DES-EDE3-CBC", "pbes2_des3.pem"),
    ("PKCS12 SHA-1 KDF     + DES-EDE3-CBC", "pkcs12_3des.pem"),
    ("PKCS12 SHA-1 KDF     + 2-key 3DES",   "pkcs12_2des.pem"),
    ("PBES1  MD5           + DES-CBC",      "pbes1_md5_des.pem"),
]


def read(name):
    with open(os.path.join(DATA, name)) as f:
        return f.read()

def ok(label, value=""):
    print(f"  ✓  {label}{f': {value}' if value else ''}")


print(f"\n{LINE}")
print("  poptoken — PKCS#8 key loading + PoP token demo")
print(LINE)

plain = key_pem_string_to_private_key(read("rsa_pkcs8.pem"))
modulus = plain.private_numbers().public_numbers.n
ok("Plain PKCS#8", f"{plain.key_size}-bit, n=…{hex(modulus)[-12:]}")

for label, name in ENCRYPTED:
    t0  = time.perf_counter()
    key = encrypted_key_pem_string_to_private_key(read(name), PASSWORD)
    elapsed = time.perf_counter() - t0
    same = key.private_numbers() == plain.private_numbers()
    ok(label, f"same key={same}  {elapsed*1000:.1f} ms")

try:
    encrypted_key_pem_string_to_private_key(read("pbes2_aes256.pem"), "wrong")
except PopPrivateKeyParseError as e:
    ok("Wrong password rejected", str(e))

print(f"\n{LINE}")
token = (PopTokenBuilder()
         .set_ehts_key_value_map({"Content-Type": "application/json",
                                  "uri": "/commerce/v1/orders",
                                  "http-method": "POST",
                                  "body": '{"orderId": 100}'})
         .sign_with(plain)
         .build())
ok("PoP token", f"{len(token)} chars")
print(f"\n  {token}\n")
print(LINE + "\n")
