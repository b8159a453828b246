"""
Error taxonomy
==============
Every failure the library surfaces is one of three kinds:

  InvalidArgumentError     — a required input (PEM text, password, ehts map)
                             is missing or blank. The caller must fix it.
  PopPrivateKeyParseError  — the input is present but is not a supported
                             PKCS#8 key: wrong PEM label, bad base64, bad DER,
                             unknown encryption OID, wrong password.
  PopTokenBuilderError     — the token could not be assembled or signed.

Wrong password and corrupt data both surface as PopPrivateKeyParseError.
"""


class PopTokenError(Exception):
    """Base class for everything raised by poptoken."""


class InvalidArgumentError(PopTokenError, ValueError):
    """A required argument is None, empty or blank."""


class PopPrivateKeyParseError(PopTokenError):
    """The key material is not a supported (plain or encrypted) PKCS#8 RSA key."""


UnsupportedFormatError = PopPrivateKeyParseError


class PopTokenBuilderError(PopTokenError):
    """The PoP token could not be built."""
