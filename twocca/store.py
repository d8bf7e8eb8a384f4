"""CA directory: keys, certificates and CRLs stored as PEM files.

Layout::

    <name>.crt      certificate
    <name>.key      private key, PKCS#8
    <name>.crl      CRL issued by CA <name>
    dh<bits>.pem    Diffie-Hellman parameters

No locking is done, one directory is meant for one operator.
"""

import os
import os.path
import re
from typing import Callable, NamedTuple, Optional, TypeVar

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import dh
from cryptography.hazmat.primitives.serialization import (
    Encoding, NoEncryption, ParameterFormat, PrivateFormat,
    load_der_private_key, load_pem_private_key,
)

from .compat import PrivateKeyClasses, PrivateKeyTypes
from .exceptions import StoreError, TrustError
from .keys import same_pubkey
from .request import validate_name

__all__ = ("Identity", "IdentityStore", "is_pem_data")

T = TypeVar("T")

KEY_FILE_MODE = 0o600
FILE_MODE = 0o644


class Identity(NamedTuple):
    """Private key with its certificate.
    """
    key: PrivateKeyTypes
    cert: x509.Certificate


_bin_rc = re.compile(b"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def is_pem_data(data: bytes) -> bool:
    """Detect if data is textual.
    """
    return not _bin_rc.search(data)


def parse_key(data: bytes) -> PrivateKeyTypes:
    """Load unencrypted private key, PEM or DER.
    """
    if is_pem_data(data):
        key = load_pem_private_key(data, password=None)
    else:
        key = load_der_private_key(data, password=None)
    if not isinstance(key, PrivateKeyClasses):
        raise ValueError("Unsupported private key type")
    return key


def parse_cert(data: bytes) -> x509.Certificate:
    if is_pem_data(data):
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


def parse_crl(data: bytes) -> x509.CertificateRevocationList:
    if is_pem_data(data):
        return x509.load_pem_x509_crl(data)
    return x509.load_der_x509_crl(data)


class IdentityStore:
    """Files of one CA universe, addressed by logical name.
    """

    def __init__(self, path: str = ".") -> None:
        self.path = path

    def filename(self, name: str, ext: str) -> str:
        """Full path for name + extension.
        """
        validate_name(name)
        return os.path.join(self.path, name + ext)

    def cert_filename(self, name: str) -> str:
        return self.filename(name, ".crt")

    def key_filename(self, name: str) -> str:
        return self.filename(name, ".key")

    def crl_filename(self, name: str) -> str:
        return self.filename(name, ".crl")

    def dh_filename(self, bits: int) -> str:
        return os.path.join(self.path, "dh%d.pem" % bits)

    def identity_exists(self, name: str) -> Optional[str]:
        """Return first existing file of identity or None.
        """
        for fn in (self.cert_filename(name), self.key_filename(name)):
            if os.path.exists(fn):
                return fn
        return None

    def _read(self, fn: str, what: str, parse: Callable[[bytes], T]) -> T:
        try:
            with open(fn, "rb") as f:
                data = f.read()
        except FileNotFoundError:
            raise StoreError("Cannot find: %s" % fn) from None
        except OSError as ex:
            raise StoreError("Cannot read %s: %s" % (fn, ex)) from ex
        try:
            return parse(data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as ex:
            raise StoreError("Cannot parse %s %s: %s" % (what, fn, ex)) from ex

    def _write(self, fn: str, data: bytes, mode: int = FILE_MODE) -> None:
        try:
            fd = os.open(fn, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, mode)
            with open(fd, "wb", buffering=0) as f:
                f.write(data)
        except OSError as ex:
            raise StoreError("Cannot write %s: %s" % (fn, ex)) from ex

    def load_cert(self, name: str) -> x509.Certificate:
        """Read certificate, must exist.
        """
        return self._read(self.cert_filename(name), "certificate", parse_cert)

    def load_key(self, name: str) -> PrivateKeyTypes:
        """Read private key, must exist.
        """
        return self._read(self.key_filename(name), "private key", parse_key)

    def load_identity(self, name: str) -> Identity:
        """Read certificate + key, check that they belong together.
        """
        cert = self.load_cert(name)
        key = self.load_key(name)
        if not same_pubkey(key, cert):
            raise TrustError("%s: certificate and private key do not match" % name)
        return Identity(key, cert)

    def save_identity(self, name: str, ident: Identity) -> None:
        """Write key and certificate.

        Existing files are overwritten, callers check for conflicts.
        """
        keydata = ident.key.private_bytes(Encoding.PEM, PrivateFormat.PKCS8, NoEncryption())
        certdata = ident.cert.public_bytes(Encoding.PEM)
        self._write(self.key_filename(name), keydata, KEY_FILE_MODE)
        self._write(self.cert_filename(name), certdata)

    def load_crl(self, ca_name: str) -> Optional[x509.CertificateRevocationList]:
        """Read CRL of CA, None if not created yet.
        """
        fn = self.crl_filename(ca_name)
        if not os.path.exists(fn):
            return None
        return self._read(fn, "CRL", parse_crl)

    def save_crl(self, ca_name: str, crl: x509.CertificateRevocationList) -> None:
        self._write(self.crl_filename(ca_name), crl.public_bytes(Encoding.PEM))

    def save_dh_params(self, bits: int, params: dh.DHParameters) -> str:
        """Write DH parameters, return file name.
        """
        fn = self.dh_filename(bits)
        self._write(fn, params.parameter_bytes(Encoding.PEM, ParameterFormat.PKCS3))
        return fn
