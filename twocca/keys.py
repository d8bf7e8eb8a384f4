"""Key handling
"""

from typing import List, Sequence, Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import dh, ec, padding, rsa
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from .compat import (
    EC_CURVES, PrivateKeyClasses, PrivateKeyTypes,
    PublicKeyTypes, valid_private_key, valid_public_key,
)
from .exceptions import CryptoError

__all__ = (
    "get_curve_for_name", "get_ec_curves", "get_hash_algo", "get_key_name",
    "is_safe_bits", "is_safe_curve",
    "new_dh_params", "new_ec_key", "new_rsa_key",
    "same_pubkey", "set_unsafe", "verify_signed_by",
)


#
# Key parameters
#


UNSAFE = False

# safe choices
SAFE_BITS_RSA = (2048, 3072, 4096)
SAFE_BITS_DH = (2048, 3072, 4096)
SAFE_CURVES = ("secp256r1", "prime256v1", "secp384r1", "secp521r1",
               "brainpoolp256r1", "brainpoolp384r1", "brainpoolp512r1")

# DH generator, same as openssl dhparam default
DH_GENERATOR = 2


def get_curve_for_name(name: str) -> ec.EllipticCurve:
    """Lookup curve by name.
    """
    name2 = name.lower()
    if name2 not in EC_CURVES:
        raise CryptoError("Unknown curve: [%s]" % name)
    if not is_safe_curve(name2):
        raise CryptoError("Unsafe curve: [%s]" % name)
    return EC_CURVES[name2]()


def same_pubkey(o1: Union[x509.Certificate, PublicKeyTypes, PrivateKeyTypes],
                o2: Union[x509.Certificate, PublicKeyTypes, PrivateKeyTypes],
                ) -> bool:
    """Compare public keys.
    """
    def pubkey(o: Union[x509.Certificate, PublicKeyTypes, PrivateKeyTypes]) -> PublicKeyTypes:
        if isinstance(o, x509.Certificate):
            return valid_public_key(o.public_key())
        if isinstance(o, PrivateKeyClasses):
            return valid_private_key(o).public_key()
        return valid_public_key(o)

    fmt = PublicFormat.SubjectPublicKeyInfo
    p1 = pubkey(o1).public_bytes(Encoding.PEM, fmt)
    p2 = pubkey(o2).public_bytes(Encoding.PEM, fmt)
    return p1 == p2


def get_hash_algo() -> SHA256:
    """Signature hash, same for all profiles and CRLs.
    """
    return SHA256()


def verify_signed_by(obj: Union[x509.Certificate, x509.CertificateRevocationList],
                     pubkey: PublicKeyTypes) -> bool:
    """Check signature on certificate or CRL against public key.
    """
    if isinstance(obj, x509.CertificateRevocationList):
        return obj.is_signature_valid(pubkey)
    if not isinstance(obj, x509.Certificate):
        raise TypeError("Expect Certificate or CertificateRevocationList")
    algo = obj.signature_hash_algorithm
    if algo is None:
        return False
    try:
        if isinstance(pubkey, rsa.RSAPublicKey):
            pubkey.verify(obj.signature, obj.tbs_certificate_bytes, padding.PKCS1v15(), algo)
        elif isinstance(pubkey, ec.EllipticCurvePublicKey):
            pubkey.verify(obj.signature, obj.tbs_certificate_bytes, ec.ECDSA(algo))
        else:
            raise TypeError("Unsupported public key type")
    except InvalidSignature:
        return False
    return True


def is_safe_bits(bits: int, bitlist: Sequence[int]) -> bool:
    """Allow bits"""
    return UNSAFE or bits in bitlist


def is_safe_curve(name: str) -> bool:
    """Allow curve"""
    return UNSAFE or name.lower() in SAFE_CURVES


def get_ec_curves() -> List[str]:
    """Return supported curve names.
    """
    return [n for n in sorted(EC_CURVES) if is_safe_curve(n)]


def new_ec_key(name: str = "secp256r1") -> ec.EllipticCurvePrivateKey:
    """New Elliptic Curve key
    """
    curve = get_curve_for_name(name)
    try:
        return ec.generate_private_key(curve=curve)
    except (ValueError, UnsupportedAlgorithm) as ex:
        raise CryptoError("Cannot generate EC key [%s]: %s" % (name, ex)) from ex


def new_rsa_key(bits: int = 2048) -> rsa.RSAPrivateKey:
    """New RSA key.
    """
    if not is_safe_bits(bits, SAFE_BITS_RSA):
        raise CryptoError("Bad value for RSA bits: %d" % bits)
    try:
        return rsa.generate_private_key(key_size=bits, public_exponent=65537)
    except ValueError as ex:
        raise CryptoError("Cannot generate RSA-%d key: %s" % (bits, ex)) from ex


def new_dh_params(bits: int = 2048) -> dh.DHParameters:
    """New Diffie-Hellman parameters.

    Slow for real sizes: several minutes for 4096 bits.
    """
    if not is_safe_bits(bits, SAFE_BITS_DH):
        raise CryptoError("Bad value for DH bits: %d" % bits)
    try:
        return dh.generate_parameters(generator=DH_GENERATOR, key_size=bits)
    except ValueError as ex:
        raise CryptoError("Cannot generate DH parameters: %s" % ex) from ex


def get_key_name(key: Union[PublicKeyTypes, PrivateKeyTypes]) -> str:
    """Return key type.
    """
    if isinstance(key, (rsa.RSAPublicKey, rsa.RSAPrivateKey)):
        return "rsa:%d" % key.key_size
    if isinstance(key, (ec.EllipticCurvePublicKey, ec.EllipticCurvePrivateKey)):
        return "ec:%s" % key.curve.name
    return "<unknown key type>"


def set_unsafe(flag: bool) -> None:
    global UNSAFE
    UNSAFE = flag
