"""Compatibility between various cryptography versions.
"""

# pylint: disable=import-outside-toplevel

from datetime import datetime, timezone
from typing import (
    TYPE_CHECKING, Any, Dict, Optional, Tuple, Type, Union, cast,
)

from cryptography.hazmat.primitives.asymmetric import ec, rsa

try:
    from typing import TypeAlias
except ImportError:
    if TYPE_CHECKING:
        from typing_extensions import TypeAlias
    else:
        class TypeAlias:
            pass


__all__ = (
    "PrivateKeyTypes", "PublicKeyTypes",
    "PrivateKeyClasses", "PublicKeyClasses",
    "EC_CURVES", "TypeAlias",
    "get_utc_datetime", "get_utc_datetime_opt", "utcnow",
    "valid_private_key", "valid_public_key",
)


# curves that always exist
EC_CURVES: Dict[str, Type[ec.EllipticCurve]] = {
    "secp192r1": ec.SECP192R1,
    "secp224r1": ec.SECP224R1,
    "secp256r1": ec.SECP256R1,
    "secp384r1": ec.SECP384R1,
    "secp521r1": ec.SECP521R1,
}

# openssl aliases
EC_CURVES["prime256v1"] = ec.SECP256R1

# load all curves
try:
    from cryptography.hazmat.primitives.asymmetric.ec import (
        EllipticCurveOID, get_curve_for_oid,
    )
    EC_CURVES.update({n.lower(): get_curve_for_oid(getattr(EllipticCurveOID, n))
                      for n in dir(EllipticCurveOID) if n[0] != "_"})
except ImportError:
    pass


# only RSA and EC keys are issued or accepted as CA keys
PrivateKeyTypes: TypeAlias = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey]
PrivateKeyClasses: Tuple[Type[PrivateKeyTypes], ...] = (
    rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey,
)
PublicKeyTypes: TypeAlias = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey]
PublicKeyClasses: Tuple[Type[PublicKeyTypes], ...] = (
    rsa.RSAPublicKey, ec.EllipticCurvePublicKey,
)


def utcnow() -> datetime:
    """Current time, timezone-aware, without microseconds.

    Certificates and CRLs store whole seconds only.
    """
    return datetime.now(timezone.utc).replace(microsecond=0)


def get_utc_datetime_opt(obj: Any, field: str) -> Optional[datetime]:
    field_utc = field + "_utc"
    if hasattr(obj, field_utc):
        return cast(datetime, getattr(obj, field_utc))
    dt = getattr(obj, field)
    if dt is None:
        return None
    return cast(datetime, dt.replace(tzinfo=timezone.utc))


def get_utc_datetime(obj: Any, field: str) -> datetime:
    dt = get_utc_datetime_opt(obj, field)
    assert dt, "get_utc_datetime expects not-None"
    return dt


def valid_private_key(key: Any) -> PrivateKeyTypes:
    if isinstance(key, PrivateKeyClasses):
        return cast(PrivateKeyTypes, key)
    raise TypeError("Invalid private key type")


def valid_public_key(key: Any) -> PublicKeyTypes:
    if isinstance(key, PublicKeyClasses):
        return cast(PublicKeyTypes, key)
    raise TypeError("Invalid public key type")
