"""Public API
"""

# pylint: disable=unused-import

from . import FULL_VERSION
from .compat import (
    PrivateKeyClasses, PrivateKeyTypes, PublicKeyClasses, PublicKeyTypes,
    get_utc_datetime, get_utc_datetime_opt, utcnow,
)
from .config import Settings, load_settings, load_settings_file
from .exceptions import (
    CAError, ConflictError, CryptoError, RequestError, StoreError, TrustError,
)
from .formats import parse_int, render_name, render_serial
from .issuance import IssuanceEngine, IssueState, new_key_for_spec
from .keys import (
    get_curve_for_name, get_ec_curves, get_key_name, new_dh_params,
    new_ec_key, new_rsa_key, same_pubkey, set_unsafe, verify_signed_by,
)
from .ledger import (
    DuplicatePolicy, RevocationEntry, RevocationLedger, RevocationList,
    render_crl_date,
)
from .objects import DN_CODE_TO_OID, DN_OID_TO_CODE, extract_name, get_name_field
from .profiles import ORG_UNITS, ExtensionSpec, Profile, extensions_for, parse_profile
from .request import (
    CertificateRequest, Defaults, ECKeySpec, RSAKeySpec, SanEntry, make_request,
)
from .serials import SerialAllocator
from .store import Identity, IdentityStore

__all__ = (
    "FULL_VERSION",
    "DN_CODE_TO_OID", "DN_OID_TO_CODE", "ORG_UNITS",
    "PrivateKeyClasses", "PrivateKeyTypes", "PublicKeyClasses", "PublicKeyTypes",
    "CAError", "ConflictError", "CryptoError", "RequestError", "StoreError", "TrustError",
    "CertificateRequest", "Defaults", "ECKeySpec", "RSAKeySpec", "SanEntry",
    "DuplicatePolicy", "ExtensionSpec", "Identity", "IdentityStore",
    "IssuanceEngine", "IssueState", "Profile",
    "RevocationEntry", "RevocationLedger", "RevocationList",
    "SerialAllocator", "Settings",
    "extensions_for", "extract_name", "get_curve_for_name", "get_ec_curves",
    "get_key_name", "get_name_field", "get_utc_datetime", "get_utc_datetime_opt",
    "load_settings", "load_settings_file", "make_request",
    "new_dh_params", "new_ec_key", "new_key_for_spec", "new_rsa_key",
    "parse_int", "parse_profile", "render_crl_date", "render_name", "render_serial",
    "same_pubkey", "set_unsafe", "utcnow", "verify_signed_by",
)
