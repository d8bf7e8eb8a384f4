"""Issue new identities: key pair + signed certificate.
"""

import enum
from datetime import datetime, timedelta
from typing import Callable, Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm

from .compat import PrivateKeyTypes, utcnow
from .exceptions import ConflictError, CryptoError, RequestError
from .formats import render_name, render_serial
from .keys import (
    get_hash_algo, get_key_name, new_ec_key, new_rsa_key, verify_signed_by,
)
from .objects import extract_name, get_name_field, make_gnames, make_name
from .profiles import PROFILE_TABLE, Profile, extensions_for
from .request import CertificateRequest, ECKeySpec, KeySpec, RSAKeySpec
from .serials import SerialAllocator
from .store import Identity, IdentityStore

__all__ = ("IssueState", "IssuanceEngine", "new_key_for_spec")


class IssueState(enum.Enum):
    """Steps of issuing, in order.
    """
    IDLE = "idle"
    VALIDATING = "validating"
    LOADING_ISSUER = "loading-issuer"
    GENERATING_KEY = "generating-key"
    BUILDING_CERTIFICATE = "building-certificate"
    SIGNING = "signing"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


def _ignore(ln: str) -> None:
    pass


def new_key_for_spec(spec: KeySpec) -> PrivateKeyTypes:
    """Generate key pair described by spec.
    """
    if isinstance(spec, ECKeySpec):
        return new_ec_key(spec.curve)
    if isinstance(spec, RSAKeySpec):
        return new_rsa_key(spec.bits)
    raise RequestError("Unknown key spec: %r" % (spec,))


class IssuanceEngine:
    """Runs one request at a time through the IssueState steps.

    Any failure aborts the run with state FAILED, nothing is written
    until the PERSISTING step.
    """
    state: IssueState
    failure: Optional[str]

    def __init__(self,
                 store: IdentityStore,
                 serials: Optional[SerialAllocator] = None,
                 writeln: Callable[[str], None] = _ignore,
                 now: Callable[[], datetime] = utcnow,
                 ) -> None:
        self.store = store
        self.serials = serials or SerialAllocator()
        self.writeln = writeln
        self.now = now
        self.state = IssueState.IDLE
        self.failure = None

    def _enter(self, state: IssueState) -> None:
        self.state = state

    def issue(self, req: CertificateRequest) -> Identity:
        """Create, sign and store new identity.
        """
        self.failure = None
        try:
            return self._run(req)
        except Exception as ex:
            self.state = IssueState.FAILED
            self.failure = str(ex)
            raise

    def _run(self, req: CertificateRequest) -> Identity:
        self._enter(IssueState.VALIDATING)
        self.validate(req)

        issuer: Optional[Identity] = None
        if req.profile is not Profile.ROOT_CA:
            self._enter(IssueState.LOADING_ISSUER)
            issuer = self.store.load_identity(req.signing_ca)
            # organization always follows issuer
            org = get_name_field(issuer.cert.subject, "O")
            if org:
                req = req._replace(organization=org)

        self._enter(IssueState.GENERATING_KEY)
        if isinstance(req.key, ECKeySpec):
            self.writeln("Generating EC key [%s]" % req.key.curve)
        else:
            self.writeln("Generating %s key" % req.key.describe())
        key = new_key_for_spec(req.key)

        self._enter(IssueState.BUILDING_CERTIFICATE)
        builder = self.build_certificate(req, key)

        self._enter(IssueState.SIGNING)
        cert = self.sign(req, builder, key, issuer)

        self._enter(IssueState.PERSISTING)
        self.writeln("Saving results to %s.[crt|key]" % req.common_name)
        ident = Identity(key, cert)
        self.store.save_identity(req.common_name, ident)

        self._enter(IssueState.DONE)
        self.writeln("done")
        return ident

    def validate(self, req: CertificateRequest) -> None:
        """Checks done before any key generation.
        """
        if not req.common_name:
            raise RequestError("Common name must not be empty")
        fn = self.store.identity_exists(req.common_name)
        if fn:
            raise ConflictError("identity named %s already exists in this directory" % fn)
        if not isinstance(req.profile, Profile) or req.profile not in PROFILE_TABLE:
            raise RequestError("Unknown profile: %r" % (req.profile,))
        if isinstance(req.key, ECKeySpec) and req.profile is not Profile.CLIENT:
            raise RequestError("ECC keys are only supported for clients")
        if req.days <= 0:
            raise RequestError("Validity days must be positive")
        try:
            self.now() + timedelta(days=req.days)
        except OverflowError:
            raise RequestError("Validity days too large: %d" % req.days) from None
        make_name(req.subject_fields())
        make_gnames(req.san)

    def build_certificate(self, req: CertificateRequest, key: PrivateKeyTypes) -> x509.CertificateBuilder:
        """Fill subject, validity, serial and public key.
        """
        not_valid_before = self.now()
        not_valid_after = not_valid_before + timedelta(days=req.days)
        serial = self.serials.next_serial()
        subject = make_name(req.subject_fields())
        if req.san:
            self.writeln("SAN[%s]" % req.san_text())
        return (x509.CertificateBuilder()
                .subject_name(subject)
                .not_valid_before(not_valid_before)
                .not_valid_after(not_valid_after)
                .serial_number(serial)
                .public_key(key.public_key()))

    def sign(self,
             req: CertificateRequest,
             builder: x509.CertificateBuilder,
             key: PrivateKeyTypes,
             issuer: Optional[Identity],
             ) -> x509.Certificate:
        """Add profile extensions, set issuer and sign.
        """
        pubkey = key.public_key()
        issuer_cert = issuer.cert if issuer else None
        for ext in extensions_for(req.profile, pubkey, issuer_cert, req.san):
            builder = builder.add_extension(ext.value, critical=ext.critical)

        if issuer is None:
            signer_key = key
            issuer_name = make_name(req.subject_fields())
        else:
            signer_key = issuer.key
            issuer_name = issuer.cert.subject
        builder = builder.issuer_name(issuer_name)

        try:
            cert = builder.sign(private_key=signer_key, algorithm=get_hash_algo())
        except (ValueError, TypeError, UnsupportedAlgorithm) as ex:
            raise CryptoError("Signing failed: %s" % ex) from ex

        # check result against intended issuer
        if cert.issuer != issuer_name or not verify_signed_by(cert, signer_key.public_key()):
            raise CryptoError("Issued certificate does not verify against issuer")

        self.writeln("Signed %s cert [%s] serial %s" % (
            req.profile.value, get_key_name(pubkey), render_serial(cert.serial_number)))
        self.writeln("Issuer: %s" % render_name(extract_name(issuer_name)))
        return cert
