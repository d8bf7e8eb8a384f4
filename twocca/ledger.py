"""Certificate Revocation List handling.
"""

import enum
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.x509.oid import CRLEntryExtensionOID, ExtensionOID

from .compat import get_utc_datetime, get_utc_datetime_opt, utcnow
from .exceptions import ConflictError, CryptoError
from .formats import render_name, render_serial
from .keys import get_hash_algo, verify_signed_by
from .objects import extract_name
from .profiles import make_authority_key_id
from .serials import SerialAllocator
from .store import IdentityStore

__all__ = (
    "RevocationEntry", "RevocationList", "RevocationLedger",
    "DuplicatePolicy", "CRL_VALIDITY_DAYS", "render_crl_date",
)

# nextUpdate distance from lastUpdate
CRL_VALIDITY_DAYS = 365

# CRL reason
CRL_REASON = {
    "key_compromise": x509.ReasonFlags.key_compromise,
    "ca_compromise": x509.ReasonFlags.ca_compromise,
    "affiliation_changed": x509.ReasonFlags.affiliation_changed,
    "superseded": x509.ReasonFlags.superseded,
    "cessation_of_operation": x509.ReasonFlags.cessation_of_operation,
    "certificate_hold": x509.ReasonFlags.certificate_hold,
    "unspecified": x509.ReasonFlags.unspecified,
}

CRL_REASON_MAP = {v: k for k, v in CRL_REASON.items()}


def _ignore(ln: str) -> None:
    pass


def render_crl_date(dt: datetime) -> str:
    """Format timestamp like openssl: "Oct  8 12:00:00 2026 GMT".
    """
    return "%s %2d %s GMT" % (dt.strftime("%b"), dt.day, dt.strftime("%H:%M:%S %Y"))


class DuplicatePolicy(enum.Enum):
    """What to do when revoked serial is already listed.
    """
    ALLOW = "allow"
    REJECT = "reject"


class RevocationEntry:
    """Container for revoked certificate info.
    """
    serial_number: int
    revocation_date: datetime
    reason: str

    def __init__(self,
                 serial_number: int = 0,
                 revocation_date: Optional[datetime] = None,
                 reason: str = "unspecified",
                 load: Optional[x509.RevokedCertificate] = None,
                 ) -> None:
        self.serial_number = serial_number
        self.revocation_date = revocation_date or utcnow()
        self.reason = reason
        if load is not None:
            self.load_from_existing(load)

    def load_from_existing(self, obj: x509.RevokedCertificate) -> None:
        """Load data from x509.RevokedCertificate
        """
        self.serial_number = obj.serial_number
        self.revocation_date = get_utc_datetime(obj, "revocation_date")
        self.reason = "unspecified"
        for ext in obj.extensions:
            if ext.oid == CRLEntryExtensionOID.CRL_REASON:
                self.reason = CRL_REASON_MAP.get(ext.value.reason, "unspecified")

    def generate_rcert(self) -> x509.RevokedCertificate:
        """Return x509.RevokedCertificate
        """
        if self.reason not in CRL_REASON:
            raise ValueError("invalid reason: %r" % self.reason)
        builder = (x509.RevokedCertificateBuilder()
                   .serial_number(self.serial_number)
                   .revocation_date(self.revocation_date))
        code = CRL_REASON[self.reason]
        if code != x509.ReasonFlags.unspecified:
            builder = builder.add_extension(x509.CRLReason(code), critical=False)
        return builder.build()

    def show(self, writeln: Callable[[str], None]) -> None:
        """Print entry in openssl style.
        """
        writeln("serial: %X" % self.serial_number)
        writeln("  date: %s" % render_crl_date(self.revocation_date))
        writeln("")

    def __repr__(self) -> str:
        return "RevocationEntry(%s, %s)" % (render_serial(self.serial_number),
                                            self.revocation_date.isoformat())


class RevocationList:
    """In-memory CRL: loaded, mutated and rewritten in full.
    """
    issuer_name: Optional[x509.Name]
    crl_number: Optional[int]
    last_update: Optional[datetime]
    next_update: Optional[datetime]
    entries: List[RevocationEntry]

    def __init__(self,
                 entries: Optional[List[RevocationEntry]] = None,
                 crl_number: Optional[int] = None,
                 load: Optional[x509.CertificateRevocationList] = None,
                 ) -> None:
        self.issuer_name = None
        self.crl_number = crl_number
        self.last_update = None
        self.next_update = None
        self.entries = entries or []
        if load is not None:
            self.load_from_existing(load)

    def load_from_existing(self, obj: x509.CertificateRevocationList) -> None:
        """Load info from existing CRL.
        """
        self.issuer_name = obj.issuer
        self.last_update = get_utc_datetime(obj, "last_update")
        self.next_update = get_utc_datetime_opt(obj, "next_update")
        self.crl_number = None
        for ext in obj.extensions:
            if ext.oid == ExtensionOID.CRL_NUMBER:
                self.crl_number = ext.value.crl_number
        self.entries = [RevocationEntry(load=r) for r in obj]

    def has_serial(self, serial_number: int) -> bool:
        return any(e.serial_number == serial_number for e in self.entries)

    def add_entry(self, entry: RevocationEntry) -> None:
        """Append and keep list ordered by serial.
        """
        self.entries.append(entry)
        self.entries.sort(key=lambda e: e.serial_number)

    def generate_crl(self, ca_cert: x509.Certificate) -> x509.CertificateRevocationListBuilder:
        """Return unsigned builder with current contents.
        """
        if self.last_update is None or self.next_update is None or self.crl_number is None:
            raise ValueError("CRL timestamps and number must be set")
        builder = (x509.CertificateRevocationListBuilder()
                   .issuer_name(ca_cert.subject)
                   .last_update(self.last_update)
                   .next_update(self.next_update)
                   .add_extension(x509.CRLNumber(self.crl_number), critical=False))
        aki = make_authority_key_id(ca_cert.public_key(), ca_cert, False)
        builder = builder.add_extension(aki, critical=False)
        for entry in self.entries:
            builder = builder.add_revoked_certificate(entry.generate_rcert())
        return builder

    def show(self, writeln: Callable[[str], None]) -> None:
        """Print out details.
        """
        if self.issuer_name is not None:
            writeln("Issuer: %s" % render_name(extract_name(self.issuer_name)))
        if self.crl_number is not None:
            writeln("CRL Number: %d" % self.crl_number)
        if self.last_update is not None:
            writeln("Last update: %s" % self.last_update.isoformat(" "))
        if self.next_update is not None:
            writeln("Next update: %s" % self.next_update.isoformat(" "))


class RevocationLedger:
    """Revoke certificates, one CRL per CA.
    """

    def __init__(self,
                 store: IdentityStore,
                 serials: Optional[SerialAllocator] = None,
                 policy: DuplicatePolicy = DuplicatePolicy.ALLOW,
                 writeln: Callable[[str], None] = _ignore,
                 now: Callable[[], datetime] = utcnow,
                 ) -> None:
        self.store = store
        self.serials = serials or SerialAllocator()
        self.policy = policy
        self.writeln = writeln
        self.now = now

    def load(self, ca_name: str) -> Optional[RevocationList]:
        """Return current list or None if CA has no CRL yet.
        """
        crl = self.store.load_crl(ca_name)
        if crl is None:
            return None
        return RevocationList(load=crl)

    def show(self, ca_name: str) -> List[RevocationEntry]:
        """Return entries in stored order, empty if no CRL.
        """
        rlist = self.load(ca_name)
        if rlist is None:
            return []
        return list(rlist.entries)

    def revoke(self, ca_name: str, target_name: str) -> RevocationList:
        """Add certificate of target_name to CRL of ca_name and rewrite it.
        """
        cert = self.store.load_cert(target_name)
        serial = cert.serial_number

        existing = self.load(ca_name)
        if existing is not None and self.policy is DuplicatePolicy.REJECT:
            if existing.has_serial(serial):
                raise ConflictError("%s: serial %s already revoked" % (
                    target_name, render_serial(serial)))

        crl_number = self.serials.next_crl_number(existing)
        now = self.now()
        rlist = existing or RevocationList()
        rlist.add_entry(RevocationEntry(serial, now))
        rlist.last_update = now
        rlist.next_update = now + timedelta(days=CRL_VALIDITY_DAYS)
        rlist.crl_number = crl_number

        ca = self.store.load_identity(ca_name)
        rlist.issuer_name = ca.cert.subject

        builder = rlist.generate_crl(ca.cert)
        try:
            crl = builder.sign(private_key=ca.key, algorithm=get_hash_algo())
        except (ValueError, TypeError, UnsupportedAlgorithm) as ex:
            raise CryptoError("CRL signing failed: %s" % ex) from ex
        if not verify_signed_by(crl, ca.cert.public_key()):
            raise CryptoError("Signed CRL does not verify against %s" % ca_name)

        self.store.save_crl(ca_name, crl)
        self.writeln("Revoked %s [%s], CRL number %d" % (
            target_name, render_serial(serial), rlist.crl_number))
        return rlist

