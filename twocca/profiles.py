"""Certificate profiles and the extensions each one receives.
"""

import enum
from typing import Dict, List, NamedTuple, Optional, Sequence, Tuple

from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, ObjectIdentifier

from .compat import PublicKeyTypes
from .exceptions import RequestError
from .objects import make_gnames

__all__ = (
    "Profile", "ExtensionSpec", "ORG_UNITS", "PROFILE_TABLE",
    "NETSCAPE_CERT_TYPE_OID", "extensions_for", "parse_profile",
)


class Profile(enum.Enum):
    """Closed set of certificate profiles.
    """
    ROOT_CA = "root"
    SUB_CA = "sub"
    SERVER = "server"
    CLIENT = "client"
    WWW = "www"

    @property
    def is_ca(self) -> bool:
        return self in (Profile.ROOT_CA, Profile.SUB_CA)


def parse_profile(name: str) -> Profile:
    """Lookup profile by command name.
    """
    try:
        return Profile(name)
    except ValueError:
        raise RequestError("Unknown profile: %s" % name) from None


# OU is derived from profile, never taken from request
ORG_UNITS: Dict[Profile, str] = {
    Profile.ROOT_CA: "Root",
    Profile.SUB_CA: "Sub",
    Profile.SERVER: "Server",
    Profile.CLIENT: "Client",
    Profile.WWW: "Server",
}

# Netscape certificate type, bit 1 = SSL server
NETSCAPE_CERT_TYPE_OID = ObjectIdentifier("2.16.840.1.113730.1.1")
NETSCAPE_SSL_SERVER = b"\x03\x02\x06\x40"


class ExtensionSpec(NamedTuple):
    """One extension ready for CertificateBuilder.add_extension().
    """
    oid: ObjectIdentifier
    value: x509.ExtensionType
    critical: bool


class ProfileRules(NamedTuple):
    """Declarative extension set for one profile.
    """
    ca: bool
    key_usage: Tuple[str, ...]
    ext_key_usage: Tuple[ObjectIdentifier, ...]
    netscape_server: bool
    # authorityKeyIdentifier includes issuer name + serial
    aki_issuer: bool


PROFILE_TABLE: Dict[Profile, ProfileRules] = {
    Profile.ROOT_CA: ProfileRules(
        ca=True, key_usage=("key_cert_sign", "crl_sign"), ext_key_usage=(),
        netscape_server=False, aki_issuer=False),
    Profile.SUB_CA: ProfileRules(
        ca=True, key_usage=("key_cert_sign", "crl_sign"), ext_key_usage=(),
        netscape_server=False, aki_issuer=False),
    Profile.SERVER: ProfileRules(
        ca=False, key_usage=("digital_signature", "key_encipherment"),
        ext_key_usage=(ExtendedKeyUsageOID.SERVER_AUTH,),
        netscape_server=True, aki_issuer=True),
    Profile.CLIENT: ProfileRules(
        ca=False, key_usage=("digital_signature",),
        ext_key_usage=(ExtendedKeyUsageOID.CLIENT_AUTH,),
        netscape_server=False, aki_issuer=True),
    Profile.WWW: ProfileRules(
        ca=False, key_usage=("digital_signature", "key_encipherment"),
        ext_key_usage=(ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH),
        netscape_server=True, aki_issuer=True),
}


def make_key_usage(usage: Sequence[str]) -> x509.KeyUsage:
    """KeyUsage with only listed bits set.
    """
    fields = ("digital_signature", "content_commitment", "key_encipherment",
              "data_encipherment", "key_agreement", "key_cert_sign",
              "crl_sign", "encipher_only", "decipher_only")
    bad = [u for u in usage if u not in fields]
    if bad:
        raise ValueError("Unknown key usage: %s" % ",".join(bad))
    return x509.KeyUsage(**{f: f in usage for f in fields})


def make_authority_key_id(issuer_pubkey: PublicKeyTypes,
                          issuer_cert: Optional[x509.Certificate],
                          with_issuer: bool) -> x509.AuthorityKeyIdentifier:
    """AuthorityKeyIdentifier in openssl's keyid:always / issuer:always style.
    """
    aki = None
    if issuer_cert is not None:
        try:
            ski = issuer_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
            aki = x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski.value)
        except x509.ExtensionNotFound:
            pass
    if aki is None:
        aki = x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer_pubkey)
    if with_issuer and issuer_cert is not None:
        return x509.AuthorityKeyIdentifier(
            key_identifier=aki.key_identifier,
            authority_cert_issuer=[x509.DirectoryName(issuer_cert.issuer)],
            authority_cert_serial_number=issuer_cert.serial_number)
    return aki


def extensions_for(profile: Profile,
                   subject_pubkey: PublicKeyTypes,
                   issuer_cert: Optional[x509.Certificate],
                   san: Sequence[Tuple[str, str]] = (),
                   ) -> List[ExtensionSpec]:
    """Return ordered extension list for profile.

    issuer_cert is None only for self-signed root, then the authority
    key id is taken from subject_pubkey.  SAN entries are (tag, value)
    pairs where tag is "dns" or "email"; they are ignored for CA profiles.
    """
    if not isinstance(profile, Profile) or profile not in PROFILE_TABLE:
        raise RequestError("Unknown profile: %r" % (profile,))
    rules = PROFILE_TABLE[profile]
    if issuer_cert is None and profile is not Profile.ROOT_CA:
        raise RequestError("Profile %s needs issuer certificate" % profile.value)

    res: List[ExtensionSpec] = []

    def add(value: x509.ExtensionType, critical: bool) -> None:
        res.append(ExtensionSpec(value.oid, value, critical))

    if not rules.ca and san:
        add(x509.SubjectAlternativeName(make_gnames(san)), False)

    if rules.ca:
        add(x509.BasicConstraints(ca=True, path_length=None), True)
    else:
        add(x509.BasicConstraints(ca=False, path_length=None), False)

    if rules.netscape_server:
        add(x509.UnrecognizedExtension(NETSCAPE_CERT_TYPE_OID, NETSCAPE_SSL_SERVER), False)

    if rules.ext_key_usage:
        add(x509.ExtendedKeyUsage(list(rules.ext_key_usage)), False)

    add(make_key_usage(rules.key_usage), rules.ca)

    add(x509.SubjectKeyIdentifier.from_public_key(subject_pubkey), False)

    if issuer_cert is None:
        issuer_pubkey = subject_pubkey
    else:
        issuer_pubkey = issuer_cert.public_key()
    add(make_authority_key_id(issuer_pubkey, issuer_cert, rules.aki_issuer), False)

    return res
