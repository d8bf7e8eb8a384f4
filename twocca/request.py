"""Certificate request as collected from command line.
"""

from typing import (
    Callable, Dict, Iterable, List, NamedTuple,
    Optional, Tuple, Union,
)

from .exceptions import RequestError
from .formats import parse_int, render_name, show_list
from .objects import render_gnames
from .profiles import ORG_UNITS, Profile

__all__ = (
    "CertificateRequest", "SanEntry", "RSAKeySpec", "ECKeySpec", "KeySpec",
    "Defaults", "make_request", "validate_name",
    "DEFAULT_ORG", "DEFAULT_DAYS", "DEFAULT_CA", "DEFAULT_RSA_BITS",
    "FIELD_SIZE", "REQUEST_FIELDS",
)

DEFAULT_ORG = "Home"
DEFAULT_DAYS = 3650
DEFAULT_CA = "root"
DEFAULT_RSA_BITS = 2048

# max length of single field value
FIELD_SIZE = 128

# accepted key=value fields for issuing commands
REQUEST_FIELDS = ("CN", "O", "C", "ST", "L", "days", "ca", "rsa", "ec", "dns", "email")


class SanEntry(NamedTuple):
    """Single SubjectAltName entry, tag is "dns" or "email".
    """
    tag: str
    value: str


class RSAKeySpec(NamedTuple):
    bits: int = DEFAULT_RSA_BITS

    def describe(self) -> str:
        return "RSA-%d" % self.bits


class ECKeySpec(NamedTuple):
    curve: str

    def describe(self) -> str:
        return "EC [%s]" % self.curve


KeySpec = Union[RSAKeySpec, ECKeySpec]


class Defaults(NamedTuple):
    """Values used when command line does not set them.
    """
    organization: str = DEFAULT_ORG
    days: int = DEFAULT_DAYS
    signing_ca: str = DEFAULT_CA
    rsa_bits: int = DEFAULT_RSA_BITS
    country: Optional[str] = None
    state: Optional[str] = None
    locality: Optional[str] = None


class CertificateRequest(NamedTuple):
    """Immutable description of certificate to issue.

    Built once per invocation, the issuing engine only derives
    modified copies with _replace().
    """
    profile: Profile
    common_name: str
    organization: str = DEFAULT_ORG
    country: Optional[str] = None
    locality: Optional[str] = None
    state: Optional[str] = None
    days: int = DEFAULT_DAYS
    signing_ca: str = DEFAULT_CA
    san: Tuple[SanEntry, ...] = ()
    key: KeySpec = RSAKeySpec()

    @property
    def organizational_unit(self) -> str:
        return ORG_UNITS[self.profile]

    def subject_fields(self) -> List[Tuple[str, str]]:
        """Subject name fields in fixed order: C, O, CN, OU, L, ST.
        """
        res: List[Tuple[str, str]] = []
        if self.country:
            res.append(("C", self.country))
        res.append(("O", self.organization))
        res.append(("CN", self.common_name))
        res.append(("OU", self.organizational_unit))
        if self.locality:
            res.append(("L", self.locality))
        if self.state:
            res.append(("ST", self.state))
        return res

    def san_text(self) -> str:
        return render_gnames(self.san)

    def show(self, writeln: Callable[[str], None]) -> None:
        """Print out details.
        """
        writeln("Profile: %s" % self.profile.value)
        writeln("Subject: %s" % render_name(self.subject_fields()))
        writeln("Days: %d" % self.days)
        writeln("Key: %s" % self.key.describe())
        if self.profile is not Profile.ROOT_CA:
            writeln("Signing CA: %s" % self.signing_ca)
        show_list("SAN", [render_gnames([e]) for e in self.san], writeln)


def validate_name(name: str, what: str = "name") -> str:
    """Check that name can be used as file name in CA directory.
    """
    if not name:
        raise RequestError("Empty %s" % what)
    if name in (".", "..") or "/" in name or "\\" in name or "\x00" in name:
        raise RequestError("Invalid %s: %r" % (what, name))
    return name


def _check_value(key: str, val: str) -> str:
    if not val:
        raise RequestError("Empty value for field: [%s]" % key)
    if len(val) > FIELD_SIZE:
        raise RequestError("Value for field [%s] longer than %d characters" % (key, FIELD_SIZE))
    return val


def make_request(profile: Profile,
                 fields: Iterable[Tuple[str, str]],
                 defaults: Optional[Defaults] = None,
                 ) -> CertificateRequest:
    """Build request from (key, value) pairs in command-line order.

    Repeated dns/email keys accumulate, other repeated keys
    override earlier values.
    """
    if defaults is None:
        defaults = Defaults()

    single: Dict[str, str] = {}
    san: List[SanEntry] = []
    for fname, val in fields:
        if fname not in REQUEST_FIELDS:
            raise RequestError("Unsupported field: [%s]" % fname)
        _check_value(fname, val)
        if fname in ("dns", "email"):
            san.append(SanEntry(fname, val))
        else:
            single[fname] = val

    if "rsa" in single and "ec" in single:
        raise RequestError("Use either rsa= or ec=, not both")

    key: KeySpec
    if "ec" in single:
        key = ECKeySpec(single["ec"])
    elif "rsa" in single:
        key = RSAKeySpec(parse_int(single["rsa"], "rsa"))
    else:
        key = RSAKeySpec(defaults.rsa_bits)

    country = single.get("C", defaults.country)
    if country is not None and len(country) != 2:
        raise RequestError("Country must be 2-letter code: [%s]" % country)

    days = defaults.days
    if "days" in single:
        days = parse_int(single["days"], "days")

    common_name = validate_name(single.get("CN", profile.value), "common name")

    return CertificateRequest(
        profile=profile,
        common_name=common_name,
        organization=single.get("O", defaults.organization),
        country=country,
        locality=single.get("L", defaults.locality),
        state=single.get("ST", defaults.state),
        days=days,
        signing_ca=validate_name(single.get("ca", defaults.signing_ca), "CA name"),
        san=tuple(san),
        key=key,
    )
