"""Python objects <> cryptography objects.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from cryptography import x509
from cryptography.x509.oid import NameOID

from .exceptions import RequestError

__all__ = (
    "DN_CODE_TO_OID", "DN_OID_TO_CODE",
    "extract_name", "get_name_field",
    "make_name", "make_gnames", "render_gnames",
)


DN_CODE_TO_OID = {
    "C": NameOID.COUNTRY_NAME,
    "O": NameOID.ORGANIZATION_NAME,
    "CN": NameOID.COMMON_NAME,
    "OU": NameOID.ORGANIZATIONAL_UNIT_NAME,
    "L": NameOID.LOCALITY_NAME,
    "ST": NameOID.STATE_OR_PROVINCE_NAME,
}

DN_OID_TO_CODE = {v: k for k, v in DN_CODE_TO_OID.items()}

# gname tags as they appear on command line and in displayed SAN list
GNAME_TAGS = {
    "email": "email",
    "dns": "DNS",
}


#
# Converters
#


def make_name(name_att_list: Iterable[Tuple[str, str]]) -> x509.Name:
    """Create Name object from (code, value) pairs, one RDN per pair.
    """
    rdnlist = []
    for k, v in name_att_list:
        if k not in DN_CODE_TO_OID:
            raise RequestError("Unknown Name tag: %s" % (k,))
        try:
            att = x509.NameAttribute(DN_CODE_TO_OID[k], v)
        except ValueError as ex:
            raise RequestError("Invalid value for %s: %s" % (k, ex)) from None
        rdnlist.append(x509.RelativeDistinguishedName([att]))
    return x509.Name(rdnlist)


def extract_name(name: Optional[x509.Name]) -> Tuple[Tuple[str, str], ...]:
    """Convert Name object to (code, value) pairs.
    """
    if name is None:
        return ()
    if not isinstance(name, x509.Name):
        raise TypeError("Expect x509.Name")
    res = []
    for att in name:
        if isinstance(att.value, bytes):
            raise TypeError("Expect str value")
        code = DN_OID_TO_CODE.get(att.oid, att.oid.dotted_string)
        res.append((code, att.value))
    return tuple(res)


def get_name_field(name: x509.Name, code: str) -> Optional[str]:
    """Return first value for code, or None.
    """
    atts = name.get_attributes_for_oid(DN_CODE_TO_OID[code])
    if not atts:
        return None
    val = atts[0].value
    if isinstance(val, bytes):
        return val.decode("utf8", "replace")
    return val


def make_gnames(gname_list: Iterable[Tuple[str, str]]) -> List[x509.GeneralName]:
    """Converts (tag, value) pairs to GeneralName list.
    """
    gnames: List[x509.GeneralName] = []
    for t, val in gname_list:
        if t not in GNAME_TAGS:
            raise RequestError("Invalid GeneralName: %s:%s" % (t, val))
        try:
            if t == "dns":
                gnames.append(x509.DNSName(val))
            else:
                gnames.append(x509.RFC822Name(val))
        except ValueError as ex:
            raise RequestError("Invalid value for %s: %s" % (t, ex)) from None
    return gnames


def render_gnames(gname_list: Sequence[Tuple[str, str]]) -> str:
    """Openssl-style comma-separated list: email:addr,DNS:host
    """
    return ",".join("%s:%s" % (GNAME_TAGS[t], v) for t, v in gname_list)
