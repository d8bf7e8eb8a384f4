"""String <> Python objects.
"""

import re
from typing import Callable, Iterable, Match, Optional, Sequence

from .exceptions import RequestError

__all__ = (
    "parse_int",
    "render_name", "render_serial", "show_list",
)


def render_serial(snum: int) -> str:
    """Format certificate serial number as string.
    """
    s = "%x" % snum
    s = "0" * (len(s) & 1) + s
    s = re.sub(r"..", r":\g<0>", s).strip(":")
    return s


def parse_int(sval: str, field: str) -> int:
    """Parse positive decimal number from command line.
    """
    if not re.match(r"^[0-9]+$", sval):
        raise RequestError("Invalid number for %s: %r" % (field, sval))
    val = int(sval, 10)
    if val <= 0:
        raise RequestError("Value for %s must be positive: %r" % (field, sval))
    return val


def show_list(desc: str, lst: Optional[Sequence[str]], writeln: Callable[[str], None]) -> None:
    """Print out list field.
    """
    if not lst:
        return
    if len(lst) == 1:
        writeln("%s: %s" % (desc, lst[0]))
    else:
        writeln("%s:" % desc)
        for val in lst:
            writeln("  %s" % (val,))


#
# LDAP string representation of Distinguished Names from RFC4514
#

_ldap_escape_rc = re.compile(r"""\A[ #]|[ ]\Z|["+;<>\\=\x00-\x1F\x7F-\x9F]""")


def _ldap_escape_fn(m: Match[str]) -> str:
    c = m.group()
    if c < "\x20" or c >= "\x7F":
        return "\\%02x" % ord(c)
    return "\\" + c


def _ldap_escape(s: str) -> str:
    s = _ldap_escape_rc.sub(_ldap_escape_fn, s)
    return s.replace(",", "\\,")


def render_name(name_att_list: Iterable[Sequence[str]]) -> str:
    """Render (code, value) pairs using format from RFC4514.
    """
    return ", ".join("%s=%s" % (_ldap_escape(k), _ldap_escape(v))
                     for k, v in name_att_list)
