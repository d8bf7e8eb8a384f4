"""Load default request values from config file.

Example::

    [defaults]
    O = Example Org
    C = US
    days = 730
    ca = MyRoot
    rsa = 3072
    dh = 2048
"""

import os.path
from configparser import ConfigParser, Error as ConfigError
from typing import Dict, NamedTuple, Optional

from .exceptions import RequestError, StoreError
from .formats import parse_int
from .request import Defaults

__all__ = ("Settings", "load_settings", "load_settings_file", "CONFIG_NAME")

# looked up from CA directory when --config is not given
CONFIG_NAME = "twocca.ini"

DEFAULT_DH_BITS = 2048

CONFIG_KEYS = ("O", "C", "ST", "L", "days", "ca", "rsa", "dh")


class Settings(NamedTuple):
    defaults: Defaults = Defaults()
    dh_bits: int = DEFAULT_DH_BITS
    source: Optional[str] = None


def load_settings(ca_dir: str, fn: Optional[str] = None) -> Settings:
    """Load explicit config file, or twocca.ini from CA directory if exists.
    """
    if fn:
        return load_settings_file(fn)
    fn = os.path.join(ca_dir, CONFIG_NAME)
    if os.path.isfile(fn):
        return load_settings_file(fn)
    return Settings()


def load_settings_file(fn: str) -> Settings:
    r"""Parse [defaults] section.
    """
    cf = ConfigParser(delimiters=["="], comment_prefixes=["#", ";"],
                      inline_comment_prefixes=["#"], interpolation=None)
    # keep key case, C and CN differ from c and cn only by case
    cf.optionxform = str  # type: ignore[assignment,method-assign]
    try:
        with open(fn, "r", encoding="utf8") as f:
            cf.read_file(f, fn)
    except OSError as ex:
        raise StoreError("Cannot read %s: %s" % (fn, ex)) from ex
    except ConfigError as ex:
        raise RequestError("Invalid config %s: %s" % (fn, ex)) from ex

    sect: Dict[str, str] = {}
    if cf.has_section("defaults"):
        sect = dict(cf.items("defaults"))
    bad = [k for k in sect if k not in CONFIG_KEYS]
    if bad:
        raise RequestError("%s: unsupported keys: %s" % (fn, ", ".join(sorted(bad))))

    base = Defaults()
    country = sect.get("C") or None
    if country is not None and len(country) != 2:
        raise RequestError("%s: country must be 2-letter code: [%s]" % (fn, country))
    defaults = Defaults(
        organization=sect.get("O") or base.organization,
        days=parse_int(sect["days"], "days") if sect.get("days") else base.days,
        signing_ca=sect.get("ca") or base.signing_ca,
        rsa_bits=parse_int(sect["rsa"], "rsa") if sect.get("rsa") else base.rsa_bits,
        country=country,
        state=sect.get("ST") or None,
        locality=sect.get("L") or None,
    )
    dh_bits = parse_int(sect["dh"], "dh") if sect.get("dh") else DEFAULT_DH_BITS
    return Settings(defaults=defaults, dh_bits=dh_bits, source=fn)
