
import sys
from pathlib import Path
from typing import Any, List, Tuple

from cryptography import x509

import twocca.api as twocca
from twocca.tool import run_ca


def new_store(tmp_path: Path) -> twocca.IdentityStore:
    return twocca.IdentityStore(str(tmp_path))


def issue(store: twocca.IdentityStore, profile: twocca.Profile, *fields: str) -> twocca.Identity:
    """Issue identity from key=value strings.
    """
    pairs: List[Tuple[str, str]] = [tuple(f.split("=", 1)) for f in fields]  # type: ignore[misc]
    req = twocca.make_request(profile, pairs)
    return twocca.IssuanceEngine(store).issue(req)


def new_root(store: twocca.IdentityStore, name: str = "root", *fields: str) -> twocca.Identity:
    return issue(store, twocca.Profile.ROOT_CA, "CN=" + name, *fields)


def get_ext(cert: x509.Certificate, cls: Any) -> Any:
    return cert.extensions.get_extension_for_class(cls)


def ca_run(*args: str) -> int:
    """Run command line, return exit code.
    """
    try:
        try:
            run_ca(args)
        finally:
            twocca.set_unsafe(False)
        return 0
    except SystemExit as ex:
        return int(ex.code or 0)
    except Exception as ex:
        sys.stderr.write(str(ex) + "\n")
        return 1
