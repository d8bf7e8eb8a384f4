"""Command-line UI for TwoCCA.
"""

import argparse
import sys
from typing import (
    TYPE_CHECKING, Any, Callable, Dict, List, Optional,
    Sequence, Tuple, Type, TypedDict, Union,
)

from .api import (
    FULL_VERSION, CAError, DuplicatePolicy, IdentityStore, IssuanceEngine,
    Profile, RequestError, RevocationLedger, Settings, get_ec_curves,
    load_settings, make_request, new_dh_params, parse_int, set_unsafe,
)
from .compat import TypeAlias

__all__ = ("main", "run_ca")

QUIET = False

# pylint: disable=protected-access
if TYPE_CHECKING:
    SubParser: TypeAlias = argparse._SubParsersAction[argparse.ArgumentParser]
else:
    SubParser: TypeAlias = argparse._SubParsersAction
GParser: TypeAlias = Union[argparse.ArgumentParser, argparse._ArgumentGroup]


#
# Command-line UI
#


def die(txt: str, *args: Any) -> None:
    """Print message and exit.
    """
    if args:
        txt = txt % args
    sys.stderr.write(txt + "\n")
    sys.exit(1)


def msg(txt: str, *args: Any) -> None:
    """Print message to stderr.
    """
    if QUIET:
        return
    if args:
        txt = txt % args
    sys.stderr.write(txt + "\n")


def msg_show(ln: str) -> None:
    """Show line via msg().
    """
    msg("%s", ln)


def out_show(ln: str) -> None:
    """Command output, always to stdout.
    """
    sys.stdout.write(ln + "\n")


def parse_fields(items: Sequence[str]) -> List[Tuple[str, str]]:
    """Split key=value arguments.
    """
    res: List[Tuple[str, str]] = []
    for item in items:
        if "=" not in item:
            raise RequestError("Expected key=value, got: [%s]" % item)
        k, v = item.split("=", 1)
        res.append((k.strip(), v.strip()))
    return res


def pick_fields(fields: List[Tuple[str, str]], allowed: Sequence[str]) -> Dict[str, str]:
    """Return fields as dict, fail on unknown keys.
    """
    res: Dict[str, str] = {}
    for k, v in fields:
        if k not in allowed:
            raise RequestError("Unsupported field: [%s]" % k)
        if not v:
            raise RequestError("Empty value for field: [%s]" % k)
        res[k] = v
    return res


def get_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.dir, args.config)
    if settings.source:
        msg("Using config: %s", settings.source)
    return settings


def get_policy(args: argparse.Namespace) -> DuplicatePolicy:
    if args.reject_duplicates:
        return DuplicatePolicy.REJECT
    return DuplicatePolicy.ALLOW


def issue_command(args: argparse.Namespace) -> None:
    """Issue certificate for args.profile.
    """
    settings = get_settings(args)
    req = make_request(args.profile, parse_fields(args.fields), settings.defaults)
    req.show(msg_show)
    engine = IssuanceEngine(IdentityStore(args.dir), writeln=msg_show)
    engine.issue(req)


def crl_command(args: argparse.Namespace) -> None:
    """List revoked certificates.
    """
    settings = get_settings(args)
    fields = pick_fields(parse_fields(args.fields), ("ca",))
    ca_name = fields.get("ca", settings.defaults.signing_ca)

    ledger = RevocationLedger(IdentityStore(args.dir))
    rlist = ledger.load(ca_name)
    if rlist is None:
        out_show("No CRL found")
        return
    rlist.show(msg_show)
    out_show("-- Revoked certificates found in CRL")
    for entry in rlist.entries:
        entry.show(out_show)


def revoke_command(args: argparse.Namespace) -> None:
    """Revoke certificate by name.
    """
    settings = get_settings(args)
    names = [a for a in args.args if "=" not in a]
    fields = pick_fields(parse_fields([a for a in args.args if "=" in a]), ("ca", "NAME"))
    if "NAME" in fields:
        names.append(fields["NAME"])
    if not names:
        die("Missing certificate name for revocation")
    if len(names) > 1:
        die("Can revoke only one certificate at a time")
    ca_name = fields.get("ca", settings.defaults.signing_ca)

    ledger = RevocationLedger(IdentityStore(args.dir), policy=get_policy(args), writeln=msg_show)
    ledger.revoke(ca_name, names[0])


def dh_command(args: argparse.Namespace) -> None:
    """Generate Diffie-Hellman parameters.
    """
    settings = get_settings(args)
    bits = settings.dh_bits
    if args.bits:
        bits = parse_int(args.bits, "dh bits")
    msg("Generating DH parameters (%d bits) -- this can take long", bits)
    params = new_dh_params(bits)
    fn = IdentityStore(args.dir).save_dh_params(bits, params)
    msg("Saving results to %s", fn)
    msg("done")


def curves_command(args: argparse.Namespace) -> None:
    """List usable curve names.
    """
    for name in get_ec_curves():
        out_show(name)


#
# argparse setup
#


def opts_unsafe(p: GParser) -> None:
    p.add_argument("--unsafe", action="store_true",
                   help="Allow key sizes and curves outside safe lists")


def opts_top(p: GParser) -> None:
    p.add_argument("-V", "--version", action="version", version="%(prog)s " + FULL_VERSION,
                   help="Show version and exit")
    p.add_argument("-q", "--quiet", action="store_true",
                   help="Be quiet")
    p.add_argument("-d", "--dir", metavar="DIR", default=".",
                   help="CA directory (default: current directory)")
    p.add_argument("--config", metavar="INI_FILE",
                   help="Config file with [defaults] section")
    p.add_argument("--reject-duplicates", action="store_true",
                   help="Fail when revoking already revoked certificate")


def opts_fields(p: GParser) -> None:
    p.add_argument("fields", nargs="*", metavar="KEY=VALUE",
                   help="CN, O, C, ST, L, days, ca, rsa, ec, dns, email")


class CustomFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=26)


class HelpArgs(TypedDict):
    help: str
    description: str
    formatter_class: Type[argparse.HelpFormatter]


def loadhelp(func: Callable[[SubParser], None]) -> HelpArgs:
    """Convert docstring to add_parser() args
    """
    doc = (func.__doc__ or "").strip()
    return {
        "help": doc,
        "description": doc,
        "formatter_class": CustomFormatter,
    }


def setup_args_root(sub: SubParser) -> None:
    """Create self-signed root CA"""
    p = sub.add_parser("root", **loadhelp(setup_args_root))
    p.set_defaults(command=issue_command, profile=Profile.ROOT_CA)
    opts_fields(p)


def setup_args_sub(sub: SubParser) -> None:
    """Create sub-CA signed by ca="""
    p = sub.add_parser("sub", **loadhelp(setup_args_sub))
    p.set_defaults(command=issue_command, profile=Profile.SUB_CA)
    opts_fields(p)


def setup_args_server(sub: SubParser) -> None:
    """Create server certificate"""
    p = sub.add_parser("server", **loadhelp(setup_args_server))
    p.set_defaults(command=issue_command, profile=Profile.SERVER)
    opts_fields(p)


def setup_args_client(sub: SubParser) -> None:
    """Create client certificate, RSA or EC key"""
    p = sub.add_parser("client", **loadhelp(setup_args_client))
    p.set_defaults(command=issue_command, profile=Profile.CLIENT)
    opts_fields(p)


def setup_args_www(sub: SubParser) -> None:
    """Create certificate for both server and client auth"""
    p = sub.add_parser("www", **loadhelp(setup_args_www))
    p.set_defaults(command=issue_command, profile=Profile.WWW)
    opts_fields(p)


def setup_args_crl(sub: SubParser) -> None:
    """Show revoked certificates of ca="""
    p = sub.add_parser("crl", **loadhelp(setup_args_crl))
    p.set_defaults(command=crl_command)
    p.add_argument("fields", nargs="*", metavar="ca=NAME", help="CA name")


def setup_args_revoke(sub: SubParser) -> None:
    """Revoke certificate, update CRL of ca="""
    p = sub.add_parser("revoke", **loadhelp(setup_args_revoke))
    p.set_defaults(command=revoke_command)
    p.add_argument("args", nargs="*", metavar="NAME [ca=NAME]",
                   help="Certificate to revoke and optional CA name")


def setup_args_dh(sub: SubParser) -> None:
    """Generate DH parameters"""
    p = sub.add_parser("dh", **loadhelp(setup_args_dh))
    p.set_defaults(command=dh_command)
    p.add_argument("bits", nargs="?", help="Size in bits (default: 2048)")


def setup_args_curves(sub: SubParser) -> None:
    """List EC curves usable for client keys"""
    p = sub.add_parser("curves", **loadhelp(setup_args_curves))
    p.set_defaults(command=curves_command)


def setup_args() -> argparse.ArgumentParser:
    """Create ArgumentParser
    """
    top = argparse.ArgumentParser(
        prog="twocca",
        description="Run any COMMAND with --help switch to get command-specific help.",
        allow_abbrev=False,
        formatter_class=CustomFormatter,
    )
    opts_top(top)
    opts_unsafe(top)

    sub = top.add_subparsers(metavar="COMMAND")
    setup_args_root(sub)
    setup_args_sub(sub)
    setup_args_server(sub)
    setup_args_client(sub)
    setup_args_www(sub)
    setup_args_crl(sub)
    setup_args_revoke(sub)
    setup_args_dh(sub)
    setup_args_curves(sub)
    return top


def run_ca(argv: Sequence[str]) -> None:
    """Load arguments, select and run command.
    """
    global QUIET

    args = setup_args().parse_args(argv)
    if not hasattr(args, "command"):
        die("Need command")

    QUIET = bool(args.quiet)
    set_unsafe(bool(args.unsafe))

    try:
        args.command(args)
    except CAError as ex:
        die("ERROR: %s", ex)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Command-line application entry point.
    """
    try:
        return run_ca(sys.argv[1:] if argv is None else argv)
    except (BrokenPipeError, KeyboardInterrupt):
        sys.exit(1)


if __name__ == "__main__":
    main()
