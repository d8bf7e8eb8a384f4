
import os

from cryptography import x509
from helpers import ca_run

import twocca.api as twocca


def load_cert(tmp_path, name) -> x509.Certificate:
    return x509.load_pem_x509_certificate((tmp_path / (name + ".crt")).read_bytes())


def test_no_command(capsys) -> None:
    assert ca_run() == 1
    res = capsys.readouterr()
    assert "command" in res.err


def test_help(capsys) -> None:
    assert ca_run("--help") == 0
    res = capsys.readouterr()
    assert "unsafe" in res.out
    assert "revoke" in res.out


def test_version(capsys) -> None:
    assert ca_run("--version") == 0
    res = capsys.readouterr()
    assert "cryptography" in res.out


def test_scenario(tmp_path, capsys) -> None:
    d = str(tmp_path)
    assert ca_run("-d", d, "root", "CN=MyRoot", "O=Example") == 0
    res = capsys.readouterr()
    assert "Profile: root" in res.err
    assert "Generating RSA-2048 key" in res.err
    assert "Saving results to MyRoot.[crt|key]" in res.err
    assert res.out == ""

    assert ca_run("-d", d, "server", "CN=host1", "ca=MyRoot", "dns=host1.example.com") == 0
    res = capsys.readouterr()
    assert "Signing CA: MyRoot" in res.err
    assert "SAN[DNS:host1.example.com]" in res.err

    root = load_cert(tmp_path, "MyRoot")
    host = load_cert(tmp_path, "host1")
    assert host.issuer == root.subject
    assert twocca.verify_signed_by(host, root.public_key())
    assert not twocca.verify_signed_by(host, host.public_key())
    assert twocca.get_name_field(host.subject, "O") == "Example"

    assert ca_run("-d", d, "crl", "ca=MyRoot") == 0
    res = capsys.readouterr()
    assert res.out == "No CRL found\n"

    assert ca_run("-d", d, "revoke", "host1", "ca=MyRoot") == 0
    assert ca_run("-d", d, "revoke", "NAME=host1", "ca=MyRoot") == 0
    capsys.readouterr()

    assert ca_run("-d", d, "crl", "ca=MyRoot") == 0
    res = capsys.readouterr()
    lines = res.out.splitlines()
    assert lines[0] == "-- Revoked certificates found in CRL"
    assert lines.count("serial: %X" % host.serial_number) == 2
    assert "CRL Number: 2" in res.err


def test_quiet(tmp_path, capsys) -> None:
    assert ca_run("-q", "-d", str(tmp_path), "root") == 0
    res = capsys.readouterr()
    assert res.err == ""
    assert os.path.isfile(str(tmp_path / "root.crt"))


def test_errors(tmp_path, capsys) -> None:
    d = str(tmp_path)
    assert ca_run("-d", d, "root", "foo=bar") == 1
    res = capsys.readouterr()
    assert "ERROR: Unsupported field: [foo]" in res.err

    assert ca_run("-d", d, "root", "CN") == 1
    res = capsys.readouterr()
    assert "ERROR:" in res.err

    assert ca_run("-d", d, "server", "ca=MyRoot") == 1
    res = capsys.readouterr()
    assert "Cannot find" in res.err

    assert ca_run("-q", "-d", d, "root") == 0
    assert ca_run("-q", "-d", d, "root") == 1
    res = capsys.readouterr()
    assert "already exists" in res.err

    assert ca_run("-d", d, "server", "ec=secp256r1") == 1
    res = capsys.readouterr()
    assert "ECC keys are only supported for clients" in res.err
    assert not os.path.exists(os.path.join(d, "server.key"))

    assert ca_run("-d", d, "server", "CN=bad", "dns=höst.example.com") == 1
    res = capsys.readouterr()
    assert "ERROR: Invalid value for dns" in res.err
    assert "Traceback" not in res.err
    assert not os.path.exists(os.path.join(d, "bad.key"))

    assert ca_run("-d", d, "root", "CN=Long", "days=99999999") == 1
    res = capsys.readouterr()
    assert "ERROR: Validity days too large" in res.err
    assert not os.path.exists(os.path.join(d, "Long.key"))

    assert ca_run("-d", d, "revoke") == 1
    res = capsys.readouterr()
    assert "Missing certificate name" in res.err

    assert ca_run("-d", d, "crl", "dns=x") == 1
    assert ca_run("-d", d, "nosuch") == 2


def test_client_ec(tmp_path, capsys) -> None:
    d = str(tmp_path)
    assert ca_run("-q", "-d", d, "root") == 0
    assert ca_run("-d", d, "client", "CN=alice", "ec=secp256r1", "email=alice@example.com") == 0
    res = capsys.readouterr()
    assert "Generating EC key [secp256r1]" in res.err
    cert = load_cert(tmp_path, "alice")
    san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    assert san.get_values_for_type(x509.RFC822Name) == ["alice@example.com"]


def test_unsafe_params(tmp_path, capsys) -> None:
    d = str(tmp_path)
    assert ca_run("-q", "-d", d, "root") == 0
    assert ca_run("-d", d, "client", "ec=secp192r1") == 1
    res = capsys.readouterr()
    assert "Unsafe curve" in res.err
    assert ca_run("-d", d, "client", "CN=weak", "rsa=1024") == 1
    res = capsys.readouterr()
    assert "Bad value for RSA bits" in res.err
    assert ca_run("-q", "--unsafe", "-d", d, "client", "CN=weak", "rsa=1024") == 0


def test_config(tmp_path, capsys) -> None:
    d = str(tmp_path)
    (tmp_path / "twocca.ini").write_text("[defaults]\nO = Corp\nC = US\nca = MyRoot\ndays = 10\n")
    assert ca_run("-d", d, "root", "CN=MyRoot") == 0
    res = capsys.readouterr()
    assert "Using config" in res.err
    assert ca_run("-q", "-d", d, "www", "CN=web", "dns=web.example.com") == 0
    cert = load_cert(tmp_path, "web")
    assert twocca.extract_name(cert.subject) == (
        ("C", "US"), ("O", "Corp"), ("CN", "web"), ("OU", "Server"),
    )
    assert cert.issuer == load_cert(tmp_path, "MyRoot").subject


def test_reject_duplicates(tmp_path, capsys) -> None:
    d = str(tmp_path)
    assert ca_run("-q", "-d", d, "root") == 0
    assert ca_run("-q", "-d", d, "client") == 0
    assert ca_run("-q", "-d", d, "--reject-duplicates", "revoke", "client") == 0
    assert ca_run("-q", "-d", d, "--reject-duplicates", "revoke", "client") == 1
    res = capsys.readouterr()
    assert "already revoked" in res.err


def test_dh(tmp_path, capsys) -> None:
    d = str(tmp_path)
    assert ca_run("-d", d, "dh", "512") == 1
    res = capsys.readouterr()
    assert "Bad value for DH bits" in res.err

    assert ca_run("--unsafe", "-d", d, "dh", "512") == 0
    res = capsys.readouterr()
    assert "Generating DH parameters (512 bits) -- this can take long" in res.err
    data = (tmp_path / "dh512.pem").read_bytes()
    assert data.startswith(b"-----BEGIN DH PARAMETERS-----")


def test_curves(capsys) -> None:
    assert ca_run("curves") == 0
    res = capsys.readouterr()
    assert "secp256r1" in res.out.split()
    assert "secp192r1" not in res.out.split()
