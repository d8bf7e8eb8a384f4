
import os
from datetime import timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.hashes import SHA256
from cryptography.x509.oid import CRLEntryExtensionOID
from helpers import issue, new_root, new_store

import twocca.api as twocca

Profile = twocca.Profile


def setup_ca(tmp_path):
    store = new_store(tmp_path)
    root = new_root(store, "MyRoot")
    srv = issue(store, Profile.SERVER, "CN=host1", "ca=MyRoot", "dns=host1.example.com")
    return store, root, srv


def crl_number(crl: x509.CertificateRevocationList) -> int:
    return crl.extensions.get_extension_for_class(x509.CRLNumber).value.crl_number


def test_show_no_crl(tmp_path) -> None:
    store, _, _ = setup_ca(tmp_path)
    ledger = twocca.RevocationLedger(store)
    assert ledger.show("MyRoot") == []
    assert ledger.load("MyRoot") is None


def test_revoke_first(tmp_path) -> None:
    store, root, srv = setup_ca(tmp_path)
    ledger = twocca.RevocationLedger(store)
    rlist = ledger.revoke("MyRoot", "host1")
    assert rlist.crl_number == 1

    crl = store.load_crl("MyRoot")
    assert crl is not None
    assert crl_number(crl) == 1
    assert crl.issuer == root.cert.subject
    assert crl.is_signature_valid(root.cert.public_key())
    assert not crl.is_signature_valid(srv.cert.public_key())
    assert crl.signature_hash_algorithm.name == "sha256"

    last = twocca.get_utc_datetime(crl, "last_update")
    nxt = twocca.get_utc_datetime(crl, "next_update")
    assert nxt - last == timedelta(days=365)

    entries = ledger.show("MyRoot")
    assert [e.serial_number for e in entries] == [srv.cert.serial_number]
    assert entries[0].reason == "unspecified"
    rcert = crl.get_revoked_certificate_by_serial_number(srv.cert.serial_number)
    assert rcert is not None
    with pytest.raises(x509.ExtensionNotFound):
        rcert.extensions.get_extension_for_oid(CRLEntryExtensionOID.CRL_REASON)

    aki = crl.extensions.get_extension_for_class(x509.AuthorityKeyIdentifier).value
    ski = root.cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value
    assert aki.key_identifier == ski.digest


def test_revoke_twice(tmp_path) -> None:
    store, _, srv = setup_ca(tmp_path)
    ledger = twocca.RevocationLedger(store)
    ledger.revoke("MyRoot", "host1")
    base = crl_number(store.load_crl("MyRoot"))

    ledger.revoke("MyRoot", "host1")
    ledger.revoke("MyRoot", "host1")
    crl = store.load_crl("MyRoot")
    assert crl_number(crl) == base + 2
    entries = ledger.show("MyRoot")
    assert [e.serial_number for e in entries] == [srv.cert.serial_number] * 3


def test_revoke_sorted(tmp_path) -> None:
    store, _, _ = setup_ca(tmp_path)
    idents = [issue(store, Profile.CLIENT, "CN=c%d" % i, "ca=MyRoot") for i in range(4)]
    ledger = twocca.RevocationLedger(store)
    for i in range(4):
        rlist = ledger.revoke("MyRoot", "c%d" % i)
        assert rlist.crl_number == i + 1
    serials = [e.serial_number for e in ledger.show("MyRoot")]
    assert serials == sorted(i.cert.serial_number for i in idents)


def test_reject_duplicates(tmp_path) -> None:
    store, _, _ = setup_ca(tmp_path)
    ledger = twocca.RevocationLedger(store, policy=twocca.DuplicatePolicy.REJECT)
    ledger.revoke("MyRoot", "host1")
    before = (tmp_path / "MyRoot.crl").read_bytes()
    with pytest.raises(twocca.ConflictError, match="already revoked"):
        ledger.revoke("MyRoot", "host1")
    assert (tmp_path / "MyRoot.crl").read_bytes() == before


def test_revoke_missing_target(tmp_path) -> None:
    store, _, _ = setup_ca(tmp_path)
    ledger = twocca.RevocationLedger(store)
    with pytest.raises(twocca.StoreError, match="Cannot find"):
        ledger.revoke("MyRoot", "nope")
    assert not os.path.exists(store.crl_filename("MyRoot"))


def test_revoke_missing_ca(tmp_path) -> None:
    store, _, _ = setup_ca(tmp_path)
    ledger = twocca.RevocationLedger(store)
    with pytest.raises(twocca.StoreError):
        ledger.revoke("OtherCA", "host1")
    assert not os.path.exists(store.crl_filename("OtherCA"))


def test_revoke_mismatched_ca(tmp_path) -> None:
    store, _, _ = setup_ca(tmp_path)
    new_root(store, "Other")
    (tmp_path / "MyRoot.key").write_bytes((tmp_path / "Other.key").read_bytes())
    ledger = twocca.RevocationLedger(store)
    with pytest.raises(twocca.TrustError):
        ledger.revoke("MyRoot", "host1")


def test_crl_without_number(tmp_path) -> None:
    store, root, srv = setup_ca(tmp_path)
    now = twocca.utcnow()
    rcert = (x509.RevokedCertificateBuilder()
             .serial_number(12345)
             .revocation_date(now)
             .build())
    crl = (x509.CertificateRevocationListBuilder()
           .issuer_name(root.cert.subject)
           .last_update(now)
           .next_update(now + timedelta(days=1))
           .add_revoked_certificate(rcert)
           .sign(root.key, SHA256()))
    store.save_crl("MyRoot", crl)

    ledger = twocca.RevocationLedger(store)
    assert ledger.load("MyRoot").crl_number is None
    rlist = ledger.revoke("MyRoot", "host1")
    assert rlist.crl_number == 1
    assert [e.serial_number for e in ledger.show("MyRoot")] == sorted([12345, srv.cert.serial_number])


def test_entry_reason() -> None:
    entry = twocca.RevocationEntry(77, reason="key_compromise")
    rcert = entry.generate_rcert()
    ext = rcert.extensions.get_extension_for_oid(CRLEntryExtensionOID.CRL_REASON)
    assert ext.value.reason == x509.ReasonFlags.key_compromise
    loaded = twocca.RevocationEntry(load=rcert)
    assert loaded.reason == "key_compromise"
    assert loaded.serial_number == 77

    with pytest.raises(ValueError):
        twocca.RevocationEntry(1, reason="bored").generate_rcert()


def test_entry_show() -> None:
    dt = twocca.utcnow().replace(year=2026, month=10, day=8, hour=12, minute=0, second=0)
    entry = twocca.RevocationEntry(0x2CCA01, dt)
    lines = []
    entry.show(lines.append)
    assert lines == ["serial: 2CCA01", "  date: Oct  8 12:00:00 2026 GMT", ""]


def test_list_show(tmp_path) -> None:
    store, _, _ = setup_ca(tmp_path)
    ledger = twocca.RevocationLedger(store)
    ledger.revoke("MyRoot", "host1")
    lines = []
    ledger.load("MyRoot").show(lines.append)
    assert lines[0] == "Issuer: O=Home, CN=MyRoot, OU=Root"
    assert lines[1] == "CRL Number: 1"
