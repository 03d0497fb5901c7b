"""Tests for signature database loading and prefix matching."""

from __future__ import annotations

from pathlib import Path

import pytest

from sigscan.errors import InvalidSignatureEncoding, SignatureDatabaseError
from sigscan.signatures import Signature, SignatureStore, _split_line


def _write_db(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "signatures.db"
    path.write_text(text, encoding="utf-8")
    return path


def _patterns(store: SignatureStore) -> dict[str, bytes]:
    return {s.identifier: s.pattern for s in store}


# ── _split_line ────────────────────────────────────────────────────────────


@pytest.mark.parametrize("line,expected", [
    ("EICAR=58354f21", ("EICAR", "58354f21")),
    ("  ELF = 7f454c46  \r", ("ELF", "7f454c46")),
    ("no separator here", None),
    ("a=b=c", None),
    ("", None),
    ("=abcd", None),
    ("EMPTY=", None),
    ("# comment=ff", None),
    ("#X=41", None),
])
def test_split_line(line, expected):
    assert _split_line(line) == expected


# ── SignatureStore.load ────────────────────────────────────────────────────


def test_load_one_entry_per_identifier(tmp_path):
    db = _write_db(tmp_path, "EICAR=58354f2150254041\nELF=7f454c46\nPE=4d5a\n")
    store = SignatureStore.load(db)
    assert len(store) == 3
    assert _patterns(store)["EICAR"] == bytes.fromhex("58354f2150254041")
    assert _patterns(store)["ELF"] == b"\x7fELF"
    assert "PE" in store
    assert store.max_pattern_length == 8


def test_load_skips_malformed_lines(tmp_path):
    db = _write_db(tmp_path, "\n# header\nnot a signature\nA=B=C\nZIP=504b0304\n\n")
    store = SignatureStore.load(db)
    assert [s.identifier for s in store] == ["ZIP"]


def test_load_accepts_uppercase_hex(tmp_path):
    db = _write_db(tmp_path, "PDF=25504446\nPDF_UPPER=25504446AB\n")
    store = SignatureStore.load(db)
    assert _patterns(store)["PDF_UPPER"] == b"%PDF\xab"


def test_load_invalid_hex_is_fatal(tmp_path):
    db = _write_db(tmp_path, "GOOD=4d5a\nBAD=zz11\n")
    with pytest.raises(InvalidSignatureEncoding) as excinfo:
        SignatureStore.load(db)
    assert excinfo.value.identifier == "BAD"
    assert excinfo.value.line_number == 2


def test_load_odd_length_hex_is_fatal(tmp_path):
    db = _write_db(tmp_path, "ODD=abc\n")
    with pytest.raises(InvalidSignatureEncoding):
        SignatureStore.load(db)


def test_load_missing_file(tmp_path):
    with pytest.raises(SignatureDatabaseError):
        SignatureStore.load(tmp_path / "missing.db")


def test_load_duplicate_identifier_keeps_last(tmp_path, caplog):
    db = _write_db(tmp_path, "X=4d5a\nX=7f454c46\n")
    store = SignatureStore.load(db)
    assert len(store) == 1
    assert _patterns(store)["X"] == b"\x7fELF"
    assert "Duplicate signature" in caplog.text


def test_load_empty_database(tmp_path):
    store = SignatureStore.load(_write_db(tmp_path, ""))
    assert len(store) == 0
    assert store.max_pattern_length == 0
    assert store.match_prefix(b"anything") is None


# ── match_prefix ───────────────────────────────────────────────────────────


def test_match_prefix_returns_identifier():
    store = SignatureStore.from_mapping({"EICAR": "58354f2150254041"})
    assert store.match_prefix(b"X5O!P%@AP[4\\PZX54(P^)7CC)7}") == "EICAR"


def test_match_prefix_requires_leading_bytes():
    store = SignatureStore.from_mapping({"EICAR": "58354f2150254041"})
    assert store.match_prefix(b" X5O!P%@A") is None


def test_match_prefix_short_data():
    store = SignatureStore.from_mapping({"EICAR": "58354f2150254041"})
    assert store.match_prefix(b"X5O") is None
    assert store.match_prefix(b"") is None


def test_match_prefix_first_in_database_order_wins():
    store = SignatureStore.from_mapping({"MZ": "4d5a", "MZ_LONG": "4d5a9000"})
    assert store.match_prefix(b"MZ\x90\x00rest") == "MZ"


def test_from_mapping_invalid_hex():
    with pytest.raises(InvalidSignatureEncoding):
        SignatureStore.from_mapping({"BAD": "xyz"})


def test_signatures_are_immutable():
    store = SignatureStore([Signature("A", b"\x01")])
    with pytest.raises(AttributeError):
        store.signatures[0].pattern = b"\x02"
    assert _patterns(store) == {"A": b"\x01"}
