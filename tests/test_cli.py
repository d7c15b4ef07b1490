"""Tests for pdfseal.ui.cli -- argument parsing and command handlers."""

from __future__ import annotations

import argparse
from unittest.mock import patch

import pytest

from pdfseal.config import get_signature_defaults
from pdfseal.config._storage import load_config
from pdfseal.ui.cli import _port, _signature_bytes, build_parser, main

from .conftest import P12_PASSPHRASE, make_pdf


@pytest.fixture
def key_files(config_dir, p12_bytes, cert_pem):
    tmp_path, _ = config_dir
    p12_path = tmp_path / "signer.p12"
    p12_path.write_bytes(p12_bytes)
    cert_path = tmp_path / "ca.pem"
    cert_path.write_bytes(cert_pem)
    return p12_path, cert_path


@pytest.fixture
def pdf_file(config_dir):
    tmp_path, _ = config_dir
    path = tmp_path / "contract.pdf"
    path.write_bytes(make_pdf())
    return path


@pytest.fixture
def p12_env(key_files, monkeypatch):
    p12_path, _ = key_files
    monkeypatch.setenv("PDFSEAL_P12", str(p12_path))
    monkeypatch.setenv("PDFSEAL_P12_PASS", P12_PASSPHRASE)
    return key_files


# ── Parser ─────────────────────────────────────────────────────────────


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main([])
    assert exc_info.value.code == 1
    assert "Available commands" in capsys.readouterr().out


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.startswith("pdfseal ")


def test_sign_arguments():
    args = build_parser().parse_args(
        ["sign", "a.pdf", "b.pdf", "--contact", "me@example.com", "--invisible", "-p", "tr"]
    )
    assert args.files == ["a.pdf", "b.pdf"]
    assert args.contact_info == "me@example.com"
    assert args.invisible is True
    assert args.position == "tr"
    assert args.max_signature_bytes is None


@pytest.mark.parametrize("value", ["abc", "10", "1000000"])
def test_signature_bytes_rejected(value):
    with pytest.raises(argparse.ArgumentTypeError):
        _signature_bytes(value)


def test_signature_bytes_accepted():
    assert _signature_bytes("4096") == 4096


@pytest.mark.parametrize("value", ["http", "0", "65536"])
def test_port_rejected(value):
    with pytest.raises(argparse.ArgumentTypeError):
        _port(value)


def test_serve_port_out_of_range(capsys):
    with pytest.raises(SystemExit) as exc_info:
        build_parser().parse_args(["serve", "--port", "70000"])
    assert exc_info.value.code == 2
    assert "must be between 1 and 65535" in capsys.readouterr().err


def test_serve_port_parsed():
    assert build_parser().parse_args(["serve", "--port", "8123"]).port == 8123


# ── sign ───────────────────────────────────────────────────────────────


def test_sign_default_output(p12_env, pdf_file, capsys):
    main(["sign", str(pdf_file)])
    out = capsys.readouterr().out
    signed_path = pdf_file.with_name("contract_signed.pdf")
    assert signed_path.exists()
    assert "Signing as Test Signer" in out
    assert "OK -> contract_signed.pdf" in out
    assert signed_path.read_bytes().startswith(pdf_file.read_bytes())


def test_sign_explicit_output_and_overrides(p12_env, pdf_file, config_dir):
    tmp_path, _ = config_dir
    out = tmp_path / "out.pdf"
    main(["sign", str(pdf_file), "-o", str(out), "--name", "John Doe", "--invisible"])
    data = out.read_bytes()
    assert b"/Name (John Doe)" in data
    assert b"Signed by: John Doe" not in data


def test_sign_output_with_multiple_files(p12_env, pdf_file, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["sign", str(pdf_file), str(pdf_file), "-o", "x.pdf"])
    assert exc_info.value.code == 1
    assert "single input file" in capsys.readouterr().err


def test_sign_without_key(config_dir, pdf_file, capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["sign", str(pdf_file)])
    assert exc_info.value.code == 1
    assert "No signing key configured" in capsys.readouterr().err


def test_sign_missing_input(p12_env, config_dir, capsys):
    tmp_path, _ = config_dir
    with pytest.raises(SystemExit):
        main(["sign", str(tmp_path / "missing.pdf")])
    assert "PDF not found" in capsys.readouterr().err


def test_sign_not_a_pdf(p12_env, config_dir, capsys):
    tmp_path, _ = config_dir
    bogus = tmp_path / "notes.pdf"
    bogus.write_bytes(b"just text")
    with pytest.raises(SystemExit):
        main(["sign", str(bogus)])
    err = capsys.readouterr().err
    assert "FAILED" in err
    assert not (tmp_path / "notes_signed.pdf").exists()


def test_sign_batch_counts(p12_env, pdf_file, config_dir, capsys):
    tmp_path, _ = config_dir
    second = tmp_path / "second.pdf"
    second.write_bytes(make_pdf(pages=2))
    main(["sign", str(pdf_file), str(second)])
    assert "2 of 2 file(s) signed." in capsys.readouterr().out


# ── verify ─────────────────────────────────────────────────────────────


@pytest.fixture
def signed_file(config_dir, signed_pdf):
    tmp_path, _ = config_dir
    path = tmp_path / "signed.pdf"
    path.write_bytes(signed_pdf)
    return path


def test_verify_valid(key_files, signed_file, capsys):
    _, cert_path = key_files
    main(["verify", str(signed_file), "--cert", str(cert_path)])
    out = capsys.readouterr().out
    assert "Hash OK" in out
    assert "RESULT: Signature VALID" in out


def test_verify_tampered(key_files, signed_file, capsys):
    _, cert_path = key_files
    data = bytearray(signed_file.read_bytes())
    data[20] ^= 0x01
    signed_file.write_bytes(bytes(data))
    with pytest.raises(SystemExit) as exc_info:
        main(["verify", str(signed_file), "--cert", str(cert_path)])
    assert exc_info.value.code == 1
    out = capsys.readouterr().out
    assert "Hash MISMATCH!" in out
    assert "INVALID (digest_mismatch)" in out


def test_verify_without_trust(signed_file, capsys):
    with pytest.raises(SystemExit):
        main(["verify", str(signed_file)])
    captured = capsys.readouterr()
    assert "no trusted certificate" in captured.err
    assert "INVALID (untrusted_certificate)" in captured.out


def test_verify_unreadable_cert(signed_file, config_dir, capsys):
    tmp_path, _ = config_dir
    bad = tmp_path / "bad.pem"
    bad.write_bytes(b"garbage")
    with pytest.raises(SystemExit):
        main(["verify", str(signed_file), "--cert", str(bad)])
    assert "Error:" in capsys.readouterr().err


# ── info ───────────────────────────────────────────────────────────────


def test_info_signed_pdf(signed_file, capsys):
    main(["info", str(signed_file)])
    out = capsys.readouterr().out
    assert "Signer: Test Signer" in out
    assert "Certificates (1):" in out
    assert "Common Name: Test Signer" in out


def test_info_detached_cms(signed_file, signed_pdf, config_dir, capsys):
    from pdfseal.core.pdf import extract_embedded_signature

    tmp_path, _ = config_dir
    p7s = tmp_path / "sig.p7s"
    p7s.write_bytes(extract_embedded_signature(signed_pdf).cms_der)
    main(["info", str(p7s)])
    assert "Digest algorithm: SHA256" in capsys.readouterr().out


def test_info_unsigned_pdf(pdf_file, capsys):
    with pytest.raises(SystemExit):
        main(["info", str(pdf_file)])
    assert "No signature found" in capsys.readouterr().err


# ── setup / reset ──────────────────────────────────────────────────────


def test_setup_saves_everything(key_files, capsys):
    p12_path, cert_path = key_files
    with (
        patch("pdfseal.ui.cli.setup.getpass.getpass", return_value=P12_PASSPHRASE),
        patch("builtins.input", return_value="y"),
    ):
        main(
            [
                "setup",
                "--p12",
                str(p12_path),
                "--cert",
                str(cert_path),
                "--name",
                "John Doe",
                "--reason",
                "Approval",
            ]
        )
    out = capsys.readouterr().out
    assert "Key OK" in out
    assert "Signer:  John Doe" in out

    config = load_config()
    assert config["pkcs12_path"] == str(p12_path.resolve())
    assert config["pkcs12_password"] == P12_PASSPHRASE
    assert config["certificate_path"] == str(cert_path.resolve())
    assert get_signature_defaults().reason == "Approval"


def test_setup_without_saving_passphrase(key_files, capsys):
    p12_path, _ = key_files
    with (
        patch("pdfseal.ui.cli.setup.getpass.getpass", return_value=P12_PASSPHRASE),
        patch("builtins.input", return_value="n"),
    ):
        main(["setup", "--p12", str(p12_path)])
    config = load_config()
    assert config["pkcs12_path"] == str(p12_path.resolve())
    assert "pkcs12_password" not in config
    assert "PDFSEAL_P12_PASS" in capsys.readouterr().out


def test_setup_wrong_passphrase(key_files, capsys):
    p12_path, _ = key_files
    with (
        patch("pdfseal.ui.cli.setup.getpass.getpass", return_value="wrong"),
        pytest.raises(SystemExit) as exc_info,
    ):
        main(["setup", "--p12", str(p12_path)])
    assert exc_info.value.code == 1
    assert "wrong passphrase" in capsys.readouterr().err
    assert load_config() == {}


def test_setup_skip_key(config_dir, capsys):
    with patch("builtins.input", return_value=""):
        main(["setup", "--location", "Berlin"])
    assert get_signature_defaults().location == "Berlin"
    assert "(certificate common name)" in capsys.readouterr().out


def test_reset(key_files, capsys):
    p12_path, _ = key_files
    with (
        patch("pdfseal.ui.cli.setup.getpass.getpass", return_value=P12_PASSPHRASE),
        patch("builtins.input", return_value="y"),
    ):
        main(["setup", "--p12", str(p12_path)])
    main(["reset"])
    assert load_config() == {}
    assert "All configuration cleared." in capsys.readouterr().out


# ── serve ──────────────────────────────────────────────────────────────


def test_serve_builds_app(p12_env, capsys):
    with patch("flask.Flask.run") as mock_run:
        main(["serve", "--port", "8123"])
    mock_run.assert_called_once_with(host="127.0.0.1", port=8123)
    assert "http://127.0.0.1:8123" in capsys.readouterr().out
