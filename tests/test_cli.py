"""
CLI tests: voucher signing and checking, extraData encoding, zone
introspection and configuration commands.

Run with: pytest tests/test_cli.py -v

Copyright (c) 2026 Momentum. All rights reserved.
"""

import json
from pathlib import Path

import pytest
import yaml

from lazymint.cli import CLIError, LazyMintCLI, OutputFormat, format_output

RECIPIENT = "0x476346a4510AeC7F469716935BF613656b4c22BD"
LEDGER = "0x1234567890123456789012345678901234567890"
SIGNER_KEY = "0x" + "b2" * 32


def _run(capsys, *argv):
    rc = LazyMintCLI().run(list(argv))
    captured = capsys.readouterr()
    return rc, captured.out, captured.err


def _sign(capsys, tmp_path: Path, token_id: int = 189, key: str = SIGNER_KEY) -> Path:
    key_path = tmp_path / "signer.key"
    key_path.write_text(key + "\n", encoding="utf-8")
    rc, out, _ = _run(
        capsys,
        "voucher", "sign",
        "--owner", RECIPIENT,
        "--token-id", str(token_id),
        "--amount", "7",
        "--uri", "ipfs://x",
        "--key-file", str(key_path),
        "--verifying-contract", LEDGER,
    )
    assert rc == 0
    voucher_path = tmp_path / f"voucher-{token_id}.json"
    voucher_path.write_text(out, encoding="utf-8")
    return voucher_path


class TestVoucherCommands:
    def test_sign_outputs_voucher(self, capsys, tmp_path):
        voucher = json.loads(_sign(capsys, tmp_path).read_text())

        assert voucher["owner"] == RECIPIENT
        assert voucher["tokenId"] == 189
        assert voucher["amount"] == 7
        assert voucher["uri"] == "ipfs://x"
        assert len(bytes.fromhex(voucher["signature"][2:])) == 65

    def test_sign_then_verify(self, capsys, tmp_path, signer):
        voucher_path = _sign(capsys, tmp_path)

        rc, out, _ = _run(
            capsys,
            "voucher", "verify", str(voucher_path),
            "--signer", signer.address,
            "--verifying-contract", LEDGER,
        )

        assert rc == 0
        result = json.loads(out)
        assert result["valid"] is True
        assert result["signer"] == signer.address

    def test_verify_wrong_signer(self, capsys, tmp_path, owner):
        voucher_path = _sign(capsys, tmp_path)

        rc, _, err = _run(
            capsys,
            "voucher", "verify", str(voucher_path),
            "--signer", owner.address,
            "--verifying-contract", LEDGER,
        )

        assert rc == 1
        assert "Invalid signature" in err

    def test_verify_other_chain(self, capsys, tmp_path, signer):
        """A voucher signed for one chain does not verify on another."""
        voucher_path = _sign(capsys, tmp_path)

        rc, _, _ = _run(
            capsys,
            "voucher", "verify", str(voucher_path),
            "--signer", signer.address,
            "--verifying-contract", LEDGER,
            "--chain-id", "1",
        )
        assert rc == 1

    def test_sign_with_configured_key(self, capsys, clean_config, signer):
        clean_config.set("signer.private_key", SIGNER_KEY)
        rc, out, _ = _run(
            capsys,
            "voucher", "sign",
            "--owner", RECIPIENT, "--token-id", "1", "--amount", "1",
            "--verifying-contract", LEDGER,
        )
        assert rc == 0
        assert json.loads(out)["uri"] == ""

    def test_sign_without_key(self, capsys):
        rc, _, err = _run(
            capsys,
            "voucher", "sign",
            "--owner", RECIPIENT, "--token-id", "1", "--amount", "1",
            "--verifying-contract", LEDGER,
        )
        assert rc == 1
        assert "No signer key configured" in err

    def test_sign_bad_owner(self, capsys, tmp_path):
        key_path = tmp_path / "signer.key"
        key_path.write_text(SIGNER_KEY)
        rc, _, _ = _run(
            capsys,
            "voucher", "sign",
            "--owner", "0x1234", "--token-id", "1", "--amount", "1",
            "--key-file", str(key_path),
            "--verifying-contract", LEDGER,
        )
        assert rc == 1

    def test_encode_then_decode(self, capsys, tmp_path):
        voucher_path = _sign(capsys, tmp_path)
        original = json.loads(voucher_path.read_text())

        rc, out, _ = _run(capsys, "voucher", "encode", str(voucher_path))
        assert rc == 0
        extra_data = json.loads(out)["extraData"]
        assert extra_data.startswith("0x")

        rc, out, _ = _run(capsys, "voucher", "decode", extra_data)
        assert rc == 0
        assert json.loads(out) == original

    def test_decode_garbage(self, capsys):
        rc, _, err = _run(capsys, "voucher", "decode", "0x" + "ff" * 32)
        assert rc == 1
        assert "Error" in err

    def test_decode_non_hex(self, capsys):
        rc, _, _ = _run(capsys, "voucher", "decode", "voucher")
        assert rc == 1

    def test_schema_failure(self, capsys, tmp_path):
        path = tmp_path / "voucher.json"
        path.write_text(json.dumps({"owner": RECIPIENT, "tokenId": -1, "amount": 1, "uri": ""}))

        rc, _, err = _run(capsys, "voucher", "encode", str(path))

        assert rc == 1
        assert "failed validation" in err
        assert "tokenId" in err

    def test_not_json(self, capsys, tmp_path):
        path = tmp_path / "voucher.json"
        path.write_text("owner: nobody")
        rc, _, err = _run(capsys, "voucher", "encode", str(path))
        assert rc == 1
        assert "not valid JSON" in err

    def test_missing_file(self, capsys, tmp_path):
        rc, _, err = _run(capsys, "voucher", "encode", str(tmp_path / "absent.json"))
        assert rc == 1
        assert "File not found" in err

    def test_quiet_suppresses_errors(self, capsys, tmp_path):
        rc, _, err = _run(capsys, "--quiet", "voucher", "encode", str(tmp_path / "absent.json"))
        assert rc == 1
        assert err == ""


class TestZoneCommands:
    def test_selectors(self, capsys):
        rc, out, _ = _run(capsys, "zone", "selectors")
        assert rc == 0
        result = json.loads(out)
        assert result["authorizeOrder"] == "0x01e4d72a"
        assert result["validateOrder"] == "0x17b1f942"
        assert result["zoneInterfaceId"] == "0x39dd6933"

    def test_metadata(self, capsys):
        rc, out, _ = _run(capsys, "zone", "metadata")
        assert rc == 0
        assert json.loads(out) == {"name": "ArtiartZone", "schemas": [{"id": 3003, "metadata": "0x"}]}

    def test_yaml_output(self, capsys):
        rc, out, _ = _run(capsys, "--format", "yaml", "zone", "metadata")
        assert rc == 0
        assert yaml.safe_load(out)["name"] == "ArtiartZone"

    def test_unknown_subcommand(self, capsys):
        rc, _, err = _run(capsys, "zone")
        assert rc == 1
        assert "Unknown command" in err


class TestConfigCommands:
    def test_get(self, capsys):
        rc, out, _ = _run(capsys, "config", "get", "runtime.chain_id")
        assert rc == 0
        assert json.loads(out) == {"path": "runtime.chain_id", "value": 1337}

    def test_get_secret_refused(self, capsys):
        rc, _, err = _run(capsys, "config", "get", "signer.private_key")
        assert rc == 1
        assert "secret" in err

    def test_get_section_refused(self, capsys):
        rc, _, _ = _run(capsys, "config", "get", "ledger")
        assert rc == 1

    def test_show_masks_secret(self, capsys, monkeypatch):
        monkeypatch.setenv("LAZYMINT_SIGNER_KEY", SIGNER_KEY)
        rc, out, _ = _run(capsys, "config", "show")
        assert rc == 0
        assert json.loads(out)["signer"]["private_key"] == "***"
        assert "b2b2" not in out

    def test_config_file_option(self, capsys, tmp_path):
        path = tmp_path / "lazymint.yaml"
        path.write_text(yaml.dump({"ledger": {"name": "Drops"}}))
        rc, out, _ = _run(capsys, "--config", str(path), "config", "get", "ledger.name")
        assert rc == 0
        assert json.loads(out)["value"] == "Drops"

    def test_validate(self, capsys):
        rc, out, _ = _run(capsys, "config", "validate")
        assert rc == 0
        assert json.loads(out)["valid"] is True

    def test_validate_reports_errors(self, capsys, monkeypatch):
        monkeypatch.setenv("LAZYMINT_LOG_FORMAT", "xml")
        rc, _, err = _run(capsys, "config", "validate")
        assert rc == 1
        assert "observability.log_format" in err


class TestFormatting:
    def test_text_format(self):
        assert format_output({"a": 1, "b": "x"}, OutputFormat.TEXT) == "a: 1\nb: x"

    def test_cli_error_exit_code(self):
        assert CLIError("boom", exit_code=3).exit_code == 3

    def test_no_command_prints_help(self, capsys):
        rc, out, _ = _run(capsys)
        assert rc == 0
        assert "lazymint" in out


@pytest.mark.slow
class TestManyVouchers:
    def test_distinct_signatures(self, capsys, tmp_path):
        """Each token id gets its own signature."""
        signatures = {
            json.loads(_sign(capsys, tmp_path, token_id=i).read_text())["signature"]
            for i in range(50)
        }
        assert len(signatures) == 50
