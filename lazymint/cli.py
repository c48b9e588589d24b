#!/usr/bin/env python3
"""
LazyMint CLI

Command-line tooling around the issuance ledger: sign and check vouchers
off-system, build and inspect zone ``extraData`` payloads, and inspect
configuration.

Usage:
    lazymint <command> <subcommand> [options]

Commands:
    voucher     Sign, verify, encode and decode vouchers
    zone        Zone metadata and entry-point selectors
    config      Configuration management

Copyright (c) 2026 Momentum. All rights reserved.
"""

from __future__ import annotations

import argparse
import json
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from lazymint import __version__
from lazymint.codec import decode_voucher, encode_voucher
from lazymint.config import ConfigError, get_config, get_config_manager
from lazymint.domain import AuthorizationDomain, Voucher
from lazymint.hardening import LazyMintError, ValidationError, ValidationErrors, Validators
from lazymint.schema import validate_voucher_document
from lazymint.security import VoucherValidator
from lazymint.signer import VoucherSigner
from lazymint.zone import (
    AUTHORIZE_ORDER_SELECTOR,
    GET_SEAPORT_METADATA_SELECTOR,
    SUPPORTS_INTERFACE_SELECTOR,
    VALIDATE_ORDER_SELECTOR,
    ZONE_INTERFACE_ID,
    ZONE_NAME,
    ZONE_SCHEMA_ID,
)


class OutputFormat(Enum):
    """Output format options."""
    JSON = "json"
    YAML = "yaml"
    TEXT = "text"


class CLIError(Exception):
    """CLI error with exit code."""
    def __init__(self, message: str, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


def format_output(data: Any, fmt: OutputFormat = OutputFormat.JSON) -> str:
    """Format data for output."""
    if fmt == OutputFormat.JSON:
        return json.dumps(data, indent=2, default=str)
    elif fmt == OutputFormat.YAML:
        return yaml.dump(data, default_flow_style=False)
    elif isinstance(data, dict):
        return "\n".join(f"{k}: {v}" for k, v in data.items())
    return str(data)


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        raise CLIError(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def _read_voucher(source: str) -> Voucher:
    try:
        document = json.loads(_read_text(source))
    except json.JSONDecodeError as e:
        raise CLIError(f"Voucher document is not valid JSON: {e}") from e

    errors = validate_voucher_document(document)
    if errors:
        raise CLIError("Voucher document failed validation: " + "; ".join(errors))
    return Voucher.from_dict(document)


class LazyMintCLI:
    """Main CLI application."""

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="lazymint",
            description="LazyMint voucher and zone tooling",
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        self.parser.add_argument(
            "--version", "-V",
            action="version",
            version=f"lazymint {__version__}",
        )
        self.parser.add_argument(
            "--format", "-f",
            choices=["json", "yaml", "text"],
            default="json",
            help="Output format (default: json)",
        )
        self.parser.add_argument(
            "--config", "-c",
            help="YAML configuration file to load before running",
        )
        self.parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress error output",
        )

        self.subparsers = self.parser.add_subparsers(dest="command", help="Commands")
        self._register_commands()

    def _register_commands(self) -> None:
        """Register all command groups."""
        self._register_voucher_commands()
        self._register_zone_commands()
        self._register_config_commands()

    @staticmethod
    def _add_domain_arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--verifying-contract", required=True,
            help="Address of the issuance ledger the voucher is bound to",
        )
        parser.add_argument("--chain-id", type=int, help="Chain id (default: runtime.chain_id)")
        parser.add_argument("--name", help="Domain name (default: ledger.name)")
        parser.add_argument("--domain-version", help="Domain version (default: ledger.version)")

    def _register_voucher_commands(self) -> None:
        """Register voucher subcommands."""
        voucher = self.subparsers.add_parser("voucher", help="Voucher operations")
        voucher_sub = voucher.add_subparsers(dest="subcommand")

        # voucher sign
        sign = voucher_sub.add_parser("sign", help="Sign a voucher with the configured signer key")
        sign.add_argument("--owner", required=True, help="Recipient address")
        sign.add_argument("--token-id", required=True, type=int, help="Token id")
        sign.add_argument("--amount", required=True, type=int, help="Quantity to issue")
        sign.add_argument("--uri", default="", help="Token metadata URI")
        sign.add_argument("--key-file", help="File holding the signer private key")
        self._add_domain_arguments(sign)

        # voucher verify
        verify = voucher_sub.add_parser("verify", help="Check a voucher signature")
        verify.add_argument("file", help="Voucher JSON document ('-' for stdin)")
        verify.add_argument("--signer", required=True, help="Expected signer address")
        self._add_domain_arguments(verify)

        # voucher encode
        encode = voucher_sub.add_parser("encode", help="Encode a voucher as zone extraData")
        encode.add_argument("file", help="Voucher JSON document ('-' for stdin)")

        # voucher decode
        decode = voucher_sub.add_parser("decode", help="Decode zone extraData into a voucher")
        decode.add_argument("data", help="0x-prefixed extraData")

    def _register_zone_commands(self) -> None:
        """Register zone subcommands."""
        zone = self.subparsers.add_parser("zone", help="Order zone introspection")
        zone_sub = zone.add_subparsers(dest="subcommand")

        zone_sub.add_parser("metadata", help="Show the zone's settlement metadata")
        zone_sub.add_parser("selectors", help="Show entry-point selectors and interface id")

    def _register_config_commands(self) -> None:
        """Register config subcommands."""
        config = self.subparsers.add_parser("config", help="Configuration management")
        config_sub = config.add_subparsers(dest="subcommand")

        # config get
        get = config_sub.add_parser("get", help="Get configuration value")
        get.add_argument("path", help="Config path (e.g., runtime.chain_id)")

        # config show
        config_sub.add_parser("show", help="Show all configuration")

        # config validate
        config_sub.add_parser("validate", help="Validate configuration")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run the CLI."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            if parsed.config:
                get_config_manager().load_from_file(parsed.config)

            fmt = OutputFormat(parsed.format)
            result = self._dispatch(parsed)

            if result is not None:
                print(format_output(result, fmt))

            return 0

        except CLIError as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return e.exit_code

        except (LazyMintError, ValidationError, ValidationErrors, ConfigError) as e:
            if not parsed.quiet:
                print(f"Error: {e}", file=sys.stderr)
            return 1

    def _dispatch(self, args: argparse.Namespace) -> Any:
        """Dispatch command to handler."""
        cmd = args.command
        subcmd = getattr(args, "subcommand", None)

        handler_name = f"_handle_{cmd}_{subcmd}" if subcmd else f"_handle_{cmd}"
        handler = getattr(self, handler_name, None)

        if handler is None:
            raise CLIError(f"Unknown command: {cmd} {subcmd or ''}")

        return handler(args)

    @staticmethod
    def _domain(args: argparse.Namespace) -> AuthorizationDomain:
        config = get_config()
        return AuthorizationDomain(
            name=args.name or config.ledger.name.get(),
            version=args.domain_version or config.ledger.version.get(),
            chain_id=args.chain_id if args.chain_id is not None else config.runtime.chain_id.get(),
            verifying_contract=args.verifying_contract,
        )

    # Voucher handlers
    def _handle_voucher_sign(self, args: argparse.Namespace) -> Any:
        if args.key_file:
            signer = VoucherSigner.from_key(_read_text(args.key_file))
        else:
            signer = VoucherSigner.from_config()

        voucher = signer.sign_voucher(
            self._domain(args),
            owner=args.owner,
            token_id=args.token_id,
            amount=args.amount,
            uri=args.uri,
        )
        return voucher.to_dict()

    def _handle_voucher_verify(self, args: argparse.Namespace) -> Any:
        voucher = _read_voucher(args.file)
        validator = VoucherValidator(self._domain(args))
        valid, reason = validator.check(voucher, args.signer)
        if not valid:
            raise CLIError(f"Invalid signature: {reason}")
        return {"valid": True, "signer": validator.recover(voucher), "tokenId": voucher.token_id}

    def _handle_voucher_encode(self, args: argparse.Namespace) -> Any:
        voucher = _read_voucher(args.file)
        return {"extraData": "0x" + encode_voucher(voucher).hex()}

    def _handle_voucher_decode(self, args: argparse.Namespace) -> Any:
        result = Validators.validate_bytes(args.data.strip(), "data")
        if not result.is_valid:
            raise CLIError(str(result.errors[0]))
        return decode_voucher(result.sanitized_value).to_dict()

    # Zone handlers
    def _handle_zone_metadata(self, args: argparse.Namespace) -> Any:
        return {
            "name": ZONE_NAME,
            "schemas": [{"id": ZONE_SCHEMA_ID, "metadata": "0x"}],
        }

    def _handle_zone_selectors(self, args: argparse.Namespace) -> Dict[str, str]:
        return {
            "authorizeOrder": "0x" + AUTHORIZE_ORDER_SELECTOR.hex(),
            "validateOrder": "0x" + VALIDATE_ORDER_SELECTOR.hex(),
            "getSeaportMetadata": "0x" + GET_SEAPORT_METADATA_SELECTOR.hex(),
            "supportsInterface": "0x" + SUPPORTS_INTERFACE_SELECTOR.hex(),
            "zoneInterfaceId": "0x" + ZONE_INTERFACE_ID.hex(),
        }

    # Config handlers
    def _handle_config_get(self, args: argparse.Namespace) -> Any:
        mgr = get_config_manager()
        if args.path == "signer.private_key":
            raise CLIError("signer.private_key is secret; use 'config show' for its status")
        value = mgr.get(args.path)
        if hasattr(value, "__dataclass_fields__"):
            raise CLIError(f"{args.path} is a section; use 'config show'")
        return {"path": args.path, "value": value}

    def _handle_config_show(self, args: argparse.Namespace) -> Any:
        return get_config_manager().config.to_dict()

    def _handle_config_validate(self, args: argparse.Namespace) -> Any:
        errors = get_config_manager().validate()
        if errors:
            raise CLIError("Invalid configuration: " + "; ".join(errors))
        return {"valid": True, "errors": []}


def main() -> int:
    """CLI entry point."""
    cli = LazyMintCLI()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
