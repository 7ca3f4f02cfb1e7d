"""ChiaStamp CLI: hash, stamp, verify and refresh proof files."""

import argparse
import asyncio
import logging
import sys
from importlib.metadata import version as get_version, PackageNotFoundError
from pathlib import Path
from typing import Optional


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _fail(message: str) -> None:
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def main():
    """Main CLI entry point for chiastamp commands."""
    try:
        chiastamp_version = get_version("chiastamp")
    except PackageNotFoundError:
        chiastamp_version = "dev"

    parser = argparse.ArgumentParser(
        prog="chiastamp",
        description="ChiaStamp: prove a file existed at a point in time via the Chia blockchain"
    )
    parser.add_argument("--version", action="version", version=f"chiastamp {chiastamp_version}")
    # Common arguments
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress all non-error output."
    )
    parent_parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr."
    )
    # Service arguments (override CHIASTAMP_* environment variables)
    service_parser = argparse.ArgumentParser(add_help=False)
    service_parser.add_argument(
        "--coinset-base",
        default=None,
        help="Coin/block index base URL"
    )
    service_parser.add_argument(
        "--backend-url",
        default=None,
        help="Stamping service base URL"
    )
    service_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # hash command
    hash_parser = subparsers.add_parser(
        "hash",
        help="Compute the SHA-256 digest of a file",
        parents=[parent_parser]
    )
    hash_parser.add_argument(
        "file",
        type=Path,
        help="Path to file"
    )
    salt_group = hash_parser.add_mutually_exclusive_group()
    salt_group.add_argument(
        "--salt",
        default=None,
        help="Hex salt appended to the file bytes"
    )
    salt_group.add_argument(
        "--new-salt",
        action="store_true",
        help="Generate a fresh random salt and print it"
    )

    # stamp command
    stamp_parser = subparsers.add_parser(
        "stamp",
        help="Submit a salted file digest and save the returned proof",
        parents=[parent_parser, service_parser]
    )
    stamp_parser.add_argument(
        "file",
        type=Path,
        help="Path to file"
    )
    stamp_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Proof output path (defaults to <file>.proof.json)"
    )

    # verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a file against its proof",
        parents=[parent_parser, service_parser]
    )
    verify_parser.add_argument(
        "file",
        type=Path,
        help="Path to original file"
    )
    verify_parser.add_argument(
        "proof",
        type=Path,
        help="Path to proof JSON"
    )
    verify_parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory for verification.json"
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON instead of text"
    )

    # refresh command
    refresh_parser = subparsers.add_parser(
        "refresh",
        help="Check for a confirmed version of a partial proof",
        parents=[parent_parser, service_parser]
    )
    refresh_parser.add_argument(
        "file",
        type=Path,
        help="Path to original file"
    )
    refresh_parser.add_argument(
        "proof",
        type=Path,
        help="Path to proof JSON"
    )
    refresh_parser.add_argument(
        "--out",
        type=Path,
        default=None,
        help="Updated proof output path (defaults to <file>.proof.json)"
    )

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    _configure_logging(args.verbose)

    def _settings():
        from ._internal.config import ConfigError, Settings

        try:
            return Settings.from_env().with_overrides(
                coinset_base=args.coinset_base,
                backend_url=args.backend_url,
                http_timeout=args.timeout,
            )
        except ConfigError as e:
            _fail(str(e))

    def _print_results(results, refresh_hint: bool) -> None:
        status = "OK" if results.passed else "FAILED"
        print(f"[{status}] Verification complete")
        for _, outcome in results.slots():
            mark = "PASS" if outcome.passed else "FAIL"
            print(f"  {outcome.step}: {mark}")
            print(f"    {outcome.message}")
            if outcome.failure_reason is not None:
                print(f"    Reason: {outcome.failure_reason.value}")
            if outcome.block_index is not None:
                print(f"    Block: {outcome.block_index}")
            if outcome.timestamp is not None:
                print(f"    Timestamp: {outcome.timestamp}")
        if refresh_hint:
            print(
                "  Hint: the local proof is valid but not yet confirmed on-chain. "
                f"Run 'chiastamp refresh {args.file} {args.proof}' to check for an updated proof."
            )

    def _run_verify():
        from .api import verify_file
        from ._internal.io.proof_file import ProofParseError

        if not args.file.exists():
            _fail(f"File not found: {args.file}")
        try:
            return asyncio.run(verify_file(args.file, args.proof, settings=_settings()))
        except ProofParseError as e:
            _fail(str(e))
        except OSError as e:
            _fail(f"Could not read {args.file}: {e}")

    if args.command == "hash":
        from .kernel.hash_utils import InvalidHexError, generate_salt
        from .api import hash_content

        if not args.file.exists():
            _fail(f"File not found: {args.file}")
        salt = generate_salt() if args.new_salt else args.salt
        try:
            file_hash = hash_content(args.file, salt)
        except InvalidHexError as e:
            _fail(f"Invalid salt: {e}")
        if args.quiet:
            return
        print(f"SHA256 Hash: {file_hash}")
        if args.new_salt:
            print(f"Salt: {salt}")

    elif args.command == "stamp":
        from .api import stamp_file
        from ._internal.backend import BackendError
        from ._internal.io.proof_file import default_proof_path, write_proof_file

        if not args.file.exists():
            _fail(f"File not found: {args.file}")
        try:
            artifact = asyncio.run(stamp_file(args.file, settings=_settings()))
        except BackendError as e:
            _fail(f"Stamping failed: {e}")
        out = write_proof_file(artifact, args.out or default_proof_path(args.file))
        if not args.quiet:
            print("[OK] Stamp submitted")
            print(f"  Leaf hash: {artifact.leaf_hash}")
            print(f"  Confirmed: {artifact.confirmed}")
            print(f"  Proof: {out}")

    elif args.command == "verify":
        from .kernel.pipeline import can_refresh
        from ._internal.canonical_json import canonical_dumps

        results = _run_verify()
        results_dict = results.model_dump(mode="json")
        if args.output_dir is not None:
            output_dir: Optional[Path] = args.output_dir
            output_dir.mkdir(parents=True, exist_ok=True)
            report_out = output_dir / "verification.json"
            report_out.write_text(canonical_dumps(results_dict) + "\n", encoding="utf-8")
            if not args.quiet:
                # stdout carries only the JSON document under --json
                print(f"  Report: {report_out}", file=sys.stderr if args.json else sys.stdout)
        if not args.quiet:
            if args.json:
                print(canonical_dumps(results_dict))
            else:
                _print_results(results, can_refresh(results))
        if not results.passed:
            sys.exit(1)

    elif args.command == "refresh":
        from .api import check_for_updated_proof
        from .kernel.pipeline import can_refresh
        from ._internal.backend import BackendError
        from ._internal.io.proof_file import default_proof_path, write_proof_file

        results = _run_verify()
        if results.passed:
            if not args.quiet:
                print("[OK] Proof is already fully verified on-chain; nothing to refresh.")
            return
        if not can_refresh(results):
            if not args.quiet:
                _print_results(results, refresh_hint=False)
            _fail("Refresh is only available for a valid partial proof.")

        try:
            refresh = asyncio.run(check_for_updated_proof(args.proof, settings=_settings()))
        except BackendError as e:
            _fail(f"Error checking for updates. Please try again. ({e})")
        if refresh.changed:
            out = write_proof_file(refresh.artifact, args.out or default_proof_path(args.file))
            if not args.quiet:
                print(f"[OK] {refresh.message}")
                print(f"  Proof: {out}")
        elif not args.quiet:
            print(f"[OK] {refresh.message}")


if __name__ == "__main__":
    main()
