"""Command-line front end for container operations.

Usage:
    efmu-container --create -I schemas/ -N demo -O demo.fmu
    efmu-container --add -E demo.fmu -N m1 -I prodcode/ -M manifest.xml
    efmu-container --unpack-fmu -E demo.fmu -N m1
    efmu-container --list -E demo.fmu --json

Exactly one operation flag must be given. Exit code is 0 on success and 1
on any failure.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import orjson
from pydantic import ValidationError

from efmucontainer.checksum import DEFAULT_CHECKSUM_ALGORITHM
from efmucontainer.container import ContainerOperation, CoreCallArguments, run_operation
from efmucontainer.logging_config import get_logger, setup_logging
from efmucontainer.validation.policy import ValidationPolicy

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

# Operation flag -> operation
_OPERATION_FLAGS: dict[str, ContainerOperation] = {
    "create": ContainerOperation.CREATE,
    "add": ContainerOperation.ADD,
    "replace": ContainerOperation.REPLACE,
    "delete": ContainerOperation.DELETE,
    "extract": ContainerOperation.EXTRACT,
    "extract_schemas": ContainerOperation.EXTRACT_SCHEMAS,
    "unpack_fmu": ContainerOperation.UNPACK,
    "tidy_root": ContainerOperation.TIDY_ROOT,
    "list": ContainerOperation.LIST,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="efmu-container",
        description="Create, modify and inspect eFMU containers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    ops = parser.add_argument_group("operations (exactly one)")
    ops.add_argument("--create", action="store_true", help="Create a new container from a schema directory")
    ops.add_argument("--add", action="store_true", help="Add a model representation")
    ops.add_argument("--replace", action="store_true", help="Replace a model representation")
    ops.add_argument("--delete", action="store_true", help="Delete a model representation")
    ops.add_argument("--extract", action="store_true", help="Extract a model representation to a directory")
    ops.add_argument("--extract-schemas", action="store_true", help="Extract the schemas to a directory")
    ops.add_argument("--unpack-fmu", action="store_true", help="Unpack the FMU of a model representation to the root")
    ops.add_argument("--tidy-root", action="store_true", help="Remove all non-eFMU content from the root")
    ops.add_argument("--list", action="store_true", help="List the container content")

    parser.add_argument("-E", "--efmu", type=Path, help="Container file (.fmu)")
    parser.add_argument("-I", "--input-dir", type=Path, help="Input directory")
    parser.add_argument("-N", "--name", help="Container name (create) or model representation name")
    parser.add_argument("-M", "--manifest", help="Manifest file name inside the input directory")
    parser.add_argument("-O", "--output", type=Path, help="Output container (create) or output directory (extract)")
    parser.add_argument("-F", "--force", action="store_true", help="Overwrite existing output")
    parser.add_argument(
        "--checksum-algorithm",
        default=DEFAULT_CHECKSUM_ALGORITHM,
        help=f"hashlib algorithm for checksums (default: {DEFAULT_CHECKSUM_ALGORITHM})",
    )
    parser.add_argument("--json", action="store_true", help="Print the container content as JSON on stdout")
    parser.add_argument("--log-json", action="store_true", help="Emit log records as JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")

    # Debugging aids, not advertised
    parser.add_argument("--no-xml-validation", action="store_true", help=argparse.SUPPRESS)
    parser.add_argument("--ignore-checksums", action="store_true", help=argparse.SUPPRESS)
    return parser


def determine_operation(args: argparse.Namespace) -> ContainerOperation:
    """Return the single demanded operation.

    Raises:
        ValueError: If not exactly one operation flag is set.
    """
    demanded = [op for flag, op in _OPERATION_FLAGS.items() if getattr(args, flag)]
    if len(demanded) != 1:
        msg = f"It is required that exactly ONE container operation is demanded, but you demanded {len(demanded)}"
        raise ValueError(msg)
    return demanded[0]


def build_call_arguments(args: argparse.Namespace) -> CoreCallArguments:
    """Convert parsed options into call arguments.

    Raises:
        ValueError: If the operation is ambiguous.
        ValidationError: If the options do not fit the operation.
    """
    return CoreCallArguments(
        operation=determine_operation(args),
        container_path=args.efmu,
        input_dir=args.input_dir,
        name=args.name,
        manifest_file_name=args.manifest,
        output_path=args.output,
        force=args.force,
        policy=ValidationPolicy(
            validate_schema=not args.no_xml_validation,
            validate_checksums=not args.ignore_checksums,
            checksum_algorithm=args.checksum_algorithm,
        ),
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, json_format=args.log_json)
    logger = get_logger("efmucontainer.cli")

    try:
        call_args = build_call_arguments(args)
    except ValidationError as e:
        for error in e.errors():
            logger.error("Invalid arguments: %s", error["msg"])
        return EXIT_FAILURE
    except ValueError as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    result, container = run_operation(call_args, log=logger)
    if not result.ok:
        logger.error("Operation '%s' failed (%s)", result.operation, result.error_kind.value if result.error_kind else "")
        return EXIT_FAILURE

    if args.json and container.manifest is not None:
        sys.stdout.write(orjson.dumps(container.manifest.to_dict(), option=orjson.OPT_INDENT_2).decode() + "\n")
    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
