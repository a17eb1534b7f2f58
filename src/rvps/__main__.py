# Copyright (c) 2026 - 2026, Oracle and/or its affiliates. All rights reserved.
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/.

"""This is the main entrypoint to run the Reference Value Provider Service."""

import argparse
import logging
import os
import sys
from importlib import metadata as importlib_metadata

from rvps.broadcaster import build_default_broadcaster
from rvps.config.defaults import create_defaults, load_defaults
from rvps.config.global_config import global_config
from rvps.coordinator import ExtractionCoordinator, handle_and_broadcast
from rvps.errors import RVPSError, SerializationFailedError
from rvps.extractors import WORKING_DIR_KEY, build_default_registry
from rvps.reference_value import format_expiration, parse_expiration

logger: logging.Logger = logging.getLogger(__name__)


def register(register_args: argparse.Namespace) -> None:
    """Verify a provenance, then store and publish the reference value of its artifact."""
    parameters: dict[str, str] = {}
    for param in register_args.param or []:
        key, sep, value = param.partition("=")
        if not sep or not key:
            logger.error("Please provide parameters as KEY=VALUE, got %s.", param)
            sys.exit(os.EX_USAGE)
        parameters[key] = value
    parameters[WORKING_DIR_KEY] = register_args.working_dir

    expiration = None
    if register_args.expired:
        try:
            expiration = parse_expiration(register_args.expired)
        except SerializationFailedError as error:
            logger.error(error)
            sys.exit(os.EX_USAGE)

    provenance = ""
    if register_args.provenance_file:
        try:
            with open(register_args.provenance_file, encoding="utf-8") as file:
                provenance = file.read()
        except OSError as error:
            logger.critical('The provenance file "%s" cannot be read: %s', register_args.provenance_file, error)
            sys.exit(os.EX_NOINPUT)

    try:
        broadcaster = build_default_broadcaster()
    except RVPSError as error:
        logger.error("Cannot set up the broadcaster: %s", error)
        sys.exit(os.EX_CONFIG)

    try:
        reference_value = handle_and_broadcast(
            ExtractionCoordinator(build_default_registry()),
            broadcaster,
            register_args.type,
            register_args.name,
            provenance,
            parameters,
            expiration,
        )
    except RVPSError as error:
        logger.error("Failed to register the reference value of %s: %s", register_args.name, error)
        sys.exit(os.EX_DATAERR)
    finally:
        broadcaster.close()

    logger.info(
        "Registered the reference value of %s, expiring at %s.",
        reference_value.name,
        format_expiration(reference_value.expiration),
    )


def perform_action(action_args: argparse.Namespace) -> None:
    """Perform the indicated action of RVPS."""
    action = action_args.action
    if action == "dump-defaults":
        if not create_defaults(action_args.output_dir, os.getcwd()):
            sys.exit(os.EX_OSERR)
    elif action == "list-types":
        for type_name in build_default_registry().supported_types():
            print(type_name)  # noqa: T201
    elif action == "register":
        register(action_args)
    else:
        logger.error("RVPS does not support command option %s.", action_args.action)
        sys.exit(os.EX_USAGE)


def main(argv: list[str] | None = None) -> None:
    """Execute the RVPS command-line interface.

    Parameters
    ----------
    argv : list[str] | None
        Command-line arguments.
        If ``argv`` is ``None``, argparse automatically looks at ``sys.argv``.
        Hence, we set ``argv = None`` by default.
    """
    main_parser = argparse.ArgumentParser(prog="rvps")

    main_parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {importlib_metadata.version('rvps')}",
        help="Show the RVPS version number and exit",
    )

    main_parser.add_argument(
        "-v",
        "--verbose",
        help="Run RVPS with more debug logs",
        action="store_true",
    )

    main_parser.add_argument(
        "-o",
        "--output-dir",
        default=os.path.join(os.getcwd(), "output"),
        help="The output destination path for RVPS",
    )

    main_parser.add_argument(
        "-dp",
        "--defaults-path",
        default="",
        help="The path to the defaults configuration file.",
    )

    # Add sub parsers for each action.
    sub_parser = main_parser.add_subparsers(dest="action", help="Run rvps <action> --help for help")

    register_parser = sub_parser.add_parser(name="register")

    register_parser.add_argument(
        "-t",
        "--type",
        required=True,
        type=str,
        help=("The provenance type, e.g. in-toto."),
    )

    register_parser.add_argument(
        "-n",
        "--name",
        required=True,
        type=str,
        help=("The name of the artifact the provenance is about."),
    )

    register_parser.add_argument(
        "-p",
        "--provenance-file",
        required=False,
        type=str,
        help=("The path to the provenance document. Some provenance types only read the files in the working dir."),
    )

    register_parser.add_argument(
        "-w",
        "--working-dir",
        required=True,
        type=str,
        help=("The directory holding the files of the provenance."),
    )

    register_parser.add_argument(
        "--param",
        required=False,
        action="append",
        help=("A KEY=VALUE parameter of the extractor. Can be repeated."),
    )

    register_parser.add_argument(
        "--expired",
        required=False,
        type=str,
        help=("The expiration time of the reference value, as YYYY-MM-DDTHH:MM:SSZ."),
    )

    # Dump the default values.
    sub_parser.add_parser(name="dump-defaults", description="Dumps the defaults.ini file to the output directory.")

    # List the provenance types.
    sub_parser.add_parser(name="list-types", description="Lists the supported provenance types.")

    args = main_parser.parse_args(argv)

    if not args.action:
        main_parser.print_help()
        sys.exit(os.EX_USAGE)

    if args.verbose:
        log_level = logging.DEBUG
        log_format = "%(asctime)s [%(name)s:%(funcName)s:%(lineno)d] [%(levelname)s] %(message)s"
    else:
        log_level = logging.INFO
        log_format = "%(asctime)s [%(levelname)s] %(message)s"

    # Set global logging config. We need the stream handler for the initial
    # output directory checking log messages.
    st_handler = logging.StreamHandler(sys.stdout)
    logging.basicConfig(format=log_format, handlers=[st_handler], force=True, level=log_level)

    # Set the output directory.
    if not args.output_dir:
        logger.error("The output path cannot be empty. Exiting ...")
        sys.exit(os.EX_USAGE)

    if os.path.isfile(args.output_dir):
        logger.error("The output directory already exists. Exiting ...")
        sys.exit(os.EX_USAGE)

    if os.path.isdir(args.output_dir):
        logger.info("Setting the output directory to %s", os.path.relpath(args.output_dir, os.getcwd()))
    else:
        logger.info("No directory at %s. Creating one ...", os.path.relpath(args.output_dir, os.getcwd()))
        os.makedirs(args.output_dir)

    # Add file handler to the root logger. Remove stream handler from the
    # root logger to prevent dependencies printing logs to stdout.
    debug_log_path = os.path.join(args.output_dir, "debug.log")
    log_file_handler = logging.FileHandler(debug_log_path, "w")
    log_file_handler.setFormatter(logging.Formatter(log_format))
    logging.getLogger().removeHandler(st_handler)
    logging.getLogger().addHandler(log_file_handler)

    # Add StreamHandler to the RVPS logger only.
    rvps_logger = logging.getLogger("rvps")
    rvps_logger.addHandler(st_handler)

    logger.info("The logs will be stored in debug.log")

    global_config.load(output_path=args.output_dir)

    # Load the default values from defaults.ini files.
    if not load_defaults(args.defaults_path):
        logger.error("Exiting because the defaults configuration could not be loaded.")
        sys.exit(os.EX_NOINPUT)

    perform_action(args)


if __name__ == "__main__":
    main()
