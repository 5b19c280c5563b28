"""The main entry point for the nvsync application."""

import logging
import sys
from argparse import Namespace
from typing import Literal

import paramiko

from .argparse import ArgsParseFailure
from .args import get_parser
from .colorlog import create_logger
from .config import Config
from .connection import Connection, LocalConnection
from .exceptions import ReconcileError
from .messages import ConnectingHostFailedMessage, UserError, UserMessage
from .reconcile import Orchestrator, summarize
from .target import Host


def main() -> int:
    """The main entry point for the nvsync application.

    This function handles command-line argument parsing and
    configuration loading before running the reconciliation.

    Returns:
        The exit code of the application.
    """
    logger = create_logger("nvsync")

    p = get_parser(sys)
    try:
        args = p.parse_args(sys.argv[1:])
    except ArgsParseFailure as e:
        return e.status

    if args.debug:
        logger.setLevel(level=logging.DEBUG)

    try:
        cfg = Config(args.config)
        cfg.merge_args(args)
        cfg.validate()
    except UserError as e:
        logger.error(e)
        return 1

    return run_nvsync(cfg, logger, args)


def connect(config: Config) -> Connection | LocalConnection:
    """Opens the connection to the Proxmox host."""
    if config.host_hostname:
        return Connection(config.host_hostname, config.host_port)
    return LocalConnection()


def run_nvsync(
    config: Config, logger: logging.Logger, args: Namespace, connect=connect
) -> Literal[0, 1]:
    """Reconciles the host and its containers.

    Args:
        config: The validated configuration.
        logger: The logger instance.
        args: The parsed command-line arguments.
        connect: Opens the connection to the host.

    Returns:
        0 if every target was reconciled or skipped, 1 on a fatal error.
    """
    try:
        connection = connect(config)
    except (paramiko.SSHException, OSError) as e:
        logger.critical(ConnectingHostFailedMessage(config.host_hostname, e))
        return 1

    host = Host(connection, dryrun=config.dry_run)
    orchestrator = None
    try:
        orchestrator = Orchestrator(config, host)
        orchestrator.run()
    except (ReconcileError, UserMessage) as e:
        logger.error(e)
        return 1
    finally:
        if orchestrator:
            summarize(orchestrator.reports)
        host.close()

    logger.info("All done.")
    return 0
