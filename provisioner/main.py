from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional, Sequence

from provisioner.services.dependencies import (
    get_gcp_client,
    get_project_setup_service,
    get_provisioning_config,
)
from provisioner.services.errors import ProvisionerError
from provisioner.services.name_expander import expand_project_name, uses_legacy_syntax
from provisioner.services.setup.project_setup_service import ProvisioningResult


logger = logging.getLogger(__name__)


def _ensure_logging(level: int) -> None:
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    else:
        root.setLevel(level)
        for handler in root.handlers:
            handler.setFormatter(formatter)


def _log_level(verbose: bool) -> int:
    if verbose:
        return logging.DEBUG
    configured = (os.getenv("PROVISIONER_LOG_LEVEL") or "").strip().upper()
    level = logging.getLevelName(configured) if configured else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="provisioner",
        description="Create and configure today's GCP project from a YAML config",
    )
    parser.add_argument(
        "--config",
        dest="config_path",
        required=True,
        help="Path to the project config YAML (namePattern, parent, billingAccount, services, setupCommands)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


async def run(config_path: str) -> ProvisioningResult:
    config = get_provisioning_config(config_path)

    if uses_legacy_syntax(config.name_pattern):
        logger.warning(
            "namePattern %r uses the deprecated YYYYMMDD token, which is no longer expanded; use ${today}",
            config.name_pattern,
        )
    project_id = expand_project_name(config.name_pattern)
    logger.info("Project id: %s", project_id)

    client = get_gcp_client()
    try:
        service = get_project_setup_service(config=config, client=client)
        return await service.provision(project_id)
    finally:
        await client.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _ensure_logging(_log_level(args.verbose))

    try:
        asyncio.run(run(args.config_path))
    except ProvisionerError as exc:
        logger.debug("Provisioning aborted", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
