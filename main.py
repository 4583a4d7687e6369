#!/usr/bin/env python3

import argparse
import json
import sys

import yaml

from loguru import logger

from runpack.config.utils import Storage
from runpack.config.v1.executor import Config, Executor
from runpack.core.errors import RunpackError


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Build per-platform distributions with a bundled runtime")
    parser.add_argument(
        "config",
        help="YAML formatted config file")
    parser.add_argument(
        "--preset-file",
        help="JSON formatted file with predefined variables",
        default=None)
    parser.add_argument(
        "--log-level",
        help="logging level (default: INFO)",
        default="INFO")

    args = parser.parse_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    with open(args.config) as file:
        content = yaml.safe_load(file)

    if args.preset_file:
        with open(args.preset_file) as file:
            Storage().pool.update(json.load(file))

    logger.debug(f"predefined variables: {Storage().pool}")
    config = Config.model_validate(content)

    try:
        Executor(config).execute()
    except RunpackError as e:
        logger.error(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
