# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runtime bootstrap for bendbench.

The one-time setup before any benchmark runs:
  1. Validate the interpreter version
  2. Bring every package logger to the configured level (and file sink)
  3. Log a startup record with the host facts

Every CLI command that does real work goes through this first.
"""

from pathlib import Path
from typing import Optional

from bendbench.config.schema import GlobalConfig
from bendbench.logging.logger import configure_logging, get_logger
from bendbench.runtime.environment import check_minimum_python, get_system_info


def bootstrap(config: GlobalConfig, log_level: Optional[str] = None) -> None:
    """
    Run the bootstrap sequence.

    Args:
        config: The validated global configuration.
        log_level: CLI override for config.log_level.
    """
    check_minimum_python()

    level = log_level or config.log_level
    log_file = Path(config.log_file) if config.log_file is not None else None

    logger = get_logger("bendbench.runtime", log_level=level, log_file=log_file)
    configure_logging(level, log_file)

    system_info = get_system_info()
    logger.info(
        "bendbench bootstrap complete",
        extra={
            "python_version": system_info.python_version,
            "platform": system_info.platform,
            "architecture": system_info.architecture,
        },
    )
