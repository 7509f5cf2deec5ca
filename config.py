from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from exceptions import InvalidArgumentError


@dataclass(frozen=True)
class LendingConfig:
    """
    Process-wide lending settings, fixed once the service is built.

    Attributes:
        loanPeriodDays (int): Days added to the borrow date to get the due date.
        logLevel (str): Level name for the "library" logger.
        compensateFailedWrites (bool): Restore the copy count when the second
            write of a borrow/return fails. Off by default: the failure is
            surfaced as OperationFailedError and the count is left as written.
    """

    DEFAULT_LOAN_PERIOD_DAYS = 14
    DEFAULT_LOG_LEVEL = "INFO"

    loanPeriodDays: int = DEFAULT_LOAN_PERIOD_DAYS
    logLevel: str = DEFAULT_LOG_LEVEL
    compensateFailedWrites: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.loanPeriodDays, bool) or not isinstance(self.loanPeriodDays, int):
            raise InvalidArgumentError("loanPeriodDays must be a whole number of days")
        if self.loanPeriodDays <= 0:
            raise InvalidArgumentError(
                f"loanPeriodDays must be positive (got {self.loanPeriodDays})"
            )
        if not isinstance(logging.getLevelName(str(self.logLevel).upper()), int):
            raise InvalidArgumentError(f"Unknown log level: {self.logLevel!r}")

    @property
    def level(self) -> int:
        return logging.getLevelName(self.logLevel.upper())


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--loan-days",
        type=int,
        default=LendingConfig.DEFAULT_LOAN_PERIOD_DAYS,
        help="Loan period in days (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        default=LendingConfig.DEFAULT_LOG_LEVEL,
        help="Log level for the library logger (default: %(default)s)",
    )


def config_from_args(args: argparse.Namespace) -> LendingConfig:
    return LendingConfig(loanPeriodDays=args.loan_days, logLevel=args.log_level)


def parse_config(argv: Optional[Sequence[str]] = None) -> LendingConfig:
    parser = argparse.ArgumentParser(description="Library lending engine settings.")
    add_config_arguments(parser)
    args = parser.parse_args(argv)
    try:
        return config_from_args(args)
    except InvalidArgumentError as e:
        parser.error(str(e))
