from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class GeneratorConfig:
    """
    Parameters shared by all generated scenarios.

    loops:       how many times the "normal" scenarios repeat their body
    table_size:  upper bound (exclusive) of records prepared by table-wide scenarios
    seed:        seeds both Faker and the random source, for reproducible runs
    log_errors:  log unexpected store errors raised inside scenario bodies
    locale:      Faker locale used by the record builder
    """

    loops: int = 3
    table_size: int = 8
    seed: Optional[int] = None
    log_errors: bool = True
    locale: str = "en_US"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.loops <= 0:
            raise ValueError("loops must be > 0")
        if self.table_size <= 0:
            raise ValueError("table_size must be > 0; clear scenarios draw sizes from [0, table_size)")

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """
        Build a config from STORECHECK_* environment variables.

        Unset variables keep their defaults.
        """
        kwargs = {}
        if "STORECHECK_LOOPS" in os.environ:
            kwargs["loops"] = int(os.environ["STORECHECK_LOOPS"])
        if "STORECHECK_TABLE_SIZE" in os.environ:
            kwargs["table_size"] = int(os.environ["STORECHECK_TABLE_SIZE"])
        if "STORECHECK_SEED" in os.environ:
            kwargs["seed"] = int(os.environ["STORECHECK_SEED"])
        if "STORECHECK_LOCALE" in os.environ:
            kwargs["locale"] = os.environ["STORECHECK_LOCALE"]
        return cls(**kwargs)
