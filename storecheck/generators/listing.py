from __future__ import annotations

import logging

from ..builder import ScenarioBuilder
from ..ops import OperationKind
from .base import OperationTestGenerator

logger = logging.getLogger(__name__)


class ListGenerator(OperationTestGenerator):
    """``list`` operations are classified but get no scenarios."""

    kind = OperationKind.LIST

    def build(self, builder: ScenarioBuilder) -> None:
        logger.debug("No scenarios are generated for the list operation %s", self.method_name)
