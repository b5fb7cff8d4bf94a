from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from .errors import ContractViolation, StorecheckError
from .metrics import observe_scenario
from .ops import OperationDescriptor

logger = logging.getLogger(__name__)


class Scenario:
    """
    One runnable, named test case against a live store.

    run() clears the store, executes the body and clears the store again even
    when the body fails. A scenario runs at most once.
    """

    def __init__(
        self,
        name: str,
        operation: OperationDescriptor,
        body: Callable[[], None],
        reset: Callable[[], None],
    ) -> None:
        self.name = name
        self.operation = operation
        self._body = body
        self._reset = reset
        self._ran = False

    def __repr__(self) -> str:
        return f"Scenario({self.name!r})"

    @property
    def uri(self) -> str:
        return self.operation.uri

    def run(self) -> None:
        if self._ran:
            raise StorecheckError(f"Scenario {self.name!r} has already run")
        self._ran = True

        start_time = time.monotonic()
        status = "pass"
        try:
            logger.info("Setting up %s ...", self.name)
            self._reset()
            try:
                self._body()
            finally:
                logger.info("Tearing down %s ...", self.name)
                self._reset()
        except ContractViolation:
            status = "fail"
            raise
        except Exception:
            status = "error"
            raise
        finally:
            latency = time.monotonic() - start_time
            observe_scenario(self.operation.store_name, self.operation.kind.value, status, latency)


@dataclass
class ScenarioGroup:
    """The scenarios generated for one classified operation."""

    name: str
    operation: OperationDescriptor
    scenarios: list[Scenario] = field(default_factory=list)

    @property
    def uri(self) -> str:
        return self.operation.uri

    def __iter__(self) -> Iterator[Scenario]:
        return iter(self.scenarios)

    def __len__(self) -> int:
        return len(self.scenarios)


class ScenarioBuilder:
    """
    Accumulates scenarios for one operation.

    Display names read "Test <Store.method>: <message>".
    """

    def __init__(self, operation: OperationDescriptor, reset: Callable[[], None]) -> None:
        self.operation = operation
        self._reset = reset
        self._scenarios: list[Scenario] = []

    def display_name(self, message: Optional[str] = None) -> str:
        name = f"Test {self.operation.qualified_name}"
        if message:
            name += f": {message}"
        return name

    def add(self, message: str, body: Callable[[], None]) -> "ScenarioBuilder":
        self._scenarios.append(Scenario(self.display_name(message), self.operation, body, self._reset))
        return self

    def build(self) -> ScenarioGroup:
        return ScenarioGroup(self.display_name(), self.operation, list(self._scenarios))
