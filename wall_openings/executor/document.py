"""In-memory host document that receives the planned openings.

The document mimics the parts of a BIM host that placement relies on:
family symbols that must be activated before use, hosted instances with
named parameters, and transactions that either commit as a whole or leave
the document untouched.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Optional

import numpy as np

from ..core.models import ElevationId, FamilySymbol, PlacementInstruction, TargetModel
from ..errors import ExecutionError

logger = logging.getLogger(__name__)


@dataclass
class OpeningInstance:
    """An opening created in the host document.

    Attributes:
        id: Instance id, unique within the document.
        symbol_name: Family symbol the instance was created from.
        position: Insertion point.
        host_key: ``(identity, host_context_id)`` of the hosting wall.
        level_id: Level the instance references.
        parameters: Instance parameter values by name.
    """

    id: int
    symbol_name: str
    position: np.ndarray
    host_key: tuple
    level_id: ElevationId
    parameters: dict[str, float] = field(default_factory=dict)


class HostDocument:
    """Target model holding family symbols and created openings."""

    def __init__(self, target: TargetModel):
        self.title = target.title
        self.symbols: list[FamilySymbol] = [copy.copy(s) for s in target.families]
        self.instances: list[OpeningInstance] = []
        self._next_id = 1
        self._active_transaction: Optional[str] = None

    @property
    def in_transaction(self) -> bool:
        return self._active_transaction is not None

    @contextmanager
    def transaction(self, name: str) -> Iterator[HostDocument]:
        """Run a block of changes as one unit.

        On any exception the document is restored to its state at the start
        of the block and the exception propagates.

        Raises:
            ExecutionError: If a transaction is already open.
        """
        if self._active_transaction is not None:
            raise ExecutionError(
                f"Cannot start '{name}' while '{self._active_transaction}' is open"
            )

        snapshot = (
            copy.deepcopy(self.instances),
            [s.is_active for s in self.symbols],
            self._next_id,
        )
        self._active_transaction = name
        logger.debug("Transaction started: %s", name)
        try:
            yield self
        except Exception:
            self.instances, active_flags, self._next_id = snapshot
            for symbol, was_active in zip(self.symbols, active_flags):
                symbol.is_active = was_active
            logger.warning("Transaction rolled back: %s", name)
            raise
        finally:
            self._active_transaction = None
        logger.debug("Transaction committed: %s", name)

    def _require_transaction(self, action: str) -> None:
        if self._active_transaction is None:
            raise ExecutionError(f"Cannot {action} outside a transaction")

    def find_symbol(self, family_name: str) -> Optional[FamilySymbol]:
        for symbol in self.symbols:
            if symbol.family_name == family_name:
                return symbol
        return None

    def activate(self, symbol: FamilySymbol) -> None:
        self._require_transaction("activate a symbol")
        symbol.is_active = True

    def create_instance(
        self,
        position: np.ndarray,
        symbol: FamilySymbol,
        host_key: tuple,
        level_id: ElevationId,
    ) -> OpeningInstance:
        """Create a hosted instance of an active symbol."""
        self._require_transaction("create an instance")
        if symbol not in self.symbols:
            raise ExecutionError(f"Symbol {symbol.symbol_name} is not loaded in {self.title}")
        if not symbol.is_active:
            raise ExecutionError(f"Symbol {symbol.symbol_name} is not active")

        instance = OpeningInstance(
            id=self._next_id,
            symbol_name=symbol.symbol_name,
            position=np.array(position, dtype=float),
            host_key=host_key,
            level_id=level_id,
        )
        self._next_id += 1
        self.instances.append(instance)
        return instance

    def find_symbol_by_name(self, symbol_name: str) -> Optional[FamilySymbol]:
        for symbol in self.symbols:
            if symbol.symbol_name == symbol_name:
                return symbol
        return None

    def set_parameter(self, instance: OpeningInstance, name: str, value: float) -> None:
        self._require_transaction("set a parameter")
        symbol = self.find_symbol_by_name(instance.symbol_name)
        if symbol is None or name not in symbol.parameters:
            raise ExecutionError(
                f"Parameter '{name}' not found on instance {instance.id}"
            )
        instance.parameters[name] = float(value)


class PlacementExecutor:
    """Turns placement instructions into opening instances.

    Args:
        document: The host document to modify.
        symbol: The opening family symbol to place.
        width_parameter: Instance parameter that receives the opening width.
        height_parameter: Instance parameter that receives the opening height.
    """

    def __init__(
        self,
        document: HostDocument,
        symbol: FamilySymbol,
        width_parameter: str = "Width",
        height_parameter: str = "Height",
    ):
        self.document = document
        self.symbol = symbol
        self.width_parameter = width_parameter
        self.height_parameter = height_parameter

    def activate_symbol(self) -> None:
        if not self.symbol.is_active:
            self.document.activate(self.symbol)

    def place(self, instructions: list[PlacementInstruction]) -> list[OpeningInstance]:
        created = []
        for instruction in instructions:
            instance = self.document.create_instance(
                instruction.position,
                self.symbol,
                instruction.host_obstacle.key,
                instruction.reference_elevation_id,
            )
            self.document.set_parameter(instance, self.width_parameter, instruction.opening_width)
            self.document.set_parameter(instance, self.height_parameter, instruction.opening_height)
            created.append(instance)
        return created


def execute(
    executor: PlacementExecutor,
    duct_instructions: list[PlacementInstruction],
    pipe_instructions: list[PlacementInstruction],
) -> list[OpeningInstance]:
    """Apply planned openings in three units of work.

    Symbol activation, duct openings and pipe openings are committed
    separately, in that order. A failure rolls back only the unit it
    happens in; units committed before it stay applied.

    Returns:
        All created instances, duct openings first.
    """
    document = executor.document

    with document.transaction("Activate opening symbol"):
        executor.activate_symbol()

    with document.transaction("Place duct openings"):
        created = executor.place(duct_instructions)

    with document.transaction("Place pipe openings"):
        created += executor.place(pipe_instructions)

    logger.info(
        "Created %d openings (%d duct, %d pipe)",
        len(created),
        len(duct_instructions),
        len(pipe_instructions),
    )
    return created
