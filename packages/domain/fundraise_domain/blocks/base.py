"""Base classes for reporting blocks.

This module provides the foundation for the blocks architecture:
- Block abstract base class
- BlockContext for passing data between blocks
- BlockExecutor for dependency resolution and execution
- Topological sort for DAG execution order
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Deque, Dict, List, Optional
from dataclasses import dataclass, field

from loguru import logger


# =============================================================================
# Block Context
# =============================================================================

@dataclass
class BlockContext:
    """Keyed store that blocks read inputs from and write outputs to.

    Example:
        context = BlockContext()
        context.set("raise_snapshot", ledger.snapshot())

        InvestorRegisterBlock().execute(context)
        register_df = context.get("investor_register")
    """

    _data: Dict[str, Any] = field(default_factory=dict)

    def get(self, key: str) -> Any:
        """Get value from context.

        Raises:
            KeyError: If key not found in context
        """
        if key not in self._data:
            raise KeyError(f"Key '{key}' not found in context. Available keys: {list(self._data.keys())}")
        return self._data[key]

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def has(self, key: str) -> bool:
        return key in self._data

    def keys(self) -> List[str]:
        return list(self._data.keys())


# =============================================================================
# Block Base Class
# =============================================================================

class Block(ABC):
    """A reusable computation unit with declared inputs and outputs.

    Subclass example:
        class RaiseSummaryBlock(Block):
            def inputs(self) -> List[str]:
                return ["raise_snapshot", "investor_register"]

            def outputs(self) -> List[str]:
                return ["raise_summary"]

            def execute(self, context: BlockContext) -> None:
                snapshot = context.get("raise_snapshot")
                context.set("raise_summary", summarize(snapshot))
    """

    @abstractmethod
    def inputs(self) -> List[str]:
        """Context keys this block reads."""
        pass

    @abstractmethod
    def outputs(self) -> List[str]:
        """Context keys this block writes."""
        pass

    @abstractmethod
    def execute(self, context: BlockContext) -> None:
        """Read inputs from context, compute, write outputs to context.

        Raises:
            KeyError: If required inputs not available in context
        """
        pass

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(inputs={self.inputs()}, outputs={self.outputs()})"


# =============================================================================
# Dependency Resolution
# =============================================================================

class CircularDependencyError(Exception):
    """Raised when blocks have circular dependencies."""
    pass


def topological_sort(blocks: List[Block]) -> List[Block]:
    """Order blocks so every block runs after the producers of its inputs.

    Kahn's algorithm. Inputs that no block produces are expected in the
    initial context. Blocks with no ordering constraint between them keep
    their given relative order.

    Raises:
        ValueError: If two blocks declare the same output
        CircularDependencyError: If blocks have circular dependencies
    """
    producers: Dict[str, Block] = {}
    for block in blocks:
        for key in block.outputs():
            if key in producers:
                raise ValueError(
                    f"Multiple blocks produce '{key}': {producers[key]} and {block}"
                )
            producers[key] = block

    pending: Dict[int, int] = {id(block): 0 for block in blocks}
    dependents: Dict[int, List[Block]] = {id(block): [] for block in blocks}
    for block in blocks:
        for key in block.inputs():
            producer = producers.get(key)
            if producer is not None:
                dependents[id(producer)].append(block)
                pending[id(block)] += 1

    ready: Deque[Block] = deque(block for block in blocks if pending[id(block)] == 0)
    ordered: List[Block] = []
    while ready:
        current = ready.popleft()
        ordered.append(current)
        for dependent in dependents[id(current)]:
            pending[id(dependent)] -= 1
            if pending[id(dependent)] == 0:
                ready.append(dependent)

    if len(ordered) != len(blocks):
        remaining = [block for block in blocks if pending[id(block)] > 0]
        raise CircularDependencyError(
            f"Circular dependency detected among blocks: {remaining}"
        )

    return ordered


# =============================================================================
# Block Executor
# =============================================================================

class BlockExecutor:
    """Runs blocks in dependency order against one context.

    Example:
        executor = BlockExecutor([RaiseSummaryBlock(), InvestorRegisterBlock()])
        context = BlockContext()
        context.set("raise_snapshot", ledger.snapshot())
        executor.execute(context)

        summary_df = context.get("raise_summary")
    """

    def __init__(self, blocks: List[Block]):
        self.blocks = blocks
        self._sorted_blocks: Optional[List[Block]] = None

    def execute(self, context: BlockContext) -> BlockContext:
        """Execute all blocks in dependency order.

        Returns:
            The same context, now holding every block's outputs

        Raises:
            CircularDependencyError: If blocks have circular dependencies
            KeyError: If a required input is missing from context
            ValueError: If a block does not write a declared output
        """
        if self._sorted_blocks is None:
            self._sorted_blocks = topological_sort(self.blocks)

        for block in self._sorted_blocks:
            for key in block.inputs():
                if not context.has(key):
                    raise KeyError(
                        f"Block {block} requires input '{key}' but it's not in context. "
                        f"Available keys: {context.keys()}"
                    )

            logger.debug("Executing {}", block)
            block.execute(context)

            for key in block.outputs():
                if not context.has(key):
                    raise ValueError(
                        f"Block {block} declared output '{key}' but didn't write it to context"
                    )

        return context
