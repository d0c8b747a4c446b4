"""
AST Node definitions for the tape-language compiler.

The parser produces a ``Program`` (an ordered block of nodes) and the code
generator consumes it. Every simple operation carries a ``repeat`` count:
the number of extra times it runs beyond the first, so ``+++`` becomes a
single ``IncrementCell`` with ``repeat == 2``. A ``WhileLoop`` owns its body
as a nested ``Program``.
"""

from __future__ import annotations
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Type, Union


# ──────────────────────────────────────────────
# Base AST node
# ──────────────────────────────────────────────

@dataclass
class ASTNode:
    """Base class for all AST nodes."""
    line: int = 0
    col: int = 0
    repeat: int = 0

    @property
    def count(self) -> int:
        """Total number of times the operation runs."""
        return self.repeat + 1


# ──────────────────────────────────────────────
# Block: Program
# ──────────────────────────────────────────────

@dataclass
class Program:
    """An ordered block of nodes: the whole program or one loop body."""
    nodes: List[Operation] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)


# ──────────────────────────────────────────────
# Operations
# ──────────────────────────────────────────────

@dataclass
class IntegerLiteral(ASTNode):
    """Decimal literal. Reserved: accepted by the grammar, no runtime effect."""
    value: int = 0

@dataclass
class NextCell(ASTNode):
    """Move right: >"""

@dataclass
class PreviousCell(ASTNode):
    """Move left: <"""

@dataclass
class IncrementCell(ASTNode):
    """Increment: +"""

@dataclass
class DecrementCell(ASTNode):
    """Decrement: -"""

@dataclass
class OutputCell(ASTNode):
    """Output: ."""

@dataclass
class InputCell(ASTNode):
    """Input: ,"""

@dataclass
class WhileLoop(ASTNode):
    """Loop: [ body ], runs body while the current cell is non-zero."""
    body: Program = field(default_factory=Program)


Operation = Union[
    IntegerLiteral, NextCell, PreviousCell, IncrementCell, DecrementCell,
    OutputCell, InputCell, WhileLoop,
]

# Node kinds whose adjacent occurrences fold into one node's repeat count
REPEATABLE_NODES: Tuple[Type[ASTNode], ...] = (
    NextCell, PreviousCell, IncrementCell, DecrementCell,
)


# ──────────────────────────────────────────────
# Loop nesting
# ──────────────────────────────────────────────

# Deepest loop nesting the parser and code generator accept
MAX_LOOP_NESTING = 5000

# Python frames the recursive tree walkers spend per loop level
FRAMES_PER_LOOP = 2
STACK_HEADROOM = 1000


def reserve_loop_nesting(depth: int) -> bool:
    """Raise the interpreter recursion limit so a walk ``depth`` loops deep fits.

    Returns False, leaving the limit alone, when ``depth`` exceeds
    MAX_LOOP_NESTING. The limit is only ever raised.
    """
    if depth > MAX_LOOP_NESTING:
        return False
    needed = depth * FRAMES_PER_LOOP + STACK_HEADROOM
    if sys.getrecursionlimit() < needed:
        sys.setrecursionlimit(needed)
    return True


def deepest_loop(program: Program) -> Tuple[int, Optional[WhileLoop]]:
    """Nesting depth of the deepest loop in ``program``, and that loop.

    Walks the tree with an explicit stack, so it works at any depth.
    """
    best, best_loop = 0, None
    stack = [(program, 0)]
    while stack:
        block, depth = stack.pop()
        for node in block.nodes:
            if isinstance(node, WhileLoop):
                if depth + 1 > best:
                    best, best_loop = depth + 1, node
                stack.append((node.body, depth + 1))
    return best, best_loop
