"""
Recursive-descent parser for the tape-language compiler.

Pulls tokens from a Lexer and builds a ``Program`` AST. Each ``[`` starts a
nested ``parse_block`` call that runs until the matching ``]``; the returned
block becomes the body of a ``WhileLoop`` node.

Consecutive ``>``, ``<``, ``+`` or ``-`` tokens are folded as they arrive:
when the incoming token maps to the same node kind as the last node in the
current block, that node's ``repeat`` count is bumped instead of appending a
new node. Folding never crosses a block boundary.
"""

from __future__ import annotations
import enum
import logging
from typing import Dict, Optional, Tuple, Type
from .lexer import Lexer, Token, TokenType
from .ast_nodes import *

log = logging.getLogger(__name__)


class BlockKind(enum.Enum):
    LOOP_BODY = "loop body"


class ParseError(Exception):
    def __init__(self, message: str, token: Token):
        self.token = token
        super().__init__(f"Parse error at {token.position}: {message}")


# Token -> node kind for operations that become a plain node
SIMPLE_NODES: Dict[TokenType, Type[ASTNode]] = {
    TokenType.NEXT_CELL: NextCell,
    TokenType.PREVIOUS_CELL: PreviousCell,
    TokenType.INCREMENT_CELL: IncrementCell,
    TokenType.DECREMENT_CELL: DecrementCell,
    TokenType.OUTPUT_CELL: OutputCell,
    TokenType.INPUT_CELL: InputCell,
}


class Parser:
    """Recursive descent parser producing an AST from a lexer's tokens."""

    def __init__(self, lexer: Lexer, debug: bool = False):
        self.lexer = lexer
        self.debug = debug
        self._depth = 0

    # ── Top-level parsing ─────────────────────

    def parse(self) -> Program:
        """Parse the whole input into a Program AST."""
        program, _ = self.parse_block()
        return program

    def parse_block(self, block: Optional[BlockKind] = None) -> Tuple[Program, Optional[Token]]:
        """Parse tokens until EOF (top level) or ``]`` (inside a loop body).

        Returns the block and the token that closed it: the ``]`` for a loop
        body, None when the input ran out.
        """
        program = Program()

        while True:
            tok = self.lexer.lex()
            if tok.type is TokenType.EOF:
                break

            if self.debug:
                log.debug("token: %s, symbol: %r, position: %s", tok.type.name, tok.value, tok.position)

            if self._fold_repeat(program, tok):
                continue

            if tok.type is TokenType.LOOP_OPEN:
                program.nodes.append(self._parse_loop(tok))

            elif tok.type is TokenType.LOOP_CLOSE:
                if block is BlockKind.LOOP_BODY:
                    return program, tok
                raise ParseError("unmatched ']'", tok)

            elif tok.type is TokenType.NUMBER:
                program.nodes.append(self._parse_number(tok))

            elif tok.type in SIMPLE_NODES:
                node_type = SIMPLE_NODES[tok.type]
                program.nodes.append(node_type(line=tok.line, col=tok.col))

            else:
                raise ParseError(f"unhandled token {tok.value!r}", tok)

        return program, None

    # ── Helpers ─────────────────────────────

    def _fold_repeat(self, program: Program, tok: Token) -> bool:
        """Bump the last node's repeat count if ``tok`` is another of the same kind."""
        node_type = SIMPLE_NODES.get(tok.type)
        if node_type not in REPEATABLE_NODES or not program.nodes:
            return False
        last = program.nodes[-1]
        if type(last) is not node_type:
            return False
        last.repeat += 1
        return True

    def _parse_loop(self, open_tok: Token) -> WhileLoop:
        self._depth += 1
        try:
            if not reserve_loop_nesting(self._depth):
                raise ParseError(f"loop nesting too deep ({self._depth} levels)", open_tok)
            body, closer = self.parse_block(BlockKind.LOOP_BODY)
        finally:
            self._depth -= 1
        if closer is None or closer.type is not TokenType.LOOP_CLOSE:
            raise ParseError("unmatched '['", open_tok)
        return WhileLoop(body=body, line=open_tok.line, col=open_tok.col)

    def _parse_number(self, tok: Token) -> IntegerLiteral:
        try:
            value = int(tok.value)
        except ValueError:
            raise ParseError(f"invalid number {tok.value!r}", tok) from None
        return IntegerLiteral(value=value, line=tok.line, col=tok.col)


def parse(source: str, debug: bool = False) -> Program:
    """Lex and parse ``source`` in one step."""
    return Parser(Lexer(source), debug=debug).parse()
