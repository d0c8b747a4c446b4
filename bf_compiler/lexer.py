"""
Lexer for the tape-language compiler.

Produces one positioned token per call to ``Lexer.lex()`` from a cursor over
the source text. The eight command symbols become tokens, runs of decimal
digits become NUMBER tokens, and everything else is skipped:

  - ``#`` starts a comment that runs to the end of the line
  - whitespace and unknown characters are ignored
  - a run of letters is a "word" and is dropped; a command symbol that
    directly follows a letter is swallowed by the word as well, so
    ``move>`` produces no tokens while ``move >`` produces a ``>``
"""

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional


# ──────────────────────────────────────────────
# Token types
# ──────────────────────────────────────────────

class TokenType(enum.Enum):
    EOF = "EOF"

    NUMBER = "NUMBER"

    NEXT_CELL = ">"
    PREVIOUS_CELL = "<"

    INCREMENT_CELL = "+"
    DECREMENT_CELL = "-"

    OUTPUT_CELL = "."
    INPUT_CELL = ","

    LOOP_OPEN = "["
    LOOP_CLOSE = "]"


COMMAND_SYMBOLS: Dict[str, TokenType] = {
    ">": TokenType.NEXT_CELL,
    "<": TokenType.PREVIOUS_CELL,
    "+": TokenType.INCREMENT_CELL,
    "-": TokenType.DECREMENT_CELL,
    ".": TokenType.OUTPUT_CELL,
    ",": TokenType.INPUT_CELL,
    "[": TokenType.LOOP_OPEN,
    "]": TokenType.LOOP_CLOSE,
}

COMMENT_CHAR = "#"

# Literal carried by the end-of-input token
EOF_LITERAL = "\n"


# ──────────────────────────────────────────────
# Token data classes
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Position:
    line: int
    col: int

    def __str__(self):
        return f"L{self.line}:{self.col}"


@dataclass
class Token:
    type: TokenType
    value: str
    position: Position

    @property
    def line(self) -> int:
        return self.position.line

    @property
    def col(self) -> int:
        return self.position.col

    def __repr__(self):
        return f"Token({self.type.name}, {self.value!r}, {self.position})"


# ──────────────────────────────────────────────
# Lexer
# ──────────────────────────────────────────────

class LexerError(Exception):
    def __init__(self, message: str, line: int, col: int):
        self.line = line
        self.col = col
        super().__init__(f"Lexer error at L{line}:{col}: {message}")


class Lexer:
    """Lazily tokenizes source text, one token per ``lex()`` call."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.col = 0

    @property
    def position(self) -> Position:
        return Position(self.line, self.col)

    def _read(self) -> Optional[str]:
        if self.pos >= len(self.source):
            return None
        ch = self.source[self.pos]
        self.pos += 1
        self.col += 1
        return ch

    def _backup(self):
        """Step back over the character just read so it is seen again."""
        if self.pos == 0:
            raise LexerError("cannot back up past the start of input", self.line, self.col)
        self.pos -= 1
        self.col -= 1

    def _read_while(self, accept: Callable[[str], bool]) -> str:
        """Consume characters while ``accept`` holds; the first rejected one is left unread."""
        chars: List[str] = []
        while True:
            ch = self._read()
            if ch is None:
                break
            if not accept(ch):
                self._backup()
                break
            chars.append(ch)
        return "".join(chars)

    def _skip_comment(self):
        self._read_while(lambda ch: ch != "\n")

    def _skip_word(self, first: str):
        # A command symbol is absorbed only when the character before it is a letter
        prev = first
        while True:
            ch = self._read()
            if ch is None:
                return
            if ch.isalpha() or (ch in COMMAND_SYMBOLS and prev.isalpha()):
                prev = ch
                continue
            self._backup()
            return

    def lex(self) -> Token:
        """Scan forward to the next token.

        Returns an EOF token once the input is exhausted; calling again after
        that keeps returning EOF.
        """
        while True:
            ch = self._read()
            if ch is None:
                return Token(TokenType.EOF, EOF_LITERAL, self.position)

            if ch == "\n":
                self.line += 1
                self.col = 0
                continue

            if ch == COMMENT_CHAR:
                self._skip_comment()
                continue

            if ch in COMMAND_SYMBOLS:
                return Token(COMMAND_SYMBOLS[ch], ch, self.position)

            if ch.isspace():
                continue

            if ch.isdecimal():
                start = self.position
                digits = ch + self._read_while(str.isdecimal)
                return Token(TokenType.NUMBER, digits, start)

            if ch.isalpha():
                self._skip_word(ch)
                continue

            # Anything else is ignored

    def __iter__(self) -> Iterator[Token]:
        """Yield tokens up to, but not including, EOF."""
        while True:
            tok = self.lex()
            if tok.type is TokenType.EOF:
                return
            yield tok

    def tokenize(self) -> List[Token]:
        """Tokenize the remaining source and return a list ending with EOF."""
        tokens = list(self)
        tokens.append(self.lex())
        return tokens
