"""
Tape Language Compiler for x86-64 Linux
=======================================
Compiles programs written in the eight-command tape language
(``> < + - . , [ ]``) to NASM assembly, then hands the text to an external
assembler and linker to produce a static ELF64 executable.

Architecture:
    ┌──────────┐    ┌──────────┐    ┌──────────┐    ┌───────────┐    ┌────────────┐
    │  Source  │───>│  Lexer   │───>│  Parser  │───>│  CodeGen  │───>│ nasm + ld  │
    │  (.bf)   │    │ (tokens) │    │  (AST)   │    │ (asm text)│    │ (exe)      │
    └──────────┘    └──────────┘    └──────────┘    └───────────┘    └────────────┘

    - lexer.py:     Cursor-based scanner, one token per call
    - parser.py:    Recursive descent, folds runs of > < + - into repeat counts
    - ast_nodes.py: Dataclass tree, loops own their bodies
    - codegen.py:   Tree-walk emitter with a fixed preamble and epilogue
    - toolchain.py: Runs the external assembler and linker
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional, Union

__version__ = "0.1.0"

from .lexer import Lexer, LexerError, Position, Token, TokenType
from .ast_nodes import *
from .parser import BlockKind, ParseError, Parser
from .codegen import CodeGenerator, CodeGenError, TAPE_CELLS
from .toolchain import Toolchain, ToolchainError

log = logging.getLogger(__name__)


def compile_source(source: str, *, tape_cells: int = TAPE_CELLS, debug: bool = False) -> str:
    """Compile tape-language source to NASM assembly text.

    Full pipeline: Lexer -> Parser -> AST -> CodeGenerator.

    Raises:
        LexerError, ParseError, CodeGenError: on the first failure; no partial
        output is returned.
    """
    parser = Parser(Lexer(source), debug=debug)
    ast = parser.parse()
    gen = CodeGenerator(tape_cells=tape_cells)
    return gen.generate(ast)


def build(source: str, output: Union[str, Path], *,
          toolchain: Optional[Toolchain] = None,
          tape_cells: int = TAPE_CELLS, debug: bool = False) -> Path:
    """Compile ``source`` and produce the executable ``output``.

    Writes ``<output>.asm`` only once compilation has succeeded, then runs the
    toolchain to create ``<output>.o`` and ``<output>``.

    Returns:
        Path of the linked executable.
    """
    asm_text = compile_source(source, tape_cells=tape_cells, debug=debug)

    exe_path = Path(output)
    asm_path = exe_path.with_name(exe_path.name + ".asm")
    asm_path.write_text(asm_text, encoding="utf-8")
    log.info("wrote %s", asm_path)

    toolchain = toolchain or Toolchain()
    return toolchain.build(asm_path, exe_path)
