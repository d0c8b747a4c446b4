#!/usr/bin/env python3
"""
bfcc: Tape Language Compiler CLI

Usage:
    python bfcc.py <input.bf> [-o output] [-S] [--debug] [--verbose]
                              [--nasm nasm] [--ld ld] [--format elf64]

By default writes <output>.asm, assembles it to <output>.o and links the
executable <output> (default name: output).

Examples:
    python bfcc.py hello.bf -o hello        # hello.asm, hello.o, hello
    python bfcc.py hello.bf -S -o -         # assembly to stdout
    python bfcc.py hello.bf --tokens        # dump token stream
"""

import argparse
import logging
import sys
import os
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from bf_compiler import __version__, build, compile_source
from bf_compiler.lexer import Lexer, LexerError
from bf_compiler.ast_nodes import IntegerLiteral, Program, WhileLoop
from bf_compiler.parser import Parser, ParseError
from bf_compiler.codegen import CodeGenError, TAPE_CELLS
from bf_compiler.toolchain import Toolchain, ToolchainError

SOURCE_EXTENSION = ".bf"

log = logging.getLogger("bfcc")


def setup_logging(console_level: int = logging.WARNING,
                  log_file: Optional[str] = None) -> logging.Logger:
    """Configure console (rich) and optional file logging for the compiler."""
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.DEBUG)

    ch = RichHandler(
        level=console_level,
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    root.addHandler(ch)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-7s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root.addHandler(fh)

    return log


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}")
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bfcc",
        description="Tape language compiler for x86-64 Linux (NASM + ld)",
    )
    parser.add_argument("input", help="Input source file (.bf)")
    parser.add_argument("-o", "--output", default="output",
                        help="Output name: writes NAME.asm, NAME.o and NAME (default: output). "
                             "With -S, '-' prints the assembly to stdout")
    parser.add_argument("-S", "--asm-only", action="store_true",
                        help="Stop after writing the assembly")
    parser.add_argument("--debug", action="store_true",
                        help="Trace every token consumed by the parser")
    parser.add_argument("--tokens", action="store_true",
                        help="Dump token stream and exit (debug)")
    parser.add_argument("--ast", action="store_true",
                        help="Dump AST and exit (debug)")
    parser.add_argument("--tape-cells", type=_positive_int, default=TAPE_CELLS,
                        help=f"Number of 8-byte tape cells (default: {TAPE_CELLS})")
    parser.add_argument("--nasm", default="nasm", help="Assembler executable (default: nasm)")
    parser.add_argument("--ld", default="ld", help="Linker executable (default: ld)")
    parser.add_argument("--format", default="elf64",
                        help="Object format passed to the assembler (default: elf64)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Print compilation details to stderr")
    parser.add_argument("--log-file", default=None,
                        help="Also write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"bfcc {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    if args.debug:
        level = logging.DEBUG
    elif args.verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    setup_logging(level, args.log_file)

    # Read input
    if os.path.splitext(args.input)[1] != SOURCE_EXTENSION:
        print(f"Error: invalid file extension, expected a {SOURCE_EXTENSION} file: {args.input}",
              file=sys.stderr)
        return 1
    try:
        with open(args.input, "r", encoding="utf-8") as f:
            source = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    log.info("input: %s", args.input)

    try:
        # Token dump mode
        if args.tokens:
            for tok in Lexer(source).tokenize():
                print(tok)
            return 0

        # AST dump mode
        if args.ast:
            ast = Parser(Lexer(source), debug=args.debug).parse()
            _print_ast(ast)
            return 0

        if args.asm_only:
            result = compile_source(source, tape_cells=args.tape_cells, debug=args.debug)
            if args.output == "-":
                sys.stdout.write(result)
            else:
                asm_path = args.output + ".asm"
                with open(asm_path, "w", encoding="utf-8") as f:
                    f.write(result)
                log.info("output: %s (%d lines)", asm_path, result.count("\n"))
            return 0

        toolchain = Toolchain(assembler=args.nasm, linker=args.ld, object_format=args.format)
        exe = build(source, args.output, toolchain=toolchain,
                    tape_cells=args.tape_cells, debug=args.debug)
        log.info("output: %s", exe)

    except LexerError as e:
        print(f"Lexer error: {e}", file=sys.stderr)
        return 1
    except ParseError as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return 1
    except CodeGenError as e:
        print(f"Code generation error: {e}", file=sys.stderr)
        return 1
    except ToolchainError as e:
        print(f"Toolchain error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal compiler error: {e}", file=sys.stderr)
        if args.verbose:
            log.exception("internal compiler error")
        return 2

    return 0


def _print_ast(program: Program, indent: int = 0):
    """Print one node per line, loop bodies indented under their loop (debug helper)."""
    prefix = "  " * indent
    for node in program:
        text = type(node).__name__
        if isinstance(node, IntegerLiteral):
            text += f" {node.value}"
        elif node.repeat:
            text += f" repeat={node.repeat}"
        if node.line:
            text += f" @L{node.line}:{node.col}"
        print(prefix + text)
        if isinstance(node, WhileLoop):
            _print_ast(node.body, indent + 1)


if __name__ == "__main__":
    sys.exit(main())
