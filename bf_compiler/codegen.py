"""
x86-64 Code Generator for the tape-language compiler.

Translates the AST into NASM assembly for Linux (ELF64, raw syscalls, no libc).

Register usage convention:
  - rbx: scratch copy of the cell pointer
  - rax: scratch copy of the current cell value
  - rdi/rsi/rdx: syscall arguments

Memory layout (.bss, zero-initialised by the loader):
  - tape:          TAPE_CELLS cells of 8 bytes each
  - cell_pointer:  one 8-byte index into the tape
  - print_buffer:  one byte staged for the write syscall
  - read_buffer:   one byte filled by the read syscall

Runtime helpers, emitted once in the preamble:
  - print_cell: writes the current cell's low byte to stdout. A cell holding
    exactly 58 prints a linefeed instead (value - '0' == 10).
  - input_cell: reads one byte from stdin into the low byte of the current
    cell; the upper seven bytes are left untouched.

Loops are tested at the top. Every node visited bumps a shared counter
before it is translated, and a loop's labels are named after the counter
value it received, so labels stay unique across nested and sibling loops.
"""

from __future__ import annotations
import logging
from typing import List
from .ast_nodes import *

log = logging.getLogger(__name__)


TAPE_CELLS = 30000

PROGRAM_HEADER = """\
; ════════════════════════════════════════════
; Tape Language Compiler Output
; Target: x86-64 Linux (nasm -felf64, ld)
; ════════════════════════════════════════════

section .bss
        tape            resq {tape_cells}   ; the tape, 8 bytes per cell
        cell_pointer    resq 1              ; index of the current cell
        print_buffer    resb 1              ; byte staged for the write syscall
        read_buffer     resb 1              ; byte filled by the read syscall

section .data
        linefeed        db 0x0A

section .text
global _start

; ── print_cell: write tape[cell_pointer] to stdout ──
print_cell:
        mov     rbx, [cell_pointer]
        mov     rax, [tape+rbx*8]
        sub     rax, 48                 ; offset from '0'
        cmp     rax, 10
        jne     .not_linefeed
        mov     al, [linefeed]
        mov     [print_buffer], al
        jmp     .perform_print
.not_linefeed:
        add     al, '0'
        mov     [print_buffer], al
.perform_print:
        mov     rax, 1                  ; sys_write
        mov     rdi, 1                  ; stdout
        mov     rsi, print_buffer
        mov     rdx, 1
        syscall
        ret

; ── input_cell: read one byte from stdin into tape[cell_pointer] ──
input_cell:
        mov     rax, 0                  ; sys_read
        mov     rdi, 0                  ; stdin
        mov     rsi, read_buffer
        mov     rdx, 1
        syscall
        mov     rbx, [cell_pointer]
        mov     al, [read_buffer]
        mov     [tape+rbx*8], al        ; low byte only
        ret

; ── Code ──
_start:"""

PROGRAM_FOOTER = [
    "        ; -- New Line --",
    "        mov     rax, 1",
    "        mov     rdi, 1",
    "        mov     rsi, linefeed",
    "        mov     rdx, 1",
    "        syscall",
    "        ; -- Exit --",
    "        mov     rax, 60                 ; sys_exit",
    "        xor     rdi, rdi",
    "        syscall",
]


class CodeGenError(Exception):
    def __init__(self, message: str, node: ASTNode):
        self.node = node
        super().__init__(f"Code generation error at L{node.line}:{node.col}: {message}")


class CodeGenerator:
    """Generates x86-64 NASM assembly from an AST."""

    def __init__(self, tape_cells: int = TAPE_CELLS):
        if tape_cells < 1:
            raise ValueError(f"tape_cells must be positive, got {tape_cells}")
        self.tape_cells = tape_cells
        self._offset = 0

    # ── Output helpers ────────────────────────

    @staticmethod
    def _emit(out: List[str], line: str):
        out.append(f"        {line}")

    @staticmethod
    def _emit_label(out: List[str], label: str):
        out.append(f"{label}:")

    @staticmethod
    def _emit_comment(out: List[str], text: str):
        out.append(f"        ; -- {text} --")

    # ── Main generation entry point ───────────

    def generate(self, program: Program) -> str:
        """Generate the complete assembly program for ``program``."""
        depth, deepest = deepest_loop(program)
        if not reserve_loop_nesting(depth):
            raise CodeGenError(f"loop nesting too deep ({depth} levels)", deepest)

        self._offset = 0
        lines = [PROGRAM_HEADER.format(tape_cells=self.tape_cells)]
        self._gen_block(program, lines)
        lines.extend(PROGRAM_FOOTER)
        log.debug("generated %d nodes, %d lines", self._offset, len(lines))
        return "\n".join(lines) + "\n"

    def _gen_block(self, program: Program, out: List[str]):
        for node in program.nodes:
            # Bumped before translation so nested loops see a fresh value
            self._offset += 1

            if isinstance(node, NextCell):
                self._gen_move(out, "Next Cell", "add", node.count)
            elif isinstance(node, PreviousCell):
                self._gen_move(out, "Previous Cell", "sub", node.count)
            elif isinstance(node, IncrementCell):
                self._gen_arith(out, "Increment", "add", node.count)
            elif isinstance(node, DecrementCell):
                self._gen_arith(out, "Decrement", "sub", node.count)
            elif isinstance(node, OutputCell):
                self._emit_comment(out, "Output")
                self._emit(out, "call    print_cell")
            elif isinstance(node, InputCell):
                self._emit_comment(out, "Input")
                self._emit(out, "call    input_cell")
            elif isinstance(node, WhileLoop):
                self._gen_while(node, out)
            elif isinstance(node, IntegerLiteral):
                self._emit_comment(out, f"Integer {node.value} (no effect)")
            else:
                raise CodeGenError(f"unsupported node {type(node).__name__}", node)

    # ── Operations ────────────────────────────

    def _gen_move(self, out: List[str], title: str, op: str, count: int):
        self._emit_comment(out, title)
        self._emit(out, "mov     rbx, [cell_pointer]")
        self._emit(out, f"{op}     rbx, {count}")
        self._emit(out, "mov     [cell_pointer], rbx")

    def _gen_arith(self, out: List[str], title: str, op: str, count: int):
        self._emit_comment(out, title)
        self._emit(out, "mov     rbx, [cell_pointer]")
        self._emit(out, "mov     rax, [tape+rbx*8]")
        self._emit(out, f"{op}     rax, {count}")
        self._emit(out, "mov     [tape+rbx*8], rax")

    def _gen_while(self, node: WhileLoop, out: List[str]):
        label = f"while_{self._offset}"

        self._emit_comment(out, "While")
        self._emit_label(out, label)
        self._emit(out, "mov     rbx, [cell_pointer]")
        self._emit(out, "mov     rax, [tape+rbx*8]")
        self._emit(out, "cmp     rax, 0")
        self._emit(out, f"jnz     {label}.not_zero")
        self._emit(out, f"jmp     {label}.done")
        self._emit_label(out, f"{label}.not_zero")

        body: List[str] = []
        try:
            self._gen_block(node.body, body)
        except CodeGenError as e:
            raise CodeGenError(f"error compiling loop body: {e}", node) from e
        out.extend(body)

        self._emit_comment(out, "While End")
        self._emit(out, f"jmp     {label}")
        self._emit_label(out, f"{label}.done")
