"""
External assembler / linker driver.

Turns the generated ``.asm`` file into an executable by running
``nasm -f<format> name.asm -o name.o`` followed by ``ld name.o -o name``.
The compiler itself never inspects the object file; it only reports whether
each tool succeeded.
"""

from __future__ import annotations
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

log = logging.getLogger(__name__)


class ToolchainError(Exception):
    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(message)


@dataclass
class Toolchain:
    """Assembler and linker commands used to produce an executable."""
    assembler: str = "nasm"
    linker: str = "ld"
    object_format: str = "elf64"

    def assemble(self, asm_path: Union[str, Path]) -> Path:
        """Assemble ``asm_path`` into an object file next to it."""
        asm_path = Path(asm_path)
        obj_path = asm_path.with_suffix(".o")
        self._run([self.assembler, f"-f{self.object_format}", str(asm_path), "-o", str(obj_path)],
                  f"assemble {asm_path}")
        return obj_path

    def link(self, obj_path: Union[str, Path], exe_path: Union[str, Path]) -> Path:
        """Link ``obj_path`` into the executable ``exe_path``."""
        exe_path = Path(exe_path)
        self._run([self.linker, str(obj_path), "-o", str(exe_path)], f"link {obj_path}")
        return exe_path

    def build(self, asm_path: Union[str, Path], exe_path: Union[str, Path]) -> Path:
        """Assemble then link; returns the executable path."""
        return self.link(self.assemble(asm_path), exe_path)

    def _run(self, cmd: List[str], what: str):
        log.info("running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except FileNotFoundError as e:
            raise ToolchainError(f"failed to {what}: {cmd[0]!r} not found") from e
        if proc.returncode != 0:
            raise ToolchainError(
                f"failed to {what}: {cmd[0]} exited with status {proc.returncode}",
                stderr=proc.stderr.strip(),
            )
        if proc.stderr:
            log.warning("%s: %s", cmd[0], proc.stderr.strip())
