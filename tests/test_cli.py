"""
CLI tests for bfcc.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import bfcc
from bf_compiler.toolchain import Toolchain


@pytest.fixture(autouse=True)
def _no_log_setup(monkeypatch):
    # Keep pytest's own log capture handlers on the root logger
    monkeypatch.setattr(bfcc, "setup_logging", lambda *a, **kw: bfcc.log)


def _source(tmp_path, text: str, name: str = "prog.bf") -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestInput:
    def test_wrong_extension(self, tmp_path, capsys):
        rc = bfcc.main([_source(tmp_path, "+", "prog.txt"), "-S"])
        assert rc == 1
        assert "expected a .bf file" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        rc = bfcc.main([str(tmp_path / "nope.bf"), "-S"])
        assert rc == 1
        assert "File not found" in capsys.readouterr().err


class TestAsmOutput:
    def test_asm_to_stdout(self, tmp_path, capsys):
        rc = bfcc.main([_source(tmp_path, "+[-]."), "-S", "-o", "-"])
        out = capsys.readouterr().out
        assert rc == 0
        assert "_start:" in out
        assert "while_2:" in out

    def test_asm_to_file(self, tmp_path):
        out_name = str(tmp_path / "prog")
        rc = bfcc.main([_source(tmp_path, "+."), "-S", "-o", out_name])
        assert rc == 0
        assert "call    print_cell" in (tmp_path / "prog.asm").read_text(encoding="utf-8")
        assert not (tmp_path / "prog").exists()

    def test_tape_cells_flag(self, tmp_path, capsys):
        bfcc.main([_source(tmp_path, ""), "-S", "-o", "-", "--tape-cells", "512"])
        assert "resq 512" in capsys.readouterr().out

    @pytest.mark.parametrize("cells", ["0", "-3", "lots"])
    def test_tape_cells_must_be_positive(self, tmp_path, capsys, cells):
        with pytest.raises(SystemExit) as exc:
            bfcc.main([_source(tmp_path, "+"), "-S", "-o", "-", "--tape-cells", cells])
        assert exc.value.code == 2
        assert "--tape-cells" in capsys.readouterr().err

    def test_deeply_nested_loops(self, tmp_path, capsys):
        src = "+" + "[" * 600 + "-" + "]" * 600
        rc = bfcc.main([_source(tmp_path, src), "-S", "-o", "-"])
        captured = capsys.readouterr()
        assert rc == 0
        assert "Internal compiler error" not in captured.err
        assert "while_601.done:" in captured.out


class TestDumps:
    def test_tokens(self, tmp_path, capsys):
        rc = bfcc.main([_source(tmp_path, "+>"), "--tokens"])
        out = capsys.readouterr().out
        assert rc == 0
        assert "Token(INCREMENT_CELL, '+', L1:1)" in out
        assert "Token(EOF" in out

    def test_ast(self, tmp_path, capsys):
        rc = bfcc.main([_source(tmp_path, "++[-]"), "--ast"])
        out = capsys.readouterr().out
        assert rc == 0
        assert out.splitlines() == [
            "IncrementCell repeat=1 @L1:1",
            "WhileLoop @L1:3",
            "  DecrementCell @L1:4",
        ]

    def test_ast_integer_literal(self, tmp_path, capsys):
        bfcc.main([_source(tmp_path, "12 ."), "--ast"])
        assert capsys.readouterr().out.splitlines() == [
            "IntegerLiteral 12 @L1:1",
            "OutputCell @L1:4",
        ]


class TestErrors:
    def test_parse_error(self, tmp_path, capsys):
        rc = bfcc.main([_source(tmp_path, "\n[+"), "-S", "-o", "-"])
        err = capsys.readouterr().err
        assert rc == 1
        assert "Parse error" in err
        assert "unmatched '['" in err
        assert "L2:1" in err

    def test_toolchain_error(self, tmp_path, capsys):
        out_name = str(tmp_path / "prog")
        rc = bfcc.main([_source(tmp_path, "+"), "-o", out_name,
                        "--nasm", "definitely-not-an-assembler-xyz"])
        assert rc == 1
        assert "Toolchain error" in capsys.readouterr().err
        # Assembly was produced before the toolchain failed
        assert (tmp_path / "prog.asm").exists()

    def test_build_uses_toolchain_flags(self, tmp_path, monkeypatch):
        seen = {}

        def fake_build(self, asm_path, exe_path):
            seen["tc"] = self
            return exe_path

        monkeypatch.setattr(Toolchain, "build", fake_build)
        rc = bfcc.main([_source(tmp_path, "+"), "-o", str(tmp_path / "prog"),
                        "--nasm", "yasm", "--ld", "gold", "--format", "elf32"])
        assert rc == 0
        assert seen["tc"] == Toolchain(assembler="yasm", linker="gold", object_format="elf32")
