"""
Lexer tests: command symbols, positions, comments, numbers and the
word rule that swallows a command symbol glued to a run of letters.
"""

import pytest
from bf_compiler.lexer import Lexer, LexerError, Position, TokenType


def _types(source: str) -> list:
    return [tok.type for tok in Lexer(source)]


def _values(source: str) -> list:
    return [tok.value for tok in Lexer(source)]


# ─── Command symbols ─────────────────────

class TestCommandSymbols:
    def test_all_eight_symbols(self):
        assert _types("><+-.,[]") == [
            TokenType.NEXT_CELL, TokenType.PREVIOUS_CELL,
            TokenType.INCREMENT_CELL, TokenType.DECREMENT_CELL,
            TokenType.OUTPUT_CELL, TokenType.INPUT_CELL,
            TokenType.LOOP_OPEN, TokenType.LOOP_CLOSE,
        ]

    def test_literal_text_is_the_symbol(self):
        assert _values("+[-]") == ["+", "[", "-", "]"]

    def test_whitespace_and_unknown_characters_skipped(self):
        assert _values(" +\t@!\r- ") == ["+", "-"]

    def test_one_token_per_call(self):
        lexer = Lexer("+-")
        assert lexer.lex().type == TokenType.INCREMENT_CELL
        assert lexer.pos == 1
        assert lexer.lex().type == TokenType.DECREMENT_CELL


# ─── End of input ────────────────────────

class TestEndOfInput:
    def test_empty_source(self):
        tok = Lexer("").lex()
        assert tok.type == TokenType.EOF
        assert tok.value == "\n"

    def test_eof_repeats(self):
        lexer = Lexer("+")
        lexer.lex()
        assert lexer.lex().type == TokenType.EOF
        assert lexer.lex().type == TokenType.EOF

    def test_tokenize_ends_with_eof(self):
        tokens = Lexer("+.").tokenize()
        assert [t.type for t in tokens] == [
            TokenType.INCREMENT_CELL, TokenType.OUTPUT_CELL, TokenType.EOF,
        ]


# ─── Positions ───────────────────────────

class TestPositions:
    def test_columns_are_one_based(self):
        tokens = list(Lexer("+ -"))
        assert tokens[0].position == Position(1, 1)
        assert tokens[1].position == Position(1, 3)

    def test_newline_resets_column(self):
        tokens = list(Lexer("+\n  >"))
        assert tokens[1].position == Position(2, 3)
        assert tokens[1].line == 2
        assert tokens[1].col == 3

    def test_position_str(self):
        assert str(Position(4, 7)) == "L4:7"


# ─── Comments ────────────────────────────

class TestComments:
    def test_hash_comment_runs_to_end_of_line(self):
        assert _values("+ # ignore +-[]\n-") == ["+", "-"]

    def test_comment_at_end_of_input(self):
        assert _values("+#.,") == ["+"]

    def test_line_after_comment_is_counted(self):
        tokens = list(Lexer("#c\n+"))
        assert tokens[0].position == Position(2, 1)


# ─── Numbers ─────────────────────────────

class TestNumbers:
    def test_number_literal(self):
        tokens = list(Lexer("123+"))
        assert tokens[0].type == TokenType.NUMBER
        assert tokens[0].value == "123"
        assert tokens[0].position == Position(1, 1)
        assert tokens[1].type == TokenType.INCREMENT_CELL
        assert tokens[1].position == Position(1, 4)

    def test_numbers_split_by_space(self):
        assert _values("1 22") == ["1", "22"]


# ─── Words ───────────────────────────────

class TestWords:
    def test_word_swallows_following_symbol(self):
        assert _types("move>") == []

    def test_symbol_after_space_is_kept(self):
        assert _types("move >") == [TokenType.NEXT_CELL]

    def test_only_one_symbol_absorbed(self):
        assert _values("ab++") == ["+"]

    def test_word_continues_after_absorbed_symbol(self):
        assert _types("ab+cd>") == []

    def test_word_ends_at_newline(self):
        tokens = list(Lexer("abc\n+"))
        assert [t.value for t in tokens] == ["+"]
        assert tokens[0].position == Position(2, 1)

    def test_word_ends_at_digit(self):
        assert _types("abc12") == [TokenType.NUMBER]

    def test_unicode_letters(self):
        assert _types("été+ -") == [TokenType.DECREMENT_CELL]


# ─── Cursor misuse ───────────────────────

class TestCursor:
    def test_backup_at_start_is_fatal(self):
        with pytest.raises(LexerError) as exc:
            Lexer("+")._backup()
        assert "L1:0" in str(exc.value)
