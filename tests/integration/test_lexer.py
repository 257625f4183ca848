import re

import pytest

from js2advpl.errors import LexError
from js2advpl.lexer import TOKEN_RULES, TOKEN_KINDS, tokenize, lex


def kinds(src):
    return [t.kind for t in tokenize(src)]


# ---------------------------
# rule order
# ---------------------------

order_cases = [
# keywords win over identifiers, but only on whole words
("if iffy letter", ["IF", "IDENTIFIER", "IDENTIFIER"]),
("let const var", ["LET", "CONST", "VAR"]),
("return_value", ["IDENTIFIER"]),

# console.log is one token, other console members are not
("console.log", ["CONSOLE_LOG"]),
("console.error", ["IDENTIFIER", "DOT", "IDENTIFIER"]),

# comments and division
("a // b", ["IDENTIFIER", "COMMENT_LINE"]),
("a /* b */ c", ["IDENTIFIER", "COMMENT_BLOCK", "IDENTIFIER"]),
("a / b", ["IDENTIFIER", "SLASH", "IDENTIFIER"]),
("a / b / c", ["IDENTIFIER", "SLASH", "IDENTIFIER", "SLASH", "IDENTIFIER"]),
("(a) / 2", ["LPAREN", "IDENTIFIER", "RPAREN", "SLASH", "NUMBER"]),
("x = /ab+c/g;", ["IDENTIFIER", "EQUALS", "REGEX", "SEMICOLON"]),

# longer operators before their prefixes
("a === b", ["IDENTIFIER", "STRICT_EQUAL", "IDENTIFIER"]),
("a !== b", ["IDENTIFIER", "STRICT_NOT_EQUAL", "IDENTIFIER"]),
("a == b != c", ["IDENTIFIER", "EQUAL", "IDENTIFIER", "NOT_EQUAL", "IDENTIFIER"]),
("a => b", ["IDENTIFIER", "ARROW", "IDENTIFIER"]),
("i++ + 1", ["IDENTIFIER", "INCREMENT", "PLUS", "NUMBER"]),
("x += 1", ["IDENTIFIER", "PLUS_EQUAL", "NUMBER"]),
("a && b || !c", ["IDENTIFIER", "AND", "IDENTIFIER", "OR", "NOT", "IDENTIFIER"]),
("...rest", ["SPREAD", "IDENTIFIER"]),

# literals
("3.5e2 42", ["NUMBER", "NUMBER"]),
("'a' \"b\" `c${d}`", ["STRING", "STRING", "TEMPLATE_STRING"]),
]

@pytest.mark.parametrize("src, expected", order_cases)
def test_rule_order(src, expected):
    assert kinds(src) == expected


def test_rule_table_is_ordered_list():
    assert isinstance(TOKEN_RULES, list)
    ident = next(i for i, r in enumerate(TOKEN_RULES) if r[1] == "IDENTIFIER")
    keyword = next(i for i, r in enumerate(TOKEN_RULES) if r[1] == "IF")
    slash = next(i for i, r in enumerate(TOKEN_RULES) if r[1] == "SLASH")
    comment = next(i for i, r in enumerate(TOKEN_RULES) if r[1] == "COMMENT_LINE")
    assert keyword < ident
    assert comment < slash
    assert "COMMENT_BLOCK" in TOKEN_KINDS


# ---------------------------
# reconstruction and positions
# ---------------------------

reconstruct_cases = [
    "function add(a, b) { return a + b; }",
    "if (a === b && c) { console.log(a); }",
    "let s = 'two words';\n// trailing comment\n",
    "const o = { a: [1, 2], b: `x ${y} z` };",
    "/* block\n   comment */ for (let i = 0; i < 10; i++) { x /= 2; }",
]

@pytest.mark.parametrize("src", reconstruct_cases)
def test_tokens_reconstruct_source(src):
    joined = "".join(t.text for t in tokenize(src))
    assert re.sub(r"\s", "", joined) == re.sub(r"\s", "", src)


def test_positions_are_one_based_start():
    toks = tokenize("let x\n  = 1;")
    assert (toks[0].line, toks[0].column) == (1, 1)
    assert (toks[1].text, toks[1].line, toks[1].column) == ("x", 1, 5)
    assert (toks[2].text, toks[2].line, toks[2].column) == ("=", 2, 3)


def test_positions_after_multiline_comment():
    toks = tokenize("/* a\nb */ x")
    assert toks[-1].text == "x"
    assert (toks[-1].line, toks[-1].column) == (2, 6)


def test_crlf_counts_as_one_line_break():
    toks = tokenize("a\r\nb")
    assert [(t.text, t.line, t.column) for t in toks] == [("a", 1, 1), ("b", 2, 1)]


def test_start_position_offsets_tokens():
    toks = tokenize("a +\nb", line=3, column=5)
    assert [(t.text, t.line, t.column) for t in toks] == [("a", 3, 5), ("+", 3, 7), ("b", 4, 1)]


def test_empty_input():
    assert tokenize("") == []
    assert tokenize("   \n\t ") == []


def test_lex_alias():
    assert lex("a;") == tokenize("a;")


# ---------------------------
# errors
# ---------------------------

err_cases = [
("let x = #;", "#", 1, 9),
("a\n  @b", "@", 2, 3),
("x = 'unterminated", "'", 1, 5),
]

@pytest.mark.parametrize("src, char, line, column", err_cases)
def test_unexpected_character(src, char, line, column):
    with pytest.raises(LexError) as exc:
        tokenize(src)
    err = exc.value
    assert (err.char, err.line, err.column) == (char, line, column)
    assert f"Unexpected character '{char}' at line {line}, column {column}" in str(err)


def test_error_context_escapes_newlines():
    with pytest.raises(LexError) as exc:
        tokenize("#\nabc")
    assert 'context: "#\\nabc"' in str(exc.value)
