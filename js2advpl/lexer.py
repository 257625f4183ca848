import re
from typing import NamedTuple, Optional

from .errors import LexError


class Token(NamedTuple):
    kind: str
    text: str
    line: int
    column: int

    def __str__(self):
        return f"{self.kind}({self.text!r})@{self.line}:{self.column}"


# A '/' right after one of these is a division, never the start of a regex.
_EXPR_END = frozenset({
    "IDENTIFIER", "NUMBER", "STRING", "TEMPLATE_STRING", "REGEX",
    "RPAREN", "RBRACKET", "THIS", "INCREMENT", "DECREMENT",
})


def _regex_allowed(prev: Optional[Token]) -> bool:
    return prev is None or prev.kind not in _EXPR_END


# Ordered, first match wins. Moving an entry changes what the lexer produces:
# keywords must precede IDENTIFIER, `console.log` must precede the generic
# identifier/DOT split, comments and REGEX must precede SLASH, and longer
# operators must precede their prefixes.
# Entries are (pattern, kind, guard); kind None discards the match and guard,
# when set, is asked about the previous token before the rule may apply.
TOKEN_RULES = [
    (r"\s+",                   None,              None),

    (r"//[^\n]*",              "COMMENT_LINE",    None),
    (r"/\*[\s\S]*?\*/",        "COMMENT_BLOCK",   None),

    (r"import\b",              "IMPORT",          None),
    (r"export\b",              "EXPORT",          None),
    (r"from\b",                "FROM",            None),
    (r"default\b",             "DEFAULT",         None),
    (r"const\b",               "CONST",           None),
    (r"let\b",                 "LET",             None),
    (r"var\b",                 "VAR",             None),
    (r"function\b",            "FUNCTION",        None),
    (r"return\b",              "RETURN",          None),
    (r"if\b",                  "IF",              None),
    (r"else\b",                "ELSE",            None),
    (r"for\b",                 "FOR",             None),
    (r"while\b",               "WHILE",           None),
    (r"break\b",               "BREAK",           None),
    (r"continue\b",            "CONTINUE",        None),
    (r"async\b",               "ASYNC",           None),
    (r"await\b",               "AWAIT",           None),
    (r"try\b",                 "TRY",             None),
    (r"catch\b",               "CATCH",           None),
    (r"finally\b",             "FINALLY",         None),
    (r"class\b",               "CLASS",           None),
    (r"extends\b",             "EXTENDS",         None),
    (r"new\b",                 "NEW",             None),
    (r"this\b",                "THIS",            None),
    (r"print\b",               "PRINT",           None),
    (r"console\.log\b",        "CONSOLE_LOG",     None),

    (r"/(?![*/])(?:\\.|\[(?:\\.|[^\]\\\n])*\]|[^/\\\n])+/[gimsuy]*",
                               "REGEX",           _regex_allowed),

    (r"[a-zA-Z_][a-zA-Z0-9_]*", "IDENTIFIER",     None),
    (r"\d+(?:\.\d+)?(?:[eE][+-]?\d+)?",
                               "NUMBER",          None),
    (r'"(?:[^"\\\n]|\\.)*"',   "STRING",          None),
    (r"'(?:[^'\\\n]|\\.)*'",   "STRING",          None),
    (r"`(?:[^`\\]|\\.)*`",     "TEMPLATE_STRING", None),

    (r"===",                   "STRICT_EQUAL",    None),
    (r"==",                    "EQUAL",           None),
    (r"!==",                   "STRICT_NOT_EQUAL", None),
    (r"!=",                    "NOT_EQUAL",       None),
    (r">=",                    "GREATER_EQUAL",   None),
    (r"<=",                    "LESS_EQUAL",      None),
    (r"=>",                    "ARROW",           None),
    (r"&&",                    "AND",             None),
    (r"\|\|",                  "OR",              None),
    (r"\+=",                   "PLUS_EQUAL",      None),
    (r"-=",                    "MINUS_EQUAL",     None),
    (r"\*=",                   "MULTIPLY_EQUAL",  None),
    (r"/=",                    "DIVIDE_EQUAL",    None),
    (r"\+\+",                  "INCREMENT",       None),
    (r"--",                    "DECREMENT",       None),
    (r"=",                     "EQUALS",          None),
    (r"\+",                    "PLUS",            None),
    (r"-",                     "MINUS",           None),
    (r"\*",                    "STAR",            None),
    (r"/",                     "SLASH",           None),
    (r"%",                     "MODULO",          None),
    (r">",                     "GREATER",         None),
    (r"<",                     "LESS",            None),
    (r"!",                     "NOT",             None),
    (r"&",                     "BITWISE_AND",     None),
    (r"\|",                    "BITWISE_OR",      None),
    (r"\^",                    "BITWISE_XOR",     None),
    (r"~",                     "BITWISE_NOT",     None),

    (r"\(",                    "LPAREN",          None),
    (r"\)",                    "RPAREN",          None),
    (r"\{",                    "LBRACE",          None),
    (r"\}",                    "RBRACE",          None),
    (r"\[",                    "LBRACKET",        None),
    (r"\]",                    "RBRACKET",        None),
    (r";",                     "SEMICOLON",       None),
    (r",",                     "COMMA",           None),
    (r"\.\.\.",                "SPREAD",          None),
    (r"\.",                    "DOT",             None),
    (r":",                     "COLON",           None),
    (r"\?",                    "QUESTION_MARK",   None),
]

TOKEN_KINDS = frozenset(kind for _, kind, _ in TOKEN_RULES if kind)

_COMPILED_RULES = [(re.compile(pattern), kind, guard) for pattern, kind, guard in TOKEN_RULES]


class Lexer:
    def __init__(self, source: str, line: int = 1, column: int = 1):
        # line/column of source[0], for text embedded in a larger file
        self.source = source.replace("\r\n", "\n")
        self.pos = 0
        self.line = line
        self.column = column
        self.tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        while self.pos < len(self.source):
            kind, text = self._match()
            if kind is not None:
                self.tokens.append(Token(kind, text, self.line, self.column))
            self._advance(text)
        return self.tokens

    def _match(self):
        prev = self.tokens[-1] if self.tokens else None
        for regex, kind, guard in _COMPILED_RULES:
            if guard is not None and not guard(prev):
                continue
            m = regex.match(self.source, self.pos)
            if m and m.group(0):
                return kind, m.group(0)

        raise LexError(
            self.source[self.pos],
            self.line,
            self.column,
            self.source[self.pos:self.pos + 20],
        )

    def _advance(self, text: str):
        newlines = text.count("\n")
        if newlines:
            self.line += newlines
            self.column = len(text) - text.rfind("\n")
        else:
            self.column += len(text)
        self.pos += len(text)


def tokenize(source: str, line: int = 1, column: int = 1) -> list[Token]:
    return Lexer(source, line, column).tokenize()


lex = tokenize
