# js2advpl/errors.py


class TranspileError(Exception):
    def __init__(self, message, pos=None):
        super().__init__(message)
        self.message = message
        self.pos     = pos

    def __str__(self):
        if self.pos:
            return f"{self.pos[0]}:{self.pos[1]}: {self.message}"
        return self.message


class LexError(TranspileError):
    """No lexer rule matches at the current position."""

    def __init__(self, char, line, column, context):
        self.char    = char
        self.line    = line
        self.column  = column
        self.context = context
        escaped = context.replace("\n", "\\n")
        super().__init__(
            f"Unexpected character '{char}' at line {line}, column {column} "
            f'(context: "{escaped}")'
        )


class ParseError(TranspileError):
    """
    Token stream does not match the grammar.

    `expected` names the token kind(s) the parser wanted, `found` the kind it
    got ("end of input" when the stream ran out).
    """

    def __init__(self, message, expected=None, found=None, line=None, column=None):
        self.expected = expected
        self.found    = found
        self.line     = line
        self.column   = column
        super().__init__(message)


class GenerationError(TranspileError):
    def __init__(self, message, node=None):
        self.node = node
        super().__init__(message, getattr(node, "pos", None))
