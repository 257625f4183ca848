import re

from . import ast
from .errors import ParseError, TranspileError
from .lexer import Token, tokenize


# Token kinds that can begin an expression. Reported as the expected set when
# an expression is missing.
EXPRESSION_START = (
    "NUMBER", "STRING", "TEMPLATE_STRING", "IDENTIFIER", "THIS", "NEW",
    "LPAREN", "LBRACE", "LBRACKET", "NOT", "MINUS", "PLUS",
    "INCREMENT", "DECREMENT",
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "b": "\b", "f": "\f", "v": "\v", "\n": ""}
_ESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.S)


def unescape(body: str) -> str:
    """Decode the backslash escapes of a JS string body (quotes already removed)."""
    def repl(m):
        esc = m.group(1)
        if esc.startswith("u") and len(esc) == 5:
            return chr(int(esc[1:], 16))
        return _ESCAPES.get(esc, esc)
    return _ESCAPE_RE.sub(repl, body)


class Parser:
    ASSIGNMENT_OPS = ("EQUALS", "PLUS_EQUAL", "MINUS_EQUAL", "MULTIPLY_EQUAL", "DIVIDE_EQUAL")
    EQUALITY_OPS = ("EQUAL", "NOT_EQUAL", "STRICT_EQUAL", "STRICT_NOT_EQUAL")
    COMPARISON_OPS = ("LESS", "GREATER", "LESS_EQUAL", "GREATER_EQUAL")
    ADDITIVE_OPS = ("PLUS", "MINUS")
    MULTIPLICATIVE_OPS = ("STAR", "SLASH", "MODULO")
    UNARY_OPS = ("NOT", "MINUS", "PLUS")
    UPDATE_OPS = ("INCREMENT", "DECREMENT")
    DECL_KINDS = ("LET", "CONST", "VAR")

    def __init__(self, tokens, start=(1, 1)):
        self.tokens = list(tokens)
        self.pos = 0
        self.start = start          # reported as the end position of an empty stream

    # ------------------------------------------------------------------
    # cursor
    # ------------------------------------------------------------------

    def peek(self, offset=0):
        i = self.pos + offset
        if i < len(self.tokens):
            return self.tokens[i].kind
        return "EOF"

    def peek_token(self, offset=0) -> Token | None:
        i = self.pos + offset
        if i < len(self.tokens):
            return self.tokens[i]
        return None

    def check(self, *kinds):
        return self.peek() in kinds

    def next(self):
        tok = self.peek_token()
        if tok is None:
            raise self.error("a token")
        self.pos += 1
        return tok

    def expect(self, kind):
        tok = self.peek_token()
        if tok is None or tok.kind != kind:
            raise self.error(kind)
        self.pos += 1
        return tok

    def expect_word(self, word):
        # contextual keywords such as `as` lex as plain identifiers
        tok = self.peek_token()
        if tok is None or tok.kind != "IDENTIFIER" or tok.text != word:
            raise self.error(f"'{word}'")
        self.pos += 1
        return tok

    def error(self, expected, label=None):
        tok = self.peek_token()
        if tok is None:
            found = "end of input"
            line, col = self._end_position()
        else:
            found = tok.kind
            line, col = tok.line, tok.column
        if isinstance(expected, (tuple, list)):
            label = label or f"{', '.join(expected[:-1])} or {expected[-1]}"
        else:
            label = label or expected
        return ParseError(
            f"Expected {label}, got {found} at line {line}, column {col}",
            expected=expected, found=found, line=line, column=col,
        )

    def _end_position(self):
        if not self.tokens:
            return self.start
        last = self.tokens[-1]
        if "\n" in last.text:
            return last.line + last.text.count("\n"), len(last.text) - last.text.rfind("\n")
        return last.line, last.column + len(last.text)

    @staticmethod
    def _pos(tok):
        return (tok.line, tok.column)

    # ------------------------------------------------------------------
    # entry points
    # ------------------------------------------------------------------

    def parse(self):
        try:
            body = []
            while self.peek() != "EOF":
                body.append(self.parse_stmt())
            return ast.Program(body, pos=(1, 1))
        except TranspileError:
            raise
        except Exception as e:
            context = " ".join(str(t) for t in self.tokens[self.pos:self.pos + 5])
            raise ParseError(f"Internal parser error: {e} (near: {context or 'end of input'})") from e

    def parse_standalone_expr(self):
        """Parse a single expression that must use every token (template holes)."""
        expr = self.parse_expr()
        if self.peek() != "EOF":
            raise self.error("end of expression")
        return expr

    # ------------------------------------------------------------------
    # statements
    # ------------------------------------------------------------------

    def parse_stmt(self):
        kind = self.peek()

        if kind in ("COMMENT_LINE", "COMMENT_BLOCK"):
            return self.parse_comment()
        if kind == "IMPORT":
            return self.parse_import()
        if kind == "EXPORT":
            return self.parse_export()
        if kind in self.DECL_KINDS:
            return self.parse_var_decl()
        if kind == "PRINT":
            return self.parse_print()
        if kind == "CONSOLE_LOG":
            return self.parse_console_log()
        if kind == "FUNCTION":
            return self.parse_function_decl()
        if kind == "RETURN":
            return self.parse_return()
        if kind == "IF":
            return self.parse_if()
        if kind == "FOR":
            return self.parse_for()
        if kind == "WHILE":
            return self.parse_while()
        if kind == "BREAK":
            tok = self.next()
            self.expect("SEMICOLON")
            return ast.BreakStmt(pos=self._pos(tok))
        if kind == "CONTINUE":
            tok = self.next()
            self.expect("SEMICOLON")
            return ast.ContinueStmt(pos=self._pos(tok))

        # fallback: any other expression as statement
        return self.parse_expression_stmt()

    def parse_comment(self):
        tok = self.next()
        if tok.kind == "COMMENT_LINE":
            return ast.CommentLine(tok.text[2:], pos=self._pos(tok))
        return ast.CommentBlock(tok.text[2:-2], pos=self._pos(tok))

    def parse_block(self):
        self.expect("LBRACE")
        stmts = []
        while not self.check("RBRACE", "EOF"):
            stmts.append(self.parse_stmt())
        self.expect("RBRACE")
        return stmts

    def parse_body(self):
        # braced block, or a single statement as in `if (a) x;`
        if self.check("LBRACE"):
            return self.parse_block()
        return [self.parse_stmt()]

    def parse_import(self):
        tok = self.expect("IMPORT")
        specifiers = []

        if self.check("STRING"):
            # import 'module';
            source = self.parse_module_source()
            self.expect("SEMICOLON")
            return ast.ImportDecl(source, specifiers, pos=self._pos(tok))

        if self.check("LBRACE"):
            specifiers.extend(self.parse_import_named())
        elif self.check("STAR"):
            specifiers.append(self.parse_import_namespace())
        else:
            name = self.expect("IDENTIFIER").text
            specifiers.append(("default", name, name))
            if self.check("COMMA"):
                self.next()
                if self.check("STAR"):
                    specifiers.append(self.parse_import_namespace())
                else:
                    specifiers.extend(self.parse_import_named())

        self.expect("FROM")
        source = self.parse_module_source()
        self.expect("SEMICOLON")
        return ast.ImportDecl(source, specifiers, pos=self._pos(tok))

    def parse_import_named(self):
        specifiers = []
        self.expect("LBRACE")
        while not self.check("RBRACE"):
            name = self.expect("IDENTIFIER").text
            local = name
            if self.peek() == "IDENTIFIER" and self.peek_token().text == "as":
                self.next()
                local = self.expect("IDENTIFIER").text
            specifiers.append(("named", name, local))
            if self.check("COMMA"):
                self.next(); continue
            break
        self.expect("RBRACE")
        return specifiers

    def parse_import_namespace(self):
        self.expect("STAR")
        self.expect_word("as")
        local = self.expect("IDENTIFIER").text
        return ("namespace", "*", local)

    def parse_module_source(self):
        return unescape(self.expect("STRING").text[1:-1])

    def parse_export(self):
        tok = self.expect("EXPORT")
        pos = self._pos(tok)

        if self.check("DEFAULT"):
            self.next()
            if self.check("FUNCTION"):
                return ast.ExportDecl(self.parse_function_decl(), default=True, pos=pos)
            expr = self.parse_expr()
            self.expect("SEMICOLON")
            return ast.ExportDecl(expr, default=True, pos=pos)

        if self.check("FUNCTION"):
            return ast.ExportDecl(self.parse_function_decl(), pos=pos)
        if self.check(*self.DECL_KINDS):
            return ast.ExportDecl(self.parse_var_decl(), pos=pos)

        if self.check("LBRACE"):
            self.next()
            names = []
            while not self.check("RBRACE"):
                name = self.expect("IDENTIFIER").text
                if self.peek() == "IDENTIFIER" and self.peek_token().text == "as":
                    self.next()
                    name = f"{name} as {self.expect('IDENTIFIER').text}"
                names.append(name)
                if self.check("COMMA"):
                    self.next(); continue
                break
            self.expect("RBRACE")
            self.expect("SEMICOLON")
            return ast.ExportDecl(names=names, pos=pos)

        raise self.error(("DEFAULT", "FUNCTION", "LET", "CONST", "VAR", "LBRACE"))

    def parse_var_decl(self, semi=True):
        kw = self.next()
        name_tok = self.expect("IDENTIFIER")
        value = None
        if self.check("EQUALS"):
            self.next()
            value = self.parse_expr()
        if semi:
            self.expect("SEMICOLON")
        return ast.VarDecl(name_tok.text, value, kw.text, pos=self._pos(kw))

    def parse_print(self):
        tok = self.expect("PRINT")
        args = [self.parse_expr()]
        while self.check("COMMA"):
            self.next()
            args.append(self.parse_expr())
        self.expect("SEMICOLON")
        return ast.Print(args, pos=self._pos(tok))

    def parse_console_log(self):
        tok = self.expect("CONSOLE_LOG")
        args = self.parse_arguments()
        self.expect("SEMICOLON")
        return ast.ConsoleLog(args, pos=self._pos(tok))

    def parse_function_decl(self):
        tok = self.expect("FUNCTION")
        name = self.expect("IDENTIFIER").text

        self.expect("LPAREN")
        params = []
        if not self.check("RPAREN"):
            while True:
                params.append(self.expect("IDENTIFIER").text)
                if self.check("COMMA"):
                    self.next(); continue
                break
        self.expect("RPAREN")

        body = self.parse_block()
        return ast.FunctionDecl(name, params, body, pos=self._pos(tok))

    def parse_return(self):
        tok = self.expect("RETURN")
        argument = None
        if not self.check("SEMICOLON"):
            argument = self.parse_expr()
        self.expect("SEMICOLON")
        return ast.ReturnStmt(argument, pos=self._pos(tok))

    def parse_if(self):
        tok = self.expect("IF")
        self.expect("LPAREN")
        test = self.parse_expr()
        self.expect("RPAREN")
        consequent = self.parse_body()

        alternate = None
        if self.check("ELSE"):
            self.next()
            if self.check("IF"):
                alternate = [self.parse_if()]
            else:
                alternate = self.parse_body()

        return ast.IfStmt(test, consequent, alternate, pos=self._pos(tok))

    def parse_for(self):
        tok = self.expect("FOR")
        self.expect("LPAREN")

        init = None
        if self.check(*self.DECL_KINDS):
            init = self.parse_var_decl(semi=False)
        elif not self.check("SEMICOLON"):
            init = self.parse_expr()
        self.expect("SEMICOLON")

        test = None
        if not self.check("SEMICOLON"):
            test = self.parse_expr()
        self.expect("SEMICOLON")

        update = None
        if not self.check("RPAREN"):
            update = self.parse_expr()
        self.expect("RPAREN")

        body = self.parse_body()
        return ast.ForStmt(init, test, update, body, pos=self._pos(tok))

    def parse_while(self):
        tok = self.expect("WHILE")
        self.expect("LPAREN")
        test = self.parse_expr()
        self.expect("RPAREN")
        body = self.parse_body()
        return ast.WhileStmt(test, body, pos=self._pos(tok))

    def parse_expression_stmt(self):
        tok = self.peek_token()
        expr = self.parse_expr()
        self.expect("SEMICOLON")
        return ast.ExpressionStmt(expr, pos=self._pos(tok))

    # ------------------------------------------------------------------
    # expressions, loosest binding first
    # ------------------------------------------------------------------

    def parse_expr(self):
        return self.parse_assignment()

    def parse_assignment(self):
        left = self.parse_conditional()
        if self.check(*self.ASSIGNMENT_OPS):
            op_tok = self.next()
            if not isinstance(left, (ast.Identifier, ast.MemberExpr)):
                raise ParseError(
                    f"Invalid assignment target {left} at line {op_tok.line}, column {op_tok.column}",
                    expected="IDENTIFIER", found=op_tok.kind,
                    line=op_tok.line, column=op_tok.column,
                )
            right = self.parse_assignment()
            return ast.AssignmentExpr(op_tok.text, left, right, pos=left.pos)
        return left

    def parse_conditional(self):
        test = self.parse_logical_or()
        if self.check("QUESTION_MARK"):
            self.next()
            consequent = self.parse_assignment()
            self.expect("COLON")
            alternate = self.parse_assignment()
            return ast.ConditionalExpr(test, consequent, alternate, pos=test.pos)
        return test

    def _parse_binary(self, operand, kinds):
        node = operand()
        while self.check(*kinds):
            op = self.next().text
            right = operand()
            node = ast.BinaryExpr(op, node, right, pos=node.pos)
        return node

    def parse_logical_or(self):
        return self._parse_binary(self.parse_logical_and, ("OR",))

    def parse_logical_and(self):
        return self._parse_binary(self.parse_equality, ("AND",))

    def parse_equality(self):
        return self._parse_binary(self.parse_comparison, self.EQUALITY_OPS)

    def parse_comparison(self):
        return self._parse_binary(self.parse_additive, self.COMPARISON_OPS)

    def parse_additive(self):
        return self._parse_binary(self.parse_multiplicative, self.ADDITIVE_OPS)

    def parse_multiplicative(self):
        return self._parse_binary(self.parse_unary, self.MULTIPLICATIVE_OPS)

    def parse_unary(self):
        tok = self.peek_token()
        if tok is not None and tok.kind in self.UNARY_OPS:
            self.next()
            argument = self.parse_unary()
            return ast.UnaryExpr(tok.text, argument, pos=self._pos(tok))
        if tok is not None and tok.kind in self.UPDATE_OPS:
            self.next()
            argument = self.parse_unary()
            return ast.UpdateExpr(tok.text, argument, prefix=True, pos=self._pos(tok))
        return self.parse_postfix()

    def parse_postfix(self):
        node = self.parse_primary()

        while True:
            if self.check("DOT"):
                self.next()
                prop = self.parse_property_name()
                node = ast.MemberExpr(node, prop, pos=node.pos)
            elif self.check("LBRACKET"):
                self.next()
                prop = self.parse_expr()
                self.expect("RBRACKET")
                node = ast.MemberExpr(node, prop, computed=True, pos=node.pos)
            elif self.check("LPAREN"):
                node = ast.CallExpr(node, self.parse_arguments(), pos=node.pos)
            else:
                break

        if self.check(*self.UPDATE_OPS):
            op = self.next().text
            node = ast.UpdateExpr(op, node, prefix=False, pos=node.pos)
        return node

    def parse_property_name(self):
        # reserved words are valid property names: `obj.default`, `x.new`
        tok = self.peek_token()
        if tok is not None and tok.kind != "IDENTIFIER" and tok.text.isidentifier():
            self.next()
            return ast.Identifier(tok.text, pos=self._pos(tok))
        tok = self.expect("IDENTIFIER")
        return ast.Identifier(tok.text, pos=self._pos(tok))

    def parse_arguments(self):
        self.expect("LPAREN")
        args = []
        if not self.check("RPAREN"):
            while True:
                args.append(self.parse_expr())
                if self.check("COMMA"):
                    self.next(); continue
                break
        self.expect("RPAREN")
        return args

    def parse_primary(self):
        tok = self.peek_token()
        kind = tok.kind if tok is not None else "EOF"

        if kind == "NUMBER":
            self.next()
            return ast.NumberLiteral(tok.text, pos=self._pos(tok))

        if kind == "STRING":
            self.next()
            return ast.StringLiteral(unescape(tok.text[1:-1]), pos=self._pos(tok))

        if kind == "TEMPLATE_STRING":
            self.next()
            return self.parse_template(tok)

        if kind == "IDENTIFIER":
            self.next()
            if tok.text in ("true", "false"):
                return ast.BooleanLiteral(tok.text == "true", pos=self._pos(tok))
            if tok.text in ("null", "undefined"):
                return ast.NullLiteral(pos=self._pos(tok))
            return ast.Identifier(tok.text, pos=self._pos(tok))

        if kind == "THIS":
            self.next()
            return ast.ThisExpr(pos=self._pos(tok))

        if kind == "NEW":
            return self.parse_new()

        if kind == "LPAREN":
            self.next()
            expr = self.parse_expr()
            self.expect("RPAREN")
            return expr

        if kind == "LBRACE":
            return self.parse_object_literal()

        if kind == "LBRACKET":
            return self.parse_array_literal()

        raise self.error(EXPRESSION_START, label=f"an expression ({', '.join(EXPRESSION_START)})")

    def parse_new(self):
        tok = self.expect("NEW")
        name_tok = self.expect("IDENTIFIER")
        callee = ast.Identifier(name_tok.text, pos=self._pos(name_tok))
        while self.check("DOT"):
            self.next()
            callee = ast.MemberExpr(callee, self.parse_property_name(), pos=callee.pos)
        args = self.parse_arguments() if self.check("LPAREN") else []
        return ast.NewExpr(callee, args, pos=self._pos(tok))

    def parse_object_literal(self):
        tok = self.expect("LBRACE")
        properties = []
        while not self.check("RBRACE"):
            key_tok = self.peek_token()
            if self.check("STRING"):
                key = unescape(self.next().text[1:-1])
            elif self.check("NUMBER"):
                key = self.next().text
            else:
                key = self.parse_property_name().name

            if key_tok.kind == "IDENTIFIER" and self.check("COMMA", "RBRACE"):
                # shorthand `{ a }`
                value = ast.Identifier(key, pos=self._pos(key_tok))
            else:
                self.expect("COLON")
                value = self.parse_expr()
            properties.append((key, value))

            if self.check("COMMA"):
                self.next(); continue
            break
        self.expect("RBRACE")
        return ast.ObjectLiteral(properties, pos=self._pos(tok))

    def parse_array_literal(self):
        tok = self.expect("LBRACKET")
        elements = []
        while not self.check("RBRACKET"):
            elements.append(self.parse_expr())
            if self.check("COMMA"):
                self.next(); continue
            break
        self.expect("RBRACKET")
        return ast.ArrayLiteral(elements, pos=self._pos(tok))

    def parse_template(self, tok):
        body = tok.text[1:-1]
        quasis, expressions = [], []
        chunk_start = i = 0

        while i < len(body):
            ch = body[i]
            if ch == "\\":
                i += 2
                continue
            if ch == "$" and body.startswith("{", i + 1):
                quasis.append(unescape(body[chunk_start:i]))
                end = self._template_hole_end(body, i + 2, tok)
                src = body[i + 2:end]
                hole = self._template_offset(tok, body, i + 2)
                hole_parser = Parser(tokenize(src, *hole), start=hole)
                expressions.append(hole_parser.parse_standalone_expr())
                i = chunk_start = end + 1
                continue
            i += 1

        quasis.append(unescape(body[chunk_start:]))
        return ast.TemplateLiteral(quasis, expressions, pos=self._pos(tok))

    @staticmethod
    def _template_offset(tok, body, index):
        """Absolute (line, column) of body[index]; the body starts after the backtick."""
        before = body[:index]
        newlines = before.count("\n")
        if newlines:
            return tok.line + newlines, len(before) - before.rfind("\n")
        return tok.line, tok.column + 1 + len(before)

    @staticmethod
    def _template_hole_end(body, start, tok):
        depth = 1
        j = start
        while j < len(body):
            ch = body[j]
            if ch in "'\"":
                # braces inside a string literal do not count
                j += 1
                while j < len(body) and body[j] != ch:
                    j += 2 if body[j] == "\\" else 1
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return j
            j += 1
        raise ParseError(
            f"Expected RBRACE closing '${{' in template string at line {tok.line}, column {tok.column}",
            expected="RBRACE", found="end of template", line=tok.line, column=tok.column,
        )


def parse(tokens) -> ast.Program:
    return Parser(tokens).parse()
