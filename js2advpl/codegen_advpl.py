import re

from .ast import (
    Program,
    ImportDecl,
    ExportDecl,
    VarDecl,
    Print,
    ConsoleLog,
    NumberLiteral,
    StringLiteral,
    TemplateLiteral,
    BooleanLiteral,
    NullLiteral,
    Identifier,
    ThisExpr,
    BinaryExpr,
    UnaryExpr,
    UpdateExpr,
    AssignmentExpr,
    ConditionalExpr,
    ObjectLiteral,
    ArrayLiteral,
    MemberExpr,
    CallExpr,
    NewExpr,
    FunctionDecl,
    ReturnStmt,
    IfStmt,
    ForStmt,
    WhileStmt,
    BreakStmt,
    ContinueStmt,
    ExpressionStmt,
    CommentLine,
    CommentBlock,
)
from .config import (
    OPERATOR_MAP,
    UNARY_OPERATOR_MAP,
    ASSIGNMENT_OPERATORS,
    GLOBAL_FUNCTION_MAP,
    TRUE_LITERAL,
    FALSE_LITERAL,
    NIL_LITERAL,
    SELF_LITERAL,
    NEWLINE_CONSTANT,
    EMPTY_HASH,
    METHOD_MAP,
    PROPERTY_METHODS,
    CONSOLE_OUTPUT,
    TO_STRING_FUNCTION,
    CONDITIONAL_FUNCTION,
    CONSTRUCTOR_METHOD,
    BLOCK_CLOSERS,
    LOOP_EXIT,
    LOOP_CONTINUE,
    HEADER_INCLUDES,
    HEADER_DESCRIPTION,
    HEADER_AUTHOR,
    DEFAULT_INDENT,
    DEFAULT_FUNCTION_KEYWORD,
    SOURCE_EXTENSION,
    INCLUDE_EXTENSION,
)
from .errors import GenerationError

_INT_RE = re.compile(r"\d+")


class CodeGen:
    def __init__(
        self,
        program: Program,
        indent: str = DEFAULT_INDENT,
        since=None,
        function_keyword: str = DEFAULT_FUNCTION_KEYWORD,
    ):
        self.program = program
        self.indent = indent
        self.since = since          # date (or text) for the @since tag; omitted when None
        self.function_keyword = function_keyword
        self.out: list[str] = []
        self.level = 0
        # innermost loop first; the update a `continue` must run, or None
        self.loop_updates: list[str | None] = []

    def emit(self, line: str = ""):
        self.out.append(f"{self.indent * self.level}{line}" if line else "")

    def gen(self) -> str:
        if not isinstance(self.program, Program):
            raise GenerationError(
                f"Expected Program node, got {getattr(self.program, 'type', type(self.program).__name__)}",
                self.program,
            )
        self.out = []
        self.level = 0
        self.loop_updates = []

        self.gen_header()
        for stmt in self.program.body:
            self.gen_stmt(stmt)
        return "\n".join(self.out) + "\n"

    def gen_header(self):
        for inc in HEADER_INCLUDES:
            self.emit(f'#INCLUDE "{inc}"')
        self.emit()
        self.emit("/*/{Protheus.doc} Generated-File")
        self.emit(f"Description: {HEADER_DESCRIPTION}")
        self.emit("@type function")
        self.emit(f"@author {HEADER_AUTHOR}")
        if self.since is not None:
            self.emit(f"@since {self.since}")
        self.emit("/*/")
        self.emit()

    # ------------------------------------------------------------------
    # statements
    # ------------------------------------------------------------------

    def gen_block(self, stmts):
        self.level += 1
        for stmt in stmts:
            self.gen_stmt(stmt)
        self.level -= 1

    def gen_stmt(self, stmt):
        if isinstance(stmt, CommentLine):
            text = stmt.value.strip()
            self.emit(f"// {text}" if text else "//")
            return

        if isinstance(stmt, CommentBlock):
            self.gen_comment_block(stmt)
            return

        if isinstance(stmt, ImportDecl):
            self.emit(f'#include "{self._include_path(stmt.source)}"')
            return

        if isinstance(stmt, ExportDecl):
            # ADVPL user functions are already global; export only keeps the declaration
            if isinstance(stmt.declaration, (FunctionDecl, VarDecl)):
                self.gen_stmt(stmt.declaration)
            elif stmt.declaration is not None:
                self.emit(f"// export default {self.gen_expr(stmt.declaration)}")
            else:
                self.emit(f"// exports: {', '.join(stmt.names)}")
            return

        if isinstance(stmt, VarDecl):
            if stmt.value is None:
                self.emit(f"Local {stmt.id}")
            else:
                self.emit(f"Local {stmt.id} := {self.gen_expr(stmt.value)}")
            return

        if isinstance(stmt, (Print, ConsoleLog)):
            self.emit(f"{CONSOLE_OUTPUT}({self.gen_output_args(stmt.args)})")
            return

        if isinstance(stmt, FunctionDecl):
            self.gen_function(stmt)
            return

        if isinstance(stmt, ReturnStmt):
            if stmt.argument is None:
                self.emit("Return")
            else:
                self.emit(f"Return {self.gen_expr(stmt.argument)}")
            return

        if isinstance(stmt, IfStmt):
            self.gen_if(stmt)
            return

        if isinstance(stmt, ForStmt):
            self.gen_for(stmt)
            return

        if isinstance(stmt, WhileStmt):
            self.emit(f"While {self.gen_expr(stmt.test)}")
            self.gen_loop_body(stmt.body)
            self.emit(BLOCK_CLOSERS["WhileStmt"])
            return

        if isinstance(stmt, BreakStmt):
            self.emit(LOOP_EXIT)
            return

        if isinstance(stmt, ContinueStmt):
            # `Loop` jumps straight to the While test, so run the for-update first
            if self.loop_updates and self.loop_updates[-1] is not None:
                self.emit(self.loop_updates[-1])
            self.emit(LOOP_CONTINUE)
            return

        if isinstance(stmt, ExpressionStmt):
            expr = stmt.expression
            if self._is_push(expr) and len(expr.arguments) > 1:
                # aAdd appends a single element
                receiver = self.gen_expr(expr.callee.object)
                for arg in expr.arguments:
                    self.emit(f"{METHOD_MAP['push']}({receiver}, {self.gen_expr(arg)})")
                return
            self.emit(self.gen_stmt_expr(expr))
            return

        raise GenerationError(f"Unknown statement node: {getattr(stmt, 'type', type(stmt).__name__)}", stmt)

    def gen_stmt_expr(self, node) -> str:
        """Expression in statement position: a top-level assignment needs no parentheses."""
        if isinstance(node, AssignmentExpr):
            return self._assignment(node)
        return self.gen_expr(node)

    def gen_loop_body(self, stmts, update=None):
        self.loop_updates.append(update)
        try:
            self.gen_block(stmts)
        finally:
            self.loop_updates.pop()

    def gen_comment_block(self, stmt):
        lines = stmt.value.split("\n")
        if len(lines) == 1:
            self.emit(f"/* {stmt.value.strip()} */")
            return

        # drop the `*` gutter of doc-style comments, it is re-added below
        body = [re.sub(r"^\*\s?", "", line.strip()) for line in lines]
        while body and not body[0]:
            body.pop(0)
        while body and not body[-1]:
            body.pop()

        self.emit("/*")
        for line in body:
            self.emit(f" * {line}".rstrip())
        self.emit(" */")

    def gen_function(self, fn: FunctionDecl):
        self.emit(f"{self.function_keyword} {fn.id}({', '.join(fn.params)})")
        self.gen_block(fn.body)
        # a body that already ends in `return` needs no second terminator
        if not fn.body or not isinstance(fn.body[-1], ReturnStmt):
            self.emit(BLOCK_CLOSERS["FunctionDecl"])
        self.emit()

    def gen_if(self, stmt: IfStmt):
        # Begin: header and consequent
        self.emit(f"If {self.gen_expr(stmt.test)}")
        self.gen_block(stmt.consequent)

        # AwaitingElseOrElseIf: any number of ElseIf, at most one Else (-> Done)
        node = stmt
        while node.alternate is not None:
            if node.has_else_if:
                node = node.alternate[0]
                self.emit(f"ElseIf {self.gen_expr(node.test)}")
                self.gen_block(node.consequent)
            else:
                self.emit("Else")
                self.gen_block(node.alternate)
                break

        self.emit(BLOCK_CLOSERS["IfStmt"])

    def gen_for(self, stmt: ForStmt):
        loop = self._counting_loop(stmt)
        if loop is not None:
            var, start, limit, step = loop
            if isinstance(stmt.init, VarDecl):
                self.emit(f"Local {var}")
            header = f"For {var} := {self.gen_expr(start)} To {limit}"
            if step != 1:
                header += f" Step {step}"
            self.emit(header)
            self.gen_loop_body(stmt.body)
            self.emit(BLOCK_CLOSERS["ForStmt"])
            return

        # general form: init; While test; body; update; EndDo
        if isinstance(stmt.init, VarDecl):
            self.gen_stmt(stmt.init)
        elif stmt.init is not None:
            self.emit(self.gen_stmt_expr(stmt.init))
        test = self.gen_expr(stmt.test) if stmt.test is not None else TRUE_LITERAL
        update = self.gen_stmt_expr(stmt.update) if stmt.update is not None else None
        self.emit(f"While {test}")
        self.gen_loop_body(stmt.body, update)
        if update is not None:
            self.level += 1
            self.emit(update)
            self.level -= 1
        self.emit(BLOCK_CLOSERS["WhileStmt"])

    def _counting_loop(self, stmt: ForStmt):
        """
        Recognise `for (i = a; i < b; i++)` style loops.
        Returns (var, start_expr, limit_text, step) or None.
        """
        init, test, update = stmt.init, stmt.test, stmt.update

        if isinstance(init, VarDecl) and init.value is not None:
            var, start = init.id, init.value
        elif (isinstance(init, AssignmentExpr) and init.operator == "="
              and isinstance(init.left, Identifier)):
            var, start = init.left.name, init.right
        else:
            return None

        if not (isinstance(test, BinaryExpr)
                and test.operator in ("<", "<=", ">", ">=")
                and isinstance(test.left, Identifier)
                and test.left.name == var):
            return None

        step = None
        if isinstance(update, UpdateExpr) and isinstance(update.argument, Identifier) \
                and update.argument.name == var:
            step = 1 if update.operator == "++" else -1
        elif (isinstance(update, AssignmentExpr) and update.operator in ("+=", "-=")
              and isinstance(update.left, Identifier) and update.left.name == var
              and isinstance(update.right, NumberLiteral)
              and _INT_RE.fullmatch(update.right.value)):
            step = int(update.right.value)
            if update.operator == "-=":
                step = -step
        if not step:
            return None

        ascending = test.operator in ("<", "<=")
        if ascending != (step > 0):
            return None

        if test.operator == "<":
            limit = self._offset(test.right, -1)
        elif test.operator == ">":
            limit = self._offset(test.right, 1)
        else:
            limit = self.gen_expr(test.right)
        return var, start, limit, step

    # ------------------------------------------------------------------
    # expressions
    # ------------------------------------------------------------------

    def gen_expr(self, node) -> str:
        if isinstance(node, NumberLiteral):
            return node.value

        if isinstance(node, StringLiteral):
            return self._join(self._string_parts(node.value))

        if isinstance(node, TemplateLiteral):
            return self._join(self._template_parts(node))

        if isinstance(node, BooleanLiteral):
            return TRUE_LITERAL if node.value else FALSE_LITERAL

        if isinstance(node, NullLiteral):
            return NIL_LITERAL

        if isinstance(node, ThisExpr):
            return SELF_LITERAL

        if isinstance(node, Identifier):
            return node.name

        if isinstance(node, BinaryExpr):
            op = OPERATOR_MAP.get(node.operator)
            if op is None:
                raise GenerationError(f"Unsupported binary operator '{node.operator}'", node)
            return f"({self.gen_expr(node.left)} {op} {self.gen_expr(node.right)})"

        if isinstance(node, UnaryExpr):
            op = UNARY_OPERATOR_MAP.get(node.operator)
            if op is None:
                raise GenerationError(f"Unsupported unary operator '{node.operator}'", node)
            arg = self.gen_expr(node.argument)
            if isinstance(node.argument, (UnaryExpr, UpdateExpr)):
                # `-(-x)` must not collapse into `--x`
                arg = f"({arg})"
            return f"{op}{arg}"

        if isinstance(node, UpdateExpr):
            arg = self.gen_expr(node.argument)
            return f"{node.operator}{arg}" if node.prefix else f"{arg}{node.operator}"

        if isinstance(node, AssignmentExpr):
            # nested in a larger expression, so `:=` must not absorb its neighbours
            return f"({self._assignment(node)})"

        if isinstance(node, ConditionalExpr):
            args = ", ".join(self.gen_expr(n) for n in (node.test, node.consequent, node.alternate))
            return f"{CONDITIONAL_FUNCTION}({args})"

        if isinstance(node, ObjectLiteral):
            if not node.properties:
                return EMPTY_HASH
            props = ", ".join(
                f"{self._quote(str(key))} => {self.gen_expr(value)}"
                for key, value in node.properties
            )
            return f"{{{props}}}"

        if isinstance(node, ArrayLiteral):
            return "{" + ", ".join(self.gen_expr(e) for e in node.elements) + "}"

        if isinstance(node, MemberExpr):
            return self.gen_member(node)

        if isinstance(node, CallExpr):
            return self.gen_call(node)

        if isinstance(node, NewExpr):
            args = ", ".join(self.gen_expr(a) for a in node.arguments)
            return f"{self.gen_expr(node.callee)}():{CONSTRUCTOR_METHOD}({args})"

        raise GenerationError(f"Unknown expression node: {getattr(node, 'type', type(node).__name__)}", node)

    def _assignment(self, node: AssignmentExpr) -> str:
        op = ASSIGNMENT_OPERATORS.get(node.operator)
        if op is None:
            raise GenerationError(f"Unsupported assignment operator '{node.operator}'", node)
        return f"{self.gen_expr(node.left)} {op} {self.gen_expr(node.right)}"

    def gen_member(self, node: MemberExpr) -> str:
        if node.computed:
            return f"{self.gen_expr(node.object)}[{self.gen_expr(node.property)}]"

        name = node.property.name
        if name in PROPERTY_METHODS:
            return f"{METHOD_MAP[name]}({self.gen_expr(node.object)})"
        if isinstance(node.object, ThisExpr):
            return f"::{name}"
        return f"{self.gen_expr(node.object)}:{name}"

    def gen_call(self, node: CallExpr) -> str:
        callee = node.callee
        args = [self.gen_expr(a) for a in node.arguments]

        if isinstance(callee, MemberExpr) and not callee.computed:
            name = callee.property.name
            if name in METHOD_MAP and name not in PROPERTY_METHODS:
                return self.gen_method_rewrite(name, callee.object, node.arguments, args)
            # `this.m()` -> `::m()`
            receiver = ":" if isinstance(callee.object, ThisExpr) else self.gen_expr(callee.object)
            return f"{receiver}:{name}({', '.join(args)})"

        if isinstance(callee, Identifier) and callee.name in GLOBAL_FUNCTION_MAP:
            return f"{GLOBAL_FUNCTION_MAP[callee.name]}({', '.join(args)})"

        return f"{self.gen_expr(callee)}({', '.join(args)})"

    def gen_method_rewrite(self, name, receiver_node, arg_nodes, args) -> str:
        """Rewrite `recv.method(args)` into the ADVPL free function, receiver first."""
        func = METHOD_MAP[name]
        receiver = self.gen_expr(receiver_node)

        if name == "substring":
            # JS substring(start, end) is 0-based and end-exclusive;
            # SubStr(c, nStart, nCount) is 1-based and counts characters.
            if not arg_nodes:
                return f"{func}({receiver}, 1)"
            start_node = arg_nodes[0]
            parts = [receiver, self._offset(start_node, 1)]
            if len(arg_nodes) > 1:
                parts.append(self._span(start_node, arg_nodes[1]))
            return f"{func}({', '.join(parts)})"

        if name in ("toUpperCase", "toLowerCase"):
            return f"{func}({receiver})"

        if name == "push" and len(args) != 1:
            raise GenerationError(
                f"{func} appends exactly one element, push() got {len(args)} arguments",
                receiver_node,
            )

        return f"{func}({', '.join([receiver] + args)})"

    def gen_output_args(self, args) -> str:
        if not args:
            return '""'
        if len(args) == 1:
            arg = args[0]
            if isinstance(arg, StringLiteral):
                return " + ".join(self._string_parts(arg.value))
            if isinstance(arg, TemplateLiteral):
                return " + ".join(self._template_parts(arg))
            return self.gen_expr(arg)
        # several arguments are concatenated, non-strings converted first
        parts = []
        for arg in args:
            if isinstance(arg, StringLiteral):
                parts.extend(self._string_parts(arg.value))
            elif isinstance(arg, TemplateLiteral):
                parts.extend(self._template_parts(arg))
            else:
                parts.append(f"{TO_STRING_FUNCTION}({self.gen_expr(arg)})")
        return " + ".join(parts)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_push(node) -> bool:
        return (
            isinstance(node, CallExpr)
            and isinstance(node.callee, MemberExpr)
            and not node.callee.computed
            and node.callee.property.name == "push"
        )

    @staticmethod
    def _join(parts):
        if len(parts) == 1:
            return parts[0]
        return "(" + " + ".join(parts) + ")"

    @staticmethod
    def _quote(value: str) -> str:
        if '"' not in value:
            return f'"{value}"'
        if "'" not in value:
            return f"'{value}'"
        return " + '\"' + ".join(f'"{piece}"' for piece in value.split('"'))

    def _string_parts(self, value: str):
        lines = value.replace("\r\n", "\n").split("\n")
        parts = []
        for i, line in enumerate(lines):
            if i:
                parts.append(NEWLINE_CONSTANT)
            if line or len(lines) == 1:
                parts.append(self._quote(line))
        return parts

    def _template_parts(self, node: TemplateLiteral):
        parts = []
        for i, quasi in enumerate(node.quasis):
            if quasi:
                parts.extend(self._string_parts(quasi))
            if i < len(node.expressions):
                parts.append(f"{TO_STRING_FUNCTION}({self.gen_expr(node.expressions[i])})")
        return parts or ['""']

    def _offset(self, node, delta: int) -> str:
        if isinstance(node, NumberLiteral) and _INT_RE.fullmatch(node.value):
            return str(int(node.value) + delta)
        op = "+" if delta > 0 else "-"
        return f"({self.gen_expr(node)} {op} {abs(delta)})"

    def _span(self, start, end) -> str:
        if isinstance(start, NumberLiteral) and _INT_RE.fullmatch(start.value):
            if isinstance(end, NumberLiteral) and _INT_RE.fullmatch(end.value):
                return str(int(end.value) - int(start.value))
            if int(start.value) == 0:
                return self.gen_expr(end)
        return f"({self.gen_expr(end)} - {self.gen_expr(start)})"

    @staticmethod
    def _include_path(source: str) -> str:
        path = re.sub(r"^\./", "", source)
        if path.endswith(SOURCE_EXTENSION):
            path = path[: -len(SOURCE_EXTENSION)]
        if not path.endswith(INCLUDE_EXTENSION):
            path += INCLUDE_EXTENSION
        return path.replace("/", "\\")


def generate(program: Program, **options) -> str:
    return CodeGen(program, **options).gen()
