class Node:
    """
    Base of every AST node. `type` is the variant tag (the class name);
    `pos` is the (line, column) of the node's first token when known.
    Equality is structural and ignores `pos`.
    """

    @property
    def type(self):
        return type(self).__name__

    def _fields(self):
        return {k: v for k, v in vars(self).items() if k != "pos"}

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self._fields() == other._fields()

    __hash__ = None

    def __repr__(self):
        fields = ", ".join(f"{k}={v!r}" for k, v in self._fields().items())
        return f"{self.type}({fields})"


class Program(Node):
    def __init__(self, body, pos=None):
        self.body = body
        self.pos = pos

    def __str__(self):
        return f"Program[{', '.join(str(s) for s in self.body)}]"


class ImportDecl(Node):
    def __init__(self, source, specifiers=None, pos=None):
        self.source = source               # module path, quotes stripped
        self.specifiers = specifiers or [] # [(kind, name, local)]
        self.pos = pos

    def __str__(self):
        return f"import {self.source!r}"


class ExportDecl(Node):
    def __init__(self, declaration=None, names=None, default=False, pos=None):
        self.declaration = declaration     # FunctionDecl | VarDecl | Expr | None
        self.names = names or []           # `export { a, b }`
        self.default = default
        self.pos = pos

    def __str__(self):
        if self.declaration is not None:
            return f"export {'default ' if self.default else ''}{self.declaration}"
        return f"export {{ {', '.join(self.names)} }}"


class VarDecl(Node):
    def __init__(self, id, value=None, kind="let", pos=None):
        self.id = id
        self.value = value
        self.kind = kind                   # let | const | var
        self.pos = pos

    def __str__(self):
        if self.value is None:
            return f"({self.kind}) {self.id}"
        return f"({self.kind}) {self.id} <- {self.value}"


class Print(Node):
    def __init__(self, args, pos=None):
        self.args = args
        self.pos = pos

    def __str__(self):
        return f"print({', '.join(str(a) for a in self.args)})"


class ConsoleLog(Node):
    def __init__(self, args, pos=None):
        self.args = args
        self.pos = pos

    def __str__(self):
        return f"console.log({', '.join(str(a) for a in self.args)})"


class NumberLiteral(Node):
    def __init__(self, value, pos=None):
        self.value = value                 # source text, e.g. "3.5e2"
        self.pos = pos

    def __str__(self):
        return f"num({self.value})"


class StringLiteral(Node):
    def __init__(self, value, pos=None):
        self.value = value                 # decoded, no surrounding quotes
        self.pos = pos

    def __str__(self):
        return f"str({self.value!r})"


class TemplateLiteral(Node):
    def __init__(self, quasis, expressions, pos=None):
        # len(quasis) == len(expressions) + 1
        self.quasis = quasis
        self.expressions = expressions
        self.pos = pos

    def __str__(self):
        return f"template({self.quasis}, {[str(e) for e in self.expressions]})"


class BooleanLiteral(Node):
    def __init__(self, value: bool, pos=None):
        self.value = value
        self.pos = pos

    def __str__(self):
        return f"boolean({self.value})"


class NullLiteral(Node):
    def __init__(self, pos=None):
        self.pos = pos

    def __str__(self):
        return "null"


class Identifier(Node):
    def __init__(self, name, pos=None):
        self.name = name
        self.pos = pos

    def __str__(self):
        return f"id({self.name})"


class ThisExpr(Node):
    def __init__(self, pos=None):
        self.pos = pos

    def __str__(self):
        return "this"


class BinaryExpr(Node):
    def __init__(self, operator, left, right, pos=None):
        self.operator = operator
        self.left = left
        self.right = right
        self.pos = pos

    def __str__(self):
        return f"({self.left} {self.operator} {self.right})"


class UnaryExpr(Node):
    def __init__(self, operator, argument, pos=None):
        self.operator = operator
        self.argument = argument
        self.pos = pos

    def __str__(self):
        return f"({self.operator} {self.argument})"


class UpdateExpr(Node):
    def __init__(self, operator, argument, prefix=False, pos=None):
        self.operator = operator           # ++ | --
        self.argument = argument
        self.prefix = prefix
        self.pos = pos

    def __str__(self):
        if self.prefix:
            return f"({self.operator}{self.argument})"
        return f"({self.argument}{self.operator})"


class AssignmentExpr(Node):
    def __init__(self, operator, left, right, pos=None):
        self.operator = operator
        self.left = left
        self.right = right
        self.pos = pos

    def __str__(self):
        return f"{self.left} {self.operator} {self.right}"


class ConditionalExpr(Node):
    def __init__(self, test, consequent, alternate, pos=None):
        self.test = test
        self.consequent = consequent
        self.alternate = alternate
        self.pos = pos

    def __str__(self):
        return f"({self.test} ? {self.consequent} : {self.alternate})"


class ObjectLiteral(Node):
    def __init__(self, properties, pos=None):
        self.properties = properties       # [(key, value_expr)]
        self.pos = pos

    def __str__(self):
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.properties) + "}"


class ArrayLiteral(Node):
    def __init__(self, elements, pos=None):
        self.elements = elements
        self.pos = pos

    def __str__(self):
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


class MemberExpr(Node):
    def __init__(self, object, property, computed=False, pos=None):
        self.object = object
        self.property = property           # Identifier, or any Expr when computed
        self.computed = computed
        self.pos = pos

    def __str__(self):
        if self.computed:
            return f"{self.object}[{self.property}]"
        return f"{self.object}.{self.property.name}"


class CallExpr(Node):
    def __init__(self, callee, arguments, pos=None):
        self.callee = callee
        self.arguments = arguments
        self.pos = pos

    def __str__(self):
        a = ", ".join(str(x) for x in self.arguments)
        return f"{self.callee}({a})"


class NewExpr(Node):
    def __init__(self, callee, arguments, pos=None):
        self.callee = callee
        self.arguments = arguments
        self.pos = pos

    def __str__(self):
        a = ", ".join(str(x) for x in self.arguments)
        return f"new {self.callee}({a})"


class FunctionDecl(Node):
    def __init__(self, id, params, body, pos=None):
        self.id = id
        self.params = params               # [str]
        self.body = body                   # [Stmt]
        self.pos = pos

    def __str__(self):
        return f"function {self.id}({', '.join(self.params)}) {{…}}"


class ReturnStmt(Node):
    def __init__(self, argument=None, pos=None):
        self.argument = argument
        self.pos = pos

    def __str__(self):
        return "return" + (f" {self.argument}" if self.argument is not None else "")


class IfStmt(Node):
    def __init__(self, test, consequent, alternate=None, pos=None):
        self.test = test                   # Expr
        self.consequent = consequent       # [Stmt]
        # None, [IfStmt] for `else if`, or [Stmt] for a plain `else`
        self.alternate = alternate
        self.pos = pos

    @property
    def has_else_if(self):
        return (
            self.alternate is not None
            and len(self.alternate) == 1
            and isinstance(self.alternate[0], IfStmt)
        )

    def __str__(self):
        s = f"if({self.test}) {{ {', '.join(str(s) for s in self.consequent)} }}"
        if self.alternate is not None:
            s += f" else {{ {', '.join(str(s) for s in self.alternate)} }}"
        return s


class ForStmt(Node):
    def __init__(self, init, test, update, body, pos=None):
        self.init = init                   # VarDecl | Expr | None
        self.test = test                   # Expr | None
        self.update = update               # Expr | None
        self.body = body                   # [Stmt]
        self.pos = pos

    def __str__(self):
        return f"for({self.init}; {self.test}; {self.update}) {{…}}"


class WhileStmt(Node):
    def __init__(self, test, body, pos=None):
        self.test = test
        self.body = body
        self.pos = pos

    def __str__(self):
        return f"while({self.test}) {{…}}"


class BreakStmt(Node):
    def __init__(self, pos=None):
        self.pos = pos

    def __str__(self):
        return "break"


class ContinueStmt(Node):
    def __init__(self, pos=None):
        self.pos = pos

    def __str__(self):
        return "continue"


class ExpressionStmt(Node):
    def __init__(self, expression, pos=None):
        self.expression = expression
        self.pos = pos

    def __str__(self):
        return f"{self.expression};"


class CommentLine(Node):
    def __init__(self, value, pos=None):
        self.value = value                 # text after `//`
        self.pos = pos

    def __str__(self):
        return f"//{self.value}"


class CommentBlock(Node):
    def __init__(self, value, pos=None):
        self.value = value                 # text between `/*` and `*/`
        self.pos = pos

    def __str__(self):
        return f"/*{self.value}*/"
