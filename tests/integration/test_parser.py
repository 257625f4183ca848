import pytest

from js2advpl.ast import (
    Program, ImportDecl, ExportDecl, VarDecl, ConsoleLog, Print,
    NumberLiteral, StringLiteral, TemplateLiteral, BooleanLiteral, NullLiteral,
    Identifier, ThisExpr, BinaryExpr, UnaryExpr, UpdateExpr, AssignmentExpr,
    ConditionalExpr, ObjectLiteral, ArrayLiteral, MemberExpr, CallExpr, NewExpr,
    FunctionDecl, ReturnStmt, IfStmt, ForStmt, WhileStmt, BreakStmt,
    ExpressionStmt, CommentLine, CommentBlock,
)
from js2advpl.errors import ParseError, LexError
from js2advpl.lexer import tokenize
from js2advpl.parser import Parser, parse


def parse_src(src):
    return parse(tokenize(src))


def expr_of(src):
    program = parse_src(src)
    assert len(program.body) == 1
    return program.body[0].expression


def num(v):
    return NumberLiteral(str(v))


a, b, c = Identifier("a"), Identifier("b"), Identifier("c")


# ---------------------------
# OK cases
# ---------------------------

expr_cases = [
# multiplicative binds tighter than additive
("1 + 2 * 3;", BinaryExpr("+", num(1), BinaryExpr("*", num(2), num(3)))),
("(1 + 2) * 3;", BinaryExpr("*", BinaryExpr("+", num(1), num(2)), num(3))),
# left associativity
("a - b - c;", BinaryExpr("-", BinaryExpr("-", a, b), c)),
("a % b / c;", BinaryExpr("/", BinaryExpr("%", a, b), c)),
# logical chain
("a || b && c;", BinaryExpr("||", a, BinaryExpr("&&", b, c))),
("a === b && c;", BinaryExpr("&&", BinaryExpr("===", a, b), c)),
("a < b == c;", BinaryExpr("==", BinaryExpr("<", a, b), c)),
# assignment is right associative
("a = b = 1;", AssignmentExpr("=", a, AssignmentExpr("=", b, num(1)))),
("a += 2;", AssignmentExpr("+=", a, num(2))),
# conditional
("a ? b : c;", ConditionalExpr(a, b, c)),
# unary and update
("!a && b;", BinaryExpr("&&", UnaryExpr("!", a), b)),
("-a * 2;", BinaryExpr("*", UnaryExpr("-", a), num(2))),
("a++;", UpdateExpr("++", a, prefix=False)),
("--a;", UpdateExpr("--", a, prefix=True)),
# literals
("true;", BooleanLiteral(True)),
("null;", NullLiteral()),
("undefined;", NullLiteral()),
("'it\\'s';", StringLiteral("it's")),
("[1, 'x'];", ArrayLiteral([num(1), StringLiteral("x")])),
("({ a: 1, 'b': c, a });",
 ObjectLiteral([("a", num(1)), ("b", c), ("a", a)])),
("`Hi ${a + 1}!`;",
 TemplateLiteral(["Hi ", "!"], [BinaryExpr("+", a, num(1))])),
# a brace inside a string does not close the hole
("`x ${'}'} y`;", TemplateLiteral(["x ", " y"], [StringLiteral("}")])),
("`${f({ k: \"}\" })}`;",
 TemplateLiteral(["", ""], [CallExpr(Identifier("f"), [ObjectLiteral([("k", StringLiteral("}"))])])])),
# member access and calls
("a.push(1);", CallExpr(MemberExpr(a, Identifier("push")), [num(1)])),
("a[0].b;", MemberExpr(MemberExpr(a, num(0), computed=True), Identifier("b"))),
("a.default;", MemberExpr(a, Identifier("default"))),
("f(a)(b);", CallExpr(CallExpr(Identifier("f"), [a]), [b])),
("this.x;", MemberExpr(ThisExpr(), Identifier("x"))),
("new Foo(1, a);", NewExpr(Identifier("Foo"), [num(1), a])),
("new Foo;", NewExpr(Identifier("Foo"), [])),
]

@pytest.mark.parametrize("src, expected", expr_cases)
def test_expressions(src, expected):
    assert expr_of(src) == expected


def test_empty_program():
    assert parse_src("") == Program([])
    assert parse([]) == Program([])


def test_parse_is_deterministic():
    src = """
    import { a } from './m.js';
    function add(x, y) { return x + y; }
    if (a) { x; } else if (b) { y; } else { z; }
    for (let i = 0; i < 3; i++) { console.log(i); }
    """
    assert parse_src(src) == parse_src(src)


def test_declarations():
    program = parse_src("let x = 1; const y = 'a'; var z;")
    assert program.body == [
        VarDecl("x", num(1), "let"),
        VarDecl("y", StringLiteral("a"), "const"),
        VarDecl("z", None, "var"),
    ]


def test_positions_are_recorded():
    program = parse_src("\n  let x = a + b;")
    decl = program.body[0]
    assert decl.pos == (2, 3)
    assert decl.value.pos == (2, 11)


def test_function_decl():
    program = parse_src("function add(a, b) { return a + b; }")
    assert program.body == [
        FunctionDecl("add", ["a", "b"], [ReturnStmt(BinaryExpr("+", a, b))]),
    ]


def test_if_else_if_chain():
    program = parse_src("if (a) { x; } else if (b) { y; } else { z; }")
    stmt = program.body[0]
    assert isinstance(stmt, IfStmt)
    assert stmt.has_else_if
    inner = stmt.alternate[0]
    assert inner.test == b
    assert not inner.has_else_if
    assert inner.alternate == [ExpressionStmt(Identifier("z"))]


def test_if_without_braces():
    stmt = parse_src("if (a) x; else y;").body[0]
    assert stmt.consequent == [ExpressionStmt(Identifier("x"))]
    assert stmt.alternate == [ExpressionStmt(Identifier("y"))]


def test_loops():
    stmt = parse_src("for (let i = 0; i < 3; i++) { break; }").body[0]
    assert stmt == ForStmt(
        VarDecl("i", num(0), "let"),
        BinaryExpr("<", Identifier("i"), num(3)),
        UpdateExpr("++", Identifier("i")),
        [BreakStmt()],
    )
    assert parse_src("for (;;) {}").body[0] == ForStmt(None, None, None, [])
    assert parse_src("while (a) b--;").body[0] == WhileStmt(a, [ExpressionStmt(UpdateExpr("--", b))])


def test_output_statements():
    program = parse_src("console.log(a, 'x'); print a;")
    assert program.body == [ConsoleLog([a, StringLiteral("x")]), Print([a])]


def test_comments_are_statements():
    program = parse_src("// one\n/* two */\nx;")
    assert program.body == [
        CommentLine(" one"),
        CommentBlock(" two "),
        ExpressionStmt(Identifier("x")),
    ]


import_cases = [
("import x from 'm';", [("default", "x", "x")]),
("import { a, b as c } from './m.js';", [("named", "a", "a"), ("named", "b", "c")]),
("import x, { a } from 'm';", [("default", "x", "x"), ("named", "a", "a")]),
("import * as ns from 'm';", [("namespace", "*", "ns")]),
("import 'm';", []),
]

@pytest.mark.parametrize("src, specifiers", import_cases)
def test_imports(src, specifiers):
    decl = parse_src(src).body[0]
    assert isinstance(decl, ImportDecl)
    assert decl.specifiers == specifiers


def test_exports():
    body = parse_src("export function f() {} export const k = 1; export default a; export { a, b as c };").body
    assert body[0] == ExportDecl(FunctionDecl("f", [], []))
    assert body[1] == ExportDecl(VarDecl("k", num(1), "const"))
    assert body[2] == ExportDecl(a, default=True)
    assert body[3] == ExportDecl(names=["a", "b as c"])


def test_node_type_tag():
    assert Identifier("a").type == "Identifier"
    assert parse_src("").type == "Program"


# ---------------------------
# errors
# ---------------------------

err_cases = [
("let x = ;", "Expected an expression", "got SEMICOLON at line 1, column 9"),
("function f() {", "Expected RBRACE", "got end of input at line 1, column 15"),
("let = 1;", "Expected IDENTIFIER", "got EQUALS at line 1, column 5"),
("a + ;", "Expected an expression", "at line 1, column 5"),
("console.log(a)", "Expected SEMICOLON", "end of input"),
("1 = 2;", "Invalid assignment target", "line 1, column 3"),
("export 1;", "Expected DEFAULT", "got NUMBER"),
("`a ${b`;", "RBRACE", "line 1, column 1"),
# errors inside a template hole point into the template
("let t = `ab ${a +} c`;", "Expected an expression", "got end of input at line 1, column 18"),
("let t = `a\n  ${b +}`;", "Expected an expression", "got end of input at line 2, column 8"),
("`${}`;", "Expected an expression", "got end of input at line 1, column 4"),
("`${a b}`;", "Expected end of expression", "got IDENTIFIER at line 1, column 6"),
]

@pytest.mark.parametrize("src, expected, where", err_cases)
def test_parse_errors(src, expected, where):
    with pytest.raises(ParseError) as exc:
        parse_src(src)
    msg = str(exc.value)
    assert expected in msg
    assert where in msg


def test_missing_expression_names_expected_kinds():
    with pytest.raises(ParseError) as exc:
        parse_src("let x = ;")
    err = exc.value
    for kind in ("NUMBER", "IDENTIFIER", "LPAREN"):
        assert kind in str(err)
        assert kind in err.expected
    assert err.found == "SEMICOLON"
    assert (err.line, err.column) == (1, 9)


def test_template_hole_positions_are_absolute():
    expr = expr_of("`ab ${value}`;")
    assert expr.expressions[0].pos == (1, 7)


def test_lex_error_inside_template_hole():
    with pytest.raises(LexError) as exc:
        parse_src("`${#}`;")
    assert (exc.value.line, exc.value.column) == (1, 4)


def test_parser_instances_are_independent():
    p1 = Parser(tokenize("a; b;"))
    p2 = Parser(tokenize("c;"))
    assert len(p1.parse().body) == 2
    assert len(p2.parse().body) == 1
