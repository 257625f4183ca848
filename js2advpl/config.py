"""
Static translation tables for the ADVPL generator.
This includes operator and literal mappings, the collection-method rewrites,
block closers and the generated file header.
"""

# JS binary operator -> ADVPL operator. ADVPL has no strict equality.
OPERATOR_MAP = {
    "===": "==",
    "!==": "!=",
    "==": "==",
    "!=": "!=",
    "<": "<",
    ">": ">",
    "<=": "<=",
    ">=": ">=",
    "+": "+",
    "-": "-",
    "*": "*",
    "/": "/",
    "%": "%",
    "&&": ".And.",
    "||": ".Or.",
}

UNARY_OPERATOR_MAP = {
    "!": ".Not. ",
    "-": "-",
    "+": "+",
}

# Plain `=` rebinds with `:=`; compound operators exist in ADVPL unchanged.
ASSIGNMENT_OPERATORS = {
    "=": ":=",
    "+=": "+=",
    "-=": "-=",
    "*=": "*=",
    "/=": "/=",
}

TRUE_LITERAL = ".T."
FALSE_LITERAL = ".F."
NIL_LITERAL = "Nil"
SELF_LITERAL = "Self"
NEWLINE_CONSTANT = "CRLF"
EMPTY_HASH = "{=>}"

# Members that ADVPL only offers as free functions. The receiver becomes the
# first argument: `a.push(x)` -> `aAdd(a, x)`, `a.length` -> `Len(a)`.
METHOD_MAP = {
    "push": "aAdd",
    "length": "Len",
    "toUpperCase": "Upper",
    "toLowerCase": "Lower",
    "substring": "SubStr",
    "indexOf": "aScan",
}

# Members rewritten without a call: `a.length`
PROPERTY_METHODS = frozenset({"length"})

# Global JS conversion functions with a direct ADVPL counterpart
GLOBAL_FUNCTION_MAP = {
    "String": "cValToChar",
    "parseInt": "Val",
    "parseFloat": "Val",
}

CONSOLE_OUTPUT = "ConOut"
TO_STRING_FUNCTION = "cValToChar"
CONDITIONAL_FUNCTION = "IIf"
CONSTRUCTOR_METHOD = "New"

# Closing keyword per block construct
BLOCK_CLOSERS = {
    "FunctionDecl": "Return",
    "IfStmt": "EndIf",
    "ForStmt": "Next",
    "WhileStmt": "EndDo",
}

LOOP_EXIT = "Exit"
LOOP_CONTINUE = "Loop"

HEADER_INCLUDES = ["Protheus.ch"]
HEADER_DESCRIPTION = "Auto-generated AdvPL code"
HEADER_AUTHOR = "Transpiler"

DEFAULT_INDENT = "    "
DEFAULT_FUNCTION_KEYWORD = "User Function"

SOURCE_EXTENSION = ".js"
TARGET_EXTENSION = ".prw"
INCLUDE_EXTENSION = ".ch"
