from pathlib import Path
import logging

from .lexer import tokenize
from .parser import Parser
from .codegen_advpl import CodeGen
from .config import SOURCE_EXTENSION, TARGET_EXTENSION
from .errors import TranspileError

logger = logging.getLogger(__name__)

ERROR_PREFIX = "// Error in transpilation: "


def transpile_source(source: str, **options) -> str:
    """
    Lex, parse and generate ADVPL. Stage errors propagate as TranspileError.
    """
    tokens = tokenize(source)
    logger.debug("lexed %d tokens", len(tokens))
    program = Parser(tokens).parse()
    logger.debug("parsed %d top-level statements", len(program.body))
    return CodeGen(program, **options).gen()


def transpile(source: str, **options) -> str:
    """
    Like transpile_source, but never raises: a failure at any stage comes back
    as a single-line ADVPL comment carrying the error message.
    """
    try:
        return transpile_source(source, **options)
    except TranspileError as e:
        logger.error("transpilation failed: %s", e)
        return _error_comment(e)
    except Exception as e:
        logger.exception("unexpected error during transpilation")
        return _error_comment(e)


def _error_comment(e: Exception) -> str:
    message = " ".join(str(e).split())
    return f"{ERROR_PREFIX}{message}"


def transpile_file(input_path, output_path=None, **options) -> Path:
    """
    Read a .js file, transpile it and write the .prw next to it
    (or to output_path). Returns the written path.
    """
    inp = Path(input_path)
    if not inp.is_file():
        raise TranspileError(f"File not found: {inp}")
    out = Path(output_path) if output_path is not None else inp.with_suffix(TARGET_EXTENSION)
    src = inp.read_text(encoding="utf-8")
    prw = transpile_source(src, **options)

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(prw, encoding="utf-8")
    logger.info("Generated %s", out)
    return out


def transpile_directory(input_dir, output_dir, **options) -> list[Path]:
    """
    Transpile every *.js file of input_dir into output_dir, one .prw each.
    """
    src_dir = Path(input_dir)
    if not src_dir.is_dir():
        raise TranspileError(f"Input directory not found: {src_dir}")
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for path in sorted(src_dir.glob(f"*{SOURCE_EXTENSION}")):
        target = out_dir / path.with_suffix(TARGET_EXTENSION).name
        try:
            written.append(transpile_file(path, target, **options))
        except TranspileError as e:
            # keep the failing file name in the report
            raise TranspileError(f"{path.name}: {e}") from e
    logger.info("Transpiled %d file(s) into %s", len(written), out_dir)
    return written
