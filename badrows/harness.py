"""
Harness compiler for user-defined bad row scripts.

The operator's script is wrapped in a fixed harness before compilation:
two TSV helper functions come first, then the user's source verbatim, then
a statement that calls the user's ``process`` function with the reserved
input variables and binds the result to the reserved output variable.

The resulting code object is compiled exactly once and is reused for every
bad row; see :mod:`badrows.evaluator` for how it is executed.

Example:
    >>> from badrows.harness import compile_script
    >>> compiled = compile_script(
    ...     "def process(record, errors):\\n"
    ...     "    return arrayToTsv(tsvToArray(record)[:2])\\n"
    ... )
"""
import ast
import logging
from dataclasses import dataclass, field
from types import CodeType

from .badrows_config import SCRIPT_NAME
from .errors import CompilationError

log = logging.getLogger(__name__)


class Variables:
    """Reserved names shared between the harness and the user script.

    The prefix only has to be unlikely in hand-written scripts; it does not
    protect against a script that looks the names up on purpose.
    """
    PREFIX = "_snowplow31337"
    IN_TSV = PREFIX + "InTsv"
    IN_ERRORS = PREFIX + "InErrors"
    OUT = PREFIX + "Out"


HARNESS_TEMPLATE = """\
# Helper functions
def tsvToArray(event):
    return event.split("\\t")

def arrayToTsv(tsv):
    return "\\t".join(tsv)

# User-supplied script
{source}

# Immediately invoke using reserved args
{out} = process({in_tsv}, {in_errors})

# Don't return anything
None
"""

# Lines of harness text preceding the user's first line
USER_LINE_OFFSET = HARNESS_TEMPLATE.split("{source}")[0].count("\n")


@dataclass(frozen=True)
class CompiledScript:
    """A harnessed user script, compiled once and safe to share."""
    source: str
    text: str = field(repr=False)
    code: CodeType = field(repr=False)


def build_script(source_code: str) -> str:
    """Wrap user source in the harness and return the full script text."""
    return HARNESS_TEMPLATE.format(
        source=source_code,
        out=Variables.OUT,
        in_tsv=Variables.IN_TSV,
        in_errors=Variables.IN_ERRORS
    )


def _check_user_source(source_code: str) -> None:
    """Parse the user source on its own so diagnostics use its line numbers.

    A script that never defines ``process`` still compiles; it fails with
    NameError on every row instead, like any other runtime fault.

    Raises:
        CompilationError: If the source does not parse
    """
    try:
        ast.parse(source_code, filename=SCRIPT_NAME)
    except SyntaxError as e:
        raise CompilationError(
            f"User script does not compile: {e.msg}",
            lineno=e.lineno,
            offset=e.offset
        ) from e
    except ValueError as e:
        # Source containing NUL bytes
        raise CompilationError(f"User script does not compile: {e}") from e


def compile_script(source_code: str) -> CompiledScript:
    """Create the harnessed script and compile it.

    Args:
        source_code: Python source provided by the operator. It must define
            ``process(record, errors)``

    Returns:
        Compiled script, reusable across any number of evaluations

    Raises:
        TypeError: If source_code is not a string
        CompilationError: If the harnessed script cannot be compiled
    """
    if not isinstance(source_code, str):
        raise TypeError(f"Script source must be str, got {type(source_code).__name__}")

    _check_user_source(source_code)
    text = build_script(source_code)
    try:
        code = compile(text, SCRIPT_NAME, "exec", dont_inherit=True)
    except SyntaxError as e:
        lineno = e.lineno - USER_LINE_OFFSET if e.lineno else None
        raise CompilationError(
            f"Harnessed script does not compile: {e.msg}",
            lineno=lineno,
            offset=e.offset
        ) from e

    log.debug("Compiled user script (%d chars)", len(source_code))
    return CompiledScript(source=source_code, text=text, code=code)
