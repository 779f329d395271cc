"""
badrows - Repair or discard bad rows with a user-defined script

Rows rejected by the enrichment pipeline come with the raw tab-separated
event and the list of validation errors that caused the rejection. This
package lets an operator write a short Python script that looks at both
and either returns a corrected TSV line or returns None to drop the row.

Key Features:
- Compile Once: The user script is wrapped in a fixed harness and compiled
  when the processor is built; a script that does not compile is fatal
- Isolated Evaluation: Every row runs in a fresh namespace, nothing leaks
  between rows
- Fault Containment: A script that raises or returns a non-string simply
  discards that row, and the failure is logged
- Helpers: ``tsvToArray`` and ``arrayToTsv`` are available to the script

Quick Start:
    >>> from badrows import ScriptProcessor
    >>> processor = ScriptProcessor(
    ...     "def process(record, errors):\\n"
    ...     "    fields = tsvToArray(record)\\n"
    ...     "    fields[1] = 'FIXED'\\n"
    ...     "    return arrayToTsv(fields)\\n"
    ... )
    >>> processor.process("a\\tb\\t", ["bad field count"])
    'a\\tFIXED\\t'

From the command line:
    $ badrows-fix --script fix.py --input bad_rows.jsonl --output fixed.tsv
"""

from .errors import (
    BadRowsError,
    CompilationError,
    EvaluationTimeout,
    BadRowFormatError
)
from .harness import CompiledScript, Variables, compile_script
from .evaluator import evaluate
from .processor import TsvProcessor, ScriptProcessor, create_processor
from .bad_row import BadRow, read_bad_rows

__version__ = "0.1.0"
__all__ = [
    "BadRowsError",
    "CompilationError",
    "EvaluationTimeout",
    "BadRowFormatError",
    "CompiledScript",
    "Variables",
    "compile_script",
    "evaluate",
    "TsvProcessor",
    "ScriptProcessor",
    "create_processor",
    "BadRow",
    "read_bad_rows"
]
