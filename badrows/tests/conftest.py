"""
Shared pytest fixtures for the badrows test suite.
"""
import json
import pytest
from typing import Any, Dict, List

from ..harness import CompiledScript, compile_script
from ..processor import ScriptProcessor

FIX_SECOND_FIELD = (
    "def process(record, errors):\n"
    "    fields = tsvToArray(record)\n"
    "    fields[1] = 'FIXED'\n"
    "    return arrayToTsv(fields)\n"
)

DISCARD_ALL = (
    "def process(record, errors):\n"
    "    return\n"
)

# Repairs only rows whose first error mentions the field count
CONDITIONAL_FIX = (
    "def process(record, errors):\n"
    "    if errors and 'field count' in errors[0]:\n"
    "        return arrayToTsv(tsvToArray(record)[:2])\n"
    "    return None\n"
)

@pytest.fixture
def fix_source() -> str:
    return FIX_SECOND_FIELD

@pytest.fixture
def fix_script() -> CompiledScript:
    """Provide a compiled script that overwrites the second field."""
    return compile_script(FIX_SECOND_FIELD)

@pytest.fixture
def discard_script() -> CompiledScript:
    return compile_script(DISCARD_ALL)

@pytest.fixture
def conditional_processor() -> ScriptProcessor:
    return ScriptProcessor(CONDITIONAL_FIX)

@pytest.fixture
def sample_rows() -> List[Dict[str, Any]]:
    """Provide bad rows in the pipeline's JSON shape."""
    return [
        {
            "line": "a\tb\tc",
            "errors": [{"level": "error", "message": "bad field count"}],
            "failure_tstamp": "2016-01-01T00:00:00.000Z"
        },
        {
            "line": "x\ty",
            "errors": ["unknown platform"]
        },
        {
            "line": "p\tq\tr\ts",
            "errors": ["wrong field count: 4"]
        }
    ]

@pytest.fixture
def bad_rows_file(tmp_path, sample_rows) -> str:
    path = tmp_path / "bad_rows.jsonl"
    path.write_text(
        "\n".join(json.dumps(row) for row in sample_rows) + "\n",
        encoding="utf-8"
    )
    return str(path)
