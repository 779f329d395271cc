"""
Bad row records as emitted by the enrichment pipeline.

Each bad row is one JSON object per line::

    {"line": "<raw tsv>", "errors": [{"level": "error", "message": "..."}],
     "failure_tstamp": "2016-01-01T00:00:00.000Z"}

Older rows carry plain strings in ``errors``; both shapes are accepted.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .errors import BadRowFormatError

log = logging.getLogger(__name__)


@dataclass
class BadRow:
    """A raw record that failed validation, with the reasons why."""
    line: str
    errors: List[str] = field(default_factory=list)
    failure_tstamp: Optional[str] = None

    @classmethod
    def from_dict(cls, obj: Dict[str, Any]) -> "BadRow":
        """Build a bad row from its decoded JSON object.

        Raises:
            BadRowFormatError: If required fields are missing or mistyped
        """
        if not isinstance(obj, dict):
            raise BadRowFormatError(f"Bad row must be a JSON object, got {type(obj).__name__}")
        line = obj.get("line")
        if not isinstance(line, str):
            raise BadRowFormatError("Bad row is missing its 'line' string")

        raw_errors = obj.get("errors", [])
        if not isinstance(raw_errors, list):
            raise BadRowFormatError("Bad row 'errors' must be a list")

        errors = []
        for err in raw_errors:
            if isinstance(err, str):
                errors.append(err)
            elif isinstance(err, dict) and isinstance(err.get("message"), str):
                errors.append(err["message"])
            else:
                raise BadRowFormatError(f"Unrecognised error entry: {err!r}")

        tstamp = obj.get("failure_tstamp")
        return cls(line=line, errors=errors,
                   failure_tstamp=tstamp if isinstance(tstamp, str) else None)

    @classmethod
    def from_json(cls, text: str) -> "BadRow":
        try:
            obj = json.loads(text)
        except json.JSONDecodeError as e:
            raise BadRowFormatError(f"Invalid bad row JSON: {e}") from e
        return cls.from_dict(obj)


def read_bad_rows(lines: Iterable[str], skip_invalid: bool = False) -> Iterator[BadRow]:
    """Parse bad rows from an iterable of JSON lines.

    Args:
        lines: JSON lines, e.g. an open file
        skip_invalid: Log and skip unparseable lines instead of raising

    Yields:
        Parsed bad rows in input order. Blank lines are ignored

    Raises:
        BadRowFormatError: On the first invalid line unless skip_invalid is set
    """
    for lineno, text in enumerate(lines, start=1):
        if not text.strip():
            continue
        try:
            yield BadRow.from_json(text)
        except BadRowFormatError as e:
            if not skip_invalid:
                raise BadRowFormatError(f"Line {lineno}: {e}") from e
            log.warning("Skipping invalid bad row on line %d: %s", lineno, e)
