"""
Bad row processors: decide whether to repair or discard each bad row.
"""
import concurrent.futures
import logging
import os
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Sequence

from .bad_row import BadRow
from .badrows_config import MAX_SCRIPT_BYTES, MAX_WORKERS
from .errors import BadRowsError
from .evaluator import evaluate
from .harness import CompiledScript, compile_script

log = logging.getLogger(__name__)


class TsvProcessor(ABC):
    """Abstract base class for bad row processors."""

    @abstractmethod
    def process(self, input_tsv: str, errors: Sequence[str]) -> Optional[str]:
        """Decide whether to try to fix up a given bad row.

        Args:
            input_tsv: The tab-separated raw event
            errors: Errors describing why input_tsv is invalid

        Returns:
            The repaired TSV, or None if this bad row should be ignored
        """
        pass

    def process_row(self, row: BadRow) -> Optional[str]:
        return self.process(row.line, row.errors)

    def process_all(self, rows: Iterable[BadRow],
                    max_workers: Optional[int] = None) -> List[Optional[str]]:
        """Process many bad rows, returning decisions in input order.

        Raises:
            ValueError: If max_workers is less than 1
        """
        workers = MAX_WORKERS if max_workers is None else max_workers
        if workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {workers}")
        rows = list(rows)
        if workers <= 1 or len(rows) <= 1:
            return [self.process_row(row) for row in rows]
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(self.process_row, rows))


class ScriptProcessor(TsvProcessor):
    """Processes bad rows using a user-defined Python script.

    The script must define ``process(record, errors)`` returning the
    repaired TSV string, or None to discard the row. ``tsvToArray`` and
    ``arrayToTsv`` are available to it for splitting and joining fields.

    The script is compiled once here; construction fails with
    :class:`~badrows.errors.CompilationError` if it does not compile.
    """

    def __init__(self, source_code: str, timeout_sec: Optional[float] = None,
                 logger: Optional[logging.Logger] = None):
        compiled = compile_script(source_code)
        self.timeout_sec = timeout_sec
        self.log = logger or log
        self.compiled_script: CompiledScript = compiled

    @classmethod
    def from_file(cls, path: str, encoding: str = "utf-8", **kwargs) -> "ScriptProcessor":
        """Load the script from a file and compile it."""
        size = os.path.getsize(path)
        if size > MAX_SCRIPT_BYTES:
            raise BadRowsError(
                f"Script {path} is {size} bytes, limit is {MAX_SCRIPT_BYTES}"
            )
        with open(path, "r", encoding=encoding) as f:
            source = f.read()
        log.info("Loaded bad rows script from %s", path)
        return cls(source, **kwargs)

    @property
    def source_code(self) -> str:
        return self.compiled_script.source

    def process(self, input_tsv: str, errors: Sequence[str]) -> Optional[str]:
        return evaluate(self.compiled_script, input_tsv, errors,
                        timeout_sec=self.timeout_sec, logger=self.log)


def create_processor(kind: str, **kwargs) -> TsvProcessor:
    """Factory function to create a processor instance."""
    if kind == "script":
        if "path" in kwargs:
            path = kwargs.pop("path")
            return ScriptProcessor.from_file(path, **kwargs)
        return ScriptProcessor(kwargs.pop("source_code"), **kwargs)
    else:
        raise ValueError(f"Unknown processor type: {kind}")
