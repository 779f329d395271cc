"""
Record evaluator: runs a compiled user script against one bad row.

Every call gets its own evaluation scope holding only the two reserved
inputs. The scope is cleared on the way out whatever happens, so nothing
the script defines survives into the next record. Faults raised by the
script are logged and turn into a discard decision; they never reach the
caller.
"""
import builtins
import ctypes
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Sequence

from . import badrows_config
from .errors import EvaluationTimeout
from .harness import CompiledScript, Variables

log = logging.getLogger(__name__)

# How often a timed out script is interrupted again until it stops
REAP_INTERVAL_SEC = 0.05


@contextmanager
def evaluation_scope(record: str, errors: Sequence[str]) -> Iterator[Dict[str, Any]]:
    """Provide a fresh namespace with the reserved inputs bound.

    Args:
        record: Raw TSV of the bad row
        errors: Error messages for the row, in order

    Yields:
        The namespace the compiled script is executed in
    """
    scope: Dict[str, Any] = {
        "__builtins__": builtins,
        "__name__": "__badrows_script__",
        Variables.IN_TSV: record,
        Variables.IN_ERRORS: list(errors)
    }
    try:
        yield scope
    finally:
        scope.clear()


class _ScriptThread(threading.Thread):
    """Runs one evaluation on a thread of its own so it can be interrupted.

    Once the deadline passes the evaluating caller stops waiting, and
    :meth:`interrupt` raises :class:`EvaluationTimeout` asynchronously inside
    the script. Because the script may catch it, :func:`_reap` keeps raising
    it until the thread is gone. Time spent inside a single C call
    (``time.sleep`` for instance) is not interrupted; the exception lands as
    soon as control returns to the script. Needs CPython.
    """

    def __init__(self, compiled: CompiledScript, scope: Dict[str, Any]):
        super().__init__(name="badrows-script", daemon=True)
        self.compiled = compiled
        self.scope = scope
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        try:
            exec(self.compiled.code, self.scope)
        except BaseException as e:
            self.error = e

    def interrupt(self) -> None:
        ctypes.pythonapi.PyThreadState_SetAsyncExc(
            ctypes.c_ulong(self.ident), ctypes.py_object(EvaluationTimeout)
        )


def _reap(thread: _ScriptThread, interval: float = REAP_INTERVAL_SEC) -> None:
    while thread.is_alive():
        thread.interrupt()
        thread.join(interval)
    log.debug("Timed out user script thread has stopped")


def _execute(compiled: CompiledScript, scope: Dict[str, Any],
             timeout_sec: float) -> None:
    if timeout_sec <= 0:
        exec(compiled.code, scope)
        return

    thread = _ScriptThread(compiled, scope)
    thread.start()
    thread.join(timeout_sec)
    if thread.is_alive():
        threading.Thread(target=_reap, args=(thread,),
                         name="badrows-reaper", daemon=True).start()
        raise EvaluationTimeout(f"User script exceeded {timeout_sec}s time limit")
    if thread.error is not None:
        raise thread.error


def _read_output(scope: Dict[str, Any], logger: logging.Logger) -> Optional[str]:
    out = scope.get(Variables.OUT)
    if out is None:
        return None
    if not isinstance(out, str):
        logger.warning(
            "User script returned %s instead of str, discarding row",
            type(out).__name__
        )
        return None
    return out


def evaluate(compiled: CompiledScript, record: str, errors: Sequence[str],
             timeout_sec: Optional[float] = None,
             logger: Optional[logging.Logger] = None) -> Optional[str]:
    """Call the user-defined process function for one bad row.

    Args:
        compiled: Script returned by :func:`badrows.harness.compile_script`
        record: Raw TSV of the bad row
        errors: Errors extracted from the bad row, in order
        timeout_sec: Per-row time limit, 0 disables it. Defaults to
            ``BADROWS_EVAL_TIMEOUT_SEC``
        logger: Where to report script faults. Defaults to this module's logger

    Returns:
        None if the bad row should be ignored, otherwise the repaired TSV

    Raises:
        TypeError: If record is not a string or errors is a bare string
    """
    if not isinstance(record, str):
        raise TypeError(f"Record must be str, got {type(record).__name__}")
    if isinstance(errors, str):
        raise TypeError("Errors must be a sequence of str, not a single str")

    logger = logger or log
    if timeout_sec is None:
        timeout_sec = badrows_config.EVAL_TIMEOUT_SEC

    with evaluation_scope(record, errors) as scope:
        try:
            _execute(compiled, scope, timeout_sec)
        except (Exception, SystemExit, EvaluationTimeout) as e:
            logger.error("User script failed, discarding row: %s", e, exc_info=True)
            return None
        return _read_output(scope, logger)
