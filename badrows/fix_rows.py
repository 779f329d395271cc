# fix_rows.py
import argparse
import json
import logging
import sys
from typing import Iterable, List, Optional

import filelock

from . import badrows_config
from .bad_row import read_bad_rows
from .errors import BadRowFormatError, BadRowsError
from .processor import ScriptProcessor

log = logging.getLogger(__name__)


def append_records(path: str, records: Iterable[str],
                   lock_timeout: float = badrows_config.LOCK_TIMEOUT_SEC) -> int:
    """Append records to path, one per line, holding a lock on path + '.lock'."""
    written = 0
    with filelock.FileLock(path + ".lock", timeout=lock_timeout):
        with open(path, "a", encoding="utf-8") as f:
            for record in records:
                f.write(record)
                f.write("\n")
                written += 1
    return written


def output_records(decisions: Iterable[Optional[str]]) -> List[str]:
    """Keep repaired records that fit on one output line.

    A repaired record with a line break would split into several rows
    downstream, so it is logged and discarded.
    """
    records = []
    for record in decisions:
        if record is None:
            continue
        if "\n" in record or "\r" in record:
            log.warning("Repaired record contains a line break, discarding: %r", record)
            continue
        records.append(record)
    return records


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Repair or discard bad rows with a user-defined script")
    p.add_argument("--script", required=True, help="Python script defining process(record, errors)")
    p.add_argument("--input", default=None, help="Bad rows JSON lines file (or stdin)")
    p.add_argument("--output", default=None, help="File to append repaired TSV to (or stdout)")
    p.add_argument("--timeout", type=float, default=None,
                   help="Per-row time limit in seconds, 0 disables it")
    p.add_argument("--workers", type=int, default=badrows_config.MAX_WORKERS,
                   help="Rows evaluated concurrently")
    p.add_argument("--skip-invalid", action="store_true",
                   help="Skip bad rows that are not valid JSON instead of failing")
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, badrows_config.LOG_LEVEL.upper(), logging.INFO),
                        format="%(asctime)s - %(levelname)s - %(message)s")

    problem = badrows_config.validate_config()
    if problem:
        print(f"Invalid configuration: {problem}", file=sys.stderr)
        return 2
    if args.workers < 1:
        print(f"--workers must be at least 1, got {args.workers}", file=sys.stderr)
        return 2

    try:
        processor = ScriptProcessor.from_file(args.script, timeout_sec=args.timeout)
    except (BadRowsError, OSError, UnicodeDecodeError) as e:
        print(f"Cannot load script {args.script}: {e}", file=sys.stderr)
        return 2

    try:
        if args.input:
            with open(args.input, "r", encoding="utf-8") as f:
                rows = list(read_bad_rows(f, skip_invalid=args.skip_invalid))
        else:
            rows = list(read_bad_rows(sys.stdin, skip_invalid=args.skip_invalid))
    except (BadRowFormatError, OSError) as e:
        print(f"Cannot read bad rows: {e}", file=sys.stderr)
        return 2

    decisions = processor.process_all(rows, max_workers=args.workers)
    repaired = output_records(decisions)

    if args.output:
        try:
            append_records(args.output, repaired)
        except filelock.Timeout as e:
            print(f"Output file is locked: {e}", file=sys.stderr)
            return 1
    else:
        for record in repaired:
            sys.stdout.write(record + "\n")

    summary = {
        "total": len(rows),
        "repaired": len(repaired),
        "discarded": len(rows) - len(repaired)
    }
    log.info("Processed %d bad rows: %d repaired", summary["total"], summary["repaired"])
    print(json_dump(summary), file=sys.stderr)
    return 0


def json_dump(obj):
    return json.dumps(obj, indent=2, sort_keys=True, ensure_ascii=False)


if __name__ == "__main__":
    sys.exit(main())
