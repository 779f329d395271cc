"""
Configuration settings for the bad rows processor.
"""
import os
from typing import Optional, Dict, Any

# Runtime settings with defaults
LOG_LEVEL: str = os.getenv("BADROWS_LOG_LEVEL", "INFO")
EVAL_TIMEOUT_SEC: float = float(os.getenv("BADROWS_EVAL_TIMEOUT_SEC", "0"))  # 0 disables the timeout
MAX_WORKERS: int = int(os.getenv("BADROWS_MAX_WORKERS", "4"))
LOCK_TIMEOUT_SEC: float = float(os.getenv("BADROWS_LOCK_TIMEOUT_SEC", "10"))

# Script limits
MAX_SCRIPT_BYTES: int = int(os.getenv("BADROWS_MAX_SCRIPT_BYTES", "1048576"))

# Name the compiled harness reports in tracebacks
SCRIPT_NAME = "user-defined-script"

def validate_config() -> Optional[str]:
    """Validate current configuration settings.

    Returns:
        str or None: Error message if invalid, None if valid
    """
    try:
        if LOG_LEVEL.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            return f"Invalid LOG_LEVEL value: {LOG_LEVEL}"
        if not 0 <= EVAL_TIMEOUT_SEC <= 3600:
            return f"EVAL_TIMEOUT_SEC must be between 0 and 3600, got {EVAL_TIMEOUT_SEC}"
        if not 0 < MAX_WORKERS <= 256:
            return f"MAX_WORKERS must be between 1 and 256, got {MAX_WORKERS}"
        if not 0 < LOCK_TIMEOUT_SEC <= 600:
            return f"LOCK_TIMEOUT_SEC must be between 0 and 600, got {LOCK_TIMEOUT_SEC}"
        if not 0 < MAX_SCRIPT_BYTES <= 100_000_000:
            return f"MAX_SCRIPT_BYTES must be between 0 and 100,000,000, got {MAX_SCRIPT_BYTES}"
        return None
    except Exception as e:
        return f"Configuration validation error: {str(e)}"

def get_config() -> Dict[str, Any]:
    """Get current configuration as a dictionary."""
    return {
        "log_level": LOG_LEVEL,
        "eval_timeout_sec": EVAL_TIMEOUT_SEC,
        "max_workers": MAX_WORKERS,
        "lock_timeout_sec": LOCK_TIMEOUT_SEC,
        "max_script_bytes": MAX_SCRIPT_BYTES,
        "script_name": SCRIPT_NAME
    }
