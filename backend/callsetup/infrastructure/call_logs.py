"""Call Log Files: per-call engine log + stats log allocation, persistent state path.

Invariants:
    - Every call attempt gets a fresh (log_file, stats_log_file) pair: files are
      created exclusively, a name clash retries with a counter suffix
    - At most `keep` pairs remain in the directory after allocation (oldest pruned);
      the pair just allocated is never pruned
    - Filesystem failures return None: a call never fails because logs are unavailable

Design Decisions:
    - Timestamped names (UTC, microseconds): lexical order == creation order
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from callsetup.core.call_config import CallLogFiles

logger = logging.getLogger(__name__)

LOG_SUFFIX = ".log"
STATS_SUFFIX = "_stats.log"
MAX_NAME_ATTEMPTS = 100


def _stats_path_for(log_file: Path) -> Path:
    return log_file.with_name(log_file.name[: -len(LOG_SUFFIX)] + STATS_SUFFIX)


def list_call_logs(log_dir: Path) -> list[Path]:
    """Primary log files (not stats logs), oldest first."""
    return sorted(
        p for p in log_dir.glob(f"*{LOG_SUFFIX}")
        if not p.name.endswith(STATS_SUFFIX)
    )


def prune_call_logs(log_dir: Path, keep: int, protect: Path | None = None) -> int:
    """Delete the oldest pairs beyond `keep`, never `protect`. Returns pairs removed."""
    logs = [p for p in list_call_logs(log_dir) if p != protect]
    if protect is not None:
        keep -= 1
    stale = logs[: max(0, len(logs) - keep)]
    for log_file in stale:
        log_file.unlink(missing_ok=True)
        _stats_path_for(log_file).unlink(missing_ok=True)
    return len(stale)


def _create_exclusive(path: Path) -> bool:
    try:
        with open(path, "x"):
            pass
    except FileExistsError:
        return False
    return True


def _claim_log_pair(log_dir: Path, stamp: str) -> tuple[Path, Path]:
    """Create a log/stats pair no other allocation holds."""
    for counter in range(MAX_NAME_ATTEMPTS):
        suffix = f"_{counter}" if counter else ""
        log_file = log_dir / f"voip{stamp}{suffix}{LOG_SUFFIX}"
        if not _create_exclusive(log_file):
            continue
        stats_file = _stats_path_for(log_file)
        if _create_exclusive(stats_file):
            return log_file, stats_file
        log_file.unlink(missing_ok=True)
    raise FileExistsError(f"no free call log name for {stamp} in {log_dir}")


def allocate_call_log_files(
    log_dir: Path, keep: int = 20, now: datetime | None = None,
) -> CallLogFiles | None:
    """Create a new empty log pair. None if the directory is unusable."""
    now = now or datetime.now(timezone.utc)
    stamp = now.strftime("%Y%m%d_%H%M%S_%f")
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file, stats_file = _claim_log_pair(log_dir, stamp)
        prune_call_logs(log_dir, max(keep, 1), protect=log_file)
    except OSError as e:
        logger.warning(f"Call log files unavailable in {log_dir}: {e}")
        return None
    return CallLogFiles(log_file=log_file, stats_log_file=stats_file)


def persistent_state_path(path: str) -> Path:
    """Engine persistent-state file; parent directory created on demand."""
    state_file = Path(path)
    try:
        state_file.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Persistent state directory unavailable: {e}")
    return state_file
