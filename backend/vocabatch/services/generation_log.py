import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from vocabatch.config import settings

logger = logging.getLogger(__name__)


def _get_log_path() -> Path:
    log_dir = settings.log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    return log_dir / f"generation_{today}.jsonl"


def log_generation(
    event: str,
    learner_id: int | None = None,
    batch_number: int | None = None,
    method: str | None = None,
    **extra,
) -> None:
    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "learner_id": learner_id,
        "batch_number": batch_number,
        "method": method,
        **extra,
    }
    entry = {k: v for k, v in entry.items() if v is not None}

    try:
        log_path = _get_log_path()
        with open(log_path, "a") as f:
            f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
    except OSError as e:
        logger.warning(f"Could not write generation log: {e}")
