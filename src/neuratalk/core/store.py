"""
On-disk transcripts and history snapshots, one transcript file per model.
"""
import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from neuratalk.core.errors import PersistenceError
from neuratalk.models import SEPARATOR, Turn, format_turns, parse_turns

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")


def safe_model_id(model_id: str) -> str:
    """Make a model identifier usable as a file name (`llama3.2:latest` -> `llama3.2_latest`)."""
    return _UNSAFE.sub("_", model_id)


class TranscriptStore:
    """
    Append-only per-model conversation log.

    Transcripts live in `conversations_dir/<model>.txt`, snapshots in
    `history_dir/<model>/<model>_<YYYYMMDD_HHMMSS>.txt`. Each model's
    transcript has a single writer, so no locking is done here.
    """

    def __init__(
        self,
        conversations_dir: Path,
        history_dir: Optional[Path] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.conversations_dir = Path(conversations_dir)
        self.history_dir = Path(history_dir) if history_dir else self.conversations_dir / "history"
        self.clock = clock

    def path_for(self, model_id: str) -> Path:
        return self.conversations_dir / f"{safe_model_id(model_id)}.txt"

    def ensure_exists(self, model_id: str) -> Path:
        path = self.path_for(model_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.touch(exist_ok=True)
        except OSError as exc:
            raise PersistenceError(f"cannot create transcript for {model_id}: {exc}") from exc
        return path

    def load(self, model_id: str) -> list[Turn]:
        path = self.path_for(model_id)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise PersistenceError(f"cannot read transcript for {model_id}: {exc}") from exc
        except UnicodeDecodeError as exc:
            raise PersistenceError(f"transcript for {model_id} is not valid UTF-8: {exc}") from exc
        return parse_turns(content)

    def append(self, model_id: str, turn: Turn) -> None:
        self.append_turns(model_id, [turn])

    def append_turns(self, model_id: str, turns: Iterable[Turn]) -> None:
        """Write turns after the existing content in a single append."""
        data = "".join(turn.render() + SEPARATOR for turn in turns)
        if not data:
            return

        path = self.path_for(model_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as fh:
                fh.write(data)
        except (OSError, UnicodeEncodeError) as exc:
            logger.error("Append to %s failed: %s", path, exc)
            raise PersistenceError(f"failed to save conversation for {model_id}: {exc}") from exc

    def clear(self, model_id: str) -> None:
        """Truncate the transcript by swapping an empty file in over it."""
        path = self.path_for(model_id)
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
            os.close(fd)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.remove(tmp_name)
            logger.error("Clearing %s failed: %s", path, exc)
            raise PersistenceError(f"failed to clear conversation for {model_id}: {exc}") from exc

    def save_snapshot(self, model_id: str, turns: Iterable[Turn]) -> Path:
        """Dump the whole conversation to a new timestamped file, never overwriting one."""
        safe_id = safe_model_id(model_id)
        directory = self.history_dir / safe_id
        stamp = self.clock().strftime("%Y%m%d_%H%M%S")
        content = format_turns(turns)

        try:
            directory.mkdir(parents=True, exist_ok=True)
            attempt = 0
            while True:
                suffix = f"_{attempt}" if attempt else ""
                path = directory / f"{safe_id}_{stamp}{suffix}.txt"
                try:
                    with open(path, "x", encoding="utf-8") as fh:
                        fh.write(content)
                    return path
                except FileExistsError:
                    attempt += 1
        except OSError as exc:
            raise PersistenceError(f"failed to save history snapshot for {model_id}: {exc}") from exc
