"""Filesystem record sink and crawl manifests.

Layout under `output_dir`:

    records.jsonl               one {"record", "emitted_at"} object per line
    manifests/crawl_config.json
    manifests/crawl_stats.json
    logs/                       the CLI's crawl.log goes here

Nothing is read back: every crawl session starts from an empty frontier and
empty dedup indexes, even when `output_dir` already holds a previous run.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Mapping

from .constants import JSON_INDENT
from .types import JSONDict, utc_now_iso


def _as_payload(value: Any, what: str) -> dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    for method in ("to_dict", "to_json"):
        if hasattr(value, method):
            return dict(getattr(value, method)())
    raise TypeError(f"Cannot serialize {what} of type {type(value)!r}")


def write_json_atomic(path: Path, payload: Mapping[str, Any]) -> None:
    """Replace `path` with `payload` as JSON; readers never see a partial file."""

    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with handle:
            json.dump(payload, handle, ensure_ascii=False, indent=JSON_INDENT, sort_keys=True)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, path)
    except BaseException:
        Path(handle.name).unlink(missing_ok=True)
        raise


class Storage:
    """Record sink that appends to `records.jsonl` and writes run manifests."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)
        self.manifests_dir = self.output_dir / "manifests"
        self.logs_dir = self.output_dir / "logs"

        self.records_path = self.output_dir / "records.jsonl"
        self.crawl_config_path = self.manifests_dir / "crawl_config.json"
        self.crawl_stats_path = self.manifests_dir / "crawl_stats.json"

        for directory in (self.output_dir, self.manifests_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

        self._records_lock = threading.Lock()
        self._records_written = 0

    @property
    def paths(self) -> JSONDict:
        """Output locations, for CLI summaries and log lines."""

        return {
            "output_dir": str(self.output_dir),
            "records": str(self.records_path),
            "crawl_config": str(self.crawl_config_path),
            "crawl_stats": str(self.crawl_stats_path),
            "log_dir": str(self.logs_dir),
        }

    @property
    def records_written(self) -> int:
        with self._records_lock:
            return self._records_written

    def emit(self, record: str) -> None:
        line = json.dumps({"record": record, "emitted_at": utc_now_iso()}, ensure_ascii=False)
        with self._records_lock:
            with self.records_path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
            self._records_written += 1

    def save_crawl_config(self, config: Any) -> None:
        """Write the config manifest (a mapping or an object with `to_dict()`)."""

        write_json_atomic(self.crawl_config_path, _as_payload(config, "crawl config"))

    def save_crawl_stats(self, stats: Any) -> None:
        """Write the stats manifest (a mapping or an object with `to_json()`)."""

        write_json_atomic(self.crawl_stats_path, _as_payload(stats, "crawl stats"))


__all__ = ["Storage", "write_json_atomic"]
