"""Snapshot persistence."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Union

from .models import AnalyticsSnapshot

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Writes each snapshot to one JSON file, replacing the previous one."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    def publish(self, snapshot: AnalyticsSnapshot) -> Path:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(snapshot.to_dict(), indent=2), encoding="utf-8")
        logger.info("Saved analytics snapshot", extra={"path": str(self.path)})
        return self.path
