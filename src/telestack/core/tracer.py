"""
Tracer sink for consumer diagnostics.

Keeps the latest snapshots of what a consumer received or sent, with
secrets redacted, and optionally mirrors them to a JSON file.
"""

import asyncio
import json
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Union

import structlog
from aiofiles import open as aio_open

from .masking import MaskingEngine, get_masking_engine

logger = structlog.get_logger(__name__)


class Tracer:
    """Bounded, redacting trace sink."""

    def __init__(
        self,
        name: str,
        path: Optional[Union[str, Path]] = None,
        max_records: int = 10,
        masking: Optional[MaskingEngine] = None,
    ) -> None:
        self.name = name
        self.path = Path(path) if path is not None else None
        self.masking = masking or get_masking_engine()
        self._records: Deque[Dict[str, Any]] = deque(maxlen=max_records)
        self._file_lock: Optional[asyncio.Lock] = None

    @property
    def records(self) -> List[Dict[str, Any]]:
        return list(self._records)

    async def write(self, data: Any) -> None:
        """Record a redacted snapshot of data."""
        self._records.append({
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": self.masking.redact(data),
        })

        if self.path is None:
            return

        if self._file_lock is None:
            self._file_lock = asyncio.Lock()

        # snapshot before yielding to the loop
        content = json.dumps(self.records, indent=2, default=str)

        async with self._file_lock:
            try:
                await asyncio.to_thread(self.path.parent.mkdir, parents=True, exist_ok=True)
                async with aio_open(self.path, "w") as f:
                    await f.write(content)
            except OSError as e:
                logger.error(
                    "Failed to write trace file",
                    tracer=self.name,
                    path=str(self.path),
                    error=str(e),
                )
