from __future__ import annotations
import asyncio
import time
from datetime import datetime, timedelta
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional, Set

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import delete
from sqlalchemy.orm import Session

from .log import get_logger
from .models import RoundState
from .settings import settings

logger = get_logger(__name__)


def purge_stale_rounds(db: Session, days: Optional[int] = None) -> int:
	"""Drop rounds nobody has touched for `days`; totals are kept."""
	threshold = datetime.utcnow() - timedelta(days=days if days is not None else settings.round_retention_days)
	res = db.execute(delete(RoundState).where(RoundState.updated_at < threshold))
	db.commit()
	return res.rowcount or 0


def purge_stale_audio(
	output_dir: Path,
	keep: Iterable[str] = (),
	*,
	grace_seconds: float = 0,
	now: Optional[float] = None,
) -> int:
	"""Delete generated audio except the files named in `keep`.

	`keep` may hold file names or browser paths; only the last component is
	compared. Files modified within `grace_seconds` survive. Failures are
	logged and skipped.
	"""
	keep_names = {PurePosixPath(k).name for k in keep if k}
	now = time.time() if now is None else now
	try:
		entries = list(output_dir.iterdir())
	except FileNotFoundError:
		return 0
	except OSError:
		logger.exception("Error reading output directory", extra={"path": str(output_dir)})
		return 0

	removed = 0
	for entry in entries:
		if entry.name in keep_names or not entry.is_file():
			continue
		try:
			if now - entry.stat().st_mtime < grace_seconds:
				continue
			entry.unlink()
			removed += 1
			logger.debug("Deleted old audio file", extra={"path": str(entry)})
		except OSError:
			logger.exception("Error deleting file", extra={"path": str(entry)})
	return removed


class AudioJanitor:
	"""Background worker that deletes stale audio off the request path.

	Requests call `notify` with the set of files still referenced; the worker
	coalesces pending messages and runs one purge for the latest set.
	"""

	def __init__(self, output_dir: Optional[Path] = None, grace_seconds: Optional[float] = None) -> None:
		self._output_dir = output_dir
		self._grace_seconds = grace_seconds
		self._queue: asyncio.Queue[Set[str]] = asyncio.Queue()
		self._task: Optional[asyncio.Task] = None

	@property
	def output_dir(self) -> Path:
		return self._output_dir or settings.audio_output_dir

	@property
	def grace_seconds(self) -> float:
		return settings.audio_cleanup_grace_seconds if self._grace_seconds is None else self._grace_seconds

	def notify(self, keep: Iterable[str]) -> None:
		self._queue.put_nowait(set(keep))

	async def sweep(self, keep: Iterable[str]) -> int:
		return await run_in_threadpool(
			purge_stale_audio, self.output_dir, set(keep), grace_seconds=self.grace_seconds
		)

	async def run(self) -> None:
		while True:
			keep = await self._queue.get()
			# Only the newest keep-set matters
			while not self._queue.empty():
				keep = self._queue.get_nowait()
			try:
				removed = await self.sweep(keep)
				if removed:
					logger.info("Removed stale audio", extra={"count": removed})
			except Exception:
				logger.exception("Audio cleanup failed")

	def start(self) -> asyncio.Task:
		if self._task is None or self._task.done():
			self._task = asyncio.create_task(self.run())
		return self._task

	async def stop(self) -> None:
		if self._task is None:
			return
		self._task.cancel()
		try:
			await self._task
		except asyncio.CancelledError:
			pass
		self._task = None


_janitor = AudioJanitor()


def get_janitor() -> AudioJanitor:
	return _janitor
