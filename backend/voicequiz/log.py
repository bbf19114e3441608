"""Structured logging for voicequiz.

Outputs JSON lines by default. VOICEQUIZ_LOG_LEVEL controls verbosity and
VOICEQUIZ_LOG_FORMAT=text switches to human-readable output.
"""
import json
import logging
import sys
from typing import Any

from .settings import settings


class JSONFormatter(logging.Formatter):
	"""Formats log records as single-line JSON objects."""

	def format(self, record: logging.LogRecord) -> str:
		entry: dict[str, Any] = {
			"ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
			"level": record.levelname.lower(),
			"logger": record.name,
			"msg": record.getMessage(),
		}
		if record.exc_info and record.exc_info[1]:
			entry["error"] = str(record.exc_info[1])
			entry["error_type"] = type(record.exc_info[1]).__name__
		# Include extra fields passed via `extra=`
		for key in ("player", "game_mode", "difficulty", "detail", "path", "count", "endpoint", "status_code"):
			val = getattr(record, key, None)
			if val is not None:
				entry[key] = val
		return json.dumps(entry, ensure_ascii=False, default=str)


def get_logger(name: str = "voicequiz") -> logging.Logger:
	"""Get or create a structured logger.

	Usage:
		logger = get_logger(__name__)
		logger.info("Round started", extra={"game_mode": "addition"})
	"""
	logger = logging.getLogger(name)
	if not logger.handlers:
		level = settings.log_level.upper()
		logger.setLevel(getattr(logging, level, logging.INFO))

		handler = logging.StreamHandler(sys.stderr)
		if settings.log_format == "text":
			handler.setFormatter(logging.Formatter(
				"%(asctime)s [%(levelname)s] %(name)s: %(message)s",
				datefmt="%H:%M:%S",
			))
		else:
			handler.setFormatter(JSONFormatter())
		logger.addHandler(handler)
		logger.propagate = False
	return logger
