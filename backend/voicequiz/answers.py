"""Answer normalization and checking for every game mode."""
from __future__ import annotations

import re
from typing import Optional, Union

from pydantic import BaseModel
from word2number import w2n

from .errors import InvalidGameMode
from .log import get_logger
from .modes import is_numeric

logger = get_logger(__name__)

SPELL_IT_OUT = "You should spell the word, not say it out loud."
INCORRECT_SPELLING = "Incorrect spelling."

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_NON_LETTERS = re.compile(r"[^a-zA-Z]")


class AnswerCheckResult(BaseModel):
	result: bool
	message: Optional[str] = None


def sanitize(text: str) -> str:
	return _NON_LETTERS.sub("", text).lower()


def to_number(value: Union[int, str, None]) -> Optional[int]:
	"""Read an integer from digits ("42", "42 apples") or number words ("forty two")."""
	if value is None or isinstance(value, bool):
		return None
	if isinstance(value, int):
		return value
	match = _LEADING_INT.match(value)
	if match:
		return int(match.group(1))
	try:
		return w2n.word_to_num(value)
	except (ValueError, IndexError):
		return None


def check_answer(user_answer: str, correct_answer: Union[int, str], mode: str) -> AnswerCheckResult:
	if is_numeric(mode):
		expected = to_number(correct_answer)
		given = to_number(user_answer)
		return AnswerCheckResult(result=expected is not None and given == expected)

	user_clean = sanitize(user_answer)
	correct_clean = sanitize(str(correct_answer))
	logger.debug("Sanitized answers", extra={"game_mode": mode, "detail": f"{user_clean!r} vs {correct_clean!r}"})

	if mode == "spelling":
		# Spelled answers arrive letter by letter, so a single token means the word was spoken
		if " " not in user_answer:
			return AnswerCheckResult(result=False, message=SPELL_IT_OUT)
		if user_clean == correct_clean:
			return AnswerCheckResult(result=True)
		return AnswerCheckResult(result=False, message=INCORRECT_SPELLING)

	if mode in ("odd_one_out", "vocabulary"):
		return AnswerCheckResult(result=user_clean == correct_clean)

	if mode == "story_builder":
		return AnswerCheckResult(result=bool(correct_clean) and correct_clean in user_clean)

	raise InvalidGameMode(mode)
