from __future__ import annotations

from enum import Enum
from typing import Dict

from .errors import InvalidGameMode


class AnswerKind(str, Enum):
	numeric = "numeric"
	text = "text"


CLASSIC = "classic"

MATH_MODES = ("addition", "subtraction", "multiplication", "division")
LANGUAGE_MODES = ("spelling", "odd_one_out", "story_builder", "vocabulary")

GAME_MODES: Dict[str, AnswerKind] = {
	CLASSIC: AnswerKind.numeric,
	**{mode: AnswerKind.numeric for mode in MATH_MODES},
	**{mode: AnswerKind.text for mode in LANGUAGE_MODES},
}


def resolve_mode(mode: str | None) -> str:
	if not mode or mode not in GAME_MODES:
		raise InvalidGameMode(mode)
	return mode


def is_numeric(mode: str) -> bool:
	return GAME_MODES[resolve_mode(mode)] is AnswerKind.numeric
