from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

DEFAULT_ACCURACY = 50
HARD_THRESHOLD = 80
MEDIUM_THRESHOLD = 50


class Difficulty(str, Enum):
	easy = "easy"
	medium = "medium"
	hard = "hard"


class Totals(BaseModel):
	total_games_played: int = Field(default=0, ge=0)
	correct_answers: int = Field(default=0, ge=0)

	@property
	def accuracy(self) -> float:
		return compute_accuracy(self.total_games_played, self.correct_answers)

	@property
	def difficulty(self) -> Difficulty:
		return determine_difficulty(self.accuracy)


def compute_accuracy(played: int, correct: int) -> float:
	"""Percentage of rounds answered correctly, rounded to two places.

	With no rounds played the accuracy is exactly DEFAULT_ACCURACY.
	"""
	if played <= 0:
		return DEFAULT_ACCURACY
	return round(correct / played * 100, 2)


def determine_difficulty(accuracy: float) -> Difficulty:
	if accuracy > HARD_THRESHOLD:
		return Difficulty.hard
	if accuracy > MEDIUM_THRESHOLD:
		return Difficulty.medium
	return Difficulty.easy


def clamp_totals(played: int, correct: int) -> Totals:
	played = max(int(played), 0)
	correct = min(max(int(correct), 0), played)
	return Totals(total_games_played=played, correct_answers=correct)
