"""Per-player session store backed by SQLAlchemy.

Totals are keyed by (player id, game mode); the round in progress is keyed
by player id alone, so each player has at most one outstanding round.
"""
from __future__ import annotations

from typing import Optional, Set

from sqlalchemy import delete
from sqlalchemy.orm import Session

from .log import get_logger
from .models import ModeScore, RoundState
from .scoring import Totals, clamp_totals

logger = get_logger(__name__)


class SessionStore:
	def __init__(self, db: Session) -> None:
		self.db = db

	def _score_row(self, player_id: str, mode: str) -> Optional[ModeScore]:
		return (
			self.db.query(ModeScore)
			.filter(ModeScore.player_id == player_id, ModeScore.game_mode == mode)
			.first()
		)

	def _score_row_or_new(self, player_id: str, mode: str) -> ModeScore:
		row = self._score_row(player_id, mode)
		if row is None:
			row = ModeScore(player_id=player_id, game_mode=mode, total_games_played=0, correct_answers=0)
			self.db.add(row)
		return row

	def totals(self, player_id: str, mode: str) -> Totals:
		row = self._score_row(player_id, mode)
		if row is None:
			return Totals()
		return clamp_totals(row.total_games_played, row.correct_answers)

	def record_start(self, player_id: str, mode: str, legacy: Optional[Totals] = None) -> Totals:
		"""Totals that drive the next round's difficulty.

		A player unknown to the store but carrying totals exported to cookies by
		an earlier end-game gets those totals imported.
		"""
		if legacy is not None and self._score_row(player_id, mode) is None:
			row = self._score_row_or_new(player_id, mode)
			row.total_games_played = legacy.total_games_played
			row.correct_answers = legacy.correct_answers
			self.db.commit()
			logger.info("Imported totals from cookies", extra={"player": player_id, "game_mode": mode})
		return self.totals(player_id, mode)

	def current_round(self, player_id: str) -> Optional[RoundState]:
		return self.db.get(RoundState, player_id)

	def begin_round(self, player_id: str, mode: str, question: str, answer, audio_path: str) -> RoundState:
		state = self.current_round(player_id)
		if state is None:
			state = RoundState(player_id=player_id)
			self.db.add(state)
		state.game_mode = mode
		state.question = question
		state.current_answer = str(answer)
		state.last_question_audio = audio_path
		state.round_counted = False
		self.db.commit()
		return state

	def record_answer(
		self,
		player_id: str,
		mode: str,
		was_correct: bool,
		*,
		already_counted: bool = False,
		feedback_audio: Optional[str] = None,
	) -> Totals:
		"""Score one submission.

		Only the first submission of a round changes the totals; later ones for
		the same round leave them untouched so correct answers never outnumber
		rounds played.
		"""
		state = self.current_round(player_id)
		counted = already_counted or (state is not None and state.round_counted)
		if not counted:
			row = self._score_row_or_new(player_id, mode)
			row.total_games_played += 1
			if was_correct:
				row.correct_answers += 1
		if state is not None:
			state.round_counted = True
			if feedback_audio:
				state.last_feedback_audio = feedback_audio
		self.db.commit()
		return self.totals(player_id, mode)

	def end_session(self, player_id: str, mode: Optional[str] = None, *, reset: bool = False) -> Totals:
		query = self.db.query(ModeScore).filter(ModeScore.player_id == player_id)
		if mode is not None:
			query = query.filter(ModeScore.game_mode == mode)
		rows = query.all()
		played = sum(r.total_games_played for r in rows)
		correct = sum(r.correct_answers for r in rows)
		final = clamp_totals(played, correct)
		if reset:
			for r in rows:
				r.total_games_played = 0
				r.correct_answers = 0
		self.db.execute(delete(RoundState).where(RoundState.player_id == player_id))
		self.db.commit()
		return final

	def referenced_audio(self) -> Set[str]:
		paths: Set[str] = set()
		for question_audio, feedback_audio in self.db.query(
			RoundState.last_question_audio, RoundState.last_feedback_audio
		).all():
			if question_audio:
				paths.add(question_audio)
			if feedback_audio:
				paths.add(feedback_audio)
		return paths
