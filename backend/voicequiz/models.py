from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, Column, String, DateTime, Integer, Text, UniqueConstraint
from .db import Base


class ModeScore(Base):
	__tablename__ = "mode_scores"
	__table_args__ = (UniqueConstraint("player_id", "game_mode", name="uniq_player_mode"),)
	id = Column(Integer, primary_key=True, autoincrement=True)
	player_id = Column(String(64), nullable=False, index=True)
	game_mode = Column(String(32), nullable=False)
	total_games_played = Column(Integer, default=0, nullable=False)
	correct_answers = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class RoundState(Base):
	__tablename__ = "round_states"
	# One outstanding round per player; a new round overwrites the previous one
	player_id = Column(String(64), primary_key=True)
	game_mode = Column(String(32), nullable=False)
	question = Column(Text, nullable=True)
	current_answer = Column(Text, nullable=True)
	last_question_audio = Column(String(256), nullable=True)
	last_feedback_audio = Column(String(256), nullable=True)
	round_counted = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
