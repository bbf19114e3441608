from __future__ import annotations

import uuid
from typing import Dict, Optional, Union

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..answers import check_answer
from ..cleanup import AudioJanitor, get_janitor, purge_stale_audio
from ..db import get_db
from ..errors import EmptyAnswer, GameError, NoActiveRound
from ..log import get_logger
from ..modes import CLASSIC, resolve_mode
from ..questions import QuestionGenerator, get_question_generator
from ..scoring import Totals, clamp_totals
from ..settings import settings
from ..speech import SpeechService, get_speech_service
from ..store import SessionStore

logger = get_logger(__name__)

router = APIRouter(tags=["game"])

PLAYER_COOKIE = "player_id"
ROUND_COOKIE = "currentRoundCounted"

CORRECT_FEEDBACK = "That's correct!"
INCORRECT_FEEDBACK = "That's incorrect!"


class StartGameResponse(BaseModel):
	question: str
	answer: Union[int, str]
	audio_path: str = Field(alias="audioPath")
	difficulty: str
	accuracy: float

	model_config = ConfigDict(populate_by_name=True)


class SubmitAnswerRequest(BaseModel):
	"""Answer submission. `audioBytes` carries the transcribed answer text."""

	answer_text: Optional[str] = Field(default=None, alias="audioBytes")
	audio_content: Optional[str] = Field(default=None, alias="audioContent")
	correct_answer: Optional[Union[int, str]] = Field(default=None, alias="correctAnswer")
	game_mode: Optional[str] = Field(default=None, alias="gameMode")

	model_config = ConfigDict(populate_by_name=True)


class SubmitAnswerResponse(BaseModel):
	feedback: str
	feedback_audio_path: str = Field(alias="feedbackAudioPath")
	accuracy: float
	total_games_played: int = Field(alias="totalGamesPlayed")
	correct_answers: int = Field(alias="correctAnswers")

	model_config = ConfigDict(populate_by_name=True)


class SessionSummary(BaseModel):
	total_games_played: int = Field(alias="totalGamesPlayed")
	correct_answers: int = Field(alias="correctAnswers")
	accuracy: float

	model_config = ConfigDict(populate_by_name=True)


def _player_id(request: Request, response: Response) -> str:
	player_id = request.cookies.get(PLAYER_COOKIE)
	if not player_id:
		player_id = uuid.uuid4().hex
	response.set_cookie(PLAYER_COOKIE, player_id, max_age=settings.totals_cookie_max_age, httponly=True, path="/")
	return player_id


def _legacy_totals(cookies: Dict[str, str], mode: str) -> Optional[Totals]:
	"""Totals an earlier end-game exported to `{mode}_totalGames` cookies, if any."""
	raw_played = cookies.get(f"{mode}_totalGames")
	if raw_played is None:
		return None
	try:
		played = int(raw_played)
		correct = int(cookies.get(f"{mode}_correctAnswers", "0"))
	except ValueError:
		return None
	return clamp_totals(played, correct)


async def _start_round(
	mode: str,
	request: Request,
	response: Response,
	db: Session,
	generator: QuestionGenerator,
	speech: SpeechService,
	janitor: AudioJanitor,
) -> StartGameResponse:
	mode = resolve_mode(mode)
	player_id = _player_id(request, response)
	store = SessionStore(db)

	totals = store.record_start(player_id, mode, _legacy_totals(request.cookies, mode))
	difficulty = totals.difficulty

	try:
		generated = await generator.generate(mode, difficulty)
		audio_path = await speech.synthesize(generated.question)
	except GameError:
		raise
	except Exception as exc:
		logger.exception("Error during start game", extra={"player": player_id, "game_mode": mode})
		raise GameError(str(exc)) from exc
	store.begin_round(player_id, mode, generated.question, generated.answer, audio_path)
	janitor.notify(store.referenced_audio())

	response.set_cookie(ROUND_COOKIE, "false", max_age=settings.round_cookie_max_age, path="/")
	logger.info(
		"Round started",
		extra={"player": player_id, "game_mode": mode, "difficulty": difficulty.value, "path": audio_path},
	)
	return StartGameResponse(
		question=generated.question,
		answer=generated.answer,
		audio_path=audio_path,
		difficulty=difficulty.value,
		accuracy=totals.accuracy,
	)


@router.get("/start-game", response_model=StartGameResponse)
async def start_classic_game(
	request: Request,
	response: Response,
	db: Session = Depends(get_db),
	generator: QuestionGenerator = Depends(get_question_generator),
	speech: SpeechService = Depends(get_speech_service),
	janitor: AudioJanitor = Depends(get_janitor),
):
	return await _start_round(CLASSIC, request, response, db, generator, speech, janitor)


@router.get("/start-game/{game_mode}", response_model=StartGameResponse)
async def start_game(
	game_mode: str,
	request: Request,
	response: Response,
	db: Session = Depends(get_db),
	generator: QuestionGenerator = Depends(get_question_generator),
	speech: SpeechService = Depends(get_speech_service),
	janitor: AudioJanitor = Depends(get_janitor),
):
	return await _start_round(game_mode, request, response, db, generator, speech, janitor)


@router.post("/submit-answer", response_model=SubmitAnswerResponse)
async def submit_answer(
	req: SubmitAnswerRequest,
	request: Request,
	response: Response,
	db: Session = Depends(get_db),
	speech: SpeechService = Depends(get_speech_service),
):
	player_id = _player_id(request, response)
	store = SessionStore(db)

	user_answer = (req.answer_text or "").strip()
	if not user_answer and req.audio_content:
		try:
			user_answer = (await speech.transcribe(req.audio_content)).strip()
		except Exception as exc:
			logger.exception("Error transcribing answer", extra={"player": player_id})
			raise GameError(str(exc)) from exc
	if not user_answer:
		raise EmptyAnswer()

	current = store.current_round(player_id)
	correct_answer = req.correct_answer
	if correct_answer is None:
		if current is None or current.current_answer is None:
			raise NoActiveRound()
		# The stored answer is only meaningful under the mode it was generated for
		correct_answer = current.current_answer
		mode = resolve_mode(current.game_mode)
		if req.game_mode and req.game_mode != mode:
			logger.warning(
				"Ignoring game mode that does not match the current round",
				extra={"player": player_id, "game_mode": mode, "detail": req.game_mode},
			)
	else:
		mode = resolve_mode(req.game_mode or (current.game_mode if current else CLASSIC))

	checked = check_answer(user_answer, correct_answer, mode)
	feedback_audio = speech.fixed_audio("correct" if checked.result else "incorrect")

	already_counted = request.cookies.get(ROUND_COOKIE) == "true"
	totals = store.record_answer(
		player_id,
		mode,
		checked.result,
		already_counted=already_counted,
		feedback_audio=feedback_audio,
	)
	response.set_cookie(ROUND_COOKIE, "true", max_age=settings.round_cookie_max_age, path="/")

	logger.info(
		"Answer checked",
		extra={"player": player_id, "game_mode": mode, "detail": f"correct={checked.result}"},
	)
	if checked.result:
		feedback = CORRECT_FEEDBACK
	else:
		feedback = checked.message or INCORRECT_FEEDBACK
	return SubmitAnswerResponse(
		feedback=feedback,
		feedback_audio_path=feedback_audio,
		accuracy=totals.accuracy,
		total_games_played=totals.total_games_played,
		correct_answers=totals.correct_answers,
	)


@router.get("/end-game", response_model=SessionSummary)
def end_game(
	request: Request,
	response: Response,
	game_mode: Optional[str] = Query(default=None, alias="gameMode"),
	reset: bool = False,
	db: Session = Depends(get_db),
):
	mode = resolve_mode(game_mode) if game_mode else None
	player_id = _player_id(request, response)

	final = SessionStore(db).end_session(player_id, mode, reset=reset)

	if mode is not None:
		# After a reset the exported totals restart at zero; the body still reports the closed session
		exported = Totals() if reset else final
		max_age = settings.totals_cookie_max_age
		response.set_cookie(f"{mode}_totalGames", str(exported.total_games_played), max_age=max_age, httponly=False, path="/")
		response.set_cookie(f"{mode}_correctAnswers", str(exported.correct_answers), max_age=max_age, httponly=False, path="/")
		response.set_cookie(f"{mode}_accuracy", f"{exported.accuracy:.2f}", max_age=max_age, httponly=False, path="/")

	logger.info("Session ended", extra={"player": player_id, "game_mode": mode, "count": final.total_games_played})
	return SessionSummary(
		total_games_played=final.total_games_played,
		correct_answers=final.correct_answers,
		accuracy=final.accuracy,
	)


@router.get("/repeat-audio")
def repeat_audio(request: Request, response: Response, db: Session = Depends(get_db)):
	player_id = _player_id(request, response)
	current = SessionStore(db).current_round(player_id)
	if current is None or not current.last_question_audio:
		return JSONResponse(status_code=404, content={"error": "No audio available to repeat"})
	return {"audioPath": current.last_question_audio}


@router.get("/no-input-audio")
def no_input_audio(speech: SpeechService = Depends(get_speech_service)):
	return {"noInputAudioPath": speech.fixed_audio("no_input")}


@router.get("/fixed-audio/{kind}")
def get_fixed_audio(kind: str, speech: SpeechService = Depends(get_speech_service)):
	return {"audioPath": speech.fixed_audio(kind)}


@router.post("/cleanup-audio-output")
async def cleanup_audio_output(
	db: Session = Depends(get_db),
	janitor: AudioJanitor = Depends(get_janitor),
):
	keep = SessionStore(db).referenced_audio()
	removed = await run_in_threadpool(
		purge_stale_audio, janitor.output_dir, keep, grace_seconds=janitor.grace_seconds
	)
	return {"removed": removed}
