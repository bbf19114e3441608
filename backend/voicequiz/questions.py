"""Question generation: prompt building, Gemini call, and response parsing.

Gemini is asked for a JSON object matching a small schema. Models do not
always honour the schema, so the older textual templates ("What is ...?
Answer: 42") are accepted as a fallback. A response that yields neither a
question nor an answer is rejected rather than producing an empty round.
"""
from __future__ import annotations

import json
import random
import re
from typing import Any, Callable, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ValidationError, field_validator

from .answers import to_number
from .errors import MalformedGenerationResponse
from .gemini_client import GeminiClient
from .log import get_logger
from .modes import CLASSIC, MATH_MODES, is_numeric, resolve_mode
from .scoring import Difficulty

logger = get_logger(__name__)


class GeneratedQuestion(BaseModel):
	question: str
	answer: Union[int, str]

	@field_validator("question")
	@classmethod
	def _question_not_blank(cls, value: str) -> str:
		value = value.strip()
		if not value:
			raise ValueError("question is empty")
		return value

	@field_validator("answer")
	@classmethod
	def _answer_not_blank(cls, value: Union[int, str]) -> Union[int, str]:
		if isinstance(value, str):
			value = _clean_answer(value)
			if not value:
				raise ValueError("answer is empty")
		return value


_MATH_OPERANDS = {
	Difficulty.easy: "two single-digit numbers",
	Difficulty.medium: "two two-digit numbers",
	Difficulty.hard: "three two-digit numbers",
}

_JSON_INSTRUCTION = 'Return ONLY JSON in this format: {{"question": "{question}", "answer": {answer}}}'


def build_prompt(mode: str, difficulty: Difficulty) -> str:
	mode = resolve_mode(mode)
	level = Difficulty(difficulty).value
	if mode in MATH_MODES:
		extra = " The result must be a whole number." if mode == "division" else ""
		return (
			f"Generate a {level} {mode} problem with {_MATH_OPERANDS[Difficulty(difficulty)]}.{extra}\n"
			'Write the problem in words in the format "What is <problem>?".\n'
			+ _JSON_INSTRUCTION.format(question="What is <problem>?", answer="<integer answer>")
		)
	if mode == "spelling":
		return (
			f"Generate a {level} spelling question. Provide one word for the player to spell.\n"
			'Write the question as "Spell the word <word>."\n'
			+ _JSON_INSTRUCTION.format(question="Spell the word <word>.", answer='"<word>"')
		)
	if mode == "odd_one_out":
		return (
			f"Generate a {level} odd-one-out question. Provide 4 words, exactly one of which is different.\n"
			'Write the question as "Which one is the odd one out: <word1>, <word2>, <word3>, <word4>?"\n'
			+ _JSON_INSTRUCTION.format(question="Which one is the odd one out: ...?", answer='"<odd word>"')
		)
	if mode == "story_builder":
		return (
			f"Generate a {level} sentence for a story-building game, plus a short correct continuation.\n"
			'Write the question as "Continue the story: <sentence>."\n'
			+ _JSON_INSTRUCTION.format(question="Continue the story: <sentence>.", answer='"<correct continuation>"')
		)
	# vocabulary
	return (
		f"Generate a {level} vocabulary question. Provide a definition and the word it defines.\n"
		'Write the question as "What word fits the definition: <definition>?"\n'
		+ _JSON_INSTRUCTION.format(question="What word fits the definition: <definition>?", answer='"<word>"')
	)


def response_schema(mode: str) -> Dict[str, Any]:
	answer_type = "INTEGER" if is_numeric(mode) else "STRING"
	return {
		"type": "OBJECT",
		"properties": {
			"question": {"type": "STRING"},
			"answer": {"type": answer_type},
		},
		"required": ["question", "answer"],
	}


def _clean_answer(value: str) -> str:
	return value.strip().strip('"\'').strip().rstrip(".").strip()


def _extract_json_block(text: str) -> Dict[str, Any]:
	try:
		data = json.loads(text)
		if isinstance(data, dict):
			return data
	except ValueError:
		pass
	# Try to locate the first JSON object in the text
	match = re.search(r"\{[\s\S]*\}", text)
	if match:
		try:
			data = json.loads(match.group(0))
			if isinstance(data, dict):
				return data
		except ValueError:
			pass
	raise ValueError("no JSON object in generator output")


_WHOLE_NUMBER = re.compile(r"^\s*[+-]?\d+\s*$")


def _whole_number(value: Union[int, str]) -> Optional[int]:
	"""Integer answers only: an int, a plain digit string, or number words."""
	if isinstance(value, int):
		return value
	if _WHOLE_NUMBER.match(value):
		return int(value)
	if re.search(r"\d", value):
		return None
	number = to_number(value)
	return number if isinstance(number, int) else None


_ANSWER = re.compile(r"Answer:\s*(.+)")

_TEMPLATES: Dict[str, re.Pattern] = {
	"odd_one_out": re.compile(r"Which one is the odd one out:.+?\?"),
	"story_builder": re.compile(r"Continue the story:.+?(?=\s*Answer:)", re.S),
	"vocabulary": re.compile(r"What word fits the definition:.+?\?"),
}


def _match_template(mode: str, text: str) -> Optional[Tuple[str, str]]:
	if mode in MATH_MODES:
		question = re.search(r"What is (.+?)\?", text)
		answer = re.search(r"Answer:\s*(-?\d+)(?!\.?\d)", text)
		if question and answer:
			return question.group(0), answer.group(1)
		return None
	if mode == "spelling":
		word = re.search(r"Spell the word\s+[\"']?([A-Za-z][A-Za-z'-]*)", text)
		if word:
			return f"Spell the word {word.group(1)}.", word.group(1)
		return None
	question = _TEMPLATES[mode].search(text)
	answer = _ANSWER.search(text)
	if question and answer:
		return question.group(0).strip(), answer.group(1)
	return None


def parse_generated(mode: str, raw: str) -> GeneratedQuestion:
	"""Turn generator output into a validated question/answer pair."""
	mode = resolve_mode(mode)
	candidate: Optional[GeneratedQuestion] = None
	try:
		candidate = GeneratedQuestion.model_validate(_extract_json_block(raw))
	except (ValueError, ValidationError):
		matched = _match_template(mode, raw)
		if matched is not None:
			try:
				candidate = GeneratedQuestion(question=matched[0], answer=matched[1])
			except ValidationError:
				candidate = None

	if candidate is None:
		logger.warning("Unparseable generator output", extra={"game_mode": mode, "detail": raw[:200]})
		raise MalformedGenerationResponse(mode, raw)

	if is_numeric(mode):
		number = _whole_number(candidate.answer)
		if number is None:
			logger.warning("Non-numeric answer from generator", extra={"game_mode": mode, "detail": raw[:200]})
			raise MalformedGenerationResponse(mode, raw)
		return GeneratedQuestion(question=candidate.question, answer=number)
	return GeneratedQuestion(question=candidate.question, answer=str(candidate.answer))


def generate_classic_problem(rng: Optional[random.Random] = None) -> GeneratedQuestion:
	"""Addition problem with both operands in [0, 99], made locally."""
	rng = rng or random
	first = rng.randint(0, 99)
	second = rng.randint(0, 99)
	return GeneratedQuestion(question=f"What is {first} plus {second}?", answer=first + second)


class QuestionGenerator:
	def __init__(self, client_factory: Callable[[], GeminiClient] = GeminiClient) -> None:
		self._client_factory = client_factory

	async def generate(self, mode: str, difficulty: Difficulty) -> GeneratedQuestion:
		mode = resolve_mode(mode)
		if mode == CLASSIC:
			return generate_classic_problem()
		prompt = build_prompt(mode, difficulty)
		client = self._client_factory()
		try:
			raw = await client.generate_json(prompt, response_schema(mode))
		finally:
			await client.aclose()
		question = parse_generated(mode, raw)
		logger.info("Generated question", extra={"game_mode": mode, "difficulty": Difficulty(difficulty).value})
		return question


_generator = QuestionGenerator()


def get_question_generator() -> QuestionGenerator:
	return _generator
