"""Shared fixtures: a temporary database and fakes for the cloud services."""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from voicequiz.cleanup import AudioJanitor, get_janitor
from voicequiz.db import Base, get_db
from voicequiz.main import app
from voicequiz.questions import GeneratedQuestion, get_question_generator
from voicequiz.speech import SpeechService, get_speech_service
from voicequiz.store import SessionStore

CANNED_QUESTIONS = {
	"classic": GeneratedQuestion(question="What is 1 plus 2?", answer=3),
	"addition": GeneratedQuestion(question="What is twenty plus twenty two?", answer=42),
	"subtraction": GeneratedQuestion(question="What is nine minus four?", answer=5),
	"multiplication": GeneratedQuestion(question="What is six times seven?", answer=42),
	"division": GeneratedQuestion(question="What is eighty four divided by two?", answer=42),
	"spelling": GeneratedQuestion(question="Spell the word cat.", answer="cat"),
	"odd_one_out": GeneratedQuestion(question="Which one is the odd one out: apple, pear, plum, car?", answer="car"),
	"story_builder": GeneratedQuestion(question="Continue the story: The dog was hungry.", answer="dog ran"),
	"vocabulary": GeneratedQuestion(question="What word fits the definition: a young cat?", answer="kitten"),
}


class FakeGenerator:
	def __init__(self):
		self.calls = []
		self.error = None

	async def generate(self, mode, difficulty):
		self.calls.append((mode, difficulty))
		if self.error is not None:
			raise self.error
		return CANNED_QUESTIONS[mode]


class FakeSpeech(SpeechService):
	def __init__(self, output_dir):
		super().__init__(output_dir)
		self.synthesized = []
		self.transcript = ""
		self.error = None

	async def synthesize(self, text):
		if self.error is not None:
			raise self.error
		self.synthesized.append(text)
		return f"/audio/output/test_{len(self.synthesized)}.mp3"

	async def transcribe(self, audio_base64):
		return self.transcript


class RecordingJanitor(AudioJanitor):
	def __init__(self, output_dir):
		super().__init__(output_dir, grace_seconds=0)
		self.notified = []

	def notify(self, keep):
		self.notified.append(set(keep))


@pytest.fixture()
def session_factory(tmp_path):
	engine = create_engine(f"sqlite:///{tmp_path / 'voicequiz-test.db'}", connect_args={"check_same_thread": False})
	Base.metadata.create_all(bind=engine)
	factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
	yield factory
	engine.dispose()


@pytest.fixture()
def db_session(session_factory):
	db = session_factory()
	yield db
	db.close()


@pytest.fixture()
def store(db_session):
	return SessionStore(db_session)


@pytest.fixture()
def output_dir(tmp_path):
	path = tmp_path / "audio" / "output"
	path.mkdir(parents=True)
	return path


@pytest.fixture()
def fake_generator():
	return FakeGenerator()


@pytest.fixture()
def fake_speech(output_dir):
	return FakeSpeech(output_dir)


@pytest.fixture()
def janitor(output_dir):
	return RecordingJanitor(output_dir)


@pytest.fixture()
def client(session_factory, fake_generator, fake_speech, janitor):
	def _get_db():
		db = session_factory()
		try:
			yield db
		finally:
			db.close()

	app.dependency_overrides[get_db] = _get_db
	app.dependency_overrides[get_question_generator] = lambda: fake_generator
	app.dependency_overrides[get_speech_service] = lambda: fake_speech
	app.dependency_overrides[get_janitor] = lambda: janitor
	yield TestClient(app)
	app.dependency_overrides.clear()
