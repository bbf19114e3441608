import asyncio
import base64
from types import SimpleNamespace

import pytest

from voicequiz.errors import UnknownAudioKind
from voicequiz.speech import FIXED_AUDIO_KINDS, SpeechService, fixed_audio


class FakeTTSClient:
	def __init__(self):
		self.requests = []

	def synthesize_speech(self, input, voice, audio_config):
		self.requests.append((input, voice, audio_config))
		return SimpleNamespace(audio_content=b"ID3-fake-mp3")


class FakeSTTClient:
	def __init__(self, transcripts):
		self.transcripts = transcripts
		self.calls = 0

	def recognize(self, config, audio):
		self.calls += 1
		return SimpleNamespace(results=[
			SimpleNamespace(alternatives=[SimpleNamespace(transcript=t)]) for t in self.transcripts
		])


@pytest.mark.parametrize("kind", FIXED_AUDIO_KINDS)
def test_fixed_audio_catalog(kind):
	assert fixed_audio(kind) == f"/audio/util/{kind}.mp3"


def test_unknown_fixed_audio_kind():
	with pytest.raises(UnknownAudioKind):
		fixed_audio("applause")


def test_synthesize_writes_unique_files(output_dir):
	tts = FakeTTSClient()
	service = SpeechService(output_dir, tts_client=tts)
	first = asyncio.run(service.synthesize("What is two plus two?"))
	second = asyncio.run(service.synthesize("What is two plus three?"))
	assert first != second
	for url in (first, second):
		assert url.startswith("/audio/output/output_")
		assert (output_dir / url.rsplit("/", 1)[-1]).read_bytes() == b"ID3-fake-mp3"
	synthesis_input, voice, _ = tts.requests[0]
	assert synthesis_input.text == "What is two plus two?"
	assert voice.language_code == "en-US"


def test_transcribe_joins_results():
	stt = FakeSTTClient(["forty", " two "])
	service = SpeechService(stt_client=stt)
	audio = base64.b64encode(b"RIFF....WAVE").decode("ascii")
	assert asyncio.run(service.transcribe(audio)) == "forty two"


def test_transcribe_rejects_garbage_without_calling_service():
	stt = FakeSTTClient(["never"])
	service = SpeechService(stt_client=stt)
	assert asyncio.run(service.transcribe("not base64 at all!")) == ""
	assert stt.calls == 0
