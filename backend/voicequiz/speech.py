"""Google Cloud speech services: question synthesis, feedback clips, transcription."""
from __future__ import annotations

import base64
import binascii
import time
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool
from google.cloud import speech
from google.cloud import texttospeech

from .errors import UnknownAudioKind
from .log import get_logger
from .settings import settings

logger = get_logger(__name__)

AUDIO_URL_PREFIX = "/audio"
FIXED_AUDIO_KINDS = ("correct", "incorrect", "instructions", "no_input")


def output_url(file_name: str) -> str:
	return f"{AUDIO_URL_PREFIX}/output/{file_name}"


def fixed_audio(kind: str) -> str:
	"""Browser path of a pre-recorded clip."""
	if kind not in FIXED_AUDIO_KINDS:
		raise UnknownAudioKind(kind)
	return f"{AUDIO_URL_PREFIX}/util/{kind}.mp3"


def _client_options() -> Dict[str, Any]:
	if settings.google_credentials_file:
		return {"credentials_file": settings.google_credentials_file}
	return {}


class SpeechService:
	def __init__(
		self,
		output_dir: Optional[Path] = None,
		*,
		tts_client: Optional[texttospeech.TextToSpeechClient] = None,
		stt_client: Optional[speech.SpeechClient] = None,
	) -> None:
		self._output_dir = output_dir
		self._tts_client = tts_client
		self._stt_client = stt_client

	@property
	def output_dir(self) -> Path:
		return self._output_dir or settings.audio_output_dir

	def _tts(self) -> texttospeech.TextToSpeechClient:
		if self._tts_client is None:
			self._tts_client = texttospeech.TextToSpeechClient(client_options=_client_options())
		return self._tts_client

	def _stt(self) -> speech.SpeechClient:
		if self._stt_client is None:
			self._stt_client = speech.SpeechClient(client_options=_client_options())
		return self._stt_client

	def fixed_audio(self, kind: str) -> str:
		return fixed_audio(kind)

	def _synthesize_to_file(self, text: str) -> str:
		voice_params: Dict[str, Any] = {
			"language_code": settings.tts_language_code,
			"ssml_gender": texttospeech.SsmlVoiceGender.NEUTRAL,
		}
		if settings.tts_voice_name:
			voice_params["name"] = settings.tts_voice_name
		response = self._tts().synthesize_speech(
			input=texttospeech.SynthesisInput(text=text),
			voice=texttospeech.VoiceSelectionParams(**voice_params),
			audio_config=texttospeech.AudioConfig(audio_encoding=texttospeech.AudioEncoding.MP3),
		)
		out_dir = self.output_dir
		out_dir.mkdir(parents=True, exist_ok=True)
		file_name = f"output_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}.mp3"
		(out_dir / file_name).write_bytes(response.audio_content)
		return output_url(file_name)

	async def synthesize(self, text: str) -> str:
		"""Render `text` to an MP3 under the output directory; returns its browser path."""
		url = await run_in_threadpool(self._synthesize_to_file, text)
		logger.info("Synthesized question audio", extra={"path": url})
		return url

	def _recognize(self, content: bytes) -> str:
		config = speech.RecognitionConfig(
			language_code=settings.stt_language_code,
			enable_automatic_punctuation=False,
		)
		response = self._stt().recognize(config=config, audio=speech.RecognitionAudio(content=content))
		parts = [result.alternatives[0].transcript for result in response.results if result.alternatives]
		return " ".join(p.strip() for p in parts if p.strip())

	async def transcribe(self, audio_base64: str) -> str:
		"""Transcribe a base64 recording; an empty string means nothing was recognized."""
		try:
			content = base64.b64decode(audio_base64, validate=True)
		except (binascii.Error, ValueError):
			logger.warning("Rejected audio payload that is not valid base64")
			return ""
		if not content:
			return ""
		return await run_in_threadpool(self._recognize, content)


_service = SpeechService()


def get_speech_service() -> SpeechService:
	return _service
