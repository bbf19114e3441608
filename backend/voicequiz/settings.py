from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

BASE_DIR = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	gemini_temperature: float = Field(default=0.5, validation_alias="GEMINI_TEMPERATURE")
	gemini_max_output_tokens: int = Field(default=512, validation_alias="GEMINI_MAX_OUTPUT_TOKENS")
	gemini_timeout_seconds: float = Field(default=30.0, validation_alias="GEMINI_TIMEOUT_SECONDS")

	# Google Cloud speech services. When unset, the SDK falls back to GOOGLE_APPLICATION_CREDENTIALS.
	google_credentials_file: str | None = Field(default=None, validation_alias="GOOGLE_CREDENTIALS_FILE")
	tts_language_code: str = Field(default="en-US", validation_alias="TTS_LANGUAGE_CODE")
	tts_voice_name: str | None = Field(default=None, validation_alias="TTS_VOICE_NAME")
	stt_language_code: str = Field(default="en-US", validation_alias="STT_LANGUAGE_CODE")

	# Filesystem layout
	audio_dir: Path = Field(default=BASE_DIR / "audio", validation_alias="AUDIO_DIR")
	public_dir: Path = Field(default=BASE_DIR / "public", validation_alias="PUBLIC_DIR")

	# Cookies (seconds)
	round_cookie_max_age: int = Field(default=60 * 60, validation_alias="ROUND_COOKIE_MAX_AGE")
	totals_cookie_max_age: int = Field(default=365 * 24 * 60 * 60, validation_alias="TOTALS_COOKIE_MAX_AGE")

	# Generated audio younger than this is never deleted, so in-flight rounds keep their files
	audio_cleanup_grace_seconds: int = Field(default=30, validation_alias="AUDIO_CLEANUP_GRACE_SECONDS")
	round_retention_days: int = Field(default=7, validation_alias="ROUND_RETENTION_DAYS")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	# Logging: level name, and "json" or "text"
	log_level: str = Field(default="INFO", validation_alias="VOICEQUIZ_LOG_LEVEL")
	log_format: str = Field(default="json", validation_alias="VOICEQUIZ_LOG_FORMAT")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def audio_output_dir(self) -> Path:
		return self.audio_dir / "output"

	@property
	def audio_util_dir(self) -> Path:
		return self.audio_dir / "util"


settings = Settings()
