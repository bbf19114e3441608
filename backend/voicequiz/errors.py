from __future__ import annotations


class GameError(Exception):
	"""Base for failures that map onto a specific HTTP status."""

	status_code: int = 500

	def __init__(self, message: str) -> None:
		super().__init__(message)
		self.message = message


class InvalidGameMode(GameError):
	status_code = 400

	def __init__(self, mode: str | None) -> None:
		super().__init__(f"Invalid game mode: {mode}" if mode else "Invalid game mode")
		self.mode = mode


class UnknownAudioKind(GameError):
	status_code = 400

	def __init__(self, kind: str) -> None:
		super().__init__(f"Invalid audio type: {kind}")
		self.kind = kind


class EmptyAnswer(GameError):
	status_code = 400

	def __init__(self) -> None:
		super().__init__("Invalid or empty user answer")


class NoActiveRound(GameError):
	status_code = 400

	def __init__(self) -> None:
		super().__init__("No active round; start a game first")


class MalformedGenerationResponse(GameError):
	status_code = 500

	def __init__(self, mode: str, raw: str) -> None:
		super().__init__(f"Invalid question generator response for {mode}")
		self.mode = mode
		self.raw = raw
