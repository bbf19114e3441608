import asyncio

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .cleanup import get_janitor, purge_stale_rounds
from .db import Base, SessionLocal, engine
from .errors import GameError
from .log import get_logger
from .settings import settings
from .routers import game

logger = get_logger(__name__)

app = FastAPI(title="Voice Quiz API")
app.include_router(game.router)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
	logger.warning(
		exc.message,
		extra={"endpoint": request.url.path, "status_code": exc.status_code},
	)
	return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


# Generated and pre-recorded clips; the output directory is created at startup
app.mount("/audio", StaticFiles(directory=settings.audio_dir, check_dir=False), name="audio")
if settings.public_dir.is_dir():
	app.mount("/", StaticFiles(directory=settings.public_dir, html=True), name="public")


def _purge_rounds() -> None:
	db = SessionLocal()
	try:
		removed = purge_stale_rounds(db)
		if removed:
			logger.info("Purged abandoned rounds", extra={"count": removed})
	except Exception:
		logger.exception("Round cleanup failed")
	finally:
		db.close()


async def _round_cleanup_watcher():
	# Startup already ran one pass; repeat daily
	while True:
		await asyncio.sleep(24 * 60 * 60)
		_purge_rounds()


@app.on_event("startup")
async def startup_event():
	Base.metadata.create_all(bind=engine)
	settings.audio_output_dir.mkdir(parents=True, exist_ok=True)
	_purge_rounds()
	get_janitor().start()
	app.state.round_watcher = asyncio.create_task(_round_cleanup_watcher())
	logger.info("Voice quiz server ready", extra={"path": str(settings.audio_dir)})


@app.on_event("shutdown")
async def shutdown_event():
	watcher = getattr(app.state, "round_watcher", None)
	if watcher is not None:
		watcher.cancel()
	await get_janitor().stop()
