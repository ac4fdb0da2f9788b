from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from datetime import datetime, timezone
import logging
import os
import sys
from typing import Any, Callable, Dict, List, Optional

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from g2history import __version__
from g2history.auth import require_authorized
from g2history.cache import FreshnessCache
from g2history.calendar import build_ics, calendar_filename
from g2history.config import Settings
from g2history.database import Database
from g2history.errors import FetchFailed, InvalidDate, MatchNotFound, StoreError, SyncPersistError, Unauthorized
from g2history.scraper import RemotePageFetcher
from g2history.sync import MatchSync

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Error interno del servidor"
PLAYER_NOT_FOUND = "Jugador no encontrado"
MATCH_NOT_FOUND = "Partido no encontrado"
INVALID_DATE = "Fecha inválida"
UNAUTHORIZED = "No autorizado"
CACHE_CLEARED = "Caché limpiada"

RANKING_KEY = "ranking"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _find_match(rows: List[Dict[str, Any]], match_id: str) -> Dict[str, Any]:
    for row in rows:
        if str(row.get("id")) == match_id:
            return row
    raise MatchNotFound(f"No upcoming match with id {match_id!r}")


def create_app(
    settings: Optional[Settings] = None,
    db: Optional[Database] = None,
    fetcher: Optional[RemotePageFetcher] = None,
    cache: Optional[FreshnessCache] = None,
    sync: Optional[MatchSync] = None,
) -> FastAPI:
    """Composition root: wires one store, fetcher, cache and sync into the HTTP handlers."""
    if settings is None:
        settings = Settings.from_env()
    if db is None:
        db = Database(settings.database_url, settings.database_auth_token)
    if fetcher is None:
        fetcher = RemotePageFetcher.from_settings(settings)
    if cache is None:
        cache = FreshnessCache()
    if sync is None:
        sync = MatchSync(fetcher, db)

    if not settings.api_key:
        logger.warning("API_KEY is not set; protected routes will reject every request")

    app = FastAPI(
        title="G2 Esports Players API",
        description="API para consultar jugadores, años, ranking y próximos partidos de G2 Esports",
        version=__version__,
        docs_url="/api-docs",
    )
    app.state.settings = settings
    app.state.db = db
    app.state.fetcher = fetcher
    app.state.cache = cache
    app.state.sync = sync

    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})

    def require_api_key(request: Request) -> None:
        try:
            require_authorized(request.headers.get("authorization"), settings.api_key)
        except Unauthorized:
            logger.warning("Rejected unauthorized request to %s", request.url.path)
            raise HTTPException(status_code=401, detail=UNAUTHORIZED, headers={"WWW-Authenticate": "Bearer"})

    def cached_query(key: str, load: Callable[[], Any], what: str) -> Any:
        """Serve `key` from cache until cleared; otherwise query, store and return."""
        hit = cache.get(key)
        if hit is not None:
            return hit
        try:
            value = load()
        except StoreError:
            logger.exception("Error al obtener %s", what)
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        cache.put(key, value)
        return value

    @app.get("/years")
    async def years() -> list:
        return cached_query("years", db.get_years, "los años")

    @app.get("/players")
    async def players() -> list:
        return cached_query("players", db.get_players, "jugadores")

    @app.get("/players/year/{year}")
    async def players_by_year(year: str) -> list:
        return cached_query(f"players:year:{year}", lambda: db.get_players_by_year(year), "jugadores por año")

    @app.get("/players/{identifier}")
    async def player(identifier: str) -> dict:
        key = f"player:{identifier}"
        hit = cache.get(key)
        if hit is not None:
            return hit
        try:
            row = db.get_player(identifier)
        except StoreError:
            logger.exception("Error al obtener jugador %s", identifier)
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        if row is None:
            raise HTTPException(status_code=404, detail=PLAYER_NOT_FOUND)
        cache.put(key, row)
        return row

    @app.post("/cache/clear")
    async def clear_cache() -> dict:
        dropped = cache.clear()
        logger.info("Cache cleared (%d entries)", dropped)
        return {"message": CACHE_CLEARED}

    @app.get("/ranking")
    async def ranking() -> list:
        hit = cache.get_if_fresh(RANKING_KEY, settings.ranking_cache_ttl)
        if hit is not None:
            return hit
        try:
            entries = await fetcher.fetch_ranking()
        except FetchFailed:
            logger.exception("Error al obtener el ranking")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        cache.put(RANKING_KEY, entries)
        return entries

    @app.post("/matches/sync", dependencies=[Depends(require_api_key)])
    @app.post("/matches/sync-dpm", dependencies=[Depends(require_api_key)])
    async def sync_matches() -> dict:
        try:
            result = await sync.sync_upcoming_matches()
        except (FetchFailed, SyncPersistError):
            logger.exception("Error al sincronizar partidos")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        return {"status": "ok", "updated": result.updated}

    @app.get("/matches/upcoming")
    async def upcoming_matches() -> list:
        # Always live: the sync job keeps the table fresh.
        try:
            return db.get_upcoming_matches()
        except StoreError:
            logger.exception("Error al obtener próximos partidos")
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    @app.get("/calendar/{match_id}")
    async def calendar(match_id: str) -> Response:
        key = f"calendar:{match_id}"
        match = cache.get(key)
        try:
            if match is None:
                match = _find_match(db.get_upcoming_matches(), match_id)
                cache.put(key, match)
            body = build_ics(match)
        except MatchNotFound:
            raise HTTPException(status_code=404, detail=MATCH_NOT_FOUND)
        except InvalidDate:
            logger.warning("Invalid date on match %s: %r", match_id, match.get("date"))
            raise HTTPException(status_code=400, detail=INVALID_DATE)
        except StoreError:
            logger.exception("Error al generar el calendario %s", match_id)
            raise HTTPException(status_code=500, detail=INTERNAL_ERROR)
        return Response(
            content=body,
            media_type="text/calendar; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{calendar_filename(match)}"'},
        )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok", "timestamp": _utc_timestamp()}

    return app


if __name__ == "__main__":
    import uvicorn

    env_settings = Settings.from_env()
    logging.basicConfig(level=env_settings.log_level)
    uvicorn.run(create_app(env_settings), host=env_settings.host, port=env_settings.port)
