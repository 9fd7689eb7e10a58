"""FastAPI main application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import APIKeyHeader
from starlette.exceptions import HTTPException as StarletteHTTPException

from dashboard.api.services import Services, build_services
from dashboard.config import config
from dashboard.errors import DashboardError
from dashboard.jobs.periods import PERIODS, select_dates
from dashboard.jobs.revenue import build_report
from dashboard.logging_conf import setup_logging
from dashboard.parse.redact import redact_string

logger = logging.getLogger(__name__)

# API Key security (if configured)
API_KEY_HEADER = APIKeyHeader(name="X-API-KEY", auto_error=False)


def verify_api_key(api_key: Optional[str] = Depends(API_KEY_HEADER)) -> bool:
    """Verify API key if configured."""
    expected_key = config.API_KEY
    if expected_key:
        if not api_key or api_key != expected_key:
            raise HTTPException(status_code=403, detail="Invalid API key")
    return True


def get_services(request: Request) -> Services:
    return request.app.state.services


def error_response(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse({"error": message, **extra}, status_code=status_code)


def create_app(services: Optional[Services] = None) -> FastAPI:
    """Build the app; ``services`` is created at startup unless injected."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = getattr(app.state, "services", None) is None
        if owned:
            app.state.services = build_services()
        try:
            yield
        finally:
            if owned:
                await app.state.services.aclose()
                app.state.services = None

    app = FastAPI(title="Publisher Admin Dashboard API", version="0.1.0", lifespan=lifespan)
    app.state.services = services

    @app.exception_handler(DashboardError)
    async def dashboard_error_handler(request: Request, exc: DashboardError):
        logger.error(f"{request.url.path} failed: {redact_string(str(exc))}")
        return error_response(str(exc) or "Failed to fetch", exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return error_response(str(exc.detail), exc.status_code)

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    @app.get("/health")
    async def health():
        """Health check endpoint (no auth required)."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "financials_configured": bool(config.STEAM_FINANCIAL_API_KEY),
            "sheets_configured": config.sheets_configured(),
        }

    @app.get("/api/financials")
    async def financials(
        action: str = "dates",
        dates: Optional[str] = None,
        refresh: bool = False,
        period: Optional[str] = None,
        from_: Optional[str] = Query(default=None, alias="from"),
        to: Optional[str] = None,
        services: Services = Depends(get_services),
        _: bool = Depends(verify_api_key),
    ):
        """Available report dates, or reconciled sales for a set of dates."""
        if action == "dates":
            return {"dates": await services.financials.list_changed_dates()}

        if action != "range":
            return error_response("Invalid action", 400)

        if dates:
            requested = [d for d in dates.split(",") if d.strip()]
        elif period:
            if period not in PERIODS:
                return error_response(f"Invalid period, expected one of {', '.join(PERIODS)}", 400)
            available = await services.financials.list_changed_dates()
            requested = select_dates(available, period, from_, to)
        else:
            return error_response("dates parameter required", 400)

        result = await services.engine.reconcile(requested, force_refresh=refresh)
        return build_report(result)

    @app.get("/api/steam-stats")
    async def steam_stats(
        action: str = "stats",
        cursor: str = "*",
        services: Services = Depends(get_services),
        _: bool = Depends(verify_api_key),
    ):
        if action == "reviews":
            page = await services.store.get_reviews(cursor)
            return page.model_dump(mode="json")
        stats = await services.store.get_stats()
        return stats.model_dump(mode="json")

    @app.get("/api/quick-links")
    async def quick_links(
        refresh: bool = False,
        services: Services = Depends(get_services),
        _: bool = Depends(verify_api_key),
    ):
        try:
            lookup = await services.sources.quick_links.lookup(refresh=refresh)
        except DashboardError as e:
            logger.error(f"Error fetching quick links: {e}")
            return error_response("Failed to fetch quick links", 500, links=[])
        return {
            "links": [link.model_dump() for link in lookup.value],
            "cached": lookup.from_cache,
        }

    @app.get("/api/admin-users")
    async def admin_users(
        refresh: bool = False,
        services: Services = Depends(get_services),
        _: bool = Depends(verify_api_key),
    ):
        try:
            users = await services.sources.admin_users.get(refresh=refresh)
        except DashboardError as e:
            logger.error(f"Error fetching admin users: {e}")
            return error_response("Failed to fetch admin users", 500, users=[])
        return {"users": [user.model_dump() for user in users]}

    @app.get("/api/supported-games")
    async def supported_games(
        refresh: bool = False,
        services: Services = Depends(get_services),
        _: bool = Depends(verify_api_key),
    ):
        try:
            games = await services.sources.supported_games.get(refresh=refresh)
        except DashboardError as e:
            logger.error(f"Error fetching supported games: {e}")
            return error_response("Failed to fetch supported games", 500, games=[])
        return {"games": [game.model_dump() for game in games]}

    @app.get("/api/localization")
    async def localization(
        refresh: bool = False,
        services: Services = Depends(get_services),
        _: bool = Depends(verify_api_key),
    ):
        data = await services.sources.localization.get(refresh=refresh)
        return {
            "rows": data["rows"],
            "sources": [source.model_dump() for source in data["sources"]],
        }

    @app.get("/api/utm-links")
    async def utm_links(
        services: Services = Depends(get_services),
        _: bool = Depends(verify_api_key),
    ):
        return await services.utm_links.read()

    @app.post("/api/utm-links")
    async def edit_utm_link(
        payload: dict[str, Any] = Body(...),
        services: Services = Depends(get_services),
        _: bool = Depends(verify_api_key),
    ):
        action = payload.get("action")
        headers = payload.get("headers") or []
        row_data = payload.get("rowData") or {}
        if not isinstance(headers, list) or not isinstance(row_data, dict):
            return error_response("headers must be a list and rowData an object", 400)

        if action == "add":
            await services.utm_links.add(headers, row_data)
            return {"success": True}

        if action in ("update", "delete"):
            try:
                row_index = int(payload.get("rowIndex"))
            except (TypeError, ValueError):
                return error_response("rowIndex is required", 400)
            try:
                if action == "update":
                    await services.utm_links.update(row_index, headers, row_data)
                else:
                    await services.utm_links.delete(row_index, headers)
            except ValueError as e:
                return error_response(str(e), 400)
            return {"success": True}

        return error_response("Invalid action", 400)

    @app.get("/api/auth/allowed-emails")
    async def allowed_emails(services: Services = Depends(get_services)):
        try:
            emails = await services.sources.allowed_emails.get()
        except DashboardError as e:
            logger.error(f"Error fetching allowed emails: {e}")
            return error_response("Failed to fetch allowed emails", 500)
        return {"emails": emails}

    @app.post("/api/auth/allowed-emails")
    async def check_allowed_email(
        payload: dict[str, Any] = Body(...),
        services: Services = Depends(get_services),
    ):
        email = payload.get("email")
        if not email or not isinstance(email, str):
            return JSONResponse({"allowed": False}, status_code=400)
        try:
            allowed = await services.sources.is_allowed(email)
        except DashboardError as e:
            logger.error(f"Error verifying email: {e}")
            return error_response("Failed to verify email", 500, allowed=False)
        return {"allowed": allowed}


app = create_app()


if __name__ == "__main__":
    import uvicorn
    setup_logging()
    uvicorn.run(app, host="0.0.0.0", port=8000)
