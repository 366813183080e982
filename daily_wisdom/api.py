"""
Thin content API over the pipeline (aiohttp.web).

A missing article for today is generated on demand. "Still generating"
(503, retry later) is reported separately from "generation failed" (500)
and from "no content for that date" (404).
"""

import asyncio
import hmac
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aiohttp import web

from daily_wisdom.models.article import Article, GenerationOptions
from daily_wisdom.models.languages import BASE_LANGUAGE, is_supported
from daily_wisdom.pipeline.daily_content_coordinator import DailyContentCoordinator
from daily_wisdom.pipeline.translation_orchestrator import TranslationOrchestrator
from daily_wisdom.services.article_repository import ArticleRepository
from daily_wisdom.utils.dates import normalize_date, today_utc

logger = logging.getLogger(__name__)

REPOSITORY = web.AppKey("repository", object)
COORDINATOR = web.AppKey("coordinator", DailyContentCoordinator)
TRANSLATOR = web.AppKey("translator", TranslationOrchestrator)
SETTINGS = web.AppKey("settings", dict)

NO_STORE = {"Cache-Control": "no-store"}


def _error(status: int, error: str, message: str, headers: Optional[Dict[str, str]] = None) -> web.Response:
    return web.json_response({"error": error, "message": message}, status=status, headers=headers)


def _article_response(article: Article) -> web.Response:
    return web.json_response(article.to_dict(), status=200, headers=NO_STORE)


def extract_api_key(request: web.Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth[7:].strip()
    key = request.headers.get("X-Api-Key")
    return key.strip() if key else None


def is_authorized(request: web.Request) -> bool:
    settings = request.app[SETTINGS]
    expected = settings.get("api_key")
    if not expected:
        if settings.get("production"):
            logger.warning("[Auth] GENERATE_ARTICLE_API_KEY is not set in production; denying access")
            return False
        logger.warning("[Auth] GENERATE_ARTICLE_API_KEY is not set; allowing manual generation outside production")
        return True

    provided = extract_api_key(request)
    if not provided:
        return False
    return hmac.compare_digest(provided.encode(), expected.encode())


async def health(request: web.Request) -> web.Response:
    return web.json_response({
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "message": "Daily Wisdom API is running",
    })


async def available_dates(request: web.Request) -> web.Response:
    repository: ArticleRepository = request.app[REPOSITORY]
    try:
        dates = await repository.get_all_available_dates()
    except Exception as e:
        logger.error(f"[API] Failed to fetch available dates: {e}", exc_info=True)
        return web.json_response({"error": "Failed to fetch available dates", "dates": []}, status=500)
    return web.json_response(
        {"dates": dates},
        headers={"Cache-Control": "public, s-maxage=300, stale-while-revalidate=600"},
    )


async def get_article(request: web.Request) -> web.Response:
    repository: ArticleRepository = request.app[REPOSITORY]
    coordinator = request.app[COORDINATOR]
    translator = request.app[TRANSLATOR]
    wait_seconds = request.app[SETTINGS].get("wait_seconds", 25.0)

    day = normalize_date(request.match_info["date"])
    if not day:
        return _error(400, "Invalid date", f"Unrecognized date: {request.match_info['date']}")
    language = request.match_info.get("language", BASE_LANGUAGE).lower()
    if not is_supported(language):
        return _error(400, "Unsupported language", f"Language {language} is not supported")

    article = await repository.get_article(day, language)
    if article is not None:
        return _article_response(article)

    if day != today_utc():
        return _error(404, "Article not found", f"No article for {day} in {language}")

    try:
        await asyncio.wait_for(coordinator.ensure_article_for_date(day), timeout=wait_seconds)
    except asyncio.TimeoutError:
        return _error(
            503, "Still generating", f"Article for {day} is being generated, retry shortly",
            headers={"Retry-After": "10", **NO_STORE},
        )
    except Exception as e:
        logger.error(f"[API] Regeneration attempt failed for {day}: {e}", exc_info=True)
        return _error(500, "Generation failed", "Failed to generate today's article")

    article = await repository.get_article(day, language)
    if article is not None:
        return _article_response(article)

    if language != BASE_LANGUAGE:
        base = await repository.get_article(day, BASE_LANGUAGE)
        if base is not None:
            try:
                return _article_response(await translator.translate_article(base, language))
            except Exception as e:
                logger.error(f"[API] Translation attempt failed for {day}/{language}: {e}", exc_info=True)
                return _error(500, "Translation failed", f"Failed to translate article to {language}")

    return _error(500, "Article not found", f"No article for {day} in {language} after regeneration")


async def generate_article(request: web.Request) -> web.Response:
    if not is_authorized(request):
        logger.warning("[API] Unauthorized attempt to generate article")
        return web.json_response({"error": "Unauthorized"}, status=401)

    body: Dict[str, Any] = {}
    if request.can_read_body:
        try:
            body = await request.json() or {}
        except ValueError:
            return _error(400, "Invalid body", "Request body must be JSON")
        if not isinstance(body, dict):
            return _error(400, "Invalid body", "Request body must be a JSON object")

    raw_date = body.get("date")
    day = normalize_date(raw_date) if raw_date else today_utc()
    if not day:
        return _error(400, "Invalid date", f"Unrecognized date: {raw_date}")

    options = GenerationOptions(
        translations_only=bool(body.get("translationsOnly")),
        force=bool(body.get("force")),
    )
    request.app[COORDINATOR].trigger_manual_generation(day, options)
    return web.json_response({"message": "Article generation started", "date": day}, status=202)


def create_app(
    repository: ArticleRepository,
    coordinator: DailyContentCoordinator,
    translator: TranslationOrchestrator,
    api_key: Optional[str] = None,
    production: bool = False,
    wait_seconds: float = 25.0,
) -> web.Application:
    app = web.Application()
    app[REPOSITORY] = repository
    app[COORDINATOR] = coordinator
    app[TRANSLATOR] = translator
    app[SETTINGS] = {"api_key": api_key, "production": production, "wait_seconds": wait_seconds}

    app.router.add_get("/api/health", health)
    app.router.add_get("/api/available-dates", available_dates)
    app.router.add_get("/api/article/{date}", get_article)
    app.router.add_get("/api/article/{date}/{language}", get_article)
    app.router.add_post("/api/generate-article", generate_article)
    return app
