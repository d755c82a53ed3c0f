"""HTTP server: live haiku stream and translation endpoints."""

import asyncio
import json
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import unquote

from aiohttp import web

from .bedrock import BedrockTextClient
from .config import Config, ServerConfig
from .errors import HaikuFeedError, TranslationError
from .generator import HaikuGenerator
from .live import LiveUpdateChannel
from .logging_config import ExecutionLogger, create_execution_logger
from .processor import BatchProcessor
from .rate_limit import FixedWindowRateLimiter
from .rss import FeedProcessor
from .sources import FeedSourceRegistry
from .store import HaikuStore
from .translation import TranslationCache, Translator

# How often a streaming handler checks whether the client went away
DISCONNECT_CHECK_SECONDS = 1.0


@dataclass
class HaikuFeedServices:
    """Process-wide state and pipeline components shared by all connections."""

    store: HaikuStore
    processor: BatchProcessor
    translator: Translator
    server_config: ServerConfig


SERVICES_KEY = web.AppKey("services", HaikuFeedServices)
LOGGER_KEY = web.AppKey("logger", ExecutionLogger)


def build_services(config: Config, execution_id: str | None = None) -> HaikuFeedServices:
    """Wire the pipeline from configuration."""
    pipeline_config = config.get_pipeline_config()
    server_config = config.get_server_config()
    translation_config = config.get_translation_config()

    client = BedrockTextClient(config.get_bedrock_config(), execution_id=execution_id)
    store = HaikuStore(
        lifetime_seconds=server_config.cache_lifetime_seconds,
        execution_id=execution_id,
    )
    processor = BatchProcessor(
        registry=FeedSourceRegistry(config.get_feed_sources()),
        fetcher=FeedProcessor(
            max_items_per_feed=pipeline_config.max_items_per_feed,
            timeout=pipeline_config.request_timeout,
            execution_id=execution_id,
        ),
        generator=HaikuGenerator(
            client,
            max_excerpt_length=pipeline_config.max_excerpt_length,
            execution_id=execution_id,
        ),
        store=store,
        limiter=FixedWindowRateLimiter(
            pipeline_config.max_requests_per_second, execution_id=execution_id
        ),
        config=pipeline_config,
        execution_id=execution_id,
    )
    translator = Translator(
        client,
        TranslationCache(translation_config.cache_path, execution_id=execution_id),
        target_language=translation_config.target_language,
        max_tokens=translation_config.max_tokens,
        execution_id=execution_id,
    )
    return HaikuFeedServices(
        store=store,
        processor=processor,
        translator=translator,
        server_config=server_config,
    )


def _client_gone(request: web.Request) -> bool:
    transport = request.transport
    return transport is None or transport.is_closing()


async def stream_haikus(request: web.Request) -> web.StreamResponse:
    """GET /api/haikus: server-sent event stream of haikus."""
    services = request.app[SERVICES_KEY]
    connection_id = f"sse_{uuid.uuid4().hex[:12]}"

    response = web.StreamResponse(
        headers={
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        }
    )
    await response.prepare(request)

    async def write(payload: str) -> None:
        await response.write(payload.encode("utf-8"))

    channel = LiveUpdateChannel(
        store=services.store,
        processor=services.processor,
        write=write,
        translator=services.translator,
        poll_interval=services.server_config.poll_interval_seconds,
        execution_id=connection_id,
    )

    try:
        await channel.open()
        while not channel.closed and not _client_gone(request):
            try:
                await asyncio.wait_for(channel.wait_closed(), DISCONNECT_CHECK_SECONDS)
            except TimeoutError:
                continue
    finally:
        await channel.close()

    return response


async def translate(request: web.Request) -> web.Response:
    """POST /api/translate: translate one haiku, using the cache first."""
    services = request.app[SERVICES_KEY]
    try:
        data = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return web.json_response({"error": "Invalid JSON body"}, status=400)

    text = data.get("text") if isinstance(data, dict) else None
    if not text or not isinstance(text, str):
        return web.json_response({"error": "Missing required field: text"}, status=400)

    translation = await services.translator.translate_cached(text)
    if not translation:
        raise TranslationError("Translation failed")

    return web.json_response({"translation": translation})


async def list_translations(request: web.Request) -> web.Response:
    """GET /api/translations?texts=a,b: cached translations for known texts."""
    services = request.app[SERVICES_KEY]
    raw = request.query.get("texts")
    if not raw:
        return web.json_response({"translations": {}})

    texts = [unquote(text) for text in raw.split(",")]
    return web.json_response({"translations": await services.translator.lookup(texts)})


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Turn uncaught errors into structured JSON responses."""
    logger = request.app[LOGGER_KEY]
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except TranslationError as e:
        logger.error(f"Translation request failed: {e}", path=request.path)
        return web.json_response({"error": str(e)}, status=500)
    except HaikuFeedError as e:
        logger.error(f"Request failed: {e}", path=request.path, error=str(e))
        return web.json_response({"error": str(e)}, status=500)
    except Exception as e:
        logger.error(
            f"Unexpected error handling {request.path}: {e}",
            path=request.path,
            error=str(e),
        )
        return web.json_response({"error": "Internal server error"}, status=500)


def create_app(services: HaikuFeedServices) -> web.Application:
    """Build the aiohttp application around already-wired services."""
    app = web.Application(middlewares=[error_middleware])
    app[SERVICES_KEY] = services
    app[LOGGER_KEY] = create_execution_logger("server")
    app.router.add_get("/api/haikus", stream_haikus)
    app.router.add_post("/api/translate", translate)
    app.router.add_get("/api/translations", list_translations)
    return app


def run_server(config: Config | None = None) -> None:
    """Check configuration, then serve until interrupted.

    Raises:
        ConfigurationError: If credentials or feed sources are missing
    """
    config = config or Config()
    execution_id = f"server_{datetime.now(UTC).strftime('%Y%m%d_%H%M%S_%f')}"
    logger = create_execution_logger("main", execution_id)

    config.require_credentials()
    services = build_services(config, execution_id=execution_id)
    server_config = services.server_config

    logger.info(
        "Starting haiku feed server",
        host=server_config.host,
        port=server_config.port,
        poll_interval_seconds=server_config.poll_interval_seconds,
    )
    web.run_app(
        create_app(services),
        host=server_config.host,
        port=server_config.port,
        print=None,
    )
