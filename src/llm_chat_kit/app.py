"""FastAPI server: provider discovery, model listing, prompt library and the streaming chat relay."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

from dotenv import load_dotenv

# Load env first so downstream imports see API keys
load_dotenv(".env", override=False)

import uvicorn
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError
from starlette.concurrency import iterate_in_threadpool

from . import __version__
from .config import AppConfig
from .errors import ChatKitError
from .model_lister import ModelLister
from .prompts import PromptStore
from .providers import ProviderRegistry, get_registry
from .relay import ChatRelay, stream_events
from .schemas import (
    ChatRequest,
    ErrorResponse,
    PromptIn,
    PromptListResponse,
    PromptResponse,
    ProviderDefaults,
    ProviderInfo,
    ProvidersResponse,
)
from .startup import print_startup_report, run_startup_checks
from .utils.logger import setup_logger

app_config = AppConfig.from_env()
logger = setup_logger(level=app_config.log_level)
route_logger = logging.getLogger(__name__)

ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Provider not enabled"},
}


def _ndjson(events: Iterator[Dict[str, Any]]) -> Iterator[str]:
    for event in events:
        yield json.dumps(event) + "\n"


def _validation_message(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid chat request: " + "; ".join(parts)


def create_app(
    registry: Optional[ProviderRegistry] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    prompt_store: Optional[PromptStore] = None,
    config: Optional[AppConfig] = None,
) -> FastAPI:
    """Build the API. *env* pins the environment snapshot used for enablement (defaults to ``os.environ``)."""

    registry = registry or get_registry()
    config = config or app_config

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # main() runs and prints the checks itself before handing over to uvicorn
        if not app.state.startup_checked:
            result = run_startup_checks(registry, env)
            for check in result.checks:
                level = {"ok": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}[check.status]
                route_logger.log(level, "[startup] %s: %s", check.name, check.message)
            app.state.startup_checked = True
        yield
        route_logger.info("Shutting down...")

    app = FastAPI(title="LLM Chat Kit", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.startup_checked = False
    app.state.registry = registry
    app.state.env = env
    app.state.relay = ChatRelay(registry, env)
    app.state.model_lister = ModelLister(registry, env)
    app.state.prompts = prompt_store or PromptStore(registry.prompts)

    @app.exception_handler(ChatKitError)
    async def _chat_kit_error(request: Request, exc: ChatKitError):
        route_logger.warning("[%s %s] %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    # -----------------------------------------------------------------------
    # Service endpoints
    # -----------------------------------------------------------------------

    @app.get("/")
    async def root():
        return {"message": "LLM Chat Kit relay is running. Use GET /providers and POST /chat."}

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/providers", response_model=ProvidersResponse)
    async def list_providers():
        enabled = registry.enabled_providers(app.state.env)
        return ProvidersResponse(
            providers=[ProviderInfo(name=name, docs_url=registry.get_config(name).docs_url) for name in enabled],
            defaults=ProviderDefaults(
                provider=enabled[0] if enabled else None,
                temperature=registry.defaults.temperature,
                max_tokens=registry.defaults.max_tokens,
            ),
        )

    @app.get("/models/{provider}", responses=ERROR_RESPONSES)
    def list_models(provider: str):
        # Sync handler: FastAPI runs it in the threadpool, so the Ollama request never blocks the loop
        return app.state.model_lister.list_models(provider)

    # -----------------------------------------------------------------------
    # Chat relay
    # -----------------------------------------------------------------------

    @app.post("/chat", responses=ERROR_RESPONSES)
    async def chat(request: ChatRequest) -> StreamingResponse:
        # Validate BEFORE creating StreamingResponse so a disabled provider is a 400, not a broken stream
        stream = app.state.relay.open_stream(request)
        return StreamingResponse(_ndjson(stream_events(stream)), media_type="application/x-ndjson")

    @app.websocket("/ws")
    async def websocket_chat(ws: WebSocket):
        await ws.accept()
        try:
            while True:
                try:
                    data = await ws.receive_json()
                except ValueError:
                    await ws.send_json({"type": "error", "message": "Invalid chat request: message is not valid JSON"})
                    await ws.send_json({"type": "done"})
                    continue
                try:
                    request = ChatRequest.model_validate(data)
                    stream = app.state.relay.open_stream(request)
                except ValidationError as exc:
                    await ws.send_json({"type": "error", "message": _validation_message(exc)})
                    await ws.send_json({"type": "done"})
                    continue
                except ChatKitError as exc:
                    await ws.send_json({"type": "error", "message": str(exc)})
                    await ws.send_json({"type": "done"})
                    continue

                try:
                    last: Dict[str, Any] = {}
                    async for event in iterate_in_threadpool(stream_events(stream)):
                        await ws.send_json(event)
                        last = event
                    if last.get("type") != "done":
                        await ws.send_json({"type": "done"})
                finally:
                    stream.close()
        except WebSocketDisconnect:
            route_logger.debug("[ws] client disconnected")
        except Exception:
            route_logger.exception("WS handler crashed")
            await ws.close()

    # -----------------------------------------------------------------------
    # Prompt library
    # -----------------------------------------------------------------------

    @app.get("/prompts", response_model=PromptListResponse)
    def list_prompts():
        return {"prompts": app.state.prompts.list_prompts()}

    @app.post("/prompts", response_model=PromptResponse, status_code=status.HTTP_201_CREATED)
    def create_prompt(body: PromptIn):
        prompt = app.state.prompts.create(body.name, body.prompt)
        route_logger.info("[prompts] created %s", prompt["id"])
        return {"prompt": prompt}

    @app.put("/prompts/{prompt_id}", response_model=PromptResponse)
    def update_prompt(prompt_id: str, body: PromptIn):
        return {"prompt": app.state.prompts.update(prompt_id, body.name, body.prompt)}

    @app.delete("/prompts/{prompt_id}")
    def delete_prompt(prompt_id: str):
        app.state.prompts.delete(prompt_id)
        route_logger.info("[prompts] deleted %s", prompt_id)
        return {"success": True}

    return app


app = create_app()


# ---------- CLI ----------
def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the LLM chat relay server.")
    parser.add_argument("--host", default=app_config.host, help="Host interface to bind.")
    parser.add_argument("--port", type=int, default=app_config.port, help="Port to bind.")
    parser.add_argument("--log-level", default=app_config.log_level, help="Log level (DEBUG, INFO, ...).")
    parser.add_argument("--skip-checks", action="store_true", help="Start without running startup checks.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    args = parse_args(argv)
    logger.setLevel(args.log_level.upper())

    if not args.skip_checks:
        result = run_startup_checks()
        print_startup_report(result)
        if not result.can_start:
            sys.exit(1)
    app.state.startup_checked = True

    logger.info("Starting chat relay on %s:%d", args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
