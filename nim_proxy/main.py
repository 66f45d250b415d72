import json
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.concurrency import iterate_in_threadpool, run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from .config import Settings, load_settings
from .errors import ProxyError, error_body
from .models import ChatCompletionRequest
from .translator import RequestTranslator
from .upstream import UpstreamClient

logger = logging.getLogger("nim_proxy")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO) -> None:
    """
    给 nim_proxy 日志挂上独立的输出，不依赖启动方式。
    uvicorn 只配置自己的 logger，不加这一步时 INFO 日志会被丢弃。
    """
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    if logger.level == logging.NOTSET:
        logger.setLevel(level)
    logger.propagate = False


async def relay_stream(response, request: Request):
    """逐块转发上游字节流，不解析、不改写。"""
    try:
        async for chunk in iterate_in_threadpool(response.iter_content(chunk_size=None)):
            if await request.is_disconnected():  # 检测客户端是否断开
                logger.info("客户端已断开，停止流式传输")
                break
            if chunk:
                yield chunk
    finally:
        response.close()
    logger.debug("流式传输结束")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    setup_logging()

    app = FastAPI(title="NVIDIA NIM Proxy")
    app.state.settings = settings
    app.state.upstream = UpstreamClient(settings)
    app.state.translator = RequestTranslator(settings)

    # 允许所有来源的跨域请求
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup():
        logger.info("NVIDIA NIM Proxy server running on port %s", settings.port)
        logger.info("Health check: http://localhost:%s/", settings.port)
        logger.info("转换环节: %s", ", ".join(app.state.translator.stage_names))
        if not settings.api_key:
            logger.warning("WARNING: NVIDIA_API_KEY environment variable is not set!")

    @app.exception_handler(ProxyError)
    async def proxy_error_handler(request: Request, exc: ProxyError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content=error_body(message, "invalid_request_error"))

    @app.exception_handler(Exception)
    async def server_error_handler(request: Request, exc: Exception):
        logger.exception("Server error")
        return JSONResponse(status_code=500, content=error_body("Internal server error", "server_error"))

    @app.get("/")
    async def health():
        return {
            "status": "ok",
            "message": "NVIDIA NIM Proxy Server",
            "endpoints": {
                "chat": "/v1/chat/completions",
                "models": "/v1/models",
            },
        }

    @app.get("/v1/models")
    async def list_models(request: Request):
        upstream = await run_in_threadpool(request.app.state.upstream.list_models)
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("Content-Type", "application/json"),
        )

    @app.post("/v1/chat/completions")
    async def chat_completions(chat_request: ChatCompletionRequest, request: Request):
        translator: RequestTranslator = request.app.state.translator
        upstream: UpstreamClient = request.app.state.upstream

        payload = translator.build_payload(chat_request)
        logger.info("Proxying request to NVIDIA NIM: %s", {
            "originalModel": chat_request.model,
            "mappedModel": payload["model"],
            "messageCount": len(payload["messages"]),
            "thinkingMode": settings.enable_thinking_mode,
        })
        logger.debug("┏━━ 上游请求 ━━━━━━━━━━━\n%s\n┗━━━━━━━━━━━━━━━━━━━━━━━",
                     json.dumps(payload, indent=2, ensure_ascii=False))

        if payload["stream"]:
            response = await run_in_threadpool(upstream.open_chat_stream, payload)
            return StreamingResponse(
                relay_stream(response, request),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
            )

        response_data = await run_in_threadpool(upstream.chat_completion, payload)
        logger.debug("┏━━ 原始响应 ━━━━━━━━━\n%s\n┗━━━━━━━━━━━━━━━━━━━━━",
                     json.dumps(response_data, indent=2, ensure_ascii=False))
        return translator.process_response(response_data)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    from dotenv import load_dotenv

    load_dotenv()
    config = load_settings()
    uvicorn.run("nim_proxy.main:app", host=config.host, port=config.port)
