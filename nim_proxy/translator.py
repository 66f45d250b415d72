import copy
import logging
import time
from typing import Any, Callable, Dict, List

from .config import Settings
from .errors import InvalidUpstreamResponse
from .models import ChatCompletionRequest, resolve_model
from .prompts import inject_thinking_prompt, prefix_reasoning

logger = logging.getLogger("nim_proxy.translator")


def _identity(data: dict) -> dict:
    return data


def _map_model(payload: dict) -> dict:
    payload["model"] = resolve_model(payload["model"])
    return payload


def _inject_thinking(payload: dict) -> dict:
    payload["messages"] = inject_thinking_prompt(payload["messages"])
    return payload


def _mark_reasoning(body: dict) -> dict:
    first = body["choices"][0]
    message = first.get("message") if isinstance(first, dict) else None
    if isinstance(message, dict):
        message["content"] = prefix_reasoning(message.get("content"))
    return body


class RequestTranslator:
    """
    请求/响应转换链。每个环节包含前置处理（改写上游请求）和后置处理
    （改写上游响应）；前置按注册顺序执行，后置按相反顺序执行。
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.stages: List[Dict[str, Callable]] = []

        self.add_stage("model_alias", pre=_map_model)
        if settings.enable_thinking_mode:
            self.add_stage("thinking_prompt", pre=_inject_thinking)
        if settings.show_reasoning:
            self.add_stage("reasoning_marker", post=_mark_reasoning)

    def add_stage(self, name: str, pre: Callable = _identity, post: Callable = _identity):
        self.stages.append({"name": name, "pre": pre, "post": post})
        logger.debug("加载环节: %s", name)

    @property
    def stage_names(self) -> List[str]:
        return [stage["name"] for stage in self.stages]

    def build_payload(self, request: ChatCompletionRequest) -> dict:
        payload = {
            "model": request.model,
            "messages": request.messages,
            "temperature": request.temperature,
            "top_p": request.top_p,
            "max_tokens": request.max_tokens,
            "stream": request.stream,
        }
        for stage in self.stages:
            start = time.monotonic()
            payload = stage["pre"](payload)
            cost = (time.monotonic() - start) * 1000
            logger.debug("前置处理 [%s] (%.2fms)", stage["name"], cost)
        return payload

    def process_response(self, body: Any) -> dict:
        """
        校验非流式响应并执行后置处理链。

        Raises:
            InvalidUpstreamResponse: 响应不是对象，或 choices 为空/缺失。
        """
        choices = body.get("choices") if isinstance(body, dict) else None
        if not isinstance(choices, list) or not choices or choices[0] is None:
            logger.error("Invalid response structure from NVIDIA API")
            raise InvalidUpstreamResponse()

        body = copy.deepcopy(body)
        for stage in reversed(self.stages):
            start = time.monotonic()
            body = stage["post"](body)
            cost = (time.monotonic() - start) * 1000
            logger.debug("后置处理 [%s] (%.2fms)", stage["name"], cost)
        return body
