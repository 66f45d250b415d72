from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, field_validator

# 客户端模型名 -> NVIDIA 上游模型 ID
MODEL_ALIASES = MappingProxyType({
    "gpt-3.5-turbo": "meta/llama-3.1-8b-instruct",
    "gpt-4": "meta/llama-3.1-70b-instruct",
    "gpt-4-turbo": "nvidia/llama-3.1-nemotron-70b-instruct",
    "llama-8b": "meta/llama-3.1-8b-instruct",
    "llama-70b": "meta/llama-3.1-70b-instruct",
    "deepseek": "deepseek-ai/deepseek-v3_2",
    "yi": "01-ai/yi-large",
    "nemotron": "nvidia/llama-3.1-nemotron-70b-instruct",
    "glm": "z-ai/glm4.7",
    "glm4.7": "z-ai/glm4.7",
})


def resolve_model(name: str) -> str:
    """查表替换模型名，未命中时原样返回。"""
    return MODEL_ALIASES.get(name, name)


class ChatCompletionRequest(BaseModel):
    model: str
    messages: list[dict[str, Any]]  # 原样保留 role/content 及其他字段
    temperature: float = 0.7
    top_p: float = 1
    max_tokens: int = 1024
    stream: bool = False

    @field_validator("temperature", "top_p", "max_tokens", "stream", mode="before")
    @classmethod
    def _null_to_default(cls, value, info):
        if value is None:
            return cls.model_fields[info.field_name].default
        return value
