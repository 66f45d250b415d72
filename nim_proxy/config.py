import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict

NVIDIA_BASE_URL = "https://integrate.api.nvidia.com/v1"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    base_url: str = NVIDIA_BASE_URL
    host: str = "0.0.0.0"
    port: int = 8000
    show_reasoning: bool = False
    enable_thinking_mode: bool = False


def _flag(value: Optional[str]) -> bool:
    # 只有字符串 "true" 才视为开启
    return value == "true"


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    从环境变量构建配置，启动时调用一次。

    Args:
        environ: 可选的变量映射，默认读取 os.environ。

    Returns:
        Settings: 不可变的配置对象。
    """
    env = os.environ if environ is None else environ
    return Settings(
        api_key=env.get("NVIDIA_API_KEY") or None,
        port=int(env.get("PORT") or 8000),
        show_reasoning=_flag(env.get("SHOW_REASONING")),
        enable_thinking_mode=_flag(env.get("ENABLE_THINKING_MODE")),
    )
