import logging

import requests

from .config import Settings
from .errors import InvalidUpstreamResponse, UpstreamHTTPError, UpstreamTransportError

logger = logging.getLogger("nim_proxy.upstream")


def _error_message(response: requests.Response, fallback: str) -> str:
    """优先取上游 JSON 中的 detail，其次 error.message，最后退回 fallback。"""
    try:
        data = response.json()
    except ValueError:
        return fallback
    if isinstance(data, dict):
        if data.get("detail"):
            return str(data["detail"])
        error = data.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return fallback


class UpstreamClient:
    """
    NVIDIA NIM API 的同步客户端，调用方负责放入线程池执行。
    每次调用都直接使用 requests.post/get，不保留 Session，请求之间不共享 cookie。
    """

    def __init__(self, settings: Settings):
        self.base_url = settings.base_url.rstrip("/")
        self.api_key = settings.api_key

    def _headers(self, accept: str = "application/json") -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": accept,
        }

    def _post_chat(self, payload: dict, stream: bool) -> requests.Response:
        accept = "text/event-stream" if stream else "application/json"
        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=self._headers(accept),
                stream=stream,
            )
        except requests.exceptions.RequestException as e:
            logger.error("上游API连接失败: %s", e)
            raise UpstreamTransportError(str(e)) from e

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error("上游API错误: %s - %s", response.status_code, response.text)
            message = _error_message(response, str(e))
            response.close()
            raise UpstreamHTTPError(response.status_code, message) from e

        # raise_for_status 不处理 3xx，未跟随的重定向同样按上游错误返回
        if response.status_code >= 300:
            logger.error("上游API返回非 2xx: %s", response.status_code)
            fallback = f"{response.status_code} {response.reason or 'Redirection'} for url: {response.url}"
            message = _error_message(response, fallback)
            response.close()
            raise UpstreamHTTPError(response.status_code, message)
        return response

    def chat_completion(self, payload: dict) -> dict:
        response = self._post_chat(payload, stream=False)
        logger.debug("收到静态响应 (%d bytes)", len(response.content))
        try:
            return response.json()
        except ValueError as e:
            raise InvalidUpstreamResponse() from e

    def open_chat_stream(self, payload: dict) -> requests.Response:
        """打开流式请求，状态码已校验；返回的响应需由调用方关闭。"""
        return self._post_chat(payload, stream=True)

    def list_models(self) -> requests.Response:
        try:
            return requests.get(
                f"{self.base_url}/models",
                headers={"Authorization": f"Bearer {self.api_key}", "Accept": "application/json"},
            )
        except requests.exceptions.RequestException as e:
            logger.error("获取模型列表失败: %s", e)
            raise UpstreamTransportError(str(e)) from e
