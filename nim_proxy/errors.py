from typing import Optional


class ProxyError(Exception):
    """代理错误基类，统一转换为 {"error": {...}} 响应。"""

    status_code = 500
    error_type = "server_error"

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code

    def to_dict(self) -> dict:
        return error_body(self.message, self.error_type, self.code)


class UpstreamHTTPError(ProxyError):
    """上游返回非 2xx，沿用上游状态码。"""

    error_type = "nvidia_api_error"

    def __init__(self, status_code: int, message: str):
        super().__init__(message, status_code=status_code, code=status_code)


class InvalidUpstreamResponse(ProxyError):
    """上游响应结构不符合预期（缺少 choices），一律按 500 处理。"""

    error_type = "api_response_error"

    def __init__(self, message: str = "Invalid response from NVIDIA API"):
        super().__init__(message, status_code=500)


class UpstreamTransportError(ProxyError):
    error_type = "nvidia_api_error"

    def __init__(self, message: str):
        super().__init__(message, status_code=500)


def error_body(message: str, error_type: str, code: Optional[int] = None) -> dict:
    error = {"message": message, "type": error_type}
    if code is not None:
        error["code"] = code
    return {"error": error}
