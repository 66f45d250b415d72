import io
import json

import requests


class FakeRaw:
    """Stands in for a urllib3 response; yields chunks exactly as given."""

    def __init__(self, chunks):
        self.chunks = list(chunks)
        self.closed = False

    def stream(self, chunk_size, decode_content=True):
        yield from self.chunks

    def close(self):
        self.closed = True


def make_response(status_code=200, body=None, content=None, content_type="application/json"):
    """Build a real requests.Response carrying a buffered body."""
    if content is None:
        content = json.dumps(body).encode("utf-8")
    response = requests.Response()
    response.status_code = status_code
    response._content = content
    response.raw = io.BytesIO(content)
    response.headers["Content-Type"] = content_type
    response.reason = "OK" if status_code < 400 else "Error"
    response.url = "https://integrate.api.nvidia.com/v1/chat/completions"
    return response


def make_stream_response(chunks, status_code=200):
    response = requests.Response()
    response.status_code = status_code
    response.raw = FakeRaw(chunks)
    response.headers["Content-Type"] = "text/event-stream"
    response.reason = "OK"
    response.url = "https://integrate.api.nvidia.com/v1/chat/completions"
    return response


def completion(content="hi"):
    return {
        "id": "chatcmpl-abc123",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "meta/llama-3.1-8b-instruct",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 10, "completion_tokens": 1, "total_tokens": 11},
    }
