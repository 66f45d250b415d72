# prompts.py

THINKING_PROMPT = "Think step by step and show your reasoning process."
REASONING_MARKER = "[Reasoning enabled]\n"


def _append_text(content, text: str):
    """在消息内容末尾追加文本，兼容字符串和多段内容两种格式。"""
    if isinstance(content, list):
        return content + [{"type": "text", "text": text}]
    return (content or "") + text


def inject_thinking_prompt(messages: list) -> list:
    """
    注入思考提示词。首条消息不是 system 时在最前面插入一条 system 消息；
    否则把提示词换行追加到已有 system 消息的内容后面。

    Args:
        messages (list): 原始消息列表，不会被修改。

    Returns:
        list: 新的消息列表。空列表原样返回。
    """
    if not messages:
        return messages

    first = messages[0]
    if first.get("role") != "system":
        return [{"role": "system", "content": THINKING_PROMPT}, *messages]

    merged = dict(first)
    merged["content"] = _append_text(first.get("content"), "\n" + THINKING_PROMPT)
    return [merged, *messages[1:]]


def prefix_reasoning(content) -> str:
    return REASONING_MARKER + (content or "")
