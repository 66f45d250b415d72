import copy

from nim_proxy.prompts import (
    REASONING_MARKER,
    THINKING_PROMPT,
    inject_thinking_prompt,
    prefix_reasoning,
)


def test_inserts_system_message_when_missing():
    messages = [{"role": "user", "content": "hello"}]
    result = inject_thinking_prompt(messages)
    assert result == [
        {"role": "system", "content": THINKING_PROMPT},
        {"role": "user", "content": "hello"},
    ]


def test_appends_to_existing_system_message():
    messages = [
        {"role": "system", "content": "You are terse."},
        {"role": "user", "content": "hello"},
    ]
    result = inject_thinking_prompt(messages)
    assert len(result) == 2
    assert result[0] == {"role": "system", "content": "You are terse.\n" + THINKING_PROMPT}
    assert result[1] == messages[1]


def test_only_the_leading_message_counts_as_system():
    messages = [
        {"role": "user", "content": "hello"},
        {"role": "system", "content": "late system"},
    ]
    result = inject_thinking_prompt(messages)
    assert [m["role"] for m in result] == ["system", "user", "system"]
    assert result[2]["content"] == "late system"


def test_input_is_not_mutated():
    messages = [{"role": "system", "content": "base"}, {"role": "user", "content": "q"}]
    before = copy.deepcopy(messages)
    inject_thinking_prompt(messages)
    assert messages == before


def test_empty_list_is_unchanged():
    assert inject_thinking_prompt([]) == []


def test_list_content_gets_text_part():
    messages = [{"role": "system", "content": [{"type": "text", "text": "base"}]}]
    result = inject_thinking_prompt(messages)
    assert result[0]["content"] == [
        {"type": "text", "text": "base"},
        {"type": "text", "text": "\n" + THINKING_PROMPT},
    ]


def test_prefix_reasoning():
    assert prefix_reasoning("hi") == REASONING_MARKER + "hi"
    assert prefix_reasoning("hi") == "[Reasoning enabled]\nhi"
    assert prefix_reasoning(None) == REASONING_MARKER
