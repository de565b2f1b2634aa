import json

import pytest

from captioner.exceptions import CountMismatch, MalformedResponse, TransientServiceError
from captioner.translator import ChatTranslator


class StubChatClient:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def chat(self, model, messages, response_format=None):
        self.calls.append({"model": model, "messages": messages, "response_format": response_format})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def make(client, executor):
    return ChatTranslator(client, executor, model_name="gpt-4o-mini")


def test_batch_request_payload(executor):
    client = StubChatClient(['{"translations": ["早安", "你好"]}'])

    assert make(client, executor).translate_batch(["おはよう", "こんにちは"]) == ["早安", "你好"]

    call = client.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    system, user = call["messages"]
    assert system["role"] == "system"
    assert "Japanese" in system["content"] and "Traditional Chinese (Taiwan)" in system["content"]
    payload = json.loads(user["content"])
    assert payload["items"] == ["おはよう", "こんにちは"]
    assert payload["source_language"] == "ja"
    assert payload["target_language"] == "zh-TW"
    assert '{"translations": string[]}' in payload["instruction"]


def test_batch_accepts_fenced_reply(executor):
    client = StubChatClient(['```json\n{"translations": ["a"]}\n```'])
    assert make(client, executor).translate_batch(["x"]) == ["a"]


def test_batch_count_mismatch(executor):
    client = StubChatClient(['{"translations": ["only one"]}'])
    with pytest.raises(CountMismatch):
        make(client, executor).translate_batch(["x", "y"])


def test_batch_unparseable(executor):
    client = StubChatClient(["Sorry, I can't help with that."])
    with pytest.raises(MalformedResponse):
        make(client, executor).translate_batch(["x"])


def test_batch_retries_transient_errors(executor, sleeps):
    client = StubChatClient([TransientServiceError("502", status_code=502), '{"translations": ["a"]}'])
    assert make(client, executor).translate_batch(["x"]) == ["a"]
    assert sleeps == [2.0]


def test_single_line_strips_quotes(executor):
    client = StubChatClient(['  "早安"  '])
    assert make(client, executor).translate("おはよう") == "早安"
    call = client.calls[0]
    assert call["response_format"] is None
    assert call["messages"][1] == {"role": "user", "content": "おはよう"}
    assert "without quotes" in call["messages"][0]["content"]


def test_single_line_empty_reply_is_malformed(executor):
    client = StubChatClient(['""'])
    with pytest.raises(MalformedResponse):
        make(client, executor).translate("おはよう")


def test_blank_source_line_skips_the_service(executor):
    client = StubChatClient([])
    assert make(client, executor).translate("   ") == ""
    assert client.calls == []


def test_custom_language_names(executor):
    client = StubChatClient(['{"translations": ["hi"]}'])
    translator = ChatTranslator(
        client, executor, source_lang="ko", target_lang="en", source_name="Korean", target_name="English"
    )
    translator.translate_batch(["안녕"])
    assert "Translate Korean to English" in client.calls[0]["messages"][0]["content"]


def test_call_sites_use_their_own_classifiers(executor, sleeps):
    client = StubChatClient([
        TransientServiceError("503", status_code=503),
        '{"translations": ["a"]}',
        TransientServiceError("503", status_code=503),
    ])
    translator = ChatTranslator(client, executor, single_is_transient=lambda e: False)

    assert translator.translate_batch(["x"]) == ["a"]
    with pytest.raises(TransientServiceError):
        translator.translate("y")
    assert len(client.calls) == 3
    assert sleeps == [2.0]
