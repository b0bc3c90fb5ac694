import json

import pytest

from tgupdater.exceptions.api import MalformedUpdateError
from tgupdater.schemas.response import ResponseEnvelope
from tgupdater.schemas.update import RawUpdate


class TestRawUpdate:
    def test_from_bytes_keeps_raw_body(self):
        raw = b'{"update_id": 3, "callback_query": {"id": "x"}}'
        update = RawUpdate.from_bytes(raw)

        assert update.update_id == 3
        assert update.raw == raw
        assert update.update_type == "callback_query"

    def test_from_payload_round_trips_content(self):
        payload = {"update_id": 9, "message": {"text": "ёж"}}
        update = RawUpdate.from_payload(payload)

        assert update.payload == payload
        assert json.loads(update.raw) == payload

    def test_is_immutable(self):
        update = RawUpdate.from_payload({"update_id": 1})

        with pytest.raises(Exception):
            update.update_id = 2

    @pytest.mark.parametrize(
        "raw",
        [b"not json", b"[1, 2]", b'{"message": {}}', b'{"update_id": "1"}', b'{"update_id": true}'],
    )
    def test_malformed_bytes(self, raw):
        with pytest.raises(MalformedUpdateError):
            RawUpdate.from_bytes(raw)

    def test_update_type_is_none_without_content(self):
        assert RawUpdate.from_payload({"update_id": 1}).update_type is None


class TestResponseEnvelope:
    def test_error_envelope(self):
        envelope = ResponseEnvelope.model_validate(
            {
                "ok": False,
                "error_code": 429,
                "description": "Too Many Requests: retry after 5",
                "parameters": {"retry_after": 5},
            }
        )

        assert envelope.ok is False
        assert envelope.result is None
        assert envelope.parameters == {"retry_after": 5}


class TestRawBytes:
    def test_from_payload_uses_compact_json(self):
        update = RawUpdate.from_payload({"update_id": 2, "message": {"text": "hi"}})

        assert update.raw == b'{"update_id":2,"message":{"text":"hi"}}'

    def test_from_bytes_keeps_formatting(self):
        raw = b'{\n  "update_id": 2,\n  "message": {"text": "hi"}\n}'
        update = RawUpdate.from_bytes(raw)

        assert update.raw == raw
        assert update.payload["message"] == {"text": "hi"}
