import json

import pytest

from gatepass.services.credential_codec import CredentialCodec, decode, encode
from gatepass.utils.exceptions import DecodeError, DecodeErrorReason


@pytest.mark.parametrize("user_id", [1, 7, 40123456, 2**53])
def test_round_trip(user_id):
    assert decode(encode(user_id)) == user_id


def test_encode_writes_id_as_string():
    assert json.loads(encode(40123456)) == {"id": "40123456"}


def test_decode_accepts_numeric_id():
    assert decode('{"id": 40123456}') == 40123456


def test_decode_accepts_bytes():
    assert decode(b'{"id": "12"}') == 12


def test_decode_ignores_extra_fields():
    assert decode('{"id": "12", "name": "Ana"}') == 12


@pytest.mark.parametrize("payload", ["{}", '{"name": "Ana"}', '{"id": null}'])
def test_missing_identity_field(payload):
    with pytest.raises(DecodeError) as exc_info:
        decode(payload)
    assert exc_info.value.reason is DecodeErrorReason.MISSING_FIELD


@pytest.mark.parametrize("payload", [
    "40123456x",
    "not json at all",
    "",
    "[1, 2]",
    '"40123456"',
    '{"id": "abc"}',
    '{"id": 0}',
    '{"id": -5}',
    '{"id": true}',
    '{"id": 1.5}',
    b"\xff\xfe",
])
def test_malformed_payloads(payload):
    with pytest.raises(DecodeError) as exc_info:
        decode(payload)
    assert exc_info.value.reason is DecodeErrorReason.MALFORMED


@pytest.mark.parametrize("bad_id", [0, -1, True, "12"])
def test_encode_rejects_invalid_ids(bad_id):
    with pytest.raises(ValueError):
        CredentialCodec.encode(bad_id)
