# =======================================================================================
# gatepass/services/credential_codec.py - QR Payload Encoding
# =======================================================================================
"""
Pure text <-> user id transform for the QR credential.

The payload is a JSON object whose ``id`` field carries the user id, written as
a string by the card generator (``{"id": "40123456"}``). Numbers are accepted
too. Decoding never touches the store.
"""
import json
from typing import Union

from pydantic import ValidationError

from ..models.schemas import CredentialPayload
from ..utils.exceptions import DecodeError, DecodeErrorReason
from ..utils.validators import is_valid_user_id


class CredentialCodec:
    """Encodes and decodes scan payloads."""

    @staticmethod
    def encode(user_id: int) -> str:
        if not is_valid_user_id(user_id):
            raise ValueError(f"Invalid user id: {user_id!r}")
        return json.dumps({"id": str(user_id)})

    @staticmethod
    def decode(payload: Union[str, bytes]) -> int:
        """Return the user id in ``payload`` or raise DecodeError."""
        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise DecodeError(DecodeErrorReason.MALFORMED, "Payload is not UTF-8 text") from exc

        # bools are ints in python; reject them before pydantic coerces
        try:
            raw = json.loads(payload)
        except (TypeError, ValueError) as exc:
            raise DecodeError(DecodeErrorReason.MALFORMED, "Payload is not JSON") from exc
        if not isinstance(raw, dict):
            raise DecodeError(DecodeErrorReason.MALFORMED, "Payload is not a JSON object")
        if isinstance(raw.get("id"), bool):
            raise DecodeError(DecodeErrorReason.MALFORMED, "Identity field is not a number")

        try:
            credential = CredentialPayload.model_validate(raw)
        except ValidationError as exc:
            raise DecodeError(DecodeErrorReason.MALFORMED, "Identity field is not a valid id") from exc

        if credential.id is None:
            raise DecodeError(DecodeErrorReason.MISSING_FIELD, "Identity field is missing")
        return credential.id


codec = CredentialCodec()
encode = codec.encode
decode = codec.decode
