"""Every response body is wrapped as `{<key>: <payload>}`."""

from typing import Any, Dict

from fastapi.encoders import jsonable_encoder


def wrap(payload: Any, key: str) -> Dict[str, Any]:
    return {key: jsonable_encoder(payload)}
