"""Serializers used by the persistent cache."""

import json
from typing import Any, Protocol

from pydantic import TypeAdapter


class CacheCodec(Protocol):
    """A (de)serializer pair turning values into storable text."""

    def dumps(self, value: Any) -> str: ...

    def loads(self, payload: str) -> Any: ...


class JSONCodec:
    """Plain JSON. Values must already be JSON-compatible."""

    def dumps(self, value: Any) -> str:
        return json.dumps(value)

    def loads(self, payload: str) -> Any:
        return json.loads(payload)


class ModelCodec:
    """Typed codec backed by a pydantic ``TypeAdapter``.

    Values are validated back into ``type_`` on read, so models, datetimes and
    nested containers survive a process restart::

        cache.register_codec("news", ModelCodec(list[NewsItem]))
    """

    def __init__(self, type_: Any):
        self.type_ = type_
        self._adapter = TypeAdapter(type_)

    def dumps(self, value: Any) -> str:
        return self._adapter.dump_json(value).decode("utf-8")

    def loads(self, payload: str) -> Any:
        return self._adapter.validate_json(payload)
