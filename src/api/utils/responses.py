"""JSON responses serialized with orjson.

``ORJSONResponse`` is the application's default response class, so route
results and error bodies share one serializer with native datetime support
and sorted keys.
"""

from typing import Any

import orjson
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ORJSONResponse(JSONResponse):
    media_type = "application/json"

    def render(self, content: Any) -> bytes:  # noqa: ANN401
        """Serialize ``content``; pydantic models are dumped first."""
        if isinstance(content, BaseModel):
            content = content.model_dump(mode="json")
        return orjson.dumps(content, option=orjson.OPT_SORT_KEYS)
