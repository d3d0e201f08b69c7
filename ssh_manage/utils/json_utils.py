import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

# Matches the pretty-printed layout the chat bot already parses
PAYLOAD_INDENT = 4


class EnhancedJSONEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, Enum):
            return obj.value
        # Pydantic models serialize through their aliases
        elif hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json", by_alias=True)
        return super().default(obj)


def dumps(obj: Any, **kwargs) -> str:
    """JSON dumps with Decimal, datetime, Enum and Pydantic support."""
    return json.dumps(obj, cls=EnhancedJSONEncoder, **kwargs)


def dumps_payload(obj: Any) -> str:
    """Render a command response the way it is printed on stdout."""
    return dumps(obj, indent=PAYLOAD_INDENT)
