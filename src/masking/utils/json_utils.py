"""JSON utilities for masked records."""

import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict


class MaskedDataEncoder(json.JSONEncoder):
    """JSON encoder that handles the value types masking rules produce.

    This encoder handles the following types:
    - datetime / date / time: Converted to ISO format string
    - Decimal: Converted to its exact string form
    - Enum: Converted to its value
    - set / tuple: Converted to list

    Example:
        ```python
        data = {"visit": datetime(2024, 1, 5), "amount": Decimal("10.50")}
        json_str = json.dumps(data, cls=MaskedDataEncoder)
        ```
    """
    def default(self, obj):
        if isinstance(obj, (datetime, date, time)):
            return obj.isoformat()
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, Enum):
            return obj.value
        if isinstance(obj, (set, frozenset, tuple)):
            return list(obj)
        return super().default(obj)


def dumps(data: Dict[str, Any], **kwargs) -> str:
    """Serialize masked data to a JSON string."""
    return json.dumps(data, cls=MaskedDataEncoder, **kwargs)
