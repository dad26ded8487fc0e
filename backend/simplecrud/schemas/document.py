"""
simple-crud — Request Body Schema
==================================

What:  The structured dynamic-JSON type for request bodies and stored documents.
How:   Pydantic's JsonValue (null | bool | number | string | array | object)
       wrapped in an object at the top level, validated straight from bytes.

Body parsing rules:
    b""                → None ("no body", distinct from {})
    b'{"a": 1}'        → {"a": 1}
    b"[1, 2]", b"null" → ValidationError (a body must be a JSON object)
    b"{oops"           → ValidationError
"""

from typing import Dict, Optional

from pydantic import ConfigDict, JsonValue, TypeAdapter

Document = Dict[str, JsonValue]

# NaN / Infinity are not JSON; rejecting them keeps every stored value serializable
document_adapter: TypeAdapter[Document] = TypeAdapter(
    Document, config=ConfigDict(allow_inf_nan=False)
)


def parse_body(raw: bytes) -> Optional[Document]:
    """
    Parse a raw request body.

    Raises:
        pydantic.ValidationError: the body is not a JSON object.
    """
    if not raw:
        return None
    return document_adapter.validate_json(raw)
