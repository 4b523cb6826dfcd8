import json
import re
from typing import Any, Dict

from cvmatch.utils.exceptions import ResponseParseFailed

_CODE_FENCE = re.compile(r"```(?:json)?\n?")


def extract_json_object(s: str) -> Dict[str, Any]:
    """Parse the outermost {...} span of a model reply.

    Code fences and any commentary around the object are ignored.
    """
    if not s:
        raise ResponseParseFailed("Empty response from analysis service", raw_response=s or "")

    cleaned = _CODE_FENCE.sub("", s)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise ResponseParseFailed("No valid JSON object found in response", raw_response=s)

    try:
        return json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise ResponseParseFailed(
            "Failed to parse analysis service response as JSON", raw_response=s, cause=e
        ) from e


def mask_secret(secret: str) -> str:
    if not secret or len(secret) <= 8:
        return "****"
    return f"{secret[:4]}...{secret[-4:]}"
