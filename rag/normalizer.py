"""
Turn raw model text into a validated diagnosis payload.

Extraction is a greedy regex match with known failure modes:

- prose after the closing brace defeats the match, so the whole text is
  parsed and fails;
- braces in prose before the JSON object are swallowed into the candidate,
  which then fails to parse.

Both surface as ModelOutputParseError; nothing here retries.
"""
import json
import math
import re
from typing import Any, List, Sequence, Tuple

from pydantic import ValidationError

from rag.errors import ModelOutputParseError, SchemaValidationError
from rag.schemas import DiagnosisOutput, EvidenceItem

_FENCE_RE = re.compile(r"```json|```")
_OBJECT_RE = re.compile(r"\{[\s\S]*\}$")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def extract_json_candidate(text: str) -> str:
    """Greedy span from the first '{' to a '}' that ends the text, else the text itself."""
    m = _OBJECT_RE.search(text)
    return m.group(0) if m else text


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if math.isinf(value):
        raise ValueError(f"{literal} is out of float range")
    return value


def parse_model_json(raw: str) -> Any:
    """Strict JSON: NaN, Infinity and overflowing numbers are parse errors, not values."""
    text = strip_code_fences(raw)
    try:
        return json.loads(extract_json_candidate(text), parse_constant=_reject_constant, parse_float=_finite_float)
    except ValueError:
        raise ModelOutputParseError(text)


def validate_diagnosis_json(obj: Any) -> Tuple[bool, List[str]]:
    try:
        DiagnosisOutput.model_validate(obj)
    except ValidationError as e:
        errors = []
        for err in e.errors():
            loc = ".".join(str(p) for p in err["loc"]) or "<root>"
            errors.append(f"{loc}: {err['msg']}")
        return False, errors
    return True, []


def normalize_model_output(raw: str, evidence: Sequence[EvidenceItem]) -> dict:
    parsed = parse_model_json(raw)
    ok, errors = validate_diagnosis_json(parsed)
    if not ok:
        raise SchemaValidationError(errors, parsed)
    parsed["_evidence"] = [e.model_dump() for e in evidence]
    return parsed
