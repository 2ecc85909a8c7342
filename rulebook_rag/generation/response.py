"""
Tagged model results and the rule for turning each into answer text.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Union


@dataclass(frozen=True)
class TextResult:
    text: str


@dataclass(frozen=True)
class StructuredResult:
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.fields["text"]


@dataclass(frozen=True)
class OpaqueResult:
    raw: Any = None


ModelResult = Union[TextResult, StructuredResult, OpaqueResult]


def classify_result(raw: Any) -> ModelResult:
    if isinstance(raw, str):
        return TextResult(raw)
    if isinstance(raw, dict) and isinstance(raw.get("text"), str):
        return StructuredResult(dict(raw))
    return OpaqueResult(raw)


def extract_answer(result: ModelResult) -> str:
    if isinstance(result, TextResult):
        return result.text
    if isinstance(result, StructuredResult):
        return result.text
    return json.dumps(result.raw, default=str)
