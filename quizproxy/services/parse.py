import json, re
from typing import Any, Callable, List, Optional, Tuple

from loguru import logger
from pydantic import ValidationError

from ..errors import ParseError
from ..schemas import Question

_JSON_FENCE = re.compile(r"```json[ \t]*\n?(.*?)```", re.S | re.I)
_ANY_FENCE = re.compile(r"```[\w+-]*[ \t]*\n?(.*?)```", re.S)


def extract_candidate(s: str) -> str:
    """
    Best-effort JSON slice out of model text.

    Order: first ```json fence, first fence of any tag, a bare array
    (text starting with '[', up to the last ']'), first '{' .. last '}',
    then the whole text. The brace scan is lexical only; stray braces in prose
    around the object will corrupt it.
    """
    s = s or ""
    m = _JSON_FENCE.search(s) or _ANY_FENCE.search(s)
    if m:
        return m.group(1)
    stripped = s.strip()
    if stripped.startswith("["):
        end = stripped.rfind("]")
        return stripped[:end + 1] if end != -1 else stripped
    start, end = s.find("{"), s.rfind("}")
    if start != -1 and end > start:
        return s[start:end + 1]
    return s


def _first_list_value(obj: dict) -> Optional[list]:
    return next((v for v in obj.values() if isinstance(v, list)), None)


def _named(key: str) -> Callable[[dict], Optional[list]]:
    def lookup(obj: dict) -> Optional[list]:
        v = obj.get(key)
        if isinstance(v, list):
            return v
        if isinstance(v, dict) and v:
            # questions keyed by id: {"q1": {...}, "q2": {...}}
            return list(v.values())
        return None
    return lookup


# tried in order, first hit wins
SEQUENCE_LOOKUPS: Tuple[Tuple[str, Callable[[dict], Optional[list]]], ...] = (
    ("first-list-property", _first_list_value),
    ("questions", _named("questions")),
    ("data", _named("data")),
)


def select_items(parsed: Any) -> List[Any]:
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for name, lookup in SEQUENCE_LOOKUPS:
            found = lookup(parsed)
            if found is not None:
                logger.debug(f"[parse] question list found via {name}")
                return found
        logger.warning(f"[parse] no question list in object; keys={list(parsed.keys())}")
        return []
    logger.warning(f"[parse] model returned a bare {type(parsed).__name__}, no questions")
    return []


def decode_payload(s: str) -> Any:
    candidate = extract_candidate(s).strip()
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.error(f"[parse] model output is not JSON: {e}")
        raise ParseError(f"Could not parse JSON from model output: {e}") from e


def parse_question_items(s: str, expected_total: Optional[int] = None) -> List[Any]:
    items = select_items(decode_payload(s))
    if expected_total is not None and len(items) != expected_total:
        logger.warning(f"[parse] got {len(items)} questions, requested {expected_total}")
    return items


def coerce_questions(items: List[Any]) -> List[Question]:
    out: List[Question] = []
    for idx, item in enumerate(items):
        try:
            out.append(Question.model_validate(item))
        except ValidationError as e:
            logger.error(f"[parse] question #{idx} does not match schema: {e.error_count()} error(s)")
            raise ParseError(f"Question #{idx} does not match schema: {e}") from e
    return out


def parse_quiz(s: str, expected_total: Optional[int] = None) -> List[Question]:
    return coerce_questions(parse_question_items(s, expected_total))
