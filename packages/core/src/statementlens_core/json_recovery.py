"""
Structured-Text Recovery for vision model output.

Models asked for "ONLY a JSON object" still wrap it in prose, fence it in
markdown, leave trailing commas or emit single quotes. ``recover_json`` runs
an ordered cascade of independent strategies and accepts the first one that
yields a JSON object:

1. strip boilerplate prefixes/suffixes, parse directly
2. fenced code block
3. balanced-brace candidates, longest first
4. first ``{`` to last ``}`` slice
5. textual repairs on that slice
6. line-by-line reconstruction by brace depth
7. regex salvage of flat ``key: value`` pairs

Only when every strategy misses does it raise ``RecoveryFailed``; no strategy
is allowed to raise past the cascade.
"""

import json
import re
from typing import Any, Callable, Optional

import structlog

from .exceptions import RecoveryFailed
from .models.extraction import ExtractionRecord

logger = structlog.get_logger()

DEFAULT_MAX_CANDIDATES = 3

BOILERPLATE_PREFIXES = (
    "Here is the JSON response:",
    "Here's the JSON response:",
    "The JSON response is:",
    "JSON response:",
    "Response:",
    "Here is the analysis:",
    "Here's the analysis:",
    "Analysis:",
    "Result:",
    "Output:",
    "Based on the analysis:",
    "Based on the document analysis:",
    "After analyzing the document:",
    "The extracted data is:",
    "Extracted data:",
    "Document analysis result:",
    "Financial analysis result:",
    "Credit analysis result:",
)

BOILERPLATE_SUFFIXES = (
    "This completes the analysis.",
    "End of analysis.",
    "Analysis complete.",
    "That's the complete analysis.",
    "This is the final result.",
    "End of JSON response.",
    "End of response.",
)

CODE_BLOCK_PATTERNS = (
    re.compile(r"```json\s*(\{.*?\})\s*```", re.DOTALL | re.IGNORECASE),
    re.compile(r"```[a-zA-Z]*\s*(\{.*?\})\s*```", re.DOTALL),
    re.compile(r"`(\{.*?\})`", re.DOTALL),
)

# "key": "string" | "key": number | "key": true/false/null, then bare keys
KEY_VALUE_PATTERNS = (
    re.compile(r'"(\w+)"\s*:\s*"([^"]*)"'),
    re.compile(r'"(\w+)"\s*:\s*(-?\d+(?:\.\d+)?)'),
    re.compile(r'"(\w+)"\s*:\s*(true|false|null)\b'),
    re.compile(r'(?<!["\w])([A-Za-z_]\w*)\s*:\s*"([^"]*)"'),
    re.compile(r'(?<!["\w])([A-Za-z_]\w*)\s*:\s*(-?\d+(?:\.\d+)?)'),
    re.compile(r'(?<!["\w])([A-Za-z_]\w*)\s*:\s*(true|false|null)\b'),
)

_LITERALS = {"true": True, "false": False, "null": None}

Strategy = Callable[[str], Optional[dict[str, Any]]]


# =============================================================================
# HELPERS
# =============================================================================


def _loads_object(text: str) -> Optional[dict[str, Any]]:
    """Parse text as JSON, returning it only if it is an object."""
    try:
        parsed = json.loads(text)
    except (json.JSONDecodeError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def strip_boilerplate(text: str) -> str:
    """Remove one known leading and one known trailing phrase."""
    cleaned = text.strip()
    lowered = cleaned.lower()
    for prefix in BOILERPLATE_PREFIXES:
        if lowered.startswith(prefix.lower()):
            cleaned = cleaned[len(prefix):].strip()
            break
    lowered = cleaned.lower()
    for suffix in BOILERPLATE_SUFFIXES:
        if lowered.endswith(suffix.lower()):
            cleaned = cleaned[: len(cleaned) - len(suffix)].strip()
            break
    return cleaned


def balanced_brace_spans(text: str) -> list[str]:
    """Every balanced ``{...}`` substring, nested ones included."""
    spans = []
    opened: list[int] = []
    for index, char in enumerate(text):
        if char == "{":
            opened.append(index)
        elif char == "}" and opened:
            start = opened.pop()
            spans.append(text[start : index + 1])
    return spans


def _outer_slice(text: str) -> Optional[str]:
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None
    return text[first : last + 1]


def repair_json_text(text: str) -> str:
    """Apply the common textual fixes for near-JSON model output."""
    repaired = re.sub(r",\s*}", "}", text)
    repaired = re.sub(r",\s*]", "]", repaired)
    repaired = re.sub(r"\s+", " ", repaired)
    repaired = re.sub(r"([{,]\s*)([A-Za-z_]\w*)\s*:", r'\1"\2":', repaired)
    repaired = re.sub(r":\s*'([^']*)'", r': "\1"', repaired)
    return repaired.strip()


def _salvage_value(raw: str) -> Any:
    if raw in _LITERALS:
        return _LITERALS[raw]
    if re.fullmatch(r"-?\d+", raw):
        return int(raw)
    if re.fullmatch(r"-?\d+\.\d+", raw):
        return float(raw)
    return raw


# =============================================================================
# STRATEGIES
# =============================================================================


def parse_direct(text: str) -> Optional[dict[str, Any]]:
    """Strategy 1: the cleaned text is itself a JSON object."""
    return _loads_object(text)


def parse_code_block(text: str) -> Optional[dict[str, Any]]:
    """Strategy 2: a fenced (optionally language-tagged) code block."""
    for pattern in CODE_BLOCK_PATTERNS:
        match = pattern.search(text)
        if match:
            parsed = _loads_object(match.group(1).strip())
            if parsed is not None:
                return parsed
    return None


def make_balanced_candidates(max_candidates: int) -> Strategy:
    """Strategy 3: balanced-brace substrings, longest first."""

    def parse_balanced_candidates(text: str) -> Optional[dict[str, Any]]:
        candidates = sorted(balanced_brace_spans(text), key=len, reverse=True)
        for candidate in candidates[:max_candidates]:
            parsed = _loads_object(candidate.strip())
            if parsed is not None:
                return parsed
        return None

    return parse_balanced_candidates


def parse_outer_slice(text: str) -> Optional[dict[str, Any]]:
    """Strategy 4: first opening brace through last closing brace."""
    sliced = _outer_slice(text)
    return _loads_object(sliced) if sliced else None


def parse_repaired_slice(text: str) -> Optional[dict[str, Any]]:
    """Strategy 5: the outer slice after textual repairs."""
    sliced = _outer_slice(text)
    return _loads_object(repair_json_text(sliced)) if sliced else None


def parse_line_reconstruction(text: str) -> Optional[dict[str, Any]]:
    """Strategy 6: accumulate lines until brace depth returns to zero."""
    collected = []
    depth = 0
    for line in text.splitlines():
        stripped = line.strip()
        if not collected and "{" not in stripped:
            continue
        collected.append(stripped)
        depth += stripped.count("{") - stripped.count("}")
        if depth <= 0:
            break
    if not collected:
        return None
    return _loads_object(" ".join(collected))


def parse_key_values(text: str) -> Optional[dict[str, Any]]:
    """Strategy 7: flat mapping of regex-salvaged pairs; first key wins."""
    result: dict[str, Any] = {}
    for pattern in KEY_VALUE_PATTERNS:
        for match in pattern.finditer(text):
            result.setdefault(match.group(1), _salvage_value(match.group(2)))
    return result or None


def build_strategies(
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> list[tuple[str, Strategy]]:
    """The cascade, in the order it is tried."""
    return [
        ("direct", parse_direct),
        ("code_block", parse_code_block),
        ("balanced_candidates", make_balanced_candidates(max_candidates)),
        ("outer_slice", parse_outer_slice),
        ("repaired_slice", parse_repaired_slice),
        ("line_reconstruction", parse_line_reconstruction),
        ("key_value_salvage", parse_key_values),
    ]


# =============================================================================
# ENTRY POINTS
# =============================================================================


def recover_json(
    response: str,
    *,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> dict[str, Any]:
    """
    Recover a JSON object from raw model text.

    Args:
        response: Raw text returned by the model.
        max_candidates: How many balanced-brace candidates strategy 3 tries.

    Returns:
        The first mapping any strategy produces.

    Raises:
        RecoveryFailed: If every strategy misses.
    """
    text = strip_boilerplate(response or "")

    for name, strategy in build_strategies(max_candidates):
        try:
            parsed = strategy(text)
        except Exception as e:  # a strategy must never break the cascade
            logger.debug("recovery_strategy_error", strategy=name, error=str(e))
            continue
        if parsed is not None:
            logger.debug(
                "recovery_strategy_succeeded",
                strategy=name,
                fields=len(parsed),
                response_length=len(response or ""),
            )
            if name == "key_value_salvage":
                logger.warning("recovery_partial_salvage", fields=sorted(parsed))
            return parsed
        logger.debug("recovery_strategy_missed", strategy=name)

    error = RecoveryFailed.from_response(response or "")
    logger.warning(
        "recovery_failed",
        response_length=error.response_length,
        excerpt=error.excerpt,
    )
    raise error


def parse_extraction(
    response: str,
    *,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> ExtractionRecord:
    """Recover and leniently validate one page's extraction record."""
    return ExtractionRecord.from_raw(
        recover_json(response, max_candidates=max_candidates)
    )
