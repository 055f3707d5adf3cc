"""
Parameter normalization for completion requests.

Contract
- Standard keys work across providers:
  max_tokens: int
  temperature: float
  tools: Sequence[ToolSpec]
  tool_choice: str | dict
  stop: str | list[str]

- Provider specific keys go under `extra` and pass through unchanged.
Unknown top-level keys are moved into extra.
"""

from __future__ import annotations

from typing import Any

STANDARD_KEYS = {
    "max_tokens",
    "temperature",
    "top_p",
    "tools",
    "tool_choice",
    "stop",
    "user",
    "parallel_tool_calls",
    "seed",
}


def normalize_params(params: dict[str, Any] | None) -> dict[str, Any]:
    """
    Normalize a params dict to a single internal shape.

    Returns a dict with only standard keys plus an `extra` dict.
    Rules:
      - Keys not in STANDARD_KEYS are moved into extra
      - If the caller already passed an `extra` dict it is merged last
      - None values are dropped, so "not set" and "set to None" look the same

    Example
    -------
    >>> normalize_params({"max_tokens": 1000, "reasoning_effort": "low"})
    {'max_tokens': 1000, 'extra': {'reasoning_effort': 'low'}}
    """
    if params is None:
        return {"extra": {}}
    if not isinstance(params, dict):
        raise TypeError(f"params must be a dict, got {type(params).__name__}")

    user_extra = params.get("extra") or {}
    if not isinstance(user_extra, dict):
        raise TypeError("params['extra'] must be a dict")

    std: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in params.items():
        if key == "extra" or value is None:
            continue
        if key in STANDARD_KEYS:
            std[key] = value
        else:
            extra[key] = value

    std["extra"] = {**extra, **user_extra}
    return std


def merge_params(
    defaults: dict[str, Any] | None, overrides: dict[str, Any] | None
) -> dict[str, Any]:
    """
    Shallow-merge client defaults with per-call overrides, then normalize.

    Rules:
      - Top-level keys are overwritten by overrides, unless the override is None
      - `extra` is merged with overrides winning per key
    """
    base: dict[str, Any] = dict(defaults or {})
    if overrides:
        base_extra = dict(base.get("extra") or {})
        over_extra = dict(overrides.get("extra") or {})

        for k, v in overrides.items():
            if k != "extra" and v is not None:
                base[k] = v

        base["extra"] = {**base_extra, **over_extra}

    return normalize_params(base)
