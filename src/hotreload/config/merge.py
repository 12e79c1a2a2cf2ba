"""Layered merging of config and settings dicts.

Used both for the config cascade (system, user, project, env) and for
laying a persisted settings blob over its defaults.
"""

from __future__ import annotations

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return base with override laid on top.

    Mappings present on both sides merge key by key. A None in override
    leaves the base value in place, so partial layers only set what they
    mention. Every other value (lists included) replaces the base value.
    Neither input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        if value is None:
            continue
        current = merged.get(key)
        merged[key] = (
            deep_merge(current, value)
            if isinstance(current, dict) and isinstance(value, dict)
            else value
        )
    return merged


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Fold layers left to right; empty layers are skipped."""
    merged: dict[str, Any] = {}
    for layer in filter(None, layers):
        merged = deep_merge(merged, layer)
    return merged
