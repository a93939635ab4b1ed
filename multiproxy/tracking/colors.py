"""Stable display colours for proxies.

A proxy id is hashed (32-bit ``h * 31 + c`` over UTF-16 code units) into a
fixed palette, so the same id gets the same colour in every process.
"""

from __future__ import annotations

PALETTE: tuple[str, ...] = (
    "#7C3AED",  # Purple
    "#059669",  # Emerald
    "#DC2626",  # Red
    "#2563EB",  # Blue
    "#CA8A04",  # Yellow
    "#9333EA",  # Violet
    "#16A34A",  # Green
    "#EA580C",  # Orange
    "#0891B2",  # Cyan
    "#BE185D",  # Pink
    "#4338CA",  # Indigo
    "#65A30D",  # Lime
    "#64748B",  # Slate
    "#6B7280",  # Gray
    "#78716C",  # Stone
    "#EF4444",
    "#F97316",
    "#EAB308",
    "#22C55E",
    "#06B6D4",
    "#3B82F6",
    "#8B5CF6",
    "#EC4899",
    "#F43F5E",
)


def _to_int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def string_hash(text: str) -> int:
    """Signed 32-bit string hash."""
    data = text.encode("utf-16-le")
    result = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        result = _to_int32((result << 5) - result + unit)
    return result


def color_for_proxy(proxy_id: str) -> str:
    return PALETTE[abs(string_hash(proxy_id)) % len(PALETTE)]
