"""Helpers for Google Ads conversion action identifiers."""

from __future__ import annotations

import re

RESOURCE_ID_RE = re.compile(r"conversionActions/(\d+)$")


def build_resource_name(customer_id: str | int, action_id: str | int) -> str:
    """Return ``customers/{customer}/conversionActions/{action}``."""

    return f"customers/{customer_id}/conversionActions/{action_id}"


def extract_action_id(resource_name: str | None) -> str | None:
    """Return the trailing numeric id of a conversion action resource name."""

    match = RESOURCE_ID_RE.search(resource_name or "")
    return match.group(1) if match else None


def escape_gaql_string(value: str) -> str:
    return value.replace("'", "\\'")
