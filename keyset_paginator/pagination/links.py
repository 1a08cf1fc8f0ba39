"""Link header helpers for paginated HTTP responses."""

from typing import Any, Dict, Optional
from urllib.parse import urlencode

from .cursor import Cursor


def create_link_header(
    base_url: str,
    params: Dict[str, Any],
    cursor: Cursor
) -> Optional[str]:
    """Create Link header for pagination as per RFC 8288.

    Args:
        base_url: Base URL for the resource
        params: Current query parameters; cursor parameters are replaced
        cursor: Outgoing cursor of the current page

    Returns:
        Link header value or None if no links
    """
    base_params = {
        k: v for k, v in params.items()
        if k not in ("after", "before") and v is not None
    }
    links = []

    if cursor.after:
        next_url = f"{base_url}?" + urlencode({**base_params, "after": cursor.after})
        links.append(f'<{next_url}>; rel="next"')

    if cursor.before:
        prev_url = f"{base_url}?" + urlencode({**base_params, "before": cursor.before})
        links.append(f'<{prev_url}>; rel="prev"')

    return ", ".join(links) if links else None
