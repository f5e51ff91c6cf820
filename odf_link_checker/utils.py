import re
from typing import Optional

HTTP_URL_PATTERN = re.compile(r'^(https?)://.*', re.DOTALL)


def to_https(url: str) -> Optional[str]:
    """
    Return the https version of a URL.

    Args:
        url: URL to convert

    Returns:
        The same URL when already https, the URL with its scheme rewritten
        when http, or None when the scheme is neither.
    """
    match = HTTP_URL_PATTERN.match(url)
    if not match:
        return None
    if match.group(1) == 'https':
        return url
    return 'https://' + url[len('http://'):]


def format_duration(seconds: float) -> str:
    """
    Format a duration in seconds to a human-readable string.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted duration string
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"
