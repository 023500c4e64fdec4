#!/usr/bin/env python
from yarl import URL


def join(base: str, *segments: str) -> str:
    """
    Append path segments to a base URL.

    Segments may contain slashes but must not start with one; yarl
    raises ValueError rather than silently dropping the base path.
    """
    url = URL(base)
    if segments:
        url = url.joinpath(*segments)
    return str(url)
