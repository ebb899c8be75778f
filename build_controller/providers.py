"""Git hosting provider identity, as matched by the pipeline runtime."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

from .errors import InvalidURLError

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
# Hosts may only escape non-ASCII bytes, or "%" itself as %25
_ASCII_ESCAPE = re.compile(r"%(?!25)[0-7][0-9A-Fa-f]")
# Characters allowed in a host besides alphanumerics and escapes
_HOST_CHARS = re.compile(r"^[A-Za-z0-9\-._~!$&'()*+,;=:\[\]%]*$")


def _check_host(git_url: str, host: str) -> None:
    if _BAD_ESCAPE.search(host) or _ASCII_ESCAPE.search(host):
        raise InvalidURLError(git_url, f"invalid URL escape in host {host!r}")
    if not _HOST_CHARS.match(host):
        raise InvalidURLError(git_url, f"invalid character in host name {host!r}")


def get_git_provider(git_url: str) -> str:
    """
    Return the scheme and host of a fully qualified repository URL.

    https://github.com/foo/bar.git -> https://github.com

    Credentials, path and query are dropped; casing and port are kept as
    parsed. No autocorrection is attempted, so scp-style shorthands such as
    git@github.com:foo/bar.git and scheme-less URLs are rejected, as are
    URLs with control characters or a malformed host.

    Raises:
        InvalidURLError: The string does not parse or has no scheme.
    """
    # urlsplit silently strips some control characters, so check first.
    if _CONTROL_CHARS.search(git_url):
        raise InvalidURLError(git_url, "invalid control character in URL")

    try:
        parts = urlsplit(git_url)
        # Accessing the port validates it.
        parts.port
    except ValueError as e:
        raise InvalidURLError(git_url, str(e)) from e

    if not parts.scheme:
        raise InvalidURLError(git_url)

    host = parts.netloc.rpartition("@")[2]
    _check_host(git_url, host)
    return f"{parts.scheme}://{host}"
