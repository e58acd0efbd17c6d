"""
ETag codec for task versions.

Tasks are emitted with a weak ETag ``W/"<version>"``. ``If-Match`` accepts
the weak form, the strong form ``"<version>"``, and a bare ``<version>``.
"""
import re

from apps.core.exceptions import MalformedToken

_ETAG_RE = re.compile(r'W/"(?P<weak>[0-9]+)"|"(?P<strong>[0-9]+)"|(?P<bare>[0-9]+)')


def format_weak(version: int) -> str:
    return f'W/"{version}"'


def parse_if_match(value: str) -> int:
    """
    Decode an If-Match value into a non-negative version number.

    Raises:
        MalformedToken: for any other shape, e.g. ``W/5`` or ``"abc"``.
    """
    if value is None:
        raise MalformedToken()
    match = _ETAG_RE.fullmatch(value.strip())
    if not match:
        raise MalformedToken("Invalid ETag format")
    digits = match.group('weak') or match.group('strong') or match.group('bare')
    return int(digits)
