"""URI helpers for translating between logical and physical blob addresses.

Providers hand out URIs under a configurable logical base (``blob:///`` by
default) but store blobs under a physical base (a ``file:`` URI for the
file-system provider). ``change_base`` is the single place where a URI is
both validated as belonging to a provider and translated to its physical
counterpart.

URIs are plain strings. Unlike ``urllib.parse.urljoin``, these helpers work
for any scheme, including ones urllib has never heard of.
"""

import urllib.parse
from typing import NamedTuple, Optional

from .errors import InvalidArgumentError


class _UriParts(NamedTuple):
    scheme: str
    authority: Optional[str]  # None when the URI has no "//" part
    path: str
    query: Optional[str]
    fragment: Optional[str]


def is_absolute(uri) -> bool:
    """Check whether ``uri`` is a string with a scheme."""
    return isinstance(uri, str) and bool(urllib.parse.urlsplit(uri).scheme)


def _remove_dot_segments(path: str) -> str:
    """Collapse ``.`` and ``..`` segments (RFC 3986, section 5.2.4)."""
    if "." not in path:
        return path

    segments = path.split("/")
    floor = 1 if path.startswith("/") else 0
    output = []
    for segment in segments:
        if segment == "..":
            if len(output) > floor:
                output.pop()
        elif segment != ".":
            output.append(segment)

    # "a/b/.." names the directory "a/", keep the trailing slash
    if segments[-1] in (".", ".."):
        output.append("")

    return "/".join(output)


def _split(uri, name: str) -> _UriParts:
    """
    Parse an absolute URI, keeping track of which components are present.

    Raises:
        InvalidArgumentError: If ``uri`` is None, not a string or relative
    """
    if uri is None:
        raise InvalidArgumentError(f"{name} is required")
    if not isinstance(uri, str):
        raise InvalidArgumentError(
            f"{name} must be a URI string, got {type(uri).__name__}"
        )

    parts = urllib.parse.urlsplit(uri)
    if not parts.scheme:
        raise InvalidArgumentError(f"The URI '{uri}' is not an absolute URI.")

    has_authority = uri[len(parts.scheme) + 1:].startswith("//")
    before_fragment = uri.split("#", 1)[0]

    path = parts.path
    if has_authority and not path:
        path = "/"

    return _UriParts(
        scheme=parts.scheme.lower(),
        authority=parts.netloc if has_authority else None,
        path=_remove_dot_segments(path),
        query=parts.query if "?" in before_fragment else None,
        fragment=parts.fragment if "#" in uri else None,
    )


def _compose(parts: _UriParts) -> str:
    uri = parts.scheme + ":"
    if parts.authority is not None:
        uri += "//" + parts.authority
    uri += parts.path
    if parts.query is not None:
        uri += "?" + parts.query
    if parts.fragment is not None:
        uri += "#" + parts.fragment
    return uri


def _directory(path: str) -> str:
    """Path up to and including its last slash."""
    return path[: path.rfind("/") + 1]


def _relative_part(uri: str, base: str, base_name: str) -> str:
    u = _split(uri, "uri")
    b = _split(base, base_name)

    base_dir = _directory(b.path)
    same_authority = (u.authority or "").lower() == (b.authority or "").lower()

    if u.scheme != b.scheme or not same_authority or not u.path.startswith(base_dir):
        raise InvalidArgumentError(
            f"The URI '{uri}' does not have the required base URI '{base}'."
        )

    relative = u.path[len(base_dir):]
    if u.query is not None:
        relative += "?" + u.query
    if u.fragment is not None:
        relative += "#" + u.fragment
    return relative


def ensure_trailing_slash(uri: str) -> str:
    """
    Ensure the path component of an absolute URI ends with a slash.

    Args:
        uri: Absolute URI

    Returns:
        ``uri`` itself if its path already ends with ``/``, otherwise a copy
        with ``/`` appended to the path (query and fragment preserved)

    Raises:
        InvalidArgumentError: If ``uri`` is None or relative
    """
    parts = _split(uri, "uri")
    if urllib.parse.urlsplit(uri).path.endswith("/"):
        return uri

    path = parts.path if parts.path.endswith("/") else parts.path + "/"
    return _compose(parts._replace(path=path))


def to_relative(uri: str, base: str) -> str:
    """
    Strip ``base`` from ``uri``.

    Returns:
        The remainder of ``uri`` relative to the directory of ``base``,
        including any query and fragment

    Raises:
        InvalidArgumentError: If either URI is None or relative, or ``base``
            is not a base of ``uri``
    """
    return _relative_part(uri, base, "base")


def change_base(uri: str, old_base: str, new_base: str) -> str:
    """
    Replace the base of ``uri``.

    Args:
        uri: Absolute URI under ``old_base``
        old_base: Base to remove from ``uri``
        new_base: Base to re-root the remainder under

    Returns:
        ``new_base`` joined with the part of ``uri`` below ``old_base``;
        relative path segments, query and fragment are preserved

    Raises:
        InvalidArgumentError: If any argument is None or relative, or
            ``old_base`` is not a base of ``uri``
    """
    relative = _relative_part(uri, old_base, "old_base")
    target = _split(new_base, "new_base")
    root = _compose(target._replace(path=_directory(target.path), query=None, fragment=None))
    return root + relative
