"""
Path resolver
Opaque template id codec and root containment checks.

Every filesystem access derived from request input goes through
`resolve_within_root` before any stat or read happens.
"""
import base64
import binascii
import os
import re
from pathlib import Path
from typing import Tuple

from template_index.core.errors import ErrorKind, TemplateError

_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")
_WINDOWS_ABSOLUTE = re.compile(r"^[a-zA-Z]:/")


def encode_id(relative_path: str) -> str:
    """Encode a relative path as padding-free URL-safe base64"""
    encoded = base64.urlsafe_b64encode(relative_path.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def decode_id(token: str) -> str:
    """
    Decode an id produced by `encode_id`.

    Raises:
        TemplateError(INVALID_ID): token is empty, garbled or not UTF-8
    """
    token = (token or "").strip().rstrip("=")
    if not token or not _ID_PATTERN.match(token):
        raise TemplateError(ErrorKind.INVALID_ID, "Template id is malformed")

    padding = "=" * (-len(token) % 4)
    try:
        raw = base64.urlsafe_b64decode(token + padding)
        decoded = raw.decode("utf-8")
    except (binascii.Error, ValueError) as e:
        raise TemplateError(ErrorKind.INVALID_ID, "Template id cannot be decoded") from e

    if not decoded or "\x00" in decoded:
        raise TemplateError(ErrorKind.INVALID_ID, "Template id decodes to an empty or invalid path")
    return decoded


def _normalize_separators(candidate: str) -> str:
    return candidate.replace("\\", "/")


def resolve_within_root(root: Path, candidate: str) -> Path:
    """
    Resolve a user supplied path against the root.

    The result is the root itself or one of its descendants after
    normalization and symlink resolution.

    Raises:
        TemplateError(INVALID_PATH): empty input or a path escaping the root
    """
    root = Path(root).resolve()
    normalized = _normalize_separators(candidate or "").strip()
    if not normalized or "\x00" in normalized:
        raise TemplateError(ErrorKind.INVALID_PATH, "Path is empty or invalid")

    if _WINDOWS_ABSOLUTE.match(normalized) and os.name != "nt":
        raise TemplateError(ErrorKind.INVALID_PATH, "Drive-qualified paths are not supported")

    if normalized.startswith("/") or _WINDOWS_ABSOLUTE.match(normalized):
        target = Path(normalized)
    else:
        target = root / normalized

    try:
        resolved = Path(os.path.normpath(target)).resolve(strict=False)
    except (OSError, ValueError, RuntimeError) as e:
        raise TemplateError(ErrorKind.INVALID_PATH, "Path cannot be resolved") from e

    if resolved != root and not resolved.is_relative_to(root):
        raise TemplateError(ErrorKind.INVALID_PATH, "Path escapes the templates root")
    return resolved


def to_relative(root: Path, absolute: Path) -> str:
    """Relative path from root with '/' as separator"""
    return Path(absolute).relative_to(Path(root).resolve()).as_posix()


def resolve_id(root: Path, token: str) -> Tuple[str, Path]:
    """
    Decode an id and confine it to the root.

    Decode and containment failures are both reported as INVALID_ID.

    Returns:
        (relative_path, absolute_path)
    """
    relative_path = decode_id(token)
    try:
        absolute_path = resolve_within_root(root, relative_path)
    except TemplateError as e:
        raise TemplateError(ErrorKind.INVALID_ID, "Template id points outside the templates root") from e
    return to_relative(root, absolute_path), absolute_path
