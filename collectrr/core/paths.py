"""Source path helpers: video file classification and multi-location paths."""

from urllib.parse import quote, unquote

MULTIPATH_PREFIX = "multipath://"

DEFAULT_VIDEO_EXTENSIONS = {
    ".mp4",
    ".mkv",
    ".avi",
    ".mov",
    ".wmv",
    ".flv",
    ".webm",
    ".m4v",
    ".mpg",
    ".mpeg",
    ".ts",
    ".iso",
}


def _separator(path: str) -> str:
    if "/" not in path and "\\" in path:
        return "\\"
    return "/"


def is_video_file(path: str, extensions: set[str] | list[str] | None = None) -> bool:
    """
    Check if a path names a video file based on its extension.

    Args:
        path: File path or URL
        extensions: Allowed extensions including the dot (defaults to
            DEFAULT_VIDEO_EXTENSIONS)

    Returns:
        True for video files; folders and extensionless paths never match
    """
    if not path or path.endswith(("/", "\\")):
        return False

    if extensions is None:
        extensions = DEFAULT_VIDEO_EXTENSIONS
    allowed = {ext.lower() for ext in extensions}
    name = path.rsplit(_separator(path), 1)[-1]
    # Strip URL query/fragment
    name = name.split("?", 1)[0].split("#", 1)[0]
    if "." not in name:
        return False
    return "." + name.rsplit(".", 1)[1].lower() in allowed


def parent_directory(path: str) -> str:
    """
    Return the parent directory of a path, keeping a trailing separator.

    Handles POSIX paths, Windows paths and URL style paths such as
    ``smb://host/share/movie.mkv``. The root of a URL (``smb://host/``) is
    its own parent.
    """
    if not path:
        return ""

    sep = _separator(path)
    scheme = ""
    rest = path
    if "://" in path:
        scheme, rest = path.split("://", 1)
        scheme += "://"

    stripped = rest.rstrip(sep)
    if sep not in stripped:
        if scheme:
            return f"{scheme}{stripped}{sep}" if stripped else scheme
        return ""

    head = stripped.rsplit(sep, 1)[0]
    return f"{scheme}{head}{sep}"


def construct_multipath(paths: set[str] | list[str]) -> str:
    """
    Encode several source directories as one multi-location path.

    Paths are de-duplicated and emitted in sorted order, each one
    percent-encoded, e.g. ``multipath://%2Fa%2F/%2Fb%2F/``.
    """
    encoded = [quote(p, safe="") for p in sorted(set(paths))]
    if not encoded:
        return MULTIPATH_PREFIX
    return MULTIPATH_PREFIX + "/".join(encoded) + "/"


def split_multipath(path: str) -> list[str]:
    """Decode a multi-location path back into its source directories."""
    if not path.startswith(MULTIPATH_PREFIX):
        return [path] if path else []
    body = path[len(MULTIPATH_PREFIX):]
    return [unquote(part) for part in body.split("/") if part]


def is_multipath(path: str) -> bool:
    return path.startswith(MULTIPATH_PREFIX)
