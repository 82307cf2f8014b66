"""Library address parsing and building (``videodb://`` URLs)."""

from urllib.parse import parse_qsl, quote, urlencode, urlsplit

from .exceptions import LibraryUrlError


class LibraryUrl:
    """A ``videodb://`` library address with ordered query options.

    Options keep the order they were added in; adding an option that already
    exists replaces its value in place.
    """

    SCHEME = "videodb"

    def __init__(self, path: str, options: dict[str, str] | None = None):
        self.path = path
        self.options: dict[str, str] = dict(options or {})

    @classmethod
    def parse(cls, url: str) -> "LibraryUrl":
        """
        Parse a library address.

        Args:
            url: Address such as ``videodb://movies/titles/?genre=12``

        Returns:
            Parsed LibraryUrl

        Raises:
            LibraryUrlError: If the address is empty or not a videodb URL
        """
        if not url:
            raise LibraryUrlError("Empty library address")

        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise LibraryUrlError(f"Malformed library address {url!r}: {e}") from e

        if parts.scheme.lower() != cls.SCHEME:
            raise LibraryUrlError(f"Not a {cls.SCHEME}:// address: {url!r}")
        if not parts.netloc:
            raise LibraryUrlError(f"Library address has no section: {url!r}")

        path = f"{cls.SCHEME}://{parts.netloc}{parts.path}"
        if not path.endswith("/"):
            path += "/"

        instance = cls(path)
        instance.add_options(parts.query)
        return instance

    def options_string(self) -> str:
        """Query string of the options, without the leading ``?``."""
        return urlencode(self.options, quote_via=quote)

    def add_option(self, key: str, value: object) -> None:
        self.options[key] = str(value)

    def add_options(self, options: str) -> None:
        """Merge options from a query string into this address."""
        try:
            pairs = parse_qsl(options.lstrip("?"), keep_blank_values=True)
        except ValueError as e:
            raise LibraryUrlError(f"Malformed options {options!r}: {e}") from e
        for key, value in pairs:
            self.add_option(key, value)

    def to_string(self) -> str:
        query = self.options_string()
        return f"{self.path}?{query}" if query else self.path

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"LibraryUrl({self.to_string()!r})"
