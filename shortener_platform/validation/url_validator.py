"""
UrlValidator – RFC 1738 style sanitization, normalization and validation.

Responsibilities:
    - sanitize(): best-effort repair of arbitrary input into a percent-encoded
      `scheme://host[:port][/path]` string
    - normalize(): canonical form (case, default ports, redundant slashes,
      trailing slash)
    - validate(): judge the *sanitized* form and report every failing rule
    - process(): run the whole pipeline and report what changed

Design notes:
    - Repair first, judge second. Cosmetic problems (case, missing scheme,
      unsafe characters) never fail validation; only structural defects do
      (scheme family, host shape, port range, length).
    - Every function here is pure and holds no state, so one validator
      instance can be shared across requests and threads.
    - Percent-encoding is byte-wise over UTF-8, so a multi-byte character
      becomes several `%XX` triplets.
    - Single-label hosts such as `localhost` are rejected: the host grammar
      requires at least one `label.` group before the alphabetic TLD.

Reference: https://www.rfc-editor.org/rfc/rfc1738.txt
"""

import ipaddress
import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import urlsplit

# Scheme token at the start of a string, used to decide whether to prepend https://
SCHEME_PREFIX_PATTERN = re.compile(r"[a-zA-Z][a-zA-Z0-9+.-]*://")
SCHEME_PATTERN = re.compile(r"[a-zA-Z][a-zA-Z0-9+.-]*")
URL_PATTERN = re.compile(
    r"([a-zA-Z][a-zA-Z0-9+.-]*)://([^:/\s]+)(:[0-9]+)?(/.*)?",
    re.ASCII,
)
DOMAIN_PATTERN = re.compile(r"([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}")
PERCENT_TRIPLET = re.compile(rb"%[0-9A-Fa-f]{2}")

ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443, "ftp": 21}
MAX_URL_LENGTH = 2048

# Characters that must never appear raw in a path
UNSAFE_CHARACTERS = ("<", ">", '"', " ", "{", "}", "|", "\\", "^", "`")
SAFE_BYTES = frozenset(
    b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789$-_.+!*'(),"
)
RESERVED_BYTES = frozenset(b"!*'();:@&=+$,/?#[]")


@dataclass(frozen=True)
class UrlParts:
    """Components captured from a valid sanitized URL (port without its colon)."""

    scheme: str
    host: str
    port: Optional[str] = None
    path: Optional[str] = None


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    parts: Optional[UrlParts] = None


@dataclass
class ProcessedUrl:
    original: str
    sanitized: str
    normalized: str
    validation: ValidationResult
    needs_sanitization: bool


def encode_unsafe_characters(value: str) -> str:
    """
    Percent-encode every byte that is neither safe nor reserved.

    `/` and the reserved set `! * ' ( ) ; : @ & = + $ , / ? # [ ]` pass
    through untouched, as do existing `%XX` triplets. Everything else
    outside `A-Za-z0-9 $ - _ . + ! * ' ( ) ,` becomes `%XX` (uppercase hex).
    """
    raw = value.encode("utf-8")
    out = []
    i = 0
    while i < len(raw):
        byte = raw[i]
        if byte == 0x25 and PERCENT_TRIPLET.match(raw, i):
            out.append(raw[i:i + 3].decode("ascii"))
            i += 3
            continue
        if byte in RESERVED_BYTES or byte in SAFE_BYTES:
            out.append(chr(byte))
        else:
            out.append("%{:02X}".format(byte))
        i += 1
    return "".join(out)


class UrlValidator:
    """Stateless sanitize → normalize → validate pipeline."""

    def __init__(self, max_length: int = MAX_URL_LENGTH):
        self.max_length = max_length

    # ------------------------------------------------------------------
    # Sanitization
    # ------------------------------------------------------------------
    def sanitize(self, url: str) -> str:
        """
        Repair a raw URL string.

        Steps:
            1. Trim surrounding whitespace; empty input yields "".
            2. Prepend "https://" unless the string already starts with a
               well-formed scheme token followed by "://". A malformed prefix
               such as "1http://" is not recognised, so the result may hold
               two "://" separators.
            3. If the result parses as scheme://host[:port][/path], lower-case
               scheme and host, keep the port token, and encode the path one
               segment at a time.
            4. Otherwise encode unsafe bytes in the whole string and return it
               (the result is not guaranteed to parse).
        """
        if not url:
            return ""
        url = url.strip()
        if not url:
            return ""

        if not SCHEME_PREFIX_PATTERN.match(url):
            url = "https://" + url

        match = URL_PATTERN.fullmatch(url)
        if match is None:
            return encode_unsafe_characters(url)

        scheme, host, port, path = match.groups()
        sanitized_path = self._sanitize_path(path) if path else ""
        return f"{scheme.lower()}://{host.lower()}{port or ''}{sanitized_path}"

    def _sanitize_path(self, path: str) -> str:
        return "/".join(encode_unsafe_characters(segment) for segment in path.split("/"))

    def needs_sanitization(self, url: str) -> bool:
        return url != self.sanitize(url)

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------
    def normalize(self, url: str) -> str:
        """
        Canonicalize a URL.

        The input is sanitized first (a no-op for sanitized input), then split
        into scheme/host/port/path/query/fragment. Default ports are dropped,
        runs of "/" collapse to one, and a single trailing "/" is removed from
        non-root paths. Input that cannot be split comes back sanitized but
        otherwise unchanged.

        normalize(normalize(u)) == normalize(u) holds for URLs that pass
        `validate`. It can fail for unparseable input: when the first pass only
        percent-encodes (so scheme and host keep their case), the encoded
        string may match the URL grammar on the next pass and get lower-cased
        then. Such input never validates, so nothing of the kind is stored.
        """
        sanitized = self.sanitize(url)
        try:
            parts = urlsplit(sanitized)
            port = parts.port
        except ValueError:
            return sanitized
        if not parts.scheme or not parts.netloc:
            return sanitized

        scheme = parts.scheme.lower()
        host = (parts.hostname or "").lower()
        if ":" in host:
            host = f"[{host}]"
        if port is not None and DEFAULT_PORTS.get(scheme) == port:
            port = None

        path = re.sub(r"/+", "/", parts.path)
        if len(path) > 1 and path.endswith("/"):
            path = path[:-1]

        normalized = f"{scheme}://{host}"
        if port:
            normalized += f":{port}"
        normalized += path
        if parts.query:
            normalized += f"?{parts.query}"
        if parts.fragment:
            normalized += f"#{parts.fragment}"
        return normalized

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self, url: str) -> ValidationResult:
        """
        Validate the sanitized form of `url`.

        Returns:
            ValidationResult: `valid` is True only when no rule failed.
            `parts` carries the captured scheme/host/port/path of the
            sanitized URL and is present only when valid.

        Rules (all reported together, except the first two which stop early):
            - empty input             -> "URL is required"
            - structural mismatch     -> "Invalid URL format..."
            - scheme grammar          -> "Invalid scheme: ..."
            - scheme not http/https   -> "Uncommon scheme: ..."
            - host not IPv4 / domain  -> "Invalid host: ..."
            - port outside 1..65535   -> "Invalid port: ..."
            - raw unsafe path chars   -> "Invalid path: ..."
            - longer than max_length  -> "URL is too long..."
        """
        if not url:
            return ValidationResult(valid=False, errors=["URL is required"])

        sanitized = self.sanitize(url)
        match = URL_PATTERN.fullmatch(sanitized)
        if match is None:
            return ValidationResult(
                valid=False,
                errors=["Invalid URL format. URL must follow the pattern: scheme://host[:port][/path]"],
            )

        scheme, host, port, path = match.groups()
        port = port[1:] if port else None
        errors: List[str] = []

        if not self._validate_scheme(scheme):
            errors.append(
                f"Invalid scheme: {scheme}. Scheme must start with a letter "
                "and contain only letters, digits, +, -, or ."
            )
        if scheme.lower() not in ALLOWED_SCHEMES:
            errors.append(f"Uncommon scheme: {scheme}. Common schemes are: http, https")
        if not self._validate_host(host):
            errors.append(f"Invalid host: {host}. Host must be a valid domain name or IP address")
        if port is not None and not self._validate_port(port):
            errors.append(f"Invalid port: {port}. Port must be a number between 1 and 65535")
        if path and not self._validate_path(path):
            errors.append(f"Invalid path: {path}. Path contains invalid characters")
        if len(sanitized.encode("utf-8")) > self.max_length:
            errors.append(f"URL is too long. Maximum length is {self.max_length} characters")

        if errors:
            return ValidationResult(valid=False, errors=errors)
        return ValidationResult(
            valid=True,
            parts=UrlParts(scheme=scheme, host=host, port=port, path=path),
        )

    def _validate_scheme(self, scheme: str) -> bool:
        return SCHEME_PATTERN.fullmatch(scheme) is not None

    def _validate_host(self, host: str) -> bool:
        if not host:
            return False
        try:
            ipaddress.IPv4Address(host)
            return True
        except ValueError:
            pass
        return DOMAIN_PATTERN.fullmatch(host) is not None

    def _validate_port(self, port: str) -> bool:
        try:
            number = int(port)
        except ValueError:
            return False
        return 1 <= number <= 65535

    def _validate_path(self, path: str) -> bool:
        return not any(char in path for char in UNSAFE_CHARACTERS)

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------
    def process(self, url: str) -> ProcessedUrl:
        """Sanitize, normalize and validate the normalized form in one call."""
        sanitized = self.sanitize(url)
        normalized = self.normalize(sanitized)
        return ProcessedUrl(
            original=url,
            sanitized=sanitized,
            normalized=normalized,
            validation=self.validate(normalized),
            needs_sanitization=self.needs_sanitization(url),
        )
