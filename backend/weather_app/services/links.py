from __future__ import annotations

from urllib.parse import quote, urlsplit, urlunsplit

CONFIRM_PATH = "/api/confirm/"
UNSUBSCRIBE_PATH = "/api/unsubscribe/"


def build_token_url(base_url: str, api_path: str, token: str) -> str:
    """
    Join base URL, API path and token value: ("https://x.io/app", "/api/confirm/", "abc")
    -> "https://x.io/app/api/confirm/abc". Repeated slashes are collapsed.
    """
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Invalid base URL: {base_url!r}")

    segments = [s for s in (parts.path + "/" + api_path).split("/") if s]
    # Tokens are URL-safe base64 already, quoting only guards against foreign values.
    segments.append(quote(token, safe=""))
    path = "/" + "/".join(segments)
    return urlunsplit((parts.scheme, parts.netloc, path, "", ""))


def build_confirm_url(base_url: str, token: str) -> str:
    return build_token_url(base_url, CONFIRM_PATH, token)


def build_unsubscribe_url(base_url: str, token: str) -> str:
    return build_token_url(base_url, UNSUBSCRIBE_PATH, token)
