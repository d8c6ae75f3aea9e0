"""URL helpers: normalisation, batch validation, display shortening."""

from urllib.parse import urlparse


URLS_ERROR = 'Body must contain an array "urls"'


def normalize_url(url: str) -> str:
    """Strip whitespace and default the scheme to https."""
    if not isinstance(url, str) or not url.strip():
        raise ValueError('URL must be a non-empty string')

    url = url.strip()
    if '://' not in url:
        url = 'https://' + url

    parsed = urlparse(url)
    if parsed.scheme not in ('http', 'https'):
        raise ValueError(f'Unsupported URL scheme: {parsed.scheme}')
    if not parsed.netloc:
        raise ValueError(f'URL has no host: {url}')
    return url


def validate_batch(urls, max_urls: int = 0) -> list[str]:
    """Check the shape and size of a request's URL list.

    Individual URLs are not normalised here: a malformed entry becomes a
    per-URL error in the results rather than failing the whole batch.
    Raises ValueError with a message suitable for an HTTP 400 body.
    """
    if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
        raise ValueError(URLS_ERROR)
    if max_urls and len(urls) > max_urls:
        raise ValueError(f'Too many URLs: {len(urls)} (maximum {max_urls})')
    return list(urls)


def get_short_url(url: str, max_len: int = 50) -> str:
    """Shorten URL for display."""
    parsed = urlparse(url)
    path = parsed.path
    if len(path) > max_len:
        path = '...' + path[-(max_len - 3):]
    return parsed.netloc + (path if path else '/')
