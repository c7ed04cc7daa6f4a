"""
URL resolution and same-site checks for discovered links.
"""

from urllib.parse import urljoin, urlparse, urlunparse


ALLOWED_SCHEMES = ('http', 'https')


class LinkResolutionError(ValueError):
    """Raised when a link cannot be turned into a crawlable absolute URL."""
    pass


def resolve(base: str, href: str) -> str:
    """
    Resolve an href against the URL of the page it was found on.

    Args:
        base: Absolute URL of the page containing the link
        href: Raw href attribute value (relative, absolute or protocol-relative)

    Returns:
        Normalized absolute URL: scheme and host lowercased, fragment removed

    Raises:
        LinkResolutionError: If the href is malformed or not http(s)
    """
    if href is None:
        raise LinkResolutionError("Empty href")

    try:
        absolute_url = urljoin(base, href.strip())
        parsed = urlparse(absolute_url)
        # Accessing port validates it; bad ports raise ValueError
        port = parsed.port
    except ValueError as e:
        raise LinkResolutionError(f"Malformed link {href!r}: {e}")

    scheme = parsed.scheme.lower()
    if scheme not in ALLOWED_SCHEMES:
        raise LinkResolutionError(f"Unsupported scheme in link {href!r}")

    host = parsed.hostname
    if not host:
        raise LinkResolutionError(f"Link has no host: {href!r}")

    netloc = host
    if ':' in host:
        netloc = f"[{host}]"
    if port is not None:
        netloc = f"{netloc}:{port}"
    if parsed.username or parsed.password:
        userinfo = parsed.username or ''
        if parsed.password:
            userinfo = f"{userinfo}:{parsed.password}"
        netloc = f"{userinfo}@{netloc}"

    return urlunparse((
        scheme,
        netloc,
        parsed.path or '/',
        parsed.params,
        parsed.query,
        ''  # Remove fragment
    ))


def normalize(url: str) -> str:
    """Normalize an absolute URL, e.g. the crawl start URL."""
    return resolve(url, url)


def get_host(url: str) -> str:
    """Extract the lowercased host of a URL (without port)."""
    return (urlparse(url).hostname or '').lower()


def same_site(candidate: str, origin: str) -> bool:
    """True iff both URLs have exactly the same host. Subdomains do not match."""
    candidate_host = get_host(candidate)
    return bool(candidate_host) and candidate_host == get_host(origin)
