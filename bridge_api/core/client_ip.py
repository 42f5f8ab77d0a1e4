"""
client_ip.py — Client identifier extraction.

The site runs behind Vercel / Cloudflare, so the socket peer is always the
proxy. The real caller is read from the proxy headers in this order:

  x-forwarded-for   (first entry of the comma-separated chain)
  x-real-ip
  cf-connecting-ip

and falls back to the loopback address when none is present.

These headers are trusted without verification. Only deploy behind a
reverse proxy or CDN that overwrites them.
"""

from fastapi import Request

FALLBACK_IDENTIFIER = "127.0.0.1"

_IDENTIFIER_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def get_client_identifier(request: Request) -> str:
    """Return the best-guess client IP for rate limiting and analytics."""
    for header in _IDENTIFIER_HEADERS:
        value = request.headers.get(header)
        if not value:
            continue
        # x-forwarded-for is "client, proxy1, proxy2"
        candidate = value.split(",")[0].strip()
        if candidate:
            return candidate
    return FALLBACK_IDENTIFIER
