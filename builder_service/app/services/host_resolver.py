"""Host header → platform / tenant classification.

Tenant requests are rewritten to ``/site/{host}{path}`` so that every later
lookup is a pure function of the path. Nothing in this module touches the
database; unknown tenant hosts only become a 404 once the site lookup runs.
"""
import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from shared.core.config import settings
from ..enum.site_enum import HostKind

SITE_PATH_PREFIX = "/site/"

# letters, digits, dots and dashes; bracketed form for IPv6 literals
HOSTNAME_PATTERN = re.compile(r"^(\[[0-9a-f:.]+\]|[a-z0-9_]([a-z0-9_.-]*[a-z0-9_])?)$")


@dataclass(frozen=True)
class PlatformHostPolicy:
    hosts: List[str] = field(default_factory=list)
    domains: List[str] = field(default_factory=list)
    preview_suffixes: List[str] = field(default_factory=list)
    prefixes: List[str] = field(default_factory=list)

    @classmethod
    def from_settings(cls) -> "PlatformHostPolicy":
        return cls(
            hosts=settings.platform_hosts,
            domains=settings.platform_domains,
            preview_suffixes=settings.platform_preview_suffixes,
            prefixes=settings.platform_host_prefixes,
        )

    def matches(self, host: str) -> bool:
        if host in self.hosts:
            return True
        if any(host == d or host.endswith("." + d) for d in self.domains):
            return True
        if any(host.endswith(s) for s in self.preview_suffixes):
            return True
        return any(host.startswith(p) for p in self.prefixes)


@dataclass(frozen=True)
class HostResolution:
    kind: HostKind
    host: str
    path: str
    original_path: str
    query: str = ""

    @property
    def is_tenant(self) -> bool:
        return self.kind == HostKind.TENANT

    @property
    def url(self) -> str:
        """Resolved path plus the untouched query string."""
        return f"{self.path}?{self.query}" if self.query else self.path


def normalize_host(raw_host: Optional[str]) -> str:
    """Lower-case the Host header value and strip its port."""
    host = (raw_host or "").strip().lower()
    if host.startswith("["):
        end = host.find("]")
        host = host[:end + 1] if end != -1 else host
    else:
        host = host.split(":", 1)[0]
    return host.rstrip(".")


def resolve_host(raw_host: Optional[str], path: str, query: str = "",
                 policy: Optional[PlatformHostPolicy] = None) -> HostResolution:
    policy = policy or PlatformHostPolicy.from_settings()
    host = normalize_host(raw_host)

    # Missing or garbled Host: platform request for nothing, 404 downstream
    if not host or not HOSTNAME_PATTERN.match(host):
        return HostResolution(kind=HostKind.PLATFORM, host="", path="",
                              original_path=path, query=query)

    if policy.matches(host):
        return HostResolution(kind=HostKind.PLATFORM, host=host, path=path,
                              original_path=path, query=query)

    return HostResolution(kind=HostKind.TENANT, host=host,
                          path=build_site_path(host, path),
                          original_path=path, query=query)


def build_site_path(host: str, path: str) -> str:
    return f"{SITE_PATH_PREFIX}{host}{path}"


def build_site_raw_path(host: str, raw_path: bytes) -> bytes:
    """Same rewrite on the still percent-encoded ASGI ``raw_path``."""
    return f"{SITE_PATH_PREFIX}{host}".encode("ascii") + raw_path


def parse_site_path(site_path: str) -> Tuple[str, str]:
    """Inverse of the tenant rewrite: ``/site/{host}{rest}`` → ``(host, rest)``.

    ``rest`` keeps whatever followed the host, query string included.
    """
    if not site_path.startswith(SITE_PATH_PREFIX):
        raise ValueError(f"not a site path: {site_path!r}")

    remainder = site_path[len(SITE_PATH_PREFIX):]
    cut = len(remainder)
    for sep in ("/", "?"):
        idx = remainder.find(sep)
        if idx != -1:
            cut = min(cut, idx)
    return remainder[:cut], remainder[cut:]
