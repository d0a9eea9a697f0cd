"""Per-domain sitemap locations and documentation path filters."""

from dataclasses import dataclass


@dataclass(frozen=True)
class DomainConfig:
    sitemap_url: str
    doc_filter: str
    # Unknown domains match the filter anywhere in the path
    match_anywhere: bool = False

    def is_doc_path(self, path: str) -> bool:
        if self.match_anywhere:
            return self.doc_filter in path
        return path.startswith(self.doc_filter)


DOMAIN_SITEMAP_CONFIG: dict[str, DomainConfig] = {
    "resend.com": DomainConfig("https://resend.com/docs/sitemap.xml", "/docs/"),
    "liveblocks.io": DomainConfig("https://liveblocks.io/sitemap.xml", "/docs"),
}

DEFAULT_DOC_FILTER = "/docs"


def get_domain_config(domain: str) -> DomainConfig:
    """Known config for *domain*, else ``https://{domain}/sitemap.xml`` with ``/docs``."""
    config = DOMAIN_SITEMAP_CONFIG.get(domain.strip().lower())
    if config is not None:
        return config
    return DomainConfig(
        f"https://{domain}/sitemap.xml", DEFAULT_DOC_FILTER, match_anywhere=True
    )
