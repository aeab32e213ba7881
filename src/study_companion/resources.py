"""Saved study resource links."""
import uuid
from datetime import datetime
from typing import Optional
from urllib.parse import parse_qs, urlparse

from study_companion.models import ResourceLink

RESOURCE_TYPES = ("video", "playlist", "pdf", "article")
RESOURCE_GROUPS = {"video": ("video", "playlist"), "reading": ("pdf", "article")}


def infer_resource_type(url: str) -> str:
    parsed = urlparse(url)
    host = parsed.netloc.lower()
    if "youtube.com" in host or "youtu.be" in host:
        if "list" in parse_qs(parsed.query) or parsed.path.startswith("/playlist"):
            return "playlist"
        return "video"
    if parsed.path.lower().endswith(".pdf"):
        return "pdf"
    return "article"


def create_resource(title: str, url: str, subject: str = "", resource_type: Optional[str] = None,
                    now: Optional[datetime] = None) -> ResourceLink:
    resource_type = resource_type or infer_resource_type(url)
    if resource_type not in RESOURCE_TYPES:
        raise ValueError(f"Unknown resource type: {resource_type!r}")
    return ResourceLink(
        id=uuid.uuid4().hex,
        title=title or url,
        url=url,
        type=resource_type,
        subject=subject,
        added_at=(now or datetime.now()).isoformat(),
    )


def filter_resources(resources: list[ResourceLink], group: str = "all") -> list[ResourceLink]:
    if group == "all":
        return list(resources)
    return [r for r in resources if r.type in RESOURCE_GROUPS[group]]
