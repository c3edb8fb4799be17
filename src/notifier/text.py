"""Text conversion helpers for Slack messages.

Mentions: GitHub ``@login`` mentions in comment bodies become Slack
``<@ID>`` mentions for every login the resolver could map.

Images: GitHub ``<img>`` tags pointing at uploaded attachments become a
plain link in the text plus an image attachment.

Durations: workflow run times rendered as ``Xm Ys``.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping
from urllib.parse import urlparse

from src.notifier.constants import IMAGE_ATTACHMENT_COLOR, Template

logger = logging.getLogger(__name__)

MENTION_PATTERN = re.compile(r"@([a-zA-Z0-9_-]+)")
IMG_TAG_PATTERN = re.compile(r"<img[^>]+src=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE)

GITHUB_IMAGE_HOST = "github.com"
GITHUB_IMAGE_PATH = "/user-attachments/assets/"

# Characters allowed to follow a mention for it to be converted.
_MENTION_TERMINATOR = r"(?=$|\s|[.,?!:;\"'\-()\[\]{}])"


# -------------------------------------------------------------------------
# Mentions
# -------------------------------------------------------------------------
def extract_github_mentions(text: str) -> List[str]:
    """Return the distinct logins mentioned in ``text`` in order of appearance."""
    if not text:
        return []
    return list(dict.fromkeys(MENTION_PATTERN.findall(text)))


def convert_mentions_to_slack(text: str, mapping: Mapping[str, str]) -> str:
    """Replace ``@login`` with ``<@ID>`` for every login in ``mapping``.

    A mention is only replaced when followed by whitespace, punctuation or
    the end of the text, so ``@bob`` does not rewrite ``@bobby``.
    """
    if not text or not mapping:
        return text

    names = "|".join(re.escape(login) for login in mapping)
    pattern = re.compile(f"@({names}){_MENTION_TERMINATOR}")
    converted, count = pattern.subn(lambda m: f"<@{mapping[m.group(1)]}>", text)
    if count:
        logger.debug("Converted GitHub mentions", extra={"count": count})
    return converted


async def build_mention_mapping(
    logins: Iterable[str],
    resolve_ids: Callable[[List[str]], Awaitable[Dict[str, str]]],
) -> Dict[str, str]:
    """Resolve logins to Slack ids, keeping only successful mappings.

    A login that resolves to itself had no Slack match and is dropped.
    """
    logins = list(logins)
    if not logins:
        return {}
    resolved = await resolve_ids(logins)
    mapping = {
        login: slack_id
        for login, slack_id in resolved.items()
        if slack_id and slack_id != login
    }
    logger.info(
        "Built GitHub to Slack mention mapping",
        extra={"mapped": len(mapping), "requested": len(logins)},
    )
    return mapping


async def convert_comment_mentions(
    text: str,
    resolve_ids: Callable[[List[str]], Awaitable[Dict[str, str]]],
) -> str:
    """Convert all GitHub mentions in a comment body to Slack mentions."""
    logins = extract_github_mentions(text)
    if not logins:
        return text
    mapping = await build_mention_mapping(logins, resolve_ids)
    return convert_mentions_to_slack(text, mapping)


# -------------------------------------------------------------------------
# Images
# -------------------------------------------------------------------------
@dataclass
class ProcessedComment:
    text: str
    image_urls: List[str] = field(default_factory=list)


def is_github_image_url(url: str) -> bool:
    """True for images uploaded to GitHub comments."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.hostname == GITHUB_IMAGE_HOST and GITHUB_IMAGE_PATH in parsed.path


def extract_image_urls(text: str) -> List[str]:
    if not text:
        return []
    urls = (url.strip() for url in IMG_TAG_PATTERN.findall(text))
    return list(dict.fromkeys(url for url in urls if url))


def convert_images_to_links(text: str) -> str:
    """Replace GitHub image tags with a link line; other tags are kept."""
    if not text:
        return text

    def _replace(match: "re.Match[str]") -> str:
        src = match.group(1)
        if is_github_image_url(src):
            return f"\n📷 *{Template.ATTACHED_IMAGE}:* {src}"
        return match.group(0)

    return IMG_TAG_PATTERN.sub(_replace, text)


def create_image_attachments(image_urls: Iterable[str]) -> List[Dict[str, Any]]:
    """Build one Slack image attachment per GitHub image URL."""
    valid = [url for url in image_urls if is_github_image_url(url)]
    attachments = []
    for index, url in enumerate(valid, start=1):
        title = (
            f"{Template.ATTACHED_IMAGE} {index}"
            if len(valid) > 1
            else Template.ATTACHED_IMAGE
        )
        attachments.append(
            {
                "color": IMAGE_ATTACHMENT_COLOR,
                "image_url": url,
                "fallback": f"{Template.ATTACHED_IMAGE} {index}",
                "title": title,
                "title_link": url,
            }
        )
    return attachments


def process_comment_images(text: str) -> ProcessedComment:
    """Convert image tags in a comment and collect the GitHub image URLs."""
    if not text:
        return ProcessedComment(text=text)
    urls = extract_image_urls(text)
    processed = ProcessedComment(
        text=convert_images_to_links(text),
        image_urls=[url for url in urls if is_github_image_url(url)],
    )
    logger.debug(
        "Processed comment images",
        extra={"found": len(urls), "attached": len(processed.image_urls)},
    )
    return processed


# -------------------------------------------------------------------------
# Durations
# -------------------------------------------------------------------------
def _parse_timestamp(value: str) -> datetime:
    # GitHub timestamps end in Z, which fromisoformat rejects before 3.11.
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def duration_minutes(start: str, end: str) -> float:
    """Minutes elapsed between two ISO 8601 timestamps."""
    delta = _parse_timestamp(end) - _parse_timestamp(start)
    return delta.total_seconds() / 60


def format_duration(total_minutes: float) -> str:
    """Render fractional minutes as ``Xm Ys`` with seconds rounded."""
    minutes = int(total_minutes // 1)
    seconds = round((total_minutes - minutes) * 60)
    if seconds == 60:
        return f"{minutes + 1}m 0s"
    return f"{minutes}m {seconds}s"
