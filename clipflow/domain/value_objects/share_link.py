"""Share link parsing: URL extraction and source classification."""

import re
from enum import Enum
from urllib.parse import urlparse

# First http(s) URL; stops at whitespace and CJK characters
_URL_PATTERN = re.compile(r"https?://[^\s\u4e00-\u9fa5]+", re.IGNORECASE)

# Punctuation that share texts commonly glue onto the end of a link
_TRAILING_PUNCTUATION = "\"'“”‘’，。！？、；：）》】.,;:!?)]}>"

_AUTHOR_HANDLE = re.compile(r"@[\w.]+")


class SourceFamily(str, Enum):
    """Platform a share link belongs to."""

    TIKTOK = "tiktok"
    DOUYIN = "douyin"
    YOUTUBE = "youtube"
    BILIBILI = "bilibili"
    INSTAGRAM = "instagram"
    FACEBOOK = "facebook"
    TWITTER = "twitter"
    UNKNOWN = "unknown"

    @property
    def uses_author_handles(self) -> bool:
        """Whether titles from this family carry an @handle for the author."""
        return self in {SourceFamily.TIKTOK, SourceFamily.DOUYIN}


# Host suffix -> family. Checked in order.
_HOST_FAMILIES: list[tuple[tuple[str, ...], SourceFamily]] = [
    (("tiktok.com",), SourceFamily.TIKTOK),
    (("douyin.com", "iesdouyin.com"), SourceFamily.DOUYIN),
    (("youtube.com", "youtu.be"), SourceFamily.YOUTUBE),
    (("instagram.com",), SourceFamily.INSTAGRAM),
    (("bilibili.com", "b23.tv"), SourceFamily.BILIBILI),
    (("facebook.com", "fb.watch"), SourceFamily.FACEBOOK),
    (("twitter.com", "x.com"), SourceFamily.TWITTER),
]


def extract_url(text: str) -> str | None:
    """Pull the first link out of pasted share text.

    Examples:
        >>> extract_url("7.43 复制打开抖音 https://v.douyin.com/iRNBho6u/ 看看！")
        'https://v.douyin.com/iRNBho6u/'
        >>> extract_url("no link here") is None
        True

    Args:
        text: Raw user input, a bare URL or a share blurb.

    Returns:
        The cleaned URL, or None when the text has no link.
    """
    if not text:
        return None
    match = _URL_PATTERN.search(text)
    if match is None:
        return None
    url = match.group(0).rstrip(_TRAILING_PUNCTUATION)
    return url or None


def classify_source(url: str) -> SourceFamily:
    """Map a URL to its platform by host name."""
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return SourceFamily.UNKNOWN
    for suffixes, family in _HOST_FAMILIES:
        for suffix in suffixes:
            if host == suffix or host.endswith(f".{suffix}"):
                return family
    return SourceFamily.UNKNOWN


def extract_author_handle(title: str | None) -> str | None:
    """Return the first @handle in a title, if any."""
    if not title:
        return None
    match = _AUTHOR_HANDLE.search(title)
    return match.group(0) if match else None
