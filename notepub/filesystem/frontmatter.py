"""YAML front matter inspection and attachment embed discovery for notes."""

from __future__ import annotations

import re

import frontmatter

PUBLISH_FIELD = "publish"

ATTACHMENT_EXTENSIONS: frozenset[str] = frozenset(
    {"png", "jpg", "jpeg", "gif", "webp", "svg", "mp4", "pdf"}
)

# ![[image.png]] or ![[image.png|300]]
_EMBED_RE = re.compile(r"!\[\[([^\]|]+?\.([A-Za-z0-9]+))(?:\|(\d+))?\]\]")


def is_publishable(raw_content: str) -> bool:
    """Return True when the note's front matter sets a truthy ``publish`` flag.

    Raises whatever the YAML loader raises on malformed front matter; callers
    decide whether to skip the note.
    """
    post = frontmatter.loads(raw_content)
    return bool(post.get(PUBLISH_FIELD))


def find_embedded_attachments(content: str) -> list[str]:
    """Return attachment names embedded in *content*, in first-seen order.

    Only embeds whose extension is a known attachment type are returned;
    note transclusions (``![[Other note]]``) are ignored.
    """
    names: list[str] = []
    seen: set[str] = set()
    for match in _EMBED_RE.finditer(content):
        name, extension = match.group(1).strip(), match.group(2).lower()
        if extension not in ATTACHMENT_EXTENSIONS or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names
