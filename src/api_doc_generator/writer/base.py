"""Output routing and shared Markdown helpers for the writers."""

import json
import logging
from pathlib import Path
from typing import Callable, TextIO

from api_doc_generator.config import FileLevel

logger = logging.getLogger(__name__)

CR = "\n"


def write_head(title: str, product_name: str = "sensenet") -> str:
    """Front matter of a generated Markdown file."""
    return (
        f"---{CR}"
        f"title: {title}{CR}"
        f'metaTitle: "{product_name} API - {title}"{CR}'
        f'metaDescription: "{title}"{CR}'
        f"---{CR}{CR}"
    )


def category_sort_key(category: str | None) -> tuple[bool, str]:
    """Case-insensitive ordering with missing categories last."""
    return (category is None, (category or "").lower())


def to_json(value) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def json_block(value) -> str:
    return f"``` json{CR}{to_json(value)}{CR}```{CR}"


def entity_destination(level: FileLevel, category_in_link: str, slug: str) -> str:
    """Relative file a single entity is written to."""
    if level == FileLevel.CATEGORY:
        return f"{category_in_link}.md"
    if level == FileLevel.OPERATION:
        return f"{category_in_link}/{slug}.md"
    if level == FileLevel.FLAT:
        return f"{slug}.md"
    raise ValueError(f"FileLevel.{level} is not supported.")


def entity_link(prefix: str, level: FileLevel, category_in_link: str, slug: str) -> str:
    """Site link of an entity written by entity_destination()."""
    if level == FileLevel.CATEGORY:
        return f"{prefix}/{category_in_link}#{slug}"
    if level == FileLevel.OPERATION:
        return f"{prefix}/{category_in_link}/{slug}"
    if level == FileLevel.FLAT:
        return f"{prefix}/{slug}"
    raise ValueError(f"FileLevel.{level} is not supported.")


class OutputRouter:
    """Keeps one open stream per destination key under a root directory.

    A stream is created on first request; ``on_create(key, stream)`` runs
    right after creation so the caller can write the file header. Every
    stream stays open until close_all(), so several entities can append
    to the same file.

    Usage:
        with OutputRouter(out_dir) as router:
            router.stream("general/index.md").write(text)
    """

    def __init__(self, root: Path, on_create: Callable[[str, TextIO], None] | None = None):
        self.root = root
        self.on_create = on_create
        self.streams: dict[str, TextIO] = {}

    def stream(self, key: str, on_create: Callable[[str, TextIO], None] | None = None) -> TextIO:
        existing = self.streams.get(key)
        if existing is not None:
            return existing

        path = self.root / key
        path.parent.mkdir(parents=True, exist_ok=True)
        stream = open(path, "w", encoding="utf-8", newline="\n")
        self.streams[key] = stream
        logger.debug("Opened %s", path)
        callback = on_create or self.on_create
        if callback is not None:
            callback(key, stream)
        return stream

    def close_all(self) -> None:
        for stream in self.streams.values():
            stream.flush()
            stream.close()
        self.streams.clear()

    def __enter__(self) -> "OutputRouter":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close_all()


def write_file(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
