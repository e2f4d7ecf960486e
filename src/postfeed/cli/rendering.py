"""Terminal rendering of feed posts and notices using Rich."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.text import Text

from postfeed.feed.notifier import Notice, NoticeKind
from postfeed.feed.types import PostEntity

console = Console()

EMPTY_FEED_TEXT = "No posts found. Be the first to post!"


def _format_time(value) -> str:
    if value is None:
        return "—"
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


def _image_line(src: str) -> Text:
    if src.startswith("data:"):
        return Text("[Image failed]", style="dim italic")
    return Text(f"Image: {src}", style="cyan")


def render_post(entity: PostEntity, image_src: str | None = None) -> Panel:
    """Render one post. ``image_src`` is whatever the image slot settled on."""
    body = Text(entity.content, style="bold")
    lines: list[RenderableType] = [body]
    if image_src:
        lines.append(_image_line(image_src))
    lines.append(Text(f"— Posted by: {entity.author or 'unknown'}"))
    stamp = Text(f"Created: {_format_time(entity.created_at)}", style="dim")
    if entity.is_edited:
        stamp.append(" (Edited)", style="dim italic")
    lines.append(stamp)
    return Panel(
        Group(*lines),
        title=Text(f"#{entity.id}", style="bold"),
        title_align="left",
        border_style="yellow" if entity.editing else "blue",
        expand=False,
    )


def render_feed(
    posts: Sequence[PostEntity],
    image_sources: Mapping[str, str | None] | None = None,
) -> RenderableType:
    if not posts:
        return Text(EMPTY_FEED_TEXT, style="dim")
    sources = image_sources or {}
    panels = [
        render_post(p, sources.get(str(p.id), p.image_url))
        for p in posts
    ]
    return Group(*panels)


def render_notice(notice: Notice | None) -> Text:
    if notice is None:
        return Text("")
    style = {
        NoticeKind.SUCCESS: "bold green",
        NoticeKind.ERROR: "bold red",
    }.get(notice.kind, "")
    return Text(notice.text, style=style)
