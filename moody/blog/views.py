"""
Terminal views for the Moody client: blog cards, lists, the home page and
the editor preview, rendered with rich.
"""
from datetime import datetime, timezone
from typing import Iterable, Optional

from rich.console import Group
from rich.panel import Panel
from rich.text import Text

from moody.blog.schemas import BlogResponse, BlogStatus

EXCERPT_LENGTH = 120
RECENT_LIMIT = 3


def split_tags(tags: Optional[str]) -> list[str]:
    """'python, , web' -> ['python', 'web']"""
    if not tags:
        return []
    return [tag.strip() for tag in tags.split(",") if tag.strip()]


def excerpt(content: str, length: int = EXCERPT_LENGTH) -> str:
    if not content:
        return "No content"
    if len(content) > length:
        return f"{content[:length]}..."
    return content


def paragraphs(content: str) -> list[str]:
    """Paragraphs are separated by a blank line."""
    return content.split("\n\n") if content else []


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def distance(seconds: float) -> str:
    """Rough human distance, in the style of date-fns formatDistance."""
    minutes = round(seconds / 60)
    if seconds < 30:
        return "less than a minute"
    if minutes < 45:
        return _plural(max(minutes, 1), "minute")
    if minutes < 90:
        return "about 1 hour"
    hours = round(minutes / 60)
    if minutes < 24 * 60:
        return f"about {_plural(hours, 'hour')}"
    days = round(minutes / (24 * 60))
    if days < 30:
        return _plural(days, "day")
    if days < 45:
        return "about 1 month"
    if days < 60:
        return "about 2 months"
    if days < 365:
        return _plural(round(days / 30), "month")
    return f"about {_plural(round(days / 365), 'year')}"


def time_ago(when: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    delta = (now - when).total_seconds()
    if delta < 0:
        return f"in {distance(-delta)}"
    return f"{distance(delta)} ago"


def status_label(blog: BlogResponse) -> str:
    return "Published" if blog.status == BlogStatus.PUBLISHED.value else "Draft"


def recent(blogs: Iterable[BlogResponse], status: BlogStatus, limit: int = RECENT_LIMIT) -> list[BlogResponse]:
    matching = [b for b in blogs if b.status == BlogStatus(status).value]
    matching.sort(key=lambda b: b.updated_at, reverse=True)
    return matching[:limit]


def blog_card(blog: BlogResponse, compact: bool = False, now: Optional[datetime] = None) -> Panel:
    published = blog.status == BlogStatus.PUBLISHED.value

    header = Text(blog.title or "Untitled", style="bold")
    header.append("  ")
    header.append(f"[{status_label(blog)}]", style="green" if published else "dim")

    lines = [header]
    if not compact:
        lines.append(Text(excerpt(blog.content)))
    tags = split_tags(blog.tags)
    if tags:
        lines.append(Text("  ".join(f"#{tag}" for tag in tags), style="cyan"))

    when = time_ago(blog.updated_at, now)
    footer = f"Published {when}" if published else f"Last edited {when}"
    lines.append(Text(footer, style="dim"))

    return Panel(Group(*lines), title=f"#{blog.id}", title_align="left")


def blog_list(blogs: list[BlogResponse], empty: str = "No blogs found", now: Optional[datetime] = None):
    if not blogs:
        return Text(empty, style="italic dim")
    return Group(*(blog_card(blog, now=now) for blog in blogs))


def home_view(blogs: list[BlogResponse], now: Optional[datetime] = None) -> Group:
    drafts = recent(blogs, BlogStatus.DRAFT)
    published = recent(blogs, BlogStatus.PUBLISHED)

    sections = [Text("Recent Drafts", style="bold underline")]
    if drafts:
        sections.extend(blog_card(b, compact=True, now=now) for b in drafts)
    else:
        sections.append(Text("No drafts yet", style="italic dim"))

    sections.append(Text("Published Blogs", style="bold underline"))
    if published:
        sections.extend(blog_card(b, compact=True, now=now) for b in published)
    else:
        sections.append(Text("No published blogs yet", style="italic dim"))
    return Group(*sections)


def preview(title: str, content: str, tags: Optional[str] = None) -> Panel:
    """Editor preview: title, tags, then the content paragraph by paragraph."""
    parts = []
    tag_items = split_tags(tags)
    if tag_items:
        parts.append(Text("  ".join(f"#{tag}" for tag in tag_items), style="cyan"))
    for paragraph in paragraphs(content):
        parts.append(Text(paragraph))
        parts.append(Text(""))
    if not parts:
        parts.append(Text("Nothing to preview yet", style="italic dim"))
    return Panel(Group(*parts), title=Text(title or "Untitled"), title_align="left")
