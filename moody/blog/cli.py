"""Terminal client for Moody."""

import os
import time
from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import httpx
import typer
from rich.console import Console

from moody.blog import views
from moody.blog.autosave import AutoSaver
from moody.blog.client import DEFAULT_API_URL, BlogApiError, BlogClient
from moody.blog.schemas import BlogStatus

app = typer.Typer(
    name="moody",
    help="Write, save drafts and publish blog posts.",
    no_args_is_help=True,
)

console = Console()


def get_client() -> BlogClient:
    return BlogClient(base_url=os.getenv("MOODY_API_URL", DEFAULT_API_URL))


def fail(message: str) -> None:
    console.print(f"[red]Error:[/red] {message}")
    raise typer.Exit(code=1)


def autosave_delay() -> float:
    raw = os.getenv("MOODY_AUTOSAVE_SECONDS", "5")
    try:
        return float(raw)
    except ValueError:
        fail(f"MOODY_AUTOSAVE_SECONDS must be a number of seconds, got '{raw}'")


def parse_draft_file(text: str) -> dict:
    """
    Read a local draft file.

    An optional first line "# Title" and an optional "tags: a, b" line are
    pulled out; everything after them is the content.
    """
    lines = text.splitlines()
    title, tags = "", None

    if lines and lines[0].startswith("# "):
        title = lines.pop(0)[2:].strip()
    while lines and not lines[0].strip():
        lines.pop(0)
    if lines and lines[0].lower().startswith("tags:"):
        tags = lines.pop(0)[5:].strip()

    content = "\n".join(lines).strip()
    return {"title": title, "content": content, "tags": tags}


@app.command("list")
def list_blogs(
    status: Annotated[
        Optional[BlogStatus],
        typer.Option("--status", "-s", help="Only show drafts or published posts."),
    ] = None,
) -> None:
    """List blogs, most recently edited first."""
    with get_client() as client:
        try:
            blogs = client.list_blogs(status)
        except BlogApiError as e:
            fail(e.message)
        except httpx.HTTPError:
            fail("Could not reach the Moody API")

    empty = "No blogs found"
    if status is not None:
        empty = "No published blogs found" if status == BlogStatus.PUBLISHED else "No drafts found"
    console.print(views.blog_list(blogs, empty=empty))


@app.command()
def home() -> None:
    """Show the latest drafts and published posts."""
    with get_client() as client:
        try:
            blogs = client.list_blogs()
        except BlogApiError as e:
            fail(e.message)
        except httpx.HTTPError:
            fail("Could not reach the Moody API")
    console.print(views.home_view(blogs))


@app.command()
def show(blog_id: Annotated[int, typer.Argument(help="Blog id.")]) -> None:
    """Show one blog as it would be published."""
    with get_client() as client:
        try:
            blog = client.get_blog(blog_id)
        except BlogApiError:
            fail("Failed to load blog. It may have been deleted or doesn't exist.")
        except httpx.HTTPError:
            fail("Could not reach the Moody API")
    console.print(views.preview(blog.title, blog.content, blog.tags))
    console.print(f"[dim]{views.status_label(blog)} · last edited {views.time_ago(blog.updated_at)}[/dim]")


@app.command()
def draft(
    title: Annotated[Optional[str], typer.Option("--title", "-t")] = None,
    content: Annotated[Optional[str], typer.Option("--content", "-c")] = None,
    tags: Annotated[Optional[str], typer.Option("--tags", help="Comma-separated.")] = None,
    blog_id: Annotated[Optional[int], typer.Option("--id", help="Update this blog.")] = None,
) -> None:
    """Save a draft. Without --id a new blog is created."""
    with get_client() as client:
        try:
            blog = client.save_draft(blog_id=blog_id, title=title, content=content, tags=tags)
        except BlogApiError:
            fail("Failed to save draft")
        except httpx.HTTPError:
            fail("Could not reach the Moody API")
    console.print(f"[green]Draft saved successfully[/green] (#{blog.id})")


@app.command()
def publish(
    title: Annotated[str, typer.Option("--title", "-t")] = "",
    content: Annotated[str, typer.Option("--content", "-c")] = "",
    tags: Annotated[Optional[str], typer.Option("--tags", help="Comma-separated.")] = None,
    blog_id: Annotated[Optional[int], typer.Option("--id", help="Publish this blog.")] = None,
) -> None:
    """Publish a blog. Title and content are required."""
    if not title.strip():
        fail("Please enter a title for your blog")
    if not content.strip():
        fail("Please add some content to your blog")

    with get_client() as client:
        try:
            blog = client.publish(title, content, tags=tags, blog_id=blog_id)
        except BlogApiError as e:
            fail(e.message or "Failed to publish blog")
        except httpx.HTTPError:
            fail("Could not reach the Moody API")
    console.print(f"[green]Blog published successfully[/green] (#{blog.id})")


@app.command()
def delete(
    blog_id: Annotated[int, typer.Argument(help="Blog id.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation.")] = False,
) -> None:
    """Permanently delete a blog."""
    if not yes:
        typer.confirm(f"This will permanently delete blog #{blog_id}. Continue?", abort=True)
    with get_client() as client:
        try:
            client.delete_blog(blog_id)
        except BlogApiError:
            fail("Failed to delete blog")
        except httpx.HTTPError:
            fail("Could not reach the Moody API")
    console.print("[green]Blog deleted successfully[/green]")


@app.command()
def write(
    path: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="Draft file to watch.")],
    blog_id: Annotated[Optional[int], typer.Option("--id", help="Blog the file belongs to.")] = None,
    delay: Annotated[
        Optional[float],
        typer.Option(help="Idle seconds before auto-saving. Defaults to $MOODY_AUTOSAVE_SECONDS or 5."),
    ] = None,
    interval: Annotated[float, typer.Option(help="Seconds between file checks.")] = 0.5,
    once: Annotated[bool, typer.Option("--once", help="Save the file once and exit.")] = False,
) -> None:
    """
    Auto-save a local draft file while you edit it.

    The file may start with "# Title" and a "tags: a, b" line.
    Stop with Ctrl-C; pending changes are saved before exiting.
    """
    if delay is None:
        delay = autosave_delay()

    client = get_client()
    state = {"id": blog_id}

    def save(data: dict) -> None:
        blog = client.save_draft(blog_id=state["id"], **data)
        state["id"] = blog.id
        stamp = datetime.now().strftime("%H:%M")
        console.print(f"[dim]Draft automatically saved at {stamp}[/dim] (#{blog.id})")

    saver = AutoSaver(save, delay=delay)

    try:
        if blog_id:
            existing = client.get_blog(blog_id)
            saver.mark_saved(title=existing.title, content=existing.content, tags=existing.tags)

        if once:
            saver.update(**parse_draft_file(path.read_text()))
            if not saver.flush() and saver.last_error is not None:
                fail("Failed to save draft")
            return

        console.print(f"Watching [bold]{path}[/bold]. Press Ctrl-C to stop.")
        last_mtime = None
        while True:
            mtime = path.stat().st_mtime
            if mtime != last_mtime:
                last_mtime = mtime
                saver.update(**parse_draft_file(path.read_text()))
            time.sleep(interval)
    except KeyboardInterrupt:
        saver.flush()
    except BlogApiError:
        fail("Failed to load blog. It may have been deleted or doesn't exist.")
    except httpx.HTTPError:
        fail("Could not reach the Moody API")
    finally:
        saver.cancel()
        client.close()


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Bind address.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port.")] = 8000,
    reload: Annotated[bool, typer.Option(help="Reload on code changes.")] = False,
) -> None:
    """Run the blog API."""
    import uvicorn

    uvicorn.run("moody.blog.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
