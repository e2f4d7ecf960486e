"""Click CLI for browsing and editing the feed."""

from __future__ import annotations

import asyncio

import click

from postfeed.cli.rendering import console, render_feed, render_notice, render_post
from postfeed.core.config import Settings, get_settings
from postfeed.core.credentials import TokenFile
from postfeed.core.http import make_httpx_client
from postfeed.core.logging import setup_logging
from postfeed.feed.images import ImageResolver, ImageSlot, settle_slot
from postfeed.feed.store import FeedStore
from postfeed.feed.types import FeedConfig, PostDraft, PostEntity


@click.group()
@click.option("--base-url", default=None, help="Posts collection URL (default from env)")
@click.pass_context
def cli(ctx: click.Context, base_url: str | None) -> None:
    """Browse, post to, and edit a remote feed."""
    settings = get_settings()
    if base_url:
        settings = settings.model_copy(update={"base_url": base_url})
    setup_logging(settings.log_level, settings.app_log_path)
    ctx.obj = settings


def _show_notice(store: FeedStore) -> None:
    notice = store.notifier.current
    if notice is not None:
        console.print(render_notice(notice))


async def _settle_images(posts: tuple[PostEntity, ...], settings: Settings) -> dict[str, str | None]:
    """Probe each post's image, falling back the way a browser view would."""
    resolver = ImageResolver(settings.fallback_image)
    slots = {str(p.id): ImageSlot(p.image_url, resolver) for p in posts if p.image_url}
    async with make_httpx_client(timeout=settings.request_timeout) as client:
        sources = await asyncio.gather(
            *(settle_slot(slot, client, settings.resolved_asset_base_url) for slot in slots.values())
        )
    return dict(zip(slots, sources))


@cli.command("list")
@click.option("--probe-images", is_flag=True, help="Check image URLs and show fallbacks")
@click.pass_obj
def list_posts(settings: Settings, probe_images: bool) -> None:
    """Show the feed, newest first."""
    if not asyncio.run(_list(settings, probe_images)):
        raise SystemExit(1)


async def _list(settings: Settings, probe_images: bool) -> bool:
    async with FeedStore(FeedConfig.from_settings(settings)) as store:
        result = await store.load()
        if not result.ok:
            _show_notice(store)
            return False
        sources = await _settle_images(store.posts, settings) if probe_images else None
        console.print(render_feed(store.posts, sources))
    return True


@cli.command()
@click.argument("content")
@click.option("--image", "image_url", default=None, help="Image URL to attach")
@click.pass_obj
def post(settings: Settings, content: str, image_url: str | None) -> None:
    """Publish a new post."""
    if not asyncio.run(_post(settings, PostDraft(content=content, image_url=image_url))):
        raise SystemExit(1)


async def _post(settings: Settings, draft: PostDraft) -> bool:
    async with FeedStore(FeedConfig.from_settings(settings)) as store:
        result = await store.create(draft)
        _show_notice(store)
        if result.ok and result.value is not None:
            console.print(render_post(result.value))
        return result.ok


@cli.command()
@click.argument("post_id")
@click.argument("content")
@click.option("--image", "image_url", default=None, help="New image URL; pass '' to remove it")
@click.pass_obj
def edit(settings: Settings, post_id: str, content: str, image_url: str | None) -> None:
    """Replace the text (and optionally the image) of a post."""
    if not asyncio.run(_edit(settings, post_id, content, image_url)):
        raise SystemExit(1)


async def _edit(settings: Settings, post_id: str, content: str, image_url: str | None) -> bool:
    async with FeedStore(FeedConfig.from_settings(settings)) as store:
        if not (await store.load()).ok:
            _show_notice(store)
            return False
        entity = store.get(post_id)
        if entity is None:
            click.echo(f"Post {post_id} not found.")
            return False

        store.begin_edit(post_id)
        draft = PostDraft(
            content=content,
            image_url=entity.image_url if image_url is None else image_url,
        )
        result = await store.save(post_id, draft)
        _show_notice(store)
        if result.ok and result.value is not None:
            console.print(render_post(result.value))
        return result.ok


@cli.command()
@click.argument("post_id")
@click.option("--yes", is_flag=True, help="Skip the confirmation prompt")
@click.pass_obj
def delete(settings: Settings, post_id: str, yes: bool) -> None:
    """Delete a post."""
    if not yes and not click.confirm("Are you sure you want to delete this post?"):
        click.echo("Cancelled.")
        return
    if not asyncio.run(_delete(settings, post_id)):
        raise SystemExit(1)


async def _delete(settings: Settings, post_id: str) -> bool:
    async with FeedStore(FeedConfig.from_settings(settings)) as store:
        if not (await store.load()).ok:
            _show_notice(store)
            return False
        if store.get(post_id) is None:
            click.echo(f"Post {post_id} not found.")
            return False
        result = await store.remove(post_id, confirmed=True)
        _show_notice(store)
        return result.ok


@cli.command()
@click.argument("token")
@click.pass_obj
def login(settings: Settings, token: str) -> None:
    """Store a bearer token for authenticated requests."""
    if not token.strip():
        click.echo("Error: token is empty.")
        raise SystemExit(1)
    token_file = TokenFile(settings.credentials_path)
    token_file.save(token)
    click.echo(f"Token saved to {token_file.path}")


@cli.command()
@click.pass_obj
def logout(settings: Settings) -> None:
    """Forget the stored bearer token."""
    if TokenFile(settings.credentials_path).clear():
        click.echo("Token removed.")
    else:
        click.echo("No stored token.")


if __name__ == "__main__":
    cli()
