#!/usr/bin/env python3
"""Widget renderer runner script.

Renders a bot widget to a file, either from a local avatar image or by
looking the bot up on the Fates List API.

Usage:
    python scripts/render_widget.py --bot-id 123456789 -o widget.webp
    python scripts/render_widget.py --avatar avatar.png --username testbot -o widget.png --format png
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fates_list.shared.config import get_settings
from fates_list.shared.logging import configure_logging
from fates_list.widgets import WidgetError, WidgetOptions, WidgetUser, create_renderer
from fates_list.widgets.avatar import WidgetUserFetcher

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a Fates List bot widget")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--bot-id", help="Bot id to look up on the Fates List API")
    source.add_argument("--avatar", type=Path, help="Local avatar image file")
    parser.add_argument("--username", default="testbot", help="Username drawn with --avatar")
    parser.add_argument("--bgcolor", default=None, help="Background colour override")
    parser.add_argument("--format", default="webp", help="png or webp")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output file")
    return parser.parse_args()


async def load_user(args: argparse.Namespace) -> WidgetUser:
    """Build the widget user from a local file or the API."""
    if args.avatar:
        return WidgetUser.from_avatar_bytes("local", args.username, args.avatar.read_bytes())

    settings = get_settings()
    async with WidgetUserFetcher(settings.api_base_url, timeout=settings.avatar_fetch_timeout) as fetcher:
        return await fetcher.fetch_widget_user(args.bot_id)


async def main():
    """Main entry point for the widget renderer."""
    args = parse_args()
    settings = get_settings()
    configure_logging(settings)

    try:
        user = await load_user(args)
        renderer = create_renderer(settings)
        data, content_type = renderer.render(
            user,
            WidgetOptions(bgcolor=args.bgcolor),
            args.format,
            webp_lossless=settings.widget_webp_lossless,
            webp_quality=settings.widget_webp_quality
        )
    except (WidgetError, OSError) as e:
        logger.error(f"Widget render failed: {e}")
        sys.exit(1)

    args.output.write_bytes(data)
    logger.info(f"Wrote {len(data)} bytes ({content_type}) to {args.output}")


if __name__ == "__main__":
    asyncio.run(main())
