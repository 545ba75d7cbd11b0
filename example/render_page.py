#!/usr/bin/env python3
"""
Open a page in PhantomJS, evaluate a script against it and render a screenshot.

Usage:
    python render_page.py URL [--bin PATH] [--inject FILE] [--output page.png] [--option OPT ...]
"""

import argparse
import logging
import os
import sys
from datetime import timedelta

from pyphantom import PhantomError, WebPageSettings, open_process

logger = logging.getLogger("render_page")

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/57.0.2987.133 Safari/537.36"
)

SUMMARY_SCRIPT = """function() {
    return {title: document.title, links: document.links.length};
}"""


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Render a web page with PhantomJS")
    parser.add_argument("url", help="URL to open")
    parser.add_argument("--bin", dest="bin_path", default=None, help="Path to the phantomjs binary")
    parser.add_argument("--port", type=int, default=20202, help="Port for the control script")
    parser.add_argument("--option", action="append", default=[], help="Extra phantomjs option (repeatable)")
    parser.add_argument("--inject", default=None, help="Script file to inject after the page loads")
    parser.add_argument("--output", default="page.png", help="Where to render the page")
    parser.add_argument("--width", type=int, default=1000)
    parser.add_argument("--height", type=int, default=800)
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config = {"port": args.port, "options": args.option, "stderr": logging.getLogger("phantomjs")}
    if args.bin_path:
        config["bin_path"] = args.bin_path

    try:
        with open_process(config) as process:
            with process.create_web_page() as page:
                settings: WebPageSettings = page.settings()
                settings.javascript_enabled = True
                settings.load_images = False
                settings.local_to_remote_url_access_enabled = False
                settings.web_security_enabled = False
                settings.resource_timeout = timedelta(seconds=6)
                settings.user_agent = USER_AGENT
                page.set_settings(settings)

                page.open(args.url)
                if args.inject:
                    page.inject_js(args.inject)

                info = page.evaluate(SUMMARY_SCRIPT)

                page.set_viewport_size(args.width, args.height)
                # the remote side resolves paths against its own working directory
                page.render(os.path.abspath(args.output), "png", 100)
    except PhantomError as exc:
        logger.error("%s", exc)
        return 1

    print(info)
    return 0


if __name__ == "__main__":
    sys.exit(main())
