#!/usr/bin/env python3
"""
Capture a logged-in browser session for an event platform.

Run this on a workstation with a display, not inside the backend
container. A Chromium window opens on the platform's login page; sign in
by hand (2FA included) and the resulting Playwright storage state is
uploaded to the backend, where automation publishing restores it instead
of filling in the login form.

Requirements:
    pip install playwright httpx
    playwright install chromium

Usage:
    python scripts/guided_login.py meetup
    python scripts/guided_login.py facebook --timeout 600
    python scripts/guided_login.py --status
"""

import argparse
import asyncio
import sys
from typing import Optional

import httpx
from playwright.async_api import BrowserContext, async_playwright

API_URL = "http://localhost:8000"
POLL_SECONDS = 2

# Login entry point and URL fragments seen while the user is still signing in
LOGIN_PAGES = {
    "meetup": ("https://www.meetup.com/login/", ("login", "signin")),
    "eventbrite": ("https://www.eventbrite.com/signin/", ("signin", "login")),
    "facebook": ("https://www.facebook.com/login/", ("login", "checkpoint")),
    "spontacts": ("https://www.spontacts.com/login", ("login", "anmelden")),
}


def show_status(api_url: str) -> int:
    """Print one line per platform with its automation and session state."""
    try:
        response = httpx.get(f"{api_url}/api/platforms/", timeout=10)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        print(f"Backend at {api_url} unreachable: {exc}")
        return 1

    for config in response.json():
        flags = [
            "automation on" if config["automation_enabled"] else "automation off",
            "session stored" if config["has_saved_session"] else "no session",
            f"connection {config['connection_status']}",
        ]
        print(f"{config['platform']:<12} {config['display_name']:<14} {' | '.join(flags)}")
    return 0


async def wait_for_login(context: BrowserContext, markers, timeout: int) -> bool:
    """Poll until the page leaves the login flow and cookies are set."""
    page = context.pages[0]
    elapsed = 0
    while elapsed < timeout:
        await asyncio.sleep(POLL_SECONDS)
        elapsed += POLL_SECONDS
        url = page.url.lower()
        if not any(marker in url for marker in markers) and await context.cookies():
            return True
        if elapsed % 30 == 0:
            print(f"  waiting for sign-in, {elapsed}s of {timeout}s")
    return False


async def capture_session(platform: str, timeout: int, headless: bool = False) -> Optional[dict]:
    """Open the platform login page and return the storage state once signed in."""
    login_url, markers = LOGIN_PAGES[platform]

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=headless,
            args=["--disable-blink-features=AutomationControlled"],
        )
        try:
            context = await browser.new_context(viewport={"width": 1280, "height": 900}, locale="de-DE")
            page = await context.new_page()
            await page.goto(login_url, wait_until="domcontentloaded")
            print(f"Sign in to {platform} in the browser window ({timeout}s limit).")

            if not await wait_for_login(context, markers, timeout):
                return None
            return await context.storage_state()
        finally:
            await browser.close()


def upload_session(api_url: str, platform: str, session_blob: dict) -> bool:
    """Store the captured session on the platform configuration."""
    response = httpx.put(
        f"{api_url}/api/platforms/{platform}",
        json={"session_blob": session_blob},
        timeout=30,
    )
    if response.status_code != 200:
        print(f"Backend rejected the session ({response.status_code}): {response.text}")
        return False

    config = response.json()
    print(f"Session stored for {config['display_name']}.")
    if not config["automation_configured"]:
        print("Automation still needs a username and password before it can publish.")
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Capture a browser session for automation publishing")
    parser.add_argument("platform", nargs="?", choices=sorted(LOGIN_PAGES))
    parser.add_argument("--status", action="store_true", help="show platform session state and exit")
    parser.add_argument("--api-url", default=API_URL, help=f"backend base URL (default {API_URL})")
    parser.add_argument("--timeout", type=int, default=300, help="seconds to wait for sign-in")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.status:
        return show_status(args.api_url)
    if not args.platform:
        parser.error("a platform is required unless --status is given")

    session_blob = asyncio.run(capture_session(args.platform, args.timeout))
    if session_blob is None:
        print("Sign-in was not detected before the timeout.")
        return 1

    print(f"Captured {len(session_blob.get('cookies', []))} cookies.")
    return 0 if upload_session(args.api_url, args.platform, session_blob) else 1


if __name__ == "__main__":
    sys.exit(main())
