#!/usr/bin/env python3
"""
Redirect Trace - CLI entry point
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Any

from .config import load_settings
from .markdown import to_markdown
from .normalize import normalize_url
from .output import exit_code_from_result
from .status import annotate, describe_status, status_category
from .tracer import RedirectTracer
from .user_agents import PRESETS, resolve_user_agent


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Trace the redirect chain of a URL hop by hop"
    )
    parser.add_argument("url", help="URL to trace (https:// is assumed when no scheme is given)")
    parser.add_argument(
        "--user-agent",
        "-A",
        default=None,
        help=f"User-Agent string or preset ({', '.join(PRESETS)}). Default: desktop browser",
    )
    parser.add_argument(
        "--timeout-ms",
        "-t",
        type=int,
        default=None,
        help="Per-hop timeout in milliseconds (default: 10000)",
    )
    parser.add_argument(
        "--max-redirects",
        "-m",
        type=int,
        default=None,
        help="Maximum number of redirects to follow (default: 20)",
    )
    parser.add_argument(
        "--no-follow",
        action="store_true",
        help="Make a single request and report it without following redirects",
    )
    parser.add_argument(
        "--format",
        choices=["pretty", "json", "markdown"],
        default="pretty",
        help="Output format (default: pretty)",
    )
    parser.add_argument(
        "--headers", action="store_true", help="Include response headers in pretty/markdown output"
    )
    parser.add_argument(
        "--fail-on",
        choices=["3xx", "4xx", "5xx", "error"],
        default=None,
        help="Exit 1 when the final status category (or a trace error) is at or above this level",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log every hop")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    settings = load_settings()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.timeout_ms is not None and args.timeout_ms <= 0:
        parser.error("--timeout-ms must be positive")
    if args.max_redirects is not None and args.max_redirects < 0:
        parser.error("--max-redirects must not be negative")

    try:
        url = normalize_url(args.url)
    except ValueError as e:
        parser.error(str(e))

    options = settings.trace_options().merged(
        {
            "user_agent": resolve_user_agent(args.user_agent) if args.user_agent else None,
            "timeout_ms": args.timeout_ms,
            "max_redirects": args.max_redirects,
            "follow_redirects": False if args.no_follow else None,
        }
    )

    result = RedirectTracer().trace(url, options)
    payload = annotate(result.to_dict())

    if args.format == "json":
        print(json.dumps(payload, indent=2, ensure_ascii=False))
    elif args.format == "markdown":
        print(to_markdown(payload, include_headers=args.headers))
    else:
        print_human_readable(payload, show_headers=args.headers)

    raise SystemExit(exit_code_from_result(result, fail_on=args.fail_on))


_CATEGORY_EMOJI = {"2xx": "✅", "3xx": "↪️", "4xx": "⚠️", "5xx": "🔴", "none": "❓"}


def print_human_readable(result: dict[str, Any], *, show_headers: bool = False) -> None:
    """Print human-readable output."""
    print("\n🔀 Redirect Trace")
    print(f"{'=' * 50}")
    print(f"Initial URL: {result['initialUrl']}")
    print(f"Final URL:   {result['finalUrl']}")
    print(f"{'=' * 50}")

    print("\n📋 Chain:")
    print(f"{'-' * 50}")

    steps = result.get("steps", [])
    if not steps:
        print("  (no responses recorded)")

    for i, step in enumerate(steps, start=1):
        code = step.get("statusCode", 0)
        emoji = _CATEGORY_EMOJI.get(status_category(code), "❓")
        reason = step.get("statusText") or describe_status(code)
        duration = (step.get("timing") or {}).get("duration")
        took = f" ({duration} ms)" if duration is not None else ""
        print(f"  {i}. {emoji} {code} {reason}  {step['url']}{took}")
        if step.get("location"):
            print(f"       → {step['location']}")
        if show_headers:
            for name, value in sorted((step.get("headers") or {}).items()):
                print(f"       {name}: {value}")

    print(f"\n🔁 Redirects: {result.get('redirectCount', 0)}")
    if result.get("totalTime") is not None:
        print(f"⏱️  Total time: {result['totalTime']} ms")
    if result.get("error"):
        print(f"❌ Error: {result['error']}")
    print()


if __name__ == "__main__":
    main()
