# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""cacheprobe CLI."""

from __future__ import annotations

import argparse
import sys

from tqdm import tqdm

from ..config import HttpSettings, ProbeConfig, load_http_settings, read_header_names, read_urls
from ..errors import ConfigError, StartupIoError
from ..log import setup_logging
from ..models.probe import CacheProbeResult, ProbeRequest
from ..runtime import CacheProbe

PROGRESS_BAR_FORMAT = "[{elapsed}] |{bar:40}| {n_fmt}/{total_fmt} ({remaining}) {postfix}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cacheprobe",
        description="Probe URLs for HTTP caching headers and body cache markers",
    )
    parser.add_argument("file", help="File with URLs to probe (one per line, or JSON {\"urls\": [...]})")
    parser.add_argument("-o", "--output", required=True, help="File to save results to (JSON array)")
    parser.add_argument("-m", "--method", default="GET", help="HTTP method to use (GET or POST)")
    parser.add_argument("-t", "--timeout", type=float, default=20, help="Request timeout in seconds")
    parser.add_argument("-r", "--retries", type=int, default=3, help="Number of retries for failed requests")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--force-http", action="store_true", help="Force HTTP instead of HTTPS")
    parser.add_argument("--concurrency", type=int, default=10, help="Maximum number of URLs probed at once")
    parser.add_argument(
        "-H",
        "--headers",
        help="Comma-separated list of headers to check, or path to a file with one header per line",
    )
    parser.add_argument(
        "--graceful-shutdown",
        action="store_true",
        help="On Ctrl+C, cancel in-flight probes and print the summary instead of exiting immediately",
    )
    parser.add_argument("--no-progress", action="store_true", help="Hide the progress bar")
    parser.add_argument(
        "--ignore-ssl-errors",
        action="store_true",
        help="Skip TLS verification (useful for lab/self-signed targets)",
    )
    return parser


def build_config(args: argparse.Namespace) -> ProbeConfig:
    return ProbeConfig(
        urls=read_urls(args.file),
        output=args.output,
        method=args.method.upper(),
        timeout=args.timeout,
        retries=args.retries,
        verbose=args.verbose,
        force_http=args.force_http,
        concurrency=args.concurrency,
        headers=read_header_names(args.headers),
        graceful_shutdown=args.graceful_shutdown,
    ).validate()


def format_result(result: CacheProbeResult) -> list[str]:
    lines = [f"Positive result for URL: {result.url}"]
    lines.extend(f"  {name}: {value}" for name, value in result.headers.items())
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        config = build_config(args)
    except ConfigError as exc:
        print(f"cacheprobe: {exc}", file=sys.stderr)
        return 2

    settings: HttpSettings = load_http_settings()
    if args.ignore_ssl_errors:
        settings.verify_ssl = False

    progress = tqdm(
        total=len(config.urls),
        unit="url",
        bar_format=PROGRESS_BAR_FORMAT,
        disable=args.no_progress,
    )

    def on_outcome(_request: ProbeRequest, result: CacheProbeResult | None) -> None:
        if result is not None:
            for line in format_result(result):
                tqdm.write(line)
        progress.update(1)

    try:
        summary = CacheProbe(config, settings=settings, on_outcome=on_outcome).run()
    except StartupIoError as exc:
        print(f"cacheprobe: {exc}", file=sys.stderr)
        return 2
    finally:
        progress.set_postfix_str("Done")
        progress.close()

    if summary.interrupted:
        print(f"Interrupted after {summary.completed}/{summary.total} URL(s)", file=sys.stderr)
    if config.verbose:
        print(f"Results saved to {config.output}")
    if not summary.ok:
        for message in summary.sink_errors:
            print(f"cacheprobe: {message}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
