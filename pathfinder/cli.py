#!/usr/bin/env python3
"""
pathFinder - hidden API endpoint discovery with soft-404 filtering
"""
import logging
import signal
import sys
import threading
import time
from argparse import ArgumentParser

from rich.console import Console

from pathfinder import __version__
from pathfinder import pfconfig
from pathfinder.config.logging_config import cli_logger, set_console_level, setup_application_logging
from pathfinder.fuzzer import build_context, run_scan
from pathfinder.reporting import Colors, open_output, write_results, print_table, show_summary
from pathfinder.seeds import collect_urls
from pathfinder.utils.error_handler import PathFinderError, SetupError, ValidationError
from pathfinder.utils.url_tools import ensure_scheme, parse_cookies, parse_headers

# Lock for clean thread output
print_lock = threading.Lock()


def show_banner():
    print("\n" + "="*60)
    print(f"{Colors.MAGENTA}{Colors.BOLD}PATH FINDER {__version__} - API Endpoint Discovery{Colors.END}")
    print("="*60 + "\n")


def build_parser():
    parser = ArgumentParser(description='pathFinder - discover hidden API endpoints under a base URL')
    parser.add_argument('url', nargs='?', help='Base URL (e.g. https://target.com or target.com); prompted if omitted')
    parser.add_argument('-w', '--workers', type=int, default=None,
                        help=f'Number of workers (default: {pfconfig.DEFAULT_WORKERS})')
    parser.add_argument('-d', '--delay', type=int, default=None,
                        help='Delay between requests in milliseconds (default: 0)')
    parser.add_argument('-s', '--seeds', default=pfconfig.DEFAULT_SEED_DIR,
                        help=f'Directory of .txt wordlists (default: {pfconfig.DEFAULT_SEED_DIR})')
    parser.add_argument('-o', '--output', help='Output file (default: <host>_found_apis.<format>)')
    parser.add_argument('--format', choices=pfconfig.OUTPUT_FORMATS, default='json', help='Output format')
    parser.add_argument('--timeout', type=float, default=pfconfig.DEFAULT_TIMEOUT,
                        help=f'Timeout per request in seconds (default: {pfconfig.DEFAULT_TIMEOUT})')
    parser.add_argument('--ok-codes', default='200,201,204',
                        help='Status codes counted as hit (e.g. 200,201-204)')
    parser.add_argument('--methods', default=','.join(pfconfig.DEFAULT_METHODS),
                        help='Comma-separated HTTP methods (default: GET,HEAD)')
    parser.add_argument('--payloads', default=','.join(pfconfig.DEFAULT_PAYLOADS),
                        help='Comma-separated query suffixes tried after the bare URL ("" for none)')
    parser.add_argument('--queue-size', type=int, default=pfconfig.DEFAULT_QUEUE_SIZE,
                        help='Seed buffer size before the seeder blocks')
    parser.add_argument('-H', '--header', action='append', default=[],
                        help='Extra request header, repeatable (e.g. "X-API-Key: value")')
    parser.add_argument('-c', '--cookies', help='Session cookies (e.g. "session=abc123; user=admin")')
    parser.add_argument('--ssl-verify', action='store_true',
                        help='Verify SSL certificates (disabled by default)')
    parser.add_argument('--no-color', action='store_true', help='Disable colored output')
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging on the console')
    return parser


def prompt(message):
    try:
        return input(message).strip()
    except EOFError:
        return ''


def prompt_base_url():
    """Ask until a non-empty base URL is given; EOF is fatal."""
    while True:
        try:
            value = input("Enter base URL (required): ").strip()
        except EOFError:
            raise SetupError("Base URL cannot be empty.")
        if value:
            return value
        print(f"{Colors.RED}Base URL cannot be empty.{Colors.END}")


def prompt_int(message, default, minimum):
    raw = prompt(message)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = None
    if value is None or value < minimum:
        print(f"{Colors.RED}Invalid value '{raw}'; using default {default}.{Colors.END}")
        return default
    return value


def split_list(raw):
    return tuple(item.strip() for item in (raw or '').split(',') if item.strip())


def build_config(args):
    """
    Raises:
        SetupError: any option that can't be turned into a ScanConfig
    """
    try:
        return pfconfig.ScanConfig(
            workers=args.workers,
            delay_ms=args.delay,
            timeout=args.timeout,
            methods=tuple(m.upper() for m in split_list(args.methods)),
            payloads=split_list(args.payloads),
            allowed_status=pfconfig.parse_code_list(args.ok_codes),
            queue_size=args.queue_size,
            headers=parse_headers(args.header),
            cookies=parse_cookies(args.cookies),
            verify_ssl=args.ssl_verify,
        )
    except (ValueError, ValidationError) as e:
        raise SetupError(f"Invalid configuration: {e}") from e


def resolve_options(args, interactive):
    """Fill in URL, workers and delay from prompts (interactive) or defaults."""
    prompted = False
    if not args.url:
        if not interactive:
            raise SetupError("Base URL cannot be empty.")
        args.url = prompt_base_url()
        prompted = True

    if args.workers is None:
        args.workers = pfconfig.DEFAULT_WORKERS
        if prompted:
            args.workers = prompt_int(
                f"Enter number of workers (default {pfconfig.DEFAULT_WORKERS}): ",
                pfconfig.DEFAULT_WORKERS, 1)

    if args.delay is None:
        args.delay = pfconfig.DEFAULT_DELAY_MS
        if prompted:
            args.delay = prompt_int(
                "Enter delay between requests in milliseconds (default 0): ",
                pfconfig.DEFAULT_DELAY_MS, 0)
    return args


class ProgressPrinter:
    """Single status line, redrawn at most every `interval` seconds"""

    def __init__(self, interval=0.5, enabled=True):
        self.interval = interval
        self.enabled = enabled
        self._last = 0.0

    def __call__(self, ctx):
        if not self.enabled:
            return
        now = time.time()
        if now - self._last < self.interval:
            return
        with print_lock:
            if now - self._last < self.interval:
                return
            self._last = now
            stats = ctx.stats.snapshot()
            rps = stats['requests_sent'] / stats['elapsed'] if stats['elapsed'] > 0 else 0
            print(f"\r{Colors.CYAN}[*] Tasks: {stats['tasks_processed']}/"
                  f"{stats['tasks_seeded'] + stats['tasks_discovered']} | "
                  f"Requests: {stats['requests_sent']} | {rps:.1f} req/sec | "
                  f"Found: {stats['endpoints_found']}{Colors.END}", end="", flush=True)

    def finish(self):
        if self.enabled:
            print()


def print_hit(result):
    with print_lock:
        print(f"\r{Colors.GREEN}[FOUND]{Colors.END} {result.url} {result.method} {result.status}")


def run(args):
    """Whole CLI flow; SetupError escapes before any worker starts."""
    interactive = sys.stdin.isatty()
    resolve_options(args, interactive)
    config = build_config(args)

    base_url = ensure_scheme(args.url)
    print(f"{Colors.MAGENTA}Starting URL discovery...{Colors.END}")
    print(f"{Colors.CYAN}[*] Target: {base_url}{Colors.END}")

    # validates the target and grabs the 404 fingerprint
    ctx = build_context(base_url, config)
    seeds = collect_urls(args.seeds, base_url)
    output_path = args.output or pfconfig.get_output_path(base_url, args.format)
    output = open_output(output_path)

    with output:
        print(f"{Colors.CYAN}[*] Workers: {config.workers}{Colors.END}")
        print(f"{Colors.CYAN}[*] Delay: {config.delay_ms}ms{Colors.END}")
        print(f"{Colors.CYAN}[*] Found {len(seeds.urls)} URLs to scan from {seeds.files_scanned} files.{Colors.END}")
        print("-" * 60)

        ctx.stats.set('files_scanned', seeds.files_scanned)
        progress = ProgressPrinter(enabled=sys.stdout.isatty())
        ctx.on_hit = print_hit
        ctx.on_progress = progress

        def signal_handler(sig, frame):
            """Handle Ctrl+C: stop handing out work, keep what was found"""
            print(f"\n{Colors.RED}[!] Interrupt received. Stopping workers...{Colors.END}")
            ctx.cancel()

        previous_handler = signal.signal(signal.SIGINT, signal_handler)
        try:
            results = run_scan(ctx, seeds.urls)
        finally:
            signal.signal(signal.SIGINT, previous_handler)
            progress.finish()

        write_results(results, output, args.format)

    print()
    print_table([r.row() for r in results], Console(no_color=args.no_color))
    show_summary(ctx.stats.snapshot(), output_path)
    return 130 if ctx.cancelled else 0


def main(argv=None):
    setup_application_logging()
    args = build_parser().parse_args(argv)

    if args.no_color or not sys.stdout.isatty():
        Colors.disable()
    if args.verbose:
        set_console_level(logging.DEBUG)

    show_banner()
    try:
        return run(args)
    except SetupError as e:
        cli_logger.error(str(e))
        print(f"{Colors.RED}Error: {e}{Colors.END}")
        return 1
    except PathFinderError as e:
        cli_logger.error(f"Run failed: {e}")
        print(f"{Colors.RED}Error: {e}{Colors.END}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
