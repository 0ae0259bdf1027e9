"""
Result writers and terminal summary
"""
import json
import os

import colorama
from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from pathfinder.config.logging_config import report_logger
from pathfinder.results import TABLE_HEADER
from pathfinder.utils.error_handler import SetupError, ReportError

colorama.init()  # For Windows colours


class Colors:
    """colorama palette; disable() blanks everything (pipes, --no-color)"""
    RED = colorama.Fore.RED
    GREEN = colorama.Fore.GREEN
    YELLOW = colorama.Fore.YELLOW
    BLUE = colorama.Fore.BLUE
    CYAN = colorama.Fore.CYAN
    MAGENTA = colorama.Fore.MAGENTA
    BOLD = colorama.Style.BRIGHT
    END = colorama.Style.RESET_ALL

    @classmethod
    def disable(cls):
        for name in ('RED', 'GREEN', 'YELLOW', 'BLUE', 'CYAN', 'MAGENTA', 'BOLD', 'END'):
            setattr(cls, name, '')


def open_output(path):
    """
    Open the output destination before any request is sent.

    Raises:
        SetupError: the file can't be created
    """
    directory = os.path.dirname(os.path.abspath(path))
    try:
        os.makedirs(directory, exist_ok=True)
        return open(path, 'w', encoding='utf-8')
    except OSError as e:
        raise SetupError(f"Error creating output file {path}: {e}") from e


def export_json(results, fh):
    """Indented JSON list, one object per hit"""
    json.dump([r.to_dict() for r in results], fh, indent=2)
    fh.write('\n')


def export_text(results, fh):
    """METHOD STATUS URL, one hit per line"""
    for r in results:
        fh.write(f"{r.method} {r.status} {r.url}\n")


WRITERS = {
    'json': export_json,
    'txt': export_text,
}


def write_results(results, fh, fmt='json'):
    writer = WRITERS.get(fmt)
    if writer is None:
        raise ReportError(f"Unknown output format: {fmt}")
    try:
        writer(results, fh)
        fh.flush()
    except (OSError, TypeError, ValueError) as e:
        raise ReportError(f"Writing results to {getattr(fh, 'name', fh)} failed: {e}") from e
    report_logger.info(f"{len(results)} results written to {getattr(fh, 'name', fh)}")


def render_table(rows, max_width=60):
    """rich Table of URL / Method / Status / Snippet, one ruled row per hit"""
    table = Table(box=box.ASCII, show_header=True, show_lines=True, header_style="bold magenta")
    for header in TABLE_HEADER:
        if header in ('Method', 'Status'):
            table.add_column(header, no_wrap=True)
        else:
            table.add_column(header, max_width=max_width, overflow="ellipsis", no_wrap=True)

    for row in rows:
        # Text() keeps brackets in snippets from being read as markup
        table.add_row(*(Text(str(c).replace('\n', ' ').replace('\r', ' ')) for c in row))
    return table


def print_table(rows, console=None, max_width=60):
    console = console or Console()
    if not rows:
        console.print("No endpoints found.")
        return
    console.print(render_table(rows, max_width=max_width))


def show_summary(stats, output_path=None):
    """Show statistics summary"""
    elapsed = stats.get('elapsed') or 0
    print(f"\n{Colors.MAGENTA}{'='*60}{Colors.END}")
    print(f"{Colors.MAGENTA}                  SCAN SUMMARY{Colors.END}")
    print(f"{Colors.MAGENTA}{'='*60}{Colors.END}")
    print(f"{Colors.CYAN}Total files scanned:{Colors.END} {stats['files_scanned']}")
    print(f"{Colors.CYAN}Total URLs checked:{Colors.END} {stats['requests_sent']}")
    print(f"{Colors.CYAN}API endpoints found:{Colors.END} {stats['endpoints_found']}")
    if stats.get('tasks_discovered'):
        print(f"{Colors.GREEN}Paths discovered in responses:{Colors.END} {stats['tasks_discovered']}")
    if stats.get('request_errors'):
        print(f"{Colors.YELLOW}Failed requests:{Colors.END} {stats['request_errors']}")
    print(f"{Colors.CYAN}Total Time:{Colors.END} {elapsed:.2f}s")
    if elapsed > 0:
        print(f"{Colors.CYAN}Requests/sec:{Colors.END} {stats['requests_sent']/elapsed:.1f}")
    if output_path:
        print(f"{Colors.CYAN}Results saved to:{Colors.END} {output_path}")
    print(f"{Colors.MAGENTA}{'='*60}{Colors.END}")
