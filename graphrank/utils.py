# utils.py
#
# Project: graphrank - PageRank over tabular edge relations
#
# Description:
#   Terminal display utilities: colored output, summary boxes,
#   side-by-side table rendering, and a timing context manager.
#
# Components:
#   Colors            - ANSI escape code constants for terminal styling.
#   set_verbose       - Global switch; when off, every print_* helper is silent.
#   print_project_banner - Banner shown by main.py at startup.
#   print_stage / print_step / print_success / print_warning / print_error
#                     - Hierarchical log output with color-coded prefixes.
#   print_summary_box - Single bordered table for key-value statistics.
#   print_side_by_side_boxes
#                     - Two bordered tables rendered on the same lines
#                       (e.g., [Custom Top 5] [NetworkX Top 5]).
#   Timer             - Context manager that prints elapsed wall time.

import sys
import time


class Colors:
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    BOLD = '\033[1m'
    DIM = '\033[2m'
    RESET = '\033[0m'


_verbose = True


def set_verbose(enabled):
    """Enable or silence all display helpers in this module."""
    global _verbose
    _verbose = bool(enabled)


def is_verbose():
    return _verbose


def _emit(text, stream=None):
    if _verbose:
        print(text, file=stream or sys.stdout)


def print_project_banner():
    """Print project info banner at pipeline start."""
    w = 90
    _emit(f"\n{Colors.BOLD}{Colors.BLUE}{'=' * w}")
    _emit(f"  graphrank - PageRank over tabular edge relations")
    _emit(f"{'=' * w}{Colors.RESET}")
    _emit(f"  {Colors.DIM}Ref:{Colors.RESET}     Page, Brin, Motwani & Winograd (1999)")
    _emit(f"           {Colors.DIM}\"The PageRank Citation Ranking\"")
    _emit(f"           http://ilpubs.stanford.edu:8090/422/1/1999-66.pdf{Colors.RESET}")
    _emit(f"{Colors.BOLD}{Colors.BLUE}{'=' * w}{Colors.RESET}\n")


def print_stage(name, message):
    """Print a stage header."""
    _emit(f"{Colors.BOLD}{Colors.CYAN}[{name}]{Colors.RESET} {message}")


def print_step(message):
    """Print a sub-step within a stage."""
    _emit(f"  {Colors.DIM}->{Colors.RESET} {message}")


def print_success(message):
    """Print a success message."""
    _emit(f"  {Colors.GREEN}[OK]{Colors.RESET} {message}")


def print_warning(message):
    """Print a warning message."""
    _emit(f"  {Colors.YELLOW}[WARN]{Colors.RESET} {message}")


def print_error(message):
    """Print an error message to stderr."""
    _emit(f"  {Colors.RED}[ERR]{Colors.RESET} {message}", stream=sys.stderr)


def print_summary_box(title, stats):
    """
    Print a single summary box.

    Args:
        title (str): Box title
        stats (dict): Key-value pairs to display
    """
    width = 50
    _emit(f"\n  +{'-' * width}+")
    padded = title + ' ' * (width - 1 - len(title))
    _emit(f"  | {Colors.BOLD}{padded}{Colors.RESET}|")
    _emit(f"  +{'-' * width}+")
    for key, val in stats.items():
        line = f" {key}: {val}"
        _emit(f"  |{line:<{width}}|")
    _emit(f"  +{'-' * width}+\n")


def _build_box_lines(title, stats, width):
    """Build a box as a list of strings for side-by-side rendering."""
    lines = []
    sep = f"+{'-' * width}+"
    lines.append(sep)
    padded = title + ' ' * (width - 1 - len(title))
    lines.append(f"| {Colors.BOLD}{padded}{Colors.RESET}|")
    lines.append(sep)
    for key, val in stats.items():
        content = f" {key}: {val}"
        lines.append(f"|{content:<{width}}|")
    lines.append(sep)
    return lines


def print_side_by_side_boxes(title_l, stats_l, title_r, stats_r, col_width=38, gap=3):
    """
    Print two summary boxes side by side.

    Args:
        title_l (str): Left box title
        stats_l (dict): Left box key-value pairs
        title_r (str): Right box title
        stats_r (dict): Right box key-value pairs
        col_width (int): Inner width of each box
        gap (int): Space between the two boxes
    """
    left = _build_box_lines(title_l, stats_l, col_width)
    right = _build_box_lines(title_r, stats_r, col_width)

    # Pad shorter side so both have equal line count
    empty = ' ' * (col_width + 2)
    max_len = max(len(left), len(right))
    left += [empty] * (max_len - len(left))
    right += [empty] * (max_len - len(right))

    spacer = ' ' * gap
    _emit("")
    for l, r in zip(left, right):
        _emit(f"  {l}{spacer}{r}")
    _emit("")


class Timer:
    """Context manager for timing code blocks."""
    def __init__(self, label="Operation"):
        self.label = label
        self.start = None
        self.elapsed = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.elapsed = time.perf_counter() - self.start
        if exc_type is None:
            print_success(f"{self.label} completed in {self.elapsed:.2f}s")
        else:
            print_warning(f"{self.label} aborted after {self.elapsed:.2f}s")
