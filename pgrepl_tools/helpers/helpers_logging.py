"""Console output helpers shared by the replication and diff commands."""

import os


class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def _paint(color: str, msg: str) -> str:
    # https://no-color.org
    if os.environ.get("NO_COLOR"):
        return msg
    return f"{color}{msg}{Colors.ENDC}"


def print_header(msg: str) -> None:
    """Print a header message."""
    print(_paint(Colors.HEADER + Colors.BOLD, msg))


def print_info(msg: str) -> None:
    """Print an info message."""
    print(_paint(Colors.CYAN, msg))


def print_success(msg: str) -> None:
    """Print a success message."""
    print(_paint(Colors.GREEN, f"✓ {msg}"))


def print_warning(msg: str) -> None:
    """Print a warning message."""
    print(_paint(Colors.YELLOW, f"⚠️  {msg}"))


def print_error(msg: str) -> None:
    """Print an error message."""
    print(_paint(Colors.RED, f"❌ {msg}"))


def print_command(cmd: str) -> None:
    """Print a copy-pasteable shell command, indented and without decoration."""
    print(f"   {cmd}")
