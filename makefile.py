#!/usr/bin/env python3
"""
makefile.py - Task runner for the recordlayer project.

Usage:
    python makefile.py <target>

Requires the test extra: pip install -e ".[test]"
"""

import os
import shutil
import subprocess
import sys

from colorama import Fore, Style
from colorama import init as colorama_init

colorama_init(autoreset=True)


def print_header(title):
    bar = Fore.CYAN + Style.BRIGHT + "=" * 52 + Style.RESET_ALL
    label = Fore.CYAN + Style.BRIGHT + f"  {title}" + Style.RESET_ALL
    print(f"\n{bar}\n{label}\n{bar}")


def print_step(msg):
    print(f"{Fore.YELLOW}-->{Style.RESET_ALL} {msg}")


def print_success(msg):
    print(f"{Fore.GREEN}[OK]{Style.RESET_ALL} {msg}")


def print_warn(msg):
    print(f"{Fore.YELLOW}[WARN]{Style.RESET_ALL} {msg}")


def run_cmd(args, allow_failure=False):
    """
    Run a command as a subprocess, streaming output directly to the terminal.
    Exits with the subprocess exit code on failure unless allow_failure=True.
    """
    try:
        result = subprocess.run(args)
    except FileNotFoundError:
        print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} Command not found: '{args[0]}'")
        print(f"        Ensure '{args[0]}' is installed and on your PATH.")
        if not allow_failure:
            sys.exit(127)
        return 127
    if result.returncode != 0 and not allow_failure:
        sys.exit(result.returncode)
    return result.returncode


def target_test():
    print_header("Running All Tests")
    run_cmd([sys.executable, "-m", "pytest", "tests", "-v"])


def target_test_index():
    print_header("Running Index Tests")
    run_cmd([sys.executable, "-m", "pytest", "tests/test_index", "-v"])


def target_test_rank():
    print_header("Running Rank Index Tests")
    run_cmd([sys.executable, "-m", "pytest", "tests/test_index", "-v", "-k", "rank or ranked"])


def target_test_coverage():
    print_header("Running Tests with Coverage")
    run_cmd([sys.executable, "-m", "pytest", "tests", "--cov=recordlayer",
             "--cov-report=term-missing"])


def target_install():
    print_header("Installing recordlayer (editable, with test extra)")
    run_cmd([sys.executable, "-m", "pip", "install", "-e", ".[test]"])
    print_success("Installed")


def target_example():
    print_header("Running Leaderboard Example")
    run_cmd([sys.executable, os.path.join("examples", "leaderboard_example.py")])


def target_clean():
    print_header("Cleaning Caches")
    for root, dirs, _ in os.walk("."):
        for name in dirs:
            if name in ("__pycache__", ".pytest_cache"):
                path = os.path.join(root, name)
                try:
                    shutil.rmtree(path)
                    print_step(f"Removed {path}")
                except OSError as exc:
                    print_warn(f"Could not remove {path}: {exc}")
    for path in (".coverage", "htmlcov"):
        if os.path.isdir(path):
            shutil.rmtree(path)
        elif os.path.exists(path):
            os.remove(path)
    print_success("Clean")


def target_check():
    print_header("Full Check: tests + example")
    target_test()
    target_example()


TARGETS = {
    "test": (target_test, "Run all tests", "Testing"),
    "test-index": (target_test_index, "Run index maintainer tests only", "Testing"),
    "test-rank": (target_test_rank, "Run skip list and rank index tests", "Testing"),
    "test-coverage": (target_test_coverage, "Run tests with coverage", "Testing"),
    "install": (target_install, "pip install -e .[test]", "Tools"),
    "clean": (target_clean, "Remove caches and coverage output", "Tools"),
    "example": (target_example, "Run examples/leaderboard_example.py", "Run"),
    "check": (target_check, "tests + example", "Run"),
    "help": (None, "Show this help message", "Meta"),
}


def target_help():
    from collections import defaultdict

    title = (
        Fore.CYAN
        + Style.BRIGHT
        + "recordlayer - Available Commands"
        + Style.RESET_ALL
    )
    print(f"\n{title}\n")
    groups = defaultdict(list)
    for name, (_, desc, group) in TARGETS.items():
        groups[group].append((name, desc))
    group_order = ["Testing", "Run", "Tools", "Meta"]
    for group in group_order:
        if group not in groups:
            continue
        header = Fore.YELLOW + Style.BRIGHT + f"{group}:" + Style.RESET_ALL
        print(header)
        for name, desc in groups[group]:
            padded = name.ljust(24)
            print(f"  {Fore.GREEN}{padded}{Style.RESET_ALL}  {desc}")
        print()


TARGETS["help"] = (target_help, "Show this help message", "Meta")


def main():
    if len(sys.argv) < 2:
        target_help()
        sys.exit(0)

    name = sys.argv[1]

    if name not in TARGETS:
        print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} Unknown target: '{name}'")
        print("  Run:  python makefile.py help  to list all available targets.")
        sys.exit(1)

    func, _, _ = TARGETS[name]
    func()


if __name__ == "__main__":
    main()
