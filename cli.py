#!/usr/bin/env python3
"""
Command-line interface for the order notification system.

Usage:
    uv run python cli.py [command] [options]

Commands:
    demo        Run notification demo scenarios
    optimize    Optimize an image for upload
    test        Run the test suite
    serve       Start the API server

Examples:
    uv run python cli.py demo owner
    uv run python cli.py demo all
    uv run python cli.py optimize photo.jpg -o photo.webp
    uv run python cli.py serve
"""

import argparse
import mimetypes
import subprocess
import sys
from pathlib import Path
from typing import Optional


def run_demo(scenario: str) -> None:
    """Run a demo scenario."""
    from notifications.demo import run_all_demos, run_customer_demo, run_owner_demo

    if scenario == "owner":
        run_owner_demo()
    elif scenario == "customer":
        run_customer_demo()
    elif scenario == "all":
        run_all_demos()
    else:
        print(f"Unknown scenario: {scenario}")
        sys.exit(1)


def run_optimize(source: Path, output: Optional[Path]) -> None:
    """Optimize an image file and write the WebP result."""
    from imaging.optimizer import ImageOptimizationError, ImageOptimizer
    from shared.config import configure_logging, get_settings

    settings = get_settings()
    configure_logging(settings)

    content_type, _ = mimetypes.guess_type(source.name)
    try:
        data = source.read_bytes()
    except OSError as e:
        print(f"Cannot read {source}: {e}")
        sys.exit(1)

    try:
        result = ImageOptimizer.from_settings(settings).optimize(
            data, content_type or "", filename=source.name
        )
    except ImageOptimizationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    target = output or source.with_name(result.file.name)
    target.write_bytes(result.file.data)
    print(f"Wrote {target}")
    print(f"  {result.original_size} -> {result.final_size} bytes ({result.compression_ratio:.1f}% smaller)")
    print(f"  {result.dimensions.width}x{result.dimensions.height}, qualities tried: {list(result.qualities_tried)}")


def run_tests(args: list[str]) -> None:
    """Run the test suite."""
    cmd = ["uv", "run", "pytest"] + args
    subprocess.run(cmd)


def run_server(host: str, port: int, reload: bool) -> None:
    """Start the API server."""
    cmd = ["uv", "run", "uvicorn", "api.main:app", f"--host={host}", f"--port={port}"]
    if reload:
        cmd.append("--reload")

    print(f"Starting server at http://{host}:{port}")
    print(f"API docs available at http://{host}:{port}/docs")
    subprocess.run(cmd)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Order Notifications CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo owner
  %(prog)s demo customer
  %(prog)s optimize pizza.jpg -o pizza.webp
  %(prog)s test -v
  %(prog)s serve --reload
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demo scenarios")
    demo_parser.add_argument(
        "scenario",
        choices=["owner", "customer", "all"],
        help="Which scenario to run",
    )

    # Optimize command
    optimize_parser = subparsers.add_parser("optimize", help="Optimize an image for upload")
    optimize_parser.add_argument("source", type=Path, help="Image file (JPG, PNG or WEBP)")
    optimize_parser.add_argument("-o", "--output", type=Path, default=None, help="Output path")

    # Test command
    test_parser = subparsers.add_parser("test", help="Run the test suite")
    test_parser.add_argument(
        "pytest_args",
        nargs="*",
        default=[],
        help="Arguments to pass to pytest",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    if args.command == "demo":
        run_demo(args.scenario)
    elif args.command == "optimize":
        run_optimize(args.source, args.output)
    elif args.command == "test":
        run_tests(args.pytest_args)
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
