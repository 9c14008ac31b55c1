#!/usr/bin/env python3
"""
Module Registry CLI Entry Point

Handles:
- Serving the registry (on-demand or precomputed)
- Building the precomputed asset cache
"""

import argparse
import asyncio
import sys
from pathlib import Path

from module_registry import __version__, __package_name__
from module_registry.config import ConfigManager, MODES
from module_registry.errors import RegistryError
from module_registry.preflight import check_config


def print_version():
    """Print version info."""
    print(f"{__package_name__} v{__version__}")


def print_problems(result: dict) -> None:
    print("Preflight failed:", file=sys.stderr)
    for problem in result["problems"]:
        print(f"  ✗ {problem}", file=sys.stderr)


def load_config(args):
    """Environment config with command-line overrides applied."""
    return ConfigManager.get_instance().load(
        mode=getattr(args, "mode", None),
        repo_path=args.repo,
        repo_url=args.repo_url,
        assets_dir=args.assets,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
        static_dir=getattr(args, "static_dir", None),
        tls_certfile=getattr(args, "tls_cert", None),
        tls_keyfile=getattr(args, "tls_key", None),
        log_level=args.log_level,
    )


def cmd_serve(args) -> int:
    """Run the HTTP server."""
    config = load_config(args)
    result = check_config(config)
    if result["status"] == "fail":
        print_problems(result)
        return 1
    
    from module_registry.server_http import main as http_main
    asyncio.run(http_main(config))
    return 0


def cmd_build(args) -> int:
    """Precompute every (version, module) archive."""
    from module_registry.registry import build_assets, open_store
    from module_registry.utils import Logger
    
    config = load_config(args)
    result = check_config(config, building=True)
    if result["status"] == "fail":
        print_problems(result)
        return 1
    
    logger = Logger(name=__package_name__, level=config.log_level)
    with open_store(config, logger=logger.child("store")) as store:
        report = build_assets(store, config.assets_dir, jobs=args.jobs, logger=logger.child("build"))
    
    print(f"✓ Built {report.archives} archives for {len(report.versions)} versions in {report.assets_dir}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="module-registry",
        description="Private module registry serving modules from a git monorepo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  module-registry serve --repo ./modules            Build archives per request
  module-registry build --repo ./modules --jobs 4   Precompute ./assets
  module-registry serve --mode precomputed          Serve ./assets

Configuration is read from the environment (and .env); flags win.
"""
    )
    parser.add_argument(
        "--version", "-v",
        action="store_true",
        help="Show version and exit"
    )
    
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--repo", type=Path, help="Path to the module monorepo clone")
    common.add_argument("--repo-url", help="Clone this repository into a private copy instead")
    common.add_argument("--assets", type=Path, help="Asset cache directory (default: ./assets)")
    common.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)")
    
    subparsers = parser.add_subparsers(dest="command")
    
    serve = subparsers.add_parser("serve", parents=[common], help="Run the registry HTTP server")
    serve.add_argument("--mode", choices=MODES, help="Deployment strategy (default: on-demand)")
    serve.add_argument("--host", help="Bind address (default: 0.0.0.0)")
    serve.add_argument("--port", "-p", type=int, help="HTTP port (default: 8080)")
    serve.add_argument("--static-dir", type=Path, help="Prebuilt frontend to serve at /")
    serve.add_argument("--tls-cert", type=Path, help="TLS certificate (PEM)")
    serve.add_argument("--tls-key", type=Path, help="TLS private key (PEM)")
    serve.set_defaults(handler=cmd_serve)
    
    build = subparsers.add_parser("build", parents=[common], help="Precompute the asset cache")
    build.add_argument("--jobs", "-j", type=int, default=1, help="Tags built in parallel (default: 1)")
    build.set_defaults(handler=cmd_build)
    
    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    
    if args.version:
        print_version()
        sys.exit(0)
    
    if not args.command:
        parser.print_help()
        sys.exit(2)
    
    try:
        sys.exit(args.handler(args))
    except (RegistryError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
