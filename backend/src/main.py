import argparse
import logging
import os
import sys
from pathlib import Path

import sentry_sdk

from _version import __version__
from diagnostics import app_home, init_diagnostics
from engine.config import ShardConfig
from engine.errors import ShardConfigError
from engine.export import output_stem
from engine.generator import generate_from_config
from security import strip_pii, validate_output_dir

logger = logging.getLogger(__name__)


def telemetry_dsn() -> str:
    """DSN only when the user opted in via ~/.commit-shards/telemetry_consent."""
    consent_path = os.path.join(app_home(), "telemetry_consent")
    if os.path.exists(consent_path) and Path(consent_path).read_text().strip() == "yes":
        return os.environ.get("SENTRY_DSN", "")
    return ""


def init_sentry():
    sentry_sdk.init(
        dsn=telemetry_dsn(),
        release=f"commit-shards@{__version__}",
        environment=os.environ.get("SENTRY_ENV", "development"),
        traces_sample_rate=0.1,
        before_send=strip_pii,
        max_breadcrumbs=50,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commit-shards",
        description="Deterministic crystal art from commit hashes.",
    )
    parser.add_argument("--version", action="version", version=__version__)
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Write one SVG for an identifier")
    render.add_argument("identifier", help="Hex commit hash (first 40 chars used)")
    render.add_argument("repo", help="Collection name, e.g. anza-xyz/agave")
    render.add_argument("title", nargs="?", default=None)
    render.add_argument("author", nargs="?", default=None)
    render.add_argument("--size", type=int, default=800, help="Canvas size in px")
    render.add_argument("--out", default=".", help="Output directory")

    sub.add_parser("serve", help="Start the local ZMQ sidecar")
    return parser


def cmd_render(args) -> int:
    out_dir = os.path.abspath(args.out)
    errors = validate_output_dir(out_dir)
    if errors:
        print(f"error: {'; '.join(errors)}", file=sys.stderr)
        return 2

    try:
        config = ShardConfig.create(
            args.identifier,
            args.repo,
            title=args.title,
            author=args.author,
            canvas_size=args.size,
        )
    except ShardConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    result = generate_from_config(config)
    path = Path(out_dir) / f"{output_stem(config)}.svg"
    path.write_text(result.document, encoding="utf-8")
    logger.info("Rendered %s to %s", config.short_id, path)
    for trait in result.traits:
        print(f"{trait.name}: {trait.value}")
    print(path)
    return 0


def cmd_serve(args) -> int:
    from zmq_server import ZMQServer

    server = ZMQServer()
    print(f"ZMQ_PORT={server.port}", flush=True)
    print(f"ZMQ_PING_PORT={server.ping_port}", flush=True)
    print(f"ZMQ_TOKEN={server.token}", flush=True)
    server.run()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    init_sentry()
    init_diagnostics()
    if args.command == "render":
        return cmd_render(args)
    return cmd_serve(args)


if __name__ == "__main__":
    sys.exit(main())
