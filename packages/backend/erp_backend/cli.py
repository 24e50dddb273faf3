from __future__ import annotations

import argparse
import os

import uvicorn

# Settings() reads the environment when the app module is imported.
_ENV_OPTIONS = {
    "cache_backend": "CACHE_BACKEND",
    "redis_url": "REDIS_URL",
    "cache_ttl": "CACHE_TTL_SECONDS",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="erp-backend", description="ERP backend API server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--log-level", default="info", choices=["critical", "error", "warning", "info", "debug"])
    parser.add_argument("--cache-backend", choices=["redis", "memory"], help="overrides CACHE_BACKEND")
    parser.add_argument("--redis-url", help="overrides REDIS_URL")
    parser.add_argument("--cache-ttl", type=int, help="default entry TTL in seconds")
    return parser


def apply_env_overrides(args: argparse.Namespace, environ=os.environ) -> None:
    for option, env_name in _ENV_OPTIONS.items():
        value = getattr(args, option)
        if value is not None:
            environ[env_name] = str(value)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    apply_env_overrides(args)
    uvicorn.run("erp_backend.main:app", host=args.host, port=args.port, log_level=args.log_level)


if __name__ == "__main__":
    main()
