"""Plumbing shared by the CLI tools: logging, config subcommands, models."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from mediagen.config import (
    ConfigError,
    ConfigFile,
    Resolved,
    ServiceConfig,
    Settings,
    get_settings,
    load_or_create,
    mask_key,
    mask_secret,
    resolve_access_keys,
    resolve_api_key,
    save_config,
)
from mediagen.errors import MediaGenError
from mediagen.services.model_registry import ModelRegistry

logger = logging.getLogger(__name__)

Handler = Callable[[argparse.Namespace, Settings], None]


def setup_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def new_parser(prog: str, description: str) -> tuple[argparse.ArgumentParser, Any]:
    parser = argparse.ArgumentParser(prog=prog, description=description)
    parser.add_argument("--debug", action="store_true", help="verbose logging")
    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True
    return parser, subparsers


def add_debug_flag(parser: argparse.ArgumentParser) -> None:
    """Accept `--debug` after the subcommand as well."""
    parser.add_argument("--debug", action="store_true", default=argparse.SUPPRESS, help="verbose logging")


def run(parser: argparse.ArgumentParser, argv: list[str] | None) -> int:
    """Parse arguments and call the selected handler.

    Failures exit with status 1 and an `Error: ...` line on stderr.
    """
    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(args.debug or settings.DEBUG)

    try:
        args.handler(args, settings)
    except (MediaGenError, ConfigError, ValueError, OSError) as e:
        raise SystemExit(f"Error: {e}") from e
    return 0


def default_output(ext: str, now: datetime | None = None) -> str:
    return f"output_{(now or datetime.now()).strftime('%Y%m%d_%H%M%S')}.{ext}"


def join_prompt(words: list[str] | None) -> str:
    return " ".join(words or []).strip()


# ---------------------------------------------------------------------------
# models
# ---------------------------------------------------------------------------

def add_models_command(subparsers: Any, registry: ModelRegistry) -> None:
    p = subparsers.add_parser("models", help="list available models (JSON)")
    p.add_argument("name", nargs="?", help="show a single model")
    p.set_defaults(handler=lambda args, settings: print_models(registry, args.name))


def print_models(registry: ModelRegistry, name: str | None = None) -> None:
    if name:
        model = registry.find_model(name)
        if model is None:
            raise SystemExit(f"Unknown model: {name}")
        print(model.to_json())
        return
    print(registry.to_json())


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

def _section(cfg: ConfigFile, name: str) -> ServiceConfig | None:
    return getattr(cfg, name)


def store_credentials(settings: Settings, section: str, **values: str) -> Path:
    """Write credentials into one config section and save the file."""
    path = settings.config_path
    cfg = load_or_create(path)
    current = _section(cfg, section)
    if current is None:
        current = ServiceConfig()
    for key, value in values.items():
        setattr(current, key, value)
    setattr(cfg, section, current)
    save_config(cfg, path)
    return path


def load_section(settings: Settings, section: str) -> ServiceConfig | None:
    return _section(load_or_create(settings.config_path), section)


def resolve_key(settings: Settings, env_var: str, section: str) -> Resolved:
    return resolve_api_key(env_var, getattr(settings, env_var), load_section(settings, section))


def resolve_keys(settings: Settings, ak_env: str, sk_env: str, section: str) -> tuple[Resolved, Resolved]:
    return resolve_access_keys(
        ak_env, getattr(settings, ak_env),
        sk_env, getattr(settings, sk_env),
        load_section(settings, section),
    )


def show_api_key(settings: Settings, label: str, env_var: str, section: str) -> bool:
    key = resolve_key(settings, env_var, section)
    if not key:
        print(f"{label}: not configured")
        return False
    print(f"{label} API Key: {mask_key(key.value)} (source: {key.source})")
    return True


def show_access_keys(settings: Settings, label: str, ak_env: str, sk_env: str, section: str) -> bool:
    ak, sk = resolve_keys(settings, ak_env, sk_env, section)
    if not ak and not sk:
        print(f"{label}: not configured")
        return False
    print(f"{label} AccessKeyID: {mask_secret(ak.value)} (source: {ak.source or 'unset'})")
    print(f"{label} SecretAccessKey: {mask_secret(sk.value)} (source: {sk.source or 'unset'})")
    return True


def add_config_command(subparsers: Any, actions: dict[str, tuple[str, list[str], Handler]]) -> None:
    """Register `config <action>` subcommands.

    `actions` maps an action name to (help, positional args, handler).
    """
    p = subparsers.add_parser("config", help="manage stored credentials")
    config_sub = p.add_subparsers(dest="config_command", metavar="<action>")
    config_sub.required = True
    for name, (help_text, positionals, handler) in actions.items():
        action = config_sub.add_parser(name, help=help_text)
        for arg in positionals:
            action.add_argument(arg)
        action.set_defaults(handler=handler)


def missing_credentials(message: str, options: list[str]) -> SystemExit:
    lines = [f"Error: {message}"]
    lines += [f"  Option {i}: {opt}" for i, opt in enumerate(options, start=1)]
    return SystemExit("\n".join(lines))


def run_video(provider: Any, request: Any, output: str) -> None:
    """Drive a task provider end to end and report the saved file."""
    with provider:
        result = provider.generate(request, output)
    logger.debug("%s finished in %d ms", result.provider, result.latency_ms)
    logger.info("Video saved: %s (%d bytes)", result.output_path, result.size_bytes)
