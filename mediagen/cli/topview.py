"""topview-cli: talking avatar videos with TopView."""

from __future__ import annotations

import argparse
from pathlib import Path

from mediagen.cli.common import (
    add_config_command,
    add_debug_flag,
    add_models_command,
    default_output,
    load_section,
    missing_credentials,
    new_parser,
    resolve_key,
    run,
    run_video,
    show_api_key,
    store_credentials,
)
from mediagen.config import ClientConfig, Settings, resolve_value
from mediagen.services.model_registry import TOPVIEW_REGISTRY
from mediagen.services.providers.topview_avatar import AvatarRequest, TopViewAvatarProvider

KEY_ENV = "TOPVIEW_API_KEY"
UID_ENV = "TOPVIEW_UID"


def cmd_generate(args: argparse.Namespace, settings: Settings) -> None:
    for flag, path in (("--image", args.image), ("--audio", args.audio)):
        if not path:
            raise SystemExit(f"Error: {flag} is required")
        if not Path(path).is_file():
            raise SystemExit(f"Error: file not found: {path}")

    key = resolve_key(settings, KEY_ENV, "topview")
    section = load_section(settings, "topview")
    uid = resolve_value(UID_ENV, settings.TOPVIEW_UID, section.uid if section else None)
    if not key or not uid:
        raise missing_credentials("TopView API key and UID not configured", [
            f"export {KEY_ENV}=<your-key> {UID_ENV}=<your-uid>",
            "topview-cli config set-key <your-key> && topview-cli config set-uid <your-uid>",
        ])

    config = ClientConfig(
        api_key=key.value,
        uid=uid.value,
        base_url=settings.TOPVIEW_BASE_URL,
        http_timeout=settings.HTTP_TIMEOUT,
    )
    request = AvatarRequest(image_path=args.image, audio_path=args.audio)
    run_video(TopViewAvatarProvider(config), request, args.output or default_output("mp4"))


def cmd_set_key(args: argparse.Namespace, settings: Settings) -> None:
    path = store_credentials(settings, "topview", api_key=args.key)
    print(f"TopView API key saved to {path}")


def cmd_set_uid(args: argparse.Namespace, settings: Settings) -> None:
    path = store_credentials(settings, "topview", uid=args.uid)
    print(f"TopView UID saved to {path}")


def cmd_show(args: argparse.Namespace, settings: Settings) -> None:
    print(f"Config file: {settings.config_path}")
    show_api_key(settings, "TopView", KEY_ENV, "topview")
    section = load_section(settings, "topview")
    uid = resolve_value(UID_ENV, settings.TOPVIEW_UID, section.uid if section else None)
    if uid:
        print(f"TopView UID: {uid.value} (source: {uid.source})")
    else:
        print("TopView UID: not configured")


def build_parser() -> argparse.ArgumentParser:
    parser, sub = new_parser("topview-cli", "Generate talking avatar videos with TopView.")

    gen = sub.add_parser("generate", help="generate an avatar video from a portrait and audio")
    gen.add_argument("--image", help="local portrait image (png, jpg, webp)")
    gen.add_argument("--audio", help="local audio file (mp3, wav, m4a, aac)")
    gen.add_argument("--output", "-o", help="output file (default output_<timestamp>.mp4)")
    add_debug_flag(gen)
    gen.set_defaults(handler=cmd_generate)

    add_models_command(sub, TOPVIEW_REGISTRY)
    add_config_command(sub, {
        "set-key": ("store the API key", ["key"], cmd_set_key),
        "set-uid": ("store the account UID", ["uid"], cmd_set_uid),
        "show": ("show configured credentials", [], cmd_show),
    })
    return parser


def main(argv: list[str] | None = None) -> int:
    return run(build_parser(), argv)


if __name__ == "__main__":
    raise SystemExit(main())
