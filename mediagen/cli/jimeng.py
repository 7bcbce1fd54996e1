"""jimeng-cli: Jimeng action imitation and OmniHuman avatar videos."""

from __future__ import annotations

import argparse

from mediagen.cli.common import (
    add_config_command,
    add_debug_flag,
    add_models_command,
    default_output,
    join_prompt,
    missing_credentials,
    new_parser,
    resolve_keys,
    run,
    run_video,
    show_access_keys,
    store_credentials,
)
from mediagen.config import ClientConfig, Settings
from mediagen.models import MediaInput
from mediagen.services.model_registry import JIMENG_REGISTRY
from mediagen.services.providers.jimeng_video import (
    ActionImitationRequest,
    JimengProvider,
    OmniHumanRequest,
)

AK_ENV = "JIMENG_ACCESS_KEY_ID"
SK_ENV = "JIMENG_SECRET_ACCESS_KEY"

ACTION_IMITATION = "jimeng-action-imitation-v2"
OMNIHUMAN = "jimeng-omnihuman"


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


def build_request(args: argparse.Namespace) -> ActionImitationRequest | OmniHumanRequest:
    image = MediaInput.from_args(url=args.image, file=args.image_file)
    if image is None:
        raise SystemExit("Error: --image or --image-file is required")

    if args.model == ACTION_IMITATION:
        if not args.video:
            raise SystemExit("Error: --video is required for action imitation")
        return ActionImitationRequest(image=image, video_url=args.video, cut_first_second=args.cut_first_second)

    if not args.audio:
        raise SystemExit("Error: --audio is required for OmniHuman")
    return OmniHumanRequest(
        image=image,
        audio_url=args.audio,
        prompt=join_prompt(args.prompt),
        seed=args.seed,
        output_resolution=args.resolution,
        fast_mode=args.fast_mode,
    )


def cmd_generate(args: argparse.Namespace, settings: Settings) -> None:
    request = build_request(args)

    ak, sk = resolve_keys(settings, AK_ENV, SK_ENV, "jimeng")
    if not ak or not sk:
        raise missing_credentials("Jimeng access keys not configured", [
            f"export {AK_ENV}=<ak> {SK_ENV}=<sk>",
            "jimeng-cli config set-keys <ak> <sk>",
        ])

    config = ClientConfig(access_key_id=ak.value, secret_access_key=sk.value, http_timeout=settings.HTTP_TIMEOUT)
    run_video(JimengProvider(config, args.model), request, args.output or default_output("mp4"))


def cmd_set_keys(args: argparse.Namespace, settings: Settings) -> None:
    path = store_credentials(
        settings, "jimeng", access_key_id=args.access_key_id, secret_access_key=args.secret_access_key,
    )
    print(f"Jimeng access keys saved to {path}")


def cmd_show(args: argparse.Namespace, settings: Settings) -> None:
    print(f"Config file: {settings.config_path}")
    show_access_keys(settings, "Jimeng", AK_ENV, SK_ENV, "jimeng")


def build_parser() -> argparse.ArgumentParser:
    parser, sub = new_parser("jimeng-cli", "Generate videos with Jimeng (Volcano Visual).")

    gen = sub.add_parser("generate", help="generate a video")
    gen.add_argument("prompt", nargs="*", help="optional prompt (OmniHuman)")
    gen.add_argument("--model", default=ACTION_IMITATION, choices=(ACTION_IMITATION, OMNIHUMAN), help="model name")
    gen.add_argument("--output", "-o", help="output file (default output_<timestamp>.mp4)")
    gen.add_argument("--image", help="person/portrait image URL")
    gen.add_argument("--image-file", help="person/portrait image from a local file")
    gen.add_argument("--video", help="template video URL (action imitation)")
    gen.add_argument("--audio", help="audio URL under 60 seconds (OmniHuman)")
    gen.add_argument("--resolution", type=int, default=1080, choices=(720, 1080), help="OmniHuman output resolution")
    gen.add_argument("--fast-mode", action="store_true", help="OmniHuman fast mode")
    gen.add_argument("--seed", type=int, default=0, help="random seed (0 leaves it to the server, -1 for random)")
    gen.add_argument(
        "--cut-first-second", type=parse_bool, default=None,
        help="cut the first second of the result (action imitation, server default true)",
    )
    add_debug_flag(gen)
    gen.set_defaults(handler=cmd_generate)

    add_models_command(sub, JIMENG_REGISTRY)
    add_config_command(sub, {
        "set-keys": ("store access keys", ["access_key_id", "secret_access_key"], cmd_set_keys),
        "show": ("show configured credentials", [], cmd_show),
    })
    return parser


def main(argv: list[str] | None = None) -> int:
    return run(build_parser(), argv)


if __name__ == "__main__":
    raise SystemExit(main())
