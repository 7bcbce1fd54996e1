"""ark-cli: Seedance video generation, plus Jimeng 3.0 Pro video models."""

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
    resolve_key,
    resolve_keys,
    run,
    run_video,
    show_access_keys,
    show_api_key,
    store_credentials,
)
from mediagen.config import ClientConfig, Settings
from mediagen.models import MediaInput
from mediagen.services.model_registry import ARK_REGISTRY
from mediagen.services.providers.ark_video import DEFAULT_MODEL, ArkVideoProvider, ArkVideoRequest
from mediagen.services.providers.jimeng_video import JimengProvider, JimengVideoRequest

ARK_ENV = "ARK_API_KEY"
JIMENG_AK_ENV = "JIMENG_ACCESS_KEY_ID"
JIMENG_SK_ENV = "JIMENG_SECRET_ACCESS_KEY"


def is_jimeng_model(model: str) -> bool:
    return model.startswith("jimeng-")


def cmd_generate(args: argparse.Namespace, settings: Settings) -> None:
    prompt = join_prompt(args.prompt)
    if not prompt:
        raise SystemExit("Error: prompt is required")

    model = args.model or DEFAULT_MODEL
    if is_jimeng_model(model) and model not in ARK_REGISTRY:
        raise SystemExit(f"Error: unknown model: {model} (see 'ark-cli models')")

    first = MediaInput.from_args(url=args.image, file=args.image_file)
    output = args.output or default_output("mp4")

    if is_jimeng_model(model):
        _generate_jimeng(args, settings, model, prompt, first, output)
        return

    key = resolve_key(settings, ARK_ENV, "ark")
    if not key:
        raise missing_credentials("Ark API key not configured", [
            f"export {ARK_ENV}=<your-key>",
            "ark-cli config set-key <your-key>",
        ])

    config = ClientConfig(api_key=key.value, base_url=settings.ARK_BASE_URL, http_timeout=settings.HTTP_TIMEOUT)
    request = ArkVideoRequest(
        prompt=prompt,
        model=model,
        duration=args.duration,
        resolution=args.resolution,
        ratio=args.ratio,
        audio=not args.no_audio,
        first_frame=first,
    )
    run_video(ArkVideoProvider(config), request, output)


def _generate_jimeng(
    args: argparse.Namespace,
    settings: Settings,
    model: str,
    prompt: str,
    first: MediaInput | None,
    output: str,
) -> None:
    end = MediaInput.from_args(url=args.end_image, file=args.end_image_file)

    if model == "jimeng-i2v-3-pro" and first is None:
        raise SystemExit("Error: --image or --image-file is required for image-to-video")
    if model == "jimeng-i2v-startend-3-pro" and (first is None or end is None):
        raise SystemExit("Error: start and end frames are required (--image/--image-file and --end-image/--end-image-file)")
    if model == "jimeng-t2v-3-pro":
        first = end = None
    elif model == "jimeng-i2v-3-pro":
        end = None

    ak, sk = resolve_keys(settings, JIMENG_AK_ENV, JIMENG_SK_ENV, "jimeng")
    if not ak or not sk:
        raise missing_credentials("Jimeng access keys not configured", [
            f"export {JIMENG_AK_ENV}=<ak> {JIMENG_SK_ENV}=<sk>",
            "ark-cli config set-keys <ak> <sk>",
        ])

    config = ClientConfig(
        access_key_id=ak.value,
        secret_access_key=sk.value,
        http_timeout=settings.HTTP_TIMEOUT,
    )
    request = JimengVideoRequest(
        prompt=prompt,
        first_frame=first,
        end_frame=end,
        aspect_ratio=args.ratio,
        frames=args.frames,
        seed=args.seed,
    )
    run_video(JimengProvider(config, model), request, output)


def cmd_set_key(args: argparse.Namespace, settings: Settings) -> None:
    path = store_credentials(settings, "ark", api_key=args.key)
    print(f"Ark API key saved to {path}")


def cmd_set_keys(args: argparse.Namespace, settings: Settings) -> None:
    path = store_credentials(
        settings, "jimeng", access_key_id=args.access_key_id, secret_access_key=args.secret_access_key,
    )
    print(f"Jimeng access keys saved to {path}")


def cmd_show(args: argparse.Namespace, settings: Settings) -> None:
    print(f"Config file: {settings.config_path}")
    show_api_key(settings, "Ark", ARK_ENV, "ark")
    show_access_keys(settings, "Jimeng", JIMENG_AK_ENV, JIMENG_SK_ENV, "jimeng")


def build_parser() -> argparse.ArgumentParser:
    parser, sub = new_parser("ark-cli", "Generate videos with Volcano Ark (Seedance) and Jimeng 3.0 Pro.")

    gen = sub.add_parser("generate", help="generate a video from a prompt")
    gen.add_argument("prompt", nargs="*", help="text prompt")
    gen.add_argument("--model", default=DEFAULT_MODEL, help="model name (see 'models')")
    gen.add_argument("--output", "-o", help="output file (default output_<timestamp>.mp4)")
    gen.add_argument("--duration", default="5", help="video length in seconds")
    gen.add_argument("--resolution", default="720p", help="480p, 720p or 1080p")
    gen.add_argument("--ratio", default="16:9", help="aspect ratio")
    gen.add_argument("--no-audio", action="store_true", help="generate without audio")
    gen.add_argument("--frames", type=int, default=0, help="Jimeng frame count (121 = 5s, 241 = 10s)")
    gen.add_argument("--seed", type=int, default=0, help="Jimeng random seed")
    gen.add_argument("--image", help="first frame image URL")
    gen.add_argument("--image-file", help="first frame local image")
    gen.add_argument("--end-image", help="end frame image URL (Jimeng start/end)")
    gen.add_argument("--end-image-file", help="end frame local image (Jimeng start/end)")
    add_debug_flag(gen)
    gen.set_defaults(handler=cmd_generate)

    add_models_command(sub, ARK_REGISTRY)
    add_config_command(sub, {
        "set-key": ("store the Ark API key", ["key"], cmd_set_key),
        "set-keys": ("store Jimeng access keys", ["access_key_id", "secret_access_key"], cmd_set_keys),
        "show": ("show configured credentials", [], cmd_show),
    })
    return parser


def main(argv: list[str] | None = None) -> int:
    return run(build_parser(), argv)


if __name__ == "__main__":
    raise SystemExit(main())
