"""gemini-cli: image generation with Gemini."""

from __future__ import annotations

import argparse

from mediagen.cli.common import (
    add_config_command,
    add_debug_flag,
    add_models_command,
    join_prompt,
    missing_credentials,
    new_parser,
    resolve_key,
    run,
    show_api_key,
    store_credentials,
)
from mediagen.config import ClientConfig, Settings
from mediagen.models import MediaInput
from mediagen.services.model_registry import GEMINI_REGISTRY
from mediagen.services.providers.gemini_image import DEFAULT_MODEL, GeminiImageProvider, GeminiImageRequest

GEMINI_ENV = "GEMINI_API_KEY"


def cmd_generate(args: argparse.Namespace, settings: Settings) -> None:
    prompt = join_prompt(args.prompt)
    if not prompt:
        raise SystemExit("Error: prompt is required")

    key = resolve_key(settings, GEMINI_ENV, "gemini")
    if not key:
        raise missing_credentials("Gemini API key not configured", [
            f"export {GEMINI_ENV}=<your-key>",
            "gemini-cli config set-key <your-key>",
        ])

    reference = MediaInput.from_file(args.image_file) if args.image_file else None
    request = GeminiImageRequest(
        prompt=prompt,
        model=args.model,
        aspect_ratio=args.ratio,
        image_size=args.size,
        reference=reference,
        text_only=args.text_only,
    )

    config = ClientConfig(api_key=key.value, base_url=settings.GEMINI_BASE_URL, http_timeout=settings.HTTP_TIMEOUT)
    with GeminiImageProvider(config) as provider:
        result = provider.generate(request)
        for text in result.texts:
            print(text)
        saved = provider.save_images(result, args.output)

    if len(saved) < len(result.images):
        raise SystemExit(f"Error: {len(result.images) - len(saved)} image(s) could not be saved")


def cmd_set_key(args: argparse.Namespace, settings: Settings) -> None:
    path = store_credentials(settings, "gemini", api_key=args.key)
    print(f"Gemini API key saved to {path}")


def cmd_show(args: argparse.Namespace, settings: Settings) -> None:
    print(f"Config file: {settings.config_path}")
    show_api_key(settings, "Gemini", GEMINI_ENV, "gemini")


def build_parser() -> argparse.ArgumentParser:
    parser, sub = new_parser("gemini-cli", "Generate images with Google Gemini.")

    gen = sub.add_parser("generate", help="generate images from a prompt")
    gen.add_argument("prompt", nargs="*", help="text prompt")
    gen.add_argument("--model", default=DEFAULT_MODEL, help="model name (see 'models')")
    gen.add_argument("--output", "-o", help="output file (default output_<timestamp>_<n>.<ext>)")
    gen.add_argument("--ratio", default="1:1", help="aspect ratio")
    gen.add_argument("--size", default="2K", choices=("1K", "2K", "4K"), help="image resolution")
    gen.add_argument("--image-file", help="reference image to edit")
    gen.add_argument("--text-only", action="store_true", help="omit image config from the request")
    add_debug_flag(gen)
    gen.set_defaults(handler=cmd_generate)

    add_models_command(sub, GEMINI_REGISTRY)
    add_config_command(sub, {
        "set-key": ("store the Gemini API key", ["key"], cmd_set_key),
        "show": ("show configured credentials", [], cmd_show),
    })
    return parser


def main(argv: list[str] | None = None) -> int:
    return run(build_parser(), argv)


if __name__ == "__main__":
    raise SystemExit(main())
