"""
Minimal interactive CLI entrypoint for VisionaryAI.

Architectural role:
- Provides a terminal-only interface over one consultation session.
- Loads the user's photo from disk and delegates turns to
  `visionary.core.engine.ConsultationOrchestrator`.

Request lifecycle (per user turn, CLI):
1. Read a single line from stdin.
2. Handle local control commands (`exit`/`quit`, `/ref`, `/clear-ref`,
   `/style`, `/styles`, `/shop`).
3. Forward regular text to `submit_message`.
4. Print the model reply and its shopping links; write the current look to
   `--output` after a successful edit.

Error handling strategy:
- Invalid image paths are reported and the loop continues.
- EOF and keyboard interrupts end the session without traceback output.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import logging
import os
import sys

from visionary.api.multimodal.image_inputs import load_image_file
from visionary.core.engine import ConsultationOrchestrator
from visionary.core.errors import InvalidImageError, UnknownStyleError
from visionary.llm.service import GeminiGateway
from visionary.memory.session_models import ImageRef, Role
from visionary.prompting.prompt_builder import PRESET_STYLES


# =========================================================
# UTF-8 SAFE STDOUT
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except (AttributeError, ValueError):
        pass


def print_turns(turns):
    for turn in turns:
        if turn.role != Role.MODEL:
            continue
        prefix = "[error] " if turn.is_error else ""
        print(f"\nStylist: {prefix}{turn.text}")
        if turn.citations:
            print("Shopping suggestions:")
            for citation in turn.citations:
                print(f"  - {citation.title}: {citation.uri}")


IMAGE_EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}


def look_path(path: str, mime_type: str) -> str:
    """Swap the extension of `path` for the one matching `mime_type`."""
    extension = IMAGE_EXTENSIONS.get(mime_type)
    if extension is None:
        return path
    return os.path.splitext(path)[0] + extension


def write_look(image: ImageRef | None, path: str | None) -> str | None:
    """Write the look to `path` (extension follows the image type)."""
    if image is None or not path:
        return None
    path = look_path(path, image.mime_type)
    with open(path, "wb") as f:
        f.write(image.data)
    print(f"(current look saved to {path})")
    return path


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="VisionaryAI eyewear stylist")
    parser.add_argument("photo", help="Path to a normalized JPEG/PNG/WebP photo")
    parser.add_argument(
        "--output",
        default="current_look.png",
        help="Where to write the current look; the extension follows the image type",
    )
    parser.add_argument("--log-level", default="WARNING")
    return parser.parse_args(argv)


async def handle_line(orchestrator: ConsultationOrchestrator, line: str):
    """Dispatch one input line; returns the appended turns."""
    if line.startswith("/ref "):
        image = load_image_file(line[len("/ref "):].strip())
        return await orchestrator.submit_reference_image(image)

    if line == "/clear-ref":
        orchestrator.clear_reference_image()
        print("Reference image cleared.")
        return []

    if line == "/styles":
        for style in PRESET_STYLES:
            print(f"  {style.icon} {style.id}: {style.label}")
        return []

    if line.startswith("/style "):
        return await orchestrator.select_style(line[len("/style "):].strip())

    if line == "/shop":
        return await orchestrator.shop_current_look()

    return await orchestrator.submit_message(line)


def main(argv=None):
    """
    Run the interactive terminal session.

    Interaction with core:
    - One `ConsultationOrchestrator` per process, backed by `GeminiGateway`.
    """
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper())

    try:
        photo = load_image_file(args.photo)
    except InvalidImageError as err:
        print(f"Cannot load photo: {err}")
        return 1

    orchestrator = ConsultationOrchestrator(GeminiGateway())
    greeting = orchestrator.submit_user_photo(photo)

    print("VisionaryAI stylist started. (Type 'exit' to quit, '/styles' for presets)\n")
    print("-" * 60)
    print_turns([greeting])

    while True:

        try:
            line = input("\nYou: ").strip()

        except EOFError:
            print("\nSession ended.")
            break

        except KeyboardInterrupt:
            print("\nInterrupted.")
            break

        if not line:
            continue

        if line.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        previous = orchestrator.look.current_image

        try:
            turns = asyncio.run(handle_line(orchestrator, line))
        except (InvalidImageError, UnknownStyleError) as err:
            print(f"{err}")
            continue

        print_turns(turns)

        current = orchestrator.look.current_image
        if current is not previous:
            write_look(current, args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())
