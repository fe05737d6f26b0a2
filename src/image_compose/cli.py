from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path

from image_compose.exceptions import ImageComposeError, RecipeValidationError
from image_compose.recipe import load_recipe, run_recipe


def _strip_optional_quotes(value: str) -> str:
    trimmed = value.strip()
    if len(trimmed) >= 2 and ((trimmed[0] == '"' and trimmed[-1] == '"') or (trimmed[0] == "'" and trimmed[-1] == "'")):
        return trimmed[1:-1]
    return trimmed


def _load_env_file(env_path: Path) -> None:
    if not env_path.exists() or not env_path.is_file():
        return

    for raw_line in env_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, raw_value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        os.environ.setdefault(key, _strip_optional_quotes(raw_value))


def _load_default_env_files() -> None:
    cwd_env = Path.cwd() / ".env"
    project_root_env = Path(__file__).resolve().parents[2] / ".env"

    _load_env_file(project_root_env)
    if cwd_env != project_root_env:
        _load_env_file(cwd_env)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compose images from a YAML/JSON recipe")
    parser.add_argument("--recipe", required=True, help="Path to compose recipe (.yaml/.yml/.json)")
    parser.add_argument("--output", default=None, help="Output file; overrides the recipe 'output' key")
    parser.add_argument("--format", default=None, help="Output format used when the file extension is not known")
    parser.add_argument(
        "--jpeg-quality",
        type=int,
        default=None,
        help="JPEG quality 1-100; overrides the recipe 'jpeg_quality' key",
    )
    parser.add_argument("--dry-run", action="store_true", help="Validate and render the recipe without writing a file")
    parser.add_argument(
        "--log-level",
        default=os.getenv("IMAGE_COMPOSE_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    _load_default_env_files()
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(asctime)s | %(levelname)s | %(message)s")

    recipe_path = Path(args.recipe)
    try:
        recipe = load_recipe(recipe_path)
        image = run_recipe(recipe, base_dir=recipe_path.resolve().parent)
    except RecipeValidationError as exc:
        raise SystemExit(f"Validation error:\n{exc}") from exc
    except ImageComposeError as exc:
        raise SystemExit(f"Compose failed: {exc}") from exc
    except Exception as exc:
        raise SystemExit(f"Compose failed: {type(exc).__name__}: {exc}") from exc

    if args.format:
        image.set_format(args.format)

    output = args.output or recipe.output
    if args.dry_run or not output:
        print("Compose summary")
        print(f"- Recipe: {recipe_path}")
        print(f"- Steps applied: {len(recipe.steps)}")
        print(f"- Size: {image.width}x{image.height}")
        if not args.dry_run:
            print("No output path given; nothing written.")
        return

    output_path = Path(output)
    if not output_path.is_absolute() and not args.output:
        output_path = recipe_path.resolve().parent / output_path

    quality = args.jpeg_quality if args.jpeg_quality is not None else recipe.jpeg_quality
    try:
        image.write(output_path, jpeg_quality=quality)
    except ImageComposeError as exc:
        raise SystemExit(f"Compose failed: {exc}") from exc
    except Exception as exc:
        raise SystemExit(f"Compose failed: {type(exc).__name__}: {exc}") from exc

    print(f"Wrote {image.width}x{image.height} image to {output_path}")


if __name__ == "__main__":
    main()
