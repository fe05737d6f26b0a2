from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any, Literal, Union

import yaml
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from image_compose.engine.base import RasterEngine
from image_compose.exceptions import RecipeValidationError
from image_compose.fonts import Alignment, FontSpec
from image_compose.geometry import Anchor
from image_compose.image import ComposableImage
from image_compose.settings import Settings

logger = logging.getLogger(__name__)

MIN_VALID_EXAMPLE_YAML = """canvas:
  width: 800
  height: 600
  background: white
format: png
steps:
  - op: place_text
    text: "Hello"
    anchor: mid-center
    font: {size: 32, color: "#000000"}
output: hello.png
"""


class FontModel(BaseModel):
    family: str | None = None
    size: int = Field(default=16, ge=0)
    color: str = "#000000"
    alignment: Alignment = "left"

    def to_spec(self) -> FontSpec:
        return FontSpec(family=self.family, size=self.size, color=self.color, alignment=self.alignment)


class CanvasModel(BaseModel):
    source: str | None = None
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    background: str = "white"

    @model_validator(mode="after")
    def _source_or_size(self) -> CanvasModel:
        if self.source is None and (self.width is None or self.height is None):
            raise ValueError("canvas needs either 'source' or both 'width' and 'height'")
        return self


class _AnchoredStep(BaseModel):
    anchor: Anchor

    @field_validator("anchor", mode="before")
    @classmethod
    def _parse_anchor(cls, value: Any) -> Anchor:
        return Anchor.parse(value)


class ResizeStep(BaseModel):
    op: Literal["resize"]
    width: int = Field(ge=0)
    height: int = Field(ge=0)
    best_fit: bool = True


class CropStep(BaseModel):
    op: Literal["crop"]
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    x: int = 0
    y: int = 0


class ThumbnailStep(BaseModel):
    op: Literal["thumbnail"]
    width: int = Field(gt=0)
    height: int = Field(gt=0)
    crop: bool = False


class RotateStep(BaseModel):
    op: Literal["rotate"]
    degrees: float = 90.0
    background: str = "transparent"


class AnnotateTextStep(BaseModel):
    op: Literal["annotate_text"]
    text: str
    x: float
    y: float
    angle: float = 0
    font: FontModel = Field(default_factory=FontModel)


class PlaceTextStep(_AnchoredStep):
    op: Literal["place_text"]
    text: str = Field(min_length=1)
    font: FontModel = Field(default_factory=FontModel)
    fit_width: float = 0


class CompositeImageStep(BaseModel):
    op: Literal["composite_image"]
    source: str
    x: float
    y: float
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    transparency: float = Field(default=0, ge=0, le=100)


class PlaceImageStep(_AnchoredStep):
    op: Literal["place_image"]
    source: str
    width: int = Field(default=0, ge=0)
    height: int = Field(default=0, ge=0)
    transparency: float = Field(default=100, ge=0, le=100)


Step = Annotated[
    Union[
        ResizeStep,
        CropStep,
        ThumbnailStep,
        RotateStep,
        AnnotateTextStep,
        PlaceTextStep,
        CompositeImageStep,
        PlaceImageStep,
    ],
    Field(discriminator="op"),
]


class ComposeRecipe(BaseModel):
    canvas: CanvasModel
    format: str | None = None
    steps: list[Step] = Field(default_factory=list)
    output: str | None = None
    jpeg_quality: int = Field(default=0, ge=0, le=100)


def _parse_recipe_file(recipe_path: Path) -> dict[str, Any]:
    suffix = recipe_path.suffix.lower()
    content = recipe_path.read_text(encoding="utf-8")

    if suffix in {".yaml", ".yml"}:
        parsed = yaml.safe_load(content)
    elif suffix == ".json":
        parsed = json.loads(content)
    else:
        raise RecipeValidationError(
            "Unsupported recipe format. Use .yaml, .yml, or .json files.\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        )

    if not isinstance(parsed, dict):
        raise RecipeValidationError(
            "Recipe root must be an object/map.\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        )
    return parsed


def _default_schema_path() -> Path:
    return Path(__file__).resolve().parents[2] / "schemas" / "recipe.schema.json"


def load_recipe(recipe_path: Path, schema_path: Path | None = None) -> ComposeRecipe:
    if not recipe_path.exists():
        raise RecipeValidationError(f"Recipe file not found: {recipe_path}")

    try:
        parsed = _parse_recipe_file(recipe_path)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise RecipeValidationError(
            f"Unable to parse recipe file: {exc}\n\n"
            f"Minimal valid YAML example:\n{MIN_VALID_EXAMPLE_YAML}"
        ) from exc

    schema_path = schema_path or _default_schema_path()
    if schema_path.exists():
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        try:
            validate(instance=parsed, schema=schema)
        except JsonSchemaValidationError as exc:
            location = ".".join(str(part) for part in exc.absolute_path) or "<root>"
            raise RecipeValidationError(f"Recipe schema validation failed at {location}: {exc.message}") from exc

    try:
        return ComposeRecipe.model_validate(parsed)
    except ValidationError as exc:
        errors = []
        for item in exc.errors():
            location = ".".join(str(part) for part in item["loc"])
            errors.append(f"- {location}: {item['msg']}")
        raise RecipeValidationError(
            "Recipe validation failed:\n"
            + "\n".join(errors)
            + "\n\nMinimal valid YAML example:\n"
            + MIN_VALID_EXAMPLE_YAML
        ) from exc


def _resolve_path(value: str, base_dir: Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else base_dir / path


def _apply_step(image: ComposableImage, step: Step, base_dir: Path) -> None:
    if isinstance(step, ResizeStep):
        image.resize(step.width, step.height, best_fit=step.best_fit)
    elif isinstance(step, CropStep):
        image.crop(step.width, step.height, step.x, step.y)
    elif isinstance(step, ThumbnailStep):
        image.thumbnail(step.width, step.height, crop=step.crop)
    elif isinstance(step, RotateStep):
        image.rotate(step.degrees, background=step.background)
    elif isinstance(step, AnnotateTextStep):
        image.annotate_text(step.text, step.x, step.y, step.angle, step.font.to_spec())
    elif isinstance(step, PlaceTextStep):
        font = image.place_text(step.text, step.anchor, step.font.to_spec(), fit_width=step.fit_width)
        logger.debug("Placed text %r with font size %d", step.text, font.size)
    elif isinstance(step, CompositeImageStep):
        image.composite_image(
            _resolve_path(step.source, base_dir),
            step.x,
            step.y,
            step.width,
            step.height,
            step.transparency,
        )
    elif isinstance(step, PlaceImageStep):
        image.place_image(
            _resolve_path(step.source, base_dir),
            step.anchor,
            step.width,
            step.height,
            step.transparency,
        )
    else:
        raise ValueError(f"Unsupported recipe step: {step!r}")


def run_recipe(
    recipe: ComposeRecipe,
    base_dir: Path,
    engine: RasterEngine | None = None,
    settings: Settings | None = None,
) -> ComposableImage:
    """Build the canvas described by *recipe* and apply its steps in order.

    Relative paths inside the recipe are resolved against *base_dir*.  The
    output file is not written here.
    """
    image = ComposableImage(engine=engine, settings=settings)
    if recipe.canvas.source:
        image.load(_resolve_path(recipe.canvas.source, base_dir))
    else:
        image.create_new(recipe.canvas.width, recipe.canvas.height, recipe.canvas.background)

    if recipe.format:
        image.set_format(recipe.format)

    for index, step in enumerate(recipe.steps, start=1):
        logger.info("Step %d/%d: %s", index, len(recipe.steps), step.op)
        _apply_step(image, step, base_dir)

    return image
