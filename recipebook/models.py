from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Union


def parse_ingredients(value: Union[str, Iterable[str], None]) -> List[str]:
    """Normalize ingredients into a list of trimmed, non-empty strings.

    A string is split on commas. An iterable is taken as already split: each
    item is trimmed and blank items are dropped.
    """

    if value is None:
        return []
    if isinstance(value, str):
        pieces: Iterable[str] = value.split(",")
    else:
        pieces = (str(item) for item in value)
    return [piece.strip() for piece in pieces if piece.strip()]


@dataclass
class Recipe:
    """Domain object representing a stored recipe."""

    id: str
    name: str
    ingredients: List[str] = field(default_factory=list)
    instructions: str = ""
    image: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image": self.image,
            "ingredients": list(self.ingredients),
            "instructions": self.instructions,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "Recipe":
        """Build a recipe from a persisted record.

        Raises :class:`ValueError` when the record is not usable.
        """

        if not isinstance(data, dict):
            raise ValueError(f"Recipe record must be an object, got {type(data).__name__}.")

        recipe_id = data.get("id")
        name = data.get("name")
        if not isinstance(recipe_id, str) or not recipe_id:
            raise ValueError("Recipe record is missing an id.")
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"Recipe '{recipe_id}' is missing a name.")

        ingredients = data.get("ingredients", [])
        if isinstance(ingredients, list):
            if not all(isinstance(item, str) for item in ingredients):
                raise ValueError(f"Recipe '{recipe_id}' has non-text ingredients.")
        elif not isinstance(ingredients, str):
            raise ValueError(f"Recipe '{recipe_id}' has malformed ingredients.")

        instructions = data.get("instructions") or ""
        image = data.get("image") or ""
        if not isinstance(instructions, str) or not isinstance(image, str):
            raise ValueError(f"Recipe '{recipe_id}' has malformed text fields.")

        return cls(
            id=recipe_id,
            name=name,
            ingredients=parse_ingredients(ingredients),
            instructions=instructions,
            image=image,
        )


@dataclass
class CandidateRecipe:
    """An unsaved recipe suggestion. ``ingredients`` is comma-separated text."""

    name: str
    ingredients: str
    instructions: str

    def ingredient_list(self) -> List[str]:
        return parse_ingredients(self.ingredients)


__all__ = ["CandidateRecipe", "Recipe", "parse_ingredients"]
