from __future__ import annotations

import json
import logging
import uuid
from typing import Iterable, List, Optional, Sequence, Union

from .errors import NotFoundError, StorageError, ValidationError
from .models import CandidateRecipe, Recipe, parse_ingredients
from .storage import RecipeStorage

logger = logging.getLogger(__name__)

IngredientsInput = Union[str, Iterable[str]]


class RecipeStore:
    """Owns the recipe collection and mirrors it to a storage backend.

    Every mutation is applied in memory and persisted straight away. When the
    persist fails the in-memory change is kept and :class:`StorageError`
    propagates so the caller can warn the user.
    """

    def __init__(self, storage: RecipeStorage) -> None:
        self._storage = storage
        self._recipes: List[Recipe] = []

    @property
    def storage(self) -> RecipeStorage:
        return self._storage

    def load(self) -> List[Recipe]:
        """Read the persisted collection, falling back to an empty one.

        Never raises: unreadable storage and malformed data both produce an
        empty collection.
        """

        self._recipes = self._read_recipes()
        return list(self._recipes)

    def save(self, recipes: Optional[Sequence[Recipe]] = None) -> None:
        """Persist ``recipes`` (the in-memory collection by default).

        On success the saved sequence becomes the in-memory collection. On
        failure :class:`StorageError` is raised and memory is left alone.
        """

        to_save = list(self._recipes if recipes is None else recipes)
        try:
            payload = json.dumps([recipe.to_dict() for recipe in to_save], ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(f"Could not serialize recipes: {exc}") from exc

        self._storage.write(payload)
        self._recipes = to_save

    def list_recipes(self) -> List[Recipe]:
        return list(self._recipes)

    def find(self, recipe_id: str) -> Optional[Recipe]:
        return next((recipe for recipe in self._recipes if recipe.id == recipe_id), None)

    def search(self, query: str) -> List[Recipe]:
        """Recipes whose name or any ingredient contains ``query``."""

        needle = (query or "").strip().casefold()
        if not needle:
            return self.list_recipes()
        return [
            recipe
            for recipe in self._recipes
            if needle in recipe.name.casefold()
            or any(needle in ingredient.casefold() for ingredient in recipe.ingredients)
        ]

    def create(
        self,
        *,
        name: str,
        ingredients: IngredientsInput,
        instructions: str,
        image: str = "",
    ) -> Recipe:
        recipe = self._build(
            self._new_id(),
            name=name,
            ingredients=ingredients,
            instructions=instructions,
            image=image,
        )
        self._recipes.append(recipe)
        logger.info("Created recipe %s (%s)", recipe.id, recipe.name)
        self.save()
        return recipe

    def update(
        self,
        recipe_id: str,
        *,
        name: str,
        ingredients: IngredientsInput,
        instructions: str,
        image: str = "",
    ) -> Recipe:
        recipe = self._build(
            recipe_id,
            name=name,
            ingredients=ingredients,
            instructions=instructions,
            image=image,
        )

        for index, existing in enumerate(self._recipes):
            if existing.id == recipe_id:
                self._recipes[index] = recipe
                break
        else:
            raise NotFoundError(recipe_id)

        logger.info("Updated recipe %s", recipe_id)
        self.save()
        return recipe

    def delete(self, recipe_id: str) -> None:
        """Remove a recipe. Unknown ids are ignored."""

        self._recipes = [recipe for recipe in self._recipes if recipe.id != recipe_id]
        self.save()

    def create_from_candidate(self, candidate: CandidateRecipe) -> Recipe:
        """Commit a suggestion to the collection."""

        return self.create(
            name=candidate.name,
            ingredients=candidate.ingredient_list(),
            instructions=candidate.instructions,
        )

    def _build(
        self,
        recipe_id: str,
        *,
        name: str,
        ingredients: IngredientsInput,
        instructions: str,
        image: str,
    ) -> Recipe:
        name = (name or "").strip()
        instructions = (instructions or "").strip()
        parsed_ingredients = parse_ingredients(ingredients)

        if not name or not parsed_ingredients or not instructions:
            raise ValidationError("Please fill in the recipe name, ingredients, and instructions.")

        return Recipe(
            id=recipe_id,
            name=name,
            ingredients=parsed_ingredients,
            instructions=instructions,
            image=(image or "").strip(),
        )

    def _new_id(self) -> str:
        existing = {recipe.id for recipe in self._recipes}
        while True:
            candidate = uuid.uuid4().hex
            if candidate not in existing:
                return candidate

    def _read_recipes(self) -> List[Recipe]:
        try:
            payload = self._storage.read()
        except StorageError as exc:
            logger.warning("Recipe storage unavailable, starting empty: %s", exc)
            return []

        if not payload:
            return []

        try:
            records = json.loads(payload)
        except ValueError as exc:
            logger.warning("Discarding stored recipes that are not valid JSON: %s", exc)
            return []

        if not isinstance(records, list):
            logger.warning("Discarding stored recipes: expected a list, got %s", type(records).__name__)
            return []

        try:
            parsed = [Recipe.from_dict(record) for record in records]
        except ValueError as exc:
            logger.warning("Discarding %d stored recipes with malformed data: %s", len(records), exc)
            return []

        recipes: List[Recipe] = []
        seen: set[str] = set()
        for recipe in parsed:
            if recipe.id in seen:
                logger.warning("Dropping stored recipe with duplicate id %s", recipe.id)
                continue
            seen.add(recipe.id)
            recipes.append(recipe)
        return recipes


__all__ = ["RecipeStore"]
