import os
from typing import Optional

from flask import Flask, flash, redirect, render_template, request, url_for

from .errors import (
    ConfigurationError,
    NotFoundError,
    ParseError,
    StorageError,
    SuggestionBusyError,
    TransportError,
    ValidationError,
)
from .models import CandidateRecipe, Recipe
from .storage import JsonFileStorage, RecipeStorage
from .store import RecipeStore
from .suggestions import SuggestionAdapter

try:
    from .gcp_storage import FirestoreRecipeStorage
except ImportError:  # pragma: no cover - allows running without optional deps
    FirestoreRecipeStorage = None  # type: ignore[assignment,misc]

PLACEHOLDER_IMAGE = "https://placehold.co/600x400/E2E8F0/A0AEC0?text=Recipe"
STORAGE_WARNING = "Could not save recipes. The recipe storage might be full or unavailable."


def create_app(
    storage: Optional[RecipeStorage] = None,
    suggester: Optional[SuggestionAdapter] = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional storage backend. When ``None`` the backend is chosen through
        the ``RECIPE_BACKEND`` environment variable (``file`` or ``firestore``).
    suggester:
        Optional suggestion adapter. When ``None`` one is configured from the
        environment.
    """

    app = Flask(__name__)
    app.secret_key = os.environ.get("FLASK_SECRET_KEY", "development-secret-change-me")

    if storage is None:
        storage = _storage_from_env()
    if suggester is None:
        suggester = SuggestionAdapter.from_env()

    store = RecipeStore(storage)
    store.load()
    app.config["RECIPE_STORE"] = store
    app.config["SUGGESTER"] = suggester

    @app.context_processor
    def inject_placeholder() -> dict:
        return {"placeholder_image": PLACEHOLDER_IMAGE}

    @app.get("/")
    def index() -> str:
        store: RecipeStore = app.config["RECIPE_STORE"]
        query = request.args.get("q", "").strip()
        recipes = store.search(query)
        selected_recipe: Recipe | None = None

        selected_id = request.args.get("selected")
        if selected_id:
            selected_recipe = store.find(selected_id)
            if selected_recipe is None:
                flash("Recipe not found.", "error")

        return render_template(
            "index.html",
            recipes=recipes,
            query=query,
            selected_recipe=selected_recipe,
            title="Recipe Book",
        )

    @app.get("/recipes/new")
    def new_recipe() -> str:
        return render_template("add_recipe.html", form={}, title="Add a New Recipe")

    @app.post("/recipes")
    def create_recipe() -> str:
        store: RecipeStore = app.config["RECIPE_STORE"]
        fields = _recipe_form()

        try:
            recipe = store.create(**fields)
        except ValidationError as exc:
            flash(str(exc), "error")
            return render_template("add_recipe.html", form=fields, title="Add a New Recipe"), 400
        except StorageError as exc:
            app.logger.warning("Recipe created but not persisted: %s", exc)
            flash(STORAGE_WARNING, "warning")
            return redirect(url_for("index"))

        flash(f"Recipe '{recipe.name}' saved.", "success")
        return redirect(url_for("index", selected=recipe.id))

    @app.get("/recipes/<recipe_id>/edit")
    def edit_recipe(recipe_id: str) -> str:
        store: RecipeStore = app.config["RECIPE_STORE"]

        recipe = store.find(recipe_id)
        if recipe is None:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))

        form = {
            "name": recipe.name,
            "image": recipe.image,
            "ingredients": ", ".join(recipe.ingredients),
            "instructions": recipe.instructions,
        }
        return render_template("edit_recipe.html", recipe=recipe, form=form, title="Edit Recipe")

    @app.post("/recipes/<recipe_id>")
    def update_recipe(recipe_id: str) -> str:
        store: RecipeStore = app.config["RECIPE_STORE"]
        fields = _recipe_form()

        try:
            recipe = store.update(recipe_id, **fields)
        except ValidationError as exc:
            flash(str(exc), "error")
            return redirect(url_for("edit_recipe", recipe_id=recipe_id))
        except NotFoundError:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))
        except StorageError as exc:
            app.logger.warning("Recipe %s updated but not persisted: %s", recipe_id, exc)
            flash(STORAGE_WARNING, "warning")
            return redirect(url_for("index", selected=recipe_id))

        flash(f"Recipe '{recipe.name}' updated.", "success")
        return redirect(url_for("index", selected=recipe.id))

    @app.get("/recipes/<recipe_id>/delete")
    def confirm_delete(recipe_id: str) -> str:
        store: RecipeStore = app.config["RECIPE_STORE"]

        recipe = store.find(recipe_id)
        if recipe is None:
            flash("Recipe not found.", "error")
            return redirect(url_for("index"))

        return render_template("confirm_delete.html", recipe=recipe, title="Delete recipe")

    @app.post("/recipes/<recipe_id>/delete")
    def delete_recipe(recipe_id: str) -> str:
        store: RecipeStore = app.config["RECIPE_STORE"]
        try:
            store.delete(recipe_id)
        except StorageError as exc:
            app.logger.warning("Recipe %s deleted but not persisted: %s", recipe_id, exc)
            flash(STORAGE_WARNING, "warning")
        else:
            flash("Recipe deleted.", "success")
        return redirect(url_for("index"))

    @app.get("/suggestions")
    def suggestions() -> str:
        return render_template(
            "suggestions.html", candidates=None, ingredients="", title="Find recipes"
        )

    @app.post("/suggestions")
    async def request_suggestions() -> str:
        suggester: SuggestionAdapter = app.config["SUGGESTER"]
        ingredients = request.form.get("ingredients", "").strip()
        candidates: list[CandidateRecipe] | None = None

        try:
            candidates = await suggester.suggest(ingredients)
        except ValidationError as exc:
            flash(str(exc), "error")
        except SuggestionBusyError:
            flash("Already looking for recipes, please wait.", "info")
        except ConfigurationError as exc:
            app.logger.error("Suggestions unavailable: %s", exc)
            flash("API key is missing. Set GEMINI_API_KEY to enable suggestions.", "error")
        except (TransportError, ParseError) as exc:
            app.logger.error("Error fetching suggestions: %s", exc)
            flash(
                "Sorry, we couldn't fetch recipes. The API key might be missing or invalid. "
                "Please try again later.",
                "error",
            )

        return render_template(
            "suggestions.html",
            candidates=candidates,
            ingredients=ingredients,
            title="Find recipes",
        )

    @app.post("/suggestions/save")
    def save_suggestion() -> str:
        store: RecipeStore = app.config["RECIPE_STORE"]
        candidate = CandidateRecipe(
            name=request.form.get("name", ""),
            ingredients=request.form.get("ingredients", ""),
            instructions=request.form.get("instructions", ""),
        )

        try:
            recipe = store.create_from_candidate(candidate)
        except ValidationError as exc:
            flash(str(exc), "error")
            return redirect(url_for("suggestions"))
        except StorageError as exc:
            app.logger.warning("Suggested recipe added but not persisted: %s", exc)
            flash(STORAGE_WARNING, "warning")
            return redirect(url_for("index"))

        flash(f"Recipe '{recipe.name}' saved to your book.", "success")
        return redirect(url_for("index", selected=recipe.id))

    return app


def _recipe_form() -> dict[str, str]:
    return {
        "name": request.form.get("name", "").strip(),
        "image": request.form.get("image", "").strip(),
        "ingredients": request.form.get("ingredients", "").strip(),
        "instructions": request.form.get("instructions", "").strip(),
    }


def _storage_from_env() -> RecipeStorage:
    backend = os.environ.get("RECIPE_BACKEND", "file").lower()
    if backend == "firestore":
        if FirestoreRecipeStorage is None:
            raise RuntimeError(
                "google-cloud-firestore is not installed. Install the 'gcp' extra "
                "or use RECIPE_BACKEND=file."
            )
        return FirestoreRecipeStorage.from_env()
    if backend == "file":
        return JsonFileStorage.from_env()
    raise RuntimeError(f"Unknown RECIPE_BACKEND '{backend}'. Use 'file' or 'firestore'.")


__all__ = ["create_app", "Recipe", "RecipeStore"]
