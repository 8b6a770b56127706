"""FastAPI dependency injection for settings, reference data and the live game."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request

from hourglass.config import Settings
from hourglass.core.errors import (
    HourglassError,
    SessionStateError,
    UnknownCardError,
)
from hourglass.core.round_engine import RoundEngine
from hourglass.core.seeding import Catalog, load_catalog


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_catalog(request: Request) -> Catalog:
    """Card and character registries, loaded on first use."""
    catalog: Catalog | None = getattr(request.app.state, "catalog", None)
    if catalog is None:
        settings = get_settings(request)
        catalog = load_catalog(
            Path(settings.hourglass_cards_path),
            Path(settings.hourglass_characters_path),
        )
        request.app.state.catalog = catalog
    return catalog


def get_engine(request: Request) -> RoundEngine:
    """The in-memory game. 404 until one has been created."""
    engine: RoundEngine | None = getattr(request.app.state, "engine", None)
    if engine is None:
        raise HTTPException(status_code=404, detail="No game in progress")
    return engine


SettingsDep = Annotated[Settings, Depends(get_settings)]
CatalogDep = Annotated[Catalog, Depends(get_catalog)]
EngineDep = Annotated[RoundEngine, Depends(get_engine)]


@contextmanager
def translate_errors() -> Iterator[None]:
    """Turn engine exceptions into HTTP errors.

    Unknown card → 404, wrong session state → 409, any other bad input → 422.
    """
    try:
        yield
    except UnknownCardError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except SessionStateError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except HourglassError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
