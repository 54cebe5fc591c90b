"""
Registry of engines by (model type, engine name, mode).

The registry is what turns a ModelSpec into something that can be
fitted: it answers which engines exist for a model type, which modes
they run in, and which prediction types they produce.
"""

from __future__ import annotations

import pandas as pd

from pycensored.core.exceptions import SpecificationError
from pycensored.core.protocols import Engine
from pycensored.modeling._defaults import MODEL_MODES
from pycensored.modeling.engines import BUILTIN_ENGINES

_ENGINES: dict[tuple[str, str, str], Engine] = {}


def register_engine(engine: Engine) -> None:
    """Add an engine, replacing any engine with the same key.

    Raises
    ------
    SpecificationError
        If the engine does not satisfy the Engine protocol or its model
        type/mode pair is unknown.
    """
    if not isinstance(engine, Engine):
        raise SpecificationError(
            f"{type(engine).__name__} does not implement the Engine protocol"
        )
    if engine.model_type not in MODEL_MODES:
        raise SpecificationError(
            f"unknown model type '{engine.model_type}'",
            model_type=engine.model_type,
            engine=engine.name,
        )
    if engine.mode not in MODEL_MODES[engine.model_type]:
        raise SpecificationError(
            f"mode '{engine.mode}' is not available for "
            f"'{engine.model_type}'; available: {list(MODEL_MODES[engine.model_type])}",
            model_type=engine.model_type,
            engine=engine.name,
            mode=engine.mode,
        )
    _ENGINES[(engine.model_type, engine.name, engine.mode)] = engine


def engine_names(model_type: str) -> list[str]:
    """Engine names registered for a model type, in registration order."""
    return list(dict.fromkeys(
        name for (mt, name, _) in _ENGINES if mt == model_type
    ))


def get_engine(model_type: str, engine: str, mode: str) -> Engine:
    """Look up an engine.

    Raises
    ------
    SpecificationError
        If no engine matches, listing the ones that exist.
    """
    try:
        return _ENGINES[(model_type, engine, mode)]
    except KeyError:
        available = engine_names(model_type)
        raise SpecificationError(
            f"engine '{engine}' is not available for '{model_type}' in "
            f"mode '{mode}'; available engines: {available}",
            model_type=model_type,
            engine=engine,
            mode=mode,
        ) from None


def show_engines(model_type: str) -> pd.DataFrame:
    """Engines, modes and prediction types for a model type."""
    if model_type not in MODEL_MODES:
        raise SpecificationError(
            f"unknown model type '{model_type}'; "
            f"available: {sorted(MODEL_MODES)}",
            model_type=model_type,
        )
    rows = [
        {
            "engine": e.name,
            "mode": e.mode,
            "pred_types": ", ".join(sorted(e.pred_types)),
            "strata": e.supports_strata,
        }
        for (mt, _, _), e in _ENGINES.items()
        if mt == model_type
    ]
    return pd.DataFrame(rows, columns=["engine", "mode", "pred_types", "strata"])


for _engine in BUILTIN_ENGINES:
    register_engine(_engine)
