"""
Model specifications.

A ModelSpec says *what* to fit (model type and its main arguments),
*how* (engine and engine-specific arguments) and in which mode,
without touching data. Specs are immutable; set_engine() and
set_mode() return new specs so they chain:

    spec = proportional_hazards(penalty=0.1).set_engine("survival")
    model = spec.fit("Surv(time, status) ~ age + strata(sex)", data)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

import numpy as np

from pycensored.core.exceptions import SpecificationError, ValidationError
from pycensored.modeling import registry
from pycensored.modeling._defaults import (
    CENSORED_REGRESSION,
    DEFAULT_ENGINES,
    MODEL_MODES,
    UNKNOWN_MODE,
)
from pycensored.survival._distributions import DISTRIBUTIONS

_TITLES = {
    "proportional_hazards": "Proportional Hazards Model",
    "survival_reg": "Parametric Survival Regression Model",
}


@dataclass(frozen=True)
class ModelSpec:
    """Immutable model specification.

    Attributes:
        model_type: 'proportional_hazards' or 'survival_reg'
        args: Main arguments (engine-independent names); None means default
        engine: Engine name, or None for the model type's default
        engine_args: Engine-specific arguments
        mode: 'censored regression' or 'unknown'

    args and engine_args are read-only copies of what was passed in and
    are left out of the hash.
    """

    model_type: str
    args: Mapping[str, Any] = field(default_factory=dict, hash=False)
    engine: str | None = None
    engine_args: Mapping[str, Any] = field(default_factory=dict, hash=False)
    mode: str = UNKNOWN_MODE

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", MappingProxyType(dict(self.args)))
        object.__setattr__(self, "engine_args", MappingProxyType(dict(self.engine_args)))

    def set_engine(self, engine: str, **engine_args: Any) -> ModelSpec:
        """Choose the computational engine.

        Raises
        ------
        SpecificationError
            If the engine is not registered for this model type.
        """
        available = registry.engine_names(self.model_type)
        if engine not in available:
            raise SpecificationError(
                f"engine '{engine}' is not available for '{self.model_type}'; "
                f"available engines: {available}",
                model_type=self.model_type,
                engine=engine,
                mode=self.mode,
            )
        return replace(self, engine=engine, engine_args=dict(engine_args))

    def set_mode(self, mode: str) -> ModelSpec:
        """Set the mode.

        Raises
        ------
        SpecificationError
            If the model type has no such mode.
        """
        modes = MODEL_MODES[self.model_type]
        if mode != UNKNOWN_MODE and mode not in modes:
            raise SpecificationError(
                f"mode '{mode}' is not available for '{self.model_type}'; "
                f"available modes: {list(modes)}",
                model_type=self.model_type,
                engine=self.engine,
                mode=mode,
            )
        return replace(self, mode=mode)

    def resolved(self) -> ModelSpec:
        """Fill in the default engine and resolve an unknown mode.

        Raises
        ------
        SpecificationError
            If the mode is unknown and the model type has several.
        """
        spec = self
        if spec.engine is None:
            spec = replace(spec, engine=DEFAULT_ENGINES[spec.model_type])
        if spec.mode == UNKNOWN_MODE:
            modes = MODEL_MODES[spec.model_type]
            if len(modes) != 1:
                raise SpecificationError(
                    f"set the mode of '{spec.model_type}' before fitting; "
                    f"available modes: {list(modes)}",
                    model_type=spec.model_type,
                    engine=spec.engine,
                    mode=spec.mode,
                )
            spec = replace(spec, mode=modes[0])
        return spec

    def translate(self) -> dict[str, Any]:
        """Arguments the engine's fit call will receive."""
        spec = self.resolved()
        engine = registry.get_engine(spec.model_type, spec.engine, spec.mode)
        return engine.translate(spec.args, spec.engine_args)

    def fit(self, formula: str, data) -> Any:
        """Fit to data; see pycensored.modeling.fit.fit()."""
        from pycensored.modeling.fit import _fit
        return _fit(self, formula, data, stacklevel=3)

    def __repr__(self) -> str:
        lines = [f"{_TITLES.get(self.model_type, self.model_type)} Specification ({self.mode})"]
        main = {k: v for k, v in self.args.items() if v is not None}
        if main:
            lines.append("")
            lines.append("Main Arguments:")
            lines.extend(f"  {k} = {v}" for k, v in main.items())
        if self.engine_args:
            lines.append("")
            lines.append("Engine-Specific Arguments:")
            lines.extend(f"  {k} = {v}" for k, v in self.engine_args.items())
        if self.engine is not None:
            lines.append("")
            lines.append(f"Computational engine: {self.engine}")
        return "\n".join(lines)


def set_engine(spec: ModelSpec, engine: str, **engine_args: Any) -> ModelSpec:
    return spec.set_engine(engine, **engine_args)


def set_mode(spec: ModelSpec, mode: str) -> ModelSpec:
    return spec.set_mode(mode)


def proportional_hazards(
    mode: str = CENSORED_REGRESSION,
    engine: str = "survival",
    penalty: float | None = None,
    mixture: float | None = None,
) -> ModelSpec:
    """Proportional hazards regression.

    Parameters
    ----------
    mode : str
        Only 'censored regression' (or 'unknown', resolved at fit).
    engine : str
        Computational engine (default 'survival').
    penalty : float or None
        Amount of regularization, >= 0. None means unpenalized.
    mixture : float or None
        Proportion of L1 penalty in [0, 1]. The survival engine fits
        ridge penalties only, so anything but 0 fails at fit time.

    Returns
    -------
    ModelSpec
    """
    if penalty is not None and (not np.isfinite(penalty) or penalty < 0):
        raise ValidationError(f"penalty must be a non-negative number, got {penalty}")
    if mixture is not None and not 0 <= mixture <= 1:
        raise ValidationError(f"mixture must be in [0, 1], got {mixture}")

    spec = ModelSpec(
        model_type="proportional_hazards",
        args={"penalty": penalty, "mixture": mixture},
    )
    return spec.set_mode(mode).set_engine(engine)


def survival_reg(
    mode: str = CENSORED_REGRESSION,
    engine: str = "survival",
    dist: str | None = None,
) -> ModelSpec:
    """Parametric survival regression (accelerated failure time).

    Parameters
    ----------
    mode : str
        Only 'censored regression' (or 'unknown', resolved at fit).
    engine : str
        Computational engine (default 'survival').
    dist : str or None
        'weibull' (default when None), 'exponential', 'lognormal' or
        'loglogistic'.

    Returns
    -------
    ModelSpec
    """
    if dist is not None and dist not in DISTRIBUTIONS:
        raise ValidationError(
            f"dist must be one of {sorted(DISTRIBUTIONS)}, got '{dist}'"
        )

    spec = ModelSpec(model_type="survival_reg", args={"dist": dist})
    return spec.set_mode(mode).set_engine(engine)
