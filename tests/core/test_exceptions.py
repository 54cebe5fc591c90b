"""
Tests for the pycensored exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyCensoredError)
    - ValidationError doubles as a builtin ValueError
    - Diagnostic attributes on FormulaError, SpecificationError,
      ConvergenceError
"""

import pytest

from pycensored.core.exceptions import (
    ConvergenceError,
    DimensionError,
    FormulaError,
    NumericalError,
    PyCensoredError,
    SpecificationError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyCensoredError."""

    def test_validation_error_is_pycensored_error(self):
        with pytest.raises(PyCensoredError):
            raise ValidationError("bad input")

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise ValidationError("bad input")

    def test_dimension_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise DimensionError("wrong shape")

    def test_formula_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise FormulaError("bad formula")

    def test_specification_error_is_not_validation_error(self):
        assert not issubclass(SpecificationError, ValidationError)
        assert issubclass(SpecificationError, PyCensoredError)

    def test_convergence_error_is_numerical_error(self):
        with pytest.raises(NumericalError):
            raise ConvergenceError("diverged", iterations=3)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestAttributes:

    def test_formula_error_keeps_formula(self):
        err = FormulaError("no tilde", formula="Surv(t, e)")
        assert err.formula == "Surv(t, e)"
        assert str(err) == "no tilde"

    def test_formula_error_default_none(self):
        assert FormulaError("x").formula is None

    def test_specification_error_attributes(self):
        err = SpecificationError(
            "nope",
            model_type="proportional_hazards",
            engine="glmnet",
            mode="censored regression",
        )
        assert err.model_type == "proportional_hazards"
        assert err.engine == "glmnet"
        assert err.mode == "censored regression"

    def test_specification_error_defaults(self):
        err = SpecificationError("nope")
        assert err.model_type is None
        assert err.engine is None
        assert err.mode is None

    def test_convergence_error_attributes(self):
        err = ConvergenceError(
            "failed", iterations=50, final_change=1e-3,
            reason="non_finite", threshold=1e-9,
        )
        assert err.iterations == 50
        assert err.final_change == 1e-3
        assert err.reason == "non_finite"
        assert err.threshold == 1e-9
