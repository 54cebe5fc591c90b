"""
Tests for fit() and predict() through model specifications.

Validates:
    - Specs reach the engines with their translated arguments
    - Every prediction type has the documented shape and columns
    - linear_pred orientation under increasing=True/False
    - New data needs predictor and strata columns only
    - One output row per input row, NaN for incomplete rows
"""

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

import pycensored
from pycensored.core.exceptions import SpecificationError, ValidationError
from pycensored.modeling import (
    ModelFit,
    ModelSpec,
    fit,
    predict,
    proportional_hazards,
    survival_reg,
)
from pycensored.modeling import registry
from pycensored.modeling.engines import SurvregEngine
from pycensored.survival import CoxSolution, SurvregSolution

PH_FORMULA = "Surv(time, status) ~ age + sex + strata(site)"
AFT_FORMULA = "Surv(time, status) ~ age + sex"


@pytest.fixture
def cox_model(lung_like):
    return proportional_hazards().fit(PH_FORMULA, lung_like)


@pytest.fixture
def aft_model(lung_like):
    return survival_reg().fit(AFT_FORMULA, lung_like)


@pytest.fixture
def new_data(lung_like):
    return lung_like[["age", "sex", "site"]].iloc[:5].reset_index(drop=True)


# ═══════════════════════════════════════════════════════════════════════
# fit
# ═══════════════════════════════════════════════════════════════════════


class TestFit:

    def test_cox(self, cox_model):
        assert isinstance(cox_model, ModelFit)
        solution = cox_model.extract_fit_engine()
        assert isinstance(solution, CoxSolution)
        assert solution.names == ("age", "sexM")
        assert solution.strata_levels == ("site=A", "site=B")
        assert solution.coefficients[0] > 0
        assert solution.coefficients[1] > 0

    def test_survreg(self, aft_model):
        solution = aft_model.extract_fit_engine()
        assert isinstance(solution, SurvregSolution)
        assert solution.names == ("(Intercept)", "age", "sexM")
        assert solution.dist == "weibull"
        # AFT coefficients have the opposite sign of hazard effects
        assert solution.coefficients[1] < 0

    def test_function_form(self, lung_like):
        model = fit(survival_reg(dist="lognormal"), AFT_FORMULA, lung_like)
        assert model.fit.dist == "lognormal"

    def test_elapsed_sections(self, cox_model):
        assert {"total_seconds", "model_frame", "engine_fit"} <= set(cox_model.elapsed)

    def test_spec_arguments_reach_engine(self, lung_like):
        spec = proportional_hazards(penalty=0.5).set_engine("survival", ties="breslow")
        model = spec.fit(PH_FORMULA, lung_like)
        assert model.fit.penalty == 0.5
        assert model.fit.ties == "breslow"

    def test_unknown_mode_resolved_at_fit(self, lung_like):
        model = ModelSpec(model_type="survival_reg").fit(AFT_FORMULA, lung_like)
        assert model.spec.mode == "censored regression"
        assert model.spec.engine == "survival"

    def test_stratified_survreg_scales(self, lung_like):
        model = survival_reg().fit(PH_FORMULA, lung_like)
        assert model.fit.scale.shape == (2,)

    def test_no_intercept_formula(self, lung_like):
        model = survival_reg().fit("Surv(time, status) ~ sex - 1", lung_like)
        assert model.fit.names == ("sexM",)

    def test_lasso_rejected(self, lung_like):
        spec = proportional_hazards(penalty=0.1, mixture=1)
        with pytest.raises(SpecificationError, match="ridge"):
            spec.fit(PH_FORMULA, lung_like)

    def test_requires_spec(self, lung_like):
        with pytest.raises(SpecificationError, match="ModelSpec"):
            fit("proportional_hazards", PH_FORMULA, lung_like)

    def test_missing_training_rows_dropped(self, lung_like):
        lung_like.loc[[0, 1], "age"] = np.nan
        with pytest.warns(UserWarning, match="2 row") as record:
            model = proportional_hazards().fit(PH_FORMULA, lung_like)
        assert model.fit.n_observations == len(lung_like) - 2
        dropped = [w for w in record if "2 row" in str(w.message)]
        assert dropped[0].filename == __file__

    def test_missing_rows_warning_from_function_form(self, lung_like):
        lung_like.loc[[0, 1], "age"] = np.nan
        with pytest.warns(UserWarning, match="2 row") as record:
            fit(survival_reg(), AFT_FORMULA, lung_like)
        dropped = [w for w in record if "2 row" in str(w.message)]
        assert dropped[0].filename == __file__

    def test_strata_unsupported_engine(self, lung_like, monkeypatch):
        monkeypatch.setattr(registry, "_ENGINES", dict(registry._ENGINES))

        class Unstratified(SurvregEngine):
            name = "plain"
            supports_strata = False

        registry.register_engine(Unstratified())
        spec = survival_reg(engine="plain")
        with pytest.raises(SpecificationError, match="strata"):
            spec.fit(PH_FORMULA, lung_like)
        assert spec.fit(AFT_FORMULA, lung_like).engine.name == "plain"

    def test_summary_and_repr(self, cox_model):
        s = cox_model.summary()
        assert "Formula: " + PH_FORMULA in s
        assert "coxph()" in s
        assert "ModelFit(model_type='proportional_hazards'" in repr(cox_model)


# ═══════════════════════════════════════════════════════════════════════
# predict: scalar types
# ═══════════════════════════════════════════════════════════════════════


class TestPredictScalar:

    def test_time_default(self, cox_model, new_data):
        out = cox_model.predict(new_data)
        assert list(out.columns) == [".pred_time"]
        assert len(out) == 5
        assert np.all(out[".pred_time"] > 0)

    def test_response_columns_not_needed(self, cox_model, new_data):
        assert "time" not in new_data.columns
        out = predict(cox_model, new_data, type="survival", eval_time=[1.0])
        assert len(out) == 5

    def test_cox_linear_pred_orientation(self, cox_model, new_data):
        up = cox_model.predict(new_data, type="linear_pred")
        down = cox_model.predict(new_data, type="linear_pred", increasing=False)
        assert list(up.columns) == [".pred_linear_pred"]
        assert_allclose(up[".pred_linear_pred"], -down[".pred_linear_pred"])

        X = np.column_stack([new_data["age"], new_data["sex"] == "M"]).astype(float)
        risk = cox_model.fit.predict_linear(X)
        assert_allclose(down[".pred_linear_pred"], risk)

    def test_cox_linear_pred_tracks_time(self, lung_like):
        model = proportional_hazards().fit(AFT_FORMULA, lung_like)
        new = lung_like[["age", "sex"]].iloc[:30]
        lp = model.predict(new, type="linear_pred")[".pred_linear_pred"].to_numpy()
        t = model.predict(new, type="time")[".pred_time"].to_numpy()
        order = np.argsort(lp)
        assert np.all(np.diff(t[order]) >= -1e-10)

    def test_aft_linear_pred_orientation(self, aft_model, new_data):
        up = aft_model.predict(new_data, type="linear_pred")[".pred_linear_pred"]
        down = aft_model.predict(new_data, type="linear_pred", increasing=False)[".pred_linear_pred"]
        t = aft_model.predict(new_data, type="time")[".pred_time"]
        assert_allclose(np.exp(up), t)
        assert_allclose(up, -down)

    def test_eval_time_ignored_warning(self, aft_model, new_data):
        with pytest.warns(UserWarning, match="eval_time"):
            aft_model.predict(new_data, type="time", eval_time=[1.0])

    def test_incomplete_rows_are_nan(self, cox_model, new_data):
        new_data.loc[2, "age"] = np.nan
        out = cox_model.predict(new_data)
        assert len(out) == 5
        assert np.isnan(out[".pred_time"].iloc[2])
        assert np.isfinite(out[".pred_time"].drop(index=2)).all()


# ═══════════════════════════════════════════════════════════════════════
# predict: nested types
# ═══════════════════════════════════════════════════════════════════════


class TestPredictNested:

    def test_survival(self, cox_model, new_data):
        out = cox_model.predict(new_data, type="survival", eval_time=[0.0, 2.0, 10.0])
        assert list(out.columns) == [".pred"]
        assert len(out) == 5
        first = out[".pred"].iloc[0]
        assert isinstance(first, pd.DataFrame)
        assert list(first.columns) == [".eval_time", ".pred_survival"]
        assert_allclose(first[".eval_time"], [0.0, 2.0, 10.0])
        for frame in out[".pred"]:
            surv = frame[".pred_survival"].to_numpy()
            assert surv[0] == pytest.approx(1.0)
            assert np.all(np.diff(surv) <= 0)

    def test_survival_requires_eval_time(self, cox_model, new_data):
        with pytest.raises(ValidationError, match="required"):
            cox_model.predict(new_data, type="survival")

    def test_negative_eval_time(self, aft_model, new_data):
        with pytest.raises(ValidationError, match="non-negative"):
            aft_model.predict(new_data, type="hazard", eval_time=[-1.0])

    def test_hazard(self, aft_model, new_data):
        out = aft_model.predict(new_data, type="hazard", eval_time=[1.0, 5.0])
        frame = out[".pred"].iloc[0]
        assert list(frame.columns) == [".eval_time", ".pred_hazard"]
        assert np.all(frame[".pred_hazard"] > 0)

    def test_hazard_not_available_for_cox(self, cox_model, new_data):
        with pytest.raises(SpecificationError, match="not available"):
            cox_model.predict(new_data, type="hazard", eval_time=[1.0])

    def test_quantile_default_grid(self, aft_model, new_data):
        out = aft_model.predict(new_data, type="quantile")
        frame = out[".pred"].iloc[0]
        assert list(frame.columns) == [".quantile", ".pred_quantile"]
        assert_allclose(frame[".quantile"], np.arange(1, 10) / 10)
        assert np.all(np.diff(frame[".pred_quantile"]) > 0)

    def test_quantile_custom(self, aft_model, new_data):
        out = aft_model.predict(new_data, type="quantile", quantile=[0.25, 0.75])
        assert len(out[".pred"].iloc[0]) == 2

    def test_quantile_out_of_range(self, aft_model, new_data):
        with pytest.raises(ValidationError, match=r"\(0, 1\)"):
            aft_model.predict(new_data, type="quantile", quantile=[0.5, 1.0])

    def test_incomplete_rows_nested_nan(self, cox_model, new_data):
        new_data.loc[0, "sex"] = None
        out = cox_model.predict(new_data, type="survival", eval_time=[1.0, 2.0])
        frame = out[".pred"].iloc[0]
        assert_allclose(frame[".eval_time"], [1.0, 2.0])
        assert frame[".pred_survival"].isna().all()
        assert out[".pred"].iloc[1][".pred_survival"].notna().all()


# ═══════════════════════════════════════════════════════════════════════
# predict: errors and strata
# ═══════════════════════════════════════════════════════════════════════


class TestPredictErrors:

    def test_unknown_type(self, cox_model, new_data):
        with pytest.raises(SpecificationError, match="unknown prediction type"):
            cox_model.predict(new_data, type="class")

    def test_missing_strata_column(self, cox_model, new_data):
        with pytest.raises(ValidationError, match="missing columns"):
            cox_model.predict(new_data.drop(columns="site"))

    def test_unknown_stratum(self, cox_model, new_data):
        new_data.loc[0, "site"] = "C"
        with pytest.raises(ValidationError, match=r"strata levels not seen when fitting: \['site=C'\]"):
            cox_model.predict(new_data)

    def test_rows_from_one_numeric_stratum(self, lung_like):
        data = lung_like.assign(grp=np.where(lung_like["sex"] == "M", 1.5, 2.0))
        model = proportional_hazards().fit("Surv(time, status) ~ age + strata(grp)", data)
        assert model.blueprint.strata_levels == ("grp=1.5", "grp=2")

        subset = data[data["grp"] == 2.0].head(3)
        pred = model.predict(subset)
        assert len(pred) == 3
        assert np.all(np.isfinite(pred[".pred_time"]))

        surv = model.predict(subset, type="survival", eval_time=[5.0])
        assert len(surv) == 3

    def test_strata_change_predictions(self, cox_model):
        new = pd.DataFrame({"age": [60.0, 60.0], "sex": ["F", "F"], "site": ["A", "B"]})
        surv = cox_model.predict(new, type="survival", eval_time=[5.0])
        s_a = surv[".pred"].iloc[0][".pred_survival"].iloc[0]
        s_b = surv[".pred"].iloc[1][".pred_survival"].iloc[0]
        # site B has the higher baseline hazard
        assert s_b < s_a


def test_top_level_api(lung_like):
    spec = pycensored.proportional_hazards()
    model = pycensored.fit(spec, AFT_FORMULA, lung_like)
    out = pycensored.predict(model, lung_like.head(3), type="linear_pred")
    assert len(out) == 3
    assert pycensored.__version__ == "0.1.0"
