"""
Survival engines.

Public API:
    Surv(time, event) -> right-censored response
    coxph(...) -> CoxSolution
    survreg(...) -> SurvregSolution
"""

from pycensored.survival.surv import Surv
from pycensored.survival.design import SurvivalDesign
from pycensored.survival.solvers import coxph, survreg
from pycensored.survival.solution import CoxSolution, SurvregSolution

__all__ = [
    "Surv",
    "SurvivalDesign",
    "coxph",
    "survreg",
    "CoxSolution",
    "SurvregSolution",
]
