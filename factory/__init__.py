"""Minimum machine count planning for production chains."""

from factory.catalog import Machine, Model, Product, Recipe
from factory.errors import BackendError, InfeasibleError, SolveError, UnboundedError
from factory.solver import ProductionPlan, Solver, SolverOptions

__all__ = [
    "BackendError",
    "InfeasibleError",
    "Machine",
    "Model",
    "Product",
    "ProductionPlan",
    "Recipe",
    "SolveError",
    "Solver",
    "SolverOptions",
    "UnboundedError",
]
