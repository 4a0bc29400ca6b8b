"""
Minimum Machine Count Solver
----------------------------
Formulates a production Model as a mixed integer linear program and solves
it with PuLP's bundled CBC backend.

Variables:
  - count[m, r]  integer >= 0, machines of type m running recipe r
                 (one per machine/recipe pair)
  - overflow[p]  continuous >= 0, net surplus of product p

Constraints:
  - balance, every product p:
        produced(p) - consumed(p) == overflow[p]
  - target, every product p with a registered rate:
        consumed(p) + overflow[p] >= rate

Objective:
  - minimize sum(count[m, r])

Rates are per minute. One machine m running recipe r contributes
    m.production_rate * quantity * 60 / r.production_time
to the product the quantity refers to.
"""

import logging
import threading
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import pulp

from factory.catalog import Machine, Model, Product, Recipe
from factory.errors import BackendError, InfeasibleError, UnboundedError

logger = logging.getLogger(__name__)

EPS = 1e-9  # values below this are reported as zero


@dataclass(frozen=True)
class SolverOptions:
    """Backend settings. time_limit is in seconds; None lets CBC run to optimality."""

    msg: bool = False
    time_limit: Optional[float] = None


@dataclass(frozen=True)
class ProductionPlan:
    """Optimal assignment returned by Solver.solve_plan()."""

    total_machines: float
    machine_counts: Dict[Tuple[str, str], int] = field(default_factory=dict)
    overflow: Dict[str, float] = field(default_factory=dict)


def _checked_rate(product: Product, amount: float) -> float:
    amount = float(amount)
    if not amount >= 0:
        raise ValueError(f"Production constraint for '{product.name}' must be non-negative, got {amount}")
    return amount


def unit_rate(machine: Machine, recipe: Recipe, quantity: Optional[float]) -> float:
    """Per-minute flow of one machine running recipe for a per-cycle quantity (None counts as 0)."""
    if quantity is None:
        return 0.0
    return machine.production_rate * quantity * (60.0 / recipe.production_time)


class Solver:
    """
    Finds the fewest machines meeting a set of per-minute production targets.

    Targets are registered one product at a time and kept until replaced or
    cleared. Every call to solve() builds a fresh program from the model and
    the current targets.
    """

    def __init__(self, model: Model, options: Optional[SolverOptions] = None):
        self.model = model
        self.options = options or SolverOptions()
        self._production_constraints: Dict[Product, float] = {}
        self._lock = threading.Lock()

    # Constraint registry -------------------------------------------------

    def register_production_constraint(self, product: Product, amount_per_minute: float) -> None:
        """
        Require at least amount_per_minute of product.

        Replaces any earlier target for the same product. Products outside
        the model are ignored. Negative or NaN amounts raise ValueError.
        """
        if not self.model.has_product(product):
            logger.debug("Ignoring constraint for unknown product '%s'", product.name)
            return
        amount = _checked_rate(product, amount_per_minute)
        with self._lock:
            self._production_constraints[product] = amount

    @property
    def production_constraints(self) -> Mapping[Product, float]:
        with self._lock:
            return MappingProxyType(dict(self._production_constraints))

    def clear_production_constraints(self) -> None:
        with self._lock:
            self._production_constraints.clear()

    def _targets(self, constraints: Optional[Mapping[Product, float]]) -> Dict[Product, float]:
        if constraints is None:
            with self._lock:
                return dict(self._production_constraints)
        targets = {}
        for product, amount in constraints.items():
            if self.model.has_product(product):
                targets[product] = _checked_rate(product, amount)
            else:
                logger.debug("Ignoring constraint for unknown product '%s'", product.name)
        return targets

    # Formulation ---------------------------------------------------------

    def _flow(self, count, product: Product, consumed: bool):
        terms = []
        for (machine, recipe), var in count.items():
            qty = recipe.usage_of(product) if consumed else recipe.production_of(product)
            rate = unit_rate(machine, recipe, qty)
            if rate != 0.0:
                terms.append(rate * var)
        return pulp.lpSum(terms)

    def _formulate(self, targets: Dict[Product, float]):
        model = self.model
        problem = pulp.LpProblem("MinimumMachines", pulp.LpMinimize)

        # Dense cross product; unused pairs settle at zero.
        count = {}
        for i, machine in enumerate(model.machines):
            for j, recipe in enumerate(model.recipes):
                count[(machine, recipe)] = pulp.LpVariable(f"count_{i}_{j}", lowBound=0, cat=pulp.LpInteger)

        overflow = {
            p: pulp.LpVariable(f"overflow_{k}", lowBound=0)
            for k, p in enumerate(model.products)
        }

        objective = pulp.lpSum(count.values())
        problem += objective

        for k, product in enumerate(model.products):
            produced = self._flow(count, product, consumed=False)
            consumed = self._flow(count, product, consumed=True)
            problem += produced - consumed == overflow[product], f"balance_{k}"

        for k, product in enumerate(model.products):
            if product in targets:
                consumed = self._flow(count, product, consumed=True)
                problem += consumed + overflow[product] >= targets[product], f"target_{k}"

        logger.debug(
            "Formulated %d count variables, %d overflow variables, %d targets",
            len(count), len(overflow), len(targets),
        )
        return problem, objective, count, overflow

    # Solve ---------------------------------------------------------------

    def solve_plan(self, constraints: Optional[Mapping[Product, float]] = None) -> ProductionPlan:
        """
        Solve and return the full assignment.

        constraints, when given, is used instead of the registered targets.
        Raises InfeasibleError, UnboundedError or BackendError on failure.
        """
        targets = self._targets(constraints)
        problem, objective, count, overflow = self._formulate(targets)

        backend = pulp.PULP_CBC_CMD(msg=self.options.msg, timeLimit=self.options.time_limit)
        try:
            status = problem.solve(backend)
        except pulp.PulpError as exc:
            raise BackendError(f"Backend failed: {exc}") from exc

        text = pulp.LpStatus.get(status, "Undefined")
        if status == pulp.LpStatusInfeasible:
            raise InfeasibleError("No machine assignment meets the production targets", text)
        if status == pulp.LpStatusUnbounded:
            raise UnboundedError("Machine count objective is unbounded", text)
        if status != pulp.LpStatusOptimal:
            raise BackendError(f"Backend returned status {text}", text)
        if problem.sol_status != pulp.LpSolutionOptimal:
            raise BackendError("Backend stopped before proving optimality", text)

        total = float(pulp.value(objective) or 0.0)
        machine_counts = {}
        for (machine, recipe), var in count.items():
            value = var.varValue or 0.0
            if value > EPS:
                machine_counts[(machine.name, recipe.name)] = int(round(value))
        surplus = {}
        for product, var in overflow.items():
            value = var.varValue or 0.0
            surplus[product.name] = value if abs(value) > EPS else 0.0

        logger.info("Solved with %s machines across %d assignments", total, len(machine_counts))
        return ProductionPlan(total, machine_counts, surplus)

    def solve(self, constraints: Optional[Mapping[Product, float]] = None) -> float:
        """Return the minimum total machine count."""
        return self.solve_plan(constraints).total_machines
