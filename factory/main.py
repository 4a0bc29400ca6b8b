"""
Minimum Machine Planner (CLI)
-----------------------------
Reads a JSON object with a production model and per-minute targets from
stdin, solves for the fewest machines, and writes JSON to stdout.

Input:
  {"model": {"recipes": [...], "products": [...], "machines": [...]},
   "targets": {"<product>": <units per minute>}}

Usage: python -m factory.main < input.json > output.json
"""

import json
import logging
import os
import sys
from typing import Any, Dict

from factory.catalog import Model, Product
from factory.errors import InfeasibleError, SolveError, UnboundedError
from factory.graph import unproducible_products
from factory.solver import Solver

logger = logging.getLogger(__name__)


def solve_request(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Build the model, register targets, solve, and shape the response.

    Target names missing from the model are ignored.
    """
    if not isinstance(data["model"], dict):
        raise ValueError("'model' must be a JSON object")
    targets = data.get("targets", {})
    if not isinstance(targets, dict):
        raise ValueError("'targets' must be a JSON object")

    model = Model.from_dict(data["model"])
    solver = Solver(model)
    for name, rate in targets.items():
        solver.register_production_constraint(Product(name), float(rate))

    try:
        plan = solver.solve_plan()
    except InfeasibleError as e:
        wanted = [p for p, rate in solver.production_constraints.items() if rate > 0]
        return {
            "status": "infeasible",
            "message": str(e),
            "unproducible": unproducible_products(model, wanted),
        }
    except UnboundedError as e:
        return {"status": "unbounded", "message": str(e)}

    counts = [
        {"machine": m, "recipe": r, "count": n}
        for (m, r), n in sorted(plan.machine_counts.items())
    ]
    return {
        "status": "ok",
        "total_machines": plan.total_machines,
        "machine_counts": counts,
        "overflow_per_min": {p: round(v, 6) for p, v in plan.overflow.items()},
    }


def main():
    """Entry point: read from stdin, solve, and output formatted JSON."""
    logging.basicConfig(
        level=os.environ.get("FACTORY_LOG_LEVEL", "WARNING").upper(),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        data = json.load(sys.stdin)
        if not isinstance(data, dict) or "model" not in data:
            raise ValueError("Input must be a JSON object with a 'model' key")
        result = solve_request(data)
        json.dump(result, sys.stdout, indent=2, sort_keys=True)
        sys.stdout.write("\n")
    except json.JSONDecodeError as e:
        json.dump({"status": "error", "message": f"Invalid JSON: {e}"}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        sys.exit(1)
    except (AttributeError, KeyError, TypeError, ValueError, SolveError) as e:
        logger.debug("Request failed", exc_info=True)
        json.dump({"status": "error", "message": str(e)}, sys.stdout, indent=2)
        sys.stdout.write("\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
