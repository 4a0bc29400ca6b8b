"""
Sample runner for the minimum machine planner.
Executes the test suite and a sample demonstration run.
"""

import json
import subprocess
import sys
from pathlib import Path

BASE = Path(__file__).resolve().parent


def run_tests():
    print("\n Running test suite...")
    res = subprocess.run([sys.executable, "-m", "pytest", "-q", str(BASE / "tests")],
                         capture_output=True, text=True, cwd=str(BASE))
    if res.returncode == 0:
        print(res.stdout)
    else:
        print("Test failed:\n", res.stdout, res.stderr)


def run_sample_planner():
    """Quick demonstration: plates from mined ore."""
    request = {
        "model": {
            "machines": [
                {"name": "burner_drill", "production_rate": 0.25},
                {"name": "electric_drill", "production_rate": 0.5},
            ],
            "products": [{"name": "iron_ore"}, {"name": "iron_plate"}],
            "recipes": [
                {"name": "mine_iron", "production_time": 1.0, "usage": {}, "production": {"iron_ore": 1}},
                {"name": "smelt_iron", "production_time": 3.2, "usage": {"iron_ore": 1},
                 "production": {"iron_plate": 1}},
            ],
        },
        "targets": {"iron_plate": 120},
    }

    print("\n Running Planner...")
    proc = subprocess.run(
        [sys.executable, "-m", "factory.main"],
        input=json.dumps(request),
        text=True,
        capture_output=True,
        cwd=str(BASE),
    )
    print(proc.stdout)


if __name__ == "__main__":
    print(" Running tests and sample planner...")
    run_tests()
    run_sample_planner()
    print("\n All sample runs completed.")
