"""
End-to-end tests for the planner command line.
Ensures correct totals, infeasibility reporting, error envelopes and determinism.
"""

import json
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent


def execute_factory(data):
    """Helper to run the planner and return (parsed_output, returncode)."""
    proc = subprocess.run(
        [sys.executable, "-m", "factory.main"],
        input=data if isinstance(data, str) else json.dumps(data),
        text=True,
        capture_output=True,
        cwd=str(ROOT),
    )
    return json.loads(proc.stdout), proc.returncode


def chain_request(targets):
    return {
        "model": {
            "machines": [{"name": "assembler", "production_rate": 0.5}],
            "products": [{"name": "iron_ore"}, {"name": "iron_plate"}, {"name": "gear"}],
            "recipes": [
                {"name": "mine", "production_time": 1.0, "usage": {}, "production": {"iron_ore": 1}},
                {"name": "smelt", "production_time": 1.0, "usage": {"iron_ore": 1}, "production": {"iron_plate": 1}},
                {"name": "press", "production_time": 1.0, "usage": {"iron_plate": 2}, "production": {"gear": 1}},
            ],
        },
        "targets": targets,
    }


def test_reference_case():
    """30 gears/min needs 2 mines, 2 smelters and 1 press."""
    output, code = execute_factory(chain_request({"gear": 30}))
    assert code == 0
    assert output["status"] == "ok"
    assert abs(output["total_machines"] - 5.0) < 1e-6

    counts = {(c["machine"], c["recipe"]): c["count"] for c in output["machine_counts"]}
    assert counts == {("assembler", "mine"): 2, ("assembler", "smelt"): 2, ("assembler", "press"): 1}
    assert abs(output["overflow_per_min"]["gear"] - 30) < 1e-6


def test_unknown_target_ignored():
    output, code = execute_factory(chain_request({"gear": 30, "uranium": 100}))
    assert code == 0
    assert output["status"] == "ok"
    assert abs(output["total_machines"] - 5.0) < 1e-6


def test_infeasible_reports_unproducible():
    """A product no recipe yields cannot meet a positive target."""
    data = chain_request({"gear": 30})
    data["model"]["products"].append({"name": "circuit"})
    data["targets"]["circuit"] = 10
    output, code = execute_factory(data)
    assert code == 0
    assert output["status"] == "infeasible"
    assert output["unproducible"] == ["circuit"]


def test_malformed_input():
    output, code = execute_factory("{not json")
    assert code == 1
    assert output["status"] == "error"

    output, code = execute_factory({"targets": {}})
    assert code == 1
    assert output["status"] == "error"


def test_non_object_sections_rejected():
    """model and targets must be JSON objects."""
    for data in ({"model": [], "targets": {}}, {**chain_request({}), "targets": []}):
        output, code = execute_factory(data)
        assert code == 1
        assert output["status"] == "error"
        assert "must be a JSON object" in output["message"]


def test_negative_target_rejected():
    output, code = execute_factory(chain_request({"gear": -5}))
    assert code == 1
    assert output["status"] == "error"
    assert "non-negative" in output["message"]


def test_invalid_model_rejected():
    data = chain_request({})
    data["model"]["recipes"][0]["production_time"] = 0
    output, code = execute_factory(data)
    assert code == 1
    assert output["status"] == "error"
    assert "production_time" in output["message"]


def test_reproducibility():
    """Repeated identical runs must produce identical JSON output."""
    results = [execute_factory(chain_request({"iron_plate": 45}))[0] for _ in range(3)]
    ref = json.dumps(results[0], sort_keys=True)
    assert all(json.dumps(r, sort_keys=True) == ref for r in results)


if __name__ == "__main__":
    test_reference_case()
    test_unknown_target_ignored()
    test_infeasible_reports_unproducible()
    test_malformed_input()
    test_non_object_sections_rejected()
    test_negative_target_rejected()
    test_invalid_model_rejected()
    test_reproducibility()
    print("\nFactory tests completed successfully.")
