"""Export JSON schemas for TripRequest and TripPlan."""

import json
from pathlib import Path

from roadtrip.models import TripPlan, TripRequest


def main(schemas_dir: Path = Path("docs/schemas")) -> None:
    """Export schemas to docs/schemas/."""
    schemas_dir.mkdir(parents=True, exist_ok=True)

    # Export TripRequest schema
    request_schema = TripRequest.model_json_schema()
    request_path = schemas_dir / "TripRequest.schema.json"
    with open(request_path, "w", encoding="utf-8") as f:
        json.dump(request_schema, f, indent=2)
    print(f"Exported TripRequest schema to {request_path}")

    # Export TripPlan schema (serialization mode: segment endpoints appear as from/to)
    plan_schema = TripPlan.model_json_schema(mode="serialization")
    plan_path = schemas_dir / "TripPlan.schema.json"
    with open(plan_path, "w", encoding="utf-8") as f:
        json.dump(plan_schema, f, indent=2)
    print(f"Exported TripPlan schema to {plan_path}")


if __name__ == "__main__":
    main()
