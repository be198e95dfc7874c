import json
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Dict


def create_run_metadata(
    scenario_files: List[str],
    config: Dict,
    output_dir: Path,
    status: str = "completed",
    errors: List[str] | None = None,
    summary: Dict | None = None,
):
    """
    Create a run.json metadata file describing a scenario run.
    """

    metadata = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "status": status,
        "scenario_files": scenario_files,
        "errors": errors or [],
        "config_summary": sorted(
            key for key in config.keys() if key != "factory_config"
        ),
        "summary": summary or {},
    }

    output_dir.mkdir(parents=True, exist_ok=True)
    metadata_path = output_dir / "run.json"

    with open(metadata_path, "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2, default=str)

    return metadata_path
