"""
KPI Tokens CLI

    kpitokens simulate <scenario.yaml> [--config CFG] [--output-dir DIR]
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from kpitokens.__version__ import __version__
from kpitokens.automation.run_metadata import create_run_metadata
from kpitokens.config.loader import load_config, load_scenario
from kpitokens.core.errors import KPITokensError
from kpitokens.reporting.settlement import settlement_summary, write_settlement_report
from kpitokens.simulation import run_scenario

logger = logging.getLogger(__name__)


# -------------------------------------------------
# PROGRAMMATIC ENTRY
# -------------------------------------------------
def run_simulation(
    scenario_path: str,
    config_path: Optional[str] = None,
    output_dir: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Returns:
        {
            "markdown": <path>,
            "csv": <path>,
            "run_dir": <path>,
            "summary": <dict>
        }
    """
    config = load_config(config_path)
    scenario = load_scenario(scenario_path)

    base_dir = Path(output_dir or config["output_dir"])
    run_dir = base_dir / datetime.now(timezone.utc).strftime("%Y-%m-%d_%H-%M-%S")
    run_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Run directory: %s", run_dir)

    try:
        result = run_scenario(scenario, config)
    except KPITokensError as e:
        create_run_metadata([scenario_path], config, run_dir, status="failed", errors=[str(e)])
        raise

    paths = write_settlement_report(result, run_dir)
    summary = settlement_summary(result)
    create_run_metadata([scenario_path], config, run_dir, summary=summary)

    return {
        "markdown": str(paths["markdown"]),
        "csv": str(paths["csv"]),
        "run_dir": str(run_dir),
        "summary": summary,
    }


# -------------------------------------------------
# CLI ENTRY
# -------------------------------------------------
def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=f"KPI Tokens v{__version__}")
    parser.add_argument("--version", action="store_true")
    parser.add_argument("-v", "--verbose", action="store_true")

    commands = parser.add_subparsers(dest="command")
    simulate = commands.add_parser("simulate", help="Run a settlement scenario")
    simulate.add_argument("scenario", help="Path to scenario YAML")
    simulate.add_argument("--config", required=False, help="Path to config YAML")
    simulate.add_argument("--output-dir", required=False, help="Base directory for run folders")

    args = parser.parse_args(argv)

    # ---- VERSION ----
    if args.version:
        print(f"KPI Tokens v{__version__}")
        return 0

    # ---- LOGGING ----
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.command != "simulate":
        parser.error("a command is required")

    scenario_path = Path(args.scenario)
    if not scenario_path.exists():
        parser.error(f"Scenario file not found: {scenario_path}")

    try:
        result = run_simulation(str(scenario_path), args.config, args.output_dir)
    except KPITokensError as e:
        print(f"error: {e.code}: {e.message}", file=sys.stderr)
        return 1

    summary = result["summary"]
    print("\nSettlement complete")
    print(f"Progress: {summary['progress']} / {summary['range']}")
    print(f"Markdown: {result['markdown']}")
    print(f"Payouts:  {result['csv']}")
    print(f"Run folder: {result['run_dir']}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
