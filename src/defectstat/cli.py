import argparse
import json
import logging
import os
import time
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

from .analysis import analyze, repair_costs
from .config import Config
from .config import load_config as load_runtime_config
from .defects_io import DefectImportError, load_defects
from .models import MonteCarloResult
from .reporting import format_simulation_table, make_summary_text, top_categories
from .simulation import InsufficientDataError, MonteCarloSimulator
from .suggestions import suggest_reduction_strategies
from .worker import SimulationWorker

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 0.1
PROGRESS_LOG_STEP = 10


def _simulate(costs: Sequence[float], cfg: Config) -> Optional[List[MonteCarloResult]]:
    worker = SimulationWorker(MonteCarloSimulator(simulations=cfg.simulations, seed=cfg.seed))
    worker.start(costs)
    next_log = PROGRESS_LOG_STEP
    results: Optional[List[MonteCarloResult]] = None
    try:
        while True:
            for message in worker.poll():
                if message.kind == "progress":
                    if message.progress >= next_log:
                        logger.info("           simulation progress %d%%", message.progress)
                        next_log = (message.progress // PROGRESS_LOG_STEP + 1) * PROGRESS_LOG_STEP
                elif message.kind == "result":
                    results = message.results
                elif message.kind == "error":
                    logger.error("Simulation failed: %s", message.error)
                    if message.details:
                        logger.debug(message.details)
                    return None
                elif message.kind == "cancelled":
                    logger.warning("Simulation cancelled")
                    return None
            if results is not None:
                return results
            time.sleep(POLL_INTERVAL_SECONDS)
    except KeyboardInterrupt:
        worker.cancel()
        worker.wait()
        raise


def run(runtime_config: Config) -> int:
    cfg = runtime_config
    stage_counter = 0

    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    def log_stage(message: str) -> None:
        nonlocal stage_counter
        stage_counter += 1
        logger.info("[defectstat:%02d] %s", stage_counter, message)

    def log_detail(message: str) -> None:
        logger.info("           %s", message)

    if cfg.defects_csv is None:
        logger.error("No defect CSV supplied; pass a path or set DEFECTS_CSV.")
        return 2

    log_stage(f"Importing defect records from {cfg.defects_csv}")
    try:
        imported = load_defects(cfg.defects_csv)
    except FileNotFoundError:
        logger.error("Defect CSV not found: %s", cfg.defects_csv)
        return 2
    except DefectImportError as exc:
        logger.error("CSV import failed: %s", exc)
        return 2
    records = imported.records
    log_detail(f"records={len(records):,} skipped_rows={len(imported.errors):,}")

    log_stage("Computing descriptive statistics")
    analysis = analyze(records, num_bins=cfg.histogram_bins)
    summary = make_summary_text(analysis)
    logger.info(summary.rstrip())
    for name, dist in analysis.frequencies.items():
        ranked = top_categories(dist, limit=5)
        log_detail(f"{name}: " + ", ".join(f"{key}={count}" for key, count in ranked))

    simulation_results: Optional[List[MonteCarloResult]] = None
    if cfg.run_simulation:
        log_stage(f"Running Monte Carlo simulation ({cfg.simulations:,} trials per scenario)")
        try:
            simulation_results = _simulate(repair_costs(records), cfg)
        except InsufficientDataError as exc:
            logger.error("Insufficient data: %s", exc)
            return 2
        if simulation_results is None:
            return 1
        logger.info(format_simulation_table(simulation_results))

    outputs: List[Path] = []
    if cfg.write_json:
        log_stage("Writing JSON summary")
        cfg.output_dir.mkdir(parents=True, exist_ok=True)
        payload = analysis.to_dict()
        if simulation_results is not None:
            payload["monteCarlo"] = [r.to_dict() for r in simulation_results]
        json_path = cfg.output_dir / "analysis.json"
        json_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        outputs.append(json_path)

    if cfg.emit_charts:
        log_stage("Rendering charts")
        from .visuals import emit_visualizations

        visuals = emit_visualizations(analysis, simulation_results, cfg.output_dir / "charts")
        outputs.extend(Path(p) for p in visuals["charts"])  # type: ignore[union-attr]
        if visuals["pdf"]:
            outputs.append(Path(str(visuals["pdf"])))
        for reason in visuals["skipped"]:  # type: ignore[union-attr]
            log_detail(reason)

    if not cfg.disable_ai:
        log_stage("Requesting defect reduction suggestions")
        suggestions = suggest_reduction_strategies(summary, cfg)
        if suggestions:
            logger.info(suggestions)
            cfg.output_dir.mkdir(parents=True, exist_ok=True)
            suggestions_path = cfg.output_dir / "ai_suggestions.md"
            suggestions_path.write_text(suggestions + "\n", encoding="utf-8")
            outputs.append(suggestions_path)

    if outputs:
        logger.info("\nOutputs written:")
        for path in outputs:
            logger.info(" - %s", path)
    return 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Descriptive statistics and Monte Carlo cost simulation for defect data")
    parser.add_argument("defects_csv", nargs="?", help="Path to the defect CSV export")
    parser.add_argument("--output-dir", help="Directory for generated outputs")
    parser.add_argument("--bins", type=int, help="Number of repair cost histogram bins")
    parser.add_argument("--simulate", action="store_true", help="Run the Monte Carlo reduction scenarios")
    parser.add_argument("--simulations", type=int, help="Override simulations per scenario")
    parser.add_argument("--seed", type=int, help="Seed the random generator for reproducible runs")
    parser.add_argument("--json", action="store_true", help="Write analysis.json to the output directory")
    parser.add_argument("--charts", action="store_true", help="Render PNG charts and a PDF summary")
    parser.add_argument("--ai", action="store_true", help="Request AI defect reduction suggestions")
    parser.add_argument("--disable-ai", action="store_true", help="Never call the OpenAI API")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    runtime_cfg = load_runtime_config(os.environ, args)
    log_level = logging.DEBUG if runtime_cfg.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s")
    try:
        return run(runtime_config=runtime_cfg)
    except Exception:  # pragma: no cover
        logger.exception("Fatal error during defect analysis")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
