from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Mapping, Optional

from .simulation import SIMULATIONS_PER_SCENARIO
from .statistics import DEFAULT_NUM_BINS

_BOOLEAN_TRUE = {"1", "true", "yes", "on"}

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"


@dataclass(frozen=True)
class Config:
    """Runtime configuration assembled from environment variables and CLI options."""

    defects_csv: Optional[Path]
    output_dir: Path
    histogram_bins: int
    simulations: int
    seed: Optional[int]
    run_simulation: bool
    write_json: bool
    emit_charts: bool
    disable_ai: bool
    openai_model: str
    openai_api_key: Optional[str] = None
    verbose: bool = False


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_int(value: object | None) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except (ValueError, OverflowError):
        return None


def _flag(value: object | None) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _BOOLEAN_TRUE


def _namespace(cli_args: object | None) -> SimpleNamespace:
    if cli_args is None:
        return SimpleNamespace()
    if isinstance(cli_args, SimpleNamespace):
        return cli_args
    if hasattr(cli_args, "__dict__"):
        return SimpleNamespace(**{k: v for k, v in vars(cli_args).items()})
    return SimpleNamespace()


def load_config(env: Mapping[str, str], cli_args: object | None = None) -> Config:
    """Build a runtime :class:`Config` from environment variables and CLI options."""

    defects_csv = _to_path(env.get("DEFECTS_CSV"))
    output_dir = _to_path(env.get("OUTPUT_DIR")) or (Path.cwd() / "outputs").resolve()
    histogram_bins = _to_int(env.get("HISTOGRAM_BINS")) or DEFAULT_NUM_BINS
    simulations = _to_int(env.get("MC_SIMULATIONS")) or SIMULATIONS_PER_SCENARIO
    seed = _to_int(env.get("MC_SEED"))
    openai_api_key = (env.get("OPENAI_API_KEY") or "").strip() or None
    openai_model = (env.get("OPENAI_MODEL") or "").strip() or DEFAULT_OPENAI_MODEL
    disable_ai = _flag(env.get("DISABLE_OPENAI")) or not _flag(env.get("ENABLE_AI_SUGGESTIONS"))
    run_simulation = False
    write_json = False
    emit_charts = False
    verbose = False

    cli_ns = _namespace(cli_args)
    if getattr(cli_ns, "defects_csv", None):
        defects_csv = _to_path(cli_ns.defects_csv) or defects_csv
    if getattr(cli_ns, "output_dir", None):
        output_dir = _to_path(cli_ns.output_dir) or output_dir
    if getattr(cli_ns, "bins", None) is not None:
        histogram_bins = max(1, int(cli_ns.bins))
    if getattr(cli_ns, "simulations", None) is not None:
        simulations = max(1, int(cli_ns.simulations))
    if getattr(cli_ns, "seed", None) is not None:
        seed = int(cli_ns.seed)
    if getattr(cli_ns, "simulate", False):
        run_simulation = True
    if getattr(cli_ns, "json", False):
        write_json = True
    if getattr(cli_ns, "charts", False):
        emit_charts = True
    if getattr(cli_ns, "ai", False):
        disable_ai = False
    if getattr(cli_ns, "disable_ai", False):
        disable_ai = True
    if getattr(cli_ns, "verbose", False):
        verbose = bool(cli_ns.verbose)

    return Config(
        defects_csv=defects_csv,
        output_dir=output_dir,
        histogram_bins=max(1, histogram_bins),
        simulations=max(1, simulations),
        seed=seed,
        run_simulation=run_simulation,
        write_json=write_json,
        emit_charts=emit_charts,
        disable_ai=disable_ai,
        openai_model=openai_model,
        openai_api_key=openai_api_key,
        verbose=verbose,
    )


__all__ = ["Config", "DEFAULT_OPENAI_MODEL", "load_config"]
