"""Descriptive statistics and Monte Carlo repair-cost simulation for manufacturing defect data."""

from .analysis import DefectAnalysis, analyze
from .defects_io import DefectImportError, ImportResult, load_defects
from .models import (
    DefectRecord,
    HistogramBin,
    MonteCarloResult,
    NoMode,
    NumericalStats,
    Percentiles,
    SingleMode,
    TiedModes,
)
from .simulation import InsufficientDataError, MonteCarloSimulator, SimulationCancelled, run_monte_carlo
from .statistics import descriptive_stats, frequency_distribution, histogram
from .worker import SimulationWorker, WorkerMessage

__version__ = "0.1.0"

__all__ = [
    "DefectAnalysis",
    "DefectImportError",
    "DefectRecord",
    "HistogramBin",
    "ImportResult",
    "InsufficientDataError",
    "MonteCarloResult",
    "MonteCarloSimulator",
    "NoMode",
    "NumericalStats",
    "Percentiles",
    "SimulationCancelled",
    "SimulationWorker",
    "SingleMode",
    "TiedModes",
    "WorkerMessage",
    "analyze",
    "descriptive_stats",
    "frequency_distribution",
    "histogram",
    "load_defects",
    "run_monte_carlo",
]
