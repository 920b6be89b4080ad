"""Optional chart output for defect statistics and simulation results."""

from __future__ import annotations

import io
import re
import textwrap
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib

matplotlib.use("Agg")  # Ensure headless operation on CI/servers.
import matplotlib.pyplot as plt
from matplotlib.ticker import StrMethodFormatter
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .analysis import DefectAnalysis
from .models import MonteCarloResult
from .reporting import top_categories

FIELD_TITLES: Dict[str, str] = {
    "defect_type": "Defect Type",
    "severity": "Severity",
    "defect_location": "Location",
    "inspection_method": "Inspection Method",
}

PDF_NAME = "Defect_Visual_Summary.pdf"


@dataclass
class _ChartRecord:
    """Metadata captured for PDF bundling."""

    title: str
    caption: str
    image_bytes: bytes


def _safe_name(text: str, max_length: int = 60) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "_", text).strip("_")
    return (cleaned or "chart")[:max_length]


def _currency_formatter() -> StrMethodFormatter:
    return StrMethodFormatter("$ {x:,.0f}")


def _write_figure(
    fig: "plt.Figure",
    base_name: str,
    output_dir: Path,
    *,
    dpi: int = 140,
) -> Tuple[Path, bytes]:
    output_dir.mkdir(parents=True, exist_ok=True)
    buffer = io.BytesIO()
    fig.savefig(buffer, format="png", dpi=dpi, bbox_inches="tight")
    png_bytes = buffer.getvalue()
    png_path = output_dir / f"{base_name}.png"
    with open(png_path, "wb") as handle:
        handle.write(png_bytes)
    plt.close(fig)
    return png_path, png_bytes


def _bundle_pdf(entries: Sequence[_ChartRecord], pdf_path: Path) -> None:
    c = canvas.Canvas(str(pdf_path), pagesize=landscape(letter))
    page_width, page_height = landscape(letter)
    margin = 36
    text_width = page_width - 2 * margin
    image_height = page_height - 2 * margin - 32
    for entry in entries:
        c.setFont("Helvetica-Bold", 16)
        c.drawString(margin, page_height - margin + 4, entry.title)
        image = ImageReader(io.BytesIO(entry.image_bytes))
        img_width, img_height = image.getSize()
        scale = min(text_width / img_width, image_height / img_height)
        draw_width = img_width * scale
        draw_height = img_height * scale
        x = (page_width - draw_width) / 2
        c.drawImage(image, x, margin + 24, width=draw_width, height=draw_height, preserveAspectRatio=True, mask="auto")
        c.setFont("Helvetica", 10)
        text_y = margin
        for line in textwrap.wrap(entry.caption, width=110) or [entry.caption]:
            c.drawString(margin, text_y, line)
            text_y -= 12
        c.showPage()
    c.save()


def emit_visualizations(
    analysis: DefectAnalysis,
    simulation_results: Optional[Sequence[MonteCarloResult]],
    output_dir: str | Path,
    *,
    top_n: int = 10,
    bundle_pdf: bool = True,
) -> Dict[str, object]:
    """Write PNG charts (and optionally one PDF) summarising an analysis run."""

    target_dir = Path(output_dir)
    target_dir.mkdir(parents=True, exist_ok=True)

    charts: List[Path] = []
    skipped: List[str] = []
    pdf_entries: List[_ChartRecord] = []

    def record_chart(fig: "plt.Figure", base_name: str, title: str, caption: str) -> None:
        try:
            path, png_bytes = _write_figure(fig, base_name, target_dir)
        except (OSError, ValueError) as exc:
            plt.close(fig)
            skipped.append(f"failed to save {base_name}: {exc}")
            return
        charts.append(path)
        if bundle_pdf:
            pdf_entries.append(_ChartRecord(title=title, caption=caption, image_bytes=png_bytes))

    # Repair cost histogram ----------------------------------------------------------
    bins = analysis.cost_histogram
    if not bins:
        skipped.append("repair cost histogram skipped (no cost data)")
    else:
        fig, ax = plt.subplots(figsize=(8, 5), dpi=140)
        ax.bar(range(len(bins)), [b.count for b in bins], color="#4C72B0", edgecolor="white", alpha=0.85)
        ax.set_xticks(range(len(bins)))
        ax.set_xticklabels([b.label for b in bins], rotation=35, ha="right", fontsize="small")
        ax.set_title("Repair Cost Distribution")
        ax.set_xlabel("Repair cost range")
        ax.set_ylabel("Frequency")
        ax.grid(True, axis="y", linestyle="--", alpha=0.3)
        fig.tight_layout()
        record_chart(fig, "repair_cost_hist", "Repair Cost Distribution", "Equal-width histogram of repair costs across all imported defect records.")

    # Categorical frequencies --------------------------------------------------------
    for field_name, dist in analysis.frequencies.items():
        title = FIELD_TITLES.get(field_name, field_name)
        ranked = top_categories(dist, limit=top_n)
        if not ranked:
            skipped.append(f"{field_name} frequency chart skipped (no values)")
            continue
        labels = [str(name) or "(blank)" for name, _ in ranked]
        counts = [count for _, count in ranked]
        fig, ax = plt.subplots(figsize=(8, 5), dpi=140)
        ax.barh(labels[::-1], counts[::-1], color="#55A868")
        ax.set_title(f"Defects by {title} (Top {len(ranked)})")
        ax.set_xlabel("Count")
        ax.grid(True, axis="x", linestyle="--", alpha=0.3)
        fig.tight_layout()
        record_chart(fig, f"freq_{_safe_name(field_name)}", f"Defects by {title}", f"Most frequent {title.lower()} values by number of recorded defects.")

    # Monte Carlo scenarios ----------------------------------------------------------
    results = list(simulation_results or [])
    if not results:
        skipped.append("simulation charts skipped (no simulation results)")
    else:
        formatter = _currency_formatter()
        fig, ax = plt.subplots(figsize=(8, 5), dpi=140)
        ax.bar(
            [r.scenario for r in results],
            [r.mean_cost for r in results],
            yerr=[r.std_dev_cost for r in results],
            color="#8172B3",
            capsize=6,
        )
        ax.set_title("Mean Simulated Total Repair Cost")
        ax.set_ylabel("Total repair cost")
        ax.yaxis.set_major_formatter(formatter)
        ax.grid(True, axis="y", linestyle="--", alpha=0.3)
        fig.tight_layout()
        record_chart(fig, "simulation_mean_cost", "Simulated Total Repair Cost", "Mean of the bootstrapped total repair cost per reduction scenario; error bars show one standard deviation.")

        savings = [r for r in results if r.expected_savings is not None]
        if not savings:
            skipped.append("savings chart skipped (no baseline scenario)")
        else:
            fig, ax = plt.subplots(figsize=(8, 5), dpi=140)
            ax.bar([r.scenario for r in savings], [r.expected_savings for r in savings], color="#C44E52")
            ax.set_title("Expected Savings vs. 0% Reduction")
            ax.set_ylabel("Expected savings")
            ax.yaxis.set_major_formatter(formatter)
            ax.grid(True, axis="y", linestyle="--", alpha=0.3)
            fig.tight_layout()
            record_chart(fig, "simulation_expected_savings", "Expected Savings", "Difference between the baseline mean total cost and each reduction scenario's mean.")

    pdf_path: Optional[Path] = None
    if bundle_pdf and pdf_entries:
        pdf_path = target_dir / PDF_NAME
        _bundle_pdf(pdf_entries, pdf_path)

    return {
        "charts": [str(path) for path in charts],
        "pdf": str(pdf_path) if pdf_path else None,
        "skipped": skipped,
    }


__all__ = ["emit_visualizations"]
