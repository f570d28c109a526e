from screening_analysis.reporting.export import save_report
from screening_analysis.reporting.plotting import (
    plot_information_curves,
    plot_item_characteristic_curves,
    plot_loading_comparison,
    plot_parallel_analysis,
)

__all__ = [
    "plot_information_curves",
    "plot_item_characteristic_curves",
    "plot_loading_comparison",
    "plot_parallel_analysis",
    "save_report",
]
