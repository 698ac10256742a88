from typing import List, Sequence
import pyqtgraph as pg


def setup_plot(plot_widget: pg.PlotWidget, left_label: str, bottom_label: str = ""):
    plot_widget.setBackground(None)
    plot_widget.showGrid(x=False, y=True, alpha=0.15)
    plot_widget.setMenuEnabled(False)
    plot_widget.setMouseEnabled(x=False, y=False)
    plot_widget.hideButtons()
    plot_widget.setClipToView(True)
    plot_widget.setLabel("left", left_label)
    if bottom_label:
        plot_widget.setLabel("bottom", bottom_label)
    plot_widget.getAxis('left').setStyle(tickLength=-5)


def wpm_curve(plot_widget: pg.PlotWidget, line_color: str):
    return plot_widget.plot([], [], pen=pg.mkPen(line_color, width=2.5), antialias=True)


def update_curve(curve, x: Sequence[float], y: List[float]):
    curve.setData(list(x), y)
