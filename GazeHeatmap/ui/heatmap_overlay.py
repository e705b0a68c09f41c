"""
Replay overlay drawn on top of the BrowserView.

The overlay itself is click-through and only paints the rendered heatmap; a
small floating panel carries the controls (load, page selector, gaze/pointer
toggles, close). It re-renders whenever the page, the filters, the view size
or the scroll position change.
"""
from __future__ import annotations

from typing import Optional

try:
    from PyQt6.QtCore import QRect, Qt, pyqtSignal
    from PyQt6.QtGui import QColor, QImage, QPainter
    from PyQt6.QtWidgets import QCheckBox, QComboBox, QFrame, QHBoxLayout, QLabel, QPushButton, QWidget
except Exception:  # pragma: no cover
    QWidget = object  # type: ignore
    pyqtSignal = lambda *a, **k: None  # type: ignore

from GazeHeatmap.capture.models import SessionArchive
from GazeHeatmap.heatmap.renderer import HeatmapFilters, HeatmapRenderer, RenderResult, RenderStatus


STATUS_TEXT = {
    RenderStatus.NO_ARCHIVE: "Load a session file to view its heatmap",
    RenderStatus.EMPTY_SESSION: "This session has no recorded pages",
    RenderStatus.SKIPPED: "Heatmap could not be drawn",
}


class HeatmapOverlay(QWidget):  # type: ignore[misc]
    loadRequested = pyqtSignal()
    closed = pyqtSignal()

    def __init__(self, browser, renderer: Optional[HeatmapRenderer] = None):  # type: ignore[no-redef]
        super().__init__(browser)
        self.browser = browser
        self.renderer = renderer or HeatmapRenderer()
        self.archive: Optional[SessionArchive] = None
        self.filters = HeatmapFilters()
        self.page = "/"
        self.last_result = RenderResult(RenderStatus.NO_ARCHIVE)
        self._image = None
        self._syncing = False

        self.setAttribute(Qt.WidgetAttribute.WA_TransparentForMouseEvents)
        self.setAttribute(Qt.WidgetAttribute.WA_NoSystemBackground)
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground)
        self.panel = self._build_panel(browser)

        browser.pageChanged.connect(self._on_browser_page)  # type: ignore[attr-defined]
        browser.scrolled.connect(lambda *_: self.refresh())  # type: ignore[attr-defined]
        browser.resized.connect(self._fit_to_browser)  # type: ignore[attr-defined]
        self.hide()
        self.panel.hide()

    def _build_panel(self, parent):
        panel = QFrame(parent)
        panel.setFrameShape(QFrame.Shape.StyledPanel)
        panel.setAutoFillBackground(True)
        h = QHBoxLayout()
        btn_load = QPushButton("Load session")
        self.cmb_page = QComboBox()
        self.chk_gaze = QCheckBox("Gaze")
        self.chk_gaze.setChecked(True)
        self.chk_mouse = QCheckBox("Mouse")
        self.chk_mouse.setChecked(True)
        self.lbl_counts = QLabel("")
        btn_close = QPushButton("Close")
        for w in (btn_load, self.cmb_page, self.chk_gaze, self.chk_mouse, self.lbl_counts, btn_close):
            h.addWidget(w)
        panel.setLayout(h)

        btn_load.clicked.connect(self.loadRequested)  # type: ignore[attr-defined]
        btn_close.clicked.connect(self.close_overlay)  # type: ignore[attr-defined]
        self.cmb_page.currentTextChanged.connect(self._on_page_selected)  # type: ignore[attr-defined]
        self.chk_gaze.toggled.connect(self._on_filters)  # type: ignore[attr-defined]
        self.chk_mouse.toggled.connect(self._on_filters)  # type: ignore[attr-defined]
        return panel

    # Public API ----------------------------------------------------------
    def open_overlay(self) -> None:
        self._fit_to_browser()
        self.show()
        self.raise_()
        self.panel.show()
        self.panel.raise_()
        self.refresh()

    def close_overlay(self) -> None:
        self.hide()
        self.panel.hide()
        self.closed.emit()

    def set_archive(self, archive: Optional[SessionArchive]) -> None:
        self.archive = archive
        pages = list(archive.session_info.pages_visited) if archive is not None else []
        self._syncing = True
        try:
            self.cmb_page.clear()
            self.cmb_page.addItems(pages)
        finally:
            self._syncing = False
        if pages:
            self.page = pages[0]
            self.browser.navigate(self.page)
        self.refresh()

    def refresh(self) -> None:
        if not self.isVisible():
            return
        size = self.size()
        if size.width() <= 0 or size.height() <= 0:
            return
        image = QImage(size, QImage.Format.Format_ARGB32_Premultiplied)
        self.last_result = self.renderer.render(
            image, self.archive, self.page, self.filters, self.browser.scroll_offset()
        )
        self._image = image
        if self.last_result.status is RenderStatus.RENDERED:
            self.lbl_counts.setText(f"{self.last_result.gaze_drawn} gaze · {self.last_result.mouse_drawn} mouse")
        else:
            self.lbl_counts.setText("")
        self.update()

    # Events --------------------------------------------------------------
    def _fit_to_browser(self) -> None:
        self.setGeometry(QRect(0, 0, self.browser.width(), self.browser.height()))
        self.panel.adjustSize()
        self.panel.move(max(0, self.browser.width() - self.panel.width() - 12), 56)

    def _on_browser_page(self, route: str) -> None:
        self.page = route
        idx = self.cmb_page.findText(route)
        if idx >= 0 and idx != self.cmb_page.currentIndex():
            self._syncing = True
            try:
                self.cmb_page.setCurrentIndex(idx)
            finally:
                self._syncing = False
        self.refresh()

    def _on_page_selected(self, route: str) -> None:
        if self._syncing or not route:
            return
        self.page = route
        self.browser.navigate(route)
        self.refresh()

    def _on_filters(self, *_args) -> None:
        self.filters = HeatmapFilters(show_gaze=self.chk_gaze.isChecked(), show_mouse=self.chk_mouse.isChecked())
        self.refresh()

    def resizeEvent(self, event):  # type: ignore[override]
        super().resizeEvent(event)
        self.refresh()

    def paintEvent(self, event):  # type: ignore[override]
        painter = QPainter(self)
        if self._image is not None:
            painter.drawImage(0, 0, self._image)
        text = STATUS_TEXT.get(self.last_result.status)
        if text:
            painter.setPen(QColor(40, 40, 40))
            painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, text)
        painter.end()
