"""
BrowserView: a small routed storefront used as the tracked surface.

Each route is a scrollable page in a QStackedWidget. The view is the live
ViewContext for capture: it reports the current route, the scroll offset of
the visible page and its own size, and maps global screen positions into its
coordinates. Pointer moves anywhere inside the view are forwarded to a sink
(the capture pipeline) in view coordinates.
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Tuple

try:
    from PyQt6.QtCore import QEvent, QPoint, pyqtSignal
    from PyQt6.QtWidgets import (
        QGridLayout,
        QHBoxLayout,
        QLabel,
        QLineEdit,
        QPushButton,
        QScrollArea,
        QStackedWidget,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    QWidget = object  # type: ignore
    pyqtSignal = lambda *a, **k: None  # type: ignore

logger = logging.getLogger(__name__)

PointerSink = Callable[[float, float], object]

CATEGORIES = ("electronics", "fashion", "home")
PRODUCTS = {
    "1": ("Wireless Headphones", "electronics", 129.0),
    "2": ("Smart Watch", "electronics", 199.0),
    "3": ("Denim Jacket", "fashion", 89.0),
    "4": ("Running Shoes", "fashion", 119.0),
    "5": ("Desk Lamp", "home", 39.0),
    "6": ("Coffee Maker", "home", 74.0),
}


def default_routes() -> Tuple[str, ...]:
    return (
        ("/",)
        + tuple(f"/{c}" for c in CATEGORIES)
        + tuple(f"/product/{pid}" for pid in PRODUCTS)
        + ("/cart", "/checkout", "/confirmation", "/search")
    )


class BrowserView(QWidget):  # type: ignore[misc]
    pageChanged = pyqtSignal(str)
    scrolled = pyqtSignal(int, int)
    resized = pyqtSignal()

    def __init__(self, parent=None):  # type: ignore[no-redef]
        super().__init__(parent)
        self._pages: Dict[str, QScrollArea] = {}
        self._current = "/"
        self._pointer_sink: Optional[PointerSink] = None
        self._cart: list = []

        v = QVBoxLayout()
        v.setContentsMargins(0, 0, 0, 0)
        v.addWidget(self._build_header())
        self.stack = QStackedWidget()
        v.addWidget(self.stack, stretch=1)
        self.setLayout(v)

        for route in default_routes():
            self._add_page(route)
        self.navigate("/")
        self._track_all(self)

    # ViewContext ---------------------------------------------------------
    def current_page(self) -> str:
        return self._current

    def scroll_offset(self) -> Tuple[float, float]:
        area = self._pages.get(self._current)
        if area is None:
            return (0.0, 0.0)
        return (float(area.horizontalScrollBar().value()), float(area.verticalScrollBar().value()))

    def viewport_size(self) -> Tuple[int, int]:
        return (self.width(), self.height())

    def to_viewport(self, x: float, y: float) -> Tuple[float, float]:
        p = self.mapFromGlobal(QPoint(int(round(x)), int(round(y))))
        return (float(p.x()), float(p.y()))

    # Navigation ----------------------------------------------------------
    def routes(self) -> Tuple[str, ...]:
        return tuple(self._pages)

    def navigate(self, route: str) -> None:
        area = self._pages.get(route)
        if area is None:
            logger.warning("Unknown route %s", route)
            return
        self._current = route
        self.stack.setCurrentWidget(area)
        self.pageChanged.emit(route)

    def scroll_to(self, x: int, y: int) -> None:
        area = self._pages[self._current]
        area.horizontalScrollBar().setValue(int(x))
        area.verticalScrollBar().setValue(int(y))

    def set_pointer_sink(self, sink: Optional[PointerSink]) -> None:
        self._pointer_sink = sink

    def eventFilter(self, obj, event):  # type: ignore[override]
        if event.type() == QEvent.Type.MouseMove and self._pointer_sink is not None:
            try:
                p = self.mapFromGlobal(event.globalPosition().toPoint())
                self._pointer_sink(float(p.x()), float(p.y()))
            except Exception:
                logger.exception("Pointer sink failed")
        return False

    def _track_all(self, widget) -> None:
        widget.setMouseTracking(True)
        widget.installEventFilter(self)
        for child in widget.findChildren(QWidget):
            child.setMouseTracking(True)
            child.installEventFilter(self)

    # Page construction ---------------------------------------------------
    def _build_header(self):
        header = QWidget()
        h = QHBoxLayout()
        h.setContentsMargins(8, 4, 8, 4)
        home = QPushButton("ShopLab")
        home.clicked.connect(lambda: self.navigate("/"))  # type: ignore[attr-defined]
        h.addWidget(home)
        for c in CATEGORIES:
            b = QPushButton(c.title())
            b.clicked.connect(lambda _=False, c=c: self.navigate(f"/{c}"))  # type: ignore[attr-defined]
            h.addWidget(b)
        h.addStretch(1)
        search = QLineEdit()
        search.setPlaceholderText("Search products")
        search.returnPressed.connect(lambda: self.navigate("/search"))  # type: ignore[attr-defined]
        h.addWidget(search)
        cart = QPushButton("Cart")
        cart.clicked.connect(lambda: self.navigate("/cart"))  # type: ignore[attr-defined]
        h.addWidget(cart)
        header.setLayout(h)
        return header

    def _add_page(self, route: str) -> None:
        content = QWidget()
        v = QVBoxLayout()
        if route == "/":
            v.addWidget(QLabel("<h1>Featured products</h1>"))
            v.addWidget(self._product_grid(list(PRODUCTS)))
        elif route.startswith("/product/"):
            pid = route.rsplit("/", 1)[1]
            name, category, price = PRODUCTS[pid]
            v.addWidget(QLabel(f"<h1>{name}</h1>"))
            v.addWidget(QLabel(f"{category.title()} · ${price:.2f}"))
            add = QPushButton("Add to cart")
            add.clicked.connect(lambda _=False, pid=pid: self._cart.append(pid))  # type: ignore[attr-defined]
            v.addWidget(add)
            details = QLabel("<p>" + "Product details. " * 80 + "</p>")
            details.setWordWrap(True)
            v.addWidget(details)
        elif route == "/cart":
            v.addWidget(QLabel("<h1>Your cart</h1>"))
            go = QPushButton("Proceed to checkout")
            go.clicked.connect(lambda: self.navigate("/checkout"))  # type: ignore[attr-defined]
            v.addWidget(go)
        elif route == "/checkout":
            v.addWidget(QLabel("<h1>Checkout</h1>"))
            for field in ("Name", "Address", "Card number"):
                edit = QLineEdit()
                edit.setPlaceholderText(field)
                v.addWidget(edit)
            pay = QPushButton("Place order")
            pay.clicked.connect(lambda: self.navigate("/confirmation"))  # type: ignore[attr-defined]
            v.addWidget(pay)
        elif route == "/confirmation":
            v.addWidget(QLabel("<h1>Thank you for your order</h1>"))
        elif route == "/search":
            v.addWidget(QLabel("<h1>Search results</h1>"))
            v.addWidget(self._product_grid(list(PRODUCTS)[:3]))
        else:
            category = route.lstrip("/")
            v.addWidget(QLabel(f"<h1>{category.title()}</h1>"))
            v.addWidget(self._product_grid([pid for pid, p in PRODUCTS.items() if p[1] == category]))
        v.addStretch(1)
        content.setLayout(v)
        content.setMinimumHeight(1600)

        area = QScrollArea()
        area.setWidgetResizable(True)
        area.setWidget(content)
        area.horizontalScrollBar().valueChanged.connect(self._emit_scrolled)  # type: ignore[attr-defined]
        area.verticalScrollBar().valueChanged.connect(self._emit_scrolled)  # type: ignore[attr-defined]
        self.stack.addWidget(area)
        self._pages[route] = area

    def _product_grid(self, pids) -> QWidget:
        grid = QWidget()
        g = QGridLayout()
        for i, pid in enumerate(pids):
            name, _category, price = PRODUCTS[pid]
            card = QPushButton(f"{name}\n${price:.2f}")
            card.setMinimumSize(220, 180)
            card.clicked.connect(lambda _=False, pid=pid: self.navigate(f"/product/{pid}"))  # type: ignore[attr-defined]
            g.addWidget(card, i // 3, i % 3)
        grid.setLayout(g)
        return grid

    def _emit_scrolled(self, *_args) -> None:
        sx, sy = self.scroll_offset()
        self.scrolled.emit(int(sx), int(sy))

    def resizeEvent(self, event):  # type: ignore[override]
        super().resizeEvent(event)
        self.resized.emit()
