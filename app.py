# ============================================================================
#  INVENTIONS — a small notebook for things worth building
#.
#├── app.py
#├── config
#│   └── app.json
#├── core
#│   ├── __init__.py
#│   ├── config.py
#│   ├── display.py
#│   ├── model.py
#│   ├── search.py
#│   └── store.py
#├── engine.py
#├── lore
#│   ├── __init__.py
#│   └── lorekeeper.py
#└── tests
# ============================================================================


import os, sys, html
from pathlib import Path
try:
    APP_DIR = str(Path(__file__).resolve().parent)
except NameError:
    APP_DIR = str(Path.cwd())
if APP_DIR not in sys.path:
    sys.path.insert(0, APP_DIR)

from lore import lorekeeper


# ---- Writable app data root (early) -----------------------------------------
APP_FRIENDLY_NAME = "Inventions"
APP_DATA = lorekeeper.DEFAULT_ROOT
DB_PATH = os.path.join(APP_DATA, "inventions.db")


from PySide6.QtGui import QFont, QFontMetrics, QAction, QActionGroup
from PySide6.QtCore import Qt, QSettings, Signal
from PySide6.QtWidgets import (QApplication, QMainWindow, QWidget, QVBoxLayout,
    QGridLayout, QLabel, QListWidget, QListWidgetItem, QFrame, QMenu,
    QDialog, QDialogButtonBox, QFormLayout, QLineEdit, QPlainTextEdit, QScrollArea,
    QSplitter, QStackedWidget, QMessageBox, QSizePolicy)

from core.config import Settings, load_settings
from core.display import display_title, parse_link, preview_lines
from core.model import Invention, InventionDraft
from core.store import InventionStore, StoreError
from engine import InventionCommands, CommandStateError, IDLE


# -------------------------- Card --------------------------
class InventionCard(QFrame):
    """Title, truncated details and an optional link for one invention."""
    activated = Signal(str)
    delete_requested = Signal(str)

    def __init__(self, invention: Invention, settings: Settings, *, clickable: bool = True, parent=None):
        super().__init__(parent)
        self.invention = invention
        self._clickable = clickable
        self.setObjectName("inventionCard")
        self.setFrameShape(QFrame.StyledPanel)
        self.setStyleSheet("#inventionCard { border: 1px solid rgba(128,128,128,64); border-radius: 12px; }")
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Maximum)
        if clickable:
            self.setCursor(Qt.PointingHandCursor)

        lay = QVBoxLayout(self)
        lay.setContentsMargins(14, 12, 14, 12)
        lay.setSpacing(6)

        self.title_label = QLabel(display_title(invention.title, settings.untitled_placeholder))
        f = self.title_label.font(); f.setBold(True); f.setPointSize(f.pointSize() + 2)
        self.title_label.setFont(f)
        self.title_label.setWordWrap(True)
        self.title_label.setMaximumHeight(QFontMetrics(f).lineSpacing() * settings.title_lines + 2)
        lay.addWidget(self.title_label)

        self.details_label = QLabel(preview_lines(invention.details, settings.details_preview_lines))
        self.details_label.setWordWrap(True)
        self.details_label.setStyleSheet("color: palette(mid);")
        self.details_label.setVisible(bool(self.details_label.text()))
        lay.addWidget(self.details_label)

        self.link_label = QLabel()
        url = parse_link(invention.link_string)
        if url:
            fm = QFontMetrics(self.link_label.font())
            shown = fm.elidedText(url, Qt.ElideRight, 240)
            self.link_label.setText(f'<a href="{html.escape(url, quote=True)}">{html.escape(shown)}</a>')
            self.link_label.setTextFormat(Qt.RichText)
            self.link_label.setOpenExternalLinks(True)
        self.link_label.setVisible(url is not None)
        lay.addWidget(self.link_label)

    def has_link(self) -> bool:
        return bool(self.link_label.text())

    def mouseReleaseEvent(self, e):
        if self._clickable and e.button() == Qt.LeftButton and self.rect().contains(e.position().toPoint()):
            self.activated.emit(self.invention.id)
            return
        super().mouseReleaseEvent(e)

    def contextMenuEvent(self, e):
        menu = QMenu(self)
        delete_act = menu.addAction("Delete")
        if menu.exec(e.globalPos()) is delete_act:
            self.delete_requested.emit(self.invention.id)


# -------------------------- Grid --------------------------
class CardGrid(QScrollArea):
    """Cards in as many columns as fit the minimum column width; reflows on resize."""
    card_activated = Signal(str)
    delete_requested = Signal(str)

    def __init__(self, settings: Settings, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.setWidgetResizable(True)
        self.setFrameShape(QFrame.NoFrame)

        self._host = QWidget()
        self._grid = QGridLayout(self._host)
        sp = settings.grid_spacing
        self._grid.setSpacing(sp)
        self._grid.setContentsMargins(sp, sp, sp, sp)
        self._grid.setAlignment(Qt.AlignTop)
        self.setWidget(self._host)

        self._cards: list[InventionCard] = []
        self._columns = 0

    def cards(self) -> list:
        return list(self._cards)

    def set_inventions(self, inventions: list) -> None:
        for card in self._cards:
            self._grid.removeWidget(card)
            card.deleteLater()
        self._cards = []
        for inv in inventions:
            card = InventionCard(inv, self.settings, clickable=True)
            card.activated.connect(self.card_activated.emit)
            card.delete_requested.connect(self.delete_requested.emit)
            self._cards.append(card)
        self._reflow()

    def column_count(self) -> int:
        sp = self.settings.grid_spacing
        width = max(0, self.viewport().width() - 2 * sp)
        return max(1, (width + sp) // (self.settings.grid_min_column_width + sp))

    def _reflow(self) -> None:
        cols = self.column_count()
        for card in self._cards:
            self._grid.removeWidget(card)
        for i, card in enumerate(self._cards):
            self._grid.addWidget(card, i // cols, i % cols)
        for c in range(max(cols, self._grid.columnCount())):
            self._grid.setColumnStretch(c, 1 if c < cols else 0)
        self._columns = cols

    def resizeEvent(self, ev):
        super().resizeEvent(ev)
        if self.column_count() != self._columns:
            self._reflow()


# -------------------------- Detail pane --------------------------
class DetailPane(QWidget):
    """Shows the selected invention's card, or a placeholder when nothing is selected."""
    PLACEHOLDER = "Select an invention"

    def __init__(self, settings: Settings, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.card = None
        self._lay = QVBoxLayout(self)
        self._lay.setContentsMargins(16, 16, 16, 16)
        self.placeholder = QLabel(self.PLACEHOLDER)
        self.placeholder.setAlignment(Qt.AlignCenter)
        self._lay.addWidget(self.placeholder, 1)

    def show_invention(self, inv: Invention | None) -> None:
        if self.card is not None:
            self._lay.removeWidget(self.card)
            self.card.deleteLater()
            self.card = None
        if inv is None:
            self.placeholder.show()
            return
        self.placeholder.hide()
        self.card = InventionCard(inv, self.settings, clickable=False)
        self._lay.insertWidget(0, self.card, 0, Qt.AlignTop)


# -------------------------- Edit surface --------------------------
class InventionEditor(QDialog):
    """
    Modal editor over a draft copy of one invention.
    Done writes the draft back through the command layer and closes;
    Cancel (or closing the window) drops the draft and keeps the stored values.
    """
    def __init__(self, parent, commands: InventionCommands, draft: InventionDraft):
        super().__init__(parent)
        self.commands = commands
        self.draft = draft
        self.setWindowTitle("New Invention" if commands.editing_new else "Edit Invention")
        self.setModal(True)
        self.resize(520, 420)

        form = QFormLayout(self)
        form.setFieldGrowthPolicy(QFormLayout.AllNonFixedFieldsGrow)
        form.setHorizontalSpacing(16)
        form.setVerticalSpacing(10)
        form.setContentsMargins(20, 16, 20, 12)

        self.title_edit = QLineEdit(draft.title or "")
        self.title_edit.setPlaceholderText("Title")
        self.details_edit = QPlainTextEdit(draft.details or "")
        self.details_edit.setPlaceholderText("Details")
        self.link_edit = QLineEdit(draft.link_string or "")
        self.link_edit.setPlaceholderText("https://…")

        form.addRow("Title:", self.title_edit)
        form.addRow("Details:", self.details_edit)
        form.addRow("Link:", self.link_edit)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        self.buttons.button(QDialogButtonBox.Ok).setText("Done")
        self.buttons.accepted.connect(self._on_accept)
        self.buttons.rejected.connect(self.reject)
        form.addRow(self.buttons)

    def _sync_draft(self) -> None:
        self.draft.title = self.title_edit.text()
        self.draft.details = self.details_edit.toPlainText()
        link = self.link_edit.text().strip()
        self.draft.link_string = link or None

    def _on_accept(self):
        self._sync_draft()
        try:
            self.commands.commit()
        except StoreError as e:
            QMessageBox.warning(self, "Could not save", f"Your changes were not saved.\n\n{e}")
            return
        except KeyError:
            QMessageBox.warning(self, "Could not save", "This invention was deleted while you were editing it.")
            self.commands.cancel()
            super().reject()
            return
        self.accept()

    def reject(self):
        if self.commands.state != IDLE:
            self.commands.cancel()
        super().reject()


# -------------------------- Main Window --------------------------
class Main(QMainWindow):
    def __init__(self, *args, store: InventionStore | None = None, settings: Settings | None = None,
                 restore_state: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.settings = settings if settings is not None else load_settings()
        self.store = store if store is not None else InventionStore(DB_PATH, sort_key=self.settings.sort_key)
        self.commands = InventionCommands(self.store, self.settings)
        self._restore_state = restore_state
        self._visible: list[Invention] = []
        self._selected_id: str | None = None

        # App font + title
        _app_font = QFont()
        _app_font.setPointSize(13)
        self.setFont(_app_font)
        self.setWindowTitle(self.settings.window_title)
        self.resize(1100, 720)

        self._build_toolbar()
        self._build_views()
        self._build_menus()

        self._unsubscribe = self.store.subscribe(self.refresh)

        layout = self.settings.layout
        # [INV-UX|geometry-load|v1]
        if restore_state:
            s = QSettings(APP_FRIENDLY_NAME, APP_FRIENDLY_NAME)
            if (geo := s.value("main/geometry", None)) is not None:
                self.restoreGeometry(geo)
            if s.value("view/layout", None) in ("grid", "split"):
                layout = s.value("view/layout")

        self.set_layout(layout)
        self.refresh()

    # ---------- construction ----------
    def _build_toolbar(self):
        tb = self.addToolBar("Main")
        tb.setObjectName("mainToolbar")
        tb.setMovable(False)

        self.search = QLineEdit()
        self.search.setPlaceholderText("Search inventions…")
        self.search.setClearButtonEnabled(True)
        self.search.setMaximumWidth(360)
        self.search.textChanged.connect(lambda _t: self.refresh())
        tb.addWidget(self.search)

        spacer = QWidget(); spacer.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        tb.addWidget(spacer)

        self.add_action = QAction("Add", self)
        self.add_action.triggered.connect(self.add_invention)
        self.edit_action = QAction("Edit", self)
        self.edit_action.triggered.connect(self.edit_selected)
        self.delete_action = QAction("Delete", self)
        self.delete_action.triggered.connect(self.delete_selected)
        tb.addAction(self.add_action)
        tb.addAction(self.edit_action)
        tb.addAction(self.delete_action)

    def _build_views(self):
        self.stack = QStackedWidget()

        # grid page
        self.grid = CardGrid(self.settings)
        self.grid.card_activated.connect(self.open_editor)
        self.grid.delete_requested.connect(self.delete_invention)
        self.stack.addWidget(self.grid)

        # split page (sidebar list | detail)
        self.list = QListWidget()
        self.list.setUniformItemSizes(True)
        self.list.setMinimumWidth(220)
        self.list.setContextMenuPolicy(Qt.CustomContextMenu)
        self.list.customContextMenuRequested.connect(self._on_list_menu)
        self.list.currentItemChanged.connect(self._on_current_item_changed)
        self.list.itemDoubleClicked.connect(lambda it: self.open_editor(it.data(Qt.UserRole)))

        left_col = QVBoxLayout()
        left_col.setContentsMargins(6, 6, 6, 6)
        left_col.setSpacing(6)
        left_col.addWidget(QLabel(self.settings.window_title))
        left_col.addWidget(self.list, 1)
        leftw = QWidget(); leftw.setLayout(left_col)

        self.detail = DetailPane(self.settings)

        self.split = QSplitter(Qt.Horizontal)
        self.split.setChildrenCollapsible(False)
        self.split.addWidget(leftw)
        self.split.addWidget(self.detail)
        self.split.setStretchFactor(0, 1)
        self.split.setStretchFactor(1, 3)
        self.split.setSizes([300, 800])
        self.stack.addWidget(self.split)

        self.setCentralWidget(self.stack)

    def _build_menus(self):
        view_menu = self.menuBar().addMenu("View")
        group = QActionGroup(self)
        group.setExclusive(True)
        self.grid_layout_action = QAction("Grid", self, checkable=True)
        self.split_layout_action = QAction("Sidebar + Detail", self, checkable=True)
        for act, name in ((self.grid_layout_action, "grid"), (self.split_layout_action, "split")):
            group.addAction(act)
            view_menu.addAction(act)
            act.triggered.connect(lambda _checked=False, n=name: self.set_layout(n))

    # ---------- layout ----------
    def current_layout(self) -> str:
        return "split" if self.stack.currentWidget() is self.split else "grid"

    def set_layout(self, name: str) -> None:
        if name not in ("grid", "split"):
            raise ValueError(f"Unknown layout '{name}'")
        self.stack.setCurrentWidget(self.split if name == "split" else self.grid)
        self.grid_layout_action.setChecked(name == "grid")
        self.split_layout_action.setChecked(name == "split")
        self._update_actions()

    # ---------- refresh (store notifications + keystrokes) ----------
    def refresh(self):
        """Re-read the store, apply the search filter and redraw both layouts."""
        self._visible = self.commands.visible(self.search.text())
        visible_ids = {inv.id for inv in self._visible}
        if self._selected_id not in visible_ids:
            self._selected_id = None

        self.list.blockSignals(True)
        try:
            self.list.clear()
            for inv in self._visible:
                it = QListWidgetItem(display_title(inv.title, self.settings.untitled_placeholder))
                it.setData(Qt.UserRole, inv.id)
                self.list.addItem(it)
                if inv.id == self._selected_id:
                    self.list.setCurrentItem(it)
        finally:
            self.list.blockSignals(False)

        self.grid.set_inventions(self._visible)
        self.detail.show_invention(self._selected_invention())
        self._update_actions()
        self._status(f"{len(self._visible)} of {len(self.store)} inventions")

    def _selected_invention(self) -> Invention | None:
        for inv in self._visible:
            if inv.id == self._selected_id:
                return inv
        return None

    def _on_current_item_changed(self, current, _previous):
        self._selected_id = current.data(Qt.UserRole) if current is not None else None
        self.detail.show_invention(self._selected_invention())
        self._update_actions()

    def _update_actions(self):
        has_sel = self.current_layout() == "split" and self._selected_id is not None
        self.edit_action.setEnabled(has_sel)
        self.delete_action.setEnabled(has_sel)

    def _status(self, msg: str):
        sb = self.statusBar()
        if sb:
            sb.showMessage(msg)

    # ---------- commands ----------
    def add_invention(self):
        try:
            result = self.commands.add()
        except StoreError as e:
            self._report_store_error("Add", e)
            return
        except CommandStateError as e:
            self._status(str(e))
            return
        if isinstance(result, InventionDraft):
            self._selected_id = result.id
            self._run_editor(result)

    def open_editor(self, invention_id: str):
        if not invention_id:
            return
        try:
            draft = self.commands.begin_edit(invention_id)
        except (KeyError, CommandStateError) as e:
            lorekeeper.debug(e, "open_editor")
            self._status(str(e))
            return
        self._run_editor(draft)

    def edit_selected(self):
        if self._selected_id:
            self.open_editor(self._selected_id)

    def _run_editor(self, draft: InventionDraft):
        dlg = InventionEditor(self, self.commands, draft)
        dlg.exec()

    def delete_invention(self, invention_id: str):
        try:
            self.commands.delete(invention_id)
        except StoreError as e:
            self._report_store_error("Delete", e)
        except (KeyError, CommandStateError) as e:
            lorekeeper.debug(e, "delete_invention")
            self._status(str(e))

    def delete_selected(self):
        if self._selected_id:
            self.delete_invention(self._selected_id)

    def _on_list_menu(self, pos):
        item = self.list.itemAt(pos)
        if item is None:
            return
        row = self.list.row(item)
        menu = QMenu(self)
        delete_act = menu.addAction("Delete")
        if menu.exec(self.list.viewport().mapToGlobal(pos)) is delete_act:
            try:
                self.commands.delete_rows(self._visible, [row])
            except StoreError as e:
                self._report_store_error("Delete", e)

    def _report_store_error(self, action: str, err: StoreError):
        QMessageBox.warning(self, "Could not save", f"{action} failed; nothing was changed.\n\n{err}")

    # ---------- shutdown ----------
    def closeEvent(self, ev):
        # [INV-UX|geometry-save|v1]
        if self._restore_state:
            s = QSettings(APP_FRIENDLY_NAME, APP_FRIENDLY_NAME)
            s.setValue("main/geometry", self.saveGeometry())
            s.setValue("view/layout", self.current_layout())
        try:
            self._unsubscribe()
            self.store.close()
            lorekeeper.log_app_event("app closing", [f"inventions={len(self._visible)} visible"])
        finally:
            super().closeEvent(ev)


def main(argv=None):
    os.makedirs(APP_DATA, exist_ok=True)
    lorekeeper.set_root(APP_DATA)

    app = QApplication.instance() or QApplication(sys.argv if argv is None else argv)
    app.setApplicationName(APP_FRIENDLY_NAME)

    settings = load_settings()
    w = Main(settings=settings)
    lorekeeper.log_app_event("app started", [f"version={settings.version}", f"db={DB_PATH}"])
    w.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
