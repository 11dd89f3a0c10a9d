# tests/test_app.py — offscreen smoke tests for the main window
import pytest

from core.config import Settings
from engine import EDITING, IDLE


@pytest.fixture
def window(qapp, seeded):
    app_mod = pytest.importorskip("app")
    w = app_mod.Main(store=seeded, settings=Settings({"layout": "split", "edit_on_add": False}),
                     restore_state=False)
    yield w
    w._unsubscribe()
    w.deleteLater()


def test_window_lists_records_in_title_order(window):
    titles = [window.list.item(i).text() for i in range(window.list.count())]
    assert titles == ["Engine", "Radio"]
    assert len(window.grid.cards()) == 2


def test_search_narrows_both_layouts(window):
    window.search.setText("radio")
    assert window.list.count() == 1
    assert window.list.item(0).text() == "Radio"
    assert len(window.grid.cards()) == 1
    window.search.setText("")
    assert window.list.count() == 2


def test_store_changes_rerender(window, seeded):
    seeded.create(title=None, details="")
    seeded.save()
    titles = [window.list.item(i).text() for i in range(window.list.count())]
    assert titles == ["Untitled", "Engine", "Radio"]


def test_selection_drives_detail_pane(window):
    assert not window.detail.placeholder.isHidden()
    window.list.setCurrentRow(1)
    assert window.detail.card is not None
    assert window.detail.card.title_label.text() == "Radio"
    assert window.delete_action.isEnabled()
    window.delete_selected()
    assert [window.list.item(i).text() for i in range(window.list.count())] == ["Engine"]
    assert not window.detail.placeholder.isHidden()


def test_layout_switch(window):
    assert window.current_layout() == "split"
    window.set_layout("grid")
    assert window.current_layout() == "grid"
    assert window.grid_layout_action.isChecked()
    with pytest.raises(ValueError):
        window.set_layout("carousel")


def test_editor_done_and_cancel(window, seeded):
    app_mod = pytest.importorskip("app")
    radio = next(r for r in seeded.all() if r.title == "Radio")

    draft = window.commands.begin_edit(radio.id)
    dlg = app_mod.InventionEditor(window, window.commands, draft)
    dlg.title_edit.setText("Crystal radio")
    dlg.link_edit.setText("https://example.org/radio")
    dlg._on_accept()
    assert window.commands.state == IDLE
    got = seeded.get(radio.id)
    assert got.title == "Crystal radio"
    assert got.link_string == "https://example.org/radio"

    draft = window.commands.begin_edit(radio.id)
    dlg = app_mod.InventionEditor(window, window.commands, draft)
    assert window.commands.state == EDITING
    dlg.title_edit.setText("Discarded")
    dlg.reject()
    assert window.commands.state == IDLE
    assert seeded.get(radio.id).title == "Crystal radio"


def test_card_shows_link_only_when_parseable(qapp):
    app_mod = pytest.importorskip("app")
    from core.model import Invention
    s = Settings({})
    good = app_mod.InventionCard(Invention(id="1", title="A", link_string="https://example.org"), s)
    bad = app_mod.InventionCard(Invention(id="2", title="B", link_string="not a link"), s)
    assert good.has_link()
    assert not bad.has_link()


def _main(app_mod, store, **cfg):
    return app_mod.Main(store=store, settings=Settings(cfg), restore_state=False)


def test_empty_injected_store_is_kept(qapp, store):
    app_mod = pytest.importorskip("app")
    w = _main(app_mod, store, layout="grid", edit_on_add=False)
    try:
        assert w.store is store
        assert w.commands.store is store
        assert w.list.count() == 0
        assert w.grid.cards() == []
    finally:
        w._unsubscribe()
        w.deleteLater()


def test_card_click_opens_editor(qapp, seeded, monkeypatch):
    app_mod = pytest.importorskip("app")
    w = _main(app_mod, seeded, layout="grid", edit_on_add=False)
    opened = []
    monkeypatch.setattr(w, "_run_editor", opened.append)
    try:
        card = w.grid.cards()[1]
        card.activated.emit(card.invention.id)
        assert [d.title for d in opened] == ["Radio"]
        assert w.commands.state == EDITING
    finally:
        w._unsubscribe()
        w.deleteLater()


def test_add_opens_editor_on_new_record(qapp, seeded, monkeypatch):
    app_mod = pytest.importorskip("app")
    w = _main(app_mod, seeded, layout="grid", edit_on_add=True)
    opened = []
    monkeypatch.setattr(w, "_run_editor", opened.append)
    try:
        w.add_invention()
        assert len(opened) == 1
        draft = opened[0]
        assert draft.title == "New invention"
        assert seeded.get(draft.id) is not None
        assert w.commands.state == EDITING
        assert len(w.grid.cards()) == 3

        dlg = app_mod.InventionEditor(w, w.commands, draft)
        assert dlg.windowTitle() == "New Invention"
        dlg.reject()
        assert w.commands.state == IDLE
    finally:
        w._unsubscribe()
        w.deleteLater()


def test_card_context_delete(qapp, seeded):
    app_mod = pytest.importorskip("app")
    w = _main(app_mod, seeded, layout="grid", edit_on_add=False)
    try:
        radio = next(c for c in w.grid.cards() if c.invention.title == "Radio")
        w.grid.delete_requested.emit(radio.invention.id)
        assert [c.invention.title for c in w.grid.cards()] == ["Engine"]
        assert seeded.get(radio.invention.id) is None
    finally:
        w._unsubscribe()
        w.deleteLater()


def test_list_context_delete_uses_filtered_row(qapp, seeded, monkeypatch):
    app_mod = pytest.importorskip("app")
    seeded.create(title="Rotary engine", details="")
    seeded.save()
    w = _main(app_mod, seeded, layout="split", edit_on_add=False)
    monkeypatch.setattr(app_mod.QMenu, "exec", lambda menu, *a, **k: menu.actions()[0])
    try:
        w.resize(900, 600)
        w.show()
        qapp.processEvents()
        w.search.setText("r")
        titles = [w.list.item(i).text() for i in range(w.list.count())]
        assert titles == ["Radio", "Rotary engine"]
        w.search.setText("ro")
        assert [w.list.item(i).text() for i in range(w.list.count())] == ["Rotary engine"]
        qapp.processEvents()
        pos = w.list.visualItemRect(w.list.item(0)).center()
        w._on_list_menu(pos)
        assert sorted(r.title for r in seeded.all()) == ["Engine", "Radio"]
    finally:
        w._unsubscribe()
        w.hide()
        w.deleteLater()


def test_failed_add_logs_one_error(qapp, flaky_store, monkeypatch):
    app_mod = pytest.importorskip("app")
    from lore import lorekeeper
    warnings = []
    monkeypatch.setattr(app_mod.QMessageBox, "warning", lambda *a, **k: warnings.append(a))
    w = _main(app_mod, flaky_store, layout="grid", edit_on_add=False)
    try:
        flaky_store._con.fail_commits = True
        w.add_invention()
        assert len(warnings) == 1
        assert lorekeeper.read_chronicles().count("app error - ") == 1
        assert w.grid.cards() == []
    finally:
        w._unsubscribe()
        w.deleteLater()


def test_grid_columns_follow_width(qapp):
    app_mod = pytest.importorskip("app")
    from core.model import Invention
    grid = app_mod.CardGrid(Settings({"grid_min_column_width": 260, "grid_spacing": 16}))
    grid.set_inventions([Invention(id=str(i), title=f"Card {i}") for i in range(5)])
    try:
        grid.resize(1200, 600)
        grid.show()
        qapp.processEvents()
        assert grid.column_count() == 4

        grid.resize(600, 600)
        qapp.processEvents()
        assert grid.column_count() == 2
        third = grid.cards()[2]
        row, col, _rs, _cs = grid._grid.getItemPosition(grid._grid.indexOf(third))
        assert (row, col) == (1, 0)

        grid.resize(200, 600)
        qapp.processEvents()
        assert grid.column_count() == 1
    finally:
        grid.close()
        grid.deleteLater()


def test_data_dir_shared_with_ledger():
    app_mod = pytest.importorskip("app")
    from lore import lorekeeper
    assert app_mod.APP_DATA == lorekeeper.DEFAULT_ROOT
    assert app_mod.DB_PATH.startswith(lorekeeper.DEFAULT_ROOT)
