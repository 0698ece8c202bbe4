"""Tests for tdfile.session: the consumer-facing session, end to end."""

from __future__ import annotations

import pytest

from tdfile.errors import EditingBlockedError
from tdfile.io_utils import read_text, write_text
from tdfile.session import Session
from tdfile.todos.model import TodoState


def _tree(session: Session) -> list[tuple[str, int]]:
    return [(r.node.text, r.depth) for r in session.rows()]


@pytest.fixture
def session(todo_file):
    s = Session(todo_file)
    s.load()
    return s


@pytest.fixture
def saving_session(todo_file):
    """A session whose saver writes straight to the file."""
    from tdfile.sync import FileSynchronizer

    s = Session(todo_file, saver=FileSynchronizer(todo_file).write_now)
    s.load()
    return s


class TestLoad:
    def test_sample_tree(self, session):
        """Parent has Child 1 and Child 2; Child 1 has Grandchild 1.1."""
        assert len(session.forest) == 1
        parent = session.forest[0]
        assert parent.text == "Parent"
        assert [c.text for c in parent.children] == ["Child 1", "Child 2"]
        assert [g.text for g in parent.children[0].children] == ["Grandchild 1.1"]
        assert session.block_count == 1
        assert session.warnings == []

    def test_next_id_seeded_past_max(self, session):
        assert session.next_id == max(r.id for r in session.records) + 1

    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Session(tmp_path / "gone.md").load()

    def test_warnings_collected(self, write_todo_file):
        path = write_todo_file(":td\n- [ ] ok\noops\n:td\n:td\n- [ ] lost\n")
        s = Session(path)
        s.load()
        assert [r.text for r in s.records] == ["ok"]
        assert len(s.warnings) == 2
        assert any("Malformed todo" in w for w in s.warnings)
        assert any("Unmatched" in w for w in s.warnings)

    def test_zero_blocks(self, write_todo_file):
        s = Session(write_todo_file("nothing to do\n"))
        s.load()
        assert s.block_count == 0
        assert s.rows() == []


class TestEndToEnd:
    """Mutate, write back, reload from disk."""

    def test_complete_parent_keeps_subtree(self, saving_session, todo_file):
        parent_id = saving_session.forest[0].id
        saving_session.set_state(parent_id, TodoState.COMPLETED)

        reloaded = Session(todo_file)
        reloaded.load()
        assert _tree(reloaded) == [
            ("Parent", 0),
            ("Child 1", 1),
            ("Grandchild 1.1", 2),
            ("Child 2", 1),
        ]
        assert reloaded.forest[0].state == TodoState.COMPLETED
        assert "Trailing notes stay put." in read_text(todo_file)

    def test_add_sibling_and_child(self, saving_session, todo_file):
        child1 = saving_session.forest[0].children[0]
        new_id = saving_session.add_sibling(child1.id, "Child 1b")
        saving_session.add_child(new_id, "Deep")
        assert _tree(saving_session) == [
            ("Parent", 0),
            ("Child 1", 1),
            ("Grandchild 1.1", 2),
            ("Child 1b", 1),
            ("Deep", 2),
            ("Child 2", 1),
        ]
        text = read_text(todo_file)
        assert "  - [ ] Child 1b\n    - [ ] Deep\n  - [ ] Child 2\n" in text

    def test_new_ids_are_unique(self, session):
        a = session.add_sibling(None, "A")
        b = session.add_sibling(a, "B")
        ids = [r.node.id for r in session.rows()]
        assert a != b
        assert len(ids) == len(set(ids))

    def test_add_to_empty_block(self, write_todo_file):
        path = write_todo_file("before\n:td\n:td\nafter\n")
        from tdfile.sync import FileSynchronizer

        s = Session(path, saver=FileSynchronizer(path).write_now)
        s.load()
        s.add_sibling(None, "First")
        assert read_text(path) == "before\n:td\n- [ ] First\n:td\nafter\n"

    def test_delete_removes_subtree(self, saving_session, todo_file):
        child1 = saving_session.forest[0].children[0]
        saving_session.delete(child1.id)
        assert _tree(saving_session) == [("Parent", 0), ("Child 2", 1)]
        assert "Grandchild" not in read_text(todo_file)

    def test_highlight_toggle(self, saving_session, todo_file):
        node_id = saving_session.forest[0].children[1].id
        assert saving_session.toggle_highlight(node_id) is True
        assert "  - [ ] Child 2 *" in read_text(todo_file)
        saving_session.set_state(node_id, TodoState.PUSHED)
        assert "  - [>] Child 2\n" in read_text(todo_file)
        assert saving_session.toggle_highlight(node_id) is False

    def test_toggle_state_flips_back(self, session):
        node_id = session.forest[0].id
        assert session.toggle_state(node_id, TodoState.CANCELLED) == TodoState.CANCELLED
        assert session.toggle_state(node_id, TodoState.CANCELLED) == TodoState.INCOMPLETE

    def test_edit_text(self, saving_session, todo_file):
        saving_session.edit_text(saving_session.forest[0].id, "Renamed")
        assert "- [ ] Renamed\n" in read_text(todo_file)

    def test_unknown_id(self, session):
        with pytest.raises(KeyError):
            session.set_state(999, TodoState.COMPLETED)

    def test_multiline_text_rejected(self, saving_session, todo_file):
        before = read_text(todo_file)
        with pytest.raises(ValueError):
            saving_session.edit_text(1, "Parent\n:td\nsmuggled")
        with pytest.raises(ValueError):
            saving_session.add_child(1, "one\rtwo")
        assert read_text(todo_file) == before
        assert saving_session.reload() is True
        assert len(saving_session.records) == 4
        assert saving_session.next_id == 5


class TestSnapshots:
    def test_saver_receives_canonical_snapshot(self, write_todo_file):
        path = write_todo_file(":td\n- [ ] a\n   - [ ] b\n:td\n")
        seen = []
        s = Session(path, saver=seen.append)
        s.load()
        s.set_state(s.forest[0].id, TodoState.COMPLETED)
        assert len(seen) == 1
        assert [(r.text, r.indent_level) for r in seen[0]] == [("a", 0), ("b", 2)]

    def test_collapse_does_not_save(self, todo_file):
        seen = []
        s = Session(todo_file, saver=seen.append)
        s.load()
        assert s.toggle_collapsed(s.forest[0].id) is True
        assert _tree(s) == [("Parent", 0)]
        assert seen == []

    def test_collapse_leaf_is_noop(self, session):
        leaf = session.forest[0].children[1]
        assert session.toggle_collapsed(leaf.id) is False

    def test_collapse_survives_mutation(self, session):
        parent_id = session.forest[0].id
        session.toggle_collapsed(parent_id)
        session.set_state(parent_id, TodoState.PUSHED)
        assert _tree(session) == [("Parent", 0)]


class TestReload:
    def test_reload_replaces_warnings(self, todo_file):
        write_text(todo_file, ":td\n- [ ] a\njunk\n:td\n")
        s = Session(todo_file)
        s.load()
        assert len(s.warnings) == 1
        write_text(todo_file, ":td\n- [ ] a\n- [ ] b\n:td\n")
        assert s.reload() is True
        assert s.warnings == []
        assert [r.text for r in s.records] == ["a", "b"]

    def test_failed_reload_blocks_editing(self, session, todo_file):
        node_id = session.forest[0].id
        todo_file.unlink()
        assert session.reload() is False
        assert session.error
        with pytest.raises(EditingBlockedError):
            session.set_state(node_id, TodoState.COMPLETED)
        assert _tree(session)[0] == ("Parent", 0)

    def test_undecodable_file_blocks_editing(self, session, todo_file):
        todo_file.write_bytes(b":td\n- [ ] caf\xe9\n:td\n")
        assert session.reload() is False
        assert "decode" in session.error
        with pytest.raises(EditingBlockedError):
            session.edit_text(1, "Renamed")
        assert [r.text for r in session.records][:1] == ["Parent"]

        write_text(todo_file, ":td\n- [ ] fixed\n:td\n")
        assert session.reload() is True
        assert session.error == ""

    def test_successful_reload_clears_error(self, session, todo_file):
        text = read_text(todo_file)
        todo_file.unlink()
        session.reload()
        write_text(todo_file, text)
        assert session.reload() is True
        assert session.error == ""
        session.set_state(session.forest[0].id, TodoState.COMPLETED)

    def test_next_id_never_goes_down(self, session, todo_file):
        session.next_id = 50
        session.reload()
        assert session.next_id == 50
