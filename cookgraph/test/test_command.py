import pytest

from cookgraph.core.Command import Command, MultiCommand, CommandStack
from cookgraph.core.Errors import InvalidStateError
from cookgraph.core.Types import CommandType


class Box:
    def __init__(self, x=0):
        self.x = x


class SetX(Command):
    """IMMEDIATE: set box.x"""
    def __init__(self, box, value):
        super().__init__(CommandType.IMMEDIATE)
        self.box = box
        self.value = value
        self.previous = None

    def _execute(self, *args):
        self.previous = self.box.x
        self.box.x = self.value

    def _undo(self):
        self.box.x = self.previous

    def _redo(self):
        self.box.x = self.value


class DragX(Command):
    """CONTINUOUS: box.x follows execute(value) until close()"""
    def __init__(self, box):
        super().__init__(CommandType.CONTINUOUS)
        self.box = box
        self.start = box.x
        self.end = None
        self.closed_with = None

    def _execute(self, value):
        self.box.x = value

    def _close(self):
        self.end = self.box.x
        self.closed_with = self.end

    def _undo(self):
        self.box.x = self.start

    def _redo(self):
        self.box.x = self.end


class Plain(Command):
    def _execute(self):
        pass

    def _undo(self):
        pass

    def _redo(self):
        pass


class ReentrantCommand(Command):
    def __init__(self):
        super().__init__(CommandType.CONTINUOUS)

    def _execute(self):
        self.execute()

    def _undo(self):
        pass

    def _redo(self):
        pass


class TestCommand:

    def test_invalid_type(self):
        with pytest.raises(ValueError):
            Plain("immediate")

    def test_immediate_lifecycle(self):
        box = Box()
        c = SetX(box, 1)
        assert c.open and not c.done
        assert not c.can_undo and not c.can_redo

        events = []
        c.on_done.add_listener(lambda cmd: events.append("done"))
        c.on_undo.add_listener(lambda cmd: events.append("undo"))
        c.on_redo.add_listener(lambda cmd: events.append("redo"))

        c.execute()
        assert box.x == 1
        assert not c.open and c.done
        assert c.can_undo and not c.can_redo

        c.undo()
        assert box.x == 0
        assert not c.done
        assert c.can_redo and not c.can_undo

        c.redo()
        assert box.x == 1
        assert events == ["done", "undo", "redo"]

    def test_immediate_execute_twice_fails(self):
        c = SetX(Box(), 1)
        c.execute()
        with pytest.raises(InvalidStateError):
            c.execute()

    def test_immediate_close_fails(self):
        c = SetX(Box(), 1)
        with pytest.raises(InvalidStateError):
            c.close()

    def test_undo_while_open_fails(self):
        c = DragX(Box())
        c.execute(3)
        with pytest.raises(InvalidStateError):
            c.undo()
        with pytest.raises(InvalidStateError):
            c.redo()

    def test_redo_while_done_fails(self):
        c = SetX(Box(), 1)
        c.execute()
        with pytest.raises(InvalidStateError):
            c.redo()

    def test_undo_when_not_done_fails(self):
        c = SetX(Box(), 1)
        c.execute()
        c.undo()
        with pytest.raises(InvalidStateError):
            c.undo()

    def test_continuous_lifecycle(self):
        box = Box(5)
        c = DragX(box)
        done = []
        c.on_done.add_listener(lambda cmd: done.append(cmd))

        c.execute(6)
        c.execute(7)
        c.execute(8)
        assert c.open and not c.done
        assert done == []

        c.close()
        assert not c.open and c.done
        assert c.closed_with == 8
        assert done == [c]

        c.undo()
        assert box.x == 5
        c.redo()
        assert box.x == 8

        with pytest.raises(InvalidStateError):
            c.close()
        with pytest.raises(InvalidStateError):
            c.execute(9)

    def test_reentrant_execute_fails(self):
        c = ReentrantCommand()
        with pytest.raises(InvalidStateError):
            c.execute()
        # the guard is released after the failed call
        assert c.open

    def test_stack_set_once(self):
        c = SetX(Box(), 1)
        stack = CommandStack(limit=0)
        c.stack = stack
        assert c.stack is stack
        with pytest.raises(InvalidStateError):
            c.stack = CommandStack(limit=0)

    def test_stack_must_be_command_stack(self):
        c = SetX(Box(), 1)
        with pytest.raises(ValueError):
            c.stack = object()

    def test_locked_calls_are_noops(self):
        box = Box()
        stack = CommandStack(limit=0)
        c = SetX(box, 1)
        stack.add(c)

        key = stack.lock.lock()
        c.execute()
        assert box.x == 0
        assert c.open, "a locked execute leaves the command untouched"
        stack.lock.free(key)

        c.execute()
        assert box.x == 1

        key = stack.lock.lock()
        assert not c.can_undo
        c.undo()
        assert box.x == 1 and c.done
        stack.lock.free(key)


class TestMultiCommand:

    def test_requires_commands(self):
        with pytest.raises(ValueError):
            MultiCommand([])
        with pytest.raises(ValueError):
            MultiCommand([object()])

    def test_type_is_immediate_only_if_all_children_are(self):
        box = Box()
        assert MultiCommand([SetX(box, 1), SetX(box, 2)]).type == CommandType.IMMEDIATE
        assert MultiCommand([SetX(box, 1), DragX(box)]).type == CommandType.CONTINUOUS

    def test_immediate_composite_undo_order(self):
        a, b = Box(), Box()
        log = []

        class Logged(SetX):
            def _undo(self):
                log.append(self.value)
                super()._undo()

        m = MultiCommand([Logged(a, 1), Logged(b, 2)])
        m.execute()
        assert (a.x, b.x) == (1, 2)
        assert m.can_undo

        m.undo()
        assert (a.x, b.x) == (0, 0)
        assert log == [2, 1], "children are undone last-to-first"

        m.redo()
        assert (a.x, b.x) == (1, 2)

    def test_continuous_composite_skips_closed_children(self):
        box = Box()
        other = Box()
        immediate = SetX(other, 10)
        drag = DragX(box)
        m = MultiCommand([immediate, drag])

        m.execute(1)
        assert other.x == 10 and box.x == 1
        assert not immediate.open
        # second execute must not re-execute the closed immediate child
        m.execute(2)
        assert box.x == 2

        m.close()
        assert not drag.open and drag.done
        assert m.can_undo

        m.undo()
        assert other.x == 0 and box.x == 0
        assert m.can_redo
