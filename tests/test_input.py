"""Unit tests for the input collaborators."""

from typing import Any, List, Tuple

from game.harvest.input import DOWN, LEFT, RIGHT, UP, KeyboardInput, ScriptedInput

K_LEFT, K_RIGHT, K_UP, K_DOWN, K_A, K_P = 1, 2, 3, 4, 5, 9
KEYMAP = {K_LEFT: LEFT, K_RIGHT: RIGHT, K_UP: UP, K_DOWN: DOWN, K_A: LEFT}


class FakeWindow:
    """Records handler registration like a pyglet event dispatcher."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, Any]] = []
        self.stack: List[Any] = []

    def push_handlers(self, handler: Any) -> None:
        self.events.append(("push", handler))
        self.stack.append(handler)

    def remove_handlers(self, handler: Any) -> None:
        self.events.append(("remove", handler))
        self.stack.remove(handler)


class TestKeyboardInput:
    """Tests for KeyboardInput."""

    def test_press_and_release(self) -> None:
        kb = KeyboardInput(KEYMAP)

        kb.on_key_press(K_LEFT, 0)
        kb.on_key_press(K_UP, 0)
        assert kb.snapshot().held == {LEFT, UP}

        kb.on_key_release(K_LEFT, 0)
        assert kb.snapshot().held == {UP}

    def test_two_keys_for_one_direction(self) -> None:
        kb = KeyboardInput(KEYMAP)
        kb.on_key_press(K_LEFT, 0)
        kb.on_key_press(K_A, 0)

        kb.on_key_release(K_LEFT, 0)
        assert LEFT in kb.snapshot().held

        kb.on_key_release(K_A, 0)
        assert kb.snapshot().held == frozenset()

    def test_unmapped_keys_ignored(self) -> None:
        kb = KeyboardInput(KEYMAP)
        kb.on_key_press(42, 0)
        kb.on_key_release(42, 0)
        kb.on_key_release(K_RIGHT, 0)
        assert kb.snapshot().held == frozenset()

    def test_pause_fires_once_per_press(self) -> None:
        toggles: List[int] = []
        kb = KeyboardInput(KEYMAP, pause_keys=[K_P], on_pause=lambda: toggles.append(1))

        kb.on_key_press(K_P, 0)
        kb.on_key_release(K_P, 0)
        kb.on_key_press(K_P, 0)

        assert len(toggles) == 2
        assert kb.snapshot().held == frozenset()

    def test_snapshot_is_a_copy(self) -> None:
        kb = KeyboardInput(KEYMAP)
        kb.on_key_press(K_DOWN, 0)
        snap = kb.snapshot()
        kb.on_key_release(K_DOWN, 0)
        assert snap.held == {DOWN}


class TestRegistration:
    """Tests for attach/detach discipline."""

    def test_attach_and_detach(self) -> None:
        window = FakeWindow()
        kb = KeyboardInput(KEYMAP)

        kb.attach(window)
        assert kb.attached
        assert window.stack == [kb]

        kb.on_key_press(K_UP, 0)
        kb.detach()
        assert not kb.attached
        assert window.stack == []
        assert kb.snapshot().held == frozenset()

    def test_attach_twice_registers_once(self) -> None:
        window = FakeWindow()
        kb = KeyboardInput(KEYMAP)
        kb.attach(window)
        kb.attach(window)
        assert window.stack == [kb]

    def test_attach_elsewhere_moves_registration(self) -> None:
        first, second = FakeWindow(), FakeWindow()
        kb = KeyboardInput(KEYMAP)
        kb.attach(first)
        kb.attach(second)
        assert first.stack == []
        assert second.stack == [kb]

    def test_context_manager_detaches(self) -> None:
        window = FakeWindow()
        with KeyboardInput(KEYMAP) as kb:
            kb.attach(window)
        assert window.stack == []

    def test_context_manager_detaches_on_error(self) -> None:
        window = FakeWindow()
        try:
            with KeyboardInput(KEYMAP) as kb:
                kb.attach(window)
                raise RuntimeError("boom")
        except RuntimeError:
            pass
        assert window.stack == []

    def test_missing_window_degrades(self, caplog) -> None:
        kb = KeyboardInput(KEYMAP)
        kb.attach(None)
        assert not kb.attached
        assert "input disabled" in caplog.text
        kb.detach()


class TestScriptedInput:
    def test_snapshot_reflects_held(self) -> None:
        source = ScriptedInput([LEFT])
        source.held.add(DOWN)
        assert source.snapshot().held == {LEFT, DOWN}
