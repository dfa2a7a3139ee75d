from core.keybindings import DEFAULT_KEYBINDINGS, KeyEvent, KeybindingResolver, chord_for
from models.actions import Action


class TestChords:
    """Tests for chord strings built from key events."""

    def test_ctrl_chord(self):
        assert chord_for(KeyEvent("d", ctrl=True)) == "Ctrl+d"

    def test_shift_spelled_out_for_named_keys(self):
        assert chord_for(KeyEvent("Tab", shift=True)) == "Shift+Tab"

    def test_shift_letter_is_the_literal_capital(self):
        assert chord_for(KeyEvent("J", shift=True)) == "J"

    def test_space_text(self):
        assert KeyEvent("Space").text == " "
        assert KeyEvent(" ").base == "Space"

    def test_ctrl_key_types_nothing(self):
        assert KeyEvent("d", ctrl=True).text == ""


class TestTextualTranslation:
    """Tests for translating Textual key names."""

    def test_ctrl_letter(self):
        assert KeyEvent.from_textual("ctrl+d", "\x04") == KeyEvent("d", ctrl=True)

    def test_named_punctuation_uses_character(self):
        assert KeyEvent.from_textual("colon", ":") == KeyEvent(":")
        assert KeyEvent.from_textual("left_square_bracket", "[") == KeyEvent("[")

    def test_named_keys(self):
        assert KeyEvent.from_textual("space", " ") == KeyEvent("Space")
        assert KeyEvent.from_textual("enter", "\r") == KeyEvent("Enter")
        assert KeyEvent.from_textual("escape", "\x1b") == KeyEvent("Escape")
        assert KeyEvent.from_textual("backspace", "\x7f") == KeyEvent("Backspace")

    def test_shift_tab(self):
        assert KeyEvent.from_textual("shift+tab") == KeyEvent("Tab", shift=True)

    def test_capital_letter(self):
        assert KeyEvent.from_textual("J", "J") == KeyEvent("J")
        assert KeyEvent.from_textual("shift+j", "J") == KeyEvent("J")


class TestResolver:
    """Tests for the layered keybinding resolver."""

    def test_defaults(self):
        resolver = KeybindingResolver()
        assert resolver.resolve("j") is Action.MOVE_DOWN
        assert resolver.resolve("Ctrl+d") is Action.PAGE_DOWN
        assert resolver.resolve("x") is None

    def test_user_override_wins(self):
        resolver = KeybindingResolver.from_config({"j": "togglePause"})
        assert resolver.resolve_event(KeyEvent("j")) is Action.TOGGLE_PAUSE
        assert resolver.resolve_event(KeyEvent("k")) is Action.MOVE_UP

    def test_unknown_action_ignored(self):
        resolver = KeybindingResolver.from_config({"x": "launchRockets"})
        assert resolver.user_bindings == {}

    def test_falls_back_to_bare_key(self):
        resolver = KeybindingResolver()
        assert resolver.resolve_event(KeyEvent("Enter", ctrl=True)) is Action.PLAY_SELECTED

    def test_action_for_default(self):
        assert KeybindingResolver().action_for(Action.TOGGLE_HELP) == "?"

    def test_action_for_prefers_user_binding(self):
        resolver = KeybindingResolver.from_config({"F1": "toggleHelp"})
        assert resolver.action_for(Action.TOGGLE_HELP) == "F1"

    def test_action_for_skips_overridden_default(self):
        resolver = KeybindingResolver.from_config({"?": "stop"})
        assert resolver.action_for(Action.TOGGLE_HELP) is None

    def test_every_default_maps_to_an_action(self):
        assert all(isinstance(action, Action) for action in DEFAULT_KEYBINDINGS.values())


class TestActions:
    """Tests for action names and labels."""

    def test_from_name(self):
        assert Action.from_name("seekForwardLarge") is Action.SEEK_FORWARD_LARGE
        assert Action.from_name("nope") is None

    def test_label(self):
        assert Action.SEEK_FORWARD_LARGE.label == "Seek forward large"
        assert Action.STOP.label == "Stop"
