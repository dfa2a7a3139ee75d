from core.filtering import apply_filter, next_match_index, prev_match_index
from models.app_state import FilterMatch
from models.track import Track


def named(*names):
    return [Track(path=f"/music/{name}", name=name) for name in names]


class TestApplyFilter:
    """Tests for the regex-or-substring matcher."""

    def test_invalid_regex_falls_back_to_substring(self):
        matches = apply_filter("(", named("Song (Live)", "Other"))
        assert [m.item.name for m in matches] == ["Song (Live)"]

    def test_regex_is_case_insensitive(self):
        matches = apply_filter("^a", named("abc", "ABC", "bac"))
        assert [m.index for m in matches] == [0, 1]

    def test_empty_query_matches_nothing(self):
        assert apply_filter("", named("abc")) == []

    def test_matches_keep_original_index(self):
        matches = apply_filter("o", named("one", "two", "six", "four"))
        assert [m.index for m in matches] == [0, 1, 3]


class TestMatchNavigation:
    """Tests for n/N match jumping."""

    matches = [FilterMatch(None, 1), FilterMatch(None, 4)]

    def test_next_wraps(self):
        assert next_match_index(self.matches, 0) == 1
        assert next_match_index(self.matches, 1) == 4
        assert next_match_index(self.matches, 4) == 1

    def test_prev_wraps(self):
        assert prev_match_index(self.matches, 4) == 1
        assert prev_match_index(self.matches, 1) == 4

    def test_no_matches(self):
        assert next_match_index([], 0) is None
        assert prev_match_index([], 0) is None


class TestFilterEngine:
    """Tests for the filter against the loaded playlist."""

    def test_apply_reports_count(self, loaded, presenter):
        loaded.state.filter_text = "track0[12]"
        loaded.filters.apply()
        assert [m.index for m in loaded.state.filtered_playlist] == [1, 2]
        assert presenter.last_status == "2 matches"

    def test_no_matches_message(self, loaded, presenter):
        loaded.state.filter_text = "zzz"
        loaded.filters.apply()
        assert presenter.last_status == "No matches"

    def test_refilter_follows_deletion(self, loaded):
        loaded.state.filter_text = "track0[34]"
        loaded.filters.apply()
        loaded.library.delete_indices([0])
        assert [m.index for m in loaded.state.filtered_playlist] == [2, 3]

    def test_clear(self, loaded):
        loaded.state.filter_text = "track"
        loaded.filters.apply()
        loaded.filters.clear()
        assert loaded.state.filter_text == ""
        assert loaded.state.filtered_playlist == []
