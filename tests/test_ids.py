"""tests for numeric profile and game ids."""
from pathlib import Path

import pytest

from duna_swap.core.ids import GameId, ProfileId, is_numeric_name
from duna_swap.errors import InvalidIdentifierError


class TestNumericIds:
    def test_accepts_digit_strings_and_ints(self):
        assert GameId("570") == "570"
        assert GameId(570) == "570"
        assert ProfileId(" 12345 ") == "12345"

    @pytest.mark.parametrize("value", ["", "abc", "12a", "-5", "1.5", "../1", "١٢٣", None, True, 3.0])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(InvalidIdentifierError):
            GameId(value)

    def test_invalid_id_is_a_value_error(self):
        with pytest.raises(ValueError):
            ProfileId("dunabackups")

    def test_usable_as_path_segment_and_dict_key(self):
        game_id = GameId("730")
        assert Path("/data") / game_id == Path("/data/730")
        assert {"730": "cs"}[game_id] == "cs"

    def test_types_are_distinct(self):
        assert type(GameId("1")) is not type(ProfileId("1"))
        assert repr(GameId("1")) == "GameId('1')"

    def test_parse_many_dedupes_in_order(self):
        assert GameId.parse_many(["3", 1, "3", "2"]) == ["3", "1", "2"]

    def test_is_numeric_name(self):
        assert is_numeric_name("0042")
        assert not is_numeric_name("")
        assert not is_numeric_name("²")
