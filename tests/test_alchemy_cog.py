import pytest

from modules.alchemy.cog import parse_ingredients


def test_parses_ids_and_quantities():
    assert parse_ingredients("ing-moonpetal:2, ing-brinewort") == [
        {"ingredientId": "ing-moonpetal", "qty": 2},
        {"ingredientId": "ing-brinewort", "qty": 1},
    ]


def test_ignores_empty_chunks_and_spacing():
    assert parse_ingredients(" ing-ashroot : 3 ,, ") == [{"ingredientId": "ing-ashroot", "qty": 3}]


@pytest.mark.parametrize("text", ["", " , ", "ing-moonpetal:two", "ing-moonpetal:-1"])
def test_rejects_bad_input(text):
    with pytest.raises(ValueError):
        parse_ingredients(text)
