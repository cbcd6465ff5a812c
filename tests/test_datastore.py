import pytest

from flowwallet.datastore import DEFAULT_LIMIT, ListOptions, parse_list_options


def test_zero_limit_uses_default():
    options = parse_list_options(0, 5)
    assert options == ListOptions(limit=DEFAULT_LIMIT, offset=5)
    assert options.limit == 1000


def test_negative_limit_disables_limit_and_offset():
    assert parse_list_options(-3, 7) == ListOptions(limit=-1, offset=0)


def test_negative_offset_is_clamped():
    assert parse_list_options(10, -2) == ListOptions(limit=10, offset=0)


@pytest.mark.parametrize("limit,offset", [(1, 0), (10, 20), (500, 3)])
def test_valid_values_pass_through(limit, offset):
    options = parse_list_options(limit, offset)
    assert (options.limit, options.offset) == (limit, offset)


def test_parse_is_idempotent():
    once = parse_list_options(-5, -5)
    twice = parse_list_options(once.limit, once.offset)
    assert once == twice