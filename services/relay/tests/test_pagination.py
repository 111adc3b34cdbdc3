import pytest

from services.relay.core.pagination import clamp_page, page_to_start, total_pages


@pytest.mark.parametrize("page, expected", [(1, 0), (2, 10), (3, 20), (0, 0)])
def test_page_to_start(page, expected):
    assert page_to_start(page, 10) == expected


def test_total_pages():
    assert total_pages(25, 10) == 3
    assert total_pages(20, 10) == 2
    assert total_pages(0, 10) == 1


def test_clamp_page():
    assert clamp_page(9, 25, 10) == 3
    assert clamp_page(-1, 25, 10) == 1


def test_rows_must_be_positive():
    with pytest.raises(ValueError):
        page_to_start(1, 0)
    with pytest.raises(ValueError):
        total_pages(10, 0)
