import pytest

from infrastructure.stores.pagination import PaginatedResponse, PaginationParams
from sensorhub.domain.exceptions import ValidationError


def test_defaults():
    params = PaginationParams.from_request()
    assert (params.page, params.limit, params.offset) == (1, 10, 0)


def test_custom_default_limit():
    assert PaginationParams.from_request(default_limit=100).limit == 100


@pytest.mark.parametrize(
    "page, limit",
    [(0, 10), (-1, 10), (1, 0), (1, 1001)],
)
def test_out_of_range_values_are_rejected(page, limit):
    with pytest.raises(ValidationError):
        PaginationParams.from_request(page, limit)


def test_max_limit_is_accepted():
    assert PaginationParams.from_request(1, 1000).limit == 1000


def test_paginate_middle_page():
    page = PaginatedResponse.paginate(list(range(25)), PaginationParams(page=2, limit=10))
    assert page.items == list(range(10, 20))
    assert page.pagination_dict() == {
        "currentPage": 2,
        "totalPages": 3,
        "totalItems": 25,
        "itemsPerPage": 10,
        "hasNext": True,
        "hasPrev": True,
    }


def test_paginate_last_page_and_beyond():
    items = list(range(20))
    last = PaginatedResponse.paginate(items, PaginationParams(page=2, limit=10))
    assert last.has_next is False
    beyond = PaginatedResponse.paginate(items, PaginationParams(page=5, limit=10))
    assert beyond.items == []
    assert beyond.total == 20


def test_empty_collection():
    page = PaginatedResponse.paginate([], PaginationParams(page=1, limit=10))
    assert page.page_count == 0
    assert page.has_next is False
    assert page.has_prev is False
