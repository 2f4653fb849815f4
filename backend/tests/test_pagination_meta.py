import pytest
from logiflow.config.pagination import normalize_pagination, DEFAULT_LIMIT, MAX_LIMIT
from tests.test_utils_seed import ensure_store, role_headers


@pytest.mark.parametrize('raw,expected', [
    ((None, None), (DEFAULT_LIMIT, 0)),
    (('', ''), (DEFAULT_LIMIT, 0)),
    (('10', '5'), (10, 5)),
    (('0', '-3'), (1, 0)),
    (('100000', '0'), (MAX_LIMIT, 0)),
])
def test_normalize_pagination(raw, expected):
    assert normalize_pagination(*raw) == expected


def test_normalize_pagination_rejects_garbage():
    with pytest.raises(ValueError):
        normalize_pagination('ten', None)


def test_list_payload_carries_pagination_meta(client):
    store = ensure_store('Pagination Vandoeuvre')
    headers = role_headers('admin', store)
    for i in range(3):
        client.post('/dlc-products', json={'product_name': f'P{i}', 'expiry_date': '2030-01-01', 'store_id': store.id}, headers=headers)
    body = client.get(f'/dlc-products?store_id={store.id}&limit=2&offset=1', headers=headers).get_json()
    assert body['pagination'] == {'total': 3, 'limit': 2, 'offset': 1, 'returned': 2}
