import pytest

from route_atlas.services import route_path


@pytest.mark.parametrize("prefix, pattern, expected", [
    (None, None, '/'),
    ('/', None, '/'),
    ('/', '/users', '/users'),
    ('/api', 'users', '/api/users'),
    ('/api/', '/users/', '/api/users'),
    ('api', '{id}', '/api/{id}'),
    ('  ', '/x', '/x'),
    ('/api', '', '/api'),
])
def test_join(prefix, pattern, expected):
    assert route_path.join(prefix, pattern) == expected


def test_normalize_collapses_repeated_slashes():
    assert route_path.normalize('//a///b//') == '/a/b'
    assert route_path.normalize('') == '/'
    assert route_path.normalize('/') == '/'


def test_path_keys():
    assert route_path.path_keys('/users/{id}/posts/:post') == ('id', 'post')
    assert route_path.path_keys('/files/{path:.*}') == ('path',)
    assert route_path.path_keys('/static') == ()
