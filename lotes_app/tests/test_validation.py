import pytest

from lotes_app.services.validation import parse_number, require_positive


@pytest.mark.parametrize('value, expected', [
    ('12.5', 12.5),
    (3, 3.0),
    (' 7 ', 7.0),
    ('', None),
    (None, None),
    ('abc', None),
    (True, None),
    ([1], None),
])
def test_parse_number(value, expected):
    assert parse_number(value) == expected


@pytest.mark.parametrize('value', ['nan', 'NaN', 'inf', '-inf', 'Infinity', float('nan'), float('inf'), 1e309])
def test_parse_number_rejects_non_finite(value):
    assert parse_number(value) is None


@pytest.mark.parametrize('value, message', [
    (None, 'El monto es requerido'),
    ('  ', 'El monto es requerido'),
    ('abc', 'El monto debe ser un número válido'),
    ('nan', 'El monto debe ser un número válido'),
    (float('inf'), 'El monto debe ser un número válido'),
    (0, 'El monto debe ser mayor a 0'),
    (-1, 'El monto debe ser mayor a 0'),
])
def test_require_positive_errors(value, message):
    errors = {}
    require_positive({'amount': value}, 'amount', 'El monto', errors)
    assert errors == {'amount': message}


def test_require_positive_returns_number():
    errors = {}
    assert require_positive({'amount': '150'}, 'amount', 'El monto', errors) == 150.0
    assert errors == {}
