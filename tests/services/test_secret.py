import re

import pytest

from nocodbsetup.errors import SetupError
from nocodbsetup.services.secret import generate_secret

URL_SAFE = re.compile(r"[A-Za-z0-9_-]+")


def test_generate_secret_has_fixed_length_and_url_safe_alphabet():
    for _ in range(200):
        secret = generate_secret()
        assert len(secret) == 64
        assert URL_SAFE.fullmatch(secret)
        assert "+" not in secret and "/" not in secret and "=" not in secret


@pytest.mark.parametrize("length", [1, 5, 22, 43, 100])
def test_generate_secret_honours_requested_length(length):
    assert len(generate_secret(length)) == length


def test_generate_secret_differs_between_calls():
    assert generate_secret() != generate_secret()


def test_generate_secret_rejects_non_positive_length():
    with pytest.raises(SetupError, match="must be positive"):
        generate_secret(0)
