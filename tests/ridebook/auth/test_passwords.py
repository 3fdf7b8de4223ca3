import pytest

from ridebook.auth.passwords import hash_password, verify_password


def test_hash_is_salted_and_verifies() -> None:
    first = hash_password('secret1')
    second = hash_password('secret1')

    assert first != second
    assert verify_password('secret1', first)
    assert not verify_password('secret2', first)


@pytest.mark.parametrize('stored', [None, '', 'no-separator', ':digest', 'salt:'])
def test_malformed_stored_hash_never_matches(stored) -> None:
    assert verify_password('secret1', stored) is False
