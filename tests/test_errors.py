import pytest

from core.errors import InvalidArgumentError, NullKeyError, require_argument, require_key


def test_require_key():
    assert require_key(0) == 0
    with pytest.raises(NullKeyError) as exc_info:
        require_key(None)
    assert exc_info.value.to_dict() == {
        "code": "CACHE-001",
        "message": "key must not be None.",
        "argument": "key",
    }


def test_require_argument():
    assert require_argument([], "items") == []
    with pytest.raises(InvalidArgumentError) as exc_info:
        require_argument(None, "items")
    assert exc_info.value.error_code == "CACHE-002"
    assert isinstance(exc_info.value, ValueError)
