import pytest

from markgone.errors import MarkgoneBuildError, MarkgoneConfigError, MarkgoneError


def test_all_errors_are_subclasses_of_markgone_error() -> None:
    assert issubclass(MarkgoneConfigError, MarkgoneError)
    assert issubclass(MarkgoneBuildError, MarkgoneError)


def test_error_message_is_preserved() -> None:
    msg = "boom"
    err = MarkgoneConfigError(msg)
    assert str(err) == msg


def test_can_catch_any_markgone_error() -> None:
    def raise_one() -> None:
        raise MarkgoneBuildError("nope")

    with pytest.raises(MarkgoneError):
        raise_one()
