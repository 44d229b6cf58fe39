from fazuh.chalk.util import get_string


def test_get_string():
    assert get_string("a=user: {x:1},\nrest", "user: ", ",\n") == "{x:1}"


def test_get_string_uses_first_right_after_left():
    assert get_string("x,\n user: {a},\n{b},\n", "user: ", ",\n") == "{a}"


def test_get_string_not_found():
    assert get_string("no marker here", "user: ", ",\n") is None
    assert get_string("user: {x:1} and no terminator", "user: ", ",\n") is None


def test_get_string_never_throws():
    assert get_string(None, "user: ", ",\n") is None
    assert get_string("user: x,\n", "", ",\n") is None
