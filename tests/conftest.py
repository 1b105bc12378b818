import pytest

from argsem_pkg.framework import Framework


@pytest.fixture
def empty():
    return Framework(set())


@pytest.fixture
def single_attack():
    # b -> a
    return Framework({"a", "b"}, {("b", "a")})


@pytest.fixture
def mutual():
    return Framework({"a", "b"}, {("a", "b"), ("b", "a")})


@pytest.fixture
def odd_cycle():
    return Framework({"a", "b", "c"}, {("a", "b"), ("b", "c"), ("c", "a")})


@pytest.fixture
def self_attack():
    return Framework({"a"}, {("a", "a")})


@pytest.fixture
def reinstatement():
    # c -> b -> a
    return Framework({"a", "b", "c"}, {("c", "b"), ("b", "a")})


@pytest.fixture
def ideal_not_grounded():
    # a <-> b, b attacks itself: only {a} is preferred, yet nothing is unattacked
    return Framework({"a", "b"}, {("a", "b"), ("b", "a"), ("b", "b")})


@pytest.fixture
def mixed():
    return Framework(
        {"a", "b", "c", "d", "e"},
        {("a", "b"), ("b", "a"), ("b", "c"), ("c", "d"), ("d", "e"), ("e", "c")},
    )


@pytest.fixture
def all_frameworks(empty, single_attack, mutual, odd_cycle, self_attack, reinstatement,
                   ideal_not_grounded, mixed):
    return [empty, single_attack, mutual, odd_cycle, self_attack, reinstatement,
            ideal_not_grounded, mixed]
