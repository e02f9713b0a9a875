from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
for _path in (ROOT / "src", ROOT):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))


import pytest

from jsonbind.introspection.cache import IntrospectionCache
from jsonbind.introspection.factory import DefaultInstanceFactory
from jsonbind.mapper import JsonMapper
from jsonbind.order_contract import reset_order_policy, set_order_policy
from jsonbind.policy import MappingPolicy


@pytest.fixture(autouse=True)
def _sorted_order_policy():
    token = set_order_policy("sort")
    try:
        yield
    finally:
        reset_order_policy(token)


@pytest.fixture
def make_mapper():
    def _make(**policy: object) -> JsonMapper:
        return JsonMapper(
            MappingPolicy(**policy),
            cache=IntrospectionCache(),
            factory=DefaultInstanceFactory(),
        )

    return _make


@pytest.fixture
def mapper(make_mapper) -> JsonMapper:
    return make_mapper()
