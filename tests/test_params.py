"""
Тесты кодирования параметров
"""

from oas_client.internal.types.models import ParameterSpec
from oas_client.internal.utils import (
    apply_collection_format,
    as_array,
    resolve_collection_format,
    stringify,
)


def _spec(**kwargs) -> ParameterSpec:
    return ParameterSpec(name="value", location="query", **kwargs)


class TestAsArray:
    """Тесты приведения значения к списку"""

    def test_absent_value(self):
        assert as_array("id", {}) == []

    def test_scalar_is_wrapped(self):
        assert as_array("id", {"id": 42}) == [42]

    def test_sequence_passes_through(self):
        assert as_array("id", {"id": [1, 2, 3]}) == [1, 2, 3]
        assert as_array("id", {"id": (1, 2)}) == [1, 2]

    def test_present_none_is_wrapped(self):
        assert as_array("id", {"id": None}) == [None]


class TestCollectionFormat:
    """Тесты collectionFormat"""

    def test_resolution_order(self):
        assert resolve_collection_format(_spec(type="array")) == "csv"
        assert resolve_collection_format(_spec(type="string")) is None
        assert (
            resolve_collection_format(_spec(type="array", collection_format="pipes"))
            == "pipes"
        )
        assert (
            resolve_collection_format(_spec(type="string", collection_format="ssv"))
            == "ssv"
        )

    def test_array_defaults_to_csv(self):
        assert apply_collection_format([1, 2, 3], _spec(type="array")) == "1,2,3"

    def test_separators(self):
        values = [1, 2, 3]
        assert apply_collection_format(values, _spec(collection_format="pipes")) == "1|2|3"
        assert apply_collection_format(values, _spec(collection_format="ssv")) == "1 2 3"
        assert apply_collection_format(values, _spec(collection_format="tsv")) == "1\t2\t3"
        assert apply_collection_format(values, _spec(collection_format="csv")) == "1,2,3"

    def test_unknown_format_joins_with_comma(self):
        assert apply_collection_format(["a", "b"], _spec(collection_format="x")) == "a,b"

    def test_multi_and_absent_keep_sequence(self):
        assert apply_collection_format([1, 2], _spec(collection_format="multi")) == [1, 2]
        assert apply_collection_format([1, 2], _spec(type="string")) == [1, 2]


class TestStringify:
    def test_values(self):
        assert stringify(None) == ""
        assert stringify(True) == "true"
        assert stringify(False) == "false"
        assert stringify(42) == "42"
        assert stringify("pet") == "pet"
