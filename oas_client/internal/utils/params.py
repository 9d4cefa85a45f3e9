"""Кодирование значений параметров по месту и collectionFormat"""

from typing import Any, List, Mapping, Optional, Union

from ..types.models import ParameterSpec

SEPARATORS = {
    "pipes": "|",
    "ssv": " ",
    "tsv": "\t",
}


def as_array(name: str, params: Mapping[str, Any]) -> List[Any]:
    """
    Приводит значение параметра к списку.

    Examples:
        >>> as_array("id", {})
        []
        >>> as_array("id", {"id": 1})
        [1]
        >>> as_array("id", {"id": [1, 2]})
        [1, 2]
    """
    if name not in params:
        return []
    value = params[name]
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def resolve_collection_format(spec: ParameterSpec) -> Optional[str]:
    """Явный collectionFormat, иначе csv для массивов"""
    if spec.collection_format:
        return spec.collection_format
    return "csv" if spec.type == "array" else None


def apply_collection_format(
    values: List[Any], spec: ParameterSpec
) -> Union[List[Any], str]:
    """
    Сериализация списка значений для query.

    multi или отсутствие формата оставляют список, остальные склеиваются.
    """
    collection_format = resolve_collection_format(spec)
    if not collection_format or collection_format == "multi":
        return values
    separator = SEPARATORS.get(collection_format, ",")
    return separator.join(stringify(_) for _ in values)


def stringify(value: Any) -> str:
    """Строковое представление значения для пути, query и заголовков"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
