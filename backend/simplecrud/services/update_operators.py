"""
simple-crud — Update Operator Engine
=====================================

What:  Applies an operator-style update document (`{"$set": {...}, ...}`) to a
       stored JSON document.
How:   Validates the whole update document first, then applies every operator
       to a deep copy. Any problem raises WriteError and the original
       document is never touched.
Who:   Called by DocumentStore.update_one() inside the row-locking transaction.

Supported operators:
    $set, $unset, $inc, $mul, $min, $max, $rename,
    $push ($each), $addToSet ($each), $pop, $pull (equality match)

Field paths are dotted ("a.b.c"); numeric components index into arrays.
The reserved `path` field can never be modified.

Not supported, rejected with WriteError rather than approximated:
    $setOnInsert, $currentDate, $bit, $pullAll,
    positional paths ("a.$.b", "a.$[]", "a.$[x]"),
    $push modifiers $slice / $sort / $position, $pull query conditions.
Arithmetic that would store a non-finite number is rejected as well.
"""

import copy
import json
import math
from typing import Any, Callable, Dict, List, Mapping, Tuple

from simplecrud.exceptions import WriteError

RESERVED_FIELD = "path"

# Sentinel for "field not present"
_MISSING = object()


# ══════════════════════════════════════════════════════════════════════════
# Value helpers
# ══════════════════════════════════════════════════════════════════════════

def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int):
        return "int"
    if isinstance(value, float):
        return "double"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _equal(a: Any, b: Any) -> bool:
    # true == 1 in Python, but not in JSON
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return a == b


def _render(value: Any) -> str:
    return json.dumps(value, sort_keys=True, default=str)


# Cross-type ordering used by $min / $max
_TYPE_RANK = {"null": 0, "int": 1, "double": 1, "string": 2, "object": 3, "array": 4, "bool": 5}


def _less_than(a: Any, b: Any) -> bool:
    rank_a = _TYPE_RANK.get(_type_name(a), 6)
    rank_b = _TYPE_RANK.get(_type_name(b), 6)
    if rank_a != rank_b:
        return rank_a < rank_b
    if _is_number(a) or isinstance(a, (str, bool)):
        return a < b
    # objects and arrays compare by their canonical encoding
    if isinstance(a, (dict, list)):
        return _render(a) < _render(b)
    return False


# ══════════════════════════════════════════════════════════════════════════
# Field path navigation
# ══════════════════════════════════════════════════════════════════════════

def _split_field(field: str) -> List[str]:
    parts = field.split(".")
    if any(part == "" for part in parts):
        raise WriteError(
            f"The update path '{field}' contains an empty field name, which is not allowed."
        )
    if any(part.startswith("$") for part in parts):
        raise WriteError(f"Positional update paths are not supported by this store: '{field}'")
    return parts


def _resolve_parent(document: Dict[str, Any], parts: List[str], create: bool) -> Any:
    """
    Walk to the container holding the last path component.

    With create=True, missing intermediate objects are created; otherwise
    None is returned when the path does not exist.
    """
    current: Any = document
    for part in parts[:-1]:
        if isinstance(current, dict):
            if part not in current:
                if not create:
                    return None
                current[part] = {}
            current = current[part]
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            if index >= len(current):
                if not create:
                    return None
                current.extend([None] * (index + 1 - len(current)))
                current[index] = {}
            current = current[index]
        else:
            if not create:
                return None
            raise WriteError(
                f"Cannot create field '{part}' in element {_render(current)}"
            )
    return current


def _get(container: Any, key: str) -> Any:
    if isinstance(container, dict):
        return container.get(key, _MISSING)
    if isinstance(container, list) and key.isdigit() and int(key) < len(container):
        return container[int(key)]
    return _MISSING


def _put(container: Any, key: str, value: Any) -> None:
    if isinstance(container, dict):
        container[key] = value
    elif isinstance(container, list) and key.isdigit():
        index = int(key)
        if index >= len(container):
            container.extend([None] * (index + 1 - len(container)))
        container[index] = value
    else:
        raise WriteError(f"Cannot create field '{key}' in element {_render(container)}")


def _remove(container: Any, key: str) -> None:
    if isinstance(container, dict):
        container.pop(key, None)
    elif isinstance(container, list) and key.isdigit() and int(key) < len(container):
        # array positions are nulled, not removed
        container[int(key)] = None


def _lookup(document: Dict[str, Any], field: str, create: bool) -> Tuple[Any, str, Any]:
    """Return (parent container, last key, current value or _MISSING)."""
    parts = _split_field(field)
    parent = _resolve_parent(document, parts, create)
    if parent is None:
        return None, parts[-1], _MISSING
    return parent, parts[-1], _get(parent, parts[-1])


# ══════════════════════════════════════════════════════════════════════════
# Operators
# ══════════════════════════════════════════════════════════════════════════

def _op_set(document: Dict[str, Any], field: str, value: Any) -> None:
    parent, key, _ = _lookup(document, field, create=True)
    _put(parent, key, copy.deepcopy(value))


def _op_unset(document: Dict[str, Any], field: str, value: Any) -> None:
    parent, key, _ = _lookup(document, field, create=False)
    if parent is not None:
        _remove(parent, key)


def _arithmetic(
    operator: str,
    verb: str,
    combine: Callable[[Any, Any], Any],
    initial: Callable[[Any], Any],
):
    def apply(document: Dict[str, Any], field: str, value: Any) -> None:
        if not _is_number(value):
            raise WriteError(
                f"Cannot {verb} with non-numeric argument: {{{field}: {_render(value)}}}"
            )
        parent, key, current = _lookup(document, field, create=True)
        if current is _MISSING:
            _put(parent, key, initial(value))
        elif not _is_number(current):
            raise WriteError(
                f"Cannot apply {operator} to a value of non-numeric type. "
                f"Field '{field}' has non-numeric type {_type_name(current)}"
            )
        else:
            try:
                result = combine(current, value)
            except OverflowError:
                result = math.inf
            if isinstance(result, float) and not math.isfinite(result):
                raise WriteError(
                    f"{operator} on field '{field}' would produce a non-finite value: "
                    f"{_render(current)}, {_render(value)}"
                )
            _put(parent, key, result)
    return apply


_op_inc = _arithmetic("$inc", "increment", lambda current, value: current + value, lambda value: value)
# a missing field multiplies as zero of the argument's type
_op_mul = _arithmetic("$mul", "multiply", lambda current, value: current * value, lambda value: value * 0)


def _comparison(keep_new: Callable[[Any, Any], bool]):
    def apply(document: Dict[str, Any], field: str, value: Any) -> None:
        parent, key, current = _lookup(document, field, create=True)
        if current is _MISSING or keep_new(value, current):
            _put(parent, key, copy.deepcopy(value))
    return apply


_op_min = _comparison(lambda new, current: _less_than(new, current))
_op_max = _comparison(lambda new, current: _less_than(current, new))


def _op_rename(document: Dict[str, Any], field: str, target: Any) -> None:
    parent, key, current = _lookup(document, field, create=False)
    if current is _MISSING:
        return
    if isinstance(parent, list):
        raise WriteError(f"The source field cannot be an array element, '{field}' in doc")
    _remove(parent, key)
    _op_set(document, target, current)


def _array_field(document: Dict[str, Any], field: str, operator: str) -> Tuple[Any, str, Any]:
    parent, key, current = _lookup(document, field, create=True)
    if current is not _MISSING and not isinstance(current, list):
        raise WriteError(
            f"The field '{field}' must be an array but is of type "
            f"{_type_name(current)} in document, cannot apply {operator}"
        )
    return parent, key, current


def _each(value: Any, operator: str) -> List[Any]:
    """Expand `{"$each": [...]}` into its items; any other value is one item."""
    if isinstance(value, dict) and any(k.startswith("$") for k in value):
        unsupported = [k for k in value if k in _UNSUPPORTED_MODIFIERS]
        if unsupported:
            raise WriteError(f"{operator} modifier {unsupported[0]} is not supported by this store")
        unknown = [k for k in value if k != "$each"]
        if unknown:
            raise WriteError(f"Unrecognized clause in {operator}: {unknown[0]}")
        items = value["$each"]
        if not isinstance(items, list):
            raise WriteError(
                f"The argument to $each in {operator} must be an array but it was of type "
                f"{_type_name(items)}"
            )
        return [copy.deepcopy(item) for item in items]
    return [copy.deepcopy(value)]


def _op_push(document: Dict[str, Any], field: str, value: Any) -> None:
    parent, key, current = _array_field(document, field, "$push")
    items = _each(value, "$push")
    if current is _MISSING:
        _put(parent, key, items)
    else:
        current.extend(items)


def _op_add_to_set(document: Dict[str, Any], field: str, value: Any) -> None:
    parent, key, current = _array_field(document, field, "$addToSet")
    if current is _MISSING:
        current = []
        _put(parent, key, current)
    for item in _each(value, "$addToSet"):
        if not any(_equal(item, existing) for existing in current):
            current.append(item)


def _op_pop(document: Dict[str, Any], field: str, value: Any) -> None:
    if not _is_number(value) or value not in (1, -1):
        raise WriteError(f"$pop expects 1 or -1, found: {_render(value)}")
    parent, key, current = _lookup(document, field, create=False)
    if current is _MISSING:
        return
    if not isinstance(current, list):
        raise WriteError(f"Path '{field}' contains an element of non-array type '{_type_name(current)}'")
    if current:
        current.pop(-1 if value == 1 else 0)


def _op_pull(document: Dict[str, Any], field: str, value: Any) -> None:
    parent, key, current = _lookup(document, field, create=False)
    if current is _MISSING:
        return
    if not isinstance(current, list):
        raise WriteError("Cannot apply $pull to a non-array value")
    if isinstance(value, dict) and any(k.startswith("$") for k in value):
        raise WriteError("$pull conditions are not supported by this store, only equality matches")
    current[:] = [item for item in current if not _equal(item, value)]


_OPERATORS: Dict[str, Callable[[Dict[str, Any], str, Any], None]] = {
    "$set": _op_set,
    "$unset": _op_unset,
    "$inc": _op_inc,
    "$mul": _op_mul,
    "$min": _op_min,
    "$max": _op_max,
    "$rename": _op_rename,
    "$push": _op_push,
    "$addToSet": _op_add_to_set,
    "$pop": _op_pop,
    "$pull": _op_pull,
}

# Valid MongoDB update syntax outside the subset above
_UNSUPPORTED_OPERATORS = frozenset({"$setOnInsert", "$currentDate", "$bit", "$pullAll"})
_UNSUPPORTED_MODIFIERS = frozenset({"$slice", "$sort", "$position"})


# ══════════════════════════════════════════════════════════════════════════
# Validation
# ══════════════════════════════════════════════════════════════════════════

def _conflicts(a: str, b: str) -> bool:
    return a == b or a.startswith(b + ".") or b.startswith(a + ".")


def validate_update(update: Mapping[str, Any]) -> None:
    """
    Check the shape of an update document without applying it.

    Raises:
        WriteError: the document is empty, contains a non-operator key, an
                    unknown operator, a non-object operator argument, an empty
                    field name, conflicting field paths, or touches `path`.
    """
    if not update:
        raise WriteError("update document must have at least one element")
    for key in update:
        if not key.startswith("$"):
            raise WriteError("update document must contain key beginning with '$'")

    touched: List[str] = []
    for operator, fields in update.items():
        if operator in _UNSUPPORTED_OPERATORS:
            raise WriteError(f"Update modifier {operator} is not supported by this store")
        if operator not in _OPERATORS:
            raise WriteError(
                f"Unknown modifier: {operator}. Expected a valid update modifier"
            )
        if not isinstance(fields, dict):
            raise WriteError(
                f"Modifiers operate on fields but we found type {_type_name(fields)} "
                f"instead. For example: {{$mod: {{<field>: ...}}}} not {{{operator}: {_render(fields)}}}"
            )
        for field, argument in fields.items():
            paths = [field]
            if operator == "$rename":
                if not isinstance(argument, str):
                    raise WriteError(
                        f"The 'to' field for $rename must be a string: {field}: {_render(argument)}"
                    )
                if argument == field:
                    raise WriteError(
                        f"The source and target field for $rename must differ: {field}: {_render(argument)}"
                    )
                paths.append(argument)
            for path in paths:
                if _split_field(path)[0] == RESERVED_FIELD:
                    raise WriteError(
                        f"Performing an update on the path '{path}' would modify the "
                        f"immutable field '{RESERVED_FIELD}'"
                    )
                for seen in touched:
                    if _conflicts(path, seen):
                        raise WriteError(
                            f"Updating the path '{path}' would create a conflict at '{seen}'"
                        )
                touched.append(path)


def apply_update(document: Mapping[str, Any], update: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Return a new document with `update` applied to `document`.

    Raises:
        WriteError: see validate_update(); also type errors found while applying.
    """
    validate_update(update)
    result: Dict[str, Any] = copy.deepcopy(dict(document))
    for operator, fields in update.items():
        handler = _OPERATORS[operator]
        for field, argument in fields.items():
            handler(result, field, argument)
    return result
