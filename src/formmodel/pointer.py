"""JSON Pointer utilities.

Pointers are RFC 6901 strings (``""`` is the root, ``/properties/name`` a
child). Three flavours circulate through the engine:

- schema pointers, into the schema tree (``/properties/tags/items``)
- data pointers, into the data (``/tags/0``); generic data pointers use ``-``
  for any array position (``/tags/-``)
- layout keys, the dotted notation used by form layouts (``tags[].name``)
"""

from typing import Any, Iterator, Sequence
from urllib.parse import unquote

from returns.pipeline import is_successful
from returns.result import Failure, Result, Success


class PointerError(ValueError):
    """Value cannot be read as a JSON Pointer."""

    pass


def escape(segment: Any) -> str:
    """Escape a single segment (``~`` → ``~0``, ``/`` → ``~1``)."""
    return str(segment).replace("~", "~0").replace("/", "~1")


def unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def parse(pointer: str | Sequence[Any]) -> list[str]:
    """
    Split a pointer into unescaped segments.

    Accepts URI fragments (``#/definitions/a%20b``), plain pointers, and
    segment lists. A missing leading slash is tolerated (``definitions/x``).
    """
    if isinstance(pointer, (list, tuple)):
        return [str(p) for p in pointer]
    if not isinstance(pointer, str):
        raise PointerError(f"Not a JSON Pointer: {pointer!r}")

    text = pointer
    if text.startswith("#"):
        text = unquote(text[1:])
    if text == "":
        return []
    if not text.startswith("/"):
        text = "/" + text
    return [unescape(part) for part in text.split("/")[1:]]


def compile(segments: str | Sequence[Any]) -> str:
    """Build a normalized pointer string from segments (or another pointer)."""
    if isinstance(segments, str):
        segments = parse(segments)
    return "".join("/" + escape(s) for s in segments)


def join(pointer: str, *segments: Any) -> str:
    return pointer + "".join("/" + escape(s) for s in segments)


def parent(pointer: str) -> str:
    return compile(parse(pointer)[:-1])


def last(pointer: str) -> str | None:
    segments = parse(pointer)
    return segments[-1] if segments else None


def normalize_ref(ref: Any) -> str | None:
    """
    Normalize a ``$ref`` value into a local pointer.

    Returns None for values that are not local references (remote URIs,
    references into other documents, non-strings).
    """
    if not isinstance(ref, str):
        return None
    if "://" in ref or ("#" in ref and not ref.startswith("#")):
        return None
    try:
        return compile(parse(ref))
    except PointerError:
        return None


def lookup(document: Any, pointer: str | Sequence[Any]) -> Result[Any, str]:
    """Resolve pointer against document."""
    node = document
    for segment in parse(pointer):
        if isinstance(node, dict):
            if segment not in node:
                return Failure(f"key {segment!r} not found")
            node = node[segment]
        elif isinstance(node, list):
            if not (segment.isascii() and segment.isdigit()) or int(segment) >= len(node):
                return Failure(f"index {segment!r} out of range")
            node = node[int(segment)]
        else:
            return Failure(f"cannot descend into {type(node).__name__} at {segment!r}")
    return Success(node)


def get(document: Any, pointer: str | Sequence[Any], default: Any = None) -> Any:
    return lookup(document, pointer).value_or(default)


def has(document: Any, pointer: str | Sequence[Any]) -> bool:
    return is_successful(lookup(document, pointer))


def _is_index(segment: str) -> bool:
    return segment == "-" or (segment.isascii() and segment.isdigit())


def set_in(document: Any, pointer: str | Sequence[Any], value: Any) -> Any:
    """
    Set value at pointer, creating intermediate containers as needed.

    Mutates and returns document (or returns value for the root pointer).
    Missing intermediates become lists when the next segment is an index.
    """
    segments = parse(pointer)
    if not segments:
        return value

    current = document
    for i, segment in enumerate(segments):
        is_last = i == len(segments) - 1
        nxt: Any = value if is_last else ([] if _is_index(segments[i + 1]) else {})

        if isinstance(current, list):
            if segment == "-":
                index = len(current)
            elif _is_index(segment):
                index = int(segment)
            else:
                raise PointerError(f"Cannot use {segment!r} as a list index")
            while len(current) <= index:
                current.append(None)
            if is_last or not isinstance(current[index], (dict, list)):
                current[index] = nxt
            current = current[index]
        elif isinstance(current, dict):
            if is_last or not isinstance(current.get(segment), (dict, list)):
                current[segment] = nxt
            current = current[segment]
        else:
            raise PointerError(f"Cannot set {segment!r} inside {type(current).__name__}")
    return document


def walk(document: Any, pointer: str = "") -> Iterator[tuple[str, Any]]:
    """Yield (pointer, value) for every node, parents before children."""
    yield pointer, document
    if isinstance(document, dict):
        for key, value in document.items():
            yield from walk(value, join(pointer, key))
    elif isinstance(document, list):
        for index, value in enumerate(document):
            yield from walk(value, join(pointer, index))


def is_sub_pointer(short: str, long: str, strict: bool = False) -> bool:
    """
    True if ``short`` is an ancestor of (or, unless strict, equal to) ``long``.

    Compared segment-wise: ``/properties/b`` is not an ancestor of
    ``/properties/bar``.
    """
    short_segments = parse(short)
    long_segments = parse(long)
    if strict and len(long_segments) <= len(short_segments):
        return False
    return long_segments[:len(short_segments)] == short_segments


# ============================================================================
# Layout keys
# ============================================================================


def key_to_segments(key: str | Sequence[Any]) -> list[str]:
    """
    Split a layout key into data segments.

    ``address.street`` → ``['address', 'street']``, ``tags[]`` →
    ``['tags', '-']``, ``tags[2].name`` → ``['tags', '2', 'name']``,
    ``a['b.c']`` → ``['a', 'b.c']``. Keys starting with ``/`` are pointers.
    """
    if isinstance(key, (list, tuple)):
        return [str(k) for k in key]
    if not isinstance(key, str):
        raise PointerError(f"Not a layout key: {key!r}")
    if key.startswith("/") or key.startswith("#"):
        return parse(key)

    segments: list[str] = []
    buf: list[str] = []
    i = 0
    while i < len(key):
        ch = key[i]
        if ch == ".":
            if buf:
                segments.append("".join(buf))
                buf = []
        elif ch == "[":
            if buf:
                segments.append("".join(buf))
                buf = []
            end = key.find("]", i)
            if end == -1:
                raise PointerError(f"Unclosed bracket in layout key {key!r}")
            inner = key[i + 1:end].strip()
            if inner == "":
                segments.append("-")
            elif len(inner) >= 2 and inner[0] == inner[-1] and inner[0] in "'\"":
                segments.append(inner[1:-1])
            else:
                segments.append(inner)
            i = end
        else:
            buf.append(ch)
        i += 1
    if buf:
        segments.append("".join(buf))
    return segments


def key_to_pointer(key: str | Sequence[Any]) -> str:
    return compile(key_to_segments(key))


def pointer_to_key(pointer: str) -> str:
    """Dotted layout key for a data pointer (``/tags/-/name`` → ``tags[].name``)."""
    out = ""
    for segment in parse(pointer):
        if segment == "-":
            out += "[]"
        elif "." in segment or "[" in segment or "]" in segment:
            out += f"['{segment}']"
        else:
            out += f".{segment}" if out else segment
    return out


# ============================================================================
# Schema <-> data pointers
# ============================================================================


def schema_to_data_pointer(schema_pointer: str) -> str | None:
    """
    Data pointer for a schema pointer, or None outside the data tree.

    ``/properties/tags/items/properties/name`` → ``/tags/-/name``;
    ``/items/0`` (tuple position) → ``/0``; ``/definitions/x`` → None.
    """
    segments = parse(schema_pointer)
    out: list[str] = []
    i = 0
    while i < len(segments):
        segment = segments[i]
        if segment == "properties" and i + 1 < len(segments):
            out.append(segments[i + 1])
            i += 2
        elif segment == "items":
            if i + 1 < len(segments) and segments[i + 1].isascii() and segments[i + 1].isdigit():
                out.append(segments[i + 1])
                i += 2
            else:
                out.append("-")
                i += 1
        elif segment == "additionalItems":
            out.append("-")
            i += 1
        else:
            return None
    return compile(out)


def schema_pointer_for(data_pointer: str, schema: dict[str, Any]) -> str | None:
    """
    Schema pointer describing the value at a (generic or concrete) data pointer.

    Circular ``$ref`` markers met on the way are followed to their target, so a
    pointer that descends into a recursive structure lands on the recursive
    definition.
    """
    node: Any = schema
    out: list[str] = []
    followed = 0
    segments = parse(data_pointer)
    i = 0
    while i < len(segments):
        if not isinstance(node, dict):
            return None
        if "$ref" in node and "properties" not in node and "items" not in node:
            target = normalize_ref(node["$ref"])
            followed += 1
            if target is None or followed > len(segments) + 1 or not has(schema, target):
                return None
            node = get(schema, target)
            out = parse(target)
            continue

        segment = segments[i]
        properties = node.get("properties")
        items = node.get("items")
        if isinstance(properties, dict) and segment in properties:
            out += ["properties", segment]
            node = properties[segment]
        elif _is_index(segment) and isinstance(items, list):
            if segment != "-" and int(segment) < len(items):
                out += ["items", segment]
                node = items[int(segment)]
            elif isinstance(node.get("additionalItems"), dict):
                out.append("additionalItems")
                node = node["additionalItems"]
            else:
                return None
        elif _is_index(segment) and isinstance(items, dict):
            out.append("items")
            node = items
        else:
            return None
        i += 1
    return compile(out)
