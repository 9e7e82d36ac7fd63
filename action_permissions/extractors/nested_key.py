"""Find every value stored under a key anywhere in a parsed document."""

from typing import Any


def search(tree: Any, key: str) -> list[Any]:
    """Return the values of every ``key`` entry in ``tree``, depth-first.

    Mappings and sequences are walked left to right. When a mapping holds
    ``key`` its value is collected and not searched further; sibling
    branches are still visited. Scalars yield nothing, so an absent key
    gives an empty list.

    YAML aliases may make a container contain itself; a container already
    being walked higher up the current path is not entered again.
    """
    found: list[Any] = []
    _walk(tree, key, found, set())
    return found


def _walk(node: Any, key: str, found: list[Any], ancestors: set[int]) -> None:
    if not isinstance(node, (dict, list, tuple)):
        return
    if id(node) in ancestors:
        return

    ancestors.add(id(node))
    if isinstance(node, dict):
        for name, value in node.items():
            if name == key:
                found.append(value)
            else:
                _walk(value, key, found, ancestors)
    else:
        for item in node:
            _walk(item, key, found, ancestors)
    ancestors.discard(id(node))
