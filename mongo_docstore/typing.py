"""Typing helpers shared by document store implementations."""

from typing import Any, Dict, List, Mapping, Union

# Values a document may hold once it crossed the adapter boundary.
DocumentValue = Union[
    None,
    bool,
    int,
    float,
    str,
    List["DocumentValue"],
    Dict[str, "DocumentValue"],
]

Document = Dict[str, DocumentValue]

# Filters and updates may carry backend query operators, so keep them loose.
Filter = Mapping[str, Any]
