from __future__ import annotations

"""
Template Data Models.

Mirrors the on-disk template schema: descriptive metadata, declared
variables, and the raw content carrying '{{NAME}}' placeholders.
"""

from dataclasses import dataclass, field
from typing import Dict, List

VALID_VARIABLE_TYPES: List[str] = [
    "text",
    "multiline",
    "auto",
    "choice",
    "boolean",
    "number",
]


@dataclass(frozen=True)
class TemplateVariable:
    """
    A declared template variable with its input constraints.

    Lengths count characters; 0 leaves a bound open. ``options`` lists the
    accepted values of a choice variable.
    """
    name: str
    type: str = "text"
    required: bool = False
    default: str = ""
    min_length: int = 0
    max_length: int = 0
    options: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Template:
    """
    A prompt template.

    Only ``content`` participates in generation; the remaining fields are
    descriptive metadata carried through from template files.
    """
    content: str
    id: str = ""
    name: str = ""
    version: str = ""
    description: str = ""
    author: str = ""
    tags: List[str] = field(default_factory=list)
    variables: Dict[str, TemplateVariable] = field(default_factory=dict)
