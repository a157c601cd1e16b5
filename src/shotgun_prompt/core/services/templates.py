from __future__ import annotations

"""
Template Loading and Rendering.

Loads prompt templates from disk and provides the renderer collaborator
used by the size estimator. Two placeholder dialects exist:

- ``{{NAME}}``: literal tokens substituted by the prompt generator.
- ``{{.NAME}}``: dotted tokens measured by the estimator's fallback path.
"""

import logging
import os
import re
import tomllib
from typing import Any, Dict, Iterable, List, Mapping, Protocol

from shotgun_prompt.domain.template_models import (
    VALID_VARIABLE_TYPES,
    Template,
    TemplateVariable,
)

logger = logging.getLogger(__name__)

_TOKEN_RX = re.compile(r"\{\{\s*\.?([A-Za-z_][A-Za-z0-9_]*)\s*\}\}")


class TemplateRenderer(Protocol):
    """Collaborator contract: render a template with variable bindings."""

    def render(self, template: Template, variables: Mapping[str, str]) -> str:
        ...


def placeholder(name: str) -> str:
    """Literal placeholder token substituted by the generator."""
    return "{{" + name + "}}"


def dotted_placeholder(name: str) -> str:
    """Dotted placeholder token used by the estimator fallback."""
    return "{{." + name + "}}"


def substitute_placeholders(content: str, variables: Mapping[str, str]) -> str:
    """
    Replace each literal ``{{NAME}}`` with its bound value in one pass.

    Unknown placeholders are left verbatim, and values are never
    re-scanned, so a value containing ``{{X}}`` stays literal.
    """
    if not variables:
        return content
    rx = re.compile("|".join(re.escape(placeholder(k)) for k in variables))
    return rx.sub(lambda m: variables[m.group(0)[2:-2]], content)


class PlaceholderRenderer:
    """
    Renderer accepting both ``{{NAME}}`` and ``{{.NAME}}`` spellings.

    Unknown names are kept verbatim. Whitespace inside the braces is
    tolerated, e.g. ``{{ .TASK }}``.
    """

    def render(self, template: Template, variables: Mapping[str, str]) -> str:
        def _replace(match: re.Match) -> str:
            name = match.group(1)
            if name in variables:
                return variables[name]
            return match.group(0)

        return _TOKEN_RX.sub(_replace, template.content)

# -----------------------------------------------------------------------------
# LOADING
# -----------------------------------------------------------------------------

def load_template(path: str) -> Template:
    """
    Load a template file.

    ``.toml`` files follow the structured template schema (metadata,
    ``[variables.*]`` tables, ``content``). Any other file is used
    verbatim as the template content.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If a TOML template is malformed or lacks content.
    """
    if os.path.splitext(path)[1].lower() == ".toml":
        with open(path, "rb") as f:
            try:
                data = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ValueError(f"Malformed template '{path}': {e}") from e
        template = template_from_dict(data)
        logger.debug(f"Loaded structured template '{template.name or template.id}' from {path}")
        return template

    with open(path, "r", encoding="utf-8") as f:
        return Template(content=f.read(), name=os.path.basename(path))


def template_from_dict(data: Dict[str, Any]) -> Template:
    """Build a Template from a parsed TOML/JSON mapping."""
    content = data.get("content")
    if not isinstance(content, str) or not content:
        raise ValueError("Template is missing 'content'.")

    variables: Dict[str, TemplateVariable] = {}
    for key, raw in (data.get("variables") or {}).items():
        if not isinstance(raw, dict):
            continue
        var_type = str(raw.get("type", "text"))
        if var_type not in VALID_VARIABLE_TYPES:
            logger.warning(f"Template variable '{key}' has unknown type '{var_type}'.")
        variables[key] = TemplateVariable(
            name=str(raw.get("name", key)),
            type=var_type,
            required=bool(raw.get("required", False)),
            default=str(raw.get("default", "")),
            min_length=int(raw.get("min_length", 0)),
            max_length=int(raw.get("max_length", 0)),
            options=[str(o) for o in raw.get("options", [])],
        )
        _check_declaration(key, variables[key])

    return Template(
        content=content,
        id=str(data.get("id", "")),
        name=str(data.get("name", "")),
        version=str(data.get("version", "")),
        description=str(data.get("description", "")),
        author=str(data.get("author", "")),
        tags=[str(t) for t in data.get("tags", [])],
        variables=variables,
    )


def default_bindings(template: Template) -> Dict[str, str]:
    """Collect declared variable defaults, keyed by variable name."""
    return {key: var.default for key, var in template.variables.items() if var.default}

# -----------------------------------------------------------------------------
# VARIABLE CONSTRAINTS
# -----------------------------------------------------------------------------

def _check_declaration(key: str, var: TemplateVariable) -> None:
    """Reject declarations that no value could ever satisfy."""
    if var.min_length < 0:
        raise ValueError(f"Template variable '{key}': min_length cannot be negative.")
    if 0 < var.max_length < var.min_length:
        raise ValueError(
            f"Template variable '{key}': max_length ({var.max_length}) is less than "
            f"min_length ({var.min_length})."
        )
    if var.type == "choice":
        if not var.options:
            raise ValueError(f"Template variable '{key}': choice variable must have options.")
        if var.default and var.default not in var.options:
            raise ValueError(
                f"Template variable '{key}': default '{var.default}' is not one of {var.options}."
            )


def validate_bindings(
        template: Template,
        bindings: Mapping[str, str],
        provided: Iterable[str] = (),
) -> List[str]:
    """
    Check bound values against the template's declared variables.

    Args:
        template: Template whose ``variables`` declare the constraints.
        bindings: Values that will be substituted, defaults included.
        provided: Names filled in automatically at generation time; these
            always satisfy ``required``.

    Returns:
        List[str]: One message per violated constraint (empty when valid).
    """
    problems: List[str] = []
    automatic = set(provided)

    for key, var in template.variables.items():
        value = bindings.get(key, "")
        if not value:
            if var.required and var.type != "auto" and key not in automatic:
                problems.append(f"required variable '{key}' is missing")
            continue

        if var.min_length and len(value) < var.min_length:
            problems.append(f"'{key}' is shorter than {var.min_length} character(s)")
        if var.max_length and len(value) > var.max_length:
            problems.append(f"'{key}' is longer than {var.max_length} character(s)")

        if var.type == "choice" and var.options and value not in var.options:
            problems.append(f"'{key}' must be one of {', '.join(var.options)}")
        elif var.type == "boolean" and value not in ("true", "false"):
            problems.append(f"'{key}' must be 'true' or 'false'")
        elif var.type == "number":
            try:
                float(value)
            except ValueError:
                problems.append(f"'{key}' must be a number")

    return problems
