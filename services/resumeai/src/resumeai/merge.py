from __future__ import annotations

from typing import Any

from resumeai.errors import SectionNotFoundError

# Wrapper keys the model has been seen nesting a section under.
SECTION_WRAPPER_KEYS = ("div", "section")


def resolve_section_value(section: str, model_output: dict[str, Any]) -> Any:
    if section in model_output:
        return model_output[section]
    for wrapper in SECTION_WRAPPER_KEYS:
        nested = model_output.get(wrapper)
        if isinstance(nested, dict) and section in nested:
            return nested[section]
    raise SectionNotFoundError(section)


def merge_section(
    section: str,
    model_output: dict[str, Any],
    current: dict[str, Any],
) -> dict[str, Any]:
    value = resolve_section_value(section, model_output)
    return {**current, section: value}
