from __future__ import annotations

import json
import textwrap

RESUME_SHAPE = {
    "full_name": "",
    "job_title": "",
    "email": "",
    "phone": "",
    "location": "",
    "summary": "",
    "experience": [{"company": "", "duration": "", "description": ""}],
    "projects": [{"name": "", "description": "", "link": ""}],
    "education": [{"institution": "", "duration": "", "course": ""}],
    "skills": ["string"],
    "certifications": ["string"],
}

FULL_RESUME_SYSTEM_PROMPT = textwrap.dedent(
    f"""
    You are a resume writer that performs strict extraction.
    Use ONLY the information stated in the user's text.
    Never invent names, contact details, employers, dates, projects, degrees,
    skills or certifications. Leave any field the user did not mention empty
    ("" for text, [] for lists).
    Respond with exactly one JSON object of this shape and nothing else
    (no commentary, no markdown fences):

    {json.dumps(RESUME_SHAPE, indent=2)}
    """
).strip()

FULL_RESUME_ARRAY_SYSTEM_PROMPT = textwrap.dedent(
    f"""
    You are a resume writer.
    Build a complete, professional resume from the user's text.
    Identity fields (full_name, email, phone) must stay "" unless the user states them.
    For other sections the user did not mention, write realistic placeholder
    content that fits the stated role. The summary must always be filled in.
    Respond with a JSON array holding exactly one object of this shape and
    nothing else (no commentary, no markdown fences):

    [{json.dumps(RESUME_SHAPE, indent=2)}]
    """
).strip()

_SECTION_UPDATE_TEMPLATE = textwrap.dedent(
    """
    You edit one section of an existing resume.
    The first user message is the current resume as JSON; the second is the edit instruction.
    Modify ONLY the "{section}" section and keep its original structure and value type.
    Do not change, repeat or return any other section.
    Respond with exactly {{"{section}": <updated value>}} as JSON.
    No markdown, no HTML, no commentary.
    """
).strip()


def section_update_system_prompt(section: str) -> str:
    return _SECTION_UPDATE_TEMPLATE.format(section=section)
