"""Plain-text rendering of recorded conversation transcripts."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import jinja2

_env = jinja2.Environment(
    autoescape=False,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=jinja2.StrictUndefined,
)

TRANSCRIPT_TEMPLATE = _env.from_string(
    """\
# {{ conversation_id }}
{% for turn in turns %}
U: {{ turn.user }}
{% for line in turn.assistant %}
A: {{ line }}
{% endfor %}
{% if turn.vote %}
#! vote: {{ turn.vote }}
{% endif %}
{% if turn.comment %}
#! comment: {{ turn.comment }}
{% endif %}
====
{% endfor %}
"""
)


def _one_line(text: str) -> str:
    return " ".join(text.splitlines())


def render_transcript(conversation_id: str, turns: Iterable[Any]) -> str:
    """Render turns (objects with user/assistant/vote/comment) as a log file body."""
    rows = [
        {
            "user": _one_line(turn.user),
            "assistant": [_one_line(line) for line in turn.assistant],
            "vote": turn.vote,
            "comment": _one_line(turn.comment) if turn.comment else None,
        }
        for turn in turns
    ]
    return TRANSCRIPT_TEMPLATE.render(conversation_id=conversation_id, turns=rows)
