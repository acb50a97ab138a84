"""Templates for in-app notifications."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class InAppTemplate:
  template_id: str
  title_template: str
  body_template: str
  required_keys: set[str]


TEMPLATES: dict[str, InAppTemplate] = {
  "job_completed_v1": InAppTemplate(template_id="job_completed_v1", title_template="{{job_label}} completed", body_template="{{summary}}", required_keys={"job_label", "summary"}),
  "job_failed_v1": InAppTemplate(template_id="job_failed_v1", title_template="{{job_label}} failed", body_template="{{error_message}} Please try again later.", required_keys={"job_label", "error_message"}),
}


def render_in_app_template(*, template_id: str, data: dict[str, Any]) -> tuple[str, str]:
  """Render a template into a title and body string."""
  template = TEMPLATES.get(template_id)
  if template is None:
    raise ValueError(f"Unknown in-app template: {template_id}")
  missing = sorted(template.required_keys - set(data.keys()))
  if missing:
    raise ValueError(f"Missing placeholders for template '{template_id}': {', '.join(missing)}")

  def _fill(text: str) -> str:
    for key in template.required_keys:
      text = text.replace(f"{{{{{key}}}}}", str(data[key]))
    return text

  return _fill(template.title_template), _fill(template.body_template)
