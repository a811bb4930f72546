"""Jinja2 renderer for invitation emails.

The subject line is declared inside each template as
``<!-- subject: ... -->``.
"""

from __future__ import annotations

import html
import re
from pathlib import Path
from typing import Any

from classroom_service_libs.logging_utils import create_service_logger
from jinja2 import Environment, FileSystemLoader, select_autoescape

from services.classroom_service.protocols import RenderedTemplate, TemplateRenderer

logger = create_service_logger("classroom_service.template_renderer")

SUBJECT_PATTERN = re.compile(r"<!--\s*subject:\s*(.+?)\s*-->", re.IGNORECASE)


class JinjaTemplateRenderer(TemplateRenderer):
    def __init__(self, template_dir: Path | None = None) -> None:
        self.template_dir = template_dir or Path(__file__).parent.parent / "templates"
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape(["html", "xml", "j2"]),
            enable_async=True,
        )

    async def render(self, template_id: str, variables: dict[str, Any]) -> RenderedTemplate:
        """Render ``{template_id}.html.j2``; raises jinja2.TemplateNotFound if missing."""
        template = self.env.get_template(f"{template_id}.html.j2")
        html_content = await template.render_async(**variables)

        match = SUBJECT_PATTERN.search(html_content)
        if match:
            subject = html.unescape(match.group(1))
        else:
            logger.warning(f"No subject found in template {template_id}, using default")
            subject = "Classroom notification"

        return RenderedTemplate(subject=subject, html_content=html_content)
