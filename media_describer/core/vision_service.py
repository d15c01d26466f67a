"""
Gemini Vision Service for the Media Describer pipeline.

Renders a prompt template for each asset and asks a multimodal Gemini model
on Vertex AI to describe the asset's bytes.
"""

import logging
from pathlib import Path
from typing import Optional

from google import genai
from google.genai import types
from jinja2 import Environment, PackageLoader, StrictUndefined, Template, TemplateError

from media_describer.errors import PromptTemplateError

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "describe_media.jinja"
DESCRIPTION_SKIPPED = "Description skipped"


class PromptRenderer:
    """
    Renders the describe prompt for an asset.

    A custom template file takes precedence over the packaged default. The
    template sees a single variable, ``asset_name``; referencing anything
    else is an error.
    """

    def __init__(self, custom_template_path: Optional[Path] = None):
        self.custom_template_path = Path(custom_template_path) if custom_template_path else None
        self._env = Environment(
            loader=PackageLoader("media_describer", "prompts"),
            undefined=StrictUndefined,
            keep_trailing_newline=True
        )

    def _load_template(self) -> Template:
        if self.custom_template_path is None:
            return self._env.get_template(DEFAULT_TEMPLATE_NAME)

        try:
            source = self.custom_template_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PromptTemplateError(f"failed to parse custom template: {e}") from e
        try:
            return self._env.from_string(source)
        except TemplateError as e:
            raise PromptTemplateError(f"failed to parse custom template: {e}") from e

    def render(self, asset_name: str) -> str:
        """
        Raises:
            PromptTemplateError: If the template cannot be loaded or rendered
        """
        template = self._load_template()
        try:
            return template.render(asset_name=asset_name)
        except TemplateError as e:
            raise PromptTemplateError(f"failed to render template: {e}") from e


class GeminiVisionService:
    """
    Describes media using a Gemini model on Vertex AI.

    When disabled, every call returns a fixed placeholder and the model is
    never contacted.
    """

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: str = "us-central1",
        model_name: str = "gemini-2.0-flash",
        enabled: bool = True,
        prompt_renderer: Optional[PromptRenderer] = None,
        skipped_placeholder: str = DESCRIPTION_SKIPPED,
        client: Optional[genai.Client] = None
    ):
        """
        Initialize Gemini Vision service.

        Args:
            project_id: Google Cloud project for Vertex AI
            location: Vertex AI region
            model_name: Gemini model to use
            enabled: If False, skip description generation entirely
            prompt_renderer: Renders the per-asset prompt
            skipped_placeholder: Description returned when disabled
            client: Pre-built genai client (built from project/location if None)
        """
        self.model_name = model_name
        self.enabled = enabled
        self.prompts = prompt_renderer or PromptRenderer()
        self.skipped_placeholder = skipped_placeholder

        self.client = client
        if self.enabled and self.client is None:
            self.client = genai.Client(vertexai=True, project=project_id, location=location)

        logger.info(f"Gemini Vision Service initialized with model: {model_name} (enabled={enabled})")

    def describe(self, data: bytes, mime_type: str, asset_name: str) -> Optional[str]:
        """
        Generate a description for a single asset.

        Args:
            data: Raw asset bytes
            mime_type: Content type of the bytes
            asset_name: Display name, passed to the prompt template

        Returns:
            Model text, possibly empty. None when the model call fails.

        Raises:
            PromptTemplateError: If the prompt template is unusable
        """
        if not self.enabled:
            return self.skipped_placeholder

        logger.info(f"Describing {asset_name} ...")
        prompt = self.prompts.render(asset_name)

        contents = [
            types.Part.from_bytes(data=data, mime_type=mime_type),
            prompt,
        ]

        try:
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=contents
            )
        except Exception as e:
            logger.error(f"unable to generate content: {e}")
            logger.error(f"prompt: {prompt}")
            return None

        return response.text or ""
