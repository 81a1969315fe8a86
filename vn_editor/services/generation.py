"""
AI asset generation.

Turns a text prompt into an image asset with Gemini. The engine treats
the generator as an opaque async function returning an image locator;
failures are reported once to the user and never touch the project.
"""

import base64
import logging
from typing import Awaitable, Callable, Optional

import google.generativeai as genai

from vn_editor.config import get_api_key, get_image_model
from vn_editor.models.project import MediaAsset, MediaType, Project

logger = logging.getLogger(__name__)

GENERATION_ERROR_MESSAGE = "Failed to generate image. Please check API key."


class GenerationError(Exception):
    """The model answered without any image data."""


async def generate_ai_asset(prompt: str, model_name: Optional[str] = None) -> str:
    """
    Generate an image for a prompt.

    Args:
        prompt: Description of the image
        model_name: Gemini model; defaults to the configured image model

    Returns:
        A ``data:`` URL holding the base64 encoded image

    Raises:
        GenerationError: If the response carries no inline image
    """
    genai.configure(api_key=get_api_key())
    model = genai.GenerativeModel(model_name or get_image_model())

    logger.info(f"Generating image for prompt: '{prompt[:40]}'")
    response = await model.generate_content_async(prompt)

    for candidate in response.candidates or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                data = inline.data
                if isinstance(data, str):
                    payload = data
                else:
                    payload = base64.b64encode(data).decode("ascii")
                mime = getattr(inline, "mime_type", None) or "image/png"
                return f"data:{mime};base64,{payload}"

    raise GenerationError("No image data found in response")


class AssetGenerator:
    """
    The generation boundary of the asset library.

    Successful generations add a 5 second image asset to the project.
    Any failure adds nothing, leaves one message in ``last_error`` and
    resets ``is_generating``.
    """

    def __init__(
        self,
        project: Project,
        generate: Callable[[str], Awaitable[str]] = generate_ai_asset
    ):
        self.project = project
        self._generate = generate
        self.is_generating = False
        self.last_error: Optional[str] = None

    async def generate(self, prompt: str) -> Optional[MediaAsset]:
        """
        Generate an image asset and add it to the catalog.

        Returns:
            The new asset, or None for blank prompts, concurrent calls
            and failures
        """
        if not prompt.strip() or self.is_generating:
            return None

        self.is_generating = True
        self.last_error = None
        try:
            source = await self._generate(prompt)
        except Exception as e:
            logger.error(f"Gemini image generation error: {e}")
            self.last_error = GENERATION_ERROR_MESSAGE
            return None
        finally:
            self.is_generating = False

        asset = MediaAsset.create_new(
            MediaType.IMAGE,
            source=source,
            name=f"AI: {prompt[:15]}...",
            duration=5.0
        )
        self.project.add_asset(asset)
        logger.info(f"Added generated asset '{asset.name}'")
        return asset
