"""
gcp_clients.py - Google Cloud helpers (Firestore + Vertex AI)

This module wraps the two Google services the journal depends on:
1. Firestore, the document database holding entries and recaps.
2. Vertex AI generative models, used to write the weekly recap.

Both are created once at application startup (see main.py) and injected
into request handlers, so nothing here keeps module-level client state.

Failure behavior differs on purpose:
- get_firestore_client() returns None when the client cannot be built, and
  handlers answer 500 "Database connection failed." for that request.
- VertexRecapGenerator.generate() raises RecapGenerationError on any
  provider error, blocked response or timeout. It never retries and never
  returns placeholder text, so a failed call can't overwrite a stored recap.
"""

import asyncio
import logging
from typing import Optional

from google.cloud import firestore
import vertexai
from vertexai.generative_models import GenerativeModel

from .config import Settings
from .exceptions import RecapGenerationError

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())


def get_firestore_client(project: Optional[str] = None, database: str = "(default)") -> Optional[firestore.Client]:
    """
    Initialize and return a Firestore client.

    Returns:
        Firestore client instance, or None on failure.
    """
    try:
        _logger.debug("Initializing Firestore client for project: %s (database=%s)", project, database)
        return firestore.Client(project=project, database=database)
    except Exception as e:
        _logger.exception("Firestore client initialization failed: %s", e)
        return None


class VertexRecapGenerator:
    """
    Text generation through a Vertex AI GenerativeModel.

    Vertex is initialised lazily on the first generate() call so that the
    app can start (and serve entries) even when Vertex is misconfigured.
    """

    def __init__(
        self,
        model_name: str,
        project: Optional[str] = None,
        location: str = "us-central1",
        timeout_seconds: float = 60.0,
        temperature: float = 0.7,
        top_p: float = 0.9,
        max_output_tokens: int = 1024,
    ):
        self.model_name = model_name
        self.project = project
        self.location = location
        self.timeout_seconds = timeout_seconds
        self.generation_config = {
            "max_output_tokens": max_output_tokens,
            "temperature": temperature,
            "top_p": top_p,
        }
        self._model: Optional[GenerativeModel] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "VertexRecapGenerator":
        return cls(
            model_name=settings.vertex_model_name,
            project=settings.gcp_project,
            location=settings.gcp_location,
            timeout_seconds=settings.recap_timeout_seconds,
        )

    def _get_model(self) -> GenerativeModel:
        if self._model is None:
            _logger.info("Initializing Vertex AI: project=%s, location=%s, model=%s",
                         self.project, self.location, self.model_name)
            vertexai.init(project=self.project, location=self.location)
            self._model = GenerativeModel(self.model_name)
        return self._model

    async def generate(self, prompt_text: str) -> str:
        """
        Send `prompt_text` to the model and return the generated text.

        Raises:
            RecapGenerationError: on initialization/provider errors, timeouts,
            safety blocks or an empty response.
        """
        try:
            model = self._get_model()
            response = await asyncio.wait_for(
                model.generate_content_async(prompt_text, generation_config=self.generation_config),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            _logger.error("Vertex AI generation timed out after %.0fs", self.timeout_seconds)
            raise RecapGenerationError("The recap service timed out.")
        except Exception as e:
            _logger.exception("Vertex AI generation failed: %s", e)
            raise RecapGenerationError(f"The recap service failed: {e}") from e

        if not response.candidates:
            _logger.warning("Vertex AI response was blocked. Prompt Feedback: %s", response.prompt_feedback)
            raise RecapGenerationError("The recap service returned no content.")

        try:
            text = response.candidates[0].content.parts[0].text
        except (IndexError, AttributeError, ValueError) as e:
            raise RecapGenerationError("The recap service returned no text.") from e

        if not text or not text.strip():
            raise RecapGenerationError("The recap service returned an empty recap.")
        return text.strip()
