"""Sensory pre-processing: turn audio and video attachments into text."""

import logging
from typing import List, Optional, Sequence, Tuple

from .conversation import Part, TextPart, is_sensory_part
from .exceptions import PreprocessingError
from .providers.base import BaseProvider
from .registry import NATIVE_PROVIDER, ModelDescriptor
from .settings import DEFAULT_SENSORY_MODEL

logger = logging.getLogger(__name__)

SENSORY_INSTRUCTION = (
    "ACT AS SENSORY PROCESSOR. Analyze the attached media. "
    "For audio: transcribe precisely. "
    "For video: describe visual timeline and text. "
    "Output ONLY facts, no chat."
)

ANALYSIS_MARKER = "[SYSTEM SENSORY ANALYSIS]:"


def has_sensory_media(parts: Sequence[Part]) -> bool:
    return any(is_sensory_part(p) for p in parts)


def augment_parts(parts: Sequence[Part], analysis: str) -> List[Part]:
    """Replace each audio/video part, in place, with the analysis text.

    Text parts and other media (images) pass through unchanged.
    """
    replacement = TextPart(f"{ANALYSIS_MARKER}\n{analysis}")
    return [replacement if is_sensory_part(p) else p for p in parts]


class SensoryPreprocessor:
    """Runs one analysis call over the current parts before the real request.

    The analysis always goes through the native provider with a fixed,
    fast multimodal model, whatever model the user picked. It receives
    the instruction followed by every current part so the transcription
    has the user's text as context.
    """

    def __init__(self, provider: BaseProvider, model: str = DEFAULT_SENSORY_MODEL) -> None:
        """Initialize SensoryPreprocessor.

        Args:
            provider: Native-family adapter used for the analysis call
            model: Model id of the analysis model
        """
        self._provider = provider
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    async def process(
        self,
        current_parts: Sequence[Part],
        target: ModelDescriptor,
        credential: Optional[str] = None,
    ) -> Tuple[List[Part], float]:
        """Analyze sensory media and return augmented parts.

        The user's credential is forwarded only when the target model is
        itself native-family; otherwise the native provider falls back to
        its process-wide key.

        Args:
            current_parts: Parts of the new user turn
            target: Descriptor of the model that will answer the user
            credential: The user's API key

        Returns:
            (augmented_parts, analysis_cost). When no audio/video part is
            present the parts are returned unchanged at zero cost and no
            call is made.

        Raises:
            PreprocessingError: If the analysis call fails for any reason
        """
        if not has_sensory_media(current_parts):
            return list(current_parts), 0.0

        request: List[Part] = [TextPart(SENSORY_INSTRUCTION)]
        request.extend(current_parts)
        forwarded = credential if target.is_native else None

        logger.debug(
            "Sensory analysis with %s for target %s (%d parts)",
            self._model, target.id, len(request),
        )
        try:
            result = await self._provider.generate(self._model, [], request, forwarded)
        except Exception as exc:
            raise PreprocessingError(
                f"Sensory analysis failed: {exc}", provider=NATIVE_PROVIDER
            ) from exc

        return augment_parts(current_parts, result.text), result.cost
