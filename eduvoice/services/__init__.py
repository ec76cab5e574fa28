"""Services for external integrations."""

from eduvoice.services.chat_service import ChatService, load_owned_materials
from eduvoice.services.gateway import Completion, GatewayClient, ModelTask
from eduvoice.services.generation import GenerationService, score_attempt
from eduvoice.services.material_processor import material_processor
from eduvoice.services.voice import Transcription, VoiceClient

__all__ = [
    "ChatService",
    "Completion",
    "GatewayClient",
    "GenerationService",
    "ModelTask",
    "Transcription",
    "VoiceClient",
    "load_owned_materials",
    "material_processor",
    "score_attempt",
]
