"""
VoiceCal: turn spoken or typed sentences into calendar events.
"""

from voicecal.event_models import EventFormData, ParsedEvent, VoiceEventData
from voicecal.event_normalizer import convert_form_data_to_event_data, convert_voice_data_to_event_data
from voicecal.transcript_fallback import transcript_to_event_data, transcript_to_voice_data
from voicecal.voice_parser import parse_voice_to_event

__all__ = [
    "EventFormData",
    "ParsedEvent",
    "VoiceEventData",
    "convert_form_data_to_event_data",
    "convert_voice_data_to_event_data",
    "parse_voice_to_event",
    "transcript_to_event_data",
    "transcript_to_voice_data",
]
