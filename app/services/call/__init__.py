"""
Voice Call Session Package

Architecture:
- session.py: Call session state machine and post-call dispatch
- transcript.py: Finalized transcript accumulation
- transport.py: Voice transport contract and scoped event subscriptions
- relay.py: WebSocket relay to the browser-side voice SDK
- feedback.py: Interview transcript storage for feedback
"""

from .session import CallSessionController, generation_call_config, interview_call_config
from .transcript import TranscriptAccumulator, render_conversation
from .transport import EventEmitterTransport, EventSubscriptions, TRANSPORT_EVENTS
from .feedback import FeedbackRecorder

__all__ = [
    'CallSessionController',
    'generation_call_config',
    'interview_call_config',
    'TranscriptAccumulator',
    'render_conversation',
    'EventEmitterTransport',
    'EventSubscriptions',
    'TRANSPORT_EVENTS',
    'FeedbackRecorder',
]
