"""
voicewriter - Push-to-Talk Transcription

Hold a key to record, release to transcribe, and the text is typed into the
focused window and/or copied to the clipboard.
"""

__version__ = "0.1.0"

from voicewriter.config import Config
from voicewriter.controller import SessionController

__all__ = ["Config", "SessionController", "__version__"]
