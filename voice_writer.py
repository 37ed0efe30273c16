#!/usr/bin/env python3
"""
voicewriter - Push-to-Talk Transcription

Hold a key to record, release to transcribe. Text is typed into the focused
window, copied to the clipboard, or both.

Usage:
    python voice_writer.py [options]

Environment Variables:
    VOICEWRITER_HOTKEY          Hotkey to hold (e.g. 'F9', 'ScrollLock')
    VOICEWRITER_OUTPUT_MODE     Output mode: 'typing', 'clipboard' or 'both'
    VOICEWRITER_AUDIO_DEVICE    Audio input device index
    VOICEWRITER_ENGINE          Speech backend: 'mlx' or 'faster-whisper'
    VOICEWRITER_MODEL           Speech model name or path
    VOICEWRITER_LANGUAGE        Spoken language code (e.g. 'en', or 'auto')
    VOICEWRITER_CLEANUP         Enable transcript cleanup: '1' or 'true'
    VOICEWRITER_CLEANUP_HOST    Cleanup service host (default 'localhost')
    VOICEWRITER_CLEANUP_PORT    Cleanup service port (default 11434)
    VOICEWRITER_CLEANUP_MODEL   Cleanup model name
    VOICEWRITER_CLEANUP_PROMPT  Replacement cleanup instructions
    VOICEWRITER_NOTIFY          Desktop notifications: '1' or '0'
    VOICEWRITER_VERBOSE         Enable verbose logging: '1' or 'true'
"""

from voicewriter.__main__ import main

if __name__ == "__main__":
    raise SystemExit(main())
