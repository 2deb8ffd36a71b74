# src/audio/__init__.py
# =======================
# Audio payload handling — LinguaRelay
#
# Chunks arrive as base64 text or data: URIs; nothing here touches the
# audio samples themselves.

from src.audio.decoder import DecodeError, DecodedAudio, decode_audio_payload  # noqa: F401

__all__ = ["DecodeError", "DecodedAudio", "decode_audio_payload"]
