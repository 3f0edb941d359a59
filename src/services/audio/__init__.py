"""
Audio module - capture sources, time slicing and WAV encoding.

Factory function for creating audio sources based on provider configuration.
"""

from .base import BaseAudioSource
from .processor import AudioProcessor
from .slicer import AudioSlicer

__all__ = ["AudioProcessor", "AudioSlicer", "BaseAudioSource", "create_audio_source"]


def create_audio_source(provider: str, **kwargs) -> BaseAudioSource:
    """
    Factory function to create an audio source based on provider.

    Args:
        provider: Audio backend name ("sounddevice")
        **kwargs: Provider-specific configuration

    Returns:
        BaseAudioSource implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "sounddevice":
        from .capture import SoundDeviceSource

        return SoundDeviceSource(**kwargs)
    else:
        raise ValueError(f"Unknown audio provider: {provider}")
