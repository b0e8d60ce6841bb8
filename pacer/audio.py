"""Spoken output for Pacer announcements."""

import subprocess
from typing import Optional, Callable

from .config import CONFIG
from .models import AnnouncementEvent


class Audio:
    """Speaks announcements, shaping the voice by announcement category.

    Off-route warnings come out slower and louder than routine milestone
    and time updates, so they stand out over music or traffic. Voice
    selection beyond rate and volume belongs to the platform.
    """

    callback: Optional[Callable[[str], None]] = None  # Class-level callback, e.g. for a UI overlay

    @classmethod
    def set_callback(cls, callback: Optional[Callable[[str], None]]):
        """Set callback function for audio events"""
        cls.callback = callback

    @staticmethod
    def announce(event: AnnouncementEvent):
        """Speak one announcement with its category's rate and volume"""
        voice = CONFIG["speech_voice"]
        rate, volume = voice.get(event.category.value, voice["default"])
        Audio.speak(event.text, rate=rate, volume=volume)

    @staticmethod
    def speak(text: str, rate: int = 150, volume: int = 100):
        """Speak text and block until playback finishes.

        Args:
            text: Text to speak
            rate: Words per minute
            volume: espeak amplitude, 0-200 with 100 as normal
        """
        if Audio.callback:
            Audio.callback(text)

        try:
            subprocess.run(
                ["espeak", "-s", str(rate), "-a", str(volume), text],
                capture_output=True,
                timeout=CONFIG["speech_timeout"],
            )
        except FileNotFoundError:
            try:
                import pyttsx3
                engine = pyttsx3.init()
                engine.setProperty("rate", rate)
                engine.setProperty("volume", min(volume, 100) / 100)
                engine.say(text)
                engine.runAndWait()
            except Exception:
                print(f"[AUDIO] {text}")
        except subprocess.TimeoutExpired:
            print(f"Audio timed out after {CONFIG['speech_timeout']}s: {text}")


class ConsoleSpeaker:
    """Prints announcements instead of speaking them (replays, tests)"""

    def __init__(self, prefix: str = "[AUDIO]"):
        self.prefix = prefix
        self.spoken: list[str] = []

    def speak(self, text: str):
        self.spoken.append(text)
        print(f"{self.prefix} {text}")
